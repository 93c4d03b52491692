# wayfarer/app/api/v1/router.py
from fastapi import APIRouter

from wayfarer.app.api.v1.endpoints import auth, journal, users

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(journal.router, prefix="/journal", tags=["journal"])
