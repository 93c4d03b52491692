# wayfarer/app/api/v1/endpoints/auth.py
from fastapi import APIRouter, Depends, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.app.api import deps
from wayfarer.app.core.config import Settings
from wayfarer.app.core.errors import Conflict
from wayfarer.app.db.base import get_db
from wayfarer.app.models.session import UserSession
from wayfarer.app.models.user import Role, User
from wayfarer.app.schemas.journal import MessageResponse
from wayfarer.app.schemas.user import Token, UserCreate, UserResponse
from wayfarer.app.security import hashing
from wayfarer.app.services import identity

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserCreate, db: AsyncSession = Depends(get_db)):
    if await identity.get_user_by_email(db, user_in.email):
        raise Conflict("Email already registered")

    # New accounts start as READER; only an admin can promote them
    new_user = User(
        email=identity.normalize_email(user_in.email),
        name=user_in.name,
        hashed_password=hashing.get_password_hash(user_in.password),
        role=Role.READER,
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)
    return new_user


@router.post("/login", response_model=Token)
async def login(
        response: Response,
        form_data: OAuth2PasswordRequestForm = Depends(),
        db: AsyncSession = Depends(get_db),
        settings: Settings = Depends(deps.get_app_settings),
):
    # OAuth2 form field "username" carries the email
    user = await identity.authenticate_credentials(db, form_data.username, form_data.password)
    token, session_row = await identity.open_session(db, user, settings)

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return {"access_token": token, "token_type": "bearer", "expires_at": session_row.expires_at}


@router.post("/logout", response_model=MessageResponse)
async def logout(
        response: Response,
        db: AsyncSession = Depends(get_db),
        session_row: UserSession = Depends(deps.get_current_session),
        settings: Settings = Depends(deps.get_app_settings),
):
    await identity.revoke_session(db, session_row)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"message": "Signed out"}


@router.get("/me", response_model=UserResponse)
async def read_current_user(current_user: User = Depends(deps.get_current_user)):
    return current_user
