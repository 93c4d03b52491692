# wayfarer/app/api/v1/endpoints/users.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.app.api import deps
from wayfarer.app.db.base import get_db
from wayfarer.app.models.user import User
from wayfarer.app.schemas.user import RoleChangeResponse, RoleUpdate, UserResponse
from wayfarer.app.services import identity

router = APIRouter()


@router.get("/", response_model=List[UserResponse])
async def read_users(
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(deps.require_admin),
        skip: int = Query(0, ge=0),
        limit: int = Query(100, ge=1, le=500),
):
    query = select(User).order_by(User.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.patch("/{user_id}/role", response_model=RoleChangeResponse)
async def update_user_role(
        user_id: str,
        role_in: RoleUpdate,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(deps.require_admin),
):
    updated = await identity.change_role(db, current_user, user_id, role_in.role)
    return {
        "success": True,
        "user": UserResponse.model_validate(updated),
        "message": f"User role updated to {updated.role.value}",
    }
