# wayfarer/app/api/deps.py
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.app.core.config import Settings, get_settings
from wayfarer.app.db.base import get_db
from wayfarer.app.models.session import UserSession
from wayfarer.app.models.user import Role, User
from wayfarer.app.security.codec import JournalCodec
from wayfarer.app.services import identity

# auto_error=False: a missing header falls through to the session cookie
reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{get_settings().API_V1_STR}/auth/login",
    auto_error=False,
)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_codec(request: Request) -> JournalCodec:
    return request.app.state.journal_codec


def get_session_token(
        request: Request,
        bearer: Optional[str] = Depends(reusable_oauth2),
        settings: Settings = Depends(get_app_settings),
) -> Optional[str]:
    if bearer:
        return bearer
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_current_session(
        db: AsyncSession = Depends(get_db),
        token: Optional[str] = Depends(get_session_token),
        settings: Settings = Depends(get_app_settings),
) -> UserSession:
    _, session_row = await identity.resolve_session(db, token, settings)
    return session_row


async def get_current_user(
        db: AsyncSession = Depends(get_db),
        token: Optional[str] = Depends(get_session_token),
        settings: Settings = Depends(get_app_settings),
) -> User:
    return await identity.resolve_identity(db, token, settings)


def require_roles(*roles: Role):
    """Dependency factory: resolve the caller and check their current role."""
    required = frozenset(roles)

    async def dependency(
            db: AsyncSession = Depends(get_db),
            token: Optional[str] = Depends(get_session_token),
            settings: Settings = Depends(get_app_settings),
    ) -> User:
        return await identity.authorize(db, token, required, settings)

    return dependency


require_admin = require_roles(Role.ADMIN)
