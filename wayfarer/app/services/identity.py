# wayfarer/app/services/identity.py
"""
Session identity resolution and role-based authorization.

The role stored on the users row is the only authority. Every
resolve/authorize call re-reads it, so a role change takes effect on
the affected user's very next request without a new login.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import AbstractSet, Optional, Tuple

from jose import JWTError
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.app.core.config import Settings
from wayfarer.app.core.errors import (
    Forbidden,
    LastAdminProtection,
    NotFound,
    SelfDemotionForbidden,
    Unauthenticated,
)
from wayfarer.app.models.session import UserSession
from wayfarer.app.models.user import Role, User
from wayfarer.app.schemas.user import TokenPayload
from wayfarer.app.security import hashing, jwt
from wayfarer.app.services.audit import record_role_change

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def load_user(db: AsyncSession, user_id: str) -> Optional[User]:
    # populate_existing: never serve a role cached in the identity map
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalars().first()


# ─────────────────────────────────────────────────────────────────────────────
# Session lifecycle
# ─────────────────────────────────────────────────────────────────────────────

async def authenticate_credentials(db: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)
    if not user or not user.is_active or not hashing.verify_password(password, user.hashed_password):
        raise Unauthenticated("Invalid email or password")
    return user


async def open_session(db: AsyncSession, user: User, settings: Settings) -> Tuple[str, UserSession]:
    """Persist a session row and sign a token bound to it."""
    expires_delta = timedelta(days=settings.SESSION_EXPIRE_DAYS)
    session_row = UserSession(user_id=user.id, expires_at=_utc_now() + expires_delta)
    db.add(session_row)
    await db.commit()
    await db.refresh(session_row)

    token = jwt.create_access_token(
        data={"sub": user.id, "sid": session_row.id, "role": user.role.value},
        settings=settings,
        expires_delta=expires_delta,
    )
    logger.info("session_opened user_id=%s session_id=%s", user.id, session_row.id)
    return token, session_row


async def revoke_session(db: AsyncSession, session_row: UserSession) -> None:
    if session_row.revoked_at is not None:
        return
    session_row.revoked_at = _utc_now()
    db.add(session_row)
    await db.commit()
    logger.info("session_revoked user_id=%s session_id=%s", session_row.user_id, session_row.id)


# ─────────────────────────────────────────────────────────────────────────────
# Resolution and authorization
# ─────────────────────────────────────────────────────────────────────────────

async def resolve_session(
    db: AsyncSession, token: Optional[str], settings: Settings
) -> Tuple[User, UserSession]:
    if not token:
        raise Unauthenticated()

    try:
        payload = jwt.decode_access_token(token, settings)
        claims = TokenPayload(**payload)
    except (JWTError, ValidationError):
        raise Unauthenticated("Could not validate credentials") from None

    session_row = await db.get(UserSession, claims.sid, populate_existing=True)
    if (
        session_row is None
        or session_row.user_id != claims.sub
        or session_row.revoked_at is not None
    ):
        raise Unauthenticated("Session is no longer valid")

    user = await load_user(db, claims.sub)
    if user is None or not user.is_active:
        raise Unauthenticated("Session is no longer valid")

    return user, session_row


async def resolve_identity(db: AsyncSession, token: Optional[str], settings: Settings) -> User:
    user, _ = await resolve_session(db, token, settings)
    return user


def ensure_role(user: User, required_roles: AbstractSet[Role]) -> User:
    if user.role not in required_roles:
        raise Forbidden(
            f"Forbidden - requires one of: {', '.join(sorted(r.value for r in required_roles))}"
        )
    return user


async def authorize(
    db: AsyncSession,
    token: Optional[str],
    required_roles: AbstractSet[Role],
    settings: Settings,
) -> User:
    user = await resolve_identity(db, token, settings)
    return ensure_role(user, required_roles)


# ─────────────────────────────────────────────────────────────────────────────
# Role mutation
# ─────────────────────────────────────────────────────────────────────────────

async def count_admins(db: AsyncSession, exclude_id: Optional[str] = None) -> int:
    query = select(func.count()).select_from(User).where(User.role == Role.ADMIN)
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    return await db.scalar(query)


async def change_role(db: AsyncSession, actor: User, target_id: str, new_role: Role) -> User:
    """
    Change a user's role, keeping at least one ADMIN in the system.

    Business-rule failures (SelfDemotionForbidden, LastAdminProtection)
    are final and must not be retried.
    """
    if actor.role != Role.ADMIN:
        raise Forbidden("Forbidden - Admin access required")

    if actor.id == target_id and new_role != Role.ADMIN:
        raise SelfDemotionForbidden()

    target = await load_user(db, target_id)
    if target is None:
        raise NotFound("User not found")

    old_role = target.role
    if old_role == new_role:
        return target

    if old_role == Role.ADMIN and new_role != Role.ADMIN:
        if await count_admins(db, exclude_id=target.id) == 0:
            raise LastAdminProtection()

    target.role = new_role
    db.add(target)
    record_role_change(
        db,
        acting_admin_id=actor.id,
        target_id=target.id,
        old_role=old_role,
        new_role=new_role,
    )
    await db.commit()
    await db.refresh(target)
    return target
