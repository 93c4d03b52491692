from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import select

from wayfarer.app.core.errors import (
    Forbidden,
    LastAdminProtection,
    NotFound,
    SelfDemotionForbidden,
    Unauthenticated,
)
from wayfarer.app.models import Role, RoleChangeAudit, User, UserSession
from wayfarer.app.models.user import new_id
from wayfarer.app.security import jwt
from wayfarer.app.services import identity

ALL_ROLES = list(Role)
REQUIRED_SETS = [
    frozenset({Role.ADMIN}),
    frozenset({Role.ADMIN, Role.EDITOR}),
    frozenset({Role.ADMIN, Role.EDITOR, Role.AUTHOR}),
    frozenset(Role),
]


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
async def test_missing_or_malformed_token_is_unauthenticated(db, settings, token) -> None:
    with pytest.raises(Unauthenticated):
        await identity.resolve_identity(db, token, settings)


@pytest.mark.asyncio
async def test_resolve_identity_returns_user(db, settings, make_user, token_for) -> None:
    user = await make_user(Role.AUTHOR)
    token = await token_for(user)
    resolved = await identity.resolve_identity(db, token, settings)
    assert resolved.id == user.id
    assert resolved.role == Role.AUTHOR


@pytest.mark.asyncio
async def test_expired_token_is_unauthenticated(db, settings, make_user) -> None:
    user = await make_user()
    _token, session_row = await identity.open_session(db, user, settings)
    expired = jwt.create_access_token(
        {"sub": user.id, "sid": session_row.id},
        settings=settings,
        expires_delta=timedelta(seconds=-5),
    )
    with pytest.raises(Unauthenticated):
        await identity.resolve_identity(db, expired, settings)


@pytest.mark.asyncio
async def test_token_signed_with_other_secret_is_unauthenticated(db, settings, make_user) -> None:
    user = await make_user()
    _token, session_row = await identity.open_session(db, user, settings)
    forged_settings = settings.model_copy(update={"SECRET_KEY": "some-other-secret-entirely-0000000"})
    forged = jwt.create_access_token({"sub": user.id, "sid": session_row.id}, settings=forged_settings)
    with pytest.raises(Unauthenticated):
        await identity.resolve_identity(db, forged, settings)


@pytest.mark.asyncio
async def test_token_for_unknown_session_is_unauthenticated(db, settings, make_user) -> None:
    user = await make_user()
    token = jwt.create_access_token({"sub": user.id, "sid": new_id()}, settings=settings)
    with pytest.raises(Unauthenticated):
        await identity.resolve_identity(db, token, settings)


@pytest.mark.asyncio
async def test_session_of_another_user_is_unauthenticated(db, settings, make_user) -> None:
    victim = await make_user()
    attacker = await make_user()
    _token, victim_session = await identity.open_session(db, victim, settings)
    token = jwt.create_access_token({"sub": attacker.id, "sid": victim_session.id}, settings=settings)
    with pytest.raises(Unauthenticated):
        await identity.resolve_identity(db, token, settings)


@pytest.mark.asyncio
async def test_revoked_session_is_unauthenticated(db, settings, make_user) -> None:
    user = await make_user()
    token, session_row = await identity.open_session(db, user, settings)
    await identity.revoke_session(db, session_row)
    # Revoking twice is a no-op
    await identity.revoke_session(db, session_row)

    with pytest.raises(Unauthenticated):
        await identity.resolve_identity(db, token, settings)


@pytest.mark.asyncio
async def test_deleted_user_is_unauthenticated(db, settings, make_user, token_for) -> None:
    user = await make_user()
    token = await token_for(user)
    sessions = await db.execute(select(UserSession).where(UserSession.user_id == user.id))
    for row in sessions.scalars().all():
        await db.delete(row)
    await db.delete(user)
    await db.commit()

    with pytest.raises(Unauthenticated):
        await identity.resolve_identity(db, token, settings)


@pytest.mark.asyncio
async def test_inactive_user_is_unauthenticated(db, settings, make_user, token_for) -> None:
    user = await make_user()
    token = await token_for(user)
    user.is_active = False
    await db.commit()

    with pytest.raises(Unauthenticated):
        await identity.resolve_identity(db, token, settings)


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ALL_ROLES)
@pytest.mark.parametrize("required", REQUIRED_SETS)
async def test_authorization_matrix(db, settings, make_user, token_for, role, required) -> None:
    user = await make_user(role)
    token = await token_for(user)

    if role in required:
        resolved = await identity.authorize(db, token, required, settings)
        assert resolved.id == user.id
    else:
        with pytest.raises(Forbidden):
            await identity.authorize(db, token, required, settings)


@pytest.mark.asyncio
@pytest.mark.parametrize("required", REQUIRED_SETS)
async def test_anonymous_is_unauthenticated_for_any_role_set(db, settings, required) -> None:
    with pytest.raises(Unauthenticated):
        await identity.authorize(db, None, required, settings)


@pytest.mark.asyncio
async def test_role_claim_in_token_is_not_trusted(db, settings, make_user) -> None:
    reader = await make_user(Role.READER)
    _token, session_row = await identity.open_session(db, reader, settings)
    # A token claiming ADMIN still resolves to the stored READER role
    boosted = jwt.create_access_token(
        {"sub": reader.id, "sid": session_row.id, "role": "ADMIN"}, settings=settings
    )
    with pytest.raises(Forbidden):
        await identity.authorize(db, boosted, {Role.ADMIN}, settings)


@pytest.mark.asyncio
async def test_demotion_applies_to_next_request(db, settings, make_user, token_for) -> None:
    admin = await make_user(Role.ADMIN)
    other_admin = await make_user(Role.ADMIN)
    token = await token_for(admin)

    assert (await identity.authorize(db, token, {Role.ADMIN}, settings)).id == admin.id

    await identity.change_role(db, other_admin, admin.id, Role.READER)

    with pytest.raises(Forbidden):
        await identity.authorize(db, token, {Role.ADMIN}, settings)


@pytest.mark.asyncio
async def test_change_role_requires_admin_actor(db, make_user) -> None:
    editor = await make_user(Role.EDITOR)
    reader = await make_user(Role.READER)
    with pytest.raises(Forbidden):
        await identity.change_role(db, editor, reader.id, Role.AUTHOR)


@pytest.mark.asyncio
@pytest.mark.parametrize("new_role", [Role.EDITOR, Role.AUTHOR, Role.READER])
async def test_self_demotion_is_blocked_even_with_other_admins(db, make_user, new_role) -> None:
    admin = await make_user(Role.ADMIN)
    await make_user(Role.ADMIN)
    with pytest.raises(SelfDemotionForbidden):
        await identity.change_role(db, admin, admin.id, new_role)

    await db.refresh(admin)
    assert admin.role == Role.ADMIN


@pytest.mark.asyncio
async def test_self_change_to_admin_is_allowed(db, make_user) -> None:
    admin = await make_user(Role.ADMIN)
    updated = await identity.change_role(db, admin, admin.id, Role.ADMIN)
    assert updated.role == Role.ADMIN

    result = await db.execute(select(RoleChangeAudit))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_unchanged_role_writes_no_audit(db, make_user) -> None:
    admin = await make_user(Role.ADMIN)
    editor = await make_user(Role.EDITOR)

    updated = await identity.change_role(db, admin, editor.id, Role.EDITOR)
    assert updated.role == Role.EDITOR

    result = await db.execute(select(RoleChangeAudit))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_last_admin_cannot_be_demoted(db, make_user) -> None:
    sole_admin = await make_user(Role.ADMIN)
    # An actor whose in-memory role is ADMIN but who is not a stored admin
    operator = User(id=new_id(), email="ops@example.com", role=Role.ADMIN)

    with pytest.raises(LastAdminProtection):
        await identity.change_role(db, operator, sole_admin.id, Role.READER)

    await make_user(Role.ADMIN)
    updated = await identity.change_role(db, operator, sole_admin.id, Role.READER)
    assert updated.role == Role.READER
    assert await identity.count_admins(db) == 1


@pytest.mark.asyncio
async def test_change_role_unknown_target(db, make_user) -> None:
    admin = await make_user(Role.ADMIN)
    with pytest.raises(NotFound):
        await identity.change_role(db, admin, new_id(), Role.EDITOR)


@pytest.mark.asyncio
async def test_change_role_writes_audit_record(db, make_user) -> None:
    admin = await make_user(Role.ADMIN)
    reader = await make_user(Role.READER)

    updated = await identity.change_role(db, admin, reader.id, Role.EDITOR)
    assert updated.role == Role.EDITOR

    result = await db.execute(select(RoleChangeAudit).where(RoleChangeAudit.target_id == reader.id))
    audit = result.scalars().one()
    assert audit.acting_admin_id == admin.id
    assert audit.old_role == "READER"
    assert audit.new_role == "EDITOR"
    assert audit.created_at is not None


@pytest.mark.asyncio
async def test_failed_change_role_writes_no_audit(db, make_user) -> None:
    admin = await make_user(Role.ADMIN)
    with pytest.raises(SelfDemotionForbidden):
        await identity.change_role(db, admin, admin.id, Role.READER)

    result = await db.execute(select(RoleChangeAudit))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_authenticate_credentials(db, make_user) -> None:
    user = await make_user(email="Traveler@Example.com")
    assert (await identity.authenticate_credentials(db, "traveler@example.com", "correct-horse-battery")).id == user.id

    with pytest.raises(Unauthenticated):
        await identity.authenticate_credentials(db, "traveler@example.com", "wrong-password")
    with pytest.raises(Unauthenticated):
        await identity.authenticate_credentials(db, "nobody@example.com", "correct-horse-battery")


def test_role_ordering() -> None:
    assert Role.READER.level < Role.AUTHOR.level < Role.EDITOR.level < Role.ADMIN.level
    assert Role.ADMIN.at_least(Role.EDITOR)
    assert not Role.AUTHOR.at_least(Role.EDITOR)
