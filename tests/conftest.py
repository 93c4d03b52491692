from __future__ import annotations

from functools import lru_cache
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from wayfarer.app.core.config import Settings
from wayfarer.app.db.base import Base, get_db
from wayfarer.app.db.session import create_engine_for, create_sessionmaker
from wayfarer.app.main import create_app
from wayfarer.app.models import Role, User
from wayfarer.app.security import hashing
from wayfarer.app.security.codec import JournalCodec, JournalKeyConfig
from wayfarer.app.services import identity

TEST_KEY = "00112233445566778899aabbccddeeff" * 2
PASSWORD = "correct-horse-battery"


@lru_cache()
def _password_hash(password: str) -> str:
    # bcrypt is slow on purpose; hash each test password once per session.
    return hashing.get_password_hash(password)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings(tmp_path) -> Settings:
    # Explicit kwargs win over environment variables and .env.
    return Settings(
        SECRET_KEY="test-secret-key-that-is-long-enough-for-hs256",
        JOURNAL_ENCRYPTION_KEY=TEST_KEY,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'wayfarer-test.db'}",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def codec(settings: Settings) -> JournalCodec:
    return JournalCodec(JournalKeyConfig.from_settings(settings))


@pytest.fixture
async def engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    # One fresh SQLite file per test keeps every test isolated.
    engine = create_engine_for(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with create_sessionmaker(engine)() as session:
        yield session


@pytest.fixture
def make_user(db: AsyncSession):
    counter = {"n": 0}

    async def _make(role: Role = Role.READER, email: str | None = None, password: str = PASSWORD) -> User:
        counter["n"] += 1
        user = User(
            email=identity.normalize_email(email or f"user{counter['n']}@example.com"),
            name=f"User {counter['n']}",
            hashed_password=_password_hash(password),
            role=role,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make


@pytest.fixture
def token_for(db: AsyncSession, settings: Settings):
    async def _token(user: User) -> str:
        token, _session_row = await identity.open_session(db, user, settings)
        return token

    return _token


@pytest.fixture
async def client(settings: Settings, engine: AsyncEngine) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(settings)
    sessionmaker = create_sessionmaker(engine)

    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with sessionmaker() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    await app.state.engine.dispose()
