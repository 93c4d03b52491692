# wayfarer/app/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from wayfarer.app.api.errors import register_exception_handlers
from wayfarer.app.api.v1.router import api_router
from wayfarer.app.core.config import INSECURE_DEV_SECRET, Settings, get_settings
from wayfarer.app.core.errors import ConfigurationError
from wayfarer.app.core.logging import configure_logging
from wayfarer.app.db.base import Base
from wayfarer.app.db.session import create_engine_for, create_sessionmaker
from wayfarer.app.security.codec import JournalCodec, JournalKeyConfig

# Import models so Base.metadata knows every table
from wayfarer.app import models  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = app.state.engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


def check_startup_settings(settings: Settings) -> JournalKeyConfig:
    """Fail fast on configuration that would lose data or forge sessions."""
    if settings.is_production and settings.SECRET_KEY == INSECURE_DEV_SECRET:
        raise ConfigurationError("SECRET_KEY must be set in production")
    return JournalKeyConfig.from_settings(settings)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    key_config = check_startup_settings(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )
    # Created once at startup, immutable afterwards
    app.state.settings = settings
    app.state.journal_codec = JournalCodec(key_config)
    app.state.engine = create_engine_for(settings)
    app.state.sessionmaker = create_sessionmaker(app.state.engine)

    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.BACKEND_CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/")
    def root():
        return {"message": "Welcome to the Wayfarer API"}

    logger.info("app_created environment=%s", settings.ENVIRONMENT)
    return app
