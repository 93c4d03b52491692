# wayfarer/app/api/errors.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from wayfarer.app.core.errors import Unauthenticated, WayfarerError

logger = logging.getLogger(__name__)


async def wayfarer_error_handler(request: Request, exc: WayfarerError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    if exc.status_code >= 500:
        logger.error("request_failed path=%s code=%s", request.url.path, exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": {"code": exc.code, "message": exc.message}},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WayfarerError, wayfarer_error_handler)
