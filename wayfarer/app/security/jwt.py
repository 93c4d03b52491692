# wayfarer/app/security/jwt.py
"""
Signed session tokens (python-jose, HS256).

Claims:
- sub:  user id (the identity claim)
- sid:  server-side session id, checked for revocation on every request
- role: role at issue time. Advisory only, never used for authorization
- iat / exp
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt

from wayfarer.app.core.config import Settings


def create_access_token(
    data: dict,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.SESSION_EXPIRE_DAYS))
    to_encode.update({"iat": now, "exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> dict:
    """Verify signature and expiry. Raises jose.JWTError on any failure."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
