"""Authentication service - JWT bearer token management.

Sign-up and sign-in belong to the external identity provider; this service
only mints and verifies the access tokens it issues.
"""
from datetime import datetime, timedelta, timezone

from jose import jwt

from contentflow.config import settings


def create_access_token(user_id: str, plan: str = "free", expires_minutes: int | None = None) -> str:
    now = datetime.now(timezone.utc)
    minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    payload = {
        "sub": user_id,
        "plan": plan,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
