import uuid
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import HTTPException, Request

from .settings import settings

ACCESS = "access"
REFRESH = "refresh"


def create_access_token(user) -> str:
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "roles": list(user.roles or []),
        "status": getattr(user.status, "value", user.status),
        "type": ACCESS,
        "exp": datetime.now(timezone.utc)
        + timedelta(minutes=settings.ACCESS_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.ALGORITHM)


def create_refresh_token(user) -> str:
    payload = {
        "sub": str(user.id),
        "type": REFRESH,
        "exp": datetime.now(timezone.utc)
        + timedelta(days=settings.REFRESH_EXPIRE_DAYS),
    }
    return jwt.encode(
        payload, settings.JWT_REFRESH_SECRET_KEY, algorithm=settings.ALGORITHM
    )


def decode_token(token: str, *, token_type: str) -> uuid.UUID:
    secret = (
        settings.JWT_SECRET_KEY if token_type == ACCESS else settings.JWT_REFRESH_SECRET_KEY
    )
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    if payload.get("type") != token_type:
        raise HTTPException(status_code=401, detail="Invalid token type")

    try:
        return uuid.UUID(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")


async def jwt_protect(request: Request) -> uuid.UUID:
    header = request.headers.get("Authorization")
    if not header:
        raise HTTPException(status_code=401, detail="Not authenticated")

    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Not authenticated")

    return decode_token(token.strip(), token_type=ACCESS)
