"""Identity-provider token verification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from jose import JWTError, jwt

from app.core.config import get_settings

settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=True)


@dataclass(frozen=True, slots=True)
class IdentityClaims:
    """Authenticated user as reported by the identity provider."""

    user_id: str
    email: str | None
    name: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate identity-provider JWT."""
    options = {"verify_aud": settings.identity_jwt_audience is not None}
    try:
        return jwt.decode(
            token,
            settings.identity_jwt_secret,
            algorithms=[settings.identity_jwt_algorithm],
            audience=settings.identity_jwt_audience,
            options=options,
        )
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from exc


def claims_from_payload(payload: dict[str, Any]) -> IdentityClaims:
    """Extract identity claims from decoded token payload."""
    subject = payload.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token subject is missing",
        )

    metadata = payload.get("user_metadata") or {}
    return IdentityClaims(
        user_id=str(subject),
        email=payload.get("email"),
        name=metadata.get("name"),
        full_name=metadata.get("full_name"),
        avatar_url=metadata.get("avatar_url"),
    )
