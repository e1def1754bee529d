from datetime import datetime, timedelta, timezone

import jwt

from attendance_api.core.config import Settings

REQUIRED_CLAIMS = ["sub", "exp", "iat"]


def create_access_token(claims: dict, settings: Settings, issued_at: datetime | None = None) -> str:
    issued_at = issued_at or datetime.now(timezone.utc)
    expire = issued_at + timedelta(minutes=settings.jwt_expires_minutes)
    payload = {**claims, "iat": issued_at, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> dict:
    return jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
        options={"require": REQUIRED_CLAIMS},
    )
