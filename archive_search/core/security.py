from datetime import datetime, timedelta, timezone
from jose import jwt

from archive_search.core.config import settings

def create_jwt(payload: dict, expires_delta: timedelta, secret: str | None = None) -> str:
    now = datetime.now(timezone.utc)
    data = payload.copy()
    data.update({"iat": int(now.timestamp()), "exp": int((now + expires_delta).timestamp())})
    return jwt.encode(data, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

def decode_jwt(token: str, secret: str | None = None) -> dict:
    return jwt.decode(token, secret or settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
