# app/utils/security.py
from datetime import datetime, timedelta, timezone

from jose import jwt

from app.utils.settings import JWT_ALGORITHM, JWT_EXPIRES_DAYS, JWT_SECRET


def create_access_token(user_id: int) -> str:
    expires = datetime.now(timezone.utc) + timedelta(days=JWT_EXPIRES_DAYS)
    return jwt.encode({"id": user_id, "exp": expires}, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """Rzuca JWTError dla niepoprawnego/wygasłego tokena."""
    payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    return int(payload["id"])
