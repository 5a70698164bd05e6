from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any
import jwt
from passlib.context import CryptContext
from challenge_matrix.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_ALG = "HS256"
ACCESS = "access"
REFRESH = "refresh"

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)

def _make_token(sub: str, ttl_min: int, token_type: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": sub,
        "type": token_type,
        "iat": now.timestamp(),  # float keeps tokens issued in the same second distinct
        "exp": int((now + timedelta(minutes=ttl_min)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALG)

def make_access_token(sub: str) -> str:
    return _make_token(sub, settings.access_ttl_min, ACCESS)

def make_refresh_token(sub: str) -> str:
    return _make_token(sub, settings.refresh_ttl_min, REFRESH)

def make_token_pair(sub: str) -> dict[str, str]:
    return {ACCESS: make_access_token(sub), REFRESH: make_refresh_token(sub)}

def decode_token(token: str, expected_type: str | None = None) -> dict[str, Any]:
    """Decode and verify a token; raises jwt.InvalidTokenError on any problem, including a wrong token type."""
    data = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALG])
    if expected_type and data.get("type") != expected_type:
        raise jwt.InvalidTokenError("Wrong token type")
    if not data.get("sub"):
        raise jwt.InvalidTokenError("Missing subject")
    return data
