from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone as dt_tz
from uuid import UUID
import jwt
import structlog
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from challenge_matrix.config import settings
from challenge_matrix.db import get_session
from challenge_matrix.models.user import User
from challenge_matrix.security import decode_token
from challenge_matrix.services.retry import RetryPolicy, retry
from challenge_matrix.services.store import ChallengeStore

log = structlog.get_logger()
security = HTTPBearer()


def get_now() -> datetime:
    return datetime.now(dt_tz.utc)


def get_store(session: AsyncSession = Depends(get_session)) -> ChallengeStore:
    return ChallengeStore(session)


def get_role_check_policy() -> RetryPolicy:
    return RetryPolicy(retries=settings.role_check_retries, delay=settings.role_check_delay_seconds)


def _subject(credentials: HTTPAuthorizationCredentials) -> UUID:
    try:
        data = decode_token(credentials.credentials, expected_type="access")
        return UUID(str(data.get("sub")))
    except (jwt.InvalidTokenError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: AsyncSession = Depends(get_session),
) -> User:
    user = await session.get(User, _subject(credentials))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


@dataclass
class SessionContext:
    """Authenticated identity and role for one request; rebuilt from the token every time."""
    user: User
    is_admin: bool

    @property
    def user_id(self) -> UUID:
        return self.user.id


async def get_session_context(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: AsyncSession = Depends(get_session),
    policy: RetryPolicy = Depends(get_role_check_policy),
) -> SessionContext:
    user_id = _subject(credentials)

    async def load_profile() -> User | None:
        try:
            return await session.get(User, user_id, populate_existing=True)
        except Exception:
            await session.rollback()
            raise

    def on_error(e: BaseException, attempt: int) -> None:
        log.warning("role_check_retry", user_id=str(user_id), attempt=attempt, error_type=type(e).__name__)

    try:
        user = await retry(load_profile, policy, on_error)
    except policy.retryable_exceptions:
        log.error("role_check_failed", user_id=str(user_id))
        raise HTTPException(status_code=503, detail="Connection problem while checking your access, please reload")
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return SessionContext(user=user, is_admin=user.is_admin)


async def require_admin(ctx: SessionContext = Depends(get_session_context)) -> SessionContext:
    if not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return ctx
