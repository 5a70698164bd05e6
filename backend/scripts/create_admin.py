"""Create (or promote) the administrator account from ADMIN_EMAIL / ADMIN_PASSWORD.

Run from backend/: python -m scripts.create_admin
"""
from __future__ import annotations
import asyncio
import structlog
from sqlalchemy import select
from challenge_matrix.config import settings
from challenge_matrix.db import SessionLocal
from challenge_matrix.logging_setup import configure_logging
from challenge_matrix.models.user import User
from challenge_matrix.security import hash_password

log = structlog.get_logger()


async def ensure_admin(session, email: str, password: str) -> User:
    email = email.lower()
    user = await session.scalar(select(User).where(User.email == email))
    if user is None:
        user = User(
            email=email,
            full_name="Administrator",
            longrich_code="ADMIN",
            office="yop-canaris",
            role="admin",
            current_level=1,
            terms_accepted=True,
            password_hash=hash_password(password),
        )
        session.add(user)
        log.info("admin_created", email=email)
    else:
        user.role = "admin"
        user.password_hash = hash_password(password)
        log.info("admin_updated", email=email)
    await session.commit()
    return user


async def main() -> None:
    async with SessionLocal() as session:
        await ensure_admin(session, settings.admin_email, settings.admin_password)


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
