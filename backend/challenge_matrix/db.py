from __future__ import annotations
from datetime import datetime, timezone
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from challenge_matrix.config import settings

class Base(DeclarativeBase):
    pass

# pre-ping so a dropped connection surfaces as a retryable error on checkout
engine = create_async_engine(settings.database_url, future=True, echo=settings.sql_echo, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session

def utcnow() -> datetime:
    """Python-side timestamp default; keeps values loaded after flush without a refresh round-trip."""
    return datetime.now(timezone.utc)
