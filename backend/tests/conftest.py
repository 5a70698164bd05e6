from __future__ import annotations
import os

os.environ["ENVIRONMENT"] = "test"
os.environ["CHALLENGE_TIMEZONE"] = "Africa/Abidjan"
os.environ["ROLE_CHECK_DELAY_SECONDS"] = "0"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import io
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
import httpx
import pytest
import pytest_asyncio
from PIL import Image
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from challenge_matrix.main import app
from challenge_matrix.auth_deps import get_now
from challenge_matrix.db import Base, get_session
from challenge_matrix.models.challenge import Challenge, ChallengeParticipant
from challenge_matrix.models.reward import Reward
from challenge_matrix.models.user import User
from challenge_matrix.services.progression import ProgressionEngine, get_progression_engine
from challenge_matrix.services.storage import get_storage

# Monday; Africa/Abidjan is UTC+0 all year
MONDAY_1730 = datetime(2026, 3, 2, 17, 30, tzinfo=timezone.utc)


@dataclass
class Clock:
    now: datetime


class FakeStorage:
    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}

    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        key = f"{bucket}/{path}"
        self.objects[key] = (data, content_type)
        return f"http://storage.test/uploads/{key}"


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def clock():
    return Clock(now=MONDAY_1730)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def progression():
    return ProgressionEngine()


@pytest_asyncio.fixture
async def client(session_factory, storage, clock, progression):
    async def _session():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_now] = lambda: clock.now
    app.dependency_overrides[get_progression_engine] = lambda: progression
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def register(client):
    """Register a participant; returns (auth headers, /auth/me body)."""
    async def _register(full_name: str = "Awa Kone", office: str = "yop-canaris", code: str = "LR123456"):
        email = f"user-{uuid.uuid4().hex[:8]}@example.com"
        r = await client.post(
            "/auth/register",
            json={"full_name": full_name, "email": email, "longrich_code": code, "office": office},
        )
        assert r.status_code == 201, r.text
        hdrs = {"Authorization": f"Bearer {r.json()['access']}"}
        me = await client.get("/auth/me", headers=hdrs)
        assert me.status_code == 200, me.text
        return hdrs, me.json()
    return _register


@pytest.fixture
def make_admin(register, session_factory):
    async def _make_admin():
        hdrs, body = await register(full_name="Admin User")
        async with session_factory() as s:
            u = await s.get(User, uuid.UUID(body["id"]))
            u.role = "admin"
            await s.commit()
        return hdrs, body
    return _make_admin


@pytest.fixture
def seed_challenge(session_factory):
    async def _seed(
        level: int = 1,
        status: str = "active",
        start_date: date = date(2026, 3, 1),
        end_date: date = date(2026, 3, 31),
        submission_start: time = time(17, 0),
        submission_end: time = time(18, 0),
        submission_days: list[str] | None = None,
        min_points: int = 100,
        rewards: tuple[tuple[int, str], ...] = ((50, "badge"), (100, "product")),
    ) -> Challenge:
        async with session_factory() as s:
            ch = Challenge(
                title=f"Level {level} challenge",
                description="Bring in matrix volume",
                level=level,
                start_date=start_date,
                end_date=end_date,
                submission_start=submission_start,
                submission_end=submission_end,
                submission_days=list(submission_days or []),
                min_points=min_points,
                status=status,
            )
            s.add(ch)
            await s.flush()
            for points, kind in rewards:
                s.add(Reward(challenge_id=ch.id, title=f"{kind} at {points}", description="reward", type=kind, min_points=points))
            await s.commit()
            return ch
    return _seed


@pytest.fixture
def set_participation(session_factory):
    async def _set(user_id, challenge_id, points: int, status: str = "completed") -> None:
        async with session_factory() as s:
            s.add(ChallengeParticipant(
                user_id=uuid.UUID(str(user_id)), challenge_id=challenge_id,
                current_points=points, status=status,
                completed_at=MONDAY_1730 if status == "completed" else None,
            ))
            await s.commit()
    return _set
