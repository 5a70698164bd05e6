from __future__ import annotations
import uuid
from datetime import date, datetime, timezone
import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError
from challenge_matrix.models.challenge import Challenge
from challenge_matrix.models.user import User
from challenge_matrix.services.store import ChallengeStore


@pytest.mark.asyncio
async def test_dashboard_without_challenge(client, register):
    hdrs, _ = await register()
    d = (await client.get("/dashboard", headers=hdrs)).json()
    assert d["banner"] == "none"
    assert d["challenge"] is None
    assert d["submit_enabled"] is False
    r = await client.get("/dashboard/window", headers=hdrs)
    assert r.status_code == 200
    assert r.json() is None


@pytest.mark.asyncio
async def test_dashboard_open_window(client, register, seed_challenge):
    await seed_challenge()
    hdrs, _ = await register()
    d = (await client.get("/dashboard", headers=hdrs)).json()
    assert d["banner"] == "window_open"
    assert d["submit_enabled"] is True
    assert d["window"]["is_open"] is True
    assert d["window"]["countdown_target"].startswith("2026-03-02T18:00:00")
    assert [rw["min_points"] for rw in d["rewards"]] == [50, 100]
    assert all(rw["unlocked"] is False for rw in d["rewards"])
    assert d["show_next_challenge_button"] is False


@pytest.mark.asyncio
async def test_dashboard_closed_window_counts_down_to_next_opening(client, register, seed_challenge, clock):
    await seed_challenge()
    hdrs, _ = await register()
    clock.now = datetime(2026, 3, 2, 19, 0, tzinfo=timezone.utc)
    d = (await client.get("/dashboard", headers=hdrs)).json()
    assert d["banner"] == "window_closed"
    assert d["submit_enabled"] is False
    assert d["window"]["countdown_target"].startswith("2026-03-03T17:00:00")

    w = (await client.get("/dashboard/window", headers=hdrs)).json()
    assert w["phase"] == "active" and w["is_open"] is False


@pytest.mark.asyncio
async def test_rewards_unlock_with_points(client, register, seed_challenge, set_participation):
    ch = await seed_challenge()
    hdrs, user = await register()
    await set_participation(user["id"], ch.id, 60, "active")
    d = (await client.get("/dashboard", headers=hdrs)).json()
    assert [rw["unlocked"] for rw in d["rewards"]] == [True, False]
    assert d["progress_pct"] == 60


@pytest.mark.asyncio
async def test_advance_to_next_level(client, register, seed_challenge, set_participation, session_factory):
    level1 = await seed_challenge(level=1)
    level2 = await seed_challenge(level=2, min_points=200)
    hdrs, user = await register()
    await set_participation(user["id"], level1.id, 120, "completed")

    d = (await client.get("/dashboard", headers=hdrs)).json()
    assert d["banner"] == "level_completed"
    assert d["show_next_challenge_button"] is True
    assert d["submit_enabled"] is False
    assert d["next_challenge"]["id"] == str(level2.id)

    r = await client.post("/dashboard/advance", headers=hdrs, json={"next_challenge_id": str(level2.id)})
    assert r.status_code == 200, r.text
    d = r.json()
    assert d["current_level"] == 2
    assert d["terms_accepted"] is True
    assert d["challenge"]["id"] == str(level2.id)
    assert d["show_next_challenge_button"] is False
    assert d["submit_enabled"] is True

    me = (await client.get("/auth/me", headers=hdrs)).json()
    assert me["current_level"] == 2
    assert me["terms_accepted_at"] is not None

    async with session_factory() as s:
        status = await s.scalar(select(Challenge.status).where(Challenge.id == level1.id))
    assert status == "completed"

    # nothing left to advance to from level 2
    r = await client.post("/dashboard/advance", headers=hdrs)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_other_participants_can_leave_a_closed_level(client, register, seed_challenge, set_participation):
    level1 = await seed_challenge(level=1)
    await seed_challenge(level=2)
    first_hdrs, first = await register(full_name="First Finisher")
    second_hdrs, second = await register(full_name="Second Finisher")
    await set_participation(first["id"], level1.id, 100, "completed")
    await set_participation(second["id"], level1.id, 130, "completed")

    assert (await client.post("/dashboard/advance", headers=first_hdrs)).status_code == 200

    d = (await client.get("/dashboard", headers=second_hdrs)).json()
    assert d["challenge"]["status"] == "completed"
    assert d["show_next_challenge_button"] is True
    r = await client.post("/dashboard/advance", headers=second_hdrs)
    assert r.status_code == 200, r.text
    assert r.json()["current_level"] == 2


@pytest.mark.asyncio
async def test_advance_rejected_before_completion(client, register, seed_challenge, set_participation):
    level1 = await seed_challenge(level=1)
    await seed_challenge(level=2)
    hdrs, user = await register()
    await set_participation(user["id"], level1.id, 40, "active")

    r = await client.post("/dashboard/advance", headers=hdrs)
    assert r.status_code == 400
    assert (await client.get("/auth/me", headers=hdrs)).json()["current_level"] == 1


@pytest.mark.asyncio
async def test_advance_rejects_skipping_a_level(client, register, seed_challenge, set_participation):
    level1 = await seed_challenge(level=1)
    level3 = await seed_challenge(level=3)
    hdrs, user = await register()
    await set_participation(user["id"], level1.id, 100, "completed")

    r = await client.post("/dashboard/advance", headers=hdrs, json={"next_challenge_id": str(level3.id)})
    assert r.status_code == 400
    assert (await client.get("/auth/me", headers=hdrs)).json()["current_level"] == 1


@pytest.mark.asyncio
async def test_advance_while_transition_in_flight(client, register, seed_challenge, set_participation, progression):
    level1 = await seed_challenge(level=1)
    await seed_challenge(level=2)
    hdrs, user = await register()
    await set_participation(user["id"], level1.id, 100, "completed")
    progression._in_flight.add(uuid.UUID(user["id"]))

    d = (await client.get("/dashboard", headers=hdrs)).json()
    assert d["transitioning"] is True
    assert d["show_next_challenge_button"] is False

    r = await client.post("/dashboard/advance", headers=hdrs)
    assert r.status_code == 409
    assert r.json()["detail"] == "Level transition already in progress"
    assert (await client.get("/auth/me", headers=hdrs)).json()["current_level"] == 1


@pytest.mark.asyncio
async def test_advance_loses_race_to_another_writer(client, register, seed_challenge, set_participation, session_factory, monkeypatch):
    level1 = await seed_challenge(level=1)
    await seed_challenge(level=2)
    hdrs, user = await register()
    await set_participation(user["id"], level1.id, 100, "completed")

    original = ChallengeStore.update_user_level

    async def _bumped_first(self, user_id, **kw):
        # another tab moves the user on between the checks and the write
        await self.session.execute(update(User).where(User.id == user_id).values(current_level=2))
        await original(self, user_id, **kw)

    monkeypatch.setattr(ChallengeStore, "update_user_level", _bumped_first)
    r = await client.post("/dashboard/advance", headers=hdrs)
    assert r.status_code == 409
    assert "reload the dashboard" in r.json()["detail"]

    async with session_factory() as s:
        assert await s.scalar(select(User.current_level).where(User.id == uuid.UUID(user["id"]))) == 1
        assert await s.scalar(select(Challenge.status).where(Challenge.id == level1.id)) == "active"


@pytest.mark.asyncio
async def test_advance_database_failure_is_retryable(client, register, seed_challenge, set_participation, session_factory, monkeypatch):
    level1 = await seed_challenge(level=1)
    await seed_challenge(level=2)
    hdrs, user = await register()
    await set_participation(user["id"], level1.id, 100, "completed")

    async def _drop_connection(self, user_id, **kw):
        raise OperationalError("UPDATE users", {}, Exception("server closed the connection"))

    monkeypatch.setattr(ChallengeStore, "update_user_level", _drop_connection)
    r = await client.post("/dashboard/advance", headers=hdrs)
    assert r.status_code == 503
    assert r.headers["retry-after"] == "1"
    assert "please retry" in r.json()["detail"]

    async with session_factory() as s:
        assert await s.scalar(select(User.current_level).where(User.id == uuid.UUID(user["id"]))) == 1
        assert await s.scalar(select(Challenge.status).where(Challenge.id == level1.id)) == "active"

    # the in-flight guard was released, a retry goes through
    monkeypatch.undo()
    r = await client.post("/dashboard/advance", headers=hdrs)
    assert r.status_code == 200, r.text
    assert r.json()["current_level"] == 2


@pytest.mark.asyncio
async def test_completed_level_without_next_challenge_disables_submit(client, register, seed_challenge, set_participation):
    ch = await seed_challenge(level=1)
    hdrs, user = await register()
    await set_participation(user["id"], ch.id, 120, "completed")

    d = (await client.get("/dashboard", headers=hdrs)).json()
    assert d["window"]["is_open"] is True
    assert d["next_challenge"] is None
    assert d["show_next_challenge_button"] is False
    assert d["submit_enabled"] is False


@pytest.mark.asyncio
async def test_last_day_after_window_has_no_countdown(client, register, seed_challenge, clock):
    await seed_challenge(start_date=date(2026, 3, 1), end_date=date(2026, 3, 2))
    hdrs, _ = await register()
    clock.now = datetime(2026, 3, 2, 19, 0, tzinfo=timezone.utc)

    d = (await client.get("/dashboard", headers=hdrs)).json()
    assert d["banner"] == "window_closed"
    assert d["submit_enabled"] is False
    assert d["window"]["phase"] == "active"
    assert d["window"]["countdown_target"] is None
    assert d["window"]["window_start"] is None
