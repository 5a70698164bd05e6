from __future__ import annotations
from datetime import datetime
from uuid import UUID
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from challenge_matrix.models.challenge import Challenge, ChallengeParticipant
from challenge_matrix.models.reward import Reward
from challenge_matrix.models.user import User


class NotFound(Exception):
    pass

class ActiveLevelConflict(Exception):
    """Another challenge is already active at this level."""

class LevelConflict(Exception):
    """The user's level changed underneath a conditional update."""


class ChallengeStore:
    """
    Data access for the progression engine. Reads and writes go through one
    AsyncSession; nothing is committed here, callers decide the transaction
    boundary with commit()/rollback().
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    # ---------- users ----------

    async def get_user_profile(self, user_id: UUID) -> User:
        user = await self.session.get(User, user_id, populate_existing=True)
        if not user:
            raise NotFound("User profile not found")
        return user

    async def update_user_level(
        self,
        user_id: UUID,
        *,
        current_level: int,
        terms_accepted: bool,
        terms_accepted_at: datetime,
        expected_level: int | None = None,
    ) -> None:
        """Set the user's level; with `expected_level` the write only applies if the level is still that value."""
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(current_level=current_level, terms_accepted=terms_accepted, terms_accepted_at=terms_accepted_at)
        )
        if expected_level is not None:
            stmt = stmt.where(User.current_level == expected_level)
        # identity map is not synchronized; readers reload with populate_existing
        res = await self.session.execute(stmt.execution_options(synchronize_session=False))
        if res.rowcount == 0:
            if expected_level is not None and await self.session.get(User, user_id):
                raise LevelConflict(f"Level is no longer {expected_level}")
            raise NotFound("User profile not found")

    # ---------- challenges ----------

    async def get_challenge(self, challenge_id: UUID) -> Challenge:
        ch = await self.session.get(Challenge, challenge_id, populate_existing=True)
        if not ch:
            raise NotFound("Challenge not found")
        return ch

    async def get_active_challenge_for_level(self, level: int) -> Challenge | None:
        return await self.session.scalar(
            select(Challenge)
            .where(Challenge.status == "active", Challenge.level == level)
            .execution_options(populate_existing=True)
        )

    async def get_completed_challenge_for_level(self, level: int) -> Challenge | None:
        return await self.session.scalar(
            select(Challenge)
            .where(Challenge.status == "completed", Challenge.level == level)
            .order_by(Challenge.updated_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )

    async def list_challenges(self, status: str | None = None) -> list[Challenge]:
        q = select(Challenge)
        if status:
            q = q.where(Challenge.status == status)
        q = q.order_by(Challenge.level.asc(), Challenge.created_at.asc())
        return list((await self.session.execute(q)).scalars().all())

    async def update_challenge_status(self, challenge_id: UUID, status: str) -> Challenge:
        ch = await self.get_challenge(challenge_id)
        if status == "active" and ch.status != "active":
            other = await self.get_active_challenge_for_level(ch.level)
            if other is not None and other.id != ch.id:
                raise ActiveLevelConflict(f"Challenge '{other.title}' is already active for level {ch.level}")
        ch.status = status
        await self.session.flush()
        return ch

    # ---------- participants ----------

    async def get_participant(self, user_id: UUID, challenge_id: UUID) -> ChallengeParticipant | None:
        return await self.session.scalar(
            select(ChallengeParticipant)
            .where(ChallengeParticipant.user_id == user_id, ChallengeParticipant.challenge_id == challenge_id)
            .execution_options(populate_existing=True)
        )

    async def get_or_create_participant(self, user_id: UUID, challenge_id: UUID) -> ChallengeParticipant:
        p = await self.get_participant(user_id, challenge_id)
        if p is None:
            p = ChallengeParticipant(user_id=user_id, challenge_id=challenge_id, current_points=0, status="active")
            self.session.add(p)
            await self.session.flush()
        return p

    # ---------- rewards ----------

    async def list_rewards(self, challenge_id: UUID) -> list[Reward]:
        rows = await self.session.execute(
            select(Reward).where(Reward.challenge_id == challenge_id).order_by(Reward.min_points.asc(), Reward.title.asc())
        )
        return list(rows.scalars().all())

    # ---------- rankings ----------

    async def aggregate_participant_points(self, challenge_id: UUID | None = None) -> list[tuple[int, str]]:
        q = select(ChallengeParticipant.current_points, User.office).join(User, User.id == ChallengeParticipant.user_id)
        if challenge_id:
            q = q.where(ChallengeParticipant.challenge_id == challenge_id)
        return [(int(points), office) for (points, office) in (await self.session.execute(q)).all()]

    async def top_participants(self, limit: int = 10, challenge_id: UUID | None = None) -> list[tuple[UUID, str, str, int]]:
        # points summed per user across participations unless scoped to one challenge
        points = func.sum(ChallengeParticipant.current_points)
        q = (
            select(User.id, User.full_name, User.office, points)
            .select_from(ChallengeParticipant)
            .join(User, User.id == ChallengeParticipant.user_id)
            .group_by(User.id, User.full_name, User.office)
            .order_by(points.desc(), User.full_name.asc())
            .limit(limit)
        )
        if challenge_id:
            q = q.where(ChallengeParticipant.challenge_id == challenge_id)
        return [(uid, name, office, int(p or 0)) for (uid, name, office, p) in (await self.session.execute(q)).all()]
