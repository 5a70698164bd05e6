from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_tz
from uuid import UUID
import structlog
from challenge_matrix.models.challenge import Challenge, ChallengeParticipant
from challenge_matrix.models.reward import Reward
from challenge_matrix.models.user import User
from challenge_matrix.services.store import ChallengeStore
from challenge_matrix.services.submission_window import ChallengeState, evaluate

log = structlog.get_logger()


class AdvancementRejected(Exception):
    """Precondition failed; no write was attempted."""

class TransitionInProgress(Exception):
    pass


@dataclass
class DashboardState:
    user: User
    challenge: Challenge | None = None
    state: ChallengeState | None = None
    participant: ChallengeParticipant | None = None
    rewards: list[Reward] = field(default_factory=list)
    next_challenge: Challenge | None = None
    transitioning: bool = False

    @property
    def current_points(self) -> int:
        return int(self.participant.current_points) if self.participant else 0

    @property
    def participation_status(self) -> str:
        return self.participant.status if self.participant else "active"

    @property
    def progress_pct(self) -> float:
        if not self.challenge or not self.challenge.min_points:
            return 0.0
        return min(self.current_points / self.challenge.min_points * 100, 100.0)

    @property
    def show_next_challenge_button(self) -> bool:
        return self.next_challenge is not None and self.participation_status == "completed" and not self.transitioning

    @property
    def submit_enabled(self) -> bool:
        if self.show_next_challenge_button or self.state is None or self.participation_status != "active":
            return False
        return self.challenge is not None and self.challenge.status == "active" and self.state.is_open

    def is_unlocked(self, reward: Reward) -> bool:
        return self.current_points >= reward.min_points


async def load_dashboard(store: ChallengeStore, user_id: UUID, now: datetime | None = None, tz_name: str | None = None) -> DashboardState:
    """
    Everything the participant view needs for one load: the challenge for the
    user's level, its evaluated window, rewards, participation and, once the
    participation is completed, the next level's active challenge.
    """
    now = now or datetime.now(dt_tz.utc)
    user = await store.get_user_profile(user_id)
    out = DashboardState(user=user)

    challenge = await store.get_active_challenge_for_level(user.current_level)
    if challenge is None:
        # Level already closed by an advancement; the user may still move on from it.
        challenge = await store.get_completed_challenge_for_level(user.current_level)
        if challenge is None:
            return out
    out.challenge = challenge
    if challenge.status == "active":
        out.state = evaluate(challenge, now, tz_name)
    out.rewards = await store.list_rewards(challenge.id)
    out.participant = await store.get_participant(user.id, challenge.id)

    if out.participation_status == "completed":
        out.next_challenge = await store.get_active_challenge_for_level(challenge.level + 1)
    return out


class ProgressionEngine:
    """
    Drives level advancement. One transition per user may be in flight in this
    process; a second request while one is pending is turned away, not queued.
    Across processes the conditional level update is what prevents a double
    advancement.
    """

    def __init__(self):
        self._in_flight: set[UUID] = set()

    def is_transitioning(self, user_id: UUID) -> bool:
        return user_id in self._in_flight

    async def advance(
        self,
        store: ChallengeStore,
        user_id: UUID,
        next_challenge_id: UUID | None = None,
        now: datetime | None = None,
        tz_name: str | None = None,
    ) -> DashboardState:
        if user_id in self._in_flight:
            log.info("level_advance_rejected", user_id=str(user_id), reason="in_flight")
            raise TransitionInProgress("Level transition already in progress")
        self._in_flight.add(user_id)
        try:
            now = now or datetime.now(dt_tz.utc)
            user = await store.get_user_profile(user_id)
            current, nxt = await self._check_preconditions(store, user, next_challenge_id)

            try:
                await store.update_challenge_status(current.id, "completed")
                await store.update_user_level(
                    user.id,
                    current_level=nxt.level,
                    terms_accepted=True,
                    terms_accepted_at=now,
                    expected_level=current.level,
                )
                await store.commit()
            except Exception as e:
                await store.rollback()
                log.error("level_advance_failed", user_id=str(user_id), from_level=current.level, error_type=type(e).__name__)
                raise

            log.info("level_advanced", user_id=str(user_id), from_level=current.level, to_level=nxt.level, challenge_id=str(nxt.id))
            return await load_dashboard(store, user_id, now, tz_name)
        finally:
            self._in_flight.discard(user_id)

    async def _check_preconditions(
        self, store: ChallengeStore, user: User, next_challenge_id: UUID | None
    ) -> tuple[Challenge, Challenge]:
        current = await store.get_active_challenge_for_level(user.current_level)
        if current is None:
            current = await store.get_completed_challenge_for_level(user.current_level)
        if current is None:
            raise AdvancementRejected("No challenge for your current level")

        participant = await store.get_participant(user.id, current.id)
        if participant is None or participant.status != "completed":
            raise AdvancementRejected("Current challenge is not completed yet")

        if next_challenge_id is not None:
            nxt = await store.get_challenge(next_challenge_id)
        else:
            nxt = await store.get_active_challenge_for_level(current.level + 1)
        if nxt is None:
            raise AdvancementRejected("No active challenge for the next level")
        if nxt.level != current.level + 1:
            raise AdvancementRejected("Level must be exactly the next level")
        if nxt.status != "active":
            raise AdvancementRejected("Next challenge is not active")
        return current, nxt


_engine = ProgressionEngine()

def get_progression_engine() -> ProgressionEngine:
    return _engine
