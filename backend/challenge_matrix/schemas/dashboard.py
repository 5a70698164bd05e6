from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Literal, List
from uuid import UUID
from datetime import datetime
from challenge_matrix.schemas.challenge import ChallengePublic, RewardPublic, ParticipationPublic

Phase = Literal["not_started", "active", "ended"]
Banner = Literal["none", "not_started", "window_open", "window_closed", "ended", "level_completed"]

class WindowState(BaseModel):
    phase: Phase
    is_open: bool
    now: datetime
    countdown_target: datetime | None = None
    window_start: datetime | None = None
    window_end: datetime | None = None

class DashboardPublic(BaseModel):
    current_level: int
    terms_accepted: bool
    challenge: ChallengePublic | None = None
    window: WindowState | None = None
    banner: Banner = "none"
    participation: ParticipationPublic | None = None
    current_points: int = 0
    progress_pct: float = 0.0
    rewards: List[RewardPublic] = Field(default_factory=list)
    next_challenge: ChallengePublic | None = None
    show_next_challenge_button: bool = False
    submit_enabled: bool = False
    transitioning: bool = False

class AdvanceRequest(BaseModel):
    next_challenge_id: UUID | None = None
