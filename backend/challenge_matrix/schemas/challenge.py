from __future__ import annotations
from pydantic import BaseModel, Field, field_validator, model_validator, field_serializer
from typing import Literal, List
from uuid import UUID
from datetime import date, datetime, time
from challenge_matrix.services.time_windows import WEEKDAYS

ChallengeStatus = Literal["draft", "active", "completed"]
ParticipationStatus = Literal["active", "completed", "failed"]
RewardType = Literal["product", "badge", "bonus"]
Weekday = Literal["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"]

class RewardIn(BaseModel):
    title: str = Field(min_length=1, max_length=120)
    description: str = Field(min_length=1)
    type: RewardType
    min_points: int = Field(ge=1)
    image_url: str | None = None

    @field_validator("image_url")
    @classmethod
    def blank_to_none(cls, v: str | None):
        if v is not None and not v.strip():
            return None
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("image_url must be an http(s) URL")
        return v

class RewardPublic(BaseModel):
    id: UUID
    challenge_id: UUID
    title: str
    description: str
    type: RewardType
    min_points: int
    image_url: str | None = None
    unlocked: bool | None = None

class ChallengeCreate(BaseModel):
    title: str = Field(min_length=1, max_length=120)
    description: str = Field(min_length=1)
    level: int = Field(ge=1)
    start_date: date
    end_date: date
    submission_start: time = time(17, 0)
    submission_end: time = time(18, 0)
    submission_days: List[Weekday] = Field(default_factory=lambda: ["MONDAY", "SUNDAY"], min_length=1)
    min_points: int = Field(ge=1, default=100)
    rewards: List[RewardIn] = Field(min_length=1)

    @field_validator("submission_days")
    @classmethod
    def dedupe_days(cls, v: List[str]):
        return sorted(set(v), key=WEEKDAYS.index)

    @model_validator(mode="after")
    def check_bounds(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.submission_end < self.submission_start:
            raise ValueError("submission_end must not be before submission_start")
        return self

class ChallengeStatusUpdate(BaseModel):
    status: ChallengeStatus

class ChallengePublic(BaseModel):
    id: UUID
    title: str
    description: str
    level: int
    start_date: date
    end_date: date
    submission_start: time
    submission_end: time
    submission_days: List[str]
    min_points: int
    status: ChallengeStatus
    created_at: datetime

    @field_serializer("submission_start", "submission_end")
    def serialize_time(self, value: time) -> str:
        return value.strftime('%H:%M')

class ChallengeDetail(ChallengePublic):
    rewards: List[RewardPublic] = Field(default_factory=list)

class ParticipationPublic(BaseModel):
    id: UUID
    user_id: UUID
    challenge_id: UUID
    current_points: int
    status: ParticipationStatus
    completed_at: datetime | None = None


def challenge_public(ch) -> ChallengePublic:
    return ChallengePublic(
        id=ch.id, title=ch.title, description=ch.description, level=ch.level,
        start_date=ch.start_date, end_date=ch.end_date,
        submission_start=ch.submission_start, submission_end=ch.submission_end,
        submission_days=list(ch.submission_days or []), min_points=ch.min_points,
        status=ch.status, created_at=ch.created_at,
    )

def challenge_detail(ch, rewards, points: int | None = None) -> ChallengeDetail:
    base = challenge_public(ch)
    return ChallengeDetail(
        **{name: getattr(base, name) for name in ChallengePublic.model_fields},
        rewards=[reward_public(r, points) for r in rewards],
    )

def reward_public(r, points: int | None = None) -> RewardPublic:
    return RewardPublic(
        id=r.id, challenge_id=r.challenge_id, title=r.title, description=r.description,
        type=r.type, min_points=r.min_points, image_url=r.image_url,
        unlocked=None if points is None else points >= r.min_points,
    )

def participation_public(p) -> ParticipationPublic:
    return ParticipationPublic(
        id=p.id, user_id=p.user_id, challenge_id=p.challenge_id,
        current_points=p.current_points, status=p.status, completed_at=p.completed_at,
    )
