from __future__ import annotations
from pydantic import BaseModel
from typing import Literal
from uuid import UUID
from datetime import datetime

SubmissionStatus = Literal["pending", "validated", "rejected"]


class SubmissionPublic(BaseModel):
    id: UUID
    user_id: UUID
    challenge_id: UUID | None = None
    mxf: int
    mxm: int
    mx: int
    mx_global: int
    screenshot_url: str
    submission_date: datetime
    status: SubmissionStatus
    reviewed_at: datetime | None = None


class AdminSubmissionPublic(SubmissionPublic):
    full_name: str
    office: str
    challenge_title: str | None = None
    challenge_level: int | None = None


class ReviewRequest(BaseModel):
    status: Literal["validated", "rejected"]


def submission_public(s) -> SubmissionPublic:
    return SubmissionPublic(
        id=s.id, user_id=s.user_id, challenge_id=s.challenge_id,
        mxf=s.mxf, mxm=s.mxm, mx=s.mx, mx_global=s.mx_global,
        screenshot_url=s.screenshot_url, submission_date=s.submission_date,
        status=s.status, reviewed_at=s.reviewed_at,
    )
