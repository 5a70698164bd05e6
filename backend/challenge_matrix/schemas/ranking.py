from __future__ import annotations
from pydantic import BaseModel
from uuid import UUID


class OfficeRankingRow(BaseModel):
    office: str
    total_points: int
    participants_count: int
    average_points: int


class UserRankingRow(BaseModel):
    rank: int
    user_id: UUID | None = None
    full_name: str
    office: str
    current_points: int
