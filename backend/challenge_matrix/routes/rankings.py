from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from challenge_matrix.auth_deps import get_current_user, get_store
from challenge_matrix.schemas.ranking import OfficeRankingRow, UserRankingRow
from challenge_matrix.services.rankings import aggregate_offices, rank_participants
from challenge_matrix.services.store import ChallengeStore

router = APIRouter(prefix="/rankings", tags=["rankings"])


@router.get("/offices", response_model=list[OfficeRankingRow])
async def office_ranking(
    challenge_id: UUID | None = Query(default=None),
    store: ChallengeStore = Depends(get_store),
    user=Depends(get_current_user),
):
    rows = await store.aggregate_participant_points(challenge_id)
    return [
        OfficeRankingRow(
            office=s.office, total_points=s.total_points,
            participants_count=s.participants_count, average_points=s.average_points,
        )
        for s in aggregate_offices(rows)
    ]


@router.get("/users", response_model=list[UserRankingRow])
async def user_ranking(
    challenge_id: UUID | None = Query(default=None),
    limit: int = Query(default=10, ge=1, le=100),
    store: ChallengeStore = Depends(get_store),
    user=Depends(get_current_user),
):
    rows = await store.top_participants(limit, challenge_id)
    return [
        UserRankingRow(rank=s.rank, user_id=s.user_id, full_name=s.full_name, office=s.office, current_points=s.points)
        for s in rank_participants(rows, limit)
    ]
