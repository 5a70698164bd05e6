from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException
from challenge_matrix.auth_deps import get_current_user, get_store
from challenge_matrix.models.user import User
from challenge_matrix.schemas.challenge import ChallengeDetail, ChallengePublic, challenge_detail, challenge_public
from challenge_matrix.services.store import ChallengeStore, NotFound

router = APIRouter(prefix="/challenges", tags=["challenges"])


@router.get("", response_model=list[ChallengePublic])
async def list_active_challenges(store: ChallengeStore = Depends(get_store), user: User = Depends(get_current_user)):
    return [challenge_public(c) for c in await store.list_challenges(status="active")]


@router.get("/{challenge_id}", response_model=ChallengeDetail)
async def get_challenge(challenge_id: UUID, store: ChallengeStore = Depends(get_store), user: User = Depends(get_current_user)):
    try:
        ch = await store.get_challenge(challenge_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Challenge not found")
    if ch.status == "draft" and not user.is_admin:
        raise HTTPException(status_code=404, detail="Challenge not found")
    participant = await store.get_participant(user.id, ch.id)
    points = participant.current_points if participant else 0
    return challenge_detail(ch, await store.list_rewards(ch.id), points)
