from __future__ import annotations
from datetime import datetime
from typing import Literal
from uuid import UUID
import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from challenge_matrix.auth_deps import SessionContext, get_now, get_store, require_admin
from challenge_matrix.models.challenge import Challenge
from challenge_matrix.models.reward import Reward
from challenge_matrix.models.submission import MatrixSubmission
from challenge_matrix.models.user import User
from challenge_matrix.schemas.account import RoleUpdate
from challenge_matrix.schemas.auth import UserPublic, user_public
from challenge_matrix.schemas.challenge import (
    ChallengeCreate, ChallengeDetail, ChallengePublic, ChallengeStatusUpdate, challenge_detail, challenge_public,
)
from challenge_matrix.schemas.submission import AdminSubmissionPublic, ReviewRequest, SubmissionPublic, submission_public
from challenge_matrix.services.scoring import InvalidTransition, review_submission
from challenge_matrix.services.store import ActiveLevelConflict, ChallengeStore, NotFound

router = APIRouter(prefix="/admin", tags=["admin"])
log = structlog.get_logger()

StatusFilter = Literal["pending", "validated", "rejected", "all"]


def _apply(ch: Challenge, payload: ChallengeCreate) -> None:
    ch.title = payload.title
    ch.description = payload.description
    ch.level = payload.level
    ch.start_date = payload.start_date
    ch.end_date = payload.end_date
    ch.submission_start = payload.submission_start
    ch.submission_end = payload.submission_end
    ch.submission_days = list(payload.submission_days)
    ch.min_points = payload.min_points


def _rewards_for(ch: Challenge, payload: ChallengeCreate) -> list[Reward]:
    return [
        Reward(
            challenge_id=ch.id, title=r.title, description=r.description,
            type=r.type, min_points=r.min_points, image_url=r.image_url,
        )
        for r in payload.rewards
    ]

# ---------- challenges ----------

@router.get("/challenges", response_model=list[ChallengePublic])
async def list_challenges(store: ChallengeStore = Depends(get_store), admin: SessionContext = Depends(require_admin)):
    return [challenge_public(c) for c in await store.list_challenges()]


@router.get("/challenges/{challenge_id}", response_model=ChallengeDetail)
async def get_challenge(challenge_id: UUID, store: ChallengeStore = Depends(get_store), admin: SessionContext = Depends(require_admin)):
    try:
        ch = await store.get_challenge(challenge_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Challenge not found")
    return challenge_detail(ch, await store.list_rewards(ch.id))


@router.post("/challenges", response_model=ChallengeDetail, status_code=201)
async def create_challenge(payload: ChallengeCreate, store: ChallengeStore = Depends(get_store), admin: SessionContext = Depends(require_admin)):
    ch = Challenge(status="draft")
    _apply(ch, payload)
    store.session.add(ch)
    await store.session.flush()
    store.session.add_all(_rewards_for(ch, payload))
    await store.commit()
    log.info("challenge_created", challenge_id=str(ch.id), level=ch.level, admin_id=str(admin.user_id))
    return challenge_detail(ch, await store.list_rewards(ch.id))


@router.put("/challenges/{challenge_id}", response_model=ChallengeDetail)
async def update_challenge(
    challenge_id: UUID, payload: ChallengeCreate, store: ChallengeStore = Depends(get_store), admin: SessionContext = Depends(require_admin),
):
    try:
        ch = await store.get_challenge(challenge_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Challenge not found")
    if ch.status == "active" and payload.level != ch.level:
        other = await store.get_active_challenge_for_level(payload.level)
        if other is not None:
            raise HTTPException(status_code=409, detail=f"Level {payload.level} already has an active challenge")
    _apply(ch, payload)
    # editing replaces the reward set
    await store.session.execute(delete(Reward).where(Reward.challenge_id == ch.id))
    store.session.add_all(_rewards_for(ch, payload))
    try:
        await store.commit()
    except IntegrityError:
        await store.rollback()
        raise HTTPException(status_code=409, detail="Conflicting challenge update")
    return challenge_detail(ch, await store.list_rewards(ch.id))


@router.patch("/challenges/{challenge_id}/status", response_model=ChallengePublic)
async def change_challenge_status(
    challenge_id: UUID, payload: ChallengeStatusUpdate, store: ChallengeStore = Depends(get_store), admin: SessionContext = Depends(require_admin),
):
    try:
        ch = await store.update_challenge_status(challenge_id, payload.status)
        await store.commit()
    except NotFound:
        raise HTTPException(status_code=404, detail="Challenge not found")
    except ActiveLevelConflict as e:
        await store.rollback()
        raise HTTPException(status_code=409, detail=str(e))
    log.info("challenge_status_changed", challenge_id=str(ch.id), status=ch.status, admin_id=str(admin.user_id))
    return challenge_public(ch)


@router.delete("/challenges/{challenge_id}", status_code=204)
async def delete_challenge(challenge_id: UUID, store: ChallengeStore = Depends(get_store), admin: SessionContext = Depends(require_admin)):
    try:
        ch = await store.get_challenge(challenge_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Challenge not found")
    if ch.status != "draft":
        raise HTTPException(status_code=400, detail="Only draft challenges can be deleted")
    await store.session.execute(delete(Reward).where(Reward.challenge_id == ch.id))
    await store.session.delete(ch)
    await store.commit()

# ---------- submissions ----------

@router.get("/submissions", response_model=list[AdminSubmissionPublic])
async def list_submissions(
    status: StatusFilter = Query(default="pending"),
    office: str | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    store: ChallengeStore = Depends(get_store),
    admin: SessionContext = Depends(require_admin),
):
    q = (
        select(MatrixSubmission, User.full_name, User.office, Challenge.title, Challenge.level)
        .join(User, User.id == MatrixSubmission.user_id)
        .outerjoin(Challenge, Challenge.id == MatrixSubmission.challenge_id)
    )
    if status != "all":
        q = q.where(MatrixSubmission.status == status)
    if office:
        q = q.where(User.office == office)
    q = q.order_by(MatrixSubmission.submission_date.desc()).limit(limit)
    rows = (await store.session.execute(q)).all()
    return [
        AdminSubmissionPublic(
            **submission_public(s).model_dump(),
            full_name=full_name, office=user_office, challenge_title=title, challenge_level=level,
        )
        for (s, full_name, user_office, title, level) in rows
    ]


@router.post("/submissions/{submission_id}/review", response_model=SubmissionPublic)
async def review(
    submission_id: UUID,
    payload: ReviewRequest,
    store: ChallengeStore = Depends(get_store),
    admin: SessionContext = Depends(require_admin),
    now: datetime = Depends(get_now),
):
    sub = await store.session.get(MatrixSubmission, submission_id)
    if not sub:
        raise HTTPException(status_code=404, detail="Submission not found")
    try:
        await review_submission(store, sub, payload.status, now)
        await store.commit()
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except NotFound as e:
        await store.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    return submission_public(sub)

# ---------- users ----------

@router.get("/users", response_model=list[UserPublic])
async def list_users(store: ChallengeStore = Depends(get_store), admin: SessionContext = Depends(require_admin)):
    rows = (await store.session.execute(select(User).order_by(User.full_name.asc()))).scalars().all()
    return [user_public(u) for u in rows]


@router.patch("/users/{user_id}/role", response_model=UserPublic)
async def change_role(
    user_id: UUID, payload: RoleUpdate, store: ChallengeStore = Depends(get_store), admin: SessionContext = Depends(require_admin),
):
    if user_id == admin.user_id and payload.role != "admin":
        raise HTTPException(status_code=400, detail="You cannot remove your own admin role")
    u = await store.session.get(User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    u.role = payload.role
    await store.commit()
    log.info("user_role_changed", user_id=str(u.id), role=u.role, admin_id=str(admin.user_id))
    return user_public(u)
