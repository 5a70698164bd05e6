from __future__ import annotations
from datetime import datetime
import structlog
from fastapi import APIRouter, Depends, HTTPException, Form, UploadFile, File
from sqlalchemy import select
from challenge_matrix.auth_deps import get_current_user, get_now, get_store
from challenge_matrix.config import settings
from challenge_matrix.models.submission import MatrixSubmission
from challenge_matrix.models.user import User
from challenge_matrix.schemas.submission import SubmissionPublic, submission_public
from challenge_matrix.services.media import InvalidUpload, ext_for_mime, validate_image
from challenge_matrix.services.storage import SCREENSHOTS, ObjectStorage, StorageError, get_storage
from challenge_matrix.services.store import ChallengeStore
from challenge_matrix.services.submission_window import evaluate

router = APIRouter(prefix="/submissions", tags=["submissions"])
log = structlog.get_logger()


@router.post("", response_model=SubmissionPublic, status_code=201)
async def create_submission(
    mxf: int = Form(..., ge=0, description="strong branch MX"),
    mxm: int = Form(..., ge=0, description="first payment leg MX"),
    mx: int = Form(..., ge=0, description="last payment leg MX"),
    screenshot: UploadFile = File(..., description="dashboard screenshot (jpeg/png/gif)"),
    store: ChallengeStore = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
    user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    ch = await store.get_active_challenge_for_level(user.current_level)
    if not ch:
        raise HTTPException(status_code=400, detail="No active challenge for your level")

    state = evaluate(ch, now)
    if state.phase != "active":
        raise HTTPException(status_code=400, detail=f"Challenge is not running (phase={state.phase})")
    if not state.is_open and state.countdown_target is None:
        raise HTTPException(status_code=400, detail="Submission window is closed; no window remains before the challenge ends")
    if not state.is_open:
        raise HTTPException(
            status_code=400,
            detail=f"Submission window is closed; next window opens at {state.countdown_target.isoformat()}",
        )

    participant = await store.get_participant(user.id, ch.id)
    if participant and participant.status != "active":
        raise HTTPException(status_code=400, detail=f"Participation already {participant.status}")

    data = await screenshot.read()
    try:
        mime = validate_image(data, settings.screenshot_max_bytes)
    except InvalidUpload as e:
        raise HTTPException(status_code=422, detail=str(e))

    path = f"{user.id}/{int(now.timestamp() * 1000)}.{ext_for_mime(mime)}"
    try:
        url = storage.upload(SCREENSHOTS, path, data, mime)
    except StorageError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if participant is None:
        await store.get_or_create_participant(user.id, ch.id)

    sub = MatrixSubmission(
        user_id=user.id,
        challenge_id=ch.id,
        mxf=mxf,
        mxm=mxm,
        mx=mx,
        mx_global=mxf + mxm + mx,
        screenshot_url=url,
        submission_date=now,
        status="pending",
    )
    store.session.add(sub)
    await store.commit()
    log.info("submission_created", submission_id=str(sub.id), user_id=str(user.id), challenge_id=str(ch.id), mx_global=sub.mx_global)
    return submission_public(sub)


@router.get("/mine", response_model=list[SubmissionPublic])
async def list_my_submissions(store: ChallengeStore = Depends(get_store), user: User = Depends(get_current_user)):
    rows = (await store.session.execute(
        select(MatrixSubmission)
        .where(MatrixSubmission.user_id == user.id)
        .order_by(MatrixSubmission.submission_date.desc())
    )).scalars().all()
    return [submission_public(s) for s in rows]
