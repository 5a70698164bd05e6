from __future__ import annotations
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Body
from sqlalchemy.exc import SQLAlchemyError
from challenge_matrix.auth_deps import get_current_user, get_now, get_store
from challenge_matrix.models.user import User
from challenge_matrix.schemas.challenge import challenge_public, reward_public, participation_public
from challenge_matrix.schemas.dashboard import DashboardPublic, WindowState, AdvanceRequest
from challenge_matrix.services.progression import (
    AdvancementRejected, DashboardState, ProgressionEngine, TransitionInProgress, get_progression_engine, load_dashboard,
)
from challenge_matrix.services.store import ChallengeStore, LevelConflict, NotFound
from challenge_matrix.services.submission_window import ChallengeState

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def window_state(state: ChallengeState) -> WindowState:
    return WindowState(
        phase=state.phase,
        is_open=state.is_open,
        now=state.now,
        countdown_target=state.countdown_target,
        window_start=state.window.start if state.window else None,
        window_end=state.window.end if state.window else None,
    )


def _banner(d: DashboardState) -> str:
    if d.challenge is None:
        return "none"
    if d.participation_status == "completed":
        return "level_completed"
    if d.state is None:
        return "ended"
    if d.state.phase != "active":
        return d.state.phase
    return "window_open" if d.state.is_open else "window_closed"


def to_public(d: DashboardState) -> DashboardPublic:
    return DashboardPublic(
        current_level=d.user.current_level,
        terms_accepted=d.user.terms_accepted,
        challenge=challenge_public(d.challenge) if d.challenge else None,
        window=window_state(d.state) if d.state else None,
        banner=_banner(d),
        participation=participation_public(d.participant) if d.participant else None,
        current_points=d.current_points,
        progress_pct=round(d.progress_pct, 2),
        rewards=[reward_public(r, d.current_points) for r in d.rewards],
        next_challenge=challenge_public(d.next_challenge) if d.next_challenge else None,
        show_next_challenge_button=d.show_next_challenge_button,
        submit_enabled=d.submit_enabled,
        transitioning=d.transitioning,
    )


@router.get("", response_model=DashboardPublic)
async def get_dashboard(
    store: ChallengeStore = Depends(get_store),
    user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
    progression: ProgressionEngine = Depends(get_progression_engine),
):
    d = await load_dashboard(store, user.id, now)
    d.transitioning = progression.is_transitioning(user.id)
    return to_public(d)


@router.get("/window", response_model=WindowState | None)
async def get_window(
    store: ChallengeStore = Depends(get_store),
    user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    """Cheap re-evaluation for the client's countdown; null when no challenge is active for the user's level."""
    d = await load_dashboard(store, user.id, now)
    return window_state(d.state) if d.state else None


@router.post("/advance", response_model=DashboardPublic)
async def advance_level(
    payload: AdvanceRequest | None = Body(default=None),
    store: ChallengeStore = Depends(get_store),
    user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
    progression: ProgressionEngine = Depends(get_progression_engine),
):
    try:
        d = await progression.advance(store, user.id, payload.next_challenge_id if payload else None, now)
    except TransitionInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except AdvancementRejected as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LevelConflict:
        raise HTTPException(status_code=409, detail="Your level was already advanced, reload the dashboard")
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SQLAlchemyError:
        # the transaction was rolled back, nothing was written
        raise HTTPException(
            status_code=503,
            detail="Database unavailable while advancing your level, please retry",
            headers={"Retry-After": "1"},
        )
    return to_public(d)
