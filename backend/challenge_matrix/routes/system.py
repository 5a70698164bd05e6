from __future__ import annotations
import structlog
from fastapi import APIRouter, Depends, Request, Response
from datetime import datetime, timezone
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from challenge_matrix.config import settings
from challenge_matrix.db import get_session

router = APIRouter(tags=["system"])
log = structlog.get_logger()

@router.get("/health")
async def health(request: Request, response: Response, session: AsyncSession = Depends(get_session)):
    try:
        await session.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        log.warning("health_db_unreachable", error_type=type(e).__name__)
        database = "unreachable"
        response.status_code = 503
    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "env": settings.environment,
        "time": datetime.now(timezone.utc).isoformat(),
        "timezone": settings.challenge_timezone,
        "request_id": request.state.request_id,
    }

@router.get("/version")
async def version():
    return {
        "name": settings.app_name,
        "display_name": settings.app_display_name,
        "version": settings.app_version,
        "git_sha": settings.git_sha,
    }
