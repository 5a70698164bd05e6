from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from challenge_matrix.config import settings
from challenge_matrix.logging_setup import configure_logging
from challenge_matrix.routes.system import router as system_router
from challenge_matrix.routes.auth import router as auth_router
from challenge_matrix.routes.dashboard import router as dashboard_router
from challenge_matrix.routes.submissions import router as submissions_router
from challenge_matrix.routes.challenges import router as challenges_router
from challenge_matrix.routes.rankings import router as rankings_router
from challenge_matrix.routes.account import router as account_router
from challenge_matrix.routes.admin import router as admin_router
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log.info(
        "startup", env=settings.environment, version=settings.app_version,
        git_sha=settings.git_sha, timezone=settings.challenge_timezone,
    )
    yield
    # Shutdown
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API for leveled sales challenges"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_router)
app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(submissions_router)
app.include_router(challenges_router)
app.include_router(rankings_router)
app.include_router(account_router)
app.include_router(admin_router)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid)
    try:
        response: Response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers["X-Request-ID"] = rid
    return response
