from __future__ import annotations
import jwt
import structlog
from fastapi import APIRouter, Depends, HTTPException, Header
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from challenge_matrix.db import get_session
from challenge_matrix.auth_deps import get_current_user, get_session_context, SessionContext
from challenge_matrix.models.user import User
from challenge_matrix.schemas.auth import RegisterRequest, LoginRequest, UserPublic, TokenPair, SessionPublic, user_public
from challenge_matrix.security import REFRESH, decode_token, hash_password, make_token_pair, verify_password

router = APIRouter(prefix="/auth", tags=["auth"])
log = structlog.get_logger()

@router.post("/register", status_code=201, response_model=TokenPair)
async def register(payload: RegisterRequest, session: AsyncSession = Depends(get_session)):
    email = payload.email.lower()
    exists = await session.scalar(select(User).where(User.email == email))
    if exists:
        raise HTTPException(status_code=409, detail="Email already registered")
    # The Longrich code doubles as the initial password
    user = User(
        email=email,
        full_name=payload.full_name.strip(),
        longrich_code=payload.longrich_code,
        office=payload.office,
        role="user",
        current_level=1,
        terms_accepted=False,
        password_hash=hash_password(payload.longrich_code),
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")
    log.info("user_registered", user_id=str(user.id), office=user.office)
    return TokenPair(**make_token_pair(str(user.id)))

@router.post("/login", response_model=TokenPair)
async def login(payload: LoginRequest, session: AsyncSession = Depends(get_session)):
    user = await session.scalar(select(User).where(User.email == payload.email.lower()))
    if not user or not verify_password(payload.longrich_code, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or Longrich code")
    return TokenPair(**make_token_pair(str(user.id)))

@router.post("/refresh", response_model=TokenPair)
async def refresh(authorization: str | None = Header(None)):
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing refresh token")
    token = authorization.split(" ", 1)[1]
    try:
        data = decode_token(token, expected_type=REFRESH)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")
    return TokenPair(**make_token_pair(data["sub"]))

@router.get("/me", response_model=UserPublic)
async def me(user: User = Depends(get_current_user)):
    return user_public(user)

@router.get("/session", response_model=SessionPublic)
async def current_session(ctx: SessionContext = Depends(get_session_context)):
    """Identity and admin flag for a client starting up; the role lookup is retried on connection errors."""
    return SessionPublic(user=user_public(ctx.user), is_admin=ctx.is_admin)
