from __future__ import annotations
import uuid
from datetime import date, datetime, time
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Date, Time, DateTime, ForeignKey, Text, JSON, Uuid, Index, UniqueConstraint, func, text
from challenge_matrix.db import Base, utcnow

class Challenge(Base):
    __tablename__ = "challenges"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(Text(), nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    start_date: Mapped[date] = mapped_column(Date(), nullable=False)
    end_date: Mapped[date] = mapped_column(Date(), nullable=False)
    submission_start: Mapped[time] = mapped_column(Time(), nullable=False)
    submission_end: Mapped[time] = mapped_column(Time(), nullable=False)
    submission_days: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # ["MONDAY", ...]
    min_points: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft")  # draft|active|completed
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    __table_args__ = (
        # at most one active challenge per level
        Index(
            "uq_challenges_active_level", "level", unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

class ChallengeParticipant(Base):
    __tablename__ = "challenge_participants"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    challenge_id: Mapped[uuid.UUID] = mapped_column(Uuid(), ForeignKey("challenges.id", ondelete="CASCADE"), index=True, nullable=False)
    current_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")  # active|completed|failed
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "challenge_id", name="uq_participant_user_challenge"),
    )
