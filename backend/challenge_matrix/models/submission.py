from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Text, DateTime, ForeignKey, Uuid, func
from challenge_matrix.db import Base, utcnow


class MatrixSubmission(Base):
    __tablename__ = "matrix_submissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    # active challenge at submission time
    challenge_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(), ForeignKey("challenges.id", ondelete="SET NULL"), index=True, nullable=True
    )

    mxf: Mapped[int] = mapped_column(Integer, nullable=False)  # strong branch
    mxm: Mapped[int] = mapped_column(Integer, nullable=False)  # first payment leg
    mx: Mapped[int] = mapped_column(Integer, nullable=False)   # last payment leg
    mx_global: Mapped[int] = mapped_column(Integer, nullable=False)

    screenshot_url: Mapped[str] = mapped_column(Text(), nullable=False)
    submission_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")  # pending|validated|rejected
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
