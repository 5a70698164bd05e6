from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, DateTime, Text, Uuid, func
from challenge_matrix.db import Base, utcnow

class User(Base):
    __tablename__ = "users"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(120), nullable=False)
    longrich_code: Mapped[str] = mapped_column(String(32), nullable=False)
    office: Mapped[str] = mapped_column(String(32), nullable=False)  # yop-canaris|cocody-insacc|annani|attingier
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="user")  # user|admin
    password_hash: Mapped[str] = mapped_column(Text(), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text(), nullable=True)
    current_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    terms_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    terms_accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
