import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from focusflow.models.base import Base, UTCDateTime, utcnow

SESSION_TYPES = ("work", "short_break", "long_break")
ACTIVE_STATUSES = ("running", "paused")
_ACTIVE_CLAUSE = text("status IN ('running', 'paused')")


class Session(Base):
    __tablename__ = "sessions"

    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    session_type: Mapped[str] = mapped_column(String(20), nullable=False, default="work")
    planned_duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(UTCDateTime)
    # [{"start": iso, "end": iso | null}, ...] in chronological order
    pause_intervals: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="idle")  # idle, running, paused, completed, cancelled
    xp_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rating: Mapped[int | None] = mapped_column(Integer)
    notes: Mapped[str | None] = mapped_column(Text)
    completed_work_count_in_cycle: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    actual_duration_seconds: Mapped[int | None] = mapped_column(Integer)
    early_completion: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_sessions_user_start_time", "user_id", "start_time"),
        # At most one running-or-paused session per user
        Index(
            "uq_sessions_user_active",
            "user_id",
            unique=True,
            postgresql_where=_ACTIVE_CLAUSE,
            sqlite_where=_ACTIVE_CLAUSE,
        ),
    )
