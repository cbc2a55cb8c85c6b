import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from focusflow.models.base import Base, UTCDateTime

DISTRACTION_TYPES = ("phone", "social_media", "thoughts", "email", "noise", "people", "other")


class Distraction(Base):
    __tablename__ = "distractions"

    session_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    note: Mapped[str | None] = mapped_column(String(200))
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=30)

    __table_args__ = (
        Index("ix_distractions_session_occurred", "session_id", "occurred_at"),
        Index("ix_distractions_user_occurred", "user_id", "occurred_at"),
    )
