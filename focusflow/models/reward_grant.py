import uuid
from datetime import datetime

from sqlalchemy import JSON, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from focusflow.models.base import Base, UTCDateTime, utcnow


class RewardGrant(Base):
    """One applied step of a reward event, keyed by the triggering task/session."""

    __tablename__ = "reward_grants"

    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    source_type: Mapped[str] = mapped_column(String(20), nullable=False)  # task, session
    source_id: Mapped[str] = mapped_column(String(64), nullable=False)
    step: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # base, streak, weekly, streak_milestone, weekly_goal, level_up, done
    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    detail_json: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)

    __table_args__ = (
        Index("ix_reward_grants_dedup", "user_id", "source_type", "source_id", "step", unique=True),
    )
