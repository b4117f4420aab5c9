"""Participant ORM model: one row per successful play."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from spinwin.models.base import Base

PARTICIPANT_UNIQUE_CONSTRAINT = "uq_participants_campaign_email"


class Participant(Base):
    """A (campaign, email) play and its outcome.

    `email` is stored normalized (trimmed, lowercase); the unique constraint on
    (campaign_id, email) is what guarantees a single play per participant.
    """

    __tablename__ = "participants"
    __table_args__ = (UniqueConstraint("campaign_id", "email", name=PARTICIPANT_UNIQUE_CONSTRAINT),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    campaign_id: Mapped[int] = mapped_column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), index=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    prize_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("prizes.id", ondelete="SET NULL"), nullable=True
    )  # None = no win
    played_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    unsubscribed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
