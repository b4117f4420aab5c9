"""Prize ORM model.

`awarded_count` is only ever changed with an in-database increment, see
PrizeRepository.increment_awarded_count.
"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spinwin.models.base import Base


class Prize(Base):
    """A possible award of a campaign."""

    __tablename__ = "prizes"
    __table_args__ = (
        CheckConstraint("probability > 0 AND probability <= 1", name="probability"),
        CheckConstraint("total_quantity IS NULL OR total_quantity > 0", name="total_quantity"),
        CheckConstraint("awarded_count >= 0", name="awarded_count"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    campaign_id: Mapped[int] = mapped_column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    probability: Mapped[float] = mapped_column(Float, nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#FF6B00")
    total_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)  # None = unlimited
    awarded_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    campaign: Mapped["Campaign"] = relationship(back_populates="prizes")  # noqa: F821
