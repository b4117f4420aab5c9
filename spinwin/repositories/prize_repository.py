"""Repository layer for Prize persistence."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from spinwin.models.prize import Prize


class PrizeRepository:
    """Prize catalog reads and the award counter."""

    def list_for_campaign(self, session: Session, campaign_id: int) -> Sequence[Prize]:
        stmt = select(Prize).where(Prize.campaign_id == campaign_id).order_by(Prize.sort_order.asc(), Prize.id.asc())
        return list(session.scalars(stmt).all())

    def create_many(self, session: Session, campaign_id: int, prizes: Iterable[dict[str, Any]]) -> list[Prize]:
        rows = [
            Prize(
                campaign_id=campaign_id,
                name=str(p["name"]),
                probability=float(p["probability"]),
                color=str(p.get("color") or "#FF6B00"),
                total_quantity=p.get("total_quantity"),
                awarded_count=0,
                sort_order=int(p.get("sort_order") or 0),
            )
            for p in prizes
        ]
        session.add_all(rows)
        session.flush()
        return rows

    def delete_for_campaign(self, session: Session, campaign_id: int) -> int:
        stmt = delete(Prize).where(Prize.campaign_id == campaign_id)
        return int(session.execute(stmt).rowcount or 0)

    def increment_awarded_count(self, session: Session, prize_id: int) -> int:
        """Add one to the prize's awarded count inside the database.

        Single UPDATE statement, so concurrent wins of the same prize never
        lose an increment. Returns the number of rows touched (0 if the prize
        was deleted meanwhile).
        """

        stmt = (
            update(Prize)
            .where(Prize.id == prize_id)
            .values(awarded_count=Prize.awarded_count + 1)
            .execution_options(synchronize_session=False)
        )
        return int(session.execute(stmt).rowcount or 0)
