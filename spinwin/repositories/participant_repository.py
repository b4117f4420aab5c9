"""Repository layer for Participant persistence."""

from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from spinwin.models.participant import Participant


class ParticipantRepository:
    """Participation ledger. Emails are expected already normalized."""

    def get_by_campaign_and_email(self, session: Session, campaign_id: int, email: str) -> Participant | None:
        stmt = select(Participant).where(Participant.campaign_id == campaign_id, Participant.email == email)
        return session.scalars(stmt).one_or_none()

    def create(self, session: Session, *, campaign_id: int, email: str, prize_id: int | None) -> Participant:
        """Insert a participation row.

        Raises sqlalchemy.exc.IntegrityError on flush when the
        (campaign_id, email) pair already exists.
        """

        participant = Participant(campaign_id=campaign_id, email=email, prize_id=prize_id, unsubscribed=False)
        session.add(participant)
        session.flush()
        return participant

    def count_for_campaign(self, session: Session, campaign_id: int, email: str | None = None) -> int:
        stmt = select(func.count()).select_from(Participant).where(Participant.campaign_id == campaign_id)
        if email is not None:
            stmt = stmt.where(Participant.email == email)
        return int(session.scalar(stmt) or 0)

    def set_unsubscribed(self, session: Session, campaign_id: int, email: str) -> int:
        stmt = (
            update(Participant)
            .where(Participant.campaign_id == campaign_id, Participant.email == email)
            .values(unsubscribed=True)
        )
        return int(session.execute(stmt).rowcount or 0)
