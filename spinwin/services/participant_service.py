"""Service layer for participant bookkeeping outside of plays."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from spinwin.repositories.participant_repository import ParticipantRepository
from spinwin.services.play_service import normalize_email

logger = logging.getLogger(__name__)


class ParticipantService:
    """Participant use-cases."""

    def __init__(self, repository: ParticipantRepository | None = None) -> None:
        self._repo = repository or ParticipantRepository()

    def unsubscribe(self, session: Session, campaign_id: int, email: str) -> bool:
        """Flag the participant as unsubscribed.

        Unknown pairs are not an error so the endpoint does not reveal who played.
        """

        updated = self._repo.set_unsubscribed(session, campaign_id, normalize_email(email))
        if updated == 0:
            logger.info("Unsubscribe for unknown participant campaign_id=%s", campaign_id)
        return updated > 0
