"""Play use-case: single play per (campaign, email) and award accounting.

Sequence for one request:

    CHECKING   campaign lookup, optimistic "already played" read
    RESOLVING  draw against the current prize snapshot
    INSERTING  participant insert; the unique constraint decides races
    COMMITTED  award counter increment (best effort), notification

The prize snapshot is not locked between the draw and the insert, so two
simultaneous plays can both win the last unit of a limited prize. The counter
then records both winners and the prize is out of the draw afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from spinwin.errors import AlreadyPlayedError, CampaignNotFoundError, NoPrizesConfiguredError, PlayFailedError
from spinwin.repositories.campaign_repository import CampaignRepository
from spinwin.repositories.participant_repository import ParticipantRepository
from spinwin.repositories.prize_repository import PrizeRepository
from spinwin.services.lottery import (
    LotteryResult,
    PrizeSnapshot,
    RandomSource,
    determine_outcome,
    total_segments_for,
)
from spinwin.services.notification_service import LoggingNotifier, Notifier, PlayEvent

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True)
class PlayOutcome:
    won: bool
    prize_name: str | None
    segment_index: int
    total_segments: int


class PlayService:
    """Play use-cases."""

    def __init__(
        self,
        *,
        campaigns: CampaignRepository | None = None,
        prizes: PrizeRepository | None = None,
        participants: ParticipantRepository | None = None,
        notifier: Notifier | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        self._campaigns = campaigns or CampaignRepository()
        self._prizes = prizes or PrizeRepository()
        self._participants = participants or ParticipantRepository()
        self._notifier = notifier or LoggingNotifier()
        self._rng = rng

    def play(self, session: Session, campaign_slug: str, email: str) -> PlayOutcome:
        normalized_email = normalize_email(email)

        campaign = self._campaigns.get_active_by_slug(session, campaign_slug)
        if campaign is None:
            raise CampaignNotFoundError()

        if self._participants.get_by_campaign_and_email(session, campaign.id, normalized_email) is not None:
            raise AlreadyPlayedError()

        prizes = self._prizes.list_for_campaign(session, campaign.id)
        if not prizes:
            raise NoPrizesConfiguredError()

        snapshot = [PrizeSnapshot.from_prize(p) for p in prizes]
        total_segments = total_segments_for(snapshot)
        result = determine_outcome(snapshot, total_segments, rng=self._rng)

        # Built before the commit: a failed increment rolls back and expires `campaign`.
        event = PlayEvent(
            email=normalized_email,
            won=result.won,
            prize_name=result.prize_name,
            campaign_name=campaign.name,
            campaign_id=campaign.id,
        )

        self._record_participation(session, event.campaign_id, normalized_email, result)

        if result.won and result.prize_id is not None:
            self._record_award(session, result.prize_id)

        self._emit(event)

        return PlayOutcome(
            won=result.won,
            prize_name=result.prize_name,
            segment_index=result.segment_index,
            total_segments=total_segments,
        )

    def _record_participation(self, session: Session, campaign_id: int, email: str, result: LotteryResult) -> None:
        try:
            self._participants.create(session, campaign_id=campaign_id, email=email, prize_id=result.prize_id)
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            if self._is_duplicate(session, exc, campaign_id, email):
                logger.info("Concurrent play rejected campaign_id=%s", campaign_id)
                raise AlreadyPlayedError() from exc
            logger.exception("Participant insert failed campaign_id=%s", campaign_id)
            raise PlayFailedError() from exc
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Participant insert failed campaign_id=%s", campaign_id)
            raise PlayFailedError() from exc

    def _is_duplicate(self, session: Session, exc: IntegrityError, campaign_id: int, email: str) -> bool:
        if getattr(exc.orig, "pgcode", None) == UNIQUE_VIOLATION:
            return True
        # Other drivers: the conflicting row is committed and visible after rollback.
        return self._participants.get_by_campaign_and_email(session, campaign_id, email) is not None

    def _record_award(self, session: Session, prize_id: int) -> None:
        try:
            updated = self._prizes.increment_awarded_count(session, prize_id)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Award count increment failed prize_id=%s", prize_id)
            return
        if updated == 0:
            logger.warning("Award count not incremented, prize missing prize_id=%s", prize_id)

    def _emit(self, event: PlayEvent) -> None:
        try:
            self._notifier.notify(event)
        except Exception:
            logger.exception("Play notification dispatch failed campaign_id=%s", event.campaign_id)
