from __future__ import annotations

import logging
import threading

import pytest
from helpers import FixedRandom, RecordingNotifier
from sqlalchemy import event, select
from sqlalchemy.exc import IntegrityError, OperationalError

from spinwin.errors import AlreadyPlayedError, CampaignNotFoundError, NoPrizesConfiguredError, PlayFailedError
from spinwin.models.participant import Participant
from spinwin.models.prize import Prize
from spinwin.repositories.participant_repository import ParticipantRepository
from spinwin.repositories.prize_repository import PrizeRepository
from spinwin.services.play_service import PlayService, normalize_email


class StalePreCheckRepository(ParticipantRepository):
    """Pre-check that misses a row committed by a concurrent request."""

    def __init__(self) -> None:
        self.pre_checks = 0

    def get_by_campaign_and_email(self, session, campaign_id, email):
        self.pre_checks += 1
        if self.pre_checks == 1:
            return None
        return super().get_by_campaign_and_email(session, campaign_id, email)


class BarrierRepository(ParticipantRepository):
    """Holds every request after its pre-check until all of them got there."""

    def __init__(self, barrier: threading.Barrier) -> None:
        self._barrier = barrier
        self._local = threading.local()

    def get_by_campaign_and_email(self, session, campaign_id, email):
        found = super().get_by_campaign_and_email(session, campaign_id, email)
        if not getattr(self._local, "passed", False):
            self._local.passed = True
            self._barrier.wait(timeout=10)
        return found


class SnapshotPrizeRepository(PrizeRepository):
    """Serves a catalog read before another play committed."""

    def __init__(self, snapshot) -> None:
        self._snapshot = snapshot

    def list_for_campaign(self, session, campaign_id):
        return self._snapshot


class FailingIncrementRepository(PrizeRepository):
    def increment_awarded_count(self, session, prize_id):
        raise OperationalError("UPDATE prizes", {}, Exception("connection reset"))


class OutageIncrementRepository(PrizeRepository):
    """Marks the database as down right before the award update."""

    def __init__(self, outage: threading.Event) -> None:
        self._outage = outage

    def increment_awarded_count(self, session, prize_id):
        self._outage.set()
        return super().increment_awarded_count(session, prize_id)


class BrokenInsertRepository(ParticipantRepository):
    def create(self, session, *, campaign_id, email, prize_id):
        raise IntegrityError("INSERT INTO participants", {}, Exception("foreign key mismatch"))


class ExplodingNotifier:
    def notify(self, event):
        raise RuntimeError("executor is gone")


def participants_for(session_factory, campaign_id):
    with session_factory() as s:
        return list(s.scalars(select(Participant).where(Participant.campaign_id == campaign_id)).all())


def participant_count(session_factory, campaign_id, email=None):
    with session_factory() as s:
        return ParticipantRepository().count_for_campaign(s, campaign_id, email)


def awarded_count(session_factory, prize_name):
    with session_factory() as s:
        return s.scalars(select(Prize.awarded_count).where(Prize.name == prize_name)).one()


def test_normalize_email():
    assert normalize_email("  User@Example.COM ") == "user@example.com"


def test_winning_play_records_participant_and_award(seed, session, session_factory, notifier):
    campaign = seed([{"name": "Coffee", "probability": 0.5}, {"name": "Cookie", "probability": 0.2}])
    service = PlayService(notifier=notifier, rng=FixedRandom(0.6))

    outcome = service.play(session, "spring-sale", "ann@example.com")

    assert outcome.won is True
    assert outcome.prize_name == "Cookie"
    assert outcome.segment_index == 2
    assert outcome.total_segments == 4

    rows = participants_for(session_factory, campaign.id)
    assert len(rows) == 1
    assert rows[0].email == "ann@example.com"
    assert rows[0].prize_id is not None
    assert awarded_count(session_factory, "Cookie") == 1
    assert awarded_count(session_factory, "Coffee") == 0

    assert len(notifier.events) == 1
    sent = notifier.events[0]
    assert (sent.email, sent.won, sent.prize_name, sent.campaign_name) == (
        "ann@example.com",
        True,
        "Cookie",
        "Spring Sale",
    )


def test_losing_play_records_participant_without_prize(seed, session, session_factory, notifier):
    campaign = seed([{"name": "Coffee", "probability": 0.2}])
    service = PlayService(notifier=notifier, rng=FixedRandom(0.8))

    outcome = service.play(session, "spring-sale", "bob@example.com")

    assert outcome.won is False
    assert outcome.prize_name is None
    assert outcome.segment_index == 1
    rows = participants_for(session_factory, campaign.id)
    assert [r.prize_id for r in rows] == [None]
    assert awarded_count(session_factory, "Coffee") == 0


def test_email_case_and_whitespace_identify_same_participant(seed, session, session_factory):
    campaign = seed([{"name": "Coffee", "probability": 0.2}])
    service = PlayService(notifier=RecordingNotifier(), rng=FixedRandom(0.9))

    service.play(session, "spring-sale", " User@Example.com ")
    with pytest.raises(AlreadyPlayedError):
        service.play(session, "spring-sale", "user@example.com")

    assert participant_count(session_factory, campaign.id) == 1


def test_same_email_can_play_other_campaigns(seed, session):
    seed([{"name": "Coffee", "probability": 0.2}], slug="first")
    seed([{"name": "Tea", "probability": 0.2}], slug="second")
    service = PlayService(notifier=RecordingNotifier(), rng=FixedRandom(0.9))

    service.play(session, "first", "cara@example.com")
    outcome = service.play(session, "second", "cara@example.com")

    assert outcome.won is False


@pytest.mark.parametrize("slug, active", [("missing", True), ("spring-sale", False)])
def test_unknown_or_inactive_campaign(seed, session, session_factory, slug, active):
    campaign = seed([{"name": "Coffee", "probability": 0.2}], is_active=active)
    service = PlayService(notifier=RecordingNotifier(), rng=FixedRandom(0.1))

    with pytest.raises(CampaignNotFoundError):
        service.play(session, slug, "dan@example.com")

    assert participants_for(session_factory, campaign.id) == []


def test_campaign_without_prizes(seed, session, session_factory):
    campaign = seed([])
    service = PlayService(notifier=RecordingNotifier(), rng=FixedRandom(0.1))

    with pytest.raises(NoPrizesConfiguredError):
        service.play(session, "spring-sale", "eve@example.com")

    assert participants_for(session_factory, campaign.id) == []


def test_conflict_on_insert_reports_already_played(seed, session, session_factory):
    campaign = seed([{"name": "Coffee", "probability": 1.0}])
    notifier = RecordingNotifier()
    PlayService(notifier=notifier, rng=FixedRandom(0.1)).play(session, "spring-sale", "fay@example.com")

    racing = PlayService(participants=StalePreCheckRepository(), notifier=notifier, rng=FixedRandom(0.1))
    with pytest.raises(AlreadyPlayedError):
        racing.play(session, "spring-sale", "FAY@example.com")

    assert participant_count(session_factory, campaign.id) == 1
    assert participant_count(session_factory, campaign.id, "fay@example.com") == 1
    assert awarded_count(session_factory, "Coffee") == 1
    assert len(notifier.events) == 1


def test_concurrent_plays_commit_exactly_once(seed, session_factory):
    campaign = seed([{"name": "Coffee", "probability": 0.5}])
    barrier = threading.Barrier(2)
    service = PlayService(
        participants=BarrierRepository(barrier),
        notifier=RecordingNotifier(),
        rng=FixedRandom(0.9),
    )
    results: list[str] = []
    lock = threading.Lock()

    def worker() -> None:
        with session_factory() as s:
            try:
                service.play(s, "spring-sale", "gus@example.com")
                outcome = "committed"
            except AlreadyPlayedError:
                outcome = "already_played"
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(results) == ["already_played", "committed"]
    assert participant_count(session_factory, campaign.id) == 1


def test_other_integrity_errors_are_internal_failures(seed, session, session_factory):
    campaign = seed([{"name": "Coffee", "probability": 1.0}])
    notifier = RecordingNotifier()
    service = PlayService(participants=BrokenInsertRepository(), notifier=notifier, rng=FixedRandom(0.1))

    with pytest.raises(PlayFailedError) as exc_info:
        service.play(session, "spring-sale", "hal@example.com")

    assert exc_info.value.code == "internal_error"
    assert participants_for(session_factory, campaign.id) == []
    assert awarded_count(session_factory, "Coffee") == 0
    assert notifier.events == []


def test_award_increment_failure_does_not_fail_play(seed, session, session_factory, caplog):
    campaign = seed([{"name": "Coffee", "probability": 1.0}])
    service = PlayService(prizes=FailingIncrementRepository(), notifier=RecordingNotifier(), rng=FixedRandom(0.1))

    with caplog.at_level(logging.ERROR, logger="spinwin.services.play_service"):
        outcome = service.play(session, "spring-sale", "ida@example.com")

    assert outcome.won is True
    assert participant_count(session_factory, campaign.id) == 1
    assert awarded_count(session_factory, "Coffee") == 0
    assert "Award count increment failed" in caplog.text


def test_database_outage_during_award_still_notifies(app, seed, session, session_factory, caplog):
    campaign = seed([{"name": "Coffee", "probability": 1.0}])
    outage = threading.Event()
    notifier = RecordingNotifier()
    service = PlayService(prizes=OutageIncrementRepository(outage), notifier=notifier, rng=FixedRandom(0.1))
    engine = app.extensions["engine"]

    def refuse_statements(conn, cursor, statement, parameters, context, executemany):
        if outage.is_set():
            raise OperationalError(statement, parameters, Exception("server closed the connection"))

    event.listen(engine, "before_cursor_execute", refuse_statements)
    try:
        with caplog.at_level(logging.ERROR, logger="spinwin.services.play_service"):
            outcome = service.play(session, "spring-sale", "ida@example.com")
    finally:
        outage.clear()
        event.remove(engine, "before_cursor_execute", refuse_statements)

    assert outcome.won is True
    assert [(e.email, e.campaign_name, e.campaign_id) for e in notifier.events] == [
        ("ida@example.com", "Spring Sale", campaign.id)
    ]
    assert participant_count(session_factory, campaign.id) == 1
    assert awarded_count(session_factory, "Coffee") == 0
    assert "Award count increment failed" in caplog.text


def test_notifier_failure_does_not_fail_play(seed, session):
    seed([{"name": "Coffee", "probability": 1.0}])
    service = PlayService(notifier=ExplodingNotifier(), rng=FixedRandom(0.1))

    outcome = service.play(session, "spring-sale", "jo@example.com")

    assert outcome.won is True


def test_last_unit_can_be_over_awarded_under_race(seed, session_factory):
    campaign = seed([{"name": "Signed shirt", "probability": 1.0, "total_quantity": 1}])
    notifier = RecordingNotifier()

    with session_factory() as s:
        stale_catalog = PrizeRepository().list_for_campaign(s, campaign.id)

    with session_factory() as s:
        first = PlayService(notifier=notifier, rng=FixedRandom(0.2)).play(s, "spring-sale", "kim@example.com")
    with session_factory() as s:
        second = PlayService(
            prizes=SnapshotPrizeRepository(stale_catalog), notifier=notifier, rng=FixedRandom(0.2)
        ).play(s, "spring-sale", "lee@example.com")

    # Both saw the unit available; the counter records both winners.
    assert first.won and second.won
    assert awarded_count(session_factory, "Signed shirt") == 2

    with session_factory() as s:
        later = PlayService(notifier=notifier, rng=FixedRandom(0.2)).play(s, "spring-sale", "max@example.com")
    assert later.won is False


def test_limited_prize_runs_out(seed, session_factory):
    seed([{"name": "Mug", "probability": 1.0, "total_quantity": 2}])
    service = PlayService(notifier=RecordingNotifier(), rng=FixedRandom(0.5))

    outcomes = []
    for n in range(4):
        with session_factory() as s:
            outcomes.append(service.play(s, "spring-sale", f"player{n}@example.com").won)

    assert outcomes == [True, True, False, False]
    assert awarded_count(session_factory, "Mug") == 2
