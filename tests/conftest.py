"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pytest
from helpers import RecordingNotifier

from spinwin import create_app
from spinwin.models.campaign import Campaign
from spinwin.models.prize import Prize


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "DATABASE_URL": f"sqlite:///{tmp_path / 'spinwin-test.db'}",
            "RESEND_API_KEY": "",
            "RATE_LIMIT_ENABLED": False,
        }
    )
    yield app
    app.extensions["notifier"].shutdown(wait=True)
    app.extensions["engine"].dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session_factory(app):
    return app.extensions["session_factory"]


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seed(session_factory):
    """Insert a campaign with prizes; returns the committed Campaign."""

    def _seed(
        prizes: Sequence[dict[str, Any]],
        *,
        slug: str = "spring-sale",
        name: str = "Spring Sale",
        is_active: bool = True,
    ) -> Campaign:
        with session_factory() as s:
            campaign = Campaign(slug=slug, name=name, is_active=is_active)
            s.add(campaign)
            s.flush()
            for position, p in enumerate(prizes):
                s.add(
                    Prize(
                        campaign_id=campaign.id,
                        name=p["name"],
                        probability=p["probability"],
                        color=p.get("color", "#FF6B00"),
                        total_quantity=p.get("total_quantity"),
                        awarded_count=p.get("awarded_count", 0),
                        sort_order=p.get("sort_order", position),
                    )
                )
            s.commit()
            return campaign

    return _seed


@pytest.fixture
def notifier():
    return RecordingNotifier()
