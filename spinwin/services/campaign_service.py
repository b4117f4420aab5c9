"""Service layer for campaign authoring and the public play page."""

from __future__ import annotations

import secrets
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from spinwin.errors import AppError, CampaignNotFoundError, NotFoundError
from spinwin.models.campaign import Campaign
from spinwin.models.prize import Prize
from spinwin.repositories.campaign_repository import CampaignRepository
from spinwin.repositories.prize_repository import PrizeRepository
from spinwin.services.lottery import PrizeSnapshot, total_segments_for

SLUG_ALPHABET = "useandom-26T198340PX75pxJACKVERYMINDBUSHWOLF_GQZbfghjklqvwyzrict"
SLUG_LENGTH = 10
NO_WIN_LABEL = "Try Again"
NO_WIN_COLOR = "#6B7280"


def generate_slug(length: int = SLUG_LENGTH) -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class WheelSegment:
    index: int
    label: str
    color: str
    is_prize: bool


def build_wheel(prizes: Sequence[Prize]) -> list[WheelSegment]:
    """Two segments per prize: the prize on even indices, "no win" on odd ones."""

    segments: list[WheelSegment] = []
    for prize in prizes:
        segments.append(WheelSegment(index=len(segments), label=prize.name, color=prize.color, is_prize=True))
        segments.append(WheelSegment(index=len(segments), label=NO_WIN_LABEL, color=NO_WIN_COLOR, is_prize=False))
    return segments


class CampaignService:
    """Campaign use-cases."""

    def __init__(
        self,
        campaigns: CampaignRepository | None = None,
        prizes: PrizeRepository | None = None,
        max_slug_attempts: int = 5,
    ) -> None:
        self._campaigns = campaigns or CampaignRepository()
        self._prizes = prizes or PrizeRepository()
        self._max_slug_attempts = max_slug_attempts

    @staticmethod
    def _ordered(prizes: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        # Missing sort_order falls back to list position.
        out = []
        for position, prize in enumerate(prizes):
            item = dict(prize)
            if item.get("sort_order") is None:
                item["sort_order"] = position
            out.append(item)
        return out

    def _unique_slug(self, session: Session) -> str:
        for _ in range(self._max_slug_attempts):
            slug = generate_slug()
            if not self._campaigns.slug_exists(session, slug):
                return slug
        raise AppError(code="slug_exhausted", message="Could not allocate a campaign slug", status_code=500)

    def create_campaign(self, session: Session, data: dict[str, Any]) -> Campaign:
        """Create a campaign and its prizes from CampaignCreateSchema output."""

        campaign = self._campaigns.create(
            session,
            slug=self._unique_slug(session),
            name=str(data["name"]),
            description=data.get("description"),
        )
        self._prizes.create_many(session, campaign.id, self._ordered(data["prizes"]))
        return campaign

    def replace_prizes(self, session: Session, campaign_id: int, prizes: Sequence[dict[str, Any]]) -> list[Prize]:
        """Drop the campaign's prizes and insert the given ones (award counts restart at 0)."""

        if self._campaigns.get_by_id(session, campaign_id) is None:
            raise NotFoundError(message=f"Campaign {campaign_id} not found")
        self._prizes.delete_for_campaign(session, campaign_id)
        return self._prizes.create_many(session, campaign_id, self._ordered(prizes))

    def set_active(self, session: Session, campaign_id: int, is_active: bool) -> None:
        if self._campaigns.set_active(session, campaign_id, is_active) == 0:
            raise NotFoundError(message=f"Campaign {campaign_id} not found")

    def get_public_campaign(self, session: Session, slug: str) -> dict[str, Any]:
        """Active campaign as shown on the play page, with its wheel."""

        campaign = self._campaigns.get_active_by_slug(session, slug)
        if campaign is None:
            raise CampaignNotFoundError()

        prizes = self._prizes.list_for_campaign(session, campaign.id)
        return {
            "id": campaign.id,
            "slug": campaign.slug,
            "name": campaign.name,
            "description": campaign.description,
            "prizes": [
                {
                    "id": p.id,
                    "name": p.name,
                    "color": p.color,
                    "sort_order": p.sort_order,
                    "available": PrizeSnapshot.from_prize(p).is_available,
                }
                for p in prizes
            ],
            "segments": build_wheel(prizes),
            "total_segments": total_segments_for(prizes),
        }
