"""Repository layer for Campaign persistence."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from spinwin.models.campaign import Campaign


class CampaignRepository:
    """Lookups and writes for campaigns."""

    def get_active_by_slug(self, session: Session, slug: str) -> Campaign | None:
        stmt = select(Campaign).where(Campaign.slug == slug, Campaign.is_active.is_(True))
        return session.scalars(stmt).one_or_none()

    def get_by_id(self, session: Session, campaign_id: int) -> Campaign | None:
        return session.get(Campaign, campaign_id)

    def slug_exists(self, session: Session, slug: str) -> bool:
        stmt = select(Campaign.id).where(Campaign.slug == slug)
        return session.scalars(stmt).first() is not None

    def create(self, session: Session, *, slug: str, name: str, description: str | None) -> Campaign:
        campaign = Campaign(slug=slug, name=name, description=description, is_active=True)
        session.add(campaign)
        session.flush()  # assign PK
        return campaign

    def set_active(self, session: Session, campaign_id: int, is_active: bool) -> int:
        stmt = update(Campaign).where(Campaign.id == campaign_id).values(is_active=is_active)
        return int(session.execute(stmt).rowcount or 0)
