"""Public campaign routes."""

from __future__ import annotations

from flask import Blueprint, request

from spinwin.db import get_session
from spinwin.schemas.campaign import PublicCampaignSchema
from spinwin.schemas.play import UnsubscribeQuerySchema
from spinwin.services.campaign_service import CampaignService
from spinwin.services.participant_service import ParticipantService
from spinwin.utils.responses import ok

campaigns_bp = Blueprint("campaigns", __name__)

_public_schema = PublicCampaignSchema()
_unsubscribe_schema = UnsubscribeQuerySchema()
_campaigns = CampaignService()
_participants = ParticipantService()


@campaigns_bp.get("/campaigns/<string:slug>")
def get_campaign(slug: str):
    """Campaign data for the play page."""

    campaign = _campaigns.get_public_campaign(get_session(), slug)
    return ok(_public_schema.dump(campaign))


@campaigns_bp.get("/unsubscribe")
def unsubscribe():
    """Opt an email out of further campaign mail (link from play emails)."""

    data = _unsubscribe_schema.load(request.args.to_dict())
    _participants.unsubscribe(get_session(), int(data["campaign"]), str(data["email"]))
    return ok({"unsubscribed": True})
