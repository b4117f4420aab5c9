"""ORM models."""

from spinwin.models.campaign import Campaign
from spinwin.models.participant import Participant
from spinwin.models.prize import Prize

__all__ = ["Campaign", "Participant", "Prize"]
