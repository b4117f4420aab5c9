"""Play routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from spinwin.db import get_session
from spinwin.errors import RateLimitedError
from spinwin.schemas.play import PlayRequestSchema, PlayResponseSchema
from spinwin.services.play_service import PlayService
from spinwin.utils.rate_limit import SlidingWindowRateLimiter, client_ip
from spinwin.utils.responses import ok

play_bp = Blueprint("play", __name__)

_request_schema = PlayRequestSchema()
_response_schema = PlayResponseSchema()


def _check_rate_limit() -> None:
    limiter: SlidingWindowRateLimiter | None = current_app.extensions.get("rate_limiter")
    if limiter is not None and not limiter.allow(client_ip(request)):
        raise RateLimitedError(retry_after=int(limiter.window_seconds))


@play_bp.post("/play")
def play():
    """Spin the wheel once for an email."""

    _check_rate_limit()

    payload = request.get_json(silent=True) or {}
    data = _request_schema.load(payload)

    service: PlayService = current_app.extensions["play_service"]
    outcome = service.play(get_session(), data["campaign_slug"], data["email"])
    return ok(_response_schema.dump(outcome))
