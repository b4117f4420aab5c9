"""Health check routes."""

from __future__ import annotations

import logging

from flask import Blueprint
from sqlalchemy import text

from spinwin.db import get_session
from spinwin.utils.responses import fail, ok

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health_check():
    """Liveness plus a round trip to the database."""

    try:
        get_session().execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check database probe failed")
        return fail("unavailable", "Database unreachable", 503)
    return ok({"status": "ok", "database": "ok"})
