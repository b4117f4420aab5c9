"""Flask application package."""

from __future__ import annotations

import atexit
from typing import Any

from dotenv import load_dotenv
from flask import Flask


def create_app(config_overrides: dict[str, Any] | None = None) -> Flask:
    """Application factory.

    Args:
        config_overrides: Values applied on top of the environment config
            (tests use it to point at a throwaway database).

    Returns:
        Configured Flask application.
    """
    load_dotenv()

    from spinwin.config import get_config
    from spinwin.db import init_db
    from spinwin.error_handlers import register_error_handlers
    from spinwin.logging_config import configure_logging
    from spinwin.routes.campaigns import campaigns_bp
    from spinwin.routes.health import health_bp
    from spinwin.routes.play import play_bp
    from spinwin.services.notification_service import build_notifier
    from spinwin.services.play_service import PlayService
    from spinwin.utils.rate_limit import SlidingWindowRateLimiter

    app = Flask(__name__)
    app.config.from_object(get_config())
    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(app)
    init_db(app)
    register_error_handlers(app)

    notifier = build_notifier(app.config)
    atexit.register(notifier.shutdown, wait=False)
    app.extensions["notifier"] = notifier
    app.extensions["play_service"] = PlayService(notifier=notifier)

    if app.config.get("RATE_LIMIT_ENABLED"):
        app.extensions["rate_limiter"] = SlidingWindowRateLimiter(
            max_requests=int(app.config["RATE_LIMIT_MAX_REQUESTS"]),
            window_seconds=float(app.config["RATE_LIMIT_WINDOW_SECONDS"]),
        )

    app.register_blueprint(health_bp)
    app.register_blueprint(play_bp, url_prefix="/api")
    app.register_blueprint(campaigns_bp, url_prefix="/api")

    return app
