"""Custom exceptions for centralized error handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class AppError(Exception):
    """Base application error."""

    code: str
    message: str
    status_code: int
    details: Any | None = None


class NotFoundError(AppError):
    """Resource not found."""

    def __init__(self, message: str = "Not found", details: Any | None = None) -> None:
        super().__init__(code="not_found", message=message, status_code=404, details=details)


class ValidationError(AppError):
    """Input validation error."""

    def __init__(self, message: str = "Validation error", details: Any | None = None) -> None:
        super().__init__(code="validation_error", message=message, status_code=400, details=details)


class CampaignNotFoundError(AppError):
    """Campaign slug is unknown or the campaign is not active."""

    def __init__(self, message: str = "Campaign not found or inactive") -> None:
        super().__init__(code="campaign_not_found", message=message, status_code=404)


class NoPrizesConfiguredError(AppError):
    """Active campaign without any prize to draw from."""

    def __init__(self, message: str = "Campaign has no prizes configured") -> None:
        super().__init__(code="no_prizes_configured", message=message, status_code=400)


class AlreadyPlayedError(AppError):
    """This email already has a participation for the campaign.

    Raised both by the pre-check and by a unique-constraint conflict on insert,
    so callers see the same signal either way.
    """

    def __init__(self) -> None:
        super().__init__(code="already_played", message="This email has already played", status_code=409)


class RateLimitedError(AppError):
    """Too many requests from one client."""

    def __init__(self, retry_after: int, message: str = "Too many requests. Please try again later.") -> None:
        super().__init__(code="rate_limited", message=message, status_code=429)
        self.retry_after = retry_after


class PlayFailedError(AppError):
    """Participation could not be recorded for a reason other than a duplicate."""

    def __init__(self, message: str = "Failed to record participation") -> None:
        super().__init__(code="internal_error", message=message, status_code=500)
