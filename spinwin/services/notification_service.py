"""Play notifications (prize / thanks-for-playing emails).

Notifications happen after the participation is committed and never influence
the play result: the background dispatcher logs delivery failures and drops
them.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from html import escape
from typing import Any, Protocol
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

RESEND_EMAILS_URL = "https://api.resend.com/emails"


@dataclass(frozen=True)
class PlayEvent:
    email: str
    won: bool
    prize_name: str | None
    campaign_name: str
    campaign_id: int


class Notifier(Protocol):
    def notify(self, event: PlayEvent) -> None: ...


def _build_http_session(retries: int, backoff_factor: float) -> requests.Session:
    # POST is retried because every request carries an Idempotency-Key.
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=backoff_factor,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("POST",),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=4, pool_maxsize=4)

    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def unsubscribe_url(app_url: str, email: str, campaign_id: int) -> str:
    return f"{app_url.rstrip('/')}/api/unsubscribe?email={quote(email, safe='')}&campaign={int(campaign_id)}"


def render_subject(event: PlayEvent) -> str:
    if event.won:
        return f"You won: {event.prize_name}!"
    return f"Thanks for playing - {event.campaign_name}"


def render_html(event: PlayEvent, unsubscribe: str) -> str:
    campaign = escape(event.campaign_name)
    link = escape(unsubscribe, quote=True)
    if event.won:
        headline = "You Won!"
        body = (
            f'<p style="margin:0 0 24px;font-size:22px;font-weight:700;color:#18181b">{escape(event.prize_name or "")}</p>'
            '<p style="margin:0 0 24px;color:#4C1D95;font-size:14px;font-weight:600">Show this email to claim your prize</p>'
        )
    else:
        headline = "Thanks for Playing!"
        body = '<p style="margin:0 0 24px;font-size:16px;color:#3f3f46">Better luck next time! We appreciate you participating.</p>'

    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\"></head>"
        "<body style=\"margin:0;padding:32px;background:#f4f4f5;font-family:sans-serif;text-align:center\">"
        f"<h1 style=\"margin:0 0 16px;font-size:24px\">{headline}</h1>"
        f"<p style=\"margin:0 0 8px;color:#71717a;font-size:14px\">{campaign}</p>"
        f"{body}"
        f"<p style=\"margin:0\"><a href=\"{link}\" style=\"color:#a1a1aa;font-size:11px\">Unsubscribe</a></p>"
        "</body></html>"
    )


class ResendNotifier:
    """Send play emails through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        *,
        sender: str,
        app_url: str,
        timeout_seconds: float = 10.0,
        http: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._app_url = app_url
        self._timeout = timeout_seconds
        self._http = http or _build_http_session(retries=2, backoff_factor=0.5)

    def build_payload(self, event: PlayEvent) -> dict[str, Any]:
        return {
            "from": self._sender,
            "to": [event.email],
            "subject": render_subject(event),
            "html": render_html(event, unsubscribe_url(self._app_url, event.email, event.campaign_id)),
        }

    def notify(self, event: PlayEvent) -> None:
        resp = self._http.post(
            RESEND_EMAILS_URL,
            json=self.build_payload(event),
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Idempotency-Key": f"play-{event.campaign_id}-{event.email}",
            },
            timeout=self._timeout,
        )
        resp.raise_for_status()
        logger.info("Play email sent campaign_id=%s won=%s", event.campaign_id, event.won)


class LoggingNotifier:
    """Stand-in used when no mail provider is configured."""

    def notify(self, event: PlayEvent) -> None:
        logger.info(
            "Play event (mail disabled) campaign_id=%s won=%s prize=%s",
            event.campaign_id,
            event.won,
            event.prize_name,
        )


class BackgroundNotifier:
    """Fire-and-forget wrapper running another notifier on a thread pool."""

    def __init__(self, delegate: Notifier, *, max_workers: int = 4, notify_non_winners: bool = False) -> None:
        self._delegate = delegate
        self._notify_non_winners = notify_non_winners
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="spinwin-notify")

    def _deliver(self, event: PlayEvent) -> None:
        try:
            self._delegate.notify(event)
        except Exception:
            logger.exception("Play notification failed campaign_id=%s", event.campaign_id)

    def submit(self, event: PlayEvent) -> Future[None] | None:
        if not event.won and not self._notify_non_winners:
            return None
        return self._executor.submit(self._deliver, event)

    def notify(self, event: PlayEvent) -> None:
        self.submit(event)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


def build_notifier(config: Any) -> BackgroundNotifier:
    """Create the notifier for an app config mapping."""

    api_key = str(config.get("RESEND_API_KEY") or "")
    delegate: Notifier
    if api_key:
        delegate = ResendNotifier(
            api_key,
            sender=str(config.get("MAIL_FROM")),
            app_url=str(config.get("APP_URL")),
        )
    else:
        delegate = LoggingNotifier()

    return BackgroundNotifier(
        delegate,
        max_workers=int(config.get("NOTIFIER_MAX_WORKERS") or 4),
        notify_non_winners=bool(config.get("NOTIFY_NON_WINNERS")),
    )
