"""
Failure alerts for drains.

- Notifier: POST with a JSON body to NOTIFY_WEBHOOK_URL.
- GotifyNotifier: POST /message with an app token (GOTIFY_URL, GOTIFY_TOKEN,
  GOTIFY_PRIORITY, GOTIFY_MIN_LEVEL).
- Both respect a minimum level and are best-effort: failures are logged but
  never raised.
"""

from __future__ import annotations
import os
import logging
from typing import Iterable, Protocol

import requests

from queuing_scrobbler.responses import Response

log = logging.getLogger("notifier")

_LEVELS = {
    "DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50
}
DEFAULT_APP_TAG = "Last.fm queue"


class Sender(Protocol):
    def send(self, level: str, title: str, message: str, extra: dict | None = None) -> None: ...


class _LeveledNotifier:
    """Shared min-level gate and best-effort POST for the notifiers below."""

    def __init__(self, min_level: str, app_tag: str):
        self.min_level = _LEVELS.get(min_level.upper(), 30)
        self.app_tag = app_tag

    def configured(self) -> bool:
        raise NotImplementedError

    def wants(self, level: str) -> bool:
        return self.configured() and _LEVELS.get(level.upper(), 30) >= self.min_level

    def _post(self, url: str, body: dict, headers: dict | None = None) -> None:
        try:
            requests.post(url, json=body, headers=headers, timeout=5)
        except requests.RequestException as e:
            log.debug("%s send failed: %s", type(self).__name__, e)


class Notifier(_LeveledNotifier):
    """JSON webhook; Slack/Discord-compatible endpoints accept the same body."""

    def __init__(self, webhook_url: str | None, min_level: str = "WARNING", app_tag: str = DEFAULT_APP_TAG):
        super().__init__(min_level, app_tag)
        self.webhook_url = webhook_url.strip() if webhook_url else None

    def configured(self) -> bool:
        return bool(self.webhook_url)

    def send(self, level: str, title: str, message: str, extra: dict | None = None) -> None:
        if not self.wants(level):
            return
        self._post(self.webhook_url, {
            "level": level.upper(),
            "title": f"{self.app_tag}: {title}",
            "message": message,
            "extra": extra or {},
        })


class GotifyNotifier(_LeveledNotifier):
    def __init__(self, url: str | None, token: str | None, min_level: str = "WARNING",
                 default_priority: int = 5, app_tag: str = DEFAULT_APP_TAG):
        super().__init__(min_level, app_tag)
        self.url = url.rstrip("/") if url else None
        self.token = token.strip() if token else None
        self.default_priority = default_priority

    def configured(self) -> bool:
        return bool(self.url and self.token)

    def send(self, level: str, title: str, message: str, extra: dict | None = None) -> None:
        if not self.wants(level):
            return
        self._post(
            f"{self.url}/message",
            {
                "title": f"{self.app_tag}: {title}",
                "message": message if not extra else f"{message}\n\n{extra}",
                "priority": self.default_priority,
            },
            headers={"X-Gotify-Key": self.token},
        )


def from_env() -> Notifier:
    return Notifier(
        webhook_url=os.getenv("NOTIFY_WEBHOOK_URL"),
        min_level=os.getenv("NOTIFY_MIN_LEVEL", "WARNING"),
        app_tag=os.getenv("APP_TAG", DEFAULT_APP_TAG),
    )


def gotify_from_env() -> GotifyNotifier:
    return GotifyNotifier(
        os.getenv("GOTIFY_URL"),
        os.getenv("GOTIFY_TOKEN"),
        min_level=os.getenv("GOTIFY_MIN_LEVEL", "WARNING"),
        default_priority=int(os.getenv("GOTIFY_PRIORITY", "5")),
        app_tag=os.getenv("APP_TAG", DEFAULT_APP_TAG),
    )


def summarize(responses: Iterable[Response]) -> dict:
    """Counts per kind plus a short line for every failure."""
    summary: dict = {"now_playing": 0, "scrobble": 0, "rating": 0, "failed": []}
    for r in responses:
        summary[r.kind] += 1
        if r.failed:
            reason = r.exception if r.exception is not None else f"code {r.error_code}: {r.error_message}"
            summary["failed"].append(f"{r.kind} {r.track.artist} - {r.track.title}: {reason}")
    return summary


def alert_failures(notifiers: Iterable[Sender], responses: Iterable[Response] | None) -> bool:
    """Send one WARNING to every notifier when a drain produced failures. Returns whether it did."""
    if not responses:
        return False
    summary = summarize(responses)
    if not summary["failed"]:
        return False
    message = f"{len(summary['failed'])} queued Last.fm calls failed"
    for n in notifiers:
        n.send("WARNING", "Drain failures", message, summary)
    return True
