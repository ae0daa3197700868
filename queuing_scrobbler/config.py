import os
import logging
from dataclasses import dataclass
from typing import Iterable

from queuing_scrobbler.lastfm_client import LastFMClient
from queuing_scrobbler.notifier import (
    GotifyNotifier, Notifier, Sender, alert_failures, from_env as webhook_notifier_from_env, gotify_from_env,
)
from queuing_scrobbler.responses import Response
from queuing_scrobbler.scrobbler import QueuingScrobbler

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# -------------------------
# Configuration via ENV VARS
# -------------------------
@dataclass(frozen=True)
class Settings:
    api_key: str | None
    api_secret: str | None
    session_key: str | None = None
    username: str | None = None
    password_md5: str | None = None
    proxy: str | None = None
    log_level: str = "INFO"
    throw_on_error: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_key=os.getenv("LASTFM_API_KEY"),
            api_secret=os.getenv("LASTFM_API_SECRET"),
            session_key=os.getenv("LASTFM_SESSION_KEY"),
            username=os.getenv("LASTFM_USERNAME"),
            password_md5=os.getenv("LASTFM_PASSWORD_MD5"),
            proxy=os.getenv("LASTFM_PROXY"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            throw_on_error=_env_bool("PROCESS_THROW_ON_ERROR"),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        force=True,  # ensure our config is used even if libs pre-configure logging
    )


def build_scrobbler(settings: Settings) -> QueuingScrobbler:
    """Wire a QueuingScrobbler from settings and apply the process-wide proxy."""
    if not settings.api_key or not settings.api_secret:
        raise ValueError("LASTFM_API_KEY and LASTFM_API_SECRET are required")
    QueuingScrobbler.set_web_proxy(settings.proxy)

    client = None
    if not settings.session_key and settings.username and settings.password_md5:
        # The client trades username + password for a session key, through the proxy set above
        client = LastFMClient(
            api_key=settings.api_key,
            api_secret=settings.api_secret,
            session_key=None,
            username=settings.username,
            password_md5=settings.password_md5,
        )
    scrobbler = QueuingScrobbler(settings.api_key, settings.api_secret, settings.session_key, client=client)
    if client is not None:
        scrobbler.set_session_key(client.network.session_key)
    return scrobbler


def build_notifiers() -> list[Notifier | GotifyNotifier]:
    # ok if NOTIFY_WEBHOOK_URL or GOTIFY_URL/TOKEN are empty; send() ignores them
    return [webhook_notifier_from_env(), gotify_from_env()]


def bootstrap(settings: Settings | None = None) -> tuple[QueuingScrobbler, list[Notifier | GotifyNotifier]]:
    """Startup for an embedding app: logging at LOG_LEVEL, then the scrobbler and notifiers."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    return build_scrobbler(settings), build_notifiers()


def drain(scrobbler: QueuingScrobbler, settings: Settings,
          notifiers: Iterable[Sender] = ()) -> list[Response] | None:
    """One process() pass with the configured error policy.

    Failures are reported to the notifiers and retryable ones are queued
    again for the next pass. Call this from the embedder's own timer.
    """
    results = scrobbler.process(throw_on_error=settings.throw_on_error)
    if results:
        alert_failures(notifiers, results)
        scrobbler.resubmit(results)
    return results
