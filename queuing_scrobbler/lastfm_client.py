import logging
import time
from typing import Callable, Protocol

import pylast

from queuing_scrobbler.responses import NowPlayingResponse, RatingResponse, Response, ScrobbleResponse
from queuing_scrobbler.state import Rating, Track

log = logging.getLogger("lastfm")

# Custom error classes so callers can branch
class LastFMError(Exception):
    retryable = False

class LastFMAuthError(LastFMError): ...
class LastFMRateLimitError(LastFMError):
    retryable = True
class LastFMNetworkError(LastFMError):
    retryable = True
class LastFMServiceError(LastFMError):
    retryable = True
class LastFMUnknownError(LastFMError): ...

# 9=Invalid session, 4=Auth failed, 14=Token expired
AUTH_ERROR_CODES = (4, 9, 14)
RATE_LIMIT_ERROR_CODES = (29,)
# 8=Operation failed, 11=Service offline, 16=Temporarily unavailable
TRANSIENT_ERROR_CODES = (8, 11, 16)

# Process-wide proxy, applied to every client before each call
_proxy: str | None = None


def set_proxy(proxy: str | None) -> None:
    global _proxy
    _proxy = proxy or None


def get_proxy() -> str | None:
    return _proxy


class RemoteClient(Protocol):
    """The calls QueuingScrobbler drains its queues against."""

    def now_playing(self, track: Track) -> Response: ...
    def scrobble(self, track: Track) -> Response: ...
    def love(self, track: Track) -> Response: ...
    def unlove(self, track: Track) -> Response: ...
    def ban(self, track: Track) -> Response: ...
    def unban(self, track: Track) -> Response: ...


def _error_code(e: pylast.WSError) -> int | None:
    try:
        return int(e.get_id())
    except (TypeError, ValueError):
        return None


class LastFMClient:
    """Thin wrapper over pylast for now-playing, scrobbling and track ratings."""

    def __init__(self, api_key: str, api_secret: str, session_key: str | None,
                 username: str | None = None, password_md5: str | None = None):
        if session_key:
            log.info("Using Last.fm session key auth")
            self.network = pylast.LastFMNetwork(
                api_key=api_key,
                api_secret=api_secret,
                session_key=session_key,
            )
        elif username and password_md5:
            log.info("Using Last.fm username + MD5 password auth")
            self.network = pylast.LastFMNetwork(
                api_key=api_key,
                api_secret=api_secret,
                username=username,
            )
        else:
            raise ValueError("Missing Last.fm credentials")
        self._applied_proxy: str | None = None
        self._apply_proxy()

        if not session_key:
            # Handshake after the proxy is in place
            self.network.session_key = pylast.SessionKeyGenerator(self.network).get_session_key(
                username, password_md5
            )

    def _apply_proxy(self) -> None:
        if _proxy == self._applied_proxy:
            return
        if _proxy:
            self.network.enable_proxy(_proxy)
        else:
            self.network.disable_proxy()
        self._applied_proxy = _proxy

    def _call(self, action: str, fn: Callable[[], object], make: Callable[..., Response]) -> Response:
        """Run one web-service call and turn its outcome into a response.

        Remote errors that only concern this item come back as a response
        with error_code set. Auth, rate-limit, service-outage and transport
        failures raise.
        """
        self._apply_proxy()
        try:
            fn()
        except pylast.WSError as e:
            code = _error_code(e)
            msg = str(e)
            # Map common Last.fm error codes
            if code in AUTH_ERROR_CODES:
                raise LastFMAuthError(msg) from e
            if code in RATE_LIMIT_ERROR_CODES:
                raise LastFMRateLimitError(msg) from e
            if code in TRANSIENT_ERROR_CODES:
                raise LastFMServiceError(msg) from e
            log.debug("%s rejected: code=%s msg=%s", action, code, msg)
            return make(error_code=code, error_message=msg)
        except (pylast.NetworkError, pylast.MalformedResponseError) as e:
            raise LastFMNetworkError(str(e)) from e
        except Exception as e:
            raise LastFMUnknownError(f"Last.fm {action} failed: {e}") from e
        return make()

    def _track(self, track: Track) -> pylast.Track:
        return self.network.get_track(track.artist, track.title)

    # -------- RemoteClient --------
    def now_playing(self, track: Track) -> Response:
        def send():
            self.network.update_now_playing(
                artist=track.artist, title=track.title, album=track.album, duration=track.duration
            )
        return self._call("now_playing", send,
                          lambda **kw: NowPlayingResponse(track=track, **kw))

    def scrobble(self, track: Track) -> Response:
        """Submit a scrobble; a track without a start timestamp is stamped with the current time."""
        timestamp = track.timestamp if track.timestamp is not None else int(time.time())

        def send():
            self.network.scrobble(
                artist=track.artist, title=track.title, album=track.album,
                duration=track.duration, timestamp=timestamp,
            )
        return self._call("scrobble", send,
                          lambda **kw: ScrobbleResponse(track=track, **kw))

    def _rate(self, track: Track, rating: Rating) -> Response:
        def send():
            t = self._track(track)
            if rating is Rating.love:
                t.love()
            elif rating is Rating.unlove:
                t.unlove()
            else:
                # pylast has no wrappers for track.ban / track.unban
                t._request(f"track.{rating.name}")
        return self._call(rating.name, send,
                          lambda **kw: RatingResponse(track=track, rating=rating, **kw))

    def love(self, track: Track) -> Response:
        return self._rate(track, Rating.love)

    def unlove(self, track: Track) -> Response:
        return self._rate(track, Rating.unlove)

    def ban(self, track: Track) -> Response:
        return self._rate(track, Rating.ban)

    def unban(self, track: Track) -> Response:
        return self._rate(track, Rating.unban)
