"""
Queuing scrobbler.

Producers on any thread call now_playing(), scrobble() and the rating
methods; those only append to a queue and return. A single driver (a timer,
a poll loop) calls process() to send everything queued to Last.fm and
collect one response per item.
"""

from __future__ import annotations
import logging
from typing import Callable, Iterable

from queuing_scrobbler import lastfm_client
from queuing_scrobbler.event_queue import EventQueue
from queuing_scrobbler.lastfm_client import LastFMClient, LastFMError, RemoteClient
from queuing_scrobbler.responses import NowPlayingResponse, RatingResponse, Response, ScrobbleResponse
from queuing_scrobbler.state import Rating, RatingEvent, Track

log = logging.getLogger("scrobbler")


class QueuingScrobbler:
    """Scrobbles to in-memory queues until the application is ready to process them.

    Enqueue methods are thread-safe and never validate the track; bad tracks
    are rejected by Last.fm when process() runs. process() itself is a
    single-consumer operation: never run two at once.
    """

    def __init__(self, api_key: str, api_secret: str, session_key: str | None = None,
                 *, client: RemoteClient | None = None):
        if not api_key:
            raise ValueError("api_key is required")
        if not api_secret:
            raise ValueError("api_secret is required")

        self.api_key = api_key
        self.api_secret = api_secret
        self.session_key = session_key or None

        self._now_playing: EventQueue[Track] = EventQueue()
        self._scrobbles: EventQueue[Track] = EventQueue()
        self._ratings: EventQueue[RatingEvent] = EventQueue()

        self._client = client
        # Only a client built here follows session key changes
        self._owns_client = client is None
        if self._owns_client and self.session_key:
            self._client = LastFMClient(api_key, api_secret, self.session_key)

    @staticmethod
    def set_web_proxy(proxy: str | None) -> None:
        lastfm_client.set_proxy(proxy)

    def set_session_key(self, session_key: str) -> None:
        """Supply or replace the session key; queued items go out with it on the next process().

        A Last.fm client built by this scrobbler is rebuilt with the new key.
        An injected client is kept as it is.
        """
        if not session_key:
            raise ValueError("session_key is required")
        changed = session_key != self.session_key
        self.session_key = session_key
        if self._owns_client and (changed or self._client is None):
            self._client = LastFMClient(self.api_key, self.api_secret, session_key)

    @property
    def base_scrobbler(self) -> RemoteClient | None:
        return self._client

    # -------- queue depth --------
    @property
    def now_playing_queue_count(self) -> int:
        return self._now_playing.size()

    @property
    def scrobble_queue_count(self) -> int:
        return self._scrobbles.size()

    @property
    def rating_queue_count(self) -> int:
        return self._ratings.size()

    @property
    def queued_count(self) -> int:
        return self.now_playing_queue_count + self.scrobble_queue_count + self.rating_queue_count

    # -------- producer API --------
    def now_playing(self, track: Track) -> None:
        self._now_playing.enqueue(track)

    def scrobble(self, track: Track) -> None:
        self._scrobbles.enqueue(track)

    def love(self, track: Track) -> None:
        self._ratings.enqueue(RatingEvent(track, Rating.love))

    def unlove(self, track: Track) -> None:
        self._ratings.enqueue(RatingEvent(track, Rating.unlove))

    def ban(self, track: Track) -> None:
        self._ratings.enqueue(RatingEvent(track, Rating.ban))

    def unban(self, track: Track) -> None:
        self._ratings.enqueue(RatingEvent(track, Rating.unban))

    # -------- consumer API --------
    def process(self, throw_on_error: bool = False) -> list[Response] | None:
        """Synchronously send everything queued and return one response per item.

        Queues are drained in a fixed order: now playing, then scrobbles, then
        ratings. Each item is removed before it is sent and is never put back.

        throw_on_error: when True the first exception raised by a call is
        re-raised and processing stops; items not yet dequeued stay queued and
        the responses gathered so far are lost. When False (the default) the
        exception is attached to a failure response for that item and
        processing continues.

        Returns None without touching the queues when there is no session key.
        """
        if not self.session_key or self._client is None:
            log.debug("No Last.fm session; skipping process (queued=%s)", self.queued_count)
            return None

        client = self._client
        results: list[Response] = []

        log.debug("Processing now playing queue (size=%s)", self._now_playing.size())
        for track in self._now_playing.drain_iter():
            results.append(self._send(
                "now_playing", lambda: client.now_playing(track),
                lambda e: NowPlayingResponse(track=track, exception=e),
                throw_on_error,
            ))

        # TODO: submit scrobbles in batches of up to 50 (track.scrobble accepts arrays)
        log.debug("Processing scrobble queue (size=%s)", self._scrobbles.size())
        for track in self._scrobbles.drain_iter():
            results.append(self._send(
                "scrobble", lambda: client.scrobble(track),
                lambda e: ScrobbleResponse(track=track, exception=e),
                throw_on_error,
            ))

        log.debug("Processing rating queue (size=%s)", self._ratings.size())
        for event in self._ratings.drain_iter():
            results.append(self._send(
                event.rating.name, lambda: self._rate(client, event),
                lambda e: RatingResponse(track=event.track, rating=event.rating, exception=e),
                throw_on_error,
            ))

        if results:
            failed = sum(1 for r in results if r.failed)
            log.info("Processed %s queued items (%s failed). Still queued: %s",
                     len(results), failed, self.queued_count)
        return results

    @staticmethod
    def _rate(client: RemoteClient, event: RatingEvent) -> Response:
        if event.rating is Rating.ban:
            return client.ban(event.track)
        if event.rating is Rating.love:
            return client.love(event.track)
        if event.rating is Rating.unban:
            return client.unban(event.track)
        if event.rating is Rating.unlove:
            return client.unlove(event.track)
        raise ValueError(f"Unknown rating {event.rating!r}")

    @staticmethod
    def _send(action: str, call: Callable[[], Response],
              on_error: Callable[[Exception], Response], throw_on_error: bool) -> Response:
        try:
            return call()
        except Exception as e:
            if throw_on_error:
                raise
            log.warning("%s failed: %s", action, e)
            return on_error(e)

    # -------- retries --------
    def resubmit(self, responses: Iterable[Response], only_retryable: bool = True) -> int:
        """Put the items behind failed responses back in their queues.

        With only_retryable (the default) just the items whose call raised a
        retryable LastFMError (network trouble, rate limiting, a Last.fm
        outage) are queued again; otherwise every failed response is. Returns how many were queued.
        """
        count = 0
        for r in responses:
            if not r.failed:
                continue
            if only_retryable and not (isinstance(r.exception, LastFMError) and r.exception.retryable):
                continue
            if isinstance(r, NowPlayingResponse):
                self.now_playing(r.track)
            elif isinstance(r, ScrobbleResponse):
                self.scrobble(r.track)
            elif isinstance(r, RatingResponse):
                self._ratings.enqueue(RatingEvent(r.track, r.rating))
            else:
                continue
            count += 1
        if count:
            log.info("Resubmitted %s failed items. Queue size now %s", count, self.queued_count)
        return count
