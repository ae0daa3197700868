"""Pytest configuration, Hypothesis profiles and a recording fake Last.fm client."""

import pytest
from hypothesis import settings
from hypothesis import strategies as st

from queuing_scrobbler.responses import NowPlayingResponse, RatingResponse, ScrobbleResponse
from queuing_scrobbler.scrobbler import QueuingScrobbler
from queuing_scrobbler.state import Rating, Track

# Register Hypothesis profiles
settings.register_profile("ci", max_examples=100)
settings.register_profile("dev", max_examples=20)

# Load dev profile by default, CI can override via --hypothesis-profile=ci
settings.load_profile("dev")


@st.composite
def tracks(draw: st.DrawFn) -> Track:
    """Generate arbitrary tracks; nothing is validated before process()."""
    return Track(
        artist=draw(st.text(max_size=20)),
        title=draw(st.text(max_size=20)),
        album=draw(st.none() | st.text(max_size=20)),
        duration=draw(st.none() | st.integers(min_value=0, max_value=3600)),
        timestamp=draw(st.none() | st.integers(min_value=0, max_value=2_000_000_000)),
    )


class FakeClient:
    """RemoteClient that records every call and raises on chosen calls.

    fail_on holds 1-indexed positions across all calls made to this client.
    """

    def __init__(self, fail_on: set[int] | None = None, error: Exception | None = None):
        self.calls: list[tuple[str, Track]] = []
        self.fail_on = fail_on or set()
        self.error = error or ConnectionError("simulated outage")

    def _record(self, method: str, track: Track) -> None:
        self.calls.append((method, track))
        if len(self.calls) in self.fail_on:
            raise self.error

    def now_playing(self, track):
        self._record("now_playing", track)
        return NowPlayingResponse(track=track)

    def scrobble(self, track):
        self._record("scrobble", track)
        return ScrobbleResponse(track=track)

    def love(self, track):
        self._record("love", track)
        return RatingResponse(track=track, rating=Rating.love)

    def unlove(self, track):
        self._record("unlove", track)
        return RatingResponse(track=track, rating=Rating.unlove)

    def ban(self, track):
        self._record("ban", track)
        return RatingResponse(track=track, rating=Rating.ban)

    def unban(self, track):
        self._record("unban", track)
        return RatingResponse(track=track, rating=Rating.unban)


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def scrobbler(client: FakeClient) -> QueuingScrobbler:
    return QueuingScrobbler("key", "secret", "session", client=client)


def make_track(i: int) -> Track:
    return Track(artist=f"Artist {i}", title=f"Title {i}")
