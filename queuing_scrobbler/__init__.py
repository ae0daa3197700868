"""Queue Last.fm now-playing, scrobble and rating calls and send them in one synchronous drain."""

from queuing_scrobbler.event_queue import EventQueue
from queuing_scrobbler.lastfm_client import (
    LastFMAuthError,
    LastFMClient,
    LastFMError,
    LastFMNetworkError,
    LastFMRateLimitError,
    LastFMServiceError,
    LastFMUnknownError,
    RemoteClient,
)
from queuing_scrobbler.responses import (
    NowPlayingResponse,
    RatingResponse,
    Response,
    ScrobbleResponse,
)
from queuing_scrobbler.scrobbler import QueuingScrobbler
from queuing_scrobbler.state import Rating, RatingEvent, Track

__version__ = "0.1.0"

__all__ = [
    # Core
    "QueuingScrobbler",
    "EventQueue",
    "Track",
    "Rating",
    "RatingEvent",
    # Responses
    "Response",
    "NowPlayingResponse",
    "ScrobbleResponse",
    "RatingResponse",
    # Remote client
    "RemoteClient",
    "LastFMClient",
    "LastFMError",
    "LastFMAuthError",
    "LastFMRateLimitError",
    "LastFMNetworkError",
    "LastFMServiceError",
    "LastFMUnknownError",
    # Meta
    "__version__",
]
