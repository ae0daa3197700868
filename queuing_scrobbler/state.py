from dataclasses import dataclass
from enum import Enum

# -------------------------
# Stateless identity for a track
# -------------------------
@dataclass(frozen=True)
class Track:
    artist: str | None
    title: str | None
    album: str | None = None
    duration: int | None = None   # seconds
    timestamp: int | None = None  # unix seconds the play started


class Rating(Enum):
    ban = 0
    love = 1
    unban = 2
    unlove = 3


@dataclass(frozen=True)
class RatingEvent:
    """A rating action waiting in the rating queue."""
    track: Track
    rating: Rating
