"""
Per-item outcomes of a drain.

Each response echoes the track it was produced for. A remote error reported
by Last.fm lands in error_code/error_message; a local failure (the call
raised) lands in exception and never carries an error_code.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import ClassVar, Literal, Union

from queuing_scrobbler.state import Rating, Track


@dataclass(frozen=True)
class _BaseResponse:
    track: Track
    error_code: int | None = None
    error_message: str | None = None
    exception: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.exception is None and self.error_code is None

    @property
    def failed(self) -> bool:
        return not self.ok


@dataclass(frozen=True)
class NowPlayingResponse(_BaseResponse):
    kind: ClassVar[Literal["now_playing"]] = "now_playing"


@dataclass(frozen=True)
class ScrobbleResponse(_BaseResponse):
    kind: ClassVar[Literal["scrobble"]] = "scrobble"


@dataclass(frozen=True, kw_only=True)
class RatingResponse(_BaseResponse):
    rating: Rating
    kind: ClassVar[Literal["rating"]] = "rating"


Response = Union[NowPlayingResponse, ScrobbleResponse, RatingResponse]
