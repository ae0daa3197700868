"""Tests for webhook/Gotify notifiers and drain failure alerts."""

from unittest.mock import MagicMock

import pytest
import requests

from queuing_scrobbler import notifier
from queuing_scrobbler.notifier import GotifyNotifier, Notifier, alert_failures, summarize
from queuing_scrobbler.responses import NowPlayingResponse, RatingResponse, ScrobbleResponse
from queuing_scrobbler.state import Rating, Track

TRACK = Track(artist="Autechre", title="Gantz Graf")


@pytest.fixture
def post(monkeypatch):
    mock = MagicMock()
    monkeypatch.setattr(notifier.requests, "post", mock)
    return mock


class TestNotifier:
    def test_posts_json(self, post):
        Notifier("https://hooks.example/x ", app_tag="tag").send("error", "Title", "msg", {"a": 1})

        post.assert_called_once_with(
            "https://hooks.example/x",
            json={"level": "ERROR", "title": "tag: Title", "message": "msg", "extra": {"a": 1}},
            headers=None,
            timeout=5,
        )

    def test_unconfigured_is_silent(self, post):
        Notifier(None).send("ERROR", "t", "m")
        post.assert_not_called()

    def test_below_min_level_is_dropped(self, post):
        Notifier("https://hooks.example/x", min_level="ERROR").send("WARNING", "t", "m")
        post.assert_not_called()

    def test_send_failure_is_swallowed(self, post):
        post.side_effect = requests.ConnectionError("down")
        Notifier("https://hooks.example/x").send("ERROR", "t", "m")


class TestGotify:
    def test_posts_message(self, post):
        GotifyNotifier("http://nas:8080/", "tok", default_priority=7).send("WARNING", "t", "m")

        post.assert_called_once_with(
            "http://nas:8080/message",
            json={"title": "Last.fm queue: t", "message": "m", "priority": 7},
            headers={"X-Gotify-Key": "tok"},
            timeout=5,
        )

    def test_requires_url_and_token(self, post):
        GotifyNotifier("http://nas:8080", None).send("ERROR", "t", "m")
        post.assert_not_called()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GOTIFY_URL", "http://nas:8080")
        monkeypatch.setenv("GOTIFY_TOKEN", "tok")
        monkeypatch.setenv("GOTIFY_PRIORITY", "2")
        g = notifier.gotify_from_env()
        assert (g.url, g.token, g.default_priority) == ("http://nas:8080", "tok", 2)


def test_summarize_counts_and_failures():
    responses = [
        NowPlayingResponse(track=TRACK),
        ScrobbleResponse(track=TRACK, exception=ConnectionError("reset")),
        RatingResponse(track=TRACK, rating=Rating.love, error_code=6, error_message="Track not found"),
    ]

    summary = summarize(responses)

    assert (summary["now_playing"], summary["scrobble"], summary["rating"]) == (1, 1, 1)
    assert summary["failed"] == [
        "scrobble Autechre - Gantz Graf: reset",
        "rating Autechre - Gantz Graf: code 6: Track not found",
    ]


class TestAlertFailures:
    def test_alerts_every_notifier(self):
        a, b = MagicMock(), MagicMock()
        sent = alert_failures([a, b], [ScrobbleResponse(track=TRACK, exception=OSError("x"))])

        assert sent
        a.send.assert_called_once()
        level, title, message, extra = a.send.call_args.args
        assert level == "WARNING"
        assert message == "1 queued Last.fm calls failed"
        b.send.assert_called_once()

    @pytest.mark.parametrize("responses", [None, [], [ScrobbleResponse(track=TRACK)]])
    def test_nothing_to_report(self, responses):
        n = MagicMock()
        assert not alert_failures([n], responses)
        n.send.assert_not_called()
