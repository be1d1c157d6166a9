import json

import pytest
import requests

from moyofy.providers.youtube.api_manager import APIKeyManager
from moyofy.providers.youtube.search import YouTubeSearcher, parse_duration_seconds


class RecordingSession:
    def __init__(self, payload):
        self.payload = payload
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, dict(params), timeout))
        resp = requests.Response()
        resp.status_code = 200
        resp.url = url
        resp._content = json.dumps(self.payload).encode("utf-8")
        return resp


def make_searcher(payload):
    searcher = YouTubeSearcher(APIKeyManager(["k1"]), max_results=15, timeout=8.0)
    searcher._session = RecordingSession(payload)
    return searcher


@pytest.mark.parametrize(
    "iso, seconds",
    [("PT4M13S", 253), ("PT1H2M3S", 3723), ("PT45S", 45), ("", 0), ("garbage", 0)],
)
def test_parse_duration_seconds(iso, seconds):
    assert parse_duration_seconds(iso) == seconds


def test_search_request_parameters():
    searcher = make_searcher({"items": [{"id": {"videoId": "abc"}}]})

    assert searcher.search("metallica") == [{"id": {"videoId": "abc"}}]

    url, params, timeout = searcher._session.requests[0]
    assert url.endswith("/search")
    assert params == {
        "part": "snippet",
        "q": "metallica",
        "type": "video",
        "videoCategoryId": "10",
        "maxResults": 15,
        "key": "k1",
    }
    assert timeout == 8.0


def test_search_without_items():
    assert make_searcher({}).search("metallica") == []


def test_fetch_video():
    searcher = make_searcher(
        {
            "items": [
                {
                    "snippet": {"title": "One", "channelTitle": "Metallica"},
                    "status": {"embeddable": False},
                    "contentDetails": {"duration": "PT7M27S"},
                }
            ]
        }
    )

    video = searcher.fetch_video("WM8bTdBs-cw")

    assert video.video_id == "WM8bTdBs-cw"
    assert video.channel_title == "Metallica"
    assert video.embeddable is False
    assert video.duration_seconds == 447


def test_fetch_unknown_video():
    assert make_searcher({"items": []}).fetch_video("zzzzzzzzzzz") is None
