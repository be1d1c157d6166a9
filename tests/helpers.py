import time


def wait_until(predicate, timeout=5.0, interval=0.005):
    """Poll `predicate` until it is truthy or `timeout` seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return bool(predicate())


def video_item(video_id, title, channel, description=""):
    """Shape of one search.list item, as YouTube returns it."""
    return {
        "kind": "youtube#searchResult",
        "id": {"kind": "youtube#video", "videoId": video_id},
        "snippet": {
            "title": title,
            "channelTitle": channel,
            "description": description,
        },
    }


METALLICA_ITEMS = [
    video_item("tAGnKpE4NCI", "Metallica: Master of Puppets (Official Video)", "Metallica"),
    video_item("WM8bTdBs-cw", "Metallica - One (Official Music Video)", "Metallica"),
    video_item("xxxxxxxxxx1", "Top 40 Dance Pop Hits 2024", "Pop Central"),
]


class FakeSearcher:
    """
    Stand-in for YouTubeSearcher: counts calls, optionally blocks until
    released, and raises whatever `fail_with` maps a query to.
    """

    def __init__(self, items=None, fail_with=None, gate=None):
        self.items = METALLICA_ITEMS if items is None else items
        self.fail_with = fail_with or {}
        self.gate = gate
        self.calls = []
        self.videos = {}

    def search(self, query):
        self.calls.append(query)
        if self.gate is not None:
            self.gate.wait(5)
        if query in self.fail_with:
            raise self.fail_with[query]
        return [dict(item) for item in self.items]

    def fetch_video(self, video_id):
        self.calls.append(("video", video_id))
        if video_id in self.fail_with:
            raise self.fail_with[video_id]
        return self.videos.get(video_id)


class FakeHttpResp:
    """The bits of httplib2.Response that HttpError reads."""

    def __init__(self, status):
        self.status = status
        self.reason = "error"

    def get(self, key, default=None):
        return default


def make_http_error(status, reason=None, message="error"):
    import json

    from googleapiclient.errors import HttpError

    error = {"code": status, "message": message}
    if reason:
        error["errors"] = [{"reason": reason, "message": message}]
    return HttpError(FakeHttpResp(status), json.dumps({"error": error}).encode("utf-8"))


class FakePlaylistItems:
    def __init__(self, owner):
        self.owner = owner

    def insert(self, part, body):
        self.owner.inserts.append(body["snippet"]["resourceId"]["videoId"])
        return self

    def execute(self):
        if self.owner.insert_error is not None:
            raise self.owner.insert_error
        return {"id": f"PLI-{len(self.owner.inserts)}"}


class FakeOwner:
    """Owner identity double: no Google calls, scripted insert outcomes."""

    def __init__(self, ready=True, insert_error=None, credentials_error=None):
        self.ready = ready
        self.insert_error = insert_error
        self.credentials_error = credentials_error
        self.inserts = []
        self.invalidated = False
        self.saved = []

    def is_ready(self):
        return self.ready

    def credentials(self):
        if self.credentials_error is not None:
            raise self.credentials_error
        return type("Creds", (), {"token": "t1"})()

    def build_client(self, creds=None):
        return self

    def playlistItems(self):
        return FakePlaylistItems(self)

    def save_if_rotated(self, creds, previous_token):
        self.saved.append(previous_token)

    def invalidate(self):
        self.invalidated = True
        self.ready = False
