"""Shared fixtures: fake search / proxy / random collaborators and a Flask client."""

import pytest

from focus_timer.config import ServerConfig
from focus_timer.handler import AudioHandler
from focus_timer.models import AudioStream, Candidate
from focus_timer.server import create_app


class FakeSearch:
    def __init__(self, results=None, platform="youtube",
                 not_found_message="No suitable videos found", error=None):
        self.results = results or []
        self.platform = platform
        self.not_found_message = not_found_message
        self.error = error
        self.queries = []

    def search(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.results)


class FakeProxy:
    def __init__(self, chunks=(b"ID3", b"\x00\x01\x02"), error=None):
        self.chunks = list(chunks)
        self.error = error
        self.opened = []

    def open(self, candidate):
        self.opened.append(candidate)
        if self.error is not None:
            raise self.error
        return AudioStream(chunks=iter(self.chunks))


class SequenceRandom:
    """Returns the given indices in order and remembers each upper bound."""

    def __init__(self, *indices):
        self.indices = list(indices) or [0]
        self.uppers = []

    def next_index(self, upper):
        self.uppers.append(upper)
        return self.indices.pop(0)


def make_candidate(id="abc123", title="Medieval Ambient Music", minutes=15.0,
                   description=None):
    return Candidate(
        id=id,
        title=title,
        url=f"https://www.youtube.com/watch?v={id}",
        description=description,
        duration_seconds=None if minutes is None else minutes * 60,
    )


@pytest.fixture
def youtube_search():
    return FakeSearch()


@pytest.fixture
def soundcloud_search():
    return FakeSearch(platform="soundcloud", not_found_message="No suitable tracks found")


@pytest.fixture
def proxy():
    return FakeProxy()


@pytest.fixture
def rng():
    return SequenceRandom(0)


@pytest.fixture
def app(youtube_search, soundcloud_search, proxy, rng):
    handlers = {
        "youtube": AudioHandler(youtube_search, proxy, rng),
        "soundcloud": AudioHandler(soundcloud_search, proxy, rng),
    }
    app = create_app(ServerConfig(), handlers=handlers)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
