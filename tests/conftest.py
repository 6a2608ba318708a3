import itertools
import json

import pytest
import requests

from decentranet.hubble.client import HubbleClient
from decentranet.storage.record_store import RecordStore


class FakeResponse:
    def __init__(self, status_code=200, body=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._body = body
        self.text = json.dumps(body) if body is not None else ""

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("no JSON body")
        return self._body


class FakeHubbleSession:
    """
    Stands in for requests.Session in front of a Hubble node.

    `routes` maps "METHOD /path" to a FakeResponse or a callable taking
    the JSON body. Unknown routes answer 404. `down=True` makes every call
    raise ConnectionError. Every call is recorded in `calls`.
    """

    def __init__(self, routes=None, down=False):
        self.routes = dict(routes or {})
        self.down = down
        self.calls = []
        self.closed = False

    def request(self, method, url, json=None, timeout=None):
        path = "/" + url.split("/", 3)[3]
        self.calls.append((method, path, json))
        if self.down:
            raise requests.ConnectionError(f"connection refused: {url}")
        handler = self.routes.get(f"{method} {path}")
        if handler is None:
            return FakeResponse(404, {"error": "not found"}, reason="Not Found")
        return handler(json) if callable(handler) else handler

    def close(self):
        self.closed = True

    def posted(self, path):
        return [body for method, p, body in self.calls if method == "POST" and p == path]


def hash_counter(prefix="0xabc0000000"):
    counter = itertools.count(1)
    return lambda body: FakeResponse(200, {"hash": f"{prefix}{next(counter):04d}"})


@pytest.fixture
def store(tmp_path):
    """Fresh record store per test, isolated data dir"""
    return RecordStore(tmp_path / "data")


@pytest.fixture
def hubble_session():
    """A healthy hub that accepts casts, reactions and links."""
    return FakeHubbleSession(
        {
            "GET /v1/info": FakeResponse(200, {"version": "1.10.0", "isSyncing": False}),
            "POST /v1/submitMessage": hash_counter(),
            "POST /v1/submitReaction": FakeResponse(200, {}),
        }
    )


@pytest.fixture
def hubble(hubble_session):
    return HubbleClient("localhost:2281", session=hubble_session)
