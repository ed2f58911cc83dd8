"""Shared test fixtures for TaleTeller tests."""

import json

import httpx
import pytest

from client import StoryAPIClient
from config import settings
from session import StorySession


SAMPLE_CHOICES = [
    {"id": 1, "title": "Open the door", "description": "She pushes the creaking door open."},
    {"id": 2, "title": "Run", "description": "She flees down the stairs into the dark."},
    {"id": 3, "title": "Call out", "description": "She calls her brother's name."},
]

SAMPLE_SUGGESTIONS = {
    "hasIssues": True,
    "improvedVersion": "The door creaked open.",
    "suggestions": [
        {"original": "creeked", "suggested": "creaked", "reason": "Spelling"},
    ],
}


class FakeBackend:
    """Stands in for the /api routes behind an httpx.MockTransport.

    `routes` maps a path (without the /api prefix) to (status, json body).
    Every request is recorded in `calls` as (path, body).
    """

    def __init__(self):
        self.routes = {
            "/grammar-check": (200, SAMPLE_SUGGESTIONS),
            "/generate-choices": (200, {"choices": SAMPLE_CHOICES}),
            "/continue-scene": (200, {"continuation": "The hallway beyond was colder."}),
            "/generate-image": (200, {"image": "aW1hZ2U="}),
        }
        self.calls = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path[len("/api"):]
        self.calls.append((path, json.loads(request.content or b"{}")))
        status, payload = self.routes[path]
        return httpx.Response(status, json=payload)

    def paths(self):
        return [path for path, _ in self.calls]

    def client(self, handler=None) -> StoryAPIClient:
        transport = httpx.MockTransport(handler or self.handler)
        return StoryAPIClient(base_url="http://backend.test/api", transport=transport)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def session(backend):
    s = StorySession(api=backend.client())
    s.start("horror")
    return s


@pytest.fixture
def stability_key(monkeypatch):
    monkeypatch.setattr(settings, "STABILITY_API_KEY", "sk-test-key")
    return "sk-test-key"
