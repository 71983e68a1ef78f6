"""Global pytest fixtures for EventDesk CLI."""

from __future__ import annotations

import asyncio
import os
from typing import Callable, Optional

import httpx
import pytest

from eventdesk_cli.api import ApiClient, Venue
from eventdesk_cli.config import get_settings


VENUES = [
    Venue(id=1, name="Grand Hall", city="Austin", state="TX"),
    Venue(id=2, name="Grandview", city="Denver", state="CO"),
    Venue(id=3, name="Riverside Pavilion", city="Portland", state="OR"),
    Venue(id=4, name="Blue Room"),
]


def venue_json(venue: Venue) -> dict:
    return {"id": venue.id, "name": venue.name, "city": venue.city, "state": venue.state}


def match_venues(query: str, limit: int = 20) -> list[Venue]:
    """Case-insensitive substring match over name, city and state."""
    needle = query.lower()
    return [
        v
        for v in VENUES
        if needle in v.name.lower()
        or needle in (v.city or "").lower()
        or needle in (v.state or "").lower()
    ][:limit]


class FakeVenueClient:
    """In-memory stand-in for the venue search endpoint.

    ``responses`` pins the result for an exact query, ``gates`` holds a
    query's response back until the event is set, and ``error`` makes every
    call fail.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []
        self.responses: dict[str, list[Venue]] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.error: Optional[Exception] = None

    async def search_venues(self, query: str, limit: int = 20) -> list[Venue]:
        self.calls.append((query, limit))
        gate = self.gates.get(query)
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        if query in self.responses:
            return self.responses[query]
        return match_venues(query, limit)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep local EVENTDESK_* variables out of the tests."""
    for key in list(os.environ):
        if key.startswith("EVENTDESK_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_client() -> FakeVenueClient:
    return FakeVenueClient()


@pytest.fixture
def mock_api() -> Callable[[Callable[[httpx.Request], httpx.Response]], ApiClient]:
    """Build an ApiClient whose requests are answered by ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> ApiClient:
        return ApiClient(
            "http://testserver",
            transport=httpx.MockTransport(handler),
        )

    return factory


def search_handler(request: httpx.Request) -> Optional[httpx.Response]:
    """Answer venue search requests the way the server does."""
    if request.method == "GET" and request.url.path == "/venues/search":
        query = request.url.params.get("q", "")
        limit = int(request.url.params.get("limit", "20"))
        return httpx.Response(200, json=[venue_json(v) for v in match_venues(query, limit)])
    return None


@pytest.fixture
def venues() -> list[Venue]:
    return list(VENUES)


@pytest.fixture(name="search_handler")
def search_handler_fixture() -> Callable[[httpx.Request], Optional[httpx.Response]]:
    return search_handler
