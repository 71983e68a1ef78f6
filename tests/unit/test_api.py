"""Tests for the API client."""

from __future__ import annotations

import json

import httpx
import pytest

from eventdesk_cli.api import ApiClient, MalformedResponse, ValidationFailed, Venue


async def test_search_venues_sends_query_and_limit(mock_api) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"id": 2, "name": "Grandview", "city": "Denver", "state": "CO"},
                {"id": 1, "name": "Grand Hall"},
            ],
        )

    async with mock_api(handler) as api:
        venues = await api.search_venues("grand hall", limit=20)

    assert seen[0].url.path == "/venues/search"
    assert seen[0].url.params["q"] == "grand hall"
    assert seen[0].url.params["limit"] == "20"
    assert seen[0].headers["accept"] == "application/json"
    # Server order is kept.
    assert [v.id for v in venues] == [2, 1]
    assert venues[0].location == "Denver, CO"
    assert venues[1].location == ""


async def test_search_venues_raises_on_error_status(mock_api) -> None:
    async with mock_api(lambda request: httpx.Response(500)) as api:
        with pytest.raises(httpx.HTTPStatusError):
            await api.search_venues("grand")


@pytest.mark.parametrize(
    "body",
    [
        {"data": []},
        [{"name": "No id"}],
        [{"id": 0, "name": "Zero"}],
        [{"id": 1, "name": ""}],
        ["Grand Hall"],
    ],
)
async def test_search_venues_rejects_malformed_bodies(mock_api, body) -> None:
    async with mock_api(lambda request: httpx.Response(200, json=body)) as api:
        with pytest.raises(MalformedResponse):
            await api.search_venues("grand")


async def test_search_venues_rejects_non_json(mock_api) -> None:
    async with mock_api(lambda request: httpx.Response(200, text="<html>")) as api:
        with pytest.raises(ValueError):
            await api.search_venues("grand")


async def test_get_event_includes_venue(mock_api) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/events/9"
        return httpx.Response(
            200,
            json={
                "id": 9,
                "title": "Launch Party",
                "venue_id": 5,
                "start_datetime": "2026-11-01T18:00:00",
                "end_datetime": "2026-11-01T22:00:00",
                "venue": {"id": 5, "name": "Blue Room"},
            },
        )

    async with mock_api(handler) as api:
        event = await api.get_event(9)

    assert event.title == "Launch Party"
    assert event.venue_id == 5
    assert event.venue == Venue(id=5, name="Blue Room")


async def test_create_event_posts_payload(mock_api) -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/events"
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"id": 11})

    async with mock_api(handler) as api:
        result = await api.create_event({"title": "Launch", "venue_id": 1})

    assert bodies == [{"title": "Launch", "venue_id": 1}]
    assert result == {"id": 11}


async def test_update_event_accepts_empty_body(mock_api) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        assert request.url.path == "/events/9"
        return httpx.Response(204)

    async with mock_api(handler) as api:
        assert await api.update_event(9, {"title": "Launch"}) == {}


async def test_validation_errors_are_raised_per_field(mock_api) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            422,
            json={
                "message": "The selected venue is invalid.",
                "errors": {
                    "venue_id": ["The selected venue is invalid.", "Another."],
                    "title": "The event title is required.",
                },
            },
        )

    async with mock_api(handler) as api:
        with pytest.raises(ValidationFailed) as exc_info:
            await api.create_event({"title": "", "venue_id": 99})

    assert str(exc_info.value) == "The selected venue is invalid."
    assert exc_info.value.errors == {
        "venue_id": "The selected venue is invalid.",
        "title": "The event title is required.",
    }


async def test_client_can_be_reused_after_close() -> None:
    api = ApiClient(
        "http://testserver",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])),
    )
    assert await api.search_venues("a") == []
    await api.aclose()
    assert await api.search_venues("b") == []
    await api.aclose()
