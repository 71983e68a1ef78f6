"""API client for the EventDesk server."""

from typing import Any, Optional
from dataclasses import dataclass

import httpx
import structlog

from eventdesk_cli.config import Settings, get_settings

logger = structlog.get_logger(__name__)


class ApiError(Exception):
    """Base class for API client failures."""


class MalformedResponse(ApiError, ValueError):
    """Response body did not have the expected shape."""


class ValidationFailed(ApiError):
    """Server rejected a payload (HTTP 422)."""

    def __init__(self, message: str, errors: dict[str, str]):
        super().__init__(message)
        self.errors = errors


@dataclass(frozen=True)
class Venue:
    """A venue as returned by the search endpoint."""
    id: int
    name: str
    city: Optional[str] = None
    state: Optional[str] = None

    @property
    def location(self) -> str:
        return ", ".join(part for part in (self.city, self.state) if part)

    @classmethod
    def from_dict(cls, data: Any) -> "Venue":
        if not isinstance(data, dict):
            raise MalformedResponse(f"Expected venue object, got {type(data).__name__}")
        try:
            venue_id = int(data["id"])
            name = data["name"]
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponse(f"Invalid venue payload: {e}") from e
        if venue_id <= 0 or not isinstance(name, str) or not name:
            raise MalformedResponse(f"Invalid venue payload: {data!r}")
        return cls(
            id=venue_id,
            name=name,
            city=data.get("city"),
            state=data.get("state"),
        )


@dataclass
class Event:
    """An event with its venue."""
    id: int
    title: str
    venue_id: int
    start_datetime: str
    end_datetime: str
    venue: Optional[Venue] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Event":
        if not isinstance(data, dict):
            raise MalformedResponse(f"Expected event object, got {type(data).__name__}")
        venue_data = data.get("venue")
        venue = Venue.from_dict(venue_data) if venue_data else None

        try:
            return cls(
                id=int(data["id"]),
                title=data.get("title") or "",
                venue_id=int(data["venue_id"]),
                start_datetime=data.get("start_datetime") or "",
                end_datetime=data.get("end_datetime") or "",
                venue=venue,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponse(f"Invalid event payload: {e}") from e


class ApiClient:
    """Async API client for the EventDesk server.

    The underlying ``httpx.AsyncClient`` is created on first use and kept
    open until :meth:`aclose`, so overlapping requests from one widget share
    a connection pool.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        timeout: float = 10.0,
        venue_search_path: str = "/venues/search",
        events_path: str = "/events",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.venue_search_path = venue_search_path
        self.events_path = events_path.rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ApiClient":
        settings = settings or get_settings()
        return cls(
            settings.api_base_url,
            timeout=settings.request_timeout,
            venue_search_path=settings.venue_search_path,
            events_path=settings.events_path,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def search_venues(self, query: str, limit: int = 20) -> list[Venue]:
        """Search venues by free text. Results keep the server's order."""
        response = await self.client.get(
            self.venue_search_path,
            params={"q": query, "limit": limit},
        )
        response.raise_for_status()
        data = response.json()

        if not isinstance(data, list):
            raise MalformedResponse("Venue search did not return a list")

        venues = [Venue.from_dict(item) for item in data]
        logger.debug("Venue search", query=query, limit=limit, count=len(venues))
        return venues

    async def get_event(self, event_id: int) -> Event:
        """Fetch a single event, including its venue."""
        response = await self.client.get(f"{self.events_path}/{event_id}")
        response.raise_for_status()
        return Event.from_dict(response.json())

    async def create_event(self, payload: dict) -> dict:
        """Create an event."""
        response = await self.client.post(self.events_path, json=payload)
        self._raise_for_validation(response)
        response.raise_for_status()
        return self._json_or_empty(response)

    async def update_event(self, event_id: int, payload: dict) -> dict:
        """Update an existing event."""
        response = await self.client.put(f"{self.events_path}/{event_id}", json=payload)
        self._raise_for_validation(response)
        response.raise_for_status()
        return self._json_or_empty(response)

    @staticmethod
    def _raise_for_validation(response: httpx.Response) -> None:
        if response.status_code != 422:
            return

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        errors = {}
        for field, messages in (data.get("errors") or {}).items():
            if isinstance(messages, list) and messages:
                errors[field] = str(messages[0])
            elif messages:
                errors[field] = str(messages)

        raise ValidationFailed(data.get("message", "The given data was invalid."), errors)

    @staticmethod
    def _json_or_empty(response: httpx.Response) -> dict:
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
