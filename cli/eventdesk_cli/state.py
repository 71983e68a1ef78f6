"""Venue picker state.

Everything the picker knows lives here so the rules can be exercised without
a terminal: what has been typed, the results currently on offer, which row is
highlighted, and what has been selected. The widget owns one instance and
re-renders from it after every transition.

Searches are not cancelled once sent. Each one is issued a
:class:`SearchTicket` and its response is only applied while that ticket is
still the newest one and the text it was fired for is still in the input, so
a slow response for an older query can never replace a newer result set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from eventdesk_cli.api import Venue


@dataclass(frozen=True)
class SearchTicket:
    """Identifies one dispatched search."""

    seq: int
    query: str


@dataclass
class TypeaheadState:
    query: str = ""
    results: list[Venue] = field(default_factory=list)
    is_open: bool = False
    is_loading: bool = False
    selected: Optional[Venue] = None
    highlighted: int = -1
    _issued: int = field(default=0, repr=False)
    # Bumped whenever the query or selection changes hands.
    revision: int = field(default=0, repr=False)

    @property
    def hidden_value(self) -> str:
        """Value submitted with the form: the selected id or empty string."""
        return str(self.selected.id) if self.selected is not None else ""

    @property
    def highlighted_venue(self) -> Optional[Venue]:
        if 0 <= self.highlighted < len(self.results):
            return self.results[self.highlighted]
        return None

    def edit_query(self, text: str) -> None:
        """Typing replaces the query and invalidates any prior selection."""
        self.query = text
        self.selected = None
        self.highlighted = -1
        self.revision += 1

    def begin_search(self) -> Optional[SearchTicket]:
        """Start a search for the current query.

        Returns ``None`` (and empties the dropdown) when there is nothing to
        search for.
        """
        if not self.query.strip():
            self.results = []
            self.is_open = False
            self.is_loading = False
            self.highlighted = -1
            return None

        self._issued += 1
        self.is_open = True
        self.is_loading = True
        return SearchTicket(self._issued, self.query)

    def is_current(self, ticket: SearchTicket) -> bool:
        return ticket.seq == self._issued

    def finish_search(self, ticket: SearchTicket, venues: Iterable[Venue]) -> bool:
        """Apply a completed search. Returns False if it was discarded."""
        if not self.is_current(ticket):
            return False

        self.is_loading = False
        if ticket.query != self.query or self.selected is not None:
            return False

        self.results = list(venues)
        self.highlighted = -1
        self.is_open = True
        return True

    def fail_search(self, ticket: SearchTicket) -> bool:
        """A failed search counts as an empty result set."""
        return self.finish_search(ticket, [])

    def select(self, venue: Venue) -> None:
        self.selected = venue
        self.query = venue.name
        self.is_open = False
        self.highlighted = -1
        self.revision += 1

    def preload(self, venue: Venue) -> None:
        """Show an externally supplied venue as the selection."""
        self.selected = venue
        self.query = venue.name
        self.highlighted = -1
        self.revision += 1

    def clear(self) -> None:
        self.selected = None
        self.query = ""
        self.results = []
        self.is_open = False
        self.is_loading = False
        self.highlighted = -1
        self.revision += 1

    def move_highlight(self, delta: int) -> None:
        """Move the highlight, clamped to [-1, len(results) - 1]."""
        target = self.highlighted + delta
        self.highlighted = max(-1, min(target, len(self.results) - 1))

    def open_with_keyboard(self) -> bool:
        """Reopen the dropdown over cached results, highlighting the first."""
        if not self.results:
            return False
        self.is_open = True
        self.highlighted = 0
        return True

    def dismiss(self) -> None:
        self.is_open = False
        self.highlighted = -1
