"""Venue picker component."""

from __future__ import annotations

from typing import Optional, Protocol, Union

import httpx
import structlog
from rich.text import Text
from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.message import Message
from textual.reactive import reactive
from textual.signal import Signal
from textual.timer import Timer
from textual.widget import Widget
from textual.widgets import Button, Input, OptionList, Static
from textual.widgets.option_list import Option

from eventdesk_cli.api import ApiClient, Venue
from eventdesk_cli.components.fields import HiddenField
from eventdesk_cli.state import SearchTicket, TypeaheadState

logger = structlog.get_logger(__name__)

VenueValue = Union[int, str, None]


class VenueSearchClient(Protocol):
    async def search_venues(self, query: str, limit: int = 20) -> list[Venue]: ...


def coerce_venue_id(value: object) -> Optional[int]:
    """Normalize an externally supplied venue id. Anything unusable is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        venue_id = int(value.strip())
        return venue_id if venue_id > 0 else None
    return None


class VenueOptions(OptionList, can_focus=False):
    """Dropdown rows. Never takes focus away from the query input."""


class VenueSelect(Widget):
    """Pick one venue by typing part of its name.

    Searches run against the venue search endpoint after the input has been
    quiet for ``debounce`` seconds. The chosen venue id is posted upward in a
    :class:`VenueSelect.Changed` message and mirrored into a hidden field
    named ``field_name`` so it is collected with the rest of the form.

    Setting :attr:`value` from outside (for example when editing an existing
    event) resolves the id to a venue, using ``initial_venue`` when it matches
    and a lookup through the search endpoint otherwise.
    """

    DEBOUNCE_MS = 300
    SEARCH_LIMIT = 20

    DEFAULT_CSS = """
    VenueSelect {
        height: auto;
    }
    VenueSelect > #venue-control {
        height: auto;
    }
    VenueSelect #venue-query {
        width: 1fr;
    }
    VenueSelect #venue-loading {
        width: 3;
        height: 3;
        content-align: center middle;
        color: $warning;
        display: none;
    }
    VenueSelect.-loading #venue-loading {
        display: block;
    }
    VenueSelect #venue-clear {
        min-width: 5;
        width: 5;
        display: none;
    }
    VenueSelect.-clearable #venue-clear {
        display: block;
    }
    VenueSelect:disabled #venue-clear {
        display: none;
    }
    VenueSelect #venue-options {
        height: auto;
        max-height: 12;
        display: none;
    }
    VenueSelect.-open #venue-options {
        display: block;
    }
    VenueSelect #venue-error {
        color: $error;
        height: auto;
        display: none;
    }
    VenueSelect.-invalid #venue-error {
        display: block;
    }
    VenueSelect.-invalid #venue-query {
        border: tall $error;
    }
    """

    value: reactive[Optional[int]] = reactive(None, init=False, always_update=True)
    error: reactive[Optional[str]] = reactive(None, init=False)

    class Changed(Message):
        """Emitted when the user picks or clears a venue."""

        def __init__(self, venue_select: "VenueSelect", value: Optional[int]) -> None:
            self.venue_select = venue_select
            self.value = value
            super().__init__()

        @property
        def control(self) -> "VenueSelect":
            return self.venue_select

    def __init__(
        self,
        client: Optional[VenueSearchClient] = None,
        *,
        field_name: str = "venue_id",
        value: VenueValue = None,
        initial_venue: Optional[Venue] = None,
        placeholder: str = "Search for a venue...",
        error: Optional[str] = None,
        debounce: Optional[float] = None,
        limit: Optional[int] = None,
        disabled: bool = False,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(id=id, classes=classes, disabled=disabled)
        self._owns_client = client is None
        self._client: VenueSearchClient = client or ApiClient.from_settings()
        self.field_name = field_name
        self.initial_venue = initial_venue
        self.placeholder = placeholder
        self.debounce = self.DEBOUNCE_MS / 1000 if debounce is None else debounce
        self.limit = limit or self.SEARCH_LIMIT

        self._state = TypeaheadState()
        self._debounce_timer: Timer | None = None
        self._pointer_subscribed = False
        self._rendered_options: tuple | None = None

        self.set_reactive(VenueSelect.value, coerce_venue_id(value))
        self.set_reactive(VenueSelect.error, error)

    @property
    def state(self) -> TypeaheadState:
        return self._state

    @property
    def selected_venue(self) -> Optional[Venue]:
        return self._state.selected

    def compose(self) -> ComposeResult:
        with Horizontal(id="venue-control"):
            yield Input(placeholder=self.placeholder, id="venue-query")
            yield Static("⟳", id="venue-loading")
            yield Button("✕", id="venue-clear")
        yield VenueOptions(id="venue-options")
        yield HiddenField(self.field_name, id="venue-value")
        yield Static("", id="venue-error")

    def on_mount(self) -> None:
        self.watch_error(self.error)
        self._refresh_view()
        if self.value is not None:
            self._sync_value(self.value)

    async def on_unmount(self) -> None:
        self._stop_debounce()
        self._watch_pointer(False)
        if self._owns_client and isinstance(self._client, ApiClient):
            await self._client.aclose()

    # ------------------------------------------------------------------
    # External value
    # ------------------------------------------------------------------

    def validate_value(self, value: VenueValue) -> Optional[int]:
        return coerce_venue_id(value)

    def watch_value(self, value: Optional[int]) -> None:
        self._sync_value(value)

    def watch_error(self, error: Optional[str]) -> None:
        self.query_one("#venue-error", Static).update(error or "")
        self.set_class(bool(error), "-invalid")

    def _sync_value(self, venue_id: Optional[int]) -> None:
        """Bring the picker in line with an externally supplied id."""
        selected = self._state.selected

        if venue_id is None:
            # The caller already knows; nothing is posted back.
            if selected is not None:
                self._stop_debounce()
                self._state.clear()
                self._set_input_text("")
                self._refresh_view()
            return

        if selected is not None and selected.id == venue_id:
            return

        if self.initial_venue is not None and self.initial_venue.id == venue_id:
            self._show_venue(self.initial_venue)
            return

        self.run_worker(
            self._resolve(venue_id, self._state.revision),
            group="venue-resolve",
            exclusive=True,
            exit_on_error=False,
        )

    async def _resolve(self, venue_id: int, revision: int) -> None:
        """Look a venue id up through the search endpoint.

        The reply is dropped if the value moved on or the user typed, picked
        or cleared while the request was out.
        """
        try:
            venues = await self._client.search_venues(str(venue_id), limit=self.limit)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Venue lookup failed", venue_id=venue_id, error=str(e))
            return

        if self.value != venue_id or self._state.revision != revision:
            logger.debug("Discarded superseded venue lookup", venue_id=venue_id)
            return

        venue = next((v for v in venues if v.id == venue_id), None)
        if venue is None and venues:
            venue = venues[0]
        if venue is None:
            logger.info("Venue not found", venue_id=venue_id)
            return

        self._show_venue(venue)

    def _show_venue(self, venue: Venue) -> None:
        self._stop_debounce()
        self._state.preload(venue)
        self._set_input_text(venue.name)
        self._refresh_view()

    # ------------------------------------------------------------------
    # Typing and searching
    # ------------------------------------------------------------------

    @on(Input.Changed, "#venue-query")
    def _query_changed(self, event: Input.Changed) -> None:
        event.stop()
        if event.value == self._state.query:
            # Echo of text we set ourselves.
            return

        self._state.edit_query(event.value)
        self._arm_debounce()
        self._refresh_view()

    @on(Input.Submitted, "#venue-query")
    def _query_submitted(self, event: Input.Submitted) -> None:
        event.stop()

    def _arm_debounce(self) -> None:
        self._stop_debounce()
        self._debounce_timer = self.set_timer(self.debounce, self._debounce_elapsed)

    def _stop_debounce(self) -> None:
        if self._debounce_timer:
            self._debounce_timer.stop()
            self._debounce_timer = None

    def _debounce_elapsed(self) -> None:
        self._debounce_timer = None
        ticket = self._state.begin_search()
        self._refresh_view()
        if ticket is None:
            return

        self.run_worker(
            self._search(ticket),
            group="venue-search",
            exit_on_error=False,
        )

    async def _search(self, ticket: SearchTicket) -> None:
        try:
            venues = await self._client.search_venues(ticket.query, limit=self.limit)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Venue search failed", query=ticket.query, error=str(e))
            self._state.fail_search(ticket)
        else:
            if not self._state.finish_search(ticket, venues):
                logger.debug("Discarded stale venue results", query=ticket.query)
        self._refresh_view()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, venue: Venue) -> None:
        """Select a venue as if the user had picked it."""
        self._stop_debounce()
        self._state.select(venue)
        self._set_input_text(venue.name)
        self.value = venue.id
        self._refresh_view()
        self.post_message(self.Changed(self, venue.id))

    def clear(self) -> None:
        """Drop the selection and the typed text."""
        self._stop_debounce()
        self._state.clear()
        self._set_input_text("")
        self.value = None
        self._refresh_view()
        self.post_message(self.Changed(self, None))
        self.query_one("#venue-query", Input).focus()

    @on(OptionList.OptionSelected, "#venue-options")
    def _option_clicked(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        if 0 <= event.option_index < len(self._state.results):
            self.select(self._state.results[event.option_index])

    @on(Button.Pressed, "#venue-clear")
    def _clear_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.clear()

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def _on_key(self, event: events.Key) -> None:
        """Intercept navigation keys before they reach the Input."""
        state = self._state

        if event.key == "down":
            if state.is_open:
                state.move_highlight(1)
            elif not state.open_with_keyboard():
                return
        elif event.key == "up":
            if not state.is_open:
                return
            state.move_highlight(-1)
        elif event.key == "enter":
            if not state.is_open:
                return
            event.prevent_default()
            event.stop()
            venue = state.highlighted_venue
            if venue is not None:
                self.select(venue)
            return
        elif event.key == "escape":
            if not state.is_open:
                return
            state.dismiss()
        else:
            return

        event.prevent_default()
        event.stop()
        self._refresh_view()

    # ------------------------------------------------------------------
    # Dismissal
    # ------------------------------------------------------------------

    def _watch_pointer(self, active: bool) -> None:
        """Hold the app's pointer subscription only while the dropdown is open."""
        if active and not self.is_attached:
            return
        signal = getattr(self.app, "pointer_down_signal", None)
        if not isinstance(signal, Signal):
            return

        if active and not self._pointer_subscribed:
            signal.subscribe(self, self._pointer_down)
            self._pointer_subscribed = True
        elif not active and self._pointer_subscribed:
            signal.unsubscribe(self)
            self._pointer_subscribed = False

    def _pointer_down(self, event: events.MouseDown) -> None:
        if self.region.contains(event.screen_x, event.screen_y):
            return
        self._dismiss()

    def on_descendant_blur(self, event: events.DescendantBlur) -> None:
        self.call_after_refresh(self._maybe_close_on_blur)

    def _maybe_close_on_blur(self) -> None:
        if not self.is_attached:
            return
        focused = self.app.focused
        if focused is None or focused not in self.walk_children():
            self._dismiss()

    def on_descendant_focus(self, event: events.DescendantFocus) -> None:
        state = self._state
        query_input = self.query_one("#venue-query", Input)
        if query_input.has_focus and not state.is_open and state.query.strip() and state.results:
            state.is_open = True
            self._refresh_view()

    def _dismiss(self) -> None:
        if self._state.is_open:
            self._state.dismiss()
            self._refresh_view()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _set_input_text(self, text: str) -> None:
        query_input = self.query_one("#venue-query", Input)
        if query_input.value != text:
            query_input.value = text

    def _refresh_view(self) -> None:
        if not self.is_attached:
            return
        state = self._state

        self.set_class(state.is_open, "-open")
        self.set_class(state.is_loading, "-loading")
        self.set_class(state.selected is not None or bool(state.query), "-clearable")
        self.query_one("#venue-value", HiddenField).value = state.hidden_value

        if state.is_open:
            self._render_options()
        self._watch_pointer(state.is_open)

    def _render_options(self) -> None:
        state = self._state
        option_list = self.query_one("#venue-options", OptionList)

        placeholder = None
        if not state.results:
            if state.is_loading:
                placeholder = "Searching..."
            elif state.query.strip():
                placeholder = "No venues found"
            else:
                placeholder = "Start typing to search venues..."

        selected_id = state.selected.id if state.selected else None
        key = (tuple(v.id for v in state.results), selected_id, placeholder)
        if key != self._rendered_options:
            option_list.clear_options()
            if state.results:
                option_list.add_options(
                    [Option(self._option_prompt(v, v.id == selected_id)) for v in state.results]
                )
            elif placeholder:
                option_list.add_option(Option(Text(placeholder, style="dim italic"), disabled=True))
            self._rendered_options = key

        option_list.highlighted = state.highlighted if state.highlighted >= 0 else None

    @staticmethod
    def _option_prompt(venue: Venue, is_selected: bool) -> Text:
        text = Text()
        text.append(venue.name, style="bold")
        if is_selected:
            text.append("  ✓", style="green")
        if venue.location:
            text.append("\n")
            text.append(venue.location, style="dim")
        return text
