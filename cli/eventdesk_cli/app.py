"""EventDesk CLI - Main Textual Application."""

from pathlib import Path
from typing import Optional

import httpx
import structlog
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, VerticalScroll
from textual.signal import Signal
from textual.widgets import Button, Footer, Header, Input, Label, Static

from eventdesk_cli.api import ApiClient, ApiError, Event, ValidationFailed
from eventdesk_cli.components import FieldError, HiddenField, StatusBar, VenueSelect
from eventdesk_cli.config import Settings, get_settings
from eventdesk_cli.forms import EventForm, validate_event_form

logger = structlog.get_logger(__name__)

TEXT_FIELDS = ("title", "start_datetime", "end_datetime")


class EventDeskApp(App):
    """Create or edit an event."""

    TITLE = "EventDesk"
    CSS_PATH = Path(__file__).parent / "styles" / "app.tcss"

    BINDINGS = [
        Binding("ctrl+s", "save", "Save"),
        Binding("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        event: Optional[Event] = None,
        client: Optional[ApiClient] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__()
        self.settings = settings or get_settings()
        self.api = client or ApiClient.from_settings(self.settings)
        self.event = event
        # Published on every mouse press; open dropdowns listen to close
        # themselves when the press lands elsewhere.
        self.pointer_down_signal = Signal(self, "pointer-down")

    def compose(self) -> ComposeResult:
        yield Header()

        event = self.event
        with VerticalScroll(id="main"):
            yield Static(
                "Edit Event" if event else "Create Event",
                id="form-heading",
            )

            yield Label("Title", classes="field-label")
            yield Input(
                value=event.title if event else "",
                placeholder="Event title",
                name="title",
                id="title",
            )
            yield FieldError(id="title-error")

            yield Label("Venue", classes="field-label")
            yield VenueSelect(
                self.api,
                field_name="venue_id",
                value=event.venue_id if event else None,
                initial_venue=event.venue if event else None,
                debounce=self.settings.debounce_seconds,
                limit=self.settings.search_limit,
                id="venue-select",
            )

            yield Label("Start Date & Time", classes="field-label")
            yield Input(
                value=event.start_datetime if event else "",
                placeholder="YYYY-MM-DD HH:MM",
                name="start_datetime",
                id="start-datetime",
            )
            yield FieldError(id="start_datetime-error")

            yield Label("End Date & Time", classes="field-label")
            yield Input(
                value=event.end_datetime if event else "",
                placeholder="YYYY-MM-DD HH:MM",
                name="end_datetime",
                id="end-datetime",
            )
            yield FieldError(id="end_datetime-error")

            with Horizontal(id="form-actions"):
                yield Button(
                    "Update Event" if event else "Create Event",
                    variant="primary",
                    id="save",
                )
                yield Button("Cancel", id="cancel")

        yield StatusBar(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Initialize on mount."""
        self.sub_title = f"Event #{self.event.id}" if self.event else "New event"
        self.query_one("#status-bar", StatusBar).api_url = self.settings.api_base_url
        self.query_one("#title", Input).focus()

    async def on_unmount(self) -> None:
        await self.api.aclose()

    def on_mouse_down(self, event: events.MouseDown) -> None:
        self.pointer_down_signal.publish(event)

    # ------------------------------------------------------------------
    # Form values and errors
    # ------------------------------------------------------------------

    def form_values(self) -> dict[str, str]:
        """Collect named inputs and hidden fields, like a form submission."""
        values: dict[str, str] = {}
        for field in self.query(Input):
            if field.name:
                values[field.name] = field.value
        for hidden in self.query(HiddenField):
            values[hidden.field_name] = hidden.value
        return values

    def show_errors(self, errors: dict[str, str]) -> None:
        for name in TEXT_FIELDS:
            self.query_one(f"#{name}-error", FieldError).message = errors.get(name, "")
        self.query_one("#venue-select", VenueSelect).error = errors.get("venue_id")

    def reset_form(self) -> None:
        for field in self.query(Input):
            if field.name in TEXT_FIELDS:
                field.value = ""
        self.query_one("#venue-select", VenueSelect).value = None
        self.show_errors({})

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_venue_select_changed(self, message: VenueSelect.Changed) -> None:
        logger.debug("Venue changed", venue_id=message.value)
        if message.value is not None:
            message.venue_select.error = None

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save":
            self.action_save()
        elif event.button.id == "cancel":
            self.exit()

    def action_save(self) -> None:
        """Validate and submit the form."""
        form, errors = validate_event_form(self.form_values())
        self.show_errors(errors)
        if form is None:
            self.query_one("#status-bar", StatusBar).set_message(
                "Please fix the highlighted fields", error=True
            )
            return

        self.run_worker(self._submit(form), group="submit", exclusive=True)

    async def _submit(self, form: EventForm) -> None:
        status_bar = self.query_one("#status-bar", StatusBar)
        status_bar.is_saving = True

        try:
            if self.event:
                await self.api.update_event(self.event.id, form.to_payload())
                status_bar.set_message("Event updated successfully.")
                logger.info("Event updated", event_id=self.event.id)
            else:
                await self.api.create_event(form.to_payload())
                status_bar.set_message("Event created successfully.")
                logger.info("Event created", title=form.title)
                self.reset_form()
        except ValidationFailed as e:
            self.show_errors(e.errors)
            status_bar.set_message(str(e), error=True)
        except (httpx.HTTPError, ApiError) as e:
            logger.error("Saving event failed", error=str(e))
            status_bar.set_message(f"Save failed: {e}", error=True)
        finally:
            status_bar.is_saving = False


def run_app(event: Optional[Event] = None, settings: Optional[Settings] = None):
    """Run the EventDesk app."""
    app = EventDeskApp(event=event, settings=settings)
    app.run()


if __name__ == "__main__":
    run_app()
