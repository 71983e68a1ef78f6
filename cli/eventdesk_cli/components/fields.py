"""Form field helpers."""

from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Static


class HiddenField(Widget):
    """Invisible named value collected with the other form inputs."""

    DEFAULT_CSS = """
    HiddenField {
        display: none;
    }
    """

    value: reactive[str] = reactive("")

    def __init__(self, field_name: str, value: str = "", id: str | None = None) -> None:
        super().__init__(name=field_name, id=id)
        self.set_reactive(HiddenField.value, value)

    @property
    def field_name(self) -> str:
        return self.name or ""


class FieldError(Static):
    """Validation message shown beneath a field."""

    DEFAULT_CSS = """
    FieldError {
        color: $error;
        height: auto;
        display: none;
    }
    """

    message: reactive[str] = reactive("")

    def __init__(self, id: str | None = None) -> None:
        super().__init__("", id=id)

    def watch_message(self, message: str) -> None:
        self.update(message)
        self.display = bool(message)
