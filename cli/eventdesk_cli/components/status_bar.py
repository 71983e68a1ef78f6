"""Status bar component."""

from textual.widgets import Static
from textual.reactive import reactive


class StatusBar(Static):
    """Status bar showing the API target, save progress and messages."""

    api_url: reactive[str] = reactive("")
    is_saving: reactive[bool] = reactive(False)
    message: reactive[str] = reactive("")
    is_error: reactive[bool] = reactive(False)

    def render(self) -> str:
        parts = []

        if self.api_url:
            parts.append(f"[dim]{self.api_url}[/]")

        if self.is_saving:
            parts.append("[yellow]⟳ Saving...[/]")

        if self.message:
            style = "red" if self.is_error else "green"
            parts.append(f"[{style}]{self.message}[/]")

        return " │ ".join(parts)

    def set_message(self, message: str, duration: float = 3.0, error: bool = False) -> None:
        """Show a temporary message."""
        self.message = message
        self.is_error = error
        if duration > 0:
            self.set_timer(duration, lambda: self._clear_message(message))

    def _clear_message(self, message: str) -> None:
        if self.message == message:
            self.message = ""
