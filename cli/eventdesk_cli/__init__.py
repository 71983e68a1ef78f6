"""EventDesk CLI - create and edit events from the terminal."""

__version__ = "0.1.0"
