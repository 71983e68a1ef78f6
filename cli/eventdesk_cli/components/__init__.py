"""CLI components."""

from .fields import FieldError, HiddenField
from .status_bar import StatusBar
from .venue_select import VenueSelect

__all__ = [
    "FieldError",
    "HiddenField",
    "StatusBar",
    "VenueSelect",
]
