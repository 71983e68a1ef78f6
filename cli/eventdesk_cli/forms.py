"""Event form validation."""

from datetime import datetime
from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError


MESSAGES: dict[tuple[str, str], str] = {
    ("title", "required"): "The event title is required.",
    ("title", "max"): "The event title may not be greater than 255 characters.",
    ("venue_id", "required"): "Please select a venue.",
    ("venue_id", "invalid"): "The selected venue is invalid.",
    ("start_datetime", "required"): "The start date and time is required.",
    ("start_datetime", "date"): "The start date and time must be a valid date.",
    ("end_datetime", "required"): "The end date and time is required.",
    ("end_datetime", "date"): "The end date and time must be a valid date.",
    ("end_datetime", "after"): "The end date and time must be after the start date and time.",
}

# pydantic error type -> rule name used in MESSAGES
_RULES = {
    "missing": "required",
    "string_too_short": "required",
    "string_too_long": "max",
    "int_parsing": "invalid",
    "int_type": "invalid",
    "int_from_float": "invalid",
    "greater_than": "invalid",
    "datetime_parsing": "date",
    "datetime_from_date_parsing": "date",
    "datetime_type": "date",
    "end_not_after_start": "after",
}


class EventForm(BaseModel):
    """Payload for creating or updating an event."""

    title: str = Field(min_length=1, max_length=255)
    venue_id: int = Field(gt=0)
    start_datetime: datetime
    end_datetime: datetime

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("end_datetime", mode="after")
    @classmethod
    def end_after_start(cls, v: datetime, info: ValidationInfo) -> datetime:
        start = info.data.get("start_datetime")
        if start is not None and v <= start:
            raise PydanticCustomError(
                "end_not_after_start",
                "End must be after start",
            )
        return v

    def to_payload(self) -> dict:
        return self.model_dump(mode="json")


def validate_event_form(
    values: Mapping[str, str],
) -> tuple[Optional[EventForm], dict[str, str]]:
    """Validate raw form values.

    Empty strings count as missing, the way a browser form submits blank
    fields. Returns the parsed form, or ``None`` plus one message per field.
    """
    data = {
        key: value.strip() if isinstance(value, str) else value
        for key, value in values.items()
    }
    data = {key: value for key, value in data.items() if value not in ("", None)}

    try:
        return EventForm.model_validate(data), {}
    except ValidationError as e:
        errors: dict[str, str] = {}
        for error in e.errors():
            if not error["loc"]:
                continue
            field = str(error["loc"][0])
            if field in errors:
                continue
            rule = _RULES.get(error["type"], "invalid")
            errors[field] = MESSAGES.get((field, rule), error["msg"])
        return None, errors
