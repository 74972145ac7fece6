"""Utility helpers used by the duration type."""

from .discord_timestamp import TimestampStyle, format_timestamp
from .duration_errors import (
    DurationError,
    EmptyOrInvalid,
    InvalidMagnitude,
    MalformedNumber,
    UnknownUnit,
    UnknownZone,
)

__all__ = [
    "DurationError",
    "EmptyOrInvalid",
    "InvalidMagnitude",
    "MalformedNumber",
    "TimestampStyle",
    "UnknownUnit",
    "UnknownZone",
    "format_timestamp",
]
