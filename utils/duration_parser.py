"""Parse compact duration expressions such as ``"1y2mo3d4h"``."""

from __future__ import annotations

import math
import re

from models.magnitude import MagnitudeRecord
from utils.duration_errors import EmptyOrInvalid, MalformedNumber, UnknownUnit

PAIR_RE = re.compile(r"([-+\d.]+)([a-zµμ]+)")
NUMBER_RE = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)")

UNIT_MAP: dict[str, str] = {
    "ns": "nanoseconds",
    "us": "microseconds",
    "µs": "microseconds",  # micro sign
    "μs": "microseconds",  # greek mu
    "ms": "milliseconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
    "mo": "months",
    "y": "years",
}


def _parse_number(raw: str) -> int | float:
    if not NUMBER_RE.fullmatch(raw):
        raise MalformedNumber(raw)
    if "." in raw:
        value = float(raw)
        if not math.isfinite(value):
            raise MalformedNumber(raw)
        return value
    try:
        return int(raw)
    except ValueError as exc:
        # More digits than the interpreter converts.
        raise MalformedNumber(raw) from exc


def parse_duration(text: str) -> MagnitudeRecord:
    """Convert a duration expression into a :class:`MagnitudeRecord`.

    The text is a run of ``<number><unit>`` pairs with no separator needed,
    e.g. ``"2h30m"`` or ``"-1d12h"``. Units are case-sensitive and taken from
    :data:`UNIT_MAP`. When a unit appears twice the last value wins. Characters
    that are not part of a pair are skipped.

    Raises :class:`EmptyOrInvalid` when no pair is found,
    :class:`UnknownUnit` for a suffix missing from the table and
    :class:`MalformedNumber` when the numeric part is not a number
    (``"1.2.3h"``, ``"-h"``).
    """

    if not isinstance(text, str):
        raise EmptyOrInvalid(text)

    values: dict[str, int | float] = {}
    pos = 0
    matched = False
    while pos < len(text):
        match = PAIR_RE.search(text, pos)
        if match is None:
            break
        matched = True
        # Always move forward, even on an empty match.
        pos = max(match.end(), pos + 1)

        raw_number, suffix = match.group(1), match.group(2)
        unit = UNIT_MAP.get(suffix)
        if unit is None:
            raise UnknownUnit(suffix)
        values[unit] = _parse_number(raw_number)

    if not matched:
        raise EmptyOrInvalid(text)

    return MagnitudeRecord.from_mapping(values)
