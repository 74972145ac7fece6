"""Calendar-aware duration value type.

A :class:`Duration` holds one :class:`~models.magnitude.MagnitudeRecord` and
is changed in place: ``add`` and ``sub`` mutate the instance and return it so
calls can be chained. Take a :meth:`Duration.copy` to keep the previous value.

Months and years do not have a fixed length, so arithmetic is measured from a
reference instant: the :class:`Anchor` passed to the call, or the current
instant (UTC) read from the calendar's clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union

from models.magnitude import MagnitudeRecord
from utils.calendar_provider import (
    CalendarProvider,
    default_calendar,
    from_epoch_ns,
    split_record,
    to_epoch_ns,
)
from utils.discord_timestamp import TimestampStyle, format_timestamp
from utils.duration_parser import parse_duration

RENDERED_UNITS: tuple[tuple[str, str], ...] = (
    ("years", "year"),
    ("days", "day"),
    ("hours", "hour"),
    ("minutes", "minute"),
    ("seconds", "second"),
)


@dataclass(frozen=True)
class Anchor:
    """Reference instant for calendar arithmetic.

    ``zone`` is an IANA identifier; ``None`` means the calendar's default
    zone (UTC unless configured otherwise). Naive instants are read as UTC.
    """

    instant: datetime
    zone: Optional[str] = None


@dataclass(frozen=True)
class Text:
    value: str

    def to_record(self) -> MagnitudeRecord:
        return parse_duration(self.value)


@dataclass(frozen=True)
class Magnitudes:
    record: MagnitudeRecord

    def to_record(self) -> MagnitudeRecord:
        return self.record

    @classmethod
    def of(cls, data: Any) -> "Magnitudes":
        return cls(MagnitudeRecord.from_mapping(data))


DurationInput = Union[Text, Magnitudes]
AnchorLike = Union[Anchor, datetime, None]


def as_input(value: Any) -> DurationInput:
    """Tag ``value`` as :class:`Text` or :class:`Magnitudes`."""
    if isinstance(value, (Text, Magnitudes)):
        return value
    if isinstance(value, str):
        return Text(value)
    if isinstance(value, Duration):
        return Magnitudes(value.record)
    return Magnitudes.of(value)


def _render_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Duration:
    """Mutable duration with calendar-aware ``add``/``sub``.

    >>> d = Duration("1h30m")
    >>> str(d)
    '1 hour 30 minutes '
    """

    def __init__(
        self,
        source: Any,
        anchor: AnchorLike = None,
        *,
        calendar: Optional[CalendarProvider] = None,
    ) -> None:
        self.calendar = calendar or default_calendar()
        record = as_input(source).to_record()
        split_record(record)
        if anchor is not None:
            record = self.calendar.balance(record, self._reference(anchor))
        self._record = record

    @property
    def record(self) -> MagnitudeRecord:
        return self._record

    def _reference(self, anchor: AnchorLike) -> datetime:
        if anchor is None:
            return self.calendar.now()
        if isinstance(anchor, datetime):
            anchor = Anchor(anchor)
        return self.calendar.localize(anchor.instant, anchor.zone)

    def _elapsed_ns(self, reference: datetime) -> int:
        return self.calendar.apply(reference, self._record) - to_epoch_ns(reference)

    def add(self, delta: Any, anchor: AnchorLike = None) -> "Duration":
        """Add ``delta`` in place and rebalance from years down; returns ``self``."""
        step = as_input(delta).to_record()
        reference = self._reference(anchor)
        summed = self.calendar.add(self._record, step, reference)
        self._record = self.calendar.balance(summed, reference, "years")
        return self

    def sub(self, delta: Any, anchor: AnchorLike = None) -> "Duration":
        """Subtract ``delta`` in place and rebalance from years down; returns ``self``."""
        step = as_input(delta).to_record()
        reference = self._reference(anchor)
        difference = self.calendar.subtract(self._record, step, reference)
        self._record = self.calendar.balance(difference, reference, "years")
        return self

    def total(self, unit: str = "milliseconds", anchor: AnchorLike = None) -> float:
        return self.calendar.total(self._record, unit, self._reference(anchor))

    def end_date(self, anchor: AnchorLike = None) -> datetime:
        """Current instant moved by this duration, measured from ``anchor``."""
        now = self.calendar.now()
        reference = now if anchor is None else self._reference(anchor)
        return from_epoch_ns(to_epoch_ns(now) + self._elapsed_ns(reference))

    def to_discord_timestamp(
        self,
        style: TimestampStyle | str = TimestampStyle.SHORT_DATE_TIME,
        anchor: AnchorLike = None,
    ) -> str:
        now = self.calendar.now()
        reference = now if anchor is None else self._reference(anchor)
        end_ns = to_epoch_ns(now) + self._elapsed_ns(reference)
        return format_timestamp(end_ns // 10**9, style)

    def to_string(self) -> str:
        # Weeks, months and sub-second units are not rendered.
        parts = []
        for unit, label in RENDERED_UNITS:
            value = self._record.get(unit)
            if value == 0:
                continue
            if abs(value) != 1:
                label += "s"
            parts.append(f"{_render_number(value)} {label} ")
        return "".join(parts)

    def copy(self) -> "Duration":
        return Duration(Magnitudes(self._record), calendar=self.calendar)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Duration({self._record.as_dict()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        mine = {k: v for k, v in self._record.items() if v != 0}
        theirs = {k: v for k, v in other.record.items() if v != 0}
        return mine == theirs

    __hash__ = None  # type: ignore[assignment]
