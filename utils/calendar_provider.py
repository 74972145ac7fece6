"""Calendar arithmetic and clocks used by :class:`duration.Duration`.

Instants are aware ``datetime`` objects. Everything that needs more than
microsecond precision goes through integer epoch nanoseconds.

A record is applied to an instant the same way every time: years and months
first (``relativedelta`` clamps the day of month, so Jan 31 + 1 month is the
last day of February), then weeks and days on the wall clock of the zone, then
the clock units as exact elapsed time.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from decimal import Decimal
from typing import Optional, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.relativedelta import relativedelta

from models.magnitude import SUBSECOND_UNITS, UNITS, MagnitudeRecord
from utils.duration_config import load_duration_settings
from utils.duration_errors import InvalidMagnitude, UnknownZone

log = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_MICROSECOND = timedelta(microseconds=1)

NANOS: dict[str, int] = {
    "weeks": 7 * 86_400 * 10**9,
    "days": 86_400 * 10**9,
    "hours": 3_600 * 10**9,
    "minutes": 60 * 10**9,
    "seconds": 10**9,
    "milliseconds": 10**6,
    "microseconds": 10**3,
    "nanoseconds": 1,
}

CLOCK_UNITS: tuple[str, ...] = (
    "hours",
    "minutes",
    "seconds",
    "milliseconds",
    "microseconds",
    "nanoseconds",
)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock, always in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock frozen on one instant until :meth:`advance` moves it."""

    def __init__(self, instant: datetime) -> None:
        self.instant = as_utc(instant)

    def now(self) -> datetime:
        return self.instant

    def advance(self, delta: timedelta) -> None:
        self.instant += delta

    @classmethod
    def from_timestamp(cls, seconds: float) -> "FixedClock":
        return cls(datetime.fromtimestamp(seconds, tz=timezone.utc))


def as_utc(instant: datetime) -> datetime:
    """Read naive datetimes as UTC and convert aware ones to UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def to_epoch_ns(instant: datetime) -> int:
    return (as_utc(instant) - EPOCH) // ONE_MICROSECOND * 1_000


def from_epoch_ns(nanos: int, tz: tzinfo = timezone.utc) -> datetime:
    """Datetime for ``nanos``, floored to the microsecond."""
    try:
        return (EPOCH + timedelta(microseconds=nanos // 1_000)).astimezone(tz)
    except (OverflowError, ValueError) as exc:
        raise InvalidMagnitude(f"instant hors de la plage du calendrier : {nanos} ns") from exc


def _whole(unit: str, value: int | float) -> int:
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidMagnitude(f"{unit} doit être un entier, reçu {value}")
        return int(value)
    return value


def _nanos(unit: str, value: int | float) -> int:
    if isinstance(value, float):
        # Sub-nanosecond digits are truncated toward zero.
        return int(Decimal(repr(value)) * NANOS[unit])
    return value * NANOS[unit]


def split_record(record: MagnitudeRecord) -> tuple[int, int, int, int]:
    """Return ``(years, months, days, clock_nanos)`` for ``record``.

    Weeks are folded into days. Raises :class:`InvalidMagnitude` for mixed
    signs or a fractional value in a unit above milliseconds.
    """
    record.sign()
    years = months = days = clock = 0
    for unit, value in record.items():
        if unit not in SUBSECOND_UNITS:
            value = _whole(unit, value)
        if unit == "years":
            years = value
        elif unit == "months":
            months = value
        elif unit == "weeks":
            days += value * 7
        elif unit == "days":
            days += value
        else:
            clock += _nanos(unit, value)
    return years, months, days, clock


def _split_clock(nanos: int, largest_unit: str) -> dict[str, int]:
    sign = -1 if nanos < 0 else 1
    remaining = abs(nanos)
    fields: dict[str, int] = {}
    for unit in CLOCK_UNITS[CLOCK_UNITS.index(largest_unit):]:
        amount, remaining = divmod(remaining, NANOS[unit])
        if amount:
            fields[unit] = sign * amount
    return fields


def _trunc_div(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient


def largest_unit_of(record: MagnitudeRecord) -> str:
    for unit, value in record.items():
        if value != 0:
            return unit
    return "nanoseconds"


class CalendarProvider:
    """Zone-aware duration arithmetic on top of ``dateutil`` and ``zoneinfo``."""

    def __init__(self, clock: Optional[Clock] = None, default_zone: str = "UTC") -> None:
        self.clock = clock or SystemClock()
        self.default_zone = default_zone

    def now(self) -> datetime:
        return as_utc(self.clock.now())

    def today(self, zone: Optional[str] = None) -> date:
        return self.localize(self.now(), zone).date()

    def zone(self, name: Optional[str] = None) -> tzinfo:
        key = (name or self.default_zone).strip()
        if key.upper() == "UTC":
            return timezone.utc
        try:
            return ZoneInfo(key)
        except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
            raise UnknownZone(key) from exc

    def localize(self, instant: datetime, zone: Optional[str] = None) -> datetime:
        return as_utc(instant).astimezone(self.zone(zone))

    def apply(self, start: datetime, record: MagnitudeRecord) -> int:
        """Epoch nanoseconds of ``start`` moved by ``record``."""
        return self._apply_ns(to_epoch_ns(start), start.tzinfo, record)

    def _apply_ns(self, start_ns: int, tz: Optional[tzinfo], record: MagnitudeRecord) -> int:
        years, months, days, clock = split_record(record)
        wall = from_epoch_ns(start_ns, tz or timezone.utc)
        try:
            if years or months or days:
                wall = wall + relativedelta(years=years, months=months, days=days)
            base = to_epoch_ns(wall)
        except (OverflowError, ValueError) as exc:
            raise InvalidMagnitude(f"hors de la plage du calendrier : {record.as_dict()}") from exc
        return base + start_ns % 1_000 + clock

    def difference(self, start: datetime, end_ns: int, largest_unit: str = "years") -> MagnitudeRecord:
        """Balanced record leading from ``start`` to ``end_ns``.

        Only non-zero fields are set. Units above ``largest_unit`` stay empty;
        weeks only show up when ``largest_unit`` is ``"weeks"``.
        """
        if largest_unit not in UNITS:
            raise ValueError(f"unité inconnue : {largest_unit}")
        start_ns = to_epoch_ns(start)
        if end_ns == start_ns:
            return MagnitudeRecord()
        if largest_unit in CLOCK_UNITS:
            return MagnitudeRecord(**_split_clock(end_ns - start_ns, largest_unit))

        sign = 1 if end_ns > start_ns else -1
        tz = start.tzinfo or timezone.utc
        start_wall = start.astimezone(tz).replace(tzinfo=None)
        end_wall = from_epoch_ns(end_ns, tz).replace(tzinfo=None)

        years = months = 0
        if largest_unit in ("years", "months"):
            gap = relativedelta(end_wall, start_wall)
            years, months, days = gap.years, gap.months, gap.days
            if largest_unit == "months":
                years, months = 0, years * 12 + months
        else:
            days = _trunc_div((end_wall - start_wall) // ONE_MICROSECOND, 86_400 * 10**6)

        # Wall-clock units and elapsed time can disagree around DST changes:
        # step back until the remainder has the sign of the whole difference.
        while True:
            middle = start + relativedelta(years=years, months=months, days=days)
            remainder = end_ns - to_epoch_ns(middle)
            if remainder == 0 or (remainder > 0) == (sign > 0):
                break
            if days:
                days -= sign
            elif years or months:
                total_months = years * 12 + months - sign
                years = _trunc_div(total_months, 12) if largest_unit == "years" else 0
                months = total_months - years * 12
                base_wall = (start + relativedelta(years=years, months=months)).replace(tzinfo=None)
                days = _trunc_div((end_wall - base_wall) // ONE_MICROSECOND, 86_400 * 10**6)
            else:
                break

        fields: dict[str, int] = {"years": years, "months": months}
        if largest_unit == "weeks":
            fields["weeks"] = _trunc_div(days, 7)
            days -= fields["weeks"] * 7
        fields["days"] = days
        fields.update(_split_clock(remainder, "hours"))
        return MagnitudeRecord(**{unit: value for unit, value in fields.items() if value})

    def add(
        self,
        first: MagnitudeRecord,
        second: MagnitudeRecord,
        relative_to: datetime,
    ) -> MagnitudeRecord:
        """``first + second`` measured from ``relative_to``."""
        middle_ns = self.apply(relative_to, first)
        end_ns = self._apply_ns(middle_ns, relative_to.tzinfo, second)
        largest = min(
            UNITS.index(largest_unit_of(first)),
            UNITS.index(largest_unit_of(second)),
        )
        return self.difference(relative_to, end_ns, UNITS[largest])

    def subtract(
        self,
        first: MagnitudeRecord,
        second: MagnitudeRecord,
        relative_to: datetime,
    ) -> MagnitudeRecord:
        return self.add(first, second.negated(), relative_to)

    def balance(
        self,
        record: MagnitudeRecord,
        relative_to: datetime,
        largest_unit: str = "years",
    ) -> MagnitudeRecord:
        return self.difference(relative_to, self.apply(relative_to, record), largest_unit)

    def total(self, record: MagnitudeRecord, unit: str, relative_to: datetime) -> float:
        """Length of ``record`` from ``relative_to`` expressed in ``unit``."""
        start_ns = to_epoch_ns(relative_to)
        end_ns = self.apply(relative_to, record)
        if unit in NANOS:
            return (end_ns - start_ns) / NANOS[unit]
        if unit not in ("years", "months"):
            raise ValueError(f"unité inconnue : {unit}")

        whole = int(self.difference(relative_to, end_ns, unit).get(unit))
        base_ns = self.apply(relative_to, MagnitudeRecord(**{unit: whole}))
        if end_ns == base_ns:
            return float(whole)
        step = 1 if end_ns > base_ns else -1
        next_ns = self.apply(relative_to, MagnitudeRecord(**{unit: whole + step}))
        return whole + step * (end_ns - base_ns) / abs(next_ns - base_ns)


_default_calendar: Optional[CalendarProvider] = None


def default_calendar() -> CalendarProvider:
    """Process-wide provider on the system clock, built on first use."""
    global _default_calendar
    if _default_calendar is None:
        settings = load_duration_settings()
        _default_calendar = CalendarProvider(SystemClock(), default_zone=settings.default_zone)
        log.debug("Calendrier par défaut créé (fuseau %s)", settings.default_zone)
    return _default_calendar


def set_default_calendar(calendar: Optional[CalendarProvider]) -> None:
    global _default_calendar
    _default_calendar = calendar
