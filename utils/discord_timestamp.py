"""Discord ``<t:epoch:style>`` timestamp tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum

from discord.utils import format_dt

from utils.duration_errors import InvalidMagnitude

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class TimestampStyle(str, Enum):
    SHORT_TIME = "t"
    LONG_TIME = "T"
    SHORT_DATE = "d"
    LONG_DATE = "D"
    SHORT_DATE_TIME = "f"
    LONG_DATE_TIME = "F"
    RELATIVE = "R"

    @classmethod
    def parse(cls, value: "TimestampStyle | str") -> "TimestampStyle":
        """Accept a member, its style character or its name (``"relative"``)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            pass
        name = str(value).strip().upper().replace("-", "_").replace(" ", "_")
        if name in cls.__members__:
            return cls.__members__[name]
        raise ValueError(f"Style de timestamp inconnu : {value!r}")


def format_timestamp(epoch_seconds: int, style: TimestampStyle | str = TimestampStyle.SHORT_DATE_TIME) -> str:
    try:
        moment = EPOCH + timedelta(seconds=epoch_seconds)
    except OverflowError as exc:
        raise InvalidMagnitude(f"timestamp hors de la plage du calendrier : {epoch_seconds}") from exc
    return format_dt(moment, style=TimestampStyle.parse(style).value)
