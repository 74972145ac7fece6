from __future__ import annotations

import math
from typing import Any, Iterator, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, ValidationError, field_validator

from utils.duration_errors import InvalidMagnitude

# Largest unit first.
UNITS: tuple[str, ...] = (
    "years",
    "months",
    "weeks",
    "days",
    "hours",
    "minutes",
    "seconds",
    "milliseconds",
    "microseconds",
    "nanoseconds",
)

CALENDAR_UNITS: tuple[str, ...] = ("years", "months", "weeks", "days")
SUBSECOND_UNITS: tuple[str, ...] = ("milliseconds", "microseconds", "nanoseconds")

# Strict: "5" or True are not magnitudes.
Magnitude = Union[StrictInt, StrictFloat]


class MagnitudeRecord(BaseModel):
    """Ten optional, signed duration fields.

    Unset fields read as zero. Values are kept exactly as given: nothing is
    carried from one unit into another until a ``Duration`` balances the
    record against an anchor.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    years: Optional[Magnitude] = None
    months: Optional[Magnitude] = None
    weeks: Optional[Magnitude] = None
    days: Optional[Magnitude] = None
    hours: Optional[Magnitude] = None
    minutes: Optional[Magnitude] = None
    seconds: Optional[Magnitude] = None
    milliseconds: Optional[Magnitude] = None
    microseconds: Optional[Magnitude] = None
    nanoseconds: Optional[Magnitude] = None

    @field_validator("*")
    @classmethod
    def _finite(cls, value: Optional[Magnitude]) -> Optional[Magnitude]:
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("valeur non finie")
        return value

    @classmethod
    def from_mapping(cls, data: Any) -> "MagnitudeRecord":
        if isinstance(data, cls):
            return data
        if not isinstance(data, Mapping):
            raise InvalidMagnitude(f"enregistrement attendu, reçu {type(data).__name__}")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '?'}: {err['msg']}"
                for err in exc.errors()
            )
            raise InvalidMagnitude(problems) from exc

    def get(self, unit: str) -> Magnitude:
        if unit not in UNITS:
            raise KeyError(unit)
        value = getattr(self, unit)
        return 0 if value is None else value

    def items(self) -> Iterator[tuple[str, Magnitude]]:
        for unit in UNITS:
            value = getattr(self, unit)
            if value is not None:
                yield unit, value

    def as_dict(self) -> dict[str, Magnitude]:
        return dict(self.items())

    def negated(self) -> "MagnitudeRecord":
        return MagnitudeRecord(**{unit: -value for unit, value in self.items()})

    def is_zero(self) -> bool:
        return all(value == 0 for _, value in self.items())

    def sign(self) -> int:
        """Return -1, 0 or 1; raise :class:`InvalidMagnitude` on mixed signs."""
        signs = {1 if value > 0 else -1 for _, value in self.items() if value != 0}
        if len(signs) > 1:
            raise InvalidMagnitude(f"signes mélangés dans {self.as_dict()}")
        return signs.pop() if signs else 0
