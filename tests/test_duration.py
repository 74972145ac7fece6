from datetime import datetime, timedelta, timezone

import pytest

from duration import Anchor, Duration, Magnitudes, Text, as_input
from models import MagnitudeRecord
from utils.calendar_provider import set_default_calendar
from utils.discord_timestamp import TimestampStyle
from utils.duration_errors import InvalidMagnitude, MalformedNumber, UnknownUnit, UnknownZone

UTC = timezone.utc
JAN_31_2023 = Anchor(datetime(2023, 1, 31, tzinfo=UTC))
JAN_31_2024 = Anchor(datetime(2024, 1, 31, tzinfo=UTC))
JAN_1_2023 = Anchor(datetime(2023, 1, 1, tzinfo=UTC))

# Instant of the `clock` fixture, 2023-06-15T12:00:00Z.
FROZEN_EPOCH = 1686830400


def test_to_string_from_text(calendar):
    text = str(Duration("1h30m", calendar=calendar))
    assert text == "1 hour 30 minutes "
    assert text.index("1 hour") < text.index("30 minutes")


def test_raw_value_is_kept_without_anchor(calendar):
    d = Duration("90m", calendar=calendar)
    assert d.record.as_dict() == {"minutes": 90}
    assert str(d) == "90 minutes "


def test_anchor_at_construction_balances(calendar):
    d = Duration("90m", JAN_1_2023, calendar=calendar)
    assert d.record.as_dict() == {"hours": 1, "minutes": 30}


def test_to_string_pluralisation(calendar):
    d = Duration({"years": 1, "days": 2, "hours": 1, "minutes": 1, "seconds": 1}, calendar=calendar)
    assert d.to_string() == "1 year 2 days 1 hour 1 minute 1 second "
    assert str(Duration("-1h", calendar=calendar)) == "-1 hour "
    assert str(Duration("-2y", calendar=calendar)) == "-2 years "


def test_to_string_skips_unrendered_units(calendar):
    assert str(Duration("2w3mo5ms", calendar=calendar)) == ""
    assert str(Duration("0s", calendar=calendar)) == ""
    assert str(Duration("3w1d", calendar=calendar)) == "1 day "


def test_add_returns_self(calendar):
    d = Duration("1h", calendar=calendar)
    assert d.add("30m") is d
    assert d.sub("10m") is d


def test_add_without_anchor_uses_clock(calendar):
    d = Duration("1h", calendar=calendar).add("90m")
    assert d.record.as_dict() == {"hours": 2, "minutes": 30}


def test_add_one_month_from_january_31(calendar):
    d = Duration("0s", calendar=calendar).add({"months": 1}, JAN_31_2023)
    assert d.record.as_dict() == {"months": 1}
    # Day of month is clamped: Feb 28 in 2023, Feb 29 in 2024.
    assert d.total("days", JAN_31_2023) == 28.0
    assert d.total("days", JAN_31_2024) == 29.0


def test_add_carries_into_larger_units(calendar):
    d = Duration("30d", calendar=calendar).add("15d", JAN_1_2023)
    assert d.record.as_dict() == {"months": 1, "days": 14}

    d = Duration("6mo", calendar=calendar).add("7mo", JAN_1_2023)
    assert d.record.as_dict() == {"years": 1, "months": 1}


def test_add_accepts_records_and_tagged_inputs(calendar):
    d = Duration("1h", calendar=calendar)
    d.add(MagnitudeRecord(minutes=15)).add(Text("15m")).add(Magnitudes.of({"minutes": 30}))
    assert d.record.as_dict() == {"hours": 2}


def test_add_weeks(calendar):
    d = Duration("1w", calendar=calendar).add("1w", JAN_1_2023)
    assert d.record.as_dict() == {"days": 14}


def test_sub(calendar):
    d = Duration("2h", calendar=calendar).sub("30m")
    assert d.record.as_dict() == {"hours": 1, "minutes": 30}


def test_sub_below_zero(calendar):
    d = Duration("1h", calendar=calendar).sub("2h")
    assert d.record.as_dict() == {"hours": -1}
    assert str(d) == "-1 hour "


def test_sub_month_from_march(calendar):
    d = Duration("1mo", calendar=calendar).sub("15d", Anchor(datetime(2023, 3, 1, tzinfo=UTC)))
    assert d.record.as_dict() == {"days": 16}


def test_zero_delta_keeps_total(calendar):
    d = Duration("1y2mo3d4h", calendar=calendar)
    before = d.total("milliseconds", JAN_31_2023)
    d.add({}, JAN_31_2023)
    assert d.total("milliseconds", JAN_31_2023) == before
    assert d.record.as_dict() == {"years": 1, "months": 2, "days": 3, "hours": 4}


def test_failed_add_leaves_value_unchanged(calendar):
    d = Duration("1h", calendar=calendar)
    with pytest.raises(UnknownUnit):
        d.sub("5xz")
    with pytest.raises(MalformedNumber):
        d.add("1..5h")
    with pytest.raises(InvalidMagnitude):
        d.add({"hours": 1, "minutes": -30})
    assert d.record.as_dict() == {"hours": 1}


@pytest.mark.parametrize("source", ["-1h30m", "1.5h", {"days": float("inf")}, {"parsecs": 3}, 42])
def test_invalid_magnitude(calendar, source):
    with pytest.raises(InvalidMagnitude):
        Duration(source, calendar=calendar)


def test_parse_error_propagates(calendar):
    with pytest.raises(UnknownUnit):
        Duration("5xz", calendar=calendar)


def test_fractional_sub_second_values(calendar):
    d = Duration("1.5ms", calendar=calendar)
    assert d.total("microseconds", JAN_1_2023) == 1500.0


def test_end_date_is_deterministic(calendar, clock):
    d = Duration("1d2h", calendar=calendar)
    first = d.end_date()
    assert first == clock.now() + timedelta(days=1, hours=2)
    assert d.end_date() == first


def test_end_date_with_anchor(calendar, clock):
    d = Duration("1mo", calendar=calendar)
    assert d.end_date(JAN_31_2023) == clock.now() + timedelta(days=28)
    assert d.end_date(JAN_31_2024) == clock.now() + timedelta(days=29)


def test_end_date_follows_the_clock(calendar, clock):
    d = Duration("1h", calendar=calendar)
    before = d.end_date()
    clock.advance(timedelta(minutes=10))
    assert d.end_date() - before == timedelta(minutes=10)


def test_discord_timestamp_zero_duration(calendar):
    assert Duration("0s", calendar=calendar).to_discord_timestamp() == f"<t:{FROZEN_EPOCH}:f>"


def test_discord_timestamp_styles(calendar):
    d = Duration("1h", calendar=calendar)
    assert d.to_discord_timestamp(TimestampStyle.RELATIVE) == f"<t:{FROZEN_EPOCH + 3600}:R>"
    assert d.to_discord_timestamp("F") == f"<t:{FROZEN_EPOCH + 3600}:F>"


def test_discord_timestamp_with_anchor(calendar):
    d = Duration("1mo", calendar=calendar)
    assert d.to_discord_timestamp("D", JAN_31_2024) == f"<t:{FROZEN_EPOCH + 29 * 86400}:D>"


def test_discord_timestamp_floors_seconds(calendar):
    assert Duration("999ms", calendar=calendar).to_discord_timestamp() == f"<t:{FROZEN_EPOCH}:f>"
    assert Duration("-1ms", calendar=calendar).to_discord_timestamp() == f"<t:{FROZEN_EPOCH - 1}:f>"


def test_anchor_zone_is_respected(calendar):
    # Noon in Paris the day before clocks move forward.
    anchor = Anchor(datetime(2023, 3, 25, 11, tzinfo=UTC), "Europe/Paris")
    assert Duration("1d", calendar=calendar).total("hours", anchor) == 23.0
    assert Duration("1d", calendar=calendar).total("hours", Anchor(anchor.instant)) == 24.0


def test_unknown_anchor_zone(calendar):
    with pytest.raises(UnknownZone):
        Duration("1d", calendar=calendar).add("1d", Anchor(datetime(2023, 1, 1), "Nowhere/Land"))


def test_naive_datetime_anchor(calendar):
    assert Duration("1mo", calendar=calendar).total("days", datetime(2023, 1, 31)) == 28.0


def test_copy_is_independent(calendar):
    d = Duration("1h", calendar=calendar)
    other = d.copy()
    d.add("1h")
    assert other.record.as_dict() == {"hours": 1}
    assert d.record.as_dict() == {"hours": 2}
    assert other.calendar is calendar


def test_equality_ignores_zero_fields(calendar):
    assert Duration("1h", calendar=calendar) == Duration({"hours": 1, "minutes": 0}, calendar=calendar)
    assert Duration("60m", calendar=calendar) != Duration("1h", calendar=calendar)
    assert Duration("1h", calendar=calendar) != "1h"


def test_repr(calendar):
    assert repr(Duration("1h30m", calendar=calendar)) == "Duration({'hours': 1, 'minutes': 30})"


def test_as_input_tags_values(calendar):
    assert as_input("1h") == Text("1h")
    assert isinstance(as_input({"hours": 1}), Magnitudes)
    assert as_input(Duration("1h", calendar=calendar)).record.as_dict() == {"hours": 1}
    with pytest.raises(InvalidMagnitude):
        as_input(3.5)


def test_default_calendar_is_used(calendar):
    set_default_calendar(calendar)
    d = Duration("0s")
    assert d.calendar is calendar
    assert d.to_discord_timestamp() == f"<t:{FROZEN_EPOCH}:f>"


def test_sub_across_spring_forward_keeps_one_sign(calendar):
    # Mar 26 02:30 does not exist in Paris, so "1 month" ends at 03:30.
    anchor = Anchor(datetime(2023, 2, 26, 1, 30, tzinfo=UTC), "Europe/Paris")
    d = Duration("1mo", anchor, calendar=calendar)
    assert d.record.as_dict() == {"months": 1}

    d.sub("20m", anchor)

    assert d.record.as_dict() == {"days": 27, "hours": 23, "minutes": 40}
    assert d.total("minutes", anchor) == 28 * 24 * 60 - 20


def test_clock_units_beyond_calendar_range(calendar):
    d = Duration("100000000h", calendar=calendar)
    with pytest.raises(InvalidMagnitude):
        d.end_date()
    with pytest.raises(InvalidMagnitude):
        d.to_discord_timestamp()
    assert d.record.as_dict() == {"hours": 100000000}


def test_huge_parsed_value_is_a_magnitude_error(calendar):
    d = Duration("9" * 400 + "h", calendar=calendar)
    with pytest.raises(InvalidMagnitude):
        d.end_date()
    with pytest.raises(InvalidMagnitude):
        Duration("9" * 400 + "y", JAN_1_2023, calendar=calendar)
