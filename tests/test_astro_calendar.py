from __future__ import annotations

from datetime import datetime

import pytest

from bazi_core.astro_calendar import (
    day_of_year,
    equation_of_time,
    estimate_utc_offset,
    lmt_correction,
    parse_moment,
    solar_time_offset,
    true_solar_time,
)
from bazi_core.errors import InvalidMomentFormat


def test_parse_moment() -> None:
    """Form-style date and time parse to a naive datetime."""

    assert parse_moment("1990-04-20", "08:30") == datetime(1990, 4, 20, 8, 30)
    assert parse_moment(" 2000-02-29 ", "23:59") == datetime(2000, 2, 29, 23, 59)
    assert parse_moment(datetime(1990, 4, 20, 8, 30, 15)) == datetime(1990, 4, 20, 8, 30)
    assert parse_moment(datetime(1990, 4, 20), "08:30") == datetime(1990, 4, 20, 8, 30)


@pytest.mark.parametrize(
    "date, time",
    [
        ("1990-13-01", "08:30"),
        ("1990-02-30", "08:30"),
        ("1990/04/20", "08:30"),
        ("1990-04-20", "24:00"),
        ("1990-04-20", "08:60"),
        ("1990-04-20", "eight"),
        ("", ""),
        ("1990-04-20", None),
    ],
)
def test_parse_moment_rejects_malformed_input(date, time) -> None:
    """Unparsable components raise InvalidMomentFormat."""

    with pytest.raises(InvalidMomentFormat):
        parse_moment(date, time)


@pytest.mark.parametrize(
    "moment",
    [
        datetime(1990, 4, 20, 8, 30),
        datetime(2000, 1, 1, 0, 0),
        datetime(1999, 12, 31, 23, 59),
        datetime(2024, 2, 29, 12, 0),
    ],
)
def test_no_longitude_is_identity(moment: datetime) -> None:
    """Without longitude the moment passes through untouched."""

    assert true_solar_time(moment) == moment
    assert true_solar_time(moment, None, utc_offset=-5.5) == moment


def test_lmt_correction() -> None:
    assert lmt_correction(120.0) == 0.0
    assert lmt_correction(108.37) == pytest.approx(-46.52)
    assert lmt_correction(87.6, 8 * 15) == pytest.approx(-129.6)
    assert lmt_correction(-122.4194, -120.0) == pytest.approx(-9.6776)


def test_day_of_year() -> None:
    assert day_of_year(datetime(2023, 1, 1)) == 1
    assert day_of_year(datetime(2023, 12, 31)) == 365
    assert day_of_year(datetime(2024, 12, 31)) == 366


def test_equation_of_time_bounded_and_continuous() -> None:
    """EOT stays within ±20 minutes and moves less than a minute per day."""

    values = [equation_of_time(d) for d in range(1, 367)]
    assert all(-20 < v < 20 for v in values)
    assert all(abs(b - a) < 1.0 for a, b in zip(values, values[1:]))


def test_equation_of_time_seasonal_extremes() -> None:
    """Early November runs ahead, mid February runs behind."""

    assert equation_of_time(307) > 15  # Nov 3
    assert equation_of_time(42) < -13  # Feb 11


def test_reference_meridian_has_no_longitude_offset() -> None:
    """At the zone meridian only the equation of time remains."""

    moment = datetime(2023, 11, 3, 12, 0)
    offset = solar_time_offset(moment, 120.0, 8.0)
    assert offset == pytest.approx(equation_of_time(307))
    assert true_solar_time(moment, 120.0, 8.0) == datetime(2023, 11, 3, 12, int(offset))


def test_west_of_meridian_moves_clock_back() -> None:
    """Urumqi (87.6°E) on China time is over two hours behind the clock."""

    corrected = true_solar_time(datetime(2023, 6, 1, 1, 0), 87.6, 8.0)
    # -129.6 min longitude offset, EOT about +2.4 min
    assert corrected == datetime(2023, 5, 31, 22, 53)


def test_offset_is_truncated_toward_zero() -> None:
    """The fractional part of the new minute value is dropped."""

    moment = datetime(2023, 6, 1, 10, 30)
    total = 30 + solar_time_offset(moment, 108.37, 8.0)
    assert total < 0
    corrected = true_solar_time(moment, 108.37, 8.0)
    # -44.15 min total: 30 - 44.15 = -14.15 truncates to -14, floor would give -15
    assert corrected == datetime(2023, 6, 1, 9, 46)


def test_rollover_into_next_year() -> None:
    """Large positive offsets roll the date forward across New Year."""

    corrected = true_solar_time(datetime(1999, 12, 31, 23, 50), 150.0, 8.0)
    # +120 min longitude offset, EOT about -3.3 min
    assert corrected == datetime(2000, 1, 1, 1, 46)


def test_fractional_zone() -> None:
    """Half-hour zones use a meridian at 82.5°E."""

    moment = datetime(2023, 4, 15, 12, 0)
    offset = solar_time_offset(moment, 82.5, 5.5)
    assert offset == pytest.approx(equation_of_time(105))


def test_estimate_utc_offset() -> None:
    assert estimate_utc_offset(116.4) == 8
    assert estimate_utc_offset(-122.4) == -8
    assert estimate_utc_offset(2.35) == 0
