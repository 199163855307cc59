from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from bazi_core.bazi import Direction, pillar_from_label
from bazi_core.errors import CalendarProviderUnavailable, UnknownPillarLabel
from bazi_core.luck import (
    LuckOnset,
    compute_luck_onset,
    elapsed_minutes,
    first_luck_pillar,
    luck_pillar_sequence,
    onset_from_minutes,
)

DAY = 1440


def test_eighteen_days_is_six_years() -> None:
    onset = onset_from_minutes(18 * DAY)
    assert (onset.years, onset.months, onset.days) == (6, 0, 0)
    assert onset.starting_age == 6


def test_forty_days_floors_not_rounds() -> None:
    """40 days is 13 years 4 months, starting age 13."""

    onset = onset_from_minutes(40 * DAY)
    assert (onset.years, onset.months, onset.days) == (13, 4, 0)
    assert onset.starting_age == 13


def test_hours_become_days() -> None:
    """One hour counts as five days of onset."""

    onset = onset_from_minutes(10 * DAY + 5 * 60)
    assert (onset.years, onset.months, onset.days) == (3, 4, 25)
    assert onset.detail == "3岁4个月25天"


def test_days_overflow_into_months() -> None:
    """Twelve hours is sixty days, carried as two months."""

    onset = onset_from_minutes(1 * DAY + 12 * 60)
    assert (onset.years, onset.months, onset.days) == (0, 6, 0)
    assert onset.starting_age == 1


def test_day_carry_keeps_months_in_range() -> None:
    """Hours carried into months never push the month count past 11."""

    onset = onset_from_minutes(2 * DAY + 23 * 60 + 54)
    # hours = 23.9 → 119 days → 3 months 29 days; 8 + 3 = 11 months
    assert (onset.years, onset.months, onset.days) == (0, 11, 29)

    onset = onset_from_minutes(5 * DAY + 18 * 60)
    # 1 year 8 months, 18 hours → 90 days → 3 months
    assert (onset.years, onset.months, onset.days) == (1, 11, 0)

    onset = onset_from_minutes(5 * DAY + 21 * 60)
    # 21 hours → 105 days → 3 months 15 days
    assert (onset.years, onset.months, onset.days) == (1, 11, 15)


def test_onset_fields_stay_in_range() -> None:
    for minutes in range(2 * DAY, 3 * DAY):
        onset = onset_from_minutes(minutes)
        assert 0 <= onset.months <= 11
        assert 0 <= onset.days <= 29


@pytest.mark.parametrize("minutes", [0, 1, 59, DAY - 1, DAY, 2 * DAY + 1439, 3 * DAY - 1])
def test_starting_age_is_at_least_one(minutes: int) -> None:
    assert onset_from_minutes(minutes).starting_age >= 1


def test_starting_age_keeps_whole_years_only() -> None:
    """3 years 8 months still starts at age 3."""

    onset = onset_from_minutes(11 * DAY)
    assert (onset.years, onset.months) == (3, 8)
    assert onset.starting_age == 3


def test_negative_duration_rejected() -> None:
    with pytest.raises(ValueError):
        onset_from_minutes(-1)


def test_elapsed_minutes_direction() -> None:
    moment = datetime(2000, 1, 1, 12, 0)
    later = moment + timedelta(days=2, minutes=30, seconds=59)
    earlier = moment - timedelta(hours=5)

    assert elapsed_minutes(moment, later, Direction.FORWARD) == 2 * DAY + 30
    assert elapsed_minutes(moment, earlier, Direction.BACKWARD) == 300
    assert elapsed_minutes(moment, earlier, Direction.FORWARD) == -300


def test_first_luck_pillar_steps_month_pillar() -> None:
    assert first_luck_pillar("甲子", Direction.FORWARD).label == "乙丑"
    assert first_luck_pillar("甲子", Direction.BACKWARD).label == "癸亥"
    assert first_luck_pillar(pillar_from_label("己卯", "month"), Direction.FORWARD).label == "庚辰"
    assert first_luck_pillar("癸亥", Direction.FORWARD).position == "luck"
    assert first_luck_pillar("癸亥", Direction.FORWARD).label == "甲子"


def test_first_luck_pillar_rejects_unknown_month() -> None:
    with pytest.raises(UnknownPillarLabel):
        first_luck_pillar("甲丑", Direction.FORWARD)


def test_compute_luck_onset_forward(make_provider) -> None:
    """Forward luck measures to the next Jie."""

    provider = make_provider(next_after=timedelta(days=18))
    moment = datetime(1990, 3, 15, 10, 30)

    first, onset = compute_luck_onset(moment, pillar_from_label("己卯"), Direction.FORWARD, provider)

    assert first.label == "庚辰"
    assert onset.starting_age == 6
    assert provider.calls == [("next_jie", moment)]


def test_compute_luck_onset_backward(make_provider) -> None:
    """Backward luck measures from the previous Jie."""

    provider = make_provider(prev_before=timedelta(days=40))
    moment = datetime(1990, 3, 15, 10, 30)

    first, onset = compute_luck_onset(moment, "己卯", Direction.BACKWARD, provider)

    assert first.label == "戊寅"
    assert (onset.years, onset.months, onset.days) == (13, 4, 0)
    assert onset.starting_age == 13
    assert provider.calls == [("prev_jie", moment)]


def test_compute_luck_onset_short_span(make_provider) -> None:
    """A Jie a few hours away still yields starting age 1."""

    provider = make_provider(next_after=timedelta(hours=3, minutes=20))
    _first, onset = compute_luck_onset(datetime(2000, 1, 1), "甲子", Direction.FORWARD, provider)

    assert (onset.years, onset.months, onset.days) == (0, 0, 16)
    assert onset.starting_age == 1


def test_compute_luck_onset_wrong_side_boundary(make_provider) -> None:
    """A 'next' Jie in the past is a provider failure."""

    provider = make_provider(next_after=timedelta(days=-1))
    with pytest.raises(CalendarProviderUnavailable):
        compute_luck_onset(datetime(2000, 1, 1), "甲子", Direction.FORWARD, provider)


def test_luck_pillar_sequence() -> None:
    first = first_luck_pillar("己卯", Direction.BACKWARD)
    sequence = luck_pillar_sequence(first, Direction.BACKWARD, starting_age=4, count=3)

    assert [lp["label"] for lp in sequence] == ["戊寅", "丁丑", "丙子"]
    assert [(lp["age_start"], lp["age_end"]) for lp in sequence] == [(4, 13), (14, 23), (24, 33)]
    assert sequence[0]["number"] == 1


def test_luck_onset_to_dict() -> None:
    data = LuckOnset(years=0, months=5, days=10, total_minutes=2000).to_dict()
    assert data["starting_age"] == 1
    assert data["detail"] == "0岁5个月10天"
