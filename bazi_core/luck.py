"""
Luck Pillar (大运 Da Yun) onset.

The first luck pillar is one step from the Month pillar through the
60-entry cycle, forward or backward. It begins after a span measured
from birth to the nearest Jie boundary in that direction:

    3 days  = 1 year
    1 day   = 4 months
    1 hour  = 5 days

The starting age is the whole-year part of that span, never below 1.
Months and days are kept only for the detail string.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
import math

from bazi_core.bazi import Direction, Pillar, index_of, pillar_at, step
from bazi_core.errors import CalendarProviderUnavailable

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440


@dataclass(frozen=True)
class LuckOnset:
    years: int
    months: int  # 0-11
    days: int    # 0-29
    total_minutes: int = 0

    @property
    def starting_age(self) -> int:
        return max(1, self.years)

    @property
    def detail(self) -> str:
        return f"{self.years}岁{self.months}个月{self.days}天"

    def to_dict(self):
        return {
            "years": self.years,
            "months": self.months,
            "days": self.days,
            "starting_age": self.starting_age,
            "detail": self.detail,
            "total_minutes": self.total_minutes,
        }


def onset_from_minutes(total_minutes: int) -> LuckOnset:
    """
    Convert birth-to-Jie distance into a luck onset span.

    Example:
        18 days → 6 years 0 months 0 days
        40 days → 13 years 4 months 0 days
    """
    if total_minutes < 0:
        raise ValueError(f"Elapsed minutes must be non-negative, got {total_minutes}")

    days = total_minutes // MINUTES_PER_DAY
    hours = (total_minutes % MINUTES_PER_DAY) / 60

    years = days // 3
    months = (days % 3) * 4
    days_out = math.floor(hours * 5)

    if days_out >= 30:
        months += days_out // 30
        days_out %= 30
    if months >= 12:
        years += months // 12
        months %= 12

    return LuckOnset(years=years, months=months, days=days_out, total_minutes=total_minutes)


def elapsed_minutes(moment: datetime, boundary: datetime, direction: Direction) -> int:
    """Whole minutes from moment to boundary (forward) or boundary to moment (backward)."""
    if direction is Direction.FORWARD:
        delta = boundary - moment
    else:
        delta = moment - boundary
    return math.floor(delta.total_seconds() / 60)


def first_luck_pillar(month_pillar, direction: Direction) -> Pillar:
    """Month pillar stepped once through the cycle in the luck direction."""
    label = month_pillar.label if isinstance(month_pillar, Pillar) else month_pillar
    return pillar_at(step(index_of(label), direction), position="luck")


def compute_luck_onset(moment: datetime, month_pillar, direction: Direction,
                       provider) -> tuple[Pillar, LuckOnset]:
    """
    First luck pillar and its onset.

    Args:
        moment: corrected birth moment
        month_pillar: Month pillar (Pillar or label)
        direction: luck direction from luck_direction()
        provider: CalendarProvider answering next_jie / prev_jie

    Returns:
        (first luck pillar, LuckOnset)

    Raises:
        CalendarProviderUnavailable: provider failed, or returned a
            boundary on the wrong side of the moment
    """
    first = first_luck_pillar(month_pillar, direction)

    if direction is Direction.FORWARD:
        boundary = provider.next_jie(moment)
    else:
        boundary = provider.prev_jie(moment)
    if boundary is None:
        raise CalendarProviderUnavailable(
            f"{provider.name} returned no Jie boundary for {moment}", provider=provider.name)

    minutes = elapsed_minutes(moment, boundary, direction)
    if minutes < 0:
        raise CalendarProviderUnavailable(
            f"{provider.name} returned {direction.value} Jie {boundary} on the wrong side of {moment}",
            provider=provider.name,
            details={"moment": moment.isoformat(), "boundary": boundary.isoformat()},
        )

    onset = onset_from_minutes(minutes)
    logger.debug("Luck onset %s (boundary %s, %d minutes), first luck pillar %s",
                 onset.detail, boundary, minutes, first.label)
    return first, onset


def luck_pillar_sequence(first: Pillar, direction: Direction, starting_age: int,
                         count: int = 8) -> list[dict]:
    """
    Successive luck pillars from the first one, ten years each.

    Returns:
        List of dicts with number, label, pinyin, age_start, age_end
    """
    pillars = []
    index = first.index
    for i in range(count):
        pillar = pillar_at(index, position="luck")
        age_start = starting_age + i * 10
        age_end = age_start + 9
        pillars.append({
            "number": i + 1,
            "label": pillar.label,
            "pinyin": pillar.pinyin,
            "stem_element": pillar.stem.element.value,
            "branch_animal": pillar.branch.animal,
            "age_start": age_start,
            "age_end": age_end,
            "description": f"LP{i + 1}: {pillar.label} {pillar.pinyin} ({pillar.branch.animal}) ages {age_start}-{age_end}",
        })
        index = step(index, direction)
    return pillars
