"""
Chart creation library.
Computes the Four Pillars and first luck pillar from birth data.

Usage from Python:
    from bazi_core.create_chart import compute_bazi_chart
    chart = compute_bazi_chart(
        birth_date="1990-03-15", birth_time="10:30", gender="male",
        longitude=116.40, latitude=39.90,
        utc_offset=8,  # optional: defaults to BAZI_DEFAULT_UTC_OFFSET
    )
    chart.to_dict()
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union
from zoneinfo import ZoneInfo
import logging

from timezonefinder import TimezoneFinder

from bazi_core.astro_calendar import (
    estimate_utc_offset, parse_moment, solar_time_offset, true_solar_time,
)
from bazi_core.bazi import (
    Direction, FourPillars, Gender, Pillar, luck_direction, stem_as_dict,
)
from bazi_core.config import get_settings
from bazi_core.luck import LuckOnset, compute_luck_onset, luck_pillar_sequence
from bazi_core.providers import CalendarProvider, get_provider, resolve_pillars

logger = logging.getLogger(__name__)

_tf = TimezoneFinder()


def utc_offset_for(latitude: float, longitude: float, moment: datetime):
    """
    Determine the zone's standard UTC offset from coordinates and date.

    True solar time works from the standard meridian, so any DST in
    effect at the birth moment is stripped.

    timezonefinder answers Etc/GMT±N for open sea, so a missing zone
    only happens when the lookup itself fails. The nominal zone of the
    longitude is used then, with no timezone name.

    Returns:
        (standard_offset, timezone_name, dst_detected)
    """
    tz_name = _tf.timezone_at(lat=latitude, lng=longitude)
    if tz_name is None:
        offset = float(estimate_utc_offset(longitude))
        logger.warning("No timezone at (%s, %s), using nominal UTC%+g",
                       latitude, longitude, offset)
        return offset, None, False

    local_dt = moment.replace(tzinfo=ZoneInfo(tz_name))
    clock_offset = local_dt.utcoffset().total_seconds() / 3600

    dst = local_dt.dst()
    dst_detected = dst is not None and dst.total_seconds() > 0
    if dst_detected:
        standard_offset = clock_offset - dst.total_seconds() / 3600
    else:
        standard_offset = clock_offset

    return standard_offset, tz_name, dst_detected


@dataclass(frozen=True)
class BaziChart:
    birth_moment: datetime
    corrected_moment: datetime
    gender: Gender
    longitude: Optional[float]
    latitude: Optional[float]
    utc_offset: float
    correction_minutes: float
    provider: str
    pillars: FourPillars
    direction: Direction
    first_luck_pillar: Pillar
    onset: LuckOnset
    luck_pillars: list

    @property
    def start_age(self) -> int:
        return self.onset.starting_age

    def to_dict(self):
        day_master = self.pillars.day.stem
        return {
            "year_pillar": self.pillars.year.label,
            "month_pillar": self.pillars.month.label,
            "day_pillar": self.pillars.day.label,
            "hour_pillar": self.pillars.hour.label,
            "first_luck_pillar": self.first_luck_pillar.label,
            "start_age": self.start_age,
            "input": {
                "birth_date": self.birth_moment.strftime("%Y-%m-%d"),
                "birth_time": self.birth_moment.strftime("%H:%M"),
                "gender": self.gender.value,
                "longitude": self.longitude,
                "latitude": self.latitude,
                "utc_offset": self.utc_offset,
            },
            "true_solar_time": self.corrected_moment.strftime("%Y-%m-%d %H:%M"),
            "correction_minutes": round(self.correction_minutes, 2),
            "provider": self.provider,
            "day_master": stem_as_dict(day_master),
            "pillars": {p.position: p.to_dict() for p in self.pillars.ordered()},
            "luck_direction": {
                "direction": self.direction.value,
                "description": self.direction.description,
            },
            "luck_onset": self.onset.to_dict(),
            "luck_pillars": self.luck_pillars,
        }


def compute_bazi_chart(birth_date: Union[datetime, str], birth_time: Optional[str],
                       gender: Union[Gender, str],
                       longitude: Optional[float] = None,
                       latitude: Optional[float] = None,
                       utc_offset: Optional[float] = None,
                       provider: Optional[CalendarProvider] = None) -> BaziChart:
    """
    Compute a BaZi chart from birth data.

    Args:
        birth_date: "YYYY-MM-DD" or datetime
        birth_time: "HH:MM" (24h, local clock time)
        gender: "male" or "female" — determines luck pillar direction
        longitude: float (east positive) — enables true solar time
        latitude: accepted for the record; no hemisphere adjustment is made
        utc_offset: hours east of UTC of the birth clock (default +8)
        provider: calendar backend; defaults to the configured one

    Returns:
        BaziChart

    Raises:
        InvalidMomentFormat: unparsable date or time
        InvalidChartInput: unknown gender
        CalendarProviderUnavailable: the calendar backend failed
        UnknownPillarLabel: the calendar backend returned a bad label
    """
    settings = get_settings()
    moment = parse_moment(birth_date, birth_time)
    gender = Gender.parse(gender)
    if utc_offset is None:
        utc_offset = settings.default_utc_offset
    if provider is None:
        provider = get_provider(utc_offset=utc_offset)

    corrected = true_solar_time(moment, longitude, utc_offset)
    correction = solar_time_offset(moment, longitude, utc_offset) if longitude is not None else 0.0

    pillars = resolve_pillars(corrected, provider)
    direction = luck_direction(pillars.year.stem, gender)
    first, onset = compute_luck_onset(corrected, pillars.month, direction, provider)
    sequence = luck_pillar_sequence(first, direction, onset.starting_age,
                                    count=settings.luck_pillar_count)

    logger.info("Chart %s %s: %s, first luck pillar %s from age %d (%s)",
                moment.strftime("%Y-%m-%d %H:%M"), gender.value,
                " ".join(p.label for p in pillars.ordered()),
                first.label, onset.starting_age, onset.detail)

    return BaziChart(
        birth_moment=moment,
        corrected_moment=corrected,
        gender=gender,
        longitude=longitude,
        latitude=latitude,
        utc_offset=utc_offset,
        correction_minutes=correction,
        provider=provider.name,
        pillars=pillars,
        direction=direction,
        first_luck_pillar=first,
        onset=onset,
        luck_pillars=sequence,
    )
