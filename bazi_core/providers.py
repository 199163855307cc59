"""
Lunisolar calendar providers and the Pillar Resolver.

The core treats calendar conversion as a black box behind the
CalendarProvider capability:

    resolve_pillars(moment) -> {"year": "庚午", "month": ..., "day": ..., "hour": ...}
    next_jie(moment)        -> civil datetime of the next Jie boundary
    prev_jie(moment)        -> civil datetime of the previous Jie boundary

Two backends ship with the package:
- SwissEphemerisProvider: solar terms from pyswisseph, pillars from the
  classical Five Tigers / Five Rats rules
- LunarPythonProvider: lunar-python's EightChar with a fixed sect
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
import logging

import swisseph as swe

from bazi_core.astro_calendar import (
    civil_to_jd, find_nearest_jie, jd_to_civil, li_chun_jd, sun_longitude,
)
from bazi_core.bazi import FourPillars, pillar_from_indices, pillar_from_label
from bazi_core.config import get_settings
from bazi_core.errors import CalendarProviderUnavailable

logger = logging.getLogger(__name__)

PILLAR_POSITIONS = ("year", "month", "day", "hour")


class CalendarProvider(ABC):
    """Capability interface for pillar labels and Jie boundaries."""

    name = "abstract"

    @abstractmethod
    def resolve_pillars(self, moment: datetime) -> dict:
        """Canonical labels keyed by "year", "month", "day", "hour"."""

    @abstractmethod
    def next_jie(self, moment: datetime) -> datetime:
        """First Jie boundary after the moment, as civil time."""

    @abstractmethod
    def prev_jie(self, moment: datetime) -> datetime:
        """Last Jie boundary before the moment, as civil time."""


# ============================================================
# SWISS EPHEMERIS BACKEND
# ============================================================

def sun_longitude_to_month_branch_index(sun_lon: float) -> int:
    """
    Map Sun's ecliptic longitude to BaZi month branch index.

    Solar term Jie boundaries mark BaZi month transitions:
      315° (Li Chun)    → Yin (Tiger, index 2)
      345° (Jing Zhe)   → Mao (Rabbit, index 3)
       15° (Qing Ming)  → Chen (Dragon, index 4)
       ...
      255° (Da Xue)     → Zi (Rat, index 0)
      285° (Xiao Han)   → Chou (Ox, index 1)
    """
    adjusted = (sun_lon - 315) % 360
    month_num = int(adjusted / 30)
    branch_indices = [2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 0, 1]
    return branch_indices[month_num]


def month_stem_index(year_stem_index: int, month_branch_index: int) -> int:
    """
    Month stem by the Five Tigers Escape (Wu Hu Dun) rule.

    - Year stem Jia/Ji → Tiger month stem Bing
    - Year stem Yi/Geng → Wu
    - Year stem Bing/Xin → Geng
    - Year stem Ding/Ren → Ren
    - Year stem Wu/Gui → Jia
    """
    tiger_start = (year_stem_index % 5) * 2 + 2
    months_from_tiger = (month_branch_index - 2) % 12
    return (tiger_start + months_from_tiger) % 10


def hour_branch_index(hour: int) -> int:
    """
    Chinese double-hour (shi chen) for a clock hour.

    23:00-00:59 = Zi (0), 01:00-02:59 = Chou (1), ..., 21:00-22:59 = Hai (11)
    """
    return ((hour + 1) // 2) % 12


def hour_stem_index(day_stem_index: int, hour_branch: int) -> int:
    """
    Hour stem by the Five Rats Escape (Wu Shu Dun) rule.

    - Day stem Jia/Ji → Zi hour stem Jia
    - Day stem Yi/Geng → Bing
    - Day stem Bing/Xin → Wu
    - Day stem Ding/Ren → Geng
    - Day stem Wu/Gui → Ren
    """
    return ((day_stem_index % 5) * 2 + hour_branch) % 10


def day_sexagenary_index(moment: datetime) -> int:
    """
    Sexagenary index of a civil date.

    (JDN + 49) mod 60 with JDN the Julian Day Number at noon.
    Checks: 1949-10-01 = Jia Zi (0), 2000-01-01 = Wu Wu (54).
    """
    jdn = int(swe.julday(moment.year, moment.month, moment.day, 12.0))
    return (jdn + 49) % 60


class SwissEphemerisProvider(CalendarProvider):
    """
    Pillars and Jie boundaries computed with pyswisseph.

    Convention: the year turns at Li Chun, months turn at Jie crossings,
    the day turns at 00:00, and 23:00-23:59 is the Zi hour of the
    following day (its stem comes from the next day's stem).

    Args:
        utc_offset: zone of the civil moments passed in, hours east of UTC
    """

    name = "swisseph"

    def __init__(self, utc_offset: float = 8.0):
        self.utc_offset = utc_offset

    def resolve_pillars(self, moment: datetime) -> dict:
        try:
            jd = civil_to_jd(moment, self.utc_offset)

            year = moment.year
            if jd < li_chun_jd(year):
                year -= 1
            year_stem = (year - 4) % 10
            year_branch = (year - 4) % 12

            month_branch = sun_longitude_to_month_branch_index(sun_longitude(jd))
            month_stem = month_stem_index(year_stem, month_branch)

            day_index = day_sexagenary_index(moment)
            day_stem = day_index % 10

            hour_branch = hour_branch_index(moment.hour)
            zi_day_stem = (day_stem + 1) % 10 if moment.hour == 23 else day_stem
            hour_stem = hour_stem_index(zi_day_stem, hour_branch)
        except swe.Error as e:
            raise CalendarProviderUnavailable(
                f"Swiss Ephemeris failed for {moment:%Y-%m-%d %H:%M}: {e}",
                provider=self.name,
            ) from e

        return {
            "year": pillar_from_indices(year_stem, year_branch).label,
            "month": pillar_from_indices(month_stem, month_branch).label,
            "day": pillar_from_indices(day_index % 10, day_index % 12).label,
            "hour": pillar_from_indices(hour_stem, hour_branch).label,
        }

    def _nearest_jie(self, moment: datetime, forward: bool) -> datetime:
        try:
            jd = civil_to_jd(moment, self.utc_offset)
            jie = find_nearest_jie(jd, moment.year, forward=forward)
        except (swe.Error, ValueError) as e:
            raise CalendarProviderUnavailable(
                f"No {'next' if forward else 'previous'} Jie for {moment:%Y-%m-%d %H:%M}: {e}",
                provider=self.name,
            ) from e
        boundary = jd_to_civil(jie["jd"], self.utc_offset)
        logger.debug("%s Jie for %s: %s %s", "Next" if forward else "Previous",
                     moment, jie["term_name"], boundary)
        return boundary

    def next_jie(self, moment: datetime) -> datetime:
        return self._nearest_jie(moment, forward=True)

    def prev_jie(self, moment: datetime) -> datetime:
        return self._nearest_jie(moment, forward=False)


# ============================================================
# LUNAR-PYTHON BACKEND
# ============================================================

def _solar_to_datetime(solar) -> datetime:
    return datetime(solar.getYear(), solar.getMonth(), solar.getDay(),
                    solar.getHour(), solar.getMinute(), solar.getSecond())


class LunarPythonProvider(CalendarProvider):
    """
    Pillars and Jie boundaries from lunar-python.

    Civil moments are read as China Standard Time, the zone the library's
    solar term tables use.

    Args:
        sect: EightChar sect. 2 (library default) turns the day at 00:00;
            1 turns it at 23:00.
    """

    name = "lunar"

    def __init__(self, sect: int = 2):
        self.sect = sect

    def _lunar(self, moment: datetime):
        from lunar_python import Solar

        try:
            solar = Solar.fromYmdHms(moment.year, moment.month, moment.day,
                                     moment.hour, moment.minute, moment.second)
            return solar.getLunar()
        except Exception as e:
            raise CalendarProviderUnavailable(
                f"lunar-python failed for {moment:%Y-%m-%d %H:%M}: {e}",
                provider=self.name,
            ) from e

    def resolve_pillars(self, moment: datetime) -> dict:
        lunar = self._lunar(moment)
        eight_char = lunar.getEightChar()
        eight_char.setSect(self.sect)
        return {
            "year": eight_char.getYear(),
            "month": eight_char.getMonth(),
            "day": eight_char.getDay(),
            "hour": eight_char.getTime(),
        }

    def next_jie(self, moment: datetime) -> datetime:
        jie = self._lunar(moment).getNextJie()
        if jie is None:
            raise CalendarProviderUnavailable(
                f"lunar-python returned no next Jie for {moment}", provider=self.name)
        return _solar_to_datetime(jie.getSolar())

    def prev_jie(self, moment: datetime) -> datetime:
        jie = self._lunar(moment).getPrevJie()
        if jie is None:
            raise CalendarProviderUnavailable(
                f"lunar-python returned no previous Jie for {moment}", provider=self.name)
        return _solar_to_datetime(jie.getSolar())


PROVIDERS = {
    SwissEphemerisProvider.name: SwissEphemerisProvider,
    LunarPythonProvider.name: LunarPythonProvider,
}


def get_provider(name: Optional[str] = None, utc_offset: Optional[float] = None) -> CalendarProvider:
    """
    Instantiate a calendar backend by name.

    Args:
        name: "swisseph" or "lunar"; defaults to the configured provider
        utc_offset: zone of the civil moments (Swiss Ephemeris backend only)
    """
    settings = get_settings()
    name = (name or settings.provider).strip().lower()
    if name not in PROVIDERS:
        raise CalendarProviderUnavailable(
            f"Unknown calendar provider {name!r}; available: {', '.join(sorted(PROVIDERS))}",
            provider=name,
        )
    if name == LunarPythonProvider.name:
        return LunarPythonProvider(sect=settings.lunar_sect)
    if utc_offset is None:
        utc_offset = settings.default_utc_offset
    return SwissEphemerisProvider(utc_offset=utc_offset)


# ============================================================
# PILLAR RESOLVER
# ============================================================

def resolve_pillars(moment: datetime, provider: CalendarProvider) -> FourPillars:
    """
    Four pillars for a (corrected) moment, exactly as the provider reports them.

    No hemisphere or locale adjustment is applied.

    Raises:
        CalendarProviderUnavailable: provider failed or returned no data
        UnknownPillarLabel: provider returned a label outside the 60
    """
    labels = provider.resolve_pillars(moment)
    if not labels:
        raise CalendarProviderUnavailable(
            f"{provider.name} returned no pillars for {moment}", provider=provider.name)

    missing = [pos for pos in PILLAR_POSITIONS if not labels.get(pos)]
    if missing:
        raise CalendarProviderUnavailable(
            f"{provider.name} returned no {', '.join(missing)} pillar for {moment}",
            provider=provider.name,
            details={"labels": dict(labels)},
        )

    return FourPillars(**{pos: pillar_from_label(labels[pos], pos) for pos in PILLAR_POSITIONS})
