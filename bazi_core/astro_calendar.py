"""
Calendar utilities for BaZi calculations.
Handles birth moment parsing, true solar time correction
(longitude + equation of time) and Jie solar term lookups.
"""

from datetime import datetime, timedelta
from typing import Optional, Union
import logging
import math

import swisseph as swe

from bazi_core.config import get_settings
from bazi_core.errors import InvalidMomentFormat

logger = logging.getLogger(__name__)

# Point Swiss Ephemeris to data files
swe.set_ephe_path(get_settings().resolved_ephe_path)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


def parse_moment(birth_date: Union[datetime, str], birth_time: Optional[str] = None) -> datetime:
    """
    Build a civil birth moment from form-style input.

    Args:
        birth_date: datetime, or "YYYY-MM-DD" string
        birth_time: "HH:MM" (24h, local clock time). Ignored when
            birth_date is already a datetime carrying the time.

    Returns:
        naive datetime with seconds set to zero

    Raises:
        InvalidMomentFormat: either component cannot be parsed
    """
    if isinstance(birth_date, datetime):
        if birth_time is None:
            return birth_date.replace(second=0, microsecond=0, tzinfo=None)
        birth_date = birth_date.strftime(DATE_FORMAT)

    if not isinstance(birth_date, str) or not isinstance(birth_time, str):
        raise InvalidMomentFormat(
            f"Expected date 'YYYY-MM-DD' and time 'HH:MM', got {birth_date!r} {birth_time!r}",
            details={"birth_date": birth_date, "birth_time": birth_time},
        )
    try:
        return datetime.strptime(f"{birth_date.strip()} {birth_time.strip()}",
                                 f"{DATE_FORMAT} {TIME_FORMAT}")
    except ValueError as e:
        raise InvalidMomentFormat(
            f"Could not parse birth moment {birth_date!r} {birth_time!r}: {e}",
            details={"birth_date": birth_date, "birth_time": birth_time},
        ) from e


# ============================================================
# TRUE SOLAR TIME
# ============================================================

def lmt_correction(longitude: float, standard_meridian: float = 120.0) -> float:
    """
    Local Mean Time correction in minutes.

    Clock time follows the standard meridian of the zone (utc_offset * 15
    degrees). Each degree of longitude away from it shifts local noon by
    four minutes.

    Args:
        longitude: birth location longitude in degrees (east positive)
        standard_meridian: zone meridian in degrees (120.0 for UTC+8)

    Returns:
        Correction in minutes (negative = west of the meridian)

    Example:
        Urumqi (87.6°E) on UTC+8: (87.6 - 120.0) * 4 = -129.6 min
    """
    return (longitude - standard_meridian) * 4.0


def day_of_year(moment: datetime) -> int:
    """Day of year, Jan 1 = 1."""
    return moment.timetuple().tm_yday


def equation_of_time(day: int) -> float:
    """
    Approximate equation of time in minutes for a day of year.

    Apparent solar time minus mean solar time. Stays within roughly
    -14.5 to +16.5 minutes over the year.
    """
    b = 2 * math.pi * (day - 81) / 365
    return 9.87 * math.sin(2 * b) - 7.53 * math.cos(b) - 1.5 * math.sin(b)


def solar_time_offset(moment: datetime, longitude: float, utc_offset: float = 8.0) -> float:
    """Total minutes between clock time and apparent solar time."""
    standard_meridian = utc_offset * 15
    return lmt_correction(longitude, standard_meridian) + equation_of_time(day_of_year(moment))


def true_solar_time(moment: datetime, longitude: Optional[float] = None,
                    utc_offset: float = 8.0) -> datetime:
    """
    Convert clock time to apparent (true) solar time.

    No correction is applied when longitude is missing. Longitude and
    offset are not range checked; any finite value is accepted.

    The offset is added to the minute field and the sum truncated toward
    zero, so 10:30 with a -46.5 minute offset becomes 09:44.

    Args:
        moment: civil clock time
        longitude: birth location longitude (east positive)
        utc_offset: hours east of UTC of the clock's zone (fractional allowed)

    Returns:
        corrected datetime, rolled over into hour/day/month/year as needed
    """
    if longitude is None:
        return moment

    lon_minutes = lmt_correction(longitude, utc_offset * 15)
    eot_minutes = equation_of_time(day_of_year(moment))
    total = lon_minutes + eot_minutes

    base = moment.replace(minute=0, second=0, microsecond=0)
    corrected = base + timedelta(minutes=math.trunc(moment.minute + total))

    logger.debug(
        "True solar time: input %s, lon %.4f, offset %.2fm, EOT %.2fm, result %s",
        moment.strftime("%Y-%m-%d %H:%M"), longitude, lon_minutes, eot_minutes,
        corrected.strftime("%Y-%m-%d %H:%M"),
    )
    return corrected


def estimate_utc_offset(longitude: float) -> int:
    """Whole-hour zone guess from longitude (15° per hour)."""
    return round(longitude / 15)


# ============================================================
# SOLAR TERM COMPUTATION
# ============================================================
#
# The 12 Jie (节) solar terms mark BaZi month boundaries.
# Each Jie is defined by the Sun reaching a specific ecliptic longitude.
# Swiss Ephemeris swe.solcross_ut() finds the exact crossing moment.
# The interleaved Qi (中气) terms at 0°, 30°, ... are never used here.

# (longitude, term_name, chinese, branch_index)
JIE_DEFINITIONS = [
    (285, "Xiao Han", "小寒", 1),
    (315, "Li Chun", "立春", 2),
    (345, "Jing Zhe", "惊蛰", 3),
    (15,  "Qing Ming", "清明", 4),
    (45,  "Li Xia", "立夏", 5),
    (75,  "Mang Zhong", "芒种", 6),
    (105, "Xiao Shu", "小暑", 7),
    (135, "Li Qiu", "立秋", 8),
    (165, "Bai Lu", "白露", 9),
    (195, "Han Lu", "寒露", 10),
    (225, "Li Dong", "立冬", 11),
    (255, "Da Xue", "大雪", 0),
]

LI_CHUN_LONGITUDE = 315.0


def civil_to_jd(moment: datetime, utc_offset: float = 8.0) -> float:
    """Julian Day (UT) of a civil moment in a zone utc_offset hours east of UTC."""
    ut = moment - timedelta(hours=utc_offset)
    hours = ut.hour + ut.minute / 60.0 + (ut.second + ut.microsecond / 1e6) / 3600.0
    return swe.julday(ut.year, ut.month, ut.day, hours)


def jd_to_civil(jd: float, utc_offset: float = 8.0) -> datetime:
    """Civil moment (rounded to the second) for a Julian Day in UT."""
    y, m, d, h = swe.revjul(jd)
    seconds = round(h * 3600)
    return datetime(y, m, d) + timedelta(seconds=seconds, hours=utc_offset)


def sun_longitude(jd: float) -> float:
    """Sun's tropical ecliptic longitude in degrees."""
    result, _flag = swe.calc_ut(jd, swe.SUN)
    return result[0] % 360.0


def find_jie_dates(year: int) -> list[dict]:
    """
    Compute all 12 Jie solar term dates for a given Gregorian year.

    Uses Swiss Ephemeris to find the exact moment the Sun crosses
    each Jie longitude. Returns dates in chronological order.

    Args:
        year: Gregorian year

    Returns:
        List of dicts with keys: term_name, chinese, branch_index,
        jd (Julian Day of crossing, UT)
    """
    results = []
    jd_year_start = swe.julday(year, 1, 1, 0)

    for lon, name, chinese, branch_idx in JIE_DEFINITIONS:
        jd_cross = swe.solcross_ut(float(lon), jd_year_start, 0)
        y, _m, _d, _h = swe.revjul(jd_cross)
        # Only include crossings that fall within this Gregorian year
        if y == year:
            results.append({
                "term_name": name,
                "chinese": chinese,
                "branch_index": branch_idx,
                "jd": jd_cross,
            })

    results.sort(key=lambda x: x["jd"])
    return results


def find_nearest_jie(jd: float, year: int, forward: bool) -> dict:
    """
    Find the nearest Jie solar term in the given direction.

    Args:
        jd: Julian Day (UT) of the reference moment
        year: Gregorian year of the reference moment
        forward: True = first Jie strictly after, False = last strictly before

    Returns:
        Jie dict as produced by find_jie_dates
    """
    all_jie = []
    for y in [year - 1, year, year + 1]:
        all_jie.extend(find_jie_dates(y))
    all_jie.sort(key=lambda x: x["jd"])

    if forward:
        for jie in all_jie:
            if jie["jd"] > jd:
                return jie
    else:
        for jie in reversed(all_jie):
            if jie["jd"] < jd:
                return jie

    raise ValueError(f"Could not find {'next' if forward else 'previous'} Jie from JD {jd}")


def li_chun_jd(year: int) -> float:
    """Julian Day (UT) of Li Chun (Start of Spring) in a Gregorian year."""
    return swe.solcross_ut(LI_CHUN_LONGITUDE, swe.julday(year, 1, 1, 0), 0)
