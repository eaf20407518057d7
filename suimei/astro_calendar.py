"""
Solar-term calendar service for BaZi calculations.

Maps a local birth instant to its solar-term month branch and Li Chun
adjusted year, and finds the Jie transitions on either side of it.
Backed by Swiss Ephemeris: each Jie is the moment the Sun reaches a
fixed ecliptic longitude.

Any object with the same methods as SwissEphemerisCalendar
(birth_instant, resolve_month_branch, next_solar_term_transition,
prev_solar_term_transition) can be passed to compute_chart instead.
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import swisseph as swe
from timezonefinder import TimezoneFinder

from suimei.config import DEFAULT_TIMEZONE, EngineConfig
from suimei.errors import CalendarResolutionError, NoTransitionFound

logger = logging.getLogger("suimei.astro_calendar")


# ============================================================
# SOLAR TERM COMPUTATION
# ============================================================
#
# The 12 Jie (节) solar terms mark BaZi month boundaries.
# Each Jie is defined by the Sun reaching a specific ecliptic longitude.
# Swiss Ephemeris swe.solcross_ut() finds the exact crossing moment.
#
# Li Chun (315°) → Tiger month (month 1)
# Jing Zhe (345°) → Rabbit month (month 2)
# Qing Ming (15°) → Dragon month (month 3)
# Li Xia (45°) → Snake month (month 4)
# Mang Zhong (75°) → Horse month (month 5)
# Xiao Shu (105°) → Goat month (month 6)
# Li Qiu (135°) → Monkey month (month 7)
# Bai Lu (165°) → Rooster month (month 8)
# Han Lu (195°) → Dog month (month 9)
# Li Dong (225°) → Pig month (month 10)
# Da Xue (255°) → Rat month (month 11)
# Xiao Han (285°) → Ox month (month 12)

# (longitude, term_name, chinese, branch_index)
JIE_DEFINITIONS = [
    (285, "Xiao Han", "小寒", 1),
    (315, "Li Chun", "立春", 2),
    (345, "Jing Zhe", "啓蟄", 3),
    (15, "Qing Ming", "清明", 4),
    (45, "Li Xia", "立夏", 5),
    (75, "Mang Zhong", "芒種", 6),
    (105, "Xiao Shu", "小暑", 7),
    (135, "Li Qiu", "立秋", 8),
    (165, "Bai Lu", "白露", 9),
    (195, "Han Lu", "寒露", 10),
    (225, "Li Dong", "立冬", 11),
    (255, "Da Xue", "大雪", 0),
]

LI_CHUN_LONGITUDE = 315.0

# Month branches in order from Li Chun
_MONTH_BRANCHES_FROM_TIGER = [2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 0, 1]


def set_ephemeris_path(path: Optional[str]) -> None:
    """Point Swiss Ephemeris at data files; without them the Moshier model is used."""
    if path:
        swe.set_ephe_path(path)
        logger.debug("Swiss Ephemeris path set to %s", path)


def sun_longitude_to_month_branch_index(sun_lon: float) -> int:
    """
    Map Sun's ecliptic longitude to BaZi month branch index.

    Jie boundaries every 30° from 315° (Li Chun → Yin, index 2)
    through 285° (Xiao Han → Chou, index 1).
    """
    adjusted = (sun_lon - LI_CHUN_LONGITUDE) % 360
    return _MONTH_BRANCHES_FROM_TIGER[int(adjusted // 30)]


def datetime_to_jd(instant: datetime) -> float:
    """Julian Day (UT) of a timezone-aware datetime."""
    utc = instant.astimezone(timezone.utc)
    hour = utc.hour + utc.minute / 60 + utc.second / 3600
    return swe.julday(utc.year, utc.month, utc.day, hour)


def jd_to_datetime(jd: float) -> datetime:
    """UTC datetime (second precision) of a Julian Day (UT)."""
    y, m, d, h = swe.revjul(jd)
    return datetime(y, m, d, tzinfo=timezone.utc) + timedelta(seconds=round(h * 3600))


def find_jie_dates(year: int) -> list:
    """
    Compute all 12 Jie solar term dates for a given Gregorian year.

    Uses Swiss Ephemeris to find the exact moment the Sun crosses
    each Jie longitude. Returns dates in chronological order.

    Returns:
        List of dicts with keys: term_name, chinese, branch_index,
        jd (Julian Day of crossing, UT), instant (UTC datetime)
    """
    results = []
    jd_year_start = swe.julday(year, 1, 1, 0)

    for lon, name, chinese, branch_idx in JIE_DEFINITIONS:
        try:
            jd_cross = swe.solcross_ut(float(lon), jd_year_start, 0)
        except swe.Error as exc:
            logger.warning("Solar crossing of %s° after JD %s failed: %s", lon, jd_year_start, exc)
            raise CalendarResolutionError(f"Could not compute {name} for {year}: {exc}") from exc
        instant = jd_to_datetime(jd_cross)
        # Only include crossings that fall within this Gregorian year
        if instant.year == year:
            results.append({
                "term_name": name,
                "chinese": chinese,
                "branch_index": branch_idx,
                "jd": jd_cross,
                "instant": instant,
            })

    results.sort(key=lambda x: x["jd"])
    return results


def find_nearest_jie(birth_jd: float, year: int, forward: bool) -> dict:
    """
    Find the nearest Jie solar term in the given direction from birth.

    Args:
        birth_jd: Julian Day of birth (UT)
        year: birth year (Gregorian)
        forward: True = find next Jie after birth, False = find previous
    """
    # Get Jie dates for birth year and adjacent years
    all_jie = []
    for y in [year - 1, year, year + 1]:
        all_jie.extend(find_jie_dates(y))
    all_jie.sort(key=lambda x: x["jd"])

    if forward:
        for jie in all_jie:
            if jie["jd"] > birth_jd:
                return jie
    else:
        for jie in reversed(all_jie):
            if jie["jd"] <= birth_jd:
                return jie

    raise NoTransitionFound(f"Could not find {'next' if forward else 'previous'} Jie from JD {birth_jd}")


# ============================================================
# CALENDAR SERVICE
# ============================================================

class SwissEphemerisCalendar:
    """
    Calendar service resolving local birth instants with Swiss Ephemeris.

    Args:
        tz_name: IANA zone of the birth clock time
        ephe_path: optional Swiss Ephemeris data directory
    """

    def __init__(self, tz_name: str = DEFAULT_TIMEZONE, ephe_path: Optional[str] = None):
        try:
            self.tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise CalendarResolutionError(f"Unknown timezone '{tz_name}'") from exc
        self.tz_name = tz_name
        set_ephemeris_path(ephe_path)

    @classmethod
    def from_config(cls, config: EngineConfig) -> "SwissEphemerisCalendar":
        return cls(config.timezone, config.ephe_path)

    def birth_instant(self, year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
        return datetime(year, month, day, hour, minute, tzinfo=self.tz)

    def li_chun(self, year: int) -> datetime:
        """Instant of Li Chun (Start of Spring) in the given Gregorian year."""
        try:
            jd = swe.solcross_ut(LI_CHUN_LONGITUDE, swe.julday(year, 1, 1, 0), 0)
        except swe.Error as exc:
            raise CalendarResolutionError(f"Could not compute Li Chun for {year}: {exc}") from exc
        return jd_to_datetime(jd)

    def resolve_month_branch(self, year: int, month: int, day: int,
                             hour: int = 12, minute: int = 0) -> tuple:
        """
        Month branch and Li Chun adjusted year of a local birth instant.

        Returns:
            (month_branch_index, effective_year)
        """
        instant = self.birth_instant(year, month, day, hour, minute)
        birth_jd = datetime_to_jd(instant)

        try:
            positions, _ = swe.calc_ut(birth_jd, swe.SUN)
        except swe.Error as exc:
            logger.warning("Sun position at JD %s failed: %s", birth_jd, exc)
            raise CalendarResolutionError(f"No solar position for {instant.isoformat()}: {exc}") from exc

        month_branch = sun_longitude_to_month_branch_index(positions[0])
        effective_year = year - 1 if instant < self.li_chun(year) else year

        logger.debug("Calendar: %s sun=%.4f° month_branch=%d effective_year=%d",
                     instant.isoformat(), positions[0], month_branch, effective_year)
        return month_branch, effective_year

    def _transition(self, forward: bool, year: int, month: int, day: int,
                    hour: int, minute: int) -> datetime:
        instant = self.birth_instant(year, month, day, hour, minute)
        jie = find_nearest_jie(datetime_to_jd(instant), year, forward)
        logger.debug("Calendar: %s Jie from %s is %s at %s", "next" if forward else "previous",
                     instant.isoformat(), jie["term_name"], jie["instant"].isoformat())
        return jie["instant"]

    def next_solar_term_transition(self, year: int, month: int, day: int,
                                   hour: int = 0, minute: int = 0) -> datetime:
        """Instant (UTC) of the first Jie after the local birth instant."""
        return self._transition(True, year, month, day, hour, minute)

    def prev_solar_term_transition(self, year: int, month: int, day: int,
                                   hour: int = 0, minute: int = 0) -> datetime:
        """Instant (UTC) of the last Jie at or before the local birth instant."""
        return self._transition(False, year, month, day, hour, minute)


# ============================================================
# TIMEZONE FROM COORDINATES
# ============================================================

@lru_cache(maxsize=1)
def timezone_finder() -> TimezoneFinder:
    """Shared TimezoneFinder; loading its boundary data is slow."""
    return TimezoneFinder()


def timezone_for(latitude: float, longitude: float) -> str:
    """IANA timezone name at the given coordinates."""
    tz_name = timezone_finder().timezone_at(lat=latitude, lng=longitude)
    if tz_name is None:
        raise CalendarResolutionError(f"Could not determine timezone for ({latitude}, {longitude})")
    return tz_name
