"""
Chart creation library.

Computes a full Four Pillars chart from birth data and scores fortune
timelines against it.

Usage from Python:
    from suimei.chart import compute_chart, score_timeline
    chart = compute_chart(1990, 3, 15, 10, 30, "male")
    for entry in score_timeline(chart, 2024, 2030):
        print(entry.year, entry.score.overall)

The calendar service (month branch, Li Chun year, Jie transitions) is
the only collaborator; it defaults to SwissEphemerisCalendar built from
the engine configuration. Pass a pre-resolved FourPillars to trust an
external pillar source and derive everything else from it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from suimei.astro_calendar import SwissEphemerisCalendar
from suimei.bazi import (
    AnnualPillar,
    FourPillars,
    Gender,
    LuckDirection,
    LuckPillar,
    RitsunAge,
    annual_pillar_for,
    annual_pillar_range,
    compute_luck_pillars,
    element_distribution,
    find_branch_interactions,
    hidden_stem_ten_gods,
    luck_direction,
    luck_pillar_at,
    resolve_pillars,
    ritsun_age,
    ten_god,
    twelve_stage,
    validate_birth_moment,
)
from suimei.config import EngineConfig
from suimei.fortune import (
    DayMasterStrength,
    FavorabilitySet,
    FortuneScore,
    determine_strength,
    favorability_for,
    fortune_color,
    fortune_level,
    score_fortune,
)

logger = logging.getLogger("suimei.chart")

# Clock time assumed for calendar lookups when the birth time is unknown
UNKNOWN_TIME = (12, 0)


@dataclass(frozen=True)
class BirthData:
    year: int
    month: int
    day: int
    hour: Optional[int]
    minute: Optional[int]
    gender: Gender

    @property
    def time_known(self) -> bool:
        return self.hour is not None

    def to_dict(self):
        return {
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "hour": self.hour,
            "minute": self.minute,
            "gender": self.gender.value,
        }


@dataclass(frozen=True)
class FullChart:
    birth: BirthData
    pillars: FourPillars
    ten_gods: tuple  # ((position, TenGod), ...) for year, month, hour
    hidden_ten_gods: tuple  # ((position, (TenGod, ...)), ...)
    twelve_stages: tuple  # ((position, TwelveStage), ...)
    strength: DayMasterStrength
    favorability: FavorabilitySet
    luck_direction: LuckDirection
    ritsun: RitsunAge
    luck_pillars: tuple
    element_balance: tuple  # ((element, weight), ...)
    natal_interactions: tuple

    @property
    def day_master(self):
        return self.pillars.day.stem

    def ten_god_at(self, position: str):
        return dict(self.ten_gods).get(position)

    def twelve_stage_at(self, position: str):
        return dict(self.twelve_stages).get(position)

    def luck_pillar_at(self, age: int):
        return luck_pillar_at(self.luck_pillars, age)

    def annual_pillars(self, start_year: int, end_year: int) -> tuple:
        return annual_pillar_range(self.birth.year, self.day_master.index, start_year, end_year)

    def to_dict(self):
        dm = self.day_master
        return {
            "birth": self.birth.to_dict(),
            "day_master": {
                "stem": dm.pinyin,
                "chinese": dm.chinese,
                "element": dm.element.value,
                "polarity": dm.polarity.value,
                "description": str(dm),
            },
            "pillars": self.pillars.to_dict(),
            "ten_gods": {pos: god.value for pos, god in self.ten_gods},
            "hidden_stem_ten_gods": {
                pos: [god.value for god in gods] for pos, gods in self.hidden_ten_gods
            },
            "twelve_stages": {pos: stage.value for pos, stage in self.twelve_stages},
            "strength": self.strength.value,
            "favorability": self.favorability.to_dict(),
            "luck_direction": self.luck_direction.value,
            "ritsun": self.ritsun.to_dict(),
            "luck_pillars": [lp.to_dict() for lp in self.luck_pillars],
            "element_distribution": dict(self.element_balance),
            "natal_branch_interactions": [i.to_dict() for i in self.natal_interactions],
        }


def compute_chart(birth_year: int, birth_month: int, birth_day: int,
                  birth_hour: Optional[int], birth_minute: Optional[int], gender,
                  calendar=None, config: Optional[EngineConfig] = None,
                  pillars: Optional[FourPillars] = None) -> FullChart:
    """
    Compute a full BaZi chart from birth data.

    Args:
        birth_year, birth_month, birth_day: Gregorian birth date (local clock)
        birth_hour, birth_minute: local clock time, or None when unknown
        gender: Gender or "male" / "female" (determines luck pillar direction)
        calendar: calendar service; defaults to SwissEphemerisCalendar
        config: engine configuration; defaults to EngineConfig()
        pillars: pillars from an external resolver, trusted as given

    Returns:
        Immutable FullChart snapshot.
    """
    config = config or EngineConfig()
    gender = Gender(gender)
    validate_birth_moment(birth_year, birth_month, birth_day, birth_hour, birth_minute)

    if calendar is None:
        calendar = SwissEphemerisCalendar.from_config(config)

    lookup_hour, lookup_minute = UNKNOWN_TIME
    if birth_hour is not None:
        lookup_hour, lookup_minute = birth_hour, birth_minute or 0

    if pillars is None:
        month_branch_index, effective_year = calendar.resolve_month_branch(
            birth_year, birth_month, birth_day, lookup_hour, lookup_minute)
        pillars = resolve_pillars(effective_year, birth_year, birth_month, birth_day,
                                  birth_hour, month_branch_index, config.zi_hour_convention)

    dp = pillars.day
    day_stem = dp.stem.index

    # Ten Gods (the day stem is the Day Master itself)
    gods = [(pos, ten_god(day_stem, p.stem.index))
            for pos, p in pillars.positions() if pos != "day"]
    hidden_gods = [(pos, hidden_stem_ten_gods(day_stem, p.branch.index))
                   for pos, p in pillars.positions()]
    stages = [(pos, twelve_stage(day_stem, p.branch.index))
              for pos, p in pillars.positions()]

    strength = determine_strength(day_stem, pillars.month.branch.index, pillars.present())
    favorability = favorability_for(strength)

    # Luck pillars
    direction = luck_direction(gender, pillars.year.stem.index)
    if direction is LuckDirection.FORWARD:
        transition = calendar.next_solar_term_transition(
            birth_year, birth_month, birth_day, lookup_hour, lookup_minute)
    else:
        transition = calendar.prev_solar_term_transition(
            birth_year, birth_month, birth_day, lookup_hour, lookup_minute)
    birth_instant = calendar.birth_instant(
        birth_year, birth_month, birth_day, lookup_hour, lookup_minute)
    ritsun = ritsun_age(birth_instant, transition)
    luck_pillars = compute_luck_pillars(pillars.month, day_stem, direction, ritsun,
                                        config.luck_pillar_count)

    logger.debug("Luck pillars %s from age %d (%d days to Jie)",
                 direction.value, ritsun.years, ritsun.days_to_transition)

    present = pillars.present()
    natal_interactions = find_branch_interactions(
        [p.branch.index for p in present], [pos for pos, _ in pillars.positions()])

    return FullChart(
        birth=BirthData(birth_year, birth_month, birth_day, birth_hour, birth_minute, gender),
        pillars=pillars,
        ten_gods=tuple(gods),
        hidden_ten_gods=tuple(hidden_gods),
        twelve_stages=tuple(stages),
        strength=strength,
        favorability=favorability,
        luck_direction=direction,
        ritsun=ritsun,
        luck_pillars=luck_pillars,
        element_balance=tuple(element_distribution(present).items()),
        natal_interactions=natal_interactions,
    )


# ============================================================
# FORTUNE TIMELINE
# ============================================================

@dataclass(frozen=True)
class TimelineEntry:
    year: int
    age: int
    luck_pillar: LuckPillar
    annual_pillar: AnnualPillar
    score: FortuneScore

    def to_dict(self):
        return {
            "year": self.year,
            "age": self.age,
            "luck_pillar": {
                "pillar": self.luck_pillar.pillar.name,
                "period": f"{self.luck_pillar.start_age}-{self.luck_pillar.end_age}",
            },
            "annual_pillar": self.annual_pillar.to_dict(),
            "scores": self.score.to_dict(),
            "color": fortune_color(self.score.overall),
        }


def _timeline_entry(chart: FullChart, year: int) -> Optional[TimelineEntry]:
    age = year - chart.birth.year
    if age < 0:
        return None
    lp = chart.luck_pillar_at(age)
    if lp is None:
        return None

    ap = annual_pillar_for(year, chart.birth.year, chart.day_master.index)
    score = score_fortune(chart.day_master.index, chart.pillars.day.branch.index,
                          chart.favorability, lp.pillar, ap.pillar)
    return TimelineEntry(year=year, age=age, luck_pillar=lp, annual_pillar=ap, score=score)


def score_timeline(chart: FullChart, start_year: int, end_year: int) -> tuple:
    """
    Score every year from start_year to end_year inclusive.

    Years before birth, or outside the generated luck pillar span, are
    skipped.
    """
    entries = []
    for year in range(start_year, end_year + 1):
        entry = _timeline_entry(chart, year)
        if entry is not None:
            entries.append(entry)
    return tuple(entries)


def current_fortune(chart: FullChart, reference_year: int) -> Optional[TimelineEntry]:
    """Fortune for `reference_year`; the caller decides which year is current."""
    entry = _timeline_entry(chart, reference_year)
    if entry is not None:
        logger.debug("Fortune %d: overall %d (%s)", reference_year,
                     entry.score.overall, fortune_level(entry.score.overall).value)
    return entry
