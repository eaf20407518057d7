"""
Day Master strength, favorable gods and fortune scoring.

Strength is a deliberately simple tally: month support plus a count of
stems (weight 1.0) and branches (weight 0.5) that support or drain the
Day Master. The favorable/unfavorable split follows from strength alone.

Scores are heuristic: each dimension starts from a baseline and moves by
fixed amounts depending on the Ten God of the luck and annual pillars.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from suimei.bazi import (
    EARTHLY_BRANCHES,
    HEAVENLY_STEMS,
    Pillar,
    TenGod,
    TenGodCategory,
    has_clash,
    has_union,
    ten_god,
)

logger = logging.getLogger("suimei.fortune")


# ============================================================
# DAY MASTER STRENGTH
# ============================================================

class DayMasterStrength(Enum):
    STRONG = "strong"
    WEAK = "weak"


def _supports(element, day_element) -> bool:
    """Same element as the Day Master, or the element that produces it."""
    return element == day_element or element.generates == day_element


def determine_strength(day_stem_index: int, month_branch_index: int, pillars: list) -> DayMasterStrength:
    """
    Classify the Day Master as strong or weak.

    Args:
        day_stem_index: Day Master stem (0-9)
        month_branch_index: month pillar branch (0-11)
        pillars: every present Pillar (3 without a birth time, else 4)
    """
    day_element = HEAVENLY_STEMS[day_stem_index].element
    month_support = _supports(EARTHLY_BRANCHES[month_branch_index].element, day_element)

    support = 0.0
    drain = 0.0
    for pillar in pillars:
        if _supports(pillar.stem.element, day_element):
            support += 1
        else:
            drain += 1

    # Branches count half, standing in for a hidden-stem analysis
    for pillar in pillars:
        if _supports(pillar.branch.element, day_element):
            support += 0.5
        else:
            drain += 0.5

    strength = DayMasterStrength.STRONG if month_support and support >= drain else DayMasterStrength.WEAK
    logger.debug("Day Master %s: month_support=%s support=%.1f drain=%.1f -> %s",
                 HEAVENLY_STEMS[day_stem_index].chinese, month_support, support, drain, strength.value)
    return strength


# ============================================================
# FAVORABLE / UNFAVORABLE GODS (喜神 / 忌神)
# ============================================================

_DRAINING_GODS = frozenset({
    TenGod.OUTPUT, TenGod.HURTING_OFFICER,
    TenGod.INDIRECT_WEALTH, TenGod.DIRECT_WEALTH,
    TenGod.INDIRECT_OFFICER, TenGod.DIRECT_OFFICER,
})

_SUPPORTING_GODS = frozenset({
    TenGod.FELLOW, TenGod.RIVAL,
    TenGod.INDIRECT_RESOURCE, TenGod.DIRECT_RESOURCE,
})


@dataclass(frozen=True)
class FavorabilitySet:
    kishin: frozenset  # favorable
    gishin: frozenset  # unfavorable

    def is_favorable(self, god: TenGod) -> bool:
        return god in self.kishin

    def is_unfavorable(self, god: TenGod) -> bool:
        return god in self.gishin

    def to_dict(self):
        order = list(TenGod)
        return {
            "kishin": [g.value for g in sorted(self.kishin, key=order.index)],
            "gishin": [g.value for g in sorted(self.gishin, key=order.index)],
        }


# A strong Day Master wants to be drained; a weak one wants support
STRONG_FAVORABILITY = FavorabilitySet(kishin=_DRAINING_GODS, gishin=_SUPPORTING_GODS)
WEAK_FAVORABILITY = FavorabilitySet(kishin=_SUPPORTING_GODS, gishin=_DRAINING_GODS)


def favorability_for(strength: DayMasterStrength) -> FavorabilitySet:
    if strength is DayMasterStrength.STRONG:
        return STRONG_FAVORABILITY
    return WEAK_FAVORABILITY


# ============================================================
# FORTUNE SCORES
# ============================================================

@dataclass(frozen=True)
class FortuneScore:
    overall: int
    money: int
    love: int
    work: int
    health: int

    def to_dict(self):
        return {
            "overall": self.overall,
            "money": self.money,
            "love": self.love,
            "work": self.work,
            "health": self.health,
            "level": fortune_level(self.overall).value,
        }


def _clamp(score: int) -> int:
    return max(0, min(100, score))


# Per-dimension adjustments keyed on the annual Ten God's category
MONEY_WEIGHTS = {
    TenGodCategory.WEALTH: 25,
    TenGodCategory.OUTPUT: 10,
    TenGodCategory.COMPANION: -15,
    TenGodCategory.RESOURCE: -10,
}

WORK_WEIGHTS = {
    TenGodCategory.OFFICER: 20,
    TenGodCategory.RESOURCE: 15,
    TenGodCategory.OUTPUT: 10,
    TenGodCategory.WEALTH: 5,
}

HEALTH_WEIGHTS = {
    TenGodCategory.COMPANION: 10,
    TenGodCategory.RESOURCE: 10,
    TenGodCategory.OFFICER: -15,
    TenGodCategory.OUTPUT: -5,
}

MONEY_BASE = 50
LOVE_BASE = 50
WORK_BASE = 50
HEALTH_BASE = 60


def money_score(annual_god: TenGod) -> int:
    return _clamp(MONEY_BASE + MONEY_WEIGHTS.get(annual_god.category, 0))


def love_score(day_stem_index: int, annual_god: TenGod) -> int:
    score = LOVE_BASE

    # Direct wealth / officer: the stable partner stars
    if annual_god in (TenGod.DIRECT_WEALTH, TenGod.DIRECT_OFFICER):
        score += 20
    if annual_god in (TenGod.INDIRECT_WEALTH, TenGod.INDIRECT_OFFICER):
        score += 10
    if annual_god.category is TenGodCategory.COMPANION:
        score -= 10
    if HEAVENLY_STEMS[day_stem_index].is_yang and annual_god is TenGod.HURTING_OFFICER:
        score -= 15

    return _clamp(score)


def work_score(annual_god: TenGod) -> int:
    return _clamp(WORK_BASE + WORK_WEIGHTS.get(annual_god.category, 0))


def health_score(annual_god: TenGod) -> int:
    return _clamp(HEALTH_BASE + HEALTH_WEIGHTS.get(annual_god.category, 0))


def score_fortune(day_stem_index: int, day_branch_index: int, favorability: FavorabilitySet,
                  luck: Pillar, annual: Pillar) -> FortuneScore:
    """
    Score one year of fortune.

    Args:
        day_stem_index, day_branch_index: the natal Day pillar
        favorability: kishin/gishin of the chart
        luck: pillar of the luck period covering the year
        annual: pillar of the year
    """
    luck_god = ten_god(day_stem_index, luck.stem.index)
    annual_god = ten_god(day_stem_index, annual.stem.index)

    overall = 50

    if favorability.is_favorable(luck_god):
        overall += 20
    if favorability.is_unfavorable(luck_god):
        overall -= 20

    if favorability.is_favorable(annual_god):
        overall += 15
    if favorability.is_unfavorable(annual_god):
        overall -= 15

    if has_clash(day_branch_index, annual.branch.index):
        overall -= 10
    if has_union(day_branch_index, annual.branch.index):
        overall += 5

    return FortuneScore(
        overall=_clamp(overall),
        money=money_score(annual_god),
        love=love_score(day_stem_index, annual_god),
        work=work_score(annual_god),
        health=health_score(annual_god),
    )


# ============================================================
# SCORE BANDS
# ============================================================

class FortuneLevel(Enum):
    GREAT_FORTUNE = "大吉"
    GOOD_FORTUNE = "吉"
    MODERATE_FORTUNE = "中吉"
    SMALL_FORTUNE = "小吉"
    MISFORTUNE = "凶"
    GREAT_MISFORTUNE = "大凶"


# (lower bound, level, display color), highest band first
FORTUNE_BANDS = [
    (80, FortuneLevel.GREAT_FORTUNE, "#FF4081"),
    (65, FortuneLevel.GOOD_FORTUNE, "#4CAF50"),
    (50, FortuneLevel.MODERATE_FORTUNE, "#2196F3"),
    (35, FortuneLevel.SMALL_FORTUNE, "#FFC107"),
    (20, FortuneLevel.MISFORTUNE, "#FF9800"),
]
GREAT_MISFORTUNE_COLOR = "#F44336"


def fortune_level(score: int) -> FortuneLevel:
    for lower, level, _ in FORTUNE_BANDS:
        if score >= lower:
            return level
    return FortuneLevel.GREAT_MISFORTUNE


def fortune_color(score: int) -> str:
    for lower, _, color in FORTUNE_BANDS:
        if score >= lower:
            return color
    return GREAT_MISFORTUNE_COLOR
