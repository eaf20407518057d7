"""
BaZi (Four Pillars of Destiny) computation engine.

Handles:
- Stem / branch / element cycle tables and sexagenary index arithmetic
- Gregorian to BaZi pillar conversion (month branch and effective year
  come from the calendar service)
- Ten Gods relationship mapping (visible and hidden stems)
- Twelve Stages of life for a stem in a branch
- Luck Pillar (Da Yun) direction, onset age and sequence
- Annual Pillar (Liu Nian) generation
- Branch relations (clash, union, harmony frames) and element balance

Every function here is pure: same inputs, same outputs, no clock, no I/O.
"""

import itertools
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterator, Optional

from suimei.config import ZiHourConvention
from suimei.errors import (
    InternalInvariantViolation,
    InvalidDate,
    InvalidHour,
    InvalidPillar,
)

logger = logging.getLogger("suimei.bazi")


# ============================================================
# FUNDAMENTAL DATA STRUCTURES
# ============================================================

class Polarity(Enum):
    YANG = "yang"
    YIN = "yin"


class Element(Enum):
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"

    @property
    def index(self) -> int:
        return ELEMENT_ORDER.index(self)

    @property
    def chinese(self) -> str:
        return ELEMENT_CHINESE[self]

    @property
    def generates(self) -> "Element":
        return PRODUCTION_CYCLE[self]

    @property
    def controls(self) -> "Element":
        return CONTROL_CYCLE[self]


ELEMENT_ORDER = [Element.WOOD, Element.FIRE, Element.EARTH, Element.METAL, Element.WATER]

ELEMENT_CHINESE = {
    Element.WOOD: "木",
    Element.FIRE: "火",
    Element.EARTH: "土",
    Element.METAL: "金",
    Element.WATER: "水",
}

# Production cycle: Wood → Fire → Earth → Metal → Water → Wood  (e → e+1)
PRODUCTION_CYCLE = {
    Element.WOOD: Element.FIRE,
    Element.FIRE: Element.EARTH,
    Element.EARTH: Element.METAL,
    Element.METAL: Element.WATER,
    Element.WATER: Element.WOOD,
}

# Control cycle: Wood → Earth → Water → Fire → Metal → Wood  (e → e+2)
CONTROL_CYCLE = {
    Element.WOOD: Element.EARTH,
    Element.EARTH: Element.WATER,
    Element.WATER: Element.FIRE,
    Element.FIRE: Element.METAL,
    Element.METAL: Element.WOOD,
}


@dataclass(frozen=True)
class HeavenlyStem:
    chinese: str
    pinyin: str
    element: Element
    polarity: Polarity
    index: int  # 0-9 in the cycle
    birth_branch: int  # branch index of the Birth (長生) stage

    @property
    def is_yang(self) -> bool:
        return self.polarity is Polarity.YANG

    def __str__(self):
        return f"{self.pinyin} ({self.polarity.value} {self.element.value})"


@dataclass(frozen=True)
class EarthlyBranch:
    chinese: str
    pinyin: str
    animal: str
    element: Element  # primary/season element
    polarity: Polarity
    index: int  # 0-11 in the cycle
    hidden_stems: tuple  # ((pinyin, weight), ...) main qi first, weights sum to 100
    hours: tuple  # (start_hour, end_hour) of the governed two-hour window

    @property
    def hour_window(self) -> str:
        start, end = self.hours
        return f"{start:02d}:00-{end:02d}:00"

    def __str__(self):
        return f"{self.pinyin} ({self.animal})"


# ============================================================
# STEM AND BRANCH DEFINITIONS
# ============================================================

HEAVENLY_STEMS = [
    HeavenlyStem("甲", "Jia", Element.WOOD, Polarity.YANG, 0, 11),   # Birth at Hai
    HeavenlyStem("乙", "Yi", Element.WOOD, Polarity.YIN, 1, 6),      # Birth at Wu
    HeavenlyStem("丙", "Bing", Element.FIRE, Polarity.YANG, 2, 2),   # Birth at Yin
    HeavenlyStem("丁", "Ding", Element.FIRE, Polarity.YIN, 3, 9),    # Birth at You
    HeavenlyStem("戊", "Wu", Element.EARTH, Polarity.YANG, 4, 2),    # Birth at Yin
    HeavenlyStem("己", "Ji", Element.EARTH, Polarity.YIN, 5, 9),     # Birth at You
    HeavenlyStem("庚", "Geng", Element.METAL, Polarity.YANG, 6, 5),  # Birth at Si
    HeavenlyStem("辛", "Xin", Element.METAL, Polarity.YIN, 7, 0),    # Birth at Zi
    HeavenlyStem("壬", "Ren", Element.WATER, Polarity.YANG, 8, 8),   # Birth at Shen
    HeavenlyStem("癸", "Gui", Element.WATER, Polarity.YIN, 9, 3),    # Birth at Mao
]

EARTHLY_BRANCHES = [
    EarthlyBranch("子", "Zi", "Rat", Element.WATER, Polarity.YANG, 0,
                  (("Gui", 100),), (23, 1)),
    EarthlyBranch("丑", "Chou", "Ox", Element.EARTH, Polarity.YIN, 1,
                  (("Ji", 60), ("Gui", 30), ("Xin", 10)), (1, 3)),
    EarthlyBranch("寅", "Yin", "Tiger", Element.WOOD, Polarity.YANG, 2,
                  (("Jia", 60), ("Bing", 30), ("Wu", 10)), (3, 5)),
    EarthlyBranch("卯", "Mao", "Rabbit", Element.WOOD, Polarity.YIN, 3,
                  (("Yi", 100),), (5, 7)),
    EarthlyBranch("辰", "Chen", "Dragon", Element.EARTH, Polarity.YANG, 4,
                  (("Wu", 60), ("Yi", 30), ("Gui", 10)), (7, 9)),
    EarthlyBranch("巳", "Si", "Snake", Element.FIRE, Polarity.YIN, 5,
                  (("Bing", 60), ("Geng", 30), ("Wu", 10)), (9, 11)),
    EarthlyBranch("午", "Wu", "Horse", Element.FIRE, Polarity.YANG, 6,
                  (("Ding", 70), ("Ji", 30)), (11, 13)),
    EarthlyBranch("未", "Wei", "Goat", Element.EARTH, Polarity.YIN, 7,
                  (("Ji", 60), ("Ding", 30), ("Yi", 10)), (13, 15)),
    EarthlyBranch("申", "Shen", "Monkey", Element.METAL, Polarity.YANG, 8,
                  (("Geng", 60), ("Ren", 30), ("Wu", 10)), (15, 17)),
    EarthlyBranch("酉", "You", "Rooster", Element.METAL, Polarity.YIN, 9,
                  (("Xin", 100),), (17, 19)),
    EarthlyBranch("戌", "Xu", "Dog", Element.EARTH, Polarity.YANG, 10,
                  (("Wu", 60), ("Xin", 30), ("Ding", 10)), (19, 21)),
    EarthlyBranch("亥", "Hai", "Pig", Element.WATER, Polarity.YIN, 11,
                  (("Ren", 70), ("Jia", 30)), (21, 23)),
]

# Lookup helpers
STEM_BY_PINYIN = {s.pinyin: s for s in HEAVENLY_STEMS}
STEM_BY_CHINESE = {s.chinese: s for s in HEAVENLY_STEMS}
BRANCH_BY_CHINESE = {b.chinese: b for b in EARTHLY_BRANCHES}


# ============================================================
# SEXAGENARY CYCLE
# ============================================================

def sexagenary_index(stem_index: int, branch_index: int) -> int:
    """
    Position (0-59) of a stem/branch pair in the sixty-pillar cycle.

    Only pairs of matching polarity exist in the cycle; anything else
    raises InvalidPillar.
    """
    if stem_index % 2 != branch_index % 2:
        raise InvalidPillar(f"Stem {stem_index} and branch {branch_index} differ in polarity")
    return (6 * stem_index - 5 * branch_index) % 60


def decode_sexagenary(index: int) -> tuple:
    """Inverse of sexagenary_index: (stem_index, branch_index)."""
    n = index % 60
    return n % 10, n % 12


SEXAGENARY_NAMES = [
    HEAVENLY_STEMS[i % 10].chinese + EARTHLY_BRANCHES[i % 12].chinese
    for i in range(60)
]


def sexagenary_index_of(name: str) -> int:
    """Look up a pillar name such as '甲子' in the cycle."""
    try:
        return SEXAGENARY_NAMES.index(name)
    except ValueError:
        raise InvalidPillar(f"'{name}' is not one of the sixty pillars") from None


@dataclass(frozen=True)
class Pillar:
    stem: HeavenlyStem
    branch: EarthlyBranch

    def __post_init__(self):
        if self.stem.index % 2 != self.branch.index % 2:
            raise InvalidPillar(f"{self.stem.chinese}{self.branch.chinese} is not a legal pillar")

    @classmethod
    def from_indices(cls, stem_index: int, branch_index: int) -> "Pillar":
        return cls(HEAVENLY_STEMS[stem_index % 10], EARTHLY_BRANCHES[branch_index % 12])

    @classmethod
    def from_sexagenary(cls, index: int) -> "Pillar":
        return cls.from_indices(*decode_sexagenary(index))

    @classmethod
    def from_name(cls, name: str) -> "Pillar":
        """Build a pillar from its two characters, e.g. '丙寅'."""
        if len(name) != 2 or name[0] not in STEM_BY_CHINESE or name[1] not in BRANCH_BY_CHINESE:
            raise InvalidPillar(f"'{name}' is not a stem followed by a branch")
        return cls(STEM_BY_CHINESE[name[0]], BRANCH_BY_CHINESE[name[1]])

    @property
    def stem_index(self) -> int:
        return self.stem.index

    @property
    def branch_index(self) -> int:
        return self.branch.index

    @property
    def sexagenary_index(self) -> int:
        return sexagenary_index(self.stem.index, self.branch.index)

    @property
    def name(self) -> str:
        return self.stem.chinese + self.branch.chinese

    def __str__(self):
        return f"{self.stem.pinyin} {self.branch.pinyin} ({self.stem.polarity.value} {self.stem.element.value} {self.branch.animal})"

    def to_dict(self):
        return {
            "name": self.name,
            "sexagenary_index": self.sexagenary_index,
            "stem": {
                "index": self.stem.index,
                "chinese": self.stem.chinese,
                "pinyin": self.stem.pinyin,
                "element": self.stem.element.value,
                "polarity": self.stem.polarity.value,
            },
            "branch": {
                "index": self.branch.index,
                "chinese": self.branch.chinese,
                "pinyin": self.branch.pinyin,
                "animal": self.branch.animal,
                "element": self.branch.element.value,
                "polarity": self.branch.polarity.value,
                "hidden_stems": [
                    {"stem": pinyin, "weight": weight}
                    for pinyin, weight in self.branch.hidden_stems
                ],
            },
            "combined": f"{self.stem.pinyin} {self.branch.pinyin}",
            "description": str(self),
        }


# ============================================================
# PILLAR COMPUTATION
# ============================================================

def validate_birth_moment(year: int, month: int, day: int,
                          hour: Optional[int] = None, minute: Optional[int] = None) -> date:
    """Reject impossible dates and clock times before any pillar is computed."""
    try:
        birth_day = date(year, month, day)
    except ValueError as exc:
        raise InvalidDate(f"{year:04d}-{month:02d}-{day:02d} is not a valid date: {exc}") from exc

    if hour is not None and not 0 <= hour <= 23:
        raise InvalidHour(f"Hour must be within 0-23, got {hour}")
    if minute is not None and not 0 <= minute <= 59:
        raise InvalidHour(f"Minute must be within 0-59, got {minute}")

    return birth_day


def year_pillar(effective_year: int) -> Pillar:
    """
    Compute the Year Pillar.

    The BaZi year starts at Li Chun (Start of Spring), usually Feb 3-5.
    `effective_year` is the year already moved back by one for births
    before Li Chun; the calendar service makes that adjustment.
    """
    # (Year 4 CE was Jia Zi, the start of the cycle)
    stem_index = (effective_year - 4) % 10
    branch_index = (effective_year - 4) % 12
    return Pillar.from_indices(stem_index, branch_index)


# Five Tigers Escape (Wu Hu Dun): stem of the Tiger month for year stems
# Jia/Ji, Yi/Geng, Bing/Xin, Ding/Ren, Wu/Gui
TIGER_MONTH_STEMS = (2, 4, 6, 8, 0)

# Five Rats Escape (Wu Shu Dun): stem of the Zi hour for day stems
# Jia/Ji, Yi/Geng, Bing/Xin, Ding/Ren, Wu/Gui
RAT_HOUR_STEMS = (0, 2, 4, 6, 8)


def month_pillar(year_stem_index: int, month_branch_index: int) -> Pillar:
    """
    Compute the Month Pillar using the Five Tigers Escape formula.

    The month branch is determined by solar terms (month 1 = Tiger,
    branch index 2). The month stem advances one step per month from
    the Tiger month's stem.
    """
    start_stem = TIGER_MONTH_STEMS[year_stem_index % 5]
    months_from_tiger = (month_branch_index - 2) % 12
    stem_index = (start_stem + months_from_tiger) % 10
    return Pillar.from_indices(stem_index, month_branch_index)


def julian_day_number(year: int, month: int, day: int) -> int:
    """Proleptic Gregorian Julian Day Number (Fliegel & Van Flandern)."""
    a = (14 - month) // 12
    y = year + 4800 - a
    m = month + 12 * a - 3
    return day + (153 * m + 2) // 5 + 365 * y + y // 4 - y // 100 + y // 400 - 32045


# (JDN + 49) % 60 is the day's position in the sexagenary cycle
_JDN_SEXAGENARY_OFFSET = 49


def day_pillar(year: int, month: int, day: int) -> Pillar:
    """
    Compute the Day Pillar from the Julian Day Number.

    Verified against published day pillars, e.g. 2000-01-01 = Wu Wu (戊午).
    """
    jdn = julian_day_number(year, month, day)
    return Pillar.from_sexagenary((jdn + _JDN_SEXAGENARY_OFFSET) % 60)


def hour_branch_index(hour: int) -> int:
    """
    Map a clock hour to its two-hour branch:

    23:00-00:59 = Zi (Rat)      = branch 0
    01:00-02:59 = Chou (Ox)     = branch 1
    ...
    21:00-22:59 = Hai (Pig)     = branch 11
    """
    if not 0 <= hour <= 23:
        raise InvalidHour(f"Hour must be within 0-23, got {hour}")
    return ((hour + 1) // 2) % 12


def hour_pillar(day_stem_index: int, hour: int,
                convention: ZiHourConvention = ZiHourConvention.SAME_DAY) -> Pillar:
    """
    Compute the Hour Pillar using the Five Rats Escape formula.

    Under ZiHourConvention.NEXT_DAY a birth at 23:xx takes its hour stem
    from the following day's stem.
    """
    branch_index = hour_branch_index(hour)

    effective_day_stem = day_stem_index
    if convention is ZiHourConvention.NEXT_DAY and hour == 23:
        effective_day_stem = (day_stem_index + 1) % 10

    start_stem = RAT_HOUR_STEMS[effective_day_stem % 5]
    stem_index = (start_stem + branch_index) % 10
    return Pillar.from_indices(stem_index, branch_index)


@dataclass(frozen=True)
class FourPillars:
    year: Pillar
    month: Pillar
    day: Pillar
    hour: Optional[Pillar] = None

    @property
    def day_master(self) -> HeavenlyStem:
        return self.day.stem

    def positions(self) -> list:
        """(position, pillar) for every pillar that is present."""
        items = [("year", self.year), ("month", self.month), ("day", self.day)]
        if self.hour is not None:
            items.append(("hour", self.hour))
        return items

    def present(self) -> list:
        return [pillar for _, pillar in self.positions()]

    def to_dict(self):
        return {
            "year": self.year.to_dict(),
            "month": self.month.to_dict(),
            "day": self.day.to_dict(),
            "hour": self.hour.to_dict() if self.hour is not None else None,
        }


def resolve_pillars(effective_year: int, year: int, month: int, day: int,
                    hour: Optional[int], month_branch_index: int,
                    convention: ZiHourConvention = ZiHourConvention.SAME_DAY) -> FourPillars:
    """
    Resolve the four pillars of a birth moment.

    Args:
        effective_year: Li Chun adjusted year (from the calendar service)
        year, month, day: Gregorian birth date
        hour: clock hour 0-23, or None when the birth time is unknown
        month_branch_index: solar-term month branch (from the calendar service)
        convention: late Zi hour convention for the hour stem
    """
    validate_birth_moment(year, month, day, hour)

    yp = year_pillar(effective_year)
    mp = month_pillar(yp.stem.index, month_branch_index)
    dp = day_pillar(year, month, day)
    hp = hour_pillar(dp.stem.index, hour, convention) if hour is not None else None

    logger.debug("Resolved pillars for %04d-%02d-%02d: %s %s %s %s",
                 year, month, day, yp.name, mp.name, dp.name, hp.name if hp else "--")

    return FourPillars(year=yp, month=mp, day=dp, hour=hp)


# ============================================================
# TEN GODS (十神) RELATIONSHIP MAPPING
# ============================================================

class TenGod(Enum):
    FELLOW = "Fellow"
    RIVAL = "Rival"
    OUTPUT = "Output"
    HURTING_OFFICER = "Hurting Officer"
    INDIRECT_WEALTH = "Indirect Wealth"
    DIRECT_WEALTH = "Direct Wealth"
    INDIRECT_OFFICER = "Indirect Officer"
    DIRECT_OFFICER = "Direct Officer"
    INDIRECT_RESOURCE = "Indirect Resource"
    DIRECT_RESOURCE = "Direct Resource"

    @property
    def chinese(self) -> str:
        return TEN_GOD_CHINESE[self]

    @property
    def category(self) -> "TenGodCategory":
        return TEN_GOD_CATEGORY[self]


TEN_GOD_CHINESE = {
    TenGod.FELLOW: "比肩",
    TenGod.RIVAL: "劫財",
    TenGod.OUTPUT: "食神",
    TenGod.HURTING_OFFICER: "傷官",
    TenGod.INDIRECT_WEALTH: "偏財",
    TenGod.DIRECT_WEALTH: "正財",
    TenGod.INDIRECT_OFFICER: "偏官",
    TenGod.DIRECT_OFFICER: "正官",
    TenGod.INDIRECT_RESOURCE: "偏印",
    TenGod.DIRECT_RESOURCE: "印綬",
}


class TenGodCategory(Enum):
    COMPANION = "Companion"  # 比劫
    OUTPUT = "Output"        # 食傷
    WEALTH = "Wealth"        # 財星
    OFFICER = "Officer"      # 官殺
    RESOURCE = "Resource"    # 印星


TEN_GOD_CATEGORY = {
    TenGod.FELLOW: TenGodCategory.COMPANION,
    TenGod.RIVAL: TenGodCategory.COMPANION,
    TenGod.OUTPUT: TenGodCategory.OUTPUT,
    TenGod.HURTING_OFFICER: TenGodCategory.OUTPUT,
    TenGod.INDIRECT_WEALTH: TenGodCategory.WEALTH,
    TenGod.DIRECT_WEALTH: TenGodCategory.WEALTH,
    TenGod.INDIRECT_OFFICER: TenGodCategory.OFFICER,
    TenGod.DIRECT_OFFICER: TenGodCategory.OFFICER,
    TenGod.INDIRECT_RESOURCE: TenGodCategory.RESOURCE,
    TenGod.DIRECT_RESOURCE: TenGodCategory.RESOURCE,
}

TEN_GODS = {
    # (relationship, same_polarity): ten god
    ("same", True): TenGod.FELLOW,
    ("same", False): TenGod.RIVAL,
    ("i_produce", True): TenGod.OUTPUT,
    ("i_produce", False): TenGod.HURTING_OFFICER,
    ("i_control", True): TenGod.INDIRECT_WEALTH,
    ("i_control", False): TenGod.DIRECT_WEALTH,
    ("controls_me", True): TenGod.INDIRECT_OFFICER,
    ("controls_me", False): TenGod.DIRECT_OFFICER,
    ("produces_me", True): TenGod.INDIRECT_RESOURCE,
    ("produces_me", False): TenGod.DIRECT_RESOURCE,
}


def element_relationship(day_master_element: Element, other_element: Element) -> str:
    """Determine the elemental relationship from DM's perspective."""
    if day_master_element == other_element:
        return "same"
    elif PRODUCTION_CYCLE[day_master_element] == other_element:
        return "i_produce"  # DM produces other
    elif CONTROL_CYCLE[day_master_element] == other_element:
        return "i_control"  # DM controls other
    elif CONTROL_CYCLE[other_element] == day_master_element:
        return "controls_me"  # other controls DM
    elif PRODUCTION_CYCLE[other_element] == day_master_element:
        return "produces_me"  # other produces DM
    raise InternalInvariantViolation(
        f"No elemental relationship between {day_master_element} and {other_element}"
    )


def ten_god(day_stem_index: int, target_stem_index: int) -> TenGod:
    """
    Determine the Ten God relationship between the Day Master and another stem.

    Args:
        day_stem_index: the Day Master stem (0-9)
        target_stem_index: the stem being evaluated (0-9)
    """
    day_master = HEAVENLY_STEMS[day_stem_index]
    other = HEAVENLY_STEMS[target_stem_index]
    relationship = element_relationship(day_master.element, other.element)
    same_polarity = (day_master.polarity == other.polarity)
    return TEN_GODS[(relationship, same_polarity)]


def hidden_stem_ten_gods(day_stem_index: int, branch_index: int) -> tuple:
    """Ten Gods of a branch's hidden stems, main qi first."""
    return tuple(
        ten_god(day_stem_index, STEM_BY_PINYIN[pinyin].index)
        for pinyin, _ in EARTHLY_BRANCHES[branch_index].hidden_stems
    )


# ============================================================
# TWELVE STAGES (十二運)
# ============================================================

class TwelveStage(Enum):
    BIRTH = "Birth"
    BATH = "Bath"
    CAP = "Cap"
    PRIME = "Prime"
    PEAK = "Peak"
    DECLINE = "Decline"
    SICKNESS = "Sickness"
    DEATH = "Death"
    TOMB = "Tomb"
    EXTINCTION = "Extinction"
    GESTATION = "Gestation"
    NURTURE = "Nurture"

    @property
    def chinese(self) -> str:
        return STAGE_CHINESE[self]

    @property
    def energy(self) -> int:
        return STAGE_ENERGY[self]

    @property
    def strength(self) -> str:
        return STAGE_STRENGTH[self]


# Definition order is the cycle order
TWELVE_STAGE_CYCLE = list(TwelveStage)

STAGE_CHINESE = {
    TwelveStage.BIRTH: "長生",
    TwelveStage.BATH: "沐浴",
    TwelveStage.CAP: "冠帯",
    TwelveStage.PRIME: "建禄",
    TwelveStage.PEAK: "帝旺",
    TwelveStage.DECLINE: "衰",
    TwelveStage.SICKNESS: "病",
    TwelveStage.DEATH: "死",
    TwelveStage.TOMB: "墓",
    TwelveStage.EXTINCTION: "絶",
    TwelveStage.GESTATION: "胎",
    TwelveStage.NURTURE: "養",
}

STAGE_ENERGY = {
    TwelveStage.PEAK: 12,
    TwelveStage.PRIME: 11,
    TwelveStage.CAP: 10,
    TwelveStage.BIRTH: 9,
    TwelveStage.DECLINE: 8,
    TwelveStage.BATH: 7,
    TwelveStage.NURTURE: 6,
    TwelveStage.TOMB: 5,
    TwelveStage.SICKNESS: 4,
    TwelveStage.GESTATION: 3,
    TwelveStage.DEATH: 2,
    TwelveStage.EXTINCTION: 1,
}

STAGE_STRENGTH = {
    TwelveStage.PEAK: "strong",
    TwelveStage.PRIME: "strong",
    TwelveStage.CAP: "strong",
    TwelveStage.BIRTH: "neutral",
    TwelveStage.DECLINE: "neutral",
    TwelveStage.BATH: "neutral",
    TwelveStage.NURTURE: "neutral",
    TwelveStage.TOMB: "neutral",
    TwelveStage.SICKNESS: "weak",
    TwelveStage.GESTATION: "weak",
    TwelveStage.DEATH: "weak",
    TwelveStage.EXTINCTION: "weak",
}


def twelve_stage(stem_index: int, branch_index: int) -> TwelveStage:
    """
    Twelve Stages phase of a stem in a branch.

    Yang stems count forward from their Birth branch, yin stems count
    backward from theirs.
    """
    stem = HEAVENLY_STEMS[stem_index]
    if stem.is_yang:
        offset = branch_index - stem.birth_branch
    else:
        offset = stem.birth_branch - branch_index
    return TWELVE_STAGE_CYCLE[offset % 12]


# ============================================================
# BRANCH RELATIONS
# ============================================================

# Six Clashes (六冲): branch i opposes branch i+6
SIX_CLASHES = {i: (i + 6) % 12 for i in range(12)}

# Six Combinations (六合) - 1:1 pairings that can transform
SIX_COMBINATIONS = {
    # (branch1_index, branch2_index): resulting_element_if_transforms
    (0, 1): Element.EARTH,    # Zi-Chou → Earth
    (2, 11): Element.WOOD,    # Yin-Hai → Wood
    (3, 10): Element.FIRE,    # Mao-Xu → Fire
    (4, 9): Element.METAL,    # Chen-You → Metal
    (5, 8): Element.WATER,    # Si-Shen → Water
    (6, 7): Element.FIRE,     # Wu-Wei → Fire (or Earth, debated)
}

UNION_PARTNER = {a: b for pair in SIX_COMBINATIONS for a, b in (pair, pair[::-1])}

# Three Harmony Combinations (三合) - groups of three
THREE_HARMONY = {
    (8, 0, 4): Element.WATER,     # Shen-Zi-Chen → Water frame
    (2, 6, 10): Element.FIRE,     # Yin-Wu-Xu → Fire frame
    (5, 9, 1): Element.METAL,     # Si-You-Chou → Metal frame
    (11, 3, 7): Element.WOOD,     # Hai-Mao-Wei → Wood frame
}

# Directional Combinations (方合) - seasonal groups of three
DIRECTIONAL = {
    (11, 0, 1): Element.WATER,    # Hai-Zi-Chou → North
    (2, 3, 4): Element.WOOD,      # Yin-Mao-Chen → East
    (5, 6, 7): Element.FIRE,      # Si-Wu-Wei → South
    (8, 9, 10): Element.METAL,    # Shen-You-Xu → West
}


def has_clash(branch_a: int, branch_b: int) -> bool:
    return SIX_CLASHES[branch_a] == branch_b


def has_union(branch_a: int, branch_b: int) -> bool:
    return UNION_PARTNER[branch_a] == branch_b


@dataclass(frozen=True)
class BranchInteraction:
    kind: str  # "clash", "union", "three_harmony", "directional"
    positions: tuple
    branches: tuple  # branch names, aligned with positions
    element: Optional[Element] = None

    def to_dict(self):
        return {
            "kind": self.kind,
            "positions": list(self.positions),
            "branches": list(self.branches),
            "element": self.element.value if self.element else None,
        }


def find_branch_interactions(branches: list, labels: list = None) -> tuple:
    """
    Find clashes, unions and complete harmony frames between branches.

    Args:
        branches: branch indices to check
        labels: optional labels for each branch (e.g. "year", "annual")
    """
    if labels is None:
        labels = [f"branch_{i}" for i in range(len(branches))]

    interactions = []
    n = len(branches)

    for i in range(n):
        for j in range(i + 1, n):
            b1, b2 = branches[i], branches[j]
            names = (EARTHLY_BRANCHES[b1].chinese, EARTHLY_BRANCHES[b2].chinese)
            if has_clash(b1, b2):
                interactions.append(BranchInteraction("clash", (labels[i], labels[j]), names))
            if has_union(b1, b2):
                pair = (min(b1, b2), max(b1, b2))
                interactions.append(BranchInteraction(
                    "union", (labels[i], labels[j]), names, SIX_COMBINATIONS[pair]))

    for kind, frames in (("three_harmony", THREE_HARMONY), ("directional", DIRECTIONAL)):
        for frame, element in frames.items():
            if all(idx in branches for idx in frame):
                involved = [branches.index(idx) for idx in frame]
                interactions.append(BranchInteraction(
                    kind,
                    tuple(labels[k] for k in involved),
                    tuple(EARTHLY_BRANCHES[idx].chinese for idx in frame),
                    element,
                ))

    return tuple(interactions)


# ============================================================
# ELEMENT DISTRIBUTION ANALYSIS
# ============================================================

def element_distribution(pillars: list, include_hidden: bool = True) -> dict:
    """
    Count element presence across all pillars.

    Visible stems weigh 1.0; hidden stems weigh their share of the
    branch (main qi 0.6-1.0, middle 0.3, residual 0.1).
    """
    distribution = {e.value: 0.0 for e in Element}

    for pillar in pillars:
        distribution[pillar.stem.element.value] += 1.0

        if include_hidden:
            for hidden_pinyin, weight in pillar.branch.hidden_stems:
                hidden_stem = STEM_BY_PINYIN[hidden_pinyin]
                distribution[hidden_stem.element.value] += weight / 100

    return {k: round(v, 2) for k, v in distribution.items()}


# ============================================================
# LUCK PILLAR COMPUTATION
# ============================================================

class Gender(Enum):
    MALE = "male"
    FEMALE = "female"


class LuckDirection(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


def luck_direction(gender: Gender, year_stem_index: int) -> LuckDirection:
    """
    Direction of count depends on gender + year stem polarity:
    - Yang stem year + Male OR Yin stem year + Female → count FORWARD
    - Yang stem year + Female OR Yin stem year + Male → count BACKWARD
    """
    year_yang = HEAVENLY_STEMS[year_stem_index].is_yang
    is_male = Gender(gender) is Gender.MALE
    return LuckDirection.FORWARD if is_male == year_yang else LuckDirection.BACKWARD


@dataclass(frozen=True)
class RitsunAge:
    """
    Onset of the first luck pillar.

    Traditional rule: 3 days to the Jie = 1 year, each remaining day = 4
    months. The result is an offset added to the birth year, not an exact
    duration.
    """
    years: int
    months: int
    days_to_transition: int = 0

    def onset_year(self, birth_year: int) -> int:
        return birth_year + self.years

    def to_dict(self):
        return {
            "years": self.years,
            "months": self.months,
            "days_to_transition": self.days_to_transition,
        }


def ritsun_age(birth_instant: datetime, transition_instant: datetime) -> RitsunAge:
    """
    Compute the luck pillar onset from the distance to the Jie transition.

    The signed distance is floored before taking its magnitude, so a
    previous Jie 14.9 days back counts as 15 days and a next Jie 14.9
    days ahead counts as 14.

    Both datetimes must be either naive or timezone aware.
    """
    days = abs(math.floor((transition_instant - birth_instant).total_seconds() / 86400))
    return RitsunAge(years=days // 3, months=(days % 3) * 4, days_to_transition=days)


@dataclass(frozen=True)
class LuckPillar:
    number: int
    pillar: Pillar
    start_age: int
    end_age: int
    ten_god: TenGod
    twelve_stage: TwelveStage

    def contains(self, age: int) -> bool:
        return self.start_age <= age <= self.end_age

    @property
    def description(self) -> str:
        return (f"LP{self.number}: {self.pillar.stem.pinyin} {self.pillar.branch.pinyin} "
                f"({self.pillar.branch.animal}) ages {self.start_age}-{self.end_age}")

    def to_dict(self):
        return {
            "number": self.number,
            "pillar": self.pillar.name,
            "stem": self.pillar.stem.pinyin,
            "stem_element": self.pillar.stem.element.value,
            "branch": self.pillar.branch.pinyin,
            "branch_animal": self.pillar.branch.animal,
            "branch_element": self.pillar.branch.element.value,
            "age_start": self.start_age,
            "age_end": self.end_age,
            "ten_god": self.ten_god.value,
            "twelve_stage": self.twelve_stage.value,
            "description": self.description,
        }


def luck_pillar(month: Pillar, direction: LuckDirection, number: int) -> Pillar:
    """The pillar of the `number`-th decade, counted from the month pillar."""
    step = number if direction is LuckDirection.FORWARD else -number
    return Pillar.from_sexagenary((month.sexagenary_index + step) % 60)


def compute_luck_pillars(month: Pillar, day_stem_index: int, direction: LuckDirection,
                         ritsun: RitsunAge, num_pillars: int = 10) -> tuple:
    """
    Compute Luck Pillars (大运 Da Yun).

    Each pillar covers ten years of age, the first starting at the Ritsun
    age; the sequence steps through the sixty-pillar cycle from the month
    pillar in the given direction.
    """
    pillars = []
    for number in range(1, num_pillars + 1):
        p = luck_pillar(month, direction, number)
        age_start = ritsun.years + (number - 1) * 10
        pillars.append(LuckPillar(
            number=number,
            pillar=p,
            start_age=age_start,
            end_age=age_start + 9,
            ten_god=ten_god(day_stem_index, p.stem.index),
            twelve_stage=twelve_stage(day_stem_index, p.branch.index),
        ))
    return tuple(pillars)


def luck_pillar_at(luck_pillars, age: int) -> Optional[LuckPillar]:
    """The luck pillar covering `age`, or None outside the generated span."""
    for lp in luck_pillars:
        if lp.contains(age):
            return lp
    return None


# ============================================================
# ANNUAL PILLAR
# ============================================================

def annual_pillar(year: int) -> Pillar:
    """Compute the annual pillar for a given year."""
    return year_pillar(year)


@dataclass(frozen=True)
class AnnualPillar:
    year: int
    age: int
    pillar: Pillar
    ten_god: TenGod
    twelve_stage: TwelveStage

    def to_dict(self):
        return {
            "year": self.year,
            "age": self.age,
            "pillar": self.pillar.name,
            "stem": self.pillar.stem.pinyin,
            "branch": self.pillar.branch.pinyin,
            "ten_god": self.ten_god.value,
            "twelve_stage": self.twelve_stage.value,
        }


def annual_pillar_for(year: int, birth_year: int, day_stem_index: int) -> AnnualPillar:
    p = annual_pillar(year)
    return AnnualPillar(
        year=year,
        age=year - birth_year,
        pillar=p,
        ten_god=ten_god(day_stem_index, p.stem.index),
        twelve_stage=twelve_stage(day_stem_index, p.branch.index),
    )


def annual_pillars(birth_year: int, day_stem_index: int,
                   start_year: Optional[int] = None) -> Iterator[AnnualPillar]:
    """
    Unbounded sequence of annual pillars from `start_year` (default: the
    birth year). Bound it with itertools.islice; calling again restarts.
    """
    first = birth_year if start_year is None else max(start_year, birth_year)
    for year in itertools.count(first):
        yield annual_pillar_for(year, birth_year, day_stem_index)


def annual_pillar_range(birth_year: int, day_stem_index: int,
                        start_year: int, end_year: int) -> tuple:
    """Annual pillars for start_year..end_year inclusive, skipping years before birth."""
    first = max(start_year, birth_year)
    if end_year < first:
        return ()
    return tuple(itertools.islice(annual_pillars(birth_year, day_stem_index, first),
                                  end_year - first + 1))
