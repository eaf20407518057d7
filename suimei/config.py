"""
Engine configuration.

Settings are plain values on a frozen dataclass. `EngineConfig.from_env()`
overlays environment variables on the defaults:

    SUIMEI_LUCK_PILLARS   number of luck pillars to generate (default 10)
    SUIMEI_ZI_HOUR        "same_day" or "next_day" (default same_day)
    SUIMEI_TIMEZONE       IANA zone of the birth clock time (default Asia/Tokyo)
    SUIMEI_EPHE_PATH      Swiss Ephemeris data directory (optional)
"""

import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class ZiHourConvention(Enum):
    """
    Which day stem drives the hour stem for births at 23:00-23:59.

    SAME_DAY: the late Zi hour belongs to the birth day (midnight switch).
    NEXT_DAY: the day stem advances by one from 23:00 (23:00 switch).
    """
    SAME_DAY = "same_day"
    NEXT_DAY = "next_day"


DEFAULT_LUCK_PILLAR_COUNT = 10
DEFAULT_TIMEZONE = "Asia/Tokyo"


@dataclass(frozen=True)
class EngineConfig:
    luck_pillar_count: int = DEFAULT_LUCK_PILLAR_COUNT
    zi_hour_convention: ZiHourConvention = ZiHourConvention.SAME_DAY
    timezone: str = DEFAULT_TIMEZONE
    ephe_path: Optional[str] = None

    def __post_init__(self):
        if self.luck_pillar_count < 1:
            raise ValueError(f"luck_pillar_count must be positive, got {self.luck_pillar_count}")

    @classmethod
    def from_env(cls, environ=None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        config = cls()

        if env.get("SUIMEI_LUCK_PILLARS"):
            config = replace(config, luck_pillar_count=int(env["SUIMEI_LUCK_PILLARS"]))
        if env.get("SUIMEI_ZI_HOUR"):
            config = replace(config, zi_hour_convention=ZiHourConvention(env["SUIMEI_ZI_HOUR"].strip().lower()))
        if env.get("SUIMEI_TIMEZONE"):
            config = replace(config, timezone=env["SUIMEI_TIMEZONE"].strip())
        if env.get("SUIMEI_EPHE_PATH"):
            config = replace(config, ephe_path=env["SUIMEI_EPHE_PATH"])

        return config
