"""Year, month, day and hour pillar resolution."""

import pytest

from suimei.bazi import (
    day_pillar,
    hour_branch_index,
    hour_pillar,
    julian_day_number,
    month_pillar,
    resolve_pillars,
    validate_birth_moment,
    year_pillar,
)
from suimei.config import ZiHourConvention
from suimei.errors import InvalidDate, InvalidHour


class TestYearPillar:

    @pytest.mark.parametrize("year, name", [
        (1984, "甲子"),
        (1989, "己巳"),
        (1990, "庚午"),
        (2024, "甲辰"),
        (2026, "丙午"),
        (4, "甲子"),
        (3, "癸亥"),
    ])
    def test_known_years(self, year, name):
        assert year_pillar(year).name == name


class TestMonthPillar:

    def test_five_tigers_base_stems(self):
        # Tiger month stem for year stems Jia..Gui
        expected = ["丙", "戊", "庚", "壬", "甲", "丙", "戊", "庚", "壬", "甲"]
        for year_stem, stem in enumerate(expected):
            assert month_pillar(year_stem, 2).stem.chinese == stem

    def test_geng_year_tiger_month(self):
        assert month_pillar(6, 2).name == "戊寅"

    def test_ji_year_rat_month(self):
        # Rat month is ten steps after the Tiger month
        assert month_pillar(5, 0).name == "丙子"

    def test_ox_month_closes_the_year(self):
        assert month_pillar(0, 1).name == "丁丑"


class TestDayPillar:

    def test_julian_day_number(self):
        assert julian_day_number(2000, 1, 1) == 2451545
        assert julian_day_number(1990, 1, 1) == 2447893

    @pytest.mark.parametrize("ymd, name", [
        ((2000, 1, 1), "戊午"),
        ((1990, 1, 1), "丙寅"),
        ((1949, 10, 1), "甲子"),
    ])
    def test_known_days(self, ymd, name):
        assert day_pillar(*ymd).name == name

    def test_consecutive_days_advance_one_step(self):
        today = day_pillar(2024, 2, 28)
        tomorrow = day_pillar(2024, 2, 29)
        assert (today.sexagenary_index + 1) % 60 == tomorrow.sexagenary_index


class TestHourPillar:

    @pytest.mark.parametrize("hour, branch", [
        (23, 0), (0, 0), (1, 1), (2, 1), (3, 2), (11, 6), (12, 6), (13, 7), (21, 11), (22, 11),
    ])
    def test_hour_branch_windows(self, hour, branch):
        assert hour_branch_index(hour) == branch

    def test_hour_branch_rejects_out_of_range(self):
        with pytest.raises(InvalidHour):
            hour_branch_index(24)

    def test_five_rats(self):
        assert hour_pillar(0, 0).name == "甲子"
        assert hour_pillar(2, 12).name == "甲午"
        assert hour_pillar(4, 0).name == "壬子"

    def test_late_zi_same_day_by_default(self):
        assert hour_pillar(0, 23).name == "甲子"

    def test_late_zi_next_day_convention(self):
        assert hour_pillar(0, 23, ZiHourConvention.NEXT_DAY).name == "丙子"
        # Early Zi hour is unaffected
        assert hour_pillar(0, 0, ZiHourConvention.NEXT_DAY).name == "甲子"


class TestResolvePillars:

    def test_new_year_1990(self):
        pillars = resolve_pillars(1989, 1990, 1, 1, 12, 0)
        assert pillars.year.name == "己巳"
        assert pillars.month.name == "丙子"
        assert pillars.day.name == "丙寅"
        assert pillars.hour.name == "甲午"
        assert pillars.day_master.chinese == "丙"

    def test_unknown_hour_gives_three_pillars(self):
        pillars = resolve_pillars(1990, 1990, 3, 15, None, 3)
        assert pillars.hour is None
        assert [pos for pos, _ in pillars.positions()] == ["year", "month", "day"]
        assert pillars.to_dict()["hour"] is None

    def test_invalid_date(self):
        with pytest.raises(InvalidDate):
            resolve_pillars(1990, 1990, 2, 30, None, 3)

    def test_invalid_hour(self):
        with pytest.raises(InvalidHour):
            resolve_pillars(1990, 1990, 3, 15, 24, 3)

    def test_invalid_minute(self):
        with pytest.raises(InvalidHour):
            validate_birth_moment(1990, 3, 15, 10, 60)

    def test_leap_day(self):
        assert validate_birth_moment(2000, 2, 29).isoformat() == "2000-02-29"
        with pytest.raises(InvalidDate):
            validate_birth_moment(1900, 2, 29)
