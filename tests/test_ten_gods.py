"""Ten Gods and Twelve Stages."""

import pytest

from suimei import bazi
from suimei.bazi import (
    HEAVENLY_STEMS,
    TWELVE_STAGE_CYCLE,
    Element,
    TenGod,
    TenGodCategory,
    TwelveStage,
    hidden_stem_ten_gods,
    ten_god,
    twelve_stage,
)
from suimei.errors import InternalInvariantViolation


class TestTenGods:

    def test_every_pair_maps_and_each_row_is_a_permutation(self):
        for day in range(10):
            row = [ten_god(day, target) for target in range(10)]
            assert set(row) == set(TenGod)

    def test_self_is_fellow(self):
        for s in range(10):
            assert ten_god(s, s) is TenGod.FELLOW

    def test_jia_row(self):
        row = [ten_god(0, target).chinese for target in range(10)]
        assert row == ["比肩", "劫財", "食神", "傷官", "偏財", "正財", "偏官", "正官", "偏印", "印綬"]

    def test_ding_row(self):
        row = [ten_god(3, target).chinese for target in range(10)]
        assert row == ["印綬", "偏印", "劫財", "比肩", "傷官", "食神", "正財", "偏財", "正官", "偏官"]

    @pytest.mark.parametrize("day, target, expected", [
        (0, 6, TenGod.INDIRECT_OFFICER),   # Jia sees Geng
        (2, 5, TenGod.HURTING_OFFICER),    # Bing sees Ji
        (2, 0, TenGod.INDIRECT_RESOURCE),  # Bing sees Jia
        (9, 4, TenGod.DIRECT_OFFICER),     # Gui sees Wu
    ])
    def test_known_relations(self, day, target, expected):
        assert ten_god(day, target) is expected

    def test_categories(self):
        assert TenGod.FELLOW.category is TenGodCategory.COMPANION
        assert TenGod.HURTING_OFFICER.category is TenGodCategory.OUTPUT
        assert TenGod.DIRECT_RESOURCE.category is TenGodCategory.RESOURCE
        for category in TenGodCategory:
            assert sum(1 for g in TenGod if g.category is category) == 2

    def test_hidden_stem_gods_main_qi_first(self):
        # Yin (寅) hides Jia, Bing, Wu
        assert hidden_stem_ten_gods(2, 2) == (
            TenGod.INDIRECT_RESOURCE, TenGod.FELLOW, TenGod.OUTPUT)
        assert hidden_stem_ten_gods(0, 0) == (TenGod.DIRECT_RESOURCE,)

    def test_broken_cycle_raises(self, monkeypatch):
        monkeypatch.setitem(bazi.PRODUCTION_CYCLE, Element.WOOD, Element.WOOD)
        with pytest.raises(InternalInvariantViolation):
            ten_god(0, 2)


class TestTwelveStages:

    def test_stages_follow_cycle_from_birth_branch(self):
        for stem in HEAVENLY_STEMS:
            step = 1 if stem.is_yang else -1
            observed = [twelve_stage(stem.index, (stem.birth_branch + step * k) % 12)
                        for k in range(12)]
            assert observed == TWELVE_STAGE_CYCLE

    def test_each_stem_sees_every_stage_once(self):
        for s in range(10):
            assert {twelve_stage(s, b) for b in range(12)} == set(TwelveStage)

    @pytest.mark.parametrize("stem, branch, expected", [
        (0, 11, TwelveStage.BIRTH),     # Jia in Hai
        (0, 3, TwelveStage.PEAK),       # Jia in Mao
        (1, 6, TwelveStage.BIRTH),      # Yi in Wu
        (1, 2, TwelveStage.PEAK),       # Yi in Yin
        (2, 5, TwelveStage.PRIME),      # Bing in Si
        (2, 0, TwelveStage.GESTATION),  # Bing in Zi
        (6, 9, TwelveStage.PEAK),       # Geng in You
        (9, 0, TwelveStage.PRIME),      # Gui in Zi
    ])
    def test_known_stages(self, stem, branch, expected):
        assert twelve_stage(stem, branch) is expected

    def test_stage_attributes(self):
        assert TwelveStage.PEAK.chinese == "帝旺"
        assert TwelveStage.PEAK.energy == 12
        assert TwelveStage.EXTINCTION.energy == 1
        assert TwelveStage.PRIME.strength == "strong"
        assert TwelveStage.DEATH.strength == "weak"
        assert sorted(stage.energy for stage in TwelveStage) == list(range(1, 13))
