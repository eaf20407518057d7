"""Cycle tables and sexagenary arithmetic."""

import pytest

from suimei.bazi import (
    BRANCH_BY_CHINESE,
    EARTHLY_BRANCHES,
    ELEMENT_ORDER,
    HEAVENLY_STEMS,
    SEXAGENARY_NAMES,
    STEM_BY_CHINESE,
    STEM_BY_PINYIN,
    Element,
    Pillar,
    Polarity,
    decode_sexagenary,
    sexagenary_index,
    sexagenary_index_of,
)
from suimei.errors import InvalidPillar


class TestStemsAndBranches:

    def test_stem_element_and_polarity_follow_index(self):
        for s in range(10):
            stem = HEAVENLY_STEMS[s]
            assert stem.index == s
            assert stem.element is ELEMENT_ORDER[s // 2]
            assert stem.polarity is (Polarity.YANG if s % 2 == 0 else Polarity.YIN)

    def test_branch_polarity_follows_index(self):
        for b, branch in enumerate(EARTHLY_BRANCHES):
            assert branch.index == b
            assert branch.polarity is (Polarity.YANG if b % 2 == 0 else Polarity.YIN)

    def test_hidden_stem_weights_sum_to_100(self):
        for branch in EARTHLY_BRANCHES:
            assert 1 <= len(branch.hidden_stems) <= 3
            assert sum(weight for _, weight in branch.hidden_stems) == 100
            for pinyin, _ in branch.hidden_stems:
                assert pinyin in STEM_BY_PINYIN

    def test_main_qi_shares_branch_element(self):
        for branch in EARTHLY_BRANCHES:
            main_qi = STEM_BY_PINYIN[branch.hidden_stems[0][0]]
            assert main_qi.element is branch.element

    def test_hour_windows(self):
        assert EARTHLY_BRANCHES[0].hour_window == "23:00-01:00"
        assert EARTHLY_BRANCHES[6].hour_window == "11:00-13:00"
        assert BRANCH_BY_CHINESE["亥"].hour_window == "21:00-23:00"


class TestElements:

    def test_generates_is_next_in_cycle(self):
        for element in Element:
            assert element.generates.index == (element.index + 1) % 5

    def test_controls_is_two_ahead(self):
        for element in Element:
            assert element.controls.index == (element.index + 2) % 5

    def test_relations_are_bijections(self):
        assert {e.generates for e in Element} == set(Element)
        assert {e.controls for e in Element} == set(Element)

    def test_chinese_names(self):
        assert [e.chinese for e in ELEMENT_ORDER] == ["木", "火", "土", "金", "水"]


class TestSexagenary:

    def test_round_trip_for_every_legal_pillar(self):
        seen = set()
        for s in range(10):
            for b in range(12):
                if s % 2 != b % 2:
                    continue
                idx = sexagenary_index(s, b)
                assert 0 <= idx < 60
                assert decode_sexagenary(idx) == (s, b)
                seen.add(idx)
        assert seen == set(range(60))

    def test_illegal_pair_rejected(self):
        with pytest.raises(InvalidPillar):
            sexagenary_index(0, 1)
        with pytest.raises(InvalidPillar):
            Pillar.from_indices(1, 0)

    def test_names(self):
        assert SEXAGENARY_NAMES[0] == "甲子"
        assert SEXAGENARY_NAMES[1] == "乙丑"
        assert SEXAGENARY_NAMES[59] == "癸亥"
        assert sexagenary_index_of("庚午") == 6

    def test_unknown_name_rejected(self):
        with pytest.raises(InvalidPillar):
            sexagenary_index_of("甲丑")

    def test_pillar_from_name(self):
        p = Pillar.from_name("丙寅")
        assert (p.stem_index, p.branch_index) == (2, 2)
        assert p.sexagenary_index == 2
        assert p.name == "丙寅"
        assert p.to_dict()["combined"] == "Bing Yin"

    @pytest.mark.parametrize("name", ["甲丑", "木子", "甲", "甲子子", "Jia Zi"])
    def test_pillar_from_bad_name(self, name):
        with pytest.raises(InvalidPillar):
            Pillar.from_name(name)

    def test_pillar_from_name_matches_cycle(self):
        for idx, name in enumerate(SEXAGENARY_NAMES):
            assert Pillar.from_name(name) == Pillar.from_sexagenary(idx)
            assert Pillar.from_name(name).stem is STEM_BY_CHINESE[name[0]]

    def test_decode_normalizes_negative_index(self):
        assert decode_sexagenary(-1) == (9, 11)
