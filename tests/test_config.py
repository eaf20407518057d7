"""Engine configuration."""

import pytest

from suimei.config import DEFAULT_TIMEZONE, EngineConfig, ZiHourConvention


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()
        assert config.luck_pillar_count == 10
        assert config.zi_hour_convention is ZiHourConvention.SAME_DAY
        assert config.timezone == DEFAULT_TIMEZONE == "Asia/Tokyo"
        assert config.ephe_path is None

    def test_from_empty_env(self):
        assert EngineConfig.from_env({}) == EngineConfig()

    def test_from_env(self):
        config = EngineConfig.from_env({
            "SUIMEI_LUCK_PILLARS": "8",
            "SUIMEI_ZI_HOUR": "NEXT_DAY",
            "SUIMEI_TIMEZONE": " Asia/Shanghai ",
            "SUIMEI_EPHE_PATH": "/opt/ephe",
        })
        assert config.luck_pillar_count == 8
        assert config.zi_hour_convention is ZiHourConvention.NEXT_DAY
        assert config.timezone == "Asia/Shanghai"
        assert config.ephe_path == "/opt/ephe"

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("SUIMEI_LUCK_PILLARS", "12")
        assert EngineConfig.from_env().luck_pillar_count == 12

    def test_rejects_bad_values(self):
        with pytest.raises(ValueError):
            EngineConfig(luck_pillar_count=0)
        with pytest.raises(ValueError):
            EngineConfig.from_env({"SUIMEI_ZI_HOUR": "midnight"})
        with pytest.raises(ValueError):
            EngineConfig.from_env({"SUIMEI_LUCK_PILLARS": "ten"})
