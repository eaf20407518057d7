"""Command line interface."""

import json

import pytest

from suimei import run


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SUIMEI_LUCK_PILLARS", "SUIMEI_ZI_HOUR", "SUIMEI_TIMEZONE", "SUIMEI_EPHE_PATH"):
        monkeypatch.delenv(name, raising=False)


class TestMain:

    def test_prints_chart_and_timeline(self, capsys):
        code = run.main(["--birth-date", "1990-01-01", "--birth-time", "12:00",
                         "--gender", "male", "--timeline", "2025", "2026"])
        assert code == 0

        result = json.loads(capsys.readouterr().out)
        assert result["timezone"] == "Asia/Tokyo"
        pillars = result["chart"]["pillars"]
        assert [pillars[p]["name"] for p in ("year", "month", "day", "hour")] == [
            "己巳", "丙子", "丙寅", "甲午"]
        assert [e["year"] for e in result["timeline"]] == [2025, 2026]

    def test_unknown_time(self, capsys):
        code = run.main(["--birth-date", "1990-01-01", "--gender", "female",
                         "--timezone", "Asia/Shanghai"])
        assert code == 0
        result = json.loads(capsys.readouterr().out)
        assert result["chart"]["pillars"]["hour"] is None
        assert "timeline" not in result

    def test_invalid_date_exits_2(self, capsys):
        code = run.main(["--birth-date", "1990-02-30", "--gender", "male"])
        assert code == 2
        assert "not a valid date" in capsys.readouterr().err

    def test_unknown_timezone_exits_2(self, capsys):
        code = run.main(["--birth-date", "1990-01-01", "--gender", "male",
                         "--timezone", "Nowhere/Special"])
        assert code == 2
        assert "Nowhere/Special" in capsys.readouterr().err

    def test_malformed_date_is_usage_error(self):
        with pytest.raises(SystemExit) as exc:
            run.main(["--birth-date", "01/01/1990", "--gender", "male"])
        assert exc.value.code == 2

    def test_coordinates_must_come_in_pairs(self):
        with pytest.raises(SystemExit):
            run.main(["--birth-date", "1990-01-01", "--gender", "male", "--latitude", "35.6"])
