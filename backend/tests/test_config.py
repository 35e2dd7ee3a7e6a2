import datetime as dt
import json
from pathlib import Path

import pytest

from biathlon_core import RaceConfig, load_config
from biathlon_core.timefmt import format_clock

CONFIG = {
    "laps": 2,
    "lapLen": 3651,
    "penaltyLen": 50,
    "firingLines": 1,
    "start": "09:30:00.000",
    "startDelta": "00:00:30",
}


def test_from_dict_converts_fields() -> None:
    config = RaceConfig.from_dict(CONFIG)
    assert config.laps == 2
    assert config.lap_len == 3651.0
    assert config.penalty_len == 50.0
    assert config.firing_lines == 1
    assert format_clock(config.start) == "09:30:00.000"
    assert config.start_delta == dt.timedelta(seconds=30)
    assert config.to_dict() == {**CONFIG, "lapLen": 3651.0, "penaltyLen": 50.0}


def test_from_dict_reports_missing_keys() -> None:
    with pytest.raises(ValueError, match="lapLen, penaltyLen"):
        RaceConfig.from_dict({"laps": 1, "firingLines": 1, "start": "09:30:00.000", "startDelta": "00:00:30"})


@pytest.mark.parametrize(
    "override, message",
    [
        ({"laps": 0}, "laps must be at least 1"),
        ({"lapLen": -1}, "must be positive"),
        ({"laps": "two"}, "non-numeric"),
        ({"start": "09:30"}, "expected HH:MM:SS.mmm"),
        ({"startDelta": "30s"}, "expected HH:MM:SS"),
    ],
)
def test_from_dict_rejects_bad_values(override, message) -> None:
    with pytest.raises(ValueError, match=message):
        RaceConfig.from_dict({**CONFIG, **override})


def test_load_config_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "race.json"
    path.write_text(json.dumps({**CONFIG, "laps": 3}), encoding="utf-8")
    monkeypatch.setenv("BIATHLON_CONFIG", str(path))

    assert load_config().laps == 3


def test_load_config_uses_bundled_sample(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BIATHLON_CONFIG", raising=False)
    monkeypatch.delenv("BIATHLON_DATA_DIR", raising=False)

    assert load_config() == RaceConfig.from_dict(CONFIG)


def test_load_config_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{laps: 2", encoding="utf-8")
    with pytest.raises(ValueError, match="not valid JSON"):
        load_config(broken)
