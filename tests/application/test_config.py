from datetime import timedelta

import pytest
from pydantic import ValidationError

from flashstep.application.config import AppConfig, config_file_path, resolve_config


def test_defaults(mock_home):
    config = resolve_config()
    assert config.daily_new_limit == 20
    assert config.daily_review_limit == 100
    assert config.card_limit == 20
    assert config.shuffle is True
    assert config.deck_path is None


def test_env_overrides_defaults(mock_home, monkeypatch):
    monkeypatch.setenv("FLASHSTEP_DAILY_NEW_LIMIT", "5")
    assert resolve_config().daily_new_limit == 5


def test_toml_file_is_read(mock_home):
    path = config_file_path()
    path.parent.mkdir(parents=True)
    path.write_text("daily_review_limit = 42\nhard_factor = 0.25\n")

    config = resolve_config()
    assert config.daily_review_limit == 42
    assert config.hard_factor == 0.25


def test_cli_overrides_beat_env_and_file(mock_home, monkeypatch):
    path = config_file_path()
    path.parent.mkdir(parents=True)
    path.write_text("daily_new_limit = 7\n")
    monkeypatch.setenv("FLASHSTEP_DAILY_NEW_LIMIT", "5")

    assert resolve_config({"daily_new_limit": 3}).daily_new_limit == 3
    assert resolve_config({"daily_new_limit": None}).daily_new_limit == 5


def test_deck_path_resolved(mock_home, tmp_path):
    config = resolve_config({"deck_path": str(tmp_path / "deck.yaml")})
    assert config.deck_path.is_absolute()


@pytest.mark.parametrize(
    "overrides",
    [
        {"daily_new_limit": -1},
        {"card_limit": 0},
        {"hard_factor": 1.5},
        {"easy_bonus": 0.5},
        {"step_intervals_days": [0, 5, 2]},
        {"step_intervals_days": []},
    ],
)
def test_invalid_values_rejected(mock_home, overrides):
    with pytest.raises(ValidationError):
        AppConfig(**overrides)


def test_scheduling_policy(mock_home):
    config = resolve_config(
        {"step_intervals_days": [0, 2, 5], "again_interval_minutes": 1, "easy_bonus": 2}
    )
    policy = config.scheduling_policy()
    assert policy.step_intervals_days == (0, 2, 5)
    assert policy.again_interval == timedelta(minutes=1)
    assert policy.easy_bonus == 2
