from datetime import datetime, timedelta, timezone

import pytest

from flashstep.domain.models import Card

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_card():
    """Factory for cards; `due_in` is relative to NOW (negative = overdue)."""

    def _make(card_id, step=0, due_in=timedelta(0), last_review=None, **kwargs):
        return Card(
            id=card_id,
            learning_step=step,
            next_review_date=NOW + due_in,
            last_review_date=last_review,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_pool(make_card):
    """n new cards c0..c{n-1}, all due now."""

    def _make(n, prefix="c"):
        return [make_card(f"{prefix}{i}") for i in range(n)]

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config
    monkeypatch.setenv("HOME", str(home))
    for var in ("FLASHSTEP_DECK_PATH", "FLASHSTEP_CARD_LIMIT", "FLASHSTEP_DAILY_NEW_LIMIT"):
        monkeypatch.delenv(var, raising=False)
    return home
