"""Tests for the step-based scheduler."""

from datetime import timedelta

import pytest

from flashstep.application.scheduler import (
    Scheduler,
    SchedulingPolicy,
    apply_rating,
    format_interval,
    is_mastered,
    preview_intervals,
)
from flashstep.domain.errors import InvalidRatingError
from flashstep.domain.models import CardStatus, Rating, derive_status

STEPS = range(0, 10)


@pytest.fixture
def scheduler():
    return Scheduler()


class TestApplyRating:
    def test_new_card_good(self, make_card, now):
        update = apply_rating(make_card("a"), Rating.GOOD, now)

        assert update.learning_step == 1
        assert update.status is CardStatus.LEARNING
        assert update.interval == timedelta(days=1)
        assert update.next_review_date == now + timedelta(days=1)
        assert update.last_review_date == now
        assert update.previous_learning_step == 0

    def test_new_card_all_ratings(self, make_card, now):
        card = make_card("a")
        assert apply_rating(card, 1, now).learning_step == 0
        assert apply_rating(card, 1, now).interval == timedelta(minutes=10)
        assert apply_rating(card, 2, now).learning_step == 1
        assert apply_rating(card, 2, now).interval == timedelta(hours=12)
        assert apply_rating(card, 4, now).learning_step == 2
        assert apply_rating(card, 4, now).interval == timedelta(days=4.5)

    def test_young_card(self, make_card, now):
        card = make_card("a", step=3)
        assert apply_rating(card, Rating.AGAIN, now).learning_step == 2
        assert apply_rating(card, Rating.HARD, now).learning_step == 3
        assert apply_rating(card, Rating.HARD, now).interval == timedelta(days=3.5)
        assert apply_rating(card, Rating.GOOD, now).interval == timedelta(days=14)
        easy = apply_rating(card, Rating.EASY, now)
        assert easy.learning_step == 5
        assert easy.status is CardStatus.MATURE
        assert easy.interval == timedelta(days=45)

    def test_steps_past_table_reuse_last_interval(self, make_card, now):
        card = make_card("a", step=6)
        assert apply_rating(card, Rating.GOOD, now).interval == timedelta(days=60)
        assert apply_rating(card, Rating.EASY, now).interval == timedelta(days=90)

    def test_again_regresses_but_never_below_zero(self, make_card, now):
        assert apply_rating(make_card("a", step=0), Rating.AGAIN, now).learning_step == 0
        assert apply_rating(make_card("a", step=1), Rating.AGAIN, now).learning_step == 0
        assert apply_rating(make_card("a", step=7), Rating.AGAIN, now).learning_step == 6

    @pytest.mark.parametrize("bad", [0, 5, None, "good"])
    def test_invalid_rating_rejected(self, make_card, now, bad):
        with pytest.raises(InvalidRatingError):
            apply_rating(make_card("a"), bad, now)

    def test_input_card_is_not_mutated(self, make_card, now):
        card = make_card("a", step=2)
        apply_rating(card, Rating.EASY, now)
        assert card.learning_step == 2


class TestInvariants:
    @pytest.mark.parametrize("step", STEPS)
    @pytest.mark.parametrize("rating", list(Rating))
    def test_step_floor_and_no_past_scheduling(self, make_card, now, step, rating):
        update = apply_rating(make_card("a", step=step), rating, now)
        assert update.learning_step >= 0
        assert update.next_review_date >= now
        assert update.status is derive_status(update.learning_step)

    @pytest.mark.parametrize("step", STEPS)
    def test_intervals_ordered_across_ratings(self, make_card, now, step):
        card = make_card("a", step=step)
        intervals = [apply_rating(card, r, now).interval for r in Rating]
        assert intervals == sorted(intervals)
        assert intervals[0] < intervals[-1]

    @pytest.mark.parametrize("rating", list(Rating))
    def test_intervals_non_decreasing_in_step(self, make_card, now, rating):
        intervals = [apply_rating(make_card("a", step=s), rating, now).interval for s in STEPS]
        assert intervals == sorted(intervals)

    def test_hard_shorter_than_good(self, make_card, now):
        for step in STEPS:
            card = make_card("a", step=step)
            assert (
                apply_rating(card, Rating.HARD, now).interval
                < apply_rating(card, Rating.GOOD, now).interval
            )


class TestPreview:
    @pytest.mark.parametrize("step", STEPS)
    def test_preview_matches_apply(self, make_card, now, step):
        card = make_card("a", step=step)
        preview = preview_intervals(card, now)

        assert set(preview) == set(Rating)
        for rating, interval in preview.items():
            assert apply_rating(card, rating, now).interval == interval

    def test_preview_with_custom_policy(self, make_card, now):
        scheduler = Scheduler(SchedulingPolicy(step_intervals_days=(0, 2, 4), easy_bonus=2.0))
        card = make_card("a", step=1)
        preview = scheduler.preview_intervals(card, now)

        assert preview[Rating.GOOD] == timedelta(days=4)
        assert preview[Rating.EASY] == timedelta(days=8)
        for rating in Rating:
            assert scheduler.apply_rating(card, rating, now).interval == preview[rating]


class TestPolicy:
    def test_max_interval_caps_everything(self, make_card, now):
        scheduler = Scheduler(SchedulingPolicy(max_interval_days=30))
        update = scheduler.apply_rating(make_card("a", step=6), Rating.EASY, now)
        assert update.interval == timedelta(days=30)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"step_intervals_days": ()},
            {"step_intervals_days": (0, 3, 1)},
            {"step_intervals_days": (-1, 1)},
            {"hard_factor": 0},
            {"hard_factor": 1.5},
            {"easy_bonus": 0.9},
            {"easy_step_skip": 1},
            {"again_interval": timedelta(minutes=-1)},
        ],
    )
    def test_invalid_policy_rejected(self, kwargs):
        with pytest.raises(ValueError):
            SchedulingPolicy(**kwargs)


def test_is_mastered_predicate(make_card, now):
    assert is_mastered(make_card("a", due_in=timedelta(hours=1)), now)
    assert not is_mastered(make_card("a", due_in=-timedelta(hours=1)), now)


@pytest.mark.parametrize(
    "interval,expected",
    [
        (timedelta(minutes=10), "10 min"),
        (timedelta(hours=12), "720 min"),
        (timedelta(days=1), "1 day"),
        (timedelta(days=3), "3 days"),
        (timedelta(days=14), "2 weeks"),
        (timedelta(days=60), "2 months"),
        (timedelta(days=365), "1 year"),
    ],
)
def test_format_interval(interval, expected):
    assert format_interval(interval) == expected
