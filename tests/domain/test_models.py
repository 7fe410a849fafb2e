"""Tests for domain models: status derivation, ratings, phase payloads."""

from datetime import timedelta

import pytest

from flashstep.domain.errors import ContractViolation, InvalidRatingError
from flashstep.domain.models import (
    Batch,
    CardStatus,
    Phase,
    Rating,
    ScheduleUpdate,
    derive_status,
)


class TestDeriveStatus:
    @pytest.mark.parametrize(
        "step,expected",
        [
            (0, CardStatus.NEW),
            (1, CardStatus.LEARNING),
            (2, CardStatus.LEARNING),
            (3, CardStatus.YOUNG),
            (4, CardStatus.YOUNG),
            (5, CardStatus.MATURE),
            (42, CardStatus.MATURE),
        ],
    )
    def test_thresholds(self, step, expected):
        assert derive_status(step) is expected

    def test_negative_step_rejected(self):
        with pytest.raises(ContractViolation):
            derive_status(-1)


class TestCard:
    def test_status_follows_learning_step(self, make_card):
        assert make_card("a", step=0).status is CardStatus.NEW
        assert make_card("a", step=4).status is CardStatus.YOUNG

    def test_negative_step_rejected(self, make_card):
        with pytest.raises(ContractViolation):
            make_card("a", step=-1)

    def test_mastered_is_strictly_future(self, make_card, now):
        assert make_card("a", due_in=timedelta(seconds=1)).is_mastered(now)
        assert not make_card("a", due_in=timedelta(0)).is_mastered(now)
        assert make_card("a", due_in=timedelta(0)).is_due(now)

    def test_mastered_recomputed_per_instant(self, make_card, now):
        card = make_card("a", due_in=timedelta(days=1))
        assert card.is_mastered(now)
        assert not card.is_mastered(now + timedelta(days=2))


class TestRating:
    @pytest.mark.parametrize("value", [1, 2, 3, 4])
    def test_coerce_valid(self, value):
        assert Rating.coerce(value) == value

    @pytest.mark.parametrize("value", [0, 5, -1, "3", None, True, 2.5, 3.0])
    def test_coerce_invalid(self, value):
        with pytest.raises(InvalidRatingError):
            Rating.coerce(value)

    def test_invalid_rating_is_value_error(self):
        with pytest.raises(ValueError):
            Rating.coerce(7)

    def test_correctness(self):
        assert not Rating.AGAIN.is_correct
        assert not Rating.HARD.is_correct
        assert Rating.GOOD.is_correct
        assert Rating.EASY.is_correct


class TestScheduleUpdate:
    def test_apply_to_updates_scheduling_fields_only(self, make_card, now):
        card = make_card("a", step=1, front="hond", back="dog")
        update = ScheduleUpdate(
            card_id="a",
            rating=Rating.GOOD,
            previous_learning_step=1,
            learning_step=2,
            interval=timedelta(days=3),
            next_review_date=now + timedelta(days=3),
            last_review_date=now,
        )
        updated = update.apply_to(card)

        assert updated.learning_step == 2
        assert updated.status is CardStatus.LEARNING
        assert updated.next_review_date == now + timedelta(days=3)
        assert updated.last_review_date == now
        assert updated.front == "hond"
        assert card.learning_step == 1  # original untouched

    def test_apply_to_other_card_rejected(self, make_card, now):
        update = ScheduleUpdate("a", Rating.GOOD, 0, 1, timedelta(days=1), now, now)
        with pytest.raises(ContractViolation):
            update.apply_to(make_card("b"))


class TestPhase:
    def test_failed_ids_deduplicated_in_order(self):
        phase = Phase("p", 5, phase_failed_ids=("b", "a", "b"))
        assert phase.phase_failed_ids == ("b", "a")

    def test_is_finished(self):
        assert Phase("p", 3, studied_in_phase=3).is_finished
        assert not Phase("p", 3, studied_in_phase=3, phase_failed_ids=("x",)).is_finished
        assert not Phase("p", 3, studied_in_phase=2).is_finished

    def test_negative_counters_rejected(self):
        with pytest.raises(ContractViolation):
            Phase("p", 3, phase_offset=-1)

    def test_payload_uses_navigation_keys(self):
        phase = Phase("p1", 12, studied_in_phase=4, phase_offset=5, phase_failed_ids=("x",))
        assert phase.to_payload() == {
            "phaseId": "p1",
            "totalPhaseCards": 12,
            "studiedInPhase": 4,
            "phaseOffset": 5,
            "phaseFailedIds": ["x"],
        }
        assert Phase.from_payload(phase.to_payload()) == phase

    def test_from_payload_defaults_counters(self):
        phase = Phase.from_payload({"phaseId": "p1", "totalPhaseCards": 3})
        assert phase.studied_in_phase == 0
        assert phase.phase_offset == 0
        assert phase.phase_failed_ids == ()

    def test_from_payload_accepts_snake_case(self):
        phase = Phase.from_payload({"phase_id": "p1", "total_phase_cards": 3, "phase_offset": 2})
        assert phase.phase_offset == 2

    def test_from_payload_requires_id_and_total(self):
        with pytest.raises(ContractViolation):
            Phase.from_payload({"totalPhaseCards": 3})
        with pytest.raises(ContractViolation):
            Phase.from_payload({"phaseId": "p1"})

    @pytest.mark.parametrize(
        "payload",
        [
            {"phaseId": "p1", "totalPhaseCards": "x"},
            {"phaseId": "p1", "totalPhaseCards": 3, "phaseOffset": [1]},
            {"phaseId": "p1", "totalPhaseCards": 3, "phaseFailedIds": "abc"},
            {"phaseId": "p1", "totalPhaseCards": -2},
            ["p1", 3],
        ],
    )
    def test_from_payload_rejects_malformed(self, payload):
        with pytest.raises(ContractViolation):
            Phase.from_payload(payload)


def test_batch_card_ids(make_card):
    batch = Batch(cards=(make_card("a"), make_card("b")), pending_in_batch=1)
    assert batch.card_ids == ["a", "b"]
    assert len(batch) == 2
    assert not batch.is_empty
    assert Batch(cards=()).is_empty
