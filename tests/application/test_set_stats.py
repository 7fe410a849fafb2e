from datetime import timedelta

from flashstep.application.set_stats import SetStats, summarize


def test_summarize_counts(make_card, now):
    cards = [
        make_card("n0"),
        make_card("n1"),
        make_card("l0", step=1, due_in=-timedelta(hours=1)),
        make_card("l1", step=2, due_in=timedelta(days=1)),
        make_card("y0", step=4, due_in=timedelta(days=7)),
        make_card("m0", step=6, due_in=-timedelta(days=2)),
    ]
    stats = summarize(cards, now)

    assert stats.total == 6
    assert (stats.new, stats.learning, stats.young, stats.mature) == (2, 2, 1, 1)
    assert stats.mastered == 2
    assert stats.due == 2
    assert stats.due_today == 4
    assert stats.progress_percent == 33


def test_mastered_depends_on_now(make_card, now):
    cards = [make_card("a", step=3, due_in=timedelta(days=1))]
    assert summarize(cards, now).mastered == 1
    assert summarize(cards, now + timedelta(days=2)).mastered == 0


def test_empty_set():
    stats = summarize([], None)
    assert stats == SetStats()
    assert stats.progress_percent == 0
    assert stats.to_dict()["due_today"] == 0
