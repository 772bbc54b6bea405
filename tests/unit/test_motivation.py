"""Unit tests for motivation statistics"""
from datetime import datetime, timezone

from learnquest.gamification.motivation import average_scores, build_stats, weakest_dimension


def score_row(day, **overrides):
    row = {
        "risk": 5,
        "diligence": 5,
        "responsibility": 5,
        "collaboration": 5,
        "perseverance": 5,
        "planning": 5,
        "created_at": datetime(2024, 3, day, 8, 0, tzinfo=timezone.utc),
    }
    row.update(overrides)
    return row


def test_average_scores_rounded_to_one_decimal():
    averages = average_scores([score_row(3, risk=7), score_row(2, risk=8), score_row(1, risk=8)])

    assert averages["risk"] == 7.7
    assert averages["planning"] == 5.0


def test_average_scores_missing_values_count_as_zero():
    averages = average_scores([score_row(2, risk=None), score_row(1, risk=6)])

    assert averages["risk"] == 3.0


def test_average_scores_empty():
    assert average_scores([]) is None


def test_weakest_dimension_first_on_ties():
    assert weakest_dimension({"risk": 4, "diligence": 4, "planning": 6}) == "risk"
    assert weakest_dimension(None) is None


def test_weakest_dimension_ignores_unrated_dimensions():
    assert weakest_dimension({"planning": 6, "collaboration": 3}) == "collaboration"
    assert weakest_dimension({"mood": 1}) is None


def test_build_stats_newest_first_input():
    rows = [score_row(3, planning=2), score_row(2), score_row(1)]

    stats = build_stats(rows)

    assert stats["latest"]["planning"] == 2
    assert stats["trend"][0]["date"] == "2024-03-01"
    assert stats["trend"][-1]["date"] == "2024-03-03"
    assert len(stats["radar"]) == 6
    assert stats["radar"][0]["full_mark"] == 10
    assert stats["weakest_dimension"] == "planning"


def test_build_stats_averages_window():
    rows = [score_row(10, risk=10)] + [score_row(day, risk=1) for day in range(9, 0, -1)]

    stats = build_stats(rows, averages_window=1)

    assert stats["averages"]["risk"] == 10.0


def test_build_stats_no_rows():
    stats = build_stats([])

    assert stats["latest"] is None
    assert stats["trend"] == []
    assert stats["weakest_dimension"] is None
