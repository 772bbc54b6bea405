"""
Motivation self-rating statistics.

Students rate themselves 1-10 on six dimensions. The coach briefing uses the
averages of the last seven ratings; the stats view shows the latest rating,
the trend and the weakest dimension.
"""

from typing import Dict, List, Mapping, Optional, Sequence

from learnquest.models.activity import MOTIVATION_DIMENSIONS

DIMENSION_LABELS = {
    "risk": "Risk-taking",
    "diligence": "Diligence",
    "responsibility": "Responsibility",
    "collaboration": "Collaboration",
    "perseverance": "Perseverance",
    "planning": "Planning",
}


def average_scores(scores: Sequence[Mapping[str, Optional[int]]]) -> Optional[Dict[str, float]]:
    """
    Per-dimension mean rounded to one decimal; missing values count as 0.

    Returns None when there are no ratings.
    """
    if not scores:
        return None
    count = len(scores)
    return {
        dim: round(sum((s.get(dim) or 0) for s in scores) / count, 1)
        for dim in MOTIVATION_DIMENSIONS
    }


def weakest_dimension(averages: Optional[Mapping[str, float]]) -> Optional[str]:
    """Lowest-scoring dimension (first in dimension order on ties)"""
    if not averages:
        return None
    present = [dim for dim in MOTIVATION_DIMENSIONS if dim in averages]
    if not present:
        return None
    return min(present, key=averages.__getitem__)


def build_stats(recent_scores: Sequence[Mapping], averages_window: int = 7) -> Dict[str, object]:
    """
    Stats view payload from newest-first score rows.

    Returns:
        {
            'latest': {dimension: score} or None,
            'radar': [{'dimension', 'label', 'value', 'full_mark'}],
            'trend': [{'date', dimension: score...}] oldest first,
            'averages': {dimension: float} over the newest `averages_window` rows,
            'weakest_dimension': str or None
        }
    """
    if not recent_scores:
        return {
            "latest": None,
            "radar": [],
            "trend": [],
            "averages": None,
            "weakest_dimension": None,
        }

    latest = recent_scores[0]
    averages = average_scores(list(recent_scores[:averages_window]))

    trend: List[Dict[str, object]] = []
    for row in reversed(recent_scores):
        created_at = row.get("created_at")
        point = {"date": created_at.date().isoformat() if created_at else None}
        point.update({dim: row.get(dim) for dim in MOTIVATION_DIMENSIONS})
        trend.append(point)

    return {
        "latest": {dim: latest.get(dim) for dim in MOTIVATION_DIMENSIONS},
        "radar": [
            {"dimension": dim, "label": DIMENSION_LABELS[dim], "value": latest.get(dim), "full_mark": 10}
            for dim in MOTIVATION_DIMENSIONS
        ],
        "trend": trend,
        "averages": averages,
        "weakest_dimension": weakest_dimension(averages),
    }
