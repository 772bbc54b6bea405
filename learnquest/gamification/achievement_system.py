"""
Achievement System

Achievements are reference rows: a category and a milestone value. Crossing
the milestone in that category unlocks the badge, permanently and at most
once per user.

Categories:
- posts: total number of shared posts
- streak: current daily streak
- motivation_<dimension>: latest self-rating on that dimension

Unlocks are written with INSERT ... ON CONFLICT DO NOTHING against the unique
(user_id, achievement_id) pair, so duplicate or concurrent evaluations never
produce a second row and never raise.
"""

from typing import Dict, Iterable, List
import logging

from learnquest.db import queries
from learnquest.i18n.translations import t
from learnquest.models.achievement import Achievement, AchievementCategory
from learnquest.observability.metrics import achievements_unlocked_total

logger = logging.getLogger(__name__)


def category_matches(achievement_category: str, category: str) -> bool:
    """Exact match, or prefix match for motivation sub-categories"""
    if achievement_category == category:
        return True
    return (
        category.startswith(AchievementCategory.MOTIVATION.value)
        and achievement_category.startswith(category)
    )


def find_unlockable(
    achievements: Iterable[Achievement],
    category: str,
    current_value: int,
) -> List[Achievement]:
    """Achievements in `category` whose milestone has been reached, lowest first"""
    candidates = [
        ach for ach in achievements
        if category_matches(ach.category, category) and ach.milestone_value <= current_value
    ]
    candidates.sort(key=lambda ach: ach.milestone_value)
    return candidates


def unlock_notification(achievement: Achievement, lang: str = "en") -> Dict[str, str]:
    """Toast payload for a newly unlocked badge"""
    return {
        "type": "achievement_unlocked",
        "achievement_id": achievement.id,
        "icon": achievement.icon,
        "title": t("achievement_unlocked_title", lang),
        "description": t(
            "achievement_unlocked_body",
            lang,
            title=achievement.title,
            description=achievement.description,
        ),
    }


async def evaluate_achievements(
    user_id: str,
    category: str,
    current_value: int,
    lang: str = "en",
) -> List[Dict[str, str]]:
    """
    Unlock every achievement in `category` with milestone <= current_value.

    Args:
        user_id: Profile ID
        category: 'posts', 'streak' or 'motivation_<dimension>'
        current_value: Current count/score in that category
        lang: Language for notification text

    Returns:
        One notification per newly inserted user_achievements row
    """
    achievements = await queries.get_achievements_by_category(category, max_milestone=current_value)
    candidates = find_unlockable(achievements, category, current_value)
    if not candidates:
        return []

    unlocked_ids = set(await queries.get_unlocked_achievement_ids(user_id))

    notifications = []
    for achievement in candidates:
        if achievement.id in unlocked_ids:
            continue

        # False means another request inserted the row first
        inserted = await queries.unlock_achievement(user_id, achievement.id)
        if not inserted:
            logger.debug(f"Achievement {achievement.id} already unlocked for user {user_id}")
            continue

        achievements_unlocked_total.labels(category=achievement.category).inc()
        notifications.append(unlock_notification(achievement, lang))
        logger.info(
            f"User {user_id} unlocked achievement: {achievement.title} "
            f"({achievement.category} ≥ {achievement.milestone_value})"
        )

    return notifications


async def get_achievement_overview(user_id: str) -> Dict[str, object]:
    """
    All badges with the user's unlock state, grouped by top-level category

    Returns:
        {
            'achievements': [{...achievement, 'unlocked': bool}],
            'categories': {category: {'unlocked': int, 'total': int}},
            'total_unlocked': int,
            'total_achievements': int,
            'percentage': int
        }
    """
    all_achievements = await queries.get_all_achievements()
    unlocked_ids = set(await queries.get_unlocked_achievement_ids(user_id))

    items = []
    categories: Dict[str, Dict[str, int]] = {}
    for achievement in sorted(all_achievements, key=lambda a: a.milestone_value):
        unlocked = achievement.id in unlocked_ids
        items.append({**achievement.model_dump(mode="json"), "unlocked": unlocked})

        group = _top_level_category(achievement.category)
        counts = categories.setdefault(group, {"unlocked": 0, "total": 0})
        counts["total"] += 1
        if unlocked:
            counts["unlocked"] += 1

    total = len(all_achievements)
    total_unlocked = sum(1 for item in items if item["unlocked"])

    return {
        "achievements": items,
        "categories": categories,
        "total_unlocked": total_unlocked,
        "total_achievements": total,
        "percentage": round(total_unlocked / total * 100) if total else 0,
    }


def _top_level_category(category: str) -> str:
    for known in AchievementCategory:
        if category == known.value or category.startswith(f"{known.value}_"):
            return known.value
    return category
