"""Achievement database queries"""
import logging
from typing import Optional
from learnquest.db.connection import db
from learnquest.models.achievement import Achievement, AchievementCategory

logger = logging.getLogger(__name__)

ACHIEVEMENT_COLUMNS = "id, category, milestone_value, title, description, icon, tier"


def _achievement(row: dict) -> Achievement:
    data = dict(row)
    data["id"] = str(data["id"])
    data["icon"] = data.get("icon") or "🏆"
    data["description"] = data.get("description") or ""
    return Achievement(**data)


async def get_all_achievements() -> list[Achievement]:
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"SELECT {ACHIEVEMENT_COLUMNS} FROM achievements ORDER BY category, milestone_value"
            )
            rows = await cur.fetchall()
            return [_achievement(row) for row in rows]


async def get_achievements_by_category(
    category: str,
    max_milestone: Optional[int] = None,
) -> list[Achievement]:
    """
    Achievements in a category, smallest milestone first.

    'motivation' matches every motivation_<dimension> category.
    """
    if category == AchievementCategory.MOTIVATION.value:
        condition = "category LIKE %s"
        params: list = [f"{category}%"]
    else:
        condition = "category = %s"
        params = [category]

    if max_milestone is not None:
        condition += " AND milestone_value <= %s"
        params.append(max_milestone)

    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {ACHIEVEMENT_COLUMNS}
                FROM achievements
                WHERE {condition}
                ORDER BY milestone_value
                """,
                tuple(params)
            )
            rows = await cur.fetchall()
            return [_achievement(row) for row in rows]


async def get_unlocked_achievement_ids(user_id: str) -> set[str]:
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT achievement_id FROM user_achievements WHERE user_id = %s",
                (user_id,)
            )
            rows = await cur.fetchall()
            return {str(row["achievement_id"]) for row in rows}


async def unlock_achievement(user_id: str, achievement_id: str) -> bool:
    """
    Record an unlock.

    Returns:
        True if a row was inserted, False if the pair was already unlocked
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO user_achievements (user_id, achievement_id)
                VALUES (%s, %s)
                ON CONFLICT (user_id, achievement_id) DO NOTHING
                RETURNING id
                """,
                (user_id, achievement_id)
            )
            row = await cur.fetchone()
            await conn.commit()

    if row:
        logger.info(f"User {user_id} unlocked achievement {achievement_id}")
        return True
    return False


async def get_recent_unlocks(user_id: str, limit: int = 3) -> list[dict]:
    """Newest unlocks first, each achievement with its unlock time"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT a.id, a.category, a.milestone_value, a.title, a.description,
                       a.icon, a.tier, ua.created_at AS unlocked_at
                FROM user_achievements ua
                JOIN achievements a ON a.id = ua.achievement_id
                WHERE ua.user_id = %s
                ORDER BY ua.created_at DESC
                LIMIT %s
                """,
                (user_id, limit)
            )
            rows = await cur.fetchall()

    recent = []
    for row in rows:
        unlocked_at = row["unlocked_at"]
        achievement = _achievement({k: v for k, v in row.items() if k != "unlocked_at"})
        recent.append({
            **achievement.model_dump(mode="json"),
            "unlocked_at": unlocked_at.isoformat() if unlocked_at else None,
        })
    return recent
