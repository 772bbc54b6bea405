"""Motivation score and emotion log queries"""
import logging
from datetime import datetime
from learnquest.db.connection import db
from learnquest.models.activity import MOTIVATION_DIMENSIONS, MotivationScores

logger = logging.getLogger(__name__)

_DIMENSION_COLUMNS = ", ".join(MOTIVATION_DIMENSIONS)


async def insert_motivation_scores(user_id: str, scores: MotivationScores) -> dict:
    """Save one self-rating; returns the stored row"""
    values = [getattr(scores, dim) for dim in MOTIVATION_DIMENSIONS]
    placeholders = ", ".join(["%s"] * len(MOTIVATION_DIMENSIONS))

    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                INSERT INTO motivation_scores (user_id, {_DIMENSION_COLUMNS})
                VALUES (%s, {placeholders})
                RETURNING id, user_id, {_DIMENSION_COLUMNS}, created_at
                """,
                (user_id, *values)
            )
            row = await cur.fetchone()
            await conn.commit()

    logger.info(f"Saved motivation scores for user {user_id}")
    return dict(row)


async def get_recent_motivation_scores(user_id: str, limit: int = 30) -> list[dict]:
    """Newest first"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT id, {_DIMENSION_COLUMNS}, created_at
                FROM motivation_scores
                WHERE user_id = %s
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (user_id, limit)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]


async def get_recent_emotion_logs(user_id: str, limit: int = 7) -> list[dict]:
    """Newest first"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT emotion, energy_level, activity, notes, created_at
                FROM emotion_logs
                WHERE user_id = %s
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (user_id, limit)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]


async def has_motivation_since(user_id: str, since: datetime) -> bool:
    """Whether the student rated themselves at or after `since`"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT EXISTS (
                    SELECT 1 FROM motivation_scores
                    WHERE user_id = %s AND created_at >= %s
                ) AS done
                """,
                (user_id, since)
            )
            row = await cur.fetchone()
            return bool(row and row["done"])
