"""Post and feed database queries"""
import logging
from typing import Optional
from learnquest.db.connection import db

logger = logging.getLogger(__name__)


async def insert_post(cur, user_id: str, content: str, image_url: Optional[str]) -> dict:
    """
    Insert a post on the caller's cursor.

    Runs inside the transaction that also writes the streak, so a post and
    its streak update commit together.
    """
    await cur.execute(
        """
        INSERT INTO posts (user_id, content, image_url)
        VALUES (%s, %s, %s)
        RETURNING id, user_id, content, image_url, created_at
        """,
        (user_id, content, image_url)
    )
    post = await cur.fetchone()
    logger.info(f"Created post {post['id']} for user {user_id}")
    return dict(post)


async def count_user_posts(user_id: str) -> int:
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT COUNT(*) AS count FROM posts WHERE user_id = %s",
                (user_id,)
            )
            row = await cur.fetchone()
            return row["count"] if row else 0


async def get_feed(limit: int = 50) -> list[dict]:
    """Newest posts first, with the author's name and avatar"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT p.id, p.user_id, p.content, p.image_url, p.created_at,
                       pr.name AS author_name, pr.avatar_url AS author_avatar_url
                FROM posts p
                LEFT JOIN profiles pr ON pr.id = p.user_id
                ORDER BY p.created_at DESC
                LIMIT %s
                """,
                (limit,)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]
