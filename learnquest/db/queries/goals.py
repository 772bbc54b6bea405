"""Goal database queries"""
import logging
from typing import Optional
from psycopg.types.json import Jsonb
from learnquest.db.connection import db
from learnquest.exceptions import RecordNotFoundError
from learnquest.models.goal import Goal, GoalStatus

logger = logging.getLogger(__name__)

GOAL_COLUMNS = """
    id, user_id, goal_type, category, title, description,
    current_value, target_value, deadline, status,
    metadata, sub_goals, completed_at, created_at
"""


def _goal(row: dict) -> Goal:
    data = dict(row)
    data["id"] = str(data["id"])
    data["user_id"] = str(data["user_id"])
    data["category"] = data.get("category") or ""
    data["current_value"] = data.get("current_value") or 0
    data["status"] = data.get("status") or GoalStatus.ACTIVE.value
    data["metadata"] = data.get("metadata") or {}
    data["sub_goals"] = data.get("sub_goals") or []
    return Goal(**data)


async def insert_goal(goal: Goal) -> Goal:
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                INSERT INTO goals (
                    user_id, goal_type, category, title, description,
                    current_value, target_value, deadline, status, metadata, sub_goals
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {GOAL_COLUMNS}
                """,
                (
                    goal.user_id,
                    goal.goal_type.value,
                    goal.category,
                    goal.title,
                    goal.description,
                    goal.current_value,
                    goal.target_value,
                    goal.deadline,
                    goal.status.value,
                    Jsonb(goal.metadata),
                    Jsonb(goal.sub_goals),
                )
            )
            row = await cur.fetchone()
            await conn.commit()

    saved = _goal(row)
    logger.info(f"Created {saved.goal_type.value} {saved.id} for user {saved.user_id}")
    return saved


async def get_goal(goal_id: str, user_id: str) -> Goal:
    """
    Raises:
        RecordNotFoundError: No such goal for this user
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"SELECT {GOAL_COLUMNS} FROM goals WHERE id = %s AND user_id = %s",
                (goal_id, user_id)
            )
            row = await cur.fetchone()

    if not row:
        raise RecordNotFoundError(
            f"Goal {goal_id} not found",
            record_type="goal",
            record_id=goal_id,
            user_id=user_id,
        )
    return _goal(row)


async def update_goal(goal: Goal) -> Goal:
    """Write the mutable fields of a goal"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                UPDATE goals
                SET current_value = %s,
                    status = %s,
                    metadata = %s,
                    sub_goals = %s,
                    completed_at = %s,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = %s AND user_id = %s
                RETURNING {GOAL_COLUMNS}
                """,
                (
                    goal.current_value,
                    goal.status.value,
                    Jsonb(goal.metadata),
                    Jsonb(goal.sub_goals),
                    goal.completed_at,
                    goal.id,
                    goal.user_id,
                )
            )
            row = await cur.fetchone()
            await conn.commit()

    if not row:
        raise RecordNotFoundError(
            f"Goal {goal.id} not found",
            record_type="goal",
            record_id=goal.id,
            user_id=goal.user_id,
        )
    return _goal(row)


async def delete_goal(goal_id: str, user_id: str) -> bool:
    """Returns True if a goal was deleted"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "DELETE FROM goals WHERE id = %s AND user_id = %s RETURNING id",
                (goal_id, user_id)
            )
            row = await cur.fetchone()
            await conn.commit()

    if row:
        logger.info(f"Deleted goal {goal_id} for user {user_id}")
    return row is not None


async def list_goals(
    user_id: str,
    status: Optional[GoalStatus] = None,
    limit: Optional[int] = None,
) -> list[Goal]:
    """Goals newest first, optionally filtered by status"""
    query = f"SELECT {GOAL_COLUMNS} FROM goals WHERE user_id = %s"
    params: list = [user_id]
    if status is not None:
        query += " AND status = %s"
        params.append(GoalStatus(status).value)
    query += " ORDER BY created_at DESC"
    if limit is not None:
        query += " LIMIT %s"
        params.append(limit)

    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, tuple(params))
            rows = await cur.fetchall()
            return [_goal(row) for row in rows]


async def get_active_goals(user_id: str, limit: int = 5) -> list[Goal]:
    return await list_goals(user_id, status=GoalStatus.ACTIVE, limit=limit)
