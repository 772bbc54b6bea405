"""Daily quest database queries"""
import logging
from datetime import date
from typing import Optional
from learnquest.db.connection import db
from learnquest.exceptions import InvalidTransitionError, RecordNotFoundError
from learnquest.models.quest import Quest, UserQuest

logger = logging.getLogger(__name__)

QUEST_COLUMNS = "id, title, description, difficulty, quest_type, target_value, xp_reward"
USER_QUEST_COLUMNS = "id, user_id, quest_id, assigned_date, progress, status, completed_at"


def _quest(row: dict) -> Quest:
    data = dict(row)
    data["id"] = str(data["id"])
    data["description"] = data.get("description") or ""
    data["target_value"] = data.get("target_value") or 1
    data["xp_reward"] = data.get("xp_reward") or 0
    return Quest(**data)


def _user_quest(row: dict) -> UserQuest:
    data = dict(row)
    for key in ("id", "user_id", "quest_id"):
        data[key] = str(data[key])
    data["progress"] = data.get("progress") or 0
    return UserQuest(**data)


async def get_quest(quest_id: str) -> Quest:
    """
    Raises:
        RecordNotFoundError: Unknown quest
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"SELECT {QUEST_COLUMNS} FROM daily_quests WHERE id = %s",
                (quest_id,)
            )
            row = await cur.fetchone()

    if not row:
        raise RecordNotFoundError(f"Quest {quest_id} not found", record_type="quest", record_id=quest_id)
    return _quest(row)


async def get_daily_quests() -> list[Quest]:
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"SELECT {QUEST_COLUMNS} FROM daily_quests ORDER BY difficulty, title"
            )
            rows = await cur.fetchall()
            return [_quest(row) for row in rows]


async def get_user_quest(user_id: str, quest_id: str, assigned_date: date) -> Optional[UserQuest]:
    """The user's row for one quest on one day, or None"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {USER_QUEST_COLUMNS}
                FROM user_quests
                WHERE user_id = %s AND quest_id = %s AND assigned_date = %s
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (user_id, quest_id, assigned_date)
            )
            row = await cur.fetchone()
            return _user_quest(row) if row else None


async def get_user_quests_for_date(user_id: str, assigned_date: date) -> list[UserQuest]:
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {USER_QUEST_COLUMNS}
                FROM user_quests
                WHERE user_id = %s AND assigned_date = %s
                """,
                (user_id, assigned_date)
            )
            rows = await cur.fetchall()
            return [_user_quest(row) for row in rows]


async def write_quest_progress(
    cur,
    user_quest: UserQuest,
    previous_progress: Optional[int],
) -> UserQuest:
    """
    Write a quest row on the caller's cursor.

    Callers hold the student's profile lock, so clicks on the same quest
    run one after another. A new row is only inserted if none exists for
    the day yet; an existing row is only updated while it is still active
    and still at `previous_progress`.

    Args:
        user_quest: Row to write (no id means insert)
        previous_progress: Progress the row was read with (None for new rows)

    Raises:
        InvalidTransitionError: Row created or changed since it was read
    """
    if user_quest.id is None:
        await cur.execute(
            f"""
            INSERT INTO user_quests (user_id, quest_id, assigned_date, progress, status, completed_at)
            SELECT %s, %s, %s, %s, %s, %s
            WHERE NOT EXISTS (
                SELECT 1 FROM user_quests
                WHERE user_id = %s AND quest_id = %s AND assigned_date = %s
            )
            RETURNING {USER_QUEST_COLUMNS}
            """,
            (
                user_quest.user_id,
                user_quest.quest_id,
                user_quest.assigned_date,
                user_quest.progress,
                user_quest.status.value,
                user_quest.completed_at,
                user_quest.user_id,
                user_quest.quest_id,
                user_quest.assigned_date,
            )
        )
    else:
        await cur.execute(
            f"""
            UPDATE user_quests
            SET progress = %s, status = %s, completed_at = %s
            WHERE id = %s AND status = 'active' AND COALESCE(progress, 0) = %s
            RETURNING {USER_QUEST_COLUMNS}
            """,
            (
                user_quest.progress,
                user_quest.status.value,
                user_quest.completed_at,
                user_quest.id,
                previous_progress or 0,
            )
        )
    row = await cur.fetchone()

    if not row:
        raise InvalidTransitionError(
            message=f"Quest {user_quest.quest_id} row changed while it was being updated",
            entity="quest",
            state="changed",
            event="progress",
            user_id=user_quest.user_id,
        )

    saved = _user_quest(row)
    logger.info(
        f"Saved quest {saved.quest_id} for user {saved.user_id}: "
        f"progress={saved.progress} status={saved.status.value}"
    )
    return saved
