"""Mystery box database queries"""
import logging
from typing import Optional
from psycopg.types.json import Jsonb
from learnquest.db.connection import db
from learnquest.exceptions import InvalidTransitionError, RecordNotFoundError
from learnquest.models.mystery_box import MysteryBox

logger = logging.getLogger(__name__)

BOX_COLUMNS = "id, user_id, rarity, is_opened, reward_type, reward_data, opened_at, created_at"


def _box(row: dict) -> MysteryBox:
    data = dict(row)
    data["id"] = str(data["id"])
    data["user_id"] = str(data["user_id"])
    data["rarity"] = data.get("rarity") or "common"
    data["is_opened"] = bool(data.get("is_opened"))
    return MysteryBox(**data)


async def get_mystery_box(box_id: str, user_id: str) -> MysteryBox:
    """
    Raises:
        RecordNotFoundError: No such box for this user
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"SELECT {BOX_COLUMNS} FROM mystery_boxes WHERE id = %s AND user_id = %s",
                (box_id, user_id)
            )
            row = await cur.fetchone()

    if not row:
        raise RecordNotFoundError(
            f"Mystery box {box_id} not found",
            record_type="mystery_box",
            record_id=box_id,
            user_id=user_id,
        )
    return _box(row)


async def get_user_mystery_boxes(user_id: str, opened: Optional[bool] = None) -> list[MysteryBox]:
    query = f"SELECT {BOX_COLUMNS} FROM mystery_boxes WHERE user_id = %s"
    params: list = [user_id]
    if opened is not None:
        query += " AND is_opened = %s"
        params.append(opened)
    query += " ORDER BY created_at DESC"

    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, tuple(params))
            rows = await cur.fetchall()
            return [_box(row) for row in rows]


async def mark_box_opened(cur, box: MysteryBox) -> MysteryBox:
    """
    Store an opened box's reward on the caller's cursor.

    The update only applies while the box is still sealed; a second
    concurrent open finds no row and its transaction is rolled back.

    Raises:
        InvalidTransitionError: Box was already opened
    """
    await cur.execute(
        f"""
        UPDATE mystery_boxes
        SET is_opened = true, reward_type = %s, reward_data = %s, opened_at = %s
        WHERE id = %s AND is_opened = false
        RETURNING {BOX_COLUMNS}
        """,
        (
            box.reward_type.value if box.reward_type else None,
            Jsonb(box.reward_data) if box.reward_data is not None else None,
            box.opened_at,
            box.id,
        )
    )
    row = await cur.fetchone()

    if not row:
        raise InvalidTransitionError(
            message=f"Mystery box {box.id} was already opened",
            entity="mystery_box",
            state="opened",
            event="open",
            user_id=box.user_id,
        )

    logger.info(f"Opened mystery box {box.id} for user {box.user_id}: {box.reward_type}")
    return _box(row)
