"""Profile database queries"""
import logging
from typing import Optional
from learnquest.db.connection import db
from learnquest.exceptions import RecordNotFoundError
from learnquest.models.profile import Profile

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = """
    id, name, class_level, avatar_url,
    COALESCE(xp, 0) AS xp,
    COALESCE(level, 1) AS level,
    COALESCE(streak, 0) AS streak,
    COALESCE(quest_streak, 0) AS quest_streak,
    COALESCE(total_days, 0) AS total_days,
    last_activity_date, last_quest_date
"""


async def get_profile(user_id: str) -> Profile:
    """
    Load a profile with its progression counters.

    Null counters read as their starting values (xp 0, level 1, streaks 0).

    Raises:
        RecordNotFoundError: No profile for user_id
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"SELECT {PROFILE_COLUMNS} FROM profiles WHERE id = %s",
                (user_id,)
            )
            row = await cur.fetchone()

    if not row:
        raise RecordNotFoundError(
            f"Profile {user_id} not found",
            record_type="profile",
            record_id=user_id,
            user_id=user_id,
        )
    return Profile(**dict(row))


async def write_profile_progress(cur, profile: Profile) -> None:
    """
    Write the progression counters of a profile.

    Runs on the caller's cursor so it joins the caller's transaction.
    """
    await cur.execute(
        """
        UPDATE profiles
        SET xp = %s,
            level = %s,
            streak = %s,
            quest_streak = %s,
            total_days = %s,
            last_activity_date = %s,
            last_quest_date = %s,
            updated_at = CURRENT_TIMESTAMP
        WHERE id = %s
        """,
        (
            profile.xp,
            profile.level,
            profile.streak,
            profile.quest_streak,
            profile.total_days,
            profile.last_activity_date,
            profile.last_quest_date,
            profile.id,
        )
    )


async def lock_profile(cur, user_id: str) -> Profile:
    """
    Read a profile and hold its row lock until the caller's transaction ends.

    Concurrent XP credits for the same student queue behind this lock, so
    each one computes from the counters the previous one wrote.

    Raises:
        RecordNotFoundError: No profile for user_id
    """
    await cur.execute(
        f"SELECT {PROFILE_COLUMNS} FROM profiles WHERE id = %s FOR UPDATE",
        (user_id,)
    )
    row = await cur.fetchone()
    if not row:
        raise RecordNotFoundError(
            f"Profile {user_id} not found",
            record_type="profile",
            record_id=user_id,
            user_id=user_id,
        )
    return Profile(**dict(row))


async def update_profile_details(
    user_id: str,
    name: Optional[str] = None,
    class_level: Optional[str] = None,
) -> Profile:
    """
    Update the student-editable fields; None leaves a field unchanged.

    Raises:
        RecordNotFoundError: No profile for user_id
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                UPDATE profiles
                SET name = COALESCE(%s, name),
                    class_level = COALESCE(%s, class_level),
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = %s
                RETURNING {PROFILE_COLUMNS}
                """,
                (name, class_level, user_id)
            )
            row = await cur.fetchone()
            await conn.commit()

    if not row:
        raise RecordNotFoundError(
            f"Profile {user_id} not found",
            record_type="profile",
            record_id=user_id,
            user_id=user_id,
        )
    logger.info(f"Updated profile details for user {user_id}")
    return Profile(**dict(row))
