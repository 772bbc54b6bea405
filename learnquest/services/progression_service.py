"""
ProgressionService - Progression Business Logic

Runs each student action as read -> compute -> write:
- locks the student's profile row, then reads what the action touches
- applies the progression rules from learnquest.gamification
- writes the result in the same transaction, so concurrent XP credits queue
- returns the new state plus notifications for the UI to show
"""

import logging
import random
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import psycopg

from learnquest.config import DEFAULT_LANGUAGE
from learnquest.db import queries
from learnquest.exceptions import ValidationError, wrap_external_exception
from learnquest.gamification import (
    apply_activity,
    calculate_level_from_xp,
    complete_quest,
    default_xp_to_level,
    evaluate_achievements,
    open_box,
)
from learnquest.gamification.achievement_system import get_achievement_overview
from learnquest.gamification.motivation import build_stats
from learnquest.gamification.xp_system import XPAward, XPToLevel
from learnquest.i18n.translations import t
from learnquest.models.activity import MOTIVATION_DIMENSIONS, MotivationScores
from learnquest.models.quest import QuestStatus
from learnquest.observability.metrics import (
    level_ups_total,
    motivation_assessments_total,
    mystery_boxes_opened_total,
    posts_created_total,
    quests_completed_total,
    streak_events_total,
    xp_awarded_total,
)
from learnquest.utils.datetime_helpers import now_utc, start_of_day, today_app_timezone

logger = logging.getLogger(__name__)

FEED_LIMIT = 50
MOTIVATION_HISTORY_LIMIT = 30
RECENT_ACHIEVEMENTS_LIMIT = 3


class ProgressionService:
    """
    Service for the progression engine.

    Responsibilities:
    - Posts: streak, total days, post/streak achievements
    - Daily quests: progress, XP, quest streak
    - Mystery boxes: reward roll and XP credit
    - Motivation assessments: per-dimension achievements and stats
    - Profile, achievement, quest and box views
    """

    def __init__(
        self,
        db_connection,
        xp_to_level: XPToLevel = default_xp_to_level,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize ProgressionService.

        Args:
            db_connection: Database connection instance
            xp_to_level: Level mapping used whenever XP is credited
            rng: Random source for mystery boxes (module-level generator if None)
        """
        self.db = db_connection
        self.xp_to_level = xp_to_level
        self.rng = rng
        logger.debug("ProgressionService initialized")

    # ==========================================
    # Clock (overridable in tests)
    # ==========================================

    def _now(self) -> datetime:
        return now_utc()

    def _today(self, now: datetime) -> date:
        return today_app_timezone(now)

    # ==========================================
    # Posts
    # ==========================================

    async def record_post(
        self,
        user_id: str,
        content: str,
        image_url: Optional[str] = None,
        lang: str = DEFAULT_LANGUAGE,
    ) -> Dict[str, Any]:
        """
        Share a learning post and advance the daily streak.

        Returns:
            {
                'post': dict,
                'streak': int,
                'streak_outcome': str,
                'total_days': int,
                'post_count': int,
                'achievements_unlocked': list,
                'notifications': list
            }

        Raises:
            ValidationError: Empty content (before any store call)
        """
        content = (content or "").strip()
        if not content:
            raise ValidationError(
                "Post content must not be empty", field="content", value=content, user_id=user_id, lang=lang
            )

        now = self._now()
        today = self._today(now)

        try:
            async with self.db.transaction("record_post") as conn:
                async with conn.cursor() as cur:
                    profile = await queries.lock_profile(cur, user_id)
                    streak_update = apply_activity(profile, today)
                    post = await queries.insert_post(cur, user_id, content, image_url)
                    # Later posts on the same day leave the counters alone
                    if streak_update.first_activity_today:
                        await queries.write_profile_progress(cur, streak_update.profile)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="record_post", user_id=user_id, lang=lang)

        posts_created_total.inc()
        streak_events_total.labels(outcome=streak_update.outcome.value).inc()

        new_profile = streak_update.profile
        notifications: List[Dict[str, Any]] = [
            {"type": "post_created", "description": t("post_created", lang)},
            {
                "type": "streak",
                "outcome": streak_update.outcome.value,
                "streak": new_profile.streak,
                "description": streak_update.message(lang),
            },
        ]

        post_count = 0
        unlocked: List[Dict[str, Any]] = []
        try:
            post_count = await queries.count_user_posts(user_id)
            unlocked += await evaluate_achievements(user_id, "posts", post_count, lang)
            unlocked += await evaluate_achievements(user_id, "streak", new_profile.streak, lang)
        except psycopg.Error as e:
            # The post is already committed; badges are picked up on the next post
            logger.error(f"Achievement evaluation failed after post for user {user_id}: {e}", exc_info=True)

        notifications.extend(unlocked)

        logger.info(
            f"Post recorded: user={user_id}, streak={new_profile.streak} "
            f"({streak_update.outcome.value}), total_days={new_profile.total_days}, "
            f"achievements={len(unlocked)}"
        )

        return {
            "post": post,
            "streak": new_profile.streak,
            "streak_outcome": streak_update.outcome.value,
            "total_days": new_profile.total_days,
            "post_count": post_count,
            "achievements_unlocked": unlocked,
            "notifications": notifications,
        }

    async def get_feed(self, limit: int = FEED_LIMIT) -> List[Dict[str, Any]]:
        try:
            return await queries.get_feed(limit)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_feed")

    # ==========================================
    # Daily quests
    # ==========================================

    async def complete_quest(
        self,
        user_id: str,
        quest_id: str,
        lang: str = DEFAULT_LANGUAGE,
    ) -> Dict[str, Any]:
        """
        One "complete" click on a daily quest.

        Clicking a quest that is already completed today is a no-op.

        Returns:
            {
                'user_quest': dict,
                'just_completed': bool,
                'already_completed': bool,
                'xp': dict or None,
                'quest_streak': int,
                'notifications': list
            }
        """
        now = self._now()
        today = self._today(now)

        try:
            quest = await queries.get_quest(quest_id)
            async with self.db.transaction("complete_quest") as conn:
                async with conn.cursor() as cur:
                    profile = await queries.lock_profile(cur, user_id)
                    # Read after the lock so a click queued behind another sees its row
                    existing = await queries.get_user_quest(user_id, quest_id, today)

                    if existing is not None and existing.status == QuestStatus.COMPLETED:
                        logger.info(f"Quest {quest_id} already completed today by user {user_id}")
                        return {
                            "user_quest": existing.model_dump(mode="json"),
                            "just_completed": False,
                            "already_completed": True,
                            "xp": None,
                            "quest_streak": profile.quest_streak,
                            "notifications": [
                                {"type": "quest_already_completed", "description": t("quest_already_completed", lang)}
                            ],
                        }

                    completion = complete_quest(quest, existing, profile, today, now, self.xp_to_level)
                    saved = await queries.write_quest_progress(
                        cur,
                        completion.user_quest,
                        existing.progress if existing else None,
                    )
                    if completion.just_completed:
                        await queries.write_profile_progress(cur, completion.profile)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="complete_quest", user_id=user_id, lang=lang)

        notifications: List[Dict[str, Any]] = []
        if completion.just_completed:
            quests_completed_total.labels(difficulty=quest.difficulty.value).inc()
            self._record_xp("quest", completion.xp_award)
            notifications.append({
                "type": "quest_completed",
                "quest_id": quest.id,
                "xp_reward": quest.xp_reward,
                "description": t("quest_completed", lang, xp=quest.xp_reward),
            })
            notifications.extend(self._level_up_notifications(completion.xp_award, lang))
        else:
            notifications.append({
                "type": "quest_progress",
                "quest_id": quest.id,
                "description": t("quest_progress", lang, progress=saved.progress, target=quest.target_value),
            })

        return {
            "user_quest": saved.model_dump(mode="json"),
            "just_completed": completion.just_completed,
            "already_completed": False,
            "xp": completion.xp_award.to_dict() if completion.xp_award else None,
            "quest_streak": completion.profile.quest_streak,
            "notifications": notifications,
        }

    async def list_quests(self, user_id: str) -> List[Dict[str, Any]]:
        """Today's quests with the user's progress on each"""
        today = self._today(self._now())
        try:
            quests = await queries.get_daily_quests()
            rows = await queries.get_user_quests_for_date(user_id, today)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="list_quests", user_id=user_id)

        by_quest = {row.quest_id: row for row in rows}
        result = []
        for quest in quests:
            row = by_quest.get(quest.id)
            result.append({
                **quest.model_dump(mode="json"),
                "progress": row.progress if row else 0,
                "status": row.status.value if row else QuestStatus.ACTIVE.value,
                "completed_at": row.completed_at.isoformat() if row and row.completed_at else None,
            })
        return result

    # ==========================================
    # Mystery boxes
    # ==========================================

    async def open_mystery_box(
        self,
        user_id: str,
        box_id: str,
        lang: str = DEFAULT_LANGUAGE,
        roll: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Open a sealed box; XP rewards are credited in the same transaction.

        Raises:
            RecordNotFoundError: Unknown box for this user
            InvalidTransitionError: Box already opened
        """
        now = self._now()
        try:
            box = await queries.get_mystery_box(box_id, user_id)
            async with self.db.transaction("open_mystery_box") as conn:
                async with conn.cursor() as cur:
                    profile = await queries.lock_profile(cur, user_id)
                    opening = open_box(box, profile, now, rng=self.rng, roll=roll, xp_to_level=self.xp_to_level)
                    saved = await queries.mark_box_opened(cur, opening.box)
                    if opening.xp_award:
                        await queries.write_profile_progress(cur, opening.profile)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="open_mystery_box", user_id=user_id, lang=lang)

        mystery_boxes_opened_total.labels(
            rarity=saved.rarity.value,
            reward_type=opening.box.reward_type.value,
        ).inc()
        self._record_xp("mystery_box", opening.xp_award)

        notifications = [opening.notification(lang)]
        notifications.extend(self._level_up_notifications(opening.xp_award, lang))

        return {
            "box": saved.model_dump(mode="json"),
            "xp": opening.xp_award.to_dict() if opening.xp_award else None,
            "notifications": notifications,
        }

    async def list_mystery_boxes(self, user_id: str, opened: Optional[bool] = None) -> List[Dict[str, Any]]:
        try:
            boxes = await queries.get_user_mystery_boxes(user_id, opened=opened)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="list_mystery_boxes", user_id=user_id)
        return [box.model_dump(mode="json") for box in boxes]

    # ==========================================
    # Motivation
    # ==========================================

    async def submit_motivation(
        self,
        user_id: str,
        scores: MotivationScores,
        lang: str = DEFAULT_LANGUAGE,
    ) -> Dict[str, Any]:
        """
        Save a self-rating and check each dimension's badges against its score.
        """
        try:
            row = await queries.insert_motivation_scores(user_id, scores)
            unlocked: List[Dict[str, Any]] = []
            for dimension in MOTIVATION_DIMENSIONS:
                unlocked += await evaluate_achievements(
                    user_id, f"motivation_{dimension}", getattr(scores, dimension), lang
                )
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="submit_motivation", user_id=user_id, lang=lang)

        motivation_assessments_total.inc()
        logger.info(f"Motivation submitted: user={user_id}, achievements={len(unlocked)}")

        return {
            "scores": row,
            "achievements_unlocked": unlocked,
            "notifications": [
                {"type": "motivation_saved", "description": t("motivation_saved", lang)},
                *unlocked,
            ],
        }

    async def get_motivation_stats(self, user_id: str) -> Dict[str, Any]:
        try:
            rows = await queries.get_recent_motivation_scores(user_id, limit=MOTIVATION_HISTORY_LIMIT)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_motivation_stats", user_id=user_id)
        return build_stats(rows)

    # ==========================================
    # Views
    # ==========================================

    async def get_profile_summary(self, user_id: str) -> Dict[str, Any]:
        """
        Dashboard view of a profile.

        Returns:
            {
                'profile': dict,
                'level_info': dict,
                'motivation_checked_in_today': bool (False prompts the daily check-in),
                'recent_achievements': newest RECENT_ACHIEVEMENTS_LIMIT unlocks
            }
        """
        today = self._today(self._now())
        try:
            profile = await queries.get_profile(user_id)
            checked_in = await queries.has_motivation_since(user_id, start_of_day(today))
            recent = await queries.get_recent_unlocks(user_id, limit=RECENT_ACHIEVEMENTS_LIMIT)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_profile", user_id=user_id)

        level_info = calculate_level_from_xp(profile.xp)
        return {
            "profile": profile.model_dump(mode="json"),
            "level_info": level_info.model_dump(),
            "motivation_checked_in_today": checked_in,
            "recent_achievements": recent,
        }

    async def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        class_level: Optional[str] = None,
        lang: str = DEFAULT_LANGUAGE,
    ) -> Dict[str, Any]:
        """
        Edit the display name and class level.

        Progression counters are never touched here.

        Raises:
            ValidationError: Nothing to update, or a blank name
        """
        if name is None and class_level is None:
            raise ValidationError("No profile fields to update", user_id=user_id, lang=lang)
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Name must not be empty", field="name", value=name, user_id=user_id, lang=lang)
        if class_level is not None:
            class_level = class_level.strip() or None

        try:
            profile = await queries.update_profile_details(user_id, name=name, class_level=class_level)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="update_profile", user_id=user_id, lang=lang)

        return {
            "profile": profile.model_dump(mode="json"),
            "notifications": [{"type": "profile_updated", "description": t("profile_updated", lang)}],
        }

    async def get_achievements(self, user_id: str) -> Dict[str, Any]:
        try:
            return await get_achievement_overview(user_id)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_achievements", user_id=user_id)

    # ==========================================
    # Helpers
    # ==========================================

    @staticmethod
    def _record_xp(source: str, award: Optional[XPAward]) -> None:
        if award is None:
            return
        xp_awarded_total.labels(source=source).inc(award.xp_awarded)
        if award.leveled_up:
            level_ups_total.inc()

    @staticmethod
    def _level_up_notifications(award: Optional[XPAward], lang: str) -> List[Dict[str, Any]]:
        if award is None or not award.leveled_up:
            return []
        return [{
            "type": "level_up",
            "level": award.new_level,
            "description": t("level_up", lang, level=award.new_level),
        }]
