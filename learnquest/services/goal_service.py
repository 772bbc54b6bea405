"""
GoalService - Goal Business Logic

SMART goals, weekly missions (kanban) and habit stacks: build or load the
goal, apply the rule from gamification.goal_system, write it back.
"""

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

import psycopg

from learnquest.config import DEFAULT_LANGUAGE
from learnquest.db import queries
from learnquest.exceptions import RecordNotFoundError, wrap_external_exception
from learnquest.gamification.goal_system import (
    achievability_score,
    apply_goal_event,
    check_in_habit,
    move_mission,
    new_habit_stack,
    new_smart_goal,
    new_weekly_mission,
    progress_percent,
    record_goal_progress,
)
from learnquest.gamification.transitions import GoalEvent
from learnquest.i18n.translations import t
from learnquest.models.goal import Goal, GoalStatus, MissionColumn
from learnquest.observability.metrics import goal_updates_total
from learnquest.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)


class GoalService:
    """Service for goal creation and goal status changes"""

    def __init__(self, db_connection):
        self.db = db_connection
        logger.debug("GoalService initialized")

    # ==========================================
    # Create
    # ==========================================

    async def create_smart_goal(
        self,
        user_id: str,
        title: str,
        category: str = "",
        description: Optional[str] = None,
        target_value: Optional[float] = None,
        deadline: Optional[date] = None,
        sub_goals: Iterable[str] = (),
        lang: str = DEFAULT_LANGUAGE,
    ) -> Dict[str, Any]:
        goal = new_smart_goal(user_id, title, category, description, target_value, deadline, sub_goals)
        score = achievability_score(category, goal.title, description, target_value, deadline)
        saved = await self._insert(goal)
        result = self._result(saved, "created", t("goal_created", lang))
        result["achievability_score"] = score
        return result

    async def create_weekly_mission(
        self,
        user_id: str,
        title: str,
        description: Optional[str] = None,
        deadline: Optional[date] = None,
        lang: str = DEFAULT_LANGUAGE,
    ) -> Dict[str, Any]:
        saved = await self._insert(new_weekly_mission(user_id, title, description, deadline))
        return self._result(saved, "created", t("goal_created", lang))

    async def create_habit_stack(
        self,
        user_id: str,
        title: str,
        habits: Iterable[str],
        lang: str = DEFAULT_LANGUAGE,
    ) -> Dict[str, Any]:
        saved = await self._insert(new_habit_stack(user_id, title, habits))
        return self._result(saved, "created", t("goal_created", lang))

    # ==========================================
    # Update
    # ==========================================

    async def move_mission(
        self,
        user_id: str,
        goal_id: str,
        column: MissionColumn,
        lang: str = DEFAULT_LANGUAGE,
    ) -> Dict[str, Any]:
        goal = await self._load(goal_id, user_id)
        moved = move_mission(goal, column, now_utc())
        saved = await self._save(moved, f"move_{MissionColumn(column).value}")
        return self._result(saved, "moved", self._status_message(goal, saved, lang))

    async def check_in_habit(self, user_id: str, goal_id: str, lang: str = DEFAULT_LANGUAGE) -> Dict[str, Any]:
        goal = await self._load(goal_id, user_id)
        saved = await self._save(check_in_habit(goal), "check_in")
        message = t(
            "habit_checked_in",
            lang,
            streak=saved.metadata.get("streak", 0),
            strength=saved.metadata.get("strength", 0),
        )
        return self._result(saved, "checked_in", message)

    async def record_progress(
        self,
        user_id: str,
        goal_id: str,
        amount: float,
        lang: str = DEFAULT_LANGUAGE,
    ) -> Dict[str, Any]:
        goal = await self._load(goal_id, user_id)
        saved = await self._save(record_goal_progress(goal, amount, now_utc()), "progress")
        return self._result(saved, "progress", self._status_message(goal, saved, lang))

    async def complete_goal(self, user_id: str, goal_id: str, lang: str = DEFAULT_LANGUAGE) -> Dict[str, Any]:
        return await self._apply_event(user_id, goal_id, GoalEvent.COMPLETE, lang)

    async def pause_goal(self, user_id: str, goal_id: str, lang: str = DEFAULT_LANGUAGE) -> Dict[str, Any]:
        return await self._apply_event(user_id, goal_id, GoalEvent.PAUSE, lang)

    async def resume_goal(self, user_id: str, goal_id: str, lang: str = DEFAULT_LANGUAGE) -> Dict[str, Any]:
        return await self._apply_event(user_id, goal_id, GoalEvent.RESUME, lang)

    async def fail_goal(self, user_id: str, goal_id: str, lang: str = DEFAULT_LANGUAGE) -> Dict[str, Any]:
        return await self._apply_event(user_id, goal_id, GoalEvent.FAIL, lang)

    async def delete_goal(self, user_id: str, goal_id: str) -> None:
        """
        Raises:
            RecordNotFoundError: No such goal for this user
        """
        try:
            deleted = await queries.delete_goal(goal_id, user_id)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="delete_goal", user_id=user_id)
        if not deleted:
            raise RecordNotFoundError(
                f"Goal {goal_id} not found",
                record_type="goal",
                record_id=goal_id,
                user_id=user_id,
            )
        goal_updates_total.labels(goal_type="any", action="delete").inc()

    # ==========================================
    # Read
    # ==========================================

    async def list_goals(self, user_id: str, status: Optional[GoalStatus] = None) -> List[Dict[str, Any]]:
        try:
            goals = await queries.list_goals(user_id, status=status)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="list_goals", user_id=user_id)
        return [self._goal_view(goal) for goal in goals]

    # ==========================================
    # Helpers
    # ==========================================

    async def _apply_event(self, user_id: str, goal_id: str, event: GoalEvent, lang: str) -> Dict[str, Any]:
        goal = await self._load(goal_id, user_id)
        saved = await self._save(apply_goal_event(goal, event, now_utc()), event.value)
        return self._result(saved, event.value, self._status_message(goal, saved, lang))

    async def _load(self, goal_id: str, user_id: str) -> Goal:
        try:
            return await queries.get_goal(goal_id, user_id)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_goal", user_id=user_id)

    async def _insert(self, goal: Goal) -> Goal:
        try:
            saved = await queries.insert_goal(goal)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="create_goal", user_id=goal.user_id)
        goal_updates_total.labels(goal_type=saved.goal_type.value, action="create").inc()
        return saved

    async def _save(self, goal: Goal, action: str) -> Goal:
        try:
            saved = await queries.update_goal(goal)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation=f"goal_{action}", user_id=goal.user_id)
        goal_updates_total.labels(goal_type=saved.goal_type.value, action=action).inc()
        logger.info(f"Goal {saved.id} {action}: status={saved.status.value}")
        return saved

    @staticmethod
    def _status_message(before: Goal, after: Goal, lang: str) -> Optional[str]:
        if before.status != GoalStatus.COMPLETED and after.status == GoalStatus.COMPLETED:
            return t("goal_completed", lang)
        return None

    @staticmethod
    def _goal_view(goal: Goal) -> Dict[str, Any]:
        return {**goal.model_dump(mode="json"), "progress_percent": progress_percent(goal)}

    def _result(self, goal: Goal, action: str, message: Optional[str]) -> Dict[str, Any]:
        notifications = []
        if message:
            notifications.append({"type": f"goal_{action}", "goal_id": goal.id, "description": message})
        return {"goal": self._goal_view(goal), "notifications": notifications}
