"""
Goal rules for the three goal shapes.

- smart_goal: single metric with target/deadline and optional sub-goals
- weekly_mission: kanban card, metadata.column in todo/inprogress/completed
- habit_stack: chain of habits, metadata.streak and metadata.strength (0-100)
"""

from datetime import date, datetime
from typing import Iterable, Optional
import logging

from learnquest.exceptions import InvalidTransitionError, ValidationError
from learnquest.gamification.transitions import GoalEvent, transition_goal
from learnquest.models.goal import Goal, GoalStatus, GoalType, MissionColumn

logger = logging.getLogger(__name__)

DEFAULT_SMART_TARGET = 100
HABIT_STRENGTH_STEP = 5
HABIT_STRENGTH_MAX = 100


def achievability_score(
    category: Optional[str],
    title: str,
    description: Optional[str],
    target_value: Optional[float],
    deadline: Optional[date],
) -> int:
    """How well-specified a SMART goal is, 50-100"""
    score = 50
    if category:
        score += 10
    if len(title) > 10:
        score += 10
    if description and len(description) > 20:
        score += 10
    if target_value:
        score += 10
    if deadline:
        score += 10
    return min(score, 100)


def _require_title(title: str) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title must not be empty", field="title", value=title)
    return title


def new_smart_goal(
    user_id: str,
    title: str,
    category: str = "",
    description: Optional[str] = None,
    target_value: Optional[float] = None,
    deadline: Optional[date] = None,
    sub_goals: Iterable[str] = (),
) -> Goal:
    return Goal(
        user_id=user_id,
        goal_type=GoalType.SMART_GOAL,
        category=category,
        title=_require_title(title),
        description=description,
        target_value=target_value or DEFAULT_SMART_TARGET,
        deadline=deadline,
        sub_goals=[sg.strip() for sg in sub_goals if sg and sg.strip()],
        status=GoalStatus.ACTIVE,
    )


def new_weekly_mission(
    user_id: str,
    title: str,
    description: Optional[str] = None,
    deadline: Optional[date] = None,
) -> Goal:
    return Goal(
        user_id=user_id,
        goal_type=GoalType.WEEKLY_MISSION,
        category="mission",
        title=_require_title(title),
        description=description,
        deadline=deadline,
        status=GoalStatus.ACTIVE,
        metadata={"column": MissionColumn.TODO.value},
    )


def new_habit_stack(user_id: str, title: str, habits: Iterable[str]) -> Goal:
    chain = [h.strip() for h in habits if h and h.strip()]
    if not chain:
        raise ValidationError("A habit stack needs at least one habit", field="habits", value=list(habits))
    return Goal(
        user_id=user_id,
        goal_type=GoalType.HABIT_STACK,
        category="habit",
        title=_require_title(title),
        sub_goals=chain,
        status=GoalStatus.ACTIVE,
        metadata={"streak": 0, "strength": 0},
    )


def _require_type(goal: Goal, goal_type: GoalType) -> None:
    if goal.goal_type != goal_type:
        raise ValidationError(
            f"Goal {goal.id} is a {goal.goal_type.value}, not a {goal_type.value}",
            field="goal_type",
            value=goal.goal_type.value,
        )


def apply_goal_event(goal: Goal, event: GoalEvent, now: datetime) -> Goal:
    """Move a goal through its status machine"""
    new_status = transition_goal(goal.status, event)
    update = {"status": new_status}
    if new_status == GoalStatus.COMPLETED:
        update["completed_at"] = now
    return goal.model_copy(update=update)


def move_mission(goal: Goal, column: MissionColumn, now: datetime) -> Goal:
    """
    Move a weekly mission to another kanban column.

    Dropping it on 'completed' completes the goal; a completed mission
    cannot be moved back.
    """
    _require_type(goal, GoalType.WEEKLY_MISSION)
    column = MissionColumn(column)

    if goal.status == GoalStatus.COMPLETED:
        raise InvalidTransitionError(
            message=f"Mission {goal.id} is completed and cannot move to {column.value}",
            entity="goal",
            state=goal.status.value,
            event=f"move:{column.value}",
        )

    metadata = {**goal.metadata, "column": column.value}
    moved = goal.model_copy(update={"metadata": metadata})

    if column == MissionColumn.COMPLETED:
        return apply_goal_event(moved, GoalEvent.COMPLETE, now)
    return moved


def check_in_habit(goal: Goal) -> Goal:
    """Daily habit check-in: streak + 1, strength + 5 (max 100)"""
    _require_type(goal, GoalType.HABIT_STACK)
    if goal.status != GoalStatus.ACTIVE:
        raise ValidationError("Only active habit stacks can be checked in", field="status", value=goal.status.value)

    streak = int(goal.metadata.get("streak") or 0) + 1
    strength = min(HABIT_STRENGTH_MAX, int(goal.metadata.get("strength") or 0) + HABIT_STRENGTH_STEP)
    return goal.model_copy(update={"metadata": {**goal.metadata, "streak": streak, "strength": strength}})


def record_goal_progress(goal: Goal, amount: float, now: datetime) -> Goal:
    """Add progress to a goal's metric; reaching the target completes it"""
    if amount <= 0:
        raise ValidationError("Progress amount must be positive", field="amount", value=amount)
    if goal.status != GoalStatus.ACTIVE:
        raise ValidationError("Only active goals can record progress", field="status", value=goal.status.value)

    updated = goal.model_copy(update={"current_value": goal.current_value + amount})
    if goal.target_value and updated.current_value >= goal.target_value:
        logger.info(f"Goal {goal.id} reached its target {goal.target_value}")
        return apply_goal_event(updated, GoalEvent.COMPLETE, now)
    return updated


def progress_percent(goal: Goal) -> int:
    if not goal.target_value:
        return 0
    return round(goal.current_value / goal.target_value * 100)
