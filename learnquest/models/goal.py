"""Goal models"""
from enum import Enum
from typing import Optional, Any
from datetime import date, datetime
from pydantic import BaseModel, Field


class GoalType(str, Enum):
    """Shape of a goal"""
    SMART_GOAL = "smart_goal"
    WEEKLY_MISSION = "weekly_mission"
    HABIT_STACK = "habit_stack"


class GoalStatus(str, Enum):
    """goal_status enum"""
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    PAUSED = "paused"


class MissionColumn(str, Enum):
    """Kanban columns for weekly missions (metadata.column)"""
    TODO = "todo"
    IN_PROGRESS = "inprogress"
    COMPLETED = "completed"


class Goal(BaseModel):
    """Goal row"""
    id: Optional[str] = None
    user_id: str
    goal_type: GoalType
    category: str = ""
    title: str
    description: Optional[str] = None
    current_value: float = 0
    target_value: Optional[float] = None
    deadline: Optional[date] = None
    status: GoalStatus = GoalStatus.ACTIVE
    metadata: dict[str, Any] = Field(default_factory=dict)
    sub_goals: list[str] = Field(default_factory=list)
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
