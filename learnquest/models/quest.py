"""Daily quest models"""
from enum import Enum
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, Field


class QuestDifficulty(str, Enum):
    """quest_difficulty enum"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestStatus(str, Enum):
    """quest_status enum"""
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


class Quest(BaseModel):
    """Quest definition (daily_quests row)"""
    id: str
    title: str
    description: str = ""
    difficulty: QuestDifficulty = QuestDifficulty.EASY
    quest_type: str = "daily"
    target_value: int = Field(default=1, ge=1)
    xp_reward: int = Field(default=0, ge=0)


class UserQuest(BaseModel):
    """A user's progress on one quest for one assigned date"""
    id: Optional[str] = None
    user_id: str
    quest_id: str
    assigned_date: date
    progress: int = Field(default=0, ge=0)
    status: QuestStatus = QuestStatus.ACTIVE
    completed_at: Optional[datetime] = None
