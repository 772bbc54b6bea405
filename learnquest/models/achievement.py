"""Achievement models for gamification"""
from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class AchievementCategory(str, Enum):
    """Top-level achievement categories; motivation badges use motivation_<dimension>"""
    POSTS = "posts"
    STREAK = "streak"
    MOTIVATION = "motivation"


class BadgeTier(str, Enum):
    """badge_tier enum"""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"


class Achievement(BaseModel):
    """Achievement definition"""
    id: str
    category: str
    milestone_value: int
    title: str
    description: str
    icon: str = "🏆"
    tier: Optional[BadgeTier] = None


class UserAchievement(BaseModel):
    """User's unlocked achievement"""
    id: Optional[str] = None
    user_id: str
    achievement_id: str
    created_at: Optional[datetime] = None
