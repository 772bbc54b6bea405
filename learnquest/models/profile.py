"""Profile models"""
from typing import Optional
from datetime import date
from pydantic import BaseModel, Field


class Profile(BaseModel):
    """Student profile row with the progression counters"""
    id: str
    name: Optional[str] = None
    class_level: Optional[str] = None
    avatar_url: Optional[str] = None
    xp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    streak: int = Field(default=0, ge=0)
    quest_streak: int = Field(default=0, ge=0)
    total_days: int = Field(default=0, ge=0)
    last_activity_date: Optional[date] = None
    last_quest_date: Optional[date] = None


class LevelInfo(BaseModel):
    """Level breakdown for a cumulative XP total"""
    current_level: int
    level_tier: str  # bronze, silver, gold, platinum
    xp_in_current_level: int
    xp_to_next_level: int
    total_xp_for_next_level: int
