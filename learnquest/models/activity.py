"""Learning activity models: posts, motivation self-ratings, emotion logs"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

MOTIVATION_DIMENSIONS = (
    "risk",
    "diligence",
    "responsibility",
    "collaboration",
    "perseverance",
    "planning",
)


class Post(BaseModel):
    """Shared learning post"""
    id: Optional[str] = None
    user_id: str
    content: str
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None


class MotivationScores(BaseModel):
    """Self-rating on the six motivation dimensions (1-10 each)"""
    risk: int = Field(default=5, ge=1, le=10)
    diligence: int = Field(default=5, ge=1, le=10)
    responsibility: int = Field(default=5, ge=1, le=10)
    collaboration: int = Field(default=5, ge=1, le=10)
    perseverance: int = Field(default=5, ge=1, le=10)
    planning: int = Field(default=5, ge=1, le=10)


class EmotionLog(BaseModel):
    """Emotion check-in"""
    emotion: str
    energy_level: Optional[int] = Field(default=None, ge=1, le=5)
    activity: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
