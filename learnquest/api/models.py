"""Pydantic models for API request/response validation"""
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import date, datetime

from learnquest.models.goal import GoalType, MissionColumn


class PostRequest(BaseModel):
    """Request to share a learning post"""
    content: str = Field(..., description="Post text (must not be blank)")
    image_url: Optional[str] = Field(default=None, description="Optional image URL")


class ProfileUpdateRequest(BaseModel):
    """Edit the student-editable profile fields; omitted fields stay unchanged"""
    name: Optional[str] = Field(default=None, max_length=100)
    class_level: Optional[str] = Field(default=None, max_length=50, description="e.g. M.4")


class MotivationRequest(BaseModel):
    """Daily self-rating, each dimension 1-10"""
    risk: int = Field(..., ge=1, le=10)
    diligence: int = Field(..., ge=1, le=10)
    responsibility: int = Field(..., ge=1, le=10)
    collaboration: int = Field(..., ge=1, le=10)
    perseverance: int = Field(..., ge=1, le=10)
    planning: int = Field(..., ge=1, le=10)


class GoalCreateRequest(BaseModel):
    """Request to create a goal of any type"""
    goal_type: GoalType = Field(..., description="smart_goal, weekly_mission or habit_stack")
    title: str
    category: str = ""
    description: Optional[str] = None
    target_value: Optional[float] = None
    deadline: Optional[date] = None
    sub_goals: List[str] = Field(default_factory=list, description="SMART goal sub-goals")
    habits: List[str] = Field(default_factory=list, description="Habit chain for habit stacks")


class MissionMoveRequest(BaseModel):
    """Move a weekly mission to a kanban column"""
    column: MissionColumn


class GoalProgressRequest(BaseModel):
    """Add progress to a goal's metric"""
    amount: float = Field(..., description="Amount to add (must be positive)")


class ChatTurn(BaseModel):
    """One prior chat turn"""
    role: str = Field(..., description="user or assistant")
    content: str


class CoachChatRequest(BaseModel):
    """Request for a coach chat reply"""
    message: Optional[str] = Field(default=None, description="Student message (greeting if empty)")
    history: List[ChatTurn] = Field(default_factory=list, description="Earlier turns, oldest first")


class CoachResponse(BaseModel):
    """Coach reply text"""
    message: str


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    database: str = Field(..., description="Database connection status")
    timestamp: datetime
