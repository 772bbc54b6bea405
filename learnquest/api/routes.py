"""API routes for LearnQuest"""
import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, Response, status

from learnquest.api.models import (
    PostRequest,
    ProfileUpdateRequest,
    MotivationRequest,
    GoalCreateRequest, MissionMoveRequest, GoalProgressRequest,
    CoachChatRequest, CoachResponse,
    HealthCheckResponse,
)
from learnquest.api.auth import verify_api_key
from learnquest.api.middleware import limiter
from learnquest.config import DEFAULT_LANGUAGE
from learnquest.db.connection import db
from learnquest.gamification.transitions import GoalEvent
from learnquest.i18n.translations import resolve_language
from learnquest.models.activity import MotivationScores
from learnquest.models.goal import GoalStatus, GoalType
from learnquest.services import get_container

logger = logging.getLogger(__name__)

router = APIRouter()


def _lang(lang: Optional[str]) -> str:
    return resolve_language(lang) if lang else DEFAULT_LANGUAGE


# ==========================================
# Profile & feed
# ==========================================

@router.get("/api/v1/users/{user_id}/profile")
@limiter.limit("30/minute")
async def get_profile(request: Request, user_id: str, api_key: str = Depends(verify_api_key)):
    """Dashboard profile: XP, level, streaks, check-in state, recent badges (Rate limit: 30/minute)"""
    return await get_container().progression_service.get_profile_summary(user_id)


@router.patch("/api/v1/users/{user_id}/profile")
@limiter.limit("10/minute")
async def update_profile(
    request: Request,
    user_id: str,
    body: ProfileUpdateRequest,
    lang: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """Edit name and class level (Rate limit: 10/minute)"""
    return await get_container().progression_service.update_profile(
        user_id, name=body.name, class_level=body.class_level, lang=_lang(lang)
    )


@router.post("/api/v1/users/{user_id}/posts", status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_post(
    request: Request,
    user_id: str,
    body: PostRequest,
    lang: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """Share a learning post; advances the daily streak (Rate limit: 20/minute)"""
    return await get_container().progression_service.record_post(
        user_id, body.content, body.image_url, lang=_lang(lang)
    )


@router.get("/api/v1/feed")
@limiter.limit("60/minute")
async def get_feed(
    request: Request,
    limit: int = Query(default=50, ge=1, le=200),
    api_key: str = Depends(verify_api_key)
):
    """Newest posts with author name and avatar (Rate limit: 60/minute)"""
    return {"posts": await get_container().progression_service.get_feed(limit)}


# ==========================================
# Daily quests
# ==========================================

@router.get("/api/v1/users/{user_id}/quests")
@limiter.limit("30/minute")
async def list_quests(request: Request, user_id: str, api_key: str = Depends(verify_api_key)):
    """Today's quests with the user's progress (Rate limit: 30/minute)"""
    return {"quests": await get_container().progression_service.list_quests(user_id)}


@router.post("/api/v1/users/{user_id}/quests/{quest_id}/complete")
@limiter.limit("30/minute")
async def complete_quest(
    request: Request,
    user_id: str,
    quest_id: str,
    lang: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """One unit of progress on a daily quest (Rate limit: 30/minute)"""
    return await get_container().progression_service.complete_quest(user_id, quest_id, lang=_lang(lang))


# ==========================================
# Achievements
# ==========================================

@router.get("/api/v1/users/{user_id}/achievements")
@limiter.limit("30/minute")
async def get_achievements(request: Request, user_id: str, api_key: str = Depends(verify_api_key)):
    """All badges with unlock state and per-category counts (Rate limit: 30/minute)"""
    return await get_container().progression_service.get_achievements(user_id)


# ==========================================
# Mystery boxes
# ==========================================

@router.get("/api/v1/users/{user_id}/mystery-boxes")
@limiter.limit("30/minute")
async def list_mystery_boxes(
    request: Request,
    user_id: str,
    opened: Optional[bool] = None,
    api_key: str = Depends(verify_api_key)
):
    """The user's boxes, newest first (Rate limit: 30/minute)"""
    return {"boxes": await get_container().progression_service.list_mystery_boxes(user_id, opened=opened)}


@router.post("/api/v1/users/{user_id}/mystery-boxes/{box_id}/open")
@limiter.limit("20/minute")
async def open_mystery_box(
    request: Request,
    user_id: str,
    box_id: str,
    lang: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """Open a sealed box; 409 if it was already opened (Rate limit: 20/minute)"""
    return await get_container().progression_service.open_mystery_box(user_id, box_id, lang=_lang(lang))


# ==========================================
# Motivation
# ==========================================

@router.post("/api/v1/users/{user_id}/motivation", status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def submit_motivation(
    request: Request,
    user_id: str,
    body: MotivationRequest,
    lang: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """Save a six-dimension self-rating (Rate limit: 20/minute)"""
    scores = MotivationScores(**body.model_dump())
    return await get_container().progression_service.submit_motivation(user_id, scores, lang=_lang(lang))


@router.get("/api/v1/users/{user_id}/motivation/stats")
@limiter.limit("30/minute")
async def get_motivation_stats(request: Request, user_id: str, api_key: str = Depends(verify_api_key)):
    """Latest rating, trend, 7-entry averages and weakest dimension (Rate limit: 30/minute)"""
    return await get_container().progression_service.get_motivation_stats(user_id)


# ==========================================
# Goals
# ==========================================

@router.get("/api/v1/users/{user_id}/goals")
@limiter.limit("30/minute")
async def list_goals(
    request: Request,
    user_id: str,
    goal_status: Optional[GoalStatus] = Query(default=None, alias="status"),
    api_key: str = Depends(verify_api_key)
):
    """Goals newest first, optionally filtered by status (Rate limit: 30/minute)"""
    return {"goals": await get_container().goal_service.list_goals(user_id, status=goal_status)}


@router.post("/api/v1/users/{user_id}/goals", status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_goal(
    request: Request,
    user_id: str,
    body: GoalCreateRequest,
    lang: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """Create a SMART goal, weekly mission or habit stack (Rate limit: 20/minute)"""
    service = get_container().goal_service
    lang = _lang(lang)

    if body.goal_type == GoalType.WEEKLY_MISSION:
        return await service.create_weekly_mission(
            user_id, body.title, body.description, body.deadline, lang=lang
        )
    if body.goal_type == GoalType.HABIT_STACK:
        return await service.create_habit_stack(user_id, body.title, body.habits, lang=lang)
    return await service.create_smart_goal(
        user_id,
        body.title,
        category=body.category,
        description=body.description,
        target_value=body.target_value,
        deadline=body.deadline,
        sub_goals=body.sub_goals,
        lang=lang,
    )


@router.post("/api/v1/users/{user_id}/goals/{goal_id}/move")
@limiter.limit("30/minute")
async def move_mission(
    request: Request,
    user_id: str,
    goal_id: str,
    body: MissionMoveRequest,
    lang: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """Move a weekly mission between kanban columns (Rate limit: 30/minute)"""
    return await get_container().goal_service.move_mission(user_id, goal_id, body.column, lang=_lang(lang))


@router.post("/api/v1/users/{user_id}/goals/{goal_id}/check-in")
@limiter.limit("30/minute")
async def check_in_habit(
    request: Request,
    user_id: str,
    goal_id: str,
    lang: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """Daily habit-stack check-in (Rate limit: 30/minute)"""
    return await get_container().goal_service.check_in_habit(user_id, goal_id, lang=_lang(lang))


@router.post("/api/v1/users/{user_id}/goals/{goal_id}/progress")
@limiter.limit("30/minute")
async def record_goal_progress(
    request: Request,
    user_id: str,
    goal_id: str,
    body: GoalProgressRequest,
    lang: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """Add progress to a goal; reaching the target completes it (Rate limit: 30/minute)"""
    return await get_container().goal_service.record_progress(user_id, goal_id, body.amount, lang=_lang(lang))


@router.post("/api/v1/users/{user_id}/goals/{goal_id}/{event}")
@limiter.limit("30/minute")
async def change_goal_status(
    request: Request,
    user_id: str,
    goal_id: str,
    event: GoalEvent,
    lang: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """complete / pause / resume / fail; 409 on an illegal change (Rate limit: 30/minute)"""
    service = get_container().goal_service
    handlers = {
        GoalEvent.COMPLETE: service.complete_goal,
        GoalEvent.PAUSE: service.pause_goal,
        GoalEvent.RESUME: service.resume_goal,
        GoalEvent.FAIL: service.fail_goal,
    }
    return await handlers[event](user_id, goal_id, lang=_lang(lang))


@router.delete("/api/v1/users/{user_id}/goals/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("20/minute")
async def delete_goal(request: Request, user_id: str, goal_id: str, api_key: str = Depends(verify_api_key)):
    """Delete a goal (Rate limit: 20/minute)"""
    await get_container().goal_service.delete_goal(user_id, goal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==========================================
# AI coach
# ==========================================

@router.post("/api/v1/users/{user_id}/coach/briefing", response_model=CoachResponse)
@limiter.limit("10/minute")
async def coach_briefing(
    request: Request,
    user_id: str,
    lang: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """
    Morning briefing from the AI coach

    Rate limit: 10 requests per minute (AI calls are expensive)
    """
    return await get_container().coach_service.morning_briefing(user_id, lang=_lang(lang))


@router.post("/api/v1/users/{user_id}/coach/chat", response_model=CoachResponse)
@limiter.limit("10/minute")
async def coach_chat(
    request: Request,
    user_id: str,
    body: CoachChatRequest,
    lang: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """
    Chat with the AI coach

    Rate limit: 10 requests per minute (AI calls are expensive)
    """
    history = [turn.model_dump() for turn in body.history]
    return await get_container().coach_service.chat(user_id, body.message, history, lang=_lang(lang))


# ==========================================
# Health
# ==========================================

@router.get("/api/health", response_model=HealthCheckResponse)
@limiter.limit("60/minute")
async def health_check(request: Request):
    """Health check endpoint (Rate limit: 60/minute for monitoring systems)"""
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1")
                await cur.fetchone()

        db_status = "connected"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "disconnected"

    return HealthCheckResponse(
        status="healthy" if db_status == "connected" else "degraded",
        database=db_status,
        timestamp=datetime.now()
    )
