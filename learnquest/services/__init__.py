"""
Service Layer Package

Business logic services between the API routes and the data access layer
(database queries).

Core Services:
- ProgressionService: Posts, streaks, daily quests, mystery boxes, motivation, achievements
- GoalService: SMART goals, weekly missions, habit stacks
- CoachService: AI learning coach (morning briefing, chat)
"""

from learnquest.services.container import ServiceContainer, get_container, init_container

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
]
