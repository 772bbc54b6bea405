"""
CoachService - AI Learning Coach relay

Gathers the student's recent data, builds the Thai coach prompt and forwards
it to the AI gateway. Upstream 429/402 and any other failure surface as
RateLimitedError / PaymentRequiredError / AIGatewayError with fixed,
localized user messages.
"""

import logging
import time
from typing import Any, Dict, Mapping, Optional, Sequence

import psycopg
from pydantic_ai.models import Model

from learnquest.agent import run_coach
from learnquest.agent.prompts import BRIEFING_SYSTEM_PROMPT, CHAT_SYSTEM_PROMPT, build_briefing_prompt
from learnquest.config import DEFAULT_LANGUAGE
from learnquest.db import queries
from learnquest.exceptions import (
    PaymentRequiredError,
    RateLimitedError,
    wrap_external_exception,
)
from learnquest.gamification.motivation import average_scores
from learnquest.i18n.translations import t
from learnquest.observability.metrics import coach_request_duration_seconds, coach_requests_total

logger = logging.getLogger(__name__)

BRIEFING_WINDOW = 7
BRIEFING_GOAL_LIMIT = 5


class CoachService:
    """Service for the morning briefing and coach chat"""

    def __init__(self, db_connection, model: Optional[Model] = None):
        """
        Args:
            db_connection: Database connection instance
            model: PydanticAI model to use (AI gateway model if None)
        """
        self.db = db_connection
        self.model = model
        logger.debug("CoachService initialized")

    async def morning_briefing(self, user_id: str, lang: str = DEFAULT_LANGUAGE) -> Dict[str, Any]:
        """
        Short personalised briefing from profile, last 7 ratings, last 7
        emotion logs and up to 5 active goals.

        Returns:
            {'message': str}
        """
        try:
            profile = await queries.get_profile(user_id)
            recent_scores = await queries.get_recent_motivation_scores(user_id, limit=BRIEFING_WINDOW)
            emotions = await queries.get_recent_emotion_logs(user_id, limit=BRIEFING_WINDOW)
            goals = await queries.get_active_goals(user_id, limit=BRIEFING_GOAL_LIMIT)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="morning_briefing", user_id=user_id)

        prompt = build_briefing_prompt(profile, average_scores(recent_scores), emotions, goals)
        message = await self._relay("morning_briefing", user_id, BRIEFING_SYSTEM_PROMPT, prompt, (), lang)
        return {"message": message}

    async def chat(
        self,
        user_id: str,
        message: Optional[str],
        history: Sequence[Mapping[str, str]] = (),
        lang: str = DEFAULT_LANGUAGE,
    ) -> Dict[str, Any]:
        """
        One chat turn. An empty message is sent as a greeting.

        Returns:
            {'message': str}
        """
        text = (message or "").strip() or t("chat_default_message", lang)
        reply = await self._relay("chat", user_id, CHAT_SYSTEM_PROMPT, text, history, lang)
        return {"message": reply}

    async def _relay(
        self,
        request_type: str,
        user_id: str,
        system_prompt: str,
        user_prompt: str,
        history: Sequence[Mapping[str, str]],
        lang: str,
    ) -> str:
        start = time.perf_counter()
        status = "error"
        try:
            reply = await run_coach(system_prompt, user_prompt, history, model=self.model, lang=lang)
            status = "success"
            return reply
        except RateLimitedError:
            status = "rate_limited"
            raise
        except PaymentRequiredError:
            status = "payment_required"
            raise
        finally:
            coach_requests_total.labels(request_type=request_type, status=status).inc()
            coach_request_duration_seconds.labels(request_type=request_type).observe(time.perf_counter() - start)
            logger.info(f"Coach {request_type} for user {user_id}: {status}")
