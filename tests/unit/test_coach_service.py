"""Unit tests for the AI coach relay (CoachService + PydanticAI agent)"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import ModelRequest, ModelResponse, TextPart, UserPromptPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from learnquest.agent import convert_history
from learnquest.agent.prompts import build_briefing_prompt
from learnquest.exceptions import AIGatewayError, PaymentRequiredError, RateLimitedError
from learnquest.models.goal import Goal, GoalType
from learnquest.services.coach_service import CoachService

SERVICE = "learnquest.services.coach_service"


def prompts_sent(messages) -> list[str]:
    return [
        part.content
        for message in messages
        if isinstance(message, ModelRequest)
        for part in message.parts
        if isinstance(part, UserPromptPart)
    ]


class RecordingModel:
    """FunctionModel that remembers what it was sent"""

    def __init__(self, reply: str = "สู้ๆ นะ! 💪"):
        self.reply = reply
        self.messages = []
        self.model = FunctionModel(self._respond)

    def _respond(self, messages, info: AgentInfo) -> ModelResponse:
        self.messages = list(messages)
        return ModelResponse(parts=[TextPart(content=self.reply)])


def failing_model(status_code: int) -> FunctionModel:
    def _respond(messages, info: AgentInfo) -> ModelResponse:
        raise ModelHTTPError(status_code=status_code, model_name="test-gateway", body={"error": "upstream"})
    return FunctionModel(_respond)


# ============================================================================
# Chat
# ============================================================================

@pytest.mark.asyncio
async def test_chat_returns_model_text(test_user_id):
    recorder = RecordingModel()
    service = CoachService(MagicMock(), model=recorder.model)

    result = await service.chat(test_user_id, "How do I focus better?", lang="en")

    assert result == {"message": "สู้ๆ นะ! 💪"}
    assert prompts_sent(recorder.messages)[-1] == "How do I focus better?"


@pytest.mark.asyncio
async def test_chat_empty_message_sends_greeting(test_user_id):
    recorder = RecordingModel()
    service = CoachService(MagicMock(), model=recorder.model)

    await service.chat(test_user_id, "   ", lang="th")

    assert prompts_sent(recorder.messages)[-1] == "สวัสดี"


@pytest.mark.asyncio
async def test_chat_forwards_history(test_user_id):
    recorder = RecordingModel()
    service = CoachService(MagicMock(), model=recorder.model)
    history = [
        {"role": "system", "content": "ignored"},
        {"role": "user", "content": "I failed my quiz"},
        {"role": "assistant", "content": "That happens, let's plan"},
        {"role": "user", "content": "ok"},
    ]

    await service.chat(test_user_id, "what first?", history=history, lang="en")

    assert prompts_sent(recorder.messages) == ["I failed my quiz", "ok\nwhat first?"]
    assert any(isinstance(m, ModelResponse) for m in recorder.messages)


@pytest.mark.parametrize("status_code,error_cls", [
    (429, RateLimitedError),
    (402, PaymentRequiredError),
    (500, AIGatewayError),
    (503, AIGatewayError),
])
@pytest.mark.asyncio
async def test_chat_gateway_errors(test_user_id, status_code, error_cls):
    service = CoachService(MagicMock(), model=failing_model(status_code))

    with pytest.raises(error_cls) as exc_info:
        await service.chat(test_user_id, "hi", lang="th")

    assert exc_info.value.upstream_status == status_code


@pytest.mark.asyncio
async def test_rate_limited_message_is_thai(test_user_id):
    service = CoachService(MagicMock(), model=failing_model(429))

    with pytest.raises(RateLimitedError) as exc_info:
        await service.chat(test_user_id, "hi", lang="th")

    assert exc_info.value.user_message == "ใช้งาน AI มากเกินไป กรุณารอสักครู่แล้วลองใหม่"


# ============================================================================
# Morning briefing
# ============================================================================

@pytest.mark.asyncio
async def test_morning_briefing_builds_prompt(profile_factory):
    profile = profile_factory(name="Ploy", streak=5, level=3, xp=250)
    recorder = RecordingModel("อรุณสวัสดิ์!")
    service = CoachService(MagicMock(), model=recorder.model)
    scores = [{"risk": 4, "diligence": 8, "responsibility": 7, "collaboration": 6, "perseverance": 5, "planning": 3}]
    emotions = [{"emotion": "happy", "energy_level": 4, "created_at": datetime(2024, 3, 14, tzinfo=timezone.utc)}]
    goals = [Goal(user_id=profile.id, goal_type=GoalType.SMART_GOAL, title="Read 10 books",
                  target_value=10, current_value=4)]

    with patch(f"{SERVICE}.queries") as mock_queries:
        mock_queries.get_profile = AsyncMock(return_value=profile)
        mock_queries.get_recent_motivation_scores = AsyncMock(return_value=scores)
        mock_queries.get_recent_emotion_logs = AsyncMock(return_value=emotions)
        mock_queries.get_active_goals = AsyncMock(return_value=goals)

        result = await service.morning_briefing(profile.id, lang="th")

    assert result == {"message": "อรุณสวัสดิ์!"}
    prompt = prompts_sent(recorder.messages)[-1]
    assert "- ชื่อ: Ploy" in prompt
    assert "- Streak: 5 วัน" in prompt
    assert "- Planning: 3.0/10" in prompt
    assert "- happy (Energy: 4/5)" in prompt
    assert "- Read 10 books (40%)" in prompt
    mock_queries.get_active_goals.assert_awaited_once_with(profile.id, limit=5)


def test_briefing_prompt_omits_empty_sections(profile_factory):
    prompt = build_briefing_prompt(profile_factory(name=None), None, [], [])

    assert "- ชื่อ: นักเรียน" in prompt
    assert "Motivation Scores" not in prompt
    assert "Emotion Trend" not in prompt
    assert "เป้าหมายที่กำลังดำเนินการ" not in prompt


def test_briefing_prompt_missing_energy(profile_factory):
    prompt = build_briefing_prompt(profile_factory(), None, [{"emotion": "tired", "energy_level": None}], [])

    assert "- tired (Energy: -)" in prompt


def test_convert_history_roles():
    messages = convert_history([
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
        {"role": "tool", "content": "x"},
    ])

    assert isinstance(messages[0], ModelRequest)
    assert isinstance(messages[1], ModelResponse)
    assert len(messages) == 2
