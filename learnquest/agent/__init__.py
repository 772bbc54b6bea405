"""PydanticAI agent for the AI learning coach"""
import logging
from typing import Mapping, Optional, Sequence

import httpx
import openai
from openai import AsyncOpenAI
from pydantic_ai import Agent
from pydantic_ai.exceptions import AgentRunError, ModelHTTPError
from pydantic_ai.messages import ModelMessage, ModelRequest, ModelResponse, TextPart, UserPromptPart
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from learnquest.config import (
    AI_GATEWAY_API_KEY,
    AI_GATEWAY_URL,
    AI_MODEL,
    AI_TIMEOUT_SECONDS,
    DEFAULT_LANGUAGE,
)
from learnquest.exceptions import AIGatewayError, PaymentRequiredError, RateLimitedError

logger = logging.getLogger(__name__)

_gateway_model: Optional[Model] = None


def get_gateway_model() -> Model:
    """
    Chat model served by the OpenAI-compatible AI gateway (created once).

    The OpenAI client is built with max_retries=0: a failed call is reported
    to the student, never repeated.
    """
    global _gateway_model
    if _gateway_model is None:
        client = AsyncOpenAI(
            base_url=AI_GATEWAY_URL,
            api_key=AI_GATEWAY_API_KEY,
            timeout=AI_TIMEOUT_SECONDS,
            max_retries=0,
        )
        _gateway_model = OpenAIChatModel(AI_MODEL, provider=OpenAIProvider(openai_client=client))
        logger.info(f"AI gateway model ready: {AI_MODEL} via {AI_GATEWAY_URL}")
    return _gateway_model


def convert_history(history: Sequence[Mapping[str, str]]) -> list[ModelMessage]:
    """
    Convert {'role', 'content'} chat turns into PydanticAI messages.

    Turns with other roles (e.g. 'system') are dropped; the coach sets its
    own instructions.
    """
    messages: list[ModelMessage] = []
    for turn in history:
        role = turn.get("role")
        content = turn.get("content") or ""
        if role == "user":
            messages.append(ModelRequest(parts=[UserPromptPart(content=content)]))
        elif role == "assistant":
            messages.append(ModelResponse(parts=[TextPart(content=content)]))
        else:
            logger.debug(f"Skipping chat turn with role {role!r}")
    return messages


def _split_trailing_user_turn(messages: list[ModelMessage]) -> tuple[list[ModelMessage], str]:
    """History must end with a model response; a trailing user turn is folded into the new prompt"""
    if messages and isinstance(messages[-1], ModelRequest):
        last = messages.pop()
        text = "\n".join(part.content for part in last.parts if isinstance(part, UserPromptPart))
        return messages, text
    return messages, ""


async def run_coach(
    system_prompt: str,
    user_prompt: str,
    history: Sequence[Mapping[str, str]] = (),
    model: Optional[Model] = None,
    lang: str = DEFAULT_LANGUAGE,
) -> str:
    """
    Send one coach request and return the model's text.

    Raises:
        RateLimitedError: Gateway answered 429
        PaymentRequiredError: Gateway answered 402
        AIGatewayError: Any other gateway status or transport failure
    """
    messages, pending = _split_trailing_user_turn(convert_history(history))
    if pending:
        user_prompt = f"{pending}\n{user_prompt}"

    agent = Agent(model or get_gateway_model(), instructions=system_prompt)

    try:
        result = await agent.run(user_prompt, message_history=messages or None)
    except ModelHTTPError as e:
        logger.error(f"AI gateway error: {e.status_code} {e.body}")
        if e.status_code == 429:
            raise RateLimitedError(lang=lang, cause=e)
        if e.status_code == 402:
            raise PaymentRequiredError(lang=lang, cause=e)
        raise AIGatewayError(
            f"AI gateway returned {e.status_code}",
            lang=lang,
            status_code=e.status_code,
            cause=e,
        )
    except (openai.APIConnectionError, httpx.HTTPError) as e:
        raise AIGatewayError(f"AI gateway unreachable: {e}", lang=lang, cause=e)
    except AgentRunError as e:
        raise AIGatewayError(f"AI gateway returned an unusable response: {e}", lang=lang, cause=e)

    return result.output
