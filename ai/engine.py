"""
Клиент OpenAI: один блокирующий вызов chat completion на запрос, без повторов.
Любая ошибка превращается в None, вызывающий код отдаёт запасной ответ.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from openai import AsyncOpenAI

from config import (
    OPENAI_API_KEY,
    OPENAI_MODEL,
    OPENAI_TEMPERATURE,
    OPENAI_TIMEOUT,
    COST_PER_1K_PROMPT_TOKENS,
    COST_PER_1K_COMPLETION_TOKENS,
    LOCAL_CURRENCY_RATE,
)

logger = logging.getLogger(__name__)

openai_client = AsyncOpenAI(api_key=OPENAI_API_KEY, timeout=OPENAI_TIMEOUT, max_retries=0)


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class Completion:
    text: str
    usage: Optional[TokenUsage] = None


def _parse_usage(usage) -> Optional[TokenUsage]:
    if usage is None:
        return None
    prompt = int(getattr(usage, "prompt_tokens", 0) or 0)
    completion = int(getattr(usage, "completion_tokens", 0) or 0)
    total = int(getattr(usage, "total_tokens", 0) or 0) or prompt + completion
    return TokenUsage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


def compute_cost(usage: TokenUsage) -> tuple[float, float]:
    """Стоимость вызова: (USD, локальная валюта)."""
    usd = (
        usage.prompt_tokens / 1000.0 * COST_PER_1K_PROMPT_TOKENS
        + usage.completion_tokens / 1000.0 * COST_PER_1K_COMPLETION_TOKENS
    )
    return usd, usd * LOCAL_CURRENCY_RATE


async def complete(
    messages: list[dict],
    model: str = OPENAI_MODEL,
    temperature: float = OPENAI_TEMPERATURE,
    log_prefix: str = "",
) -> Optional[Completion]:
    """Вернуть текст первого варианта и usage, либо None при любой ошибке."""
    logger.info(f"[{log_prefix}] OpenAI request: model={model}, messages={len(messages)}")
    try:
        response = await openai_client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
        )
        text = response.choices[0].message.content
        if not isinstance(text, str) or not text.strip():
            raise ValueError("empty completion content")
        usage = _parse_usage(getattr(response, "usage", None))
    except Exception as e:
        logger.error(f"[{log_prefix}] OpenAI error: {e}", exc_info=True)
        return None

    logger.info(f"[{log_prefix}] AI response: {text[:120]}")
    return Completion(text=text, usage=usage)
