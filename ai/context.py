"""
Сборка контекста для модели и полный цикл ответа на свободный текст:
история → каталог → system prompt → completion → учёт токенов → сохранение.
"""

import logging
from dataclasses import dataclass

from ai import engine
from ai.prompts import FALLBACK_REPLY, build_system_prompt
from catalog.formatting import format_catalog_for_prompt
from config import MAX_CONVERSATION_HISTORY
from db import conversations, products, usage
from db.models import Bot, Role, Turn, UsageRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reply:
    text: str
    from_model: bool


def build_messages(system_prompt: str, history: list[Turn], user_text: str) -> list[dict]:
    """[system, ...история по хронологии, новое сообщение пользователя]."""
    messages = [{"role": "system", "content": system_prompt}]
    messages.extend(turn.as_message() for turn in history)
    messages.append(Turn(Role.USER, user_text).as_message())
    return messages


async def assemble_messages(bot: Bot, chat_id: int, user_text: str) -> list[dict]:
    history = await conversations.get_conversation_history(
        bot.bot_identifier, chat_id, limit=MAX_CONVERSATION_HISTORY
    )
    catalog_text = format_catalog_for_prompt(await products.get_products_by_bot(bot.id))
    system_prompt = build_system_prompt(bot.display_shop_name, catalog_text)
    return build_messages(system_prompt, history, user_text)


async def _record_usage(bot: Bot, chat_id: int, token_usage: engine.TokenUsage) -> None:
    cost_usd, cost_local = engine.compute_cost(token_usage)
    await usage.save_usage(UsageRecord(
        bot_identifier=bot.bot_identifier,
        chat_id=chat_id,
        prompt_tokens=token_usage.prompt_tokens,
        completion_tokens=token_usage.completion_tokens,
        total_tokens=token_usage.total_tokens,
        cost_usd=cost_usd,
        cost_local=cost_local,
    ))
    logger.info(
        "[%s:%s] Token usage: prompt=%d completion=%d cost=$%.6f (₸%.2f)",
        bot.bot_identifier, chat_id, token_usage.prompt_tokens,
        token_usage.completion_tokens, cost_usd, cost_local,
    )


async def generate_reply(bot: Bot, chat_id: int, user_text: str) -> Reply:
    """Ответ ассистента на сообщение пользователя.

    При ошибке модели возвращается FALLBACK_REPLY, и ничего не сохраняется.
    """
    prefix = f"{bot.bot_identifier}:{chat_id}"
    messages = await assemble_messages(bot, chat_id, user_text)

    completion = await engine.complete(messages, log_prefix=prefix)
    if completion is None:
        return Reply(text=FALLBACK_REPLY, from_model=False)

    if completion.usage is not None:
        try:
            await _record_usage(bot, chat_id, completion.usage)
        except Exception as e:
            logger.error(f"[{prefix}] Failed to save token usage: {e}", exc_info=True)

    await conversations.save_message(bot.bot_identifier, chat_id, Role.USER, user_text)
    await conversations.save_message(bot.bot_identifier, chat_id, Role.ASSISTANT, completion.text)
    return Reply(text=completion.text, from_model=True)
