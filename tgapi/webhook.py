"""
FastAPI роутер для приёма вебхуков Telegram.
Один URL на бота: /api/telegram/webhook/{bot_identifier}.
"""

import asyncio
import logging

from fastapi import APIRouter, Request
from pydantic import ValidationError

from chat import handle_update
from notifications import notify_error
from tgapi.models import Update

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/telegram")

# Per-chat lock: сообщения одного чата одного бота обрабатываются по очереди
_chat_locks: dict[tuple[str, int], asyncio.Lock] = {}

OK = {"ok": True}


def _get_lock(bot_identifier: str, chat_id: int) -> asyncio.Lock:
    key = (bot_identifier, chat_id)
    if key not in _chat_locks:
        _chat_locks[key] = asyncio.Lock()
    return _chat_locks[key]


async def process_update(bot_identifier: str, update: Update) -> None:
    """Обработать обновление под локом чата. Ошибки логируются и не пробрасываются."""
    if update.message is None:
        return
    chat_id = update.message.chat.id
    async with _get_lock(bot_identifier, chat_id):
        try:
            await handle_update(bot_identifier, update)
        except Exception as e:
            logger.error(f"[{bot_identifier}:{chat_id}] Error processing update: {e}", exc_info=True)
            await notify_error("webhook", f"bot={bot_identifier} chat_id={chat_id} error={e}")


@router.post("/webhook/{bot_identifier}")
async def handle_webhook(bot_identifier: str, request: Request):
    """Принимает обновления от Telegram. Всегда отвечает 200, иначе Telegram будет повторять доставку."""
    try:
        body = await request.json()
    except ValueError:
        logger.warning(f"[{bot_identifier}] Webhook body is not JSON")
        return OK

    try:
        update = Update.model_validate(body)
    except ValidationError as e:
        logger.warning(f"[{bot_identifier}] Failed to parse update: {e}")
        return OK

    await process_update(bot_identifier, update)
    return OK
