"""
Жизненный цикл бота-арендатора: регистрация с проверкой токена через getMe,
установка и снятие вебхука, статистика.
"""

import logging
import sqlite3
from typing import Optional

from config import WEBHOOK_BASE_URL
from db import bots, conversations
from db.models import Bot
from tgapi import client as tg
from tgapi.client import TelegramAPIError

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/api/telegram/webhook/"


class RegistrationError(Exception):
    """Регистрация невозможна. status_code — HTTP код для API."""

    def __init__(self, detail: str, status_code: int = 400):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def webhook_url(bot_identifier: str) -> str:
    return f"{WEBHOOK_BASE_URL}{WEBHOOK_PATH}{bot_identifier}"


async def register_bot(
    owner_id: int,
    name: str,
    bot_identifier: str,
    access_token: str,
    platform: str = "telegram",
    description: str = "",
    shop_name: Optional[str] = None,
) -> Bot:
    """Проверить токен, сохранить бота и подписать его на вебхук.

    Если setWebhook не удался, бот удаляется обратно.
    """
    if not WEBHOOK_BASE_URL:
        raise RegistrationError("WEBHOOK_BASE_URL не настроен", 500)
    if await bots.get_bot_by_identifier(bot_identifier):
        raise RegistrationError("Бот с таким идентификатором уже зарегистрирован", 409)
    if await bots.get_bot_by_token(access_token):
        raise RegistrationError("Бот с таким токеном уже зарегистрирован", 409)

    try:
        me = await tg.get_me(access_token)
    except TelegramAPIError as e:
        raise RegistrationError(f"Неверный токен бота: {e.description}") from e

    username = me.get("username") or ""
    if username.lower() != bot_identifier.lower():
        raise RegistrationError(
            f"Идентификатор бота не совпадает с username из Telegram (@{username})"
        )
    platform_api_id = me.get("id")
    if platform_api_id is None:
        raise RegistrationError("Telegram не вернул id бота")
    if await bots.get_bot_by_platform_id(platform_api_id):
        raise RegistrationError("Этот бот Telegram уже зарегистрирован", 409)

    try:
        bot = await bots.create_bot(
            name=name,
            bot_identifier=bot_identifier,
            platform=platform,
            access_token=access_token,
            platform_api_id=platform_api_id,
            owner_id=owner_id,
            description=description,
            shop_name=shop_name,
        )
    except sqlite3.IntegrityError as e:
        raise RegistrationError("Бот уже зарегистрирован", 409) from e

    try:
        await tg.set_webhook(access_token, webhook_url(bot_identifier))
    except TelegramAPIError as e:
        logger.error(f"[{bot_identifier}] setWebhook failed, rolling back registration: {e}")
        await bots.delete_bot(bot.id)
        raise RegistrationError(f"Не удалось установить вебхук: {e.description}") from e

    logger.info(f"[{bot_identifier}] Bot registered for owner {owner_id}")
    return bot


async def update_bot(bot: Bot, **fields) -> Bot:
    await bots.update_bot(bot.id, **{k: v for k, v in fields.items() if v is not None})
    return await bots.get_bot(bot.id)


async def delete_bot(bot: Bot) -> None:
    """Снять вебхук (ошибка не мешает удалению) и удалить бота с товарами."""
    try:
        await tg.delete_webhook(bot.access_token)
    except TelegramAPIError as e:
        logger.warning(f"[{bot.bot_identifier}] deleteWebhook failed: {e}")
    await bots.delete_bot(bot.id)
    logger.info(f"[{bot.bot_identifier}] Bot deleted")


async def bot_stats(bot: Bot) -> dict:
    return {
        "total_messages": await conversations.count_messages(bot.bot_identifier),
        "total_dialogues": await conversations.count_dialogues(bot.bot_identifier),
    }
