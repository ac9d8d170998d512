"""Chat dispatcher — routing of Telegram updates: catalog commands, AI replies, product photos."""

import asyncio
import logging

from ai.context import generate_reply
from catalog.formatting import format_product_card
from config import DEFAULT_BOT_TOKEN, PHOTO_SEND_DELAY
from db import bots, products
from db.models import Bot, Product
from tgapi.client import send_text, send_photo
from tgapi.models import Update

logger = logging.getLogger(__name__)

COMMAND_PREFIX = "/"
CATALOG_COMMAND = "/catalog"
CATALOG_PREFIX = "/catalog_"
SUBCATEGORY_PREFIX = "/subcategory_"

NOT_REGISTERED_TEXT = "Бот с таким идентификатором не найден."
HELP_TEXT = "Неизвестная команда. Пожалуйста, используйте /start или /catalog."


async def handle_update(bot_identifier: str, update: Update) -> None:
    """Входная точка для всех обновлений бота."""
    message = update.message
    if message is None or not message.text or not message.text.strip():
        logger.debug(f"[{bot_identifier}] Update without text ignored")
        return

    chat_id = message.chat.id
    text = message.text
    logger.info(f"[{bot_identifier}:{chat_id}] Incoming: {text[:100]}")

    bot = await bots.get_bot_by_identifier(bot_identifier)
    if bot is None:
        logger.warning(f"[{bot_identifier}:{chat_id}] Bot is not registered")
        if DEFAULT_BOT_TOKEN:
            await send_text(chat_id, NOT_REGISTERED_TEXT, DEFAULT_BOT_TOKEN)
        return

    if text.startswith(COMMAND_PREFIX):
        await handle_command(bot, chat_id, text.strip())
    else:
        await handle_free_text(bot, chat_id, text)


# ── Команды каталога ─────────────────────────────────────────

async def handle_command(bot: Bot, chat_id: int, command: str) -> None:
    logger.info(f"[{bot.bot_identifier}:{chat_id}] Command: {command}")

    if command.startswith("/start"):
        await send_text(
            chat_id,
            f'Добро пожаловать в магазин "{bot.display_shop_name}"! '
            f"Напишите /catalog, чтобы увидеть категории товаров.",
            bot.access_token,
        )
    elif command == CATALOG_COMMAND:
        await send_catalog_list(bot, chat_id)
    elif command.startswith(CATALOG_PREFIX):
        await send_subcategories(bot, chat_id, command[len(CATALOG_PREFIX):])
    elif command.startswith(SUBCATEGORY_PREFIX):
        await send_subcategory_products(bot, chat_id, command[len(SUBCATEGORY_PREFIX):])
    else:
        await send_text(chat_id, HELP_TEXT, bot.access_token)


async def send_catalog_list(bot: Bot, chat_id: int) -> None:
    catalogs = await products.get_catalog_names(bot.id)
    if not catalogs:
        await send_text(chat_id, "В магазине нет доступных каталогов.", bot.access_token)
        return

    lines = [f'Каталоги магазина "{bot.display_shop_name}":', ""]
    lines.extend(f"{CATALOG_PREFIX}{name}" for name in catalogs)
    await send_text(chat_id, "\n".join(lines), bot.access_token)


async def send_subcategories(bot: Bot, chat_id: int, catalog: str) -> None:
    subcategories = await products.get_subcategory_names(bot.id, catalog)
    if not subcategories:
        await send_text(chat_id, f'В каталоге "{catalog}" нет подкаталогов.', bot.access_token)
        return

    lines = [f'Подкаталоги в каталоге "{catalog}":', ""]
    lines.extend(f"{SUBCATEGORY_PREFIX}{name}" for name in subcategories)
    await send_text(chat_id, "\n".join(lines), bot.access_token)


async def send_subcategory_products(bot: Bot, chat_id: int, subcategory: str) -> None:
    """Каждый товар отдельным сообщением: фото с подписью, если есть изображение."""
    items = await products.get_products_by_subcategory(bot.id, subcategory)
    if not items:
        await send_text(chat_id, f'В подкаталоге "{subcategory}" нет товаров.', bot.access_token)
        return

    for i, product in enumerate(items):
        if i:
            await asyncio.sleep(PHOTO_SEND_DELAY)
        card = format_product_card(product)
        if product.has_image:
            await send_photo(chat_id, product.image_url.strip(), card, bot.access_token)
        else:
            await send_text(chat_id, card, bot.access_token)


# ── Свободный текст → AI ─────────────────────────────────────

async def handle_free_text(bot: Bot, chat_id: int, text: str) -> None:
    reply = await generate_reply(bot, chat_id, text)
    if not reply.from_model:
        await send_text(chat_id, reply.text, bot.access_token)
        return
    await send_ai_response(bot, chat_id, reply.text)


def find_mentioned_products(text: str, catalog: list[Product]) -> list[Product]:
    """Товары с изображением, чьё название встречается в тексте (без учёта регистра).

    Простое вхождение подстроки: короткие названия могут совпасть лишний раз.
    """
    lowered = text.lower()
    return [
        p for p in catalog
        if p.name and p.name.strip() and p.has_image and p.name.lower() in lowered
    ]


async def send_ai_response(bot: Bot, chat_id: int, text: str) -> None:
    """Отправить ответ AI, затем фото всех упомянутых в нём товаров."""
    await send_text(chat_id, text, bot.access_token)

    mentioned = find_mentioned_products(text, await products.get_products_by_bot(bot.id))
    if mentioned:
        logger.info(f"[{bot.bot_identifier}:{chat_id}] Products mentioned: {len(mentioned)}")

    for product in mentioned:
        await asyncio.sleep(PHOTO_SEND_DELAY)
        await send_photo(
            chat_id,
            product.image_url.strip(),
            format_product_card(product, with_placeholder=False),
            bot.access_token,
        )
