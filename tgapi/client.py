"""Telegram Bot API клиент — отправка сообщений и управление вебхуками.

Токен передаётся в каждый вызов: каждый тенант авторизуется как свой бот.
"""

from __future__ import annotations

import asyncio
import logging
from functools import wraps

import httpx

from config import TELEGRAM_API_BASE, TELEGRAM_TIMEOUT

logger = logging.getLogger(__name__)

# Singleton httpx client: один пул соединений на процесс
_http_client: httpx.AsyncClient | None = None


class TelegramAPIError(Exception):
    """Telegram ответил ошибкой или недоступен."""

    def __init__(self, method: str, description: str, status_code: int | None = None):
        super().__init__(f"{method}: {description}")
        self.method = method
        self.description = description
        self.status_code = status_code


def _get_client() -> httpx.AsyncClient:
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(timeout=TELEGRAM_TIMEOUT)
    return _http_client


async def close_client() -> None:
    global _http_client
    if _http_client is not None and not _http_client.is_closed:
        await _http_client.aclose()
    _http_client = None


def _retry(max_retries=3, delay=1.0, backoff=2.0):
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            last_exc = None
            d = delay
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except httpx.TransportError as e:
                    last_exc = e
                    logger.warning(f"{func.__name__} attempt {attempt+1}/{max_retries}: {e}")
                    if attempt < max_retries - 1:
                        await asyncio.sleep(d)
                        d *= backoff
            raise TelegramAPIError(func.__name__, str(last_exc))
        return wrapper
    return decorator


def _method_url(token: str, method: str) -> str:
    return f"{TELEGRAM_API_BASE}/bot{token}/{method}"


async def _call(token: str, method: str, payload: dict | None = None) -> dict:
    """Вызвать метод Bot API и вернуть поле result. Ошибки — TelegramAPIError."""
    client = _get_client()
    r = await client.post(_method_url(token, method), json=payload or {})
    try:
        body = r.json()
    except ValueError:
        raise TelegramAPIError(method, f"invalid response (HTTP {r.status_code})", r.status_code)
    if not isinstance(body, dict):
        raise TelegramAPIError(method, f"invalid response (HTTP {r.status_code})", r.status_code)
    if r.status_code >= 400 or not body.get("ok"):
        raise TelegramAPIError(method, body.get("description") or f"HTTP {r.status_code}", r.status_code)
    return body.get("result") or {}


# ── Отправка (fire-and-log) ──────────────────────────────────

async def send_text(chat_id: int, text: str, token: str) -> bool:
    """Отправить текст. Ошибки логируются и не пробрасываются."""
    try:
        await _call(token, "sendMessage", {"chat_id": chat_id, "text": text})
    except (httpx.HTTPError, TelegramAPIError) as e:
        logger.error(f"[{chat_id}] sendMessage failed: {e}")
        return False
    logger.info(f"[{chat_id}] Sent: {text[:80]}")
    return True


async def send_photo(chat_id: int, photo_url: str, caption: str, token: str) -> bool:
    """Отправить фото по URL с подписью. Ошибки логируются и не пробрасываются."""
    payload = {"chat_id": chat_id, "photo": photo_url}
    if caption:
        payload["caption"] = caption
    try:
        await _call(token, "sendPhoto", payload)
    except (httpx.HTTPError, TelegramAPIError) as e:
        logger.error(f"[{chat_id}] sendPhoto failed ({photo_url}): {e}")
        return False
    logger.info(f"[{chat_id}] Sent photo: {photo_url}")
    return True


# ── Регистрация бота ─────────────────────────────────────────

@_retry()
async def get_me(token: str) -> dict:
    """Проверить токен. Возвращает {"id": ..., "username": ...}."""
    return await _call(token, "getMe")


@_retry()
async def set_webhook(token: str, url: str) -> None:
    await _call(token, "setWebhook", {"url": url})
    logger.info(f"Webhook set: {url}")


@_retry()
async def delete_webhook(token: str) -> None:
    await _call(token, "deleteWebhook")
    logger.info("Webhook deleted")
