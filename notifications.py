"""
Алерты владельцу сервиса в Telegram с троттлингом.
Отдельный бот (TELEGRAM_ALERT_BOT_TOKEN), не связанный с магазинами-арендаторами.
"""
import logging
import time

from config import TELEGRAM_ALERT_BOT_TOKEN, TELEGRAM_ALERT_CHAT_ID
from tgapi.client import send_text

logger = logging.getLogger(__name__)

_last_sent: dict[str, float] = {}
_THROTTLE_SECONDS = 600  # 10 минут на тип ошибки


async def notify_error(error_type: str, message: str) -> bool:
    """Отправить алерт, не чаще одного раза на error_type за 10 минут.

    Возвращает True, если алерт был отправлен.
    """
    if not TELEGRAM_ALERT_BOT_TOKEN or not TELEGRAM_ALERT_CHAT_ID:
        return False
    now = time.time()
    if now - _last_sent.get(error_type, 0) < _THROTTLE_SECONDS:
        logger.debug(f"Alert '{error_type}' throttled")
        return False
    _last_sent[error_type] = now
    text = f"⚠️ Shop bots error\n\nType: {error_type}\n{message[:1000]}"
    sent = await send_text(TELEGRAM_ALERT_CHAT_ID, text, TELEGRAM_ALERT_BOT_TOKEN)
    if not sent:
        logger.warning(f"Failed to send Telegram alert '{error_type}'")
    return sent
