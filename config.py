"""
Конфигурация сервиса магазинных ботов.
Все секреты загружаются из .env файла.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Загружаем .env из корня проекта
BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")

# OpenAI (один ключ на весь процесс, не на тенанта)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "60"))

# Telegram
TELEGRAM_API_BASE = os.getenv("TELEGRAM_API_BASE", "https://api.telegram.org").rstrip("/")
TELEGRAM_TIMEOUT = float(os.getenv("TELEGRAM_TIMEOUT", "15"))
# Используется только для ответа "бот не зарегистрирован"
DEFAULT_BOT_TOKEN = os.getenv("DEFAULT_BOT_TOKEN", "")
WEBHOOK_BASE_URL = os.getenv("WEBHOOK_BASE_URL", "").rstrip("/")

# Paths
SQLITE_DB_PATH = os.getenv("SQLITE_DB_PATH", "data/shopbots.db")

# Server
WEBHOOK_HOST = os.getenv("WEBHOOK_HOST", "0.0.0.0")
WEBHOOK_PORT = int(os.getenv("WEBHOOK_PORT", "8080"))

# Bot behavior
MAX_CONVERSATION_HISTORY = int(os.getenv("MAX_CONVERSATION_HISTORY", "30"))
PHOTO_SEND_DELAY = float(os.getenv("PHOTO_SEND_DELAY", "0.5"))

# Стоимость токенов (USD за 1000) и курс пересчёта в тенге
COST_PER_1K_PROMPT_TOKENS = float(os.getenv("COST_PER_1K_PROMPT_TOKENS", "0.0015"))
COST_PER_1K_COMPLETION_TOKENS = float(os.getenv("COST_PER_1K_COMPLETION_TOKENS", "0.002"))
LOCAL_CURRENCY_RATE = float(os.getenv("LOCAL_CURRENCY_RATE", "540.0"))

# Admin API
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "")

# Object storage (внешний сервис, удаление изображений товаров)
STORAGE_SERVICE_URL = os.getenv("STORAGE_SERVICE_URL", "").rstrip("/")

# Telegram alerts
TELEGRAM_ALERT_BOT_TOKEN = os.getenv("TELEGRAM_ALERT_BOT_TOKEN", "")
TELEGRAM_ALERT_CHAT_ID = os.getenv("TELEGRAM_ALERT_CHAT_ID", "")
