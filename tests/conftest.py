"""
Конфигурация и фикстуры для тестов.

База — временный SQLite файл, инициализированный init_db().
OpenAI и Telegram замоканы.
"""

import os
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

# ai.engine создаёт AsyncOpenAI при импорте; клиенту нужен непустой ключ
os.environ.setdefault("OPENAI_API_KEY", "test-key")

DB_MODULES = ("db.models", "db.bots", "db.products", "db.conversations", "db.usage")


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Create temp SQLite DB, patch SQLITE_DB_PATH everywhere, init schema."""
    path = str(tmp_path / "test.db")
    for module in DB_MODULES:
        monkeypatch.setattr(f"{module}.SQLITE_DB_PATH", path)

    from db.models import init_db
    init_db()

    return path


@pytest.fixture
def make_bot(db_path):
    """Фабрика ботов в тестовой базе."""
    from db import bots

    counter = {"n": 0}

    async def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "name": f"Shop {n}",
            "bot_identifier": f"shopbot{n}" if n > 1 else "shopbot",
            "platform": "telegram",
            "access_token": f"{n}00:TOKEN",
            "platform_api_id": 1000 + n,
            "owner_id": 1,
        }
        fields.update(overrides)
        return await bots.create_bot(**fields)

    return _make


@pytest.fixture
def make_product(db_path):
    from db import products

    async def _make(bot_id, name, price="9.99", **overrides):
        return await products.create_product(bot_id=bot_id, name=name, price=Decimal(price), **overrides)

    return _make


@pytest.fixture
def mock_openai(monkeypatch):
    """Mock OpenAI client."""
    mock_create = AsyncMock()
    monkeypatch.setattr("ai.engine.openai_client.chat.completions.create", mock_create)
    return mock_create


@pytest.fixture
def sent(monkeypatch):
    """Перехват отправок в Telegram из chat.py: список (kind, chat_id, body, extra, token)."""
    calls = []

    async def fake_send_text(chat_id, text, token):
        calls.append(("text", chat_id, text, None, token))
        return True

    async def fake_send_photo(chat_id, photo_url, caption, token):
        calls.append(("photo", chat_id, photo_url, caption, token))
        return True

    monkeypatch.setattr("chat.send_text", fake_send_text)
    monkeypatch.setattr("chat.send_photo", fake_send_photo)
    monkeypatch.setattr("chat.PHOTO_SEND_DELAY", 0)
    return calls
