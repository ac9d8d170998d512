"""
SQLite схема базы данных и записи, которыми обмениваются хранилища.
"""

import sqlite3
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Optional

from config import SQLITE_DB_PATH


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Bot:
    id: int
    name: str
    bot_identifier: str
    platform: str
    access_token: str
    platform_api_id: int
    shop_name: Optional[str]
    owner_id: int
    description: str = ""

    @property
    def display_shop_name(self) -> str:
        return self.shop_name or self.name


@dataclass(frozen=True)
class Product:
    id: int
    bot_id: int
    name: str
    price: Decimal
    description: str = ""
    catalog: str = ""
    subcategory: str = ""
    image_url: Optional[str] = None
    in_stock: bool = True

    @property
    def has_image(self) -> bool:
        return bool(self.image_url and self.image_url.strip())


@dataclass(frozen=True)
class Turn:
    role: Role
    content: str

    def as_message(self) -> dict:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class UsageRecord:
    bot_identifier: str
    chat_id: int
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cost_usd: float
    cost_local: float


def init_db():
    """Создать таблицы, если не существуют."""
    Path(SQLITE_DB_PATH).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(SQLITE_DB_PATH)
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS bots (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            bot_identifier TEXT NOT NULL UNIQUE,
            platform TEXT NOT NULL DEFAULT 'telegram',
            access_token TEXT NOT NULL UNIQUE,
            platform_api_id INTEGER NOT NULL UNIQUE,
            shop_name TEXT,
            owner_id INTEGER NOT NULL,
            description TEXT DEFAULT '',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS products (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            bot_id INTEGER NOT NULL REFERENCES bots(id),
            name TEXT NOT NULL,
            price TEXT NOT NULL,
            description TEXT DEFAULT '',
            catalog TEXT DEFAULT '',
            subcategory TEXT DEFAULT '',
            image_url TEXT,
            in_stock INTEGER NOT NULL DEFAULT 1
        )
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_products_bot
        ON products(bot_id)
    """)

    # Порядок истории определяется id, а не временем записи
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS conversations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            bot_identifier TEXT NOT NULL,
            chat_id INTEGER NOT NULL,
            role TEXT NOT NULL,
            content TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_conversations_chat
        ON conversations(bot_identifier, chat_id, id)
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS token_usage (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            bot_identifier TEXT NOT NULL,
            chat_id INTEGER NOT NULL,
            prompt_tokens INTEGER NOT NULL DEFAULT 0,
            completion_tokens INTEGER NOT NULL DEFAULT 0,
            total_tokens INTEGER NOT NULL DEFAULT 0,
            cost_usd REAL NOT NULL DEFAULT 0,
            cost_local REAL NOT NULL DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_token_usage_bot
        ON token_usage(bot_identifier)
    """)

    conn.commit()
    conn.close()
