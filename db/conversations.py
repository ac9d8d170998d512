"""
CRUD операции для истории переписки.
Журнал только на добавление: строки не редактируются и не удаляются.
"""

import aiosqlite

from config import SQLITE_DB_PATH, MAX_CONVERSATION_HISTORY
from db.models import Role, Turn


async def save_message(bot_identifier: str, chat_id: int, role: Role, content: str) -> int:
    """Сохранить сообщение в историю. Возвращает id строки."""
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        cursor = await db.execute(
            "INSERT INTO conversations (bot_identifier, chat_id, role, content) VALUES (?, ?, ?, ?)",
            (bot_identifier, chat_id, Role(role).value, content),
        )
        await db.commit()
        return cursor.lastrowid


async def get_conversation_history(
    bot_identifier: str, chat_id: int, limit: int = MAX_CONVERSATION_HISTORY
) -> list[Turn]:
    """Последние `limit` сообщений чата в хронологическом порядке (старые первыми)."""
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            """SELECT role, content
               FROM conversations
               WHERE bot_identifier = ? AND chat_id = ?
               ORDER BY id DESC
               LIMIT ?""",
            (bot_identifier, chat_id, limit),
        )
        rows = await cursor.fetchall()
        return [Turn(role=Role(r["role"]), content=r["content"]) for r in reversed(rows)]


async def count_messages(bot_identifier: str) -> int:
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        cursor = await db.execute(
            "SELECT COUNT(*) FROM conversations WHERE bot_identifier = ?",
            (bot_identifier,),
        )
        row = await cursor.fetchone()
        return int(row[0] or 0)


async def count_dialogues(bot_identifier: str) -> int:
    """Количество разных чатов, в которых писали боту."""
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        cursor = await db.execute(
            "SELECT COUNT(DISTINCT chat_id) FROM conversations WHERE bot_identifier = ?",
            (bot_identifier,),
        )
        row = await cursor.fetchone()
        return int(row[0] or 0)
