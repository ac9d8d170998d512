"""
Учёт токенов OpenAI: одна запись на каждый вызов completion, без изменений.
"""

import aiosqlite

from config import SQLITE_DB_PATH
from db.models import UsageRecord


async def save_usage(record: UsageRecord) -> None:
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        await db.execute(
            """
            INSERT INTO token_usage (bot_identifier, chat_id, prompt_tokens, completion_tokens,
                                     total_tokens, cost_usd, cost_local)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.bot_identifier,
                record.chat_id,
                record.prompt_tokens,
                record.completion_tokens,
                record.total_tokens,
                record.cost_usd,
                record.cost_local,
            ),
        )
        await db.commit()


async def get_usage_stats(bot_identifier: str) -> dict:
    """Суммарная статистика по боту."""
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        cursor = await db.execute(
            """
            SELECT COUNT(*),
                   COALESCE(SUM(prompt_tokens), 0),
                   COALESCE(SUM(completion_tokens), 0),
                   COALESCE(SUM(cost_usd), 0),
                   COALESCE(SUM(cost_local), 0)
            FROM token_usage
            WHERE bot_identifier = ?
            """,
            (bot_identifier,),
        )
        row = await cursor.fetchone()
    return {
        "bot_identifier": bot_identifier,
        "total_requests": int(row[0]),
        "total_prompt_tokens": int(row[1]),
        "total_completion_tokens": int(row[2]),
        "total_cost_usd": float(row[3]),
        "total_cost_local": float(row[4]),
    }
