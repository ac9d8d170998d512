"""
Реестр ботов (тенантов).
Уникальность bot_identifier, access_token и platform_api_id обеспечивает схема.
"""

from typing import Optional

import aiosqlite

from config import SQLITE_DB_PATH
from db.models import Bot

_COLUMNS = "id, name, bot_identifier, platform, access_token, platform_api_id, shop_name, owner_id, description"


def _row_to_bot(row) -> Bot:
    return Bot(
        id=row["id"],
        name=row["name"],
        bot_identifier=row["bot_identifier"],
        platform=row["platform"],
        access_token=row["access_token"],
        platform_api_id=row["platform_api_id"],
        shop_name=row["shop_name"],
        owner_id=row["owner_id"],
        description=row["description"] or "",
    )


async def _fetch_one(where: str, params: tuple) -> Optional[Bot]:
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(f"SELECT {_COLUMNS} FROM bots WHERE {where}", params)
        row = await cursor.fetchone()
        return _row_to_bot(row) if row else None


async def get_bot_by_identifier(bot_identifier: str) -> Optional[Bot]:
    return await _fetch_one("bot_identifier = ?", (bot_identifier,))


async def get_bot_by_token(access_token: str) -> Optional[Bot]:
    return await _fetch_one("access_token = ?", (access_token,))


async def get_bot_by_platform_id(platform_api_id: int) -> Optional[Bot]:
    return await _fetch_one("platform_api_id = ?", (platform_api_id,))


async def get_bot(bot_id: int) -> Optional[Bot]:
    return await _fetch_one("id = ?", (bot_id,))


async def list_bots_by_owner(owner_id: int) -> list[Bot]:
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            f"SELECT {_COLUMNS} FROM bots WHERE owner_id = ? ORDER BY id",
            (owner_id,),
        )
        return [_row_to_bot(r) for r in await cursor.fetchall()]


async def create_bot(
    name: str,
    bot_identifier: str,
    platform: str,
    access_token: str,
    platform_api_id: int,
    owner_id: int,
    description: str = "",
    shop_name: Optional[str] = None,
) -> Bot:
    """Сохранить бота. Нарушение уникальности поднимает sqlite3.IntegrityError."""
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        cursor = await db.execute(
            """
            INSERT INTO bots (name, bot_identifier, platform, access_token,
                              platform_api_id, shop_name, owner_id, description)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (name, bot_identifier, platform, access_token, platform_api_id, shop_name, owner_id, description),
        )
        await db.commit()
        bot_id = cursor.lastrowid
    return Bot(
        id=bot_id,
        name=name,
        bot_identifier=bot_identifier,
        platform=platform,
        access_token=access_token,
        platform_api_id=platform_api_id,
        shop_name=shop_name,
        owner_id=owner_id,
        description=description,
    )


async def update_bot(bot_id: int, **fields) -> None:
    """Обновить name/description/shop_name. Остальные поля неизменяемы."""
    allowed = {k: v for k, v in fields.items() if k in ("name", "description", "shop_name")}
    if not allowed:
        return
    assignments = ", ".join(f"{k} = ?" for k in allowed)
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        await db.execute(
            f"UPDATE bots SET {assignments} WHERE id = ?",
            (*allowed.values(), bot_id),
        )
        await db.commit()


async def delete_bot(bot_id: int) -> None:
    """Удалить бота вместе с его товарами."""
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        await db.execute("DELETE FROM products WHERE bot_id = ?", (bot_id,))
        await db.execute("DELETE FROM bots WHERE id = ?", (bot_id,))
        await db.commit()
