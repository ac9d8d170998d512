"""
Каталог товаров бота: только доступ к данным и фильтрованные выборки.
"""

from decimal import Decimal
from typing import Optional

import aiosqlite

from config import SQLITE_DB_PATH
from db.models import Product

_COLUMNS = "id, bot_id, name, price, description, catalog, subcategory, image_url, in_stock"


def _row_to_product(row) -> Product:
    return Product(
        id=row["id"],
        bot_id=row["bot_id"],
        name=row["name"],
        price=Decimal(row["price"]),
        description=row["description"] or "",
        catalog=row["catalog"] or "",
        subcategory=row["subcategory"] or "",
        image_url=row["image_url"],
        in_stock=bool(row["in_stock"]),
    )


async def _fetch_all(where: str, params: tuple) -> list[Product]:
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            f"SELECT {_COLUMNS} FROM products WHERE {where} ORDER BY id",
            params,
        )
        return [_row_to_product(r) for r in await cursor.fetchall()]


async def get_products_by_bot(bot_id: int) -> list[Product]:
    return await _fetch_all("bot_id = ?", (bot_id,))


async def get_products_by_catalog(bot_id: int, catalog: str) -> list[Product]:
    return await _fetch_all("bot_id = ? AND catalog = ?", (bot_id, catalog))


async def get_products_by_subcategory(bot_id: int, subcategory: str) -> list[Product]:
    return await _fetch_all("bot_id = ? AND subcategory = ?", (bot_id, subcategory))


async def get_product(product_id: int) -> Optional[Product]:
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(f"SELECT {_COLUMNS} FROM products WHERE id = ?", (product_id,))
        row = await cursor.fetchone()
        return _row_to_product(row) if row else None


async def create_product(
    bot_id: int,
    name: str,
    price: Decimal,
    description: str = "",
    catalog: str = "",
    subcategory: str = "",
    image_url: Optional[str] = None,
    in_stock: bool = True,
) -> Product:
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        cursor = await db.execute(
            """
            INSERT INTO products (bot_id, name, price, description, catalog, subcategory, image_url, in_stock)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (bot_id, name, str(price), description, catalog, subcategory, image_url, int(in_stock)),
        )
        await db.commit()
        product_id = cursor.lastrowid
    return Product(
        id=product_id,
        bot_id=bot_id,
        name=name,
        price=Decimal(str(price)),
        description=description,
        catalog=catalog,
        subcategory=subcategory,
        image_url=image_url,
        in_stock=in_stock,
    )


async def update_product(product_id: int, **fields) -> Optional[Product]:
    """Частичное обновление. None-значения игнорируются."""
    allowed = ("name", "price", "description", "catalog", "subcategory", "image_url", "in_stock")
    values = {k: v for k, v in fields.items() if k in allowed and v is not None}
    if "price" in values:
        values["price"] = str(values["price"])
    if "in_stock" in values:
        values["in_stock"] = int(values["in_stock"])
    if values:
        assignments = ", ".join(f"{k} = ?" for k in values)
        async with aiosqlite.connect(SQLITE_DB_PATH) as db:
            await db.execute(
                f"UPDATE products SET {assignments} WHERE id = ?",
                (*values.values(), product_id),
            )
            await db.commit()
    return await get_product(product_id)


async def delete_product(product_id: int) -> None:
    async with aiosqlite.connect(SQLITE_DB_PATH) as db:
        await db.execute("DELETE FROM products WHERE id = ?", (product_id,))
        await db.commit()


def distinct_values(values) -> list[str]:
    """Уникальные непустые значения в порядке первого появления."""
    seen: set[str] = set()
    result = []
    for v in values:
        if not v or not v.strip() or v in seen:
            continue
        seen.add(v)
        result.append(v)
    return result


async def get_catalog_names(bot_id: int) -> list[str]:
    products = await get_products_by_bot(bot_id)
    return distinct_values(p.catalog for p in products)


async def get_subcategory_names(bot_id: int, catalog: str) -> list[str]:
    products = await get_products_by_catalog(bot_id, catalog)
    return distinct_values(p.subcategory for p in products)
