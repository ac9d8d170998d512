"""
Импорт товаров из Excel (.xlsx).

Первая строка листа — заголовки. Поддерживаются английские и русские названия колонок:
  name | price | description | catalog | subcategory | image_url | in_stock
  название | цена | описание | каталог | подкатегория | изображение | в наличии

Обязательны только name и price. Пустые строки пропускаются,
строки с некорректным названием или ценой попадают в errors.
"""

import io
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional

import pandas as pd

from db import products

logger = logging.getLogger(__name__)

MIN_PRICE = Decimal("0.01")

HEADER_ALIASES = {
    "name": "name",
    "название": "name",
    "наименование": "name",
    "товар": "name",
    "price": "price",
    "цена": "price",
    "стоимость": "price",
    "description": "description",
    "описание": "description",
    "catalog": "catalog",
    "каталог": "catalog",
    "категория": "catalog",
    "subcategory": "subcategory",
    "подкатегория": "subcategory",
    "подкаталог": "subcategory",
    "image_url": "image_url",
    "image": "image_url",
    "изображение": "image_url",
    "фото": "image_url",
    "in_stock": "in_stock",
    "в наличии": "in_stock",
    "наличие": "in_stock",
}

_FALSE_VALUES = {"0", "false", "no", "нет", "-"}


class ExcelImportError(Exception):
    """Файл не читается или в нём нет обязательных колонок."""


@dataclass
class ProductRow:
    name: str
    price: Decimal
    description: str = ""
    catalog: str = ""
    subcategory: str = ""
    image_url: Optional[str] = None
    in_stock: bool = True


@dataclass
class ImportResult:
    created: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"created": self.created, "skipped": self.skipped, "errors": self.errors}


def _cell(row: pd.Series, column: str) -> str:
    if column not in row.index:
        return ""
    value = row[column]
    if value is None or pd.isna(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _parse_price(raw: str) -> Decimal:
    try:
        price = Decimal(raw.replace(" ", "").replace(",", "."))
    except InvalidOperation:
        raise ValueError(f"некорректная цена '{raw}'")
    if not price.is_finite() or price < MIN_PRICE:
        raise ValueError(f"цена должна быть не меньше {MIN_PRICE}")
    try:
        return price.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ValueError(f"слишком большая цена '{raw}'")


def _parse_in_stock(raw: str) -> bool:
    return raw.lower() not in _FALSE_VALUES if raw else True


def read_products_frame(content: bytes) -> pd.DataFrame:
    """Первый лист Excel с колонками, приведёнными к именам полей товара."""
    try:
        df = pd.read_excel(io.BytesIO(content), sheet_name=0, dtype=object)
    except Exception as e:
        raise ExcelImportError(f"Не удалось прочитать Excel файл: {e}") from e

    df = df.rename(columns=lambda c: HEADER_ALIASES.get(str(c).strip().lower(), str(c).strip().lower()))
    missing = {"name", "price"} - set(df.columns)
    if missing:
        raise ExcelImportError(f"Нет обязательных колонок: {', '.join(sorted(missing))}")
    return df.dropna(how="all")


def parse_rows(df: pd.DataFrame) -> tuple[list[ProductRow], ImportResult]:
    """Разобрать строки. Возвращает корректные товары и результат с пропусками и ошибками."""
    result = ImportResult()
    rows = []
    for index, row in df.iterrows():
        line_no = int(index) + 2  # +1 за заголовок, +1 за нумерацию с единицы
        name = _cell(row, "name")
        raw_price = _cell(row, "price")
        if not name and not raw_price:
            result.skipped += 1
            continue
        if not name:
            result.skipped += 1
            result.errors.append(f"Строка {line_no}: пустое название")
            continue
        try:
            price = _parse_price(raw_price)
        except ValueError as e:
            result.skipped += 1
            result.errors.append(f"Строка {line_no}: {e}")
            continue

        rows.append(ProductRow(
            name=name,
            price=price,
            description=_cell(row, "description"),
            catalog=_cell(row, "catalog"),
            subcategory=_cell(row, "subcategory"),
            image_url=_cell(row, "image_url") or None,
            in_stock=_parse_in_stock(_cell(row, "in_stock")),
        ))
    return rows, result


async def import_products(bot_id: int, content: bytes) -> ImportResult:
    """Создать товары бота из содержимого .xlsx файла."""
    rows, result = parse_rows(read_products_frame(content))
    for row in rows:
        await products.create_product(
            bot_id=bot_id,
            name=row.name,
            price=row.price,
            description=row.description,
            catalog=row.catalog,
            subcategory=row.subcategory,
            image_url=row.image_url,
            in_stock=row.in_stock,
        )
        result.created += 1

    logger.info(
        f"Excel import for bot {bot_id}: created={result.created}, "
        f"skipped={result.skipped}, errors={len(result.errors)}"
    )
    return result
