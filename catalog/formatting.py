"""
Форматирование каталога: группировка товаров, текст для модели, карточки товаров.
"""

from decimal import Decimal

from ai.prompts import IMAGE_MARKER
from db.models import Product

CURRENCY = "руб."
NO_CATALOG = "Без каталога"
NO_SUBCATEGORY = "Без подкаталога"
NO_DESCRIPTION = "Описание отсутствует"


def format_price(price: Decimal) -> str:
    return f"{price} {CURRENCY}"


def group_products(products: list[Product]) -> dict[str, dict[str, list[Product]]]:
    """Каталог → подкаталог → товары, в порядке первого появления.

    Пустые названия собираются под NO_CATALOG / NO_SUBCATEGORY.
    """
    grouped: dict[str, dict[str, list[Product]]] = {}
    for p in products:
        catalog = p.catalog.strip() if p.catalog and p.catalog.strip() else NO_CATALOG
        subcategory = p.subcategory.strip() if p.subcategory and p.subcategory.strip() else NO_SUBCATEGORY
        grouped.setdefault(catalog, {}).setdefault(subcategory, []).append(p)
    return grouped


def format_product_line(product: Product) -> str:
    line = f"- {product.name} ({format_price(product.price)}): {product.description or NO_DESCRIPTION}"
    if not product.in_stock:
        line += " [нет в наличии]"
    if product.has_image:
        line += f" [{IMAGE_MARKER}: {product.image_url.strip()}]"
    return line


def format_catalog_for_prompt(products: list[Product]) -> str:
    """Текст каталога для system prompt."""
    blocks = []
    for catalog, subcategories in group_products(products).items():
        lines = [f"Каталог: {catalog}"]
        for subcategory, items in subcategories.items():
            lines.append(f"  Подкаталог: {subcategory}")
            lines.extend(f"  {format_product_line(p)}" for p in items)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def format_product_card(product: Product, with_placeholder: bool = True) -> str:
    """Карточка товара для Telegram: название, цена, описание."""
    description = product.description or (NO_DESCRIPTION if with_placeholder else "")
    return f"📦 {product.name}\n💰 {format_price(product.price)}\n📝 {description}"
