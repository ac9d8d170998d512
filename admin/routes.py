"""
API управления ботами, товарами и статистикой.
Защищено заголовком X-Api-Key (ADMIN_API_KEY), владелец передаётся в X-Owner-Id.
"""
import logging

from fastapi import APIRouter, Depends, File, Header, HTTPException, UploadFile

from admin import registration
from admin.registration import RegistrationError
from admin.schemas import (
    BotCreate,
    BotOut,
    BotStats,
    BotUpdate,
    ImportReport,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    TokenUsageStats,
    TurnOut,
)
from catalog import storage
from config import ADMIN_API_KEY
from db import bots, conversations, products, usage
from db.models import Bot, Product
from inventory import ExcelImportError, import_products

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["admin"])


async def _verify_owner(x_api_key: str = Header(...), x_owner_id: int = Header(...)) -> int:
    if not ADMIN_API_KEY or x_api_key != ADMIN_API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")
    return x_owner_id


async def _owned_bot(bot_id: int, owner_id: int) -> Bot:
    bot = await bots.get_bot(bot_id)
    if bot is None:
        raise HTTPException(status_code=404, detail="Bot not found")
    if bot.owner_id != owner_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return bot


async def _owned_product(product_id: int, owner_id: int) -> Product:
    product = await products.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    await _owned_bot(product.bot_id, owner_id)
    return product


# ── Боты ─────────────────────────────────────────────────────

@router.post("/bots", response_model=BotOut, status_code=201)
async def create_bot(data: BotCreate, owner_id: int = Depends(_verify_owner)):
    try:
        bot = await registration.register_bot(owner_id=owner_id, **data.model_dump())
    except RegistrationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return BotOut.model_validate(bot)


@router.get("/bots", response_model=list[BotOut])
async def list_bots(owner_id: int = Depends(_verify_owner)):
    return [BotOut.model_validate(b) for b in await bots.list_bots_by_owner(owner_id)]


@router.get("/bots/{bot_id}", response_model=BotOut)
async def get_bot(bot_id: int, owner_id: int = Depends(_verify_owner)):
    return BotOut.model_validate(await _owned_bot(bot_id, owner_id))


@router.patch("/bots/{bot_id}", response_model=BotOut)
async def update_bot(bot_id: int, data: BotUpdate, owner_id: int = Depends(_verify_owner)):
    bot = await _owned_bot(bot_id, owner_id)
    return BotOut.model_validate(await registration.update_bot(bot, **data.model_dump()))


@router.delete("/bots/{bot_id}")
async def delete_bot(bot_id: int, owner_id: int = Depends(_verify_owner)):
    bot = await _owned_bot(bot_id, owner_id)
    await registration.delete_bot(bot)
    return {"ok": True}


@router.get("/bots/{bot_id}/stats", response_model=BotStats)
async def get_bot_stats(bot_id: int, owner_id: int = Depends(_verify_owner)):
    bot = await _owned_bot(bot_id, owner_id)
    return await registration.bot_stats(bot)


@router.get("/bots/{bot_id}/conversations/{chat_id}", response_model=list[TurnOut])
async def get_conversation(
    bot_id: int, chat_id: int, limit: int = 100, owner_id: int = Depends(_verify_owner)
):
    bot = await _owned_bot(bot_id, owner_id)
    history = await conversations.get_conversation_history(bot.bot_identifier, chat_id, limit=limit)
    return [TurnOut(role=t.role.value, content=t.content) for t in history]


@router.get("/token-usage/stats/{bot_identifier}", response_model=TokenUsageStats)
async def get_token_usage(bot_identifier: str, owner_id: int = Depends(_verify_owner)):
    bot = await bots.get_bot_by_identifier(bot_identifier)
    if bot is None:
        raise HTTPException(status_code=404, detail="Bot not found")
    if bot.owner_id != owner_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return await usage.get_usage_stats(bot_identifier)


# ── Товары ───────────────────────────────────────────────────

@router.get("/bots/{bot_id}/products", response_model=list[ProductOut])
async def list_products(bot_id: int, owner_id: int = Depends(_verify_owner)):
    await _owned_bot(bot_id, owner_id)
    return [ProductOut.model_validate(p) for p in await products.get_products_by_bot(bot_id)]


@router.post("/bots/{bot_id}/products", response_model=ProductOut, status_code=201)
async def create_product(bot_id: int, data: ProductCreate, owner_id: int = Depends(_verify_owner)):
    await _owned_bot(bot_id, owner_id)
    product = await products.create_product(bot_id=bot_id, **data.model_dump())
    return ProductOut.model_validate(product)


@router.get("/bots/{bot_id}/products/catalogs", response_model=list[str])
async def list_catalogs(bot_id: int, owner_id: int = Depends(_verify_owner)):
    await _owned_bot(bot_id, owner_id)
    return await products.get_catalog_names(bot_id)


@router.get("/bots/{bot_id}/products/catalogs/{catalog}/subcategories", response_model=list[str])
async def list_subcategories(bot_id: int, catalog: str, owner_id: int = Depends(_verify_owner)):
    await _owned_bot(bot_id, owner_id)
    return await products.get_subcategory_names(bot_id, catalog)


@router.post("/bots/{bot_id}/products/import", response_model=ImportReport)
async def import_products_from_excel(
    bot_id: int, file: UploadFile = File(...), owner_id: int = Depends(_verify_owner)
):
    await _owned_bot(bot_id, owner_id)
    if not (file.filename or "").lower().endswith(".xlsx"):
        raise HTTPException(status_code=400, detail="Ожидается файл .xlsx")
    content = await file.read()
    try:
        result = await import_products(bot_id, content)
    except ExcelImportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return result.as_dict()


@router.get("/products/{product_id}", response_model=ProductOut)
async def get_product(product_id: int, owner_id: int = Depends(_verify_owner)):
    return ProductOut.model_validate(await _owned_product(product_id, owner_id))


@router.patch("/products/{product_id}", response_model=ProductOut)
async def update_product(product_id: int, data: ProductUpdate, owner_id: int = Depends(_verify_owner)):
    await _owned_product(product_id, owner_id)
    product = await products.update_product(product_id, **data.model_dump())
    return ProductOut.model_validate(product)


@router.delete("/products/{product_id}")
async def delete_product(product_id: int, owner_id: int = Depends(_verify_owner)):
    product = await _owned_product(product_id, owner_id)
    if product.has_image:
        await storage.delete_image(product.image_url)
    await products.delete_product(product_id)
    logger.info(f"Product {product_id} deleted from bot {product.bot_id}")
    return {"ok": True}
