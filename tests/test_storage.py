"""
Tests for the SQLite stores: conversation log, bots, products, token usage.
"""

import sqlite3
from decimal import Decimal

import pytest

from db import bots, conversations, products, usage
from db.models import Role, Turn, UsageRecord


# ── Conversations ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_user_and_assistant_turns_are_two_most_recent(db_path):
    await conversations.save_message("shopbot", 42, Role.USER, "Есть кружки?")
    await conversations.save_message("shopbot", 42, Role.ASSISTANT, "Да, Mug за 9.99")

    history = await conversations.get_conversation_history("shopbot", 42)

    assert history == [
        Turn(Role.USER, "Есть кружки?"),
        Turn(Role.ASSISTANT, "Да, Mug за 9.99"),
    ]


@pytest.mark.asyncio
async def test_history_is_limited_to_latest_turns_in_chronological_order(db_path):
    for i in range(35):
        role = Role.USER if i % 2 == 0 else Role.ASSISTANT
        await conversations.save_message("shopbot", 1, role, f"msg {i}")

    history = await conversations.get_conversation_history("shopbot", 1, limit=30)

    assert len(history) == 30
    assert history[0].content == "msg 5"
    assert history[-1].content == "msg 34"


@pytest.mark.asyncio
async def test_history_is_isolated_per_bot_and_chat(db_path):
    await conversations.save_message("shopbot", 1, Role.USER, "bot A chat 1")
    await conversations.save_message("shopbot", 2, Role.USER, "bot A chat 2")
    await conversations.save_message("otherbot", 1, Role.USER, "bot B chat 1")

    history = await conversations.get_conversation_history("shopbot", 1)

    assert [t.content for t in history] == ["bot A chat 1"]


@pytest.mark.asyncio
async def test_unknown_chat_has_empty_history(db_path):
    assert await conversations.get_conversation_history("shopbot", 999) == []


@pytest.mark.asyncio
async def test_message_and_dialogue_counts(db_path):
    await conversations.save_message("shopbot", 1, Role.USER, "a")
    await conversations.save_message("shopbot", 1, Role.ASSISTANT, "b")
    await conversations.save_message("shopbot", 2, Role.USER, "c")
    await conversations.save_message("otherbot", 3, Role.USER, "d")

    assert await conversations.count_messages("shopbot") == 3
    assert await conversations.count_dialogues("shopbot") == 2


# ── Bots ─────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_bot_lookups(make_bot):
    bot = await make_bot(shop_name="Кружки и точка")

    assert await bots.get_bot_by_identifier("shopbot") == bot
    assert await bots.get_bot_by_token(bot.access_token) == bot
    assert await bots.get_bot_by_platform_id(bot.platform_api_id) == bot
    assert await bots.get_bot_by_identifier("missing") is None
    assert bot.display_shop_name == "Кружки и точка"


@pytest.mark.asyncio
async def test_display_shop_name_falls_back_to_bot_name(make_bot):
    bot = await make_bot(name="Mugs")
    assert bot.display_shop_name == "Mugs"


@pytest.mark.asyncio
async def test_duplicate_identifier_is_rejected(make_bot):
    await make_bot(bot_identifier="shopbot")
    with pytest.raises(sqlite3.IntegrityError):
        await make_bot(bot_identifier="shopbot")


@pytest.mark.asyncio
async def test_update_bot_changes_only_mutable_fields(make_bot):
    bot = await make_bot()

    await bots.update_bot(bot.id, name="New name", shop_name="New shop", access_token="hijack")
    updated = await bots.get_bot(bot.id)

    assert updated.name == "New name"
    assert updated.shop_name == "New shop"
    assert updated.access_token == bot.access_token


@pytest.mark.asyncio
async def test_delete_bot_removes_its_products(make_bot, make_product):
    bot = await make_bot()
    await make_product(bot.id, "Mug")

    await bots.delete_bot(bot.id)

    assert await bots.get_bot(bot.id) is None
    assert await products.get_products_by_bot(bot.id) == []


@pytest.mark.asyncio
async def test_list_bots_by_owner(make_bot):
    mine = await make_bot(owner_id=7)
    await make_bot(owner_id=8)

    assert await bots.list_bots_by_owner(7) == [mine]


# ── Products ─────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_product_price_keeps_decimal_precision(make_bot, make_product):
    bot = await make_bot()
    created = await make_product(bot.id, "Mug", price="9.99")

    loaded = await products.get_product(created.id)

    assert loaded.price == Decimal("9.99")
    assert loaded == created


@pytest.mark.asyncio
async def test_catalog_and_subcategory_names_are_distinct_in_first_seen_order(make_bot, make_product):
    bot = await make_bot()
    await make_product(bot.id, "iPhone 15", catalog="Electronics", subcategory="Phones")
    await make_product(bot.id, "MacBook", catalog="Electronics", subcategory="Laptops")
    await make_product(bot.id, "Pixel", catalog="Electronics", subcategory="Phones")
    await make_product(bot.id, "Mug", catalog="Home", subcategory="Kitchen")
    await make_product(bot.id, "Loose item")

    assert await products.get_catalog_names(bot.id) == ["Electronics", "Home"]
    assert await products.get_subcategory_names(bot.id, "Electronics") == ["Phones", "Laptops"]


@pytest.mark.asyncio
async def test_products_are_scoped_to_their_bot(make_bot, make_product):
    shop = await make_bot()
    other = await make_bot()
    await make_product(shop.id, "Mug")
    await make_product(other.id, "Teapot")

    names = [p.name for p in await products.get_products_by_bot(shop.id)]

    assert names == ["Mug"]


@pytest.mark.asyncio
async def test_update_product_ignores_none_values(make_bot, make_product):
    bot = await make_bot()
    product = await make_product(bot.id, "Mug", description="Белая")

    updated = await products.update_product(product.id, price=Decimal("12.50"), description=None, in_stock=False)

    assert updated.price == Decimal("12.50")
    assert updated.description == "Белая"
    assert updated.in_stock is False


def test_distinct_values_skips_blank():
    assert products.distinct_values(["A", "", "  ", None, "B", "A"]) == ["A", "B"]


# ── Token usage ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_usage_stats_aggregate_per_bot(db_path):
    for _ in range(2):
        await usage.save_usage(UsageRecord("shopbot", 1, 100, 50, 150, 0.00025, 0.135))
    await usage.save_usage(UsageRecord("otherbot", 1, 999, 999, 1998, 1.0, 540.0))

    stats = await usage.get_usage_stats("shopbot")

    assert stats["total_requests"] == 2
    assert stats["total_prompt_tokens"] == 200
    assert stats["total_completion_tokens"] == 100
    assert stats["total_cost_usd"] == pytest.approx(0.0005)
    assert stats["total_cost_local"] == pytest.approx(0.27)


@pytest.mark.asyncio
async def test_usage_stats_for_unknown_bot_are_zero(db_path):
    stats = await usage.get_usage_stats("nobody")
    assert stats["total_requests"] == 0
    assert stats["total_cost_usd"] == 0.0
