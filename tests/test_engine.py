"""
Integration tests for ai.context.generate_reply.

OpenAI is mocked at ai.engine.openai_client.chat.completions.create.
DB uses a temporary SQLite file initialized with init_db().
"""

from unittest.mock import MagicMock

import httpx
import openai
import pytest

from ai import engine
from ai.context import Reply, build_messages, generate_reply
from ai.prompts import FALLBACK_REPLY
from db import conversations, usage
from db.models import Role, Turn


# ── Helpers ──────────────────────────────────────────────────────────────────


def _make_completion(content, prompt_tokens=None, completion_tokens=0):
    """Create a mock OpenAI ChatCompletion response object."""
    m = MagicMock()
    m.choices = [MagicMock()]
    m.choices[0].message.content = content
    if prompt_tokens is None:
        m.usage = None
    else:
        m.usage = MagicMock(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )
    return m


def _server_error():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    return openai.InternalServerError(
        "Internal server error",
        response=httpx.Response(500, request=request),
        body=None,
    )


async def _seed_history(bot_identifier, chat_id, n):
    for i in range(n):
        role = Role.USER if i % 2 == 0 else Role.ASSISTANT
        await conversations.save_message(bot_identifier, chat_id, role, f"msg {i}")


# ── Tests ────────────────────────────────────────────────────────────────────


def test_build_messages_order():
    messages = build_messages("SYS", [Turn(Role.USER, "a"), Turn(Role.ASSISTANT, "b")], "c")
    assert messages == [
        {"role": "system", "content": "SYS"},
        {"role": "user", "content": "a"},
        {"role": "assistant", "content": "b"},
        {"role": "user", "content": "c"},
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("stored, expected_turns", [(0, 1), (3, 4), (40, 31)])
async def test_history_is_capped_before_calling_model(make_bot, mock_openai, monkeypatch, stored, expected_turns):
    monkeypatch.setattr("ai.context.MAX_CONVERSATION_HISTORY", 30)
    bot = await make_bot()
    await _seed_history(bot.bot_identifier, 42, stored)
    mock_openai.return_value = _make_completion("Ответ")

    await generate_reply(bot, 42, "Привет")

    messages = mock_openai.call_args.kwargs["messages"]
    assert messages[0]["role"] == "system"
    assert len(messages) - 1 == expected_turns
    assert messages[-1] == {"role": "user", "content": "Привет"}
    if stored == 40:
        assert messages[1]["content"] == "msg 10"


@pytest.mark.asyncio
async def test_system_prompt_contains_catalog(make_bot, make_product, mock_openai):
    bot = await make_bot(shop_name="Кружки")
    await make_product(bot.id, "Mug", catalog="Home", subcategory="Kitchen")
    mock_openai.return_value = _make_completion("Есть Mug")

    await generate_reply(bot, 42, "Что есть?")

    system = mock_openai.call_args.kwargs["messages"][0]["content"]
    assert '"Кружки"' in system
    assert "Каталог: Home" in system
    assert "- Mug (9.99 руб.)" in system


@pytest.mark.asyncio
async def test_successful_reply_persists_user_then_assistant(make_bot, mock_openai):
    bot = await make_bot()
    mock_openai.return_value = _make_completion("Да, есть Mug")

    reply = await generate_reply(bot, 42, "Есть кружки?")

    assert reply == Reply(text="Да, есть Mug", from_model=True)
    history = await conversations.get_conversation_history(bot.bot_identifier, 42)
    assert history == [Turn(Role.USER, "Есть кружки?"), Turn(Role.ASSISTANT, "Да, есть Mug")]


@pytest.mark.asyncio
async def test_server_error_gives_fallback_and_persists_nothing(make_bot, mock_openai):
    bot = await make_bot()
    await _seed_history(bot.bot_identifier, 42, 2)
    mock_openai.side_effect = _server_error()

    reply = await generate_reply(bot, 42, "Привет")

    assert reply == Reply(text=FALLBACK_REPLY, from_model=False)
    assert len(await conversations.get_conversation_history(bot.bot_identifier, 42)) == 2
    assert (await usage.get_usage_stats(bot.bot_identifier))["total_requests"] == 0


@pytest.mark.asyncio
async def test_empty_completion_is_treated_as_error(make_bot, mock_openai):
    bot = await make_bot()
    mock_openai.return_value = _make_completion("   ")

    reply = await generate_reply(bot, 42, "Привет")

    assert reply.from_model is False
    assert await conversations.get_conversation_history(bot.bot_identifier, 42) == []


@pytest.mark.asyncio
async def test_usage_is_recorded_with_cost(make_bot, mock_openai, monkeypatch):
    monkeypatch.setattr("ai.engine.COST_PER_1K_PROMPT_TOKENS", 0.0015)
    monkeypatch.setattr("ai.engine.COST_PER_1K_COMPLETION_TOKENS", 0.002)
    monkeypatch.setattr("ai.engine.LOCAL_CURRENCY_RATE", 540.0)
    bot = await make_bot()
    mock_openai.return_value = _make_completion("Ответ", prompt_tokens=1000, completion_tokens=1000)

    await generate_reply(bot, 42, "Привет")

    stats = await usage.get_usage_stats(bot.bot_identifier)
    assert stats["total_requests"] == 1
    assert stats["total_prompt_tokens"] == 1000
    assert stats["total_cost_usd"] == pytest.approx(0.0035)
    assert stats["total_cost_local"] == pytest.approx(1.89)


def test_compute_cost(monkeypatch):
    monkeypatch.setattr("ai.engine.COST_PER_1K_PROMPT_TOKENS", 0.001)
    monkeypatch.setattr("ai.engine.COST_PER_1K_COMPLETION_TOKENS", 0.002)
    monkeypatch.setattr("ai.engine.LOCAL_CURRENCY_RATE", 500.0)

    usd, local = engine.compute_cost(engine.TokenUsage(prompt_tokens=500, completion_tokens=250, total_tokens=750))

    assert usd == pytest.approx(0.001)
    assert local == pytest.approx(0.5)


@pytest.mark.asyncio
async def test_replayed_message_appends_two_more_turns(make_bot, mock_openai):
    bot = await make_bot()
    mock_openai.return_value = _make_completion("Ответ")

    await generate_reply(bot, 42, "Привет")
    await generate_reply(bot, 42, "Привет")

    history = await conversations.get_conversation_history(bot.bot_identifier, 42)
    assert [t.role for t in history] == [Role.USER, Role.ASSISTANT, Role.USER, Role.ASSISTANT]


@pytest.mark.asyncio
async def test_complete_passes_model_settings(mock_openai):
    mock_openai.return_value = _make_completion("ok")

    result = await engine.complete([{"role": "user", "content": "hi"}], model="test-model", temperature=0.2)

    assert result.text == "ok"
    assert result.usage is None
    kwargs = mock_openai.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["temperature"] == 0.2
