"""Test suite for the in-memory conversation log."""

from datetime import timedelta

import pytest

from langleo_chat.domain.models import ChatMessage, Sender, utcnow


@pytest.mark.asyncio
async def test_append_assigns_identity(log):
    record = ChatMessage(user_id="u1", text="Hello")

    stored = await log.append(record)

    assert stored.id != record.id
    assert stored.text == "Hello"
    assert stored.sender is Sender.USER
    assert stored.language == "en"
    assert await log.list_for_user("u1") == [stored]


@pytest.mark.asyncio
async def test_timestamps_never_go_backwards(log):
    future = ChatMessage(user_id="u1", text="first")
    first = await log.append(future)
    # pretend the clock moved backwards between appends
    log._messages["u1"][0] = first.model_copy(update={"created_at": utcnow() + timedelta(hours=1)})

    second = await log.append(ChatMessage(user_id="u1", text="second", sender=Sender.BOT))

    history = await log.list_for_user("u1")
    assert [m.text for m in history] == ["first", "second"]
    assert second.created_at >= history[0].created_at


@pytest.mark.asyncio
async def test_histories_are_per_user(log):
    await log.append(ChatMessage(user_id="u1", text="mine"))
    await log.append(ChatMessage(user_id="u2", text="theirs"))

    assert [m.text for m in await log.list_for_user("u1")] == ["mine"]
    assert [m.text for m in await log.list_for_user("u2")] == ["theirs"]
    assert await log.list_for_user("nobody") == []


def test_records_are_immutable():
    record = ChatMessage(user_id="u1", text="Hello")
    with pytest.raises(Exception):
        record.text = "changed"
