"""Tests for chat turn orchestration."""
import pytest

from api.features.chat.service import ChatService
from api.features.conversation.entities.conversation import MessageRole
from api.features.conversation.service import ConversationService
from api.shared.exceptions import CompletionEngineError, StoreError, ValidationError


async def test_first_message_creates_conversation_and_persists_both_turns(
    chat_service, store, engine
):
    result = await chat_service.send_message(store, owner_id="u1", message="Hej")

    assert len(store.conversations) == 1
    assert result.conversation_id == store.conversations[0].id
    assert engine.calls == [
        [("system", "You are a helpful assistant."), ("user", "Hej")]
    ]
    assert [(m.role, m.content) for m in result.history] == [
        (MessageRole.USER, "Hej"),
        (MessageRole.ASSISTANT, "Hej! Hur kan jag hjälpa dig?"),
    ]
    assert result.reply == "Hej! Hur kan jag hjälpa dig?"


async def test_new_conversation_is_titled_from_first_message(chat_service, store):
    await chat_service.send_message(store, owner_id="u1", message="Hur säger jag upp mitt hyresavtal?")

    assert store.conversations[0].title == "Hur säger jag upp mitt hyresavtal?"


async def test_follow_up_reuses_conversation(chat_service, store, engine):
    first = await chat_service.send_message(store, owner_id="u1", message="Hej")
    second = await chat_service.send_message(store, owner_id="u1", message="Tack")

    assert second.conversation_id == first.conversation_id
    assert len(store.conversations) == 1
    assert [role for role, _ in engine.calls[1]] == [
        "system",
        "user",
        "assistant",
        "user",
    ]
    assert len(second.history) == 4


async def test_context_never_exceeds_window_plus_system(chat_service, store, engine):
    conv = await store.create_conversation("u1")
    for i in range(40):
        role = MessageRole.USER if i % 2 == 0 else MessageRole.ASSISTANT
        await store.append_message(conv.id, role, f"old {i}")

    result = await chat_service.send_message(
        store, owner_id="u1", message="latest", conversation_id=conv.id
    )

    sent = engine.calls[0]
    assert len(sent) == 31
    assert len(result.context) == len(sent)
    assert sent[0][0] == "system"
    assert sent[-1] == ("user", "latest")
    assert sent[1] == ("assistant", "old 11")
    # History is not windowed unless configured
    assert len(result.history) == 42


async def test_history_is_non_decreasing_by_creation_time(chat_service, store):
    for text in ["a", "b", "c"]:
        result = await chat_service.send_message(store, owner_id="u1", message=text)

    stamps = [m.created_at for m in result.history]
    assert stamps == sorted(stamps)


async def test_blank_reply_is_replaced_by_fallback(chat_service, store, engine):
    engine.reply = "   "

    result = await chat_service.send_message(store, owner_id="u1", message="Hej")

    assert result.reply == "Inget svar från AI:n"
    assert result.history[-1].content == "Inget svar från AI:n"


async def test_missing_reply_is_replaced_by_fallback(chat_service, store, engine):
    engine.reply = None

    result = await chat_service.send_message(store, owner_id="u1", message="Hej")

    assert result.reply == "Inget svar från AI:n"


async def test_engine_failure_keeps_user_turn(chat_service, store, engine):
    engine.fail_with()

    with pytest.raises(CompletionEngineError):
        await chat_service.send_message(store, owner_id="u1", message="Hej")

    conv_id = store.conversations[0].id
    assert [(m.role, m.content) for m in store.messages_for(conv_id)] == [
        (MessageRole.USER, "Hej")
    ]


async def test_store_failure_before_generation_skips_engine(chat_service, store, engine):
    conv = await store.create_conversation("u1")
    store.fail_writes = True

    with pytest.raises(StoreError):
        await chat_service.send_message(
            store, owner_id="u1", message="Hej", conversation_id=conv.id
        )
    assert engine.calls == []


async def test_anonymous_turn_never_touches_store(chat_service, store, engine):
    result = await chat_service.send_message(store, owner_id=None, message="Hej")

    assert store.writes == 0
    assert store.reads == 0
    assert result.conversation_id is None
    assert result.anonymous
    assert engine.calls == [
        [("system", "You are a helpful assistant."), ("user", "Hej")]
    ]
    assert [m.content for m in result.history] == ["Hej", result.reply]


async def test_anonymous_turn_ignores_supplied_conversation_id(chat_service, store, engine):
    result = await chat_service.send_message(
        store,
        owner_id="",
        message="Hej",
        conversation_id="3f1c2a8e-8d8a-4bfb-9c55-0f6c1f1e2a10",
    )

    assert result.conversation_id is None
    assert store.writes == 0


async def test_anonymous_mode_can_be_disabled(chat_settings, store, engine):
    settings = chat_settings.model_copy(update={"ANONYMOUS_MODE_ENABLED": False})
    service = ChatService(ConversationService(settings), engine, settings)

    with pytest.raises(ValidationError):
        await service.send_message(store, owner_id=None, message="Hej")
    assert engine.calls == []


@pytest.mark.parametrize("message", [None, "", "   "])
async def test_blank_message_is_rejected(chat_service, store, engine, message):
    with pytest.raises(ValidationError):
        await chat_service.send_message(store, owner_id="u1", message=message)

    assert store.writes == 0
    assert engine.calls == []


async def test_conversations_are_returned_newest_first(chat_service, store):
    older = await store.create_conversation("u1")
    newer = await store.create_conversation("u1")

    result = await chat_service.send_message(store, owner_id="u1", message="Hej")

    assert result.conversation_id == newer.id
    assert [c.id for c in result.conversations] == [newer.id, older.id]


async def test_conversations_omitted_when_disabled(chat_settings, store, engine):
    settings = chat_settings.model_copy(update={"RETURN_CONVERSATIONS": False})
    service = ChatService(ConversationService(settings), engine, settings)

    result = await service.send_message(store, owner_id="u1", message="Hej")

    assert result.conversations is None


async def test_history_limit_windows_the_response(chat_settings, store, engine):
    settings = chat_settings.model_copy(update={"HISTORY_LIMIT": 2})
    service = ChatService(ConversationService(settings), engine, settings)

    await service.send_message(store, owner_id="u1", message="one")
    result = await service.send_message(store, owner_id="u1", message="two")

    assert [m.content for m in result.history] == ["two", engine.reply]
