"""Tests for conversation resolution."""
import pytest

from api.shared.exceptions import StoreUnavailableError, ValidationError


class TestResolveConversation:
    async def test_creates_exactly_one_conversation_for_new_owner(
        self, conversation_service, store
    ):
        conv_id = await conversation_service.resolve_conversation(store, owner_id="u1")

        assert len(store.conversations) == 1
        assert store.conversations[0].id == conv_id
        assert store.conversations[0].user_id == "u1"

    async def test_reuses_latest_conversation(self, conversation_service, store):
        older = await store.create_conversation("u1")
        newer = await store.create_conversation("u1")

        conv_id = await conversation_service.resolve_conversation(store, owner_id="u1")

        assert conv_id == newer.id
        assert conv_id != older.id
        assert len(store.conversations) == 2

    async def test_supplied_id_is_used_without_store_access(
        self, conversation_service, store
    ):
        conv_id = await conversation_service.resolve_conversation(
            store, owner_id="u1", supplied_id="3f1c2a8e-8d8a-4bfb-9c55-0f6c1f1e2a10"
        )

        assert conv_id == "3f1c2a8e-8d8a-4bfb-9c55-0f6c1f1e2a10"
        assert store.reads == 0
        assert store.writes == 0

    @pytest.mark.parametrize("placeholder", ["temp-123", "tmp_abc", "local:1", "NEW-chat"])
    async def test_ephemeral_marker_falls_back_to_owner_lookup(
        self, conversation_service, store, placeholder
    ):
        existing = await store.create_conversation("u1")

        conv_id = await conversation_service.resolve_conversation(
            store, owner_id="u1", supplied_id=placeholder
        )

        assert conv_id == existing.id

    async def test_title_is_used_when_creating(self, conversation_service, store):
        await conversation_service.resolve_conversation(
            store, owner_id="u1", title="Hyresavtal"
        )

        assert store.conversations[0].title == "Hyresavtal"

    async def test_store_failure_raises_store_unavailable(
        self, conversation_service, store
    ):
        store.fail_reads = True

        with pytest.raises(StoreUnavailableError):
            await conversation_service.resolve_conversation(store, owner_id="u1")

    async def test_create_failure_raises_store_unavailable(
        self, conversation_service, store
    ):
        store.fail_writes = True

        with pytest.raises(StoreUnavailableError):
            await conversation_service.resolve_conversation(store, owner_id="u1")
        assert store.conversations == []

    async def test_blank_owner_is_rejected(self, conversation_service, store):
        with pytest.raises(ValidationError):
            await conversation_service.resolve_conversation(store, owner_id="  ")


def test_title_from_message_is_truncated(conversation_service):
    title = conversation_service.title_from_message("word " * 50)

    assert len(title) == 80
    assert title.endswith("...")


def test_title_from_message_collapses_whitespace(conversation_service):
    assert conversation_service.title_from_message("Hej\n  där") == "Hej där"
    assert conversation_service.title_from_message("   ") is None


async def test_history_respects_explicit_limit(conversation_service, store):
    conv = await store.create_conversation("u1")
    for i in range(5):
        await store.append_message(conv.id, "user", f"m{i}")

    history = await conversation_service.get_history(
        store, conversation_id=conv.id, limit=2
    )

    assert [m.content for m in history] == ["m3", "m4"]
