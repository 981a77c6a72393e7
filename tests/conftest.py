"""Shared fixtures: in-memory conversation store and scripted completion engine."""
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple
from uuid import uuid4

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from api.features.chat.service import ChatService
from api.features.conversation.entities.conversation import MessageRole
from api.features.conversation.models import ConversationModel, MessageModel
from api.features.conversation.repository import ConversationStore
from api.features.conversation.service import ConversationService
from api.shared.exceptions import CompletionEngineError, StoreError
from core.settings import ChatSettings
from infra.completion import CompletionEngine


class InMemoryConversationStore(ConversationStore):
    """ConversationStore kept in lists, with a strictly increasing clock."""

    def __init__(self):
        self.conversations: List[ConversationModel] = []
        self.messages: List[MessageModel] = []
        self.writes = 0
        self.reads = 0
        self.fail_writes = False
        self.fail_reads = False
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _write(self) -> None:
        if self.fail_writes:
            raise StoreError("store is down")
        self.writes += 1

    def _read(self) -> None:
        if self.fail_reads:
            raise StoreError("store is down")
        self.reads += 1

    async def create_conversation(
        self, owner_id: str, *, title: Optional[str] = None
    ) -> ConversationModel:
        self._write()
        conv = ConversationModel(
            id=str(uuid4()), user_id=owner_id, title=title, created_at=self._tick()
        )
        self.conversations.append(conv)
        return conv

    async def list_conversations(
        self, owner_id: str, *, limit: Optional[int] = None
    ) -> List[ConversationModel]:
        self._read()
        owned = [c for c in self.conversations if c.user_id == owner_id]
        owned.sort(key=lambda c: c.created_at, reverse=True)
        return owned[:limit] if limit else owned

    async def append_message(
        self, conversation_id: str, role: MessageRole, content: str
    ) -> MessageModel:
        self._write()
        msg = MessageModel(
            id=str(uuid4()),
            conversation_id=conversation_id,
            role=role,
            content=content,
            created_at=self._tick(),
        )
        self.messages.append(msg)
        return msg

    async def list_messages(
        self, conversation_id: str, *, limit: Optional[int] = None
    ) -> List[MessageModel]:
        self._read()
        rows = [m for m in self.messages if m.conversation_id == conversation_id]
        rows.sort(key=lambda m: m.created_at)
        return rows[-limit:] if limit else rows

    def messages_for(self, conversation_id: str) -> List[MessageModel]:
        return [m for m in self.messages if m.conversation_id == conversation_id]


class FakeCompletionEngine(CompletionEngine):
    """Returns a fixed reply and records every request."""

    model = "fake-model"

    def __init__(self, reply: Optional[str] = "Hej! Hur kan jag hjälpa dig?"):
        self.reply = reply
        self.error: Optional[Exception] = None
        self.calls: List[List[Tuple[str, str]]] = []

    async def complete(self, messages: Sequence[Tuple[str, str]]) -> Optional[str]:
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        return self.reply

    def fail_with(self, message: str = "upstream timeout") -> None:
        self.error = CompletionEngineError(self.model, message)


@pytest.fixture
def chat_settings() -> ChatSettings:
    return ChatSettings(
        SYSTEM_PROMPT="You are a helpful assistant.",
        CONTEXT_WINDOW=30,
        FALLBACK_REPLY="Inget svar från AI:n",
    )


@pytest.fixture
def store() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest.fixture
def engine() -> FakeCompletionEngine:
    return FakeCompletionEngine()


@pytest.fixture
def conversation_service(chat_settings) -> ConversationService:
    return ConversationService(chat_settings)


@pytest.fixture
def chat_service(conversation_service, engine, chat_settings) -> ChatService:
    return ChatService(conversation_service, engine, chat_settings)


@pytest.fixture
def client(store, engine):
    from api.features.conversation.dependencies import get_conversation_store
    from api.main import app

    app.dependency_overrides[get_conversation_store] = lambda: store
    with app.container.infrastructure.completion_engine.override(
        providers.Object(engine)
    ):
        yield TestClient(app)
    app.dependency_overrides.clear()
