"""Conversation persistence.

``ConversationStore`` is the contract the chat flow depends on;
``ConversationRepository`` implements it over an SQLAlchemy ``AsyncSession``.
Every write commits immediately so a user turn survives a failed completion.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from api.features.conversation.entities.conversation import (
    Conversation,
    Message,
    MessageRole,
)
from api.features.conversation.models import ConversationModel, MessageModel
from api.shared.base import BaseRepository
from api.shared.exceptions import StoreError, ValidationError
from api.shared.utils import is_valid_uuid

logger = logging.getLogger("chat.conversation.repository")

# Driver-level connection failures are not always wrapped by SQLAlchemy
STORE_FAILURES = (SQLAlchemyError, OSError)


class ConversationStore(ABC):
    """Persistence operations for conversations and messages."""

    @abstractmethod
    async def create_conversation(
        self, owner_id: str, *, title: Optional[str] = None
    ) -> ConversationModel:
        """Create a conversation for ``owner_id``."""

    @abstractmethod
    async def list_conversations(
        self, owner_id: str, *, limit: Optional[int] = None
    ) -> List[ConversationModel]:
        """List an owner's conversations, newest first."""

    async def latest_conversation(self, owner_id: str) -> Optional[ConversationModel]:
        """Most recently created conversation of ``owner_id``, if any."""
        items = await self.list_conversations(owner_id, limit=1)
        return items[0] if items else None

    @abstractmethod
    async def append_message(
        self, conversation_id: str, role: MessageRole, content: str
    ) -> MessageModel:
        """Append an immutable message to a conversation."""

    @abstractmethod
    async def list_messages(
        self, conversation_id: str, *, limit: Optional[int] = None
    ) -> List[MessageModel]:
        """Messages in chronological order.

        With ``limit`` only the most recent ``limit`` messages are returned,
        still oldest first.
        """


class ConversationRepository(BaseRepository[Conversation], ConversationStore):
    """SQLAlchemy-backed conversation store."""

    model = Conversation

    async def create_conversation(
        self, owner_id: str, *, title: Optional[str] = None
    ) -> ConversationModel:
        try:
            entity = await self.create(Conversation(user_id=owner_id, title=title))
            await self.session.commit()
        except STORE_FAILURES as e:
            await self._rollback()
            raise StoreError(
                f"Failed to create conversation: {e}", {"owner_id": owner_id}
            ) from e
        logger.info(f"Conversation created: {entity.id} for owner {owner_id}")
        return ConversationModel.from_entity(entity)

    async def list_conversations(
        self, owner_id: str, *, limit: Optional[int] = None
    ) -> List[ConversationModel]:
        stmt = (
            select(Conversation)
            .where(Conversation.user_id == owner_id)
            .order_by(Conversation.created_at.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        try:
            result = await self.session.execute(stmt)
        except STORE_FAILURES as e:
            raise StoreError(
                f"Failed to list conversations: {e}", {"owner_id": owner_id}
            ) from e
        return [ConversationModel.from_entity(c) for c in result.scalars().all()]

    async def append_message(
        self, conversation_id: str, role: MessageRole, content: str
    ) -> MessageModel:
        self._check_id(conversation_id)
        message = Message(
            conversation_id=conversation_id, role=MessageRole(role).value, content=content
        )
        try:
            self.session.add(message)
            # updated_at tracks the last activity on the conversation
            await self.session.execute(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values(updated_at=func.now())
            )
            await self.session.flush()
            await self.session.refresh(message)
            await self.session.commit()
        except STORE_FAILURES as e:
            await self._rollback()
            raise StoreError(
                f"Failed to append {MessageRole(role).value} message: {e}",
                {"conversation_id": conversation_id},
            ) from e
        return MessageModel.from_entity(message)

    async def list_messages(
        self, conversation_id: str, *, limit: Optional[int] = None
    ) -> List[MessageModel]:
        self._check_id(conversation_id)
        stmt = select(Message).where(Message.conversation_id == conversation_id)
        if limit:
            stmt = stmt.order_by(Message.created_at.desc(), Message.seq.desc()).limit(limit)
        else:
            stmt = stmt.order_by(Message.created_at.asc(), Message.seq.asc())
        try:
            result = await self.session.execute(stmt)
        except STORE_FAILURES as e:
            raise StoreError(
                f"Failed to load messages: {e}", {"conversation_id": conversation_id}
            ) from e
        rows = [MessageModel.from_entity(m) for m in result.scalars().all()]
        # Windowed reads come back newest first
        return list(reversed(rows)) if limit else rows

    def _check_id(self, conversation_id: str) -> None:
        if not is_valid_uuid(conversation_id):
            raise ValidationError(
                "conversationId is not a valid identifier",
                {"conversation_id": conversation_id},
            )

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")
