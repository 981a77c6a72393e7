"""Conversation resolution and history access.

Resolution maps ``(owner_id, supplied_id)`` to a definite conversation id:

- a supplied id that is not an ephemeral client placeholder is used as-is;
- otherwise the owner's most recent conversation is reused;
- otherwise exactly one new conversation is created.

Two concurrent first requests for the same owner can each create a
conversation. Nothing here guards against that.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional

from api.features.conversation.models import ConversationModel, MessageModel
from api.features.conversation.repository import ConversationStore
from api.shared.exceptions import StoreError, StoreUnavailableError, ValidationError
from api.shared.utils import is_blank, truncate_text
from core.settings import ChatSettings

logger = logging.getLogger("chat.conversation.service")


class ConversationService:
    """Owner-scoped conversation operations on top of a ``ConversationStore``."""

    def __init__(self, settings: ChatSettings):
        self.settings = settings
        self._ephemeral = re.compile(settings.EPHEMERAL_ID_PATTERN, re.IGNORECASE)

    def is_ephemeral(self, conversation_id: Optional[str]) -> bool:
        return bool(conversation_id) and bool(self._ephemeral.search(conversation_id))

    def title_from_message(self, message: Optional[str]) -> Optional[str]:
        if is_blank(message):
            return None
        first_line = " ".join(message.split())
        return truncate_text(first_line, self.settings.TITLE_MAX_LENGTH)

    async def resolve_conversation(
        self,
        store: ConversationStore,
        *,
        owner_id: str,
        supplied_id: Optional[str] = None,
        title: Optional[str] = None,
    ) -> str:
        if is_blank(owner_id):
            raise ValidationError("userId is required")

        if not is_blank(supplied_id) and not self.is_ephemeral(supplied_id):
            return supplied_id

        try:
            latest = await store.latest_conversation(owner_id)
            if latest:
                return latest.id
            created = await store.create_conversation(owner_id, title=title)
        except StoreError as e:
            logger.error(f"Conversation resolution failed for owner {owner_id}: {e.message}")
            raise StoreUnavailableError(
                "Could not resolve a conversation", {"owner_id": owner_id, **e.details}
            ) from e

        logger.info(f"Created conversation {created.id} for owner {owner_id}")
        return created.id

    async def create_conversation(
        self, store: ConversationStore, *, owner_id: str, title: Optional[str] = None
    ) -> ConversationModel:
        if is_blank(owner_id):
            raise ValidationError("userId is required")
        return await store.create_conversation(
            owner_id, title=None if is_blank(title) else title.strip()
        )

    async def list_conversations(
        self, store: ConversationStore, *, owner_id: str
    ) -> List[ConversationModel]:
        if is_blank(owner_id):
            raise ValidationError("userId is required")
        return await store.list_conversations(owner_id)

    async def get_history(
        self,
        store: ConversationStore,
        *,
        conversation_id: str,
        limit: Optional[int] = None,
    ) -> List[MessageModel]:
        """Chronological history, optionally only the newest ``limit`` rows."""
        if limit is None:
            limit = self.settings.HISTORY_LIMIT
        return await store.list_messages(conversation_id, limit=limit)
