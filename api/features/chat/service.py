"""Chat turn orchestration.

A persistent turn runs strictly in sequence:

1. resolve the conversation id
2. append the user message (so it survives a failed completion)
3. read the most recent ``CONTEXT_WINDOW`` messages
4. call the completion engine with the system instruction prepended
5. append the assistant reply
6. re-read the history for the response

Without an owner id the turn is anonymous: no store calls at all and the
engine sees only the system instruction and the current message.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from api.features.chat.context import build_anonymous_context, build_context
from api.features.conversation.entities.conversation import MessageRole
from api.features.conversation.models import ChatTurn, ConversationModel, MessageModel
from api.features.conversation.repository import ConversationStore
from api.features.conversation.service import ConversationService
from api.shared.exceptions import ValidationError
from api.shared.utils import is_blank
from core.settings import ChatSettings
from infra.completion import CompletionEngine

logger = logging.getLogger("chat.chat.service")


@dataclass
class TurnResult:
    conversation_id: Optional[str]
    reply: str
    history: List[MessageModel]
    conversations: Optional[List[ConversationModel]] = None
    context: List[ChatTurn] = field(default_factory=list)

    @property
    def anonymous(self) -> bool:
        return self.conversation_id is None


class ChatService:
    """Resolves, persists and completes chat turns."""

    def __init__(
        self,
        conversation_service: ConversationService,
        completion_engine: CompletionEngine,
        settings: ChatSettings,
    ):
        self.conversations = conversation_service
        self.engine = completion_engine
        self.settings = settings

    async def complete(self, context: Sequence[ChatTurn]) -> str:
        """Ask the engine for a reply, substituting the fallback for empty output."""
        reply = await self.engine.complete([(t.role.value, t.content) for t in context])
        if is_blank(reply):
            logger.warning("Completion engine returned no text, using fallback reply")
            return self.settings.FALLBACK_REPLY
        return reply

    async def send_message(
        self,
        store: ConversationStore,
        *,
        message: Optional[str],
        owner_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> TurnResult:
        if is_blank(message):
            raise ValidationError("message is required")

        if is_blank(owner_id):
            if not self.settings.ANONYMOUS_MODE_ENABLED:
                raise ValidationError("userId and message are required")
            return await self._anonymous_turn(message)

        return await self._persistent_turn(
            store, owner_id=owner_id, message=message, supplied_id=conversation_id
        )

    async def _anonymous_turn(self, message: str) -> TurnResult:
        context = build_anonymous_context(
            system_prompt=self.settings.SYSTEM_PROMPT, message=message
        )
        reply = await self.complete(context)
        logger.info("Anonymous turn completed")
        return TurnResult(
            conversation_id=None,
            reply=reply,
            history=[
                MessageModel.transient(MessageRole.USER, message),
                MessageModel.transient(MessageRole.ASSISTANT, reply),
            ],
            context=context,
        )

    async def _persistent_turn(
        self,
        store: ConversationStore,
        *,
        owner_id: str,
        message: str,
        supplied_id: Optional[str],
    ) -> TurnResult:
        conversation_id = await self.conversations.resolve_conversation(
            store,
            owner_id=owner_id,
            supplied_id=supplied_id,
            title=self.conversations.title_from_message(message),
        )

        await store.append_message(conversation_id, MessageRole.USER, message)

        window = await store.list_messages(
            conversation_id, limit=self.settings.CONTEXT_WINDOW
        )
        context = build_context(
            system_prompt=self.settings.SYSTEM_PROMPT,
            messages=window,
            window=self.settings.CONTEXT_WINDOW,
        )

        # An engine failure here leaves the user turn stored without a reply
        reply = await self.complete(context)
        await store.append_message(conversation_id, MessageRole.ASSISTANT, reply)

        history = await self.conversations.get_history(
            store, conversation_id=conversation_id
        )
        conversations = None
        if self.settings.RETURN_CONVERSATIONS:
            conversations = await self.conversations.list_conversations(
                store, owner_id=owner_id
            )

        logger.info(
            f"Turn completed for conversation {conversation_id}: "
            f"{len(context)} context entries, {len(history)} history rows"
        )
        return TurnResult(
            conversation_id=conversation_id,
            reply=reply,
            history=history,
            conversations=conversations,
            context=context,
        )
