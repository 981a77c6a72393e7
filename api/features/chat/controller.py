"""Controller for the Chat feature.

Maps query/body parameters onto the conversation and chat services and
shapes the wire responses. Errors propagate as ``ChatRelayException``.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from api.features.chat.dtos import ChatCreatedResponse, ChatReplyResponse, ChatRequest
from api.features.chat.service import ChatService
from api.features.conversation.dtos import (
    ConversationListResponse,
    ConversationSummaryDTO,
    HistoryItemDTO,
    HistoryResponse,
)
from api.features.conversation.models import ConversationModel
from api.features.conversation.repository import ConversationStore
from api.features.conversation.service import ConversationService
from api.shared.exceptions import ValidationError
from api.shared.utils import is_blank

logger = logging.getLogger("chat.chat.controller")


def _summaries(items: List[ConversationModel]) -> List[ConversationSummaryDTO]:
    return [ConversationSummaryDTO.from_model(c) for c in items]


class ChatController:
    """Dispatches the chat endpoint's GET and POST variants."""

    def __init__(
        self, chat_service: ChatService, conversation_service: ConversationService
    ):
        self.chat_service = chat_service
        self.conversation_service = conversation_service

    async def get(
        self,
        store: ConversationStore,
        *,
        user_id: Optional[str],
        conversation_id: Optional[str],
        list_only: bool,
    ) -> Dict[str, Any]:
        if list_only and not is_blank(user_id):
            items = await self.conversation_service.list_conversations(
                store, owner_id=user_id
            )
            return ConversationListResponse(conversations=_summaries(items)).to_wire()

        if not is_blank(conversation_id) and not self.conversation_service.is_ephemeral(
            conversation_id
        ):
            resolved = conversation_id
        elif not is_blank(user_id):
            resolved = await self.conversation_service.resolve_conversation(
                store, owner_id=user_id
            )
        else:
            raise ValidationError("userId is required")

        history = await self.conversation_service.get_history(
            store, conversation_id=resolved
        )
        return HistoryResponse(
            conversation_id=resolved,
            history=[HistoryItemDTO.from_model(m) for m in history],
        ).to_wire()

    async def post(
        self, store: ConversationStore, request: ChatRequest
    ) -> Tuple[int, Dict[str, Any]]:
        if request.is_create:
            return 201, await self._create(store, request)

        result = await self.chat_service.send_message(
            store,
            message=request.message,
            owner_id=request.user_id,
            conversation_id=request.conversation_id,
        )
        response = ChatReplyResponse(
            conversation_id=result.conversation_id,
            reply=result.reply,
            history=[HistoryItemDTO.from_model(m) for m in result.history],
            conversations=(
                _summaries(result.conversations)
                if result.conversations is not None
                else None
            ),
        )
        body = response.to_wire()
        if response.conversations is None:
            body.pop("conversations", None)
        return 200, body

    async def _create(self, store: ConversationStore, request: ChatRequest) -> Dict[str, Any]:
        created = await self.conversation_service.create_conversation(
            store, owner_id=request.user_id, title=request.title
        )
        items = await self.conversation_service.list_conversations(
            store, owner_id=request.user_id
        )
        logger.info(f"Conversation {created.id} created via action")
        return ChatCreatedResponse(
            conversation_id=created.id, conversations=_summaries(items), history=[]
        ).to_wire()
