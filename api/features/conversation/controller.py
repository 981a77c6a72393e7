"""Controller for the Conversation feature."""
from typing import Any, Dict, Optional

from api.features.conversation.dtos import (
    ConversationListResponse,
    ConversationSummaryDTO,
    CreateConversationRequest,
    CreateConversationResponse,
    HistoryItemDTO,
    HistoryResponse,
)
from api.features.conversation.repository import ConversationStore
from api.features.conversation.service import ConversationService


class ConversationController:
    """Controller handling conversation listing, creation and history."""

    def __init__(self, conversation_service: ConversationService) -> None:
        self.conversation_service = conversation_service

    async def list_conversations(
        self, store: ConversationStore, *, user_id: Optional[str]
    ) -> Dict[str, Any]:
        items = await self.conversation_service.list_conversations(store, owner_id=user_id)
        return ConversationListResponse(
            conversations=[ConversationSummaryDTO.from_model(c) for c in items]
        ).to_wire()

    async def create_conversation(
        self, store: ConversationStore, request: CreateConversationRequest
    ) -> Dict[str, Any]:
        created = await self.conversation_service.create_conversation(
            store, owner_id=request.user_id, title=request.title
        )
        return CreateConversationResponse(conversation_id=created.id).to_wire()

    async def get_messages(
        self, store: ConversationStore, *, conversation_id: str, limit: Optional[int]
    ) -> Dict[str, Any]:
        msgs = await self.conversation_service.get_history(
            store, conversation_id=conversation_id, limit=limit
        )
        return HistoryResponse(
            conversation_id=conversation_id,
            history=[HistoryItemDTO.from_model(m) for m in msgs],
        ).to_wire()
