"""DTOs for the Conversation feature."""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from api.features.conversation.models import ConversationModel, MessageModel
from api.shared.dtos import BaseDTO


class HistoryItemDTO(BaseDTO):
    """One message as returned to clients."""

    role: str = Field(description="Message role: user, assistant or system")
    content: str = Field(description="Message content")
    created_at: Optional[datetime] = Field(
        default=None, description="Creation timestamp, null for unsaved turns"
    )

    @classmethod
    def from_model(cls, model: MessageModel) -> "HistoryItemDTO":
        return cls(role=model.role.value, content=model.content, created_at=model.created_at)


class ConversationSummaryDTO(BaseDTO):
    """Conversation entry in listings."""

    id: str = Field(description="Conversation identifier")
    title: Optional[str] = Field(default=None, description="Conversation title")
    created_at: datetime = Field(description="Creation timestamp")

    @classmethod
    def from_model(cls, model: ConversationModel) -> "ConversationSummaryDTO":
        return cls(id=model.id, title=model.title, created_at=model.created_at)


class ConversationListResponse(BaseDTO):
    conversations: List[ConversationSummaryDTO] = Field(
        default_factory=list, description="Conversations, newest first"
    )


class HistoryResponse(BaseDTO):
    conversation_id: str = Field(alias="conversationId")
    history: List[HistoryItemDTO] = Field(
        default_factory=list, description="Messages in chronological order"
    )


class CreateConversationRequest(BaseDTO):
    user_id: Optional[str] = Field(default=None, alias="userId")
    title: Optional[str] = Field(default=None, description="Conversation title")


class CreateConversationResponse(BaseDTO):
    conversation_id: str = Field(alias="conversationId")
