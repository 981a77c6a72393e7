"""DTOs for the Chat feature."""
from typing import List, Optional

from pydantic import Field

from api.features.conversation.dtos import ConversationSummaryDTO, HistoryItemDTO
from api.shared.dtos import BaseDTO

CREATE_ACTION = "create"


class ChatRequest(BaseDTO):
    """POST body. Every field is optional at parse time; the flow validates."""

    user_id: Optional[str] = Field(default=None, alias="userId")
    message: Optional[str] = Field(default=None, description="User message")
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    action: Optional[str] = Field(default=None, description="'create' to start a conversation")
    title: Optional[str] = Field(default=None, description="Title for action 'create'")

    @property
    def is_create(self) -> bool:
        return (self.action or "").strip().lower() == CREATE_ACTION


class ChatReplyResponse(BaseDTO):
    conversation_id: Optional[str] = Field(alias="conversationId")
    reply: str
    history: List[HistoryItemDTO] = Field(default_factory=list)
    conversations: Optional[List[ConversationSummaryDTO]] = None


class ChatCreatedResponse(BaseDTO):
    conversation_id: str = Field(alias="conversationId")
    conversations: List[ConversationSummaryDTO] = Field(default_factory=list)
    history: List[HistoryItemDTO] = Field(default_factory=list)
