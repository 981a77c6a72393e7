"""Domain models for the Conversation feature."""
from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from api.features.conversation.entities.conversation import (
    Conversation as ConversationEntity,
    Message as MessageEntity,
    MessageRole,
)


class ChatTurn(BaseModel):
    """A (role, content) pair as sent to the completion engine."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str


class ConversationModel(BaseModel):
    """Domain model for Conversation."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Conversation identifier")
    user_id: str = Field(description="Owner identifier")
    title: Optional[str] = Field(default=None, description="Conversation title")
    created_at: datetime = Field(description="Creation timestamp")

    @classmethod
    def from_entity(cls, entity: ConversationEntity) -> "ConversationModel":
        return cls(
            id=str(entity.id),
            user_id=entity.user_id,
            title=entity.title,
            created_at=entity.created_at,
        )


class MessageModel(BaseModel):
    """Domain model for a chat message."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Message identifier")
    conversation_id: Optional[str] = Field(
        default=None, description="Owning conversation, absent for unsaved turns"
    )
    role: MessageRole = Field(description="Message role")
    content: str = Field(description="Message content")
    created_at: Optional[datetime] = Field(
        default=None, description="Creation timestamp, absent for unsaved turns"
    )

    @classmethod
    def from_entity(cls, entity: MessageEntity) -> "MessageModel":
        return cls(
            id=str(entity.id),
            conversation_id=str(entity.conversation_id),
            role=MessageRole(entity.role),
            content=entity.content,
            created_at=entity.created_at,
        )

    @classmethod
    def transient(cls, role: MessageRole, content: str) -> "MessageModel":
        """Build an unsaved message, used when nothing is persisted."""
        return cls(id=str(uuid4()), role=role, content=content)

    def to_turn(self) -> ChatTurn:
        return ChatTurn(role=self.role, content=self.content)
