"""Database entities for conversations and their messages."""
from api.features.conversation.entities.conversation import (
    Conversation,
    Message,
    MessageRole,
)

__all__ = ["Conversation", "Message", "MessageRole"]
