"""Context window construction for the completion engine.

The window is the system instruction followed by at most ``window`` stored
messages, oldest first. Anything older is dropped, not summarised.
"""
from __future__ import annotations

from typing import List, Sequence

from api.features.conversation.entities.conversation import MessageRole
from api.features.conversation.models import ChatTurn, MessageModel


def build_context(
    *,
    system_prompt: str,
    messages: Sequence[MessageModel],
    window: int,
) -> List[ChatTurn]:
    recent = list(messages)[-window:] if window > 0 else []
    turns = [ChatTurn(role=MessageRole.SYSTEM, content=system_prompt)]
    turns.extend(m.to_turn() for m in recent)
    return turns


def build_anonymous_context(*, system_prompt: str, message: str) -> List[ChatTurn]:
    """Single-turn context used when nothing is persisted."""
    return [
        ChatTurn(role=MessageRole.SYSTEM, content=system_prompt),
        ChatTurn(role=MessageRole.USER, content=message),
    ]
