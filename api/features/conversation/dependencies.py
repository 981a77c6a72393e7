"""FastAPI dependencies for conversation persistence."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversation.repository import ConversationRepository, ConversationStore
from api.shared.db import get_db_session


async def get_conversation_store(
    db_session: AsyncSession = Depends(get_db_session),
) -> ConversationStore:
    """Request-scoped store bound to the request's session."""
    return ConversationRepository(db_session)
