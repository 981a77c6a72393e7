"""Tests for the SQLAlchemy conversation repository that need no database."""
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from api.features.conversation.entities.conversation import MessageRole
from api.features.conversation.repository import ConversationRepository
from api.shared.exceptions import StoreError, ValidationError


@pytest.fixture
def session():
    session = MagicMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


async def test_malformed_conversation_id_is_a_validation_error(session):
    repository = ConversationRepository(session)

    with pytest.raises(ValidationError):
        await repository.list_messages("temp-1")
    with pytest.raises(ValidationError):
        await repository.append_message("not-a-uuid", MessageRole.USER, "Hej")
    session.execute.assert_not_called()


async def test_database_errors_become_store_errors(session):
    session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))
    repository = ConversationRepository(session)

    with pytest.raises(StoreError):
        await repository.list_conversations("u1")


async def test_failed_append_rolls_back(session):
    session.flush.side_effect = OperationalError("INSERT", {}, Exception("down"))
    repository = ConversationRepository(session)

    with pytest.raises(StoreError):
        await repository.append_message(
            "3f1c2a8e-8d8a-4bfb-9c55-0f6c1f1e2a10", MessageRole.USER, "Hej"
        )
    session.rollback.assert_awaited_once()
    session.commit.assert_not_called()
