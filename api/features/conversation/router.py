"""Router for the Conversation feature."""
import logging
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError as PydanticValidationError

from api.features.conversation.controller import ConversationController
from api.features.conversation.dependencies import get_conversation_store
from api.features.conversation.dtos import CreateConversationRequest
from api.features.conversation.repository import ConversationStore
from api.shared.exceptions import ChatRelayException
from api.shared.response import (
    error_response,
    exception_response,
    json_response,
    preflight_response,
)
from di.container import ApplicationContainer as DependencyContainer

router = APIRouter()
logger = logging.getLogger("chat.conversation.router")


@router.options("")
async def preflight():
    return preflight_response()


@router.get("")
@inject
async def list_conversations(
    user_id: Optional[str] = Query(None, alias="userId"),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    store: ConversationStore = Depends(get_conversation_store),
):
    try:
        return json_response(await controller.list_conversations(store, user_id=user_id))
    except ChatRelayException as e:
        return exception_response(e)
    except Exception as e:
        logger.exception("Listing conversations failed")
        return error_response("Server error", 500, details=str(e))


@router.post("")
@inject
async def create_conversation(
    request: Request,
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    store: ConversationStore = Depends(get_conversation_store),
):
    try:
        payload = await request.json()
        create_request = CreateConversationRequest.model_validate(payload or {})
    except (ValueError, PydanticValidationError) as e:
        return error_response("Invalid request body", 400, details=str(e))

    try:
        body = await controller.create_conversation(store, create_request)
        return json_response(body, status_code=201)
    except ChatRelayException as e:
        return exception_response(e)
    except Exception as e:
        logger.exception("Creating conversation failed")
        return error_response("Server error", 500, details=str(e))


@router.get("/{conversation_id}/messages")
@inject
async def get_messages(
    conversation_id: str,
    limit: Optional[int] = Query(None, ge=1, le=500),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    store: ConversationStore = Depends(get_conversation_store),
):
    try:
        return json_response(
            await controller.get_messages(
                store, conversation_id=conversation_id, limit=limit
            )
        )
    except ChatRelayException as e:
        return exception_response(e)
    except Exception as e:
        logger.exception("Fetching messages failed")
        return error_response("Server error", 500, details=str(e))
