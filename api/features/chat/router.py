"""Router for the Chat feature.

Every response, including errors, carries the CORS headers and a JSON body;
failures are rendered as ``{"error": ..., "details": ...}``.
"""
import logging
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError as PydanticValidationError

from api.features.chat.controller import ChatController
from api.features.chat.dtos import ChatRequest
from api.features.conversation.dependencies import get_conversation_store
from api.features.conversation.repository import ConversationStore
from api.shared.dtos import HealthCheckResponse
from api.shared.exceptions import ChatRelayException
from api.shared.response import (
    error_response,
    exception_response,
    json_response,
    preflight_response,
)
from di.container import ApplicationContainer as DependencyContainer

router = APIRouter()
logger = logging.getLogger("chat.chat.router")

_TRUTHY = {"1", "true", "yes", "on"}


@router.get("/health")
async def health_check():
    return json_response(
        HealthCheckResponse(
            status="healthy", dependencies={"database": "ok", "llm": "ok"}
        ).to_wire()
    )


@router.options("")
async def preflight():
    return preflight_response()


@router.get("")
@inject
async def get_chat(
    user_id: Optional[str] = Query(None, alias="userId"),
    conversation_id: Optional[str] = Query(None, alias="conversationId"),
    list_flag: Optional[str] = Query(None, alias="list"),
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    store: ConversationStore = Depends(get_conversation_store),
):
    """Fetch history, resolving or creating the owner's conversation, or list conversations."""
    try:
        body = await controller.get(
            store,
            user_id=user_id,
            conversation_id=conversation_id,
            list_only=(list_flag or "").strip().lower() in _TRUTHY,
        )
        return json_response(body)
    except ChatRelayException as e:
        logger.warning(f"GET /api/chat failed: {e.error_code}: {e.message}")
        return exception_response(e)
    except Exception as e:
        logger.exception("GET /api/chat error")
        return error_response("Server error", 500, details=str(e))


@router.post("")
@inject
async def post_chat(
    request: Request,
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    store: ConversationStore = Depends(get_conversation_store),
):
    """Send a message and get a reply, or create a conversation with action 'create'."""
    try:
        payload = await request.json()
        chat_request = ChatRequest.model_validate(payload or {})
    except (ValueError, PydanticValidationError) as e:
        return error_response("Invalid request body", 400, details=str(e))

    try:
        status_code, body = await controller.post(store, chat_request)
        return json_response(body, status_code=status_code)
    except ChatRelayException as e:
        logger.warning(f"POST /api/chat failed: {e.error_code}: {e.message}")
        return exception_response(e)
    except Exception as e:
        logger.exception("POST /api/chat error")
        return error_response("Server error", 500, details=str(e))
