"""Dependency injection containers: infrastructure -> services -> controllers."""
from __future__ import annotations

from dependency_injector import containers, providers

from core.settings import SETTINGS
from infra.completion import OpenAICompletionEngine
from infra.resources import DatabaseResource


class InfrastructureContainer(containers.DeclarativeContainer):
    # Database
    database = providers.Resource(
        DatabaseResource,
        database_url=str(SETTINGS.DATABASE.DATABASE_URL),
    )

    # Completion engine (OpenAI via LangChain)
    completion_engine = providers.Singleton(
        OpenAICompletionEngine,
        api_key=SETTINGS.OPENAI.OPENAI_API_KEY.get_secret_value(),
        model=SETTINGS.OPENAI.OPENAI_MODEL,
        temperature=SETTINGS.OPENAI.OPENAI_TEMPERATURE,
        base_url=SETTINGS.OPENAI.OPENAI_BASE_URL,
        timeout=SETTINGS.OPENAI.OPENAI_TIMEOUT_SECONDS,
    )


class ServiceContainer(containers.DeclarativeContainer):
    """Application services - depends on infrastructure."""

    infrastructure = providers.DependenciesContainer()

    chat_settings = providers.Object(SETTINGS.CHAT)

    conversation_service = providers.Factory(
        "api.features.conversation.service.ConversationService",
        settings=chat_settings,
    )

    chat_service = providers.Factory(
        "api.features.chat.service.ChatService",
        conversation_service=conversation_service,
        completion_engine=infrastructure.completion_engine,
        settings=chat_settings,
    )


class ControllerContainer(containers.DeclarativeContainer):
    """Controller-specific dependencies."""

    services = providers.DependenciesContainer()

    chat_controller = providers.Factory(
        "api.features.chat.controller.ChatController",
        chat_service=services.chat_service,
        conversation_service=services.conversation_service,
    )

    conversation_controller = providers.Factory(
        "api.features.conversation.controller.ConversationController",
        conversation_service=services.conversation_service,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Main application container composing all sub-containers."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "api.main",
            "api.shared.db",
            "api.features.chat.router",
            "api.features.conversation.router",
        ]
    )

    infrastructure = providers.Container(InfrastructureContainer)
    services = providers.Container(ServiceContainer, infrastructure=infrastructure)
    controllers = providers.Container(ControllerContainer, services=services)
