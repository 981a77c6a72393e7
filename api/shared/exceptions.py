"""Shared exceptions for the chat relay API."""
from typing import Any, Dict, Optional


class ChatRelayException(Exception):
    """Base exception for the chat relay API."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ChatRelayException):
    """Raised when a required field is missing or malformed."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class StoreError(ChatRelayException):
    """Raised when a persistence operation fails."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "STORE_ERROR",
    ):
        super().__init__(message, error_code, details)


class StoreUnavailableError(StoreError):
    """Raised when a conversation cannot be resolved or created."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, "STORE_UNAVAILABLE")


class CompletionEngineError(ChatRelayException):
    """Raised when the external completion service fails."""

    def __init__(self, model: str, message: str, details: Optional[Dict[str, Any]] = None):
        full_message = f"Completion failed with model '{model}': {message}"
        error_details: Dict[str, Any] = {"model": model}
        if details:
            error_details.update(details)
        super().__init__(full_message, "COMPLETION_ENGINE_ERROR", error_details)
