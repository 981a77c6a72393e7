"""JSON response helpers that always carry the CORS headers."""
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse, Response

from api.shared.dtos import ErrorResponse
from api.shared.exceptions import ChatRelayException
from core.settings import SETTINGS, CorsSettings


def cors_headers(
    settings: CorsSettings = SETTINGS.CORS, origin: Optional[str] = None
) -> Dict[str, str]:
    """CORS headers for a response.

    ``Access-Control-Allow-Origin`` takes a single value, so with an explicit
    allow-list the request origin is echoed when it is listed and the first
    configured origin is sent otherwise.
    """
    allowed = settings.CORS_ALLOW_ORIGINS
    headers = {
        "Access-Control-Allow-Methods": ", ".join(settings.CORS_ALLOW_METHODS),
        "Access-Control-Allow-Headers": ", ".join(settings.CORS_ALLOW_HEADERS),
    }
    if "*" in allowed:
        headers["Access-Control-Allow-Origin"] = "*"
    elif allowed:
        headers["Access-Control-Allow-Origin"] = origin if origin in allowed else allowed[0]
        headers["Vary"] = "Origin"
    return headers


def json_response(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=cors_headers())


def preflight_response() -> Response:
    return Response(status_code=200, headers=cors_headers())


def error_response(
    message: str, status_code: int = 500, details: Optional[Any] = None
) -> JSONResponse:
    body = ErrorResponse(error=message, details=details).to_wire(exclude_none=True)
    return json_response(body, status_code=status_code)


def exception_response(exc: ChatRelayException) -> JSONResponse:
    if exc.status_code >= 500:
        return error_response("Server error", exc.status_code, details=exc.message)
    return error_response(exc.message, exc.status_code, details=exc.details or None)
