import logging
import sys
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request

from api.shared.exceptions import ChatRelayException
from api.shared.response import error_response, exception_response, json_response
from core.logging_config import configure_logging
from core.settings import SETTINGS
from di.container import ApplicationContainer as DependencyContainer

configure_logging(SETTINGS.APP)

logger = logging.getLogger("chat")


class CustomFastAPI(FastAPI):
    container: DependencyContainer


@asynccontextmanager
async def lifespan(_app: CustomFastAPI):
    logger.info("Starting application initialization...")
    start_time = time.time()

    try:
        logger.info("Initializing database connection...")
        db_start = time.time()
        db_resource = _app.container.infrastructure.database()
        await db_resource.init()
        await db_resource.ping()
        logger.info(
            f"Database connection established in {time.time() - db_start:.2f}s"
        )
        logger.info(
            f"Application startup completed in {time.time() - start_time:.2f}s"
        )
    except Exception as e:
        logger.exception(f"Failed to initialize application: {str(e)}")
        raise

    yield

    try:
        db_resource = _app.container.infrastructure.database()
        if db_resource:
            await db_resource.shutdown()
        logger.info("Application shutdown complete")
    except Exception:
        logger.exception("Error during shutdown")


def create_fastapi_app() -> CustomFastAPI:
    _app = CustomFastAPI(
        title="Chat Relay API",
        description="Relays chat turns between clients, conversation storage and an LLM",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Initialize dependency container
    _app.container = DependencyContainer()
    _app.container.wire(modules=[sys.modules[__name__]])
    _app.container.init_resources()

    _app.add_middleware(
        CORSMiddleware,
        allow_origins=SETTINGS.CORS.CORS_ALLOW_ORIGINS,
        allow_credentials=False,
        allow_methods=SETTINGS.CORS.CORS_ALLOW_METHODS,
        allow_headers=SETTINGS.CORS.CORS_ALLOW_HEADERS,
    )

    # Include feature routers
    from api.features.chat.router import router as chat_router
    from api.features.conversation.router import router as conversation_router

    _app.include_router(chat_router, prefix="/api/chat", tags=["Chat"])
    _app.include_router(
        conversation_router, prefix="/api/conversations", tags=["Conversations"]
    )

    return _app


app = create_fastapi_app()


@app.get("/")
async def root():
    return {"message": "Chat Relay API is running", "status": "ok"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/ready")
async def ready():
    return {"status": "ok"}


# Exception handlers
@app.exception_handler(404)
async def not_found_handler(request: Request, exc: HTTPException):
    return error_response("Not Found", 404, details=f"{exc.detail} : {request.url}")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response("Invalid request", 400, details=str(exc))


@app.exception_handler(ChatRelayException)
async def chat_relay_exception_handler(request: Request, exc: ChatRelayException):
    logger.warning(f"{request.method} {request.url.path} failed: {exc.error_code}")
    return exception_response(exc)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    return json_response(
        {"error": "Server error", "details": "An unexpected error occurred"},
        status_code=500,
    )


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=SETTINGS.APP.APP_HOST,
        port=SETTINGS.APP.APP_PORT,
        log_level=SETTINGS.APP.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
