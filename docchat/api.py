"""HTTP transport for the chat pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import config

if TYPE_CHECKING:
    from .pipeline import ChatPipeline

logger = config.get_logger(__name__)

MISSING_MESSAGE = "Message is required"
INVALID_SESSION_MESSAGE = "sessionId must be a string"
NOT_FOUND_MESSAGE = "Endpoint not found. Use POST /chat to send messages."
UNHANDLED_MESSAGE = "Something went wrong!"


class ChatRequest(BaseModel):
    """Body of ``POST /chat``."""

    model_config = ConfigDict(populate_by_name=True)

    message: str | None = None
    session_id: str = Field(default=config.DEFAULT_SESSION_ID, alias="sessionId")

    @field_validator("session_id", mode="before")
    @classmethod
    def _null_session_is_default(cls, value: object) -> object:
        return config.DEFAULT_SESSION_ID if value is None else value


class ChatResponse(BaseModel):
    success: bool = True
    response: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class HealthResponse(BaseModel):
    status: str = "OK"
    message: str = "Chat API is running"
    endpoint: str = "POST /chat"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


def _validation_message(exc: RequestValidationError) -> str:
    for error in exc.errors():
        if "sessionId" in error.get("loc", ()):
            return INVALID_SESSION_MESSAGE
    return MISSING_MESSAGE


def create_app(pipeline: ChatPipeline) -> FastAPI:
    """Build the FastAPI application around a chat pipeline.

    Returns:
        FastAPI: App exposing ``POST /chat`` and ``GET /health``.
    """
    app = FastAPI(
        title="docchat API",
        description="Conversational question answering over an indexed document.",
        version="0.1.0",
    )
    app.state.pipeline = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected malformed request to %s: %s", request.url.path, exc)
        return _error(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in {
            status.HTTP_404_NOT_FOUND,
            status.HTTP_405_METHOD_NOT_ALLOWED,
        }:
            return _error(status.HTTP_404_NOT_FOUND, NOT_FOUND_MESSAGE)
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, UNHANDLED_MESSAGE)

    @app.post(
        "/chat",
        response_model=ChatResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def chat(body: ChatRequest) -> ChatResponse | JSONResponse:
        """Answer a message within the caller's session."""
        if not body.message or not body.message.strip():
            return _error(status.HTTP_400_BAD_REQUEST, MISSING_MESSAGE)

        logger.info("New message from session %s: %s", body.session_id, body.message)
        result = await app.state.pipeline.handle(body.message, body.session_id)

        if not result.success:
            logger.warning("Error for session %s: %s", body.session_id, result.error)
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, result.error)

        logger.info("Response sent to session %s", body.session_id)
        return ChatResponse(response=result.answer)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse()

    return app
