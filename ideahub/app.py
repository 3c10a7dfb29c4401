"""Application factory for the IdeaHub FastAPI backend."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_llm_settings
from .errors import LLMConfigurationError, LLMRequestError, ResponseNormalizationError
from .routers import generation
from .schemas import ErrorResponse


log = logging.getLogger(__name__)

PARSE_FAILURE_DETAIL = "Failed to parse AI response. Please try again."


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def _normalization_error_handler(request: Request, exc: ResponseNormalizationError) -> JSONResponse:
    log.error("Model response rejected on %s: %s", request.url.path, exc.message)
    return _error_response(502, ErrorResponse(kind=exc.kind, detail=PARSE_FAILURE_DETAIL, path=exc.path or None))


async def _configuration_error_handler(request: Request, exc: LLMConfigurationError) -> JSONResponse:
    log.error("Generation unavailable on %s: %s", request.url.path, exc)
    return _error_response(503, ErrorResponse(kind="llm_configuration", detail=str(exc)))


async def _request_error_handler(request: Request, exc: LLMRequestError) -> JSONResponse:
    log.error("Model request failed on %s: %s", request.url.path, exc)
    return _error_response(502, ErrorResponse(kind="llm_request", detail=str(exc)))


def create_app() -> FastAPI:
    """Create and configure a FastAPI application instance."""
    settings = get_llm_settings()
    logging.getLogger("ideahub").setLevel(settings.log_level)

    app = FastAPI(
        title="IdeaHub AI Backend",
        version="0.1.0",
        description="Structured AI generation for startup ideation: tasks, market research and idea variations.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_origin_regex=r"http://localhost:\d+$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.llm_settings = settings
    app.add_exception_handler(ResponseNormalizationError, _normalization_error_handler)
    app.add_exception_handler(LLMConfigurationError, _configuration_error_handler)
    app.add_exception_handler(LLMRequestError, _request_error_handler)
    app.include_router(generation.router)
    return app


app = create_app()
