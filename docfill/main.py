"""FastAPI application entry point.

Main application setup with middleware, routing, and error mapping.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docfill import __version__
from docfill.api.documents import router as documents_router
from docfill.api.schemas import ErrorResponse, HealthResponse
from docfill.core.config import Settings, get_settings
from docfill.core.factory import ComponentFactory
from docfill.core.logging_config import setup_logging
from docfill.interfaces.errors import (
    ArgumentError,
    ConversionError,
    DocfillError,
    TemplateRenderError,
    TemplateSyntaxError,
)

logger = logging.getLogger(__name__)


def _error(status_code: int, detail: str, error_code: str, extra: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=detail, error_code=error_code, extra=extra).model_dump(),
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors."""
        logger.warning(f"Validation error: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": "Validation error",
                "errors": exc.errors(),
            },
        )

    @app.exception_handler(ArgumentError)
    async def argument_exception_handler(request: Request, exc: ArgumentError):
        logger.warning(f"Invalid argument: {exc}")
        return _error(status.HTTP_400_BAD_REQUEST, str(exc), "INVALID_ARGUMENT")

    @app.exception_handler(ConversionError)
    async def conversion_exception_handler(request: Request, exc: ConversionError):
        logger.warning(f"Markup conversion failed: {exc}")
        extra = {"key": exc.key} if exc.key else None
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc), "CONVERSION_ERROR", extra)

    @app.exception_handler(TemplateRenderError)
    async def render_exception_handler(request: Request, exc: TemplateRenderError):
        logger.warning(f"Template rendering failed: {exc}")
        if isinstance(exc, TemplateSyntaxError):
            extra = {"lineno": exc.lineno} if exc.lineno is not None else None
            return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc), "TEMPLATE_SYNTAX_ERROR", extra)
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc), "TEMPLATE_RENDER_ERROR")

    @app.exception_handler(DocfillError)
    async def docfill_exception_handler(request: Request, exc: DocfillError):
        logger.error(f"Document build failed: {exc}", exc_info=exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc), "BUILD_ERROR")

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(f"Unhandled exception: {exc}", exc_info=exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", "INTERNAL_ERROR")


def create_app(settings: Settings | None = None, factory: ComponentFactory | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings. If None, loads from environment.
        factory: Optional component factory. If None, one is built from settings.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="docfill",
        description="Word document generation from templates, HTML and Markdown",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Store settings and components in app state
    app.state.settings = settings
    app.state.factory = factory or ComponentFactory(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(documents_router)
    logger.info("Registered documents router")

    @app.get("/health", tags=["health"], response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers and monitoring."""
        return HealthResponse(version=__version__)

    _register_exception_handlers(app)

    logger.info("FastAPI application created successfully")
    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logger.info("Starting uvicorn server on port 8000...")
    uvicorn.run(
        "docfill.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level=settings.log_level.lower(),
    )
