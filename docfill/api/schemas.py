"""API request and response schemas.

Pydantic v2 models for API serialization/deserialization.
"""

from typing import Any

from pydantic import BaseModel, Field

from docfill.strategies.template_engine.models import FormattingOption

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


# =============================================================================
# Common Schemas
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(description="Error message")
    error_code: str | None = Field(default=None, description="Application-specific error code")
    extra: dict[str, Any] | None = Field(default=None, description="Additional error context")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    service: str = "docfill-api"
    version: str


# =============================================================================
# Document Schemas
# =============================================================================


class ConvertRequest(BaseModel):
    """Request for converting markup into a new document."""

    markup: str = Field(description="HTML fragment, or Markdown when `markdown` is set")
    markdown: bool = Field(default=False, description="Treat `markup` as Markdown")
    paragraph_formatting: FormattingOption | None = Field(
        default=None, description="Formatting override for paragraphs"
    )
    run_formatting: FormattingOption | None = Field(default=None, description="Formatting override for runs")
    table_formatting: FormattingOption | None = Field(default=None, description="Formatting override for tables")
