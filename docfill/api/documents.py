"""Document building API routes.

Renders uploaded Word templates against JSON bindings and converts markup
into new Word documents.
"""

import io
import json
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from docfill.api.deps import get_app_settings, get_component_factory
from docfill.api.schemas import DOCX_MEDIA_TYPE, ConvertRequest
from docfill.core.config import Settings
from docfill.core.factory import ComponentFactory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


# =============================================================================
# Helper Functions
# =============================================================================


def _docx_response(data: bytes, filename: str) -> Response:
    return Response(
        content=data,
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _parse_bindings(raw: str) -> dict:
    try:
        bindings = json.loads(raw)
    except json.JSONDecodeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"bindings is not valid JSON: {e.msg}",
        ) from e
    if not isinstance(bindings, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="bindings must be a JSON object",
        )
    return bindings


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/render", status_code=status.HTTP_200_OK)
async def render_document(
    template: UploadFile = File(..., description="Word template (.docx)"),
    bindings: str = Form(..., description="JSON object of placeholder bindings"),
    prefix: str | None = Form(default=None, description="Opening placeholder delimiter"),
    suffix: str | None = Form(default=None, description="Closing placeholder delimiter"),
    render_markdown: bool = Form(default=False, description="Render Markdown values to HTML"),
    settings: Settings = Depends(get_app_settings),
    factory: ComponentFactory = Depends(get_component_factory),
) -> Response:
    """Render a template against a binding set.

    Scalar values replace their placeholders as text; HTML values replace
    whole placeholder paragraphs with converted content.

    Args:
        template: The Word template to render.
        bindings: JSON object mapping placeholder keys to values.
        prefix: Placeholder opening delimiter. Defaults to settings.
        suffix: Placeholder closing delimiter. Defaults to settings.
        render_markdown: Render Markdown-looking values to HTML first.
        settings: Application settings.
        factory: Component factory.

    Returns:
        The rendered .docx document.

    Raises:
        HTTPException: If the upload or the bindings are invalid.
    """
    logger.info(f"Render request for template: {template.filename}")

    if not template.filename or not template.filename.lower().endswith(".docx"):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Only .docx files are supported",
        )

    content = await template.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Template exceeds {settings.max_upload_bytes} bytes",
        )

    values = _parse_bindings(bindings)
    options = factory.build_options(
        placeholder_prefix=prefix or settings.placeholder_prefix,
        placeholder_suffix=suffix or settings.placeholder_suffix,
        render_markdown=render_markdown,
        auto_close_stream=False,
    )
    builder = factory.get_builder(content, options)

    output = io.BytesIO()
    shape = await run_in_threadpool(builder.build, values, output)
    logger.info(f"Rendered {template.filename} ({shape.value}, {output.tell()} bytes)")

    return _docx_response(output.getvalue(), template.filename)


@router.post("/convert", status_code=status.HTTP_200_OK)
async def convert_markup(
    request: ConvertRequest,
    factory: ComponentFactory = Depends(get_component_factory),
) -> Response:
    """Convert HTML or Markdown into a new Word document.

    Args:
        request: Markup and conversion options.
        factory: Component factory.

    Returns:
        A .docx document holding the converted content.
    """
    markup = request.markup
    if request.markdown:
        markup = factory.get_markdown_renderer().to_html(markup)

    options = factory.build_options(
        paragraph_formatting=request.paragraph_formatting,
        run_formatting=request.run_formatting,
        table_formatting=request.table_formatting,
        auto_close_stream=False,
    )
    builder = factory.get_builder(None, options)

    output = io.BytesIO()
    await run_in_threadpool(builder.build_from_markup, markup, output)
    logger.info(f"Converted {len(request.markup)} characters into {output.tell()} bytes")

    return _docx_response(output.getvalue(), "document.docx")
