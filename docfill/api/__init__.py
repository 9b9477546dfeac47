"""FastAPI routers and dependencies."""

from docfill.api.deps import get_app_settings, get_component_factory
from docfill.api.documents import router as documents_router

__all__ = [
    "get_app_settings",
    "get_component_factory",
    "documents_router",
]
