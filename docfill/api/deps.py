"""FastAPI dependencies for dependency injection."""

from fastapi import Request

from docfill.core.config import Settings
from docfill.core.factory import ComponentFactory


def get_app_settings(request: Request) -> Settings:
    """Return the settings the application was created with."""
    return request.app.state.settings


def get_component_factory(request: Request) -> ComponentFactory:
    """Return the application's component factory."""
    return request.app.state.factory
