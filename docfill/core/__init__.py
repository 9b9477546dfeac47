"""Core configuration components.

The component factory depends on the strategies package and is imported
from ``docfill.core.factory`` directly.
"""

from docfill.core.config import Settings, get_settings
from docfill.core.fonts import StyleRegistry, get_style_registry

__all__ = [
    "Settings",
    "get_settings",
    "StyleRegistry",
    "get_style_registry",
]
