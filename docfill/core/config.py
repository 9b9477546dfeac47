"""Application configuration using Pydantic v2 Settings.

Centralized configuration that loads from environment variables
and provides type-safe defaults for every document build.
"""

import logging
import tempfile
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_GLOBAL_CSS = (
    "table{border-collapse:collapse;border-spacing:0;width:100%;margin:1em 0;"
    "background-color:transparent;}"
    "table th{background-color:#f7f7f7;border:1px solid #ddd;padding:8px 12px;text-align:left}"
    "table td{border:1px solid #ddd;padding:8px 12px}"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults and can be overridden via
    environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Placeholders
    placeholder_prefix: str = Field(
        default="{{",
        description="Opening delimiter of a template placeholder.",
    )
    placeholder_suffix: str = Field(
        default="}}",
        description="Closing delimiter of a template placeholder.",
    )

    # Markup conversion
    global_css: str = Field(
        default=DEFAULT_GLOBAL_CSS,
        description="Style sheet merged into every rich markup value before conversion.",
    )
    use_html_default_style: bool = Field(
        default=True,
        description="Apply inline tags and CSS on top of class styles when no formatting override is given.",
    )
    static_resource_base_uri: str | None = Field(
        default=None,
        description="Base URI for resolving relative image references in markup.",
    )

    # Output
    auto_close_stream: bool = Field(
        default=True,
        description="Close output streams once a build finishes.",
    )

    # Staging files
    staging_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        description="Directory for intermediate documents of two-pass builds.",
    )
    staging_file_prefix: str = Field(
        default="temp-",
        description="File name prefix of staging documents.",
    )

    # API
    max_upload_bytes: int = Field(
        default=20 * 1024 * 1024,
        description="Largest template upload accepted by the HTTP API.",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR.",
    )
    log_dir: Path | None = Field(
        default=None,
        description="Directory for info.log/error.log. Console only when unset.",
    )

    @field_validator("placeholder_prefix", "placeholder_suffix")
    @classmethod
    def ensure_delimiter(cls, v: str) -> str:
        """Reject blank placeholder delimiters."""
        if not v or not v.strip():
            raise ValueError("placeholder delimiters must not be blank")
        return v

    @field_validator("staging_dir")
    @classmethod
    def ensure_staging_dir(cls, v: Path) -> Path:
        """Ensure staging directory exists."""
        v.mkdir(parents=True, exist_ok=True)
        return v.resolve()

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        return v.upper()

    def configure_logging(self) -> None:
        """Configure global logging based on settings."""
        import structlog

        level = getattr(logging, self.log_level, logging.INFO)

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        logging.basicConfig(
            format="%(message)s",
            level=level,
        )

        logger.setLevel(level)


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global Settings instance.

    Returns:
        The singleton Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.configure_logging()
    return _settings
