"""Centralized application configuration via Pydantic Settings.

Loads all env vars into a typed Settings instance, including the optional
header-detection recalibration applied to every vendor format.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from packages.mfs_ingestion.formats import VendorFormat


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # CORS
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Comma-separated allowed origins for CORS",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Python log level")
    ENVIRONMENT: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )

    # App
    APP_VERSION: str = Field(default="0.1.0", description="Application version")

    # Uploads
    MAX_UPLOAD_BYTES: int = Field(
        default=10 * 1024 * 1024,
        description="Largest accepted statement upload in bytes",
    )
    DEFAULT_VENDOR_FORMAT: str = Field(
        default="nagad",
        description="Vendor format used by the CLI when none is given",
    )

    # Header detection recalibration (unset = built-in values)
    HEADER_CONFIDENCE_THRESHOLD: Optional[float] = Field(
        default=None,
        description="Minimum normalized score for a detected header row",
    )
    HEADER_SCAN_DEPTH: Optional[int] = Field(
        default=None,
        description="Number of leading rows scored as header candidates",
    )
    CRITICAL_FIELD_MINIMUM: Optional[int] = Field(
        default=None,
        description="Critical-field minimum used by header scoring",
    )

    @property
    def allowed_origins(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def log_level(self) -> str:
        return self.LOG_LEVEL

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def tune(self, vendor_format: VendorFormat) -> VendorFormat:
        """Apply the recalibration overrides to a vendor format."""
        return vendor_format.with_overrides(
            confidence_threshold=self.HEADER_CONFIDENCE_THRESHOLD,
            scan_depth=self.HEADER_SCAN_DEPTH,
            critical_minimum=self.CRITICAL_FIELD_MINIMUM,
        )

    model_config = {"env_file": ".env", "extra": "ignore"}


def get_settings() -> Settings:
    """Factory for Settings - allows test override."""
    return Settings()


settings = get_settings()
