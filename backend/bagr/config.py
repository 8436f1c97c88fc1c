"""
Bagr Configuration
Manages environment variables and defaults for the disc photo service.
"""
import os


class Config:
    """Configuration class for Bagr services."""

    # Upload limits
    MAX_FILE_MB: int = int(os.environ.get("BAGR_MAX_FILE_MB", "10"))

    # Crop output
    OUTPUT_SIZE: int = int(os.environ.get("BAGR_OUTPUT_SIZE", "400"))
    JPEG_QUALITY: int = int(os.environ.get("BAGR_JPEG_QUALITY", "92"))

    # Color placeholder used whenever sampling fails
    DEFAULT_DISC_COLOR: str = os.environ.get("BAGR_DEFAULT_DISC_COLOR", "#6366F1")

    # Remote photo fetch (seconds)
    FETCH_TIMEOUT_S: float = float(os.environ.get("BAGR_FETCH_TIMEOUT_S", "10.0"))

    # Logging
    LOG_LEVEL: str = os.environ.get("BAGR_LOG_LEVEL", "INFO")
    LOG_JSON: bool = bool(int(os.environ.get("BAGR_LOG_JSON", "0")))

    # Bag defaults
    DEFAULT_BAG_SIZE: int = int(os.environ.get("BAGR_DEFAULT_BAG_SIZE", "12"))

    # CORS settings
    ALLOWED_ORIGINS: str = os.environ.get(
        "BAGR_ALLOWED_ORIGINS",
        "http://localhost:3000,http://localhost:5173"
    )

    # Observability
    METRICS_ENABLED: bool = bool(int(os.environ.get("BAGR_METRICS_ENABLED", "1")))

    @classmethod
    def validate_output_size(cls, size: int) -> bool:
        """Validate crop output side length."""
        return 16 <= size <= 2048

    @classmethod
    def validate_jpeg_quality(cls, quality: int) -> bool:
        """Validate JPEG encoder quality."""
        return 1 <= quality <= 100

    @classmethod
    def allowed_origins(cls) -> list:
        """CORS origins as a list."""
        return [o.strip() for o in cls.ALLOWED_ORIGINS.split(",") if o.strip()]


# Global config instance
config = Config()
