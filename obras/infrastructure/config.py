"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://obras:obras_dev_password@db:5432/obras"

    # Authentication
    obras_api_key: str = "dev-api-key-change-in-production"

    # Document rendering and binary storage
    document_renderer_url: str = "http://document-renderer:8010"
    storage_url: str = "http://storage:8020"
    http_timeout_seconds: float = 30.0

    # Work orders
    work_order_code_prefix: str = "OBR"
    work_order_code_width: int = 5
    default_validity_days: int = 30

    # Attachments
    max_attachment_bytes: int = 10 * 1024 * 1024

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
