from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    # Host file registry; lookups are skipped when unset
    database_url: str | None = None

    # Conversion provider: abbyy | mock
    ocr_provider: str = "abbyy"
    abbyy_base_url: str = "https://cloud.ocrsdk.com"
    abbyy_app_id: str | None = None
    abbyy_app_pwd: str | None = None

    # Either a single code ("eng") or a comma-separated list ("English,Russian")
    default_language: str = "eng"
    export_format: str = "docx"
    default_filename: str = "converted.docx"

    # Result delivery: embed (base64 document) | url (result location only)
    result_delivery: str = "embed"

    # Overall conversion budget; per-call timeoutMs overrides it
    timeout_seconds: float = Field(
        default=1800.0, validation_alias=AliasChoices("CONVERSION_TIMEOUT_SECONDS", "timeout_seconds")
    )
    poll_initial_delay: float = 1.5
    poll_backoff_factor: float = 1.5
    poll_max_delay: float = 7.0
    http_timeout_seconds: float = 60.0

    # Base URL that host-relative stored paths are served from
    files_base_url: str | None = None

    # Storage strategy: local | s3
    storage_backend: str = "local"
    s3_bucket: str | None = None
    s3_region: str = "us-east-1"
    s3_url_expiry_seconds: int = 900
    signed_url_refresh: bool = True


settings = Settings()
