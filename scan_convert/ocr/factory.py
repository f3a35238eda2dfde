from __future__ import annotations

from scan_convert.core.config import settings
from scan_convert.ocr.base_ocr import ConversionService
from scan_convert.ocr.mock_ocr import MockConversionService


def get_conversion_service() -> ConversionService:
    """Return the configured conversion service instance.

    OCR_PROVIDER options:
        mock   scripted statuses and fixed DOCX bytes (dev/test, no network)
        abbyy  AbbyyCloudService (ABBYY_APP_ID / ABBYY_APP_PWD required at submit time)
    """
    provider = settings.ocr_provider.lower().strip()

    if provider == "mock":
        return MockConversionService()

    if provider == "abbyy":
        from scan_convert.ocr.engines import AbbyyCloudService
        return AbbyyCloudService(
            base_url=settings.abbyy_base_url,
            app_id=settings.abbyy_app_id,
            app_pwd=settings.abbyy_app_pwd,
            timeout_seconds=settings.http_timeout_seconds,
        )

    raise ValueError(f"Unknown OCR_PROVIDER={settings.ocr_provider!r}")
