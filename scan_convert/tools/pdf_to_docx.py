"""PDF → DOCX conversion tool.

Orchestrates one conversion per invocation:
normalize input → resolve source → fetch bytes → submit → poll → package.

Result delivery is configurable (RESULT_DELIVERY):
    embed  download the DOCX and return it base64-encoded
    url    return the service's result URL without downloading
"""
from __future__ import annotations

import asyncio
import base64
import logging
import time
from typing import Any

import httpx

from scan_convert.core.config import Settings, settings as default_settings
from scan_convert.core.logging import new_invocation_id, reset_invocation_id
from scan_convert.files.registry import FileRegistry
from scan_convert.files.storage import StorageStrategy
from scan_convert.ocr.base_ocr import ConversionService
from scan_convert.pipeline.fetcher import fetch_pdf_bytes
from scan_convert.pipeline.poller import ClockFn, SleepFn, wait_for_job
from scan_convert.pipeline.resolver import RawInput, normalize_input, output_filename, resolve_source
from scan_convert.schemas import ConversionRequest, ConversionResult

logger = logging.getLogger(__name__)

RESULT_DELIVERY_MODES = ("embed", "url")


class PdfToDocxTool:
    name = "abbyy_pdf_to_docx"
    description = (
        "Convert a scanned PDF to DOCX using ABBYY Cloud OCR SDK. Provide one of base64, fileUrl, "
        "filePath, or file_id. Optionally set language (default: eng) and filename (must end with .docx)."
    )
    args_schema = ConversionRequest

    def __init__(
        self,
        service: ConversionService,
        *,
        registry: FileRegistry | None = None,
        storage: StorageStrategy | None = None,
        config: Settings | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = time.monotonic,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._service = service
        self._registry = registry
        self._storage = storage
        self._config = config or default_settings
        self._sleep = sleep
        self._clock = clock
        self._transport = transport
        if self._config.result_delivery not in RESULT_DELIVERY_MODES:
            raise ValueError(f"Unknown RESULT_DELIVERY={self._config.result_delivery!r}")

    async def invoke(self, args: RawInput, *, user_id: str | None = None) -> dict[str, Any]:
        token = new_invocation_id()
        try:
            result = await self._convert(args, user_id=user_id)
        except Exception:
            logger.exception("tool_invocation_failed", extra={"tool": self.name, "user": user_id})
            raise
        finally:
            reset_invocation_id(token)
        return result.to_payload()

    async def _convert(self, args: RawInput, *, user_id: str | None) -> ConversionResult:
        cfg = self._config

        # Fail on configuration before touching input or network
        self._service.ensure_ready()

        request = normalize_input(args)
        request = await resolve_source(
            request,
            user_id=user_id,
            registry=self._registry,
            storage=self._storage,
            refresh_signed_urls=cfg.signed_url_refresh,
        )

        pdf_bytes = await fetch_pdf_bytes(
            request,
            files_base_url=cfg.files_base_url,
            timeout=cfg.http_timeout_seconds,
            transport=self._transport,
        )
        language = request.language or cfg.default_language
        filename = output_filename(
            request.filename, default=cfg.default_filename, extension=f".{cfg.export_format}"
        )

        job = await self._service.submit(pdf_bytes, language=language, export_format=cfg.export_format)
        logger.info(
            "conversion_submitted",
            extra={"task_id": job.task_id, "language": language, "output_filename": filename},
        )

        timeout = request.timeout_ms / 1000.0 if request.timeout_ms else cfg.timeout_seconds
        job = await wait_for_job(
            self._service,
            job,
            timeout=timeout,
            initial_delay=cfg.poll_initial_delay,
            backoff_factor=cfg.poll_backoff_factor,
            max_delay=cfg.poll_max_delay,
            sleep=self._sleep,
            clock=self._clock,
        )

        if cfg.result_delivery == "url":
            return ConversionResult(filename=filename, url=job.result_url, task_id=job.task_id)

        docx_bytes = await self._service.download(job.result_url)
        logger.info("conversion_downloaded", extra={"task_id": job.task_id, "bytes": len(docx_bytes)})
        return ConversionResult(
            filename=filename,
            content_base64=base64.b64encode(docx_bytes).decode("ascii"),
            task_id=job.task_id,
        )
