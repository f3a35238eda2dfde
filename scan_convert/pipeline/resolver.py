"""Input normalization and content-source resolution.

Raw tool input arrives in one of four shapes and is normalized exactly once,
here, into a :class:`ConversionRequest`:

    mapping       -> validated as-is
    JSON string   -> decoded; non-object JSON counts as empty
    other string  -> treated as a filename hint: {"filename": <str>}
    None / ""     -> empty request

Source resolution then tries, in order: explicit source fields, ``file_id``
lookup, latest PDF uploaded by the caller. Registry and storage failures are
logged and skipped; only the final "nothing resolved" case is an error.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from scan_convert.core.errors import InputError
from scan_convert.files.registry import FileRecord, FileRegistry
from scan_convert.files.storage import StorageStrategy
from scan_convert.schemas import ConversionRequest

logger = logging.getLogger(__name__)

RawInput = Mapping[str, Any] | str | bytes | None


def _coerce_payload(raw: RawInput) -> dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return {}
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            return {"filename": text}
        return dict(decoded) if isinstance(decoded, dict) else {}
    return {}


def normalize_input(raw: RawInput) -> ConversionRequest:
    payload = _coerce_payload(raw)
    try:
        return ConversionRequest.model_validate(payload)
    except ValidationError as exc:
        raise InputError(f"Invalid tool arguments: {exc.errors(include_url=False)}") from exc


def output_filename(name: str | None, *, default: str = "converted.docx", extension: str = ".docx") -> str:
    """Keep *name* verbatim when it ends with *extension*, else use *default*."""
    if name and name.endswith(extension):
        return name
    return default


async def _record_url(
    record: FileRecord, storage: StorageStrategy | None, refresh_signed_urls: bool
) -> str:
    if storage is not None and refresh_signed_urls:
        try:
            return await storage.get_download_url(record)
        except Exception as exc:
            logger.warning(
                "signed_url_failed_fallback",
                extra={"file_id": record.file_id, "error": str(exc)},
            )
    return record.filepath


async def _apply_record(
    request: ConversionRequest,
    record: FileRecord,
    storage: StorageStrategy | None,
    refresh_signed_urls: bool,
) -> ConversionRequest:
    url = await _record_url(record, storage, refresh_signed_urls)
    return request.model_copy(
        update={"file_url": url, "filename": request.filename or record.filename}
    )


async def resolve_source(
    request: ConversionRequest,
    *,
    user_id: str | None = None,
    registry: FileRegistry | None = None,
    storage: StorageStrategy | None = None,
    refresh_signed_urls: bool = True,
) -> ConversionRequest:
    """Return a copy of *request* with a content source, or raise ``InputError``."""
    if request.file_id and not request.has_source and registry is not None:
        try:
            record = await registry.get(request.file_id)
        except Exception as exc:
            logger.warning("file_lookup_failed", extra={"file_id": request.file_id, "error": str(exc)})
            record = None
        if record is not None and record.filepath:
            request = await _apply_record(request, record, storage, refresh_signed_urls)
            logger.info("source_resolved", extra={"via": "file_id", "file_id": record.file_id})

    if not request.has_source and user_id and registry is not None:
        try:
            record = await registry.latest_pdf(user_id, name_hint=request.filename)
        except Exception as exc:
            logger.warning("latest_file_lookup_failed", extra={"user": user_id, "error": str(exc)})
            record = None
        if record is not None and record.filepath:
            request = await _apply_record(request, record, storage, refresh_signed_urls)
            logger.info("source_resolved", extra={"via": "latest_upload", "file_id": record.file_id})

    if not request.has_source:
        raise InputError("No input provided. Pass one of: { base64 | fileUrl | filePath | file_id }")
    return request
