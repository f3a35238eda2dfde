from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from pathlib import Path

import httpx

from scan_convert.core.errors import InputError
from scan_convert.files.storage import join_url
from scan_convert.schemas import ConversionRequest

logger = logging.getLogger(__name__)


def _is_http_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def decode_base64(data: str) -> bytes:
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode("".join(data.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InputError("`base64` is not valid base64 content") from exc


async def _download(
    url: str, *, timeout: float, transport: httpx.AsyncBaseTransport | None
) -> bytes:
    async with httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True) as client:
        try:
            resp = await client.get(url)
        except httpx.HTTPError as exc:
            raise InputError(f"Could not download PDF: {exc}") from exc
    if resp.is_error:
        raise InputError(f"Could not download PDF ({resp.status_code})")
    return resp.content


async def _read_local(path_str: str) -> bytes:
    path = Path(path_str)
    if not path.is_absolute():
        path = Path.cwd() / path
    try:
        return await asyncio.to_thread(path.read_bytes)
    except OSError as exc:
        raise InputError(f"Could not read PDF at {path}: {exc.strerror or exc}") from exc


async def fetch_pdf_bytes(
    request: ConversionRequest,
    *,
    files_base_url: str | None = None,
    timeout: float = 60.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bytes:
    """Produce raw PDF bytes from the first available source field."""
    if request.content_base64:
        data = decode_base64(request.content_base64)
        source = "base64"
    elif request.file_url:
        url = request.file_url
        if _is_http_url(url):
            data = await _download(url, timeout=timeout, transport=transport)
            source = "url"
        elif files_base_url:
            data = await _download(join_url(files_base_url, url), timeout=timeout, transport=transport)
            source = "host_path"
        else:
            data = await _read_local(url)
            source = "stored_path"
    elif request.file_path:
        data = await _read_local(request.file_path)
        source = "local_path"
    else:
        raise InputError("No PDF bytes. Provide `base64`, `fileUrl`, or `filePath`.")

    logger.info("pdf_fetched", extra={"source": source, "bytes": len(data)})
    return data
