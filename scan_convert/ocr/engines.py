"""AbbyyCloudService: client for the ABBYY Cloud OCR SDK.

Endpoints used:
    POST {base}/processDocument?exportFormat=docx&language=eng   (multipart "file")
    GET  {base}/getTaskStatus?taskId=...
    GET  <resultUrl>                                             (no auth)

Both authenticated calls use HTTP basic auth with the application id and
password. Task responses are XML:

    <response>
      <task id="..." status="Queued" estimatedProcessingTime="5" resultUrl="..."/>
    </response>

JSON task payloads (``{"taskId": ..., "status": ..., "resultUrls": [...]}``)
are accepted as well.

Config (via .env):
    OCR_PROVIDER=abbyy
    ABBYY_BASE_URL=https://cloud.ocrsdk.com
    ABBYY_APP_ID=...
    ABBYY_APP_PWD=...
"""
from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from scan_convert.core.errors import ConversionError, MalformedResponseError, MissingCredentialsError
from scan_convert.ocr.base_ocr import ConversionService, Job, JobStatus

logger = logging.getLogger(__name__)

_STATUS_MAP = {
    "submitted": JobStatus.SUBMITTED,
    "queued": JobStatus.QUEUED,
    "inprogress": JobStatus.IN_PROGRESS,
    "completed": JobStatus.COMPLETED,
    "processingfailed": JobStatus.FAILED,
    "failed": JobStatus.FAILED,
    "notenoughcredits": JobStatus.NOT_ENOUGH_CREDITS,
    "deleted": JobStatus.DELETED,
}


def _parse_status(raw: str) -> JobStatus:
    return _STATUS_MAP.get(raw.replace("_", "").replace(" ", "").lower(), JobStatus.UNKNOWN)


def _parse_seconds(raw: Any) -> float | None:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


def _task_from_json(data: Any) -> Job:
    if not isinstance(data, dict):
        raise MalformedResponseError("Malformed ABBYY response: expected a JSON object")
    task = data.get("task") if isinstance(data.get("task"), dict) else data
    task_id = task.get("taskId") or task.get("id")
    status = task.get("status")
    if not task_id or not status:
        raise MalformedResponseError("Malformed ABBYY response: missing task id or status")
    urls = task.get("resultUrls") or [task[k] for k in sorted(task) if k.startswith("resultUrl") and task[k]]
    if isinstance(urls, str):
        urls = [urls]
    return Job(
        task_id=str(task_id),
        status=_parse_status(str(status)),
        result_urls=tuple(str(u) for u in urls if u),
        estimated_seconds=_parse_seconds(task.get("estimatedProcessingTime")),
        error=task.get("error") or None,
    )


def _task_from_xml(text: str) -> Job:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise MalformedResponseError("Malformed ABBYY response: invalid XML") from exc

    task = root if root.tag == "task" else root.find("task")
    if task is None:
        raise MalformedResponseError("Malformed ABBYY response: no <task> element")
    task_id = task.get("id")
    status = task.get("status")
    if not task_id or not status:
        raise MalformedResponseError("Malformed ABBYY response: missing task id or status")

    # resultUrl, resultUrl2, resultUrl3 ... in numeric order
    numbered = {}
    for key, value in task.attrib.items():
        suffix = key[len("resultUrl"):]
        if key.startswith("resultUrl") and (not suffix or suffix.isdigit()):
            numbered[int(suffix or 1)] = value
    urls = [numbered[n] for n in sorted(numbered)]
    return Job(
        task_id=task_id,
        status=_parse_status(status),
        result_urls=tuple(u for u in urls if u),
        estimated_seconds=_parse_seconds(task.get("estimatedProcessingTime")),
        error=task.get("error") or None,
    )


def parse_task(body: str | bytes) -> Job:
    """Parse a task response body (XML or JSON) into a :class:`Job`."""
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    text = text.strip()
    if not text:
        raise MalformedResponseError("Malformed ABBYY response: empty body")
    if text.startswith("{"):
        try:
            return _task_from_json(json.loads(text))
        except json.JSONDecodeError as exc:
            raise MalformedResponseError("Malformed ABBYY response: invalid JSON") from exc
    return _task_from_xml(text)


def _error_message(resp: httpx.Response) -> str:
    """Pull the human-readable message out of an ABBYY error body."""
    text = resp.text.strip()
    if text.startswith("<"):
        try:
            root = ET.fromstring(text)
        except ET.ParseError:
            return text[:200]
        message = root.find(".//message")
        if message is not None and message.text:
            return message.text.strip()
    elif text.startswith("{"):
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return text[:200]
        if isinstance(data, dict):
            err = data.get("error")
            if isinstance(err, dict):
                return str(err.get("message") or err)
            if err:
                return str(err)
    return text[:200] or resp.reason_phrase


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code >= 500


class AbbyyCloudService(ConversionService):
    """Conversion service backed by the ABBYY Cloud OCR SDK (v1 XML API)."""

    def __init__(
        self,
        base_url: str = "https://cloud.ocrsdk.com",
        app_id: str | None = None,
        app_pwd: str | None = None,
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
        status_attempts: int = 3,
        retry_wait: wait_base | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._app_id = app_id
        self._app_pwd = app_pwd
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._status_attempts = status_attempts
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)

    @property
    def has_credentials(self) -> bool:
        return bool(self._app_id and self._app_pwd)

    def ensure_ready(self) -> None:
        if not self.has_credentials:
            raise MissingCredentialsError("Missing ABBYY credentials (ABBYY_APP_ID/ABBYY_APP_PWD).")

    def _auth(self) -> httpx.BasicAuth:
        self.ensure_ready()
        return httpx.BasicAuth(self._app_id, self._app_pwd)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout_seconds,
            transport=self._transport,
            follow_redirects=True,
        )

    async def submit(self, pdf_bytes: bytes, *, language: str, export_format: str) -> Job:
        """Start a processDocument task. Never retried."""
        auth = self._auth()
        files = {"file": ("input.pdf", pdf_bytes, "application/pdf")}
        params = {"exportFormat": export_format, "language": language}
        async with self._client() as client:
            resp = await client.post(
                f"{self._base_url}/processDocument", params=params, files=files, auth=auth
            )
        if resp.is_error:
            raise ConversionError(f"ABBYY processDocument failed ({resp.status_code}): {_error_message(resp)}")

        job = parse_task(resp.content)
        logger.info(
            "abbyy_task_submitted",
            extra={"task_id": job.task_id, "status": job.status.value, "bytes": len(pdf_bytes)},
        )
        return job

    async def get_status(self, task_id: str) -> Job:
        """Query task status, retrying transient transport and 5xx failures."""
        auth = self._auth()
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception(_is_transient),
                stop=stop_after_attempt(self._status_attempts),
                wait=self._retry_wait,
                reraise=True,
            ):
                with attempt:
                    async with self._client() as client:
                        resp = await client.get(
                            f"{self._base_url}/getTaskStatus", params={"taskId": task_id}, auth=auth
                        )
                    if resp.status_code >= 500:
                        resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ConversionError(f"ABBYY getTaskStatus failed: {exc}") from exc

        if resp.is_error:
            raise ConversionError(f"ABBYY getTaskStatus failed ({resp.status_code}): {_error_message(resp)}")
        return parse_task(resp.content)

    async def download(self, url: str) -> bytes:
        async with self._client() as client:
            resp = await client.get(url)
        if resp.is_error:
            raise ConversionError(f"Result download failed ({resp.status_code})")
        return resp.content
