from __future__ import annotations

from collections.abc import Iterable

from scan_convert.ocr.base_ocr import ConversionService, Job, JobStatus

MOCK_RESULT_URL = "https://mock.invalid/result/converted.docx"
# Zip magic followed by filler, enough to look like a DOCX container
MOCK_DOCX_BYTES = b"PK\x03\x04mock-docx-content"


class MockConversionService(ConversionService):
    """Replays a scripted status sequence for development and tests.

    ``submit`` returns the first status, each ``get_status`` call returns the
    next one; the last status repeats once the script is exhausted. Script
    position is tracked per task, so overlapping invocations on one shared
    instance each see the full sequence.
    """

    def __init__(self, statuses: Iterable[JobStatus] | None = None, task_id: str = "mock-task") -> None:
        self._statuses = list(statuses or (JobStatus.SUBMITTED, JobStatus.COMPLETED))
        self._task_id = task_id
        self._positions: dict[str, int] = {}
        self.submitted: list[tuple[bytes, str, str]] = []
        self.status_calls = 0
        self.downloads: list[str] = []

    def _job(self, task_id: str) -> Job:
        index = self._positions.get(task_id, 0)
        status = self._statuses[min(index, len(self._statuses) - 1)]
        urls = (MOCK_RESULT_URL,) if status is JobStatus.COMPLETED else ()
        return Job(task_id=task_id, status=status, result_urls=urls)

    async def submit(self, pdf_bytes: bytes, *, language: str, export_format: str) -> Job:
        self.submitted.append((pdf_bytes, language, export_format))
        n = len(self.submitted)
        task_id = self._task_id if n == 1 else f"{self._task_id}-{n}"
        self._positions[task_id] = 0
        return self._job(task_id)

    async def get_status(self, task_id: str) -> Job:
        self.status_calls += 1
        self._positions[task_id] = self._positions.get(task_id, 0) + 1
        return self._job(task_id)

    async def download(self, url: str) -> bytes:
        self.downloads.append(url)
        return MOCK_DOCX_BYTES
