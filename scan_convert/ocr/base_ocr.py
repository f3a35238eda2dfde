from __future__ import annotations

import enum
from dataclasses import dataclass, field


class JobStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    NOT_ENOUGH_CREDITS = "not_enough_credits"
    DELETED = "deleted"
    UNKNOWN = "unknown"

    @property
    def is_failure(self) -> bool:
        return self in _FAILURE_STATUSES


_FAILURE_STATUSES = frozenset({JobStatus.FAILED, JobStatus.NOT_ENOUGH_CREDITS, JobStatus.DELETED})


@dataclass(frozen=True)
class Job:
    task_id: str
    status: JobStatus
    result_urls: tuple[str, ...] = field(default_factory=tuple)
    estimated_seconds: float | None = None
    error: str | None = None

    @property
    def result_url(self) -> str | None:
        return self.result_urls[0] if self.result_urls else None


class ConversionService:
    def ensure_ready(self) -> None:
        """Raise if the service cannot accept work (e.g. missing credentials)."""

    async def submit(self, pdf_bytes: bytes, *, language: str, export_format: str) -> Job:
        raise NotImplementedError

    async def get_status(self, task_id: str) -> Job:
        raise NotImplementedError

    async def download(self, url: str) -> bytes:
        raise NotImplementedError
