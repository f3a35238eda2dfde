"""Read-only access to the host's uploaded-file registry."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from scan_convert.db.models import File

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"


@dataclass(frozen=True)
class FileRecord:
    file_id: str
    user: str
    type: str
    filepath: str
    filename: str
    updated_at: datetime
    source: str = "local"

    @classmethod
    def from_row(cls, row: File) -> FileRecord:
        return cls(
            file_id=row.file_id,
            user=row.user,
            type=row.type,
            filepath=row.filepath,
            filename=row.filename,
            updated_at=row.updated_at,
            source=row.source or "local",
        )


class FileRegistry:
    async def get(self, file_id: str) -> FileRecord | None:
        raise NotImplementedError

    async def latest_pdf(self, user: str, name_hint: str | None = None) -> FileRecord | None:
        """Most recently updated PDF owned by *user*, optionally matching *name_hint*."""
        raise NotImplementedError


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlFileRegistry(FileRegistry):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, file_id: str) -> FileRecord | None:
        async with self._session_factory() as session:
            row = await session.get(File, file_id)
        return FileRecord.from_row(row) if row else None

    async def latest_pdf(self, user: str, name_hint: str | None = None) -> FileRecord | None:
        stmt = select(File).where(File.user == user, File.type == PDF_MIME)
        if name_hint:
            stmt = stmt.where(
                or_(
                    File.filename == name_hint,
                    File.filepath.ilike(f"%{_escape_like(name_hint)}%", escape="\\"),
                )
            )
        # file_id breaks ties between records updated in the same instant
        stmt = stmt.order_by(File.updated_at.desc(), File.file_id.desc()).limit(1)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            row = result.scalars().first()

        logger.debug(
            "registry_latest_pdf",
            extra={"user": user, "name_hint": name_hint, "found": row is not None},
        )
        return FileRecord.from_row(row) if row else None


class InMemoryFileRegistry(FileRegistry):
    """Registry over a fixed list of records (dev/test)."""

    def __init__(self, records: Iterable[FileRecord] = ()) -> None:
        self._records = list(records)

    async def get(self, file_id: str) -> FileRecord | None:
        return next((r for r in self._records if r.file_id == file_id), None)

    async def latest_pdf(self, user: str, name_hint: str | None = None) -> FileRecord | None:
        candidates = [r for r in self._records if r.user == user and r.type == PDF_MIME]
        if name_hint:
            hint = name_hint.lower()
            candidates = [r for r in candidates if r.filename == name_hint or hint in r.filepath.lower()]
        if not candidates:
            return None
        return max(candidates, key=lambda r: (r.updated_at, r.file_id))
