from __future__ import annotations

from scan_convert.core.config import settings
from scan_convert.files.registry import FileRegistry, SqlFileRegistry
from scan_convert.files.storage import get_storage_strategy
from scan_convert.ocr.factory import get_conversion_service
from scan_convert.tools.base import ToolRegistry
from scan_convert.tools.pdf_to_docx import PdfToDocxTool


def get_file_registry() -> FileRegistry | None:
    """SQL-backed registry when DATABASE_URL is set, otherwise no registry."""
    if not settings.database_url:
        return None
    from scan_convert.db.session import get_sessionmaker
    return SqlFileRegistry(get_sessionmaker())


def build_tool_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(
        PdfToDocxTool(
            get_conversion_service(),
            registry=get_file_registry(),
            storage=get_storage_strategy(),
            config=settings,
        )
    )
    return registry
