from __future__ import annotations

import logging

from scan_convert.db.models import Base
from scan_convert.db.session import get_engine

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Create the ``files`` table on the configured database if it is missing."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized")
