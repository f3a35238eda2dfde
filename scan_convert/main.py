from __future__ import annotations

import logging

from fastapi import FastAPI

from scan_convert.api.routes import router
from scan_convert.core.config import settings
from scan_convert.core.logging import configure_logging
from scan_convert.db.init_db import init_db
from scan_convert.tools.base import ToolRegistry
from scan_convert.tools.factory import build_tool_registry


def create_app(tool_registry: ToolRegistry | None = None) -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="Scan Convert", version="0.1.0")
    app.state.tool_registry = tool_registry or build_tool_registry()
    app.include_router(router)

    @app.get("/")
    async def root():
        return {
            "message": "Scanned PDF to DOCX conversion tools",
            "tools": "/tools",
            "health": "/health",
        }

    @app.on_event("startup")
    async def _startup() -> None:
        # Registry lookups are skipped without a database
        if settings.database_url:
            await init_db()

    logging.getLogger(__name__).info(
        "startup", extra={"tools": app.state.tool_registry.names(), "env": settings.app_env}
    )
    return app


app = create_app()
