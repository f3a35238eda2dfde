from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Header, HTTPException, Request

from scan_convert.core.errors import ConversionError
from scan_convert.schemas import ToolInfo, ToolInvocationResponse
from scan_convert.tools.base import ToolRegistry

logger = logging.getLogger(__name__)
router = APIRouter()


def _registry(request: Request) -> ToolRegistry:
    return request.app.state.tool_registry


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/tools", response_model=list[ToolInfo])
async def list_tools(request: Request) -> list[ToolInfo]:
    return [ToolInfo(**info) for info in _registry(request).describe()]


@router.post("/tools/{name}/invoke", response_model=ToolInvocationResponse)
async def invoke_tool(
    name: str,
    request: Request,
    args: Any = Body(default=None),
    x_user_id: str | None = Header(default=None),
) -> ToolInvocationResponse:
    registry = _registry(request)
    try:
        tool = registry.get(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown tool {name!r}") from None

    try:
        result = await tool.invoke(args, user_id=x_user_id)
    except ConversionError as exc:
        logger.info("tool_invocation_error", extra={"tool": name, "error_type": type(exc).__name__})
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

    return ToolInvocationResponse(tool=name, result=result)
