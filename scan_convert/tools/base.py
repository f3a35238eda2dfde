"""Narrow capability interface between tools and the agent host.

A tool is anything with a name, a description, a pydantic argument schema
and an async ``invoke``. Tools are registered with the host by name; the
host never subclasses or reaches into them.
"""
from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

logger = logging.getLogger(__name__)


@runtime_checkable
class Tool(Protocol):
    name: str
    description: str
    args_schema: type[BaseModel]

    async def invoke(self, args: Any, *, user_id: str | None = None) -> dict[str, Any]: ...


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> Tool:
        if not isinstance(tool, Tool):
            raise TypeError(f"{tool!r} does not implement the Tool interface")
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name!r} is already registered")
        self._tools[tool.name] = tool
        logger.info("tool_registered", extra={"tool": tool.name})
        return tool

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise KeyError(f"Unknown tool {name!r}") from None

    def names(self) -> list[str]:
        return sorted(self._tools)

    def describe(self) -> list[dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.args_schema.model_json_schema(by_alias=True),
            }
            for tool in (self._tools[n] for n in self.names())
        ]

    async def invoke(self, name: str, args: Any, *, user_id: str | None = None) -> dict[str, Any]:
        return await self.get(name).invoke(args, user_id=user_id)
