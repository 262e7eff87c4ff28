"""Tool registry and enablement gate.

Every tool is declared here, whether or not configuration allows it. Enabled
tools are added to the FastMCP server; disabled ones are kept for bookkeeping
so that invoking them yields ``tool_disabled`` instead of "unknown tool".
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.middleware import CallNext, Middleware, MiddlewareContext
from fastmcp.tools import FunctionTool, Tool, ToolResult

from .config import GitLabConfig
from .exceptions import MCPError, tool_disabled

logger = logging.getLogger(__name__)

Handler = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    handler: Handler
    tool: FunctionTool

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.tool.parameters

    @property
    def output_schema(self) -> dict[str, Any] | None:
        return self.tool.output_schema


class ToolRegistry:
    """Binds named tools to handlers and decides which of them are exposed."""

    def __init__(self, config: GitLabConfig, server: FastMCP) -> None:
        self.config = config
        self._server = server
        self._tools: dict[str, ToolDescriptor] = {}
        server.add_middleware(EnablementMiddleware(self))

    @property
    def server(self) -> FastMCP:
        return self._server

    def register(
        self,
        name: str,
        description: str,
        handler: Handler,
        *,
        tags: set[str] | None = None,
        annotations: dict[str, Any] | None = None,
    ) -> ToolDescriptor:
        """Declare a tool. Re-registering a name replaces the earlier declaration."""
        guarded = self._guard(name, handler)
        tool = Tool.from_function(
            guarded,
            name=name,
            description=description,
            tags=tags,
            annotations=annotations,
        )
        descriptor = ToolDescriptor(name, description, guarded, tool)
        self._tools[name] = descriptor

        enabled = self.is_enabled(name)
        if enabled:
            self._server.add_tool(tool)
        logger.debug("Registered tool %s (enabled=%s)", name, enabled)
        return descriptor

    def _guard(self, name: str, handler: Handler) -> Handler:
        @functools.wraps(handler)
        async def guarded(*args: Any, **kwargs: Any) -> Any:
            self.check_enabled(name)
            return await handler(*args, **kwargs)

        return guarded

    def is_registered(self, name: str) -> bool:
        return name in self._tools

    def is_enabled(self, name: str) -> bool:
        return self.config.is_tool_enabled(name)

    def check_enabled(self, name: str) -> None:
        if not self.is_enabled(name):
            raise tool_disabled(name)

    def enabled_tools(self) -> set[str]:
        return {name for name in self._tools if self.is_enabled(name)}

    def get(self, name: str) -> ToolDescriptor:
        return self._tools[name]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


class EnablementMiddleware(Middleware):
    """Applies the registry's enablement policy at the protocol boundary."""

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def on_list_tools(
        self,
        context: MiddlewareContext,
        call_next: CallNext[Any, Sequence[Tool]],
    ) -> Sequence[Tool]:
        tools = await call_next(context)
        return [tool for tool in tools if self.registry.is_enabled(tool.name)]

    async def on_call_tool(
        self,
        context: MiddlewareContext,
        call_next: CallNext[Any, ToolResult],
    ) -> ToolResult:
        name = context.message.name
        try:
            # Disabled tools are not on the server, so check before lookup.
            if self.registry.is_registered(name):
                self.registry.check_enabled(name)
            return await call_next(context)
        except MCPError as e:
            logger.debug("Tool %s failed: %s", name, e)
            raise ToolError(e.to_json()) from e
