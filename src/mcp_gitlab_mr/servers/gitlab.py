"""GitLab MR MCP server assembly."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from ..client import GitLabClient
from ..config import GitLabConfig
from ..registry import ToolRegistry
from .approvals import ApprovalTools
from .discussions import DiscussionTools
from .merge_requests import MergeRequestTools
from .pipelines import PipelineTools

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "Provides tools for GitLab merge request review: merge requests, comments and"
    " line-level discussions, approvals, and pipelines. Failed calls return a JSON"
    " error with a stable 'code' and a 'retryable' flag."
)


def create_server(config: GitLabConfig, client: GitLabClient | None = None) -> ToolRegistry:
    """Build the FastMCP server and register every tool group on it.

    Returns the registry; ``registry.server`` is the server to run.
    """
    client = client or GitLabClient(config)

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
        try:
            yield {"client": client, "config": config}
        finally:
            await client.close()

    mcp = FastMCP(
        name="GitLab MR MCP Server",
        instructions=INSTRUCTIONS,
        lifespan=lifespan,
        on_duplicate="replace",
    )
    registry = ToolRegistry(config, mcp)
    for group in (
        MergeRequestTools(client),
        DiscussionTools(client),
        ApprovalTools(client),
        PipelineTools(client),
    ):
        group.register(registry)

    logger.debug(
        "Enabled tools (%d/%d): %s",
        len(registry.enabled_tools()),
        len(registry),
        ", ".join(sorted(registry.enabled_tools())),
    )
    return registry
