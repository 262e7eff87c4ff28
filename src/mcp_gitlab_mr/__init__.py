"""MCP server for GitLab merge request review."""

import asyncio
import logging
import os
from typing import Any

import click
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    default="stdio",
    help="MCP transport type",
)
@click.option("--port", default=8000, help="Port for HTTP transports")
@click.option("--host", default="127.0.0.1", help="Host for HTTP transports")
@click.option("--gitlab-url", envvar="GITLAB_URL", help="GitLab instance URL")
@click.option("--gitlab-token", envvar="GITLAB_TOKEN", help="GitLab personal access token")
@click.option(
    "--enabled-tools",
    help="Comma-separated tools to expose (default: all)",
)
@click.option("--disabled-tools", help="Comma-separated tools to hide; wins over --enabled-tools")
@click.option("--debug", is_flag=True, help="Log diagnostics to stderr")
@click.version_option(package_name="gitlab-mr-mcp")
def main(
    transport: str,
    port: int,
    host: str,
    gitlab_url: str | None,
    gitlab_token: str | None,
    enabled_tools: str | None,
    disabled_tools: str | None,
    debug: bool,
) -> None:
    """Run the GitLab MR MCP server."""
    load_dotenv()

    if gitlab_url:
        os.environ["GITLAB_URL"] = gitlab_url
    if gitlab_token:
        os.environ["GITLAB_TOKEN"] = gitlab_token
    if enabled_tools is not None:
        os.environ["GITLAB_MCP_ENABLED_TOOLS"] = enabled_tools
    if disabled_tools is not None:
        os.environ["GITLAB_MCP_DISABLED_TOOLS"] = disabled_tools
    if debug:
        os.environ["GITLAB_MCP_DEBUG"] = "true"

    from .config import GitLabConfig
    from .servers.gitlab import create_server

    try:
        config = GitLabConfig.from_env()
        config.validate()
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    config.setup_logging()
    logger.debug("Loaded %s", config)

    registry = create_server(config)

    run_kwargs: dict[str, Any] = {"transport": transport}
    if transport != "stdio":
        run_kwargs["host"] = host
        run_kwargs["port"] = port

    logger.debug("Starting %s transport", transport)
    asyncio.run(registry.server.run_async(show_banner=False, **run_kwargs))


if __name__ == "__main__":
    main()
