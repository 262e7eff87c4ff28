"""GitLab MR MCP server configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

_TRUTHY = ("true", "1", "yes")


def parse_tool_list(value: str | None) -> tuple[str, ...] | None:
    """Split a comma-separated tool list, trimming whitespace and dropping empty entries.

    Returns ``None`` when *value* is unset or blank, meaning "no list given".
    """
    if not value or not value.strip():
        return None
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class GitLabConfig:
    """Configuration for the GitLab MR MCP server, loaded from environment variables.

    ``enabled_tools`` of ``None`` (or empty) means every tool is allowed;
    ``disabled_tools`` always wins over ``enabled_tools``.
    """

    url: str = ""
    token: str = field(default="", repr=False)
    enabled_tools: tuple[str, ...] | None = None
    disabled_tools: tuple[str, ...] = ()
    debug: bool = False
    timeout: int = 30
    ssl_verify: bool = True

    @classmethod
    def from_env(cls) -> GitLabConfig:
        url = os.getenv("GITLAB_URL", "").strip().rstrip("/")
        token = (
            os.getenv("GITLAB_TOKEN")
            or os.getenv("GITLAB_PAT")
            or os.getenv("GITLAB_PERSONAL_ACCESS_TOKEN")
            or os.getenv("GITLAB_API_TOKEN", "")
        )
        debug = os.getenv("GITLAB_MCP_DEBUG", "false").strip().lower() in _TRUTHY
        raw_timeout = os.getenv("GITLAB_TIMEOUT", "30")
        try:
            timeout = int(raw_timeout)
        except ValueError:
            raise ValueError(
                f"GITLAB_TIMEOUT must be a whole number of seconds, got {raw_timeout!r}"
            ) from None
        ssl_verify = os.getenv("GITLAB_SSL_VERIFY", "true").lower() not in (
            "false",
            "0",
            "no",
        )

        return cls(
            url=url,
            token=token,
            enabled_tools=parse_tool_list(os.getenv("GITLAB_MCP_ENABLED_TOOLS")),
            disabled_tools=parse_tool_list(os.getenv("GITLAB_MCP_DISABLED_TOOLS")) or (),
            debug=debug,
            timeout=timeout,
            ssl_verify=ssl_verify,
        )

    @property
    def api_url(self) -> str:
        if self.url.endswith("/api/v4"):
            return self.url
        return f"{self.url}/api/v4"

    def validate(self) -> None:
        if not self.url:
            msg = "GITLAB_URL environment variable is required"
            raise ValueError(msg)
        if not self.token:
            msg = (
                "GitLab token is required. Set one of: GITLAB_TOKEN, GITLAB_PAT, "
                "GITLAB_PERSONAL_ACCESS_TOKEN, or GITLAB_API_TOKEN"
            )
            raise ValueError(msg)

    def is_tool_enabled(self, name: str) -> bool:
        # Deny list first: a name in both lists is disabled.
        if name in self.disabled_tools:
            return False
        if self.enabled_tools:
            return name in self.enabled_tools
        return True

    @property
    def masked_token(self) -> str:
        if len(self.token) > 4:
            return f"{self.token[:2]}***{self.token[-2:]}"
        return "***"

    def __str__(self) -> str:
        enabled = list(self.enabled_tools) if self.enabled_tools is not None else None
        return (
            f"GitLabConfig(url={self.url!r}, token={self.masked_token!r}, "
            f"enabled_tools={enabled}, disabled_tools={list(self.disabled_tools)}, "
            f"debug={self.debug}, timeout={self.timeout}, ssl_verify={self.ssl_verify})"
        )

    def setup_logging(self) -> None:
        """Send package logs to stderr; stdout is reserved for the stdio transport."""
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        root_logger = logging.getLogger("mcp_gitlab_mr")
        root_logger.setLevel(logging.DEBUG if self.debug else logging.WARNING)
        root_logger.addHandler(handler)
