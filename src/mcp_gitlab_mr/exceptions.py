"""Client-facing error taxonomy and the upstream failure classifier."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

import httpx
from fastmcp.exceptions import ToolError


class ErrorCode(str, Enum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    BAD_REQUEST = "bad_request"
    SERVER_ERROR = "server_error"
    TOOL_DISABLED = "tool_disabled"


RETRYABLE_CODES = frozenset({ErrorCode.RATE_LIMITED, ErrorCode.SERVER_ERROR})

_HINTS = {
    ErrorCode.UNAUTHORIZED: "Check GITLAB_TOKEN. The token may be invalid or expired.",
    ErrorCode.FORBIDDEN: "Check GITLAB_TOKEN permissions. Token needs 'api' scope.",
    ErrorCode.NOT_FOUND: "Verify the project ID/path and the merge request, pipeline, or note ID.",
    ErrorCode.RATE_LIMITED: "Rate limited. Wait before retrying.",
    ErrorCode.BAD_REQUEST: "Check required fields and formats before retrying.",
    ErrorCode.SERVER_ERROR: "GitLab could not complete the request. Retry later if retryable.",
    ErrorCode.TOOL_DISABLED: (
        "Tool is disabled by GITLAB_MCP_ENABLED_TOOLS / GITLAB_MCP_DISABLED_TOOLS."
    ),
}


class MCPError(ToolError):
    """The single error type surfaced to MCP callers.

    Callers branch on ``code`` (and ``retryable``); ``message`` is for humans.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        retryable: bool | None = None,
        status_code: int | None = None,
    ) -> None:
        self.code = ErrorCode(code)
        self.message = message
        self.retryable = self.code in RETRYABLE_CODES if retryable is None else retryable
        self.status_code = status_code
        super().__init__(f"[{self.code.value}] {message}")

    @property
    def hint(self) -> str:
        return _HINTS[self.code]

    def to_dict(self) -> dict[str, Any]:
        detail: dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
            "hint": self.hint,
        }
        if self.status_code is not None:
            detail["status_code"] = self.status_code
        return detail

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


def _detail(error: BaseException | None, response: httpx.Response | None) -> str:
    if response is not None:
        try:
            body = response.text
        except (httpx.ResponseNotRead, UnicodeDecodeError):
            body = ""
        if body:
            return body[:500]
    if error is not None:
        return str(error) or type(error).__name__
    return ""


def classify(error: BaseException | None, response: httpx.Response | None) -> MCPError:
    """Map an upstream outcome to exactly one taxonomy member.

    *response* is ``None`` when no response was received (connection failure,
    timeout, abandoned request). Never raises.
    """
    detail = _detail(error, response)

    if response is None:
        return MCPError(
            ErrorCode.SERVER_ERROR,
            f"GitLab API request failed without a response: {detail}",
            retryable=True,
        )

    status = response.status_code
    if status == 401:
        return MCPError(
            ErrorCode.UNAUTHORIZED,
            "Authentication token is invalid or expired",
            status_code=status,
        )
    if status == 403:
        return MCPError(
            ErrorCode.FORBIDDEN,
            "Not permitted to perform this operation",
            status_code=status,
        )
    if status == 404:
        return MCPError(
            ErrorCode.NOT_FOUND,
            "The requested resource was not found",
            status_code=status,
        )
    if status == 429:
        return MCPError(
            ErrorCode.RATE_LIMITED,
            "GitLab API rate limit reached. Wait before retrying",
            status_code=status,
        )
    if status == 400:
        return MCPError(
            ErrorCode.BAD_REQUEST,
            f"Invalid request: {detail}",
            status_code=status,
        )
    if status >= 500:
        return MCPError(
            ErrorCode.SERVER_ERROR,
            f"GitLab server error {status}. Wait before retrying",
            retryable=True,
            status_code=status,
        )
    return MCPError(
        ErrorCode.SERVER_ERROR,
        f"Unexpected GitLab API response {status}: {detail}",
        retryable=False,
        status_code=status,
    )


def tool_disabled(name: str) -> MCPError:
    return MCPError(ErrorCode.TOOL_DISABLED, f"Tool '{name}' is disabled")
