"""GitLab API client using httpx."""

from __future__ import annotations

import logging
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .config import GitLabConfig
from .exceptions import ErrorCode, MCPError, classify
from .models.approvals import MergeRequestApprovals
from .models.base import GitLabModel
from .models.common import Diff, Pagination
from .models.merge_requests import (
    Discussion,
    DiscussionNote,
    MergeRequest,
    Note,
    PositionOptions,
)
from .models.pipelines import Job, Pipeline

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=GitLabModel)

_POSITION_OPTIONAL_FIELDS = ("new_line", "old_line", "base_sha", "start_sha", "head_sha")


class GitLabClient:
    """Async HTTP client for the merge request surface of the GitLab REST API v4.

    Every failure leaves this class as an ``MCPError``.
    """

    def __init__(self, config: GitLabConfig | None = None) -> None:
        self.config = config or GitLabConfig.from_env()
        self.config.validate()
        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers={
                "PRIVATE-TOKEN": self.config.token,
                "Content-Type": "application/json",
            },
            timeout=self.config.timeout,
            verify=self.config.ssl_verify,
        )
        logger.debug("GitLab client initialized for %s", self.config.api_url)

    async def close(self) -> None:
        await self._client.aclose()

    # ── HTTP helpers ──────────────────────────────────────────────

    @staticmethod
    def _encode_id(project_id: str | int) -> str:
        """Encode a project ID. Numeric IDs pass through; paths are URL-encoded."""
        if isinstance(project_id, int):
            return str(project_id)
        try:
            return str(int(project_id))
        except ValueError:
            return quote(project_id, safe="")

    @staticmethod
    def _page_params(pagination: Pagination | None) -> dict[str, int]:
        return (pagination or Pagination()).to_params()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make an API request and return parsed JSON (``None`` for empty bodies)."""
        kwargs: dict[str, Any] = {"params": params}
        if json_data is not None:
            kwargs["json"] = json_data

        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.InvalidURL as e:
            error = MCPError(ErrorCode.BAD_REQUEST, f"Invalid request URL: {e}", retryable=False)
            logger.debug("%s failed: %s", method, error)
            raise error from e
        except httpx.HTTPError as e:
            error = classify(e, None)
            logger.debug("%s %s failed: %s", method, path, error)
            raise error from e

        if not resp.is_success:
            error = classify(None, resp)
            logger.debug("%s %s failed: %s", method, path, error)
            raise error

        if resp.status_code == 204 or not resp.content:
            return None

        content_type = resp.headers.get("content-type", "")
        if "text/html" in content_type:
            raise MCPError(
                ErrorCode.SERVER_ERROR,
                "Unexpected HTML response, check URL and authentication",
                retryable=False,
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as e:
            # Covers undecodable bytes as well as bad JSON.
            raise MCPError(
                ErrorCode.SERVER_ERROR,
                f"JSON parse error: {e}",
                retryable=False,
                status_code=resp.status_code,
            ) from e

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json_data: Any = None, **kwargs: Any) -> Any:
        return await self._request("POST", path, json_data=json_data, **kwargs)

    async def put(self, path: str, json_data: Any = None, **kwargs: Any) -> Any:
        return await self._request("PUT", path, json_data=json_data, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self._request("DELETE", path, **kwargs)

    @staticmethod
    def _parse(model: type[M], data: Any) -> M:
        try:
            return model.model_validate(data if data is not None else {})
        except ValidationError as e:
            raise MCPError(
                ErrorCode.SERVER_ERROR,
                f"Unexpected {model.__name__} payload from GitLab: {e.error_count()} error(s)",
                retryable=False,
            ) from e

    @classmethod
    def _parse_list(cls, model: type[M], data: Any) -> list[M]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise MCPError(
                ErrorCode.SERVER_ERROR,
                f"Expected a list of {model.__name__} from GitLab, got {type(data).__name__}",
                retryable=False,
            )
        return [cls._parse(model, item) for item in data]

    # ── Merge Requests ────────────────────────────────────────────

    async def list_merge_requests(
        self,
        project_id: str | int,
        *,
        state: str | None = None,
        author_id: int | None = None,
        assignee_id: int | None = None,
        pagination: Pagination | None = None,
    ) -> list[MergeRequest]:
        enc = self._encode_id(project_id)
        params: dict[str, Any] = self._page_params(pagination)
        if state is not None:
            params["state"] = state
        if author_id is not None:
            params["author_id"] = author_id
        if assignee_id is not None:
            params["assignee_id"] = assignee_id
        data = await self.get(f"/projects/{enc}/merge_requests", params=params)
        return self._parse_list(MergeRequest, data)

    async def get_merge_request(self, project_id: str | int, mr_iid: int) -> MergeRequest:
        enc = self._encode_id(project_id)
        data = await self.get(f"/projects/{enc}/merge_requests/{mr_iid}")
        return self._parse(MergeRequest, data)

    async def create_merge_request(
        self, project_id: str | int, params: dict[str, Any]
    ) -> MergeRequest:
        enc = self._encode_id(project_id)
        data = await self.post(f"/projects/{enc}/merge_requests", params)
        return self._parse(MergeRequest, data)

    async def update_merge_request(
        self, project_id: str | int, mr_iid: int, params: dict[str, Any]
    ) -> MergeRequest:
        enc = self._encode_id(project_id)
        data = await self.put(f"/projects/{enc}/merge_requests/{mr_iid}", params)
        return self._parse(MergeRequest, data)

    async def merge_merge_request(
        self, project_id: str | int, mr_iid: int, params: dict[str, Any] | None = None
    ) -> MergeRequest:
        enc = self._encode_id(project_id)
        data = await self.put(f"/projects/{enc}/merge_requests/{mr_iid}/merge", params or {})
        return self._parse(MergeRequest, data)

    async def list_merge_request_diffs(
        self, project_id: str | int, mr_iid: int, pagination: Pagination | None = None
    ) -> list[Diff]:
        enc = self._encode_id(project_id)
        data = await self.get(
            f"/projects/{enc}/merge_requests/{mr_iid}/diffs",
            params=self._page_params(pagination),
        )
        return self._parse_list(Diff, data)

    # ── MR Notes ──────────────────────────────────────────────────

    async def add_mr_note(self, project_id: str | int, mr_iid: int, body: str) -> Note:
        enc = self._encode_id(project_id)
        data = await self.post(
            f"/projects/{enc}/merge_requests/{mr_iid}/notes",
            {"body": body},
        )
        return self._parse(Note, data)

    async def delete_mr_note(self, project_id: str | int, mr_iid: int, note_id: int) -> None:
        enc = self._encode_id(project_id)
        await self.delete(f"/projects/{enc}/merge_requests/{mr_iid}/notes/{note_id}")

    # ── MR Discussions ────────────────────────────────────────────

    @staticmethod
    def _build_position(position: PositionOptions | None) -> dict[str, Any] | None:
        """Turn position options into a GitLab ``position`` block.

        Returns ``None`` (a general discussion) when no file path is given.
        Unset lines and SHAs are left out rather than sent empty.
        """
        if position is None:
            return None
        file_path = position.new_path or position.old_path
        if not file_path:
            return None

        block: dict[str, Any] = {
            "position_type": "text",
            "new_path": position.new_path or file_path,
            "old_path": position.old_path or file_path,
        }
        for key in _POSITION_OPTIONAL_FIELDS:
            value = getattr(position, key)
            if value is not None and value != "":
                block[key] = value
        return block

    async def create_mr_discussion(
        self,
        project_id: str | int,
        mr_iid: int,
        body: str,
        position: PositionOptions | None = None,
    ) -> Discussion:
        enc = self._encode_id(project_id)
        params: dict[str, Any] = {"body": body}
        block = self._build_position(position)
        if block is not None:
            params["position"] = block
        data = await self.post(f"/projects/{enc}/merge_requests/{mr_iid}/discussions", params)
        return self._parse(Discussion, data)

    async def list_mr_discussions(
        self, project_id: str | int, mr_iid: int, pagination: Pagination | None = None
    ) -> list[Discussion]:
        enc = self._encode_id(project_id)
        data = await self.get(
            f"/projects/{enc}/merge_requests/{mr_iid}/discussions",
            params=self._page_params(pagination),
        )
        return self._parse_list(Discussion, data)

    async def resolve_discussion(
        self, project_id: str | int, mr_iid: int, discussion_id: str, resolved: bool
    ) -> Discussion:
        enc = self._encode_id(project_id)
        data = await self.put(
            f"/projects/{enc}/merge_requests/{mr_iid}/discussions/{quote(discussion_id, safe='')}",
            {"resolved": resolved},
        )
        return self._parse(Discussion, data)

    async def reply_to_discussion(
        self, project_id: str | int, mr_iid: int, discussion_id: str, body: str
    ) -> DiscussionNote:
        enc = self._encode_id(project_id)
        data = await self.post(
            f"/projects/{enc}/merge_requests/{mr_iid}/discussions/"
            f"{quote(discussion_id, safe='')}/notes",
            {"body": body},
        )
        return self._parse(DiscussionNote, data)

    # ── MR Approvals ──────────────────────────────────────────────

    async def approve_merge_request(
        self, project_id: str | int, mr_iid: int
    ) -> MergeRequestApprovals:
        enc = self._encode_id(project_id)
        data = await self.post(f"/projects/{enc}/merge_requests/{mr_iid}/approve")
        return self._parse(MergeRequestApprovals, data)

    async def unapprove_merge_request(self, project_id: str | int, mr_iid: int) -> None:
        enc = self._encode_id(project_id)
        await self.post(f"/projects/{enc}/merge_requests/{mr_iid}/unapprove")

    async def get_merge_request_approvals(
        self, project_id: str | int, mr_iid: int
    ) -> MergeRequestApprovals:
        enc = self._encode_id(project_id)
        data = await self.get(f"/projects/{enc}/merge_requests/{mr_iid}/approvals")
        return self._parse(MergeRequestApprovals, data)

    # ── Pipelines & Jobs ──────────────────────────────────────────

    async def list_merge_request_pipelines(
        self, project_id: str | int, mr_iid: int, pagination: Pagination | None = None
    ) -> list[Pipeline]:
        enc = self._encode_id(project_id)
        data = await self.get(
            f"/projects/{enc}/merge_requests/{mr_iid}/pipelines",
            params=self._page_params(pagination),
        )
        return self._parse_list(Pipeline, data)

    async def list_pipeline_jobs(
        self, project_id: str | int, pipeline_id: int, pagination: Pagination | None = None
    ) -> list[Job]:
        enc = self._encode_id(project_id)
        data = await self.get(
            f"/projects/{enc}/pipelines/{pipeline_id}/jobs",
            params=self._page_params(pagination),
        )
        return self._parse_list(Job, data)
