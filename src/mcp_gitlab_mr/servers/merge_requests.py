"""Merge request tools: list, inspect, create, update, merge, and diff."""

from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from ..client import GitLabClient
from ..models.common import Pagination
from ..models.merge_requests import MergeRequest
from ..registry import ToolRegistry
from ._helpers import READ_ANNOTATIONS, MergeRequestIid, Page, PerPage, ProjectId, author_name

_TAGS_READ = {"gitlab", "merge_requests", "read"}
_TAGS_WRITE = {"gitlab", "merge_requests", "write"}


class MergeRequestSummary(BaseModel):
    iid: int
    title: str
    state: str
    source_branch: str
    target_branch: str
    web_url: str
    author_name: str


class MergeRequestList(BaseModel):
    merge_requests: list[MergeRequestSummary]


class DiffRefsOutput(BaseModel):
    base_sha: str
    start_sha: str
    head_sha: str


class MergeRequestDetail(BaseModel):
    iid: int
    title: str
    description: str
    state: str
    source_branch: str
    target_branch: str
    web_url: str
    author_name: str
    draft: bool
    detailed_merge_status: str
    labels: list[str]
    created_at: str
    updated_at: str
    diff_refs: DiffRefsOutput | None = None


class MergeRequestRef(BaseModel):
    iid: int
    title: str
    web_url: str


class MergeResult(BaseModel):
    iid: int
    state: str
    web_url: str


class FileChange(BaseModel):
    old_path: str
    new_path: str
    diff: str
    new_file: bool
    renamed_file: bool
    deleted_file: bool


class MergeRequestChanges(BaseModel):
    changes: list[FileChange]


def _summary(mr: MergeRequest) -> MergeRequestSummary:
    return MergeRequestSummary(
        iid=mr.iid,
        title=mr.title,
        state=mr.state,
        source_branch=mr.source_branch,
        target_branch=mr.target_branch,
        web_url=mr.web_url,
        author_name=author_name(mr.author),
    )


def _ref(mr: MergeRequest) -> MergeRequestRef:
    return MergeRequestRef(iid=mr.iid, title=mr.title, web_url=mr.web_url)


@dataclass(frozen=True)
class MergeRequestTools:
    client: GitLabClient

    def register(self, registry: ToolRegistry) -> None:
        registry.register(
            "list_merge_requests",
            "List merge requests in a GitLab project.",
            self.list_merge_requests,
            tags=_TAGS_READ,
            annotations=READ_ANNOTATIONS,
        )
        registry.register(
            "get_merge_request",
            "Get details of a GitLab merge request, including its diff_refs SHAs.",
            self.get_merge_request,
            tags=_TAGS_READ,
            annotations=READ_ANNOTATIONS,
        )
        registry.register(
            "create_merge_request",
            "Create a new GitLab merge request.",
            self.create_merge_request,
            tags=_TAGS_WRITE,
            annotations={"readOnlyHint": False, "openWorldHint": True},
        )
        registry.register(
            "update_merge_request",
            "Update a GitLab merge request.",
            self.update_merge_request,
            tags=_TAGS_WRITE,
            annotations={"readOnlyHint": False, "idempotentHint": True, "openWorldHint": True},
        )
        registry.register(
            "merge_merge_request",
            "Merge a GitLab merge request.",
            self.merge_merge_request,
            tags=_TAGS_WRITE,
            annotations={"readOnlyHint": False, "openWorldHint": True},
        )
        registry.register(
            "get_merge_request_changes",
            "Get the file changes (diffs) of a GitLab merge request.",
            self.get_merge_request_changes,
            tags=_TAGS_READ,
            annotations=READ_ANNOTATIONS,
        )

    async def list_merge_requests(
        self,
        project_id: ProjectId,
        state: Annotated[
            Literal["opened", "closed", "merged", "all"] | None,
            Field(description="MR state filter"),
        ] = None,
        author_id: Annotated[int | None, Field(description="Author user ID filter")] = None,
        assignee_id: Annotated[int | None, Field(description="Assignee user ID filter")] = None,
        page: Page = None,
        per_page: PerPage = None,
    ) -> MergeRequestList:
        """List merge requests in a project, newest first."""
        mrs = await self.client.list_merge_requests(
            project_id,
            state=state,
            author_id=author_id,
            assignee_id=assignee_id,
            pagination=Pagination.of(page, per_page),
        )
        return MergeRequestList(merge_requests=[_summary(mr) for mr in mrs])

    async def get_merge_request(
        self,
        project_id: ProjectId,
        merge_request_iid: MergeRequestIid,
    ) -> MergeRequestDetail:
        """Get merge request details.

        The diff_refs SHAs are what a line-level discussion position needs.
        """
        mr = await self.client.get_merge_request(project_id, merge_request_iid)
        diff_refs = None
        if mr.diff_refs is not None:
            diff_refs = DiffRefsOutput(
                base_sha=mr.diff_refs.base_sha,
                start_sha=mr.diff_refs.start_sha,
                head_sha=mr.diff_refs.head_sha,
            )
        return MergeRequestDetail(
            iid=mr.iid,
            title=mr.title,
            description=mr.description,
            state=mr.state,
            source_branch=mr.source_branch,
            target_branch=mr.target_branch,
            web_url=mr.web_url,
            author_name=author_name(mr.author),
            draft=mr.draft,
            detailed_merge_status=mr.detailed_merge_status,
            labels=mr.labels,
            created_at=mr.created_at,
            updated_at=mr.updated_at,
            diff_refs=diff_refs,
        )

    async def create_merge_request(
        self,
        project_id: ProjectId,
        source_branch: Annotated[str, Field(description="Source branch name", min_length=1)],
        target_branch: Annotated[str, Field(description="Target branch name", min_length=1)],
        title: Annotated[str, Field(description="Merge request title", min_length=1)],
        description: Annotated[str | None, Field(description="Merge request description")] = None,
        assignee_ids: Annotated[list[int] | None, Field(description="Assignee user IDs")] = None,
        reviewer_ids: Annotated[list[int] | None, Field(description="Reviewer user IDs")] = None,
        labels: Annotated[list[str] | None, Field(description="Labels to add")] = None,
    ) -> MergeRequestRef:
        """Create a new merge request."""
        params: dict[str, Any] = {
            "source_branch": source_branch,
            "target_branch": target_branch,
            "title": title,
        }
        if description is not None:
            params["description"] = description
        if assignee_ids is not None:
            params["assignee_ids"] = assignee_ids
        if reviewer_ids is not None:
            params["reviewer_ids"] = reviewer_ids
        if labels is not None:
            params["labels"] = ",".join(labels)
        mr = await self.client.create_merge_request(project_id, params)
        return _ref(mr)

    async def update_merge_request(
        self,
        project_id: ProjectId,
        merge_request_iid: MergeRequestIid,
        title: Annotated[str | None, Field(description="New title")] = None,
        description: Annotated[str | None, Field(description="New description")] = None,
        assignee_ids: Annotated[
            list[int] | None, Field(description="New assignee user IDs")
        ] = None,
        reviewer_ids: Annotated[
            list[int] | None, Field(description="New reviewer user IDs")
        ] = None,
        labels: Annotated[list[str] | None, Field(description="New labels")] = None,
        target_branch: Annotated[str | None, Field(description="New target branch")] = None,
        state_event: Annotated[
            Literal["close", "reopen"] | None, Field(description="close or reopen")
        ] = None,
    ) -> MergeRequestRef:
        """Update a merge request. Only the given fields change."""
        params: dict[str, Any] = {}
        if title is not None:
            params["title"] = title
        if description is not None:
            params["description"] = description
        if assignee_ids is not None:
            params["assignee_ids"] = assignee_ids
        if reviewer_ids is not None:
            params["reviewer_ids"] = reviewer_ids
        if labels is not None:
            params["labels"] = ",".join(labels)
        if target_branch is not None:
            params["target_branch"] = target_branch
        if state_event is not None:
            params["state_event"] = state_event
        mr = await self.client.update_merge_request(project_id, merge_request_iid, params)
        return _ref(mr)

    async def merge_merge_request(
        self,
        project_id: ProjectId,
        merge_request_iid: MergeRequestIid,
        squash: Annotated[bool | None, Field(description="Squash commits when merging")] = None,
        should_remove_source_branch: Annotated[
            bool | None, Field(description="Remove source branch after merge")
        ] = None,
        merge_commit_message: Annotated[
            str | None, Field(description="Custom merge commit message")
        ] = None,
        squash_commit_message: Annotated[
            str | None, Field(description="Custom squash commit message")
        ] = None,
    ) -> MergeResult:
        """Merge a merge request."""
        params: dict[str, Any] = {}
        if squash is not None:
            params["squash"] = squash
        if should_remove_source_branch is not None:
            params["should_remove_source_branch"] = should_remove_source_branch
        if merge_commit_message is not None:
            params["merge_commit_message"] = merge_commit_message
        if squash_commit_message is not None:
            params["squash_commit_message"] = squash_commit_message
        mr = await self.client.merge_merge_request(project_id, merge_request_iid, params)
        return MergeResult(iid=mr.iid, state=mr.state, web_url=mr.web_url)

    async def get_merge_request_changes(
        self,
        project_id: ProjectId,
        merge_request_iid: MergeRequestIid,
        page: Page = None,
        per_page: PerPage = None,
    ) -> MergeRequestChanges:
        """Get the per-file diffs of a merge request."""
        diffs = await self.client.list_merge_request_diffs(
            project_id, merge_request_iid, Pagination.of(page, per_page)
        )
        return MergeRequestChanges(
            changes=[
                FileChange(
                    old_path=d.old_path,
                    new_path=d.new_path,
                    diff=d.diff,
                    new_file=d.new_file,
                    renamed_file=d.renamed_file,
                    deleted_file=d.deleted_file,
                )
                for d in diffs
            ]
        )
