"""Merge request approval tools."""

from dataclasses import dataclass

from pydantic import BaseModel

from ..client import GitLabClient
from ..registry import ToolRegistry
from ._helpers import READ_ANNOTATIONS, MergeRequestIid, ProjectId

_TAGS_READ = {"gitlab", "approvals", "read"}
_TAGS_WRITE = {"gitlab", "approvals", "write"}


class ApproveOutput(BaseModel):
    approved: bool
    user_has_approved: bool
    approvals_left: int


class UnapproveOutput(BaseModel):
    success: bool


class Approver(BaseModel):
    id: int
    username: str


class ApprovalsOutput(BaseModel):
    approved: bool
    approvals_required: int
    approvals_left: int
    user_has_approved: bool
    user_can_approve: bool
    approved_by: list[Approver]


@dataclass(frozen=True)
class ApprovalTools:
    client: GitLabClient

    def register(self, registry: ToolRegistry) -> None:
        registry.register(
            "approve_merge_request",
            "Approve a GitLab merge request.",
            self.approve_merge_request,
            tags=_TAGS_WRITE,
            annotations={"readOnlyHint": False, "idempotentHint": True, "openWorldHint": True},
        )
        registry.register(
            "unapprove_merge_request",
            "Revoke your approval of a GitLab merge request.",
            self.unapprove_merge_request,
            tags=_TAGS_WRITE,
            annotations={"readOnlyHint": False, "idempotentHint": True, "openWorldHint": True},
        )
        registry.register(
            "get_merge_request_approvals",
            "Get the approval state of a GitLab merge request.",
            self.get_merge_request_approvals,
            tags=_TAGS_READ,
            annotations=READ_ANNOTATIONS,
        )

    async def approve_merge_request(
        self, project_id: ProjectId, merge_request_iid: MergeRequestIid
    ) -> ApproveOutput:
        approvals = await self.client.approve_merge_request(project_id, merge_request_iid)
        return ApproveOutput(
            approved=approvals.approved,
            user_has_approved=approvals.user_has_approved,
            approvals_left=approvals.approvals_left,
        )

    async def unapprove_merge_request(
        self, project_id: ProjectId, merge_request_iid: MergeRequestIid
    ) -> UnapproveOutput:
        await self.client.unapprove_merge_request(project_id, merge_request_iid)
        return UnapproveOutput(success=True)

    async def get_merge_request_approvals(
        self, project_id: ProjectId, merge_request_iid: MergeRequestIid
    ) -> ApprovalsOutput:
        approvals = await self.client.get_merge_request_approvals(project_id, merge_request_iid)
        return ApprovalsOutput(
            approved=approvals.approved,
            approvals_required=approvals.approvals_required,
            approvals_left=approvals.approvals_left,
            user_has_approved=approvals.user_has_approved,
            user_can_approve=approvals.user_can_approve,
            approved_by=[
                Approver(id=a.user.id, username=a.user.username) for a in approvals.approved_by
            ],
        )
