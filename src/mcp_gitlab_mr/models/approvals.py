"""Merge request approval models."""

from __future__ import annotations

from .base import GitLabModel
from .common import User


class ApprovedBy(GitLabModel):
    user: User = User()


class MergeRequestApprovals(GitLabModel):
    id: int = 0
    iid: int = 0
    project_id: int = 0
    title: str = ""
    state: str = ""
    approved: bool = False
    approvals_required: int = 0
    approvals_left: int = 0
    user_has_approved: bool = False
    user_can_approve: bool = False
    approved_by: list[ApprovedBy] = []
