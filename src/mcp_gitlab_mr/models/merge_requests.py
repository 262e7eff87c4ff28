"""Merge request, note, and discussion models."""

from __future__ import annotations

from pydantic import Field

from .base import GitLabModel
from .common import DiffRefs, User


class MergeRequest(GitLabModel):
    id: int = 0
    iid: int = 0
    project_id: int = 0
    title: str = ""
    description: str = ""
    state: str = ""
    created_at: str = ""
    updated_at: str = ""
    merged_at: str | None = None
    source_branch: str = ""
    target_branch: str = ""
    author: User | None = None
    assignees: list[User] = []
    reviewers: list[User] = []
    labels: list[str] = []
    draft: bool = False
    merge_status: str = ""
    detailed_merge_status: str = ""
    sha: str = ""
    web_url: str = ""
    squash: bool = False
    has_conflicts: bool = False
    diff_refs: DiffRefs | None = None


class Note(GitLabModel):
    id: int = 0
    body: str = ""
    author: User | None = None
    created_at: str = ""
    updated_at: str = ""
    system: bool = False
    noteable_id: int = 0
    noteable_type: str = ""
    resolvable: bool = False
    resolved: bool = False
    resolved_by: User | None = None


class DiscussionPosition(GitLabModel):
    base_sha: str = ""
    start_sha: str = ""
    head_sha: str = ""
    position_type: str = "text"
    old_path: str = ""
    new_path: str = ""
    old_line: int | None = None
    new_line: int | None = None


class DiscussionNote(Note):
    position: DiscussionPosition | None = None
    type: str | None = None


class Discussion(GitLabModel):
    id: str = ""
    individual_note: bool = False
    notes: list[DiscussionNote] = []


class PositionOptions(GitLabModel):
    """Where a line-level discussion is anchored in the diff.

    Every field is optional; a position is only sent when a file path is set.
    """

    base_sha: str | None = Field(default=None, description="Base commit SHA (from diff_refs)")
    start_sha: str | None = Field(default=None, description="Start commit SHA (from diff_refs)")
    head_sha: str | None = Field(default=None, description="Head commit SHA (from diff_refs)")
    old_path: str | None = Field(default=None, description="Old file path (for renames)")
    new_path: str | None = Field(default=None, description="File path for the line comment")
    old_line: int | None = Field(default=None, description="Line number in the old file", ge=1)
    new_line: int | None = Field(default=None, description="Line number in the new file", ge=1)
