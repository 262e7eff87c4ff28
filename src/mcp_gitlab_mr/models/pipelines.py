"""Pipeline and job models."""

from __future__ import annotations

from .base import GitLabModel
from .common import User


class Pipeline(GitLabModel):
    id: int = 0
    iid: int = 0
    project_id: int = 0
    status: str = ""
    ref: str = ""
    sha: str = ""
    web_url: str = ""
    source: str = ""
    created_at: str = ""
    updated_at: str = ""


class Job(GitLabModel):
    id: int = 0
    name: str = ""
    stage: str = ""
    status: str = ""
    ref: str = ""
    created_at: str = ""
    started_at: str | None = None
    finished_at: str | None = None
    duration: float | None = None
    web_url: str = ""
    allow_failure: bool = False
    failure_reason: str | None = None
    user: User | None = None
