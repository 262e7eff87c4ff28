"""Common GitLab models shared across domains."""

from __future__ import annotations

from pydantic import Field

from .base import GitLabModel

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 100
MAX_PER_PAGE = 100


class User(GitLabModel):
    id: int = 0
    username: str = ""
    name: str = ""
    state: str = ""
    web_url: str = ""


class DiffRefs(GitLabModel):
    base_sha: str = ""
    head_sha: str = ""
    start_sha: str = ""


class Diff(GitLabModel):
    old_path: str = ""
    new_path: str = ""
    a_mode: str = ""
    b_mode: str = ""
    diff: str = ""
    new_file: bool = False
    renamed_file: bool = False
    deleted_file: bool = False


class Pagination(GitLabModel):
    """The one pagination convention for list endpoints."""

    page: int = Field(default=DEFAULT_PAGE, ge=1)
    per_page: int = Field(default=DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE)

    @classmethod
    def of(cls, page: int | None = None, per_page: int | None = None) -> Pagination:
        """Build from optional tool arguments; ``None`` keeps the default."""
        return cls(page=page, per_page=per_page)

    def to_params(self) -> dict[str, int]:
        return {"page": self.page, "per_page": self.per_page}
