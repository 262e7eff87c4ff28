"""Shared parameter types and helpers for the tool handler groups."""

from typing import Annotated

from pydantic import Field

from ..models.common import DEFAULT_PAGE, DEFAULT_PER_PAGE, MAX_PER_PAGE, User

ProjectId = Annotated[
    str,
    Field(
        description="Project ID or URL-encoded path (e.g. 'my-group/my-project')", min_length=1
    ),
]
MergeRequestIid = Annotated[int, Field(description="Merge Request IID", ge=1)]
Page = Annotated[
    int | None, Field(description=f"Page number (default: {DEFAULT_PAGE})", ge=1)
]
PerPage = Annotated[
    int | None,
    Field(
        description=(
            f"Number of items per page (default: {DEFAULT_PER_PAGE}, max: {MAX_PER_PAGE})"
        ),
        ge=1,
        le=MAX_PER_PAGE,
    ),
]

READ_ANNOTATIONS = {"readOnlyHint": True, "idempotentHint": True, "openWorldHint": True}


def author_name(user: User | None) -> str:
    """Display name of *user*, or ``""`` when GitLab omitted it."""
    if user is None:
        return ""
    return user.name or user.username
