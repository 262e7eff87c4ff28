"""Comment and discussion tools for merge requests."""

from dataclasses import dataclass
from typing import Annotated

from pydantic import BaseModel, Field

from ..client import GitLabClient
from ..models.common import Pagination
from ..models.merge_requests import Note, PositionOptions
from ..registry import ToolRegistry
from ._helpers import READ_ANNOTATIONS, MergeRequestIid, Page, PerPage, ProjectId, author_name

_TAGS_READ = {"gitlab", "discussions", "read"}
_TAGS_WRITE = {"gitlab", "discussions", "write"}

DiscussionId = Annotated[
    str, Field(description="Discussion ID", min_length=1, max_length=255)
]


class CommentOutput(BaseModel):
    id: int
    body: str
    author_name: str
    created_at: str


class DiscussionRef(BaseModel):
    id: str


class DiscussionNoteOutput(BaseModel):
    id: int
    body: str
    author_name: str
    resolvable: bool
    resolved: bool


class DiscussionOutput(BaseModel):
    id: str
    notes: list[DiscussionNoteOutput]


class DiscussionList(BaseModel):
    discussions: list[DiscussionOutput]


class ResolveOutput(BaseModel):
    id: str
    resolved: bool


class DeleteOutput(BaseModel):
    success: bool
    message: str


def _comment(note: Note) -> CommentOutput:
    return CommentOutput(
        id=note.id,
        body=note.body,
        author_name=author_name(note.author),
        created_at=note.created_at,
    )


@dataclass(frozen=True)
class DiscussionTools:
    client: GitLabClient

    def register(self, registry: ToolRegistry) -> None:
        registry.register(
            "add_merge_request_comment",
            "Add a general comment to a GitLab merge request.",
            self.add_merge_request_comment,
            tags=_TAGS_WRITE,
            annotations={"readOnlyHint": False, "openWorldHint": True},
        )
        registry.register(
            "add_merge_request_discussion",
            "Start a discussion on a GitLab merge request, optionally anchored to a diff line.",
            self.add_merge_request_discussion,
            tags=_TAGS_WRITE,
            annotations={"readOnlyHint": False, "openWorldHint": True},
        )
        registry.register(
            "list_merge_request_discussions",
            "List the discussions of a GitLab merge request.",
            self.list_merge_request_discussions,
            tags=_TAGS_READ,
            annotations=READ_ANNOTATIONS,
        )
        registry.register(
            "resolve_discussion",
            "Resolve or unresolve a discussion on a GitLab merge request.",
            self.resolve_discussion,
            tags=_TAGS_WRITE,
            annotations={"readOnlyHint": False, "idempotentHint": True, "openWorldHint": True},
        )
        registry.register(
            "delete_merge_request_comment",
            "Delete a comment from a GitLab merge request.",
            self.delete_merge_request_comment,
            tags=_TAGS_WRITE,
            annotations={
                "readOnlyHint": False,
                "destructiveHint": True,
                "idempotentHint": True,
                "openWorldHint": True,
            },
        )
        registry.register(
            "reply_to_merge_request_comment",
            "Reply to an existing discussion on a GitLab merge request.",
            self.reply_to_merge_request_comment,
            tags=_TAGS_WRITE,
            annotations={"readOnlyHint": False, "openWorldHint": True},
        )

    async def add_merge_request_comment(
        self,
        project_id: ProjectId,
        merge_request_iid: MergeRequestIid,
        body: Annotated[str, Field(description="Comment body text", min_length=1)],
    ) -> CommentOutput:
        note = await self.client.add_mr_note(project_id, merge_request_iid, body)
        return _comment(note)

    async def add_merge_request_discussion(
        self,
        project_id: ProjectId,
        merge_request_iid: MergeRequestIid,
        body: Annotated[str, Field(description="Discussion body text", min_length=1)],
        position: Annotated[
            PositionOptions | None,
            Field(
                description=(
                    "Position for a line comment. Take the SHAs from get_merge_request "
                    "diff_refs; omit for a general discussion."
                )
            ),
        ] = None,
    ) -> DiscussionRef:
        """Start a discussion thread.

        With a ``position`` that names a file, the thread is attached to that
        line of the diff; otherwise it is a general discussion.
        """
        discussion = await self.client.create_mr_discussion(
            project_id, merge_request_iid, body, position
        )
        return DiscussionRef(id=discussion.id)

    async def list_merge_request_discussions(
        self,
        project_id: ProjectId,
        merge_request_iid: MergeRequestIid,
        page: Page = None,
        per_page: PerPage = None,
    ) -> DiscussionList:
        discussions = await self.client.list_mr_discussions(
            project_id, merge_request_iid, Pagination.of(page, per_page)
        )
        return DiscussionList(
            discussions=[
                DiscussionOutput(
                    id=d.id,
                    notes=[
                        DiscussionNoteOutput(
                            id=n.id,
                            body=n.body,
                            author_name=author_name(n.author),
                            resolvable=n.resolvable,
                            resolved=n.resolved,
                        )
                        for n in d.notes
                    ],
                )
                for d in discussions
            ]
        )

    async def resolve_discussion(
        self,
        project_id: ProjectId,
        merge_request_iid: MergeRequestIid,
        discussion_id: DiscussionId,
        resolved: Annotated[
            bool, Field(description="Set to true to resolve or false to unresolve")
        ],
    ) -> ResolveOutput:
        discussion = await self.client.resolve_discussion(
            project_id, merge_request_iid, discussion_id, resolved
        )
        # The first note carries the thread's resolution state.
        state = discussion.notes[0].resolved if discussion.notes else False
        return ResolveOutput(id=discussion.id, resolved=state)

    async def delete_merge_request_comment(
        self,
        project_id: ProjectId,
        merge_request_iid: MergeRequestIid,
        note_id: Annotated[int, Field(description="Note ID to delete", ge=1)],
    ) -> DeleteOutput:
        await self.client.delete_mr_note(project_id, merge_request_iid, note_id)
        return DeleteOutput(success=True, message=f"Note {note_id} deleted")

    async def reply_to_merge_request_comment(
        self,
        project_id: ProjectId,
        merge_request_iid: MergeRequestIid,
        discussion_id: DiscussionId,
        body: Annotated[str, Field(description="Reply body text", min_length=1)],
    ) -> CommentOutput:
        note = await self.client.reply_to_discussion(
            project_id, merge_request_iid, discussion_id, body
        )
        return _comment(note)
