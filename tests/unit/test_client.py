"""Tests for the GitLab API client."""

from __future__ import annotations

import json

import httpx
import pytest

from mcp_gitlab_mr.client import GitLabClient
from mcp_gitlab_mr.config import GitLabConfig
from mcp_gitlab_mr.exceptions import ErrorCode, MCPError
from mcp_gitlab_mr.models.common import Pagination
from mcp_gitlab_mr.models.merge_requests import PositionOptions

MR = "/projects/123/merge_requests/7"


class TestEncodeId:
    def test_numeric_string(self):
        assert GitLabClient._encode_id("123") == "123"

    def test_integer(self):
        assert GitLabClient._encode_id(123) == "123"

    def test_path(self):
        assert GitLabClient._encode_id("my-group/my-project") == "my-group%2Fmy-project"

    def test_nested_path(self):
        assert GitLabClient._encode_id("a/b/c") == "a%2Fb%2Fc"


class TestInit:
    def test_requires_url(self):
        with pytest.raises(ValueError, match="GITLAB_URL"):
            GitLabClient(GitLabConfig(url="", token="x"))

    def test_requires_token(self):
        with pytest.raises(ValueError, match="GITLAB_TOKEN"):
            GitLabClient(GitLabConfig(url="https://gitlab.example.com", token=""))

    async def test_sends_private_token(self, client, mock_api):
        route = mock_api.get(MR).mock(return_value=httpx.Response(200, json={"iid": 7}))
        await client.get_merge_request(123, 7)
        assert route.calls.last.request.headers["PRIVATE-TOKEN"] == "test-token"


# ── Error handling ────────────────────────────────────────────────


class TestErrors:
    @pytest.mark.parametrize(
        ("status", "code", "retryable"),
        [
            (401, ErrorCode.UNAUTHORIZED, False),
            (403, ErrorCode.FORBIDDEN, False),
            (404, ErrorCode.NOT_FOUND, False),
            (429, ErrorCode.RATE_LIMITED, True),
            (500, ErrorCode.SERVER_ERROR, True),
        ],
    )
    async def test_status_is_classified(self, client, mock_api, status, code, retryable):
        mock_api.get(MR).mock(return_value=httpx.Response(status, text="nope"))
        with pytest.raises(MCPError) as exc_info:
            await client.get_merge_request(123, 7)
        assert exc_info.value.code is code
        assert exc_info.value.retryable is retryable
        assert exc_info.value.status_code == status

    async def test_merge_conflict(self, client, mock_api):
        mock_api.put(f"{MR}/merge").mock(
            return_value=httpx.Response(405, json={"message": "405 Method Not Allowed"})
        )
        with pytest.raises(MCPError) as exc_info:
            await client.merge_merge_request(123, 7)
        assert exc_info.value.code is ErrorCode.SERVER_ERROR
        assert exc_info.value.retryable is False
        assert "405" in exc_info.value.message

    async def test_connection_failure(self, client, mock_api):
        mock_api.get(MR).mock(side_effect=httpx.ConnectError("connection refused"))
        with pytest.raises(MCPError) as exc_info:
            await client.get_merge_request(123, 7)
        assert exc_info.value.code is ErrorCode.SERVER_ERROR
        assert exc_info.value.retryable is True
        assert exc_info.value.status_code is None

    async def test_timeout(self, client, mock_api):
        mock_api.get(MR).mock(side_effect=httpx.ReadTimeout("timed out"))
        with pytest.raises(MCPError) as exc_info:
            await client.get_merge_request(123, 7)
        assert exc_info.value.code is ErrorCode.SERVER_ERROR
        assert exc_info.value.retryable is True

    async def test_html_response(self, client, mock_api):
        mock_api.get(MR).mock(
            return_value=httpx.Response(
                200,
                text="<html><body>Login</body></html>",
                headers={"content-type": "text/html"},
            )
        )
        with pytest.raises(MCPError, match="HTML") as exc_info:
            await client.get_merge_request(123, 7)
        assert exc_info.value.retryable is False

    async def test_malformed_json(self, client, mock_api):
        mock_api.get(MR).mock(
            return_value=httpx.Response(
                200, text="{not json", headers={"content-type": "application/json"}
            )
        )
        with pytest.raises(MCPError) as exc_info:
            await client.get_merge_request(123, 7)
        assert exc_info.value.code is ErrorCode.SERVER_ERROR
        assert exc_info.value.retryable is False

    async def test_undecodable_json(self, client, mock_api):
        mock_api.get(MR).mock(
            return_value=httpx.Response(
                200, content=b'{"title": "\xff"}', headers={"content-type": "application/json"}
            )
        )
        with pytest.raises(MCPError) as exc_info:
            await client.get_merge_request(123, 7)
        assert exc_info.value.code is ErrorCode.SERVER_ERROR
        assert exc_info.value.retryable is False

    async def test_url_too_long(self, client, mock_api):
        with pytest.raises(MCPError) as exc_info:
            await client.resolve_discussion(123, 7, "a" * 70000, True)
        assert exc_info.value.code is ErrorCode.BAD_REQUEST
        assert exc_info.value.retryable is False
        assert mock_api.calls.call_count == 0

    async def test_wrong_shape(self, client, mock_api):
        mock_api.get(MR).mock(return_value=httpx.Response(200, json=[{"iid": 7}]))
        with pytest.raises(MCPError) as exc_info:
            await client.get_merge_request(123, 7)
        assert exc_info.value.code is ErrorCode.SERVER_ERROR
        assert exc_info.value.retryable is False

    async def test_list_endpoint_returns_object(self, client, mock_api):
        mock_api.get("/projects/123/merge_requests").mock(
            return_value=httpx.Response(200, json={"message": "unexpected"})
        )
        with pytest.raises(MCPError, match="Expected a list"):
            await client.list_merge_requests(123)


# ── Merge requests ────────────────────────────────────────────────


class TestMergeRequests:
    async def test_list_defaults_to_first_full_page(self, client, mock_api):
        route = mock_api.get("/projects/123/merge_requests").mock(
            return_value=httpx.Response(200, json=[{"iid": 1, "title": "A"}])
        )
        result = await client.list_merge_requests(123)
        assert result[0].iid == 1
        params = route.calls.last.request.url.params
        assert params["page"] == "1"
        assert params["per_page"] == "100"

    async def test_list_pagination_and_filters(self, client, mock_api):
        route = mock_api.get("/projects/123/merge_requests").mock(
            return_value=httpx.Response(200, json=[])
        )
        await client.list_merge_requests(
            123,
            state="merged",
            author_id=5,
            assignee_id=6,
            pagination=Pagination(page=2, per_page=20),
        )
        params = route.calls.last.request.url.params
        assert params["page"] == "2"
        assert params["per_page"] == "20"
        assert params["state"] == "merged"
        assert params["author_id"] == "5"
        assert params["assignee_id"] == "6"

    async def test_list_omits_unset_filters(self, client, mock_api):
        route = mock_api.get("/projects/123/merge_requests").mock(
            return_value=httpx.Response(200, json=[])
        )
        await client.list_merge_requests(123)
        params = route.calls.last.request.url.params
        assert "state" not in params
        assert "author_id" not in params

    async def test_path_encoding(self, client, mock_api):
        route = mock_api.get("/projects/my-group%2Fmy-project/merge_requests/1").mock(
            return_value=httpx.Response(200, json={"iid": 1})
        )
        await client.get_merge_request("my-group/my-project", 1)
        assert route.called

    async def test_null_fields_degrade_to_defaults(self, client, mock_api):
        mock_api.get(MR).mock(
            return_value=httpx.Response(
                200,
                json={
                    "iid": 7,
                    "title": None,
                    "description": None,
                    "author": None,
                    "labels": None,
                    "draft": None,
                    "diff_refs": None,
                },
            )
        )
        mr = await client.get_merge_request(123, 7)
        assert mr.iid == 7
        assert mr.title == ""
        assert mr.description == ""
        assert mr.author is None
        assert mr.labels == []
        assert mr.draft is False
        assert mr.diff_refs is None

    async def test_create(self, client, mock_api):
        route = mock_api.post("/projects/123/merge_requests").mock(
            return_value=httpx.Response(201, json={"iid": 1, "title": "Test MR"})
        )
        result = await client.create_merge_request(
            123, {"source_branch": "feature", "target_branch": "main", "title": "Test MR"}
        )
        assert result.iid == 1
        body = json.loads(route.calls.last.request.content)
        assert body["source_branch"] == "feature"

    async def test_update(self, client, mock_api):
        route = mock_api.put(MR).mock(
            return_value=httpx.Response(200, json={"iid": 7, "title": "Renamed"})
        )
        result = await client.update_merge_request(123, 7, {"title": "Renamed"})
        assert result.title == "Renamed"
        assert json.loads(route.calls.last.request.content) == {"title": "Renamed"}

    async def test_merge(self, client, mock_api):
        route = mock_api.put(f"{MR}/merge").mock(
            return_value=httpx.Response(200, json={"iid": 7, "state": "merged"})
        )
        result = await client.merge_merge_request(123, 7, {"squash": True})
        assert result.state == "merged"
        assert json.loads(route.calls.last.request.content) == {"squash": True}

    async def test_diffs(self, client, mock_api):
        route = mock_api.get(f"{MR}/diffs").mock(
            return_value=httpx.Response(
                200,
                json=[{"old_path": "a.py", "new_path": "a.py", "diff": "@@ -1 +1 @@"}],
            )
        )
        diffs = await client.list_merge_request_diffs(123, 7)
        assert diffs[0].new_path == "a.py"
        assert diffs[0].new_file is False
        assert route.calls.last.request.url.params["per_page"] == "100"


# ── Notes & discussions ───────────────────────────────────────────


class TestNotes:
    async def test_add_note(self, client, mock_api):
        route = mock_api.post(f"{MR}/notes").mock(
            return_value=httpx.Response(
                201, json={"id": 10, "body": "LGTM", "author": {"username": "alice"}}
            )
        )
        note = await client.add_mr_note(123, 7, "LGTM")
        assert note.id == 10
        assert note.author.username == "alice"
        assert json.loads(route.calls.last.request.content) == {"body": "LGTM"}

    async def test_delete_note(self, client, mock_api):
        route = mock_api.delete(f"{MR}/notes/10").mock(return_value=httpx.Response(204))
        assert await client.delete_mr_note(123, 7, 10) is None
        assert route.called


class TestBuildPosition:
    def test_none(self):
        assert GitLabClient._build_position(None) is None

    def test_without_file_path(self):
        assert GitLabClient._build_position(PositionOptions(new_line=3)) is None

    def test_new_path_and_line_only(self):
        block = GitLabClient._build_position(PositionOptions(new_path="src/app.py", new_line=12))
        assert block == {
            "position_type": "text",
            "new_path": "src/app.py",
            "old_path": "src/app.py",
            "new_line": 12,
        }

    def test_old_path_fallback(self):
        block = GitLabClient._build_position(PositionOptions(old_path="gone.py", old_line=4))
        assert block["new_path"] == "gone.py"
        assert block["old_path"] == "gone.py"
        assert block["old_line"] == 4
        assert "new_line" not in block

    def test_rename_with_shas(self):
        block = GitLabClient._build_position(
            PositionOptions(
                old_path="old.py",
                new_path="new.py",
                new_line=1,
                base_sha="b",
                start_sha="s",
                head_sha="h",
            )
        )
        assert block["old_path"] == "old.py"
        assert block["new_path"] == "new.py"
        assert (block["base_sha"], block["start_sha"], block["head_sha"]) == ("b", "s", "h")

    def test_empty_shas_are_omitted(self):
        block = GitLabClient._build_position(
            PositionOptions(new_path="a.py", new_line=1, base_sha="", head_sha="")
        )
        assert "base_sha" not in block
        assert "head_sha" not in block


class TestDiscussions:
    async def test_create_positioned(self, client, mock_api):
        route = mock_api.post(f"{MR}/discussions").mock(
            return_value=httpx.Response(201, json={"id": "abc123", "notes": []})
        )
        discussion = await client.create_mr_discussion(
            123, 7, "Typo here", PositionOptions(new_path="README.md", new_line=3)
        )
        assert discussion.id == "abc123"
        body = json.loads(route.calls.last.request.content)
        assert body["body"] == "Typo here"
        assert body["position"]["new_line"] == 3
        assert "base_sha" not in body["position"]
        assert "start_sha" not in body["position"]
        assert "head_sha" not in body["position"]

    async def test_create_general(self, client, mock_api):
        route = mock_api.post(f"{MR}/discussions").mock(
            return_value=httpx.Response(201, json={"id": "abc123"})
        )
        await client.create_mr_discussion(123, 7, "Overall thoughts")
        assert json.loads(route.calls.last.request.content) == {"body": "Overall thoughts"}

    async def test_list(self, client, mock_api):
        route = mock_api.get(f"{MR}/discussions").mock(
            return_value=httpx.Response(
                200,
                json=[
                    {
                        "id": "d1",
                        "notes": [{"id": 1, "body": "hi", "resolvable": True, "resolved": None}],
                    }
                ],
            )
        )
        discussions = await client.list_mr_discussions(123, 7, Pagination(page=3))
        assert discussions[0].notes[0].resolvable is True
        assert discussions[0].notes[0].resolved is False
        assert route.calls.last.request.url.params["page"] == "3"

    async def test_resolve(self, client, mock_api):
        route = mock_api.put(f"{MR}/discussions/d1").mock(
            return_value=httpx.Response(200, json={"id": "d1", "notes": [{"resolved": True}]})
        )
        discussion = await client.resolve_discussion(123, 7, "d1", True)
        assert discussion.notes[0].resolved is True
        assert json.loads(route.calls.last.request.content) == {"resolved": True}

    async def test_reply(self, client, mock_api):
        route = mock_api.post(f"{MR}/discussions/d1/notes").mock(
            return_value=httpx.Response(201, json={"id": 99, "body": "Done"})
        )
        note = await client.reply_to_discussion(123, 7, "d1", "Done")
        assert note.id == 99
        assert json.loads(route.calls.last.request.content) == {"body": "Done"}


# ── Approvals & pipelines ─────────────────────────────────────────


class TestApprovals:
    async def test_approve(self, client, mock_api):
        mock_api.post(f"{MR}/approve").mock(
            return_value=httpx.Response(
                201, json={"approved": True, "user_has_approved": True, "approvals_left": 0}
            )
        )
        approvals = await client.approve_merge_request(123, 7)
        assert approvals.approved is True

    async def test_unapprove(self, client, mock_api):
        route = mock_api.post(f"{MR}/unapprove").mock(return_value=httpx.Response(201))
        assert await client.unapprove_merge_request(123, 7) is None
        assert route.called

    async def test_get_approvals(self, client, mock_api):
        mock_api.get(f"{MR}/approvals").mock(
            return_value=httpx.Response(
                200,
                json={
                    "approvals_required": 2,
                    "approvals_left": 1,
                    "approved_by": [{"user": {"id": 4, "username": "bob"}}],
                },
            )
        )
        approvals = await client.get_merge_request_approvals(123, 7)
        assert approvals.approvals_required == 2
        assert approvals.approved_by[0].user.username == "bob"


class TestPipelines:
    async def test_mr_pipelines(self, client, mock_api):
        route = mock_api.get(f"{MR}/pipelines").mock(
            return_value=httpx.Response(200, json=[{"id": 55, "status": "success"}])
        )
        pipelines = await client.list_merge_request_pipelines(123, 7)
        assert pipelines[0].id == 55
        assert route.calls.last.request.url.params["page"] == "1"

    async def test_pipeline_jobs(self, client, mock_api):
        route = mock_api.get("/projects/123/pipelines/55/jobs").mock(
            return_value=httpx.Response(
                200, json=[{"id": 1, "name": "test", "stage": "test", "duration": None}]
            )
        )
        jobs = await client.list_pipeline_jobs(123, 55, Pagination(per_page=10))
        assert jobs[0].name == "test"
        assert jobs[0].duration is None
        assert route.calls.last.request.url.params["per_page"] == "10"
