"""Shared test fixtures for gitlab-mr-mcp."""

from __future__ import annotations

import pytest
import respx

from mcp_gitlab_mr.client import GitLabClient
from mcp_gitlab_mr.config import GitLabConfig

TEST_URL = "https://gitlab.example.com"
TEST_TOKEN = "test-token"
BASE = f"{TEST_URL}/api/v4"


@pytest.fixture
def config() -> GitLabConfig:
    return GitLabConfig(url=TEST_URL, token=TEST_TOKEN)


@pytest.fixture
async def client(config: GitLabConfig) -> GitLabClient:
    gl = GitLabClient(config)
    yield gl
    await gl.close()


@pytest.fixture
def mock_api() -> respx.MockRouter:
    with respx.mock(base_url=BASE) as router:
        yield router
