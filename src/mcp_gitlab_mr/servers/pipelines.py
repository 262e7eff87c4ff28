"""Pipeline tools for merge requests."""

from dataclasses import dataclass
from typing import Annotated

from pydantic import BaseModel, Field

from ..client import GitLabClient
from ..models.common import Pagination
from ..registry import ToolRegistry
from ._helpers import READ_ANNOTATIONS, MergeRequestIid, Page, PerPage, ProjectId

_TAGS = {"gitlab", "pipelines", "read"}


class PipelineInfo(BaseModel):
    id: int
    status: str
    ref: str
    sha: str
    web_url: str
    created_at: str


class PipelineList(BaseModel):
    pipelines: list[PipelineInfo]


class JobInfo(BaseModel):
    id: int
    name: str
    stage: str
    status: str
    web_url: str


class JobList(BaseModel):
    jobs: list[JobInfo]


@dataclass(frozen=True)
class PipelineTools:
    client: GitLabClient

    def register(self, registry: ToolRegistry) -> None:
        registry.register(
            "list_merge_request_pipelines",
            "List the pipelines that ran for a GitLab merge request.",
            self.list_merge_request_pipelines,
            tags=_TAGS,
            annotations=READ_ANNOTATIONS,
        )
        registry.register(
            "get_pipeline_jobs",
            "List the jobs of a GitLab pipeline.",
            self.get_pipeline_jobs,
            tags=_TAGS,
            annotations=READ_ANNOTATIONS,
        )

    async def list_merge_request_pipelines(
        self,
        project_id: ProjectId,
        merge_request_iid: MergeRequestIid,
        page: Page = None,
        per_page: PerPage = None,
    ) -> PipelineList:
        pipelines = await self.client.list_merge_request_pipelines(
            project_id, merge_request_iid, Pagination.of(page, per_page)
        )
        return PipelineList(
            pipelines=[
                PipelineInfo(
                    id=p.id,
                    status=p.status,
                    ref=p.ref,
                    sha=p.sha,
                    web_url=p.web_url,
                    created_at=p.created_at,
                )
                for p in pipelines
            ]
        )

    async def get_pipeline_jobs(
        self,
        project_id: ProjectId,
        pipeline_id: Annotated[int, Field(description="Pipeline ID", ge=1)],
        page: Page = None,
        per_page: PerPage = None,
    ) -> JobList:
        """List jobs of a pipeline; use a pipeline ID from list_merge_request_pipelines."""
        jobs = await self.client.list_pipeline_jobs(
            project_id, pipeline_id, Pagination.of(page, per_page)
        )
        return JobList(
            jobs=[
                JobInfo(id=j.id, name=j.name, stage=j.stage, status=j.status, web_url=j.web_url)
                for j in jobs
            ]
        )
