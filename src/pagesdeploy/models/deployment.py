"""Pydantic models for Cloudflare Pages deployments.

This module defines the snapshots returned by the Pages API: projects,
deployments and their stages, stage log snapshots, live log messages and
deploy hooks. Snapshots are immutable; a fresher snapshot replaces an older
one instead of mutating it.
"""

from datetime import datetime
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class StageName(str, Enum):
    """Stage names known to the Pages build pipeline."""

    QUEUED = "queued"
    INITIALIZE = "initialize"
    CLONE_REPO = "clone_repo"
    BUILD = "build"
    DEPLOY = "deploy"


class StageStatus(str, Enum):
    """Stage statuses known to the Pages build pipeline."""

    IDLE = "idle"
    ACTIVE = "active"
    SUCCESS = "success"
    FAILURE = "failure"


class ApiErrorEntry(BaseModel):
    """Single error entry of a Cloudflare API result envelope."""

    model_config = ConfigDict(extra="ignore")

    code: int = Field(default=0, description="Cloudflare error code")
    message: str = Field(default="", description="Error message")


class Stage(BaseModel):
    """One phase of a deployment pipeline.

    ``name`` and ``status`` are kept as plain strings: the platform may add
    stages or statuses that are not listed in StageName / StageStatus.

    Attributes:
        name: Stage name (e.g., queued, build)
        status: Stage status (e.g., idle, active, success, failure)
        started_on: When the stage started, if it has
        ended_on: When the stage ended, if it has
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(..., description="Stage name")
    status: str = Field(default=StageStatus.IDLE.value, description="Stage status")
    started_on: datetime | None = Field(default=None, description="Start time")
    ended_on: datetime | None = Field(default=None, description="End time")


class DeploymentTriggerMetadata(BaseModel):
    """Commit information for the change that triggered a deployment."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    branch: str = Field(default="", description="Branch that was deployed")
    commit_hash: str = Field(default="", description="Deployed commit SHA")
    commit_message: str = Field(default="", description="Deployed commit message")


class DeploymentTrigger(BaseModel):
    """What started a deployment (ad hoc, push, deploy hook)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str = Field(default="", description="Trigger type")
    metadata: DeploymentTriggerMetadata = Field(
        default_factory=DeploymentTriggerMetadata
    )


class SourceConfig(BaseModel):
    """Git repository settings of a Pages project."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    owner: str = Field(default="", description="Repository owner")
    repo_name: str = Field(default="", description="Repository name")
    production_branch: str = Field(default="", description="Production branch")
    pr_comments_enabled: bool = Field(default=False)
    deployments_enabled: bool | None = Field(default=None)


class Source(BaseModel):
    """Source repository of a Pages project."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str = Field(default="github", description="Source provider")
    config: SourceConfig = Field(default_factory=SourceConfig)


class Deployment(BaseModel):
    """Snapshot of one deployment run.

    Attributes:
        id: Deployment identifier
        short_id: Short identifier used in preview URLs
        project_name: Pages project name
        environment: production or preview
        url: Deployment URL
        stages: Ordered pipeline stages
        latest_stage: Currently or most recently active stage
        deployment_trigger: What started the deployment
        source: Source repository of the project
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(..., description="Deployment identifier")
    short_id: str = Field(default="", description="Short deployment identifier")
    project_id: str = Field(default="", description="Pages project identifier")
    project_name: str = Field(default="", description="Pages project name")
    environment: str = Field(default="production", description="Environment")
    url: str = Field(default="", description="Deployment URL")
    created_on: datetime | None = Field(default=None)
    modified_on: datetime | None = Field(default=None)
    stages: list[Stage] = Field(default_factory=list, description="Ordered stages")
    latest_stage: Stage | None = Field(default=None, description="Latest stage")
    deployment_trigger: DeploymentTrigger = Field(default_factory=DeploymentTrigger)
    source: Source = Field(default_factory=Source)
    aliases: list[str] | None = Field(default=None)

    @property
    def stage_names(self) -> list[str]:
        """Names of the declared stages, in pipeline order."""
        return [stage.name for stage in self.stages]


class Project(BaseModel):
    """Cloudflare Pages project."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(default="", description="Project identifier")
    name: str = Field(..., description="Project name")
    subdomain: str = Field(default="", description="pages.dev subdomain")
    domains: list[str] = Field(default_factory=list)
    source: Source = Field(default_factory=Source)

    @property
    def production_branch(self) -> str:
        """Branch that the create-deployment endpoint deploys."""
        return self.source.config.production_branch

    @property
    def repository(self) -> str:
        """Repository of the project as owner/name."""
        return f"{self.source.config.owner}/{self.source.config.repo_name}"


class LogEntry(BaseModel):
    """A single build log line.

    Accepts both the stage log shape ``{id, timestamp, message}`` and the
    live log shape ``{ts, line}``. ``id`` is only present in stage logs.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    timestamp: datetime = Field(
        ..., validation_alias=AliasChoices("timestamp", "ts")
    )
    message: str = Field(..., validation_alias=AliasChoices("message", "line"))
    id: int | None = Field(default=None)


class StageLogSnapshot(BaseModel):
    """Full log history of one stage, as returned by each stage log fetch.

    Attributes:
        name: Stage name
        status: Stage status at fetch time
        started_on: When the stage started
        ended_on: When the stage ended
        start: First log id in ``data``
        end: Last log id in ``data``
        total: Number of log lines
        data: Log lines with ids
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(..., description="Stage name")
    status: str = Field(default=StageStatus.IDLE.value)
    started_on: datetime | None = Field(default=None)
    ended_on: datetime | None = Field(default=None)
    start: int = Field(default=0)
    end: int = Field(default=0)
    total: int = Field(default=0)
    data: list[LogEntry] = Field(default_factory=list)

    def as_stage(self) -> Stage:
        """Return the stage status part of the snapshot."""
        return Stage(
            name=self.name,
            status=self.status,
            started_on=self.started_on,
            ended_on=self.ended_on,
        )


class DeployHook(BaseModel):
    """Deploy hook registered on a Pages project."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    hook_id: str = Field(..., description="Hook identifier")
    name: str = Field(..., description="Hook name")
    branch: str = Field(..., description="Branch deployed by the hook")
    created_on: datetime | None = Field(default=None)


class DeployHookResult(BaseModel):
    """Result of executing a deploy hook."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(..., description="Identifier of the started deployment")


class LiveLogsToken(BaseModel):
    """Short-lived token that authorizes a live log connection."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    jwt: str = Field(..., description="Token passed to the live log socket")
