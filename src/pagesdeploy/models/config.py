"""Pydantic models for pagesdeploy configuration.

This module defines the inputs a deployment run is configured with: the
Cloudflare account and project, which branch to deploy, and the GitHub
context of the workflow that runs it.
"""

import re

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)

# Disallowed by git check-ref-format
INVALID_BRANCH_PATTERN = re.compile(
    r"(\.\.|[\000-\037\177 ~^:?*\\\[]|^/|/$|//|\.$|@\{|^@$)+"
)
MAX_BRANCH_LENGTH = 255


def validate_branch_name(branch: str) -> str:
    """Validate a git branch name.

    Args:
        branch: Branch name to check

    Returns:
        The branch name, unchanged

    Raises:
        ValueError: If the name is not a valid branch name
    """
    if INVALID_BRANCH_PATTERN.search(branch):
        raise ValueError(f"Invalid branch name: {branch}")
    if len(branch) > MAX_BRANCH_LENGTH:
        raise ValueError(
            f"Branch name must be {MAX_BRANCH_LENGTH} characters or less "
            f"(received {branch})"
        )
    return branch


class CloudflareConfig(BaseModel):
    """Cloudflare account credentials and Pages project.

    Attributes:
        account_id: Cloudflare account identifier
        api_key: Global API key
        email: Email of the account owning the API key
        project_name: Pages project to deploy
    """

    model_config = ConfigDict(extra="forbid")

    account_id: str = Field(..., min_length=1, description="Cloudflare account ID")
    api_key: SecretStr = Field(..., description="Cloudflare global API key")
    email: str = Field(..., min_length=1, description="Cloudflare account email")
    project_name: str = Field(..., min_length=1, description="Pages project name")


class ActionInputs(BaseModel):
    """Inputs of a deployment run.

    At most one of ``production``, ``preview`` and ``branch`` may be set.

    Attributes:
        cloudflare: Account, credentials and project
        production: Deploy the project's production branch
        preview: Deploy the pull request's head branch
        branch: Deploy a specific branch
        github_token: Token used to report GitHub deployment statuses
        live_logs: Stream build logs over a live connection instead of
            polling each stage's log history
    """

    model_config = ConfigDict(extra="forbid")

    cloudflare: CloudflareConfig
    production: bool = Field(default=False, description="Deploy production branch")
    preview: bool = Field(default=False, description="Deploy pull request branch")
    branch: str | None = Field(default=None, description="Branch to deploy")
    github_token: SecretStr | None = Field(
        default=None, description="GitHub token for deployment statuses"
    )
    live_logs: bool = Field(default=True, description="Stream live build logs")

    @field_validator("branch")
    @classmethod
    def validate_branch(cls, v: str | None) -> str | None:
        """Validate the branch name; an empty string means no branch."""
        if not v:
            return None
        return validate_branch_name(v)

    @model_validator(mode="after")
    def validate_single_target(self) -> "ActionInputs":
        """Validate that only one deployment target is given."""
        selected = [self.production, self.preview, bool(self.branch)]
        if sum(selected) > 1:
            raise ValueError(
                "Inputs `production`, `preview`, and `branch` cannot be used "
                "together. Choose one."
            )
        return self


class GitHubContext(BaseModel):
    """Context of the GitHub workflow run.

    Attributes:
        repository: Repository running the workflow, as owner/name
        pull_request_branch: Head branch when triggered by a pull request
        sha: Commit that triggered the workflow
    """

    model_config = ConfigDict(extra="forbid")

    repository: str | None = Field(default=None, description="owner/name")
    pull_request_branch: str | None = Field(
        default=None, description="Pull request head branch"
    )
    sha: str | None = Field(default=None, description="Triggering commit")
