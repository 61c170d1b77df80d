"""GitHub deployment statuses for Pages deployments.

Mirrors a Pages deployment as a GitHub deployment so its progress shows up
on pull requests and in the repository's environments.
"""

from __future__ import annotations

from typing import Any

import httpx

from pagesdeploy.config.defaults import DEFAULT_REQUEST_TIMEOUT, GITHUB_API_URL
from pagesdeploy.deploy.callbacks import DeploymentCallbacks
from pagesdeploy.deploy.dashboard import dashboard_deployment_url
from pagesdeploy.lib.errors import GithubApiError
from pagesdeploy.lib.logging_config import get_logger
from pagesdeploy.models.deployment import Deployment, StageName

logger = get_logger(__name__)

STAGE_STATES: dict[str, str] = {
    StageName.QUEUED.value: "queued",
    StageName.INITIALIZE.value: "in_progress",
}


def github_environment(deployment: Deployment) -> str:
    """Return the GitHub environment name for a Pages deployment."""
    if deployment.environment == "production":
        return "production"
    return f"preview ({deployment.deployment_trigger.metadata.branch})"


class GitHubDeploymentCallbacks(DeploymentCallbacks):
    """Reports Pages deployment progress as GitHub deployment statuses."""

    def __init__(
        self,
        account_id: str,
        token: str,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = GITHUB_API_URL,
    ) -> None:
        """Initialize the callbacks.

        Args:
            account_id: Cloudflare account, used for dashboard log links
            token: GitHub token allowed to create deployments
            http_client: Preconfigured HTTP client
            base_url: GitHub API base URL
        """
        self._account_id = account_id
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=DEFAULT_REQUEST_TIMEOUT)
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
        }
        self.github_deployment_id: int | None = None
        self.deployment: Deployment | None = None

    async def aclose(self) -> None:
        """Close the underlying HTTP client if these callbacks created it."""
        if self._owns_client:
            await self._http.aclose()

    async def on_start(self, deployment: Deployment) -> None:
        """Create the GitHub deployment."""
        self.deployment = deployment
        payload = {
            **self._common_params(deployment),
            "required_contexts": [],
            "auto_merge": False,
        }
        repo = self._repo_path(deployment)
        self.github_deployment_id = await self._post(f"{repo}/deployments", payload)
        logger.debug(f"Created GitHub deployment {self.github_deployment_id}")

    async def on_stage_change(self, stage_name: str) -> None:
        """Report queued and in-progress states."""
        state = STAGE_STATES.get(stage_name)
        if state:
            await self._create_status(state)

    async def on_success(self) -> None:
        """Report success with the deployment URL."""
        await self._create_status("success")

    async def on_failure(self) -> None:
        """Report failure."""
        await self._create_status("failure")

    async def _create_status(self, state: str) -> None:
        if self.github_deployment_id is None or self.deployment is None:
            return

        deployment = self.deployment
        payload: dict[str, Any] = {
            "state": state,
            "log_url": self._log_url(deployment),
            "environment": github_environment(deployment),
        }
        if state == "success":
            payload["environment_url"] = deployment.url

        path = (
            f"{self._repo_path(deployment)}/deployments/"
            f"{self.github_deployment_id}/statuses"
        )
        await self._post(path, payload)

    def _common_params(self, deployment: Deployment) -> dict[str, Any]:
        return {
            "ref": deployment.deployment_trigger.metadata.commit_hash,
            "task": "deploy",
            "environment": github_environment(deployment),
            "production_environment": deployment.environment == "production",
            "description": f"Cloudflare Pages deployment {deployment.short_id}",
        }

    def _log_url(self, deployment: Deployment) -> str:
        return dashboard_deployment_url(
            self._account_id, deployment.project_name, deployment.id
        )

    @staticmethod
    def _repo_path(deployment: Deployment) -> str:
        config = deployment.source.config
        return f"/repos/{config.owner}/{config.repo_name}"

    async def _post(self, path: str, payload: dict[str, Any]) -> int:
        try:
            response = await self._http.post(
                f"{self._base_url}{path}", headers=self._headers, json=payload
            )
        except httpx.HTTPError as exc:
            raise GithubApiError(0, str(exc)) from exc

        if response.status_code != 201:
            message: str | None = None
            try:
                message = response.json().get("message")
            except ValueError:
                message = response.text or None
            raise GithubApiError(response.status_code, message)

        return int(response.json()["id"])
