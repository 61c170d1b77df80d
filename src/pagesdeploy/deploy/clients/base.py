"""Base interface for Pages API clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from pagesdeploy.models.deployment import (
    Deployment,
    DeployHook,
    DeployHookResult,
    LogEntry,
    Project,
    StageLogSnapshot,
)

CloseLiveLogs = Callable[[], Awaitable[None]]
LogHandler = Callable[[LogEntry], None]


class BasePagesClient(ABC):
    """Abstract base class for Pages API clients."""

    @abstractmethod
    async def get_project(self) -> Project:
        """Fetch the configured Pages project.

        Raises:
            CloudflareApiError: If the request fails.
        """

    @abstractmethod
    async def create_deployment(self) -> Deployment:
        """Start a deployment of the project's production branch.

        Returns:
            Snapshot of the new deployment.

        Raises:
            CloudflareApiError: If the request fails.
        """

    @abstractmethod
    async def get_deployment_info(self, deployment_id: str) -> Deployment:
        """Fetch a fresh snapshot of a deployment.

        Args:
            deployment_id: Deployment identifier.

        Raises:
            CloudflareApiError: If the request fails.
        """

    @abstractmethod
    async def get_stage_logs(
        self, deployment_id: str, stage_name: str
    ) -> StageLogSnapshot:
        """Fetch the full log history and status of one stage.

        Args:
            deployment_id: Deployment identifier.
            stage_name: Stage to fetch.

        Raises:
            CloudflareApiError: If the request fails.
        """

    @abstractmethod
    async def create_hook(self, name: str, branch: str) -> DeployHook:
        """Register a deploy hook that deploys ``branch``.

        Raises:
            CloudflareApiError: If the request fails.
        """

    @abstractmethod
    async def execute_hook(self, hook_id: str) -> DeployHookResult:
        """Trigger a deploy hook.

        Returns:
            Result holding the id of the started deployment.

        Raises:
            CloudflareApiError: If the request fails.
        """

    @abstractmethod
    async def delete_hook(self, hook_id: str) -> None:
        """Remove a deploy hook.

        Raises:
            CloudflareApiError: If the request fails.
        """

    @property
    def supports_live_logs(self) -> bool:
        """Whether ``get_live_logs`` pushes log lines for a deployment."""
        return False

    async def get_live_logs(
        self, deployment_id: str, on_log: LogHandler
    ) -> CloseLiveLogs:
        """Open a live log connection for a deployment.

        Args:
            deployment_id: Deployment identifier.
            on_log: Called with each log line as it arrives.

        Returns:
            Coroutine function that closes the connection.

        Raises:
            NotImplementedError: When the client cannot push logs.
        """
        raise NotImplementedError(
            f"{type(self).__name__} does not support live deployment logs."
        )
