"""Deployment orchestration.

Creates a Pages deployment, follows each of its stages in order and returns
the final deployment snapshot. Log lines are delivered in one of two modes,
chosen once per run: pushed over a live connection when the client supports
it, pulled per stage otherwise.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from pagesdeploy.deploy.callbacks import DeploymentCallbacks
from pagesdeploy.deploy.clients.base import BasePagesClient, CloseLiveLogs
from pagesdeploy.deploy.hooks import DeployHookTransaction
from pagesdeploy.deploy.logs import LogWindow
from pagesdeploy.deploy.poller import (
    Sleep,
    get_default_poll_interval,
    load_poll_intervals,
)
from pagesdeploy.deploy.stages import is_stage_success
from pagesdeploy.deploy.tracker import (
    PullStageTracker,
    PushStageTracker,
    StageOutcome,
    StageTracker,
)
from pagesdeploy.lib.errors import DeployHookDeleteError, DeploymentError
from pagesdeploy.lib.logging_config import get_logger
from pagesdeploy.lib.ui.console import WorkflowConsole
from pagesdeploy.models.deployment import Deployment, StageName

logger = get_logger(__name__)


class LiveLogConnection:
    """Live log connection that can be closed any number of times."""

    def __init__(self, close: CloseLiveLogs) -> None:
        self._close = close
        self.closed = False

    async def close(self) -> None:
        """Close the connection. Later calls do nothing."""
        if self.closed:
            return
        self.closed = True
        await self._close()


class DeploymentOrchestrator:
    """Drives one Pages deployment from creation to its final stage.

    Example:
        >>> orchestrator = DeploymentOrchestrator(client, WorkflowConsole())
        >>> deployment = await orchestrator.run(branch="feature/login")
    """

    def __init__(
        self,
        client: BasePagesClient,
        console: WorkflowConsole,
        callbacks: DeploymentCallbacks | None = None,
        *,
        poll_intervals: Mapping[str, float] | None = None,
        anomaly_check_every: int | None = None,
        environ: Mapping[str, str] | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Create an orchestrator.

        Args:
            client: Pages API client
            console: Console that receives log groups and lines
            callbacks: Status reporting hooks
            poll_intervals: Seconds between polls per stage. Resolved from
                defaults and environment overrides when not given.
            anomaly_check_every: Polls between checks that the deployment
                moved past the tracked stage. Tracker default when None.
            environ: Environment used for poll interval overrides
            sleep: Wait function between polls
        """
        self.client = client
        self.console = console
        self.callbacks = callbacks or DeploymentCallbacks()
        self._poll_intervals = dict(poll_intervals) if poll_intervals else None
        self._anomaly_check_every = anomaly_check_every
        self._environ = environ
        self._sleep = sleep

    async def run(self, branch: str | None = None) -> Deployment:
        """Deploy and report the terminal outcome to the callbacks.

        Args:
            branch: Branch to deploy. None deploys the production branch.

        Returns:
            Final deployment snapshot, successful or not.

        Raises:
            DeploymentError: If an API call failed along the way.
            DeployHookDeleteError: If a temporary deploy hook was left behind.
        """
        try:
            deployment = await self.deploy(branch)
        except Exception:
            try:
                await self.callbacks.on_failure()
            except Exception:
                logger.exception("Failed to report the deployment failure")
            raise

        if is_stage_success(deployment.latest_stage):
            await self.callbacks.on_success()
        else:
            await self.callbacks.on_failure()
        return deployment

    async def deploy(self, branch: str | None = None) -> Deployment:
        """Create a deployment and log each stage until it finishes.

        A failed stage is a normal result: the returned deployment's latest
        stage has a failure status and later stages are not followed.

        Raises:
            DeploymentError: If an API call failed. Carries the last-known
                deployment, or None if the deployment was never created.
            DeployHookDeleteError: If a temporary deploy hook was left behind.
        """
        deployment = await self._create_deployment(branch)
        self.console.debug(f"Deployment:\n{deployment.model_dump_json(indent=2)}")
        logger.info(f"Created deployment {deployment.id} ({deployment.environment})")

        window: LogWindow | None = None
        connection: LiveLogConnection | None = None

        try:
            await self.callbacks.on_start(deployment)

            intervals = self._resolve_poll_intervals(deployment)
            if self.client.supports_live_logs:
                window = LogWindow()

            for name in deployment.stage_names:
                # Live logs are rejected while the deployment is queued
                queued = name == StageName.QUEUED.value
                if window is not None and connection is None and not queued:
                    connection = await self._open_live_logs(deployment, window)

                tracker = self._create_tracker(
                    deployment, name, intervals.get(name), window
                )
                outcome = await tracker.track()
                deployment = outcome.deployment
                self._log_outcome(outcome)

                # Stages after a failure never start
                if outcome.failed:
                    break

            self._flush_remaining(window)
            if connection is not None:
                await connection.close()

            return await self.client.get_deployment_info(deployment.id)
        except Exception as exc:
            self._flush_remaining(window)
            self.console.end_group()
            self.console.error(str(exc))
            if connection is not None:
                await connection.close()
            raise DeploymentError(
                operation="track",
                message=str(exc),
                deployment=deployment,
            ) from exc

    async def _create_deployment(self, branch: str | None) -> Deployment:
        try:
            if branch is None:
                self.console.info("Creating a deployment for the production branch.")
                return await self.client.create_deployment()

            project = await self.client.get_project()
            if branch == project.production_branch:
                self.console.info(
                    f"Creating a deployment for the production branch of "
                    f"{project.name}."
                )
                return await self.client.create_deployment()

            self.console.info(f"Creating a preview deployment for branch {branch}.")
            return await DeployHookTransaction(self.client, branch).run()
        except DeployHookDeleteError:
            raise
        except Exception as exc:
            raise DeploymentError(
                operation="create",
                message=f"Failed to create deployment: {exc}",
            ) from exc

    async def _open_live_logs(
        self, deployment: Deployment, window: LogWindow
    ) -> LiveLogConnection:
        close = await self.client.get_live_logs(deployment.id, window.enqueue)
        logger.debug(f"Opened live log connection for deployment {deployment.id}")
        return LiveLogConnection(close)

    def _resolve_poll_intervals(self, deployment: Deployment) -> dict[str, float]:
        if self._poll_intervals is not None:
            return {
                name: self._poll_intervals.get(name, get_default_poll_interval(name))
                for name in deployment.stage_names
            }
        return load_poll_intervals(deployment.stage_names, self._environ)

    def _create_tracker(
        self,
        deployment: Deployment,
        name: str,
        interval: float | None,
        window: LogWindow | None,
    ) -> StageTracker:
        if interval is None:
            interval = get_default_poll_interval(name)
        options: dict[str, Any] = {
            "interval": interval,
            "anomaly_check_every": self._anomaly_check_every,
            "sleep": self._sleep,
        }
        if window is not None:
            return PushStageTracker(
                self.client,
                deployment,
                name,
                self.console,
                window,
                self.callbacks,
                **options,
            )
        return PullStageTracker(
            self.client, deployment, name, self.console, self.callbacks, **options
        )

    def _flush_remaining(self, window: LogWindow | None) -> None:
        if window is None:
            return
        for entry in window.flush():
            self.console.log(entry.message)

    def _log_outcome(self, outcome: StageOutcome) -> None:
        if outcome.skipped:
            logger.debug(f"Stage {outcome.name} skipped")
        elif outcome.stage is None:
            logger.warning(f"Stage {outcome.name} is no longer part of the deployment")
        elif outcome.moved_past:
            logger.warning(
                f"Stage {outcome.name} never completed "
                f"(status {outcome.stage.status!r}); deployment moved on"
            )
        else:
            logger.debug(f"Stage {outcome.name} ended: {outcome.stage.status}")
