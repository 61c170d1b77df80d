"""Stage tracking for a running deployment.

A tracker follows one stage from pending to complete, printing its log lines
inside a single log group:

1. Observe the stage (deployment snapshot in push mode, stage log snapshot
   in pull mode).
2. Skip a queued stage that is already successful and has no log lines.
3. Report the stage start once, then open its log group once it has logs
   (or, for the queued stage, once it has been polled more than once).
4. Emit log lines up to the watermark on every poll while the group is open.
5. Close the group when the stage completes, or when the deployment has
   moved past a stage whose status never reached success or failure.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from pagesdeploy.config.defaults import (
    ANOMALY_CHECK_EVERY,
    DEFAULT_POLL_INTERVAL,
    LOG_CLOCK_SKEW,
)
from pagesdeploy.deploy.callbacks import DeploymentCallbacks
from pagesdeploy.deploy.clients.base import BasePagesClient
from pagesdeploy.deploy.logs import LogWindow, last_log_id, new_since
from pagesdeploy.deploy.poller import Poller, PollState, Sleep
from pagesdeploy.deploy.stages import (
    display_stage_name,
    find_stage,
    is_past_stage,
    is_queued_stage,
    is_stage_complete,
    is_stage_failure,
    is_stage_started,
    is_stage_success,
)
from pagesdeploy.lib.logging_config import get_logger
from pagesdeploy.lib.ui.console import WorkflowConsole
from pagesdeploy.models.deployment import (
    Deployment,
    LogEntry,
    Stage,
    StageLogSnapshot,
)

logger = get_logger(__name__)

QUEUED_MESSAGE = "Build is queued"


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StageOutcome:
    """Result of tracking one stage.

    Attributes:
        name: Stage name
        stage: Last observed stage status, None if the stage disappeared
        deployment: Latest deployment snapshot seen while tracking
        skipped: The queued stage was already done and had no logs
        group_opened: A log group was printed for the stage
        moved_past: The stage ended because the deployment moved past it
    """

    name: str
    stage: Stage | None
    deployment: Deployment
    skipped: bool = False
    group_opened: bool = False
    moved_past: bool = False

    @property
    def failed(self) -> bool:
        """Whether the stage ended in failure."""
        return is_stage_failure(self.stage)


class StageTracker(ABC):
    """Drives a single stage to completion.

    Subclasses decide how the stage is observed and how its log lines are
    reconciled; the state machine lives here.
    """

    default_anomaly_check_every: int = ANOMALY_CHECK_EVERY

    def __init__(
        self,
        client: BasePagesClient,
        deployment: Deployment,
        stage_name: str,
        console: WorkflowConsole,
        callbacks: DeploymentCallbacks | None = None,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        anomaly_check_every: int | None = None,
        clock_skew: float = LOG_CLOCK_SKEW,
        sleep: Sleep = asyncio.sleep,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.client = client
        self.deployment = deployment
        self.stage_name = stage_name
        self.console = console
        self.callbacks = callbacks or DeploymentCallbacks()
        self.interval = interval
        self.anomaly_check_every = (
            self.default_anomaly_check_every
            if anomaly_check_every is None
            else anomaly_check_every
        )
        self.clock_skew = clock_skew
        self._sleep = sleep
        self._now = now
        self.state = PollState()

    @abstractmethod
    def _create_poller(self) -> Poller[Any]:
        """Return the poller that produces snapshots for this stage."""

    @abstractmethod
    def _observe(self, snapshot: Any) -> Stage | None:
        """Record a snapshot and return the stage status it holds."""

    @abstractmethod
    def _pending_logs(self, watermark: datetime | None) -> int:
        """Return how many log lines are ready to be emitted."""

    @abstractmethod
    def _release_logs(self, watermark: datetime | None) -> list[LogEntry]:
        """Return and mark as emitted the log lines ready to be emitted."""

    @abstractmethod
    async def _moved_past(self) -> bool:
        """Return True if the deployment's latest stage is after this one."""

    def _watermark(self, stage: Stage) -> datetime | None:
        """Return the timestamp up to which log lines belong to this stage."""
        if stage.ended_on is not None:
            return stage.ended_on
        return self._now() - timedelta(seconds=self.clock_skew)

    async def track(self) -> StageOutcome:
        """Follow the stage until it completes or is left behind.

        Returns:
            Outcome holding the last observed stage and deployment.

        Raises:
            Exception: Errors from the API client propagate unchanged.
        """
        poller = self._create_poller()

        while True:
            snapshot, elapsed = await poller.poll()
            self.state.poll_count = poller.poll_count
            stage = self._observe(snapshot)
            logger.debug(
                f"Polled stage {self.stage_name} "
                f"(poll {self.state.poll_count}, {elapsed:.1f}s since last): "
                f"{stage.status if stage else 'missing'}"
            )

            if stage is None:
                self._close_group(None)
                return self._outcome(None)

            if self.state.poll_count == 1 and self._should_skip(stage):
                logger.debug(f"Skipping stage {self.stage_name}: already complete")
                return self._outcome(stage, skipped=True)

            if not self.state.change_reported and is_stage_started(stage):
                self.state.change_reported = True
                await self.callbacks.on_stage_change(self.stage_name)

            watermark = self._watermark(stage)
            if not self.state.stage_has_logs and self._pending_logs(watermark) > 0:
                self.state.stage_has_logs = True

            self._maybe_open_group(stage)

            if self.state.group_started:
                for entry in self._release_logs(watermark):
                    self.console.log(entry.message)

            if is_stage_complete(stage):
                self._close_group(stage)
                return self._outcome(stage)

            if poller.anomaly_check_due(self.anomaly_check_every):
                if await self._moved_past():
                    logger.debug(
                        f"Deployment moved past stage {self.stage_name} "
                        f"with status {stage.status!r}; treating it as complete"
                    )
                    self._close_group(stage)
                    return self._outcome(stage, moved_past=True)

    def _should_skip(self, stage: Stage) -> bool:
        return (
            is_queued_stage(stage)
            and is_stage_success(stage)
            and self._pending_logs(stage.ended_on) == 0
        )

    def _maybe_open_group(self, stage: Stage) -> None:
        if self.state.group_started or not is_stage_started(stage):
            return

        if self.state.stage_has_logs:
            self._open_group(stage)
        elif is_queued_stage(stage) and self.state.poll_count > 2:
            # The queued stage is often active for a while without any logs;
            # it gets a group once it was re-polled twice after the first look
            self._open_group(stage)
            self.console.log(QUEUED_MESSAGE)

    def _open_group(self, stage: Stage) -> None:
        self.console.start_group(display_stage_name(self.stage_name))
        if stage.started_on is not None:
            self.console.debug(f"Started on {stage.started_on.isoformat()}")
        self.state.group_started = True

    def _close_group(self, stage: Stage | None) -> None:
        if not self.state.group_started:
            return
        if stage is not None and stage.ended_on is not None:
            self.console.debug(f"Ended on {stage.ended_on.isoformat()}")
        self.console.end_group()

    def _outcome(
        self,
        stage: Stage | None,
        *,
        skipped: bool = False,
        moved_past: bool = False,
    ) -> StageOutcome:
        return StageOutcome(
            name=self.stage_name,
            stage=stage,
            deployment=self.deployment,
            skipped=skipped,
            group_opened=self.state.group_started,
            moved_past=moved_past,
        )


class PushStageTracker(StageTracker):
    """Tracks a stage by polling the deployment while logs are pushed.

    Log lines arrive in a ``LogWindow`` shared by every stage of the run and
    are released up to the stage's end time, or up to now minus the clock
    skew while the stage is still running.
    """

    # Every poll already fetches the deployment, so the check is free
    default_anomaly_check_every = 1

    def __init__(
        self,
        client: BasePagesClient,
        deployment: Deployment,
        stage_name: str,
        console: WorkflowConsole,
        window: LogWindow,
        callbacks: DeploymentCallbacks | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(client, deployment, stage_name, console, callbacks, **kwargs)
        self.window = window

    def _create_poller(self) -> Poller[Deployment]:
        deployment_id = self.deployment.id

        async def fetch() -> Deployment:
            return await self.client.get_deployment_info(deployment_id)

        return Poller(fetch, self.interval, initial=self.deployment, sleep=self._sleep)

    def _observe(self, snapshot: Deployment) -> Stage | None:
        self.deployment = snapshot
        return find_stage(snapshot, self.stage_name)

    def _pending_logs(self, watermark: datetime | None) -> int:
        return self.window.peek(watermark)

    def _release_logs(self, watermark: datetime | None) -> list[LogEntry]:
        return self.window.flush(watermark)

    async def _moved_past(self) -> bool:
        return is_past_stage(self.deployment, self.stage_name)


class PullStageTracker(StageTracker):
    """Tracks a stage by fetching its full log history on every poll.

    Lines already emitted are filtered out by log id. The deployment itself
    is only fetched when the anomaly guard is due.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.snapshot: StageLogSnapshot | None = None

    def _create_poller(self) -> Poller[StageLogSnapshot]:
        deployment_id = self.deployment.id

        async def fetch() -> StageLogSnapshot:
            return await self.client.get_stage_logs(deployment_id, self.stage_name)

        return Poller(fetch, self.interval, sleep=self._sleep)

    def _observe(self, snapshot: StageLogSnapshot) -> Stage | None:
        self.snapshot = snapshot
        return snapshot.as_stage()

    def _pending_logs(self, watermark: datetime | None) -> int:
        if self.snapshot is None:
            return 0
        return len(new_since(self.snapshot, self.state.last_seen_log_id))

    def _release_logs(self, watermark: datetime | None) -> list[LogEntry]:
        if self.snapshot is None:
            return []
        entries = new_since(self.snapshot, self.state.last_seen_log_id)
        latest = last_log_id(self.snapshot)
        if latest is not None:
            self.state.last_seen_log_id = latest
        return entries

    async def _moved_past(self) -> bool:
        self.deployment = await self.client.get_deployment_info(self.deployment.id)
        return is_past_stage(self.deployment, self.stage_name)
