"""Polling driver for deployment stages.

The Pages API has no completion signal and no log tailing, so each stage is
observed by fetching it repeatedly with a per-stage wait in between.
"""

from __future__ import annotations

import asyncio
import math
import os
import re
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

from pagesdeploy.config.defaults import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_INTERVALS,
    POLL_INTERVAL_ENV_PREFIX,
)
from pagesdeploy.lib.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


def stage_poll_interval_env_name(stage_name: str) -> str:
    """Return the environment variable that overrides a stage's poll interval.

    Example:
        >>> stage_poll_interval_env_name("clone_repo")
        'PAGESDEPLOY_POLL_INTERVAL_CLONE_REPO'
    """
    normalized = re.sub(r"[^A-Za-z0-9]", "_", stage_name).upper()
    return f"{POLL_INTERVAL_ENV_PREFIX}{normalized}"


def get_default_poll_interval(stage_name: str) -> float:
    """Return the built-in poll interval for a stage, in seconds."""
    return DEFAULT_POLL_INTERVALS.get(stage_name, DEFAULT_POLL_INTERVAL)


def load_poll_intervals(
    stage_names: Iterable[str],
    environ: Mapping[str, str] | None = None,
) -> dict[str, float]:
    """Resolve the poll interval of each stage.

    Overrides come from ``PAGESDEPLOY_POLL_INTERVAL_<STAGE>`` and are read
    once, when a deployment starts. Values that are not a finite,
    non-negative number are ignored with a warning. An override of 0 polls
    without waiting.

    Args:
        stage_names: Stages of the deployment
        environ: Environment mapping. Defaults to os.environ.

    Returns:
        Mapping of stage name to interval in seconds
    """
    env = os.environ if environ is None else environ
    intervals: dict[str, float] = {}

    for name in stage_names:
        interval = get_default_poll_interval(name)
        env_name = stage_poll_interval_env_name(name)
        raw = env.get(env_name)

        if raw is not None and raw.strip():
            try:
                override = float(raw)
            except ValueError:
                logger.warning(
                    f"Ignoring {env_name}={raw!r}: not a number. "
                    f"Using default of {interval}s."
                )
            else:
                if not math.isfinite(override):
                    logger.warning(
                        f"Ignoring {env_name}={raw!r}: not a number. "
                        f"Using default of {interval}s."
                    )
                elif override < 0:
                    logger.warning(
                        f"Ignoring {env_name}={raw!r}: must not be negative. "
                        f"Using default of {interval}s."
                    )
                else:
                    interval = override

        intervals[name] = interval

    return intervals


@dataclass
class PollState:
    """Progress of the tracker through one stage.

    Attributes:
        poll_count: Snapshots observed for the stage
        last_seen_log_id: Highest log id emitted (pull mode)
        group_started: Whether the stage's log group was opened
        stage_has_logs: Whether any log line was seen for the stage
        change_reported: Whether the stage start was reported to callbacks
    """

    poll_count: int = 0
    last_seen_log_id: int | None = None
    group_started: bool = False
    stage_has_logs: bool = False
    change_reported: bool = False


class Poller(Generic[T]):
    """Repeats a fetch, waiting a fixed interval between attempts.

    The first call to ``poll`` does not wait. When an ``initial`` snapshot is
    given it is returned by the first call without fetching.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        interval: float,
        initial: T | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self.interval = interval
        self._initial = initial
        self._sleep = sleep
        self._clock = clock
        self._last_polled_at: float | None = None
        self.poll_count = 0

    async def poll(self) -> tuple[T, float]:
        """Return the next snapshot and seconds since the previous one."""
        if self.poll_count > 0:
            await self._sleep(self.interval)

        if self._initial is not None:
            snapshot = self._initial
            self._initial = None
        else:
            snapshot = await self._fetch()

        now = self._clock()
        elapsed = 0.0 if self._last_polled_at is None else now - self._last_polled_at
        self._last_polled_at = now
        self.poll_count += 1
        return snapshot, elapsed

    def anomaly_check_due(self, every: int) -> bool:
        """Return True on every ``every``-th observed snapshot."""
        return every > 0 and self.poll_count > 0 and self.poll_count % every == 0
