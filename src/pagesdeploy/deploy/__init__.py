"""pagesdeploy deployment engine.

This package drives a Cloudflare Pages deployment to completion: creating it
(through a temporary deploy hook for non-production branches), following
each stage with a poller, and printing stage logs as grouped console output.
"""

from pagesdeploy.deploy.callbacks import DeploymentCallbacks
from pagesdeploy.deploy.hooks import DeployHookTransaction, generate_hook_name
from pagesdeploy.deploy.logs import LogWindow, new_since
from pagesdeploy.deploy.orchestrator import DeploymentOrchestrator
from pagesdeploy.deploy.poller import Poller, PollState, load_poll_intervals
from pagesdeploy.deploy.tracker import (
    PullStageTracker,
    PushStageTracker,
    StageOutcome,
    StageTracker,
)

__all__ = [
    "DeployHookTransaction",
    "DeploymentCallbacks",
    "DeploymentOrchestrator",
    "LogWindow",
    "PollState",
    "Poller",
    "PullStageTracker",
    "PushStageTracker",
    "StageOutcome",
    "StageTracker",
    "generate_hook_name",
    "load_poll_intervals",
    "new_since",
]
