"""Status reporting hooks for deployment progress."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pagesdeploy.models.deployment import Deployment


class DeploymentCallbacks:
    """Receives deployment lifecycle events.

    Every method is a no-op; subclasses override the events they report.
    Each call is awaited before the deployment proceeds and is never retried.
    """

    async def on_start(self, deployment: Deployment) -> None:
        """Called once the deployment has been created."""

    async def on_stage_change(self, stage_name: str) -> None:
        """Called once per stage when the stage is seen to start."""

    async def on_success(self) -> None:
        """Called when the deployment's latest stage succeeded."""

    async def on_failure(self) -> None:
        """Called when the deployment failed or could not be followed."""
