"""Deploy hook transaction for non-production branches.

The create-deployment endpoint only deploys the production branch. Other
branches are deployed through a temporary deploy hook: the hook is created,
executed once and deleted straight away.
"""

from __future__ import annotations

from datetime import datetime, timezone

from ulid import ULID

from pagesdeploy.config.defaults import DEPLOY_HOOK_PREFIX
from pagesdeploy.deploy.clients.base import BasePagesClient
from pagesdeploy.lib.errors import DeployHookDeleteError
from pagesdeploy.lib.logging_config import get_logger
from pagesdeploy.models.deployment import Deployment, DeployHook

logger = get_logger(__name__)


def generate_hook_name(now: datetime | None = None) -> str:
    """Generate a unique deploy hook name.

    The name holds a UTC timestamp and a random suffix, e.g.
    ``pagesdeploy-20220201T150423Z-4f7k2d9x``.

    Args:
        now: Time to embed. Defaults to the current time.
    """
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    timestamp = moment.strftime("%Y%m%dT%H%M%SZ")
    # Last characters of a ULID are random
    suffix = str(ULID())[-8:].lower()
    return f"{DEPLOY_HOOK_PREFIX}-{timestamp}-{suffix}"


class DeployHookTransaction:
    """Creates, triggers and removes a single-use deploy hook.

    Not idempotent and never retried. If the hook cannot be deleted a
    DeployHookDeleteError naming the hook is raised, even when another
    error is already being handled, so the hook can be removed by hand.
    """

    def __init__(
        self,
        client: BasePagesClient,
        branch: str,
        hook_name: str | None = None,
    ) -> None:
        self.client = client
        self.branch = branch
        self.hook_name = hook_name or generate_hook_name()

    async def run(self) -> Deployment:
        """Deploy the branch through a temporary hook.

        Returns:
            Snapshot of the deployment started by the hook.

        Raises:
            DeployHookDeleteError: If the hook could not be deleted.
            Exception: API errors from creating or executing the hook, or
                from fetching the new deployment.
        """
        logger.info(f"Creating deploy hook {self.hook_name} for branch {self.branch}")
        hook = await self.client.create_hook(self.hook_name, self.branch)

        try:
            result = await self.client.execute_hook(hook.hook_id)
        except Exception as exc:
            logger.error(f"Deploy hook {self.hook_name} failed to execute: {exc}")
            await self._delete(hook)
            raise

        await self._delete(hook)
        return await self.client.get_deployment_info(result.id)

    async def _delete(self, hook: DeployHook) -> None:
        try:
            await self.client.delete_hook(hook.hook_id)
        except Exception as exc:
            raise DeployHookDeleteError(
                hook_name=self.hook_name, message=str(exc)
            ) from exc
        logger.debug(f"Deleted deploy hook {self.hook_name}")
