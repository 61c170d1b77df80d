"""Pages API clients."""

from __future__ import annotations

import httpx

from pagesdeploy.deploy.clients.base import BasePagesClient
from pagesdeploy.deploy.clients.cloudflare import CloudflarePagesClient
from pagesdeploy.models.config import CloudflareConfig


def create_client(
    config: CloudflareConfig,
    http_client: httpx.AsyncClient | None = None,
    live_logs: bool = True,
) -> BasePagesClient:
    """Create a Pages API client for the configured project.

    Args:
        config: Account, credentials and project name
        http_client: Preconfigured HTTP client
        live_logs: Stream build logs instead of polling each stage's logs
    """
    return CloudflarePagesClient(config, http_client=http_client, live_logs=live_logs)


__all__ = ["BasePagesClient", "CloudflarePagesClient", "create_client"]
