"""Cloudflare Pages API client implementation.

REST calls go through httpx. Build logs of a running deployment can also be
streamed from the Pages live log socket, authorized by a short-lived token
from the deployment's ``/live`` endpoint.
"""

from __future__ import annotations

import asyncio
import json
from types import TracebackType
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from pagesdeploy.config.defaults import (
    CLOUDFLARE_API_URL,
    CLOUDFLARE_LIVE_LOGS_URL,
    DEFAULT_REQUEST_TIMEOUT,
    LIVE_LOGS_OPEN_TIMEOUT,
)
from pagesdeploy.deploy.clients.base import BasePagesClient, CloseLiveLogs, LogHandler
from pagesdeploy.lib.errors import CloudflareApiError
from pagesdeploy.lib.logging_config import get_logger
from pagesdeploy.models.config import CloudflareConfig
from pagesdeploy.models.deployment import (
    ApiErrorEntry,
    Deployment,
    DeployHook,
    DeployHookResult,
    LiveLogsToken,
    LogEntry,
    Project,
    StageLogSnapshot,
)

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

LIVE_LOGS_PATH = "/logs/ws/get"


def parse_live_log(message: str | bytes) -> LogEntry:
    """Parse a live log socket message of the form ``{"ts": ..., "line": ...}``.

    Raises:
        ValueError: If the message is not a JSON log line
    """
    data = json.loads(message)
    if not isinstance(data, dict) or "ts" not in data or "line" not in data:
        raise ValueError("Unexpected message format")
    return LogEntry.model_validate(data)


async def _read_live_logs(connection: ClientConnection, on_log: LogHandler) -> None:
    while True:
        try:
            message = await connection.recv()
        except ConnectionClosed as exc:
            logger.debug(f"[ws] Live log connection closed: {exc}")
            return

        try:
            entry = parse_live_log(message)
        except ValueError as exc:
            logger.error(
                f"[ws] Error parsing message data: DATA: {message!r}, ERROR: {exc}"
            )
            continue
        on_log(entry)


class CloudflarePagesClient(BasePagesClient):
    """Client for the Cloudflare Pages v4 API scoped to one project.

    Example:
        >>> async with CloudflarePagesClient(config) as client:
        ...     project = await client.get_project()
    """

    def __init__(
        self,
        config: CloudflareConfig,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = CLOUDFLARE_API_URL,
        live_logs: bool = True,
        live_logs_url: str = CLOUDFLARE_LIVE_LOGS_URL,
    ) -> None:
        """Initialize the client.

        Args:
            config: Account, credentials and project name
            http_client: Preconfigured client (e.g. with a mock transport)
            base_url: API base URL
            live_logs: Stream build logs from the live log socket
            live_logs_url: Socket URL template with a ``{jwt}`` placeholder
        """
        self._config = config
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=DEFAULT_REQUEST_TIMEOUT)
        self._base_url = base_url.rstrip("/")
        self._live_logs = live_logs
        self._live_logs_url = live_logs_url
        self._headers = {
            "X-Auth-Key": config.api_key.get_secret_value(),
            "X-Auth-Email": config.email,
        }

    async def __aenter__(self) -> CloudflarePagesClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this client created it."""
        if self._owns_client:
            await self._http.aclose()

    async def get_project(self) -> Project:
        """Fetch the configured Pages project."""
        return await self._request(Project, "GET", self._project_path())

    async def create_deployment(self) -> Deployment:
        """Start a deployment of the production branch."""
        return await self._request(
            Deployment, "POST", self._project_path("/deployments")
        )

    async def get_deployment_info(self, deployment_id: str) -> Deployment:
        """Fetch a deployment snapshot."""
        return await self._request(
            Deployment, "GET", self._project_path(f"/deployments/{deployment_id}")
        )

    async def get_stage_logs(
        self, deployment_id: str, stage_name: str
    ) -> StageLogSnapshot:
        """Fetch the full log history of a stage."""
        path = self._project_path(
            f"/deployments/{deployment_id}/history/{stage_name}/logs"
        )
        return await self._request(StageLogSnapshot, "GET", path)

    async def create_hook(self, name: str, branch: str) -> DeployHook:
        """Register a deploy hook for a branch."""
        return await self._request(
            DeployHook,
            "POST",
            self._project_path("/deploy_hooks"),
            json={"name": name, "branch": branch},
        )

    async def execute_hook(self, hook_id: str) -> DeployHookResult:
        """Trigger a deploy hook."""
        return await self._request(
            DeployHookResult, "POST", f"/pages/webhooks/deploy_hooks/{hook_id}"
        )

    async def delete_hook(self, hook_id: str) -> None:
        """Remove a deploy hook."""
        await self._send("DELETE", self._project_path(f"/deploy_hooks/{hook_id}"))

    @property
    def supports_live_logs(self) -> bool:
        return self._live_logs

    async def get_live_logs(
        self, deployment_id: str, on_log: LogHandler
    ) -> CloseLiveLogs:
        """Stream the build logs of a deployment.

        Messages that are not log lines are logged and dropped. Socket errors
        after the connection opened end the stream and are logged at debug
        level.

        Raises:
            CloudflareApiError: If the token request fails or the socket
                never opens.
        """
        token = await self._request(
            LiveLogsToken,
            "GET",
            self._project_path(f"/deployments/{deployment_id}/live"),
        )
        try:
            connection = await connect(
                self._live_logs_url.format(jwt=token.jwt),
                open_timeout=LIVE_LOGS_OPEN_TIMEOUT,
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            raise CloudflareApiError(
                "GET",
                LIVE_LOGS_PATH,
                0,
                [ApiErrorEntry(message=f"Live log connection failed: {exc}")],
            ) from exc

        logger.debug(f"[ws] Live log connection opened for {deployment_id}")
        reader = asyncio.create_task(_read_live_logs(connection, on_log))

        async def close() -> None:
            await connection.close()
            await reader

        return close

    def _project_path(self, path: str = "") -> str:
        return (
            f"/accounts/{self._config.account_id}/pages/projects/"
            f"{self._config.project_name}{path}"
        )

    async def _request(
        self,
        model: type[ModelT],
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> ModelT:
        result = await self._send(method, path, json=json)
        try:
            return model.model_validate(result)
        except ValidationError as exc:
            raise CloudflareApiError(
                method,
                path,
                200,
                [ApiErrorEntry(message=f"Unexpected response format: {exc}")],
            ) from exc

    async def _send(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and unwrap the ``result`` of the response envelope."""
        logger.debug(f"[PagesClient] Request: {method} {path}")
        try:
            response = await self._http.request(
                method, f"{self._base_url}{path}", headers=self._headers, json=json
            )
        except httpx.HTTPError as exc:
            raise CloudflareApiError(
                method, path, 0, [ApiErrorEntry(message=str(exc))]
            ) from exc

        logger.debug(
            f"[PagesClient] Result: {method} {path} "
            f"[{response.status_code}: {response.reason_phrase}]"
        )

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        envelope = payload if isinstance(payload, dict) else {}
        errors = [
            ApiErrorEntry.model_validate(error)
            for error in envelope.get("errors") or []
            if isinstance(error, dict)
        ]

        if response.is_error or envelope.get("success") is False:
            raise CloudflareApiError(method, path, response.status_code, errors)

        return envelope.get("result")
