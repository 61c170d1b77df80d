"""Custom exception hierarchy for pagesdeploy configuration and operations."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pagesdeploy.models.deployment import ApiErrorEntry, Deployment


class PagesDeployError(Exception):
    """Base exception for all pagesdeploy errors.

    All pagesdeploy-specific exceptions inherit from this class, enabling
    centralized exception handling in the CLI.
    """

    pass


class ConfigError(PagesDeployError):
    """Exception raised for configuration errors.

    Raised when action inputs are missing, conflicting, or invalid.

    Attributes:
        field: The input that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Input name where the error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class CloudflareApiError(PagesDeployError):
    """Exception raised when the Cloudflare API rejects a request.

    Attributes:
        method: HTTP method of the failed request
        path: API path of the failed request
        status_code: HTTP status code returned
        errors: Error entries from the Cloudflare result envelope
    """

    def __init__(
        self,
        method: str,
        path: str,
        status_code: int,
        errors: list[ApiErrorEntry] | None = None,
    ) -> None:
        """Create an API error from a failed response."""
        self.method = method
        self.path = path
        self.status_code = status_code
        self.errors = errors or []
        details = "\n".join(f"{error.message} [{error.code}]" for error in self.errors)
        message = f"[Cloudflare API Error] {method} {path} ({status_code})"
        if details:
            message += f"\n{details}"
        super().__init__(message)


class GithubApiError(PagesDeployError):
    """Exception raised when the GitHub deployments API returns an error."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        """Create a GitHub API error with status and optional message."""
        self.status_code = status_code
        self.message = message
        text = f"[GitHub API Error] Status: {status_code}"
        if message:
            text += f", Message: {message}"
        super().__init__(text)


class DeploymentError(PagesDeployError):
    """Exception raised when driving a deployment fails.

    Carries the last deployment snapshot observed before the failure so
    callers can report how far the deployment got. The underlying cause is
    chained through ``__cause__``.

    Attributes:
        operation: Operation that failed (e.g. "create", "track")
        message: Human-readable error message
        deployment: Last-known deployment snapshot, if one was created
    """

    def __init__(
        self,
        operation: str,
        message: str,
        deployment: Deployment | None = None,
    ) -> None:
        """Initialize DeploymentError with operation context.

        Args:
            operation: Operation that failed
            message: Descriptive error message
            deployment: Last-known deployment snapshot
        """
        self.operation = operation
        self.message = message
        self.deployment = deployment
        super().__init__(message)


class DeployHookDeleteError(PagesDeployError):
    """Exception raised when a temporary deploy hook could not be deleted.

    The hook is left behind on the Pages project and has to be removed by
    hand, so the hook name is always part of the message.

    Attributes:
        hook_name: Name of the deploy hook that was not deleted
        message: Human-readable error message
    """

    def __init__(self, hook_name: str, message: str) -> None:
        """Create a cleanup error naming the leaked hook."""
        self.hook_name = hook_name
        self.message = message
        super().__init__(
            f"Failed to delete deploy hook '{hook_name}': {message}\n"
            f"Delete it manually from the project's build settings."
        )
