"""pagesdeploy - Deploy Cloudflare Pages projects and follow their builds.

Starts a deployment of a Pages project (the production branch directly, any
other branch through a short-lived deploy hook), follows each build stage
and streams its logs into the CI job output.

Main features:
- Live log streaming or log polling per stage
- Grouped stage output with GitHub Actions workflow commands
- GitHub deployment statuses for pull requests
"""

from pagesdeploy.lib.errors import (
    ConfigError,
    DeployHookDeleteError,
    DeploymentError,
    PagesDeployError,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ConfigError",
    "DeployHookDeleteError",
    "DeploymentError",
    "PagesDeployError",
]
