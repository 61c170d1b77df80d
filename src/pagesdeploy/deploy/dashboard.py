"""Cloudflare dashboard links for Pages deployments."""

from pagesdeploy.config.defaults import CLOUDFLARE_DASHBOARD_URL


def dashboard_deployment_url(
    account_id: str, project_name: str, deployment_id: str | None = None
) -> str:
    """Return the dashboard page of a deployment, or of the project."""
    base = _project_url(account_id, project_name)
    if not deployment_id:
        return base
    return f"{base}/{deployment_id}"


def dashboard_build_settings_url(account_id: str, project_name: str) -> str:
    """Return the project's builds and deployments settings page."""
    return f"{_project_url(account_id, project_name)}/settings/builds-deployments"


def _project_url(account_id: str, project_name: str) -> str:
    return f"{CLOUDFLARE_DASHBOARD_URL}/{account_id}/pages/view/{project_name}"
