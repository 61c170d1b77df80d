"""Unit tests for Cloudflare dashboard links."""

import pytest

from pagesdeploy.deploy.dashboard import (
    dashboard_build_settings_url,
    dashboard_deployment_url,
)


@pytest.mark.unit
def test_deployment_url() -> None:
    """Test deployment links point at the deployment page."""
    assert dashboard_deployment_url("acct", "site", "dep-1") == (
        "https://dash.cloudflare.com/acct/pages/view/site/dep-1"
    )


@pytest.mark.unit
def test_project_url_without_deployment() -> None:
    """Test the project page is used when no deployment exists."""
    assert dashboard_deployment_url("acct", "site") == (
        "https://dash.cloudflare.com/acct/pages/view/site"
    )


@pytest.mark.unit
def test_build_settings_url() -> None:
    """Test the build settings link lists the project's deploy hooks."""
    assert dashboard_build_settings_url("acct", "site").endswith(
        "/pages/view/site/settings/builds-deployments"
    )
