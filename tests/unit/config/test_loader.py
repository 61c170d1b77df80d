"""Unit tests for input loading and branch selection."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pagesdeploy.config.loader import (
    build_inputs,
    derive_branch,
    load_github_context,
    load_inputs,
)
from pagesdeploy.lib.errors import ConfigError
from pagesdeploy.models.config import ActionInputs, GitHubContext
from pagesdeploy.models.deployment import Project, Source, SourceConfig

REQUIRED_ENV = {
    "INPUT_ACCOUNT-ID": "acct-1",
    "INPUT_API-KEY": "key",
    "INPUT_EMAIL": "ops@acme.dev",
    "INPUT_PROJECT-NAME": "docs-site",
}


def _project() -> Project:
    return Project(
        name="docs-site",
        source=Source(
            config=SourceConfig(
                owner="acme", repo_name="docs-site", production_branch="main"
            )
        ),
    )


def _inputs(**kwargs: object) -> ActionInputs:
    return build_inputs("acct-1", "key", "ops@acme.dev", "docs-site", **kwargs)


@pytest.mark.unit
class TestBuildInputs:
    """Tests for validating raw inputs."""

    def test_valid_inputs(self) -> None:
        """Test required inputs produce a Cloudflare config."""
        inputs = _inputs(branch="feature/search")
        assert inputs.cloudflare.account_id == "acct-1"
        assert inputs.cloudflare.api_key.get_secret_value() == "key"
        assert inputs.branch == "feature/search"
        assert inputs.github_token is None

    @pytest.mark.parametrize(
        "missing", ["account_id", "api_key", "email", "project_name"]
    )
    def test_missing_required_input(self, missing: str) -> None:
        """Test each required input is checked."""
        values = {
            "account_id": "acct-1",
            "api_key": "key",
            "email": "ops@acme.dev",
            "project_name": "docs-site",
        }
        values[missing] = ""
        with pytest.raises(ConfigError) as exc_info:
            build_inputs(**values)
        assert exc_info.value.field == missing

    def test_conflicting_targets(self) -> None:
        """Test only one deployment target may be chosen."""
        with pytest.raises(ConfigError, match="cannot be used together"):
            _inputs(production=True, preview=True)

    def test_invalid_branch(self) -> None:
        """Test branch names are validated."""
        with pytest.raises(ConfigError, match="Invalid branch name"):
            _inputs(branch="bad..branch")

    def test_empty_token_is_no_token(self) -> None:
        """Test an empty token input counts as not given."""
        assert _inputs(github_token="").github_token is None


@pytest.mark.unit
class TestLoadInputs:
    """Tests for loading inputs from the environment."""

    def test_action_inputs(self) -> None:
        """Test INPUT_ variables set by the runner are read."""
        inputs = load_inputs({**REQUIRED_ENV, "INPUT_PRODUCTION": "true"})
        assert inputs.cloudflare.project_name == "docs-site"
        assert inputs.production is True
        assert inputs.preview is False

    def test_pagesdeploy_variables_take_precedence(self) -> None:
        """Test PAGESDEPLOY_ variables win over action inputs."""
        inputs = load_inputs(
            {**REQUIRED_ENV, "PAGESDEPLOY_PROJECT_NAME": "other-site"}
        )
        assert inputs.cloudflare.project_name == "other-site"

    def test_empty_optional_inputs(self) -> None:
        """Test inputs the workflow left empty are treated as unset."""
        inputs = load_inputs(
            {**REQUIRED_ENV, "INPUT_BRANCH": "", "INPUT_PREVIEW": "false"}
        )
        assert inputs.branch is None
        assert inputs.preview is False

    def test_missing_inputs(self) -> None:
        """Test a missing required variable raises ConfigError."""
        with pytest.raises(ConfigError):
            load_inputs({"INPUT_ACCOUNT-ID": "acct-1"})

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("true", True), ("1", True), ("YES", True), ("off", False), ("no", False)],
    )
    def test_boolean_inputs(self, raw: str, expected: bool) -> None:
        """Test boolean inputs accept the usual spellings."""
        inputs = load_inputs(
            {**REQUIRED_ENV, "INPUT_PREVIEW": raw, "INPUT_LIVE-LOGS": raw}
        )
        assert inputs.preview is expected
        assert inputs.live_logs is expected

    def test_live_logs_default_on(self) -> None:
        """Test build logs are streamed unless disabled."""
        assert load_inputs(REQUIRED_ENV).live_logs is True

    def test_explicit_values_take_precedence(self) -> None:
        """Test values given as options win over the environment."""
        inputs = load_inputs(
            {**REQUIRED_ENV, "INPUT_BRANCH": "dev", "INPUT_LIVE-LOGS": "true"},
            branch="feature/search",
            project_name="other-site",
            live_logs=False,
        )
        assert inputs.branch == "feature/search"
        assert inputs.cloudflare.project_name == "other-site"
        assert inputs.live_logs is False

    def test_none_falls_back_to_environment(self) -> None:
        """Test options that were not given read the environment."""
        inputs = load_inputs(
            {**REQUIRED_ENV, "INPUT_PRODUCTION": "true"},
            account_id=None,
            production=None,
        )
        assert inputs.cloudflare.account_id == "acct-1"
        assert inputs.production is True

    def test_unknown_input(self) -> None:
        """Test misspelled input names are rejected."""
        with pytest.raises(ConfigError) as exc_info:
            load_inputs(REQUIRED_ENV, brnach="dev")
        assert exc_info.value.field == "brnach"


@pytest.mark.unit
class TestLoadGithubContext:
    """Tests for reading the workflow context."""

    def test_pull_request_event(self, tmp_path: Path) -> None:
        """Test the pull request head branch is read from the event file."""
        event_path = tmp_path / "event.json"
        event_path.write_text(
            json.dumps({"pull_request": {"head": {"ref": "feature/search"}}}),
            encoding="utf-8",
        )

        context = load_github_context(
            {
                "GITHUB_REPOSITORY": "acme/docs-site",
                "GITHUB_SHA": "9f2c1d7e",
                "GITHUB_EVENT_PATH": str(event_path),
            }
        )

        assert context.repository == "acme/docs-site"
        assert context.sha == "9f2c1d7e"
        assert context.pull_request_branch == "feature/search"

    def test_push_event(self, tmp_path: Path) -> None:
        """Test events without a pull request have no branch."""
        event_path = tmp_path / "event.json"
        event_path.write_text(json.dumps({"ref": "refs/heads/main"}), encoding="utf-8")

        context = load_github_context({"GITHUB_EVENT_PATH": str(event_path)})

        assert context.pull_request_branch is None

    def test_pull_request_without_head(self, tmp_path: Path) -> None:
        """Test a pull request payload with a null head has no branch."""
        event_path = tmp_path / "event.json"
        event_path.write_text(
            json.dumps({"pull_request": {"head": None}}), encoding="utf-8"
        )

        context = load_github_context({"GITHUB_EVENT_PATH": str(event_path)})

        assert context.pull_request_branch is None

    def test_unreadable_event_file(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a broken event file is logged and ignored."""
        event_path = tmp_path / "event.json"
        event_path.write_text("{not json", encoding="utf-8")

        context = load_github_context({"GITHUB_EVENT_PATH": str(event_path)})

        assert context.pull_request_branch is None
        assert "Could not read GitHub event payload" in caplog.text

    def test_outside_of_actions(self) -> None:
        """Test no runner variables give an empty context."""
        assert load_github_context({}) == GitHubContext()


@pytest.mark.unit
class TestDeriveBranch:
    """Tests for choosing the branch to deploy."""

    def test_production(self) -> None:
        """Test production deploys the production branch."""
        branch = derive_branch(_project(), _inputs(production=True), GitHubContext())
        assert branch is None

    def test_explicit_branch(self) -> None:
        """Test an explicit branch is used as is."""
        branch = derive_branch(_project(), _inputs(branch="dev"), GitHubContext())
        assert branch == "dev"

    def test_pull_request_branch(self) -> None:
        """Test the pull request branch is deployed by default."""
        context = GitHubContext(
            repository="acme/docs-site", pull_request_branch="feature/search"
        )
        assert derive_branch(_project(), _inputs(preview=True), context) == (
            "feature/search"
        )
        assert derive_branch(_project(), _inputs(), context) == "feature/search"

    def test_other_repository(self) -> None:
        """Test workflows of another repository must name a branch."""
        context = GitHubContext(
            repository="acme/website", pull_request_branch="feature/search"
        )
        with pytest.raises(ConfigError, match="acme/docs-site"):
            derive_branch(_project(), _inputs(), context)

    def test_not_a_pull_request(self) -> None:
        """Test workflows outside a pull request must name a branch."""
        context = GitHubContext(repository="acme/docs-site")
        with pytest.raises(ConfigError, match="not triggered by a pull request"):
            derive_branch(_project(), _inputs(), context)
