"""Input loading for pagesdeploy runs.

Inputs come from command line options or the environment. Inside a GitHub
Actions job the action inputs are exposed as ``INPUT_<NAME>`` variables; the
``PAGESDEPLOY_<NAME>`` variables serve the same purpose elsewhere.
"""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from pagesdeploy.config.validator import flatten_pydantic_errors
from pagesdeploy.lib.errors import ConfigError
from pagesdeploy.models.config import ActionInputs, CloudflareConfig, GitHubContext
from pagesdeploy.models.deployment import Project

logger = logging.getLogger(__name__)

# Input name to environment variables, in lookup order
ENV_VAR_MAP: dict[str, list[str]] = {
    "account_id": ["PAGESDEPLOY_ACCOUNT_ID", "INPUT_ACCOUNT-ID"],
    "api_key": ["PAGESDEPLOY_API_KEY", "INPUT_API-KEY"],
    "email": ["PAGESDEPLOY_EMAIL", "INPUT_EMAIL"],
    "project_name": ["PAGESDEPLOY_PROJECT_NAME", "INPUT_PROJECT-NAME"],
    "production": ["PAGESDEPLOY_PRODUCTION", "INPUT_PRODUCTION"],
    "preview": ["PAGESDEPLOY_PREVIEW", "INPUT_PREVIEW"],
    "branch": ["PAGESDEPLOY_BRANCH", "INPUT_BRANCH"],
    "github_token": ["PAGESDEPLOY_GITHUB_TOKEN", "INPUT_GITHUB-TOKEN"],
    "live_logs": ["PAGESDEPLOY_LIVE_LOGS", "INPUT_LIVE-LOGS"],
}

BOOLEAN_INPUTS = frozenset({"production", "preview", "live_logs"})


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def _get_env_value(field_name: str, environ: Mapping[str, str]) -> str | None:
    """Return the first non-empty environment value for an input."""
    for env_var_name in ENV_VAR_MAP.get(field_name, []):
        value = environ.get(env_var_name)
        if value:
            return value
    return None


def build_inputs(
    account_id: str | None,
    api_key: str | None,
    email: str | None,
    project_name: str | None,
    production: bool = False,
    preview: bool = False,
    branch: str | None = None,
    github_token: str | None = None,
    live_logs: bool = True,
) -> ActionInputs:
    """Validate raw input values.

    Raises:
        ConfigError: If a required input is missing or inputs conflict
    """
    required = {
        "account_id": account_id,
        "api_key": api_key,
        "email": email,
        "project_name": project_name,
    }
    for field, value in required.items():
        if not value:
            raise ConfigError(field, "Input is required")

    try:
        return ActionInputs(
            cloudflare=CloudflareConfig(
                account_id=account_id,
                api_key=api_key,
                email=email,
                project_name=project_name,
            ),
            production=production,
            preview=preview,
            branch=branch,
            github_token=github_token or None,
            live_logs=live_logs,
        )
    except PydanticValidationError as exc:
        raise ConfigError("inputs", "\n".join(flatten_pydantic_errors(exc))) from exc


def load_inputs(
    environ: Mapping[str, str] | None = None, **overrides: Any
) -> ActionInputs:
    """Load inputs from the environment.

    Values given explicitly (e.g. command line options) take precedence over
    the environment; an override of None falls back to it. Boolean inputs
    read from the environment accept true/1/yes/on, anything else is false.

    Args:
        environ: Environment mapping. Defaults to os.environ.
        **overrides: Input values keyed by input name

    Raises:
        ConfigError: If a required input is missing or inputs conflict
    """
    unknown = set(overrides) - set(ENV_VAR_MAP)
    if unknown:
        raise ConfigError(sorted(unknown)[0], "Unknown input")

    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for field in ENV_VAR_MAP:
        override = overrides.get(field)
        if override is not None:
            values[field] = override
            continue

        raw = _get_env_value(field, env)
        if field not in BOOLEAN_INPUTS:
            values[field] = raw
        elif raw is not None:
            values[field] = _parse_bool(raw)

    return build_inputs(**values)


def load_github_context(environ: Mapping[str, str] | None = None) -> GitHubContext:
    """Read the workflow's repository and pull request from the environment.

    The pull request head branch comes from the event payload file named by
    GITHUB_EVENT_PATH. A missing or unreadable payload means no pull request.
    """
    env = os.environ if environ is None else environ
    pull_request_branch: str | None = None

    event_path = env.get("GITHUB_EVENT_PATH")
    if event_path:
        try:
            event = json.loads(Path(event_path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning(f"Could not read GitHub event payload {event_path}: {exc}")
        else:
            if not isinstance(event, dict):
                event = {}
            pull_request = event.get("pull_request")
            if isinstance(pull_request, dict):
                pull_request_branch = (pull_request.get("head") or {}).get("ref")

    return GitHubContext(
        repository=env.get("GITHUB_REPOSITORY") or None,
        pull_request_branch=pull_request_branch,
        sha=env.get("GITHUB_SHA") or None,
    )


def derive_branch(
    project: Project, inputs: ActionInputs, context: GitHubContext
) -> str | None:
    """Decide which branch to deploy.

    Returns:
        None for the production branch, otherwise the branch name.

    Raises:
        ConfigError: If the branch cannot be derived from the inputs
    """
    if inputs.production:
        return None
    if inputs.branch:
        return inputs.branch

    # No input, or preview: deploy the pull request branch of this repo
    if context.repository != project.repository:
        raise ConfigError(
            "branch",
            "Must specify either `production` or `branch` inputs when the current "
            "repo is not the same as that of the Pages project. The current GitHub "
            f"repo is {context.repository} but the repo associated with the "
            f"Cloudflare Pages project is {project.repository}.",
        )

    if not context.pull_request_branch:
        raise ConfigError(
            "branch",
            "Must specify either `production` or `branch` inputs for workflows "
            "not triggered by a pull request.",
        )

    return context.pull_request_branch
