"""CLI commands for deploying Cloudflare Pages projects.

Implements the 'pagesdeploy deploy' command group for starting a Pages
deployment, following its stages, and checking the status of a deployment.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import Any, TypeVar

import click

from pagesdeploy.config.loader import (
    ENV_VAR_MAP,
    derive_branch,
    load_github_context,
    load_inputs,
)
from pagesdeploy.deploy.callbacks import DeploymentCallbacks
from pagesdeploy.deploy.clients import create_client
from pagesdeploy.deploy.dashboard import (
    dashboard_build_settings_url,
    dashboard_deployment_url,
)
from pagesdeploy.deploy.github import GitHubDeploymentCallbacks
from pagesdeploy.deploy.orchestrator import DeploymentOrchestrator
from pagesdeploy.deploy.stages import display_stage_name, is_stage_success
from pagesdeploy.lib.errors import (
    CloudflareApiError,
    ConfigError,
    DeployHookDeleteError,
    DeploymentError,
)
from pagesdeploy.lib.logging_config import get_logger, setup_logging
from pagesdeploy.lib.ui.console import WorkflowConsole
from pagesdeploy.models.config import ActionInputs, CloudflareConfig, GitHubContext
from pagesdeploy.models.deployment import Deployment

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _env_help(text: str, field: str) -> str:
    return f"{text} [env: {', '.join(ENV_VAR_MAP[field])}]"


@contextmanager
def handle_deployment_errors(
    console: WorkflowConsole, config: CloudflareConfig | None = None
) -> Generator[None, None, None]:
    """Context manager for consistent error handling in deployment commands.

    Exit codes:
        2: Configuration error
        3: Deployment/API error
    """
    try:
        yield
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        console.end_group()
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(2)
    except DeployHookDeleteError as e:
        logger.error(f"Deploy hook cleanup failed: {e}")
        console.end_group()
        console.error(str(e))
        if config is not None:
            url = dashboard_build_settings_url(config.account_id, config.project_name)
            console.info(f"Deploy hooks are listed at {url}")
        sys.exit(3)
    except DeploymentError as e:
        logger.error(f"Deployment error: {e}")
        console.end_group()
        click.secho(f"Error: {e.operation} failed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        if config is not None:
            console.info(_unexpected_error_message(config, e.deployment))
        sys.exit(3)
    except CloudflareApiError as e:
        logger.error(f"Cloudflare API error: {e}")
        console.end_group()
        click.secho("Error: Cloudflare API request failed", fg="red", err=True)
        click.echo(f"  {e}", err=True)
        sys.exit(3)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        console.end_group()
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(3)


def cloudflare_options(func: F) -> F:
    """Add the Cloudflare account and project options to a command."""
    options = [
        click.option(
            "--account-id",
            help=_env_help("Cloudflare account ID", "account_id"),
        ),
        click.option(
            "--api-key",
            help=_env_help("Cloudflare global API key", "api_key"),
        ),
        click.option(
            "--email",
            help=_env_help("Email of the Cloudflare account", "email"),
        ),
        click.option(
            "--project-name",
            help=_env_help("Cloudflare Pages project name", "project_name"),
        ),
        click.option(
            "--verbose",
            "-v",
            is_flag=True,
            help="Enable verbose debug logging",
        ),
        click.option(
            "--quiet",
            "-q",
            is_flag=True,
            help="Only log errors",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group(name="deploy", invoke_without_command=True)
@click.pass_context
def deploy(ctx: click.Context) -> None:
    """Deploy Cloudflare Pages projects and follow their build logs.

    Subcommands:

        run     Start a deployment and stream its stage logs
        status  Show the stages of an existing deployment

    Example:

        pagesdeploy deploy run --production

        pagesdeploy deploy run --branch feature/login
    """
    ctx.ensure_object(dict)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@deploy.command()
@cloudflare_options
@click.option(
    "--production",
    is_flag=True,
    help=_env_help("Deploy the project's production branch", "production"),
)
@click.option(
    "--preview",
    is_flag=True,
    help=_env_help("Deploy the head branch of the pull request", "preview"),
)
@click.option(
    "--branch",
    help=_env_help("Deploy a specific branch", "branch"),
)
@click.option(
    "--github-token",
    help=_env_help("GitHub token for deployment statuses", "github_token"),
)
@click.option(
    "--live-logs/--poll-logs",
    default=None,
    help=_env_help(
        "Stream build logs live, or poll each stage's log history", "live_logs"
    ),
)
def run(
    account_id: str | None,
    api_key: str | None,
    email: str | None,
    project_name: str | None,
    verbose: bool,
    quiet: bool,
    production: bool,
    preview: bool,
    branch: str | None,
    github_token: str | None,
    live_logs: bool | None,
) -> None:
    """Start a Pages deployment and stream its logs until it finishes.

    Without --production, --preview or --branch the head branch of the
    triggering pull request is deployed.

    Example:

        pagesdeploy deploy run --production

        pagesdeploy deploy run --branch staging
    """
    setup_logging(verbose=verbose, quiet=quiet)
    console = WorkflowConsole()

    with handle_deployment_errors(console):
        inputs = load_inputs(
            account_id=account_id,
            api_key=api_key,
            email=email,
            project_name=project_name,
            production=production or None,
            preview=preview or None,
            branch=branch,
            github_token=github_token,
            live_logs=live_logs,
        )
        config = inputs.cloudflare

    with handle_deployment_errors(console, config):
        context = load_github_context()
        deployment = asyncio.run(_run_deployment(inputs, context, console))

        console.set_output("deployment-id", deployment.id)
        console.set_output("url", deployment.url)

        if not is_stage_success(deployment.latest_stage):
            url = dashboard_deployment_url(
                config.account_id, config.project_name, deployment.id
            )
            console.error(_failed_deployment_message(deployment))
            console.info(f"See {url} for more details.")
            sys.exit(1)

        _display_deploy_success(console, deployment)


@deploy.command()
@click.argument("deployment_id")
@cloudflare_options
def status(
    deployment_id: str,
    account_id: str | None,
    api_key: str | None,
    email: str | None,
    project_name: str | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Show the stages of an existing deployment.

    DEPLOYMENT_ID is the identifier of the Pages deployment.
    """
    setup_logging(verbose=verbose, quiet=quiet)
    console = WorkflowConsole(workflow_commands=False)

    with handle_deployment_errors(console):
        inputs = load_inputs(
            account_id=account_id,
            api_key=api_key,
            email=email,
            project_name=project_name,
        )
        deployment = asyncio.run(_fetch_deployment(inputs.cloudflare, deployment_id))

        if quiet:
            latest = deployment.latest_stage
            click.echo(latest.status if latest else "unknown")
            return

        click.echo()
        click.secho("Deployment Status", bold=True)
        click.echo(f"  Project:      {deployment.project_name}")
        click.echo(f"  Environment:  {deployment.environment}")
        click.echo(f"  URL:          {deployment.url}")
        for stage in deployment.stages:
            ended = stage.ended_on.isoformat() if stage.ended_on else "-"
            click.echo(
                f"  {display_stage_name(stage.name):<12}  {stage.status:<8}  {ended}"
            )
        click.echo()


async def _run_deployment(
    inputs: ActionInputs, context: GitHubContext, console: WorkflowConsole
) -> Deployment:
    callbacks = _create_callbacks(inputs)
    try:
        async with create_client(
            inputs.cloudflare, live_logs=inputs.live_logs
        ) as client:
            project = await client.get_project()
            branch = derive_branch(project, inputs, context)
            orchestrator = DeploymentOrchestrator(client, console, callbacks)
            return await orchestrator.run(branch)
    finally:
        if isinstance(callbacks, GitHubDeploymentCallbacks):
            await callbacks.aclose()


async def _fetch_deployment(config: CloudflareConfig, deployment_id: str) -> Deployment:
    async with create_client(config) as client:
        return await client.get_deployment_info(deployment_id)


def _create_callbacks(inputs: ActionInputs) -> DeploymentCallbacks:
    if inputs.github_token is None:
        logger.info("No GitHub token provided, skipping GitHub deployments.")
        return DeploymentCallbacks()

    logger.info("GitHub token provided. GitHub deployment will be created.")
    return GitHubDeploymentCallbacks(
        inputs.cloudflare.account_id, inputs.github_token.get_secret_value()
    )


def _failed_deployment_message(deployment: Deployment) -> str:
    stage = deployment.latest_stage
    if stage is None:
        return "Deployment did not report any stage."
    return (
        f"Deployment failed on stage: {stage.name} with a status of "
        f"'{stage.status}'. See log output above for more information."
    )


def _unexpected_error_message(
    config: CloudflareConfig, deployment: Deployment | None
) -> str:
    url = dashboard_deployment_url(
        config.account_id,
        config.project_name,
        deployment.id if deployment else None,
    )
    return (
        "There was an unexpected error. It's possible that your Cloudflare Pages "
        f"deploy is still in progress or was successful. Go to {url} for more "
        "details."
    )


def _display_deploy_success(console: WorkflowConsole, deployment: Deployment) -> None:
    ended_on = deployment.latest_stage.ended_on if deployment.latest_stage else None
    when = f" at {ended_on.isoformat()}" if ended_on else ""
    console.success(f"Successfully deployed {deployment.project_name}{when}.")
    console.info(f"URL: {deployment.url}")
