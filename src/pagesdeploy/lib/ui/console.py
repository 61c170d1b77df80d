"""Console output for deployment progress.

Renders stage log groups either as GitHub Actions workflow commands
(``::group::`` / ``::endgroup::``) or, outside of a runner, as plain
headers suitable for a terminal.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Mapping
from pathlib import Path

import click

from pagesdeploy.lib.ui.terminal import is_github_actions


class WorkflowConsole:
    """Writes log groups, log lines and step outputs for a CI job.

    Only one group can be open at a time. ``start_group`` closes a group that
    is still open so nested groups never reach the runner.
    """

    def __init__(
        self,
        workflow_commands: bool | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Create a console.

        Args:
            workflow_commands: Emit GitHub Actions workflow commands. None
                auto-detects from the environment.
            environ: Environment used for detection and GITHUB_OUTPUT.
        """
        self._environ = os.environ if environ is None else environ
        self.workflow_commands = (
            is_github_actions(self._environ)
            if workflow_commands is None
            else workflow_commands
        )
        self.group_open = False

    def start_group(self, title: str) -> None:
        """Open a named log group."""
        if self.group_open:
            self.end_group()
        if self.workflow_commands:
            click.echo(f"::group::{title}")
        else:
            click.secho(f"==> {title}", fg="cyan", bold=True)
        self.group_open = True

    def end_group(self) -> None:
        """Close the open log group. Does nothing when no group is open."""
        if not self.group_open:
            return
        if self.workflow_commands:
            click.echo("::endgroup::")
        self.group_open = False

    def log(self, message: str) -> None:
        """Write one deployment log line."""
        click.echo(message)

    def info(self, message: str) -> None:
        """Write an informational message."""
        click.echo(message)

    def success(self, message: str) -> None:
        """Write a success message."""
        click.secho(message, fg="green")

    def debug(self, message: str) -> None:
        """Write a runner debug message. Hidden outside of a runner."""
        if self.workflow_commands:
            for line in message.splitlines() or [""]:
                click.echo(f"::debug::{line}")

    def error(self, message: str) -> None:
        """Write an error annotation."""
        if self.workflow_commands:
            escaped = message.replace("%", "%25").replace("\n", "%0A")
            click.echo(f"::error::{escaped}")
        else:
            click.secho(message, fg="red", err=True)

    def set_output(self, name: str, value: str) -> None:
        """Set a step output.

        Appends to the file named by GITHUB_OUTPUT; outside of a runner the
        output is echoed instead.
        """
        output_path = self._environ.get("GITHUB_OUTPUT")
        if not output_path:
            click.echo(f"{name}={value}")
            return

        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        with Path(output_path).open("a", encoding="utf-8") as handle:
            handle.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
