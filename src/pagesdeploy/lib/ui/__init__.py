"""Console output for deployment progress.

Renders stage log groups, annotations and step outputs either as GitHub
Actions workflow commands or as styled terminal output.
"""

from pagesdeploy.lib.ui.console import WorkflowConsole
from pagesdeploy.lib.ui.terminal import is_github_actions

__all__ = [
    "WorkflowConsole",
    "is_github_actions",
]
