"""CI runner detection."""

import os
from collections.abc import Mapping


def is_github_actions(environ: Mapping[str, str] | None = None) -> bool:
    """Check if the process runs inside a GitHub Actions job.

    Inside a job, log groups and annotations are written as workflow
    commands that the runner renders.

    Args:
        environ: Environment mapping to inspect. Defaults to os.environ.

    Returns:
        True when GITHUB_ACTIONS is set to "true".
    """
    env = os.environ if environ is None else environ
    return env.get("GITHUB_ACTIONS", "").lower() == "true"
