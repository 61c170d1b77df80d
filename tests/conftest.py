"""Pytest configuration and shared fixtures for pagesdeploy tests."""

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

# Variables read from the environment by pagesdeploy or the GitHub runner
_ENV_PREFIXES = ("PAGESDEPLOY_", "INPUT_", "GITHUB_")


@pytest.fixture(autouse=True)
def isolated_env() -> Generator[dict[str, str]]:
    """Provide an environment without pagesdeploy or runner variables.

    The CI job running the tests may itself be a GitHub Actions job, so its
    variables are removed for every test and restored afterwards.

    Yields:
        Dictionary of original environment variables
    """
    original_env = os.environ.copy()
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES):
            del os.environ[name]
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def fixture_dir() -> Path:
    """Get path to test fixtures directory.

    Returns:
        Path to tests/fixtures directory
    """
    return Path(__file__).parent / "fixtures"


def pytest_configure(config: Any) -> None:
    """Configure pytest with marker options."""
    config.addinivalue_line(
        "markers",
        "unit: marks tests as unit tests",
    )
