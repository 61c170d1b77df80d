"""Shared fixtures for deployment engine tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from unittest.mock import AsyncMock

import pytest
from pages_fakes import at

from pagesdeploy.lib.ui.console import WorkflowConsole


@pytest.fixture
def console() -> WorkflowConsole:
    """Console emitting GitHub Actions workflow commands."""
    return WorkflowConsole(workflow_commands=True, environ={})


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Sleep replacement that returns immediately."""
    return AsyncMock()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Fixed wall clock, 60 seconds after T0."""
    return lambda: at(60)
