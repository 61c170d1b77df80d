"""Unit tests for the stage poller and poll interval resolution."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from pagesdeploy.deploy.poller import (
    Poller,
    PollState,
    get_default_poll_interval,
    load_poll_intervals,
    stage_poll_interval_env_name,
)


@pytest.mark.unit
class TestPollIntervals:
    """Tests for per-stage poll intervals."""

    def test_env_name(self) -> None:
        """Test override variable names are upper-cased stage names."""
        assert (
            stage_poll_interval_env_name("clone_repo")
            == "PAGESDEPLOY_POLL_INTERVAL_CLONE_REPO"
        )
        assert stage_poll_interval_env_name("unit-test") == (
            "PAGESDEPLOY_POLL_INTERVAL_UNIT_TEST"
        )

    def test_defaults(self) -> None:
        """Test slow stages wait longer than fast ones."""
        assert get_default_poll_interval("build") > get_default_poll_interval(
            "clone_repo"
        )
        assert get_default_poll_interval("test") == 5.0

    def test_env_override(self) -> None:
        """Test an override replaces the default, including zero."""
        intervals = load_poll_intervals(
            ["build", "deploy"],
            environ={
                "PAGESDEPLOY_POLL_INTERVAL_BUILD": "0",
                "PAGESDEPLOY_POLL_INTERVAL_DEPLOY": "1.5",
            },
        )
        assert intervals == {"build": 0.0, "deploy": 1.5}

    @pytest.mark.parametrize("raw", ["fast", "-1"])
    def test_invalid_override_is_ignored(
        self, raw: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test invalid overrides fall back to the default with a warning."""
        with caplog.at_level(logging.WARNING, logger="pagesdeploy"):
            intervals = load_poll_intervals(
                ["build"], environ={"PAGESDEPLOY_POLL_INTERVAL_BUILD": raw}
            )

        assert intervals["build"] == get_default_poll_interval("build")
        assert "PAGESDEPLOY_POLL_INTERVAL_BUILD" in caplog.text

    def test_non_finite_override_is_ignored(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test nan and infinite overrides never become a wait time."""
        with caplog.at_level(logging.WARNING, logger="pagesdeploy"):
            intervals = load_poll_intervals(
                ["build", "deploy", "queued"],
                environ={
                    "PAGESDEPLOY_POLL_INTERVAL_BUILD": "nan",
                    "PAGESDEPLOY_POLL_INTERVAL_DEPLOY": "inf",
                    "PAGESDEPLOY_POLL_INTERVAL_QUEUED": "-Infinity",
                },
            )

        assert intervals == {
            "build": get_default_poll_interval("build"),
            "deploy": get_default_poll_interval("deploy"),
            "queued": get_default_poll_interval("queued"),
        }
        assert caplog.text.count("not a number") == 3

    def test_blank_override_is_ignored(self) -> None:
        """Test an empty variable counts as unset."""
        intervals = load_poll_intervals(
            ["deploy"], environ={"PAGESDEPLOY_POLL_INTERVAL_DEPLOY": " "}
        )
        assert intervals["deploy"] == get_default_poll_interval("deploy")


@pytest.mark.unit
class TestPoller:
    """Tests for the Poller loop primitive."""

    @pytest.mark.asyncio
    async def test_first_poll_does_not_wait(self) -> None:
        """Test only polls after the first one sleep."""
        sleep = AsyncMock()
        fetch = AsyncMock(side_effect=["one", "two", "three"])
        poller = Poller(fetch, 7.0, sleep=sleep)

        assert (await poller.poll())[0] == "one"
        sleep.assert_not_awaited()

        assert (await poller.poll())[0] == "two"
        assert (await poller.poll())[0] == "three"
        assert sleep.await_count == 2
        sleep.assert_awaited_with(7.0)
        assert poller.poll_count == 3

    @pytest.mark.asyncio
    async def test_initial_snapshot_skips_first_fetch(self) -> None:
        """Test a known snapshot is returned before fetching."""
        fetch = AsyncMock(return_value="fresh")
        poller = Poller(fetch, 0, initial="known", sleep=AsyncMock())

        assert (await poller.poll())[0] == "known"
        fetch.assert_not_awaited()
        assert (await poller.poll())[0] == "fresh"
        fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_elapsed_time(self) -> None:
        """Test elapsed is measured between consecutive polls."""
        ticks = iter([10.0, 14.5])
        poller = Poller(
            AsyncMock(return_value="x"),
            0,
            sleep=AsyncMock(),
            clock=lambda: next(ticks),
        )

        assert (await poller.poll())[1] == 0.0
        assert (await poller.poll())[1] == pytest.approx(4.5)

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate(self) -> None:
        """Test the poller never swallows fetch errors."""
        poller = Poller(AsyncMock(side_effect=RuntimeError("boom")), 0)
        with pytest.raises(RuntimeError, match="boom"):
            await poller.poll()
        assert poller.poll_count == 0

    @pytest.mark.asyncio
    async def test_anomaly_check_cadence(self) -> None:
        """Test the check is due on every Nth poll."""
        poller = Poller(AsyncMock(return_value="x"), 0, sleep=AsyncMock())
        due = []
        for _ in range(10):
            await poller.poll()
            due.append(poller.anomaly_check_due(5))
        assert due == [False] * 4 + [True] + [False] * 4 + [True]

    def test_anomaly_check_disabled(self) -> None:
        """Test a cadence of zero never checks."""
        poller = Poller(AsyncMock(), 0)
        poller.poll_count = 5
        assert not poller.anomaly_check_due(0)


@pytest.mark.unit
def test_poll_state_defaults() -> None:
    """Test a fresh poll state has seen nothing."""
    state = PollState()
    assert state.poll_count == 0
    assert state.last_seen_log_id is None
    assert not state.group_started
    assert not state.stage_has_logs
