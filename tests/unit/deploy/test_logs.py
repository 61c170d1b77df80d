"""Unit tests for log reconciliation."""

from __future__ import annotations

import pytest
from pages_fakes import at, log_entry, make_snapshot

from pagesdeploy.deploy.logs import LogWindow, last_log_id, new_since


def _messages(entries: list) -> list[str]:
    return [entry.message for entry in entries]


@pytest.mark.unit
class TestLogWindow:
    """Tests for the push mode log buffer."""

    def test_flush_without_bound_releases_everything(self) -> None:
        """Test flush() empties the buffer in arrival order."""
        window = LogWindow()
        for second, message in [(1, "a"), (2, "b"), (3, "c")]:
            window.enqueue(log_entry(second, message))

        assert _messages(window.flush()) == ["a", "b", "c"]
        assert len(window) == 0

    def test_flush_releases_prefix_up_to_watermark(self) -> None:
        """Test entries newer than the watermark stay buffered."""
        window = LogWindow()
        for second, message in [(1, "a"), (2, "b"), (5, "c")]:
            window.enqueue(log_entry(second, message))

        assert _messages(window.flush(at(2))) == ["a", "b"]
        assert len(window) == 1
        assert _messages(window.flush()) == ["c"]

    def test_boundary_is_first_entry_after_watermark(self) -> None:
        """Test out-of-order entries behind the boundary are not released."""
        window = LogWindow()
        for second, message in [(1, "a"), (4, "b"), (2, "late")]:
            window.enqueue(log_entry(second, message))

        assert _messages(window.flush(at(3))) == ["a"]
        assert _messages(window.flush()) == ["b", "late"]

    def test_peek_does_not_mutate(self) -> None:
        """Test peek counts releasable entries without removing them."""
        window = LogWindow()
        window.enqueue(log_entry(1, "a"))
        window.enqueue(log_entry(9, "b"))

        assert window.peek(at(5)) == 1
        assert window.peek() == 2
        assert len(window) == 2

    def test_peek_on_empty_window(self) -> None:
        """Test an empty window has nothing to release."""
        assert LogWindow().peek(at(0)) == 0
        assert LogWindow().flush() == []

    def test_entry_at_watermark_is_released(self) -> None:
        """Test the watermark bound is inclusive."""
        window = LogWindow()
        window.enqueue(log_entry(3, "edge"))
        assert _messages(window.flush(at(3))) == ["edge"]

    @pytest.mark.parametrize("bound", [0, 1.5, 3, 10])
    def test_flush_then_flush_all_emits_each_entry_once(self, bound: float) -> None:
        """Test a bounded flush followed by a full flush loses nothing."""
        window = LogWindow()
        messages = ["a", "b", "c", "d"]
        for second, message in zip([1, 3, 2, 4], messages):
            window.enqueue(log_entry(second, message))

        released = window.flush(at(bound)) + window.flush()
        assert _messages(released) == messages


@pytest.mark.unit
class TestNewSince:
    """Tests for pull mode id cursor."""

    def test_returns_everything_without_cursor(self) -> None:
        """Test the first fetch emits the whole snapshot."""
        snapshot = make_snapshot("build", lines=["a", "b"])
        assert _messages(new_since(snapshot, None)) == ["a", "b"]

    def test_returns_nothing_when_snapshot_ends_at_cursor(self) -> None:
        """Test an unchanged snapshot emits nothing."""
        snapshot = make_snapshot("build", lines=["a", "b"])
        assert new_since(snapshot, 2) == []

    def test_returns_entries_after_cursor(self) -> None:
        """Test only lines with a greater id are returned."""
        snapshot = make_snapshot("build", lines=["a", "b", "c", "d"])
        assert _messages(new_since(snapshot, 2)) == ["c", "d"]

    def test_last_log_id(self) -> None:
        """Test the cursor is the highest id of a snapshot."""
        assert last_log_id(make_snapshot("build", lines=["a", "b", "c"])) == 3
        assert last_log_id(make_snapshot("build")) is None
        assert last_log_id(None) is None
