"""Tests for RepoStatusTracker."""

import io
import logging

import pytest
from rich.console import Console

from subprop.core.state import RepoStatus
from subprop.core.status_tracker import RepoStatusTracker, format_counts


def _tracker() -> tuple[RepoStatusTracker, io.StringIO]:
    buffer = io.StringIO()
    return RepoStatusTracker(Console(file=buffer, width=200)), buffer


def test_initialize_marks_everything_pending() -> None:
    tracker, _ = _tracker()

    tracker.initialize(["C", "A", "R"])

    assert tracker.repo_order == ("C", "A", "R")
    assert {s.status for s in tracker.statuses().values()} == {"pending"}
    assert tracker.active_repo is None


def test_restore_keeps_only_finished_statuses() -> None:
    tracker, _ = _tracker()
    saved = {
        "C": RepoStatus(status="skipped", message="No submodule changes"),
        "A": RepoStatus(status="updated", message="Merged as a111"),
        "B": RepoStatus(status="in-progress", message="Waiting for checks"),
        "R": RepoStatus(status="failed", message="Timeout"),
    }

    tracker.restore(["C", "A", "B", "R", "S"], saved)

    assert tracker.get("C") == saved["C"]
    assert tracker.get("A") == saved["A"]
    assert tracker.get("B") == RepoStatus(status="pending")
    assert tracker.get("R") == RepoStatus(status="pending")
    assert tracker.get("S") == RepoStatus(status="pending")


def test_review_url_is_kept_by_later_transitions() -> None:
    tracker, _ = _tracker()
    tracker.initialize(["A"])

    tracker.set_status("A", "in-progress", "Waiting for checks", "https://github.com/org/A/pull/1")
    tracker.set_status("A", "updated", "Merged as a111")

    assert tracker.get("A").review_request_url == "https://github.com/org/A/pull/1"
    assert tracker.get("A").message == "Merged as a111"


def test_active_repo_follows_in_progress() -> None:
    tracker, _ = _tracker()
    tracker.initialize(["A", "B"])

    tracker.set_status("A", "in-progress")
    assert tracker.active_repo == "A"

    tracker.set_status("A", "skipped")
    assert tracker.active_repo is None


def test_counts() -> None:
    tracker, _ = _tracker()
    tracker.initialize(["A", "B", "C"])
    tracker.set_status("A", "updated")
    tracker.set_status("B", "skipped")

    counts = tracker.counts()

    assert counts["updated"] == 1
    assert counts["skipped"] == 1
    assert counts["pending"] == 1
    assert format_counts(counts) == "1 pending, 1 updated, 1 skipped"


def test_render_final_prints_once() -> None:
    tracker, buffer = _tracker()
    tracker.initialize(["Alpha"])
    tracker.set_status("Alpha", "updated")

    assert tracker.render(final=True)
    assert tracker.render(final=True)

    assert buffer.getvalue().count("Alpha") == 1


def test_fail_marks_active_repo_and_closes_its_review_request() -> None:
    tracker, _ = _tracker()
    tracker.initialize(["A", "R"])
    tracker.set_status("A", "in-progress", "Waiting for checks", "https://github.com/org/A/pull/1")
    closed: list[str] = []

    result = tracker.fail("Failed: build", close_review_request=closed.append)

    assert result is False
    assert tracker.get("A").status == "failed"
    assert tracker.get("A").message == "Failed: build"
    assert tracker.get("R").status == "pending"
    assert closed == ["https://github.com/org/A/pull/1"]


def test_fail_is_idempotent() -> None:
    tracker, buffer = _tracker()
    tracker.initialize(["Alpha"])
    tracker.set_status("Alpha", "in-progress", "Waiting", "https://github.com/org/x/pull/1")
    closed: list[str] = []

    tracker.fail("first", close_review_request=closed.append)
    tracker.fail("second", close_review_request=closed.append)

    assert tracker.get("Alpha").message == "first"
    assert closed == ["https://github.com/org/x/pull/1"]
    assert buffer.getvalue().count("Alpha") == 1


def test_fail_without_review_request_does_not_close() -> None:
    tracker, _ = _tracker()
    tracker.initialize(["A"])
    tracker.set_status("A", "in-progress", "Updating submodules")
    closed: list[str] = []

    tracker.fail("Local update failed", close_review_request=closed.append)

    assert closed == []
    assert tracker.get("A").status == "failed"


def test_fail_logs_close_errors(caplog: pytest.LogCaptureFixture) -> None:
    tracker, _ = _tracker()
    tracker.initialize(["A"])
    tracker.set_status("A", "in-progress", "Waiting", "https://github.com/org/A/pull/1")

    def close(url: str) -> None:
        raise RuntimeError("gh pr close failed")

    with caplog.at_level(logging.WARNING):
        tracker.fail("Timeout", close_review_request=close)

    assert tracker.get("A").status == "failed"
    assert "gh pr close failed" in caplog.text
