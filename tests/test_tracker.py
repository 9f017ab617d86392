from __future__ import annotations

import logging

import pytest

from haper.futures import create_cancelable
from haper.tracker import RequestTracker


async def test_track_lookup_release() -> None:
    tracker = RequestTracker()
    future = create_cancelable().future

    assert tracker.track("r", future) is True
    assert tracker.lookup("r") is future
    assert "r" in tracker

    tracker.release("r")
    assert tracker.lookup("r") is None
    assert len(tracker) == 0

    # Releasing an unknown id is a no-op.
    tracker.release("r")


async def test_collision_is_reported_and_keeps_original(caplog: pytest.LogCaptureFixture) -> None:
    tracker = RequestTracker()
    first = create_cancelable().future
    second = create_cancelable().future

    tracker.track("r", first)
    with caplog.at_level(logging.WARNING, logger="haper.tracker"):
        assert tracker.track("r", second) is False

    assert tracker.lookup("r") is first
    assert "already in flight" in caplog.text
