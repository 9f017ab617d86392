"""
In-flight request tracking by caller-supplied request id.
"""

from __future__ import annotations

import logging
from typing import Any

from .futures import CancelableFuture

logger = logging.getLogger(__name__)


class RequestTracker:
    """
    Single-slot map of request id -> in-flight future.

    A colliding ``track()`` is reported and ignored: the entry registered first
    stays until its request settles. Must only be touched from the event loop
    thread.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, CancelableFuture[Any]] = {}

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._inflight

    def __len__(self) -> int:
        return len(self._inflight)

    def track(self, request_id: str, future: CancelableFuture[Any]) -> bool:
        """Register ``future`` under ``request_id``; False on collision."""
        if request_id in self._inflight:
            logger.warning(
                f"Request id {request_id!r} is already in flight; "
                "the new request will not be tracked"
            )
            return False
        self._inflight[request_id] = future
        return True

    def lookup(self, request_id: str) -> CancelableFuture[Any] | None:
        return self._inflight.get(request_id)

    def release(self, request_id: str) -> None:
        self._inflight.pop(request_id, None)
