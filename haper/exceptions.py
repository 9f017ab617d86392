"""
Exception hierarchy for haper.

Transport failures are not wrapped: a request that fails inside httpx rejects
its future with the original ``httpx`` exception.
"""

from __future__ import annotations


class HaperError(Exception):
    """Base class for all haper errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class RequestCanceledError(HaperError):
    """Reason a future is rejected with after ``cancel()``."""

    def __init__(self, message: str = "cancel", *, request_id: str | None = None) -> None:
        super().__init__(message)
        self.request_id = request_id


class InvalidFilterError(HaperError, ValueError):
    """An interceptor filter could not be parsed."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class UnsupportedResponseShapeError(HaperError, ValueError):
    """The declared response shape has no decoder."""

    def __init__(self, shape: object) -> None:
        super().__init__(f"Unsupported response shape: {shape!r}")
        self.shape = shape


class PipelineNotRunningError(HaperError, RuntimeError):
    """A request was issued without a running asyncio event loop."""
