"""
Cancelable futures.

A :class:`CancelableFuture` is an awaitable, single-assignment result cell with
an explicit :meth:`CancelableFuture.cancel`. Cancelling aborts the paired
:class:`CancellationSignal` (so the transport can stop in-flight work) and
rejects the future with :class:`~haper.exceptions.RequestCanceledError`.
The first settlement wins; cancelling an already settled future changes
nothing.

Example:
    deferred = create_cancelable()
    deferred.signal.add_listener(lambda _signal: task.cancel())
    deferred.resolve(42)
    assert await deferred.future == 42
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Generator
from typing import Any, Generic, TypeVar

from .exceptions import PipelineNotRunningError, RequestCanceledError

T = TypeVar("T")

SignalListener = Callable[["CancellationSignal"], None]


class CancellationSignal:
    """One-shot abort flag observed by transports."""

    def __init__(self) -> None:
        self._aborted = False
        self._reason: BaseException | None = None
        self._listeners: list[SignalListener] = []

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> BaseException | None:
        return self._reason

    def add_listener(self, listener: SignalListener) -> None:
        """Call ``listener`` on abort; immediately if already aborted."""
        if self._aborted:
            listener(self)
            return
        self._listeners.append(listener)

    def abort(self, reason: BaseException | None = None) -> None:
        if self._aborted:
            return
        self._aborted = True
        self._reason = reason
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener(self)

    def __repr__(self) -> str:
        return f"CancellationSignal(aborted={self._aborted})"


class CancelableFuture(Generic[T]):
    """Awaitable result of a request, with ``cancel()``."""

    def __init__(
        self,
        future: asyncio.Future[T],
        signal: CancellationSignal,
        *,
        request_id: str | None = None,
    ) -> None:
        self._future = future
        self._signal = signal
        self.request_id = request_id

    def __await__(self) -> Generator[Any, None, T]:
        return self._future.__await__()

    @property
    def signal(self) -> CancellationSignal:
        return self._signal

    @property
    def canceled(self) -> bool:
        """True when the future was rejected by ``cancel()``."""
        if not self._future.done() or self._future.cancelled():
            return False
        return isinstance(self._future.exception(), RequestCanceledError)

    def cancel(self) -> None:
        """Abort the transport and reject with ``RequestCanceledError`` unless settled."""
        reason = RequestCanceledError(request_id=self.request_id)
        self._signal.abort(reason)
        if self._future.done():
            return
        self._future.set_exception(reason)
        # Mark the rejection as observed; the caller asked for it.
        self._future.exception()

    def cancelled(self) -> bool:
        return self.canceled

    def done(self) -> bool:
        return self._future.done()

    def result(self) -> T:
        return self._future.result()

    def exception(self) -> BaseException | None:
        return self._future.exception()

    def add_done_callback(self, callback: Callable[[CancelableFuture[T]], object]) -> None:
        self._future.add_done_callback(lambda _fut: callback(self))

    def __repr__(self) -> str:
        if not self._future.done():
            state = "pending"
        elif self.canceled:
            state = "canceled"
        elif self._future.exception() is not None:
            state = "rejected"
        else:
            state = "resolved"
        return f"<CancelableFuture {state} request_id={self.request_id!r}>"


class Deferred(Generic[T]):
    """A future together with the functions that settle it."""

    def __init__(self, loop: asyncio.AbstractEventLoop, *, request_id: str | None = None) -> None:
        self.signal = CancellationSignal()
        self._raw: asyncio.Future[T] = loop.create_future()
        self.future: CancelableFuture[T] = CancelableFuture(
            self._raw, self.signal, request_id=request_id
        )

    def resolve(self, value: T) -> None:
        if not self._raw.done():
            self._raw.set_result(value)

    def reject(self, reason: BaseException) -> None:
        if not self._raw.done():
            self._raw.set_exception(reason)


def create_cancelable(
    loop: asyncio.AbstractEventLoop | None = None,
    *,
    request_id: str | None = None,
) -> Deferred[Any]:
    """Create a deferred bound to ``loop`` (default: the running loop)."""
    if loop is None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise PipelineNotRunningError(
                "haper requests must be issued from a running asyncio event loop"
            ) from e
    return Deferred(loop, request_id=request_id)
