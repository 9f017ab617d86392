"""
The request pipeline.

A :class:`Haper` client turns a declarative request description into an
``httpx.Request``, runs matching request interceptors over it, sends it through
a transport, decodes the body, runs matching response data interceptors over
the decoded value and settles a :class:`~haper.futures.CancelableFuture`.

Example:
    ```python
    async with create_haper(base_url="https://api.example") as haper:
        haper.register_request_interceptor(
            {"url": "/items", "method": "GET"},
            lambda request: request.headers.update({"X-Trace": "1"}),
        )
        items = await haper.get("/items", {"name": "foo"})
    ```
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx

from .config import HaperConfig
from .exceptions import RequestCanceledError
from .filters import FilterLike, InterceptorFilter, coerce_filter
from .futures import CancelableFuture, Deferred, create_cancelable
from .interceptors import RequestInterceptorRegistry, ResponseDataInterceptorRegistry
from .models import RequestOptions
from .tracker import RequestTracker
from .transport import (
    HttpxTransport,
    Transport,
    coerce_shape,
    decode_response,
    get_request_factory,
)
from .types import WILDCARD, Faker, HTTPMethod, RequestInterceptor, ResponseDataInterceptor
from .urls import interpolate_url, with_query

logger = logging.getLogger(__name__)


class Haper:
    """
    Asynchronous request pipeline.

    Requests must be issued from a running event loop. Each call returns a
    :class:`CancelableFuture` immediately; interception, dispatch and decoding
    happen in a background task.

    Attributes:
        config: Client configuration
        request_interceptors: Registry consulted before dispatch
        response_interceptors: Registry consulted after decoding
    """

    def __init__(
        self,
        config: HaperConfig | None = None,
        *,
        transport: Transport | None = None,
        **overrides: Any,
    ):
        """
        Initialize the client.

        Args:
            config: Client configuration (default: ``HaperConfig()``)
            transport: Transport to send requests with (default: an
                ``httpx.AsyncClient`` built from ``config``)
            **overrides: ``HaperConfig`` fields overriding ``config``
        """
        config = config or HaperConfig()
        if overrides:
            config = config.with_overrides(**overrides)
        self.config = config
        self._transport: Transport = transport or HttpxTransport(
            timeout=config.timeout,
            transport=config.transport,
        )
        self.request_interceptors = RequestInterceptorRegistry()
        self.response_interceptors = ResponseDataInterceptorRegistry()
        self._tracker = RequestTracker()
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def base_url(self) -> str:
        return self.config.base_url

    async def __aenter__(self) -> Haper:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel running requests and close the transport."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self._transport.aclose()

    # =========================================================================
    # Requests
    # =========================================================================

    def __call__(
        self,
        options: RequestOptions | Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> CancelableFuture[Any]:
        """
        Issue a request.

        Args:
            options: Request description, as a model or a mapping
                (camelCase keys accepted)
            **overrides: Option fields applied on top of ``options``

        Returns:
            A future resolving with the decoded (and intercepted) response body.

        Raises:
            UnsupportedResponseShapeError: ``response_type`` names no known shape
            PipelineNotRunningError: No event loop is running
        """
        opts = _coerce_options(options, overrides)
        deferred = create_cancelable(request_id=opts.request_id)

        if (self.config.mock or opts.mock) and opts.faker is not None:
            logger.debug(f"Faking {opts.effective_method} {self.config.base_url}{opts.url}")
            faker = opts.faker
            params = opts.params
            self._start(deferred, lambda: self._fake(faker, params))
            return deferred.future

        tracked_id: str | None = None
        if opts.request_id is not None and self._tracker.track(opts.request_id, deferred.future):
            tracked_id = opts.request_id

        self._start(
            deferred,
            lambda: self._dispatch(opts, deferred),
            tracked_id=tracked_id,
        )
        return deferred.future

    def request(
        self, method: HTTPMethod, url: str, params: Any = None, **options: Any
    ) -> CancelableFuture[Any]:
        return self({"url": url, "method": method, "params": params, **options})

    def get(self, url: str, params: Any = None, **options: Any) -> CancelableFuture[Any]:
        """GET ``url``; ``params`` become the query string."""
        return self.request("GET", url, params, **options)

    def post(self, url: str, data: Any = None, **options: Any) -> CancelableFuture[Any]:
        return self.request("POST", url, data, **options)

    def put(self, url: str, data: Any = None, **options: Any) -> CancelableFuture[Any]:
        return self.request("PUT", url, data, **options)

    def patch(self, url: str, data: Any = None, **options: Any) -> CancelableFuture[Any]:
        return self.request("PATCH", url, data, **options)

    def delete(self, url: str, data: Any = None, **options: Any) -> CancelableFuture[Any]:
        return self.request("DELETE", url, data, **options)

    def simulate(
        self,
        faker: Faker,
        params: Any = None,
        *,
        request_id: str | None = None,
    ) -> CancelableFuture[Any]:
        """Resolve with ``faker(params)`` after the configured simulated delay."""
        deferred = create_cancelable(request_id=request_id)
        self._start(deferred, lambda: self._fake(faker, params))
        return deferred.future

    def get_request_future(self, request_id: str) -> CancelableFuture[Any] | None:
        """The tracked in-flight future for ``request_id``, if any."""
        return self._tracker.lookup(request_id)

    # =========================================================================
    # Interceptor registration
    # =========================================================================

    def register_request_interceptor(
        self, filters: FilterLike, interceptor: RequestInterceptor
    ) -> None:
        """
        Run ``interceptor`` on outgoing requests matching ``filters``.

        ``filters`` may be an ``InterceptorFilter``, a mapping with
        ``url``/``method``/``type`` keys or a ``"METHOD URL TYPE"`` string. The
        URL is relative to ``base_url`` unless it is ``*``. ``type`` matches the
        request content type (e.g. ``json``).
        """
        self.request_interceptors.register(self._scoped(filters), interceptor)

    def register_response_data_interceptor(
        self, filters: FilterLike, interceptor: ResponseDataInterceptor
    ) -> None:
        """
        Run ``interceptor`` on decoded response bodies matching ``filters``.

        Same filter forms as :meth:`register_request_interceptor`; ``type``
        matches the declared response shape (e.g. ``json``, ``text``).
        """
        self.response_interceptors.register(self._scoped(filters), interceptor)

    def _scoped(self, filters: FilterLike) -> InterceptorFilter:
        rule = coerce_filter(filters)
        if rule.url == WILDCARD:
            return rule
        return rule.with_url(f"{self.config.base_url}{rule.url}")

    # =========================================================================
    # Internals
    # =========================================================================

    def _start(
        self,
        deferred: Deferred[Any],
        work: Callable[[], Awaitable[Any]],
        *,
        tracked_id: str | None = None,
    ) -> None:
        task = asyncio.get_running_loop().create_task(self._settle(deferred, work, tracked_id))
        self._tasks.add(task)

        def _on_abort(_signal: object) -> None:
            task.cancel()
            self._untrack(tracked_id, deferred)

        def _on_done(finished: asyncio.Task[None]) -> None:
            self._tasks.discard(finished)
            self._untrack(tracked_id, deferred)
            if finished.cancelled():
                deferred.reject(RequestCanceledError(request_id=deferred.future.request_id))

        deferred.signal.add_listener(_on_abort)
        task.add_done_callback(_on_done)

    async def _settle(
        self,
        deferred: Deferred[Any],
        work: Callable[[], Awaitable[Any]],
        tracked_id: str | None,
    ) -> None:
        try:
            value = await work()
        except asyncio.CancelledError:
            deferred.reject(RequestCanceledError(request_id=deferred.future.request_id))
            raise
        except Exception as e:
            logger.debug(f"Request rejected: {e!r}")
            deferred.reject(e)
        else:
            deferred.resolve(value)
        finally:
            self._untrack(tracked_id, deferred)

    def _untrack(self, tracked_id: str | None, deferred: Deferred[Any]) -> None:
        if tracked_id is not None and self._tracker.lookup(tracked_id) is deferred.future:
            self._tracker.release(tracked_id)

    def _build_request(
        self, options: RequestOptions, base_url: str, deferred: Deferred[Any]
    ) -> httpx.Request:
        if options.is_get:
            url, body = with_query(base_url, options.params), None
        else:
            url, body = base_url, options.params
        interpolated = interpolate_url(url, body)

        factory = get_request_factory(options.content_type)
        return factory(
            options.effective_method,
            interpolated.url,
            body=interpolated.params,
            headers={**self.config.headers, **options.headers},
            signal=deferred.signal,
        )

    async def _dispatch(self, options: RequestOptions, deferred: Deferred[Any]) -> Any:
        base_url = f"{self.config.base_url}{options.url}"
        method = options.effective_method
        request = self._build_request(options, base_url, deferred)
        request = self.request_interceptors.pipe(
            request,
            InterceptorFilter(url=base_url, method=method, type=options.content_type),
        )
        if self.config.log_requests:
            logger.debug(f"--> {request.method} {request.url}")

        response = await self._transport.send(request)
        if self.config.log_requests:
            logger.debug(f"<-- {response.status_code} {request.method} {request.url}")

        data = await decode_response(response, options.response_type)
        return self.response_interceptors.pipe(
            InterceptorFilter(url=base_url, method=method, type=options.response_type.value),
            data,
        )

    async def _fake(self, faker: Faker, params: Any) -> Any:
        await asyncio.sleep(random.uniform(*self.config.mock_delay))
        return faker(params)


def _coerce_options(
    options: RequestOptions | Mapping[str, Any] | None, overrides: Mapping[str, Any]
) -> RequestOptions:
    if isinstance(options, RequestOptions):
        if not overrides:
            return options
        data = {**options.model_dump(), **overrides}
    else:
        data = {**(options or {}), **overrides}
    for key in ("response_type", "responseType"):
        if data.get(key) is not None:
            coerce_shape(data[key])
    return RequestOptions.model_validate(data)


def create_haper(
    base_url: str = "",
    *,
    mock: bool = False,
    transport: Transport | None = None,
    **config: Any,
) -> Haper:
    """
    Create a client with its own interceptor registries and request tracker.

    Args:
        base_url: Prefix for every request URL
        mock: Serve fakes for requests that carry a faker
        transport: Custom transport (default: httpx)
        **config: Remaining ``HaperConfig`` fields
    """
    return Haper(HaperConfig(base_url=base_url, mock=mock, **config), transport=transport)
