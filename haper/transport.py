"""
Transport boundary.

The pipeline builds plain ``httpx.Request`` objects and hands them to a
:class:`Transport`. The default :class:`HttpxTransport` wraps an
``httpx.AsyncClient``; tests typically inject ``httpx.MockTransport`` through
``HaperConfig.transport``.

Response bodies are decoded by declared :class:`~haper.types.ResponseShape`
through an explicit decoder table.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from .exceptions import UnsupportedResponseShapeError
from .futures import CancellationSignal
from .types import (
    CANCELLATION_SIGNAL_EXTENSION,
    CONTENT_TYPE_HEADERS,
    DEFAULT_CONTENT_TYPE,
    ResponseShape,
)

logger = logging.getLogger(__name__)


class Transport(Protocol):
    async def send(self, request: httpx.Request) -> httpx.Response: ...

    async def aclose(self) -> None: ...


class HttpxTransport:
    """Send requests with an ``httpx.AsyncClient``."""

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    async def send(self, request: httpx.Request) -> httpx.Response:
        # Requests are built outside the client, so apply its timeout here.
        request.extensions.setdefault("timeout", self._client.timeout.as_dict())
        return await self._client.send(request)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def cancellation_signal_of(request: httpx.Request) -> CancellationSignal | None:
    """The cancellation signal a pipeline attached to ``request``, if any."""
    signal = request.extensions.get(CANCELLATION_SIGNAL_EXTENSION)
    return signal if isinstance(signal, CancellationSignal) else None


# =============================================================================
# Request construction
# =============================================================================

RequestFactory = Callable[..., httpx.Request]


def build_json_request(
    method: str,
    url: str,
    *,
    body: Any = None,
    headers: Mapping[str, str] | None = None,
    signal: CancellationSignal | None = None,
) -> httpx.Request:
    merged = {"Content-Type": CONTENT_TYPE_HEADERS["json"], **(headers or {})}
    extensions: dict[str, Any] = {}
    if signal is not None:
        extensions[CANCELLATION_SIGNAL_EXTENSION] = signal
    if body is None:
        return httpx.Request(method, url, headers=merged, extensions=extensions)
    return httpx.Request(method, url, headers=merged, json=body, extensions=extensions)


_REQUEST_FACTORIES: dict[str, RequestFactory] = {
    "json": build_json_request,
}


def get_request_factory(content_type: str | None) -> RequestFactory:
    """Factory for ``content_type``; unknown content types fall back to JSON."""
    factory = _REQUEST_FACTORIES.get(content_type or DEFAULT_CONTENT_TYPE)
    if factory is None:
        logger.debug(f"No request encoder for content type {content_type!r}; using JSON")
        return build_json_request
    return factory


# =============================================================================
# Response decoding
# =============================================================================


@dataclass(frozen=True, slots=True)
class Blob:
    """Raw response body together with its media type."""

    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)


def _decode_json(response: httpx.Response) -> Any:
    return response.json()


def _decode_text(response: httpx.Response) -> str:
    return response.text


def _decode_blob(response: httpx.Response) -> Blob:
    return Blob(content=response.content, content_type=response.headers.get("content-type"))


def _decode_array_buffer(response: httpx.Response) -> bytes:
    return response.content


def _decode_form_data(response: httpx.Response) -> httpx.QueryParams:
    return httpx.QueryParams(response.text)


_DECODERS: dict[ResponseShape, Callable[[httpx.Response], Any]] = {
    ResponseShape.JSON: _decode_json,
    ResponseShape.TEXT: _decode_text,
    ResponseShape.BLOB: _decode_blob,
    ResponseShape.ARRAY_BUFFER: _decode_array_buffer,
    ResponseShape.FORM_DATA: _decode_form_data,
}


def coerce_shape(shape: ResponseShape | str) -> ResponseShape:
    try:
        return ResponseShape(shape)
    except ValueError as e:
        raise UnsupportedResponseShapeError(shape) from e


async def decode_response(response: httpx.Response, shape: ResponseShape | str) -> Any:
    """Read ``response`` and decode it as ``shape``."""
    decoder = _DECODERS[coerce_shape(shape)]
    await response.aread()
    return decoder(response)
