"""
Shared type definitions and constants.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any, Literal, TypeAlias

import httpx

HTTPMethod: TypeAlias = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

HTTP_METHODS: tuple[HTTPMethod, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE")

WILDCARD = "*"

# Legacy string form of an interceptor filter: "METHOD URL TYPE".
FILTER_KEY_SEPARATOR = " "

# Simulated latency for faked responses, in seconds.
DEFAULT_MOCK_DELAY: tuple[float, float] = (0.05, 0.55)

# Content type tag -> Content-Type header value.
CONTENT_TYPE_HEADERS: dict[str, str] = {
    "json": "application/json",
}
DEFAULT_CONTENT_TYPE = "json"

CANCELLATION_SIGNAL_EXTENSION = "cancellation_signal"


class ResponseShape(str, Enum):
    """How a response body is decoded before response interceptors run."""

    JSON = "json"
    TEXT = "text"
    BLOB = "blob"
    ARRAY_BUFFER = "arrayBuffer"
    FORM_DATA = "formData"

    def __str__(self) -> str:
        return self.value


Params: TypeAlias = dict[str, Any]
RequestInterceptor: TypeAlias = Callable[[httpx.Request], httpx.Request | None]
ResponseDataInterceptor: TypeAlias = Callable[[Any], Any]
Faker: TypeAlias = Callable[[Any], Any]
