"""
haper: declarative HTTP requests with interceptors, cancelable futures and fakes.
"""

from __future__ import annotations

from .builder import ApiBuilder, Endpoint, create_api_builder
from .client import Haper, create_haper
from .config import HaperConfig
from .exceptions import (
    HaperError,
    InvalidFilterError,
    PipelineNotRunningError,
    RequestCanceledError,
    UnsupportedResponseShapeError,
)
from .filters import InterceptorFilter, matches
from .futures import CancelableFuture, CancellationSignal, create_cancelable
from .models import RequestOptions
from .transport import Blob, HttpxTransport, Transport
from .types import ResponseShape
from .urls import InterpolatedUrl, interpolate_url

__version__ = "0.3.0"

__all__ = [
    "ApiBuilder",
    "Blob",
    "CancelableFuture",
    "CancellationSignal",
    "Endpoint",
    "Haper",
    "HaperConfig",
    "HaperError",
    "HttpxTransport",
    "InterceptorFilter",
    "InterpolatedUrl",
    "InvalidFilterError",
    "PipelineNotRunningError",
    "RequestCanceledError",
    "RequestOptions",
    "ResponseShape",
    "Transport",
    "UnsupportedResponseShapeError",
    "__version__",
    "create_api_builder",
    "create_cancelable",
    "create_haper",
    "interpolate_url",
    "matches",
]
