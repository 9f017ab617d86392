"""
Interceptor registries.

Interceptors are stored per filter key. Registering twice under the same key
prepends, so the most recently registered interceptor runs first. Interceptors
stored under different keys run in key registration order.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

import httpx

from .filters import FilterKey, FilterLike, InterceptorFilter, coerce_filter, matches
from .types import RequestInterceptor, ResponseDataInterceptor

logger = logging.getLogger(__name__)

TInterceptor = TypeVar("TInterceptor")
T = TypeVar("T")


class InterceptorRegistry(Generic[TInterceptor]):
    """Mapping of filter key -> interceptors, newest first."""

    def __init__(self) -> None:
        self._registry: dict[FilterKey, list[TInterceptor]] = {}

    def __len__(self) -> int:
        return sum(len(stack) for stack in self._registry.values())

    def register(self, filters: FilterLike, interceptor: TInterceptor) -> None:
        key = coerce_filter(filters).to_key()
        self._registry[key] = [interceptor, *self._registry.get(key, [])]
        logger.debug(f"Registered interceptor for {key}")

    def matching(self, concrete: InterceptorFilter) -> list[TInterceptor]:
        """All interceptors whose filter matches ``concrete``, in run order."""
        found: list[TInterceptor] = []
        for key, stack in self._registry.items():
            if matches(InterceptorFilter.from_key(key), concrete):
                found.extend(stack)
        return found


class RequestInterceptorRegistry(InterceptorRegistry[RequestInterceptor]):
    def pipe(self, request: httpx.Request, concrete: InterceptorFilter) -> httpx.Request:
        """
        Fold matching interceptors over ``request``.

        An interceptor returning ``None`` keeps the current request; any other
        return value replaces it for the following interceptors.
        """
        for interceptor in self.matching(concrete):
            replaced = interceptor(request)
            if replaced is not None:
                request = replaced
        return request


class ResponseDataInterceptorRegistry(InterceptorRegistry[ResponseDataInterceptor]):
    def pipe(self, concrete: InterceptorFilter, data: T) -> T:
        value: Any = data
        for interceptor in self.matching(concrete):
            replaced = interceptor(value)
            if replaced is not None:
                value = replaced
        return value
