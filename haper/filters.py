"""
Interceptor filters.

A filter is a matching rule over ``(method, url, type)``. Each part is either
an exact value or the wildcard ``*``; there is no prefix or pattern matching.

Example:
    from haper.filters import InterceptorFilter, matches

    rule = InterceptorFilter(url="https://api.example/items", method="*")
    matches(rule, InterceptorFilter(url="https://api.example/items", method="GET"))  # True

Filters may also be written as ``"METHOD URL TYPE"`` key strings, e.g.
``"GET https://api.example/items json"``. Because the parts are separated by a
single space, URLs used in key strings must not contain spaces.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

from .exceptions import InvalidFilterError
from .types import FILTER_KEY_SEPARATOR, WILDCARD

FilterKey: TypeAlias = tuple[str, str, str]


@dataclass(frozen=True, slots=True)
class InterceptorFilter:
    """A matching rule, or the description of a concrete request."""

    url: str
    method: str | None = None
    type: str | None = None

    def __post_init__(self) -> None:
        if self.method is not None:
            object.__setattr__(self, "method", self.method.upper())

    def to_key(self) -> FilterKey:
        """Canonical registry key; missing method/type become the wildcard."""
        return (self.method or WILDCARD, self.url, self.type or WILDCARD)

    @classmethod
    def from_key(cls, key: FilterKey) -> InterceptorFilter:
        method, url, type_ = key
        return cls(url=url, method=method, type=type_)

    @classmethod
    def parse(cls, text: str) -> InterceptorFilter:
        """
        Parse a ``"METHOD URL TYPE"`` key string.

        Shorter forms are accepted: ``"URL"`` and ``"METHOD URL"``; missing parts
        default to the wildcard.
        """
        parts = [part for part in text.strip().split(FILTER_KEY_SEPARATOR) if part]
        if len(parts) == 1:
            return cls(url=parts[0], method=WILDCARD, type=WILDCARD)
        if len(parts) == 2:
            return cls(url=parts[1], method=parts[0], type=WILDCARD)
        if len(parts) == 3:
            return cls(url=parts[1], method=parts[0], type=parts[2])
        raise InvalidFilterError(
            f"Filter key must look like 'METHOD URL TYPE', got {text!r}", key=text
        )

    def with_url(self, url: str) -> InterceptorFilter:
        return InterceptorFilter(url=url, method=self.method, type=self.type)


FilterLike: TypeAlias = InterceptorFilter | Mapping[str, Any] | str


def coerce_filter(value: FilterLike) -> InterceptorFilter:
    """Accept a filter object, a ``{"url", "method", "type"}`` mapping or a key string."""
    if isinstance(value, InterceptorFilter):
        return value
    if isinstance(value, str):
        return InterceptorFilter.parse(value)
    if isinstance(value, Mapping):
        if "url" not in value:
            raise InvalidFilterError("Filter mapping is missing required key: url")
        return InterceptorFilter(
            url=str(value["url"]),
            method=value.get("method"),
            type=value.get("type"),
        )
    raise InvalidFilterError(f"Unsupported filter value: {value!r}")


def _part_matches(rule: str | None, concrete: str | None) -> bool:
    if not rule or rule == WILDCARD:
        return True
    return rule == concrete


def matches(rule: InterceptorFilter, concrete: InterceptorFilter) -> bool:
    """
    Return True when ``rule`` applies to the ``concrete`` request.

    The URL must be equal (or the rule URL is ``*``). Method and type are only
    compared when the rule constrains them.
    """
    if rule.url != WILDCARD and rule.url != concrete.url:
        return False
    return _part_matches(rule.method, concrete.method) and _part_matches(rule.type, concrete.type)
