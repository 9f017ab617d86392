"""
URL template helpers.

Templates use ``:name`` placeholders, e.g. ``/users/:id/posts/:post_id``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

_PLACEHOLDER = re.compile(r":(\w+)")


@dataclass(frozen=True, slots=True)
class InterpolatedUrl:
    url: str
    params: Any
    """Parameters that were not consumed by a placeholder."""


def placeholders(url: str) -> list[str]:
    """Placeholder names in ``url``, in order of appearance (duplicates kept)."""
    return _PLACEHOLDER.findall(url)


def interpolate_url(url: str, params: Any = None) -> InterpolatedUrl:
    """
    Substitute ``:name`` placeholders in ``url`` from ``params``.

    Keys are processed in the order they were supplied. A key naming a
    placeholder replaces that placeholder's first remaining occurrence with
    ``str(value)`` and is dropped from the residual params; other keys are kept.
    Placeholders without a matching key stay in the URL as written. Values are
    not URL-escaped.

    When the URL has no placeholders (or ``params`` is not a mapping) the
    params are returned untouched as the residual.
    """
    names = set(placeholders(url))
    if not names or not isinstance(params, Mapping):
        return InterpolatedUrl(url=url, params=params)

    residual: dict[str, Any] = {}
    for key, value in params.items():
        if key in names:
            pattern = re.compile(rf":{re.escape(key)}(?!\w)")
            url = pattern.sub(lambda _m, _v=str(value): _v, url, count=1)
        else:
            residual[key] = value
    return InterpolatedUrl(url=url, params=residual)


def with_query(url: str, params: Any) -> str:
    """Append ``params`` to ``url`` as a query string (no-op when empty)."""
    if not params:
        return url
    query = str(httpx.QueryParams(params))
    if not query:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"
