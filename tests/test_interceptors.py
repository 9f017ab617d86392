from __future__ import annotations

import httpx

from haper.filters import InterceptorFilter
from haper.interceptors import (
    InterceptorRegistry,
    RequestInterceptorRegistry,
    ResponseDataInterceptorRegistry,
)


def _named(name: str):
    def interceptor(value):
        return None

    interceptor.__name__ = name
    return interceptor


def test_same_key_registration_is_lifo() -> None:
    registry: InterceptorRegistry[object] = InterceptorRegistry()
    a, b = _named("a"), _named("b")
    registry.register({"url": "/a", "method": "*", "type": "*"}, a)
    registry.register({"url": "/a", "method": "*", "type": "*"}, b)

    assert registry.matching(InterceptorFilter(url="/a", method="GET", type="json")) == [b, a]


def test_string_and_structured_filters_share_a_key() -> None:
    registry: InterceptorRegistry[object] = InterceptorRegistry()
    a, b = _named("a"), _named("b")
    registry.register("GET /a json", a)
    registry.register(InterceptorFilter(url="/a", method="get", type="json"), b)

    assert registry.matching(InterceptorFilter(url="/a", method="GET", type="json")) == [b, a]


def test_matching_concatenates_keys_and_skips_non_matching() -> None:
    registry: InterceptorRegistry[object] = InterceptorRegistry()
    exact, wildcard, other, post_only = (_named(n) for n in ("exact", "wild", "other", "post"))
    registry.register({"url": "/a"}, exact)
    registry.register({"url": "*"}, wildcard)
    registry.register({"url": "/b"}, other)
    registry.register({"url": "/a", "method": "POST"}, post_only)

    found = registry.matching(InterceptorFilter(url="/a", method="GET", type="json"))
    assert set(found) == {exact, wildcard}
    assert len(registry) == 4


def test_request_pipe_folds_replacements_and_keeps_request_on_none() -> None:
    registry = RequestInterceptorRegistry()
    seen: list[str] = []

    def add_header(request: httpx.Request) -> None:
        seen.append(request.headers.get("X-Replaced", "original"))
        request.headers["X-Trace"] = "1"

    def replace(request: httpx.Request) -> httpx.Request:
        return httpx.Request(request.method, request.url, headers={"X-Replaced": "yes"})

    # Registered last, so runs first.
    registry.register({"url": "/a"}, add_header)
    registry.register({"url": "/a"}, replace)

    request = httpx.Request("GET", "https://api.example/a")
    result = registry.pipe(request, InterceptorFilter(url="/a", method="GET", type="json"))

    assert seen == ["yes"]
    assert result.headers["X-Replaced"] == "yes"
    assert result.headers["X-Trace"] == "1"


def test_response_pipe_folds_values() -> None:
    registry = ResponseDataInterceptorRegistry()
    registry.register({"url": "/a"}, lambda data: {**data, "value": data["value"] * 2})
    registry.register({"url": "/a"}, lambda data: None)
    registry.register({"url": "/a"}, lambda data: {**data, "value": data["value"] + 1})

    concrete = InterceptorFilter(url="/a", method="GET", type="json")
    assert registry.pipe(concrete, {"value": 1}) == {"value": 4}


def test_response_pipe_without_matches_returns_input() -> None:
    registry = ResponseDataInterceptorRegistry()
    registry.register({"url": "/b"}, lambda data: "changed")
    data = {"value": 1}
    assert registry.pipe(InterceptorFilter(url="/a", method="GET"), data) is data
