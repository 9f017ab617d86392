from __future__ import annotations

import asyncio
import datetime
import json
import logging
import random
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from haper import Blob, Haper, HaperConfig, RequestCanceledError, create_haper
from haper.exceptions import PipelineNotRunningError, UnsupportedResponseShapeError
from haper.transport import cancellation_signal_of

BASE_URL = "https://api.example"


def _haper(handler: Callable[[httpx.Request], Any], **config: Any) -> Haper:
    return Haper(
        HaperConfig(base_url=BASE_URL, transport=httpx.MockTransport(handler), **config)
    )


def _no_network(request: httpx.Request) -> httpx.Response:
    pytest.fail(f"Unexpected network call: {request.method} {request.url!s}")


# =============================================================================
# Real dispatch
# =============================================================================


async def test_get_with_request_and_response_interceptors() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"value": 2}, request=request)

    async with _haper(handler) as haper:
        haper.register_request_interceptor(
            {"url": "/items", "method": "GET"},
            lambda request: request.headers.update({"X-Injected": "yes"}),
        )
        haper.register_response_data_interceptor(
            {"url": "/items"}, lambda data: {**data, "value": data["value"] * 2}
        )

        result = await haper.get("/items", {"name": "foo"})

    assert result == {"value": 4}
    assert len(seen) == 1
    assert seen[0].url == httpx.URL(f"{BASE_URL}/items?name=foo")
    assert seen[0].headers["X-Injected"] == "yes"
    assert seen[0].content == b""


async def test_post_interpolates_url_and_sends_residual_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"ok": True}, request=request)

    async with _haper(handler) as haper:
        result = await haper.post("/users/:id", {"id": 5, "name": "x"})

    assert result == {"ok": True}
    assert seen[0].method == "POST"
    assert seen[0].url == httpx.URL(f"{BASE_URL}/users/5")
    assert seen[0].headers["Content-Type"] == "application/json"
    assert json.loads(seen[0].content) == {"name": "x"}


async def test_get_params_become_query_before_interpolation() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={}, request=request)

    async with _haper(handler) as haper:
        await haper.get("/users/:id", {"id": 5})

    # GET params are serialized into the query string, leaving nothing to interpolate.
    assert seen[0].url.path == "/users/:id"
    assert seen[0].url.params["id"] == "5"


async def test_request_without_method_is_a_get() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(f"{request.method} {request.url}")
        return httpx.Response(200, text="pong", request=request)

    async with _haper(handler) as haper:
        result = await haper({"url": "/ping", "params": {"a": 1}, "responseType": "text"})

    assert result == "pong"
    assert seen == [f"GET {BASE_URL}/ping?a=1"]


@pytest.mark.parametrize(
    ("shape", "expected"),
    [
        ("text", "a=1&a=2"),
        ("arrayBuffer", b"a=1&a=2"),
    ],
)
async def test_plain_response_shapes(shape: str, expected: Any) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"a=1&a=2", request=request)

    async with _haper(handler) as haper:
        assert await haper.get("/raw", response_type=shape) == expected


async def test_blob_and_form_data_shapes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=b"a=1&a=2&b=x",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            request=request,
        )

    async with _haper(handler) as haper:
        blob = await haper.get("/raw", response_type="blob")
        form = await haper.get("/raw", response_type="formData")

    assert isinstance(blob, Blob)
    assert blob.size == len(b"a=1&a=2&b=x")
    assert blob.content_type == "application/x-www-form-urlencoded"
    assert form.get_list("a") == ["1", "2"]
    assert form["b"] == "x"


async def test_response_interceptors_are_keyed_by_shape_and_method() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="hello", request=request)

    async with _haper(handler) as haper:
        haper.register_response_data_interceptor("GET /greet text", lambda data: data.upper())
        haper.register_response_data_interceptor("POST /greet text", lambda data: "post")
        haper.register_response_data_interceptor("GET /greet json", lambda data: "json")

        assert await haper.get("/greet", response_type="text") == "HELLO"


async def test_wildcard_request_interceptor_and_config_headers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[], request=request)

    async with _haper(handler, headers={"X-Client": "haper", "X-Env": "test"}) as haper:
        haper.register_request_interceptor(
            "* * json", lambda request: request.headers.update({"Authorization": "Bearer t"})
        )
        await haper.delete("/things/1", headers={"X-Env": "override"})

    assert seen[0].method == "DELETE"
    assert seen[0].headers["Authorization"] == "Bearer t"
    assert seen[0].headers["X-Client"] == "haper"
    assert seen[0].headers["X-Env"] == "override"


async def test_request_interceptor_can_replace_the_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={}, request=request)

    def reroute(request: httpx.Request) -> httpx.Request:
        return httpx.Request(request.method, f"{BASE_URL}/v2/items", headers=request.headers)

    async with _haper(handler) as haper:
        haper.register_request_interceptor({"url": "/items"}, reroute)
        await haper.get("/items")

    assert seen[0].url == httpx.URL(f"{BASE_URL}/v2/items")


async def test_unknown_content_type_is_sent_as_json() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={}, request=request)

    async with _haper(handler) as haper:
        await haper.put("/items/1", {"name": "x"}, content_type="xml")

    assert seen[0].headers["Content-Type"] == "application/json"
    assert json.loads(seen[0].content) == {"name": "x"}


# =============================================================================
# Failures
# =============================================================================


async def test_transport_failure_rejects_with_original_error() -> None:
    error = httpx.ConnectError("connection refused")
    intercepted: list[Any] = []

    def handler(request: httpx.Request) -> httpx.Response:
        raise error

    async with _haper(handler) as haper:
        haper.register_response_data_interceptor("*", intercepted.append)
        with pytest.raises(httpx.ConnectError) as exc_info:
            await haper.get("/items")

    assert exc_info.value is error
    assert intercepted == []


async def test_response_interceptor_failure_rejects() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={}, request=request)

    def boom(data: Any) -> Any:
        raise KeyError("missing")

    async with _haper(handler) as haper:
        haper.register_response_data_interceptor("/items", boom)
        with pytest.raises(KeyError):
            await haper.get("/items")


async def test_request_interceptor_failure_rejects_without_dispatch() -> None:
    def boom(request: httpx.Request) -> None:
        raise RuntimeError("bad interceptor")

    async with _haper(_no_network) as haper:
        haper.register_request_interceptor("/items", boom)
        future = haper.get("/items")
        with pytest.raises(RuntimeError, match="bad interceptor"):
            await future


async def test_undecodable_body_rejects() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not json", request=request)

    async with _haper(handler) as haper:
        with pytest.raises(json.JSONDecodeError):
            await haper.get("/items")


def test_requests_need_a_running_loop() -> None:
    haper = create_haper(BASE_URL)
    with pytest.raises(PipelineNotRunningError):
        haper.get("/items")


# =============================================================================
# Cancellation
# =============================================================================


async def test_cancel_aborts_in_flight_dispatch() -> None:
    started = asyncio.Event()
    transport_cancelled = asyncio.Event()
    captured: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            transport_cancelled.set()
            raise
        return httpx.Response(200, json={}, request=request)

    async with _haper(handler) as haper:
        future = haper.get("/slow")
        await asyncio.wait_for(started.wait(), 1)

        future.cancel()

        assert future.canceled
        with pytest.raises(RequestCanceledError):
            await future
        await asyncio.wait_for(transport_cancelled.wait(), 1)

    signal = cancellation_signal_of(captured[0])
    assert signal is not None and signal.aborted


async def test_cancel_after_completion_keeps_result() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"value": 1}, request=request)

    async with _haper(handler) as haper:
        future = haper.get("/items")
        assert await future == {"value": 1}

        future.cancel()

        assert future.result() == {"value": 1}
        assert not future.canceled


async def test_cancel_before_dispatch_starts_releases_tracker() -> None:
    async with _haper(_no_network) as haper:
        future = haper.get("/items", request_id="r")
        assert haper.get_request_future("r") is future

        future.cancel()

        assert haper.get_request_future("r") is None
        with pytest.raises(RequestCanceledError):
            await future


async def test_aclose_cancels_pending_requests() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(10)
        return httpx.Response(200, json={}, request=request)

    haper = _haper(handler)
    future = haper.get("/slow")
    await asyncio.sleep(0)
    await haper.aclose()

    with pytest.raises(RequestCanceledError):
        await future


# =============================================================================
# Request tracking
# =============================================================================


async def test_duplicate_request_id_keeps_first_entry(caplog: pytest.LogCaptureFixture) -> None:
    gates = {"/a": asyncio.Event(), "/b": asyncio.Event()}

    async def handler(request: httpx.Request) -> httpx.Response:
        await gates[request.url.path].wait()
        return httpx.Response(200, json={"path": request.url.path}, request=request)

    async with _haper(handler) as haper:
        first = haper.get("/a", request_id="r")
        with caplog.at_level(logging.WARNING, logger="haper.tracker"):
            second = haper.get("/b", request_id="r")

        assert "already in flight" in caplog.text
        assert haper.get_request_future("r") is first

        gates["/b"].set()
        assert await second == {"path": "/b"}
        assert haper.get_request_future("r") is first

        gates["/a"].set()
        assert await first == {"path": "/a"}
        assert haper.get_request_future("r") is None


async def test_tracked_request_is_released_after_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    async with _haper(handler) as haper:
        future = haper.get("/items", request_id="r")
        assert haper.get_request_future("r") is future
        with pytest.raises(httpx.ReadTimeout):
            await future
        assert haper.get_request_future("r") is None


# =============================================================================
# Mocking
# =============================================================================


async def test_global_mock_serves_faker_within_delay_bounds(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    loop = asyncio.get_running_loop()
    delays: list[tuple[float, float, float]] = []
    real_uniform = random.uniform

    def recording_uniform(low: float, high: float) -> float:
        value = real_uniform(low, high)
        delays.append((low, high, value))
        return value

    monkeypatch.setattr("haper.client.random.uniform", recording_uniform)

    async with _haper(_no_network, mock=True) as haper:
        haper.register_response_data_interceptor("*", lambda data: "intercepted")
        started = loop.time()
        result = await haper.get(
            "/users/:id", {"id": 1, "q": "x"}, faker=lambda params: {"got": params}
        )
        elapsed = loop.time() - started

    assert result == {"got": {"id": 1, "q": "x"}}
    [(low, high, delay)] = delays
    assert (low, high) == (0.05, 0.55)
    assert 0.05 <= delay <= 0.55
    assert elapsed >= delay - 0.01
    assert elapsed < 0.55 + 0.5


async def test_per_call_mock_flag() -> None:
    async with _haper(_no_network, mock_delay=(0, 0)) as haper:
        result = await haper.post("/items", {"a": 1}, mock=True, faker=lambda params: params)

    assert result == {"a": 1}


async def test_faker_is_ignored_when_mocking_is_off() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"real": True}, request=request)

    async with _haper(handler) as haper:
        result = await haper.get("/items", faker=lambda params: {"real": False})

    assert result == {"real": True}


async def test_mocked_requests_are_not_tracked() -> None:
    async with _haper(_no_network, mock=True, mock_delay=(0, 0)) as haper:
        future = haper.get("/items", request_id="r", faker=lambda params: 1)
        assert haper.get_request_future("r") is None
        assert await future == 1


async def test_faker_errors_reject() -> None:
    def faker(params: Any) -> Any:
        raise ValueError("fake failure")

    async with _haper(_no_network, mock=True, mock_delay=(0, 0)) as haper:
        with pytest.raises(ValueError, match="fake failure"):
            await haper.get("/items", faker=faker)


async def test_mock_branch_ignores_unserializable_body() -> None:
    when = datetime.date(2024, 1, 1)

    async with _haper(_no_network, mock=True, mock_delay=(0, 0)) as haper:
        result = await haper.post("/events", {"when": when}, faker=lambda params: params)

    assert result == {"when": when}


# =============================================================================
# Registration scoping
# =============================================================================


async def test_filters_are_relative_to_base_url() -> None:
    async with _haper(_no_network) as haper:
        haper.register_request_interceptor("GET /items json", lambda request: None)
        haper.register_request_interceptor({"url": "*"}, lambda request: None)

        keys = list(haper.request_interceptors._registry)

    assert keys == [("GET", f"{BASE_URL}/items", "json"), ("*", "*", "*")]


# =============================================================================
# Option errors
# =============================================================================


async def test_unserializable_body_rejects_future() -> None:
    async with _haper(_no_network) as haper:
        future = haper.post("/events", {"when": datetime.date(2024, 1, 1)}, request_id="evt")

        with pytest.raises(TypeError, match="not JSON serializable"):
            await future
        assert haper.get_request_future("evt") is None


@pytest.mark.parametrize(
    "options",
    [
        {"url": "/items", "response_type": "xml"},
        {"url": "/items", "responseType": "stream"},
    ],
)
async def test_unknown_response_shape_is_rejected_up_front(options: dict[str, Any]) -> None:
    async with _haper(_no_network) as haper:
        with pytest.raises(UnsupportedResponseShapeError) as exc_info:
            haper(options)

    assert exc_info.value.shape in {"xml", "stream"}


async def test_unknown_response_shape_in_overrides() -> None:
    async with _haper(_no_network) as haper:
        with pytest.raises(UnsupportedResponseShapeError):
            haper.get("/items", response_type="xml")
