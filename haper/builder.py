"""
Endpoint builder.

Binds (method, URL template) pairs to callables, optionally backed by a fake:

    api = ApiBuilder(haper, faker=True)
    get_user = api.get("/users/:id").fake(lambda params: {"id": 1, "name": "Ann"})

    user = await get_user({"id": 1})

With ``faker=False`` the same endpoint issues a real ``GET /users/1``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .futures import CancelableFuture
from .types import Faker, HTTPMethod
from .urls import interpolate_url

if TYPE_CHECKING:
    from .client import Haper

T = TypeVar("T")


class Endpoint(Generic[T]):
    """A bound endpoint; call it with a parameter mapping."""

    def __init__(
        self,
        builder: ApiBuilder,
        method: HTTPMethod,
        url: str,
        options: dict[str, Any] | None = None,
    ):
        self._builder = builder
        self.method: HTTPMethod = method
        self.url = url
        self.options: dict[str, Any] = dict(options or {})
        self._faker: Faker | None = None

    @property
    def faker(self) -> Faker | None:
        return self._faker

    def fake(self, faker: Faker) -> Endpoint[T]:
        """Attach ``faker`` (replacing any previous one) and return this endpoint."""
        self._faker = faker
        return self

    def __call__(self, params: Any = None, *, request_id: str | None = None) -> CancelableFuture[T]:
        interpolated = interpolate_url(self.url, params)
        haper = self._builder.haper
        if self._faker is not None and self._builder.faker:
            bound_id = request_id if request_id is not None else self.options.get("request_id")
            return haper.simulate(self._faker, interpolated.params, request_id=bound_id)
        options = dict(self.options)
        if request_id is not None:
            options["request_id"] = request_id
        return haper.request(self.method, interpolated.url, interpolated.params, **options)

    def __repr__(self) -> str:
        faked = " (faked)" if self._faker is not None else ""
        return f"<Endpoint {self.method} {self.url}{faked}>"


class ApiBuilder:
    """
    Factory for :class:`Endpoint` callables sharing one client.

    Attributes:
        haper: Client used for real requests and simulated delays
        faker: Whether endpoints with an attached fake use it
    """

    def __init__(self, haper: Haper, *, faker: bool = False):
        self.haper = haper
        self.faker = faker

    def endpoint(self, method: HTTPMethod, url: str, **options: Any) -> Endpoint[Any]:
        return Endpoint(self, method, url, options)

    def get(self, url: str, **options: Any) -> Endpoint[Any]:
        return self.endpoint("GET", url, **options)

    def post(self, url: str, **options: Any) -> Endpoint[Any]:
        return self.endpoint("POST", url, **options)

    def put(self, url: str, **options: Any) -> Endpoint[Any]:
        return self.endpoint("PUT", url, **options)

    def patch(self, url: str, **options: Any) -> Endpoint[Any]:
        return self.endpoint("PATCH", url, **options)

    def delete(self, url: str, **options: Any) -> Endpoint[Any]:
        return self.endpoint("DELETE", url, **options)


def create_api_builder(haper: Haper, *, faker: bool = False) -> ApiBuilder:
    return ApiBuilder(haper, faker=faker)
