"""
Request option models.

Options accept both snake_case and camelCase keys, so
``{"url": "/items", "responseType": "text"}`` and
``RequestOptions(url="/items", response_type="text")`` are equivalent.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .types import DEFAULT_CONTENT_TYPE, HTTPMethod, ResponseShape


class _HaperModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
        arbitrary_types_allowed=True,
    )


class RequestOptions(_HaperModel):
    """Declarative description of one request."""

    url: str
    method: HTTPMethod | None = None
    params: Any = None
    response_type: ResponseShape = ResponseShape.JSON
    content_type: str = DEFAULT_CONTENT_TYPE
    headers: dict[str, str] = Field(default_factory=dict)
    request_id: str | None = None
    mock: bool = False
    faker: Callable[[Any], Any] | None = None

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value

    @property
    def effective_method(self) -> HTTPMethod:
        return self.method or "GET"

    @property
    def is_get(self) -> bool:
        """No method means GET."""
        return self.effective_method == "GET"
