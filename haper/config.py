"""
Client configuration.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

import httpx

from .types import DEFAULT_MOCK_DELAY

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(value: str | None) -> bool:
    return value is not None and value.strip().lower() in _TRUTHY


@dataclass(frozen=True, slots=True)
class HaperConfig:
    """
    Settings shared by every request issued through one client.

    Attributes:
        base_url: Prefix prepended to every request URL and filter URL
        mock: Serve fakes for every request that carries a faker
        mock_delay: (min, max) seconds of simulated latency for faked responses
        headers: Default headers; per-request headers win
        timeout: Transport timeout in seconds
        transport: httpx transport to inject (e.g. ``httpx.MockTransport``)
        log_requests: Log every dispatched request and its status at DEBUG
    """

    base_url: str = ""
    mock: bool = False
    mock_delay: tuple[float, float] = DEFAULT_MOCK_DELAY
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: float = 30.0
    transport: httpx.AsyncBaseTransport | None = None
    log_requests: bool = False

    def __post_init__(self) -> None:
        low, high = self.mock_delay
        if low < 0 or high < low:
            raise ValueError(
                f"mock_delay must be a (min, max) range of seconds, got {self.mock_delay}"
            )
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> HaperConfig:
        """
        Build a config from ``HAPER_BASE_URL``, ``HAPER_MOCK`` and ``HAPER_TIMEOUT``.

        Keyword overrides take precedence over the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        if env.get("HAPER_BASE_URL"):
            values["base_url"] = env["HAPER_BASE_URL"]
        if "HAPER_MOCK" in env:
            values["mock"] = _env_flag(env.get("HAPER_MOCK"))
        if env.get("HAPER_TIMEOUT"):
            try:
                values["timeout"] = float(env["HAPER_TIMEOUT"])
            except ValueError as e:
                raise ValueError(
                    f"HAPER_TIMEOUT must be a number, got {env['HAPER_TIMEOUT']!r}"
                ) from e
        values.update(overrides)
        return cls(**values)

    def with_overrides(self, **changes: Any) -> HaperConfig:
        return replace(self, **changes)
