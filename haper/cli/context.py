from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from haper.config import HaperConfig

OutputFormat = Literal["table", "json"]
OUTPUT_FORMATS: tuple[OutputFormat, ...] = ("table", "json")


@dataclass
class CLIContext:
    output: OutputFormat
    quiet: bool
    verbosity: int
    base_url: str | None
    timeout: float | None

    def config(self) -> HaperConfig:
        """Client config from the environment, overridden by command line options."""
        overrides: dict[str, object] = {"log_requests": self.verbosity >= 2}
        if self.base_url is not None:
            overrides["base_url"] = self.base_url
        if self.timeout is not None:
            overrides["timeout"] = self.timeout
        return HaperConfig.from_env(**overrides)
