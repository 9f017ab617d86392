from __future__ import annotations

import json
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import click
import httpx

from haper.exceptions import HaperError, InvalidFilterError, RequestCanceledError
from haper.transport import Blob

from .context import CLIContext
from .errors import CLIError
from .render import render_result
from .results import CommandMeta, CommandResult, ErrorInfo


@dataclass(frozen=True, slots=True)
class CommandOutput:
    data: Any | None = None
    warnings: list[str] | None = None
    base_url: str | None = None


CommandFn = Callable[[CLIContext, list[str]], CommandOutput]


def to_jsonable(data: Any) -> Any:
    """Make decoded response bodies JSON friendly."""
    if isinstance(data, Blob):
        return {"contentType": data.content_type, "size": data.size}
    if isinstance(data, (bytes, bytearray)):
        return {"size": len(data)}
    if isinstance(data, httpx.QueryParams):
        return {key: data.get_list(key) for key in data.keys()}
    return data


def error_info_for_exception(exc: Exception) -> tuple[ErrorInfo, int]:
    if isinstance(exc, CLIError):
        info = ErrorInfo(type=exc.error_type, message=exc.message, details=exc.details)
        return info, exc.exit_code
    if isinstance(exc, httpx.TimeoutException):
        return ErrorInfo(type="timeout", message=str(exc) or "Request timed out"), 1
    if isinstance(exc, httpx.HTTPError):
        return ErrorInfo(type="network_error", message=str(exc) or type(exc).__name__), 1
    if isinstance(exc, RequestCanceledError):
        return ErrorInfo(type="canceled", message="Request was canceled"), 130
    if isinstance(exc, InvalidFilterError):
        return ErrorInfo(type="filter_error", message=exc.message), 2
    if isinstance(exc, HaperError):
        return ErrorInfo(type="error", message=exc.message), 1
    if isinstance(exc, ValueError):
        return ErrorInfo(type="usage_error", message=str(exc)), 2
    return ErrorInfo(type="internal_error", message=f"{type(exc).__name__}: {exc}"), 1


def emit_result(ctx: CLIContext, result: CommandResult) -> None:
    if ctx.output == "json":
        payload = result.model_dump(by_alias=True, mode="json")
        sys.stdout.write(json.dumps(payload, ensure_ascii=False) + "\n")
        return
    render_result(result, quiet=ctx.quiet)


def run_command(ctx: CLIContext, *, command: str, fn: CommandFn) -> None:
    started = time.time()
    warnings: list[str] = []
    try:
        out = fn(ctx, warnings)
        result = CommandResult(
            ok=True,
            command=command,
            data=to_jsonable(out.data),
            warnings=out.warnings or warnings,
            meta=CommandMeta(
                duration_ms=int((time.time() - started) * 1000),
                base_url=out.base_url,
            ),
        )
        emit_result(ctx, result)
        raise click.exceptions.Exit(0)
    except (click.exceptions.Exit, click.ClickException):
        raise
    except Exception as exc:
        error, code = error_info_for_exception(exc)
        result = CommandResult(
            ok=False,
            command=command,
            warnings=warnings,
            meta=CommandMeta(duration_ms=int((time.time() - started) * 1000)),
            error=error,
        )
        emit_result(ctx, result)
        raise click.exceptions.Exit(code) from exc
