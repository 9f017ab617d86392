from __future__ import annotations

import platform

import click
import httpx
import pydantic
import rich_click

import haper

from ..context import CLIContext
from ..options import output_options
from ..runner import CommandOutput, run_command


@click.command(name="version", cls=rich_click.RichCommand)
@output_options
@click.pass_obj
def version_cmd(ctx: CLIContext) -> None:
    """Show haper and dependency versions with the effective client settings."""

    def fn(ctx: CLIContext, _warnings: list[str]) -> CommandOutput:
        config = ctx.config()
        data = {
            "version": haper.__version__,
            "httpx": httpx.__version__,
            "pydantic": pydantic.VERSION,
            "python": platform.python_version(),
            "baseUrl": config.base_url or None,
            "mock": config.mock,
            "timeout": config.timeout,
        }
        return CommandOutput(data=data, base_url=config.base_url or None)

    run_command(ctx, command="version", fn=fn)
