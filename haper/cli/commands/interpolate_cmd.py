from __future__ import annotations

import click
import rich_click

from haper.urls import interpolate_url

from ..context import CLIContext
from ..options import output_options, parse_pairs
from ..runner import CommandOutput, run_command


@click.command(name="interpolate", cls=rich_click.RichCommand)
@click.argument("url")
@click.option("-p", "--param", "params", multiple=True, metavar="KEY=VALUE", help="Repeatable.")
@output_options
@click.pass_obj
def interpolate_cmd(ctx: CLIContext, *, url: str, params: tuple[str, ...]) -> None:
    """Show how URL placeholders (``:name``) are filled from parameters."""
    param_map = parse_pairs(params)

    def fn(_: CLIContext, _warnings: list[str]) -> CommandOutput:
        result = interpolate_url(url, param_map)
        return CommandOutput(data={"url": result.url, "params": result.params})

    run_command(ctx, command="interpolate", fn=fn)
