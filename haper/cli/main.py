from __future__ import annotations

import click
import rich_click

import haper

from .context import OUTPUT_FORMATS, CLIContext
from .logging import configure_logging, restore_logging


@click.group(
    name="haper",
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
    cls=rich_click.RichGroup,
)
@click.option(
    "--output",
    type=click.Choice(OUTPUT_FORMATS),
    default="table",
)
@click.option("--json", "json_flag", is_flag=True, help="Alias for --output json.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-essential stderr output.")
@click.option("-v", "verbose", count=True, help="Increase verbosity (-v, -vv).")
@click.option(
    "--base-url",
    type=str,
    default=None,
    help="Prefix for request URLs (default: $HAPER_BASE_URL).",
)
@click.option("--timeout", type=float, default=None, help="Per-request timeout in seconds.")
@click.version_option(version=haper.__version__, prog_name="haper")
@click.pass_context
def cli(
    click_ctx: click.Context,
    *,
    output: str,
    json_flag: bool,
    quiet: bool,
    verbose: int,
    base_url: str | None,
    timeout: float | None,
) -> None:
    if click_ctx.invoked_subcommand is None:
        # No args: show help; no network calls.
        click.echo(click_ctx.get_help())
        raise click.exceptions.Exit(0)

    click_ctx.obj = CLIContext(
        output="json" if json_flag else output,  # type: ignore[arg-type]
        quiet=quiet,
        verbosity=verbose,
        base_url=base_url,
        timeout=timeout,
    )

    previous_logging = configure_logging(verbosity=verbose)
    click_ctx.call_on_close(lambda: restore_logging(previous_logging))


# Register commands
from .commands.interpolate_cmd import interpolate_cmd as _interpolate_cmd  # noqa: E402
from .commands.request_cmd import request_cmd as _request_cmd  # noqa: E402
from .commands.version_cmd import version_cmd as _version_cmd  # noqa: E402

cli.add_command(_version_cmd)
cli.add_command(_request_cmd)
cli.add_command(_interpolate_cmd)
