from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

from .context import OUTPUT_FORMATS, CLIContext

F = TypeVar("F", bound=Callable[..., object])


def _override_output(ctx: click.Context, param: click.Parameter, value: Any) -> None:
    # ``--json`` is a flag; ``--output`` carries the format name.
    fmt = ("json" if value else None) if param.name == "json_output" else value
    if fmt is not None and isinstance(ctx.obj, CLIContext):
        ctx.obj.output = fmt


def output_options(fn: F) -> F:
    """Let a subcommand override the group's output format (``haper request ... --json``)."""
    fn = click.option(
        "--output",
        "output_format",
        type=click.Choice(OUTPUT_FORMATS),
        callback=_override_output,
        expose_value=False,
        help="Output format for this command.",
    )(fn)
    return click.option(
        "--json",
        "json_output",
        is_flag=True,
        callback=_override_output,
        expose_value=False,
        help="Same as --output json.",
    )(fn)


def parse_pairs(
    values: tuple[str, ...], *, separator: str = "=", option: str = "--param"
) -> dict[str, str]:
    """Parse repeated ``KEY<separator>VALUE`` options into a dict (last one wins)."""
    pairs: dict[str, str] = {}
    for raw in values:
        key, sep, value = raw.partition(separator)
        key = key.strip()
        if not sep or not key:
            raise click.BadParameter(
                f"Expected KEY{separator}VALUE, got {raw!r}", param_hint=option
            )
        pairs[key] = value if separator == "=" else value.strip()
    return pairs
