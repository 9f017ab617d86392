from __future__ import annotations

import asyncio
import json
from typing import Any

import click
import rich_click

from haper.client import Haper
from haper.config import HaperConfig
from haper.models import RequestOptions
from haper.types import HTTP_METHODS, ResponseShape

from ..context import CLIContext
from ..errors import CLIError
from ..options import output_options, parse_pairs
from ..runner import CommandOutput, run_command


async def _send(config: HaperConfig, options: RequestOptions) -> Any:
    async with Haper(config) as haper:
        return await haper(options)


def _load_fake(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise CLIError.usage(f"--fake must be valid JSON: {e.msg}", position=e.pos) from e


@click.command(name="request", cls=rich_click.RichCommand)
@click.argument("method", type=click.Choice(list(HTTP_METHODS), case_sensitive=False))
@click.argument("url")
@click.option(
    "-p",
    "--param",
    "params",
    multiple=True,
    metavar="KEY=VALUE",
    help="Request parameter (query string for GET, JSON body otherwise). Repeatable.",
)
@click.option("-H", "--header", "headers", multiple=True, metavar="NAME: VALUE", help="Header.")
@click.option(
    "--response-type",
    type=click.Choice([shape.value for shape in ResponseShape]),
    default=ResponseShape.JSON.value,
    show_default=True,
    help="How to decode the response body.",
)
@click.option("--request-id", type=str, default=None, help="Track the request under this id.")
@click.option(
    "--fake",
    type=str,
    default=None,
    metavar="JSON",
    help="Skip the network and answer with this JSON after a simulated delay.",
)
@output_options
@click.pass_obj
def request_cmd(
    ctx: CLIContext,
    *,
    method: str,
    url: str,
    params: tuple[str, ...],
    headers: tuple[str, ...],
    response_type: str,
    request_id: str | None,
    fake: str | None,
) -> None:
    """Send one request through the haper pipeline and print the decoded body."""
    param_map = parse_pairs(params)
    header_map = parse_pairs(headers, separator=":", option="--header")

    def fn(ctx: CLIContext, _warnings: list[str]) -> CommandOutput:
        config = ctx.config()
        fake_body = _load_fake(fake) if fake is not None else None
        options = RequestOptions(
            url=url,
            method=method.upper(),
            params=param_map or None,
            headers=header_map,
            response_type=response_type,
            request_id=request_id,
            mock=fake is not None,
            faker=(lambda _params: fake_body) if fake is not None else None,
        )
        data = asyncio.run(_send(config, options))
        return CommandOutput(data=data, base_url=config.base_url or None)

    run_command(ctx, command="request", fn=fn)
