from __future__ import annotations

import json
import sys
from typing import Any

from rich.console import Console
from rich.table import Table

from .results import CommandResult


def _error_title(error_type: str) -> str:
    mapping = {
        "usage_error": "Usage error",
        "network_error": "Network error",
        "timeout": "Timeout",
        "canceled": "Canceled",
        "filter_error": "Invalid filter",
        "internal_error": "Internal error",
    }
    return mapping.get(error_type, "Error")


def _mapping_table(data: dict[str, Any]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("key")
    table.add_column("value", overflow="fold")
    for key, value in data.items():
        shown = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
        table.add_row(str(key), shown)
    return table


def _records_table(rows: list[dict[str, Any]]) -> Table:
    columns: list[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    table = Table(show_header=True, header_style="bold")
    for column in columns:
        table.add_column(column, overflow="fold")
    for row in rows:
        table.add_row(*("" if row.get(c) is None else str(row.get(c)) for c in columns))
    return table


def render_data(console: Console, data: Any) -> None:
    if data is None:
        return
    if isinstance(data, str):
        console.print(data, markup=False, highlight=False)
        return
    if isinstance(data, dict):
        console.print(_mapping_table(data))
        return
    if isinstance(data, list) and data and all(isinstance(row, dict) for row in data):
        console.print(_records_table(data))
        return
    console.print_json(json.dumps(data, ensure_ascii=False))


def render_result(result: CommandResult, *, quiet: bool = False) -> None:
    if not result.ok:
        stderr = Console(file=sys.stderr, force_terminal=False)
        error = result.error
        if error is not None:
            stderr.print(f"{_error_title(error.type)}: {error.message}", markup=False)
        return

    stdout = Console(file=sys.stdout, force_terminal=False)
    render_data(stdout, result.data)
    if not quiet and result.warnings:
        stderr = Console(file=sys.stderr, force_terminal=False)
        for warning in result.warnings:
            stderr.print(f"Warning: {warning}", markup=False)
