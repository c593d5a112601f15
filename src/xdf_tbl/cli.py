"""CLI interface for xdf tables using Typer."""

from typing import Any, Optional

import orjson
import typer

from xdf_tbl.core.errors import SummariseError
from xdf_tbl.core.materialize import UNSPECIFIED
from xdf_tbl.core.methods import METHOD_DESCRIPTIONS
from xdf_tbl.core.storage import XdfTable, open_xdf
from xdf_tbl.core.summarise import summarise as run_summarise
from xdf_tbl.utils.logging import get_logger, setup_logging

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="xdf-tbl - Summarise file-backed parquet tables",
)

logger = get_logger("cli")


def _parse_aggs(aggs: list[str]) -> dict[str, str]:
    """Split NAME=EXPR options into an aggregate mapping."""
    parsed: dict[str, str] = {}
    for item in aggs:
        name, sep, expr = item.partition("=")
        if not sep or not name.strip() or not expr.strip():
            raise typer.BadParameter(f"expected NAME=EXPR, got {item!r}", param_hint="--agg")
        name = name.strip()
        if name in parsed:
            raise typer.BadParameter(f"duplicate aggregate name {name!r}", param_hint="--agg")
        parsed[name] = expr.strip()
    return parsed


@app.command()
def summarise(
    path: str = typer.Argument(..., help="Parquet file or composite table directory"),
    agg: list[str] = typer.Option(..., "--agg", help="Aggregate as NAME=EXPR, e.g. m=mean(x)"),
    group: Optional[list[str]] = typer.Option(None, "--group", help="Grouping variable"),
    out: Optional[str] = typer.Option(None, "--out", help="Write the result to this path"),
    in_memory: bool = typer.Option(
        False, "--in-memory", help="Only print the result; do not write a table"
    ),
    method: Optional[int] = typer.Option(None, "--method", help="Summarise method (1-5)"),
    composite: bool = typer.Option(
        False, "--composite", help="Write --out as a composite (sharded) table"
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level"),
) -> None:
    """Summarise a table and print the result as JSON."""
    setup_logging(log_level)

    if out is not None and in_memory:
        typer.echo("Error: --out and --in-memory are mutually exclusive", err=True)
        raise typer.Exit(1)
    if composite and out is None:
        typer.echo("Error: --composite requires --out", err=True)
        raise typer.Exit(1)

    target: Any = UNSPECIFIED
    if in_memory:
        target = None
    elif composite:
        target = XdfTable(path=out, composite=True)
    elif out is not None:
        target = out

    aggs = _parse_aggs(agg)

    try:
        table = open_xdf(path).group_by(*(group or []))
        result = run_summarise(table, aggs, out=target, method=method)
    except (SummariseError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    except Exception as e:
        typer.echo(f"Unexpected error: {e}", err=True)
        logger.error("Summarise command failed", extra={"error": str(e), "path": path})
        raise typer.Exit(1) from e

    df = result.collect()
    payload = {
        "method": result.method,
        "kind": result.kind,
        "path": str(result.table.local_path) if result.table is not None else None,
        "groups": result.groups,
        "rows": df.to_dicts(),
    }
    typer.echo(orjson.dumps(payload, option=orjson.OPT_INDENT_2, default=str).decode("utf-8"))

    logger.info(
        "Summarise command executed",
        extra={"path": path, "method": result.method, "rows": df.height},
    )


@app.command()
def methods() -> None:
    """List the available summarise methods."""
    from rich.console import Console
    from rich.table import Table

    console = Console()
    table = Table(title="Summarise Methods")
    table.add_column("Method", justify="right")
    table.add_column("Name")
    table.add_column("Description")

    for number, description in METHOD_DESCRIPTIONS.items():
        table.add_row(str(int(number)), number.name.lower(), description)

    console.print(table)


if __name__ == "__main__":
    app()
