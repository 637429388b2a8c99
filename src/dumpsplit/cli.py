"""Command line interface for dumpsplit."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from dumpsplit.config import AppConfig
from dumpsplit.index.categorizer import NoCategoriesError, parse_dump
from dumpsplit.ingestion.decoder import detect_encoding
from dumpsplit.pipeline import run_pipeline
from dumpsplit.utils.files import iter_sql_paths, write_category_files


LOGGER = logging.getLogger(__name__)

console = Console()
app = typer.Typer(help="dumpsplit - split SQL Q&A dumps into category files")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _stats_table() -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("File")
    table.add_column("Encoding")
    table.add_column("Inserts")
    table.add_column("Rows")
    table.add_column("Categories")
    return table


@app.command()
def split(
    inputs: List[Path] = typer.Argument(
        ..., help="SQL dump files or directories containing them.", resolve_path=True
    ),
    out: Path = typer.Option(None, "--out", "-o", help="Directory for category files"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Split SQL dumps into one JSON file per category."""
    _setup_logging(verbose)
    config = AppConfig(output_dir=out) if out is not None else AppConfig.from_env()
    output_dir = config.resolve_output_dir(Path.cwd())

    sql_paths = list(iter_sql_paths(inputs))
    if not sql_paths:
        console.print("[yellow]No SQL files found.[/yellow]")
        return

    table = _stats_table()
    failed = 0
    for path in sql_paths:
        raw = path.read_bytes()
        try:
            parsed = parse_dump(raw, log=LOGGER.debug)
        except NoCategoriesError as exc:
            console.print(f"[red]{path.name}: {exc}[/red]")
            failed += 1
            continue
        files = write_category_files(parsed.category_map, output_dir, path.stem)
        stats = parsed.stats
        table.add_row(
            path.name,
            detect_encoding(raw),
            str(stats.statements_found),
            str(stats.rows_parsed),
            str(stats.categories_found),
        )
        console.print(f"Wrote {len(files.file_paths)} files to [bold]{files.categories_dir}[/bold]")

    console.print(table)
    if failed:
        raise typer.Exit(code=1)


@app.command()
def inspect(
    path: Path = typer.Argument(..., help="SQL dump file", exists=True, dir_okay=False),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show encoding, parse stats and category sizes without writing files."""
    _setup_logging(verbose)
    raw = path.read_bytes()
    try:
        parsed = parse_dump(raw)
    except NoCategoriesError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    stats = parsed.stats
    console.print(
        f"Encoding: {detect_encoding(raw)}, inserts: {stats.statements_found}, "
        f"rows: {stats.rows_parsed}, categories: {stats.categories_found}"
    )
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Category")
    table.add_column("Items")
    for category, items in parsed.category_map.items():
        table.add_row(category, str(len(items)))
    console.print(table)


@app.command()
def sync(
    url: str = typer.Option(..., "--url", help="URL of the SQL dump to download"),
    token: str = typer.Option(..., "--token", envvar="OPENAI_API_KEY", help="OpenAI API key"),
    file_name: Optional[str] = typer.Option(None, "--file-name", help="Name for the downloaded file"),
    source_token: Optional[str] = typer.Option(
        None, "--source-token", envvar="DUMPSPLIT_SOURCE_TOKEN", help="Bearer token for the download"
    ),
    vector_store_id: Optional[str] = typer.Option(
        None, "--vector-store-id", help="Add files to an existing vector store"
    ),
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Name prefix for a new vector store"),
    out: Path = typer.Option(None, "--out", "-o", help="Working directory for downloads"),
    keep: bool = typer.Option(False, "--keep", help="Keep the downloaded and category files"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Skip local cleanup"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Download a dump, split it and index the categories in a vector store."""
    _setup_logging(verbose)
    config = AppConfig.from_env()
    if out is not None:
        config.output_dir = out

    payload_item = {"fileUrl": url}
    if file_name:
        payload_item["fileName"] = file_name
    request = {
        "payload": [payload_item],
        "gptToken": token,
        "simulatorToken": source_token,
        "existingVectorStoreId": vector_store_id,
        "vectorStoreNamePrefix": prefix,
        "options": {
            "outputDir": str(config.resolve_output_dir(Path.cwd())),
            "keepLocalFile": keep,
            "dryRun": dry_run,
        },
    }

    output = run_pipeline(request, config)
    console.print_json(json.dumps(output))
    if output["result"]["status"] != "completed":
        raise typer.Exit(code=1)
