from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn, Optional

import json
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from routedoc.annotations.source import AnnotationCache
from routedoc.config import load_options
from routedoc.errors import RoutedocError
from routedoc.orchestrator.pipeline import load_route_table, run_generate
from routedoc.schemas.extractor import build_schemas


app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(e: RoutedocError) -> NoReturn:
    err_console.print(f"[bold red]error:[/bold red] {e}")
    raise typer.Exit(code=1)


@app.command()
def generate(
    routes: str = typer.Argument(..., help="JSON route table (list of routes or {\"root\": [...]})"),
    title: Optional[str] = typer.Option(None, help="Document title"),
    version: Optional[str] = typer.Option(None, help="Document version"),
    root: str = typer.Option(".", help="Project root holding the app directory"),
    ignore: Optional[list[str]] = typer.Option(None, help="Ignore pattern (substring, 'x*' or '*x'); repeatable"),
    preferred_put_patch: Optional[str] = typer.Option(None, help="Which of PUT/PATCH survives when both exist"),
    camel_case: bool = typer.Option(False, "--camel-case", help="Render schema properties in camelCase"),
    tag_index: Optional[int] = typer.Option(None, help="Path segment used as the tag"),
    out: Optional[str] = typer.Option(None, help="Output path (default: print to stdout)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    _setup_logging(verbose)
    root_path = Path(root).expanduser().resolve()
    if not root_path.is_dir():
        raise typer.BadParameter(f"Root is not a directory: {root_path}")

    try:
        options = load_options(
            root_path,
            {
                "title": title,
                "version": version,
                "ignore": ignore or None,
                "preferred_put_patch": preferred_put_patch,
                "snake_case": False if camel_case else None,
                "tag_index": tag_index,
            },
        )
        route_table = load_route_table(Path(routes).expanduser())
        result = run_generate(route_table, options)
    except RoutedocError as e:
        _fail(e)

    text = json.dumps(result.document, indent=2)
    if out:
        out_path = Path(out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
        console.print(f"[bold green]Wrote[/bold green] OpenAPI document to: {out_path}")
        console.print(
            f"Routes: {result.routes_seen} ({result.routes_ignored} ignored), "
            f"paths: {len(result.document['paths'])}, "
            f"schemas: {len(result.document['components']['schemas'])}, "
            f"annotated files: {result.files_parsed}"
        )
    else:
        # plain stdout so the output can be piped
        typer.echo(text)


@app.command()
def annotations(
    source: str = typer.Argument(..., help="Python source file with annotated handlers"),
) -> None:
    try:
        parsed = AnnotationCache().annotations_for(Path(source).expanduser())
    except RoutedocError as e:
        _fail(e)

    table = Table(show_header=True, header_style="bold")
    table.add_column("ACTION", no_wrap=True)
    table.add_column("SUMMARY")
    table.add_column("PARAMS")
    table.add_column("RESPONSES", no_wrap=True)

    for action, a in parsed.items():
        table.add_row(
            action,
            a.summary,
            ", ".join(f"{p.name}:{p.location}" for p in a.parameters),
            ", ".join(a.responses),
        )
    console.print(table)


@app.command()
def schemas(
    root: str = typer.Option(".", help="Project root holding the app directory"),
    app_dir: str = typer.Option("app", help="App directory, relative to root"),
    camel_case: bool = typer.Option(False, "--camel-case", help="Render properties in camelCase"),
) -> None:
    app_root = Path(root).expanduser().resolve() / app_dir
    try:
        found = build_schemas(app_root, snake_case=not camel_case)
    except RoutedocError as e:
        _fail(e)

    table = Table(show_header=True, header_style="bold")
    table.add_column("SCHEMA", no_wrap=True)
    table.add_column("DESCRIPTION")
    table.add_column("PROPERTIES")
    for name, schema in found.items():
        table.add_row(name, schema.get("description", ""), ", ".join(schema.get("properties", {})))
    console.print(table)


@app.command()
def ping() -> None:
    console.print("pong")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
