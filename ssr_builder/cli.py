"""ssr-builder CLI: package a Nuxt app into lambdas and static files.

Commands:
- build     snapshot a source tree, run the pipeline, write the output
- routes    list the routes found in an already built work directory
- manifest  print the normalized package.json of a source tree
"""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from ssr_builder.buildpacks.nuxt import discover_routes
from ssr_builder.config import MANIFEST_NAME, BuilderConfig
from ssr_builder.core import BuildContext, Collaborators, build_pipeline
from ssr_builder.errors import BuilderError
from ssr_builder.manifest import dump_manifest, normalize_manifest, read_manifest
from ssr_builder.package.zip import write_output
from ssr_builder.pathmap import PathMap
from ssr_builder.types import FileFsRef, HandlerPackage

app = typer.Typer(add_completion=False, help="Package server-rendered apps for serverless hosting")
console = Console()


def _collaborators() -> Collaborators:
    return Collaborators()


def _fail(exc: BuilderError) -> NoReturn:
    rprint(f"[red]Build failed ({exc.stage}):[/red] {exc}")
    raise typer.Exit(code=1)


@app.command()
def build(
    source: str = typer.Argument(".", help="Path to the uploaded source tree"),
    entrypoint: str = typer.Option(
        MANIFEST_NAME, "--entrypoint", "-e", help="Entrypoint relative to SOURCE"
    ),
    work: str = typer.Option("./.ssr-work", "--work", help="Working directory for the build"),
    out: str = typer.Option("./dist", "--out", help="Output directory for lambdas and assets"),
    max_lambda_size: str | None = typer.Option(
        None, "--max-lambda-size", help='Per-lambda ceiling, e.g. "5mb"'
    ),
    workers: int | None = typer.Option(None, "--workers", help="Concurrent lambda packagers"),
    runtime: str | None = typer.Option(None, "--runtime", help="Lambda runtime identifier"),
) -> None:
    try:
        config = BuilderConfig.from_env(
            max_lambda_size=max_lambda_size, max_workers=workers, runtime=runtime
        )
    except ValidationError as exc:
        rprint(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(code=2) from exc
    ctx = BuildContext(
        files=PathMap.from_directory(
            Path(source), ignore=(".git", "node_modules"), exclude=(Path(work), Path(out))
        ),
        entrypoint=entrypoint,
        work_path=Path(work).resolve(),
        config=config,
    )
    try:
        output = build_pipeline(ctx, _collaborators())
    except BuilderError as exc:
        _fail(exc)

    written = write_output(output, Path(out))

    table = Table(title="Build Summary")
    table.add_column("Path", style="cyan")
    table.add_column("Kind")
    table.add_column("Bytes", justify="right")
    for key in sorted(output):
        value = output[key]
        kind = "lambda" if isinstance(value, HandlerPackage) else "static"
        table.add_row(key, kind, str(value.size))
    console.print(table)
    rprint(f"[green]Wrote {len(written)} files to[/green] {out}")


@app.command()
def routes(work: str = typer.Argument(..., help="Built work directory")) -> None:
    try:
        found = discover_routes(Path(work))
    except BuilderError as exc:
        _fail(exc)
    table = Table(title="Routes")
    table.add_column("Route", style="cyan")
    table.add_column("Bytes", justify="right")
    for route in found:
        table.add_row(route.name, str(route.file.size))
    console.print(table)


@app.command()
def manifest(source: str = typer.Argument(".", help="Directory holding package.json")) -> None:
    pkg = Path(source) / MANIFEST_NAME
    files = PathMap({MANIFEST_NAME: FileFsRef.from_path(pkg)} if pkg.is_file() else {})
    try:
        normalized = normalize_manifest(read_manifest(files))
    except BuilderError as exc:
        _fail(exc)
    print(dump_manifest(normalized))


if __name__ == "__main__":
    app()
