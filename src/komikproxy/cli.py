"""CLI interface using typer."""

import asyncio
import json
import logging
import sys

import typer

from .config import settings
from .service import OperationResult, ProxyService

app = typer.Typer(
    name="komik-proxy",
    help="Comic site extraction proxy with virtualized image ids",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
):
    """Configure logging for every command."""
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )


def _emit(result: OperationResult, output: str | None = None):
    """Write a JSON result, or the error and exit with status 1."""
    if not result.ok:
        typer.echo(json.dumps(result.error.to_dict(), ensure_ascii=False), err=True)
        raise typer.Exit(code=1)

    value = result.value
    if isinstance(value, list):
        data = {"items": [item.to_dict() for item in value]}
    else:
        data = value.to_dict()
    if result.note:
        data["note"] = result.note

    text = json.dumps(data, indent=2, ensure_ascii=False)
    if output:
        with open(output, "w") as f:
            f.write(text)
        typer.echo(f"Saved to {output}")
    else:
        typer.echo(text)


async def _run(operation: str, *args) -> OperationResult:
    async with ProxyService() as service:
        return await getattr(service, operation)(*args)


@app.command()
def catalog(
    output: str = typer.Option(None, "-o", "--output", help="Output file (JSON)"),
):
    """List catalog entries."""
    _emit(asyncio.run(_run("list_catalog")), output)


@app.command()
def detail(
    slug: str = typer.Argument(..., help="Item slug, e.g. one-piece"),
    output: str = typer.Option(None, "-o", "--output", help="Output file (JSON)"),
):
    """Show item details with a virtualized cover id."""
    _emit(asyncio.run(_run("get_item_detail", slug)), output)


@app.command()
def images(
    slug: str = typer.Argument(..., help="Item slug"),
    chapter: str = typer.Argument(..., help="Chapter reference (path or site URL)"),
    output: str = typer.Option(None, "-o", "--output", help="Output file (JSON)"),
):
    """List the page images of a chapter as resource ids."""
    _emit(asyncio.run(_run("get_item_images", slug, chapter)), output)


@app.command()
def resource(
    resource_id: str = typer.Argument(..., help="Resource id, e.g. one-piece/cover.jpg"),
    output: str = typer.Option(..., "-o", "--output", help="File to write the image bytes to"),
    hint: str = typer.Option(None, "--hint", help="Origin URL to use if the id is unknown"),
):
    """Download the image behind a resource id."""
    result = asyncio.run(_run("resolve_resource_id", resource_id, hint))
    if not result.ok:
        typer.echo(json.dumps(result.error.to_dict(), ensure_ascii=False), err=True)
        raise typer.Exit(code=1)

    payload = result.value
    with open(output, "wb") as f:
        f.write(payload.body)
    typer.echo(f"Saved {len(payload.body)} bytes ({payload.content_type or 'unknown type'}) to {output}")


@app.command()
def version():
    """Show version."""
    from . import __version__

    typer.echo(f"komik-proxy {__version__}")


if __name__ == "__main__":
    app()
