"""CLI interface for the page editor.

Runs the server, scaffolds the template page and talks to a running server.
"""

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import NoReturn, TypeVar

import click
import httpx

from pageeditor.client import PageEditorClient, PageSources, SessionState
from pageeditor.config import Config, LoggingConfig
from pageeditor.core.types import FileType
from pageeditor.errors import ConfigError

DEFAULT_URL = "http://127.0.0.1:8000"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

T = TypeVar("T")


def configure_logging(config: LoggingConfig) -> None:
    logging.basicConfig(level=config.level, format=LOG_FORMAT)


def _fail(message: str) -> NoReturn:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


def _load_config(
    config_path: Path | None,
    root: Path | None = None,
    **overrides: object,
) -> Config:
    try:
        return Config.load(config_path).with_overrides(read_root=root, **overrides)  # type: ignore[arg-type]
    except (ConfigError, FileNotFoundError) as e:
        _fail(str(e))


config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path, dir_okay=False),
    default=None,
    help="Path to configuration file (default: auto-discover pageeditor.toml)",
)
root_option = click.option(
    "--root",
    "-r",
    type=click.Path(exists=True, path_type=Path, file_okay=False),
    default=None,
    help="Read root directory (overrides config, default: current directory)",
)


@click.group()
def cli() -> None:
    """Serve and edit HTML/CSS/JS pages."""


@cli.command()
@click.argument("write_subroot", required=False)
@config_option
@root_option
@click.option("--host", default=None, help="Host to bind to (overrides config)")
@click.option("--port", "-p", type=int, default=None, help="Port to bind to (overrides config)")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (overrides config)",
)
def serve(
    write_subroot: str | None,
    config_path: Path | None,
    root: Path | None,
    host: str | None,
    port: int | None,
    log_level: str | None,
) -> None:
    """Start the page editor server.

    WRITE_SUBROOT confines PUT, POST, DELETE and MKCOL to a directory below
    the read root. It must be relative and may not contain "..".
    """
    from pageeditor.server import run_server

    config = _load_config(
        config_path,
        root,
        host=host,
        port=port,
        write_subroot=write_subroot,
        log_level=log_level,
    )
    configure_logging(config.logging)

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Read root: {config.roots.read_root}")
    click.echo(f"Write root: {config.roots.write_root}")

    run_server(config)


@cli.command()
@config_option
@root_option
@click.option("--force", is_flag=True, help="Overwrite existing template files")
def init(config_path: Path | None, root: Path | None, force: bool) -> None:
    """Create the template page and user pages directories."""
    from pageeditor.core.pages import PageManager

    config = _load_config(config_path, root)
    configure_logging(config.logging)

    manager = PageManager(config)
    written = manager.scaffold(force=force)
    for path in written:
        click.echo(f"Wrote {path}")
    if not written:
        click.echo("Template page already present, nothing written")
    click.echo(f"User pages directory: {manager.user_pages_dir}")


@cli.group()
@click.option("--url", default=DEFAULT_URL, show_default=True, help="Page editor server URL")
@click.option(
    "--pages-url",
    default="/page_editor/user_pages",
    show_default=True,
    help="URL path of the user pages directory",
)
@click.option(
    "--state-file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="File storing the current page (default: user config directory)",
)
@click.pass_context
def pages(ctx: click.Context, url: str, pages_url: str, state_file: Path | None) -> None:
    """Work with pages on a running server."""
    if state_file is None:
        state_file = Path(click.get_app_dir("pageeditor")) / "state.json"
    ctx.obj = {"url": url, "pages_url": pages_url, "state_file": state_file}


def _run(ctx: click.Context, action: Callable[[PageEditorClient], Awaitable[T]]) -> T:
    """Run ``action(client)`` against the server, reporting HTTP failures."""
    obj = ctx.obj

    async def main() -> T:
        async with httpx.AsyncClient(base_url=obj["url"]) as http:
            return await action(PageEditorClient(http, obj["pages_url"]))

    try:
        return asyncio.run(main())
    except httpx.HTTPStatusError as e:
        _fail(f"{e.response.status_code} {e.response.text}")
    except httpx.HTTPError as e:
        _fail(f"Request failed: {e}")


@pages.command("list")
@click.pass_context
def list_pages(ctx: click.Context) -> None:
    """List pages, marking the current one."""
    current = SessionState.load(ctx.obj["state_file"]).current_page
    for name in _run(ctx, lambda client: client.list_pages()):
        marker = "*" if name == current else " "
        click.echo(f"{marker} {name}")


@pages.command()
@click.argument("page_name", required=False)
@click.option(
    "--type",
    "file_type",
    type=click.Choice([t.value for t in FileType]),
    default=FileType.HTML.value,
    show_default=True,
    help="Which file of the page to print",
)
@click.pass_context
def show(ctx: click.Context, page_name: str | None, file_type: str) -> None:
    """Print one file of a page (default: the current page)."""
    name = page_name or SessionState.load(ctx.obj["state_file"]).current_page
    sources = _run(ctx, lambda client: client.load_page(name))
    click.echo(sources.get(FileType(file_type)))


@pages.command()
@click.argument("page_name", required=False)
@click.option("--html", type=click.Path(exists=True, path_type=Path, dir_okay=False))
@click.option("--css", type=click.Path(exists=True, path_type=Path, dir_okay=False))
@click.option("--js", type=click.Path(exists=True, path_type=Path, dir_okay=False))
@click.pass_context
def save(
    ctx: click.Context,
    page_name: str | None,
    html: Path | None,
    css: Path | None,
    js: Path | None,
) -> None:
    """Upload local files as a page's HTML, CSS and JS.

    Files not given keep their current server content.
    """
    name = page_name or SessionState.load(ctx.obj["state_file"]).current_page

    async def action(client: PageEditorClient) -> None:
        current = await client.load_page(name)
        sources = PageSources(
            html=html.read_text(encoding="utf-8") if html else current.html,
            css=css.read_text(encoding="utf-8") if css else current.css,
            js=js.read_text(encoding="utf-8") if js else current.js,
        )
        await client.save_page(name, sources)

    _run(ctx, action)
    click.echo(f"Saved page {name}")


@pages.command()
@click.argument("page_name")
@click.pass_context
def create(ctx: click.Context, page_name: str) -> None:
    """Create a page from the template and make it current."""
    _run(ctx, lambda client: client.create_page(page_name))
    SessionState(current_page=page_name).save(ctx.obj["state_file"])
    click.echo(click.style(f"Created page {page_name}", fg="green"))


@pages.command()
@click.argument("page_name")
@click.pass_context
def delete(ctx: click.Context, page_name: str) -> None:
    """Delete a page's three files."""
    _run(ctx, lambda client: client.delete_page(page_name))
    state = SessionState.load(ctx.obj["state_file"])
    if state.current_page == page_name:
        SessionState().save(ctx.obj["state_file"])
    click.echo(f"Deleted page {page_name}")


@pages.command()
@click.pass_context
def restore(ctx: click.Context) -> None:
    """Reset the start page to the template."""
    _run(ctx, lambda client: client.restore())
    click.echo("Restored start page")


@pages.command()
@click.argument("page_name")
@click.pass_context
def use(ctx: click.Context, page_name: str) -> None:
    """Select the current page."""
    SessionState(current_page=page_name).save(ctx.obj["state_file"])
    click.echo(f"Current page: {page_name}")


if __name__ == "__main__":
    cli()
