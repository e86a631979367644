"""CLI entry-point for the 4chan API client."""

from __future__ import annotations

import dataclasses
import html
import logging
import re
import sys
from typing import Callable, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .client import ChanClient
from .config import ApiConfig
from .errors import ChanError, NotFound, TransportError
from .models import Post
from .thread import UpdateStatus

console = Console()
logger = logging.getLogger("chanapi.cli")

T = TypeVar("T")

_TAG_RE = re.compile(r"<[^>]+>")


def _setup_logging(verbose: bool, level_name: str | None) -> None:
    if verbose:
        level = logging.DEBUG
    elif level_name:
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            raise click.BadParameter(f"unknown log level {level_name!r}", param_hint="--log-level")
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )
    # Suppress noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _plain(comment: str | None, width: int = 60) -> str:
    """Flatten a post's HTML comment to a single line of text."""
    if not comment:
        return ""
    text = html.unescape(_TAG_RE.sub("", comment.replace("<br>", " ")))
    return text if len(text) <= width else text[: width - 1] + "…"


def _run(action: Callable[[], T]) -> T:
    """Run an API call, turning library errors into a message and exit code 1."""
    try:
        return action()
    except ChanError as exc:
        console.print(f"[red]✗[/red] {exc}")
        sys.exit(1)


def _post_table(title: str, posts: list[Post] | tuple[Post, ...], board: str, media_base: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("No", style="bold", justify="right")
    table.add_column("Time")
    table.add_column("Name")
    table.add_column("Comment", max_width=60)
    table.add_column("File")
    for post in posts:
        table.add_row(
            str(post.no),
            f"{post.created_at:%Y-%m-%d %H:%M:%S}",
            post.name + (f" {post.trip}" if post.trip else ""),
            _plain(post.sub or post.com),
            post.image_url(board, media_base) or "",
        )
    return table


@click.group()
@click.option("--api-base", envvar="CHANAPI_API_BASE", default="https://a.4cdn.org", help="JSON API base URL")
@click.option("--request-interval", envvar="CHANAPI_REQUEST_INTERVAL", default=1.0, type=float,
              help="Minimum seconds between any two requests")
@click.option("--update-interval", envvar="CHANAPI_UPDATE_INTERVAL", default=10.0, type=float,
              help="Minimum seconds between refreshes of one resource")
@click.option("--timeout", envvar="CHANAPI_TIMEOUT", default=30.0, type=float, help="HTTP timeout in seconds")
@click.option("--log-level", envvar="CHANAPI_LOG_LEVEL", default=None, help="Log level (DEBUG, INFO, WARNING, ...)")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, **kwargs: object) -> None:
    """Browse 4chan threads, catalogs and archives from the terminal.

    All requests go through one rate-limited client: one request per
    second, one refresh per resource every ten seconds.
    """
    _setup_logging(bool(kwargs.pop("verbose")), kwargs.pop("log_level"))  # type: ignore[arg-type]
    ctx.ensure_object(dict)
    ctx.obj["api_cfg"] = dataclasses.replace(
        ApiConfig.from_env(),
        api_base=kwargs["api_base"],  # type: ignore[arg-type]
        request_interval=kwargs["request_interval"],  # type: ignore[arg-type]
        update_interval=kwargs["update_interval"],  # type: ignore[arg-type]
        timeout=kwargs["timeout"],  # type: ignore[arg-type]
    )


def _make_client(ctx: click.Context) -> ChanClient:
    return ChanClient(ctx.obj["api_cfg"])


# ─── Commands ────────────────────────────────────────────────────


@cli.command()
@click.argument("board")
@click.argument("thread_no", type=int)
@click.option("--limit", default=0, type=int, help="Max posts to show (0 = all)")
@click.pass_context
def thread(ctx: click.Context, board: str, thread_no: int, limit: int) -> None:
    """Show a single thread.

    Example: chanapi thread g 12345678
    """
    with _make_client(ctx) as client:
        t = _run(lambda: client.thread(board, thread_no))
        posts = t.posts[:limit] if limit > 0 else t.posts
        console.print(_post_table(f"/{board}/{thread_no}", posts, board, client.cfg.media_base))
        status = "archived" if t.archived else "closed" if t.closed else "live"
        console.print(f"[green]✓[/green] {len(t)} posts ({status})")


@cli.command()
@click.argument("board")
@click.argument("thread_no", type=int)
@click.option("--count", default=0, type=int, help="Number of update rounds (0 = until the thread dies)")
@click.pass_context
def watch(ctx: click.Context, board: str, thread_no: int, count: int) -> None:
    """Follow a thread and print new posts as they arrive.

    Each round waits out the per-thread update interval before asking the
    server, using If-Modified-Since.

    Example: chanapi watch g 12345678 --count 6
    """
    with _make_client(ctx) as client:
        t = _run(lambda: client.thread(board, thread_no))
        console.print(f"[bold]Watching [cyan]/{board}/{thread_no}[/cyan] ({len(t)} posts)[/bold]")
        rounds = 0
        while count <= 0 or rounds < count:
            rounds += 1
            previous = t.posts
            try:
                status = t.update(client, wait=True)
            except NotFound:
                console.print(f"[red]✗[/red] /{board}/{thread_no} is gone")
                sys.exit(1)
            except TransportError as exc:
                logger.warning("Update failed, retrying next round: %s", exc)
                continue
            except ChanError as exc:
                console.print(f"[red]✗[/red] {exc}")
                sys.exit(1)
            if status is UpdateStatus.UPDATED:
                fresh = t.new_posts(previous)
                if fresh:
                    console.print(_post_table(f"{len(fresh)} new", fresh, board, client.cfg.media_base))
            if t.archived:
                console.print(f"[yellow]/{board}/{thread_no} was archived[/yellow]")
                break


@cli.command()
@click.argument("board")
@click.option("--limit", default=10, type=int, help="Number of threads to show")
@click.pass_context
def catalog(ctx: click.Context, board: str, limit: int) -> None:
    """Preview a board's catalog.

    Example: chanapi catalog g --limit 5
    """
    with _make_client(ctx) as client:
        cat = _run(lambda: client.catalog(board))
        table = Table(title=f"/{board}/ Catalog", show_header=True, header_style="bold cyan")
        table.add_column("No", style="bold", justify="right")
        table.add_column("Subject", max_width=40)
        table.add_column("Replies", justify="right")
        table.add_column("Images", justify="right")
        table.add_column("Has File", justify="center")
        for t in cat.threads()[:limit]:
            table.add_row(
                str(t.no),
                _plain(t.sub or t.com, 40),
                str(t.replies or 0),
                str(t.images or 0),
                "✓" if t.has_file else "",
            )
        console.print(table)


@cli.command()
@click.argument("board")
@click.option("--limit", default=20, type=int, help="Number of threads to show (0 = all)")
@click.pass_context
def threads(ctx: click.Context, board: str, limit: int) -> None:
    """List a board's live threads, most recently bumped first.

    Example: chanapi threads g
    """
    with _make_client(ctx) as client:
        b = _run(lambda: client.board(board))
        table = Table(title=f"/{board}/ Threads", show_header=True, header_style="bold cyan")
        table.add_column("Page", justify="right")
        table.add_column("No", style="bold", justify="right")
        table.add_column("Replies", justify="right")
        table.add_column("Last Modified")
        shown = 0
        for page in b:
            for t in page.threads:
                if limit > 0 and shown >= limit:
                    break
                table.add_row(str(page.page), str(t.no), str(t.replies), f"{t.modified_at:%Y-%m-%d %H:%M:%S}")
                shown += 1
        console.print(table)


@cli.command()
@click.argument("board")
@click.option("--limit", default=20, type=int, help="Number of thread numbers to show (0 = all)")
@click.pass_context
def archive(ctx: click.Context, board: str, limit: int) -> None:
    """List archived thread numbers for a board, newest first.

    Example: chanapi archive g --limit 50
    """
    with _make_client(ctx) as client:
        arc = _run(lambda: client.archive(board))
        nos = sorted(arc, reverse=True)
        if limit > 0:
            nos = nos[:limit]
        for no in nos:
            console.print(str(no))
        console.print(f"[green]✓[/green] {len(arc)} archived threads on /{board}/")


@cli.command(name="list-boards")
@click.pass_context
def list_boards(ctx: click.Context) -> None:
    """List all available 4chan boards."""
    with _make_client(ctx) as client:
        boards = _run(client.boards)
        table = Table(title="4chan Boards", show_header=True, header_style="bold cyan")
        table.add_column("Board", style="bold")
        table.add_column("Title")
        table.add_column("SFW", justify="center")
        for b in sorted(boards, key=lambda x: x.board):
            table.add_row(f"/{b.board}/", b.title, "✓" if b.ws_board else "✗")
        console.print(table)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
