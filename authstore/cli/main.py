"""Main CLI entry point and application setup."""

import logging
from dataclasses import dataclass
from pathlib import Path

import click
from click.exceptions import Exit
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress
from rich.table import Table

from authstore import __version__
from authstore.auth import AuthService
from authstore.cli.config import load_config
from authstore.storage import (
    DEFAULT_BACKEND,
    BackendType,
    StorageError,
    UserBackend,
    create_backend,
    migrate_backend,
)

BACKEND_CHOICES = [t.value for t in BackendType]


@dataclass
class Context:
    """CLI context that holds shared resources."""

    backend: UserBackend
    service: AuthService
    console: Console
    config: dict | None = None
    debug: bool = False


def setup_logging(
    verbose: bool = False, quiet: bool = False, debug: bool = False
) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.WARNING
    elif verbose or debug:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s"
        if not debug
        else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_console(no_color: bool = False, width: int | None = None) -> Console:
    """Create Rich console with appropriate settings."""
    return Console(
        no_color=no_color,
        width=width or 120,
        highlight=not no_color,
        color_system=None if no_color else "auto",
    )


class AuthStoreGroup(click.Group):
    """Custom group that reports errors as one line."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except KeyboardInterrupt:
            console = getattr(ctx.obj, "console", None) if ctx.obj else None
            if console:
                console.print("[yellow]Interrupted[/yellow]")
            ctx.exit(130)
        except (click.ClickException, click.Abort, Exit, SystemExit):
            raise
        except Exception as e:
            debug = getattr(ctx.obj, "debug", False) if ctx.obj else False
            if debug:
                raise
            console = getattr(ctx.obj, "console", None) if ctx.obj else None
            if console:
                console.print(f"[red]Error:[/red] {escape(str(e))}")
            else:
                click.echo(f"Error: {e}", err=True)
            ctx.exit(1)


@click.group(cls=AuthStoreGroup)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--debug", is_flag=True, help="Enable debug mode with full tracebacks")
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--backend",
    "-b",
    type=click.Choice(BACKEND_CHOICES),
    help=f"Storage backend (default: {DEFAULT_BACKEND.value})",
)
@click.option("--db-path", help="Database file for the relational backend")
@click.option(
    "--data-dir",
    type=click.Path(path_type=Path),
    help="Directory for the embedded object store",
)
@click.version_option(
    version=__version__, prog_name="authstore", message="authstore version %(version)s"
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    no_color: bool,
    debug: bool,
    config_file: Path | None,
    backend: str | None,
    db_path: str | None,
    data_dir: Path | None,
) -> None:
    """User credential store.

    Register and authenticate users against a pluggable storage backend,
    and migrate users between backends.
    """
    setup_logging(verbose=verbose, quiet=quiet, debug=debug)
    console = create_console(no_color=no_color)

    try:
        config = load_config(config_file)
        storage = create_backend(
            backend or config.get("backend", DEFAULT_BACKEND),
            db_path=db_path or config.get("db_path"),
            data_dir=data_dir or _optional_path(config.get("data_dir")),
        )
    except (ValueError, StorageError) as e:
        if debug:
            raise
        console.print(f"[red]Error initializing storage:[/red] {escape(str(e))}")
        ctx.exit(1)

    ctx.obj = Context(
        backend=storage,
        service=AuthService(storage),
        console=console,
        config=config,
        debug=debug,
    )
    ctx.call_on_close(storage.close)


def _optional_path(value: str | None) -> Path | None:
    return Path(value) if value else None


# Command: register
@cli.command()
@click.argument("username")
@click.argument("email")
@click.password_option(help="Password (prompted if omitted)")
@click.pass_context
def register(ctx: click.Context, username: str, email: str, password: str) -> None:
    """Register a new user."""
    user = ctx.obj.service.register(username, email, password)
    ctx.obj.console.print(f"[green]✓[/green] Registered {user.username} ({user.id})")


# Command: login
@cli.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True, help="Password")
@click.pass_context
def login(ctx: click.Context, email: str, password: str) -> None:
    """Check a user's credentials."""
    user = ctx.obj.service.login(email, password)
    ctx.obj.console.print(f"[green]✓[/green] Logged in as {user.username} ({user.id})")


# Command: users
@cli.command()
@click.pass_context
def users(ctx: click.Context) -> None:
    """List all users."""
    console = ctx.obj.console
    all_users = sorted(ctx.obj.service.get_all_users(), key=lambda u: u.created_at)

    if not all_users:
        console.print("[yellow]No users[/yellow]")
        return

    table = Table(title=f"Users ({len(all_users)})")
    table.add_column("ID", style="dim")
    table.add_column("Username", style="cyan")
    table.add_column("Email")
    table.add_column("Created")

    for user in all_users:
        table.add_row(
            user.id,
            user.username,
            user.email,
            user.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        )

    console.print(table)


# Command: delete
@cli.command()
@click.argument("user_id")
@click.pass_context
def delete(ctx: click.Context, user_id: str) -> None:
    """Delete a user by id."""
    console = ctx.obj.console
    if ctx.obj.service.delete_user(user_id):
        console.print(f"[green]✓[/green] Deleted {user_id}")
    else:
        console.print(f"[yellow]No user with id {user_id}[/yellow]")


# Command: stats
@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show backend statistics."""
    console = ctx.obj.console
    console.print("\n[bold]Storage Status[/bold]\n")
    for key, value in ctx.obj.service.get_stats().items():
        console.print(escape(f"{key}: {value}"))


# Command: migrate
@cli.command()
@click.option(
    "--to",
    "target",
    type=click.Choice(BACKEND_CHOICES),
    required=True,
    help="Destination backend",
)
@click.option("--to-db-path", help="Destination database file (relational)")
@click.option(
    "--to-data-dir",
    type=click.Path(path_type=Path),
    help="Destination directory (embedded store)",
)
@click.pass_context
def migrate(
    ctx: click.Context, target: str, to_db_path: str | None, to_data_dir: Path | None
) -> None:
    """Copy all users from the current backend into another one."""
    console = ctx.obj.console

    with Progress(console=console, transient=True) as progress:
        task = progress.add_task("Migrating users", total=None)

        def on_progress(current: int, total: int) -> None:
            progress.update(task, completed=current, total=total)

        destination, report = migrate_backend(
            ctx.obj.backend,
            target,
            db_path=to_db_path,
            data_dir=to_data_dir,
            progress_callback=on_progress,
        )
    destination.close()

    console.print(
        f"Migrated {len(report.migrated)} of {report.total} users "
        f"from {report.source_type} to {report.target_type}"
    )
    for user_id, reason in report.skipped.items():
        console.print(f"[yellow]Skipped[/yellow] {escape(user_id)}: {escape(reason)}")
    for user_id, reason in report.failed.items():
        console.print(f"[red]Failed[/red] {escape(user_id)}: {escape(reason)}")

    if not report.ok:
        ctx.exit(1)
