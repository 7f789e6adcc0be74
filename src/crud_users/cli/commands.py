"""CLI commands for the users service.

Commands:
- serve: Run the HTTP API (migrations run before the first request)
- migrate: Apply pending migrations and exit
- check-db: Ping the configured database
"""

from pathlib import Path
from typing import Optional

import typer
import uvicorn
import yaml
from rich.console import Console

from crud_users.config.app_config import AppConfig, load_app_config
from crud_users.core.health import check_health
from crud_users.db.migrations import run_migrations
from crud_users.db.store import create_store
from crud_users.errors import MigrationFailure, StoreUnavailableError
from crud_users.utils.logger import configure_logging
from crud_users.web.api import create_app

app = typer.Typer(
    name="crud-users",
    help="CRUD users service: HTTP API, migrations and health checks.",
    no_args_is_help=True,
)
console = Console()


def _load_config() -> AppConfig:
    """Load settings, exiting with code 1 on a bad value."""
    try:
        return load_app_config()
    except (ValueError, yaml.YAMLError) as e:
        console.print(f"[red]✗ Invalid configuration: {e}[/red]")
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: HOST or 0.0.0.0)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Listen port (default: PORT or 3000)"),
) -> None:
    """Run the HTTP API."""
    config = _load_config()
    if host is not None:
        config.server.host = host
    if port is not None:
        config.server.port = port

    display_host = "localhost" if config.server.host == "0.0.0.0" else config.server.host
    base_url = f"http://{display_host}:{config.server.port}"
    console.print(f"[blue]Starting server on port {config.server.port}[/blue]")
    console.print(f"  [dim]health:[/dim] {base_url}/health")
    console.print(f"  [dim]api:[/dim]    {base_url}/api/users")

    # log_config=None keeps uvicorn's records on our structlog handlers
    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        lifespan="on",
        log_config=None,
    )


@app.command()
def migrate(
    migrations_dir: Optional[Path] = typer.Option(
        None, "--migrations-dir", "-m", help="Directory with .sql scripts"
    ),
) -> None:
    """Apply pending migrations and exit."""
    config = _load_config()
    configure_logging(config.logging)
    directory = migrations_dir or config.migrations_dir

    try:
        store = create_store(config.database)
    except (StoreUnavailableError, ValueError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    try:
        applied = run_migrations(store, directory)
    except MigrationFailure as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)
    finally:
        store.close()

    if not applied:
        console.print("[green]✓ Schema up to date[/green]")
        return

    console.print(f"[green]✓ Applied {len(applied)} migration(s)[/green]")
    for filename in applied:
        console.print(f"  - {filename}")


@app.command(name="check-db")
def check_db() -> None:
    """Ping the configured database."""
    config = _load_config()
    configure_logging(config.logging)

    try:
        store = create_store(config.database)
    except (StoreUnavailableError, ValueError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    try:
        health = check_health(store)
    finally:
        store.close()

    if not health.healthy:
        console.print(f"[red]✗ Database disconnected: {health.error}[/red]")
        raise typer.Exit(code=1)

    console.print("[green]✓ Database connected[/green]")


if __name__ == "__main__":
    app()
