"""
Restaurant Menu API command-line interface.

    python -m menu_api.cli create-super-admin --email admin@example.com
    python -m menu_api.cli init-db
    python -m menu_api.cli serve --reload
"""

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from menu_shared.config.settings import settings

app = typer.Typer(
    name="restaurant-menu-api",
    help="Restaurant Menu API management CLI",
    add_completion=False,
)
console = Console()


# =============================================================================
# Database Commands
# =============================================================================


@app.command()
def init_db():
    """Create any missing database tables."""
    from menu_api.models import Base
    from menu_shared.infrastructure.db import engine

    console.print(f"[blue]Creating tables on {engine.url.render_as_string(hide_password=True)}[/blue]")
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        console.print(f"[red]✗ Table creation failed: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Tables")
    table.add_column("Name", style="cyan")
    for name in sorted(Base.metadata.tables):
        table.add_row(name)
    console.print(table)
    console.print("[green]✓ Database ready[/green]")


@app.command()
def create_super_admin(
    email: str = typer.Option(None, help="Admin email (defaults to ADMIN_EMAIL)"),
    password: str = typer.Option(
        None, help="Admin password (defaults to ADMIN_PASSWORD)", hide_input=True
    ),
):
    """Create the bootstrap super admin when no active super admin exists."""
    from menu_api.seed import ensure_super_admin
    from menu_shared.infrastructure.db import get_db_context

    try:
        with get_db_context() as db:
            user = ensure_super_admin(db, email=email, password=password)
    except SQLAlchemyError as e:
        console.print(f"[red]✗ Could not create super admin: {e}[/red]")
        raise typer.Exit(1)

    if user is None:
        console.print("[yellow]An active super admin already exists, nothing to do[/yellow]")
        return
    console.print(f"[green]✓ Super admin created: {user.email} (id {user.id})[/green]")


# =============================================================================
# Server Commands
# =============================================================================


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(settings.port, help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run("menu_api.main:app", host=host, port=port, reload=reload)


@app.command()
def routes():
    """List the registered API routes."""
    from menu_api.main import app as api

    table = Table(title="Routes")
    table.add_column("Methods", style="cyan")
    table.add_column("Path", style="green")
    for route in api.routes:
        methods = ",".join(sorted(getattr(route, "methods", None) or []))
        table.add_row(methods, getattr(route, "path", ""))
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
