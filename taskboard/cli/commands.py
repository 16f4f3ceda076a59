"""CLI commands for taskboard."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from taskboard import __version__

app = typer.Typer(name="taskboard", help="Taskboard API management CLI")
console = Console()


@app.command()
def version() -> None:
    """Show version."""
    console.print(f"[bold green]Taskboard v{__version__}[/bold green]")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8000, help="Port to bind"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Start API server.

    Args:
        host: Host to bind
        port: Port to bind
        reload: Reload on code changes
    """
    import uvicorn

    console.print(f"[yellow]Starting server on {host}:{port}[/yellow]")
    uvicorn.run("taskboard.api.app:app", host=host, port=port, reload=reload)


@app.command("init-db")
def init_database() -> None:
    """Create database tables."""
    from taskboard.storage.database.base import close_db, init_db

    async def _run() -> None:
        try:
            await init_db()
        finally:
            await close_db()

    asyncio.run(_run())
    console.print("[green]✓ Database initialized[/green]")


@app.command()
def redeliver(
    notification_id: int = typer.Argument(..., help="Notification to deliver again"),
    sync: bool = typer.Option(False, "--sync", help="Deliver in this process instead of queueing"),
) -> None:
    """Deliver a notification to its recipient's webhooks again.

    Args:
        notification_id: Notification to deliver again
        sync: Deliver in this process instead of queueing
    """
    from taskboard.core.exceptions import NotificationNotFoundError
    from taskboard.tasks.webhook_tasks import deliver_notification, deliver_notification_webhooks_task

    if not sync:
        result = deliver_notification_webhooks_task.delay(notification_id)
        console.print(f"[yellow]Queued delivery task {result.id}[/yellow]")
        return

    try:
        outcome = asyncio.run(deliver_notification(notification_id))
    except NotificationNotFoundError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        raise typer.Exit(code=1) from e

    table = Table(title=outcome["message"])
    table.add_column("Subscription", justify="right")
    table.add_column("Delivered")
    table.add_column("Status")
    table.add_column("Error")
    for delivery in outcome["deliveries"]:
        table.add_row(
            str(delivery["subscription_id"]),
            "yes" if delivery["delivered"] else "no",
            str(delivery["status_code"] or "-"),
            delivery["error"] or "",
        )
    console.print(table)


if __name__ == "__main__":
    app()
