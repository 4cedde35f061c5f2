"""CLI entry point."""

import asyncio

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ssobroker.schemas.client import Client, ClientCreate, ClientUpdate
from ssobroker.settings import settings
from ssobroker.store.base import ClientRepository
from ssobroker.store.factory import get_repositories

app = typer.Typer(name="ssobroker", help="Multi-tenant SSO broker CLI")
clients_app = typer.Typer(help="Manage registered clients (tenants)")
app.add_typer(clients_app, name="clients")
console = Console()


def _mask(secret: str | None) -> str:
    if not secret:
        return "[dim]-[/dim]"
    return f"{secret[:4]}…"


def _client_repository() -> ClientRepository:
    """Client registry the server will read, refusing a process-local store."""
    if settings.store.backend.lower() == "memory":
        console.print(
            "[red]Error:[/red] The memory store is lost when this command exits. "
            "Set SSOBROKER_STORE__BACKEND=filesystem to manage clients."
        )
        raise typer.Exit(code=1)
    clients, _ = get_repositories()
    return clients


def _show_client(client: Client, reveal_token: bool = False) -> None:
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("id", client.id)
    table.add_row("token", client.token if reveal_token else _mask(client.token))
    table.add_row("name", client.name)
    table.add_row("allowed origins", ", ".join(client.allowed_origins))
    table.add_row("redirect urls", ", ".join(client.redirect_urls))
    table.add_row("logo url", client.logo_url or "-")
    table.add_row("google client id", client.google_client_id or "-")
    table.add_row("google client secret", _mask(client.google_client_secret))
    table.add_row("facebook app id", client.facebook_app_id or "-")
    table.add_row("facebook app secret", _mask(client.facebook_app_secret))
    table.add_row(
        "providers",
        ", ".join(p.value for p in client.configured_providers()) or "password only",
    )
    table.add_row("created", client.created_at.isoformat())

    console.print(Panel(table, title=client.name))


@app.command()
def serve(
    host: str = typer.Option(settings.api_host, help="API server host"),
    port: int = typer.Option(settings.api_port, help="API server port"),
    reload: bool = typer.Option(settings.api_reload, help="Auto-reload on code changes"),
) -> None:
    """Start the SSO broker API server.

    Examples:
        ssobroker serve
        ssobroker serve --reload
        ssobroker serve --host 127.0.0.1 --port 8080
    """
    import uvicorn

    console.print(f"[green]Starting SSO broker on {host}:{port}[/green]")
    console.print(f"[dim]Store:[/dim] {settings.store.backend}")
    console.print(f"[dim]Docs:[/dim] http://{host}:{port}/docs")

    uvicorn.run(
        "ssobroker.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from ssobroker import __version__

    typer.echo(f"SSO Broker v{__version__}")


@clients_app.command("create")
def create_client(
    name: str = typer.Argument(..., help="Client display name"),
    origin: list[str] = typer.Option(
        ..., "--origin", help="Allowed origin (repeatable, '*.example.com' allowed)"
    ),
    redirect_url: list[str] = typer.Option(
        ..., "--redirect-url", help="Allowed redirect URL prefix (repeatable)"
    ),
    logo_url: str = typer.Option(None, help="Logo shown on the login page"),
    google_client_id: str = typer.Option(None, help="Google OAuth client id"),
    google_client_secret: str = typer.Option(None, help="Google OAuth client secret"),
    facebook_app_id: str = typer.Option(None, help="Facebook app id"),
    facebook_app_secret: str = typer.Option(None, help="Facebook app secret"),
) -> None:
    """Register a client and print its token.

    The token is shown once in full; hand it to the tenant application.

    Examples:
        ssobroker clients create "Acme" --origin https://acme.com \\
            --redirect-url https://acme.com/auth/callback
    """
    data = ClientCreate(
        name=name,
        allowed_origins=origin,
        redirect_urls=redirect_url,
        logo_url=logo_url,
        google_client_id=google_client_id,
        google_client_secret=google_client_secret,
        facebook_app_id=facebook_app_id,
        facebook_app_secret=facebook_app_secret,
    )
    clients = _client_repository()
    client = asyncio.run(clients.create(Client(**data.model_dump())))

    console.print(f"[green]✓[/green] Created client {client.id}")
    console.print(f"[bold]Client token:[/bold] {client.token}", soft_wrap=True)
    _show_client(client)


@clients_app.command("list")
def list_clients() -> None:
    """List registered clients."""
    clients = _client_repository()
    registered = asyncio.run(clients.list_all())

    if not registered:
        console.print("[yellow]No clients registered[/yellow]")
        return

    table = Table(title="Clients")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Origins")
    table.add_column("Providers")
    for client in registered:
        table.add_row(
            client.id,
            client.name,
            ", ".join(client.allowed_origins),
            ", ".join(p.value for p in client.configured_providers()) or "-",
        )
    console.print(table)


@clients_app.command("show")
def show_client(
    client_id: str = typer.Argument(..., help="Client ID"),
    reveal_token: bool = typer.Option(False, "--reveal-token", help="Print the full token"),
) -> None:
    """Show a client's configuration (secrets masked)."""
    clients = _client_repository()
    client = asyncio.run(clients.find_by_id(client_id))
    if not client:
        console.print(f"[red]Error:[/red] Client not found: {client_id}")
        raise typer.Exit(code=1)
    _show_client(client, reveal_token=reveal_token)


@clients_app.command("update")
def update_client(
    client_id: str = typer.Argument(..., help="Client ID"),
    name: str = typer.Option(None, help="New display name"),
    origin: list[str] = typer.Option(
        None, "--origin", help="Replace allowed origins (repeatable)"
    ),
    redirect_url: list[str] = typer.Option(
        None, "--redirect-url", help="Replace redirect URL prefixes (repeatable)"
    ),
    logo_url: str = typer.Option(None, help="Logo shown on the login page"),
    google_client_id: str = typer.Option(None, help="Google OAuth client id"),
    google_client_secret: str = typer.Option(None, help="Google OAuth client secret"),
    facebook_app_id: str = typer.Option(None, help="Facebook app id"),
    facebook_app_secret: str = typer.Option(None, help="Facebook app secret"),
    clear_google: bool = typer.Option(
        False, "--clear-google", help="Remove the Google credential pair"
    ),
    clear_facebook: bool = typer.Option(
        False, "--clear-facebook", help="Remove the Facebook credential pair"
    ),
) -> None:
    """Update a client; only the options given are changed.

    Examples:
        ssobroker clients update <id> --name "Acme Corp"
        ssobroker clients update <id> --clear-facebook
    """
    if (clear_google and (google_client_id or google_client_secret)) or (
        clear_facebook and (facebook_app_id or facebook_app_secret)
    ):
        console.print("[red]Error:[/red] Cannot set and clear the same provider")
        raise typer.Exit(code=1)

    fields = {
        "name": name,
        "allowed_origins": origin,
        "redirect_urls": redirect_url,
        "logo_url": logo_url,
        "google_client_id": google_client_id,
        "google_client_secret": google_client_secret,
        "facebook_app_id": facebook_app_id,
        "facebook_app_secret": facebook_app_secret,
    }
    # only explicitly given options count as set
    fields = {k: v for k, v in fields.items() if v}
    if clear_google:
        fields.update(google_client_id=None, google_client_secret=None)
    if clear_facebook:
        fields.update(facebook_app_id=None, facebook_app_secret=None)

    changes = ClientUpdate(**fields)
    if not changes.model_fields_set:
        console.print("[yellow]Nothing to update[/yellow]")
        raise typer.Exit(code=1)

    clients = _client_repository()
    client = asyncio.run(clients.update(client_id, changes))
    if not client:
        console.print(f"[red]Error:[/red] Client not found: {client_id}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Updated client {client.id}")
    _show_client(client)


@clients_app.command("delete")
def delete_client(
    client_id: str = typer.Argument(..., help="Client ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a client.

    Users registered under the client keep their accounts; their ``client_id``
    simply no longer resolves.
    """
    if not yes:
        typer.confirm(f"Delete client {client_id}?", abort=True)

    clients = _client_repository()
    if not asyncio.run(clients.delete(client_id)):
        console.print(f"[red]Error:[/red] Client not found: {client_id}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Deleted client {client_id}")


if __name__ == "__main__":
    app()
