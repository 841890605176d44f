"""Command line interface for the sagagate orchestrator."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from sagagate.config import load_config
from sagagate.constants import DEFAULT_SERVICE_NAME, SERVICE_SCOPE
from sagagate.errors import SagaGateError
from sagagate.security.tokens import TokenService

app = typer.Typer(help="CLI for the sagagate orchestrator")

token_app = typer.Typer(help="Commands for signed claims tokens")
clients_app = typer.Typer(help="Commands for registered OAuth2 clients")

app.add_typer(token_app, name="token")
app.add_typer(clients_app, name="clients")


def _token_service(config_path: Optional[str]) -> TokenService:
    try:
        return TokenService.from_config(load_config(config_path).auth)
    except SagaGateError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)


@app.callback()
def main() -> None:
    """sagagate CLI entry point."""
    pass


@app.command("serve")
def serve(
    host: str = "0.0.0.0",
    port: int = 3003,
    config: Optional[str] = typer.Option(None, help="Path to YAML configuration"),
) -> None:
    """
    Run the orchestrator HTTP service and queue consumers.

    Example:
        sagagate serve --port 3003 --config ./config.yaml
    """
    import uvicorn

    from sagagate.api import create_app

    settings = load_config(config)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(create_app(settings), host=host, port=port)


@token_app.command("mint-service")
def token_mint_service(
    service_name: str = typer.Argument(DEFAULT_SERVICE_NAME),
    scope: str = typer.Option(SERVICE_SCOPE, help="Space separated scopes"),
    config: Optional[str] = typer.Option(None, help="Path to YAML configuration"),
) -> None:
    """
    Mint a service claims token for a configured service identity.

    Example:
        sagagate token mint-service orchestrator-service --scope "read write"
    """
    service = _token_service(config)
    try:
        token = service.mint_service_claims(service_name, scope=scope)
    except SagaGateError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(token)


@token_app.command("verify")
def token_verify(
    token: str,
    config: Optional[str] = typer.Option(None, help="Path to YAML configuration"),
) -> None:
    """Verify a claims token and print its principal."""
    service = _token_service(config)
    try:
        principal = service.verify(token)
    except SagaGateError as exc:
        typer.secho(f"Invalid token: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(f"subject: {principal.subject}")
    typer.echo(f"type: {principal.principal_type}")
    typer.echo(f"scope: {' '.join(principal.scopes)}")


@clients_app.command("list")
def clients_list(
    config: Optional[str] = typer.Option(None, help="Path to YAML configuration"),
) -> None:
    """List registered OAuth2 client identifiers."""
    clients = load_config(config).auth.clients
    if not clients:
        typer.echo("No clients registered")
        return
    for client in clients:
        typer.echo(f"{client.client_id}\t{' '.join(client.scopes)}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
