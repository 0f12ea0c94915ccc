"""CLI entry point for chatpane."""

import asyncio
import logging

import click
import uvicorn

from .backends import SERVICES, get_service
from .client import ChatClient
from .config import get_backend_name


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging level.",
)
def main(log_level: str):
    """Chat with a response-generation service."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the HTTP API."""
    click.echo(f"Starting chatpane on http://{host}:{port}")
    uvicorn.run("chatpane.server:app", host=host, port=port, reload=False)


@main.command()
@click.argument("text")
@click.option(
    "--backend",
    type=click.Choice(sorted(SERVICES)),
    default=None,
    help="Response backend (defaults to $CHATPANE_BACKEND or echo).",
)
def ask(text: str, backend: str | None):
    """Send one message and print the reply."""
    if not text.strip():
        raise click.BadParameter("message is empty", param_hint="TEXT")
    reply = asyncio.run(_ask(text, backend or get_backend_name()))
    click.echo(reply)


async def _ask(text: str, backend: str) -> str:
    client = ChatClient(get_service(backend))
    try:
        await client.send_message(text)
        await client.wait_idle()
        return client.snapshot().active_messages[-1].content
    finally:
        await client.aclose()
