"""CLI commands for lnbridge.

Each command loads the config, builds the configured backend, runs one
contract operation and prints the result as JSON.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable

import typer
from rich.console import Console
from rich.markup import escape

from lnbridge import __version__
from lnbridge.backends import CLightningBackend, LightningBackend, create_backend
from lnbridge.cli.shared.logging_utils import configure_cli_logging
from lnbridge.config.loader import load_config
from lnbridge.utils.exceptions import InvalidArgument, LnBridgeError, classify_exception, sanitize_error_message

app = typer.Typer(
    name="lnbridge",
    help="lnbridge - control a Lightning node through its c-lightning or lnd backend",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"lnbridge v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(None, "--config", "-c", help="Path to config.json"),
    backend: str = typer.Option(None, "--backend", "-b", help="Override the configured backend"),
    debug: bool = typer.Option(False, "--debug", help="Print debug logs to stderr"),
    logs: bool = typer.Option(False, "--logs", help="Write logs to ~/.lnbridge/logs"),
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
):
    """lnbridge - Lightning backend adapters."""
    configure_cli_logging(debug=debug, logs=logs)
    ctx.obj = {"config_path": config, "backend": backend}


def _print_result(result: Any) -> None:
    if isinstance(result, str):
        console.print(result, markup=False, highlight=False)
    else:
        console.print_json(data=result)


def _print_error(code: str, message: str) -> None:
    console.print(f"[red]Error {escape(f'[{code}]')}[/red] {escape(sanitize_error_message(message))}", highlight=False)


def _run(ctx: typer.Context, operation: Callable[[LightningBackend], Awaitable[Any]]) -> None:
    obj = ctx.obj or {}
    try:
        cfg = load_config(obj.get("config_path"))
        backend = create_backend(obj.get("backend") or cfg.backend, cfg.options)

        async def runner() -> Any:
            async with backend:
                return await operation(backend)

        result = asyncio.run(runner())
    except LnBridgeError as e:
        _print_error(e.code, e.message)
        raise typer.Exit(1)
    except OSError as e:
        code, _, _ = classify_exception(e)
        _print_error(code, str(e))
        raise typer.Exit(1)
    _print_result(result)


@app.command("node-uri")
def node_uri(ctx: typer.Context):
    """Print the node's advertised URI."""
    _run(ctx, lambda b: b.get_node_uri())


@app.command("open-channel")
def open_channel(
    ctx: typer.Context,
    remote_id: str = typer.Argument(..., help="Remote node public key"),
    local_amt: int = typer.Argument(..., help="Funding amount (sat)"),
    push_amt: int = typer.Option(0, "--push-amt", help="Amount pushed to the remote side (sat)"),
    private: bool = typer.Option(False, "--private", help="Do not announce the channel"),
):
    """Open a channel to a remote node."""
    _run(ctx, lambda b: b.open_channel(remote_id, local_amt, push_amt, private))


@app.command("pay")
def pay(ctx: typer.Context, invoice: str = typer.Argument(..., help="BOLT11 invoice")):
    """Pay a BOLT11 invoice."""
    _run(ctx, lambda b: b.pay_invoice(invoice))


@app.command("invoice")
def invoice(
    ctx: typer.Context,
    amount: int = typer.Argument(..., help="Amount (msat)"),
    description: str = typer.Option("", "--description", "-d"),
    description_hash: str = typer.Option("", "--description-hash", help="Hex SHA256 of the description"),
    label: str = typer.Option("", "--label", help="Invoice label (c-lightning)"),
):
    """Create an invoice and print its payment request."""
    extra = {k: v for k, v in {"description": description, "description_hash": description_hash, "label": label}.items() if v}
    _run(ctx, lambda b: b.add_invoice(amount, extra))


@app.command("rpc")
def rpc(
    ctx: typer.Context,
    method: str = typer.Argument(..., help="JSON-RPC method"),
    params: str = typer.Argument("[]", help="JSON array or object of params"),
):
    """Send a raw JSON-RPC call (c-lightning only)."""

    async def operation(b: LightningBackend) -> Any:
        if not isinstance(b, CLightningBackend):
            raise InvalidArgument(f'"rpc" is not supported by the {b.name} backend', argument="backend")
        try:
            parsed = json.loads(params)
        except json.JSONDecodeError as exc:
            raise InvalidArgument(f'Invalid argument ("params"): {exc}', argument="params") from exc
        return await b.cmd(method, parsed)

    _run(ctx, operation)


if __name__ == "__main__":
    app()
