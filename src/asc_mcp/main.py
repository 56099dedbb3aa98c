"""Command-line entry point for the asc-mcp server."""

import asyncio
import logging
import os
import sys
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console

from .auth import load_private_key
from .client import AppStoreConnectClient
from .config import get_config, setup_logging
from .consts import PACKAGE_VERSION, SERVER_NAME
from .exceptions import ConfigError
from .registry import ToolRegistry
from .server import serve_stdio
from .tools import CATEGORIES, build_registry

logger = logging.getLogger("asc-mcp.main")

app = typer.Typer(
    name=SERVER_NAME,
    help="MCP server for Apple App Store Connect",
    add_completion=False,
)

console = Console(soft_wrap=True)

REQUIRED_ENV = ("ASC_ISSUER_ID", "ASC_KEY_ID", "ASC_PRIVATE_KEY_PATH")


@app.callback(invoke_without_command=True)
def root(ctx: typer.Context) -> None:
    """
    asc-mcp exposes App Store Connect as Model Context Protocol tools over stdio.

    Credentials come from ASC_ISSUER_ID, ASC_KEY_ID and ASC_PRIVATE_KEY_PATH.
    Running without a command starts the server.
    """
    if ctx.invoked_subcommand is None:
        serve()


@app.command()
def serve() -> None:
    """Run the MCP server on stdin/stdout."""
    config = get_config()
    setup_logging(config.log_level)
    logger.info(f"Starting {SERVER_NAME} v{PACKAGE_VERSION} for {config.base_url}")
    asyncio.run(_serve(AppStoreConnectClient(config)))


async def _serve(client: AppStoreConnectClient) -> None:
    async with client:
        registry = build_registry(client)
        logger.info(f"Registered {len(registry)} tools")
        await serve_stdio(registry)
    logger.debug("Client closed")


@app.command()
def validate() -> None:
    """Check credentials configuration without calling App Store Connect."""
    console.print("Validating configuration...\n")

    has_errors = False
    for name in REQUIRED_ENV:
        value = os.environ.get(name, "")
        if not value:
            console.print(f"[red]\\[FAIL][/red] {name} is not set", highlight=False)
            has_errors = True
        elif name == "ASC_PRIVATE_KEY_PATH" and not os.path.isfile(
            os.path.expanduser(value)
        ):
            console.print(
                f"[red]\\[FAIL][/red] {name} file not found: {value}", highlight=False
            )
            has_errors = True
        else:
            shown = f"{value[:8]}..." if name == "ASC_ISSUER_ID" else value
            console.print(f"[green]\\[OK][/green]   {name} is set ({shown})", highlight=False)

    console.print()
    if has_errors:
        console.print("Configuration validation failed")
        raise typer.Exit(code=1)

    try:
        config = get_config()
        load_private_key(config.private_key_path)
    except (ValidationError, ConfigError) as e:
        console.print(
            f"[red]\\[FAIL][/red] Configuration load error: {_reason(e)}",
            highlight=False,
        )
        raise typer.Exit(code=1) from e

    console.print("[green]\\[OK][/green]   Configuration is valid", highlight=False)


@app.command("tools")
def list_tools() -> None:
    """List available MCP tools (no credentials needed)."""
    total = len(build_registry(None))
    console.print(f"Available MCP Tools ({total} total):\n", highlight=False)

    for category, module in CATEGORIES.items():
        registry = ToolRegistry(None)
        module.register(registry)
        console.print(f"[bold]{category}:[/bold]")
        for tool in registry.list_tools():
            console.print(f"  {tool.name} - {tool.description}", highlight=False)
        console.print()


@app.command()
def version(
    short: Annotated[
        bool, typer.Option("--short", "-s", help="Print only the version number")
    ] = False,
) -> None:
    """Print version information."""
    if short:
        console.print(PACKAGE_VERSION, highlight=False)
    else:
        console.print(f"{SERVER_NAME} version {PACKAGE_VERSION}", highlight=False)


def _reason(error: Exception) -> str:
    if isinstance(error, ValidationError):
        return "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in error.errors()
        )
    if isinstance(error, ConfigError):
        return "; ".join([error.message, *error.errors])
    return str(error)


def main() -> None:
    """Main entry point."""
    try:
        app()
    except (ValidationError, ConfigError) as e:
        print(f"Configuration error: {_reason(e)}", file=sys.stderr)
        print("Run 'asc-mcp validate' for details", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
