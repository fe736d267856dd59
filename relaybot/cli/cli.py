"""Command-line entry point for Relaybot."""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from relaybot import __version__
from relaybot.core.config import get_config_path, load_config, providers_status
from relaybot.core.providers import ConfigurationError, InvocationError, build_provider
from relaybot.core.providers.registry import PROVIDERS
from relaybot.utils.log import enable_file_logging, get_logger

console = Console()
logger = get_logger()


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Relaybot - personal AI assistant runtime"""


@cli.command(name="version")
def version_cmd() -> None:
    """Show version information"""
    console.print(f"Relaybot version {__version__}")


@cli.command(name="status")
def status_cmd() -> None:
    """Show configuration and provider credential status"""
    config_path = get_config_path()
    config = load_config(config_path)
    model = config.agents.defaults.model

    console.print("\n[bold]Relaybot Status[/bold]\n")
    console.print(
        f"Config: {escape(str(config_path))} "
        f"{'[green]OK[/green]' if config_path.exists() else '[red]MISSING[/red]'}"
    )
    console.print(f"Model: {escape(model)}")
    console.print(f"Provider: {config.get_provider_name(model) or 'not configured'}")

    status = providers_status(config)
    for spec in PROVIDERS:
        state = "[green]SET[/green]" if status.get(spec.name) else "[dim]NOT SET[/dim]"
        console.print(f"  {spec.label}: {state}")
    console.print()


@cli.command(name="chat")
@click.option("-m", "--message", required=True, help="Message to send")
@click.option("--model", type=str, default=None, help="Model to use instead of the configured default")
@click.option(
    "--debug-log",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write debug logs to this file",
)
def chat_cmd(message: str, model: Optional[str], debug_log: Optional[Path]) -> None:
    """Send a single message and print the reply"""
    if debug_log:
        enable_file_logging(debug_log)

    config = load_config()
    defaults = config.agents.defaults
    try:
        provider = build_provider(config, model)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    try:
        response = asyncio.run(
            provider.chat(
                [{"role": "user", "content": message}],
                max_tokens=defaults.max_tokens,
                temperature=defaults.temperature,
            )
        )
    except InvocationError as exc:
        logger.debug(
            "[cli] Chat failed",
            extra={"error_code": exc.error_code, "fallback_model": exc.fallback_model},
        )
        raise click.ClickException(str(exc)) from exc

    console.print(escape(response.content or ""))


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
