"""
CLI entry point for the BitHive relayer examples.
"""

import asyncio
from pathlib import Path
from typing import Optional

import httpx
import structlog
import typer
from dotenv import load_dotenv
from pydantic import ValidationError

from .config import Settings, get_settings, missing_variables
from .errors import BitHiveError
from .scenarios import SCENARIOS, ScenarioContext

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ]
)

app = typer.Typer(
    name="bithive-examples",
    help="BitHive relayer examples: stake, unstake and withdraw BTC",
    add_completion=False,
)


@app.command()
def run(
    example: str = typer.Argument(
        ...,
        help="Example to run: " + ", ".join(SCENARIOS),
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to .env configuration file",
    ),
) -> None:
    """
    Run one of the example scenarios against the BitHive relayer.
    """
    scenario = SCENARIOS.get(example)
    if scenario is None:
        typer.echo(f"Invalid example: {example}", err=True)
        raise typer.Exit(1)

    try:
        settings = Settings.load(config_path) if config_path else get_settings()
    except ValidationError as e:
        missing = missing_variables(e)
        if not missing:
            typer.echo(f"Error: Invalid configuration: {e}", err=True)
        for name in missing:
            typer.echo(f"Error: Missing environment variable {name}", err=True)
        raise typer.Exit(1)

    try:
        context = ScenarioContext.from_settings(settings)
        asyncio.run(scenario(context))
    except (BitHiveError, httpx.HTTPError) as e:
        typer.echo(f"Error running {example}: {e}", err=True)
        raise typer.Exit(1)


def main() -> None:
    """Main entry point."""
    load_dotenv()
    app()


if __name__ == "__main__":
    main()
