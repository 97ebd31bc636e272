import logging
import sys
from importlib import metadata
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import click
from appdirs import user_log_dir
from rich.console import Console
from rich.logging import RichHandler

from lamina.cli.commands import run_layers, run_monitors

console = Console(stderr=True)

app_logger = logging.getLogger("lamina")
# Capture everything internally; handlers decide what is shown
app_logger.setLevel(logging.DEBUG)

app_name = "lamina"
log_dir = Path(user_log_dir(app_name))
log_file_path = log_dir / f"{app_name}.log"

logger = logging.getLogger(__name__)


def _setup_file_logging() -> None:
    if any(isinstance(h, TimedRotatingFileHandler) for h in app_logger.handlers):
        return
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = TimedRotatingFileHandler(
        filename=str(log_file_path), when="D", interval=1, backupCount=7, encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    file_handler.setFormatter(file_formatter)
    app_logger.addHandler(file_handler)


def _setup_console_logging(verbose: int) -> None:
    console_handler = RichHandler(
        console=console,
        show_time=False,
        show_level=True,
        markup=False,
        tracebacks_suppress=[click],
        rich_tracebacks=True,
    )
    if verbose == 1:
        console_handler.setLevel(logging.INFO)
        console.print("[italic blue]Console verbosity: INFO[/]")
    else:
        console_handler.setLevel(logging.DEBUG)
        console.print("[italic green]Console verbosity: DEBUG[/]")

    console.print(f"[italic dim]Logs saved to: {log_file_path}[/]")
    app_logger.addHandler(console_handler)


@click.group(invoke_without_command=True)
@click.option(
    "--verbose", "-v", count=True, help="Increase verbosity. -v for INFO, -vv for DEBUG logs."
)
@click.option("--version", is_flag=True, help="Show lamina version.")
@click.pass_context
def cli(ctx: click.Context, verbose: int, version: bool) -> None:
    if version:
        _version()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        ctx.exit(0)

    _setup_file_logging()
    if verbose > 0:
        _setup_console_logging(verbose)


@click.command()
@click.argument("service_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Write the updated service JSON here instead of stdout.",
)
def layers(service_file: Path, output: Path | None) -> None:
    """
    Attaches library and extension layers to the functions of a service.
    SERVICE_FILE is the output of `serverless print --format json`.
    """
    logger.info("Applying layers to %s", service_file)
    run_layers(service_file, output)


@click.command()
@click.argument("service_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def monitors(service_file: Path) -> None:
    """Creates, updates and deletes monitors to match the service configuration."""
    logger.info("Syncing monitors for %s", service_file)
    run_monitors(service_file)


@click.command()
def version() -> None:
    """Shows version and exit."""
    _version()


cli.add_command(layers)
cli.add_command(monitors)
cli.add_command(version)


def _version() -> None:
    lamina_version = metadata.version("lamina")
    console.print(f"lamina version: {lamina_version}", highlight=False)
    sys.exit(0)
