import json
import os
import sys
from pathlib import Path
from typing import NoReturn

from rich.console import Console
from rich.markup import escape

from lamina.config import LaminaConfig
from lamina.descriptor import ServiceDescriptor
from lamina.exceptions import InvalidAuthenticationError, LayerCatalogError, MonitorApiError
from lamina.layers import FunctionInfo
from lamina.monitors import MonitorSyncReport
from lamina.plugin import apply_layers, load_catalog_for_region, sync_service_monitors

console = Console(stderr=True)


def _handle_error(error: Exception) -> NoReturn:
    if os.getenv("LAMINA_DEBUG", "0") == "1":
        raise error
    console.print(f"[bold red]✗ {escape(str(error))}[/bold red]", highlight=False)
    raise SystemExit(1) from None


def _load(service_file: Path) -> tuple[ServiceDescriptor, LaminaConfig]:
    try:
        descriptor = ServiceDescriptor.from_file(service_file)
        config = LaminaConfig.from_custom(descriptor.custom)
    except (OSError, json.JSONDecodeError, TypeError, ValueError) as e:
        _handle_error(e)
    return descriptor, config


def _print_layers_summary(handlers: list[FunctionInfo]) -> None:
    for handler in handlers:
        layers = handler.handler.get("layers")
        if layers:
            console.print(f"[green]✓[/green] {handler.name}", highlight=False)
            for arn in layers:
                console.print(f"    {arn}", highlight=False)
        else:
            console.print(f"[dim]- {handler.name} (no layers)[/dim]", highlight=False)


def run_layers(service_file: Path, output: Path | None = None) -> None:
    descriptor, config = _load(service_file)
    base_dir = service_file.resolve().parent
    try:
        catalog = load_catalog_for_region(config, descriptor.region, base_dir)
    except LayerCatalogError as e:
        _handle_error(e)

    handlers = apply_layers(descriptor, config, catalog)
    _print_layers_summary(handlers)

    content = json.dumps(descriptor.to_dict(), indent=2)
    if output is None:
        sys.stdout.write(content + "\n")
    else:
        output.write_text(content + "\n", encoding="utf-8")
        console.print(f"\nWrote {output}", highlight=False)


def _print_monitors_summary(report: MonitorSyncReport) -> None:
    for label, ids in (
        ("Created", report.created),
        ("Updated", report.updated),
        ("Unchanged", report.unchanged),
        ("Deleted", report.deleted),
    ):
        if ids:
            console.print(f"[bold]{label}:[/bold] {', '.join(ids)}", highlight=False)
    for failure in report.failures:
        console.print(
            f"[bold red]✗[/bold red] {failure.action.value} '{failure.serverless_monitor_id}': "
            f"{escape(str(failure.error))}",
            highlight=False,
        )


def run_monitors(service_file: Path) -> None:
    descriptor, config = _load(service_file)
    if not config.monitors_enabled:
        console.print("[yellow]No monitors configured[/yellow]")
        return

    try:
        report = sync_service_monitors(descriptor, config)
    except InvalidAuthenticationError as e:
        console.print("[bold red]✗ Monitor API rejected the API or application key[/bold red]")
        _handle_error(e)
    except (MonitorApiError, ValueError) as e:
        _handle_error(e)

    _print_monitors_summary(report)
    if not report.ok:
        raise SystemExit(1)
