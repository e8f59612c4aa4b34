"""CLI interface for the desktop companion.

This module provides a Typer-based command-line interface for pairing the
device with Home Assistant, toggling sensors, and running the agent.
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from desktop_companion.config import SettingsSaveError, get_settings
from desktop_companion.device import DeviceService, build_service
from desktop_companion.hass_client import HassClientError
from desktop_companion.telemetry import configure_logging, mask_secret

app = typer.Typer(help="Desktop Companion - push desktop telemetry to Home Assistant")
console = Console()


def _load_service() -> DeviceService:
    """Build the device service from environment configuration."""
    config = get_settings()
    configure_logging(config.log_level, config.log_dir, config.log_format)
    return build_service(config)


def _fail(error: Exception) -> typer.Exit:
    console.print(f"[red]Error: {error}[/red]")
    return typer.Exit(1)


@app.command(name="run")
def run_command() -> None:
    """Run the background polling loop until interrupted."""
    service = _load_service()
    console.print("[green]Desktop Companion running.[/green] Press Ctrl+C to stop.")
    try:
        asyncio.run(service.run())
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")


@app.command(name="register")
def register_command() -> None:
    """Register this device with Home Assistant and declare its sensors."""
    service = _load_service()
    try:
        webhook_id = asyncio.run(service.register())
    except (HassClientError, SettingsSaveError) as e:
        raise _fail(e) from e
    console.print(f"[green]Registered.[/green] Webhook: {mask_secret(webhook_id)}")


@app.command(name="configure")
def configure_command(
    server_url: Optional[str] = typer.Option(
        None, "--server-url", "-s", help="Home Assistant URL, e.g. https://ha.local:8123"
    ),
    token: Optional[str] = typer.Option(None, "--token", "-t", help="Long-lived access token"),
    interval: Optional[int] = typer.Option(
        None, "--interval", "-i", min=1, help="Update interval in seconds"
    ),
    language: Optional[str] = typer.Option(None, "--language", help="UI language code"),
    autostart: Optional[bool] = typer.Option(
        None, "--autostart/--no-autostart", help="Start with the user session"
    ),
    register: bool = typer.Option(
        True, "--register/--no-register", help="Re-register when URL or token changes"
    ),
) -> None:
    """Update settings. Omitted options keep their current value.

    Examples:
        desktop-companion configure --server-url https://ha.local:8123 --token abc...
        desktop-companion configure --interval 30 --no-register
    """
    service = _load_service()

    async def _configure() -> str | None:
        current = await service.get_settings()
        return await service.save_settings(
            server_url=server_url if server_url is not None else current.server_url,
            access_token=token if token is not None else current.access_token,
            update_interval=interval if interval is not None else current.update_interval,
            language=language if language is not None else current.language,
            autostart=autostart if autostart is not None else current.autostart,
            reregister=register,
        )

    try:
        webhook_id = asyncio.run(_configure())
    except (ValueError, HassClientError, SettingsSaveError) as e:
        raise _fail(e) from e

    console.print("[green]Settings saved.[/green]")
    if webhook_id:
        console.print(f"[green]Registered.[/green] Webhook: {mask_secret(webhook_id)}")


@app.command(name="sensors")
def sensors_command() -> None:
    """List every sensor toggle and whether it is enabled."""
    service = _load_service()
    items = asyncio.run(service.sensor_list())

    table = Table(title=f"Sensors ({len(items)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Enabled", style="green")
    table.add_column("Updates", style="blue")
    for item in items:
        table.add_row(
            item.id,
            item.name,
            "yes" if item.enabled else "no",
            "every interval" if item.updates_at_interval else "once",
        )
    console.print(table)


def _toggle(sensor_id: str, enabled: bool) -> None:
    service = _load_service()
    try:
        asyncio.run(service.toggle_sensor(sensor_id, enabled))
    except (ValueError, SettingsSaveError) as e:
        raise _fail(e) from e
    state = "enabled" if enabled else "disabled"
    console.print(f"[green]{sensor_id} {state}.[/green]")


@app.command(name="enable")
def enable_command(sensor_id: str = typer.Argument(..., help="Sensor toggle id")) -> None:
    """Enable a sensor toggle."""
    _toggle(sensor_id, True)


@app.command(name="disable")
def disable_command(sensor_id: str = typer.Argument(..., help="Sensor toggle id")) -> None:
    """Disable a sensor toggle."""
    _toggle(sensor_id, False)


@app.command(name="update-now")
def update_now_command() -> None:
    """Push the current dynamic sensor values immediately."""
    service = _load_service()
    try:
        count = asyncio.run(service.update_now())
    except HassClientError as e:
        raise _fail(e) from e
    console.print(f"[green]Pushed {count} sensor values.[/green]")


@app.command(name="status")
def status_command() -> None:
    """Show the current settings and registration status."""
    service = _load_service()
    view = asyncio.run(service.get_settings())

    table = Table(title="Desktop Companion")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white", overflow="fold")
    table.add_row("Server URL", view.server_url or "[yellow]not set[/yellow]")
    table.add_row("Access token", mask_secret(view.access_token) or "[yellow]not set[/yellow]")
    table.add_row("Device ID", view.device_id)
    table.add_row("Webhook ID", mask_secret(view.webhook_id) or "-")
    table.add_row("Registered", "[green]yes[/green]" if view.is_registered else "[red]no[/red]")
    table.add_row("Update interval", f"{view.update_interval}s")
    table.add_row("Language", view.language)
    table.add_row("Autostart", "yes" if view.autostart else "no")
    console.print(table)


@app.command(name="public-ip")
def public_ip_command() -> None:
    """Show this machine's public IP (for reverse proxy allowlists)."""
    service = _load_service()
    try:
        ip = asyncio.run(service.public_ip())
    except HassClientError as e:
        raise _fail(e) from e
    console.print(ip)


if __name__ == "__main__":
    app()
