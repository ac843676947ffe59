"""CLI commands for fps-monitor."""

import click


@click.group()
@click.version_option(package_name="fps-monitor")
def main() -> None:
    """Live FPS and frame-time telemetry via PresentMon."""
    pass


@main.command()
@click.argument("process_name")
@click.option("--json", "as_json", is_flag=True, help="Print one JSON object per event")
def watch(process_name: str, as_json: bool) -> None:
    """Monitor PROCESS_NAME until it exits or Ctrl+C is pressed."""
    import asyncio

    from fps_monitor import logging as fps_log
    from fps_monitor.config import Config

    config = Config.load()
    fps_log.configure(config)

    try:
        exit_code = asyncio.run(run_watch(config, process_name, as_json=as_json))
    except KeyboardInterrupt:
        # Windows has no loop signal handlers; the ingest task drained on cancel
        exit_code = 130

    if exit_code:
        raise SystemExit(exit_code)


async def run_watch(config, process_name: str, *, as_json: bool = False) -> int:
    """Run one monitoring session in the foreground.

    Returns:
        Process exit code: 1 if the capture could not be started, else 0.
    """
    import asyncio
    import json
    import signal

    from fps_monitor import logging as fps_log
    from fps_monitor.events import FpsError, to_message
    from fps_monitor.monitor import FpsMonitor

    failed = False

    def on_event(event) -> None:
        nonlocal failed
        if isinstance(event, FpsError):
            failed = True
        if as_json:
            click.echo(json.dumps(to_message(event)))
        else:
            _print_event(event)

    monitor = FpsMonitor(config, emit=on_event)

    def on_signal(sig: signal.Signals) -> None:
        if not as_json:
            fps_log.signal_received(sig.name)
            fps_log.monitor_stopping()
        monitor.stop()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, on_signal, sig)
        except NotImplementedError:
            pass  # Windows: KeyboardInterrupt handled by the caller

    monitor.start(process_name)
    await monitor.wait()
    return 1 if failed else 0


def _print_event(event) -> None:
    """Render one monitor event on the console."""
    from fps_monitor import logging as fps_log
    from fps_monitor.events import (
        FpsError,
        FpsSessionComplete,
        FpsStarted,
        FpsStopped,
        FpsUpdate,
    )

    if isinstance(event, FpsStarted):
        fps_log.monitor_started(event.process_name)
    elif isinstance(event, FpsUpdate):
        fps_log.fps_update(event.snapshot)
    elif isinstance(event, FpsSessionComplete):
        fps_log.session_summary(event.session)
    elif isinstance(event, FpsStopped):
        fps_log.monitor_stopped(event.process_name)
    elif isinstance(event, FpsError):
        fps_log.capture_error(event.message)


@main.command()
def locate() -> None:
    """Show which capture binary would be used."""
    from fps_monitor.capture import BinaryNotFoundError, binary_candidates, resolve_binary
    from fps_monitor.config import Config

    config = Config.load()

    try:
        path = resolve_binary(config)
    except BinaryNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"Capture binary: {path}")
    click.echo("\nSearch order:")
    candidates = binary_candidates(config)
    for candidate in candidates:
        marker = "*" if candidate == path else " "
        click.echo(f"  {marker} {candidate}")
    marker = " " if path in candidates else "*"
    click.echo(f"  {marker} PATH ({config.capture.binary_name})")


@main.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.command("show")
def config_show() -> None:
    """Display current configuration."""
    from fps_monitor.config import Config

    cfg = Config.load()

    click.echo(f"Config file: {cfg.config_path}")
    click.echo(f"Exists: {cfg.config_path.exists()}")
    click.echo(f"Log file: {cfg.log_path}")
    click.echo()
    click.echo("[capture]")
    click.echo(f"  binary_name = {cfg.capture.binary_name}")
    click.echo(f"  dev_path = {cfg.capture.dev_path}")
    click.echo(f"  resource_dir = {cfg.capture.resource_dir or '(package bin/)'}")
    click.echo()
    click.echo("[metrics]")
    click.echo(f"  window_seconds = {cfg.metrics.window_seconds}")
    click.echo(f"  status_recent_frames = {cfg.metrics.status_recent_frames}")
    click.echo()
    click.echo("[system]")
    click.echo(f"  log_max_bytes = {cfg.system.log_max_bytes}")
    click.echo(f"  log_backup_count = {cfg.system.log_backup_count}")


@config.command("edit")
def config_edit() -> None:
    """Open config file in editor."""
    import os
    import subprocess

    from fps_monitor.config import Config

    cfg = Config.load()

    if not cfg.config_path.exists():
        cfg.save()
        click.echo(f"Created default config at {cfg.config_path}")

    editor = os.environ.get("EDITOR", "notepad" if os.name == "nt" else "nano")
    subprocess.run([editor, str(cfg.config_path)])


@config.command("reset")
@click.confirmation_option(prompt="Reset config to defaults?")
def config_reset() -> None:
    """Reset configuration to defaults."""
    from fps_monitor.config import Config

    cfg = Config()
    cfg.save()
    click.echo(f"Config reset to defaults at {cfg.config_path}")


if __name__ == "__main__":
    main()
