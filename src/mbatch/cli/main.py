"""CLI commands for mbatch.

Usage:
    mbatch video <descriptor.json> [--json]
    mbatch images <descriptor.json> [--json]
    mbatch config [--json]
    mbatch config set <key> <value>
"""

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from mbatch.cli.i18n import get_help
from mbatch.config.manager import ConfigManager
from mbatch.models.types import Batch, BatchResult, Error, MediaKind, ProgressSample
from mbatch.models.validators import BatchDataError, validate_image_lists, validate_video_lists
from mbatch.services.dispatcher import BatchDispatcher
from mbatch.services.error_handling import ErrorCategory
from mbatch.storage.local import LocalArtifactStore

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

LOG_TAIL_LINES = 20


def configure_logging(verbose: bool) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )


def load_descriptor(path: Path) -> dict:
    """Load a batch descriptor JSON file.

    Raises:
        click.BadParameter: If the file is not a JSON object
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise click.BadParameter(f"Could not read descriptor {path}: {e}")
    if not isinstance(data, dict):
        raise click.BadParameter(f"Descriptor {path} must contain a JSON object")
    return data


def log_tail(logs: str | None, lines: int = LOG_TAIL_LINES) -> str:
    """Return the last lines of encoder output."""
    if not logs:
        return ""
    return "\n".join(logs.rstrip().splitlines()[-lines:])


def build_dispatcher(config_manager: ConfigManager) -> BatchDispatcher:
    """Create a dispatcher from the current configuration."""
    config = config_manager.config
    store = LocalArtifactStore(
        output_root=config.storage.output_root_path,
        app_folder=config.storage.app_folder,
    )
    return BatchDispatcher(
        artifact_store=store,
        scratch_dir=config_manager.ensure_scratch_dir(),
        encoder_binary=config.encoder.binary,
        terminate_timeout=config.encoder.terminate_timeout,
        kill_timeout=config.encoder.kill_timeout,
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help=get_help("cli.verbose"))
@click.pass_context
def cli(ctx, verbose: bool):
    """mbatch - batch media conversion through an external encoder"""
    ctx.ensure_object(dict)
    configure_logging(verbose)
    if "config" not in ctx.obj:
        ctx.obj["config"] = ConfigManager()


# Override help text dynamically based on locale
cli.help = get_help("cli.description")


@cli.command()
@click.argument("descriptor", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "output_json", is_flag=True, help=get_help("video.json"))
@click.pass_context
def video(ctx, descriptor: Path, output_json: bool):
    """Run a video batch."""
    _run_batch(ctx, MediaKind.VIDEO, descriptor, output_json)


video.help = get_help("video.description")


@cli.command()
@click.argument("descriptor", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "output_json", is_flag=True, help=get_help("images.json"))
@click.pass_context
def images(ctx, descriptor: Path, output_json: bool):
    """Run an image batch."""
    _run_batch(ctx, MediaKind.IMAGE, descriptor, output_json)


images.help = get_help("images.description")


def build_batch(kind: MediaKind, data: dict) -> Batch:
    """Validate descriptor lists and build the batch they describe.

    Raises:
        BatchDataError: If required lists are missing or malformed
    """
    folder = data.get("folder") or ""
    title = data.get("notification_title")
    if kind is MediaKind.VIDEO:
        validate_video_lists(
            data.get("commands"),
            data.get("source_paths"),
            data.get("formats"),
            data.get("durations"),
        )
        return Batch.for_videos(
            data["commands"],
            data.get("fallback_commands"),
            data["source_paths"],
            data["formats"],
            data["durations"],
            folder=folder,
            notification_title=title,
        )
    validate_image_lists(data.get("commands"), data.get("source_paths"), data.get("formats"))
    return Batch.for_images(
        data["commands"],
        data["source_paths"],
        data["formats"],
        folder=folder,
        notification_title=title,
    )


def _run_batch(ctx, kind: MediaKind, descriptor_path: Path, output_json: bool) -> None:
    data = load_descriptor(descriptor_path)
    try:
        batch = build_batch(kind, data)
    except BatchDataError as e:
        logger.error(f"Rejected batch: {e}")
        rejected = BatchResult(success=False, error_category=ErrorCategory.DATA.value)
        _report(rejected, None, output_json)
        sys.exit(1)

    dispatcher = build_dispatcher(ctx.obj["config"])

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>5.1f}%"),
        console=console,
        disable=output_json,
    )
    task_id = progress.add_task(batch.notification_title, total=100)

    def on_progress(sample: ProgressSample | None) -> None:
        if sample is None:
            return
        progress.update(
            task_id,
            completed=sample.progress,
            description=f"{batch.notification_title} ({sample.index + 1}/{len(batch)})",
        )

    unsubscribe = dispatcher.state_bus.subscribe_progress(on_progress)

    try:
        with progress:
            future = dispatcher.submit(batch)
            try:
                result = future.result()
            except KeyboardInterrupt:
                dispatcher.cancel()
                result = future.result()
    finally:
        unsubscribe()
        dispatcher.shutdown(wait=True)

    state = dispatcher.state_bus.latest_state
    _report(result, state if isinstance(state, Error) else None, output_json)
    if not result.success:
        sys.exit(1)


def _report(result: BatchResult, error: Error | None, output_json: bool) -> None:
    if output_json:
        data = result.to_dict()
        if error is not None:
            data["error"] = error.message
            data["encoder_logs"] = error.encoder_logs
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return

    if result.success:
        console.print(f"[green]✓ Saved {len(result.paths)} file(s)[/green]")
        for path in result.paths:
            console.print(f"  {path}", soft_wrap=True)
        return

    if result.cancelled:
        console.print("[yellow]Batch cancelled.[/yellow]")
    elif error is not None:
        console.print(f"[red]✗ {error.message}[/red]")
        tail = log_tail(error.encoder_logs)
        if tail:
            console.print("[dim]Encoder output (last lines):[/dim]")
            console.print(tail, markup=False, soft_wrap=True)
    else:
        console.print(f"[red]✗ Batch failed ({result.error_category})[/red]")

    if result.paths:
        console.print(f"[dim]{len(result.paths)} file(s) saved before stopping:[/dim]")
        for path in result.paths:
            console.print(f"  {path}", soft_wrap=True)


@cli.group(invoke_without_command=True)
@click.option("--json", "output_json", is_flag=True, help=get_help("config.json"))
@click.pass_context
def config(ctx, output_json: bool):
    """Display or modify configuration."""
    if ctx.invoked_subcommand is not None:
        return

    config_manager = ctx.obj["config"]
    all_config = config_manager.get_all()

    if output_json:
        click.echo(json.dumps(all_config, indent=2))
        return

    console.print("[bold]Current Configuration[/bold]")
    console.print()

    console.print("[cyan]Encoder Settings:[/cyan]")
    for name, value in all_config["encoder"].items():
        console.print(f"  encoder.{name}: {value}")
    console.print()

    console.print("[cyan]Storage Settings:[/cyan]")
    for name, value in all_config["storage"].items():
        console.print(f"  storage.{name}: {value}")
    console.print()

    console.print("[dim]Use 'mbatch config set <key> <value>' to change settings[/dim]")


config.help = get_help("config.description")


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx, key: str, value: str):
    """Modify configuration value."""
    config_manager = ctx.obj["config"]

    try:
        config_manager.set(key, value)
        config_manager.save()
        console.print(f"[green]✓ Set {key} = {config_manager.get(key)}[/green]")
    except (KeyError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


config_set.help = get_help("config.set.description")


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
