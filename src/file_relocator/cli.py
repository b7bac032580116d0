"""CLI entry point for the file relocator."""

import json
from pathlib import Path

import click
from loguru import logger

from .config import RelocatorConfig
from .errors import ConfigError
from .executor import effective_destination
from .models import BatchResult, MoveDescriptor, MoveStatus
from .ops.conflicts import ConflictResolver
from .progress import CompletionSink, LoggingObserver
from .sanitize import sanitize_basename
from .scheduler import MoveScheduler

log = logger.bind(component="cli")


class EchoCompletion(CompletionSink):
    """Single-line status display for the coordinator's progress."""

    def progress(self, total: int, remaining: int) -> None:
        click.echo(f"\r  [{total - remaining}/{total}] moved", nl=False)

    def finished(self, result: BatchResult) -> None:
        click.echo("")  # End the status line


def _find_config_file() -> Path | None:
    """Look for .env in cwd."""
    candidate = Path.cwd() / ".env"
    return candidate if candidate.is_file() else None


def load_plan(plan_file: Path, config: RelocatorConfig) -> list[MoveDescriptor]:
    """Read a JSON move plan produced by an external naming step.

    Format: a list of {"source": str, "dest_dir": str, "basename": str}
    objects; "basename" and "timestamp" are optional.

    Raises ConfigError on malformed input.
    """
    try:
        entries = json.loads(plan_file.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read plan {plan_file}: {e}") from e
    if not isinstance(entries, list):
        raise ConfigError(f"Plan {plan_file} must be a JSON list")

    descriptors = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict) or "source" not in entry or "dest_dir" not in entry:
            raise ConfigError(f"Plan entry {i} needs 'source' and 'dest_dir'")
        desc = MoveDescriptor.from_source(
            Path(entry["source"]).expanduser(),
            Path(entry["dest_dir"]).expanduser(),
            entry.get("basename"),
            move_enabled=config.move_enabled,
            rename_enabled=config.rename_enabled,
        )
        if entry.get("timestamp") is not None:
            desc.timestamp = float(entry["timestamp"])
        descriptors.append(desc)
    return descriptors


def _descriptors_from_sources(
    sources: tuple[Path, ...], dest: Path | None, config: RelocatorConfig
) -> list[MoveDescriptor]:
    descriptors = []
    for source in sources:
        source = source.absolute()
        descriptors.append(
            MoveDescriptor.from_source(
                source,
                dest if dest is not None else source.parent,
                sanitize_basename(source.stem),
                move_enabled=config.move_enabled,
                rename_enabled=config.rename_enabled,
            )
        )
    return descriptors


def _display_summary(result: BatchResult, descriptors: list[MoveDescriptor]) -> None:
    click.echo(
        f"\nMove complete: {result.completed}/{result.total} succeeded, "
        f"{result.failed} failed, {result.not_found} not found"
    )
    problems = [d for d in descriptors if d.status != MoveStatus.RENAMED]
    if problems:
        click.echo("\nNot moved:")
        for desc in problems:
            reason = desc.outcome or desc.status
            click.echo(f"  - {desc.source_path} ({reason})")


@click.command()
@click.argument(
    "sources",
    nargs=-1,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-d",
    "--dest",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Destination directory for SOURCES.",
)
@click.option(
    "--plan",
    "plan_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON move plan instead of SOURCES.",
)
@click.option(
    "--dry-run", is_flag=True, help="Show resolved destinations without moving."
)
@click.option(
    "--rename-in-place", is_flag=True, help="Rename files where they are; don't move them."
)
@click.option("--keep-names", is_flag=True, help="Keep original filenames.")
@click.option(
    "--duplicates-dir",
    default=None,
    help="Subdirectory for indexed duplicates ('' to keep them alongside).",
)
@click.option("--no-cleanup", is_flag=True, help="Keep source directories emptied by moves.")
@click.option(
    "--reap-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Never remove emptied directories at or above this one.",
)
@click.option("--timeout", type=float, default=None, help="Seconds allowed per move.")
@click.option("--workers", type=int, default=None, help="Parallel moves (0 = auto).")
@click.option("--no-touch", is_flag=True, help="Keep modification times of moved files.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to .env file.",
)
@click.pass_context
def main(
    ctx: click.Context,
    sources: tuple[Path, ...],
    dest: Path | None,
    plan_file: Path | None,
    dry_run: bool,
    rename_in_place: bool,
    keep_names: bool,
    duplicates_dir: str | None,
    no_cleanup: bool,
    reap_root: Path | None,
    timeout: float | None,
    workers: int | None,
    no_touch: bool,
    verbose: bool,
    config_file: Path | None,
) -> None:
    """Move files to their destinations, resolving name collisions."""
    if bool(sources) == bool(plan_file):
        raise click.UsageError("Give exactly one of SOURCES or --plan.")
    if sources and dest is None and not rename_in_place:
        raise click.UsageError("--dest is required unless --rename-in-place is set.")

    # Precedence: CLI flags > environment variables > .env file
    env_file = config_file or _find_config_file()

    # Pass CLI flags as kwargs to avoid env pollution
    config_kwargs: dict = {"dry_run": dry_run, "verbose": verbose}
    if verbose:
        config_kwargs["log_level"] = "DEBUG"
    if rename_in_place:
        config_kwargs["move_enabled"] = False
    if keep_names:
        config_kwargs["rename_enabled"] = False
    if duplicates_dir is not None:
        config_kwargs["duplicates_dir_name"] = duplicates_dir
    if no_cleanup:
        config_kwargs["remove_empty_dirs"] = False
    if reap_root is not None:
        config_kwargs["reap_root"] = reap_root
    if timeout is not None:
        config_kwargs["move_timeout"] = timeout
    if workers is not None:
        config_kwargs["max_workers"] = workers
    if no_touch:
        config_kwargs["touch_on_success"] = False

    config = RelocatorConfig(_env_file=env_file, **config_kwargs)
    config.setup_logging()
    if env_file:
        log.debug(f"Loaded settings from {env_file}")

    if plan_file:
        try:
            descriptors = load_plan(plan_file, config)
        except ConfigError as e:
            raise click.UsageError(str(e)) from e
    else:
        descriptors = _descriptors_from_sources(sources, dest, config)

    if config.dry_run:
        ConflictResolver().resolve_all(descriptors)
        click.echo(f"[DRY-RUN] {len(descriptors)} files, no changes will be made")
        for desc in descriptors:
            click.echo(f"  {desc.source_path}")
            click.echo(f"       -> {effective_destination(desc, config)}")
        return

    click.echo(f"Moving {len(descriptors)} files")
    scheduler = MoveScheduler(
        config,
        completion=EchoCompletion(),
        observer_factory=LoggingObserver,
    )
    scheduler.run(descriptors)
    try:
        result = scheduler.wait()
    except KeyboardInterrupt:
        click.echo("\nInterrupted, cancelling outstanding moves")
        scheduler.shutdown()
        result = scheduler.wait()

    _display_summary(result, descriptors)
    if result.completed < result.total:
        ctx.exit(1)
