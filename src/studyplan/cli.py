"""Command-line interface for studyplan."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from . import context
from .config import discover_config
from .exceptions import StudyPlanError
from .export import DEADLINE_TYPE, STUDY_TYPE, calendar_items
from .loader import load_schedule, read_blocks, write_blocks
from .logger import VERBOSITY_DEBUG, VERBOSITY_SILENT, setup_logger
from .models import TimeBlock
from .scheduler import Rescheduler, ScheduleWarnings, get_horizon

app = typer.Typer(
    name="studyplan",
    help="Deadline-driven study session planner",
    add_completion=False,
)

NowOption = Annotated[
    str | None,
    typer.Option(
        "--now",
        "-n",
        help="Current moment for scheduling (YYYY-MM-DDTHH:MM). Defaults to now",
    ),
]
BlocksOption = Annotated[
    Path | None,
    typer.Option("--blocks", "-b", help="Block file with previously saved blocks"),
]
OutputOption = Annotated[
    Path | None,
    typer.Option("--output", "-o", help="Save the resulting blocks to this block file"),
]


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=VERBOSITY_SILENT,
            max=VERBOSITY_DEBUG,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file (default: studyplan_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for studyplan commands."""
    setup_logger(verbose)
    context.set_config_path(config)


def _parse_now(now: str | None) -> datetime:
    if now is None:
        return datetime.now()
    try:
        return datetime.fromisoformat(now)
    except ValueError:
        typer.echo(
            f"Error: Invalid date-time '{now}'. Use YYYY-MM-DDTHH:MM format.",
            err=True,
        )
        raise typer.Exit(1) from None


def _build_rescheduler(file: Path, now: datetime, blocks_file: Path | None) -> Rescheduler:
    """Load config and schedule, then run one pass."""
    config = discover_config(file)
    schedule = load_schedule(file, config=config)

    blocks: dict[str, TimeBlock] = {b.id: b for b in schedule.blocks}
    if blocks_file is not None:
        blocks.update((b.id, b) for b in read_blocks(blocks_file))

    horizon = get_horizon(schedule.courses, schedule.tasks, now, config.horizon)
    rescheduler = Rescheduler(
        config.preferences,
        horizon,
        tasks=schedule.tasks,
        events=schedule.events,
        blocks=blocks.values(),
        auto_reschedule=config.engine.auto_reschedule,
    )
    rescheduler.reschedule()
    return rescheduler


def _display_schedule(rescheduler: Rescheduler) -> None:
    """Display committed blocks with events and deadlines to stdout."""
    manual = {b.id for b in rescheduler.blocks if b.is_manual}

    typer.echo("Study Schedule")
    typer.echo("=" * 80)

    current_day = None
    for item in calendar_items(rescheduler.blocks, rescheduler.events, rescheduler.tasks):
        if item.start.date() != current_day:
            current_day = item.start.date()
            typer.echo("")
            typer.echo(f"{current_day:%A %Y-%m-%d}")
        if item.type == DEADLINE_TYPE:
            when = f"{item.start:%H:%M}      "
        else:
            when = f"{item.start:%H:%M}-{item.end:%H:%M}"
        line = f"  {when}  {item.type:<12} {item.title}"
        if item.type == STUDY_TYPE:
            line += f" ({item.id})"
            if item.id in manual:
                line += " [pinned]"
        elif item.location:
            line += f" @ {item.location}"
        typer.echo(line)


def _display_warnings(warnings: ScheduleWarnings) -> None:
    if not warnings:
        return
    typer.echo(f"\nWarnings: {warnings.message}", err=True)
    for detail in warnings.details:
        typer.echo(f"  - {detail.task_id}: {detail.missing_hours:.2f}h unscheduled", err=True)


@app.command()
def schedule(
    file: Annotated[Path, typer.Argument(help="Path to the schedule YAML file")] = Path(
        "schedule.yaml"
    ),
    now: NowOption = None,
    blocks: BlocksOption = None,
    output: OutputOption = None,
) -> None:
    """Allocate study blocks and display the schedule with warnings."""
    parsed_now = _parse_now(now)
    try:
        rescheduler = _build_rescheduler(file, parsed_now, blocks)
    except (StudyPlanError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    _display_schedule(rescheduler)
    _display_warnings(rescheduler.get_warnings())

    if output:
        write_blocks(output, rescheduler.blocks)
        typer.echo(f"\nBlocks written to {output}")


@app.command()
def move(  # noqa: PLR0913 - CLI command needs multiple options
    file: Annotated[Path, typer.Argument(help="Path to the schedule YAML file")],
    block_id: Annotated[str, typer.Argument(help="ID of the block to move")],
    new_start: Annotated[str, typer.Argument(help="New start (YYYY-MM-DDTHH:MM)")],
    now: NowOption = None,
    blocks: BlocksOption = None,
    output: OutputOption = None,
) -> None:
    """Move a block to a new start and pin it there.

    Exits with status 1 and lists the conflicting IDs when the block would
    overlap another block or an event.
    """
    parsed_now = _parse_now(now)
    try:
        target = datetime.fromisoformat(new_start)
    except ValueError:
        typer.echo(
            f"Error: Invalid date-time '{new_start}'. Use YYYY-MM-DDTHH:MM format.",
            err=True,
        )
        raise typer.Exit(1) from None

    try:
        rescheduler = _build_rescheduler(file, parsed_now, blocks)
        result = rescheduler.move_block(block_id, target)
    except (StudyPlanError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    if not result.ok:
        typer.echo(
            f"Error: Cannot move {block_id} to {target:%Y-%m-%d %H:%M}; "
            f"conflicts with: {', '.join(result.conflicts)}",
            err=True,
        )
        raise typer.Exit(1)

    typer.echo(f"Moved {block_id} to {target:%Y-%m-%d %H:%M}")
    _display_schedule(rescheduler)
    _display_warnings(rescheduler.get_warnings())

    if output:
        write_blocks(output, rescheduler.blocks)
        typer.echo(f"\nBlocks written to {output}")


def main() -> int:
    """Main entry point."""
    app()
    return 0


if __name__ == "__main__":
    main()
