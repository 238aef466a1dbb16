"""Command-line interface for daterecur."""

import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Optional

import click
import pydantic
import yaml

from . import __version__, constants
from .dates import format_date, to_date
from .errors import RecurrenceError
from .loader import find_recurrences_location, load_recurrences_from_path
from .recurrence import Recurrence
from .schema import GlobalConfig, RecurrenceEntry

logger = logging.getLogger(__name__)

path_option = click.option(
    "--path",
    "recurrences_path",
    type=click.Path(exists=True),
    help=(
        "Recurrences file or directory "
        "(default: DATERECUR_DIR, DATERECUR_FILE, ./recurrences/, then ./recurrences.yaml)"
    ),
)

from_option = click.option(
    "--from",
    "from_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Walk from this date instead of the start date (YYYY-MM-DD format)",
)


def complete_recurrence_id(ctx, _, incomplete):
    """Complete recurrence IDs from the recurrences path.

    Falls back to discovery if --path has not been parsed yet.
    """
    recurrences_path = ctx.params.get("recurrences_path")
    if recurrences_path is None:
        location = find_recurrences_location()
        if location is None:
            return []
        recurrences_path = location[1]

    try:
        recurrence_file = load_recurrences_from_path(Path(recurrences_path))
        if recurrence_file is None:
            return []
        recurrence_ids = sorted(r.id for r in recurrence_file.recurrences)
        return [rid for rid in recurrence_ids if rid.startswith(incomplete)]
    except (ValueError, OSError, yaml.YAMLError, pydantic.ValidationError, RecurrenceError):
        return []


def _resolve_recurrences_path(recurrences_path: Optional[str]) -> Path:
    """Use --path when given, otherwise discover the recurrences location."""
    if recurrences_path is not None:
        return Path(recurrences_path)

    location = find_recurrences_location()
    if location is None:
        click.echo(
            "Error: No recurrences found "
            f"(set {constants.ENV_RECURRENCES_DIR} or {constants.ENV_RECURRENCES_FILE}, "
            "or use --path)",
            err=True,
        )
        sys.exit(1)

    mode, path_obj = location
    logger.debug("Using recurrences %s: %s", mode, path_obj)
    return path_obj


def _load_entry(
    recurrences_path: Optional[str], recurrence_id: str
) -> tuple[RecurrenceEntry, GlobalConfig]:
    """Load one recurrence by id, exiting with an error message if it is missing."""
    path_obj = _resolve_recurrences_path(recurrences_path)
    recurrence_file = load_recurrences_from_path(path_obj)
    if recurrence_file is None:
        click.echo(f"Error: Path is neither a file nor a directory: {path_obj}", err=True)
        sys.exit(1)

    entry = recurrence_file.get(recurrence_id)
    if entry is None:
        click.echo(f"Error: Recurrence '{recurrence_id}' not found", err=True)
        sys.exit(1)

    return entry, recurrence_file.config


def _describe_rules(recurrence: Recurrence) -> str:
    return ", ".join(f"{r.measure.value}={sorted(r.units)}" for r in recurrence.rules) or "-"


def _print_recurrence_table(entries: list[RecurrenceEntry]) -> None:
    id_width = max(max(len(e.id) for e in entries), len("ID"))
    rules = [_describe_rules(e.to_recurrence()) for e in entries]
    rules_width = max(max(len(r) for r in rules), len("Rules"))
    rules_width = min(rules_width, constants.MAX_TABLE_COLUMN_WIDTH)

    click.echo(
        f"{'ID':<{id_width}}  {'Status':<10}  {'Start':<10}  {'End':<10}  {'Rules':<{rules_width}}"
    )
    click.echo("-" * (id_width + 10 + 10 + 10 + rules_width + 8))

    for entry, rule_text in zip(entries, rules):
        status = "✓ enabled" if entry.enabled else "  disabled"
        start = entry.start.isoformat() if entry.start else "-"
        end = entry.end.isoformat() if entry.end else "-"
        click.echo(
            f"{entry.id:<{id_width}}  {status:<10}  {start:<10}  {end:<10}  "
            f"{rule_text[:rules_width]:<{rules_width}}"
        )

    click.echo(f"\nTotal: {len(entries)} recurrences")


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    if logger.isEnabledFor(logging.DEBUG):
        traceback.print_exc()
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.version_option(version=__version__)
def main(verbose: bool):
    """Daterecur - Calendar recurrence rules for dates."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


@main.command()
@click.argument("path", type=click.Path(exists=True))
def validate(path: str):
    """Validate recurrence files for syntax, schema and rule compliance.

    PATH can be either a recurrences.yaml file or a recurrences/ directory.

    Examples:
        daterecur validate recurrences.yaml
        daterecur validate recurrences/
    """
    path_obj = Path(path)

    click.echo(f"Validating recurrences from: {path_obj}")

    try:
        recurrence_file = load_recurrences_from_path(path_obj)
        if recurrence_file is None:
            click.echo(f"Error: Path is neither a file nor a directory: {path_obj}", err=True)
            sys.exit(1)

        num_recurrences = len(recurrence_file.recurrences)
        num_enabled = sum(1 for r in recurrence_file.recurrences if r.enabled)

        click.echo("✓ Validation successful!")
        click.echo(f"  Total recurrences: {num_recurrences}")
        click.echo(f"  Enabled: {num_enabled}")
        click.echo(f"  Disabled: {num_recurrences - num_enabled}")

        recurrence_ids = [r.id for r in recurrence_file.recurrences]
        duplicates = {rid for rid in recurrence_ids if recurrence_ids.count(rid) > 1}
        if duplicates:
            click.echo(f"\n⚠ Warning: Duplicate recurrence IDs found: {duplicates}", err=True)
            sys.exit(1)

        click.echo("\nAll recurrences are valid!")

    except Exception as e:
        click.echo(f"✗ Validation failed: {e}", err=True)
        if logger.isEnabledFor(logging.DEBUG):
            traceback.print_exc()
        sys.exit(1)


@main.command(name="list")
@click.argument("path", type=click.Path(exists=True))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format (default: table)",
)
@click.option("--enabled-only", is_flag=True, help="Show only enabled recurrences")
def list_recurrences(path: str, output_format: str, enabled_only: bool):
    """List all recurrences with their bounds and rules.

    Examples:
        daterecur list recurrences.yaml
        daterecur list recurrences/ --format json
    """
    path_obj = Path(path)

    try:
        recurrence_file = load_recurrences_from_path(path_obj)
        if recurrence_file is None:
            click.echo(f"Error: Path is neither a file nor a directory: {path_obj}", err=True)
            sys.exit(1)

        entries = recurrence_file.recurrences
        if enabled_only:
            entries = [e for e in entries if e.enabled]

        if not entries:
            click.echo("No recurrences found")
            return

        if output_format == "table":
            _print_recurrence_table(entries)
        else:
            data = [e.model_dump(mode="json", exclude_none=True) for e in entries]
            click.echo(json.dumps(data, indent=2))

    except Exception as e:
        _fail(e)


def _print_occurrences(
    recurrence_id: str,
    recurrences_path: Optional[str],
    kind: str,
    count: Optional[int],
    from_date,
) -> None:
    entry, config = _load_entry(recurrences_path, recurrence_id)
    recurrence = entry.to_recurrence()
    if from_date is not None:
        recurrence.from_date = from_date.date()

    if count is None:
        count = config.default_count

    if kind == "next":
        occurrences = recurrence.next(count)
    elif kind == "previous":
        occurrences = recurrence.previous(count)
    else:
        occurrences = recurrence.all()

    logger.debug("%s: %d %s occurrence(s)", recurrence_id, len(occurrences), kind)
    for occurrence in occurrences:
        click.echo(format_date(occurrence, config.date_format))


@main.command(name="next")
@click.argument("recurrence_id", shell_complete=complete_recurrence_id)
@click.option("--count", "-n", type=int, help="Number of dates to show (default: from config)")
@from_option
@path_option
def next_occurrences(
    recurrence_id: str, count: Optional[int], from_date, recurrences_path: Optional[str]
):
    """Show the next matching dates after the start (or --from) date.

    Examples:
        daterecur next biweekly-payday
        daterecur next biweekly-payday -n 10 --from 2024-06-01
    """
    try:
        _print_occurrences(recurrence_id, recurrences_path, "next", count, from_date)
    except Exception as e:
        _fail(e)


@main.command(name="previous")
@click.argument("recurrence_id", shell_complete=complete_recurrence_id)
@click.option("--count", "-n", type=int, help="Number of dates to show (default: from config)")
@from_option
@path_option
def previous_occurrences(
    recurrence_id: str, count: Optional[int], from_date, recurrences_path: Optional[str]
):
    """Show the matching dates before the start (or --from) date, newest first.

    Examples:
        daterecur previous biweekly-payday -n 3
    """
    try:
        _print_occurrences(recurrence_id, recurrences_path, "previous", count, from_date)
    except Exception as e:
        _fail(e)


@main.command(name="all")
@click.argument("recurrence_id", shell_complete=complete_recurrence_id)
@from_option
@path_option
def all_occurrences(recurrence_id: str, from_date, recurrences_path: Optional[str]):
    """Show every matching date from the start (or --from) date through the end date.

    Examples:
        daterecur all quarterly-review
    """
    try:
        _print_occurrences(recurrence_id, recurrences_path, "all", None, from_date)
    except Exception as e:
        _fail(e)


@main.command()
@click.argument("recurrence_id", shell_complete=complete_recurrence_id)
@click.argument("date_value", metavar="DATE")
@path_option
def matches(recurrence_id: str, date_value: str, recurrences_path: Optional[str]):
    """Check whether DATE matches a recurrence (exit status 0 if it does).

    Examples:
        daterecur matches biweekly-payday 2024-01-15
    """
    try:
        entry, config = _load_entry(recurrences_path, recurrence_id)
        recurrence = entry.to_recurrence()
        matched = recurrence.matches(date_value)
        d = format_date(to_date(date_value), config.date_format)
    except Exception as e:
        _fail(e)
        return

    if matched:
        click.echo(f"✓ {d} matches {recurrence_id}")
        return
    click.echo(f"✗ {d} does not match {recurrence_id}")
    sys.exit(1)


if __name__ == "__main__":
    main()
