"""
Command-Line Interface for FairShare.

Purpose
-------
Provides a CLI for editing household files and splitting shared expenses
by financial capacity without writing Python code.

Commands
--------
- calculate: Split shared expenses for a household file
- household: Create, validate, show and convert household files
- person: Add, remove and update people in a household file
- plot: Save a contribution or breakdown chart
- info: Show version and dependency information

Example Usage
-------------
    # Create a household file with three people
    $ fairshare household create home.json --people 3 --expenses 4200

    # Set incomes
    $ fairshare person income home.json <ID> --net 5200

    # Split expenses, with per-person breakdown
    $ fairshare calculate -f home.json --breakdown

    # Show version
    $ fairshare --version
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import AppSettings, load_settings
from .constants import MIN_PEOPLE_FOR_REMOVAL, TIMEFRAMES
from .exceptions import FairShareError
from .household import default_household
from .serialization import (
    household_to_dict,
    load_household,
    results_to_dict,
    results_to_frame,
    save_household,
)
from .store import (
    AddPerson,
    HouseholdStore,
    RemovePerson,
    SetCurrency,
    SetIncome,
    SetSharedExpenses,
    SetTimeframe,
    reduce,
)
from .utils import format_currency, timeframe_label

logger = logging.getLogger(__name__)

# Version
__version__ = "0.1.0"

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def setup_logging(level: str = "WARNING") -> None:
    """Configure root logging on stderr at *level*."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(name)s - %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _open_store(ctx: click.Context, file: Path) -> HouseholdStore:
    """Store bound to *file*; load errors abort the command."""
    settings: AppSettings = ctx.obj["settings"]
    try:
        household = load_household(file)
    except FairShareError as e:
        _fail(f"could not load household: {e}")
    return HouseholdStore(
        file,
        policy=settings.engine_policy(),
        autosave=False,
        household=household,
    )


def _apply(store: HouseholdStore, action) -> None:
    try:
        store.dispatch(action)
    except FairShareError as e:
        _fail(str(e))
    if not store.save():
        _fail(f"could not write {store.path}")


@click.group()
@click.version_option(version=__version__, prog_name="fairshare")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (default: FAIRSHARE_LOG_LEVEL or WARNING)",
)
@click.pass_context
def main(ctx: click.Context, quiet: bool, log_level: Optional[str]) -> None:
    """
    FairShare - Split shared household expenses by financial capacity.

    Each person's capacity combines take-home pay, imputed income from
    inheritances and family advantages, variable income and property
    ownership, minus obligations. Shared expenses are split in proportion.

    Use 'fairshare COMMAND --help' for command-specific help.
    """
    try:
        settings = load_settings()
    except FairShareError as e:
        _fail(str(e))
    setup_logging(log_level or settings.log_level)

    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["console"] = Console()
    ctx.obj["settings"] = settings


# ---------------------------------------------------------------------------
# calculate
# ---------------------------------------------------------------------------

@main.command()
@click.option(
    "--file", "-f",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to household file (JSON)"
)
@click.option(
    "--as-of",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Reference date for inheritance growth (default: today)"
)
@click.option(
    "--csv", "csv_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Also write the results table to a CSV file"
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.option("--breakdown", "-b", is_flag=True, help="Show each person's capacity breakdown")
@click.pass_context
def calculate(
    ctx: click.Context,
    file: Path,
    as_of: Optional[datetime],
    csv_path: Optional[Path],
    as_json: bool,
    breakdown: bool,
) -> None:
    """
    Split shared expenses in proportion to capacity.

    Amounts are shown in the household's timeframe and currency.

    Example:
        fairshare calculate -f home.json --as-of 2025-01-01 --breakdown
    """
    console: Console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    store = _open_store(ctx, file)
    household = store.household
    results = store.calculate(today=as_of.date() if as_of else None)
    logger.info("Calculated split for %d people from %s", len(results), file)

    if csv_path:
        results_to_frame(results, household).to_csv(csv_path)
        if not quiet:
            click.echo(f"Results saved to {csv_path}", err=True)

    if as_json:
        click.echo(json.dumps(results_to_dict(results), indent=2))
        return

    currency, timeframe = household.currency, household.timeframe

    def money(amount: float) -> str:
        return format_currency(amount, currency, timeframe)

    suffix = timeframe_label(timeframe)
    table = Table(
        title=f"Shared expenses: {money(household.shared_expenses * household.conversion_factor)}{suffix}",
        show_header=True,
    )
    table.add_column("Person", style="cyan")
    table.add_column(f"Net income{suffix}", justify="right")
    table.add_column(f"Capacity{suffix}", justify="right")
    table.add_column("Share", justify="right")
    table.add_column(f"Contribution{suffix}", style="green", justify="right")
    table.add_column(f"Disposable{suffix}", justify="right")

    for r in results:
        person = household.find_person(r.person_id)
        table.add_row(
            person.name or person.id,
            money(r.monthly_net_income),
            money(r.monthly_capacity),
            f"{r.percentage:.1f}%",
            money(r.monthly_contribution),
            money(r.monthly_disposable),
        )
    console.print(table)

    if breakdown:
        for r in results:
            person = household.find_person(r.person_id)
            detail = Table(title=f"{person.name or person.id}: capacity breakdown")
            detail.add_column("Item", style="cyan")
            detail.add_column("Type")
            detail.add_column(f"Amount{suffix}", justify="right")
            for item in r.breakdown:
                style = "red" if item.type == "deduction" else None
                detail.add_row(item.label, item.type, money(item.amount), style=style)
            console.print(detail)


# ---------------------------------------------------------------------------
# household
# ---------------------------------------------------------------------------

@main.group()
def household() -> None:
    """Household file management commands."""
    pass


@household.command("create")
@click.argument("output_file", type=click.Path(path_type=Path))
@click.option("--people", "-p", type=click.IntRange(min=1), default=2, help="Number of people (default: 2)")
@click.option("--expenses", "-e", type=float, default=None, help="Shared expenses per timeframe")
@click.option("--currency", "-c", type=str, default=None, help="Currency code (default: FAIRSHARE_DEFAULT_CURRENCY or USD)")
@click.option("--timeframe", "-t", type=click.Choice(TIMEFRAMES), default="monthly")
@click.pass_context
def household_create(
    ctx: click.Context,
    output_file: Path,
    people: int,
    expenses: Optional[float],
    currency: Optional[str],
    timeframe: str,
) -> None:
    """
    Create a new household file.

    Starts from the default household (two partners, 3000 per month) and
    applies the given options.

    Example:
        fairshare household create home.json --people 3 --currency EUR
    """
    settings: AppSettings = ctx.obj["settings"]

    if output_file.exists():
        if not click.confirm(f"{output_file} exists. Overwrite?"):
            click.echo("Aborted.")
            return

    try:
        snapshot = default_household()
        snapshot = reduce(snapshot, SetCurrency(currency or settings.default_currency))
        snapshot = reduce(snapshot, SetTimeframe(timeframe))
        if expenses is not None:
            snapshot = reduce(snapshot, SetSharedExpenses(expenses))
        while len(snapshot.people) < people:
            snapshot = reduce(snapshot, AddPerson())
        if people < len(snapshot.people):
            snapshot = replace(snapshot, people=snapshot.people[:people])
        save_household(snapshot, output_file)
    except FairShareError as e:
        _fail(str(e))

    if not ctx.obj["quiet"]:
        click.echo(f"Household with {people} people created: {output_file}")


@household.command("validate")
@click.argument("household_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def household_validate(ctx: click.Context, household_file: Path) -> None:
    """
    Validate a household file.

    Checks the file structure and shows a summary.
    """
    console: Console = ctx.obj["console"]

    try:
        snapshot = load_household(household_file)
    except FairShareError as e:
        click.echo(f"✗ Invalid household file: {e}", err=True)
        sys.exit(1)

    summary = "\n".join([
        f"[bold]People:[/bold] {len(snapshot.people)}",
        f"[bold]Timeframe:[/bold] {snapshot.timeframe}",
        f"[bold]Currency:[/bold] {snapshot.currency}",
        f"[bold]Shared expenses:[/bold] {snapshot.shared_expenses:,.2f}",
        f"[bold]Property:[/bold] {snapshot.property_arrangement}",
    ])
    console.print("[green]✓ Household file is valid[/green]")
    if not ctx.obj["quiet"]:
        console.print(Panel(summary, title="Household Summary", border_style="green"))


@household.command("show")
@click.argument("household_file", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "-F", "fmt", type=click.Choice(["json", "table"]), default="table")
@click.pass_context
def household_show(ctx: click.Context, household_file: Path, fmt: str) -> None:
    """Display the contents of a household file."""
    console: Console = ctx.obj["console"]

    try:
        snapshot = load_household(household_file)
    except FairShareError as e:
        _fail(f"could not load household: {e}")

    if fmt == "json":
        click.echo(json.dumps(household_to_dict(snapshot), indent=2))
        return

    suffix = timeframe_label(snapshot.timeframe)
    table = Table(title=f"Household ({snapshot.currency}, {snapshot.timeframe})")
    table.add_column("Id", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column(f"Net income{suffix}", justify="right")
    table.add_column(f"Matching{suffix}", justify="right")
    table.add_column("Inheritances", justify="right")
    table.add_column(f"Deductions{suffix}", justify="right")

    for p in snapshot.people:
        owner = " (owner)" if (
            snapshot.property_arrangement == "owned" and snapshot.property_owner_id == p.id
        ) else ""
        table.add_row(
            p.id,
            f"{p.name}{owner}",
            f"{p.net_income:,.0f}",
            f"{p.retirement_matching:,.0f}",
            str(len(p.inheritances)),
            f"{p.student_loans + p.family_support:,.0f}",
        )
    console.print(table)
    console.print(f"Shared expenses: {snapshot.shared_expenses:,.0f}{suffix}")


@household.command("set-timeframe")
@click.argument("household_file", type=click.Path(exists=True, path_type=Path))
@click.argument("timeframe", type=click.Choice(TIMEFRAMES))
@click.pass_context
def household_set_timeframe(ctx: click.Context, household_file: Path, timeframe: str) -> None:
    """Switch the timeframe, rescaling every periodic amount."""
    store = _open_store(ctx, household_file)
    _apply(store, SetTimeframe(timeframe))
    if not ctx.obj["quiet"]:
        click.echo(f"Timeframe set to {timeframe}")


# ---------------------------------------------------------------------------
# person
# ---------------------------------------------------------------------------

@main.group()
def person() -> None:
    """Commands that edit people in a household file."""
    pass


@person.command("add")
@click.argument("household_file", type=click.Path(exists=True, path_type=Path))
@click.option("--name", "-n", type=str, default=None, help="Display name (default: Partner <n>)")
@click.pass_context
def person_add(ctx: click.Context, household_file: Path, name: Optional[str]) -> None:
    """Add a person to a household file and print their id."""
    store = _open_store(ctx, household_file)
    _apply(store, AddPerson(name))
    click.echo(store.household.people[-1].id)


@person.command("remove")
@click.argument("household_file", type=click.Path(exists=True, path_type=Path))
@click.argument("person_id")
@click.pass_context
def person_remove(ctx: click.Context, household_file: Path, person_id: str) -> None:
    """Remove a person from a household file."""
    store = _open_store(ctx, household_file)
    if len(store.household.people) <= MIN_PEOPLE_FOR_REMOVAL:
        _fail(f"a household keeps at least {MIN_PEOPLE_FOR_REMOVAL} people")
    _apply(store, RemovePerson(person_id))
    if not ctx.obj["quiet"]:
        click.echo(f"Removed {person_id}")


@person.command("income")
@click.argument("household_file", type=click.Path(exists=True, path_type=Path))
@click.argument("person_id")
@click.option("--net", type=float, default=None, help="Take-home income per timeframe")
@click.option("--matching", type=float, default=None, help="Employer retirement matching per timeframe")
@click.pass_context
def person_income(
    ctx: click.Context,
    household_file: Path,
    person_id: str,
    net: Optional[float],
    matching: Optional[float],
) -> None:
    """Set a person's net income and/or retirement matching."""
    if net is None and matching is None:
        _fail("give --net and/or --matching")
    store = _open_store(ctx, household_file)
    _apply(store, SetIncome(person_id, net_income=net, retirement_matching=matching))
    if not ctx.obj["quiet"]:
        click.echo(f"Updated income of {person_id}")


# ---------------------------------------------------------------------------
# plot
# ---------------------------------------------------------------------------

@main.command()
@click.option(
    "--file", "-f",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to household file (JSON)"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    required=True,
    help="Image file to write (e.g. split.png)"
)
@click.option("--person", "person_id", type=str, default=None, help="Plot this person's breakdown instead")
@click.option(
    "--as-of",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Reference date for inheritance growth (default: today)"
)
@click.pass_context
def plot(
    ctx: click.Context,
    file: Path,
    output: Path,
    person_id: Optional[str],
    as_of: Optional[datetime],
) -> None:
    """
    Save a chart of the split (or of one person's breakdown).

    Example:
        fairshare plot -f home.json -o split.png
    """
    import matplotlib
    matplotlib.use("Agg")
    from matplotlib import pyplot as plt

    from .plotting import plot_breakdown, plot_contributions

    store = _open_store(ctx, file)
    results = store.calculate(today=as_of.date() if as_of else None)

    if person_id is not None:
        result = next((r for r in results if r.person_id == person_id), None)
        if result is None:
            _fail(f"unknown person id: {person_id}")
        name = store.household.find_person(person_id).name or person_id
        fig, _ = plot_breakdown(
            result,
            title=f"{name}: capacity breakdown",
            currency=store.household.currency,
            save_path=str(output),
        )
    else:
        fig, _ = plot_contributions(results, store.household, save_path=str(output))
    plt.close(fig)

    if not ctx.obj["quiet"]:
        click.echo(f"Chart saved to {output}")


# ---------------------------------------------------------------------------
# info
# ---------------------------------------------------------------------------

@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """
    Display system and package information.

    Shows version numbers, installed dependencies and the active settings.
    """
    console: Console = ctx.obj["console"]
    settings: AppSettings = ctx.obj["settings"]

    info_lines = [
        f"FairShare Version: {__version__}",
        f"Python: {sys.version.split()[0]}",
    ]

    # Check dependencies
    dependencies = ["numpy", "pandas", "matplotlib", "pydantic", "rich", "click"]

    for module in dependencies:
        try:
            mod = __import__(module)
            version = getattr(mod, "__version__", "installed")
            info_lines.append(f"{module}: {version}")
        except ImportError:
            info_lines.append(f"{module}: not installed")

    info_lines += [
        "",
        f"State file: {settings.state_file}",
        f"Property split: {settings.property_split}",
        f"Compound inheritances: {settings.compound_inheritances}",
    ]

    console.print(Panel("\n".join(info_lines), title="System Information"))


if __name__ == "__main__":
    main()
