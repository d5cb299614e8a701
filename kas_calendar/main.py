"""Command-line interface for the weekly dues calendar.

This module uses the ``click`` library to implement a multi-command
interface. Members can list the pay slots around a date, select a week to
pay, check the admin-defined schedules for overlaps, or import exported JSON
data into a local database. Slot data can come from JSON files, a local
database or the backend API.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

import click

from . import config
from .client import JsonFileSource, PaymentLedger, ScheduleDirectory, SnapshotFetchError, static_token
from .data_models import PaySlot
from .engine import SlotSelectionError
from .formatter import print_page_footer, print_schedule_report, print_selection, print_slots
from .schedule_index import find_ordering_problems, find_overlaps
from .store import StoreDirectory, StoreLedger, create_store_from_env
from .utils import parse_iso_date
from .weekly_calendar import WeeklyCalendar


def parse_today(value: Optional[str]) -> date:
    """Parse the ``--today`` option; defaults to the current date."""
    if not value:
        return date.today()
    try:
        return parse_iso_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--today")


def build_sources(
    schedules: Optional[str],
    payments: Optional[str],
    database_url: Optional[str],
    api_url: Optional[str],
    token: Optional[str],
) -> Tuple[Any, Any]:
    """Pick the schedule directory and payment ledger from the CLI options.

    JSON files take precedence over a database URL, which takes precedence
    over the backend API.
    """
    if schedules or payments:
        source = JsonFileSource(
            Path(schedules) if schedules else None,
            Path(payments) if payments else None,
        )
        return source, source
    if database_url:
        store = create_store_from_env(database_url)
        return StoreDirectory(store), StoreLedger(store, static_token(token))
    base_url = api_url or config.API_BASE_URL
    provider = static_token(token)
    return (
        ScheduleDirectory(base_url, provider, timeout=config.HTTP_TIMEOUT),
        PaymentLedger(base_url, provider, timeout=config.HTTP_TIMEOUT),
    )


def source_options(func: Callable) -> Callable:
    """Attach the data source options shared by all calendar commands."""
    options = [
        click.option("--schedules", "schedules", type=click.Path(exists=True, dir_okay=False), help="Schedules JSON file"),
        click.option("--payments", "payments", type=click.Path(exists=True, dir_okay=False), help="Payments JSON file"),
        click.option("--database-url", "database_url", help="SQLAlchemy URL of a local snapshot store"),
        click.option("--api-url", "api_url", help=f"Backend API base URL (default {config.API_BASE_URL})"),
        click.option("--token", "token", envvar="KAS_AUTH_TOKEN", help="Bearer token (or KAS_AUTH_TOKEN)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_calendar(count: int, today: date, locale: str, sources: Tuple[Any, Any]) -> WeeklyCalendar:
    if count <= 0:
        raise click.BadParameter("Slot count must be positive", param_hint="--count")
    directory, ledger = sources
    calendar = WeeklyCalendar(directory, ledger, weeks=count, page_size=config.CALENDAR_PAGE_SIZE,
                              locale=locale, clock=lambda: today)
    calendar.refresh()
    return calendar


def export_to_json(path: Path, slots: List[PaySlot]) -> None:
    """Export slots to a JSON file."""
    data = {"slots": [s.to_dict() for s in slots]}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, slots: List[PaySlot]) -> None:
    """Export slots to a CSV file."""
    header = ["Index", "Label", "Pay_Date", "Day", "In_Schedule", "State", "Payment_Id", "Payment_Status", "Amount"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for s in slots:
            d = s.to_dict()
            writer.writerow(
                [
                    d["index"],
                    d["label"],
                    d["pay_date"],
                    d["day_name"],
                    d["in_schedule"],
                    d["state"],
                    d["payment_id"],
                    d["payment_status"],
                    d["amount"],
                ]
            )


@click.group()
@click.option("--log-level", "log_level", default=config.LOG_LEVEL, show_default=True, help="Logging level")
def cli(log_level: str) -> None:
    """Weekly dues calendar: pay slots, selection and schedule checks."""
    logging.basicConfig(level=log_level.upper())


@cli.command()
@click.option("--count", "-n", "count", type=int, default=config.CALENDAR_WEEKS, show_default=True, help="Number of weekly slots")
@click.option("--today", "today", help="Reference date (YYYY-MM-DD), default today")
@click.option("--locale", "locale", type=click.Choice(["en", "id"]), default=config.LOCALE, show_default=True)
@click.option("--page", "page", type=int, help="Page to show (1-based); default is the page of the current week")
@click.option("--all", "show_all", is_flag=True, help="Show every slot instead of one page")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@source_options
def slots(
    count: int,
    today: Optional[str],
    locale: str,
    page: Optional[int],
    show_all: bool,
    output: Optional[str],
    schedules: Optional[str],
    payments: Optional[str],
    database_url: Optional[str],
    api_url: Optional[str],
    token: Optional[str],
) -> None:
    """Print the weekly pay slots centered on today."""
    calendar = _build_calendar(
        count, parse_today(today), locale,
        build_sources(schedules, payments, database_url, api_url, token),
    )
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, calendar.slots)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, calendar.slots)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Slots exported to {path}")
        return
    if show_all:
        print_slots(calendar.slots, calendar.selected_date)
        return
    if page is not None:
        calendar.go_page(page - 1)
    print_slots(calendar.current_page_slots, calendar.selected_date)
    print_page_footer(calendar.page, calendar.total_pages)


@cli.command()
@click.argument("pay_date")
@click.option("--count", "-n", "count", type=int, default=config.CALENDAR_WEEKS, show_default=True, help="Number of weekly slots")
@click.option("--today", "today", help="Reference date (YYYY-MM-DD), default today")
@click.option("--locale", "locale", type=click.Choice(["en", "id"]), default=config.LOCALE, show_default=True)
@source_options
def select(
    pay_date: str,
    count: int,
    today: Optional[str],
    locale: str,
    schedules: Optional[str],
    payments: Optional[str],
    database_url: Optional[str],
    api_url: Optional[str],
    token: Optional[str],
) -> None:
    """Select the week paying on PAY_DATE and print its label and due date."""
    try:
        target = parse_iso_date(pay_date)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="PAY_DATE")
    calendar = _build_calendar(
        count, parse_today(today), locale,
        build_sources(schedules, payments, database_url, api_url, token),
    )
    try:
        label, due_date = calendar.select(target)
    except SlotSelectionError as exc:
        raise click.ClickException(str(exc))
    print_selection(label, due_date)


@cli.command("check-schedules")
@source_options
def check_schedules(
    schedules: Optional[str],
    payments: Optional[str],
    database_url: Optional[str],
    api_url: Optional[str],
    token: Optional[str],
) -> None:
    """Report overlapping or out-of-order schedule windows."""
    directory, _ = build_sources(schedules, payments, database_url, api_url, token)
    try:
        windows = directory.list_schedules()
    except SnapshotFetchError as exc:
        raise click.ClickException(str(exc))
    overlaps = find_overlaps(windows)
    misordered = find_ordering_problems(windows)
    print_schedule_report(windows, overlaps, misordered)
    if overlaps or misordered:
        click.get_current_context().exit(1)


@cli.command("import-snapshot")
@click.option("--database-url", "database_url", default=config.DATABASE_URL, show_default=True, help="Target SQLAlchemy URL")
@click.option("--schedules", "schedules", type=click.Path(exists=True, dir_okay=False), help="Schedules JSON file")
@click.option("--payments", "payments", type=click.Path(exists=True, dir_okay=False), help="Payments JSON file")
@click.option("--token", "token", envvar="KAS_AUTH_TOKEN", help="Member token the payments belong to")
@click.option("--replace", "replace", is_flag=True, help="Clear the store before importing")
def import_snapshot(
    database_url: str,
    schedules: Optional[str],
    payments: Optional[str],
    token: Optional[str],
    replace: bool,
) -> None:
    """Load exported schedules and payments into a local snapshot store."""
    if payments and not token:
        raise click.BadParameter("Importing payments needs --token", param_hint="--token")
    source = JsonFileSource(
        Path(schedules) if schedules else None,
        Path(payments) if payments else None,
    )
    try:
        windows = source.list_schedules()
        records = source.list_payments()
    except SnapshotFetchError as exc:
        raise click.ClickException(str(exc))
    store = create_store_from_env(database_url)
    if replace:
        store.clear()
    for w in windows:
        store.add_schedule(w.start_date, w.end_date, w.pay_day_of_week, w.label)
    for p in records:
        store.add_payment(token, p.due_date, p.raw_status or p.status.value, p.amount)
    click.echo(f"Imported {len(windows)} schedules and {len(records)} payments into {database_url}")


if __name__ == "__main__":
    cli()
