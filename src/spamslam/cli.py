"""CLI entry point for SpamSlam."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import click
from dotenv import load_dotenv
from google.auth.exceptions import RefreshError
from rich.logging import RichHandler

from .actions import SelectionCoordinator
from .ai_client import AIClient
from .auth import build_gmail_service, forget_token, get_credentials
from .constants import ACTION_KINDS, SORT_BY_FREQUENCY, SORT_MODES
from .display import (
    console,
    display_action_results,
    display_page,
    display_profile,
    display_record_detail,
    display_summary,
)
from .errors import SpamSlamError
from .export import export_inventory
from .gmail_client import create_draft, get_user_profile
from .scanner import run_scan_with_progress
from .session import Session
from .store import InventoryStore

_VIEW_OPTIONS = [
    click.option("-q", "--query", default="", help="Search domains, sender addresses and subjects."),
    click.option(
        "-s",
        "--sort",
        type=click.Choice(SORT_MODES),
        default=SORT_BY_FREQUENCY,
        show_default=True,
        help="Sort order.",
    ),
    click.option("-p", "--page", default=1, type=int, show_default=True, help="Page number."),
]


def view_options(f):
    for option in reversed(_VIEW_OPTIONS):
        f = option(f)
    return f


@contextmanager
def open_session() -> Iterator[Session]:
    """Open the store and resume the last signed-in identity, if any."""
    with InventoryStore() as store:
        session = Session(store)
        session.resume()
        yield session


def _apply_view(session: Session, query: str, sort: str, page: int) -> None:
    session.set_query(query)
    session.set_sort(sort)
    session.set_page(page)


def _render(session: Session, coordinator: SelectionCoordinator | None = None) -> None:
    coordinator = coordinator or SelectionCoordinator(session)
    page = session.page()
    display_profile(session.profile)
    display_summary(session.summary())
    display_page(page, coordinator.page_selection_state(page))


def _gmail_service():
    try:
        return build_gmail_service(get_credentials())
    except FileNotFoundError as e:
        raise click.ClickException(str(e)) from e
    except RefreshError as e:
        raise click.ClickException(f"Gmail sign-in expired or was revoked: {e}. Run 'spamslam auth' again.") from e


@click.group()
@click.version_option(version="0.1.0", prog_name="spamslam")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """SpamSlam - find the companies that hold your data and ask them to let go."""
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@cli.command()
def auth() -> None:
    """Connect your Gmail account and restore its saved inventory."""
    try:
        creds = get_credentials()
    except FileNotFoundError as e:
        raise click.ClickException(str(e)) from e

    with open_session() as session:
        try:
            profile = session.sign_in(lambda: get_user_profile(creds))
        except SpamSlamError as e:
            raise click.ClickException(f"Sign-in failed: {e}") from e
        console.print(f"[green]Connected as {profile.label}[/green]")
        display_summary(session.summary())


@cli.command()
@click.option("--forget-token", "forget", is_flag=True, help="Also delete the cached OAuth token.")
def signout(forget: bool) -> None:
    """Sign out and return to guest mode. Saved data is kept."""
    with open_session() as session:
        session.sign_out()
    if forget:
        forget_token()
    console.print("Signed out - you are in guest mode.")


@cli.command()
def scan() -> None:
    """Scan your inbox for signup and marketing mail, grouped by company."""
    with open_session() as session:
        if not session.signed_in:
            raise click.ClickException("Please connect your Gmail first with 'spamslam auth'.")
        service = _gmail_service()
        try:
            run_scan_with_progress(service, session)
        except SpamSlamError as e:
            raise click.ClickException(f"Scan failed: {e}") from e
        _render(session)


@cli.command(name="list")
@view_options
def list_cmd(query: str, sort: str, page: int) -> None:
    """Show the companies found in your inbox."""
    with open_session() as session:
        _apply_view(session, query, sort, page)
        _render(session)


@cli.command()
@click.argument("domain")
def show(domain: str) -> None:
    """Show everything known about one company."""
    with open_session() as session:
        record = session.get_record(domain)
        if record is None:
            raise click.ClickException(f"No company found for domain {domain!r}.")
        display_record_detail(record)


@cli.command()
@click.argument("domains", nargs=-1)
@click.option("--off", is_flag=True, help="Deselect instead of select.")
@click.option("--clear", "clear_all", is_flag=True, help="Clear the whole selection.")
def select(domains: tuple[str, ...], off: bool, clear_all: bool) -> None:
    """Select (or deselect) companies for bulk actions."""
    with open_session() as session:
        coordinator = SelectionCoordinator(session)
        try:
            if clear_all:
                session.require_signed_in()
                coordinator.clear_selection()
            for domain in domains:
                coordinator.toggle(domain, not off)
        except SpamSlamError as e:
            raise click.ClickException(str(e)) from e
        session.save()
        console.print(f"Selected: {', '.join(coordinator.selected_domains()) or 'none'}")


@cli.command(name="select-page")
@view_options
@click.option("--off", is_flag=True, help="Deselect the page instead.")
def select_page(query: str, sort: str, page: int, off: bool) -> None:
    """Select every company on one page of the listing."""
    with open_session() as session:
        coordinator = SelectionCoordinator(session)
        _apply_view(session, query, sort, page)
        try:
            affected = coordinator.select_page(session.page(), not off)
        except SpamSlamError as e:
            raise click.ClickException(str(e)) from e
        session.save()
        verb = "Deselected" if off else "Selected"
        console.print(f"{verb} {len(affected)} companies on page {session.view_state.page}.")


@cli.command()
@click.argument("kind", type=click.Choice(ACTION_KINDS))
@click.argument("domains", nargs=-1)
@click.option("--worker-url", envvar="SPAMSLAM_WORKER_URL", default="", help="OpenAI-compatible proxy URL.")
def action(kind: str, domains: tuple[str, ...], worker_url: str) -> None:
    """Generate unsubscribe steps or deletion requests (defaults to the selection)."""
    with open_session() as session:
        coordinator = SelectionCoordinator(session, ai_client=AIClient(worker_url=worker_url or None))
        try:
            results = coordinator.run_action(kind, list(domains) or None)
        except SpamSlamError as e:
            raise click.ClickException(str(e)) from e
        display_action_results(kind, results)


@cli.command()
@click.argument("domain")
def draft(domain: str) -> None:
    """Create a Gmail draft from a company's deletion request."""
    with open_session() as session:
        if not session.signed_in:
            raise click.ClickException("Sign in to create drafts.")
        service = _gmail_service()
        coordinator = SelectionCoordinator(
            session,
            create_draft=lambda to, subject, body: create_draft(service, to, subject, body),
        )
        try:
            to = coordinator.create_draft_for(domain)
        except SpamSlamError as e:
            raise click.ClickException(str(e)) from e
        console.print(f"[green]Draft to {to} created in your Gmail drafts.[/green]")


@cli.command(name="export")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["csv", "json"]),
    default="csv",
    help="Output format.",
)
@click.option("-s", "--sort", type=click.Choice(SORT_MODES), default=SORT_BY_FREQUENCY, help="Sort order.")
@click.option("-o", "--output", required=True, help="Output file path.")
def export_cmd(fmt: str, sort: str, output: str) -> None:
    """Export the company inventory to CSV or JSON."""
    with open_session() as session:
        if not session.signed_in:
            raise click.ClickException("Nothing to export in guest mode. Run 'spamslam auth' first.")
        records = session.aggregator.records()
        if not records:
            raise click.ClickException("No companies found yet. Run 'scan' first.")
        count = export_inventory(records, format=fmt, output_path=output, sort=sort)
    console.print(f"Saved {count} companies to {output}")


@cli.group(name="store")
def store_group() -> None:
    """Manage the local inventory store."""


@store_group.command(name="info")
def store_info() -> None:
    """Show store statistics."""
    with InventoryStore() as store:
        info = store.get_info()

    if info["last_saved"] is None:
        console.print("[dim]Store is empty.[/dim]")
        return

    console.print(f"[bold]Database size:[/bold] {info['db_file_size'] / 1024:.1f} KB")
    console.print(f"[bold]Last saved:[/bold] {info['last_saved']}")
    console.print(f"[bold]Accounts:[/bold] {info['identity_count']}")
    console.print(f"[bold]Companies:[/bold] {info['domain_count']}")
    console.print(f"[bold]Signed in:[/bold] {info['active_identity'] or 'guest'}")


@store_group.command(name="clear")
def store_clear() -> None:
    """Delete all saved inventories and sign out."""
    with InventoryStore() as store:
        store.clear()
    console.print("[green]Store cleared.[/green]")
