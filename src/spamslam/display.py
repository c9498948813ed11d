"""Rich-based display functions for SpamSlam."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from .constants import ACTION_DELETION, ACTION_UNSUBSCRIBE
from .models import ActionResult, DomainRecord, PageView, Summary, UserProfile

console = Console()

_SELECTION_MARKS = {"all": "[x]", "some": "[-]", "none": "[ ]"}


def _format_date(ts) -> str:
    return ts.strftime("%Y-%m-%d") if ts else "Unknown"


def display_profile(profile: UserProfile | None) -> None:
    if profile is None:
        console.print("[dim]Guest[/dim] - run [bold]spamslam auth[/bold] to connect your Gmail.")
    else:
        console.print(f"Welcome [bold]{profile.label}[/bold]! ({profile.email})")


def display_summary(summary: Summary) -> None:
    """Display the headline counts."""
    console.print(
        Panel(
            f"Companies: [bold]{summary.domain_count}[/bold]  |  "
            f"Messages: [bold]{summary.message_count}[/bold]  |  "
            f"Completed: [bold]{summary.actioned_count}[/bold] ({summary.progress}%)",
            title="Summary",
        )
    )


def display_page(page: PageView, selection_state: str = "none") -> None:
    """Display one page of the inventory, or the matching empty state."""
    if page.empty_state == "guest":
        console.print("[dim]Connect your email to see companies that hold your data.[/dim]")
        return
    if page.empty_state == "no-matches":
        console.print("[yellow]No companies matched your search.[/yellow]")
        display_pager(page)
        return

    table = Table(title=f"Companies ({page.filtered_count})")
    table.add_column(escape(_SELECTION_MARKS.get(selection_state, "[ ]")), justify="center")
    table.add_column("Domain")
    table.add_column("Sender")
    table.add_column("Msgs", justify="right")
    table.add_column("First seen")
    table.add_column("Last seen")
    table.add_column("AI")
    table.add_column("Sample subjects")

    for record in page.records:
        table.add_row(
            "x" if record.selected else "",
            f"[bold]{record.domain}[/bold]",
            record.primary_address or "",
            str(record.message_count),
            _format_date(record.first_seen),
            _format_date(record.last_seen),
            ", ".join(sorted(record.ai)),
            escape(" - ".join(record.sample_subjects[:2])),
        )

    console.print(table)
    display_pager(page)


def display_pager(page: PageView) -> None:
    parts = [f"[reverse] {n} [/reverse]" if current else f" {n} " for n, current in page.page_numbers()]
    console.print("Page: " + "".join(parts))


def display_record_detail(record: DomainRecord) -> None:
    """Display detailed information for a single domain."""
    lines = [
        f"[bold]Domain:[/bold] {record.domain}",
        f"[bold]Messages:[/bold] {record.message_count}",
        f"[bold]First seen:[/bold] {_format_date(record.first_seen)}",
        f"[bold]Last seen:[/bold] {_format_date(record.last_seen)}",
        f"[bold]Selected:[/bold] {'yes' if record.selected else 'no'}",
        "",
        "[bold]Senders:[/bold]",
    ]
    for address, count in record.email_counts.items():
        lines.append(f"  - {address} ({count})")

    if record.sample_subjects:
        lines.append("")
        lines.append("[bold]Sample subjects:[/bold]")
        for subject in record.sample_subjects:
            lines.append(f"  - {escape(subject)}")

    unsubscribe = record.ai.get(ACTION_UNSUBSCRIBE)
    if unsubscribe:
        lines += ["", "[bold]Unsubscribe steps:[/bold]", escape(str(unsubscribe))]
    deletion = record.ai.get(ACTION_DELETION)
    if isinstance(deletion, dict):
        lines += ["", f"[bold]Deletion request:[/bold] {escape(deletion['subject'])}", escape(deletion["body"])]
    elif deletion:
        lines += ["", "[bold]Deletion request:[/bold]", escape(deletion)]

    console.print(Panel("\n".join(lines), title="Company Detail"))


def display_action_results(kind: str, results: dict[str, ActionResult]) -> None:
    """Display the per-domain outcome of a bulk action."""
    title = "Unsubscribe steps" if kind == ACTION_UNSUBSCRIBE else "Deletion requests"
    for domain, result in results.items():
        if not result.ok:
            console.print(Panel(f"[red]{escape(result.error or '')}[/red]", title=domain))
        elif isinstance(result.artifact, dict):
            subject, body = escape(result.artifact["subject"]), escape(result.artifact["body"])
            console.print(Panel(f"[bold]Subject:[/bold] {subject}\n\n{body}", title=domain))
        else:
            console.print(Panel(escape(str(result.artifact)), title=domain))

    ok = sum(1 for r in results.values() if r.ok)
    console.print(f"[bold]{title}[/bold] generated for {ok} of {len(results)} companies.")


def create_progress(description: str) -> Progress:
    """Create a configured Rich Progress bar."""
    return Progress(
        SpinnerColumn(),
        TextColumn(f"[bold blue]{description}"),
        TextColumn("[dim]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    )
