"""Rich console rendering of debate rounds and the final discussion list."""

from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from council.models import DebateParticipant, Discussion, DiscussionSeverity
from council.pipeline import CouncilReport

console = Console(legacy_windows=False)

_SEVERITY_STYLES = {
    DiscussionSeverity.HARSHLY_CRITICAL: "bold white on red",
    DiscussionSeverity.CRITICAL: "bold red",
    DiscussionSeverity.WARNING: "yellow",
    DiscussionSeverity.SUGGESTION: "cyan",
}


def _argument_preview(argument: str, words: int = 50) -> str:
    """Return first N words of an argument."""
    all_words = argument.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview


def print_round_summary(round_number: int, participants: list[DebateParticipant]) -> None:
    """Print each participant's latest stance after a debate round."""
    if not participants:
        return
    location = participants[0].original_opinion.key
    console.print(Rule(f"[bold cyan]Round {round_number}: {location}[/bold cyan]"))
    for participant in participants:
        latest = participant.rounds[-1]
        border = "red" if latest.failed else "dim"
        console.print(
            Panel(
                _argument_preview(latest.argument),
                title=f"[bold]{participant.reviewer_id}[/bold] → {latest.severity.value.upper()}",
                subtitle=f"confidence {latest.confidence:.2f} | quality {latest.quality_score:.1f}",
                border_style=border,
            )
        )


def _format_range(discussion: Discussion) -> str:
    start, end = discussion.line_range
    return f"L{start}" if start == end else f"L{start}-L{end}"


def print_report(report: CouncilReport) -> None:
    """Print the resolved discussions and debate outcomes."""
    console.print(Rule("[bold green]Council Verdict[/bold green]"))
    if report.decision is not None:
        console.print(Text(report.decision.reason, style="dim"))

    table = Table(show_lines=False)
    table.add_column("ID", style="bold")
    table.add_column("Severity")
    table.add_column("Location")
    table.add_column("Title")
    table.add_column("Evidence", justify="right")

    for discussion in report.discussions:
        table.add_row(
            discussion.id,
            Text(discussion.severity.value.upper(), style=_SEVERITY_STYLES[discussion.severity]),
            f"{discussion.file}:{_format_range(discussion)}",
            discussion.title,
            str(len(discussion.evidence_refs)),
        )
    console.print(table)

    for discussion in report.discussions:
        for suggestion in discussion.suggestions:
            console.print(Text(f"{discussion.id} suggestion: {suggestion}", style="cyan"))

    for result in report.debates:
        outcome = f"{result.consensus_type.value} → {result.final_severity.value.upper()}"
        if result.early_stopped:
            outcome += " (early stop)"
        console.print(
            Text(
                f"Debate {result.location.key}: {outcome} | "
                f"Rounds: {result.rounds_run} | Duration: {result.duration_sec:.1f}s",
                style="dim",
            )
        )

    console.print(
        Text(
            f"{len(report.discussions)} discussion(s), {report.merged_count} merged duplicate(s)",
            style="bold",
        )
    )
