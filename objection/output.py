"""Rich console output and markdown transcript for practice sessions."""

import logging
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from objection.models import GradingSource, RoundRecord, Scenario, SessionState

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_NOTICE_STYLES = {"success": "green", "info": "blue", "warning": "yellow"}


def format_time(seconds: int) -> str:
    """Format seconds as m:ss."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def rank_title(average: int) -> str:
    if average >= 90:
        return "JUSTICE CHAMPION"
    if average >= 75:
        return "RISING ADVOCATE"
    if average >= 60:
        return "DEDICATED DEFENDER"
    return "LEARNING LAWYER"


def score_tier(score: int) -> tuple[str, str, str]:
    """Return (kind, title, message) for the per-round toast."""
    if score >= 85:
        return "success", "Excellent Defense!", "Your defense strongly advocates for your client!"
    if score >= 70:
        return "info", "Solid Argument", "Good reasoning, but consider adding more specific examples."
    return "warning", "Keep Learning", "Focus on concrete evidence and empathy for your client."


def print_notice(title: str, message: str, kind: str = "info") -> None:
    style = _NOTICE_STYLES.get(kind, "blue")
    console.print(f"[bold {style}]{title}[/bold {style}] {message}")


def print_scenario(scenario: Scenario, total_rounds: int, duration_sec: int) -> None:
    console.print(Rule(f"[bold cyan]Case {scenario.round} of {total_rounds}[/bold cyan]"))
    subtitle = f"{scenario.origin.value} case | {format_time(duration_sec)} on the clock"
    console.print(Panel(scenario.text, title="[bold]THE CASE[/bold]", subtitle=subtitle, border_style="cyan"))


def print_verdict(record: RoundRecord) -> None:
    result = record.result
    console.print(Rule(f"[bold green]Case {record.round_number} Verdict[/bold green]"))
    judge = "Judge's decision" if result.source is GradingSource.AI_GRADED else "Basic scoring"
    body = Text()
    body.append(f"{result.verdict_summary}\n\n")
    body.append(result.feedback)
    console.print(Panel(body, title=f"[bold]{judge}[/bold]", subtitle=f"Score: {result.score}/100", border_style="green"))
    kind, title, message = score_tier(result.score)
    print_notice(title, message, kind)


def print_final_results(state: SessionState) -> None:
    console.print(Rule("[bold magenta]Trial Complete![/bold magenta]"))
    table = Table(show_header=True, header_style="bold")
    table.add_column("Case")
    table.add_column("Score", justify="right")
    table.add_column("Graded by")
    for record in state.history:
        table.add_row(str(record.round_number), str(record.result.score), record.result.source.value)
    console.print(table)
    console.print(
        f"[bold]Final score: {state.average_score}/100[/bold]  "
        f"(total {state.total_score})  [italic]{rank_title(state.average_score)}![/italic]"
    )


def save_to_file(state: SessionState, output_dir: Path) -> Path:
    """Save the session transcript as a markdown file.

    Args:
        state: The session whose history should be written.
        output_dir: Directory to save the file in (created if missing).

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = output_dir / f"{timestamp}_{state.mode.value}-session.md"

    lines: list[str] = [
        f"# Objection! Practice Session ({state.mode.value})",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Rounds:** {len(state.history)} of {state.total_rounds}",
        f"**Total score:** {state.total_score}",
        f"**Average score:** {state.average_score}/100 ({rank_title(state.average_score)})",
        "",
        "---",
        "",
    ]

    for record in state.history:
        result = record.result
        argument = record.argument.text.strip() or "_No argument submitted._"
        lines += [
            f"## Case {record.round_number} ({record.scenario.origin.value})",
            "",
            record.scenario.text,
            "",
            "### Argument" + (" (auto-submitted)" if record.argument.was_auto_submitted else ""),
            "",
            argument,
            "",
            f"### Verdict: {result.score}/100",
            "",
            result.verdict_summary,
            "",
            "### Feedback",
            "",
            result.feedback,
            "",
            f"*Graded by: {result.source.value}*",
            "",
        ]

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Session saved to: %s", filepath)
    return filepath
