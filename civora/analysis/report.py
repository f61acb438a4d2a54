"""
Civora Run Report — terminal rendering of run results and national summaries.

Renders a finished RunResult (or a NationalSummary reloaded from storage) as
rich tables: headline figures, region verdicts, demographic breakdowns, risks
and recommendations.

Usage:
    civora-report --run-id 3f2a...
    civora-report --run-id 3f2a... --database-url sqlite:///civora.db
"""

from __future__ import annotations

import argparse
import sys

from rich.console import Console
from rich.table import Table

from civora.config import settings
from civora.core.errors import PersistenceError
from civora.core.schema import (
    GroupBreakdown,
    NationalSummary,
    Priority,
    RegionSummary,
    RiskLevel,
    RunResult,
    Verdict,
)
from civora.storage.repository import SqlRepository

console = Console()

VERDICT_STYLE = {
    Verdict.MAJORITY_SUPPORT: "bold green",
    Verdict.MAJORITY_OPPOSE: "bold red",
    Verdict.NEUTRAL: "bold yellow",
}

LEVEL_STYLE = {
    RiskLevel.CRITICAL: "bold red",
    RiskLevel.HIGH: "red",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.LOW: "green",
}

PRIORITY_STYLE = {
    Priority.URGENT: "bold red",
    Priority.HIGH: "red",
    Priority.MEDIUM: "yellow",
    Priority.LOW: "dim",
}


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def region_table(summaries: dict[str, RegionSummary]) -> Table:
    table = Table(title="Regions", show_lines=False)
    table.add_column("Region", style="cyan")
    table.add_column("Citizens", justify="right")
    table.add_column("Support", justify="right", style="green")
    table.add_column("Oppose", justify="right", style="red")
    table.add_column("Neutral", justify="right")
    table.add_column("Avg opinion", justify="right")
    table.add_column("Std dev", justify="right")
    table.add_column("Verdict")
    for name in sorted(summaries):
        summary = summaries[name]
        table.add_row(
            name,
            str(summary.count),
            _pct(summary.support_rate),
            _pct(summary.oppose_rate),
            _pct(summary.neutral / summary.count),
            f"{summary.average_opinion:+.3f}",
            f"{summary.std_dev:.3f}",
            summary.verdict.value,
        )
    return table


def breakdown_table(title: str, groups: dict[str, GroupBreakdown]) -> Table:
    table = Table(title=title)
    table.add_column("Group", style="cyan")
    table.add_column("Citizens", justify="right")
    table.add_column("Avg opinion", justify="right")
    table.add_column("Support", justify="right", style="green")
    table.add_column("Oppose", justify="right", style="red")
    for name, group in groups.items():
        table.add_row(
            name,
            str(group.count),
            f"{group.average_opinion:+.3f}",
            _pct(group.support_rate),
            _pct(group.oppose_rate),
        )
    return table


def render_national(summary: NationalSummary, title: str = "", out: Console | None = None) -> None:
    """Print the headline statistics, breakdowns, risks and recommendations."""
    out = out or console
    heading = f"═══ National Summary{': ' + title if title else ''} ═══"
    out.print(f"\n[bold blue]{heading}[/bold blue]")

    style = VERDICT_STYLE[summary.verdict]
    out.print(f"  Verdict: [{style}]{summary.verdict.value}[/{style}]")
    out.print(
        f"  Citizens: [bold]{summary.count}[/bold]  "
        f"support {_pct(summary.support_rate)} · oppose {_pct(summary.oppose_rate)} · "
        f"neutral {_pct(summary.neutral / summary.count)}"
    )
    ci = summary.confidence_interval
    out.print(
        f"  Average opinion: {summary.average_opinion:+.3f} "
        f"(95% CI {ci.lower:+.3f} to {ci.upper:+.3f})"
    )
    out.print(
        f"  Std dev: {summary.std_dev:.3f}  polarization: {summary.polarization_index:.3f} "
        f"({summary.polarization_level.value})"
    )
    out.print(
        f"  Extremism: {_pct(summary.extremism_rate)}  consensus: {_pct(summary.consensus)}  "
        f"risk of division: {summary.risk_of_division.value}"
    )
    out.print(f"  Vulnerable citizens opposing: {summary.vulnerable_groups_harmed}")

    for name, groups in summary.breakdowns.items():
        if name == "by_region" or not groups:
            continue
        out.print(breakdown_table(name.replace("by_", "By ").replace("_", " "), groups))

    risks = Table(title="Risks")
    risks.add_column("Category", style="cyan")
    risks.add_column("Level")
    risks.add_column("Description")
    for risk in summary.risks:
        level_style = LEVEL_STYLE[risk.level]
        risks.add_row(risk.category, f"[{level_style}]{risk.level.value}[/{level_style}]", risk.description)
    out.print(risks)

    recommendations = Table(title="Recommendations")
    recommendations.add_column("Priority")
    recommendations.add_column("Action", style="cyan")
    recommendations.add_column("Details")
    for item in summary.recommendations:
        priority_style = PRIORITY_STYLE[item.priority]
        recommendations.add_row(
            f"[{priority_style}]{item.priority.value}[/{priority_style}]", item.action, item.details
        )
    out.print(recommendations)


def render_run(result: RunResult, out: Console | None = None) -> None:
    """Print a whole orchestration run: counts, regions and the national summary."""
    out = out or console
    out.print(f"\n[bold blue]═══ Civora Run {result.run_id} ═══[/bold blue]")
    if result.policy_title:
        out.print(f"  Policy: [bold]{result.policy_title}[/bold]")
    out.print(f"  Parameters: {result.parameter_version or '—'}")
    out.print(
        f"  Citizens: {result.humans_processed} valid · {result.humans_errored} errored · "
        f"{result.humans_unpersisted} unpersisted · {result.humans_resumed} resumed"
    )
    out.print(f"  Regions: {result.regions_processed} processed · {len(result.regions_skipped)} skipped")
    if result.regions_skipped:
        out.print(f"  [yellow]Skipped: {', '.join(result.regions_skipped)}[/yellow]")
    out.print(f"  Duration: {result.duration_seconds:.2f}s")

    if not result.success:
        out.print(f"[bold red]✗ Run failed:[/bold red] {result.reason}")
        return

    if result.region_summaries:
        out.print(region_table(result.region_summaries))
    if result.national_summary is not None:
        render_national(result.national_summary, out=out)
    out.print("\n[bold blue]═══ Run Complete ═══[/bold blue]\n")


def report_stored_run(run_id: str, database_url: str) -> bool:
    """
    Load a persisted national summary and render it.

    Returns:
        True if the run was found, False otherwise.
    """
    repository = SqlRepository(database_url)
    try:
        summary = repository.get_national_summary(run_id)
    except PersistenceError as e:
        console.print(f"[bold red]✗ Could not read run {run_id}:[/bold red] {e}")
        return False
    if summary is None:
        console.print(f"[bold red]✗ No national summary stored for run {run_id}[/bold red]")
        return False
    render_national(summary, title=repository.get_policy_title(run_id))
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Civora — render a stored simulation run")
    parser.add_argument("--run-id", required=True, help="Run identifier printed by civora-simulate")
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy connection string (defaults to .env settings)",
    )
    args = parser.parse_args()

    found = report_stored_run(args.run_id, args.database_url or settings.database_url)
    sys.exit(0 if found else 1)


if __name__ == "__main__":
    main()
