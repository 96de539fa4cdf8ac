"""CLI entrypoints for FoodGuard.

The commands talk to a running API server (``foodguard-serve``) the way the dashboard does.
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from foodguard.client.dashboard import DashboardClient, DashboardClientError
from foodguard.client.reassembler import UIState
from foodguard.config import load_settings
from foodguard.events import ProgressEvent, ToolDataEvent
from foodguard.logging import configure_logging, get_logger
from foodguard.models.report import Report
from foodguard.regions import DEFAULT_SELECTION

app = typer.Typer(add_completion=False, help="FoodGuard food security analysis CLI")
logger = get_logger(__name__)
console = Console()

_RISK_STYLES = {"Critical": "bold red", "High": "red", "Medium": "yellow", "Low": "green"}

ServerOption = typer.Option(
    "http://localhost:8000",
    "--server",
    "-s",
    envvar="FOODGUARD_API_URL",
    help="FoodGuard API base URL",
)


def _setup() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)


def _print_event(event: ProgressEvent) -> None:
    if isinstance(event, ToolDataEvent):
        quality = event.data.get("dataQuality") if isinstance(event.data, dict) else None
        console.print(f"  [dim]{event.tool_name}: data received (quality: {quality or 'n/a'})[/dim]")
        return
    message = getattr(event, "message", None)
    if message:
        style = "red" if event.type == "error" else "cyan"
        console.print(f"[{style}]{escape(message)}[/{style}]")


def render_report(report: Report) -> None:
    """Print a report as a summary line plus a per-region table."""

    risk_style = _RISK_STYLES.get(report.overall_risk_level, "white")
    console.rule(f"Report {report.report_id}")
    console.print(f"Overall risk: [{risk_style}]{report.overall_risk_level}[/{risk_style}]")
    console.print(escape(report.summary))

    table = Table(show_lines=False)
    table.add_column("Region")
    table.add_column("Risk")
    table.add_column("Confidence", justify="right")
    table.add_column("Shortage (t)", justify="right")
    table.add_column("Crops")
    table.add_column("Action")
    for region in report.regions:
        style = _RISK_STYLES.get(region.risk_level, "white")
        table.add_row(
            escape(region.name),
            f"[{style}]{region.risk_level}[/{style}]",
            f"{region.confidence_score:.0f}%",
            f"{region.shortage_amount:,.0f}",
            ", ".join(region.affected_crops),
            escape(region.recommended_action),
        )
    console.print(table)

    for action in report.critical_actions:
        flag = " \\[approval required]" if action.requires_approval else ""
        console.print(f"- {escape(action.action)} ({escape(action.urgency)}){flag}")
    console.print(
        f"[dim]tools: {', '.join(report.metadata.tools_used) or '-'} | "
        f"{report.metadata.execution_time_ms / 1000:.1f}s | {report.metadata.model_version}[/dim]"
    )


def _finish(state: UIState) -> None:
    if state.report is not None:
        render_report(state.report)
        return
    console.print(f"[red]Analysis failed: {escape(state.error or '')}[/red]")
    raise typer.Exit(code=1)


@app.command()
def analyze(
    regions: list[str] | None = typer.Argument(None, help="Regions to analyze (default: Lahore Karachi Multan)"),
    date_range: str | None = typer.Option(None, "--date-range", "-d", help="Date range hint"),
    thread_id: str | None = typer.Option(None, "--thread-id", help="Continue an earlier conversation"),
    server: str = ServerOption,
) -> None:
    """Stream a multi-region analysis and print the report."""

    _setup()
    selected = list(regions or DEFAULT_SELECTION)
    logger.info("CLI analysis requested", extra={"regions": selected})

    async def _run() -> UIState:
        async with DashboardClient(server) as client:
            return await client.analyze(selected, date_range=date_range, thread_id=thread_id, on_event=_print_event)

    _finish(asyncio.run(_run()))


@app.command()
def quick(
    region: str = typer.Argument(..., help="Region to analyze"),
    server: str = ServerOption,
) -> None:
    """Run a synchronous single-region analysis."""

    _setup()

    async def _run() -> Report:
        async with DashboardClient(server) as client:
            return await client.quick(region)

    with console.status(f"Analyzing {region}..."):
        try:
            report = asyncio.run(_run())
        except DashboardClientError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(code=1) from e
    render_report(report)


@app.command()
def chat(
    regions: list[str] | None = typer.Argument(None, help="Run an analysis of these regions first"),
    server: str = ServerOption,
) -> None:
    """Chat with the assistant, optionally about a fresh analysis. Empty line exits."""

    _setup()

    async def _run() -> None:
        async with DashboardClient(server) as client:
            if regions:
                state = await client.analyze(list(regions), on_event=_print_event)
                if state.report is not None:
                    render_report(state.report)
                else:
                    console.print(f"[red]Analysis failed: {escape(state.error or '')}[/red]")
            while True:
                message = await asyncio.to_thread(console.input, "[bold]you>[/bold] ")
                if not message.strip():
                    return
                reply = await client.chat(message)
                console.print(f"[bold green]assistant>[/bold green] {escape(reply)}")

    asyncio.run(_run())


if __name__ == "__main__":
    app()
