"""Rich table summarizing what each pipeline stage did."""

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .build.orchestrator import PipelineResult, StageStatus

_STATUS_STYLES = {
    StageStatus.RAN: ("ran", "green"),
    StageStatus.SKIPPED: ("skipped", "dim"),
    StageStatus.FAILED: ("failed", "bold red"),
}


def build_summary_table(result: PipelineResult) -> Table:
    """One row per stage that started, in execution order."""
    title = "Dependencies ready" if result.success else f"Pipeline stopped ({result.state.value})"
    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right", style="cyan", no_wrap=True)
    table.add_column("Stage")
    table.add_column("Status", no_wrap=True)
    table.add_column("Time", justify="right", no_wrap=True)
    table.add_column("Detail", overflow="fold")

    for index, record in enumerate(result.stages, start=1):
        label, style = _STATUS_STYLES[record.status]
        detail = record.detail.splitlines()[0] if record.detail else ""
        table.add_row(str(index), record.name, Text(label, style=style), f"{record.elapsed:.2f}s", detail)
    return table


def print_summary(result: PipelineResult, console: Optional[Console] = None) -> None:
    console = console if console is not None else Console(stderr=True)
    console.print(build_summary_table(result))
