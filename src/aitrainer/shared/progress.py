"""Rich progress display for collection runs."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

console = Console()


class PipelineProgress:
    """Tracks one spinner per business type being collected."""

    def __init__(self, *, output: Console | None = None) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=output or console,
        )
        self._task_ids: dict[str, int] = {}

    def __enter__(self) -> "PipelineProgress":
        self._progress.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        self._progress.__exit__(*args)

    def start(self, label: str) -> None:
        """Register and start tracking a run."""
        tid = self._progress.add_task(f"[cyan]{label}[/]", total=None)
        self._task_ids[label] = tid

    def update(self, label: str, status: str) -> None:
        """Update the status text for a run."""
        if label in self._task_ids:
            self._progress.update(
                self._task_ids[label],
                description=f"[cyan]{label}[/]: {status}",
            )

    def finish(self, label: str, detail: str = "") -> None:
        if label in self._task_ids:
            suffix = f" ({detail})" if detail else ""
            self._progress.update(
                self._task_ids[label],
                description=f"[green]✓ {label}{suffix}[/]",
                completed=True,
            )

    def fail(self, label: str, error: str) -> None:
        if label in self._task_ids:
            self._progress.update(
                self._task_ids[label],
                description=f"[red]✗ {label}: {error}[/]",
                completed=True,
            )

    def log_event(self, label: str, message: str, style: str = "dim") -> None:
        """Print a persistent log line above the spinner (not overwritten)."""
        self._progress.console.print(f"  [{style}]{label}:[/] {message}")

    def print_phase(self, label: str) -> None:
        """Print a phase header outside the progress display."""
        self._progress.console.print(Panel(f"[bold]{label}[/bold]", style="blue"))
