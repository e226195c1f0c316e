import threading
from typing import Optional

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from uuid_bruteforce.aggregator import ProgressSnapshot
from uuid_bruteforce.config import ESTIMATED_CHECKS_PER_WORKER
from uuid_bruteforce.coordinator import StopReason, Summary
from uuid_bruteforce.oracle import SPACE_BITS, SPACE_SIZE, Target
from uuid_bruteforce.snapshot_queue import SnapshotQueue

SECONDS_PER_YEAR = 60 * 60 * 24 * 365


def format_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3600:
        return f"{seconds / 60:.1f}m"
    if seconds < 86400:
        return f"{seconds / 3600:.1f}h"
    if seconds < SECONDS_PER_YEAR:
        return f"{seconds / 86400:.1f}d"
    return f"{seconds / SECONDS_PER_YEAR:.3g} years"


def format_rate(per_second: float) -> str:
    return f"{per_second / 1e6:.2f}M/s"


def years_to_exhaust(worker_count: int) -> Optional[int]:
    """Years to walk the whole space at the estimated per-worker speed. None without workers."""
    speed = ESTIMATED_CHECKS_PER_WORKER * worker_count
    if speed == 0:
        return None
    return SPACE_SIZE // speed // SECONDS_PER_YEAR


def render_estimate(worker_count: int) -> Table:
    years = years_to_exhaust(worker_count)
    speed = ESTIMATED_CHECKS_PER_WORKER * worker_count

    t = Table.grid(padding=(0, 2))
    t.add_column(style="cyan", no_wrap=True)
    t.add_column()
    t.add_row("Total UUID v4 combinations", f"[yellow]2^{SPACE_BITS} ≈ {SPACE_SIZE:.2e}[/yellow]")
    t.add_row("Estimated check speed", f"[yellow]~{speed / 1e6:.1f}M UUIDs/sec ({worker_count} workers)[/yellow]")
    if years is None:
        t.add_row("Time to exhaust keyspace", "[red]never (no workers)[/red]")
    else:
        t.add_row("Time to exhaust keyspace", f"[red]~{years:,} years[/red]")
    t.add_row("", "[dim]The universe is only ~13.8 billion years old.[/dim]")
    return t


def render_target(target: Target, worker_count: int) -> Panel:
    """Startup panel: what we are looking for and why we will not find it."""
    t = Table.grid(padding=(0, 2))
    t.add_column(style="cyan", no_wrap=True)
    t.add_column()
    t.add_row("Private UUID (hidden)", f"[dim]{target.secret}[/dim]")
    t.add_row("Public UUID (known)", f"[green]{target.public}[/green]")

    body = Group(
        t,
        Text(""),
        render_estimate(worker_count),
        Text(""),
        Text("Press Ctrl+C to stop at any time.", style="dim"),
    )
    return Panel(body, title="UUID Bruteforce Benchmark", border_style="bold")


def render_progress(snapshot: Optional[ProgressSnapshot]) -> Text:
    """The single status line that is overwritten on every tick."""
    if snapshot is None:
        return Text("Waiting for first update…", style="dim")

    line = Text()
    line.append("Checked: ", style="blue")
    line.append(f"{snapshot.total:>20,}", style="yellow")
    line.append(" | Speed: ", style="blue")
    line.append(format_rate(snapshot.throughput), style="green")
    line.append(" | Elapsed: ", style="blue")
    line.append(format_duration(snapshot.elapsed), style="cyan")
    line.append(" | Progress: ", style="blue")
    line.append(f"{snapshot.fraction * 100:.10f}%", style="dim")
    line.append(" | ETA: ", style="blue")
    if snapshot.eta_seconds is None:
        line.append("never", style="red")
    else:
        line.append(format_duration(snapshot.eta_seconds), style="red")
    if snapshot.failed_workers:
        line.append(f" | Failed workers: {snapshot.failed_workers}", style="red")
    return line


def render_summary(summary: Summary) -> Panel:
    t = Table.grid(padding=(0, 2))
    t.add_column(style="cyan", no_wrap=True)
    t.add_column()
    t.add_row("Total checked", f"[yellow]{summary.total_checked:,}[/yellow]")
    t.add_row("Total time", f"[cyan]{format_duration(summary.elapsed)}[/cyan]")
    t.add_row("Avg speed", f"[green]{summary.throughput / 1e6:.2f}M UUIDs/sec[/green]")
    t.add_row("Workers", f"{summary.worker_count} ({summary.failed_workers} failed)")
    if summary.found:
        t.add_row("Result", "[bold green]FOUND IT![/bold green]")
        t.add_row("Private UUID", f"[yellow]{summary.secret}[/yellow]")
    elif summary.reason == StopReason.CANCELLED:
        t.add_row("Result", "[red]Not found, cancelled (as expected!)[/red]")
    else:
        t.add_row("Result", "[red]Not found[/red]")
    return Panel(t, title="Final Statistics", border_style="bold")


def ui_loop(state_queue: SnapshotQueue[ProgressSnapshot], console: Console) -> None:
    """Render the newest snapshot until the queue is closed."""
    with Live(render_progress(None), console=console, refresh_per_second=10, transient=False) as live:
        while True:
            snapshot = state_queue.get()
            if snapshot is None:
                break
            live.update(render_progress(snapshot))


class ConsoleDisplay:
    """Terminal output for a search run.

    Progress snapshots go through a SnapshotQueue to a dedicated UI
    thread, so publishing from the coordinator never blocks on the terminal.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.state_queue: SnapshotQueue[ProgressSnapshot] = SnapshotQueue()
        self._thread: Optional[threading.Thread] = None

    def show_target(self, target: Target, worker_count: int) -> None:
        self.console.print(render_target(target, worker_count))
        self.console.print(f"[bold green]Starting bruteforce with {worker_count} workers...[/bold green]")

    def start(self) -> None:
        self._thread = threading.Thread(
            target=ui_loop,
            args=(self.state_queue, self.console),
            name="progress-ui",
            daemon=True,
        )
        self._thread.start()

    def publish(self, snapshot: ProgressSnapshot) -> None:
        self.state_queue.publish(snapshot)

    def close(self) -> None:
        self.state_queue.close()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def show_summary(self, summary: Summary) -> None:
        self.console.print(render_summary(summary))
