import time
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from uuid_bruteforce.oracle import SPACE_SIZE


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Immutable view of the search at one aggregator tick."""

    total: int
    elapsed: float
    throughput: float
    fraction: float
    eta_seconds: Optional[float]
    live_workers: int
    failed_workers: int = 0


class ProgressAggregator:
    """Turn the coordinator's progress table into throughput and ETA figures.

    Totals are always recomputed from a copy of the table, never patched
    incrementally, so late or out-of-order reports cannot make them drift.
    """

    def __init__(
        self,
        space_size: int = SPACE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.space_size = space_size
        self.clock = clock
        self.started_at: Optional[float] = None

    def start(self) -> None:
        self.started_at = self.clock()

    def elapsed(self) -> float:
        if self.started_at is None:
            return 0.0
        return max(0.0, self.clock() - self.started_at)

    def snapshot(
        self,
        table: Mapping[int, int],
        live_workers: int = 0,
        failed_workers: int = 0,
    ) -> ProgressSnapshot:
        counts = dict(table)
        total = sum(counts.values())
        elapsed = self.elapsed()
        throughput = total / elapsed if elapsed > 0 else 0.0

        # Cosmetic: against 2**122 this stays at effectively zero.
        fraction = total / self.space_size

        eta_seconds = None
        if throughput > 0:
            eta_seconds = max(0, self.space_size - total) / throughput

        return ProgressSnapshot(
            total=total,
            elapsed=elapsed,
            throughput=throughput,
            fraction=fraction,
            eta_seconds=eta_seconds,
            live_workers=live_workers,
            failed_workers=failed_workers,
        )
