import os
from dataclasses import dataclass, field
from typing import Optional

from uuid_bruteforce.executor import ExecutorKind
from uuid_bruteforce.worker import DEFAULT_BATCH_SIZE

DEFAULT_WORKER_COUNT = 8
PROGRESS_INTERVAL_SECONDS = 0.1
STOP_GRACE_SECONDS = 1.0
EXECUTOR_KINDS = ("process", "thread")

# Roughly what one thread manages on modern hardware; only used for the difficulty estimate.
ESTIMATED_CHECKS_PER_WORKER = 500_000


def available_parallelism() -> int:
    """Number of CPUs the host reports, or a fixed default when it can't tell."""
    return os.cpu_count() or DEFAULT_WORKER_COUNT


@dataclass(frozen=True, slots=True)
class SearchConfig:
    worker_count: int = field(default_factory=available_parallelism)
    batch_size: int = DEFAULT_BATCH_SIZE
    progress_interval: float = PROGRESS_INTERVAL_SECONDS
    stop_grace: float = STOP_GRACE_SECONDS
    executor: ExecutorKind = "process"
    seed: Optional[int] = None

    def __post_init__(self):
        if self.worker_count < 0:
            raise ValueError(f"worker_count must not be negative, got {self.worker_count}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.progress_interval <= 0:
            raise ValueError(f"progress_interval must be positive, got {self.progress_interval}")
        if self.stop_grace < 0:
            raise ValueError(f"stop_grace must not be negative, got {self.stop_grace}")
        if self.executor not in EXECUTOR_KINDS:
            raise ValueError(f"Invalid executor kind: {self.executor}")
