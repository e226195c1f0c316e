import signal
from enum import Enum
from typing import Any, Callable, Iterator, Protocol

from uuid_bruteforce import messages
from uuid_bruteforce.candidates import CandidateFactory
from uuid_bruteforce.oracle import derive

# Larger batches reduce message overhead; smaller ones make stop requests land sooner.
DEFAULT_BATCH_SIZE = 100_000


class StopToken(Protocol):
    def is_set(self) -> bool: ...


class Outbox(Protocol):
    def put(self, item: Any) -> None: ...


class WorkerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FOUND = "found"
    STOPPED = "stopped"

    def __str__(self):
        return self.value


class SearchWorker:
    """Check random candidates against one public value, one batch at a time.

    Progress is reported once per completed batch with the cumulative count.
    Between batches the worker checks its stop token; that check is the only
    place a stop request is observed.
    """

    def __init__(
        self,
        worker_id: int,
        candidates: Iterator[str],
        outbox: Outbox,
        stop: StopToken,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        derive_fn: Callable[[str], str] = derive,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.worker_id = worker_id
        self.candidates = candidates
        self.outbox = outbox
        self.stop = stop
        self.batch_size = batch_size
        self.derive_fn = derive_fn
        self.state = WorkerState.IDLE
        self.checked = 0

    def check_batch(self, target_public: str) -> str | None:
        """Check up to one batch. Returns the matching candidate, if any."""
        for _ in range(self.batch_size):
            candidate = next(self.candidates)
            self.checked += 1
            if self.derive_fn(candidate) == target_public:
                return candidate
        return None

    def run(self, target_public: str) -> WorkerState:
        self.state = WorkerState.RUNNING

        # The stop check at the top of each batch is the yield point.
        while not self.stop.is_set():
            match = self.check_batch(target_public)
            if match is not None:
                self.outbox.put(messages.found(self.worker_id, match, self.checked))
                self.state = WorkerState.FOUND
                return self.state

            self.outbox.put(messages.progress(self.worker_id, self.checked))

        self.state = WorkerState.STOPPED
        return self.state


def run_worker(
    start: dict[str, Any],
    outbox: Outbox,
    stop: StopToken,
    candidate_factory: CandidateFactory,
    batch_size: int = DEFAULT_BATCH_SIZE,
    ignore_interrupts: bool = False,
) -> None:
    """Entry point of one execution unit.

    Any failure, including the entropy source giving out, is reported to the
    coordinator as an error message instead of escaping the execution unit.
    """
    if ignore_interrupts:
        # Child processes leave Ctrl+C to the coordinator.
        signal.signal(signal.SIGINT, signal.SIG_IGN)

    # Taken from the raw dict so a start message that fails validation is still reported.
    worker_id = start.get("worker_id")
    worker = None
    try:
        message = messages.StartMessage.model_validate(start)
        worker = SearchWorker(
            message.worker_id,
            candidate_factory(message.worker_id),
            outbox,
            stop,
            batch_size=batch_size,
        )
        worker.run(message.target_public)
    except Exception as e:
        checked = worker.checked if worker is not None else 0
        outbox.put(messages.error(worker_id, e, checked))
