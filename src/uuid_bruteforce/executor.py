import multiprocessing
import queue
import threading
from enum import Enum
from typing import Any, Literal, Optional, Protocol

from uuid_bruteforce.candidates import CandidateFactory
from uuid_bruteforce.messages import StartMessage
from uuid_bruteforce.worker import run_worker

ExecutorKind = Literal["process", "thread"]


class Inbox(Protocol):
    def get(self, block: bool = True, timeout: Optional[float] = None) -> Any: ...


class WorkerStatus(str, Enum):
    RUNNING = "running"
    FOUND = "found"
    FAILED = "failed"
    STOPPED = "stopped"

    def __str__(self):
        return self.value


class WorkerHandle:
    """Coordinator-side handle on one execution unit.

    The worker's counters live inside the unit; the handle only carries what
    the coordinator needs to stop it and to know whether it still counts.
    """

    def __init__(self, worker_id: int, unit: Any, stop_event: Any):
        self.worker_id = worker_id
        self.unit = unit
        self.stop_event = stop_event
        self.status = WorkerStatus.RUNNING

    @property
    def running(self) -> bool:
        return self.status == WorkerStatus.RUNNING

    @property
    def exitcode(self) -> Optional[int]:
        return getattr(self.unit, "exitcode", None)

    def is_alive(self) -> bool:
        return self.unit.is_alive()

    def stop(self) -> None:
        self.stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        self.unit.join(timeout)

    def terminate(self) -> bool:
        """Kill the unit outright. Returns False when the unit can't be killed (threads)."""
        terminate = getattr(self.unit, "terminate", None)
        if terminate is None:
            return False
        terminate()
        return True

    def __repr__(self) -> str:
        return f"WorkerHandle(worker_id={self.worker_id}, status={self.status})"


class ProcessExecutor:
    """One OS process per worker; reports come back on a shared multiprocessing queue."""

    kind: ExecutorKind = "process"

    def __init__(self, start_method: Optional[str] = None):
        self._context = multiprocessing.get_context(start_method)
        self.inbox = self._context.Queue()

    def spawn(
        self,
        start: StartMessage,
        candidate_factory: CandidateFactory,
        batch_size: int,
    ) -> WorkerHandle:
        stop_event = self._context.Event()
        process = self._context.Process(
            target=run_worker,
            args=(start.to_wire(), self.inbox, stop_event, candidate_factory, batch_size, True),
            name=f"search-worker-{start.worker_id}",
            daemon=True,
        )
        process.start()
        return WorkerHandle(start.worker_id, process, stop_event)

    def close(self) -> None:
        self.inbox.close()


class ThreadExecutor:
    """One thread per worker inside this process.

    Threads share the GIL, so this trades throughput for cheap startup. It can
    not force-terminate a worker; stopping is purely cooperative.
    """

    kind: ExecutorKind = "thread"

    def __init__(self):
        self.inbox: queue.Queue[Any] = queue.Queue()

    def spawn(
        self,
        start: StartMessage,
        candidate_factory: CandidateFactory,
        batch_size: int,
    ) -> WorkerHandle:
        stop_event = threading.Event()
        thread = threading.Thread(
            target=run_worker,
            args=(start.to_wire(), self.inbox, stop_event, candidate_factory, batch_size, False),
            name=f"search-worker-{start.worker_id}",
            daemon=True,
        )
        thread.start()
        return WorkerHandle(start.worker_id, thread, stop_event)

    def close(self) -> None:
        pass


def make_executor(kind: ExecutorKind) -> ProcessExecutor | ThreadExecutor:
    match kind:
        case "process":
            return ProcessExecutor()
        case "thread":
            return ThreadExecutor()
        case _:
            raise ValueError(f"Invalid executor kind: {kind}")
