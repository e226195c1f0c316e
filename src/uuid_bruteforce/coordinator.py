"""Search coordinator: owns the worker pool, the progress table and the run state.

All mutable run state lives here and is only touched from the coordinator's
own loop (``run``) or from direct calls on the same thread. Workers only ever
see an immutable start message and their own stop token; everything coming
back is a copied report message.
"""
import queue
import signal
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol

import pydantic
import structlog

from uuid_bruteforce import messages
from uuid_bruteforce.aggregator import ProgressAggregator, ProgressSnapshot
from uuid_bruteforce.candidates import CandidateFactory, RandomCandidates
from uuid_bruteforce.config import SearchConfig
from uuid_bruteforce.executor import Inbox, WorkerHandle, WorkerStatus
from uuid_bruteforce.oracle import SPACE_SIZE, Target

log = structlog.get_logger()

INTERRUPT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"

    def __str__(self):
        return self.value


class StopReason(str, Enum):
    FOUND = "found"
    CANCELLED = "cancelled"

    def __str__(self):
        return self.value


@dataclass(frozen=True, slots=True)
class Summary:
    reason: StopReason
    found: bool
    secret: Optional[str]
    total_checked: int
    elapsed: float
    throughput: float
    worker_count: int
    failed_workers: int


class Executor(Protocol):
    inbox: Inbox

    def spawn(
        self,
        start: messages.StartMessage,
        candidate_factory: CandidateFactory,
        batch_size: int,
    ) -> WorkerHandle: ...

    def close(self) -> None: ...


class Display(Protocol):
    def show_target(self, target: Target, worker_count: int) -> None: ...
    def start(self) -> None: ...
    def publish(self, snapshot: ProgressSnapshot) -> None: ...
    def close(self) -> None: ...
    def show_summary(self, summary: Summary) -> None: ...


class SearchCoordinator:
    def __init__(
        self,
        config: SearchConfig,
        executor: Executor,
        display: Optional[Display] = None,
        *,
        target: Optional[Target] = None,
        candidate_factory: Optional[CandidateFactory] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.executor = executor
        self.display = display
        self.target = target
        self.candidate_factory = candidate_factory or RandomCandidates()
        self.clock = clock
        self.aggregator = ProgressAggregator(SPACE_SIZE, clock)

        self.state = RunState.IDLE
        self.found = False
        self.found_secret: Optional[str] = None
        self.progress: dict[int, int] = {}
        self.workers: dict[int, WorkerHandle] = {}
        self.summary: Optional[Summary] = None
        self._stop_requested = False

    def start(self, worker_count: int) -> None:
        if self.state != RunState.IDLE:
            raise RuntimeError(f"Coordinator already started (state={self.state})")

        if self.target is None:
            self.target = Target.generate()
        self.progress = {}
        self.workers = {}

        if self.display is not None:
            self.display.show_target(self.target, worker_count)

        for worker_id in range(worker_count):
            start = messages.StartMessage(target_public=self.target.public, worker_id=worker_id)
            handle = self.executor.spawn(start, self.candidate_factory, self.config.batch_size)
            self.workers[worker_id] = handle
            self.progress[worker_id] = 0

        log.info(
            "workers spawned",
            count=worker_count,
            executor=type(self.executor).__name__,
            batch_size=self.config.batch_size,
            target_public=self.target.public,
        )

        self.aggregator.start()
        self.state = RunState.RUNNING
        if self.display is not None:
            self.display.start()

    def request_stop(self) -> None:
        """Record an external interrupt. Safe to call from a signal handler, any number of times."""
        self._stop_requested = True

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def run(self, worker_count: Optional[int] = None) -> Summary:
        """Run a full search and return its summary. Returns on a match or an interrupt.

        If anything raises on the way (a spawn failing halfway, say), workers
        that were already started are still stopped before the error propagates.
        """
        if worker_count is None:
            worker_count = self.config.worker_count

        previous_handlers = self._install_interrupt_handler()
        try:
            self.start(worker_count)
            next_tick = self.clock()
            while self.state == RunState.RUNNING:
                if self._stop_requested:
                    log.warning("interrupt received, stopping workers")
                    break
                now = self.clock()
                if now >= next_tick:
                    self.tick()
                    next_tick = now + self.config.progress_interval
                self.poll(max(0.0, next_tick - self.clock()))
                self.reap()
        finally:
            try:
                if self.state != RunState.STOPPED:
                    self.stop_all(StopReason.CANCELLED)
            finally:
                self._restore_interrupt_handler(previous_handlers)
        return self.summary

    def stop_all(self, reason: StopReason = StopReason.CANCELLED) -> Summary:
        """Stop every worker and emit the one final summary.

        Idempotent: once a stop is underway, later calls (a match racing an
        interrupt, say) get the same summary and emit nothing.
        """
        if self.state in (RunState.STOPPING, RunState.STOPPED):
            return self.summary
        if self.state == RunState.IDLE:
            # Nothing was started; still record a clean, empty run.
            self.aggregator.start()

        self.state = RunState.STOPPING
        if self.found:
            reason = StopReason.FOUND

        self._shutdown_workers()

        final = self.snapshot()
        self.summary = Summary(
            reason=reason,
            found=self.found,
            secret=self.found_secret,
            total_checked=final.total,
            elapsed=final.elapsed,
            throughput=final.throughput,
            worker_count=len(self.workers),
            failed_workers=final.failed_workers,
        )
        log.info(
            "search stopped",
            reason=str(reason),
            found=self.found,
            total_checked=final.total,
            elapsed=round(final.elapsed, 3),
        )

        if self.display is not None:
            self.display.close()
            self.display.show_summary(self.summary)

        self.executor.close()
        self.state = RunState.STOPPED
        return self.summary

    def _shutdown_workers(self) -> None:
        for handle in self.workers.values():
            handle.stop()

        deadline = self.clock() + self.config.stop_grace
        for handle in self.workers.values():
            handle.join(max(0.0, deadline - self.clock()))

        for handle in self.workers.values():
            if handle.is_alive():
                # No final progress report is coming from these; their last known count stands.
                if handle.terminate():
                    log.debug("worker terminated", worker_id=handle.worker_id)
                    handle.join(self.config.stop_grace)
                else:
                    log.warning("worker still running after stop", worker_id=handle.worker_id)
            if handle.running:
                handle.status = WorkerStatus.STOPPED

    def poll(self, timeout: float = 0.0) -> bool:
        """Handle at most one inbound report. Returns False when none arrived in time."""
        try:
            if timeout > 0:
                raw = self.executor.inbox.get(timeout=timeout)
            else:
                raw = self.executor.inbox.get(block=False)
        except queue.Empty:
            return False
        self.handle_message(raw)
        return True

    def handle_message(self, raw: Any) -> None:
        if self.state != RunState.RUNNING:
            log.debug("report discarded after stop", state=str(self.state))
            return

        try:
            message = messages.parse_report(raw)
        except pydantic.ValidationError as e:
            log.error("malformed worker report", error=str(e))
            return

        handle = self.workers.get(message.worker_id)
        if handle is None or not handle.running:
            log.debug("report from inactive worker ignored", worker_id=message.worker_id)
            return

        match message:
            case messages.ProgressMessage():
                self._record(message.worker_id, message.count)
            case messages.FoundMessage():
                self._record(message.worker_id, message.count)
                handle.status = WorkerStatus.FOUND
                self.found = True
                self.found_secret = message.private
                log.info("match found", worker_id=message.worker_id, checked=message.checked)
                self.stop_all(StopReason.FOUND)
            case messages.ErrorMessage():
                self._record(message.worker_id, message.count)
                self._fail(handle, message.error)

    def reap(self) -> None:
        """Mark workers that died without reporting as failed."""
        if self.state != RunState.RUNNING:
            return
        for handle in self.workers.values():
            if not handle.running or handle.is_alive():
                continue
            exitcode = handle.exitcode
            if exitcode not in (None, 0):
                self._fail(handle, f"exited with code {exitcode}")

    def _record(self, worker_id: int, checked: int) -> None:
        # Reports from one worker arrive in order; never let a count go backwards anyway.
        if checked >= self.progress.get(worker_id, 0):
            self.progress[worker_id] = checked

    def _fail(self, handle: WorkerHandle, reason: str) -> None:
        handle.status = WorkerStatus.FAILED
        log.error(
            "worker failed",
            worker_id=handle.worker_id,
            error=reason,
            checked=self.progress.get(handle.worker_id, 0),
        )

    def snapshot(self) -> ProgressSnapshot:
        statuses = [handle.status for handle in self.workers.values()]
        return self.aggregator.snapshot(
            self.progress,
            live_workers=statuses.count(WorkerStatus.RUNNING),
            failed_workers=statuses.count(WorkerStatus.FAILED),
        )

    def tick(self) -> Optional[ProgressSnapshot]:
        if self.state != RunState.RUNNING:
            return None
        snapshot = self.snapshot()
        if self.display is not None:
            self.display.publish(snapshot)
        return snapshot

    def _handle_interrupt(self, signum, frame) -> None:
        self.request_stop()

    def _install_interrupt_handler(self) -> dict[int, Any]:
        previous = {}
        try:
            for signum in INTERRUPT_SIGNALS:
                previous[signum] = signal.signal(signum, self._handle_interrupt)
        except ValueError:
            # signal.signal only works on the main thread; callers elsewhere use request_stop().
            log.debug("interrupt handler not installed outside the main thread")
        return previous

    def _restore_interrupt_handler(self, previous: dict[int, Any]) -> None:
        for signum, handler in previous.items():
            # None means the old handler wasn't set from Python.
            signal.signal(signum, signal.SIG_DFL if handler is None else handler)
