"""
Background workers of the admission pipeline.

`FileReaderThread` turns job descriptor lines into PCBs on the job queue.
`JobLoaderThread` moves the head of the job queue into the ready queue
whenever the memory manager can hold it.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Set
import logging
import threading

from .core import JobQueue, ReadyQueue, PCB
from .exceptions import MemoryRequestError, ProcessValidationError, SimulationAborted
from .memory import MemoryManager
from .parser import iter_processes, validate_pcb
from .utils import EventLogger


logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.05  # seconds


class FileReaderThread(threading.Thread):
    """Producer: parses a job file (or any iterable of lines) into the job queue.

    Rejected lines are logged and kept in `errors`; they never stop the read.
    The job queue is always marked done at the end, even when the file cannot
    be opened; that failure is kept in `io_error`.
    """

    def __init__(self, job_queue: JobQueue, path: Optional[str] = None,
                 lines: Optional[Iterable[str]] = None, events: Optional[EventLogger] = None):
        super().__init__(name="FileReaderThread", daemon=True)
        if (path is None) == (lines is None):
            raise ValueError("pass exactly one of path or lines")
        self.job_queue = job_queue
        self.path = path
        self.lines = lines
        self.events = events or EventLogger(verbose=False)
        self.errors: List[ProcessValidationError] = []
        self.io_error: Optional[OSError] = None
        self.process_count = 0
        self._seen: Set[int] = set()

    def run(self) -> None:
        try:
            if self.path is not None:
                with open(self.path, encoding="utf-8") as f:
                    self._consume(f)
            else:
                self._consume(self.lines)
        except OSError as e:
            logger.error("Error reading file %s: %s", self.path, e)
            self.io_error = e
        finally:
            self.job_queue.mark_input_done()

    def _consume(self, lines: Iterable[str]) -> None:
        for pcb, err in iter_processes(lines):
            if err is None:
                try:
                    validate_pcb(pcb, self._seen)
                except ProcessValidationError as e:
                    err = e
            if err is not None:
                logger.warning("Error parsing line %r: %s", err.line, err)
                self.errors.append(err)
                continue
            self._seen.add(pcb.pid)
            self.events.log_process_event(None, pcb.pid, "fork")
            self.job_queue.enqueue(pcb)
            self.process_count += 1


class JobLoaderThread(threading.Thread):
    """Admission pipeline: job queue -> memory check -> ready queue.

    Requests larger than the whole pool are rejected straight away and kept
    in `rejected`. With `yield_when_blocked` the loader stops (setting
    `stalled`) instead of waiting when the head does not fit while admitted
    processes still hold memory; otherwise it waits on memory releases and
    retries every `poll_interval` seconds.
    """

    def __init__(self, job_queue: JobQueue, ready_queue: ReadyQueue, memory: MemoryManager,
                 events: Optional[EventLogger] = None, poll_interval: float = DEFAULT_POLL_INTERVAL,
                 yield_when_blocked: bool = False, cancel: Optional[threading.Event] = None):
        super().__init__(name="JobLoaderThread", daemon=True)
        self.job_queue = job_queue
        self.ready_queue = ready_queue
        self.memory = memory
        self.events = events or EventLogger(verbose=False)
        self.poll_interval = poll_interval
        self.yield_when_blocked = yield_when_blocked
        self.cancel = cancel or threading.Event()
        self.admitted: List[PCB] = []
        self.rejected: List[MemoryRequestError] = []
        self.stalled = False
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        logger.debug("Job loader started")
        try:
            self._load()
        except SimulationAborted as e:
            logger.warning("Job loader interrupted: %s", e)
            self.error = e
        logger.debug("Job loader finished, ready queue size: %d", len(self.ready_queue))

    def _load(self) -> None:
        while True:
            if self.cancel.is_set():
                raise SimulationAborted("admission cancelled")

            head = self.job_queue.peek()
            if head is None:
                if self.job_queue.is_input_done():
                    return
                self.job_queue.wait_for_jobs(self.poll_interval)
                continue

            if not self.memory.fits(head):
                self._reject(head)
                continue

            if self.admit(head):
                continue

            if self.yield_when_blocked and not self.ready_queue.is_empty():
                self.stalled = True
                return
            self.memory.wait_for_release(self.poll_interval)

    def admit(self, pcb: PCB) -> bool:
        """Allocate, dequeue, stamp and enqueue as one step under the ready queue lock."""
        with self.ready_queue.mutex:
            if self.job_queue.peek() is not pcb:
                # Taken by another loader; the caller re-reads the head
                return True
            if not self.memory.allocate(pcb):
                return False
            self.job_queue.dequeue()
            pcb.admission_width = self.ready_queue.size()
            self.ready_queue.enqueue(pcb)
        self.admitted.append(pcb)
        self.events.log_process_event(None, pcb.pid, "ready", f"(DoM: {pcb.admission_width})")
        logger.debug("Loaded P%d to ready queue (DoM: %d, available memory: %d MB)",
                     pcb.pid, pcb.admission_width, self.memory.available)
        return True

    def _reject(self, pcb: PCB) -> None:
        self.job_queue.dequeue()
        err = MemoryRequestError(pcb.pid, pcb.memory_required, self.memory.total)
        logger.error("Rejected: %s", err)
        self.events.log_process_event(None, pcb.pid, "kill", str(err))
        self.rejected.append(err)
