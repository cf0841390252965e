from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Sequence, Set
import logging
import threading

import pandas as pd

from .core import JobQueue, ReadyQueue, PCB, GanttEntry
from .exceptions import MemoryRequestError, ProcessValidationError, SimulationAborted
from .loader import FileReaderThread, JobLoaderThread, DEFAULT_POLL_INTERVAL
from .memory import MemoryManager, TOTAL_MEMORY
from .parser import validate_pcb
from .schedulers import Scheduler, SchedulingAlgorithm, make_scheduler, DEFAULT_TIME_QUANTUM
from .utils import EventLogger, compute_throughput


logger = logging.getLogger(__name__)


@dataclass
class KernelConfig:
    policy: str = Scheduler.SJF
    time_quantum: int = DEFAULT_TIME_QUANTUM
    memory_capacity: int = TOTAL_MEMORY
    poll_interval: float = DEFAULT_POLL_INTERVAL
    verbose: bool = True


@dataclass
class SimulationResult:
    policy: str
    algorithm: str
    processes: List[PCB]
    gantt: List[GanttEntry]
    starvation_log: List[str]
    total_time: int
    avg_waiting_time: float
    avg_turnaround_time: float
    avg_response_time: float
    throughput: float
    logger: EventLogger
    rejected: List[MemoryRequestError] = field(default_factory=list)
    parse_errors: List[ProcessValidationError] = field(default_factory=list)
    waves: int = 1


class OSKernel:
    """Wires the file reader, the job loader and a scheduler into one run.

    The reader and the loader run on their own threads and are joined before
    the scheduler touches the ready queue. If the loader stalls because the
    admitted processes hold all the memory, the admitted wave is scheduled
    first and admission resumes on a fresh loader; the scheduler clock keeps
    running across waves.
    """

    def __init__(self, config: KernelConfig | None = None):
        self.config = config or KernelConfig()
        self._cancel = threading.Event()

    def cancel(self) -> None:
        """Abort admission of the current run, or of the next one if none is running."""
        self._cancel.set()

    def run(self, processes: Sequence[PCB]) -> SimulationResult:
        """Run already-built PCBs (they are enqueued in the given order).

        Each PCB goes through the same checks as a job file line; failures and
        repeated pids are logged, left out of the run and reported in
        `parse_errors`.
        """
        job_queue = JobQueue()
        events = EventLogger(verbose=self.config.verbose)
        errors: List[ProcessValidationError] = []
        seen: Set[int] = set()
        for pcb in processes:
            try:
                validate_pcb(pcb, seen)
            except ProcessValidationError as e:
                logger.warning("Rejected %s: %s", e.line, e)
                errors.append(e)
                continue
            seen.add(pcb.pid)
            events.log_process_event(None, pcb.pid, "fork")
            job_queue.enqueue(pcb)
        job_queue.mark_input_done()
        return self._run(job_queue, None, events, errors)

    def run_lines(self, lines: Iterable[str]) -> SimulationResult:
        job_queue = JobQueue()
        events = EventLogger(verbose=self.config.verbose)
        return self._run(job_queue, FileReaderThread(job_queue, lines=lines, events=events), events)

    def run_file(self, path: str) -> SimulationResult:
        job_queue = JobQueue()
        events = EventLogger(verbose=self.config.verbose)
        return self._run(job_queue, FileReaderThread(job_queue, path=path, events=events), events)

    def compare(self, path: Optional[str] = None, lines: Optional[Iterable[str]] = None) -> pd.DataFrame:
        """Run every policy on the same input, quietly, and tabulate the averages."""
        if lines is not None:
            lines = list(lines)
        rows = []
        for policy in Scheduler.ALL:
            kernel = OSKernel(replace(self.config, policy=policy, verbose=False))
            result = kernel.run_file(path) if path is not None else kernel.run_lines(lines)
            rows.append({
                "algorithm": result.algorithm,
                "policy": policy,
                "avg_waiting_time": result.avg_waiting_time,
                "avg_turnaround_time": result.avg_turnaround_time,
                "avg_response_time": result.avg_response_time,
                "total_time": result.total_time,
                "completed": len(result.processes),
            })
        return pd.DataFrame(rows).set_index("algorithm")

    def _run(self, job_queue: JobQueue, producer: Optional[FileReaderThread], events: EventLogger,
             errors: Optional[List[ProcessValidationError]] = None) -> SimulationResult:
        try:
            return self._schedule_waves(job_queue, producer, events, list(errors or []))
        finally:
            self._cancel.clear()

    def _schedule_waves(self, job_queue: JobQueue, producer: Optional[FileReaderThread], events: EventLogger,
                        errors: List[ProcessValidationError]) -> SimulationResult:
        ready_queue = ReadyQueue()
        memory = MemoryManager(self.config.memory_capacity, events=events)
        scheduler: SchedulingAlgorithm = make_scheduler(
            self.config.policy, ready_queue, memory, events=events, time_quantum=self.config.time_quantum,
        )
        rejected: List[MemoryRequestError] = []

        if producer is not None:
            producer.start()

        waves = 0
        while True:
            loader = JobLoaderThread(
                job_queue, ready_queue, memory, events=events,
                poll_interval=self.config.poll_interval,
                yield_when_blocked=True, cancel=self._cancel,
            )
            loader.start()
            self._join(loader)
            if producer is not None:
                self._join(producer)
            rejected.extend(loader.rejected)
            if loader.error is not None:
                raise loader.error

            if producer is not None and producer.io_error is not None:
                raise producer.io_error

            waves += 1
            logger.debug("Scheduling wave %d (%d processes, %s)", waves, len(ready_queue), memory)
            scheduler.schedule()
            if not loader.stalled:
                break

        completed = scheduler.completed_processes()
        return SimulationResult(
            policy=self.config.policy,
            algorithm=scheduler.name,
            processes=completed,
            gantt=scheduler.gantt_log(),
            starvation_log=scheduler.starvation_log(),
            total_time=scheduler.clock,
            avg_waiting_time=scheduler.average_waiting_time(),
            avg_turnaround_time=scheduler.average_turnaround_time(),
            avg_response_time=scheduler.average_response_time(),
            throughput=compute_throughput(len(completed), scheduler.clock),
            logger=events,
            rejected=rejected,
            parse_errors=errors + (list(producer.errors) if producer is not None else []),
            waves=waves,
        )

    def _join(self, thread: threading.Thread) -> None:
        try:
            while thread.is_alive():
                thread.join(timeout=self.config.poll_interval)
        except KeyboardInterrupt:
            self.cancel()
            thread.join()
            raise SimulationAborted("interrupted while waiting for admission") from None
