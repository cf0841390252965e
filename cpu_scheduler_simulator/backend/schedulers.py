"""
Scheduler implementations: SJF, Round Robin and Priority with aging.

Each scheduler drains the ready queue it was given, runs the processes on a
simulated clock and keeps the Gantt log, the completed processes and the
starvation/aging messages of the run. The clock persists between calls to
`schedule()`, so a later call picks up where the previous one stopped.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional, Protocol, runtime_checkable

from .core import PCB, GanttEntry, ProcessState, ReadyQueue
from .memory import MemoryManager
from .utils import EventLogger, compute_avg


DEFAULT_TIME_QUANTUM = 6


class Scheduler:
    """Scheduler type constants."""
    SJF = "SJF"
    RR = "RR"
    PRIORITY = "PRIORITY"
    ALL = (SJF, RR, PRIORITY)


@runtime_checkable
class SchedulingAlgorithm(Protocol):
    name: str
    policy: str

    @property
    def clock(self) -> int: ...

    def schedule(self) -> None: ...

    def completed_processes(self) -> List[PCB]: ...

    def gantt_log(self) -> List[GanttEntry]: ...

    def starvation_log(self) -> List[str]: ...

    def average_waiting_time(self) -> float: ...

    def average_turnaround_time(self) -> float: ...

    def average_response_time(self) -> float: ...


class ExecutionContext:
    """Clock, CPU timeline and results of one scheduler instance."""

    def __init__(self, ready_queue: ReadyQueue, memory: MemoryManager, events: Optional[EventLogger] = None):
        self.ready_queue = ready_queue
        self.memory = memory
        self.events = events or EventLogger(verbose=False)
        self.clock = 0
        self.completed: List[PCB] = []
        self.gantt: List[GanttEntry] = []
        self.starvation: List[str] = []

    def drain(self) -> List[PCB]:
        """Empty the ready queue in its current order."""
        drained: List[PCB] = []
        while True:
            pcb = self.ready_queue.dequeue_first()
            if pcb is None:
                return drained
            drained.append(pcb)

    def dispatch(self, pcb: PCB) -> None:
        pcb.start(self.clock)
        self.events.log_process_event(
            self.clock, pcb.pid, "exec",
            f"[Burst={pcb.burst_time}ms, Remaining={pcb.remaining_time}ms, Priority={pcb.priority}]",
        )

    def run_slice(self, pcb: PCB, quantum: int) -> None:
        start = self.clock
        self.clock += pcb.execute(quantum)
        self.gantt.append(GanttEntry(pcb.pid, start, self.clock))

    def finish(self, pcb: PCB) -> None:
        pcb.complete(self.clock)
        self.events.log_process_event(
            self.clock, pcb.pid, "exit",
            f"(0) WT={pcb.stats.waiting_time}ms, TAT={pcb.stats.turnaround_time}ms",
        )
        self.memory.release(pcb)
        self.completed.append(pcb)

    def run_to_completion(self, pcb: PCB) -> None:
        """Non-preemptive execution of the whole remaining burst."""
        self.dispatch(pcb)
        self.run_slice(pcb, pcb.remaining_time)
        self.finish(pcb)

    def over_threshold(self, waiting: List[PCB]) -> List[PCB]:
        """Return the processes whose wait exceeds their admission width.

        Each one is flagged as starved; the first time that happens a message
        goes into the starvation log.
        """
        exceeded = []
        for pcb in waiting:
            wait = pcb.waited(self.clock)
            if wait <= pcb.admission_width:
                continue
            if not pcb.starved:
                pcb.starved = True
                self.starvation.append(self.events.log_starvation(self.clock, pcb.pid, wait, pcb.admission_width))
            exceeded.append(pcb)
        return exceeded


class ScheduleQueries:
    """Read-only result queries over `self.context`."""

    context: ExecutionContext

    @property
    def clock(self) -> int:
        return self.context.clock

    def completed_processes(self) -> List[PCB]:
        return list(self.context.completed)

    def gantt_log(self) -> List[GanttEntry]:
        return list(self.context.gantt)

    def starvation_log(self) -> List[str]:
        return list(self.context.starvation)

    def average_waiting_time(self) -> float:
        return compute_avg([p.stats.waiting_time for p in self.context.completed])

    def average_turnaround_time(self) -> float:
        return compute_avg([p.stats.turnaround_time for p in self.context.completed])

    def average_response_time(self) -> float:
        return compute_avg([p.stats.response_time for p in self.context.completed])


class SJFScheduler(ScheduleQueries):
    """Shortest Job First, non-preemptive. Ties go to the lower pid."""

    name = "Shortest Job First (SJF) - Non-Preemptive"
    policy = Scheduler.SJF

    def __init__(self, ready_queue: ReadyQueue, memory: MemoryManager, events: Optional[EventLogger] = None):
        self.context = ExecutionContext(ready_queue, memory, events)

    def schedule(self) -> None:
        ctx = self.context
        waiting = ctx.drain()
        while waiting:
            # Starvation is only reported here, it never changes the order
            ctx.over_threshold(waiting)
            shortest = min(waiting, key=lambda p: (p.remaining_time, p.pid))
            waiting.remove(shortest)
            ctx.run_to_completion(shortest)


class RoundRobinScheduler(ScheduleQueries):
    """Round Robin with a fixed time quantum."""

    policy = Scheduler.RR

    def __init__(self, ready_queue: ReadyQueue, memory: MemoryManager,
                 events: Optional[EventLogger] = None, time_quantum: int = DEFAULT_TIME_QUANTUM):
        if time_quantum <= 0:
            raise ValueError("time quantum must be positive")
        self.context = ExecutionContext(ready_queue, memory, events)
        self.time_quantum = time_quantum
        self.name = f"Round-Robin (RR) - Quantum = {time_quantum}ms"

    def schedule(self) -> None:
        ctx = self.context
        rr_queue: Deque[PCB] = deque(ctx.drain())
        while rr_queue:
            pcb = rr_queue.popleft()
            ctx.dispatch(pcb)
            ctx.run_slice(pcb, self.time_quantum)
            if pcb.is_completed():
                ctx.finish(pcb)
            else:
                pcb.state = ProcessState.READY
                rr_queue.append(pcb)


class PriorityScheduler(ScheduleQueries):
    """Non-preemptive priority scheduling (1=lowest, 128=highest) with aging.

    Before every selection each waiting process that has waited longer than
    its admission width is marked starved and gains one priority level, so a
    long wait can raise it by several levels.
    """

    name = "Priority Scheduling (1=Lowest, 128=Highest) with Aging"
    policy = Scheduler.PRIORITY

    def __init__(self, ready_queue: ReadyQueue, memory: MemoryManager, events: Optional[EventLogger] = None):
        self.context = ExecutionContext(ready_queue, memory, events)

    def apply_aging(self, waiting: List[PCB]) -> None:
        ctx = self.context
        for pcb in ctx.over_threshold(waiting):
            old = pcb.priority
            if pcb.apply_aging():
                ctx.starvation.append(ctx.events.log_aging(ctx.clock, pcb.pid, old, pcb.priority))

    def schedule(self) -> None:
        ctx = self.context
        waiting = ctx.drain()
        while waiting:
            self.apply_aging(waiting)
            highest = min(waiting, key=lambda p: (-p.priority, p.pid))
            waiting.remove(highest)
            ctx.run_to_completion(highest)


def make_scheduler(policy: str, ready_queue: ReadyQueue, memory: MemoryManager,
                   events: Optional[EventLogger] = None,
                   time_quantum: int = DEFAULT_TIME_QUANTUM) -> SchedulingAlgorithm:
    """Build the scheduler for a policy tag (see `Scheduler`)."""
    key = policy.upper()
    if key == Scheduler.SJF:
        return SJFScheduler(ready_queue, memory, events)
    if key == Scheduler.RR:
        return RoundRobinScheduler(ready_queue, memory, events, time_quantum=time_quantum)
    if key == Scheduler.PRIORITY:
        return PriorityScheduler(ready_queue, memory, events)
    raise ValueError(f"Unknown scheduling policy: {policy!r}")
