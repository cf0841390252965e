"""
Core data structures for the CPU scheduler simulator.
Includes the PCB, Gantt entries and the thread-safe job and ready queues.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, List, NamedTuple, Optional
import threading


MIN_PRIORITY = 1
MAX_PRIORITY = 128


class ProcessState(Enum):
    """Process states in the system."""
    NEW = "NEW"
    READY = "READY"
    RUNNING = "RUNNING"
    TERMINATED = "TERMINATED"


@dataclass
class ProcessStats:
    """Statistics tracked for each process."""
    waiting_time: int = 0
    turnaround_time: int = 0
    response_time: Optional[int] = None
    completion_time: Optional[int] = None
    first_run_time: Optional[int] = None


@dataclass(eq=False)
class PCB:
    """Process Control Block - maintains all process information."""
    pid: int
    burst_time: int
    priority: int
    memory_required: int
    arrival_time: int = 0
    remaining_time: int = None
    original_priority: int = field(init=False)
    state: ProcessState = ProcessState.NEW
    stats: ProcessStats = None
    # Ready queue size when the process was admitted; its starvation threshold
    admission_width: int = 0
    starved: bool = False
    has_started: bool = False

    def __post_init__(self):
        """Initialize derived attributes."""
        self.remaining_time = self.burst_time if self.remaining_time is None else self.remaining_time
        self.original_priority = self.priority
        self.stats = ProcessStats() if self.stats is None else self.stats

    def start(self, now: int) -> None:
        """Record the first dispatch; later dispatches are ignored."""
        self.state = ProcessState.RUNNING
        if self.has_started:
            return
        self.has_started = True
        self.stats.first_run_time = now
        self.stats.response_time = now - self.arrival_time

    def execute(self, quantum: int) -> int:
        """Run for at most `quantum` units and return the time actually used."""
        if self.state == ProcessState.TERMINATED:
            raise ValueError(f"P{self.pid} has already terminated")
        ran = min(quantum, self.remaining_time)
        self.remaining_time -= ran
        return ran

    def complete(self, now: int) -> None:
        """Stamp completion statistics and move to TERMINATED."""
        if self.state == ProcessState.TERMINATED:
            raise ValueError(f"P{self.pid} has already terminated")
        self.remaining_time = 0
        self.state = ProcessState.TERMINATED
        self.stats.completion_time = now
        self.stats.turnaround_time = now - self.arrival_time
        self.stats.waiting_time = self.stats.turnaround_time - self.burst_time

    def is_completed(self) -> bool:
        return self.remaining_time == 0

    def apply_aging(self) -> bool:
        """Raise priority by one step. Returns False when already at the cap."""
        if self.priority >= MAX_PRIORITY:
            return False
        self.priority += 1
        return True

    def waited(self, now: int) -> int:
        return now - self.arrival_time

    def __str__(self) -> str:
        return f"P{self.pid} [Burst={self.burst_time}, Priority={self.priority}, Memory={self.memory_required}MB]"


class GanttEntry(NamedTuple):
    """One uninterrupted execution slice."""
    pid: int
    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start


class JobQueue:
    """FIFO holding area for processes waiting for memory.

    Producers call `mark_input_done` once they have nothing left to add;
    after that an empty queue stays empty for good.
    """

    def __init__(self):
        self._items: Deque[PCB] = deque()
        self._cond = threading.Condition()
        self._input_done = False

    def enqueue(self, pcb: PCB) -> None:
        with self._cond:
            pcb.state = ProcessState.NEW
            self._items.append(pcb)
            self._cond.notify_all()

    def dequeue(self) -> Optional[PCB]:
        with self._cond:
            return self._items.popleft() if self._items else None

    def peek(self) -> Optional[PCB]:
        with self._cond:
            return self._items[0] if self._items else None

    def mark_input_done(self) -> None:
        with self._cond:
            self._input_done = True
            self._cond.notify_all()

    def is_input_done(self) -> bool:
        with self._cond:
            return self._input_done

    def is_exhausted(self) -> bool:
        """True once input is done and nothing is left to hand out."""
        with self._cond:
            return self._input_done and not self._items

    def wait_for_jobs(self, timeout: float) -> bool:
        """Block until a job is queued or input is done, at most `timeout` seconds."""
        with self._cond:
            return self._cond.wait_for(lambda: self._items or self._input_done, timeout=timeout)

    def is_empty(self) -> bool:
        with self._cond:
            return not self._items

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)


class ReadyQueue:
    """Thread-safe list of memory-admitted processes.

    Removal is by position or identity since schedulers do not pick in FIFO
    order. `mutex` is re-entrant so a caller can hold it across several calls.
    """

    def __init__(self):
        self._items: List[PCB] = []
        self._cond = threading.Condition(threading.RLock())

    @property
    def mutex(self) -> threading.Condition:
        return self._cond

    def enqueue(self, pcb: PCB) -> None:
        with self._cond:
            pcb.state = ProcessState.READY
            self._items.append(pcb)
            self._cond.notify_all()

    def dequeue_first(self) -> Optional[PCB]:
        with self._cond:
            return self._items.pop(0) if self._items else None

    def remove_at(self, index: int) -> Optional[PCB]:
        with self._cond:
            if 0 <= index < len(self._items):
                return self._items.pop(index)
            return None

    def remove(self, pcb: PCB) -> Optional[PCB]:
        """Remove a specific process (matched by identity)."""
        with self._cond:
            for i, item in enumerate(self._items):
                if item is pcb:
                    return self._items.pop(i)
            return None

    def snapshot(self) -> List[PCB]:
        """Copy of the current contents for scanning outside the lock."""
        with self._cond:
            return list(self._items)

    def clear(self) -> None:
        with self._cond:
            self._items.clear()

    def size(self) -> int:
        with self._cond:
            return len(self._items)

    def is_empty(self) -> bool:
        with self._cond:
            return not self._items

    def __len__(self) -> int:
        return self.size()
