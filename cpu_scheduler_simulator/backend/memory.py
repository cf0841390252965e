"""
Fixed-size memory pool that gates admission into the ready queue.
"""

from typing import Dict, Optional
import logging
import threading

from .core import PCB
from .utils import EventLogger


logger = logging.getLogger(__name__)

TOTAL_MEMORY = 2048  # MB


class MemoryManager:
    """Tracks free memory and the allocation held by each admitted process record.

    Invariant: available + sum(allocations) == total, 0 <= available <= total.
    """

    def __init__(self, total: int = TOTAL_MEMORY, events: Optional[EventLogger] = None):
        if total <= 0:
            raise ValueError("total memory must be positive")
        self.total = total
        self.events = events
        self._available = total
        self._allocations: Dict[PCB, int] = {}
        self._cond = threading.Condition()

    def has_capacity_for(self, amount: int) -> bool:
        with self._cond:
            return self._available >= amount

    def fits(self, pcb: PCB) -> bool:
        """Whether the request could ever be satisfied by an empty pool."""
        return pcb.memory_required <= self.total

    def allocate(self, pcb: PCB) -> bool:
        """Deduct the process's requirement if it fits; check and deduct are atomic."""
        with self._cond:
            required = pcb.memory_required
            if self._available < required:
                return False
            self._available -= required
            self._allocations[pcb] = self._allocations.get(pcb, 0) + required
            available = self._available
        if self.events:
            self.events.log_memory_event(pcb.pid, "allocate", required, available)
        return True

    def release(self, pcb: PCB) -> None:
        """Give the process's allocation back and wake anyone waiting for memory."""
        with self._cond:
            released = self._allocations.pop(pcb, 0)
            self._available += released
            available = self._available
            self._cond.notify_all()
        if not released:
            logger.warning("P%d released memory it never held", pcb.pid)
            return
        if self.events:
            self.events.log_memory_event(pcb.pid, "release", released, available)

    def wait_for_release(self, timeout: float) -> None:
        """Sleep until some memory is released or `timeout` seconds pass."""
        with self._cond:
            self._cond.wait(timeout=timeout)

    @property
    def available(self) -> int:
        with self._cond:
            return self._available

    @property
    def used(self) -> int:
        with self._cond:
            return self.total - self._available

    def utilization(self) -> float:
        """Percentage of the pool currently allocated."""
        return self.used / self.total * 100

    def reset(self) -> None:
        with self._cond:
            self._available = self.total
            self._allocations.clear()
            self._cond.notify_all()

    def __str__(self) -> str:
        return f"Memory: {self.used}/{self.total} MB used ({self.utilization():.1f}%)"
