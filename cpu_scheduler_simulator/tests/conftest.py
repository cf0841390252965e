import os

# Charts are rendered off-screen during tests
os.environ.setdefault("MPLBACKEND", "Agg")

import pytest

from cpu_scheduler_simulator.backend.core import PCB, ReadyQueue
from cpu_scheduler_simulator.backend.memory import MemoryManager


SAMPLE_LINES = [
    "1:25:4;500",
    "2:13:3;700",
    "3:20:3;100",
]


@pytest.fixture
def sample_lines():
    return list(SAMPLE_LINES)


@pytest.fixture
def sample_pcbs():
    """The three sample processes in input order."""
    return [
        PCB(pid=1, burst_time=25, priority=4, memory_required=500),
        PCB(pid=2, burst_time=13, priority=3, memory_required=700),
        PCB(pid=3, burst_time=20, priority=3, memory_required=100),
    ]


@pytest.fixture
def ready_queue():
    return ReadyQueue()


@pytest.fixture
def memory():
    return MemoryManager()


@pytest.fixture
def admit(ready_queue, memory):
    """Admit PCBs the way the job loader does: allocate, stamp width, enqueue."""
    def _admit(pcbs):
        for pcb in pcbs:
            assert memory.allocate(pcb)
            pcb.admission_width = ready_queue.size()
            ready_queue.enqueue(pcb)
        return pcbs
    return _admit
