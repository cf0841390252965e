"""
Backend package: process model, queues, memory gate, schedulers and kernel.
"""

from .core import PCB, ProcessState, GanttEntry, JobQueue, ReadyQueue
from .memory import MemoryManager
from .schedulers import Scheduler, SJFScheduler, RoundRobinScheduler, PriorityScheduler, make_scheduler
from .os_kernel import OSKernel, KernelConfig, SimulationResult

__all__ = [
    'PCB',
    'ProcessState',
    'GanttEntry',
    'JobQueue',
    'ReadyQueue',
    'MemoryManager',
    'Scheduler',
    'SJFScheduler',
    'RoundRobinScheduler',
    'PriorityScheduler',
    'make_scheduler',
    'OSKernel',
    'KernelConfig',
    'SimulationResult',
]
