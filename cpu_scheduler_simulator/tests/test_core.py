"""
Tests for the PCB, the job and ready queues and the memory manager.
"""

import threading

import pytest

from cpu_scheduler_simulator.backend.core import (
    PCB, GanttEntry, JobQueue, ReadyQueue, ProcessState, MAX_PRIORITY,
)
from cpu_scheduler_simulator.backend.memory import MemoryManager, TOTAL_MEMORY


class TestPCB:
    """Test the process control block."""

    def test_initial_state(self):
        pcb = PCB(pid=7, burst_time=10, priority=5, memory_required=64)
        assert pcb.remaining_time == 10
        assert pcb.original_priority == 5
        assert pcb.state == ProcessState.NEW
        assert pcb.arrival_time == 0
        assert pcb.stats.completion_time is None
        assert pcb.stats.response_time is None
        assert not pcb.starved and not pcb.has_started

    def test_execute_is_capped_by_remaining(self):
        pcb = PCB(pid=1, burst_time=8, priority=1, memory_required=1)
        assert pcb.execute(6) == 6
        assert pcb.execute(6) == 2
        assert pcb.is_completed()

    def test_start_only_stamps_first_dispatch(self):
        pcb = PCB(pid=1, burst_time=8, priority=1, memory_required=1)
        pcb.start(4)
        pcb.start(12)
        assert pcb.stats.first_run_time == 4
        assert pcb.stats.response_time == 4
        assert pcb.state == ProcessState.RUNNING

    def test_complete_derives_times(self):
        pcb = PCB(pid=1, burst_time=13, priority=3, memory_required=1)
        pcb.execute(13)
        pcb.complete(33)
        assert pcb.state == ProcessState.TERMINATED
        assert pcb.stats.turnaround_time == 33
        assert pcb.stats.waiting_time == 20

    def test_terminated_record_cannot_run_again(self):
        pcb = PCB(pid=1, burst_time=2, priority=1, memory_required=1)
        pcb.execute(2)
        pcb.complete(2)
        with pytest.raises(ValueError):
            pcb.execute(1)
        with pytest.raises(ValueError):
            pcb.complete(5)

    def test_aging_is_capped(self):
        pcb = PCB(pid=1, burst_time=2, priority=MAX_PRIORITY - 1, memory_required=1)
        assert pcb.apply_aging()
        assert not pcb.apply_aging()
        assert pcb.priority == MAX_PRIORITY
        assert pcb.original_priority == MAX_PRIORITY - 1

    def test_gantt_entry_duration(self):
        assert GanttEntry(3, 12, 18).duration == 6


class TestJobQueue:
    """Test the FIFO job queue."""

    def test_fifo_order(self, sample_pcbs):
        queue = JobQueue()
        for pcb in sample_pcbs:
            queue.enqueue(pcb)
        assert queue.peek() is sample_pcbs[0]
        assert [queue.dequeue().pid for _ in range(3)] == [1, 2, 3]
        assert queue.dequeue() is None
        assert queue.peek() is None

    def test_input_done_is_sticky(self):
        queue = JobQueue()
        assert not queue.is_input_done()
        queue.mark_input_done()
        queue.mark_input_done()
        assert queue.is_input_done()
        assert queue.is_exhausted()

    def test_wait_for_jobs_times_out_when_idle(self):
        queue = JobQueue()
        assert not queue.wait_for_jobs(0.01)

    def test_enqueue_wakes_waiter(self):
        queue = JobQueue()
        woke = []

        def consumer():
            woke.append(queue.wait_for_jobs(5.0))

        t = threading.Thread(target=consumer)
        t.start()
        queue.enqueue(PCB(pid=1, burst_time=1, priority=1, memory_required=1))
        t.join(timeout=5.0)
        assert woke == [True]


class TestReadyQueue:
    """Test the ready queue."""

    def test_enqueue_marks_ready(self, ready_queue, sample_pcbs):
        for pcb in sample_pcbs:
            ready_queue.enqueue(pcb)
        assert len(ready_queue) == 3
        assert all(p.state == ProcessState.READY for p in sample_pcbs)

    def test_dequeue_first(self, ready_queue, sample_pcbs):
        for pcb in sample_pcbs:
            ready_queue.enqueue(pcb)
        assert ready_queue.dequeue_first() is sample_pcbs[0]
        assert ready_queue.size() == 2

    def test_remove_at_and_specific(self, ready_queue, sample_pcbs):
        for pcb in sample_pcbs:
            ready_queue.enqueue(pcb)
        assert ready_queue.remove_at(1) is sample_pcbs[1]
        assert ready_queue.remove_at(10) is None
        assert ready_queue.remove(sample_pcbs[2]) is sample_pcbs[2]
        assert ready_queue.remove(sample_pcbs[2]) is None
        assert ready_queue.snapshot() == [sample_pcbs[0]]

    def test_remove_matches_identity(self, ready_queue):
        a = PCB(pid=1, burst_time=5, priority=1, memory_required=1)
        b = PCB(pid=1, burst_time=5, priority=1, memory_required=1)
        ready_queue.enqueue(a)
        assert ready_queue.remove(b) is None
        assert ready_queue.remove(a) is a

    def test_snapshot_is_a_copy(self, ready_queue, sample_pcbs):
        ready_queue.enqueue(sample_pcbs[0])
        snap = ready_queue.snapshot()
        snap.clear()
        assert not ready_queue.is_empty()
        ready_queue.clear()
        assert ready_queue.is_empty()
        assert ready_queue.dequeue_first() is None


class TestMemoryManager:
    """Test the memory admission gate."""

    def test_default_capacity(self, memory):
        assert memory.total == TOTAL_MEMORY == 2048
        assert memory.available == 2048

    def test_allocate_and_release(self, memory, sample_pcbs):
        assert memory.allocate(sample_pcbs[0])
        assert memory.available == 1548
        assert memory.used == 500
        memory.release(sample_pcbs[0])
        assert memory.available == 2048

    def test_allocate_fails_without_side_effects(self):
        memory = MemoryManager(600)
        big = PCB(pid=1, burst_time=1, priority=1, memory_required=700)
        assert not memory.has_capacity_for(700)
        assert not memory.allocate(big)
        assert memory.available == 600
        assert not memory.fits(big)

    def test_release_of_unheld_memory_keeps_invariant(self, memory, sample_pcbs):
        memory.release(sample_pcbs[0])
        assert memory.available == memory.total

    def test_allocations_belong_to_each_record(self, memory):
        first = PCB(pid=1, burst_time=5, priority=1, memory_required=500)
        second = PCB(pid=1, burst_time=5, priority=1, memory_required=700)
        assert memory.allocate(first)
        assert memory.allocate(second)
        memory.release(first)
        assert memory.available == 2048 - 700
        memory.release(second)
        assert memory.available == 2048

    def test_utilization_and_str(self, memory, sample_pcbs):
        memory.allocate(sample_pcbs[1])
        assert memory.utilization() == pytest.approx(700 / 2048 * 100)
        assert "700/2048" in str(memory)
        memory.reset()
        assert memory.available == 2048

    def test_rejects_non_positive_total(self):
        with pytest.raises(ValueError):
            MemoryManager(0)

    def test_concurrent_allocate_release_keeps_invariant(self):
        memory = MemoryManager(1000)
        low_water = []

        def worker(pid):
            pcb = PCB(pid=pid, burst_time=1, priority=1, memory_required=300)
            for _ in range(200):
                if memory.allocate(pcb):
                    low_water.append(memory.available)
                    memory.release(pcb)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(1, 9)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert memory.available == 1000
        assert all(0 <= v <= 1000 for v in low_water)
