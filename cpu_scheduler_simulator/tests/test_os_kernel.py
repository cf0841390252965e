from __future__ import annotations

from collections import defaultdict
import time

import pandas as pd
import pytest

from cpu_scheduler_simulator.backend.core import PCB, ProcessState
from cpu_scheduler_simulator.backend.exceptions import SimulationAborted
from cpu_scheduler_simulator.backend.os_kernel import OSKernel, KernelConfig
from cpu_scheduler_simulator.backend.schedulers import Scheduler


def quiet(**kwargs) -> KernelConfig:
    return KernelConfig(verbose=False, poll_interval=0.01, **kwargs)


def test_kernel_runs_sjf_sample(sample_lines):
    result = OSKernel(quiet(policy=Scheduler.SJF)).run_lines(sample_lines)

    assert [p.pid for p in result.processes] == [2, 3, 1]
    assert [p.stats.completion_time for p in result.processes] == [13, 33, 58]
    assert round(result.avg_waiting_time, 2) == 15.33
    assert result.total_time == 58
    assert result.waves == 1
    assert result.throughput == pytest.approx(3 / 58)
    assert result.algorithm.startswith("Shortest Job First")


def test_kernel_runs_every_policy(sample_lines):
    for policy in Scheduler.ALL:
        result = OSKernel(quiet(policy=policy)).run_lines(sample_lines)
        assert len(result.processes) == 3
        assert all(p.state == ProcessState.TERMINATED for p in result.processes)
        per_pid = defaultdict(int)
        for entry in result.gantt:
            per_pid[entry.pid] += entry.duration
        assert dict(per_pid) == {1: 25, 2: 13, 3: 20}
        for p in result.processes:
            assert p.stats.turnaround_time == p.stats.completion_time
            assert p.stats.waiting_time == p.stats.turnaround_time - p.burst_time >= 0


def test_kernel_round_robin_opening(sample_lines):
    result = OSKernel(quiet(policy=Scheduler.RR)).run_lines(sample_lines)
    assert [(e.pid, e.start, e.end) for e in result.gantt[:4]] == [(1, 0, 6), (2, 6, 12), (3, 12, 18), (1, 18, 24)]


def test_kernel_priority_reports_aging(sample_lines):
    result = OSKernel(quiet(policy=Scheduler.PRIORITY)).run_lines(sample_lines)
    assert [p.pid for p in result.processes] == [1, 2, 3]
    assert any(line.startswith("AGING: P3") for line in result.starvation_log)


def test_kernel_reads_file(tmp_path, sample_lines):
    path = tmp_path / "job.txt"
    path.write_text("\n".join(sample_lines + ["bad line"]), encoding="utf-8")
    result = OSKernel(quiet()).run_file(str(path))
    assert len(result.processes) == 3
    assert len(result.parse_errors) == 1


def test_kernel_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        OSKernel(quiet()).run_file(str(tmp_path / "nope.txt"))


def test_empty_input():
    result = OSKernel(quiet()).run_lines([])
    assert result.processes == []
    assert result.gantt == []
    assert result.avg_waiting_time == 0
    assert result.avg_turnaround_time == 0
    assert result.throughput == 0


def test_oversized_process_is_rejected_not_hung():
    result = OSKernel(quiet()).run_lines(["1:10:5;3000", "2:4:5;100"])
    assert [p.pid for p in result.processes] == [2]
    assert [err.pid for err in result.rejected] == [1]


def test_memory_pressure_runs_in_waves():
    procs = [
        PCB(pid=1, burst_time=10, priority=1, memory_required=600),
        PCB(pid=2, burst_time=5, priority=1, memory_required=600),
        PCB(pid=3, burst_time=2, priority=1, memory_required=300),
    ]
    result = OSKernel(quiet(memory_capacity=1000)).run(procs)

    assert result.waves == 2
    assert [(e.pid, e.start, e.end) for e in result.gantt] == [(1, 0, 10), (3, 10, 12), (2, 12, 17)]
    assert result.total_time == 17


def test_events_recorded_when_quiet(sample_lines):
    result = OSKernel(quiet()).run_lines(sample_lines)
    kinds = [e["event"] for e in result.logger.process_events]
    assert kinds.count("fork") == 3
    assert kinds.count("ready") == 3
    assert kinds.count("exit") == 3
    actions = [e["action"] for e in result.logger.memory_events]
    assert actions.count("allocate") == actions.count("release") == 3


def test_cancelled_run_aborts():
    kernel = OSKernel(quiet())

    def lines():
        yield "1:1:1;1"
        # The producer keeps input open long enough for the loader to notice
        kernel.cancel()
        time.sleep(0.2)

    with pytest.raises(SimulationAborted):
        kernel.run_lines(lines())


def test_cancel_before_run_aborts_next_run_only(sample_lines):
    kernel = OSKernel(quiet())
    kernel.cancel()
    with pytest.raises(SimulationAborted):
        kernel.run_lines(sample_lines)
    assert len(kernel.run_lines(sample_lines).processes) == 3


def test_run_drops_invalid_records():
    result = OSKernel(quiet()).run([
        PCB(pid=1, burst_time=-5, priority=4, memory_required=100),
        PCB(pid=2, burst_time=10, priority=4, memory_required=100),
        PCB(pid=3, burst_time=5, priority=4, memory_required=-500),
        PCB(pid=4, burst_time=5, priority=129, memory_required=100),
    ])

    assert [p.pid for p in result.processes] == [2]
    assert [(e.pid, e.start, e.end) for e in result.gantt] == [(2, 0, 10)]
    assert len(result.parse_errors) == 3
    assert all(0 <= e["available"] <= 2048 for e in result.logger.memory_events)


def test_run_rejects_duplicate_pids():
    first = PCB(pid=1, burst_time=5, priority=1, memory_required=500)
    again = PCB(pid=1, burst_time=10, priority=1, memory_required=700)
    result = OSKernel(quiet()).run([first, again])

    assert result.processes == [first]
    assert "Duplicate process ID 1" in str(result.parse_errors[0])
    assert [(e["action"], e["size"]) for e in result.logger.memory_events] == [("allocate", 500), ("release", 500)]


def test_compare_returns_frame(sample_lines):
    frame = OSKernel(quiet()).compare(lines=sample_lines)
    assert isinstance(frame, pd.DataFrame)
    assert list(frame["policy"]) == list(Scheduler.ALL)
    sjf = frame[frame["policy"] == Scheduler.SJF].iloc[0]
    assert round(sjf["avg_waiting_time"], 2) == 15.33
    assert (frame["completed"] == 3).all()


def test_export_logs(tmp_path, sample_lines):
    result = OSKernel(quiet(policy=Scheduler.PRIORITY)).run_lines(sample_lines)
    base = tmp_path / "run"
    result.logger.export_json(str(base) + ".json")
    result.logger.export_csv(str(base))
    assert (tmp_path / "run.json").exists()
    assert (tmp_path / "run_events.csv").exists()
    assert (tmp_path / "run_memory.csv").exists()
    assert (tmp_path / "run_starvation.csv").read_text(encoding="utf-8").count("AGING") == 3
