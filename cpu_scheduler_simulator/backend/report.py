"""
Plain-text reports for a finished simulation run.
"""

from __future__ import annotations

from typing import List

import pandas as pd

from .core import GanttEntry
from .os_kernel import SimulationResult


RULE = "=" * 70
THIN_RULE = "-" * 70


def format_gantt_chart(gantt: List[GanttEntry]) -> str:
    """ASCII Gantt chart: one cell per slice with end times underneath."""
    if not gantt:
        return "(no execution)"
    bars = "|"
    times = str(gantt[0].start)
    for entry in gantt:
        label = f" P{entry.pid} "
        width = max(6, len(label))
        bars += f"{label:<{width}}|"
        end = str(entry.end)
        times += " " * max(0, width - len(end) + 1) + end
    return f"{bars}\n{times}"


def format_timeline(gantt: List[GanttEntry]) -> str:
    lines = [
        f"{'Process':<10} {'Start Time':<15} {'End Time':<15} {'Execution Duration':<20}",
        THIN_RULE,
    ]
    for entry in gantt:
        lines.append(f"{'P' + str(entry.pid):<10} {entry.start:<15} {entry.end:<15} {entry.duration} ms")
    return "\n".join(lines)


def process_table(result: SimulationResult) -> pd.DataFrame:
    """Per-process statistics in completion order."""
    rows = [{
        "pid": p.pid,
        "burst_time": p.burst_time,
        "priority": p.original_priority,
        "current_priority": p.priority,
        "memory": p.memory_required,
        "waiting_time": p.stats.waiting_time,
        "turnaround_time": p.stats.turnaround_time,
        "response_time": p.stats.response_time,
        "completion_time": p.stats.completion_time,
        "starved": p.starved,
    } for p in result.processes]
    columns = ["pid", "burst_time", "priority", "current_priority", "memory", "waiting_time",
               "turnaround_time", "response_time", "completion_time", "starved"]
    return pd.DataFrame(rows, columns=columns)


def format_statistics(result: SimulationResult) -> str:
    """Full report: Gantt chart, timeline, process table and averages."""
    parts = [
        RULE,
        f"SCHEDULING ALGORITHM: {result.algorithm}",
        RULE,
        "",
        "GANTT CHART:",
        THIN_RULE,
        format_gantt_chart(result.gantt),
        "",
        "EXECUTION TIMELINE:",
        format_timeline(result.gantt),
        "",
        "PROCESS DETAILS",
        THIN_RULE,
    ]
    table = process_table(result)
    parts.append(table.to_string(index=False) if not table.empty else "(no processes)")
    for p in result.processes:
        if p.starved:
            parts.append(f"  ** P{p.pid} experienced STARVATION **")
    if result.starvation_log:
        parts += ["", "STARVATION / AGING LOG:"]
        parts += [f"  {line}" for line in result.starvation_log]
    if result.rejected:
        parts += ["", "REJECTED:"]
        parts += [f"  {err}" for err in result.rejected]
    parts += [
        THIN_RULE,
        "",
        "STATISTICS SUMMARY:",
        f"  Total Processes: {len(result.processes)}",
        f"  Average Waiting Time: {result.avg_waiting_time:.2f} ms",
        f"  Average Turnaround Time: {result.avg_turnaround_time:.2f} ms",
        f"  Average Response Time: {result.avg_response_time:.2f} ms",
        RULE,
    ]
    return "\n".join(parts)


def format_comparison(frame: pd.DataFrame) -> str:
    """Comparison table from `OSKernel.compare` plus the best algorithm per metric."""
    lines = [
        RULE,
        "SCHEDULER COMPARISON",
        RULE,
        f"{'Algorithm':<55} {'Avg Wait':>10} {'Avg TAT':>10}",
        RULE,
    ]
    for name, row in frame.iterrows():
        lines.append(f"{name:<55} {row['avg_waiting_time']:>10.2f} {row['avg_turnaround_time']:>10.2f}")
    lines.append(RULE)
    if not frame.empty:
        best_wt = frame["avg_waiting_time"].idxmin()
        best_tat = frame["avg_turnaround_time"].idxmin()
        lines += [
            "",
            "BEST PERFORMING ALGORITHMS:",
            f"  Best Average Waiting Time: {best_wt} ({frame.loc[best_wt, 'avg_waiting_time']:.2f} ms)",
            f"  Best Average Turnaround Time: {best_tat} ({frame.loc[best_tat, 'avg_turnaround_time']:.2f} ms)",
            RULE,
        ]
    return "\n".join(lines)
