from __future__ import annotations

from typing import Dict, Optional
import os
import matplotlib.pyplot as plt

from .os_kernel import SimulationResult


def ensure_dir(path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)


def plot_gantt(result: SimulationResult, out_path: Optional[str] = None) -> None:
    pids_order = sorted({entry.pid for entry in result.gantt})
    fig, ax = plt.subplots(figsize=(12, 3 + 0.3 * max(1, len(pids_order))))

    cmap = plt.get_cmap("tab20")
    pid_to_color = {pid: cmap(i % cmap.N) for i, pid in enumerate(pids_order)}
    y_positions: Dict[int, int] = {pid: i for i, pid in enumerate(pids_order)}

    # Draw execution bars
    for entry in result.gantt:
        ax.barh(y_positions[entry.pid], entry.duration, left=entry.start,
                color=pid_to_color[entry.pid], edgecolor="black", alpha=0.9)

    # Mark when each starved process was first flagged
    for event in result.logger.starvation_events:
        if event["event"] != "starvation" or event["pid"] not in y_positions:
            continue
        ax.plot(event["time"], y_positions[event["pid"]], marker="v", color="red", markersize=6)

    ax.set_yticks([y_positions[pid] for pid in pids_order])
    ax.set_yticklabels([f"P{pid}" for pid in pids_order])
    ax.set_xlabel("Time (ms)")
    ax.set_title(f"Gantt Chart - {result.algorithm}")
    ax.grid(True, axis="x", linestyle=":", alpha=0.5)
    fig.tight_layout()

    if out_path:
        ensure_dir(out_path)
        fig.savefig(out_path, dpi=150)
        plt.close(fig)
    else:
        plt.show()
