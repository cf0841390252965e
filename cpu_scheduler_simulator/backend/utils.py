from __future__ import annotations

from typing import List, Dict, Optional, Any
import json
import csv
import logging


logger = logging.getLogger(__name__)


class EventLogger:
    """Collects the simulated system-call trace of one run.

    Every event is stored; when `verbose` is set it is also echoed through
    `logging` as it happens.
    """

    def __init__(self, verbose: bool = True) -> None:
        self.verbose = verbose
        self.process_events: List[Dict[str, Any]] = []
        self.memory_events: List[Dict[str, Any]] = []
        self.starvation_events: List[Dict[str, Any]] = []

    def _emit(self, message: str) -> None:
        if self.verbose:
            logger.info(message)

    def log_process_event(self, time_s: Optional[int], pid: int, event: str, detail: str = "") -> None:
        self.process_events.append({
            "time": time_s,
            "pid": pid,
            "event": event,
            "detail": detail,
        })
        when = f"[Time {time_s}] " if time_s is not None else ""
        self._emit(f"{when}SYSCALL: {event}() - P{pid}{' ' + detail if detail else ''}")

    def log_memory_event(self, pid: int, action: str, size: int, available: int) -> None:
        self.memory_events.append({
            "pid": pid,
            "action": action,
            "size": size,
            "available": available,
        })
        verb = "Allocated" if action == "allocate" else "Deallocated"
        prep = "to" if action == "allocate" else "from"
        self._emit(f"MEMORY: {verb} {size} MB {prep} P{pid} (Available: {available} MB)")

    def log_starvation(self, time_s: int, pid: int, wait: int, threshold: int) -> str:
        message = f"STARVATION DETECTED: P{pid} waited {wait}ms (threshold: {threshold}ms)"
        self.starvation_events.append({
            "time": time_s,
            "pid": pid,
            "event": "starvation",
            "message": message,
        })
        self._emit(message)
        return message

    def log_aging(self, time_s: int, pid: int, old_priority: int, new_priority: int) -> str:
        message = f"AGING: P{pid} priority increased from {old_priority} to {new_priority}"
        self.starvation_events.append({
            "time": time_s,
            "pid": pid,
            "event": "aging",
            "message": message,
        })
        self._emit(message)
        return message

    def export_json(self, path: str) -> None:
        data = {
            "process_events": self.process_events,
            "memory_events": self.memory_events,
            "starvation_events": self.starvation_events,
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def export_csv(self, base_path_no_ext: str) -> None:
        with open(f"{base_path_no_ext}_events.csv", "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["time", "pid", "event", "detail"])
            writer.writeheader()
            for row in self.process_events:
                writer.writerow(row)
        with open(f"{base_path_no_ext}_memory.csv", "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["pid", "action", "size", "available"])
            writer.writeheader()
            for row in self.memory_events:
                writer.writerow(row)
        with open(f"{base_path_no_ext}_starvation.csv", "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["time", "pid", "event", "message"])
            writer.writeheader()
            for row in self.starvation_events:
                writer.writerow(row)


def compute_avg(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_throughput(completed: int, total_time: float) -> float:
    if total_time <= 0:
        return 0.0
    return completed / total_time
