"""
Parser for job descriptor lines.

Format: ``processId:burstTime:priority;memoryRequired``, e.g. ``1:25:4;500``.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Set, Tuple

from .core import PCB, MIN_PRIORITY, MAX_PRIORITY
from .exceptions import ProcessValidationError


COMMENT_PREFIXES = ("#", "//")


def is_skippable(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith(COMMENT_PREFIXES)


def parse_process_line(line: str) -> PCB:
    """Build a PCB from one descriptor line or raise ProcessValidationError."""
    raw = line.strip()
    parts = raw.split(";")
    if len(parts) != 2:
        raise ProcessValidationError("Invalid format. Expected: id:burst:priority;memory", raw)

    info = parts[0].split(":")
    if len(info) != 3:
        raise ProcessValidationError("Invalid process info. Expected: id:burst:priority", raw)

    try:
        pid, burst, priority = (int(v.strip()) for v in info)
        memory = int(parts[1].strip())
    except ValueError:
        raise ProcessValidationError(f"Invalid number format in line: {raw}", raw) from None

    validate_fields(pid, burst, priority, memory, raw)
    return PCB(pid=pid, burst_time=burst, priority=priority, memory_required=memory)


def validate_fields(pid: int, burst: int, priority: int, memory: int, line: str) -> None:
    if pid < 1:
        raise ProcessValidationError("Process ID must be positive", line)
    if burst < 1:
        raise ProcessValidationError("Burst time must be positive", line)
    if not MIN_PRIORITY <= priority <= MAX_PRIORITY:
        raise ProcessValidationError(f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}", line)
    if memory < 1:
        raise ProcessValidationError("Memory required must be positive", line)


def validate_pcb(pcb: PCB, seen: Optional[Set[int]] = None) -> None:
    """Apply the descriptor-line checks to a ready-made PCB.

    With `seen`, a pid already in the set is rejected as a duplicate.
    """
    validate_fields(pcb.pid, pcb.burst_time, pcb.priority, pcb.memory_required, str(pcb))
    if seen is not None and pcb.pid in seen:
        raise ProcessValidationError(f"Duplicate process ID {pcb.pid}", str(pcb))


def iter_processes(lines: Iterable[str]) -> Iterator[Tuple[Optional[PCB], Optional[ProcessValidationError]]]:
    """Yield (pcb, None) for good lines and (None, error) for rejected ones."""
    for line in lines:
        if is_skippable(line):
            continue
        try:
            yield parse_process_line(line), None
        except ProcessValidationError as e:
            yield None, e


def parse_lines(lines: Iterable[str]) -> Tuple[List[PCB], List[ProcessValidationError]]:
    pcbs: List[PCB] = []
    errors: List[ProcessValidationError] = []
    for pcb, err in iter_processes(lines):
        if err is not None:
            errors.append(err)
        else:
            pcbs.append(pcb)
    return pcbs, errors
