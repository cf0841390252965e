"""
Exceptions raised by the scheduler simulator backend.
"""


class SimulatorError(Exception):
    """Base class for all simulator errors."""


class ProcessValidationError(SimulatorError, ValueError):
    """A job descriptor line is malformed or out of range."""

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class MemoryRequestError(SimulatorError):
    """A process asks for more memory than the whole pool holds."""

    def __init__(self, pid: int, required: int, total: int):
        super().__init__(
            f"P{pid} requires {required} MB but total memory is {total} MB"
        )
        self.pid = pid
        self.required = required
        self.total = total


class SimulationAborted(SimulatorError):
    """Admission was cancelled before it completed; no result is valid."""
