from __future__ import annotations

from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ChunkFailure


class ContractError(ValueError):
    """Raised when a request violates a documented contract (e.g., negative range size)."""


class DimensionMismatch(ContractError):
    """Raised when a vector's length differs from the store dimensionality."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Dimension mismatch: got {actual}, expected {expected}")
        self.expected = expected
        self.actual = actual


class InvalidWorkerCount(ContractError):
    """Raised when a parallel call is configured with zero or negative workers."""

    def __init__(self, worker_count: int) -> None:
        super().__init__(f"Worker count must be positive, got {worker_count}")
        self.worker_count = worker_count


class WorkerFailure(RuntimeError):
    """Raised after all workers joined when at least one chunk raised.

    Fields:
        failures: One entry per failed chunk, in chunk order.
    """

    def __init__(self, failures: List["ChunkFailure"]) -> None:
        ranges = ", ".join(f"[{f.chunk.begin}, {f.chunk.end})" for f in failures)
        first = failures[0].error if failures else None
        detail = f"{type(first).__name__}: {first}" if first is not None else "unknown error"
        super().__init__(f"{len(failures)} worker(s) failed on range(s) {ranges}; first error {detail}")
        self.failures = failures


class ExecutionCancelled(RuntimeError):
    """Raised when a parallel call observed its cancel event before finishing."""


class EmbeddingFormatError(ValueError):
    """Raised when an embedding or vocabulary file cannot be parsed."""
