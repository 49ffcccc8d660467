"""
Parallel range execution.

Splits an index range ``[0, n)`` into contiguous chunks and runs a per-index
operation over every chunk on its own worker thread, blocking the caller until
all of them are done. Workers must only write to output slots at their own
indices; nothing here locks the outputs.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, MutableSequence, Optional, Sequence

from ..domain.errors import ContractError, ExecutionCancelled, InvalidWorkerCount, WorkerFailure
from ..domain.models import Chunk, ChunkFailure
from .config import worker_count as configured_worker_count
from .logging import get_logger

logger = get_logger("embedding_space.parallel")


def partition(n: int, worker_count: int) -> List[Chunk]:
    """Split ``[0, n)`` into at most ``worker_count`` contiguous chunks.

    The first chunks all have size ``n // w`` and the last one takes the
    remainder, where ``w`` is ``worker_count`` capped at ``n`` so that no
    chunk is empty.

    Args:
        n: Size of the index range.
        worker_count: Requested number of workers.

    Returns:
        List[Chunk]: Chunks in index order; empty when ``n == 0``.

    Raises:
        InvalidWorkerCount: When ``worker_count`` is zero or negative.
        ContractError: When ``n`` is negative.
    """
    if worker_count <= 0:
        raise InvalidWorkerCount(worker_count)
    if n < 0:
        raise ContractError(f"Range size must be non-negative, got {n}")
    if n == 0:
        return []
    workers = min(worker_count, n)
    size = n // workers
    chunks: List[Chunk] = []
    for i in range(workers):
        begin = i * size
        end = (i + 1) * size if i < workers - 1 else n
        chunks.append(Chunk(begin=begin, end=end))
    return chunks


def _run_chunk(chunk: Chunk, op: Callable[[int], Any], cancel: Optional[threading.Event]) -> bool:
    """Run ``op`` over the chunk in index order; False when stopped by ``cancel``."""
    for i in range(chunk.begin, chunk.end):
        if cancel is not None and cancel.is_set():
            logger.debug("Cancelled chunk | begin=%d | end=%d | stopped_at=%d", chunk.begin, chunk.end, i)
            return False
        op(i)
    logger.debug("Finished chunk | begin=%d | end=%d", chunk.begin, chunk.end)
    return True


class ParallelRangeExecutor:
    """Runs per-index operations over ``[0, n)`` on a fixed number of threads.

    A fresh thread pool is created for every call and joined before the call
    returns, so no worker outlives the call that started it.
    """

    def __init__(self, worker_count: Optional[int] = None) -> None:
        if worker_count is not None and worker_count <= 0:
            raise InvalidWorkerCount(worker_count)
        self._worker_count = worker_count

    def resolve_worker_count(self, override: Optional[int] = None) -> int:
        """Per-call override, then constructor value, then EMBSPACE_THREADS."""
        if override is not None:
            return int(override)
        if self._worker_count is not None:
            return self._worker_count
        return configured_worker_count()

    def execute(
        self,
        n: int,
        op: Callable[[int], Any],
        worker_count: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """
        Invoke ``op(i)`` once for every ``i`` in ``[0, n)``.

        Indices run in increasing order inside a chunk; chunks run concurrently
        with no ordering between them. The call returns only once every worker
        has finished.

        Args:
            n: Size of the index range.
            op: Per-index operation; its return value is ignored.
            worker_count: Overrides the executor's worker count for this call.
            cancel: Optional event checked between index iterations.

        Raises:
            InvalidWorkerCount: When the resolved worker count is not positive.
            WorkerFailure: When any chunk raised; raised after all chunks joined.
            ExecutionCancelled: When ``cancel`` stopped at least one chunk early.
        """
        chunks = partition(n, self.resolve_worker_count(worker_count))
        if not chunks:
            return

        futures: Dict[Future, Chunk] = {}
        with ThreadPoolExecutor(max_workers=len(chunks), thread_name_prefix="embspace-worker") as pool:
            for chunk in chunks:
                futures[pool.submit(_run_chunk, chunk, op, cancel)] = chunk
            wait(futures)

        failures: List[ChunkFailure] = []
        cancelled = 0
        for future, chunk in futures.items():
            error = future.exception()
            if error is not None:
                failures.append(ChunkFailure(chunk=chunk, error=error))
            elif not future.result():
                cancelled += 1

        if failures:
            logger.error("Parallel call failed | n=%d | chunks=%d | failed=%d", n, len(chunks), len(failures))
            raise WorkerFailure(failures) from failures[0].error
        if cancelled:
            raise ExecutionCancelled(f"Parallel call cancelled | n={n} | unfinished_chunks={cancelled}")

    def fill_array(
        self,
        out: MutableSequence[Any],
        func: Callable[[int], Any],
        worker_count: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> MutableSequence[Any]:
        """Set ``out[i] = func(i)`` for every index of ``out`` in parallel and return ``out``."""

        def op(i: int) -> None:
            out[i] = func(i)

        self.execute(len(out), op, worker_count=worker_count, cancel=cancel)
        return out

    def fill_arrays(
        self,
        outputs: Sequence[MutableSequence[Any]],
        func: Callable[[int], Sequence[Any]],
        worker_count: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Sequence[MutableSequence[Any]]:
        """
        Fill several index-aligned outputs from one per-index computation.

        ``func(i)`` returns one value per output; value ``j`` is stored at
        ``outputs[j][i]``.

        Raises:
            ContractError: When no outputs are given or their lengths differ.
            WorkerFailure: When ``func`` raises or returns the wrong number of values.
        """
        if not outputs:
            raise ContractError("fill_arrays needs at least one output array")
        n = len(outputs[0])
        for arr in outputs:
            if len(arr) != n:
                raise ContractError(f"Output arrays differ in length: {len(arr)} != {n}")

        width = len(outputs)

        def op(i: int) -> None:
            values = func(i)
            if len(values) != width:
                raise ContractError(f"Expected {width} values for index {i}, got {len(values)}")
            for arr, value in zip(outputs, values):
                arr[i] = value

        self.execute(n, op, worker_count=worker_count, cancel=cancel)
        return outputs


def time_execution(
    executor: ParallelRangeExecutor,
    n: int,
    op: Callable[[int], Any],
    worker_count: int,
) -> float:
    """Wall-clock seconds taken by one ``execute`` call with ``worker_count`` threads."""
    started = time.perf_counter()
    executor.execute(n, op, worker_count=worker_count)
    return time.perf_counter() - started
