from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Chunk:
    """A contiguous half-open index range owned by one worker.

    Fields:
        begin: First index (inclusive).
        end: Last index (exclusive).
    """
    begin: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.begin


@dataclass(frozen=True)
class ChunkFailure:
    """An exception raised while a worker processed its chunk.

    Fields:
        chunk: The range the worker owned.
        error: The exception raised by the per-index operation.
    """
    chunk: Chunk
    error: BaseException


@dataclass(frozen=True)
class ScoredTerm:
    """Similarity match returned by the engine.

    Fields:
        term: Matched term.
        score: Dot product with the query (cosine when vectors are normalized).
    """
    term: str
    score: float
