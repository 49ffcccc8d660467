from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..domain.models import ScoredTerm


@dataclass(frozen=True)
class LoadRequest:
    vectors_path: str
    vocab_path: Optional[str] = None
    min_freq: Optional[int] = None
    max_words: int = 0
    normalize: bool = True


@dataclass(frozen=True)
class SimilarRequest:
    term: str
    k: int = 10


@dataclass(frozen=True)
class AnalogyRequest:
    positive: Tuple[str, ...]
    negative: Tuple[str, ...] = ()
    k: int = 10


@dataclass(frozen=True)
class FilterRequest:
    keep: Tuple[str, ...]
    out_path: Optional[str] = None


@dataclass(frozen=True)
class QueryResponse:
    """Ranked answer for one query.

    Fields:
        query: Human-readable description of the query.
        results: Matches, best first.
        missing: Query terms that have no vector in the store.
    """
    query: str
    results: List[ScoredTerm]
    missing: List[str]


@dataclass(frozen=True)
class FilterResponse:
    before: int
    after: int
    out_path: Optional[str]
