from __future__ import annotations

from bisect import insort
from typing import Iterable, List, Optional, Sequence, Set, Tuple, Union

import numpy as np

from ..domain.models import ScoredTerm
from ..domain.store import EmbeddingStore, as_vector
from ..infrastructure.logging import get_logger
from ..infrastructure.parallel import ParallelRangeExecutor

logger = get_logger("embedding_space.similarity")

VectorLike = Union[Sequence[float], np.ndarray]

_NEG_INF = float("-inf")


def _normalize_in_place(vec: np.ndarray) -> None:
    norm = float(np.linalg.norm(vec))
    if norm > 0.0:
        vec /= norm


def _as_terms(terms: Union[str, Iterable[str], None]) -> List[str]:
    if terms is None:
        return []
    if isinstance(terms, str):
        return [terms]
    return list(terms)


def rank_scores(scores: Sequence[float], k: int) -> List[Tuple[int, float]]:
    """Return the ``k`` best ``(index, score)`` pairs, highest score first.

    Keeps an ascending list of at most ``k`` keys ``(score, -index)`` and
    inserts a candidate only when the list has room or the candidate strictly
    beats the worst kept key. Equal scores therefore keep the lower index.
    NaN ranks as -inf, below every finite score.
    """
    if k <= 0:
        return []
    kept: List[Tuple[float, int]] = []
    for index, score in enumerate(scores):
        key = (_NEG_INF if score != score else score, -index)
        if len(kept) < k:
            insort(kept, key)
        elif key > kept[0]:
            insort(kept, key)
            del kept[0]
    return [(-neg_index, scores[-neg_index]) for _key, neg_index in reversed(kept)]


class SimilarityEngine:
    """Brute-force similarity search over an EmbeddingStore.

    Scores are raw dot products. Call ``normalize_all`` once after loading to
    get cosine similarity; queries are not normalized per call.
    """

    def __init__(self, store: EmbeddingStore, executor: Optional[ParallelRangeExecutor] = None) -> None:
        self._store = store
        self._executor = executor or ParallelRangeExecutor()

    @property
    def store(self) -> EmbeddingStore:
        return self._store

    def score_all(self, query: VectorLike) -> np.ndarray:
        """
        Dot product of ``query`` with every stored vector, in index order.

        Each worker fills only the score slots of its own chunk.

        Raises:
            DimensionMismatch: When ``query`` has the wrong length.
            WorkerFailure: When scoring failed in any worker.
        """
        q = as_vector(query, self._store.dimensionality())
        scores = np.zeros(self._store.size(), dtype=np.float64)
        if scores.shape[0] == 0:
            return scores
        vector_at = self._store.vector_at

        def dot(i: int) -> float:
            return float(np.dot(vector_at(i), q))

        self._executor.fill_array(scores, dot)
        return scores

    def top_k(self, query: VectorLike, k: int) -> List[ScoredTerm]:
        """The ``min(k, size)`` highest-scoring terms, descending; ties keep index order."""
        if k <= 0:
            as_vector(query, self._store.dimensionality())
            return []
        scores = self.score_all(query)
        return [
            ScoredTerm(term=self._store.term_at(index), score=score)
            for index, score in rank_scores(scores.tolist(), k)
        ]

    def best_match(self, query: VectorLike) -> Optional[str]:
        """Term with the highest score, or ``None`` for an empty store.

        Agrees with ``top_k(query, 1)`` by construction; a NaN score (possible
        only through float overflow) ranks last.
        """
        best = rank_scores(self.score_all(query).tolist(), 1)
        if not best:
            return None
        # same scan as top_k, so the first index among equal maxima wins
        return self._store.term_at(best[0][0])

    def analogy(
        self,
        positive: Union[str, Iterable[str]],
        negative: Union[str, Iterable[str], None] = None,
    ) -> np.ndarray:
        """Sum of the ``positive`` vectors minus the ``negative`` ones.

        A bare string on either side counts as a single term. Terms missing
        from the store are skipped with a warning. The result is not
        normalized.
        """
        result = np.zeros(self._store.dimensionality(), dtype=np.float64)
        for term in _as_terms(positive):
            vec = self._store.lookup(term)
            if vec is None:
                logger.warning("Analogy term not in dictionary; ignoring | term=%s | sign=+", term)
                continue
            result += vec
        for term in _as_terms(negative):
            vec = self._store.lookup(term)
            if vec is None:
                logger.warning("Analogy term not in dictionary; ignoring | term=%s | sign=-", term)
                continue
            result -= vec
        return result

    def normalize_all(self) -> None:
        """Scale every stored vector to unit length in place; zero vectors stay as they are."""
        vector_at = self._store.vector_at
        self._executor.execute(self._store.size(), lambda i: _normalize_in_place(vector_at(i)))

    # ---- Term-level conveniences ----
    def similar_to_term(self, term: str, k: int, exclude_self: bool = True) -> Optional[List[ScoredTerm]]:
        """Nearest neighbours of a stored term, or ``None`` when the term is unknown."""
        vec = self._store.lookup(term)
        if vec is None:
            return None
        if not exclude_self:
            return self.top_k(vec, k)
        matches = [m for m in self.top_k(vec, k + 1) if m.term != term]
        return matches[: max(k, 0)]

    def solve_analogy(
        self,
        positive: Union[str, Iterable[str]],
        negative: Union[str, Iterable[str], None] = None,
        k: int = 10,
        exclude_inputs: bool = True,
    ) -> List[ScoredTerm]:
        """
        Rank the store against the normalized analogy vector.

        ``solve_analogy(["king", "woman"], ["man"])`` answers "man is to king
        as woman is to ?". Input terms are dropped from the ranking unless
        ``exclude_inputs`` is False.
        """
        positive = _as_terms(positive)
        negative = _as_terms(negative)
        vec = self.analogy(positive, negative)
        _normalize_in_place(vec)
        excluded: Set[str] = set(positive) | set(negative) if exclude_inputs else set()
        present = sum(1 for t in excluded if t in self._store)
        matches = [m for m in self.top_k(vec, k + present) if m.term not in excluded]
        return matches[: max(k, 0)]
