from __future__ import annotations

from typing import List, Optional

from ..dto import AnalogyRequest, QueryResponse
from ..similarity import SimilarityEngine


def describe_analogy(req: AnalogyRequest) -> str:
    parts = [f"+{t}" for t in req.positive] + [f"-{t}" for t in req.negative]
    return " ".join(parts)


class SolveAnalogyUseCase:
    """Use-case: combine term vectors and rank the store against the result."""

    def __init__(self, engine: SimilarityEngine) -> None:
        self._engine = engine

    def _missing(self, req: AnalogyRequest) -> List[str]:
        store = self._engine.store
        return [t for t in (*req.positive, *req.negative) if t not in store]

    def execute(self, req: AnalogyRequest) -> QueryResponse:
        missing = self._missing(req)
        results = self._engine.solve_analogy(req.positive, req.negative, k=req.k)
        return QueryResponse(query=describe_analogy(req), results=results, missing=missing)

    def best_match(self, req: AnalogyRequest) -> Optional[str]:
        """Single best term for the (unnormalized) analogy vector; input terms are not excluded."""
        return self._engine.best_match(self._engine.analogy(req.positive, req.negative))
