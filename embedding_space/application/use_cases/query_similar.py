from __future__ import annotations

from ..dto import QueryResponse, SimilarRequest
from ..similarity import SimilarityEngine


class QuerySimilarUseCase:
    """Use-case: rank the store against a stored term's vector."""

    def __init__(self, engine: SimilarityEngine) -> None:
        self._engine = engine

    def execute(self, req: SimilarRequest) -> QueryResponse:
        """
        Finds the ``k`` nearest neighbours of ``req.term``, excluding the term itself.

        An unknown term is not an error: the response has no results and lists
        the term under ``missing``.

        Args:
            req: The request object containing the term and result count.

        Returns:
            QueryResponse: Ranked matches plus any missing query terms.
        """
        matches = self._engine.similar_to_term(req.term, req.k)
        if matches is None:
            return QueryResponse(query=req.term, results=[], missing=[req.term])
        return QueryResponse(query=req.term, results=matches, missing=[])
