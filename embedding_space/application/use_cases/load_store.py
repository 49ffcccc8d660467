from __future__ import annotations

from typing import Optional

from ..dto import LoadRequest
from ...domain.store import EmbeddingStore
from ...infrastructure.parallel import ParallelRangeExecutor
from ...ingestion.embedding_loader import load_embeddings


class LoadStoreUseCase:
    """Use-case: read embeddings (and optional vocab counts) from disk into a store."""

    def __init__(self, executor: Optional[ParallelRangeExecutor] = None) -> None:
        self._executor = executor

    def execute(self, req: LoadRequest) -> EmbeddingStore:
        return load_embeddings(
            req.vectors_path,
            vocab_path=req.vocab_path,
            min_freq=req.min_freq,
            max_words=req.max_words,
            normalize=req.normalize,
            executor=self._executor,
        )
