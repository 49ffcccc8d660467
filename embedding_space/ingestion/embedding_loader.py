from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from ..domain.store import EmbeddingStore
from ..infrastructure.logging import get_logger
from ..infrastructure.parallel import ParallelRangeExecutor
from ..infrastructure.word2vec.reader import (
    Word2vecBinarySource,
    count_words_above,
    read_bin_file,
    read_vocab_file,
)

logger = get_logger("embedding_space.ingestion")

PathLike = Union[str, Path]


def load_embeddings(
    vectors_path: PathLike,
    vocab_path: Optional[PathLike] = None,
    min_freq: Optional[int] = None,
    max_words: int = 0,
    normalize: bool = False,
    executor: Optional[ParallelRangeExecutor] = None,
) -> EmbeddingStore:
    """Load a word2vec binary file into an EmbeddingStore.

    With ``vocab_path`` and ``min_freq``, reading stops at the first vocab
    entry whose count is below ``min_freq``. With ``vocab_path``, every loaded
    term is annotated with its count. With ``normalize``, vectors are scaled to
    unit length so dot products are cosine similarities.
    """
    limit = max(0, int(max_words or 0))
    if vocab_path is not None and min_freq is not None:
        above = count_words_above(vocab_path, int(min_freq))
        if above is not None and (limit == 0 or above < limit):
            limit = above
        logger.info("Frequency cut-off | vocab=%s | min_freq=%d | max_words=%d", vocab_path, min_freq, limit)
        if above == 0:
            # every term is below the threshold
            return EmbeddingStore(Word2vecBinarySource(vectors_path).dimensionality())

    store = read_bin_file(vectors_path, limit)

    if vocab_path is not None:
        counts = read_vocab_file(vocab_path)
        annotated = 0
        for term, count in counts.items():
            if term in store:
                store.set_frequency(term, count)
                annotated += 1
        logger.info("Annotated frequencies | vocab=%s | annotated=%d", vocab_path, annotated)

    if normalize:
        # local import keeps ingestion free of the application layer at import time
        from ..application.similarity import SimilarityEngine

        SimilarityEngine(store, executor).normalize_all()

    logger.info(
        "Loaded embeddings | path=%s | terms=%d | dim=%d | normalized=%s",
        vectors_path,
        store.size(),
        store.dimensionality(),
        normalize,
    )
    return store
