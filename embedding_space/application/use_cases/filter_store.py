from __future__ import annotations

from pathlib import Path

from ..dto import FilterRequest, FilterResponse
from ...domain.store import UNSET_FREQUENCY, EmbeddingStore
from ...infrastructure.logging import get_logger
from ...infrastructure.word2vec.writer import write_bin_file, write_vocab_file

logger = get_logger("embedding_space.filter")


class FilterStoreUseCase:
    """Use-case: shrink the store to a keep-set and optionally write the result.

    When any kept term carries a frequency, a ``<out>.vocab`` file is written
    next to the vectors.
    """

    def __init__(self, store: EmbeddingStore) -> None:
        self._store = store

    def _has_frequencies(self) -> bool:
        return any(self._store.get_frequency(t) != UNSET_FREQUENCY for t in self._store.iterate_terms())

    def execute(self, req: FilterRequest) -> FilterResponse:
        before = self._store.size()
        self._store.filter_to(set(req.keep))
        after = self._store.size()
        logger.info("Filter completed | before=%d | after=%d", before, after)
        if req.out_path:
            out = Path(req.out_path)
            write_bin_file(self._store, out)
            if self._has_frequencies():
                write_vocab_file(self._store, out.with_name(out.name + ".vocab"))
        return FilterResponse(before=before, after=after, out_path=req.out_path)
