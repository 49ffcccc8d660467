from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np

from ...domain.errors import ContractError
from ...domain.store import UNSET_FREQUENCY, EmbeddingStore
from ..logging import get_logger

logger = get_logger("embedding_space.word2vec")

PathLike = Union[str, Path]


def write_bin_file(store: EmbeddingStore, path: PathLike, trailing_newline: bool = True) -> int:
    """Write ``store`` in word2vec binary format and return the number of records.

    Vectors are stored as little-endian float32, so values read back are
    rounded to single precision.

    Raises:
        ContractError: When a term is empty or contains a space or newline; nothing
            is written in that case.
    """
    items = store.iterate_items()
    for term, _vec in items:
        if not term or " " in term or "\n" in term:
            raise ContractError(f"Term cannot be written to word2vec format: {term!r}")

    target = Path(path)
    with target.open("wb") as fh:
        fh.write(f"{len(items)} {store.dimensionality()}\n".encode("ascii"))
        for term, vec in items:
            fh.write(term.encode("utf-8") + b" ")
            fh.write(np.asarray(vec, dtype="<f4").tobytes())
            if trailing_newline:
                fh.write(b"\n")
    logger.info("Wrote word2vec file | path=%s | terms=%d | dim=%d", target, len(items), store.dimensionality())
    return len(items)


def write_vocab_file(store: EmbeddingStore, path: PathLike) -> int:
    """Write ``<term> <count>`` lines for every term with a frequency; returns lines written."""
    written = 0
    with Path(path).open("w", encoding="utf-8") as fh:
        for term in store.iterate_terms():
            count = store.get_frequency(term)
            if count is None or count == UNSET_FREQUENCY:
                continue
            fh.write(f"{term} {count}\n")
            written += 1
    return written
