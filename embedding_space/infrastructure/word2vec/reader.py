from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Dict, Iterator, Optional, Tuple, Union

import numpy as np

from ...domain.errors import EmbeddingFormatError
from ...domain.interfaces import EmbeddingSource
from ...domain.store import EmbeddingStore
from ..logging import get_logger

logger = get_logger("embedding_space.word2vec")

PathLike = Union[str, Path]

_FLOAT32_LE = np.dtype("<f4")


def _read_header(fh: BinaryIO) -> Tuple[int, int]:
    """Parse the ``"<vocab_size> <dimensionality>\\n"`` header line."""
    line = fh.readline()
    fields = line.decode("ascii", errors="replace").split()
    if len(fields) != 2:
        raise EmbeddingFormatError(f"Invalid word2vec header: {line[:80]!r}")
    try:
        count, dim = int(fields[0]), int(fields[1])
    except ValueError as exc:
        raise EmbeddingFormatError(f"Invalid word2vec header: {line[:80]!r}") from exc
    if count < 0 or dim <= 0:
        raise EmbeddingFormatError(f"Invalid word2vec header sizes: count={count}, dim={dim}")
    return count, dim


def _read_term(fh: BinaryIO, record: int) -> bytes:
    """Read bytes up to the next space, dropping newlines left over from the previous record."""
    buf = bytearray()
    while True:
        c = fh.read(1)
        if not c:
            raise EmbeddingFormatError(f"Unexpected end of file in term of record {record}")
        if c == b" ":
            return bytes(buf)
        if c == b"\n" and not buf:
            continue
        buf += c


class Word2vecBinarySource(EmbeddingSource):
    """Embedding source for word2vec C-format binary files.

    Records are ``<term><space><dim little-endian float32>`` with or without a
    trailing newline; both layouts are accepted, even mixed in one file.
    """

    def __init__(self, path: PathLike, max_words: int = 0) -> None:
        self._path = Path(path)
        self._max_words = max(0, int(max_words or 0))
        self._header: Optional[Tuple[int, int]] = None

    @property
    def path(self) -> Path:
        return self._path

    def header(self) -> Tuple[int, int]:
        """(vocab_size, dimensionality) as declared by the file."""
        if self._header is None:
            with self._path.open("rb") as fh:
                self._header = _read_header(fh)
        return self._header

    def dimensionality(self) -> int:
        return self.header()[1]

    def iter_embeddings(self) -> Iterator[Tuple[str, np.ndarray]]:
        with self._path.open("rb") as fh:
            count, dim = _read_header(fh)
            self._header = (count, dim)
            if 0 < self._max_words < count:
                count = self._max_words
            width = dim * _FLOAT32_LE.itemsize
            for record in range(count):
                raw_term = _read_term(fh, record)
                data = fh.read(width)
                if len(data) != width:
                    raise EmbeddingFormatError(
                        f"Truncated vector in record {record}: got {len(data)} bytes, expected {width}"
                    )
                if not raw_term:
                    logger.info("Skipping zero-length term | path=%s | record=%d", self._path, record)
                    continue
                term = raw_term.decode("utf-8", errors="replace")
                vec = np.frombuffer(data, dtype=_FLOAT32_LE).astype(np.float64)
                if not np.isfinite(vec).all():
                    raise EmbeddingFormatError(f"Non-finite value in vector of record {record} ({term!r})")
                yield term, vec


def read_bin_file(path: PathLike, max_words: int = 0) -> EmbeddingStore:
    """Read a word2vec binary file into a new store; ``max_words > 0`` caps the records read."""
    source = Word2vecBinarySource(path, max_words)
    logger.info("Reading word2vec file | path=%s | max_words=%d", source.path, max_words)
    store = EmbeddingStore(source.dimensionality())
    for term, vec in source.iter_embeddings():
        store.insert(term, vec)
    logger.info("Read word2vec file | path=%s | terms=%d | dim=%d", source.path, store.size(), store.dimensionality())
    return store


def _vocab_fields(path: Path) -> Iterator[Tuple[str, int]]:
    with path.open("r", encoding="utf-8", errors="replace") as fh:
        for lineno, line in enumerate(fh, start=1):
            fields = line.split()
            if not fields:
                continue
            if len(fields) < 2:
                raise EmbeddingFormatError(f"Vocab line {lineno} has no count: {line.strip()!r}")
            try:
                yield fields[0], int(fields[1])
            except ValueError as exc:
                raise EmbeddingFormatError(f"Vocab line {lineno} has a non-integer count: {fields[1]!r}") from exc


def read_vocab_file(path: PathLike, max_words: int = 0) -> Dict[str, int]:
    """Read ``<term> <count> ...`` lines into a term -> count map (first ``max_words`` if positive)."""
    counts: Dict[str, int] = {}
    for term, count in _vocab_fields(Path(path)):
        counts[term] = count
        if 0 < max_words <= len(counts):
            break
    return counts


def count_words_above(path: PathLike, min_freq: int) -> Optional[int]:
    """
    Number of leading vocab entries with a count of at least ``min_freq``.

    The vocab file is assumed sorted by descending count, so counting stops at
    the first entry below the threshold. Returns None (read everything) when
    no entry falls below it.
    """
    seen = 0
    for _term, count in _vocab_fields(Path(path)):
        if count < min_freq:
            return seen
        seen += 1
    logger.warning("No vocab entry below minimum frequency; reading all words | path=%s | min_freq=%d", path, min_freq)
    return None
