from __future__ import annotations

import re
from itertools import islice
from typing import Dict, Generic, Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar, Union

import numpy as np

from .errors import ContractError, DimensionMismatch

UNSET_FREQUENCY = -1

_PHRASE_SPLIT = re.compile(r"[\s_]+")

T = TypeVar("T")


class _Snapshot(Generic[T]):
    """Restartable view over the first ``count`` items of a list.

    The store only ever appends to its lists or swaps them for new ones, so
    remembering the list object and its length at creation time is enough to
    keep later insertions and filters out of the view.
    """

    def __init__(self, items: List[T], count: int) -> None:
        self._items = items
        self._count = count

    def __iter__(self) -> Iterator[T]:
        return islice(self._items, self._count)

    def __len__(self) -> int:
        return self._count


def as_vector(values: Union[Sequence[float], np.ndarray], dimensionality: int) -> np.ndarray:
    """Copy ``values`` into a float64 vector, checking it has ``dimensionality`` components.

    Raises:
        ContractError: When the input is not one-dimensional or has NaN/inf components.
        DimensionMismatch: When the length differs from ``dimensionality``.
    """
    vec = np.array(values, dtype=np.float64)
    if vec.ndim != 1:
        raise ContractError(f"Vectors must be one-dimensional, got shape {vec.shape}")
    if vec.shape[0] != dimensionality:
        raise DimensionMismatch(dimensionality, int(vec.shape[0]))
    if not np.isfinite(vec).all():
        raise ContractError("Vectors must have finite components")
    return vec


class EmbeddingStore:
    """Term dictionary plus one dense vector and one frequency count per term.

    Terms get contiguous indices in first-insertion order. The dictionary, the
    term list, the vector list and the frequency list are always the same
    length and aligned by index.

    The store is meant to be bulk-loaded once and then read by many concurrent
    similarity queries. It takes no locks: callers must not insert or filter
    while queries are in flight.
    """

    def __init__(self, dimensionality: int) -> None:
        if int(dimensionality) <= 0:
            raise ContractError(f"Dimensionality must be positive, got {dimensionality}")
        self._dimensionality = int(dimensionality)
        self._dictionary: Dict[str, int] = {}
        self._terms: List[str] = []
        self._vectors: List[np.ndarray] = []
        self._frequency: List[int] = []

    def dimensionality(self) -> int:
        return self._dimensionality

    def size(self) -> int:
        return len(self._terms)

    def __len__(self) -> int:
        return len(self._terms)

    def __contains__(self, term: object) -> bool:
        return term in self._dictionary

    def __iter__(self) -> Iterator[str]:
        return iter(self.iterate_terms())

    # ---- Mutation ----
    def insert(self, term: str, vector: Union[Sequence[float], np.ndarray]) -> int:
        """Add ``term`` with a copy of ``vector`` and return its index.

        Re-inserting a known term keeps the first vector and returns the
        existing index. The dimensionality is validated in both cases.
        """
        vec = as_vector(vector, self._dimensionality)
        existing = self._dictionary.get(term)
        if existing is not None:
            return existing
        index = len(self._terms)
        self._dictionary[term] = index
        self._terms.append(term)
        self._vectors.append(vec)
        self._frequency.append(UNSET_FREQUENCY)
        return index

    def set_frequency(self, term: str, count: int) -> None:
        index = self._dictionary.get(term)
        if index is None:
            return
        self._frequency[index] = int(count)

    def filter_to(self, keep: Iterable[str]) -> None:
        """Remove every term not in ``keep`` and renumber the survivors.

        Survivors keep their relative insertion order and get indices
        ``0..kept-1``. All parallel lists are rebuilt before being swapped in.
        """
        keep_set = keep if isinstance(keep, (set, frozenset)) else set(keep)
        dictionary: Dict[str, int] = {}
        terms: List[str] = []
        vectors: List[np.ndarray] = []
        frequency: List[int] = []
        for term, vec, freq in zip(self._terms, self._vectors, self._frequency):
            if term not in keep_set:
                continue
            dictionary[term] = len(terms)
            terms.append(term)
            vectors.append(vec)
            frequency.append(freq)
        self._dictionary = dictionary
        self._terms = terms
        self._vectors = vectors
        self._frequency = frequency

    # ---- Lookup ----
    def lookup(self, term: str) -> Optional[np.ndarray]:
        """Return the stored vector for ``term`` or ``None`` when absent.

        The returned array is the store's own buffer, not a copy.
        """
        index = self._dictionary.get(term)
        if index is None:
            return None
        return self._vectors[index]

    def contains(self, term: str) -> bool:
        return term in self._dictionary

    def contains_all(self, phrase: Union[str, Iterable[str]]) -> bool:
        """True when every word of ``phrase`` has a vector.

        A string is split on whitespace and underscores (``new_york`` style
        phrase tokens); any other iterable is taken as the word list.
        """
        if isinstance(phrase, str):
            words = [w for w in _PHRASE_SPLIT.split(phrase) if w]
        else:
            words = list(phrase)
        return all(w in self._dictionary for w in words)

    def index_of(self, term: str) -> Optional[int]:
        return self._dictionary.get(term)

    def rank(self, term: str) -> Optional[int]:
        """1-based position of ``term``; its frequency rank when loaded from a sorted source."""
        index = self._dictionary.get(term)
        return None if index is None else index + 1

    def term_at(self, index: int) -> str:
        return self._terms[index]

    def vector_at(self, index: int) -> np.ndarray:
        return self._vectors[index]

    def get_frequency(self, term: str) -> Optional[int]:
        """Return the count for ``term``, ``UNSET_FREQUENCY`` if never set, ``None`` if absent."""
        index = self._dictionary.get(term)
        if index is None:
            return None
        return self._frequency[index]

    # ---- Iteration ----
    def iterate_terms(self) -> _Snapshot[str]:
        return _Snapshot(self._terms, len(self._terms))

    def iterate_vectors(self) -> _Snapshot[np.ndarray]:
        return _Snapshot(self._vectors, len(self._vectors))

    def iterate_items(self) -> Iterable[Tuple[str, np.ndarray]]:
        """Snapshot of (term, vector) pairs in index order."""
        terms, vectors = self.iterate_terms(), self.iterate_vectors()
        return _Pairs(terms, vectors)

    def lexicon(self) -> List[str]:
        """Copy of all terms in index order; prefer ``iterate_terms`` for large stores."""
        return list(self._terms)


class _Pairs:
    def __init__(self, terms: _Snapshot[str], vectors: _Snapshot[np.ndarray]) -> None:
        self._terms = terms
        self._vectors = vectors

    def __iter__(self) -> Iterator[Tuple[str, np.ndarray]]:
        return zip(self._terms, self._vectors)

    def __len__(self) -> int:
        return len(self._terms)
