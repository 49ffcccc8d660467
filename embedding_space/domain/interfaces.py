from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Tuple

import numpy as np


class EmbeddingSource(ABC):
    """Port for anything that can populate a store (e.g., a word2vec binary file)."""

    @abstractmethod
    def dimensionality(self) -> int:
        """Return the vector length shared by every pair the source yields."""
        raise NotImplementedError

    @abstractmethod
    def iter_embeddings(self) -> Iterator[Tuple[str, np.ndarray]]:
        """Yield (term, vector) pairs in source order.

        Raises:
            EmbeddingFormatError: Malformed input should surface; the loader decides.
        """
        raise NotImplementedError
