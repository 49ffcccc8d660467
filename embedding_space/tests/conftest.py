"""
Pytest configuration and fixtures for embedding space tests.

Provides small in-memory stores, word2vec files written to a temp dir, and a
clean EMBSPACE_* environment.
"""

import os
from pathlib import Path

import numpy as np
import pytest

from embedding_space.domain.store import EmbeddingStore


def write_word2vec(path, entries, dim, trailing_newline=True, declared_count=None):
    """Write ``entries`` (term -> vector) as a word2vec binary file at ``path``."""
    count = len(entries) if declared_count is None else declared_count
    with open(path, "wb") as fh:
        fh.write(f"{count} {dim}\n".encode("ascii"))
        for term, vec in entries.items():
            fh.write(term.encode("utf-8") + b" ")
            fh.write(np.asarray(vec, dtype="<f4").tobytes())
            if trailing_newline:
                fh.write(b"\n")
    return Path(path)


@pytest.fixture
def make_word2vec():
    """Factory writing word2vec files: make_word2vec(path, entries, dim, trailing_newline=True)."""
    return write_word2vec


@pytest.fixture
def abc_store():
    """The three-term, two-dimensional store used throughout the scenarios."""
    store = EmbeddingStore(2)
    store.insert("a", [1.0, 0.0])
    store.insert("b", [0.0, 1.0])
    store.insert("c", [1.0, 1.0])
    return store


@pytest.fixture
def random_store():
    """A larger deterministic store for property-style checks."""
    rng = np.random.default_rng(1234)
    store = EmbeddingStore(8)
    for i in range(257):
        store.insert(f"w{i}", rng.standard_normal(8))
    return store


@pytest.fixture
def sample_vectors():
    return {
        "the": [0.1, 0.2, 0.3],
        "king": [0.9, 0.1, 0.0],
        "queen": [0.8, 0.0, 0.6],
        "man": [0.5, 0.5, 0.0],
        "woman": [0.4, 0.4, 0.6],
    }


@pytest.fixture
def word2vec_file(tmp_path, sample_vectors):
    """word2vec binary file (newline-terminated records) for ``sample_vectors``."""
    return write_word2vec(tmp_path / "vectors.bin", sample_vectors, 3)


@pytest.fixture
def vocab_file(tmp_path):
    """Vocab counts for ``sample_vectors``, sorted by descending count."""
    path = tmp_path / "vocab.txt"
    path.write_text("the 500\nking 120\nqueen 80\nman 40 extra fields\nwoman 10\n", encoding="utf-8")
    return path


@pytest.fixture
def clean_environment():
    """Clean environment variables for testing."""
    env_vars_to_clean = [
        'EMBSPACE_THREADS',
        'EMBSPACE_TOP_K',
        'EMBSPACE_VECTORS',
        'EMBSPACE_VOCAB',
        'EMBSPACE_MIN_FREQ',
    ]

    original_env = {}
    for var in env_vars_to_clean:
        if var in os.environ:
            original_env[var] = os.environ[var]
            del os.environ[var]

    yield

    # Restore original environment
    for var in env_vars_to_clean:
        os.environ.pop(var, None)
    for var, value in original_env.items():
        os.environ[var] = value


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line(
        "markers", "cli: mark test as CLI command test"
    )
    config.addinivalue_line(
        "markers", "env: mark test as environment resolution test"
    )
