"""
Tests for the word2vec binary/vocab readers and writers.
"""

import numpy as np
import pytest

from embedding_space.domain.errors import ContractError, EmbeddingFormatError
from embedding_space.domain.store import EmbeddingStore
from embedding_space.infrastructure.word2vec.reader import (
    Word2vecBinarySource,
    count_words_above,
    read_bin_file,
    read_vocab_file,
)
from embedding_space.infrastructure.word2vec.writer import write_bin_file, write_vocab_file


class TestReadBinFile:
    """Test reading word2vec C-format binary files."""

    @pytest.mark.parametrize("trailing_newline", [True, False])
    def test_both_record_layouts(self, tmp_path, make_word2vec, sample_vectors, trailing_newline):
        path = make_word2vec(tmp_path / "v.bin", sample_vectors, 3, trailing_newline=trailing_newline)

        store = read_bin_file(path)

        assert store.dimensionality() == 3
        assert list(store.iterate_terms()) == list(sample_vectors)
        for term, vec in sample_vectors.items():
            np.testing.assert_allclose(store.lookup(term), vec, rtol=1e-6)

    def test_values_are_float64(self, word2vec_file):
        assert read_bin_file(word2vec_file).lookup("king").dtype == np.float64

    def test_max_words(self, word2vec_file):
        store = read_bin_file(word2vec_file, max_words=2)
        assert list(store.iterate_terms()) == ["the", "king"]

    def test_max_words_larger_than_file(self, word2vec_file):
        assert read_bin_file(word2vec_file, max_words=99).size() == 5

    def test_zero_length_term_skipped(self, tmp_path):
        path = tmp_path / "blank.bin"
        with open(path, "wb") as fh:
            fh.write(b"3 2\n")
            fh.write(b"x " + np.array([1, 2], dtype="<f4").tobytes() + b"\n")
            fh.write(b" " + np.array([3, 4], dtype="<f4").tobytes() + b"\n")
            fh.write(b"y " + np.array([5, 6], dtype="<f4").tobytes() + b"\n")

        store = read_bin_file(path)

        assert list(store.iterate_terms()) == ["x", "y"]
        np.testing.assert_array_equal(store.lookup("y"), [5.0, 6.0])

    def test_utf8_terms(self, tmp_path, make_word2vec):
        path = make_word2vec(tmp_path / "u.bin", {"café": [1.0], "naïve": [2.0]}, 1)
        assert read_bin_file(path).contains_all(["café", "naïve"])

    def test_truncated_vector(self, tmp_path):
        path = tmp_path / "short.bin"
        with open(path, "wb") as fh:
            fh.write(b"1 4\nx ")
            fh.write(np.array([1, 2], dtype="<f4").tobytes())
        with pytest.raises(EmbeddingFormatError, match="Truncated"):
            read_bin_file(path)

    def test_fewer_records_than_declared(self, tmp_path, make_word2vec):
        path = make_word2vec(tmp_path / "few.bin", {"a": [1.0, 2.0]}, 2, declared_count=3)
        with pytest.raises(EmbeddingFormatError, match="end of file"):
            read_bin_file(path)

    def test_non_finite_value_rejected(self, tmp_path, make_word2vec):
        path = make_word2vec(tmp_path / "nan.bin", {"ok": [1.0, 2.0], "bad": [float("nan"), 0.0]}, 2)
        with pytest.raises(EmbeddingFormatError, match="Non-finite"):
            read_bin_file(path)

    @pytest.mark.parametrize("header", [b"\n", b"five 3\n", b"3\n", b"2 0\n"])
    def test_bad_header(self, tmp_path, header):
        path = tmp_path / "bad.bin"
        path.write_bytes(header)
        with pytest.raises(EmbeddingFormatError):
            read_bin_file(path)


class TestBinarySource:
    """Test the lazy source interface."""

    def test_header_without_reading_records(self, word2vec_file):
        source = Word2vecBinarySource(word2vec_file)
        assert source.header() == (5, 3)
        assert source.dimensionality() == 3

    def test_iteration_is_lazy(self, word2vec_file):
        first = next(iter(Word2vecBinarySource(word2vec_file).iter_embeddings()))
        assert first[0] == "the"


class TestWriteBinFile:
    """Test writing stores back to word2vec format."""

    @pytest.mark.parametrize("trailing_newline", [True, False])
    def test_written_file_reads_back(self, tmp_path, abc_store, trailing_newline):
        path = tmp_path / "out.bin"
        assert write_bin_file(abc_store, path, trailing_newline=trailing_newline) == 3

        again = read_bin_file(path)

        assert list(again.iterate_terms()) == ["a", "b", "c"]
        np.testing.assert_array_equal(again.lookup("c"), [1.0, 1.0])

    def test_values_rounded_to_float32(self, tmp_path):
        store = EmbeddingStore(1)
        store.insert("pi", [np.pi])
        path = tmp_path / "pi.bin"
        write_bin_file(store, path)
        assert read_bin_file(path).lookup("pi")[0] == pytest.approx(np.pi, rel=1e-6)

    def test_term_with_space_rejected(self, tmp_path):
        store = EmbeddingStore(1)
        store.insert("ok", [1.0])
        store.insert("new york", [1.0])
        target = tmp_path / "bad.bin"
        with pytest.raises(ContractError):
            write_bin_file(store, target)
        assert not target.exists()

    def test_existing_file_untouched_on_rejection(self, tmp_path, abc_store):
        target = tmp_path / "keep.bin"
        write_bin_file(abc_store, target)
        before = target.read_bytes()
        abc_store.insert("two words", [0.5, 0.5])

        with pytest.raises(ContractError):
            write_bin_file(abc_store, target)

        assert target.read_bytes() == before


class TestVocab:
    """Test vocab count files."""

    def test_read_counts(self, vocab_file):
        counts = read_vocab_file(vocab_file)
        assert counts == {"the": 500, "king": 120, "queen": 80, "man": 40, "woman": 10}

    def test_read_counts_limited(self, vocab_file):
        assert list(read_vocab_file(vocab_file, max_words=2)) == ["the", "king"]

    def test_bad_count(self, tmp_path):
        path = tmp_path / "v.txt"
        path.write_text("the many\n", encoding="utf-8")
        with pytest.raises(EmbeddingFormatError):
            read_vocab_file(path)

    def test_missing_count(self, tmp_path):
        path = tmp_path / "v.txt"
        path.write_text("lonely\n", encoding="utf-8")
        with pytest.raises(EmbeddingFormatError):
            read_vocab_file(path)

    @pytest.mark.parametrize(
        "min_freq, expected",
        [(100, 2), (80, 3), (501, 0), (11, 4)],
    )
    def test_count_words_above(self, vocab_file, min_freq, expected):
        assert count_words_above(vocab_file, min_freq) == expected

    def test_count_words_above_nothing_below(self, vocab_file):
        assert count_words_above(vocab_file, 1) is None

    def test_write_vocab_skips_unset(self, tmp_path, abc_store):
        abc_store.set_frequency("a", 3)
        abc_store.set_frequency("c", 1)
        path = tmp_path / "out.vocab"

        assert write_vocab_file(abc_store, path) == 2
        assert read_vocab_file(path) == {"a": 3, "c": 1}
