"""
Tests cho VocabularyTable va load_vocabulary().
"""

from types import MappingProxyType
from unittest.mock import patch

import pytest

from chonkometer.core.errors import InitializationError
from chonkometer.core.tokenization import vocabulary as vocabulary_module
from chonkometer.core.tokenization.vocabulary import VocabularyTable, load_vocabulary

from conftest import SIMPLE_PATTERN, build_synthetic_ranks


class TestFromRanks:
    """Test validate du lieu vocabulary."""

    def test_valid_table(self, synthetic_vocabulary):
        assert synthetic_vocabulary.name == "synthetic"
        assert synthetic_vocabulary.merge_ranks[b"hello"] == 262
        assert synthetic_vocabulary.special_tokens["<|end|>"] == 1000
        # 256 bytes + 8 merges + 2 specials
        assert synthetic_vocabulary.n_vocab == 266

    def test_maps_are_read_only(self, synthetic_vocabulary):
        assert isinstance(synthetic_vocabulary.merge_ranks, MappingProxyType)
        with pytest.raises(TypeError):
            synthetic_vocabulary.merge_ranks[b"zz"] = 999

    def test_token_bytes(self, synthetic_vocabulary):
        assert synthetic_vocabulary.token_bytes(256) == b"ab"
        assert synthetic_vocabulary.token_bytes(1000) == b"<|end|>"
        with pytest.raises(KeyError):
            synthetic_vocabulary.token_bytes(5000)

    def test_empty_table_rejected(self):
        with pytest.raises(InitializationError, match="empty"):
            VocabularyTable.from_ranks("x", {}, SIMPLE_PATTERN)

    def test_missing_single_byte_rejected(self):
        ranks = build_synthetic_ranks([])
        del ranks[b"\x00"]
        with pytest.raises(InitializationError, match="corrupt"):
            VocabularyTable.from_ranks("x", ranks, SIMPLE_PATTERN)

    def test_duplicate_rank_rejected(self):
        ranks = build_synthetic_ranks([b"ab"])
        ranks[b"bc"] = ranks[b"ab"]
        with pytest.raises(InitializationError, match="duplicate"):
            VocabularyTable.from_ranks("x", ranks, SIMPLE_PATTERN)

    def test_special_colliding_with_rank_rejected(self):
        ranks = build_synthetic_ranks([])
        with pytest.raises(InitializationError, match="collides"):
            VocabularyTable.from_ranks("x", ranks, SIMPLE_PATTERN, {"<|s|>": 5})

    def test_invalid_pattern_rejected(self):
        ranks = build_synthetic_ranks([])
        with pytest.raises(InitializationError, match="split pattern"):
            VocabularyTable.from_ranks("x", ranks, "(unclosed")


class TestLoadVocabulary:
    """Test load_vocabulary() qua tiktoken encoding constructors."""

    def test_unknown_encoding(self):
        with pytest.raises(InitializationError, match="unknown vocabulary"):
            load_vocabulary("no_such_encoding")

    def test_constructor_failure_is_initialization_error(self):
        """Download/hash loi -> InitializationError, khong retry."""
        calls = []

        def broken():
            calls.append(1)
            raise ValueError("hash mismatch")

        with patch.dict(
            vocabulary_module.openai_public.ENCODING_CONSTRUCTORS, {"broken": broken}
        ):
            with pytest.raises(InitializationError, match="hash mismatch"):
                load_vocabulary("broken")
        assert calls == [1]

    def test_loads_from_constructor(self):
        def synthetic():
            return {
                "name": "tiny",
                "pat_str": SIMPLE_PATTERN,
                "mergeable_ranks": build_synthetic_ranks([b"ab"]),
                "special_tokens": {"<|eot|>": 300},
            }

        with patch.dict(
            vocabulary_module.openai_public.ENCODING_CONSTRUCTORS, {"tiny": synthetic}
        ):
            table = load_vocabulary("tiny")
        assert table.name == "tiny"
        assert table.merge_ranks[b"ab"] == 256
        assert table.special_tokens == {"<|eot|>": 300}

    def test_cl100k_shape(self, cl100k_vocabulary):
        """cl100k_base: 100256 merge ranks + specials."""
        assert cl100k_vocabulary.name == "cl100k_base"
        assert len(cl100k_vocabulary.merge_ranks) == 100256
        assert cl100k_vocabulary.special_tokens["<|endoftext|>"] == 100257
