"""
Tests dem token tren cl100k_base that.

Skip khi vocabulary khong load duoc (offline, khong co tiktoken cache).
Ket qua duoc doi chieu voi encoder cua chinh tiktoken.
"""

from unittest.mock import patch

import pytest
import tiktoken

from chonkometer.core.errors import InitializationError
from chonkometer.services import encoder_registry
from chonkometer.services.encoder_registry import (
    get_tokenizer,
    get_vocabulary,
    reset_encoder,
)

SAMPLES = [
    "hello",
    "hello world",
    '{"name": "test", "description": "a test tool"}',
    "",
    "Xin chào thế giới! 你好，世界",
    "def hello():\n    print('Hello, World!')\n    return 42\n",
    "  leading and trailing spaces   \n\n\n",
    "emoji 🎉🚀 and accents: naïve café",
    "numbers 1234567890 3.14159",
    "<|endoftext|> special in the middle <|endoftext|>",
    '{\n  "name": "search",\n  "inputSchema": {\n    "type": "object"\n  }\n}',
]


class TestReferenceCounts:
    """So token co dinh cua cl100k_base."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("hello", 1),
            ("hello world", 2),
            ('{"name": "test", "description": "a test tool"}', 14),
            ("", 0),
        ],
    )
    def test_reference_count(self, cl100k_tokenizer, text, expected):
        assert cl100k_tokenizer.count(text) == expected

    @pytest.mark.parametrize("text", SAMPLES)
    def test_matches_tiktoken(self, cl100k_tokenizer, text):
        """Token ids trung khop bit-for-bit voi tiktoken."""
        reference = tiktoken.get_encoding("cl100k_base")
        assert cl100k_tokenizer.encode(text) == reference.encode(text, allowed_special="all")

    def test_long_text(self, cl100k_tokenizer):
        text = "The quick brown fox jumps over the lazy dog. " * 200
        reference = tiktoken.get_encoding("cl100k_base")
        assert cl100k_tokenizer.count(text) == len(reference.encode(text))


class TestEncoderRegistry:
    """Test singleton vocabulary/tokenizer."""

    @pytest.fixture(autouse=True)
    def _reset(self):
        reset_encoder()
        yield
        reset_encoder()

    def test_default_tokenizer_counts_cl100k(self, cl100k_vocabulary):
        with patch.object(encoder_registry, "load_vocabulary", return_value=cl100k_vocabulary):
            assert get_tokenizer().count("hello world") == 2

    def test_vocabulary_loaded_once(self, synthetic_vocabulary):
        with patch.object(
            encoder_registry, "load_vocabulary", return_value=synthetic_vocabulary
        ) as loader:
            first = get_vocabulary("synthetic")
            second = get_vocabulary("synthetic")
        assert first is second
        loader.assert_called_once_with("synthetic")

    def test_tokenizer_reused(self, synthetic_vocabulary):
        with patch.object(encoder_registry, "load_vocabulary", return_value=synthetic_vocabulary):
            assert get_tokenizer("synthetic") is get_tokenizer("synthetic")

    def test_special_flag_rebuilds_tokenizer(self, synthetic_vocabulary):
        with patch.object(encoder_registry, "load_vocabulary", return_value=synthetic_vocabulary):
            with_specials = get_tokenizer("synthetic", allow_special_tokens=True)
            without = get_tokenizer("synthetic", allow_special_tokens=False)
        assert with_specials is not without
        assert with_specials.encode("<|end|>") == [1000]
        assert 1000 not in without.encode("<|end|>")

    def test_other_encoding_after_load_rejected(self, synthetic_vocabulary):
        with patch.object(encoder_registry, "load_vocabulary", return_value=synthetic_vocabulary):
            get_vocabulary("synthetic")
            with pytest.raises(ValueError, match="already loaded"):
                get_vocabulary("cl100k_base")

    def test_load_failure_propagates(self):
        with patch.object(
            encoder_registry,
            "load_vocabulary",
            side_effect=InitializationError("missing"),
        ):
            with pytest.raises(InitializationError):
                get_tokenizer("cl100k_base")
