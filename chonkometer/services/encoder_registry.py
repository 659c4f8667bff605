"""
Encoder Registry - Provider cho vocabulary va BPETokenizer singleton.

Vocabulary duoc load MOT LAN moi process, truoc lan dem token dau tien,
roi dung chung read-only. Moi loi load la fatal (InitializationError),
khong retry.

Functions:
- get_vocabulary(): Lay VocabularyTable singleton (thread-safe)
- get_tokenizer(): Lay BPETokenizer singleton
- reset_encoder(): Reset singleton (tests)
"""

import threading
from typing import Optional

from chonkometer.core.tokenization.bpe import BPETokenizer
from chonkometer.core.tokenization.vocabulary import (
    DEFAULT_ENCODING,
    VocabularyTable,
    load_vocabulary,
)

_vocabulary: Optional[VocabularyTable] = None
_tokenizer: Optional[BPETokenizer] = None
_tokenizer_allows_special = True
_encoder_lock = threading.Lock()


def get_vocabulary(encoding_name: str = DEFAULT_ENCODING) -> VocabularyTable:
    """
    Lay vocabulary singleton (thread-safe, double-checked).

    Args:
        encoding_name: Ten encoding cho lan load dau tien

    Returns:
        VocabularyTable

    Raises:
        InitializationError: Load that bai
        ValueError: Singleton da load voi encoding khac
    """
    global _vocabulary

    vocabulary = _vocabulary
    if vocabulary is None:
        with _encoder_lock:
            if _vocabulary is None:
                _vocabulary = load_vocabulary(encoding_name)
            vocabulary = _vocabulary

    if vocabulary.name != encoding_name:
        raise ValueError(
            f"vocabulary {vocabulary.name!r} already loaded; "
            f"call reset_encoder() before loading {encoding_name!r}"
        )
    return vocabulary


def get_tokenizer(
    encoding_name: str = DEFAULT_ENCODING, allow_special_tokens: bool = True
) -> BPETokenizer:
    """
    Lay BPETokenizer singleton tren vocabulary singleton.

    Raises:
        InitializationError: Vocabulary load that bai
    """
    global _tokenizer, _tokenizer_allows_special

    vocabulary = get_vocabulary(encoding_name)
    with _encoder_lock:
        if (
            _tokenizer is None
            or _tokenizer.vocabulary is not vocabulary
            or _tokenizer_allows_special != allow_special_tokens
        ):
            _tokenizer = BPETokenizer(
                vocabulary, allowed_special="all" if allow_special_tokens else set()
            )
            _tokenizer_allows_special = allow_special_tokens
        return _tokenizer


def reset_encoder() -> None:
    """
    Reset singleton. Lan get tiep theo se load lai vocabulary.
    """
    global _vocabulary, _tokenizer
    with _encoder_lock:
        _vocabulary = None
        _tokenizer = None
