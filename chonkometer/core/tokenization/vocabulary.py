"""
Vocabulary Table - merge ranks + pre-tokenization rule + special tokens.

Vocabulary duoc load MOT LAN moi process (xem services.encoder_registry)
va khong bao gio bi mutate sau do. Moi BPETokenizer dung chung
mot instance read-only, an toan cho nhieu threads.

Nguon du lieu: encoding constructors cua tiktoken (tiktoken_ext.openai_public).
File .tiktoken duoc tiktoken download, kiem tra sha256 va cache
(bien moi truong TIKTOKEN_CACHE_DIR).

Functions:
- load_vocabulary(): Load vocabulary theo ten encoding (vd: "cl100k_base")
- VocabularyTable.from_ranks(): Tao table tu du lieu in-memory
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

import regex
from tiktoken_ext import openai_public

from chonkometer.core.errors import InitializationError
from chonkometer.core.logging_config import log_debug, log_info

DEFAULT_ENCODING = "cl100k_base"


@dataclass(frozen=True)
class VocabularyTable:
    """
    Bang vocabulary bat bien.

    Attributes:
        name: Ten encoding (vd: "cl100k_base")
        merge_ranks: bytes -> rank. Rank cung chinh la token id.
        special_tokens: literal text -> token id
        split_pattern: Compiled pre-tokenization regex
    """

    name: str
    merge_ranks: Mapping[bytes, int]
    special_tokens: Mapping[str, int]
    split_pattern: "regex.Pattern[str]"
    _decoder: Mapping[int, bytes] = field(repr=False, compare=False)

    @classmethod
    def from_ranks(
        cls,
        name: str,
        merge_ranks: Mapping[bytes, int],
        pattern: str,
        special_tokens: Optional[Mapping[str, int]] = None,
    ) -> "VocabularyTable":
        """
        Validate va dong goi du lieu vocabulary.

        Args:
            name: Ten vocabulary
            merge_ranks: Mapping bytes -> rank
            pattern: Pre-tokenization regex (cu phap module `regex`)
            special_tokens: Mapping literal -> id

        Returns:
            VocabularyTable read-only

        Raises:
            InitializationError: Du lieu thieu hoac corrupt
        """
        special_tokens = dict(special_tokens or {})

        if not merge_ranks:
            raise InitializationError(f"vocabulary {name!r} is empty")

        # BPE chi la total function khi moi byte don le deu co token
        missing = [b for b in range(256) if bytes([b]) not in merge_ranks]
        if missing:
            raise InitializationError(
                f"vocabulary {name!r} is corrupt: {len(missing)} single-byte "
                f"tokens missing (first: 0x{missing[0]:02x})"
            )

        decoder = {rank: token for token, rank in merge_ranks.items()}
        if len(decoder) != len(merge_ranks):
            raise InitializationError(f"vocabulary {name!r} has duplicate ranks")

        for literal, token_id in special_tokens.items():
            if token_id in decoder:
                raise InitializationError(
                    f"special token {literal!r} id {token_id} collides with "
                    f"a merge rank in {name!r}"
                )
            decoder[token_id] = literal.encode("utf-8")

        try:
            compiled = regex.compile(pattern)
        except regex.error as exc:
            raise InitializationError(
                f"vocabulary {name!r} has an invalid split pattern: {exc}"
            ) from exc

        return cls(
            name=name,
            merge_ranks=MappingProxyType(dict(merge_ranks)),
            special_tokens=MappingProxyType(special_tokens),
            split_pattern=compiled,
            _decoder=MappingProxyType(decoder),
        )

    @property
    def n_vocab(self) -> int:
        return len(self._decoder)

    def token_bytes(self, token_id: int) -> bytes:
        """
        Raises:
            KeyError: token_id khong ton tai
        """
        return self._decoder[token_id]


def load_vocabulary(encoding_name: str = DEFAULT_ENCODING) -> VocabularyTable:
    """
    Load vocabulary theo ten encoding cua tiktoken.

    Khong retry: loi o day la fatal, caller phai abort truoc khi
    tuong tac voi MCP server.

    Args:
        encoding_name: Ten encoding (vd: "cl100k_base", "o200k_base")

    Returns:
        VocabularyTable

    Raises:
        InitializationError: Encoding khong ton tai, file missing/corrupt
    """
    constructor = openai_public.ENCODING_CONSTRUCTORS.get(encoding_name)
    if constructor is None:
        known = ", ".join(sorted(openai_public.ENCODING_CONSTRUCTORS))
        raise InitializationError(
            f"unknown vocabulary {encoding_name!r} (known: {known})"
        )

    log_debug(f"[Vocabulary] Loading {encoding_name}")
    try:
        params = constructor()
    except Exception as exc:
        # Download loi, hash mismatch, file cache hong, ...
        raise InitializationError(
            f"loading vocabulary {encoding_name!r}: {exc}"
        ) from exc

    table = VocabularyTable.from_ranks(
        name=params["name"],
        merge_ranks=params["mergeable_ranks"],
        pattern=params["pat_str"],
        special_tokens=params["special_tokens"],
    )
    log_info(f"[Vocabulary] Loaded {table.name} ({table.n_vocab} tokens)")
    return table
