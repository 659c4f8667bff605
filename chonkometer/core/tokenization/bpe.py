"""
BPE Tokenizer Engine - byte-level byte-pair encoding tren VocabularyTable.

Thuat toan (phai khop bit-for-bit voi vocabulary goc):
1. Special tokens (neu duoc phep) match truoc, uu tien cao nhat.
2. Pre-tokenization: split text bang split_pattern cua vocabulary.
   Khong bao gio merge qua ranh gioi giua cac chunk.
3. Moi chunk -> UTF-8 bytes, moi byte la mot token. Lap lai: tim cap
   lien ke co rank thap nhat (leftmost neu bang nhau), merge; dung khi
   khong con cap nao co trong bang.
4. Map token -> id (rank), noi id theo thu tu chunk.

Surrogate le trong input (tu JSON escape "\\ud83d") duoc thay bang U+FFFD
truoc khi encode, giong tiktoken.

Functions:
- BPETokenizer.encode(): text -> list token ids
- BPETokenizer.count(): text -> so token (== len(encode(text)))
"""

import heapq
from typing import AbstractSet, Iterator, List, Literal, Optional, Union

import regex

from chonkometer.core.tokenization.vocabulary import VocabularyTable
from chonkometer.core.utils.text_utils import replace_lone_surrogates

AllowedSpecial = Union[Literal["all"], AbstractSet[str]]


class BPETokenizer:
    """
    Pure tokenizer: khong co state mutable ngoai vocabulary read-only.

    Args:
        vocabulary: VocabularyTable da load
        allowed_special: "all" hoac set cac special token literal duoc match.
            Special token khong duoc phep se duoc encode nhu text thuong.
    """

    def __init__(
        self, vocabulary: VocabularyTable, allowed_special: AllowedSpecial = "all"
    ) -> None:
        self._vocab = vocabulary
        self._ranks = vocabulary.merge_ranks

        if allowed_special == "all":
            allowed = set(vocabulary.special_tokens)
        else:
            allowed = set(allowed_special) & set(vocabulary.special_tokens)
        self._allowed_special = frozenset(allowed)

        self._special_pattern: Optional["regex.Pattern[str]"] = None
        if allowed:
            # Literal dai hon match truoc
            literals = sorted(allowed, key=len, reverse=True)
            self._special_pattern = regex.compile(
                "|".join(regex.escape(s) for s in literals)
            )

    @property
    def vocabulary(self) -> VocabularyTable:
        return self._vocab

    # ── Pre-tokenization ───────────────────────────────────────────

    def split(self, text: str) -> List[str]:
        """Chia text thanh chunks theo split_pattern (khong xu ly special)."""
        return [m.group() for m in self._vocab.split_pattern.finditer(text)]

    # ── Byte-pair merging ──────────────────────────────────────────

    def _merge(self, piece: bytes) -> List[bytes]:
        # Linked list tren vi tri byte + heap (rank, start): moi buoc pop cap
        # rank thap nhat, bang nhau thi start nho nhat (leftmost).
        # Entry cu trong heap bi bo qua khi rank cua cap hien tai khong con khop.
        ranks = self._ranks
        n = len(piece)
        nxt = list(range(1, n + 1))
        prev = list(range(-1, n - 1))
        alive = [True] * n

        heap = []
        for i in range(n - 1):
            rank = ranks.get(piece[i : i + 2])
            if rank is not None:
                heap.append((rank, i))
        heapq.heapify(heap)

        while heap:
            rank, i = heapq.heappop(heap)
            if not alive[i] or nxt[i] >= n:
                continue
            right = nxt[i]
            end = nxt[right]
            if ranks.get(piece[i:end]) != rank:
                continue

            alive[right] = False
            nxt[i] = end
            if end < n:
                prev[end] = i
                new_rank = ranks.get(piece[i : nxt[end]])
                if new_rank is not None:
                    heapq.heappush(heap, (new_rank, i))

            left = prev[i]
            if left >= 0:
                new_rank = ranks.get(piece[left:end])
                if new_rank is not None:
                    heapq.heappush(heap, (new_rank, left))

        parts = []
        i = 0
        while i < n:
            parts.append(piece[i : nxt[i]])
            i = nxt[i]
        return parts

    def encode_chunk(self, chunk: Union[str, bytes]) -> List[int]:
        """
        Encode mot chunk da pre-tokenize.

        Ket qua khong con cap token lien ke nao ma concatenation co trong
        merge table (maximal-merge invariant).
        """
        if isinstance(chunk, str):
            piece = replace_lone_surrogates(chunk).encode("utf-8")
        else:
            piece = chunk
        if not piece:
            return []

        # Fast path: ca chunk la mot token
        token_id = self._ranks.get(piece)
        if token_id is not None:
            return [token_id]

        return [self._ranks[part] for part in self._merge(piece)]

    # ── Encode / count ─────────────────────────────────────────────

    def encode_ordinary(self, text: str) -> List[int]:
        """Encode text, KHONG match special tokens."""
        return self._encode_plain(replace_lone_surrogates(text))

    def _encode_plain(self, text: str) -> List[int]:
        ids: List[int] = []
        for chunk in self.split(text):
            ids.extend(self.encode_chunk(chunk))
        return ids

    def _segments(self, text: str) -> Iterator[Union[str, int]]:
        # Yield text thuong (str) xen ke special token id (int)
        if self._special_pattern is None:
            if text:
                yield text
            return

        start = 0
        for match in self._special_pattern.finditer(text):
            if match.start() > start:
                yield text[start : match.start()]
            yield self._vocab.special_tokens[match.group()]
            start = match.end()
        if start < len(text):
            yield text[start:]

    def encode(self, text: str) -> List[int]:
        """
        Encode text thanh list token ids.

        Args:
            text: Bat ky str nao (ke ca "", text multi-byte, surrogate le)

        Returns:
            List token ids theo thu tu
        """
        ids: List[int] = []
        for segment in self._segments(replace_lone_surrogates(text)):
            if isinstance(segment, int):
                ids.append(segment)
            else:
                ids.extend(self._encode_plain(segment))
        return ids

    def count(self, text: str) -> int:
        """So token cua text; count("") == 0."""
        return len(self.encode(text))

    # ── Inspection ─────────────────────────────────────────────────

    def decode_bytes(self, ids: List[int]) -> bytes:
        return b"".join(self._vocab.token_bytes(i) for i in ids)

    def decode(self, ids: List[int]) -> str:
        return self.decode_bytes(ids).decode("utf-8", errors="replace")
