"""
Package core.tokenization - BPE token counting.

Modules:
- vocabulary: VocabularyTable + load_vocabulary() (load mot lan)
- bpe: BPETokenizer (pre-tokenize, byte-pair merge, id mapping)
- batch: Dem nhieu texts, optional ThreadPoolExecutor
"""
