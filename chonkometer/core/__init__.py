"""
Package core - Logic doc lap voi CLI.

- tokenization: BPE engine + vocabulary
- mcp: Session, enumerator, serializer, fetcher
- aggregation: Category summaries + grand total
"""
