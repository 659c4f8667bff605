"""
Package core.mcp - Lay definitions tu MCP server qua stdio.

Modules:
- models: Category, Capability, Definition, ServerInfo, FetchResult
- session: McpSession (subprocess + handshake + JSON-RPC)
- enumerator: Lazy enumeration + partial-failure policy
- serializer: Canonical text cua definition
- fetcher: fetch_definitions() orchestration
"""
