"""
chonkometer - Do token cost cua mot MCP server truoc khi cai dat.

Launch server qua stdio, lay tat ca definitions (tools, prompts,
resources, resource templates) va dem token bang cl100k_base BPE.
"""

__version__ = "1.0.0"
