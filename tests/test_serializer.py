"""
Tests cho canonical serializer.
"""

import json

from mcp import types as mcp_types

from chonkometer.core.mcp.serializer import canonical_fields, field_order, serialize


class TestFieldOrder:
    """Thu tu key lay tu mcp.types models."""

    def test_tool_order(self):
        order = field_order(mcp_types.Tool)
        assert order.index("name") < order.index("description") < order.index("inputSchema")

    def test_meta_uses_alias(self):
        assert "_meta" in field_order(mcp_types.Tool)
        assert "meta" not in field_order(mcp_types.Tool)

    def test_resource_order(self):
        order = field_order(mcp_types.Resource)
        assert order.index("uri") < order.index("mimeType")


class TestSerialize:
    """Test canonical text."""

    def test_keys_reordered_by_schema(self):
        raw = {"inputSchema": {"type": "object"}, "description": "d", "name": "t"}
        text = serialize(raw, mcp_types.Tool)
        assert list(json.loads(text)) == ["name", "description", "inputSchema"]

    def test_indent_two_spaces(self):
        text = serialize({"name": "t", "inputSchema": {"type": "object"}}, mcp_types.Tool)
        assert text == (
            '{\n'
            '  "name": "t",\n'
            '  "inputSchema": {\n'
            '    "type": "object"\n'
            '  }\n'
            '}'
        )

    def test_nested_order_preserved(self):
        schema = {"type": "object", "properties": {"zeta": {}, "alpha": {}}, "required": ["zeta"]}
        text = serialize({"name": "t", "inputSchema": schema}, mcp_types.Tool)
        assert list(json.loads(text)["inputSchema"]["properties"]) == ["zeta", "alpha"]

    def test_presence_preserved(self):
        """Khong them default, khong bo null."""
        raw = {"name": "t", "description": None, "inputSchema": {}}
        fields = canonical_fields(raw, mcp_types.Tool)
        assert fields == {"name": "t", "description": None, "inputSchema": {}}
        assert "annotations" not in fields

    def test_extra_keys_kept_in_order(self):
        raw = {"zExtra": 1, "name": "t", "aExtra": 2, "inputSchema": {}}
        assert list(canonical_fields(raw, mcp_types.Tool)) == [
            "name", "inputSchema", "zExtra", "aExtra",
        ]

    def test_non_ascii_not_escaped(self):
        text = serialize({"name": "t", "description": "Tìm kiếm", "inputSchema": {}}, mcp_types.Tool)
        assert "Tìm kiếm" in text

    def test_uri_kept_verbatim(self):
        raw = {"uri": "file:///tmp/a b.txt", "name": "a"}
        assert json.loads(serialize(raw, mcp_types.Resource))["uri"] == "file:///tmp/a b.txt"

    def test_pure(self):
        raw = {"name": "p", "arguments": [{"name": "x", "required": True}]}
        assert serialize(raw, mcp_types.Prompt) == serialize(dict(raw), mcp_types.Prompt)

    def test_lone_surrogate_replaced(self):
        """Escape "\\ud83d" le tu server -> U+FFFD, text encode UTF-8 duoc."""
        raw = json.loads('{"name": "t", "description": "bad \\ud83d emoji", "inputSchema": {}}')
        text = serialize(raw, mcp_types.Tool)
        assert "bad \ufffd emoji" in text
        text.encode("utf-8")

    def test_surrogate_in_nested_value(self):
        raw = {"name": "t", "inputSchema": {"properties": {"q": {"description": "\udc00"}}}}
        assert "\ufffd" in serialize(raw, mcp_types.Tool)

    def test_no_html_escaping(self):
        raw = {"name": "t", "description": "a < b && c > d", "inputSchema": {}}
        text = serialize(raw, mcp_types.Tool)
        assert '"description": "a < b && c > d"' in text
        assert "\\u003c" not in text
