"""
Report Service - Render ket qua ra text (human) hoac JSON (machine).

JSON report:
    {
      "server": {"name": ..., "version": ...},
      "definitions": [{"type", "name", "json", "tokens"}, ...],
      "summary": {"tools", "prompts", "resources", "templates", "total"}
    }
summary.<category> la SO ITEM, summary.total la TONG TOKEN.

Text report: moi category mot dong, dong Total, dong estimate
(neu co estimator), top 3 items cua category lon nhat, warnings.
"""

import json
from typing import Any, Callable, Dict, List, Optional

from chonkometer.config.estimators import CostEstimator
from chonkometer.core.aggregation import Aggregation
from chonkometer.core.mcp.models import FetchResult, ServerInfo

# So items lon nhat hien thi cho category co nhieu token nhat
LARGEST_ITEMS_LIMIT = 3


def format_number(n: int) -> str:
    """1234567 -> "1,234,567"."""
    return f"{n:,}"


def build_json_report(
    result: FetchResult, count: Callable[[str], int]
) -> Dict[str, Any]:
    """
    Tao JSON report tu FetchResult.

    Args:
        result: FetchResult
        count: Ham dem token

    Returns:
        Dict theo format JSON report
    """
    server: Dict[str, str] = {}
    if result.server.name:
        server["name"] = result.server.name
    if result.server.version:
        server["version"] = result.server.version

    definitions: List[Dict[str, Any]] = []
    summary = {"tools": 0, "prompts": 0, "resources": 0, "templates": 0, "total": 0}

    for definition in result.all_definitions():
        tokens = count(definition.canonical_text)
        definitions.append(
            {
                "type": definition.category.value,
                "name": definition.name,
                "json": definition.canonical_text,
                "tokens": tokens,
            }
        )
        summary[definition.category.plural] += 1
        summary["total"] += tokens

    return {"server": server, "definitions": definitions, "summary": summary}


def render_json(result: FetchResult, count: Callable[[str], int]) -> str:
    return json.dumps(build_json_report(result, count), indent=2, ensure_ascii=False)


def _server_header(server: ServerInfo) -> List[str]:
    if not server.name:
        return []
    if server.version:
        return [f"Server: {server.name} v{server.version}", ""]
    return [f"Server: {server.name}", ""]


def render_text(
    server: ServerInfo,
    aggregation: Aggregation,
    estimator: Optional[CostEstimator] = None,
) -> str:
    """
    Render human-readable report.

    Args:
        server: ServerInfo tu handshake
        aggregation: Ket qua aggregate()
        estimator: Heuristic estimate; None thi khong in dong estimate

    Returns:
        Report text (khong co newline cuoi)
    """
    lines = _server_header(server)

    for summary in aggregation.categories:
        lines.append(
            f"{summary.name + ':':<12} {summary.item_count:>5}    "
            f"({format_number(summary.token_total)} tokens)"
        )

    lines.append(f"{'':18} ─────────────")
    lines.append(f"{'Total:':<12}       ~{format_number(aggregation.total)} tokens")

    if estimator is not None:
        estimated = estimator.estimate(aggregation.category_totals())
        lines.append(
            f"{estimator.label + ':':<12}       ~{format_number(estimated)} tokens (estimate)"
        )

    largest = aggregation.largest()
    if largest.items:
        lines.append("")
        lines.append(f"Largest {largest.category.plural}:")
        for rank, item in enumerate(largest.items[:LARGEST_ITEMS_LIMIT], start=1):
            lines.append(f"  {rank}. {item.name:<24} {format_number(item.tokens)} tokens")

    if aggregation.warnings:
        lines.append("")
        lines.append("Warnings:")
        for warning in aggregation.warnings:
            lines.append(f"  - {warning}")

    return "\n".join(lines)
