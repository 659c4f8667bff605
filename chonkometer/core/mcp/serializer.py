"""
Canonical Serializer - definition -> formatted JSON text de dem token.

Token count nhay cam voi format, nen output phai on dinh:
- Pretty-print, indent 2 spaces, separators ", " / ": "
- Top-level keys theo thu tu field khai bao trong schema MCP
  (mcp.types model), sau do la cac key extra theo thu tu server gui
- Presence giu nguyen nhu server gui: khong them default, khong bo null
- Nested values (inputSchema, arguments, ...) khong bi sap xep lai
- Non-ASCII giu nguyen (khong escape \\uXXXX); surrogate le -> U+FFFD

Khac voi encoding/json cua Go (json.MarshalIndent), "<", ">" va "&" KHONG
bi HTML-escape thanh \\u003c, \\u003e, \\u0026. Definition co cac ky tu nay
se ra it token hon so voi cac tool dem tren output cua Go encoder.
"""

import json
from functools import lru_cache
from typing import Any, Dict, Tuple, Type

from pydantic import BaseModel

from chonkometer.core.utils.text_utils import replace_lone_surrogates


@lru_cache(maxsize=None)
def field_order(model: Type[BaseModel]) -> Tuple[str, ...]:
    """
    Thu tu key theo schema (dung alias, vd: "_meta" cho field meta).
    """
    return tuple(
        info.alias or name for name, info in model.model_fields.items()
    )


def canonical_fields(raw: Dict[str, Any], model: Type[BaseModel]) -> Dict[str, Any]:
    """Sap xep lai top-level keys cua raw theo field_order(model)."""
    ordered: Dict[str, Any] = {}
    for key in field_order(model):
        if key in raw:
            ordered[key] = raw[key]
    for key, value in raw.items():
        if key not in ordered:
            ordered[key] = value
    return ordered


def serialize(raw: Dict[str, Any], model: Type[BaseModel]) -> str:
    """
    Render definition thanh canonical text.

    Pure: cung input luon cho cung output.

    Args:
        raw: Definition object nhu server gui (da validate)
        model: mcp.types model cua category (Tool, Prompt, ...)

    Returns:
        JSON text indent 2 spaces, luon encode UTF-8 duoc
    """
    text = json.dumps(canonical_fields(raw, model), indent=2, ensure_ascii=False)
    return replace_lone_surrogates(text)
