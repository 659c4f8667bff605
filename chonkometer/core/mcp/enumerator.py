"""
Definition Enumerator - lazy lay definitions theo tung category.

Moi category co mot list method phan trang bang cursor. iter_definitions()
la generator: chi request trang tiep theo khi caller can them item,
validate tung item luc yield. Loi o bat ky buoc nao raise ra khoi
generator va ket thuc no (khong restart duoc).

Policy (collect()):
- tools, prompts: loi giua chung la FATAL -> FatalEnumerationError
- resources, templates: giu cac item da yield, ghi warning
  "<category>: <error>", dung category do
- templates chi duoc thu khi resources hoan tat khong loi
- OperationCancelledError luon propagate (fatal)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type

from mcp import types as mcp_types
from pydantic import BaseModel, ValidationError

from chonkometer.core.errors import (
    FatalEnumerationError,
    ProtocolError,
    ServerConnectionError,
)
from chonkometer.core.logging_config import log_debug, log_info
from chonkometer.core.mcp.models import Capability, Category, Definition
from chonkometer.core.mcp.serializer import serialize
from chonkometer.core.mcp.session import McpSession


@dataclass(frozen=True)
class CategorySpec:
    """Cach lay mot category qua MCP."""

    category: Category
    method: str
    result_key: str
    model: Type[BaseModel]
    capability: Capability
    fatal: bool
    # Chi enumerate khi category nay hoan tat khong loi
    depends_on: Optional[Category] = None


CATEGORY_SPECS: Dict[Category, CategorySpec] = {
    Category.TOOL: CategorySpec(
        Category.TOOL, "tools/list", "tools", mcp_types.Tool, Capability.TOOLS, True
    ),
    Category.PROMPT: CategorySpec(
        Category.PROMPT, "prompts/list", "prompts", mcp_types.Prompt, Capability.PROMPTS, True
    ),
    Category.RESOURCE: CategorySpec(
        Category.RESOURCE,
        "resources/list",
        "resources",
        mcp_types.Resource,
        Capability.RESOURCES,
        False,
    ),
    Category.TEMPLATE: CategorySpec(
        Category.TEMPLATE,
        "resources/templates/list",
        "resourceTemplates",
        mcp_types.ResourceTemplate,
        Capability.RESOURCES,
        False,
        depends_on=Category.RESOURCE,
    ),
}


def enabled_categories(capabilities: Capability) -> Tuple[Category, ...]:
    """
    Cac category se duoc enumerate, theo thu tu co dinh.

    Templates chi duoc thu khi server co Resources capability.
    """
    return tuple(
        spec.category
        for spec in CATEGORY_SPECS.values()
        if spec.capability in capabilities
    )


def _read_page(
    spec: CategorySpec, result: Dict[str, Any]
) -> Tuple[List[Any], Optional[str]]:
    items = result.get(spec.result_key, [])
    if not isinstance(items, list):
        raise ProtocolError(f'"{spec.method}": {spec.result_key!r} is not a list')

    cursor = result.get("nextCursor")
    if cursor is not None and not isinstance(cursor, str):
        raise ProtocolError(f'"{spec.method}": nextCursor is not a string')
    return items, cursor or None


def iter_definitions(session: McpSession, category: Category) -> Iterator[Definition]:
    """
    Lazy sequence cac definitions cua mot category.

    Args:
        session: McpSession da handshake
        category: Category can lay

    Yields:
        Definition theo dung thu tu server tra ve

    Raises:
        ProtocolError: RPC error, timeout, page hoac item sai format
        ServerConnectionError: Server exit giua chung
        OperationCancelledError: Bi cancel
    """
    spec = CATEGORY_SPECS[category]
    cursor: Optional[str] = None
    seen_cursors = set()

    while True:
        params = {"cursor": cursor} if cursor else {}
        items, cursor = _read_page(spec, session.request(spec.method, params))

        for item in items:
            if not isinstance(item, dict):
                raise ProtocolError(f'"{spec.method}": item is not an object')
            try:
                validated = spec.model.model_validate(item)
            except ValidationError as exc:
                raise ProtocolError(
                    f'"{spec.method}": invalid {category.value} definition: {exc}'
                ) from exc

            yield Definition(
                category=category,
                name=validated.name,
                canonical_text=serialize(item, spec.model),
            )

        if cursor is None:
            return
        if cursor in seen_cursors:
            raise ProtocolError(f'"{spec.method}": server repeated cursor {cursor!r}')
        seen_cursors.add(cursor)


@dataclass
class CollectOutcome:
    """Ket qua enumerate mot category: definitions + warning neu partial."""

    definitions: List[Definition] = field(default_factory=list)
    warning: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.warning is None


def collect(session: McpSession, category: Category) -> CollectOutcome:
    """
    Chay iter_definitions voi policy loi cua category.

    Args:
        session: McpSession da handshake
        category: Category can lay

    Returns:
        CollectOutcome (definitions da lay duoc, warning neu partial failure)

    Raises:
        FatalEnumerationError: Loi trong tools/prompts
        OperationCancelledError: Bi cancel
    """
    spec = CATEGORY_SPECS[category]
    outcome = CollectOutcome()

    try:
        for definition in iter_definitions(session, category):
            outcome.definitions.append(definition)
    except (ProtocolError, ServerConnectionError) as exc:
        if spec.fatal:
            raise FatalEnumerationError(category.plural, exc) from exc
        outcome.warning = f"{category.plural}: {exc}"
        log_info(
            f"[Enumerator] {outcome.warning} (kept {len(outcome.definitions)} items)"
        )

    log_debug(f"[Enumerator] {category.plural}: {len(outcome.definitions)} definitions")
    return outcome


def collect_all(
    session: McpSession, capabilities: Capability
) -> Iterator[Tuple[Category, CollectOutcome]]:
    """
    Enumerate moi category duoc bat, tuan tu, theo thu tu co dinh.

    Category co depends_on bi bo qua (khong warning) khi category
    phu thuoc khong hoan tat.
    """
    incomplete = set()
    for category in enabled_categories(capabilities):
        spec = CATEGORY_SPECS[category]
        if spec.depends_on in incomplete:
            log_info(
                f"[Enumerator] Skipping {category.plural}: "
                f"{spec.depends_on.plural} did not complete"
            )
            continue

        outcome = collect(session, category)
        if not outcome.complete:
            incomplete.add(category)
        yield category, outcome
