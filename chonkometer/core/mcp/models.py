"""
Data model cho definition enumeration.

- Category: tool / prompt / resource / template
- Capability: enum.Flag cac capability server khai bao luc handshake
- Definition: mot definition da serialize (canonical text)
- ServerInfo, FetchResult
"""

import enum
from dataclasses import dataclass, field
from typing import List, Optional


class Category(enum.Enum):
    """Loai definition. Value la "type" trong JSON report."""

    TOOL = "tool"
    PROMPT = "prompt"
    RESOURCE = "resource"
    TEMPLATE = "template"

    @property
    def plural(self) -> str:
        """Lowercase plural, dung lam prefix warning ("resources: ...")."""
        return f"{self.value}s"

    @property
    def label(self) -> str:
        """Ten hien thi ("Tools", "Templates", ...)."""
        return self.plural.capitalize()


# Thu tu co dinh cho report va enumeration
CATEGORY_ORDER = (Category.TOOL, Category.PROMPT, Category.RESOURCE, Category.TEMPLATE)


class Capability(enum.Flag):
    """Capability flags server khai bao trong initialize result."""

    NONE = 0
    TOOLS = enum.auto()
    PROMPTS = enum.auto()
    RESOURCES = enum.auto()


@dataclass(frozen=True)
class Definition:
    """Mot tool/prompt/resource/template va canonical text cua no."""

    category: Category
    name: str
    canonical_text: str


@dataclass(frozen=True)
class ServerInfo:
    name: str = ""
    version: Optional[str] = None


@dataclass
class FetchResult:
    """
    Ket qua enumeration cua mot run.

    Moi list giu dung thu tu server tra ve; warnings theo thu tu xay ra.
    """

    server: ServerInfo = field(default_factory=ServerInfo)
    tools: List[Definition] = field(default_factory=list)
    prompts: List[Definition] = field(default_factory=list)
    resources: List[Definition] = field(default_factory=list)
    templates: List[Definition] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def definitions(self, category: Category) -> List[Definition]:
        return getattr(self, category.plural)

    def all_definitions(self) -> List[Definition]:
        """Tat ca definitions theo CATEGORY_ORDER."""
        return [d for category in CATEGORY_ORDER for d in self.definitions(category)]
