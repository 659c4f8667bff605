"""
Aggregator - gop FetchResult + token counts thanh summary cho report.

- Moi category: so item, tong token, items sort giam dan theo token
  (stable sort: bang nhau thi giu thu tu server tra ve)
- Grand total = tong cac category
- Warnings giu nguyen
- Estimator chi duoc expose, KHONG duoc ap dung o day
  (estimate la quyet dinh cua presentation layer)
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from chonkometer.config.estimators import CostEstimator
from chonkometer.core.mcp.models import CATEGORY_ORDER, Category, FetchResult
from chonkometer.core.tokenization.batch import count_texts


@dataclass(frozen=True)
class ItemCount:
    name: str
    tokens: int


@dataclass(frozen=True)
class CategorySummary:
    category: Category
    item_count: int
    token_total: int
    items: Tuple[ItemCount, ...]

    @property
    def name(self) -> str:
        return self.category.label


@dataclass(frozen=True)
class Aggregation:
    """Summary cua ca run, san sang de render."""

    categories: Tuple[CategorySummary, ...]
    total: int
    warnings: Tuple[str, ...]
    estimator: Optional[CostEstimator] = None

    def summary(self, category: Category) -> CategorySummary:
        for summary in self.categories:
            if summary.category is category:
                return summary
        raise KeyError(category)

    def category_totals(self) -> Dict[str, int]:
        """{category plural -> token total}, input cho CostEstimator."""
        return {s.category.plural: s.token_total for s in self.categories}

    def largest(self) -> CategorySummary:
        """Category co token total lon nhat (bang nhau thi lay category dau)."""
        best = self.categories[0]
        for summary in self.categories[1:]:
            if summary.token_total > best.token_total:
                best = summary
        return best


def aggregate(
    result: FetchResult,
    count: Callable[[str], int],
    *,
    estimator: Optional[CostEstimator] = None,
    max_workers: int = 1,
) -> Aggregation:
    """
    Dem token cho moi definition va tong hop theo category.

    Args:
        result: FetchResult tu fetch_definitions()
        count: Ham dem token (vd: BPETokenizer.count)
        estimator: Heuristic estimate de expose cho report (khong ap dung)
        max_workers: > 1 thi dem song song

    Returns:
        Aggregation
    """
    summaries = []
    for category in CATEGORY_ORDER:
        definitions = result.definitions(category)
        counts = count_texts(
            [d.canonical_text for d in definitions], count, max_workers=max_workers
        )
        items = sorted(
            (ItemCount(d.name, n) for d, n in zip(definitions, counts)),
            key=lambda item: item.tokens,
            reverse=True,
        )
        summaries.append(
            CategorySummary(
                category=category,
                item_count=len(items),
                token_total=sum(counts),
                items=tuple(items),
            )
        )

    return Aggregation(
        categories=tuple(summaries),
        total=sum(s.token_total for s in summaries),
        warnings=tuple(result.warnings),
        estimator=estimator,
    )
