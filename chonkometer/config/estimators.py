"""
Cost Estimators - Heuristic uoc luong token "that" cua model dich.

Token count cua cl100k_base khong trung voi tokenizer cua model khac
(vd: Claude). Module nay cung cap cac heuristic co the cam thay the nhau,
moi heuristic co label ro rang va luon duoc hien thi la "estimate".

- FlatFactorEstimator: nhan tong token voi mot he so co dinh
- CategoryWeightedEstimator: moi category mot he so rieng

Estimator nhan mapping {category plural -> token total},
vd: {"tools": 1200, "prompts": 40, "resources": 0, "templates": 0}.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional

from chonkometer.config.app_settings import AppSettings


class CostEstimator:
    """Base class cho cac heuristic uoc luong."""

    label: str = "Estimate"

    def estimate(self, category_totals: Mapping[str, int]) -> int:
        raise NotImplementedError


@dataclass(frozen=True)
class FlatFactorEstimator(CostEstimator):
    """
    Nhan tong token voi mot correction factor.

    Factor 1.23 duoc do tren Claude count-tokens API (cl100k_base
    dem thieu khoang 19%).
    """

    factor: float = 1.23
    label: str = "Claude"

    def estimate(self, category_totals: Mapping[str, int]) -> int:
        return int(sum(category_totals.values()) * self.factor)


@dataclass(frozen=True)
class CategoryWeightedEstimator(CostEstimator):
    """
    Moi category co weight rieng; category khong co weight dung default_weight.
    """

    weights: Mapping[str, float] = field(default_factory=dict)
    default_weight: float = 1.0
    label: str = "Weighted"

    def estimate(self, category_totals: Mapping[str, int]) -> int:
        total = 0.0
        for category, tokens in category_totals.items():
            total += tokens * self.weights.get(category, self.default_weight)
        return int(total)


def build_estimator(settings: AppSettings) -> Optional[CostEstimator]:
    """
    Tao estimator tu settings.

    Args:
        settings: AppSettings (estimator, estimate_factor, estimate_label,
            category_weights)

    Returns:
        CostEstimator, hoac None neu settings.estimator == "none"

    Raises:
        ValueError: Ten estimator khong hop le
    """
    kind = settings.estimator.lower()
    if kind == "none":
        return None
    if kind == "flat":
        return FlatFactorEstimator(
            factor=settings.estimate_factor, label=settings.estimate_label
        )
    if kind == "weighted":
        return CategoryWeightedEstimator(
            weights=dict(settings.category_weights), label=settings.estimate_label
        )
    raise ValueError(f"Unknown estimator {settings.estimator!r}")
