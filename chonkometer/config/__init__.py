"""
Config Package - Chua cac constants va cau hinh cua chonkometer

Bao gom:
- paths: Duong dan app data, log dir, settings file
- app_settings: AppSettings typed dataclass
- estimators: Heuristic uoc luong cost (pluggable)
"""

from chonkometer.config.app_settings import AppSettings
from chonkometer.config.estimators import (
    CategoryWeightedEstimator,
    CostEstimator,
    FlatFactorEstimator,
    build_estimator,
)

__all__ = [
    "AppSettings",
    "CategoryWeightedEstimator",
    "CostEstimator",
    "FlatFactorEstimator",
    "build_estimator",
]
