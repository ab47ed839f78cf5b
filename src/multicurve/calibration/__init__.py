"""
Calibration package - Newton root finding and multi-curve calibration.

Provides:
- newton_root: damped Newton solve of the calibration system
- SingleCurveBundle / MultiCurveBundle: calibration inputs
- CurveBuildingBlock / CurveBuildingBlockBundle: quote sensitivities
- MulticurveBuildingRepository: block and unit calibration
- CurveSetUp / CurveBuilder: fluent set-up
"""

from .newton import RootResult, newton_root
from .bundles import (
    SingleCurveBundle,
    MultiCurveBundle,
    CurveBuildingBlock,
    CurveBuildingBlockBundle,
)
from .repository import MulticurveBuildingRepository
from .builder import CurveTypeSetUp, CurveSetUp, CurveBuilder

__all__ = [
    "RootResult",
    "newton_root",
    "SingleCurveBundle",
    "MultiCurveBundle",
    "CurveBuildingBlock",
    "CurveBuildingBlockBundle",
    "MulticurveBuildingRepository",
    "CurveTypeSetUp",
    "CurveSetUp",
    "CurveBuilder",
]
