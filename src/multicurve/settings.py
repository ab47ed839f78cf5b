"""
Root-finder settings for curve calibration.

There are no defaults: every calibration states its tolerances and step
budget explicitly.
"""

from dataclasses import dataclass
from typing import Any, Dict

import numpy as np

from .errors import InputValidationError


@dataclass(frozen=True)
class CalibrationSettings:
    """
    Newton root-finder settings.

    Attributes:
        tolerance_abs: Converged when the largest residual is at most this
        tolerance_rel: Converged when the largest step is at most this times
            max(1, largest parameter)
        step_maximum: Maximum number of Newton steps per unit
    """
    tolerance_abs: float
    tolerance_rel: float
    step_maximum: int

    def __post_init__(self):
        if not np.isfinite(self.tolerance_abs) or self.tolerance_abs <= 0:
            raise InputValidationError(
                f"tolerance_abs must be positive and finite, got {self.tolerance_abs}"
            )
        if not np.isfinite(self.tolerance_rel) or self.tolerance_rel < 0:
            raise InputValidationError(
                f"tolerance_rel must be non-negative and finite, got {self.tolerance_rel}"
            )
        if isinstance(self.step_maximum, bool) or int(self.step_maximum) != self.step_maximum:
            raise InputValidationError(f"step_maximum must be an integer, got {self.step_maximum}")
        if self.step_maximum < 1:
            raise InputValidationError(f"step_maximum must be at least 1, got {self.step_maximum}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalibrationSettings":
        """
        Create from a dictionary.

        Raises:
            InputValidationError: If a setting is missing or invalid
        """
        missing = [k for k in ("tolerance_abs", "tolerance_rel", "step_maximum") if k not in data]
        if missing:
            raise InputValidationError(f"Missing calibration settings: {missing}")
        return cls(
            tolerance_abs=float(data["tolerance_abs"]),
            tolerance_rel=float(data["tolerance_rel"]),
            step_maximum=int(data["step_maximum"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tolerance_abs": self.tolerance_abs,
            "tolerance_rel": self.tolerance_rel,
            "step_maximum": self.step_maximum,
        }


__all__ = ["CalibrationSettings"]
