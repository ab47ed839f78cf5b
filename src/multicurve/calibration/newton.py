"""
Damped Newton root finder for the calibration system.

Solves F(x) = 0 for a square system given F and its Jacobian. Each step
solves J dx = -F with an LU factorisation and halves the step until the
residual norm decreases.

Convergence (either condition):
- ||F(x)||_inf <= tolerance_abs
- ||newton step||_inf <= tolerance_rel * max(1, ||x||_inf)

A step that no halving improves is never taken. If the full step is already
at rounding level the residual has reached the floating-point floor and the
current point is returned; otherwise the solve fails.
"""

import logging
from dataclasses import dataclass
from typing import Callable

import numpy as np
from scipy.linalg import lu_factor, lu_solve

from ..errors import InputTooLargeError, NonConvergenceError, SingularJacobianError

logger = logging.getLogger(__name__)

# Step halvings tried before the step is given up
MAX_HALVINGS = 10

# Relative size of a Newton step that only moves x by rounding noise
STAGNATION_STEP = float(np.sqrt(np.finfo(np.float64).eps))


@dataclass(frozen=True)
class RootResult:
    """
    Converged root.

    Attributes:
        root: Parameter vector
        iterations: Newton steps taken
        residual_norm: ||F(root)||_inf
    """
    root: np.ndarray
    iterations: int
    residual_norm: float


def _evaluate(function: Callable[[np.ndarray], np.ndarray], x: np.ndarray) -> np.ndarray:
    values = np.asarray(function(x), dtype=np.float64)
    if not np.all(np.isfinite(values)):
        raise InputTooLargeError("Residuals are not finite; input too large")
    return values


def newton_root(
    function: Callable[[np.ndarray], np.ndarray],
    jacobian: Callable[[np.ndarray], np.ndarray],
    x0: np.ndarray,
    tolerance_abs: float,
    tolerance_rel: float,
    step_maximum: int,
) -> RootResult:
    """
    Find x with function(x) = 0.

    Args:
        function: Residual vector F(x)
        jacobian: Matrix dF/dx, square
        x0: Starting point
        tolerance_abs: Absolute residual tolerance
        tolerance_rel: Relative step tolerance
        step_maximum: Maximum number of Newton steps

    Returns:
        RootResult

    Raises:
        NonConvergenceError: If not converged after step_maximum steps, or
            if no damped step reduces the residual
        SingularJacobianError: If the Jacobian cannot be inverted
        InputTooLargeError: If residuals or Jacobian entries are not finite
    """
    x = np.array(x0, dtype=np.float64)
    f = _evaluate(function, x)
    norm = float(np.max(np.abs(f))) if len(f) else 0.0
    if norm <= tolerance_abs:
        return RootResult(x, 0, norm)

    for iteration in range(1, step_maximum + 1):
        jac = np.asarray(jacobian(x), dtype=np.float64)
        if not np.all(np.isfinite(jac)):
            raise InputTooLargeError("Jacobian is not finite; input too large")
        condition = float(np.linalg.cond(jac))
        if not np.isfinite(condition) or condition > 1.0 / np.finfo(np.float64).eps:
            raise SingularJacobianError(iteration, condition)

        step = -lu_solve(lu_factor(jac), f)
        step_norm = float(np.max(np.abs(step)))
        scale = max(1.0, float(np.max(np.abs(x))))

        damping = 1.0
        improved = False
        for _ in range(MAX_HALVINGS):
            x_new = x + damping * step
            f_new = _evaluate(function, x_new)
            norm_new = float(np.max(np.abs(f_new)))
            if norm_new < norm:
                improved = True
                break
            damping /= 2.0

        if not improved:
            if step_norm <= STAGNATION_STEP * scale:
                logger.debug("Newton stopped at the rounding floor: residual %.3e, step %.3e",
                             norm, step_norm)
                return RootResult(x, iteration - 1, norm)
            raise NonConvergenceError(
                iteration, norm,
                f"No damped Newton step reduced the residual at step {iteration} "
                f"(residual norm {norm:.3e})",
            )

        x, f, norm = x_new, f_new, norm_new
        logger.debug("Newton step %d: residual %.3e, damping %.4g", iteration, norm, damping)

        if norm <= tolerance_abs or step_norm <= tolerance_rel * scale:
            return RootResult(x, iteration, norm)

    raise NonConvergenceError(step_maximum, norm)


__all__ = [
    "RootResult",
    "newton_root",
]
