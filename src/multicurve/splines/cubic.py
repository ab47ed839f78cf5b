"""
Cubic spline solvers.

The interpolating cubic is found from its second derivatives M at the knots.
Continuity of the first derivative gives, for every interior knot,

    h[i-1] M[i-1] + 2 (h[i-1] + h[i]) M[i] + h[i] M[i+1] = 6 (d[i] - d[i-1])

with h the knot spacings and d the divided differences. The two end rows
depend on the boundary condition. The system is written as

    A M = R y + r0

so that M, and therefore every coefficient, is linear in y. The node
sensitivities of the spline are then A^-1 R pushed through the coefficient
formulas. A is banded with two sub- and two super-diagonals (the
not-a-knot end rows reach two knots in) and is solved with
``scipy.linalg.solve_banded``.
"""

from enum import Enum
from typing import Sequence, Tuple

import numpy as np
from scipy.interpolate import PchipInterpolator
from scipy.linalg import solve_banded

from ..errors import InputTooLargeError, InputValidationError
from .piecewise import (
    PiecewisePolynomialResult,
    PiecewisePolynomialResultsWithSensitivity,
    sort_nodes,
    validate_nodes,
)


class BoundaryCondition(Enum):
    """End conditions for the cubic spline."""
    NATURAL = "natural"
    CLAMPED = "clamped"
    NOT_A_KNOT = "not_a_knot"


def _system(
    x: np.ndarray,
    condition: BoundaryCondition,
    left_slope: float = 0.0,
    right_slope: float = 0.0,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Build A, R and r0 of the second-derivative system.

    Returns:
        Tuple of (A, R, r0), A and R of shape (n, n), r0 of length n
    """
    n = len(x)
    h = np.diff(x)
    A = np.zeros((n, n))
    R = np.zeros((n, n))
    r0 = np.zeros(n)

    for i in range(1, n - 1):
        A[i, i - 1] = h[i - 1]
        A[i, i] = 2.0 * (h[i - 1] + h[i])
        A[i, i + 1] = h[i]
        R[i, i - 1] = 6.0 / h[i - 1]
        R[i, i] = -6.0 / h[i - 1] - 6.0 / h[i]
        R[i, i + 1] = 6.0 / h[i]

    if condition is BoundaryCondition.NOT_A_KNOT and n == 2:
        condition = BoundaryCondition.NATURAL

    if condition is BoundaryCondition.NATURAL:
        A[0, 0] = 1.0
        A[n - 1, n - 1] = 1.0
    elif condition is BoundaryCondition.CLAMPED:
        A[0, 0] = 2.0 * h[0]
        A[0, 1] = h[0]
        R[0, 0] = -6.0 / h[0]
        R[0, 1] = 6.0 / h[0]
        r0[0] = -6.0 * left_slope
        A[n - 1, n - 2] = h[-1]
        A[n - 1, n - 1] = 2.0 * h[-1]
        R[n - 1, n - 2] = 6.0 / h[-1]
        R[n - 1, n - 1] = -6.0 / h[-1]
        r0[n - 1] = 6.0 * right_slope
    elif n == 3:
        # Single parabola: constant second derivative
        A[0, 0], A[0, 1] = 1.0, -1.0
        A[2, 1], A[2, 2] = 1.0, -1.0
    else:
        # Third derivative continuous across the second and the last-but-one knot
        A[0, 0] = -h[1]
        A[0, 1] = h[0] + h[1]
        A[0, 2] = -h[0]
        A[n - 1, n - 3] = -h[-1]
        A[n - 1, n - 2] = h[-2] + h[-1]
        A[n - 1, n - 1] = -h[-2]

    return A, R, r0


def _banded(A: np.ndarray, lower: int = 2, upper: int = 2) -> np.ndarray:
    """Diagonal-ordered form of A for solve_banded."""
    n = A.shape[0]
    ab = np.zeros((lower + upper + 1, n))
    for i in range(n):
        for j in range(max(0, i - lower), min(n, i + upper + 1)):
            ab[upper + i - j, j] = A[i, j]
    return ab


def _coefficients(x: np.ndarray, y: np.ndarray, m: np.ndarray) -> np.ndarray:
    """Local cubic coefficients [d, c, b, a] per interval from second derivatives."""
    h = np.diff(x)
    delta = np.diff(y) / h
    a = y[:-1]
    b = delta - h * (2.0 * m[:-1] + m[1:]) / 6.0
    c = m[:-1] / 2.0
    d = (m[1:] - m[:-1]) / (6.0 * h)
    return np.column_stack([d, c, b, a])


def _coefficient_sensitivities(x: np.ndarray, dm: np.ndarray) -> list:
    """Derivatives of [d, c, b, a] of every interval with respect to each y."""
    n = len(x)
    h = np.diff(x)
    eye = np.eye(n)
    out = []
    for i in range(n - 1):
        sens = np.zeros((4, n))
        sens[0] = (dm[i + 1] - dm[i]) / (6.0 * h[i])
        sens[1] = dm[i] / 2.0
        sens[2] = (eye[i + 1] - eye[i]) / h[i] - h[i] * (2.0 * dm[i] + dm[i + 1]) / 6.0
        sens[3] = eye[i]
        out.append(sens)
    return out


def _solve_row(
    x: np.ndarray,
    y: np.ndarray,
    condition: BoundaryCondition,
    slopes: Tuple[float, float] = (0.0, 0.0),
    with_sensitivity: bool = False,
):
    """Second derivatives (and optionally dM/dy) for one row of data."""
    A, R, r0 = _system(x, condition, *slopes)
    rhs = np.column_stack([R @ y + r0, R]) if with_sensitivity else R @ y + r0
    if not np.all(np.isfinite(rhs)):
        raise InputTooLargeError("Spline system is not finite; input too large")
    solution = solve_banded((2, 2), _banded(A), rhs)
    if with_sensitivity:
        return solution[:, 0], solution[:, 1:]
    return solution, None


def _split_clamped(x: np.ndarray, y: np.ndarray):
    """Decide the boundary condition from the length of y and strip end slopes."""
    n = len(x)
    length = y.shape[-1]
    if length == n:
        return BoundaryCondition.NOT_A_KNOT, y, None
    if length == n + 2:
        return BoundaryCondition.CLAMPED, y[..., 1:-1], (y[..., 0], y[..., -1])
    raise InputValidationError(
        f"y must have length {n} (not-a-knot) or {n + 2} (clamped), got {length}"
    )


def _prepare(x: Sequence[float], y: Sequence[float]):
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if y.ndim not in (1, 2):
        raise InputValidationError("y must be one- or two-dimensional")
    if x.ndim != 1:
        raise InputValidationError("x values must be one-dimensional")
    return x, y


def _solve(
    x: Sequence[float],
    y: Sequence[float],
    natural: bool,
) -> PiecewisePolynomialResult:
    x, y = _prepare(x, y)
    if natural:
        condition, nodes, slopes = BoundaryCondition.NATURAL, y, None
        if y.shape[-1] != len(x):
            raise InputValidationError("x and y must have the same length")
    else:
        condition, nodes, slopes = _split_clamped(x, y)
    x = validate_nodes(x, nodes)
    x, nodes = sort_nodes(x, nodes)

    rows = np.atleast_2d(nodes)
    if slopes is None:
        slope_rows = [(0.0, 0.0)] * rows.shape[0]
    else:
        slope_rows = list(zip(np.atleast_1d(slopes[0]), np.atleast_1d(slopes[1])))
        if not np.all(np.isfinite(slope_rows)):
            raise InputValidationError("End slopes contain NaN or infinite values")

    pieces = []
    for row, row_slopes in zip(rows, slope_rows):
        m, _ = _solve_row(x, row, condition, row_slopes)
        pieces.append(_coefficients(x, row, m))
    # interval-major, dimension-minor
    coefficients = np.stack(pieces, axis=1).reshape(-1, 4)
    return PiecewisePolynomialResult(x, coefficients, order=4, dimensions=rows.shape[0])


def _solve_with_sensitivity(
    x: Sequence[float],
    y: Sequence[float],
    natural: bool,
) -> PiecewisePolynomialResultsWithSensitivity:
    x, y = _prepare(x, y)
    if y.ndim != 1:
        raise NotImplementedError(
            "Node sensitivities are only available for one-dimensional data"
        )
    if natural:
        condition, nodes, slopes = BoundaryCondition.NATURAL, y, (0.0, 0.0)
        if len(y) != len(x):
            raise InputValidationError("x and y must have the same length")
    else:
        condition, nodes, slopes = _split_clamped(x, y)
        slopes = slopes or (0.0, 0.0)
        if not np.all(np.isfinite(slopes)):
            raise InputValidationError("End slopes contain NaN or infinite values")
    x = validate_nodes(x, nodes)
    x, nodes = sort_nodes(x, nodes)

    m, dm = _solve_row(x, nodes, condition, slopes, with_sensitivity=True)
    return PiecewisePolynomialResultsWithSensitivity(
        x,
        _coefficients(x, nodes, m),
        order=4,
        dimensions=1,
        coefficient_sensitivity=_coefficient_sensitivities(x, dm),
    )


def cubic_spline(x: Sequence[float], y: Sequence[float]) -> PiecewisePolynomialResult:
    """
    Interpolating cubic spline.

    The end condition is chosen from the length of y: ``len(x)`` values give
    a not-a-knot spline, ``len(x) + 2`` values a clamped spline whose first
    and last entries are the end slopes. With two points the not-a-knot spline
    is the straight line, with three the interpolating parabola.

    Args:
        x: Knot abscissae, distinct (sorted here if needed)
        y: Values of shape (n,) / (n + 2,) or (dim, n) / (dim, n + 2)

    Returns:
        PiecewisePolynomialResult of order 4

    Raises:
        InputValidationError: On fewer than 2 points, repeated or non-finite
            abscissae, non-finite values or an unusable length of y
    """
    return _solve(x, y, natural=False)


def cubic_spline_with_sensitivity(
    x: Sequence[float], y: Sequence[float]
) -> PiecewisePolynomialResultsWithSensitivity:
    """Same as cubic_spline for 1-D data, with node sensitivities of the coefficients."""
    return _solve_with_sensitivity(x, y, natural=False)


def natural_cubic_spline(x: Sequence[float], y: Sequence[float]) -> PiecewisePolynomialResult:
    """Cubic spline with zero second derivative at both ends."""
    return _solve(x, y, natural=True)


def natural_cubic_spline_with_sensitivity(
    x: Sequence[float], y: Sequence[float]
) -> PiecewisePolynomialResultsWithSensitivity:
    return _solve_with_sensitivity(x, y, natural=True)


def hermite_cubic(
    x: Sequence[float], y: Sequence[float], slopes: Sequence[float]
) -> PiecewisePolynomialResult:
    """
    Piecewise cubic matching values and first derivatives at every knot.

    Args:
        x: Sorted, distinct knots
        y: Values at the knots
        slopes: First derivatives at the knots

    Returns:
        PiecewisePolynomialResult of order 4
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    s = np.asarray(slopes, dtype=np.float64)
    if len(y) != len(x) or len(s) != len(x):
        raise InputValidationError("x, y and slopes must have the same length")
    validate_nodes(x, y)

    h = np.diff(x)
    delta = np.diff(y) / h
    c = (3.0 * delta - 2.0 * s[:-1] - s[1:]) / h
    d = (s[:-1] + s[1:] - 2.0 * delta) / h ** 2
    coefficients = np.column_stack([d, c, s[:-1], y[:-1]])
    return PiecewisePolynomialResult(x, coefficients, order=4)


def constrained_slopes(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    Knot slopes of the constrained cubic spline (Kruger).

    Interior slopes are the harmonic mean of the neighbouring secants, or zero
    where the secants change sign, so the spline never overshoots a local
    extremum of the data.
    """
    h = np.diff(x)
    delta = np.diff(y) / h
    n = len(x)
    if n == 2:
        return np.array([delta[0], delta[0]])

    s = np.zeros(n)
    for i in range(1, n - 1):
        if delta[i - 1] * delta[i] > 0.0:
            s[i] = 2.0 / (1.0 / delta[i - 1] + 1.0 / delta[i])
    s[0] = 1.5 * delta[0] - 0.5 * s[1]
    s[-1] = 1.5 * delta[-1] - 0.5 * s[-2]
    return s


def hyman_filter(x: np.ndarray, y: np.ndarray, slopes: np.ndarray) -> np.ndarray:
    """
    Limit knot slopes so the Hermite cubic is monotone wherever the data is.

    Args:
        x: Sorted knots
        y: Values at the knots
        slopes: Candidate slopes

    Returns:
        Filtered copy of the slopes
    """
    delta = np.diff(y) / np.diff(x)
    s = np.array(slopes, dtype=np.float64)
    n = len(x)

    for i in range(n):
        if i == 0:
            left, right = delta[0], delta[0]
        elif i == n - 1:
            left, right = delta[-1], delta[-1]
        else:
            left, right = delta[i - 1], delta[i]

        if left * right <= 0.0:
            # local extremum of the data
            s[i] = 0.0
            continue
        sign = np.sign(left)
        bound = 3.0 * min(abs(left), abs(right))
        s[i] = sign * min(max(0.0, sign * s[i]), bound)
    return s


def pchip_slopes(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Knot slopes of the Fritsch-Carlson monotone piecewise cubic."""
    if len(x) == 2:
        slope = (y[1] - y[0]) / (x[1] - x[0])
        return np.array([slope, slope])
    return PchipInterpolator(x, y).derivative()(x)


def _secant_sensitivity(x: np.ndarray) -> np.ndarray:
    """Derivatives of the secant slopes with respect to each y, shape (n - 1, n)."""
    h = np.diff(x)
    rows = np.arange(len(h))
    out = np.zeros((len(h), len(x)))
    out[rows, rows] = -1.0 / h
    out[rows, rows + 1] = 1.0 / h
    return out


def hermite_cubic_with_sensitivity(
    x: Sequence[float],
    y: Sequence[float],
    slopes: Sequence[float],
    slope_sensitivity: np.ndarray,
) -> PiecewisePolynomialResultsWithSensitivity:
    """
    Hermite cubic with the node sensitivities of its coefficients.

    Args:
        x: Sorted, distinct knots
        y: Values at the knots
        slopes: First derivatives at the knots
        slope_sensitivity: Matrix of d slopes[i] / d y[k], shape (n, n)

    Returns:
        PiecewisePolynomialResultsWithSensitivity of order 4
    """
    result = hermite_cubic(x, y, slopes)
    x = result.knots
    S = np.asarray(slope_sensitivity, dtype=np.float64)
    n = len(x)
    if S.shape != (n, n):
        raise InputValidationError(f"Slope sensitivity must have shape ({n}, {n}), got {S.shape}")
    h = np.diff(x)
    D = _secant_sensitivity(x)
    eye = np.eye(n)
    sensitivity = []
    for i in range(n - 1):
        sens = np.zeros((4, n))
        sens[0] = (S[i] + S[i + 1] - 2.0 * D[i]) / h[i] ** 2
        sens[1] = (3.0 * D[i] - 2.0 * S[i] - S[i + 1]) / h[i]
        sens[2] = S[i]
        sens[3] = eye[i]
        sensitivity.append(sens)
    return PiecewisePolynomialResultsWithSensitivity(
        x, result.coefficients, order=4, dimensions=1, coefficient_sensitivity=sensitivity
    )


def constrained_slopes_with_sensitivity(x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Constrained slopes and their derivatives with respect to each y.

    Returns:
        Tuple of (slopes, d slopes / d y of shape (n, n))
    """
    slopes = constrained_slopes(x, y)
    delta = np.diff(y) / np.diff(x)
    D = _secant_sensitivity(x)
    n = len(x)
    S = np.zeros((n, n))
    if n == 2:
        S[0] = D[0]
        S[1] = D[0]
        return slopes, S

    for i in range(1, n - 1):
        da, db = delta[i - 1], delta[i]
        if da * db > 0.0:
            S[i] = 2.0 * (db ** 2 * D[i - 1] + da ** 2 * D[i]) / (da + db) ** 2
    S[0] = 1.5 * D[0] - 0.5 * S[1]
    S[-1] = 1.5 * D[-1] - 0.5 * S[-2]
    return slopes, S


def hyman_filter_with_sensitivity(
    x: np.ndarray,
    y: np.ndarray,
    slopes: np.ndarray,
    slope_sensitivity: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Hyman-filtered slopes with their derivatives with respect to each y.

    A slope set to zero has zero sensitivity, a slope cut to its bound
    follows the bound, and an untouched slope keeps its candidate row.

    Returns:
        Tuple of (filtered slopes, d filtered / d y of shape (n, n))
    """
    filtered = hyman_filter(x, y, slopes)
    delta = np.diff(y) / np.diff(x)
    D = _secant_sensitivity(x)
    S = np.array(slope_sensitivity, dtype=np.float64)
    s = np.asarray(slopes, dtype=np.float64)
    n = len(x)

    for i in range(n):
        if i == 0:
            secants = (0, 0)
        elif i == n - 1:
            secants = (n - 2, n - 2)
        else:
            secants = (i - 1, i)
        left, right = delta[secants[0]], delta[secants[1]]
        if left * right <= 0.0:
            S[i] = 0.0
            continue
        sign = np.sign(left)
        smaller = secants[0] if abs(left) <= abs(right) else secants[1]
        if sign * s[i] <= 0.0:
            S[i] = 0.0
        elif sign * s[i] > 3.0 * abs(delta[smaller]):
            S[i] = 3.0 * D[smaller]
    return filtered, S


def _pchip_edge_sensitivity(h0, h1, m0, m1, dm0, dm1):
    d = ((2.0 * h0 + h1) * m0 - h0 * m1) / (h0 + h1)
    if np.sign(d) != np.sign(m0):
        return np.zeros_like(dm0)
    if np.sign(m0) != np.sign(m1) and abs(d) > 3.0 * abs(m0):
        return 3.0 * dm0
    return ((2.0 * h0 + h1) * dm0 - h0 * dm1) / (h0 + h1)


def pchip_slopes_with_sensitivity(x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Fritsch-Carlson slopes and their derivatives with respect to each y.

    Interior slopes are weighted harmonic means of the neighbouring secants
    (zero where they change sign or vanish); end slopes are the shape
    preserving three-point estimates.

    Returns:
        Tuple of (slopes, d slopes / d y of shape (n, n))
    """
    slopes = pchip_slopes(x, y)
    h = np.diff(x)
    m = np.diff(y) / h
    D = _secant_sensitivity(x)
    n = len(x)
    S = np.zeros((n, n))
    if n == 2:
        S[0] = D[0]
        S[1] = D[0]
        return slopes, S

    for k in range(1, n - 1):
        ma, mb = m[k - 1], m[k]
        if ma == 0.0 or mb == 0.0 or np.sign(ma) != np.sign(mb):
            continue
        w1 = 2.0 * h[k] + h[k - 1]
        w2 = h[k] + 2.0 * h[k - 1]
        d = (w1 + w2) / (w1 / ma + w2 / mb)
        S[k] = d ** 2 / (w1 + w2) * (w1 / ma ** 2 * D[k - 1] + w2 / mb ** 2 * D[k])
    S[0] = _pchip_edge_sensitivity(h[0], h[1], m[0], m[1], D[0], D[1])
    S[-1] = _pchip_edge_sensitivity(h[-1], h[-2], m[-1], m[-2], D[-1], D[-2])
    return slopes, S


def natural_spline_slopes_with_sensitivity(x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Knot slopes of the natural cubic spline and their derivatives with respect to each y.

    Returns:
        Tuple of (slopes, d slopes / d y of shape (n, n))
    """
    y = np.asarray(y, dtype=np.float64)
    x = validate_nodes(x, y)
    m, dm = _solve_row(x, y, BoundaryCondition.NATURAL, with_sensitivity=True)
    h = np.diff(x)
    delta = np.diff(y) / h
    D = _secant_sensitivity(x)

    slopes = np.empty(len(x))
    slopes[:-1] = delta - h * (2.0 * m[:-1] + m[1:]) / 6.0
    slopes[-1] = delta[-1] + h[-1] * (m[-2] + 2.0 * m[-1]) / 6.0
    S = np.empty((len(x), len(x)))
    S[:-1] = D - h[:, None] * (2.0 * dm[:-1] + dm[1:]) / 6.0
    S[-1] = D[-1] + h[-1] * (dm[-2] + 2.0 * dm[-1]) / 6.0
    return slopes, S


__all__ = [
    "BoundaryCondition",
    "cubic_spline",
    "cubic_spline_with_sensitivity",
    "natural_cubic_spline",
    "natural_cubic_spline_with_sensitivity",
    "hermite_cubic",
    "constrained_slopes",
    "hyman_filter",
    "pchip_slopes",
    "hermite_cubic_with_sensitivity",
    "constrained_slopes_with_sensitivity",
    "hyman_filter_with_sensitivity",
    "pchip_slopes_with_sensitivity",
    "natural_spline_slopes_with_sensitivity",
]
