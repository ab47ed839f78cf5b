"""
Piecewise-polynomial spline solvers backing the interpolators.
"""

from .piecewise import (
    PiecewisePolynomialResult,
    PiecewisePolynomialResultsWithSensitivity,
    evaluate,
    differentiate,
    node_sensitivity,
    differentiate_node_sensitivity,
    validate_nodes,
    sort_nodes,
)
from .cubic import (
    BoundaryCondition,
    cubic_spline,
    cubic_spline_with_sensitivity,
    natural_cubic_spline,
    natural_cubic_spline_with_sensitivity,
    hermite_cubic,
    constrained_slopes,
    hyman_filter,
    pchip_slopes,
    hermite_cubic_with_sensitivity,
    constrained_slopes_with_sensitivity,
    hyman_filter_with_sensitivity,
    pchip_slopes_with_sensitivity,
    natural_spline_slopes_with_sensitivity,
)

__all__ = [
    "PiecewisePolynomialResult",
    "PiecewisePolynomialResultsWithSensitivity",
    "evaluate",
    "differentiate",
    "node_sensitivity",
    "differentiate_node_sensitivity",
    "validate_nodes",
    "sort_nodes",
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
