"""
Interior interpolator combined with optional left and right extrapolators.

Routing for a query x:
- x < first key and a left extrapolator is set: left extrapolator
- x > last key and a right extrapolator is set: right extrapolator
- anything else, including x equal to an end key and a side without an
  extrapolator: the interior interpolator, which extends its end piece
"""

from typing import Optional

from .bundle import Interpolator1DDataBundle
from .extrapolators import Extrapolator1D, Side
from .interpolators import Interpolator1D


class CombinedInterpolatorExtrapolator(Interpolator1D):
    """
    Interpolator with extrapolation on either side.

    Attributes:
        interpolator: Interior interpolator
        left_extrapolator: Used strictly below the first key, if set
        right_extrapolator: Used strictly above the last key, if set
    """

    def __init__(
        self,
        interpolator: Interpolator1D,
        left_extrapolator: Optional[Extrapolator1D] = None,
        right_extrapolator: Optional[Extrapolator1D] = None,
    ):
        self.interpolator = interpolator
        self.left_extrapolator = left_extrapolator
        self.right_extrapolator = right_extrapolator

    @property
    def name(self) -> str:
        parts = [self.interpolator.name]
        if self.left_extrapolator is not None:
            parts.append(f"left={self.left_extrapolator.name}")
        if self.right_extrapolator is not None:
            parts.append(f"right={self.right_extrapolator.name}")
        return ", ".join(parts)

    def data_bundle(self, x, y) -> Interpolator1DDataBundle:
        return self.interpolator.data_bundle(x, y)

    def _route(self, bundle: Interpolator1DDataBundle, x: float):
        if x < bundle.first_key and self.left_extrapolator is not None:
            return self.left_extrapolator, Side.LEFT
        if x > bundle.last_key and self.right_extrapolator is not None:
            return self.right_extrapolator, Side.RIGHT
        return None, None

    def interpolate(self, bundle, x):
        extrapolator, side = self._route(bundle, x)
        if extrapolator is None:
            return self.interpolator.interpolate(bundle, x)
        return extrapolator.extrapolate(bundle, x, side)

    def first_derivative(self, bundle, x):
        extrapolator, side = self._route(bundle, x)
        if extrapolator is None:
            return self.interpolator.first_derivative(bundle, x)
        return extrapolator.first_derivative(bundle, x, side)

    def node_sensitivities(self, bundle, x):
        extrapolator, side = self._route(bundle, x)
        if extrapolator is None:
            return self.interpolator.node_sensitivities(bundle, x)
        return extrapolator.node_sensitivities(bundle, x, side)

    def first_derivative_node_sensitivities(self, bundle, x):
        extrapolator, side = self._route(bundle, x)
        if extrapolator is None:
            return self.interpolator.first_derivative_node_sensitivities(bundle, x)
        return extrapolator.first_derivative_node_sensitivities(bundle, x, side)

    def __repr__(self) -> str:
        return (f"CombinedInterpolatorExtrapolator({self.interpolator!r}, "
                f"left={self.left_extrapolator!r}, right={self.right_extrapolator!r})")


__all__ = ["CombinedInterpolatorExtrapolator"]
