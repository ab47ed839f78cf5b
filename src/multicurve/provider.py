"""
Multi-curve provider: the named curves used to price instruments.

The provider maps currencies to discounting curves and indices to
forward curves, by curve name. It is immutable; adding curves returns a
new provider. Missing curves are reported when they are looked up, so a
provider may carry mappings for curves that are still being calibrated.
"""

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from .curves import YieldAndDiscountCurve
from .errors import CurveConfigurationError, UnknownIdentifierError


def _index_name(index) -> str:
    return index if isinstance(index, str) else index.name


class MulticurveProvider:
    """
    Immutable container of calibrated curves.

    Attributes:
        curves: Curves by name
        discounting: Currency -> discounting curve name
        forwards: Index name -> forward curve name
    """

    def __init__(
        self,
        curves: Optional[Mapping[str, YieldAndDiscountCurve]] = None,
        discounting: Optional[Mapping[str, str]] = None,
        forwards: Optional[Mapping] = None,
    ):
        curves = dict(curves or {})
        for name, curve in curves.items():
            if curve.name != name:
                raise CurveConfigurationError(
                    f"Curve stored under '{name}' is named '{curve.name}'"
                )
        self.curves = MappingProxyType(curves)
        self.discounting = MappingProxyType(dict(discounting or {}))
        self.forwards = MappingProxyType(
            {_index_name(k): v for k, v in (forwards or {}).items()}
        )

    def has_curve(self, name: str) -> bool:
        return name in self.curves

    def curve(self, name: str) -> YieldAndDiscountCurve:
        if name not in self.curves:
            raise UnknownIdentifierError("curve", name)
        return self.curves[name]

    def all_curve_names(self) -> List[str]:
        return list(self.curves)

    def discounting_curve_name(self, currency: str) -> str:
        if currency not in self.discounting:
            raise UnknownIdentifierError("discounting currency", currency)
        return self.discounting[currency]

    def forward_curve_name(self, index) -> str:
        name = _index_name(index)
        if name not in self.forwards:
            raise UnknownIdentifierError("index", name)
        return self.forwards[name]

    def discounting_curve(self, currency: str) -> YieldAndDiscountCurve:
        return self.curve(self.discounting_curve_name(currency))

    def forward_curve(self, index) -> YieldAndDiscountCurve:
        return self.curve(self.forward_curve_name(index))

    def discount_factor(self, currency: str, t: float) -> float:
        """Discount factor P(0,t) of the currency's discounting curve."""
        return self.discounting_curve(currency).discount_factor(t)

    def forward_rate(self, index, t0: float, t1: float, accrual: Optional[float] = None) -> float:
        """
        Simple forward rate of an index over [t0, t1].

        Args:
            index: Index or index name
            t0: Fixing period start
            t1: Fixing period end
            accrual: Accrual factor (default t1 - t0)

        Returns:
            (P(t0) / P(t1) - 1) / accrual on the index's forward curve
        """
        curve = self.forward_curve(index)
        if accrual is None:
            accrual = t1 - t0
        return (curve.discount_factor(t0) / curve.discount_factor(t1) - 1) / accrual

    def with_curves(
        self,
        curves: Union[Mapping[str, YieldAndDiscountCurve], Iterable[YieldAndDiscountCurve]] = (),
        discounting: Optional[Mapping[str, str]] = None,
        forwards: Optional[Mapping] = None,
    ) -> "MulticurveProvider":
        """New provider with curves added or replaced and mappings merged."""
        if not isinstance(curves, Mapping):
            curves = {c.name: c for c in curves}
        merged_curves: Dict[str, YieldAndDiscountCurve] = dict(self.curves)
        merged_curves.update(curves)
        merged_discounting = dict(self.discounting)
        merged_discounting.update(discounting or {})
        merged_forwards = dict(self.forwards)
        merged_forwards.update({_index_name(k): v for k, v in (forwards or {}).items()})
        return MulticurveProvider(merged_curves, merged_discounting, merged_forwards)

    def merged(self, other: "MulticurveProvider") -> "MulticurveProvider":
        """New provider with the curves and mappings of both; other wins on clashes."""
        return self.with_curves(other.curves, other.discounting, other.forwards)

    def to_frame(self, times: Iterable[float]) -> pd.DataFrame:
        """
        Zero rates of every curve at the given times.

        Returns:
            DataFrame indexed by time with one column per curve
        """
        times = np.asarray(list(times), dtype=np.float64)
        data = {
            name: [curve.interest_rate(t) for t in times]
            for name, curve in self.curves.items()
        }
        frame = pd.DataFrame(data, index=pd.Index(times, name="time"))
        return frame

    def __contains__(self, name: str) -> bool:
        return name in self.curves

    def __repr__(self) -> str:
        return (f"MulticurveProvider(curves={list(self.curves)}, "
                f"discounting={dict(self.discounting)}, forwards={dict(self.forwards)})")


__all__ = ["MulticurveProvider"]
