"""
Calibration inputs and sensitivity outputs.

Inputs:
- SingleCurveBundle: one curve, its instruments, generator and initial guess
- MultiCurveBundle: a unit, the curves solved together in one Newton solve

Outputs:
- CurveBuildingBlock: ordered column layout, curve name -> (start, width)
- CurveBuildingBlockBundle: for every calibrated curve, its block and the
  matrix d(curve parameters) / d(market quotes of the block's curves)
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

import numpy as np
import pandas as pd

from ..curves import CurveGenerator
from ..errors import CurveConfigurationError, InputValidationError, UnknownIdentifierError


@dataclass(frozen=True, eq=False)
class SingleCurveBundle:
    """
    One curve to calibrate.

    Attributes:
        name: Curve name
        derivatives: Calibration instruments
        initial_guess: Starting parameters
        generator: Final generator (node times fixed)
    """
    name: str
    derivatives: Tuple
    initial_guess: np.ndarray
    generator: CurveGenerator

    def __post_init__(self):
        guess = np.array(self.initial_guess, dtype=np.float64)
        if guess.ndim != 1:
            raise InputValidationError("Initial guess must be one-dimensional")
        if len(guess) != self.generator.number_of_parameters():
            raise CurveConfigurationError(
                f"Curve '{self.name}': initial guess has {len(guess)} entries, "
                f"generator has {self.generator.number_of_parameters()} parameters"
            )
        if not np.all(np.isfinite(guess)):
            raise InputValidationError(f"Curve '{self.name}': initial guess is not finite")
        guess.setflags(write=False)
        object.__setattr__(self, "derivatives", tuple(self.derivatives))
        object.__setattr__(self, "initial_guess", guess)

    @property
    def number_of_parameters(self) -> int:
        return len(self.initial_guess)


@dataclass(frozen=True, eq=False)
class MultiCurveBundle:
    """
    A unit: curves solved simultaneously.

    The total number of instruments must equal the total number of
    parameters so the Newton system is square.
    """
    curves: Tuple[SingleCurveBundle, ...]

    def __post_init__(self):
        curves = tuple(self.curves)
        if not curves:
            raise CurveConfigurationError("A unit needs at least one curve")
        names = [c.name for c in curves]
        if len(set(names)) != len(names):
            raise CurveConfigurationError(f"Duplicate curve names in unit: {names}")
        n_instruments = sum(len(c.derivatives) for c in curves)
        n_parameters = sum(c.number_of_parameters for c in curves)
        if n_instruments != n_parameters:
            raise CurveConfigurationError(
                f"Unit {names} has {n_instruments} instruments for {n_parameters} parameters"
            )
        object.__setattr__(self, "curves", curves)

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.curves]

    @property
    def derivatives(self) -> List:
        return [d for c in self.curves for d in c.derivatives]

    @property
    def initial_guess(self) -> np.ndarray:
        return np.concatenate([c.initial_guess for c in self.curves])

    @property
    def number_of_parameters(self) -> int:
        return sum(c.number_of_parameters for c in self.curves)


class CurveBuildingBlock:
    """
    Ordered column layout of curves in a sensitivity matrix.

    Attributes:
        layout: Curve name -> (start column, number of parameters)
    """

    def __init__(self, entries: Iterable[Tuple[str, int]]):
        layout: Dict[str, Tuple[int, int]] = {}
        start = 0
        for name, width in entries:
            if name in layout:
                raise CurveConfigurationError(f"Curve '{name}' appears twice in a block")
            layout[name] = (start, int(width))
            start += int(width)
        self.layout = MappingProxyType(layout)
        self.total_width = start

    @property
    def names(self) -> List[str]:
        return list(self.layout)

    def start(self, name: str) -> int:
        return self._entry(name)[0]

    def nb_parameters(self, name: str) -> int:
        return self._entry(name)[1]

    def columns(self, name: str) -> slice:
        start, width = self._entry(name)
        return slice(start, start + width)

    def _entry(self, name: str) -> Tuple[int, int]:
        if name not in self.layout:
            raise UnknownIdentifierError("curve in block", name)
        return self.layout[name]

    def __contains__(self, name: str) -> bool:
        return name in self.layout

    def __len__(self) -> int:
        return len(self.layout)

    def __repr__(self) -> str:
        return f"CurveBuildingBlock({dict(self.layout)})"


class CurveBuildingBlockBundle:
    """
    Sensitivities of calibrated curves to market quotes.

    ``matrix(name)[i, j]`` is the derivative of parameter i of the curve
    with respect to quote j, columns laid out by ``block(name)``.
    """

    def __init__(self, data: Mapping[str, Tuple[CurveBuildingBlock, np.ndarray]] = None):
        checked = {}
        for name, (block, matrix) in (data or {}).items():
            matrix = np.array(matrix, dtype=np.float64)
            if matrix.ndim != 2 or matrix.shape[1] != block.total_width:
                raise InputValidationError(
                    f"Matrix of '{name}' has shape {matrix.shape}, block width is {block.total_width}"
                )
            matrix.setflags(write=False)
            checked[name] = (block, matrix)
        self._data = MappingProxyType(checked)

    @property
    def names(self) -> List[str]:
        return list(self._data)

    def block(self, name: str) -> CurveBuildingBlock:
        return self._get(name)[0]

    def matrix(self, name: str) -> np.ndarray:
        return self._get(name)[1]

    def _get(self, name: str):
        if name not in self._data:
            raise UnknownIdentifierError("curve in block bundle", name)
        return self._data[name]

    def with_blocks(
        self, other: Mapping[str, Tuple[CurveBuildingBlock, np.ndarray]]
    ) -> "CurveBuildingBlockBundle":
        """New bundle with entries added; later entries replace earlier ones."""
        if isinstance(other, CurveBuildingBlockBundle):
            other = other._data
        combined = dict(self._data)
        combined.update(other)
        return CurveBuildingBlockBundle(combined)

    def to_frame(self, name: str) -> pd.DataFrame:
        """
        Sensitivity matrix of one curve as a labelled DataFrame.

        Rows are "<curve>[i]" parameters, columns "<curve>[j]" quotes.
        """
        block, matrix = self._get(name)
        columns = [f"{curve}[{j}]" for curve in block.names
                   for j in range(block.nb_parameters(curve))]
        index = [f"{name}[{i}]" for i in range(matrix.shape[0])]
        return pd.DataFrame(matrix, index=index, columns=columns)

    def __contains__(self, name: str) -> bool:
        return name in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"CurveBuildingBlockBundle(curves={self.names})"


__all__ = [
    "SingleCurveBundle",
    "MultiCurveBundle",
    "CurveBuildingBlock",
    "CurveBuildingBlockBundle",
]
