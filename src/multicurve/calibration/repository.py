"""
Multi-curve calibration engine.

Curves are calibrated in blocks of units:
1. Within a block, units are solved in order; each unit is one Newton solve
   over the concatenated parameters of its curves, with the curves of
   earlier units and blocks held fixed
2. After each unit, the Jacobian of every block instrument so far with
   respect to every block parameter so far is inverted; the rows for the
   unit's curves give d(parameters) / d(quotes)
3. Curves of earlier blocks that appear in the known block bundle get
   sensitivity columns through the chain rule

    dp/dq_known = -J^-1 J_known M_known

where J_known is the Jacobian with respect to the known curves' parameters
and M_known their own quote sensitivities.

Because every instrument's residual is par spread = par rate - quote,
dF/dq is minus the identity and dp/dq = J^-1.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..errors import CurveConfigurationError, SingularJacobianError
from ..instruments import par_spread, par_spread_sensitivity, parameter_sensitivity
from ..provider import MulticurveProvider
from ..settings import CalibrationSettings
from .bundles import (
    CurveBuildingBlock,
    CurveBuildingBlockBundle,
    MultiCurveBundle,
    SingleCurveBundle,
)
from .newton import newton_root

logger = logging.getLogger(__name__)

Unit = Union[MultiCurveBundle, Sequence[SingleCurveBundle]]


def _as_unit(unit: Unit) -> MultiCurveBundle:
    if isinstance(unit, MultiCurveBundle):
        return unit
    return MultiCurveBundle(tuple(unit))


def _unit_provider(base: MulticurveProvider, unit: MultiCurveBundle, x: np.ndarray) -> MulticurveProvider:
    """Provider with the unit's curves generated from x, in unit order."""
    running = base
    offset = 0
    for single in unit.curves:
        n = single.number_of_parameters
        curve = single.generator.generate_curve(single.name, x[offset:offset + n], running)
        running = running.with_curves({single.name: curve})
        offset += n
    return running


def _sensitivity_row(instrument, provider: MulticurveProvider, block: CurveBuildingBlock) -> np.ndarray:
    return parameter_sensitivity(
        par_spread_sensitivity(instrument, provider), provider, block.layout, block.total_width
    )


def _inverse(jacobian: np.ndarray, iteration: int) -> np.ndarray:
    condition = float(np.linalg.cond(jacobian))
    if not np.isfinite(condition) or condition > 1.0 / np.finfo(np.float64).eps:
        raise SingularJacobianError(iteration, condition)
    return np.linalg.inv(jacobian)


class MulticurveBuildingRepository:
    """
    Calibrates curves so every instrument reprices to its quote.

    Attributes:
        settings: Newton tolerances and step budget
    """

    def __init__(self, settings: CalibrationSettings):
        if not isinstance(settings, CalibrationSettings):
            raise CurveConfigurationError("Calibration needs a CalibrationSettings instance")
        self.settings = settings

    @classmethod
    def with_tolerances(
        cls, tolerance_abs: float, tolerance_rel: float, step_maximum: int
    ) -> "MulticurveBuildingRepository":
        return cls(CalibrationSettings(tolerance_abs, tolerance_rel, step_maximum))

    def _known_transition(
        self, known: CurveBuildingBlockBundle, layout: CurveBuildingBlock
    ) -> np.ndarray:
        """Quote sensitivities of the known curves, columns in the known layout."""
        transition = np.zeros((layout.total_width, layout.total_width))
        for name in known.names:
            block, matrix = known.block(name), known.matrix(name)
            for other in block.names:
                if other not in layout:
                    raise CurveConfigurationError(
                        f"Known block of '{name}' refers to '{other}', which is not in the known bundle"
                    )
                transition[layout.columns(name), layout.columns(other)] = matrix[:, block.columns(other)]
        return transition

    def _solve_unit(
        self,
        unit: MultiCurveBundle,
        provider: MulticurveProvider,
        layout: CurveBuildingBlock,
        unit_columns: slice,
    ):
        instruments = unit.derivatives

        def residuals(x):
            current = _unit_provider(provider, unit, x)
            return np.array([par_spread(d, current) for d in instruments])

        def jacobian(x):
            current = _unit_provider(provider, unit, x)
            return np.array([_sensitivity_row(d, current, layout)[unit_columns] for d in instruments])

        return newton_root(
            residuals,
            jacobian,
            unit.initial_guess,
            self.settings.tolerance_abs,
            self.settings.tolerance_rel,
            self.settings.step_maximum,
        )

    def make_curves_from_derivatives(
        self,
        units: Sequence[Unit],
        known_data: MulticurveProvider,
        discounting_map: Mapping[str, str],
        forward_map: Mapping,
        known_block_bundle: Optional[CurveBuildingBlockBundle] = None,
    ) -> Tuple[MulticurveProvider, CurveBuildingBlockBundle]:
        """
        Calibrate one block of units.

        Args:
            units: Units in solving order
            known_data: Provider with fixed curves
            discounting_map: Currency -> curve name for the new curves
            forward_map: Index -> curve name for the new curves
            known_block_bundle: Quote sensitivities of earlier blocks

        Returns:
            Tuple of (provider with known and new curves, block bundle with
            known and new entries)

        Raises:
            CurveConfigurationError: If a curve is calibrated twice or is
                already in known_data
            NonConvergenceError, SingularJacobianError, InputTooLargeError:
                From the root finder
        """
        units = [_as_unit(u) for u in units]
        known_bundle = known_block_bundle or CurveBuildingBlockBundle()

        seen: List[str] = []
        for unit in units:
            for name in unit.names:
                if name in seen:
                    raise CurveConfigurationError(f"Curve '{name}' is calibrated twice in the block")
                if known_data.has_curve(name):
                    raise CurveConfigurationError(f"Curve '{name}' is already in the known data")
                seen.append(name)

        provider = known_data.with_curves({}, discounting_map, forward_map)
        known_entries = [(name, known_bundle.matrix(name).shape[0]) for name in known_bundle.names]
        known_layout = CurveBuildingBlock(known_entries)
        known_width = known_layout.total_width
        transition = self._known_transition(known_bundle, known_layout)

        block_entries: List[Tuple[str, int]] = []
        block_instruments: List = []
        new_entries: Dict[str, Tuple[CurveBuildingBlock, np.ndarray]] = {}

        for unit in units:
            unit_start = known_width + sum(width for _, width in block_entries)
            block_entries.extend((c.name, c.number_of_parameters) for c in unit.curves)
            layout = CurveBuildingBlock(known_entries + block_entries)
            unit_columns = slice(unit_start, unit_start + unit.number_of_parameters)

            result = self._solve_unit(unit, provider, layout, unit_columns)
            provider = _unit_provider(provider, unit, result.root)
            logger.info("Calibrated %s in %d iterations (residual %.3e)",
                        unit.names, result.iterations, result.residual_norm)

            block_instruments.extend(unit.derivatives)
            full = np.array([_sensitivity_row(d, provider, layout) for d in block_instruments])
            inverse = _inverse(full[:, known_width:], result.iterations)
            if known_width:
                known_part = -inverse @ full[:, :known_width] @ transition
                sensitivity = np.hstack([known_part, inverse])
            else:
                sensitivity = inverse

            rows = CurveBuildingBlock(block_entries)
            for single in unit.curves:
                new_entries[single.name] = (layout, sensitivity[rows.columns(single.name), :])

        return provider, known_bundle.with_blocks(new_entries)

    def build_curves(
        self,
        blocks: Sequence[Sequence[Unit]],
        known_data: MulticurveProvider,
        discounting_map: Mapping[str, str],
        forward_map: Mapping,
        known_block_bundle: Optional[CurveBuildingBlockBundle] = None,
    ) -> Tuple[MulticurveProvider, CurveBuildingBlockBundle]:
        """Calibrate blocks in order, each block seeing the curves and bundle of the earlier ones."""
        provider = known_data
        bundle = known_block_bundle or CurveBuildingBlockBundle()
        for block in blocks:
            provider, bundle = self.make_curves_from_derivatives(
                block, provider, discounting_map, forward_map, bundle
            )
        return provider, bundle


__all__ = ["MulticurveBuildingRepository"]
