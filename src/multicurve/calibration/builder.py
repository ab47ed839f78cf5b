"""
Fluent set-up of a multi-curve calibration.

Example:
    setup = (CurveSetUp()
             .building_first("USD-OIS")
             .then_building("USD-LIBOR3M")
             .with_settings(CalibrationSettings(1e-10, 1e-10, 100)))
    setup.using("USD-OIS").for_discounting("USD").for_index(SOFR).with_interpolator("Linear")
    setup.using("USD-LIBOR3M").for_index(LIBOR3M).with_interpolator("Linear")
    setup.add_node("USD-OIS", OisNode(SOFR, "1Y"), 0.05)
    ...
    provider, bundle = setup.get_builder().build_curves()

Blocks are calibrated in order; inside a block every call to ``building``
adds a unit solved in one Newton solve.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from ..curves import CurveGeneratorConfig
from ..errors import CurveConfigurationError
from ..interpolation import Interpolator1D
from ..provider import MulticurveProvider
from ..settings import CalibrationSettings
from .bundles import CurveBuildingBlockBundle, MultiCurveBundle, SingleCurveBundle
from .repository import MulticurveBuildingRepository

logger = logging.getLogger(__name__)


class CurveTypeSetUp:
    """Per-curve options: mappings and generator."""

    def __init__(self, parent: "CurveSetUp", name: str):
        self._parent = parent
        self.name = name
        self.discounting: List[str] = []
        self.indices: List[Any] = []
        self.generator_config: Optional[CurveGeneratorConfig] = None

    def for_discounting(self, currency: str) -> "CurveTypeSetUp":
        self.discounting.append(currency)
        return self

    def for_index(self, *indices) -> "CurveTypeSetUp":
        self.indices.extend(indices)
        return self

    def with_interpolator(
        self,
        interpolator: Union[str, Interpolator1D],
        left_extrapolator: Optional[str] = None,
        right_extrapolator: Optional[str] = None,
    ) -> "CurveTypeSetUp":
        """Zero rates interpolated on the instrument maturities."""
        self.generator_config = CurveGeneratorConfig(
            interpolator=interpolator,
            left_extrapolator=left_extrapolator,
            right_extrapolator=right_extrapolator,
            maturity_nodes=True,
        )
        return self

    def with_generator(self, config: CurveGeneratorConfig) -> "CurveTypeSetUp":
        self.generator_config = config
        return self

    def using(self, name: str) -> "CurveTypeSetUp":
        return self._parent.using(name)

    def get_builder(self) -> "CurveBuilder":
        return self._parent.get_builder()


class CurveSetUp:
    """
    Mutable description of a calibration, turned into a CurveBuilder.
    """

    def __init__(self):
        self._blocks: List[List[Tuple[str, ...]]] = []
        self._curves: Dict[str, CurveTypeSetUp] = {}
        self._nodes: Dict[str, List[Tuple[Any, float]]] = {}
        self._known = MulticurveProvider()
        self._known_bundle: Optional[CurveBuildingBlockBundle] = None
        self._settings: Optional[CalibrationSettings] = None

    def building_first(self, *names: str) -> "CurveSetUp":
        """Start the first block with a unit of the given curves."""
        if self._blocks:
            raise CurveConfigurationError("building_first() must come before any other block")
        return self.then_building(*names)

    def then_building(self, *names: str) -> "CurveSetUp":
        """Start a new block with a unit of the given curves."""
        self._blocks.append([])
        return self.building(*names)

    def building(self, *names: str) -> "CurveSetUp":
        """Add a unit to the current block."""
        if not names:
            raise CurveConfigurationError("A unit needs at least one curve")
        if not self._blocks:
            self._blocks.append([])
        self._blocks[-1].append(tuple(names))
        return self

    def using(self, name: str) -> CurveTypeSetUp:
        if name not in self._curves:
            self._curves[name] = CurveTypeSetUp(self, name)
        return self._curves[name]

    def add_node(self, curve: str, node, quote: float) -> "CurveSetUp":
        self._nodes.setdefault(curve, []).append((node, float(quote)))
        return self

    def with_known_data(
        self,
        provider: MulticurveProvider,
        block_bundle: Optional[CurveBuildingBlockBundle] = None,
    ) -> "CurveSetUp":
        self._known = provider
        self._known_bundle = block_bundle
        return self

    def with_settings(self, settings: CalibrationSettings) -> "CurveSetUp":
        self._settings = settings
        return self

    def copy(self) -> "CurveSetUp":
        duplicate = CurveSetUp()
        duplicate._blocks = [list(block) for block in self._blocks]
        duplicate._nodes = {k: list(v) for k, v in self._nodes.items()}
        duplicate._known = self._known
        duplicate._known_bundle = self._known_bundle
        duplicate._settings = self._settings
        for name, curve in self._curves.items():
            twin = copy.copy(curve)
            twin._parent = duplicate
            twin.discounting = list(curve.discounting)
            twin.indices = list(curve.indices)
            duplicate._curves[name] = twin
        return duplicate

    def get_builder(self) -> "CurveBuilder":
        """
        Freeze the set-up into a builder.

        Raises:
            CurveConfigurationError: If settings are missing, or a curve in a
                unit has no generator or no nodes
        """
        if self._settings is None:
            raise CurveConfigurationError("Calibration settings are required")
        if not self._blocks:
            raise CurveConfigurationError("Nothing to build")

        generators = {}
        for block in self._blocks:
            for unit in block:
                for name in unit:
                    curve = self._curves.get(name)
                    if curve is None or curve.generator_config is None:
                        raise CurveConfigurationError(
                            f"Curve '{name}' has no interpolator or generator"
                        )
                    if not self._nodes.get(name):
                        raise CurveConfigurationError(f"Curve '{name}' has no nodes")
                    generators[name] = curve.generator_config

        discounting = {}
        forwards = {}
        for name, curve in self._curves.items():
            for currency in curve.discounting:
                discounting[currency] = name
            for index in curve.indices:
                forwards[index] = name

        return CurveBuilder(
            blocks=tuple(tuple(block) for block in self._blocks),
            generators=generators,
            nodes={k: tuple(v) for k, v in self._nodes.items()},
            discounting=discounting,
            forwards=forwards,
            known=self._known,
            known_bundle=self._known_bundle,
            settings=self._settings,
        )


class CurveBuilder:
    """
    Immutable calibration recipe.

    Build with CurveSetUp.get_builder(); replace_market_quote returns a new
    builder so scenarios can share the original.
    """

    def __init__(
        self,
        blocks,
        generators: Dict[str, CurveGeneratorConfig],
        nodes: Dict[str, Tuple[Tuple[Any, float], ...]],
        discounting: Dict[str, str],
        forwards: Dict,
        known: MulticurveProvider,
        known_bundle: Optional[CurveBuildingBlockBundle],
        settings: CalibrationSettings,
    ):
        self.blocks = blocks
        self._generators = dict(generators)
        self._nodes = dict(nodes)
        self.discounting = dict(discounting)
        self.forwards = dict(forwards)
        self.known = known
        self.known_bundle = known_bundle
        self.settings = settings

    def instruments_for(self, curve: str) -> List:
        """Calibration instruments of a curve, in node order."""
        return [node.to_derivative(quote) for node, quote in self._curve_nodes(curve)]

    def quotes_for(self, curve: str) -> List[float]:
        return [quote for _, quote in self._curve_nodes(curve)]

    def _curve_nodes(self, curve: str):
        if curve not in self._nodes:
            raise CurveConfigurationError(f"Unknown curve '{curve}'")
        return self._nodes[curve]

    def replace_market_quote(self, curve: str, position: int, quote: float) -> "CurveBuilder":
        """
        Builder with one quote changed; this builder is left untouched.

        Raises:
            CurveConfigurationError: If the curve or position does not exist
        """
        nodes = list(self._curve_nodes(curve))
        if not 0 <= position < len(nodes):
            raise CurveConfigurationError(
                f"Curve '{curve}' has {len(nodes)} nodes, no position {position}"
            )
        nodes[position] = (nodes[position][0], float(quote))
        replaced = dict(self._nodes)
        replaced[curve] = tuple(nodes)
        return CurveBuilder(self.blocks, self._generators, replaced, self.discounting,
                            self.forwards, self.known, self.known_bundle, self.settings)

    def _single_curve_bundle(self, name: str) -> SingleCurveBundle:
        nodes = self._curve_nodes(name)
        derivatives = [node.to_derivative(quote) for node, quote in nodes]
        generator = self._generators[name].build().final_generator(derivatives)
        guess = generator.initial_guess([node.initial_rate(quote) for node, quote in nodes])
        return SingleCurveBundle(name, tuple(derivatives), guess, generator)

    def build_curves(self):
        """
        Run the calibration.

        Returns:
            Tuple of (MulticurveProvider, CurveBuildingBlockBundle)
        """
        blocks = [
            [MultiCurveBundle(tuple(self._single_curve_bundle(name) for name in unit))
             for unit in block]
            for block in self.blocks
        ]
        logger.info("Building %d block(s): %s", len(blocks), [list(b) for b in self.blocks])
        repository = MulticurveBuildingRepository(self.settings)
        return repository.build_curves(blocks, self.known, self.discounting, self.forwards,
                                       self.known_bundle)


__all__ = [
    "CurveTypeSetUp",
    "CurveSetUp",
    "CurveBuilder",
]
