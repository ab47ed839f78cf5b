"""
Unit tests for interpolators, extrapolators and the name registry.
"""

import numpy as np
import pytest
from scipy.interpolate import PchipInterpolator

from multicurve.errors import InputValidationError, UnknownIdentifierError
from multicurve.interpolation import (
    CombinedInterpolatorExtrapolator,
    Extrapolator1D,
    ExtrapolatorKind,
    ClampedCubicSplineInterpolator1D,
    ConstrainedCubicSplineInterpolator1D,
    ExponentialInterpolator1D,
    Interpolator1DDataBundle,
    LinearInterpolator1D,
    LogLinearInterpolator1D,
    MonotonicConstrainedCubicSplineInterpolator1D,
    MonotonicNaturalCubicSplineInterpolator1D,
    NaturalCubicSplineInterpolator1D,
    NotAKnotCubicSplineInterpolator1D,
    PchipInterpolator1D,
    Side,
    StepInterpolator1D,
    StepUpperInterpolator1D,
    TimeSquareInterpolator1D,
    available_extrapolators,
    available_interpolators,
    combined_interpolator_of,
    extrapolator_of,
    interpolator_of,
)


KEYS = np.array([0.5, 1.0, 2.0, 3.0, 5.0, 7.0, 10.0])
VALUES = np.array([0.030, 0.032, 0.035, 0.036, 0.034, 0.035, 0.037])
QUERIES = [0.6, 1.0, 1.7, 2.5, 4.2, 6.1, 9.3]

ALL_NAMES = [
    "Linear", "Log Linear", "Step", "Step Upper", "Exponential", "Time Square",
    "Double Quadratic", "Natural Cubic Spline", "Not-a-Knot Cubic Spline",
    "Clamped Cubic Spline", "Constrained Cubic Spline", "Monotonic Constrained Cubic Spline",
    "Monotonic Natural Cubic Spline", "PCHIP",
]


def bumped_difference(interpolator, quantity, bump=1e-6):
    """Central differences of quantity(bundle) with respect to each node value."""
    out = np.zeros(len(VALUES))
    for k in range(len(VALUES)):
        up = VALUES.copy()
        up[k] += bump
        down = VALUES.copy()
        down[k] -= bump
        out[k] = (quantity(interpolator.data_bundle(KEYS, up))
                  - quantity(interpolator.data_bundle(KEYS, down))) / (2 * bump)
    return out


class TestDataBundle:

    def test_sorts_keys_with_values(self):
        bundle = Interpolator1DDataBundle([2.0, 0.5, 1.0], [20.0, 5.0, 10.0])
        np.testing.assert_array_equal(bundle.keys, [0.5, 1.0, 2.0])
        np.testing.assert_array_equal(bundle.values, [5.0, 10.0, 20.0])
        assert bundle.first_key == 0.5
        assert bundle.last_value == 20.0
        assert bundle.size == 3

    def test_rejects_bad_nodes(self):
        with pytest.raises(InputValidationError):
            Interpolator1DDataBundle([1.0, 1.0, 2.0], [1.0, 2.0, 3.0])
        with pytest.raises(InputValidationError):
            Interpolator1DDataBundle([1.0, 2.0], [1.0])
        with pytest.raises(InputValidationError):
            Interpolator1DDataBundle([1.0], [1.0])
        with pytest.raises(InputValidationError):
            Interpolator1DDataBundle([1.0, 2.0], [np.nan, 1.0])

    def test_lower_bound_index(self):
        bundle = Interpolator1DDataBundle(KEYS, VALUES)
        assert bundle.lower_bound_index(0.1) == 0
        assert bundle.lower_bound_index(1.0) == 1
        assert bundle.lower_bound_index(1.5) == 1
        assert bundle.lower_bound_index(10.0) == len(KEYS) - 1
        assert bundle.lower_bound_index(20.0) == len(KEYS) - 1
        assert bundle.interval_index(10.0) == len(KEYS) - 2

    def test_values_are_read_only(self):
        bundle = Interpolator1DDataBundle(KEYS, VALUES)
        with pytest.raises(ValueError):
            bundle.values[0] = 1.0

    def test_log_interpolation_needs_positive_values(self):
        with pytest.raises(InputValidationError):
            LogLinearInterpolator1D().data_bundle([1.0, 2.0], [1.0, -0.5])


class TestInterpolators:

    def test_linear(self):
        interp = LinearInterpolator1D()
        bundle = interp.data_bundle(KEYS, VALUES)
        assert interp.interpolate(bundle, 1.5) == pytest.approx(0.0335)
        assert interp.first_derivative(bundle, 1.5) == pytest.approx(0.003)
        # end pieces extend
        assert interp.interpolate(bundle, 0.0) == pytest.approx(0.028)

    def test_log_linear_on_discount_factors(self):
        interp = LogLinearInterpolator1D()
        bundle = interp.data_bundle([1.0, 2.0], [np.exp(-0.03), np.exp(-0.07)])
        assert interp.interpolate(bundle, 1.5) == pytest.approx(np.exp(-0.05))
        assert interp.first_derivative(bundle, 1.5) == pytest.approx(-0.04 * np.exp(-0.05))

    def test_step(self):
        interp = StepInterpolator1D()
        bundle = interp.data_bundle(KEYS, VALUES)
        assert interp.interpolate(bundle, 1.9) == VALUES[1]
        assert interp.interpolate(bundle, 2.0) == VALUES[2]
        assert interp.interpolate(bundle, 0.1) == VALUES[0]
        assert interp.first_derivative(bundle, 1.9) == 0.0

    @pytest.mark.parametrize("name", ALL_NAMES)
    def test_reproduces_nodes(self, name):
        interp = interpolator_of(name)
        bundle = interp.data_bundle(KEYS, VALUES)
        for x, y in zip(KEYS, VALUES):
            assert interp.interpolate(bundle, x) == pytest.approx(y, abs=1e-14)

    def test_double_quadratic_exact_on_parabola(self):
        interp = interpolator_of("Double Quadratic")
        values = 1.0 + 0.5 * KEYS - 0.1 * KEYS ** 2
        bundle = interp.data_bundle(KEYS, values)
        for x in QUERIES:
            assert interp.interpolate(bundle, x) == pytest.approx(1.0 + 0.5 * x - 0.1 * x ** 2)
            assert interp.first_derivative(bundle, x) == pytest.approx(0.5 - 0.2 * x)

    def test_double_quadratic_two_nodes_is_linear(self):
        interp = interpolator_of("Double Quadratic")
        bundle = interp.data_bundle([1.0, 3.0], [1.0, 2.0])
        assert interp.interpolate(bundle, 2.0) == pytest.approx(1.5)

    def test_monotonic_spline_preserves_monotone_data(self):
        interp = MonotonicConstrainedCubicSplineInterpolator1D()
        values = np.array([0.01, 0.012, 0.0121, 0.03, 0.031, 0.05, 0.0501])
        bundle = interp.data_bundle(KEYS, values)
        grid = np.linspace(KEYS[0], KEYS[-1], 500)
        curve = [interp.interpolate(bundle, x) for x in grid]
        assert np.all(np.diff(curve) >= -1e-15)

    def test_step_upper(self):
        interp = StepUpperInterpolator1D()
        bundle = interp.data_bundle(KEYS, VALUES)
        assert interp.interpolate(bundle, 1.1) == VALUES[2]
        assert interp.interpolate(bundle, 1.0) == VALUES[1]
        assert interp.interpolate(bundle, 0.1) == VALUES[0]
        assert interp.interpolate(bundle, 20.0) == VALUES[-1]
        assert interp.first_derivative(bundle, 1.1) == 0.0

    def test_exponential_exact(self):
        """x log(y) linear in x: y = exp(d + c / x) is reproduced everywhere."""
        interp = ExponentialInterpolator1D()
        values = np.exp(-0.02 + 0.01 / KEYS)
        bundle = interp.data_bundle(KEYS, values)
        for x in QUERIES:
            assert interp.interpolate(bundle, x) == pytest.approx(np.exp(-0.02 + 0.01 / x))
            assert interp.first_derivative(bundle, x) == pytest.approx(
                -0.01 / x ** 2 * np.exp(-0.02 + 0.01 / x)
            )

    def test_time_square_exact(self):
        """x y^2 linear in x: y = sqrt(d + c / x) is reproduced everywhere."""
        interp = TimeSquareInterpolator1D()
        values = np.sqrt(0.001 + 0.0005 / KEYS)
        bundle = interp.data_bundle(KEYS, values)
        for x in QUERIES:
            assert interp.interpolate(bundle, x) == pytest.approx(np.sqrt(0.001 + 0.0005 / x))

    @pytest.mark.parametrize("interp", [ExponentialInterpolator1D(), TimeSquareInterpolator1D()])
    def test_time_weighted_domain(self, interp):
        with pytest.raises(InputValidationError):
            interp.data_bundle([0.0, 1.0], [0.03, 0.04])
        with pytest.raises(InputValidationError):
            interp.data_bundle([1.0, 2.0], [0.03, -0.04])
        bundle = interp.data_bundle([1.0, 2.0], [0.03, 0.04])
        with pytest.raises(InputValidationError):
            interp.interpolate(bundle, 0.0)

    def test_clamped_flat_ends(self):
        interp = ClampedCubicSplineInterpolator1D()
        bundle = interp.data_bundle(KEYS, VALUES)
        assert interp.first_derivative(bundle, KEYS[0]) == pytest.approx(0.0, abs=1e-14)
        assert interp.first_derivative(bundle, KEYS[-1]) == pytest.approx(0.0, abs=1e-14)

    def test_monotonic_natural_preserves_monotone_data(self):
        interp = MonotonicNaturalCubicSplineInterpolator1D()
        values = np.array([0.01, 0.012, 0.0121, 0.03, 0.031, 0.05, 0.0501])
        bundle = interp.data_bundle(KEYS, values)
        grid = np.linspace(KEYS[0], KEYS[-1], 500)
        curve = [interp.interpolate(bundle, x) for x in grid]
        assert np.all(np.diff(curve) >= -1e-15)

    def test_pchip_matches_scipy(self):
        interp = PchipInterpolator1D()
        bundle = interp.data_bundle(KEYS, VALUES)
        reference = PchipInterpolator(KEYS, VALUES)
        for x in QUERIES:
            assert interp.interpolate(bundle, x) == pytest.approx(float(reference(x)), abs=1e-14)

    def test_spline_needs_own_bundle(self):
        interp = NaturalCubicSplineInterpolator1D()
        with pytest.raises(InputValidationError):
            interp.interpolate(Interpolator1DDataBundle(KEYS, VALUES), 1.5)


class TestNodeSensitivities:
    """Analytic sensitivities against re-solved bundles."""

    @pytest.mark.parametrize("name", ALL_NAMES)
    def test_value_sensitivity(self, name):
        interp = interpolator_of(name)
        bundle = interp.data_bundle(KEYS, VALUES)
        for x in QUERIES:
            expected = bumped_difference(interp, lambda b: interp.interpolate(b, x))
            np.testing.assert_allclose(interp.node_sensitivities(bundle, x), expected, atol=1e-6)

    @pytest.mark.parametrize("name", ALL_NAMES)
    def test_slope_sensitivity(self, name):
        interp = interpolator_of(name)
        bundle = interp.data_bundle(KEYS, VALUES)
        for x in [0.7, 1.7, 4.2, 9.3]:
            expected = bumped_difference(interp, lambda b: interp.first_derivative(b, x))
            np.testing.assert_allclose(
                interp.first_derivative_node_sensitivities(bundle, x), expected, atol=1e-5
            )

    @pytest.mark.parametrize("name", [
        "Constrained Cubic Spline", "Monotonic Constrained Cubic Spline",
        "Monotonic Natural Cubic Spline", "PCHIP",
    ])
    def test_limited_slopes_at_local_extremum(self, name):
        """Slopes pinned to zero at a data extremum do not move with the values."""
        interp = interpolator_of(name)
        bundle = interp.data_bundle(KEYS, VALUES)
        # VALUES peak at 3.0 and dip at 5.0
        for key in (3.0, 5.0):
            assert interp.first_derivative(bundle, key) == pytest.approx(0.0, abs=1e-15)
            sens = interp.first_derivative_node_sensitivities(bundle, key)
            expected = bumped_difference(interp, lambda b: interp.first_derivative(b, key))
            np.testing.assert_allclose(sens, expected, atol=1e-8)


class TestExtrapolators:

    @pytest.fixture
    def bundle(self):
        return LinearInterpolator1D().data_bundle([1.0, 2.0, 4.0], [0.02, 0.03, 0.04])

    def test_flat(self, bundle):
        extrap = Extrapolator1D(ExtrapolatorKind.FLAT, LinearInterpolator1D())
        assert extrap.extrapolate(bundle, 0.2, Side.LEFT) == 0.02
        assert extrap.extrapolate(bundle, 9.0, Side.RIGHT) == 0.04
        assert extrap.first_derivative(bundle, 9.0, Side.RIGHT) == 0.0
        np.testing.assert_array_equal(extrap.node_sensitivities(bundle, 9.0, Side.RIGHT), [0, 0, 1])

    def test_linear(self, bundle):
        extrap = Extrapolator1D(ExtrapolatorKind.LINEAR, LinearInterpolator1D())
        assert extrap.extrapolate(bundle, 6.0, Side.RIGHT) == pytest.approx(0.05)
        assert extrap.extrapolate(bundle, 0.0, Side.LEFT) == pytest.approx(0.01)
        np.testing.assert_allclose(
            extrap.node_sensitivities(bundle, 6.0, Side.RIGHT), [0.0, -1.0, 2.0], atol=1e-14
        )

    def test_log_linear(self, bundle):
        extrap = Extrapolator1D(ExtrapolatorKind.LOG_LINEAR, LinearInterpolator1D())
        slope = 0.005 / 0.04
        assert extrap.extrapolate(bundle, 6.0, Side.RIGHT) == pytest.approx(0.04 * np.exp(2 * slope))
        bump = 1e-7
        values = np.array([0.02, 0.03, 0.04])
        sens = extrap.node_sensitivities(bundle, 6.0, Side.RIGHT)
        for k in range(3):
            up = values.copy()
            up[k] += bump
            down = values.copy()
            down[k] -= bump
            fd = (extrap.extrapolate(bundle.with_values(up), 6.0, Side.RIGHT)
                  - extrap.extrapolate(bundle.with_values(down), 6.0, Side.RIGHT)) / (2 * bump)
            assert sens[k] == pytest.approx(fd, abs=1e-6)

    def test_exponential(self, bundle):
        extrap = Extrapolator1D(ExtrapolatorKind.EXPONENTIAL, LinearInterpolator1D())
        m = np.log(0.04) / 4.0
        assert extrap.extrapolate(bundle, 5.0, Side.RIGHT) == pytest.approx(np.exp(5.0 * m))
        assert extrap.extrapolate(bundle, 4.0, Side.RIGHT) == pytest.approx(0.04)

    def test_exponential_needs_positive_edge(self):
        interp = LinearInterpolator1D()
        extrap = Extrapolator1D(ExtrapolatorKind.EXPONENTIAL, interp)
        with pytest.raises(InputValidationError):
            extrap.extrapolate(interp.data_bundle([1.0, 2.0], [-0.01, 0.01]), 0.5, Side.LEFT)
        with pytest.raises(InputValidationError):
            extrap.extrapolate(interp.data_bundle([0.0, 2.0], [0.01, 0.01]), -0.5, Side.LEFT)


class TestCombined:

    @pytest.fixture
    def combined(self):
        return combined_interpolator_of("Natural Cubic Spline", "Flat", "Linear")

    def test_routing(self, combined):
        bundle = combined.data_bundle(KEYS, VALUES)
        spline = NaturalCubicSplineInterpolator1D()
        assert combined.interpolate(bundle, 0.1) == VALUES[0]
        slope = spline.first_derivative(bundle, KEYS[-1])
        assert combined.interpolate(bundle, 12.0) == pytest.approx(VALUES[-1] + 2.0 * slope)
        assert combined.interpolate(bundle, 4.0) == pytest.approx(spline.interpolate(bundle, 4.0))

    def test_end_keys_use_interior(self, combined):
        bundle = combined.data_bundle(KEYS, VALUES)
        assert combined.interpolate(bundle, KEYS[0]) == pytest.approx(VALUES[0], abs=1e-15)
        assert combined.first_derivative(bundle, KEYS[0]) != 0.0

    def test_missing_side_extends_interior(self):
        combined = combined_interpolator_of("Linear", left="Flat")
        bundle = combined.data_bundle(KEYS, VALUES)
        assert combined.interpolate(bundle, 0.0) == VALUES[0]
        expected = LinearInterpolator1D().interpolate(bundle, 11.0)
        assert combined.interpolate(bundle, 11.0) == pytest.approx(expected)

    def test_sensitivities_outside_nodes(self, combined):
        bundle = combined.data_bundle(KEYS, VALUES)
        for x in [0.1, 12.0]:
            expected = bumped_difference(combined, lambda b: combined.interpolate(b, x))
            np.testing.assert_allclose(combined.node_sensitivities(bundle, x), expected, atol=1e-6)
        slope_fd = bumped_difference(combined, lambda b: combined.first_derivative(b, 12.0))
        np.testing.assert_allclose(
            combined.first_derivative_node_sensitivities(bundle, 12.0), slope_fd, atol=1e-5
        )

    @pytest.mark.parametrize("kind", ["Flat", "Linear", "Log Linear", "Exponential"])
    @pytest.mark.parametrize("name", ["Linear", "Natural Cubic Spline", "PCHIP"])
    def test_extrapolated_slope_sensitivities(self, kind, name):
        combined = combined_interpolator_of(name, kind, kind)
        bundle = combined.data_bundle(KEYS, VALUES)
        for x in [0.2, 12.0]:
            expected = bumped_difference(combined, lambda b: combined.first_derivative(b, x))
            np.testing.assert_allclose(
                combined.first_derivative_node_sensitivities(bundle, x), expected, atol=1e-6
            )

    def test_name(self, combined):
        assert "Natural Cubic Spline" in combined.name
        assert "left=Flat Extrapolator" in combined.name


class TestRegistry:

    @pytest.mark.parametrize("name,expected", [
        ("Linear", LinearInterpolator1D),
        ("linear", LinearInterpolator1D),
        ("LOG_LINEAR", LogLinearInterpolator1D),
        ("natural-cubic-spline", NaturalCubicSplineInterpolator1D),
        ("NaturalCubicSpline", NaturalCubicSplineInterpolator1D),
        ("cubic", NotAKnotCubicSplineInterpolator1D),
        ("monotonic", PchipInterpolator1D),
        ("pchip", PchipInterpolator1D),
        ("Linear Interpolator", LinearInterpolator1D),
        ("LinearInterpolator1D", LinearInterpolator1D),
        ("PchipInterpolator", PchipInterpolator1D),
        ("Piecewise Cubic Hermite Interpolating Polynomial", PchipInterpolator1D),
        ("NotAKnotCubicSpline", NotAKnotCubicSplineInterpolator1D),
        ("Not A Knot Cubic Spline", NotAKnotCubicSplineInterpolator1D),
        ("Natural Cubic Spline With Monotonicity", MonotonicNaturalCubicSplineInterpolator1D),
        ("MonotonicNaturalCubicSpline", MonotonicNaturalCubicSplineInterpolator1D),
        ("Constrained Cubic Spline With Monotonicity",
         MonotonicConstrainedCubicSplineInterpolator1D),
        ("ConstrainedCubicSpline", ConstrainedCubicSplineInterpolator1D),
        ("Clamped Cubic Spline", ClampedCubicSplineInterpolator1D),
        ("ClampedCubicSpline", ClampedCubicSplineInterpolator1D),
        ("Exponential", ExponentialInterpolator1D),
        ("Time Square", TimeSquareInterpolator1D),
        ("TimeSquare", TimeSquareInterpolator1D),
        ("Step Upper", StepUpperInterpolator1D),
        ("StepUpper", StepUpperInterpolator1D),
    ])
    def test_interpolator_lookup(self, name, expected):
        assert isinstance(interpolator_of(name), expected)

    def test_fresh_instances(self):
        assert interpolator_of("Linear") is not interpolator_of("Linear")

    def test_unknown_names(self):
        with pytest.raises(UnknownIdentifierError):
            interpolator_of("Quintic")
        with pytest.raises(UnknownIdentifierError):
            extrapolator_of("Quadratic", "Linear")

    def test_extrapolator_lookup(self):
        extrap = extrapolator_of("log linear extrapolator", "Linear")
        assert extrap.kind is ExtrapolatorKind.LOG_LINEAR
        assert isinstance(extrap.interpolator, LinearInterpolator1D)
        assert extrapolator_of("flat", LinearInterpolator1D()).kind is ExtrapolatorKind.FLAT

    def test_available(self):
        assert "PCHIP" in available_interpolators()
        assert len(available_interpolators()) == len(ALL_NAMES)
        assert set(available_interpolators()) == set(ALL_NAMES)
        assert set(available_extrapolators()) == {k.value for k in ExtrapolatorKind}

    def test_combined_without_extrapolators(self):
        combined = combined_interpolator_of("Linear")
        assert isinstance(combined, CombinedInterpolatorExtrapolator)
        assert combined.left_extrapolator is None
        assert combined.right_extrapolator is None
