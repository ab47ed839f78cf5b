"""
Unit tests for curves, functional forms and curve generators.
"""

import numpy as np
import pandas as pd
import pytest

from multicurve.curves import (
    CurveGeneratorConfig,
    CurveType,
    DiscountInterpolatedGenerator,
    FunctionalGenerator,
    FunctionalYieldCurve,
    InterpolatedDiscountCurve,
    InterpolatedYieldCurve,
    NelsonSiegel,
    NelsonSiegelSvensson,
    PeriodicYieldCurve,
    PeriodicYieldInterpolatedGenerator,
    SpreadGenerator,
    SpreadYieldCurve,
    YieldInterpolatedGenerator,
    functional_form_of,
)
from multicurve.errors import (
    CurveConfigurationError,
    InputValidationError,
    UnknownIdentifierError,
)
from multicurve.instruments import Cash
from multicurve.interpolation import (
    CombinedInterpolatorExtrapolator,
    LinearInterpolator1D,
    NaturalCubicSplineInterpolator1D,
)
from multicurve.provider import MulticurveProvider


TIMES = np.array([0.5, 1.0, 2.0, 5.0, 10.0])
RATES = np.array([0.040, 0.042, 0.045, 0.047, 0.048])


def bumped_rates(make_curve, params, t, bump=1e-7):
    """Central differences of the zero rate at t with respect to each parameter."""
    out = np.zeros(len(params))
    for k in range(len(params)):
        up = np.array(params, dtype=float)
        up[k] += bump
        down = np.array(params, dtype=float)
        down[k] -= bump
        out[k] = (make_curve(up).interest_rate(t) - make_curve(down).interest_rate(t)) / (2 * bump)
    return out


class TestInterpolatedYieldCurve:

    @pytest.fixture
    def curve(self):
        return InterpolatedYieldCurve("USD-OIS", TIMES, RATES, LinearInterpolator1D())

    def test_rates_and_discount_factors(self, curve):
        assert curve.interest_rate(2.0) == pytest.approx(0.045)
        assert curve.interest_rate(1.5) == pytest.approx(0.0435)
        assert curve.discount_factor(2.0) == pytest.approx(np.exp(-0.09))
        assert curve.discount_factor(0.0) == 1.0
        assert curve.discount_factor(-1.0) == 1.0

    def test_forward_rate(self, curve):
        """Simple forward from the ratio of discount factors."""
        expected = (curve.discount_factor(1.0) / curve.discount_factor(2.0) - 1.0) / 1.0
        assert curve.forward_rate(1.0, 2.0) == pytest.approx(expected)
        with pytest.raises(InputValidationError):
            curve.forward_rate(2.0, 1.0)

    def test_parameter_sensitivity(self, curve):
        sens = curve.parameter_sensitivity(1.5)
        np.testing.assert_allclose(sens, [0.0, 0.5, 0.5, 0.0, 0.0])

    def test_parameters_keep_input_order(self):
        order = np.array([2, 0, 4, 1, 3])
        curve = InterpolatedYieldCurve("X", TIMES[order], RATES[order], LinearInterpolator1D())
        np.testing.assert_array_equal(curve.parameters, RATES[order])
        sens = curve.parameter_sensitivity(1.5)
        # nodes at 1.0 and 2.0 sit at positions 3 and 0
        np.testing.assert_allclose(sens, [0.5, 0.0, 0.0, 0.5, 0.0])

    def test_nodes_frame(self, curve):
        frame = curve.nodes_frame()
        assert isinstance(frame, pd.DataFrame)
        assert list(frame.columns) == ["time", "parameter", "zero_rate", "discount_factor"]
        np.testing.assert_allclose(frame["zero_rate"], RATES)

    def test_mismatched_nodes(self):
        with pytest.raises(InputValidationError):
            InterpolatedYieldCurve("X", TIMES, RATES[:-1], LinearInterpolator1D())


class TestInterpolatedDiscountCurve:

    @pytest.fixture
    def curve(self):
        return InterpolatedDiscountCurve("EUR-OIS", TIMES, -RATES * TIMES, LinearInterpolator1D())

    def test_discount_factors_at_nodes(self, curve):
        for t, r in zip(TIMES, RATES):
            assert curve.discount_factor(t) == pytest.approx(np.exp(-r * t))
            assert curve.interest_rate(t) == pytest.approx(r)

    def test_parameter_sensitivity(self, curve):
        params = -RATES * TIMES
        for t in [0.7, 3.0, 8.0]:
            expected = bumped_rates(
                lambda p: InterpolatedDiscountCurve("EUR-OIS", TIMES, p, LinearInterpolator1D()),
                params, t,
            )
            np.testing.assert_allclose(curve.parameter_sensitivity(t), expected, atol=1e-6)

    def test_small_time_limit(self):
        """Below the series threshold the rate still tends to b0 + b1."""
        form = NelsonSiegelSvensson()
        params = np.array([0.05, -0.02, 0.01, -0.005, np.log(2.0), np.log(8.0)])
        assert form.rate(1e-7, params) == pytest.approx(0.03, abs=1e-8)
        assert form.rate(-1.0, params) == pytest.approx(0.03)
        np.testing.assert_allclose(form.gradient(0.0, params), [1.0, 1.0, 0.0, 0.0, 0.0, 0.0])
        curve = FunctionalYieldCurve("F", form, params)
        expected = bumped_rates(lambda p: FunctionalYieldCurve("F", form, p), params, 1e-7)
        np.testing.assert_allclose(curve.parameter_sensitivity(1e-7), expected, atol=1e-9)

    def test_decay_columns_alive_for_short_decays(self):
        """Decay parameters far below zero in log space keep a nonzero gradient."""
        form = NelsonSiegelSvensson()
        params = np.array([0.05, -0.02, 0.01, -0.005, np.log(0.06), np.log(0.08)])
        gradient = form.gradient(0.25, params)
        assert abs(gradient[4]) > 1e-6
        assert abs(gradient[5]) > 1e-6
        # log parameters are unconstrained: any real value is a positive decay
        assert np.isfinite(form.rate(1.0, np.array([0.05, -0.02, 0.01, -0.005, -3.0, -2.5])))


class TestPeriodicYieldCurve:

    def test_continuous_rate(self):
        curve = PeriodicYieldCurve("X", TIMES, RATES, LinearInterpolator1D(), periods_per_year=2)
        assert curve.interest_rate(2.0) == pytest.approx(2 * np.log1p(0.045 / 2))
        assert curve.discount_factor(2.0) == pytest.approx((1 + 0.045 / 2) ** -4)

    def test_parameter_sensitivity(self):
        def make(p):
            return PeriodicYieldCurve("X", TIMES, p, NaturalCubicSplineInterpolator1D(), 4)

        for t in [0.8, 4.0]:
            np.testing.assert_allclose(
                make(RATES).parameter_sensitivity(t), bumped_rates(make, RATES, t), atol=1e-6
            )

    def test_rejects_zero_periods(self):
        with pytest.raises(InputValidationError):
            PeriodicYieldCurve("X", TIMES, RATES, LinearInterpolator1D(), periods_per_year=0)


class TestFunctionalForms:
    """Nelson-Siegel family shapes and gradients."""

    def test_nelson_siegel_limits(self):
        form = NelsonSiegel()
        params = np.array([0.05, -0.02, 0.01, np.log(2.0)])
        assert form.rate(0.0, params) == pytest.approx(0.03)
        assert form.rate(500.0, params) == pytest.approx(0.05, abs=2e-4)

    @pytest.mark.parametrize("form,params", [
        (NelsonSiegel(), [0.05, -0.02, 0.01, np.log(2.0)]),
        (NelsonSiegelSvensson(), [0.05, -0.02, 0.01, -0.005, np.log(2.0), np.log(8.0)]),
    ])
    def test_gradient(self, form, params):
        params = np.array(params)
        curve = FunctionalYieldCurve("F", form, params)
        for t in [0.25, 3.0, 15.0]:
            expected = bumped_rates(lambda p: FunctionalYieldCurve("F", form, p), params, t)
            np.testing.assert_allclose(curve.parameter_sensitivity(t), expected, atol=1e-6)

    def test_fit_recovers_parameters(self):
        form = NelsonSiegel()
        truth = np.array([0.05, -0.02, 0.01, np.log(2.0)])
        maturities = np.array([0.25, 0.5, 1, 2, 3, 5, 7, 10, 20, 30])
        rates = [form.rate(t, truth) for t in maturities]
        fitted = form.fit(maturities, rates)
        for t in maturities:
            assert form.rate(t, fitted) == pytest.approx(form.rate(t, truth), abs=1e-5)

    def test_fit_needs_enough_points(self):
        with pytest.raises(InputValidationError):
            NelsonSiegelSvensson().fit([1.0, 2.0, 3.0], [0.01, 0.02, 0.03])

    def test_lookup(self):
        assert isinstance(functional_form_of("Nelson-Siegel"), NelsonSiegel)
        assert isinstance(functional_form_of("NSS"), NelsonSiegelSvensson)
        with pytest.raises(UnknownIdentifierError):
            functional_form_of("Vasicek")

    def test_wrong_parameter_count(self):
        with pytest.raises(InputValidationError):
            FunctionalYieldCurve("F", NelsonSiegel(), [0.05, 0.0])


class TestSpreadYieldCurve:

    @pytest.fixture
    def base(self):
        return InterpolatedYieldCurve("BASE", TIMES, RATES, LinearInterpolator1D())

    def test_rates_add(self, base):
        spread = InterpolatedYieldCurve("S", [1.0, 10.0], [0.001, 0.003], LinearInterpolator1D())
        curve = SpreadYieldCurve("SPREAD", base, spread)
        assert curve.interest_rate(5.5) == pytest.approx(base.interest_rate(5.5) + 0.002)
        np.testing.assert_array_equal(curve.parameters, [0.001, 0.003])
        assert curve.underlying_curve_names() == ["BASE"]
        underlying = curve.underlying_parameter_sensitivities(1.5)
        np.testing.assert_allclose(underlying["BASE"], base.parameter_sensitivity(1.5))


class TestGenerators:

    @pytest.fixture
    def deposits(self):
        return [Cash("USD", 0.0, t, t, r) for t, r in zip(TIMES, RATES)]

    def test_maturity_nodes(self, deposits):
        generator = YieldInterpolatedGenerator(LinearInterpolator1D())
        with pytest.raises(CurveConfigurationError):
            generator.number_of_parameters()
        final = generator.final_generator(deposits)
        assert final.number_of_parameters() == len(TIMES)
        curve = final.generate_curve("USD-OIS", RATES)
        np.testing.assert_allclose(curve.node_times, TIMES)
        with pytest.raises(InputValidationError):
            final.generate_curve("USD-OIS", RATES[:-1])

    def test_initial_guesses(self, deposits):
        discount = DiscountInterpolatedGenerator(LinearInterpolator1D(), TIMES)
        np.testing.assert_allclose(discount.initial_guess(RATES), -RATES * TIMES)
        periodic = PeriodicYieldInterpolatedGenerator(LinearInterpolator1D(), 1).final_generator(deposits)
        np.testing.assert_allclose(periodic.initial_guess(RATES), np.expm1(RATES))
        curve = periodic.generate_curve("P", periodic.initial_guess(RATES))
        assert curve.interest_rate(5.0) == pytest.approx(0.047)

    def test_functional_generator(self, deposits):
        generator = FunctionalGenerator(NelsonSiegel())
        with pytest.raises(CurveConfigurationError):
            generator.initial_guess(RATES)
        final = generator.final_generator(deposits)
        guess = final.initial_guess(RATES)
        assert len(guess) == 4
        curve = final.generate_curve("NS", guess)
        assert curve.interest_rate(2.0) == pytest.approx(0.045, abs=1e-3)

    def test_spread_generator(self, deposits):
        base = InterpolatedYieldCurve("BASE", TIMES, RATES, LinearInterpolator1D())
        generator = SpreadGenerator("BASE", YieldInterpolatedGenerator(LinearInterpolator1D()))
        final = generator.final_generator(deposits)
        np.testing.assert_array_equal(final.initial_guess(RATES), np.zeros(len(TIMES)))
        with pytest.raises(CurveConfigurationError):
            final.generate_curve("SPREAD", np.zeros(len(TIMES)), MulticurveProvider())
        curve = final.generate_curve("SPREAD", np.full(len(TIMES), 0.001),
                                     MulticurveProvider({"BASE": base}))
        assert curve.interest_rate(3.0) == pytest.approx(base.interest_rate(3.0) + 0.001)


class TestCurveGeneratorConfig:
    """Validity rules of the declarative generator description."""

    def test_interpolated_with_maturity_nodes(self):
        generator = CurveGeneratorConfig(interpolator="Linear", maturity_nodes=True).build()
        assert isinstance(generator, YieldInterpolatedGenerator)
        assert generator.node_times is None

    def test_extrapolators_wrap_interpolator(self):
        generator = CurveGeneratorConfig(
            interpolator="Natural Cubic Spline", left_extrapolator="Flat",
            right_extrapolator="Linear", node_times=[1.0, 2.0, 5.0],
        ).build()
        assert isinstance(generator.interpolator, CombinedInterpolatorExtrapolator)
        assert generator.number_of_parameters() == 3

    def test_discount_factor_curve(self):
        generator = CurveGeneratorConfig(
            interpolator="Log Linear", curve_type=CurveType.DISCOUNT_FACTOR, node_times=[1.0, 2.0]
        ).build()
        assert isinstance(generator, DiscountInterpolatedGenerator)

    def test_periodic(self):
        generator = CurveGeneratorConfig(
            interpolator="Linear", maturity_nodes=True, compounding_periods=2
        ).build()
        assert isinstance(generator, PeriodicYieldInterpolatedGenerator)
        assert generator.periods_per_year == 2

    def test_functional_and_spread(self):
        generator = CurveGeneratorConfig(functional_form="NSS", spread_over="BASE").build()
        assert isinstance(generator, SpreadGenerator)
        assert isinstance(generator.spread_generator, FunctionalGenerator)
        assert generator.number_of_parameters() == 6

    @pytest.mark.parametrize("options", [
        dict(interpolator="Linear", functional_form="Nelson-Siegel"),
        dict(interpolator="Linear"),
        dict(interpolator="Linear", node_times=[1.0], maturity_nodes=True),
        dict(interpolator="Linear", node_times=[1.0, 2.0], compounding_periods=2),
        dict(interpolator="Linear", maturity_nodes=True, compounding_periods=0),
        dict(interpolator="Linear", maturity_nodes=True, compounding_periods=2,
             curve_type=CurveType.DISCOUNT_FACTOR),
        dict(functional_form="Nelson-Siegel", maturity_nodes=True),
        dict(functional_form="Nelson-Siegel", right_extrapolator="Flat"),
        dict(maturity_nodes=True),
    ])
    def test_invalid_combinations(self, options):
        with pytest.raises(CurveConfigurationError):
            CurveGeneratorConfig(**options).build()

    def test_unknown_names(self):
        with pytest.raises(UnknownIdentifierError):
            CurveGeneratorConfig(interpolator="Quintic", maturity_nodes=True).build()
        with pytest.raises(UnknownIdentifierError):
            CurveGeneratorConfig(functional_form="Vasicek").build()

    def test_from_dict(self):
        config = CurveGeneratorConfig.from_dict({
            "interpolator": "Linear",
            "curve_type": "discount_factor",
            "node_times": [1.0, 2.0],
        })
        assert config.curve_type is CurveType.DISCOUNT_FACTOR
        with pytest.raises(CurveConfigurationError):
            CurveGeneratorConfig.from_dict({"interpolator": "Linear", "tension": 1.0})
