"""
Unit tests for the damped Newton root finder.
"""

import numpy as np
import pytest

from multicurve.calibration import newton_root
from multicurve.errors import InputTooLargeError, NonConvergenceError, SingularJacobianError


def quadratic_system(x):
    return np.array([x[0] ** 2 + x[1] ** 2 - 4.0, x[0] - x[1]])


def quadratic_jacobian(x):
    return np.array([[2 * x[0], 2 * x[1]], [1.0, -1.0]])


class TestNewtonRoot:

    def test_converges(self):
        result = newton_root(quadratic_system, quadratic_jacobian, [1.0, 0.5], 1e-12, 1e-14, 50)
        np.testing.assert_allclose(result.root, [np.sqrt(2), np.sqrt(2)], atol=1e-10)
        assert result.residual_norm <= 1e-12
        assert 0 < result.iterations < 20

    def test_linear_system_in_one_step(self):
        A = np.array([[3.0, 1.0], [1.0, 2.0]])
        b = np.array([9.0, 8.0])
        result = newton_root(lambda x: A @ x - b, lambda x: A, np.zeros(2), 1e-12, 0.0, 5)
        np.testing.assert_allclose(result.root, [2.0, 3.0])
        assert result.iterations == 1

    def test_initial_guess_already_converged(self):
        result = newton_root(lambda x: x - 1.0, lambda x: np.eye(1), [1.0], 1e-12, 0.0, 5)
        assert result.iterations == 0
        np.testing.assert_array_equal(result.root, [1.0])

    def test_damping_keeps_atan_stable(self):
        """Full Newton steps on arctan diverge from x0 = 2; damped steps do not."""
        result = newton_root(
            lambda x: np.arctan(x), lambda x: np.array([[1.0 / (1.0 + x[0] ** 2)]]),
            [2.0], 1e-12, 0.0, 50,
        )
        assert result.root[0] == pytest.approx(0.0, abs=1e-10)

    def test_relative_step_tolerance(self):
        """A loose step tolerance stops before the residual tolerance is reached."""
        result = newton_root(quadratic_system, quadratic_jacobian, [1.0, 0.5], 1e-300, 1e-2, 50)
        assert result.residual_norm > 1e-300
        np.testing.assert_allclose(result.root, [np.sqrt(2), np.sqrt(2)], atol=1e-3)

    def test_non_convergence(self):
        with pytest.raises(NonConvergenceError) as info:
            newton_root(quadratic_system, quadratic_jacobian, [10.0, 0.5], 1e-300, 0.0, 2)
        assert info.value.iterations == 2
        assert info.value.residual_norm > 0

    def test_singular_jacobian(self):
        with pytest.raises(SingularJacobianError) as info:
            newton_root(lambda x: np.array([x[0] + x[1] - 1.0, 2 * x[0] + 2 * x[1] - 3.0]),
                        lambda x: np.array([[1.0, 1.0], [2.0, 2.0]]),
                        np.zeros(2), 1e-12, 0.0, 10)
        assert info.value.iteration == 1

    def test_non_finite_residual(self):
        with pytest.raises(InputTooLargeError):
            newton_root(lambda x: np.array([np.inf]), lambda x: np.eye(1), [0.0], 1e-12, 0.0, 5)

    def test_non_finite_jacobian(self):
        with pytest.raises(InputTooLargeError):
            newton_root(lambda x: x - 1.0, lambda x: np.array([[np.nan]]), [0.0], 1e-12, 0.0, 5)

    def test_unreachable_tolerance_stops_at_rounding_floor(self):
        """Tolerances below double precision end at the floor instead of failing."""
        result = newton_root(quadratic_system, quadratic_jacobian, [1.0, 0.5], 1e-300, 0.0, 50)
        np.testing.assert_allclose(result.root, [np.sqrt(2), np.sqrt(2)], rtol=1e-14)
        assert result.residual_norm < 1e-14
        assert result.iterations < 50

    def test_stalled_iteration_raises(self):
        """x^2 + 1 has no real root; once no halving helps the solve fails."""
        with pytest.raises(NonConvergenceError) as info:
            newton_root(lambda x: x ** 2 + 1.0, lambda x: np.array([[2 * x[0]]]),
                        [0.5], 1e-12, 0.0, 200)
        assert info.value.residual_norm >= 1.0
