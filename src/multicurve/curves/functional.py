"""
Nelson-Siegel and Nelson-Siegel-Svensson functional forms.

The continuously compounded zero rate at maturity t is

    r(t) = b0 + b1 * f1(t/l1) + b2 * f2(t/l1) [+ b3 * f2(t/l2)]

with the factor loadings

    f1(u) = (1 - e^-u) / u
    f2(u) = f1(u) - e^-u

Parameters:
    b0: Long-term level (asymptotic rate)
    b1: Short-term component (slope)
    b2: Medium-term hump
    b3: Second hump (Svensson extension)
    l1, l2: Decay times of the humps, carried as log(l1) and log(l2) so
        that they stay positive through any Newton step

Both forms provide the rate and its analytic gradient with respect to the
parameters, which is what the calibration needs, plus a least-squares fit
used for the initial guess.
"""

from abc import ABC, abstractmethod
from typing import Dict, Sequence, Tuple

import numpy as np
from scipy.optimize import least_squares

from ..errors import InputValidationError, UnknownIdentifierError


def _loadings(t: float, lam: float) -> Tuple[float, float, float, float]:
    """f1, f2 and their derivatives with respect to the decay time."""
    if t <= 0.0:
        return 1.0, 0.0, 0.0, 0.0
    u = t / lam
    du_dlam = -u / lam
    if u < 1e-6:
        # series in u; the closed forms cancel catastrophically here
        f1 = 1.0 - u / 2.0 + u * u / 6.0
        f2 = u / 2.0 - u * u / 3.0
        df1_du = -0.5 + u / 3.0
        df2_du = 0.5 - 2.0 * u / 3.0
        return f1, f2, df1_du * du_dlam, df2_du * du_dlam
    e = np.exp(-u)
    f1 = (1.0 - e) / u
    f2 = f1 - e
    df1_du = e / u - (1.0 - e) / u ** 2
    df2_du = df1_du + e
    return f1, f2, df1_du * du_dlam, df2_du * du_dlam


def _log_loadings(t: float, log_lam: float) -> Tuple[float, float, float, float]:
    """f1, f2 and their derivatives with respect to log(decay time)."""
    lam = np.exp(log_lam)
    f1, f2, df1, df2 = _loadings(t, lam)
    return f1, f2, df1 * lam, df2 * lam


class FunctionalForm(ABC):
    """Parametric zero-rate curve shape."""

    name: str = ""
    parameter_names: Tuple[str, ...] = ()

    @property
    def number_of_parameters(self) -> int:
        return len(self.parameter_names)

    @abstractmethod
    def rate(self, t: float, params: np.ndarray) -> float:
        pass

    @abstractmethod
    def gradient(self, t: float, params: np.ndarray) -> np.ndarray:
        """Derivative of rate(t) with respect to each parameter."""
        pass

    @abstractmethod
    def _starting_point(self, rates: np.ndarray) -> np.ndarray:
        pass

    @abstractmethod
    def _bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        pass

    def fit(self, maturities: Sequence[float], rates: Sequence[float]) -> np.ndarray:
        """
        Least-squares fit of the parameters to zero rates.

        Args:
            maturities: Maturities in years
            rates: Observed continuously compounded rates

        Returns:
            Fitted parameter array
        """
        tau = np.asarray(maturities, dtype=np.float64)
        y_obs = np.asarray(rates, dtype=np.float64)
        if len(tau) != len(y_obs):
            raise InputValidationError("Maturities and rates must have same length")
        if len(tau) < self.number_of_parameters:
            raise InputValidationError(
                f"Need at least {self.number_of_parameters} points to fit {self.name}"
            )

        def residuals(p):
            return np.array([self.rate(t, p) for t in tau]) - y_obs

        def jacobian(p):
            return np.array([self.gradient(t, p) for t in tau])

        lower, upper = self._bounds()
        x0 = np.clip(self._starting_point(y_obs), lower, upper)
        result = least_squares(residuals, x0, jac=jacobian, bounds=(lower, upper))
        return result.x

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NelsonSiegel(FunctionalForm):
    """Four-parameter Nelson-Siegel form [b0, b1, b2, log(l1)]."""

    name = "Nelson-Siegel"
    parameter_names = ("beta0", "beta1", "beta2", "log_lambda1")

    def rate(self, t, params):
        b0, b1, b2, log_lam = params
        f1, f2, _, _ = _log_loadings(t, log_lam)
        return float(b0 + b1 * f1 + b2 * f2)

    def gradient(self, t, params):
        _, b1, b2, log_lam = params
        f1, f2, df1, df2 = _log_loadings(t, log_lam)
        return np.array([1.0, f1, f2, b1 * df1 + b2 * df2])

    def _starting_point(self, rates):
        return np.array([rates[-1], rates[0] - rates[-1], 0.0, np.log(1.5)])

    def _bounds(self):
        return (np.array([-1.0, -1.0, -1.0, np.log(0.05)]),
                np.array([1.0, 1.0, 1.0, np.log(30.0)]))


class NelsonSiegelSvensson(FunctionalForm):
    """Six-parameter Svensson form [b0, b1, b2, b3, log(l1), log(l2)]."""

    name = "Nelson-Siegel-Svensson"
    parameter_names = ("beta0", "beta1", "beta2", "beta3", "log_lambda1", "log_lambda2")

    def rate(self, t, params):
        b0, b1, b2, b3, log_lam1, log_lam2 = params
        f1, f2, _, _ = _log_loadings(t, log_lam1)
        _, g2, _, _ = _log_loadings(t, log_lam2)
        return float(b0 + b1 * f1 + b2 * f2 + b3 * g2)

    def gradient(self, t, params):
        _, b1, b2, b3, log_lam1, log_lam2 = params
        f1, f2, df1, df2 = _log_loadings(t, log_lam1)
        _, g2, _, dg2 = _log_loadings(t, log_lam2)
        return np.array([1.0, f1, f2, g2, b1 * df1 + b2 * df2, b3 * dg2])

    def _starting_point(self, rates):
        return np.array([rates[-1], rates[0] - rates[-1], 0.0, 0.0, np.log(1.5), np.log(5.0)])

    def _bounds(self):
        return (np.array([-1.0, -1.0, -1.0, -1.0, np.log(0.05), np.log(0.05)]),
                np.array([1.0, 1.0, 1.0, 1.0, np.log(30.0), np.log(50.0)]))


_FORMS: Dict[str, type] = {
    "nelsonsiegel": NelsonSiegel,
    "ns": NelsonSiegel,
    "nelsonsiegelsvensson": NelsonSiegelSvensson,
    "nss": NelsonSiegelSvensson,
    "svensson": NelsonSiegelSvensson,
}


def functional_form_of(name: str) -> FunctionalForm:
    """
    Functional form by name ("Nelson-Siegel", "NSS", ...).

    Raises:
        UnknownIdentifierError: If the name is not a known form
    """
    key = "".join(ch for ch in name.lower() if ch not in " -_")
    if key not in _FORMS:
        raise UnknownIdentifierError("functional form", name)
    return _FORMS[key]()


__all__ = [
    "FunctionalForm",
    "NelsonSiegel",
    "NelsonSiegelSvensson",
    "functional_form_of",
]
