"""
Exception types raised by the calibration engine.

Input problems are reported as ``ValueError`` subclasses at construction
time, before any numerical work starts. Numerical failures of the Newton
solve are reported as distinct types so callers can tell a slow
configuration (non-convergence) from a structurally unsolvable one
(singular Jacobian).
"""

from typing import Optional


class CurveCalibrationError(Exception):
    """Base class for all errors raised by multicurve."""


class InputValidationError(CurveCalibrationError, ValueError):
    """Malformed input data: unsorted or duplicate keys, NaN, bad lengths."""


class UnknownIdentifierError(InputValidationError):
    """A name could not be resolved in one of the static registries."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"Unknown {kind}: '{identifier}'")


class CurveConfigurationError(InputValidationError):
    """Incompatible or incomplete curve / calibration configuration."""


class InputTooLargeError(CurveCalibrationError, ArithmeticError):
    """
    A produced coefficient, residual or Jacobian entry is NaN or infinite.

    This usually means the input data is badly scaled rather than that the
    problem is mathematically singular.
    """


class NonConvergenceError(CurveCalibrationError, RuntimeError):
    """The Newton iteration ran out of steps, or stalled, without converging."""

    def __init__(self, iterations: int, residual_norm: float, message: Optional[str] = None):
        self.iterations = iterations
        self.residual_norm = residual_norm
        if message is None:
            message = (f"Root finder did not converge after {iterations} steps "
                       f"(residual norm {residual_norm:.3e})")
        super().__init__(message)


class SingularJacobianError(CurveCalibrationError, ArithmeticError):
    """The Jacobian of the calibration system cannot be inverted."""

    def __init__(self, iteration: int, condition_number: float):
        self.iteration = iteration
        self.condition_number = condition_number
        super().__init__(
            f"Singular Jacobian at iteration {iteration} "
            f"(condition number {condition_number:.3e})"
        )


__all__ = [
    "CurveCalibrationError",
    "InputValidationError",
    "UnknownIdentifierError",
    "CurveConfigurationError",
    "InputTooLargeError",
    "NonConvergenceError",
    "SingularJacobianError",
]
