"""Adaptive step-size control utilities for embedded Runge-Kutta methods.

Provides the error-magnitude computation and the step-size update shared by
every tableau. The control law follows the standard embedded Runge-Kutta
approach:

1. Measure the local error as the infinity norm of ``h * error_vec``.
2. Accept the step if that magnitude is strictly below the tolerance.
3. Rescale the step size from the error and the method order, whether or
   not the step was accepted.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from rkdense.vector import inf_norm


def compute_error_magnitude(error_vec, h: ArrayLike):
    """Compute the scalar error magnitude of a trial step.

    .. math::

        E = \\lVert h \\cdot \\text{error\\_vec} \\rVert_\\infty

    Args:
        error_vec: Weighted stage sum ``sum((b_hat - b) * k)``.
        h: Step size of the trial step.

    Returns:
        Scalar error magnitude (a 0-d ``jax.Array`` for array states, the
        vector's own scalar type for user-defined vectors).
    """
    return inf_norm(h * error_vec)


def compute_next_step_size(
    error: ArrayLike,
    h: ArrayLike,
    tolerance: float,
    order: int,
    safety_factor: float,
    min_scale_factor: float,
    max_scale_factor: float,
    error_floor: float,
) -> Array:
    """Compute the next step size from the current error magnitude.

    Uses the standard optimal step-size formula:

    .. math::

        h_{\\text{next}} = h \\cdot S \\cdot
            \\left(\\frac{\\text{tol}}{\\max(E, E_{\\min})}\\right)^{1/(p+1)}

    where *S* is the safety factor and *p* the order of the propagated
    solution. The error is raised to ``error_floor`` first so a zero error
    cannot produce ``inf``, and the scale factor is clamped to
    ``[min_scale_factor, max_scale_factor]``.

    Args:
        error: Error magnitude from :func:`compute_error_magnitude`.
        h: Current step size.
        tolerance: Requested tolerance (``> 0``).
        order: Consistency order of the propagated solution.
        safety_factor: Multiplicative safety factor (typically 0.9).
        min_scale_factor: Minimum allowed ratio ``h_next / h``.
        max_scale_factor: Maximum allowed ratio ``h_next / h``.
        error_floor: Smallest error magnitude used in the update.

    Returns:
        jax.Array: Suggested next step size.
    """
    error = jnp.maximum(jnp.asarray(error), error_floor)
    exponent = 1.0 / (order + 1.0)
    scale = safety_factor * jnp.power(tolerance / error, exponent)

    # Clamp scale factor
    scale = jnp.clip(scale, min_scale_factor, max_scale_factor)

    return h * scale
