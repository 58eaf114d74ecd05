"""Dense output inside an accepted Runge-Kutta step.

Given the stage derivatives ``k`` of an accepted step ``[t, t + h]``, the
solution at ``t + sigma * h`` is reconstructed without further derivative
evaluations:

.. math::

    b_i(\\sigma) = \\sum_{j=0}^{d-1} p_{ij} \\sigma^{j+1}, \\qquad
    y(t + \\sigma h) \\approx y + h \\sum_i b_i(\\sigma) k_i

at a cost of ``O(stages * dense_order)`` per output time.
"""

from __future__ import annotations

from rkdense.tableau import Tableau
from rkdense.vector import linear_combination


def dense_weights(tableau: Tableau, sigma: float) -> tuple[float, ...]:
    """Evaluate the interpolation weights ``b_i(sigma)`` by Horner's rule.

    Args:
        tableau: Method coefficients (uses ``p``).
        sigma: Normalized time ``(t_out - t) / h`` in ``[0, 1]``.

    Returns:
        tuple[float, ...]: One weight per stage. At ``sigma = 1`` they equal
        ``b_hat`` up to rounding.
    """
    weights = []
    for row in tableau.p:
        w = 0.0
        for coeff in reversed(row):
            w = (w + coeff) * sigma
        weights.append(w)
    return tuple(weights)


def dense_sample(tableau: Tableau, t: float, h: float, y, k, t_out: float):
    """Interpolate the solution at ``t_out`` inside the step ``[t, t + h]``.

    Args:
        tableau: Method coefficients.
        t: Start time of the accepted step.
        h: Size of the accepted step.
        y: Solution at ``t``.
        k: Stage derivatives of the accepted step.
        t_out: Output time, ``t <= t_out <= t + h``.

    Returns:
        The interpolated state vector.
    """
    sigma = (t_out - t) / h
    phi = linear_combination(dense_weights(tableau, sigma), k, y)
    return y + h * phi


def fill_samples(
    tableau: Tableau,
    t: float,
    h: float,
    y,
    k,
    times: list[float],
    samples: list,
    cursor: int,
) -> int:
    """Write every pending output time covered by the step ``[t, t + h]``.

    Starting at ``cursor``, each ``times[i] <= t + h`` is interpolated into
    ``samples[i]``. Output times are visited at most once.

    Args:
        tableau: Method coefficients.
        t: Start time of the accepted step.
        h: Size of the accepted step.
        y: Solution at ``t``.
        k: Stage derivatives of the accepted step.
        times: Non-decreasing output times.
        samples: Pre-allocated output list, same length as ``times``.
        cursor: Index of the first unfilled sample.

    Returns:
        int: Index of the first sample still unfilled.
    """
    t_next = t + h
    while cursor < len(times) and times[cursor] <= t_next:
        samples[cursor] = dense_sample(tableau, t, h, y, k, times[cursor])
        cursor += 1
    return cursor
