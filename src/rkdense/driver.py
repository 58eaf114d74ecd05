"""Adaptive integration over a grid of output times.

:func:`integrate` is the public entry point: it steps an embedded
Runge-Kutta method (Dormand-Prince 5(4) by default) from ``times[0]`` to
``times[-1]`` with adaptive step-size control and writes one sample per
requested time using the method's dense output. Output times therefore do
not constrain the step size, and no extra derivative evaluations are spent
on them.

:func:`solve` does the same and additionally reports step statistics.

The time loop runs on the host, so it can raise on failure instead of
looping forever: too many consecutive rejections, too many accepted steps
or a vanishing step size raise
:class:`~rkdense.errors.ToleranceUnreachableError`, as does a tolerance
below the resolution of the state (``eps * inf_norm(y)``). A ``nan``/``inf``
from the derivative raises :class:`~rkdense.errors.NonFiniteStateError`.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from typing import Optional

import jax

from rkdense._types import IntegrationStats, IntegratorConfig, Solution, StepperState
from rkdense.dense import fill_samples
from rkdense.errors import NonFiniteStateError, ToleranceUnreachableError
from rkdense.stepper import accept_step, attempt_step, reject_step
from rkdense.tableau import DORMAND_PRINCE_54, Tableau
from rkdense.vector import as_vector, inf_norm, is_finite, is_user_vector, resolution

logger = logging.getLogger(__name__)


def integrate(
    times: Sequence[float],
    initial,
    tolerance: float,
    derivative: Callable,
    *,
    tableau: Tableau = DORMAND_PRINCE_54,
    config: Optional[IntegratorConfig] = None,
) -> list:
    """Integrate ``dy/dt = derivative(y, t)`` and sample at ``times``.

    Args:
        times: Non-decreasing output times. The integration starts at
            ``times[0]`` and ends once ``times[-1]`` is reached.
        initial: State at ``times[0]``: a scalar, a 1-d array-like, or an
            :class:`~rkdense.vector.OdeVector`.
        tolerance: Local error tolerance (``> 0``) on the infinity norm of
            the per-step error estimate.
        derivative: ODE right-hand side ``f(y, t) -> dy/dt``. Must be pure;
            it may be called again with the same arguments after a rejected
            step.
        tableau: Embedded Runge-Kutta method with dense output.
        config: Step-size control settings. Uses default
            :class:`IntegratorConfig` if ``None``.

    Returns:
        list: One state per entry of ``times``. The first entry is
        ``as_vector(initial)`` itself. An empty ``times`` gives ``[]``.

    Raises:
        ValueError: If ``tolerance <= 0``, ``times`` holds a non-finite
            value or decreases, or the configuration or tableau is invalid.
        ToleranceUnreachableError: If the tolerance cannot be met, or is
            finer than the state dtype can resolve.
        NonFiniteStateError: If the derivative produces ``nan``/``inf``.

    Examples:
        ```python
        from rkdense import integrate
        ys = integrate([0.0, 0.5, 1.0], 1.0, 1e-8, lambda y, t: y)
        float(ys[-1])  # ~2.718281828
        ```
    """
    return solve(
        times, initial, tolerance, derivative, tableau=tableau, config=config
    ).ys


def solve(
    times: Sequence[float],
    initial,
    tolerance: float,
    derivative: Callable,
    *,
    tableau: Tableau = DORMAND_PRINCE_54,
    config: Optional[IntegratorConfig] = None,
) -> Solution:
    """Integrate like :func:`integrate` and also return step statistics.

    For an FSAL tableau the number of derivative evaluations is
    ``1 + (stages - 1) * (n_accepted + n_rejected)``. A grid whose times all
    equal ``times[0]`` needs no evaluation at all.

    Args:
        times: Non-decreasing output times.
        initial: State at ``times[0]``.
        tolerance: Local error tolerance (``> 0``).
        derivative: ODE right-hand side ``f(y, t) -> dy/dt``.
        tableau: Embedded Runge-Kutta method with dense output.
        config: Step-size control settings.

    Returns:
        Solution: Named tuple with fields:
            - ``ts``: The output times as floats.
            - ``ys``: One state per output time.
            - ``stats``: :class:`IntegrationStats` for the run.

    Raises:
        ValueError: If ``tolerance <= 0``, ``times`` holds a non-finite
            value or decreases, or the configuration or tableau is invalid.
        ToleranceUnreachableError: If the tolerance cannot be met, or is
            finer than the state dtype can resolve.
        NonFiniteStateError: If the derivative produces ``nan``/``inf``.
    """
    if config is None:
        config = IntegratorConfig()
    config.validate()
    tableau.validate()
    if not tolerance > 0.0:
        raise ValueError(f"tolerance must be positive, got {tolerance}")

    ts = [float(t) for t in times]
    for t in ts:
        if not math.isfinite(t):
            raise ValueError(f"times must be finite, got {t}")
    for i in range(1, len(ts)):
        if ts[i] < ts[i - 1]:
            raise ValueError(
                f"times must be non-decreasing, got {ts[i - 1]} followed by {ts[i]}"
            )
    if not ts:
        return Solution(ts=[], ys=[], stats=IntegrationStats())

    y0 = as_vector(initial)
    samples = [None] * len(ts)
    samples[0] = y0
    cursor = 1
    while cursor < len(ts) and ts[cursor] == ts[0]:
        samples[cursor] = y0
        cursor += 1
    if cursor == len(ts):
        return Solution(ts=ts, ys=samples, stats=IntegrationStats())

    t0, t_final = ts[0], ts[-1]
    h0 = config.initial_step if config.initial_step is not None else t_final - t0
    _check_resolution(y0, tolerance, t0, h0)

    k0 = derivative(y0, t0)
    n_evaluations = 1
    if not is_finite(k0):
        _fail(NonFiniteStateError, "Non-finite derivative at the initial state", t0, h0)
    state = StepperState(t=t0, h=h0, y=y0, k_last=k0)

    attempt_fn = _make_attempt_fn(derivative, tableau, tolerance, config, y0)

    n_accepted = 0
    n_rejected = 0
    consecutive_rejections = 0
    while state.t < t_final:
        if state.t + state.h == state.t:
            _fail(
                ToleranceUnreachableError,
                f"Step size {state.h:g} underflowed at t={state.t:g}",
                state.t,
                state.h,
            )

        attempt = attempt_fn(state)
        n_evaluations += tableau.stages - 1

        error = float(attempt.error)
        if not (
            math.isfinite(error)
            and is_finite(attempt.y_next)
            and all(is_finite(k) for k in attempt.k)
        ):
            _fail(
                NonFiniteStateError,
                f"Non-finite stage derivative or state in step from t={state.t:g}",
                state.t,
                state.h,
            )

        if bool(attempt.accepted):
            cursor = fill_samples(
                tableau, state.t, state.h, state.y, attempt.k, ts, samples, cursor
            )
            state = accept_step(derivative, tableau, state, attempt)
            if not tableau.is_fsal:
                n_evaluations += 1
                if not is_finite(state.k_last):
                    _fail(
                        NonFiniteStateError,
                        f"Non-finite derivative at t={state.t:g}",
                        state.t,
                        state.h,
                    )
            _check_resolution(state.y, tolerance, state.t, state.h)
            n_accepted += 1
            consecutive_rejections = 0
            if n_accepted >= config.max_steps and state.t < t_final:
                _fail(
                    ToleranceUnreachableError,
                    f"Exceeded {config.max_steps} steps before reaching t={t_final:g}",
                    state.t,
                    state.h,
                )
        else:
            logger.debug(
                "Rejected step at t=%g with h=%g (error %.3e >= tolerance %.3e)",
                state.t,
                state.h,
                error,
                tolerance,
            )
            n_rejected += 1
            consecutive_rejections += 1
            if consecutive_rejections >= config.max_step_attempts:
                _fail(
                    ToleranceUnreachableError,
                    f"{consecutive_rejections} consecutive rejections at t={state.t:g}; "
                    f"tolerance {tolerance:g} is unreachable",
                    state.t,
                    state.h,
                )
            state = reject_step(state, attempt)

    stats = IntegrationStats(
        n_evaluations=n_evaluations, n_accepted=n_accepted, n_rejected=n_rejected
    )
    logger.debug(
        "%s over [%g, %g]: %d accepted, %d rejected, %d evaluations",
        tableau.name,
        t0,
        t_final,
        stats.n_accepted,
        stats.n_rejected,
        stats.n_evaluations,
    )
    return Solution(ts=ts, ys=samples, stats=stats)


def _make_attempt_fn(derivative, tableau, tolerance, config, y0):
    """Bind the step attempt to one integration, compiling it if requested."""

    def attempt(state):
        return attempt_step(derivative, tableau, state, tolerance, config)

    if config.jit and not is_user_vector(y0):
        return jax.jit(attempt)
    return attempt


def _check_resolution(y, tolerance, t, h):
    """Fail if the tolerance is finer than the rounding of the state itself."""
    floor = resolution(y) * float(inf_norm(y))
    if tolerance < floor:
        _fail(
            ToleranceUnreachableError,
            f"tolerance {tolerance:g} is below the resolution {floor:.3e} of the "
            f"state at t={t:g}; use a wider dtype or a looser tolerance",
            t,
            h,
        )


def _fail(error_cls, message, t, h):
    logger.warning(message)
    raise error_cls(message, t=t, h=h)
