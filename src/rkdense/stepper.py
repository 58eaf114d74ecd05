"""Single adaptive step of an embedded explicit Runge-Kutta method.

:func:`attempt_step` evaluates all stages from a :class:`StepperState`,
forms the candidate solution with the ``b_hat`` weights and the error
estimate with ``b_hat - b``, and proposes the next step size. It is a pure
function of its inputs: for JAX array states it can be wrapped in
``jax.jit`` (the stage loops are plain Python loops over the tableau and
unroll during tracing).

:func:`accept_step` and :func:`reject_step` produce the next state on the
host side. The first stage derivative is carried explicitly in
``StepperState.k_last``: for an FSAL tableau it is the last stage of the
previous accepted step, so a rejected attempt leaves it untouched and an
accepted one costs ``stages - 1`` derivative evaluations.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Optional

from rkdense._adaptive import compute_error_magnitude, compute_next_step_size
from rkdense._types import IntegratorConfig, StepAttempt, StepperState
from rkdense.config import get_error_floor
from rkdense.tableau import Tableau
from rkdense.vector import linear_combination


def attempt_step(
    derivative: Callable,
    tableau: Tableau,
    state: StepperState,
    tolerance: float,
    config: Optional[IntegratorConfig] = None,
) -> StepAttempt:
    """Attempt one step of size ``state.h`` from ``(state.t, state.y)``.

    Performs ``stages - 1`` derivative evaluations; stage 0 is
    ``state.k_last``.

    Args:
        derivative: ODE right-hand side ``f(y, t) -> dy/dt``.
        tableau: Method coefficients.
        state: Current time, step size, solution and first-stage derivative.
        tolerance: Accept the step if the error magnitude is below this.
        config: Step-size control settings. Uses default
            :class:`IntegratorConfig` if ``None``.

    Returns:
        StepAttempt: Candidate solution, stages, error magnitude, acceptance
        flag and suggested next step size.

    Examples:
        ```python
        import jax.numpy as jnp
        from rkdense import DORMAND_PRINCE_54, StepperState, attempt_step
        f = lambda y, t: -y
        y0 = jnp.array([1.0])
        state = StepperState(t=0.0, h=0.1, y=y0, k_last=f(y0, 0.0))
        attempt = attempt_step(f, DORMAND_PRINCE_54, state, 1e-6)
        attempt.y_next  # ~[exp(-0.1)]
        ```
    """
    if config is None:
        config = IntegratorConfig()

    t, h, y, k_last = state

    k = [k_last]
    for i in range(1, tableau.stages):
        increment = linear_combination(tableau.a[i][:i], k, y)
        k.append(derivative(y + h * increment, t + tableau.c[i] * h))
    k = tuple(k)

    # Propagate with the higher-order weights
    y_next = y + h * linear_combination(tableau.b_hat, k, y)

    error_weights = tuple(bh - b for bh, b in zip(tableau.b_hat, tableau.b))
    error = compute_error_magnitude(linear_combination(error_weights, k, y), h)

    h_next = compute_next_step_size(
        error,
        h,
        tolerance,
        tableau.order,
        config.safety_factor,
        config.min_scale_factor,
        config.max_scale_factor,
        get_error_floor(),
    )

    return StepAttempt(
        y_next=y_next,
        k=k,
        error=error,
        accepted=error < tolerance,
        h_next=h_next,
    )


def accept_step(
    derivative: Callable,
    tableau: Tableau,
    state: StepperState,
    attempt: StepAttempt,
) -> StepperState:
    """Advance the state past an accepted attempt.

    For an FSAL tableau the new ``k_last`` is the attempt's last stage;
    otherwise ``f(y_next, t + h)`` is evaluated once here.

    Args:
        derivative: ODE right-hand side ``f(y, t) -> dy/dt``.
        tableau: Method coefficients.
        state: State the attempt started from.
        attempt: The accepted attempt.

    Returns:
        StepperState: State at ``t + h`` with the suggested next step size.
    """
    t_next = state.t + state.h
    if tableau.is_fsal:
        k_last = attempt.k[tableau.stages - 1]
    else:
        k_last = derivative(attempt.y_next, t_next)
    return StepperState(t=t_next, h=float(attempt.h_next), y=attempt.y_next, k_last=k_last)


def reject_step(state: StepperState, attempt: StepAttempt) -> StepperState:
    """Keep ``t``, ``y`` and ``k_last``; retry with the reduced step size."""
    return state._replace(h=float(attempt.h_next))
