"""Type definitions for the adaptive integrator.

Provides the data types shared by the stepper, the dense sampler and the
driver:

- :class:`IntegratorConfig`: Step-size control settings and safety caps.
- :class:`StepperState`: The mutable-by-replacement integration state,
  including the explicit FSAL stage ``k_last``.
- :class:`StepAttempt`: Output of one attempted step.
- :class:`IntegrationStats`: Counters reported by :func:`rkdense.solve`.
- :class:`Solution`: Samples plus statistics.

All types are :class:`~typing.NamedTuple` instances, which JAX treats as
pytrees automatically, so a :class:`StepAttempt` can be returned from a
``jax.jit``-compiled function.
"""

from __future__ import annotations

from typing import Any, NamedTuple, Optional


class IntegratorConfig(NamedTuple):
    """Configuration for adaptive step-size control.

    After every attempt, accepted or not, the step size is rescaled by

    .. math::

        \\text{factor} = \\text{clip}\\left(S \\cdot
            \\left(\\frac{\\text{tol}}{\\max(E, E_{\\min})}\\right)^{1/(p+1)},
            \\text{min\\_scale}, \\text{max\\_scale}\\right)

    where *S* is the safety factor, *E* the error magnitude, *p* the method
    order and :math:`E_{\\min}` the dtype's error floor
    (:func:`rkdense.config.get_error_floor`).

    Attributes:
        safety_factor: Multiplicative safety factor applied to step-size
            predictions. Values < 1.0 reduce the rejection rate.
        min_scale_factor: Minimum allowed ratio ``h_next / h``.
        max_scale_factor: Maximum allowed ratio ``h_next / h``. Keeps a
            zero error estimate from blowing the step size up.
        max_step_attempts: Maximum number of consecutive rejections before
            :class:`~rkdense.errors.ToleranceUnreachableError` is raised.
        max_steps: Maximum number of accepted steps per integration.
        initial_step: First trial step size. ``None`` uses the whole span
            ``times[-1] - times[0]`` and lets the controller shrink it.
        jit: Compile the step attempt with ``jax.jit``. Only applies to JAX
            array states; user-defined vectors always run eagerly.
    """

    safety_factor: float = 0.9
    min_scale_factor: float = 0.2
    max_scale_factor: float = 10.0
    max_step_attempts: int = 50
    max_steps: int = 100_000
    initial_step: Optional[float] = None
    jit: bool = False

    def validate(self) -> None:
        """Check the configuration values.

        Raises:
            ValueError: If a factor, cap or the initial step is out of range.
        """
        if not 0.0 < self.safety_factor <= 1.0:
            raise ValueError(f"safety_factor must be in (0, 1], got {self.safety_factor}")
        if not 0.0 < self.min_scale_factor < 1.0:
            raise ValueError(f"min_scale_factor must be in (0, 1), got {self.min_scale_factor}")
        if self.max_scale_factor <= 1.0:
            raise ValueError(f"max_scale_factor must be > 1, got {self.max_scale_factor}")
        if self.max_step_attempts < 1:
            raise ValueError(f"max_step_attempts must be >= 1, got {self.max_step_attempts}")
        if self.max_steps < 1:
            raise ValueError(f"max_steps must be >= 1, got {self.max_steps}")
        if self.initial_step is not None and not self.initial_step > 0.0:
            raise ValueError(f"initial_step must be positive, got {self.initial_step}")


class StepperState(NamedTuple):
    """State carried between steps.

    Attributes:
        t: Current time.
        h: Step size for the next attempt.
        y: Current solution vector.
        k_last: Derivative ``f(y, t)`` at the current point. For an FSAL
            tableau this is the last stage of the previous accepted step and
            seeds the first stage of the next one.
    """

    t: Any
    h: Any
    y: Any
    k_last: Any


class StepAttempt(NamedTuple):
    """Result of one attempted step from ``(t, y)`` with step size ``h``.

    Attributes:
        y_next: Candidate solution at ``t + h`` (``b_hat`` weights).
        k: Stage derivatives ``k[0] .. k[stages-1]`` as a tuple.
        error: Scalar error magnitude ``inf_norm(h * sum((b_hat - b) * k))``.
        accepted: Whether ``error < tol``.
        h_next: Step size suggested for the following attempt.
    """

    y_next: Any
    k: tuple
    error: Any
    accepted: Any
    h_next: Any


class IntegrationStats(NamedTuple):
    """Work counters for one integration.

    Attributes:
        n_evaluations: Derivative evaluations, including the initial one.
        n_accepted: Accepted steps.
        n_rejected: Rejected step attempts.
    """

    n_evaluations: int = 0
    n_accepted: int = 0
    n_rejected: int = 0


class Solution(NamedTuple):
    """Samples returned by :func:`rkdense.solve`.

    Attributes:
        ts: Requested output times as Python floats.
        ys: One state vector per entry of ``ts``.
        stats: Work counters.
    """

    ts: list
    ys: list
    stats: IntegrationStats
