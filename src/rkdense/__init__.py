"""
rkdense is an adaptive embedded Runge-Kutta ODE integrator with dense output, implemented in JAX.

Integrate ``dy/dt = f(y, t)`` and sample the solution at arbitrary times::

    from rkdense import integrate
    ys = integrate([0.0, 0.25, 0.5, 1.0], 1.0, 1e-8, lambda y, t: -y)

States may be scalars, 1-d JAX/NumPy arrays, or user-defined types
implementing :class:`~rkdense.vector.OdeVector`.
"""

from .config import set_dtype, get_dtype, get_error_floor

from .errors import (
    IntegrationError,
    ToleranceUnreachableError,
    NonFiniteStateError,
)

from .vector import (
    SIMD_WIDTHS,
    OdeVector,
    as_vector,
    scalar_count,
    repeating,
    component,
    with_component,
    inf_norm,
    is_finite,
    resolution,
    linear_combination,
)

from .tableau import (
    Tableau,
    DORMAND_PRINCE_54,
    BOGACKI_SHAMPINE_32,
    HEUN_EULER_21,
)

from ._types import (
    IntegratorConfig,
    StepperState,
    StepAttempt,
    IntegrationStats,
    Solution,
)

from .stepper import attempt_step, accept_step, reject_step
from .dense import dense_weights, dense_sample, fill_samples
from .driver import integrate, solve

__all__ = [
    # Config
    "set_dtype",
    "get_dtype",
    "get_error_floor",
    # Errors
    "IntegrationError",
    "ToleranceUnreachableError",
    "NonFiniteStateError",
    # Vector contract
    "SIMD_WIDTHS",
    "OdeVector",
    "as_vector",
    "scalar_count",
    "repeating",
    "component",
    "with_component",
    "inf_norm",
    "is_finite",
    "resolution",
    "linear_combination",
    # Tableaux
    "Tableau",
    "DORMAND_PRINCE_54",
    "BOGACKI_SHAMPINE_32",
    "HEUN_EULER_21",
    # Types
    "IntegratorConfig",
    "StepperState",
    "StepAttempt",
    "IntegrationStats",
    "Solution",
    # Stepping
    "attempt_step",
    "accept_step",
    "reject_step",
    "dense_weights",
    "dense_sample",
    "fill_samples",
    "integrate",
    "solve",
]
