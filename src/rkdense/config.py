"""Module-wide floating-point precision configuration.

rkdense coerces array-like states to JAX arrays of one module-wide float
dtype. The default is ``jnp.float64``, so a Python float or a float64 NumPy
array passes through unchanged and tight tolerances stay resolvable.
Importing rkdense therefore enables JAX's 64-bit mode
(``jax_enable_x64``).

``set_dtype`` selects a narrower type (``float32``, ``float16``,
``bfloat16``) for cheaper arithmetic. Initial states are then rounded to that
type, and tolerances below its resolution raise
:class:`~rkdense.errors.ToleranceUnreachableError`.

Call ``set_dtype`` before integrating with ``IntegratorConfig(jit=True)``:
under JIT, ``get_dtype()`` runs during tracing and its result is baked into
the compiled program.

User-defined state vectors (see :mod:`rkdense.vector`) are never cast; they
carry their own scalar type.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

_VALID_DTYPES = (jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64)

DEFAULT_DTYPE = jnp.float64

jax.config.update("jax_enable_x64", True)
_dtype = DEFAULT_DTYPE


def set_dtype(dtype) -> None:
    """Set the module-wide float dtype for rkdense.

    Args:
        dtype: One of ``jnp.float16``, ``jnp.bfloat16``, ``jnp.float32``,
            or ``jnp.float64``.

    Raises:
        ValueError: If *dtype* is not a supported float type.
    """
    global _dtype
    if dtype not in _VALID_DTYPES:
        raise ValueError(
            f"Unsupported dtype {dtype}. Must be one of: "
            f"jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64"
        )
    if dtype == jnp.float64:
        # Another library may have switched 64-bit mode off after import
        jax.config.update("jax_enable_x64", True)
    _dtype = dtype


def get_dtype():
    """Return the current module-wide float dtype.

    Returns:
        The active float dtype (default ``jnp.float64``).
    """
    return _dtype


def get_error_floor() -> float:
    """Return the smallest error magnitude used by step-size control.

    An error estimate that underflows to exactly zero (e.g. a constant
    derivative) is raised to this floor before the step-size update, so
    the update never divides by zero. The floor is the smallest positive
    normal number of the configured dtype:

    - ``float64``:  ~2.2e-308
    - ``float32``:  ~1.2e-38
    - ``float16``:  ~6.1e-5
    - ``bfloat16``: ~1.2e-38

    Returns:
        float: Positive error floor.
    """
    return float(jnp.finfo(_dtype).tiny)
