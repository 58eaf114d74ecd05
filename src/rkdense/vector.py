"""State-vector contract for the integrators.

The integrators never inspect a state directly. They only need:

- ``scalar_count``: the (fixed) number of scalar components,
- a zero/repeat constructor,
- indexed component get/set,
- ``+``, ``-`` and left scalar multiplication ``scalar * vector``,
- the infinity norm (maximum absolute component).

Two kinds of value satisfy this contract:

1. **JAX arrays** (and anything :func:`as_vector` can coerce to one: Python
   floats, sequences, NumPy arrays). A 0-d array is a one-component vector;
   a 1-d array of width ``n`` is an ``n``-component vector. The fixed widths
   in :data:`SIMD_WIDTHS` are the ones exercised by the test-suite, but any
   1-d width works. Arrays are immutable, so :func:`with_component` returns
   an updated copy.
2. **User-defined vectors** implementing the :class:`OdeVector` protocol.
   Subclassing the protocol explicitly inherits the default ``inf_norm``.

The module-level functions dispatch between the two, so the stepper and the
dense sampler are written once against this contract.
"""

from __future__ import annotations

import copy
import math
import sys
from typing import Protocol, runtime_checkable

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from rkdense.config import get_dtype

SIMD_WIDTHS = (2, 3, 4, 8, 16, 32, 64)


@runtime_checkable
class OdeVector(Protocol):
    """Protocol for user-defined, fixed-dimension state vectors.

    Implementations behave as values: arithmetic returns new instances and
    no state is shared between them.

    Attributes:
        scalar_count: Number of scalar components. Constant for all vectors
            of one integration.
    """

    scalar_count: int

    @classmethod
    def repeating(cls, value: float) -> OdeVector:
        """Return a vector with every component set to ``value``."""
        ...

    def __getitem__(self, index: int) -> float: ...

    def __setitem__(self, index: int, value: float) -> None: ...

    def __add__(self, other: OdeVector) -> OdeVector: ...

    def __sub__(self, other: OdeVector) -> OdeVector: ...

    def __rmul__(self, scalar: float) -> OdeVector: ...

    def inf_norm(self) -> float:
        """Return the maximum absolute component."""
        return max(abs(self[i]) for i in range(self.scalar_count))


def is_user_vector(x) -> bool:
    """Return ``True`` if ``x`` implements :class:`OdeVector` itself."""
    return hasattr(x, "scalar_count") and hasattr(x, "inf_norm") and hasattr(type(x), "repeating")


def as_vector(x):
    """Coerce ``x`` to a state vector.

    User-defined vectors pass through untouched. Everything else is
    converted to a JAX array of the configured dtype.

    Args:
        x: Python scalar, sequence, NumPy/JAX array, or :class:`OdeVector`.

    Returns:
        The vector, as a 0-d or 1-d ``jax.Array`` or the user vector itself.

    Raises:
        ValueError: If ``x`` converts to an array with more than one
            dimension.
    """
    if is_user_vector(x):
        return x
    arr = jnp.asarray(x, dtype=get_dtype())
    if arr.ndim > 1:
        raise ValueError(f"State vectors must be 0-d or 1-d, got shape {arr.shape}")
    return arr


def scalar_count(v) -> int:
    """Number of scalar components of ``v`` (``1`` for scalars)."""
    if is_user_vector(v):
        return int(v.scalar_count)
    shape = jnp.shape(v)
    return 1 if len(shape) == 0 else int(shape[0])


def repeating(value: float, like):
    """Return a vector shaped like ``like`` with every component ``value``.

    Args:
        value: Fill value.
        like: Template vector; determines type, width and dtype.

    Returns:
        A new vector of the same kind as ``like``.
    """
    if is_user_vector(like):
        return type(like).repeating(value)
    return jnp.full_like(like, value)


def component(v, index: int):
    """Return component ``index`` of ``v``.

    Raises:
        IndexError: If ``index`` is outside ``range(scalar_count(v))``.
    """
    _check_index(v, index)
    if is_user_vector(v) or jnp.ndim(v) > 0:
        return v[index]
    return v


def with_component(v, index: int, value: float):
    """Return a copy of ``v`` with component ``index`` replaced by ``value``.

    Raises:
        IndexError: If ``index`` is outside ``range(scalar_count(v))``.
    """
    _check_index(v, index)
    if is_user_vector(v):
        updated = copy.deepcopy(v)
        updated[index] = value
        return updated
    arr = jnp.asarray(v)
    if arr.ndim == 0:
        return jnp.asarray(value, dtype=arr.dtype)
    return arr.at[index].set(value)


def inf_norm(v: ArrayLike | OdeVector) -> Array | float:
    """Infinity norm: the maximum absolute component of ``v``.

    Traceable under ``jax.jit`` for array inputs.
    """
    if is_user_vector(v):
        return v.inf_norm()
    return jnp.max(jnp.abs(v))


def is_finite(v) -> bool:
    """Return ``True`` if every component of ``v`` is finite."""
    if is_user_vector(v):
        return all(math.isfinite(float(v[i])) for i in range(v.scalar_count))
    return bool(jnp.all(jnp.isfinite(v)))


def resolution(v) -> float:
    """Smallest relative change the components of ``v`` can represent.

    The machine epsilon of the array dtype, or of a Python float for
    user-defined vectors.
    """
    if is_user_vector(v):
        return sys.float_info.epsilon
    return float(jnp.finfo(jnp.asarray(v).dtype).eps)


def linear_combination(coeffs, vectors, like):
    """Return ``sum(c * v for c, v in zip(coeffs, vectors))``.

    Terms with a coefficient of exactly ``0.0`` are skipped, which also
    keeps a non-finite vector behind a zero weight out of the sum. If every
    coefficient is zero the result is the zero vector shaped like ``like``.

    Args:
        coeffs: Python floats (tableau entries or dense weights).
        vectors: Vectors of the same kind as ``like``.
        like: Template for the zero vector.

    Returns:
        The weighted sum.
    """
    total = None
    for coeff, vec in zip(coeffs, vectors):
        if coeff == 0.0:
            continue
        term = coeff * vec
        total = term if total is None else total + term
    if total is None:
        return repeating(0.0, like)
    return total


def _check_index(v, index: int) -> None:
    n = scalar_count(v)
    if not 0 <= index < n:
        raise IndexError(f"Component index {index} out of range for {n}-component vector")
