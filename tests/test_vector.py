"""Tests for the rkdense.vector module.

Tests cover:
- Coercion of scalars, sequences and arrays
- Component access and replacement
- Infinity norm and finiteness checks
- Linear combinations with zero-weight skipping
- The OdeVector protocol with a user-defined type
"""

import sys

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from rkdense.vector import (
    SIMD_WIDTHS,
    OdeVector,
    as_vector,
    component,
    inf_norm,
    is_finite,
    is_user_vector,
    linear_combination,
    repeating,
    resolution,
    scalar_count,
    with_component,
)


class TestAsVector:
    def test_python_float(self):
        v = as_vector(1.5)
        assert v.ndim == 0
        assert v.dtype == jnp.float64
        assert float(v) == 1.5

    def test_list(self):
        v = as_vector([1.0, 2.0, 3.0])
        assert v.shape == (3,)
        assert v.dtype == jnp.float64

    def test_numpy_array(self):
        v = as_vector(np.array([1, 2]))
        assert v.shape == (2,)
        assert v.dtype == jnp.float64

    def test_matrix_raises(self):
        with pytest.raises(ValueError, match="0-d or 1-d"):
            as_vector(jnp.ones((2, 2)))

    def test_user_vector_passthrough(self, vec3):
        v = vec3(1.0, 2.0, 3.0)
        assert as_vector(v) is v


class TestScalarCount:
    def test_scalar(self):
        assert scalar_count(as_vector(2.0)) == 1

    def test_python_float(self):
        assert scalar_count(2.0) == 1

    @pytest.mark.parametrize("width", SIMD_WIDTHS)
    def test_fixed_widths(self, width):
        assert scalar_count(jnp.zeros(width)) == width

    def test_user_vector(self, vec3):
        assert scalar_count(vec3(0.0, 0.0, 0.0)) == 3


class TestRepeating:
    def test_like_array(self):
        v = repeating(2.5, jnp.zeros(4))
        assert jnp.array_equal(v, jnp.full(4, 2.5))

    def test_like_scalar(self):
        v = repeating(0.0, as_vector(3.0))
        assert v.ndim == 0
        assert float(v) == 0.0

    def test_like_user_vector(self, vec3):
        v = repeating(7.0, vec3(1.0, 2.0, 3.0))
        assert isinstance(v, vec3)
        assert v.data == [7.0, 7.0, 7.0]


class TestComponents:
    def test_get_array(self):
        v = jnp.array([1.0, -2.0, 3.0])
        assert float(component(v, 1)) == -2.0

    def test_get_scalar(self):
        assert float(component(as_vector(4.0), 0)) == 4.0

    def test_set_array_returns_copy(self):
        v = jnp.array([1.0, 2.0])
        w = with_component(v, 0, 9.0)
        assert jnp.array_equal(w, jnp.array([9.0, 2.0]))
        assert jnp.array_equal(v, jnp.array([1.0, 2.0]))

    def test_set_scalar(self):
        w = with_component(as_vector(1.0), 0, 5.0)
        assert float(w) == 5.0

    def test_set_user_vector_returns_copy(self, vec3):
        v = vec3(1.0, 2.0, 3.0)
        w = with_component(v, 2, -1.0)
        assert w.data == [1.0, 2.0, -1.0]
        assert v.data == [1.0, 2.0, 3.0]

    def test_index_out_of_range(self):
        with pytest.raises(IndexError):
            component(jnp.zeros(3), 3)

    def test_scalar_index_out_of_range(self):
        with pytest.raises(IndexError):
            with_component(as_vector(1.0), 1, 0.0)

    def test_negative_index(self):
        with pytest.raises(IndexError):
            component(jnp.zeros(3), -1)


class TestInfNorm:
    def test_array(self):
        assert float(inf_norm(jnp.array([1.0, -4.0, 2.0]))) == 4.0

    def test_scalar(self):
        assert float(inf_norm(as_vector(-3.0))) == 3.0

    @pytest.mark.parametrize("width", SIMD_WIDTHS)
    def test_fixed_widths(self, width):
        v = -jnp.arange(width, dtype=jnp.float64)
        assert float(inf_norm(v)) == width - 1

    def test_user_vector_default(self, vec3):
        """Subclassing OdeVector inherits the max-abs default."""
        assert inf_norm(vec3(1.0, -5.0, 2.0)) == 5.0

    def test_jit(self):
        v = jnp.array([0.5, -0.25])
        assert float(jax.jit(inf_norm)(v)) == 0.5


class TestIsFinite:
    def test_finite_array(self):
        assert is_finite(jnp.array([1.0, 2.0]))

    def test_nan_array(self):
        assert not is_finite(jnp.array([1.0, jnp.nan]))

    def test_inf_scalar(self):
        assert not is_finite(as_vector(jnp.inf))

    def test_user_vector(self, vec3):
        assert is_finite(vec3(1.0, 2.0, 3.0))
        assert not is_finite(vec3(1.0, float("inf"), 3.0))


class TestResolution:
    def test_float64_array(self):
        assert resolution(jnp.array([1.0, 2.0])) == float(np.finfo(np.float64).eps)

    def test_float32_array(self):
        v = jnp.array([1.0, 2.0], dtype=jnp.float32)
        assert resolution(v) == pytest.approx(float(np.finfo(np.float32).eps))

    def test_user_vector_uses_python_float(self, vec3):
        assert resolution(vec3(1.0, 2.0, 3.0)) == sys.float_info.epsilon


class TestLinearCombination:
    def test_weighted_sum(self):
        vs = (jnp.array([1.0, 0.0]), jnp.array([0.0, 1.0]))
        out = linear_combination((2.0, 3.0), vs, vs[0])
        assert jnp.allclose(out, jnp.array([2.0, 3.0]))

    def test_all_zero_coefficients(self):
        vs = (jnp.array([1.0, 1.0]),)
        out = linear_combination((0.0,), vs, vs[0])
        assert jnp.array_equal(out, jnp.zeros(2))

    def test_zero_weight_skips_nan(self):
        vs = (jnp.array([1.0]), jnp.array([jnp.nan]))
        out = linear_combination((1.0, 0.0), vs, vs[0])
        assert jnp.array_equal(out, jnp.array([1.0]))

    def test_user_vector(self, vec3):
        vs = (vec3(1.0, 2.0, 3.0), vec3(1.0, 1.0, 1.0))
        out = linear_combination((0.5, -1.0), vs, vs[0])
        assert out.data == [-0.5, 0.0, 0.5]


class TestProtocol:
    def test_user_vector_detected(self, vec3):
        assert is_user_vector(vec3(0.0, 0.0, 0.0))

    def test_isinstance(self, vec3):
        assert isinstance(vec3(0.0, 0.0, 0.0), OdeVector)

    def test_array_not_user_vector(self):
        assert not is_user_vector(jnp.zeros(3))

    def test_float_not_user_vector(self):
        assert not is_user_vector(1.0)
