import jax.numpy as jnp
import pytest

from rkdense.config import set_dtype
from rkdense.vector import OdeVector


@pytest.fixture(autouse=True)
def _ensure_float64():
    """Restore float64 precision before every test.

    float64 is the library default, but a test that narrows the dtype must
    not leak it into the next one. test_config.py has its own autouse
    fixture that starts each of its tests in float32.
    """
    set_dtype(jnp.float64)


class Vec3(OdeVector):
    """Plain-Python three-component state used to exercise the vector protocol."""

    scalar_count = 3

    def __init__(self, x, y, z):
        self.data = [float(x), float(y), float(z)]

    @classmethod
    def repeating(cls, value):
        return cls(value, value, value)

    def __getitem__(self, index):
        return self.data[index]

    def __setitem__(self, index, value):
        self.data[index] = float(value)

    def __add__(self, other):
        return Vec3(*(a + b for a, b in zip(self.data, other.data)))

    def __sub__(self, other):
        return Vec3(*(a - b for a, b in zip(self.data, other.data)))

    def __rmul__(self, scalar):
        s = float(scalar)
        return Vec3(*(s * a for a in self.data))

    def __repr__(self):
        return f"Vec3({self.data[0]!r}, {self.data[1]!r}, {self.data[2]!r})"


@pytest.fixture
def vec3():
    """The :class:`Vec3` user-defined vector type."""
    return Vec3
