"""Butcher tableaux for embedded Runge-Kutta methods with dense output.

A :class:`Tableau` is an immutable record of the coefficients defining one
embedded explicit Runge-Kutta pair plus its continuous extension:

.. math::

    k_i = f\\left(y_n + h \\sum_{j<i} a_{ij} k_j,\\; t_n + c_i h\\right)

    y_{n+1} = y_n + h \\sum_i \\hat{b}_i k_i

    \\text{err} = h \\sum_i (\\hat{b}_i - b_i) k_i

    y(t_n + \\sigma h) = y_n + h \\sum_i
        \\Big(\\sum_{j=0}^{d-1} p_{ij} \\sigma^{j+1}\\Big) k_i

``b_hat`` holds the higher-order weights used to advance the solution and
``b`` the lower-order weights, which only enter the error estimate. Swapping
them changes the effective order of the method.

Coefficients are stored as Python tuples and cast at call time, so a
tableau can be closed over inside ``jax.jit`` without becoming a tracer.

Available tableaux:

- :data:`DORMAND_PRINCE_54` -- Dormand-Prince 5(4), 7 stages, FSAL,
  5th-order dense output.
- :data:`BOGACKI_SHAMPINE_32` -- Bogacki-Shampine 3(2), 4 stages, FSAL,
  cubic Hermite dense output.
- :data:`HEUN_EULER_21` -- Heun-Euler 2(1), 2 stages, not FSAL,
  quadratic dense output.
"""

from __future__ import annotations

from typing import NamedTuple


class Tableau(NamedTuple):
    """Coefficients of an embedded explicit Runge-Kutta method.

    Attributes:
        name: Human-readable method name.
        stages: Number of stage evaluations per step.
        order: Consistency order of the propagated (``b_hat``) solution.
            Sets the step-size control exponent ``1 / (order + 1)``.
        dense_order: Polynomial degree of the dense-output interpolant.
        c: Nodes, length ``stages``.
        a: Coupling matrix as ``stages`` rows of length ``stages``, strictly
            lower triangular.
        b: Lower-order weights (error estimate only), length ``stages``.
        b_hat: Higher-order weights (propagation), length ``stages``.
        p: Dense-output coefficients, ``stages`` rows of length
            ``dense_order``. Row ``i`` holds the coefficients of
            ``sigma**1 .. sigma**dense_order`` in the weight ``b_i(sigma)``.
    """

    name: str
    stages: int
    order: int
    dense_order: int
    c: tuple[float, ...]
    a: tuple[tuple[float, ...], ...]
    b: tuple[float, ...]
    b_hat: tuple[float, ...]
    p: tuple[tuple[float, ...], ...]

    @property
    def is_fsal(self) -> bool:
        """Whether the last stage of a step equals ``f`` at the new point.

        True when ``c[-1] == 1``, the last coupling row equals ``b_hat`` and
        ``b_hat[-1] == 0``. The last stage derivative of an accepted step can
        then be reused as the first stage of the next step.
        """
        s = self.stages
        return (
            self.c[s - 1] == 1.0
            and self.b_hat[s - 1] == 0.0
            and tuple(self.a[s - 1][: s - 1]) == tuple(self.b_hat[: s - 1])
        )

    def validate(self) -> None:
        """Check the tableau for structural consistency.

        Raises:
            ValueError: If a dimension does not match ``stages`` or
                ``dense_order``, if ``a`` is not strictly lower triangular,
                or if an order is not positive.
        """
        s = self.stages
        if s < 2:
            raise ValueError(f"{self.name}: stages must be >= 2, got {s}")
        if self.order < 1 or self.dense_order < 1:
            raise ValueError(f"{self.name}: order and dense_order must be positive")
        for label, vec in (("c", self.c), ("b", self.b), ("b_hat", self.b_hat)):
            if len(vec) != s:
                raise ValueError(f"{self.name}: len({label}) = {len(vec)}, expected {s}")
        if len(self.a) != s or any(len(row) != s for row in self.a):
            raise ValueError(f"{self.name}: a must be {s}x{s}")
        for i, row in enumerate(self.a):
            if any(row[j] != 0.0 for j in range(i, s)):
                raise ValueError(f"{self.name}: a is not strictly lower triangular in row {i}")
        if len(self.p) != s or any(len(row) != self.dense_order for row in self.p):
            raise ValueError(f"{self.name}: p must be {s}x{self.dense_order}")


# Dormand & Prince (1980), with the continuous extension of Shampine (1986).
_DP_P0 = 11282082432.0
_DP_P2 = 32700410799.0
_DP_P3 = 5641041216.0
_DP_P4 = 199316789632.0
_DP_P5 = 2467955532.0
_DP_P6 = 29380423.0

DORMAND_PRINCE_54 = Tableau(
    name="Dormand-Prince 5(4)",
    stages=7,
    order=5,
    dense_order=5,
    c=(0.0, 1.0 / 5.0, 3.0 / 10.0, 4.0 / 5.0, 8.0 / 9.0, 1.0, 1.0),
    a=(
        (0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0),
        (1.0 / 5.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0),
        (3.0 / 40.0, 9.0 / 40.0, 0.0, 0.0, 0.0, 0.0, 0.0),
        (44.0 / 45.0, -56.0 / 15.0, 32.0 / 9.0, 0.0, 0.0, 0.0, 0.0),
        (19372.0 / 6561.0, -25360.0 / 2187.0, 64448.0 / 6561.0, -212.0 / 729.0, 0.0, 0.0, 0.0),
        (
            9017.0 / 3168.0,
            -355.0 / 33.0,
            46732.0 / 5247.0,
            49.0 / 176.0,
            -5103.0 / 18656.0,
            0.0,
            0.0,
        ),
        (35.0 / 384.0, 0.0, 500.0 / 1113.0, 125.0 / 192.0, -2187.0 / 6784.0, 11.0 / 84.0, 0.0),
    ),
    # 4th-order weights (error estimation)
    b=(
        5179.0 / 57600.0,
        0.0,
        7571.0 / 16695.0,
        393.0 / 640.0,
        -92097.0 / 339200.0,
        187.0 / 2100.0,
        1.0 / 40.0,
    ),
    # 5th-order weights (propagation), equal to the last row of a
    b_hat=(35.0 / 384.0, 0.0, 500.0 / 1113.0, 125.0 / 192.0, -2187.0 / 6784.0, 11.0 / 84.0, 0.0),
    p=(
        (
            1.0,
            -32272833064.0 / _DP_P0,
            34969693132.0 / _DP_P0,
            -13107642775.0 / _DP_P0,
            157015080.0 / _DP_P0,
        ),
        (0.0, 0.0, 0.0, 0.0, 0.0),
        (
            0.0,
            1323431896.0 * 100.0 / _DP_P2,
            -2074956840.0 * 100.0 / _DP_P2,
            914128567.0 * 100.0 / _DP_P2,
            -15701508.0 * 100.0 / _DP_P2,
        ),
        (
            0.0,
            -889289856.0 * 25.0 / _DP_P3,
            2460397220.0 * 25.0 / _DP_P3,
            -1518414297.0 * 25.0 / _DP_P3,
            94209048.0 * 25.0 / _DP_P3,
        ),
        (
            0.0,
            259006536.0 * 2187.0 / _DP_P4,
            -687873124.0 * 2187.0 / _DP_P4,
            451824525.0 * 2187.0 / _DP_P4,
            -52338360.0 * 2187.0 / _DP_P4,
        ),
        (
            0.0,
            -361440756.0 * 11.0 / _DP_P5,
            946554244.0 * 11.0 / _DP_P5,
            -661884105.0 * 11.0 / _DP_P5,
            106151040.0 * 11.0 / _DP_P5,
        ),
        (
            0.0,
            44764047.0 / _DP_P6,
            -127201567.0 / _DP_P6,
            90730570.0 / _DP_P6,
            -8293050.0 / _DP_P6,
        ),
    ),
)

# Bogacki & Shampine (1989). The dense output is the cubic Hermite
# interpolant through (y_n, k_0) and (y_{n+1}, k_3), rewritten per stage.
BOGACKI_SHAMPINE_32 = Tableau(
    name="Bogacki-Shampine 3(2)",
    stages=4,
    order=3,
    dense_order=3,
    c=(0.0, 1.0 / 2.0, 3.0 / 4.0, 1.0),
    a=(
        (0.0, 0.0, 0.0, 0.0),
        (1.0 / 2.0, 0.0, 0.0, 0.0),
        (0.0, 3.0 / 4.0, 0.0, 0.0),
        (2.0 / 9.0, 1.0 / 3.0, 4.0 / 9.0, 0.0),
    ),
    b=(7.0 / 24.0, 1.0 / 4.0, 1.0 / 3.0, 1.0 / 8.0),
    b_hat=(2.0 / 9.0, 1.0 / 3.0, 4.0 / 9.0, 0.0),
    p=(
        (1.0, -4.0 / 3.0, 5.0 / 9.0),
        (0.0, 1.0, -2.0 / 3.0),
        (0.0, 4.0 / 3.0, -8.0 / 9.0),
        (0.0, -1.0, 1.0),
    ),
)

# Heun-Euler 2(1), not FSAL. The dense output integrates the derivative
# interpolated linearly between k_0 and k_1.
HEUN_EULER_21 = Tableau(
    name="Heun-Euler 2(1)",
    stages=2,
    order=2,
    dense_order=2,
    c=(0.0, 1.0),
    a=(
        (0.0, 0.0),
        (1.0, 0.0),
    ),
    b=(1.0, 0.0),
    b_hat=(1.0 / 2.0, 1.0 / 2.0),
    p=(
        (1.0, -1.0 / 2.0),
        (0.0, 1.0 / 2.0),
    ),
)
