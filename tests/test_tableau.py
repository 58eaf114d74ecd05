"""Tests for the rkdense.tableau module.

Checks the published coefficients against the Runge-Kutta order conditions
rather than against copies of themselves.
"""

import pytest

from rkdense.dense import dense_weights
from rkdense.tableau import BOGACKI_SHAMPINE_32, DORMAND_PRINCE_54, HEUN_EULER_21

_TABLEAUX = [DORMAND_PRINCE_54, BOGACKI_SHAMPINE_32]


def _quadrature(weights, c, power):
    return sum(w * ci**power for w, ci in zip(weights, c))


class TestStructure:
    @pytest.mark.parametrize("tableau", _TABLEAUX, ids=lambda t: t.name)
    def test_validate(self, tableau):
        tableau.validate()

    @pytest.mark.parametrize("tableau", _TABLEAUX, ids=lambda t: t.name)
    def test_fsal(self, tableau):
        assert tableau.is_fsal

    def test_heun_euler_not_fsal(self):
        HEUN_EULER_21.validate()
        assert not HEUN_EULER_21.is_fsal

    def test_dormand_prince_shape(self):
        assert DORMAND_PRINCE_54.stages == 7
        assert DORMAND_PRINCE_54.order == 5
        assert DORMAND_PRINCE_54.dense_order == 5
        assert len(DORMAND_PRINCE_54.p) == 7
        assert all(len(row) == 5 for row in DORMAND_PRINCE_54.p)

    def test_dormand_prince_propagates_fifth_order_weights(self):
        """b_hat holds the 5th-order weights, b the 4th-order ones."""
        assert DORMAND_PRINCE_54.b_hat[0] == 35.0 / 384.0
        assert DORMAND_PRINCE_54.b[0] == 5179.0 / 57600.0
        assert DORMAND_PRINCE_54.b_hat[6] == 0.0
        assert DORMAND_PRINCE_54.b[6] == 1.0 / 40.0


class TestOrderConditions:
    @pytest.mark.parametrize("tableau", _TABLEAUX, ids=lambda t: t.name)
    def test_row_sum_condition(self, tableau):
        """sum_j a_ij == c_i for every stage."""
        for i in range(tableau.stages):
            assert sum(tableau.a[i]) == pytest.approx(tableau.c[i], abs=1e-13)

    @pytest.mark.parametrize("tableau", _TABLEAUX, ids=lambda t: t.name)
    def test_weights_sum_to_one(self, tableau):
        assert sum(tableau.b) == pytest.approx(1.0, abs=1e-13)
        assert sum(tableau.b_hat) == pytest.approx(1.0, abs=1e-13)

    def test_dormand_prince_fifth_order_quadrature(self):
        """b_hat integrates t^q exactly for q <= 4."""
        tab = DORMAND_PRINCE_54
        for q in range(5):
            assert _quadrature(tab.b_hat, tab.c, q) == pytest.approx(1.0 / (q + 1), abs=1e-13)

    def test_dormand_prince_fourth_order_quadrature(self):
        """b integrates t^q exactly for q <= 3 but not t^4."""
        tab = DORMAND_PRINCE_54
        for q in range(4):
            assert _quadrature(tab.b, tab.c, q) == pytest.approx(1.0 / (q + 1), abs=1e-13)
        assert abs(_quadrature(tab.b, tab.c, 4) - 0.2) > 1e-6

    def test_bogacki_shampine_third_order_quadrature(self):
        tab = BOGACKI_SHAMPINE_32
        for q in range(3):
            assert _quadrature(tab.b_hat, tab.c, q) == pytest.approx(1.0 / (q + 1), abs=1e-13)


class TestDenseCoefficients:
    @pytest.mark.parametrize("tableau", _TABLEAUX + [HEUN_EULER_21], ids=lambda t: t.name)
    def test_end_of_step_matches_b_hat(self, tableau):
        weights = dense_weights(tableau, 1.0)
        for w, bh in zip(weights, tableau.b_hat):
            assert w == pytest.approx(bh, abs=1e-12)

    @pytest.mark.parametrize("tableau", _TABLEAUX + [HEUN_EULER_21], ids=lambda t: t.name)
    def test_start_of_step_is_zero(self, tableau):
        assert all(w == 0.0 for w in dense_weights(tableau, 0.0))

    @pytest.mark.parametrize("tableau", _TABLEAUX, ids=lambda t: t.name)
    @pytest.mark.parametrize("sigma", [0.1, 0.37, 0.5, 0.9])
    def test_consistency(self, tableau, sigma):
        """sum_i b_i(sigma) == sigma, so dy/dt = 1 is reproduced exactly."""
        assert sum(dense_weights(tableau, sigma)) == pytest.approx(sigma, abs=1e-12)


class TestValidate:
    def test_upper_triangular_entry_raises(self):
        a = tuple(tuple(row) for row in DORMAND_PRINCE_54.a)
        bad_a = (a[0], (a[1][0], 0.5) + a[1][2:]) + a[2:]
        bad = DORMAND_PRINCE_54._replace(a=bad_a)
        with pytest.raises(ValueError, match="strictly lower triangular"):
            bad.validate()

    def test_wrong_node_count_raises(self):
        bad = DORMAND_PRINCE_54._replace(c=DORMAND_PRINCE_54.c[:-1])
        with pytest.raises(ValueError, match="len\\(c\\)"):
            bad.validate()

    def test_wrong_dense_width_raises(self):
        bad = DORMAND_PRINCE_54._replace(dense_order=4)
        with pytest.raises(ValueError, match="p must be"):
            bad.validate()

    def test_non_square_a_raises(self):
        bad = BOGACKI_SHAMPINE_32._replace(a=BOGACKI_SHAMPINE_32.a[:-1])
        with pytest.raises(ValueError, match="a must be"):
            bad.validate()

    def test_single_stage_raises(self):
        bad = HEUN_EULER_21._replace(stages=1)
        with pytest.raises(ValueError, match="stages"):
            bad.validate()
