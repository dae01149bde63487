"""
Tests for Variable, Constraint and Cost Blocks
"""

import gc
import numpy as np
import pytest
import scipy.sparse as sp
from blocknlp import (
    BlockAssembler,
    Bounds,
    ConfigurationError,
    ConstraintBlock,
    CostBlock,
    IllegalOperationError,
    VariableBlock,
    VariablesView,
)


class SpeedLimit(ConstraintBlock):
    """vel_0 + vel_1 <= 10, independent of pos."""

    def __init__(self):
        super().__init__(1, "speed_limit")

    def get_values(self):
        return np.array([np.sum(self.get_variables().values("vel"))])

    def get_bounds(self):
        return Bounds.from_list([(-np.inf, 10.0)])

    def fill_jacobian_block(self, var_set, jac_block):
        if var_set == "vel":
            jac_block[0, 0] = 1.0
            jac_block[0, 1] = 1.0


class Resizing(SpeedLimit):
    """Breaks the contract by resizing the block it was given."""

    def fill_jacobian_block(self, var_set, jac_block):
        jac_block.resize((1, 5))


class Squares(CostBlock):
    """sum(pos^2)"""

    def __init__(self):
        super().__init__("squares")

    def get_cost(self):
        x = self.get_variables().values("pos")
        return float(np.sum(x ** 2))

    def fill_jacobian_block(self, var_set, jac_block):
        if var_set == "pos":
            x = self.get_variables().values("pos")
            for j in range(len(x)):
                jac_block[0, j] = 2.0 * x[j]


class CachingConstraint(SpeedLimit):
    """Caches the width of 'vel' when linked."""

    def link_variables(self, variables):
        self.n_vel = variables.rows("vel")


def pos_vel():
    variables = BlockAssembler("variables")
    variables.append(VariableBlock(2, "pos", values=[1.0, 2.0]))
    variables.append(VariableBlock(2, "vel", values=[3.0, 4.0]))
    return variables


class TestVariableBlock:
    """Test variable blocks."""

    def test_zero_initialised(self):
        v = VariableBlock(4, "x")
        np.testing.assert_array_equal(v.get_values(), np.zeros(4))
        assert len(v.get_bounds()) == 4
        assert v.get_bounds().is_unbounded

    def test_seeded(self):
        v = VariableBlock(2, "x", values=[1.0, -1.0], bounds=[(0.0, 2.0), (-2.0, 0.0)])
        np.testing.assert_array_equal(v.get_values(), [1.0, -1.0])
        assert v.get_bounds()[1] == (-2.0, 0.0)

    def test_lengths_match_rows(self):
        for n in (0, 1, 7):
            v = VariableBlock(n, "x")
            assert len(v.get_values()) == v.rows == n
            assert len(v.get_bounds()) == n

    def test_negative_rows(self):
        with pytest.raises(ConfigurationError):
            VariableBlock(-1, "x")

    def test_bad_seed_length(self):
        with pytest.raises(ConfigurationError):
            VariableBlock(2, "x", values=[1.0])
        with pytest.raises(ConfigurationError):
            VariableBlock(2, "x", bounds=[(0.0, 1.0)])

    def test_set_variables_overwrites(self):
        v = VariableBlock(2, "x", bounds=[(0.0, 1.0), (0.0, 1.0)])
        # Values outside the bounds are stored as they are
        v.set_variables(np.array([5.0, -5.0]))
        np.testing.assert_array_equal(v.get_values(), [5.0, -5.0])

    def test_set_variables_wrong_length(self):
        v = VariableBlock(2, "x")
        with pytest.raises(ConfigurationError):
            v.set_variables(np.zeros(3))

    def test_get_values_is_copy(self):
        v = VariableBlock(2, "x")
        x = v.get_values()
        x[0] = 99.0
        assert v.get_values()[0] == 0.0

    def test_no_jacobian(self):
        v = VariableBlock(2, "x")
        with pytest.raises(IllegalOperationError):
            v.get_jacobian()
        # Also a TypeError, as it is framework misuse
        with pytest.raises(TypeError):
            v.get_jacobian()

    def test_cannot_override_jacobian(self):
        with pytest.raises(TypeError):
            class Bad(VariableBlock):
                def get_jacobian(self):
                    return sp.csr_matrix((2, 2))


class TestConstraintBlock:
    """Test Jacobian assembly of constraint blocks."""

    def test_end_to_end_jacobian(self):
        c = SpeedLimit()
        variables = pos_vel()
        c.link_variables_all(variables)
        J = c.get_jacobian()
        assert sp.issparse(J)
        assert J.shape == (1, 4)
        np.testing.assert_array_equal(J.toarray(), [[0.0, 0.0, 1.0, 1.0]])

    def test_untouched_block_is_structural_zero(self):
        c = SpeedLimit()
        variables = pos_vel()
        c.link_variables_all(variables)
        J = c.get_jacobian().tocsc()
        assert J[:, 0:2].nnz == 0
        assert J.nnz == 2

    def test_values(self):
        c = SpeedLimit()
        variables = pos_vel()
        c.link_variables_all(variables)
        np.testing.assert_array_equal(c.get_values(), [7.0])

    def test_column_position_follows_order(self):
        variables = BlockAssembler("variables")
        variables.append(VariableBlock(2, "vel"))
        variables.append(VariableBlock(3, "pos"))
        c = SpeedLimit()
        c.link_variables_all(variables)
        np.testing.assert_array_equal(c.get_jacobian().toarray(), [[1.0, 1.0, 0.0, 0.0, 0.0]])

    def test_zero_rows(self):
        class Empty(ConstraintBlock):
            def get_values(self):
                return np.zeros(0)

            def get_bounds(self):
                return Bounds.unbounded(0)

            def fill_jacobian_block(self, var_set, jac_block):
                pass

        c = Empty(0, "empty")
        variables = pos_vel()
        c.link_variables_all(variables)
        assert c.get_jacobian().shape == (0, 4)

    def test_resized_block_rejected(self):
        c = Resizing()
        variables = pos_vel()
        c.link_variables_all(variables)
        with pytest.raises(ConfigurationError):
            c.get_jacobian()

    def test_set_variables_refused(self):
        c = SpeedLimit()
        with pytest.raises(IllegalOperationError):
            c.set_variables(np.zeros(1))

    def test_unlinked(self):
        c = SpeedLimit()
        assert not c.is_linked
        with pytest.raises(ConfigurationError):
            c.get_values()

    def test_link_once(self):
        variables = pos_vel()
        c = SpeedLimit()
        c.link_variables_all(variables)
        assert c.is_linked
        with pytest.raises(ConfigurationError):
            c.link_variables_all(variables)

    def test_link_hook(self):
        c = CachingConstraint()
        variables = pos_vel()
        c.link_variables_all(variables)
        assert c.n_vel == 2

    def test_cannot_override_jacobian(self):
        with pytest.raises(TypeError):
            class Bad(SpeedLimit):
                def get_jacobian(self):
                    return sp.csr_matrix((1, 4))

    def test_sees_current_values(self):
        variables = pos_vel()
        c = SpeedLimit()
        c.link_variables_all(variables)
        variables.set_variables(np.array([0.0, 0.0, 1.0, 1.5]))
        np.testing.assert_array_equal(c.get_values(), [2.5])


class TestVariablesView:
    """Test the read-only, non-owning variable handle."""

    def test_read_access(self):
        variables = pos_vel()
        view = VariablesView(variables)
        assert view.n_vars == 4
        assert view.names() == ("pos", "vel")
        assert "vel" in view
        assert view.column_range("vel") == (2, 2)
        np.testing.assert_array_equal(view.values("vel"), [3.0, 4.0])
        np.testing.assert_array_equal(view.get_values(), [1.0, 2.0, 3.0, 4.0])

    def test_values_read_only(self):
        variables = pos_vel()
        view = VariablesView(variables)
        x = view.values("pos")
        with pytest.raises(ValueError):
            x[0] = 10.0
        np.testing.assert_array_equal(variables.get_component("pos").get_values(), [1.0, 2.0])

        b = view.bounds("pos")
        with pytest.raises(ValueError):
            b.upper[0] = 99.0
        with pytest.raises(ValueError):
            b.lower[1] = -99.0
        assert variables.get_component("pos").get_bounds()[0] == (-np.inf, np.inf)

    def test_no_mutation_methods(self):
        variables = pos_vel()
        view = VariablesView(variables)
        assert not hasattr(view, "set_variables")

    def test_does_not_own_variables(self):
        variables = pos_vel()
        c = SpeedLimit()
        c.link_variables_all(variables)
        del variables
        gc.collect()
        with pytest.raises(ConfigurationError):
            c.get_values()


class TestCostBlock:
    """Test cost blocks."""

    def test_shape(self):
        k = Squares()
        variables = pos_vel()
        k.link_variables_all(variables)
        assert k.rows == 1
        assert len(k.get_values()) == 1
        bounds = k.get_bounds()
        assert len(bounds) == 1
        assert bounds[0] == (-np.inf, np.inf)

    def test_value(self):
        k = Squares()
        variables = pos_vel()
        k.link_variables_all(variables)
        np.testing.assert_array_almost_equal(k.get_values(), [5.0])

    def test_gradient(self):
        k = Squares()
        variables = pos_vel()
        k.link_variables_all(variables)
        np.testing.assert_array_almost_equal(k.get_jacobian().toarray(), [[2.0, 4.0, 0.0, 0.0]])

    def test_set_variables_refused(self):
        with pytest.raises(IllegalOperationError):
            Squares().set_variables(np.zeros(1))

    def test_cannot_override_values(self):
        with pytest.raises(TypeError):
            class Bad(Squares):
                def get_values(self):
                    return np.zeros(2)
