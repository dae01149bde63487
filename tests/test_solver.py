"""
Tests for the SciPy solver adapter and the toy problem
"""

import json
import numpy as np
import pytest
from blocknlp import (
    ConfigurationError,
    ScipySolver,
    SolverConfig,
    check_jacobian,
)
from blocknlp.cli import main
from blocknlp.toy import build_toy_problem


class TestToyProblem:
    """Test the assembled toy problem before solving."""

    def test_layout(self):
        nlp = build_toy_problem()
        assert nlp.get_number_of_optimization_variables() == 2
        assert nlp.get_number_of_constraints() == 1
        np.testing.assert_array_equal(nlp.get_variable_values(), [3.5, 1.5])

    def test_values_at_start(self):
        nlp = build_toy_problem()
        x = nlp.get_variable_values()
        np.testing.assert_array_almost_equal(nlp.evaluate_constraints(x), [3.5 ** 2 + 1.5])
        assert nlp.evaluate_cost_function(x) == pytest.approx(-0.25)

    def test_jacobian_at_start(self):
        nlp = build_toy_problem()
        nlp.set_variables(np.array([3.5, 1.5]))
        np.testing.assert_array_almost_equal(nlp.get_jacobian_of_constraints().toarray(), [[7.0, 1.0]])
        np.testing.assert_array_almost_equal(nlp.get_jacobian_of_costs().toarray(), [[0.0, 1.0]])

    def test_jacobian_check(self):
        assert check_jacobian(build_toy_problem(), np.array([0.4, 0.2])).passed


class TestScipySolver:
    """Test solving through scipy.optimize.minimize."""

    def test_slsqp(self):
        nlp = build_toy_problem()
        result = ScipySolver(SolverConfig(method="SLSQP")).solve(nlp)
        assert result.success
        assert abs(result.x[0]) == pytest.approx(1.0, abs=1e-4)
        assert result.x[1] == pytest.approx(0.0, abs=1e-4)
        assert result.cost == pytest.approx(-4.0, abs=1e-3)
        assert result.constraint_violation < 1e-6

    def test_solution_written_back(self):
        nlp = build_toy_problem()
        result = ScipySolver().solve(nlp)
        np.testing.assert_array_equal(nlp.get_variable_values(), result.x)

    def test_iterates_saved(self):
        nlp = build_toy_problem()
        result = ScipySolver(SolverConfig(save_iterates=True)).solve(nlp)
        assert nlp.get_iteration_count() >= 1
        np.testing.assert_array_equal(nlp.get_iterates()[-1], result.x)

    def test_iterates_not_saved(self):
        nlp = build_toy_problem()
        ScipySolver(SolverConfig(save_iterates=False)).solve(nlp)
        assert nlp.get_iteration_count() == 0

    def test_trust_constr(self):
        nlp = build_toy_problem()
        config = SolverConfig(method="trust-constr", max_iter=2000)
        result = ScipySolver(config).solve(nlp, x0=np.array([0.5, 1.5]))
        assert abs(result.x[0]) == pytest.approx(1.0, abs=1e-2)
        assert result.cost == pytest.approx(-4.0, abs=5e-2)

    def test_unknown_method(self):
        with pytest.raises(ConfigurationError):
            ScipySolver(SolverConfig(method="nelder-mead"))

    def test_default_config(self):
        solver = ScipySolver()
        assert solver.config == SolverConfig()
        assert solver.config.method == "SLSQP"


class TestCLI:
    """Test the command-line entry point."""

    def test_solve_writes_output(self, tmp_path):
        out = tmp_path / "result.json"
        assert main(["solve", "--output", str(out)]) == 0
        data = json.loads(out.read_text())
        assert data["method"] == "SLSQP"
        assert abs(data["x"][0]) == pytest.approx(1.0, abs=1e-4)
        assert data["layout"]["variables"] == {"var_set1": [0, 2]}

    def test_version(self, capsys):
        assert main(["version"]) == 0
        assert "blocknlp" in capsys.readouterr().out
