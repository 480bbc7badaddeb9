"""
Tests for the GLWB fair-fee solver.

[T1] Fair fee: cost(fee) = target, found by bisection on a fixed set of
paths. The gross guarantee cost rises with the fee; the net cost falls.
"""

import logging

import pytest

from glwb_pricing.errors import InvalidConfigurationError
from glwb_pricing.glwb.fair_fee import FairFeeResult, solve_fair_fee
from glwb_pricing.glwb.path_sim import GLWBSimulator, simulate


@pytest.fixture
def solver_simulator(fast_simulator: GLWBSimulator) -> GLWBSimulator:
    return GLWBSimulator(
        config=fast_simulator.config,
        market=fast_simulator.market,
        n_paths=100,
        mortality=fast_simulator.mortality,
        seed=11,
    )


class TestSolverValidation:
    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"fee_bounds": (0.02, 0.01)}, "fee_bounds"),
            ({"fee_bounds": (0.01, 0.01)}, "fee_bounds"),
            ({"fee_bounds": (-0.01, 0.02)}, "fee_bounds"),
            ({"max_iter": 0}, "max_iter"),
            ({"tol": 0.0}, "tol"),
            ({"objective": "price"}, "objective"),
        ],
    )
    def test_invalid_arguments(
        self,
        solver_simulator: GLWBSimulator,
        glwb_caplog: pytest.LogCaptureFixture,
        kwargs: dict,
        match: str,
    ) -> None:
        with pytest.raises(InvalidConfigurationError, match=match):
            solve_fair_fee(solver_simulator, 100_000, 65, **kwargs)
        assert "Simulating" not in glwb_caplog.text


class TestGuaranteeCostObjective:
    def test_converged_cost_reproducible(self, solver_simulator: GLWBSimulator) -> None:
        """Repricing at the solved fee with the same seed reproduces the target."""
        tol = 2e-3
        target = solver_simulator.with_config(
            solver_simulator.config.with_fee(0.015)
        ).price(100_000, 65, max_age=95).guarantee_cost

        result = solve_fair_fee(
            solver_simulator,
            100_000,
            65,
            target_cost=target,
            tol=tol,
            fee_bounds=(0.0, 0.10),
            max_age=95,
        )

        assert result.converged
        assert result.objective == "guarantee_cost"
        repriced = simulate(
            solver_simulator.config.with_fee(result.fee_rate),
            solver_simulator.market,
            solver_simulator.mortality,
            100_000,
            65,
            max_age=95,
            n_paths=solver_simulator.n_paths,
            seed=solver_simulator.seed,
        )
        assert abs(repriced.guarantee_cost - target) < tol
        assert repriced.guarantee_cost == pytest.approx(result.guarantee_cost)

    def test_higher_target_raises_fee(self, solver_simulator: GLWBSimulator) -> None:
        """Gross cost rises with the fee, so a dearer target needs a higher fee."""
        kwargs = {"tol": 2e-3, "fee_bounds": (0.0, 0.10), "max_age": 95}
        base = solver_simulator.with_config(solver_simulator.config.with_fee(0.005))
        dear = solver_simulator.with_config(solver_simulator.config.with_fee(0.03))
        low_target = base.price(100_000, 65, max_age=95).guarantee_cost
        high_target = dear.price(100_000, 65, max_age=95).guarantee_cost

        low = solve_fair_fee(solver_simulator, 100_000, 65, target_cost=low_target, **kwargs)
        high = solve_fair_fee(solver_simulator, 100_000, 65, target_cost=high_target, **kwargs)

        assert low.converged and high.converged
        assert low.fee_rate < high.fee_rate

    def test_non_convergence_returns_bracket_midpoint(
        self,
        solver_simulator: GLWBSimulator,
        glwb_caplog: pytest.LogCaptureFixture,
    ) -> None:
        result = solve_fair_fee(
            solver_simulator, 100_000, 65, tol=1e-12, max_iter=1, fee_bounds=(0.0, 0.10)
        )

        assert not result.converged
        assert result.iterations == 1
        assert result.fee_rate in (pytest.approx(0.025), pytest.approx(0.075))
        warnings = [r for r in glwb_caplog.records if r.levelno == logging.WARNING]
        assert any("did not converge" in r.getMessage() for r in warnings)

    def test_iterations_logged_at_debug(
        self,
        solver_simulator: GLWBSimulator,
        glwb_caplog: pytest.LogCaptureFixture,
    ) -> None:
        solve_fair_fee(solver_simulator, 100_000, 65, tol=1e-12, max_iter=3, max_age=80)

        debug = [r.getMessage() for r in glwb_caplog.records if r.levelno == logging.DEBUG]
        assert sum("Fair fee iteration" in m for m in debug) == 3


class TestNetCostObjective:
    def test_break_even_fee(self, solver_simulator: GLWBSimulator) -> None:
        """[T1] At the break-even fee, fees collected fund the insurer payments."""
        result = solve_fair_fee(
            solver_simulator,
            100_000,
            65,
            tol=5e-3,
            fee_bounds=(0.0, 0.10),
            max_age=95,
            objective="net_cost",
        )

        assert isinstance(result, FairFeeResult)
        assert result.converged
        assert result.objective == "net_cost"
        assert 0.0 < result.fee_rate < 0.10
        assert abs(result.guarantee_cost) < 5e-3
        assert 1 <= result.iterations <= 50

        repriced = solver_simulator.with_config(
            solver_simulator.config.with_fee(result.fee_rate)
        ).price(100_000, 65, max_age=95)
        assert repriced.net_cost / 100_000 == pytest.approx(result.guarantee_cost)
        assert repriced.price > 0

    def test_base_fee_ignored(self, solver_simulator: GLWBSimulator) -> None:
        expensive = solver_simulator.with_config(solver_simulator.config.with_fee(0.05))
        kwargs = {
            "tol": 5e-3,
            "fee_bounds": (0.0, 0.10),
            "max_age": 90,
            "objective": "net_cost",
        }

        assert solve_fair_fee(solver_simulator, 100_000, 65, **kwargs) == solve_fair_fee(
            expensive, 100_000, 65, **kwargs
        )

    def test_higher_target_lowers_fee(self, solver_simulator: GLWBSimulator) -> None:
        kwargs = {
            "tol": 2e-3,
            "fee_bounds": (0.0, 0.10),
            "max_age": 95,
            "objective": "net_cost",
        }
        fair = solve_fair_fee(solver_simulator, 100_000, 65, target_cost=0.0, **kwargs)
        subsidized = solve_fair_fee(solver_simulator, 100_000, 65, target_cost=0.02, **kwargs)

        assert subsidized.fee_rate < fair.fee_rate
