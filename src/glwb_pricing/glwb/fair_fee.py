"""
Fair-Fee Solver for GLWB Guarantees.

[T1] The fair fee is the annual rider charge at which a cost measure of
the guarantee, as a fraction of premium, equals a target.

Two objectives are supported, and bisection moves the bracket in the
direction each one requires. With a fixed seed every trial reprices the
same paths, so the cost is a deterministic function of the fee.

``"guarantee_cost"`` (default): the price, E[PV(insurer payments)] / premium.
A higher fee drains AV faster, so ruin comes sooner and the cost rises.

    cost(fee) > target  →  fee too high  →  hi = mid
    cost(fee) <= target →  fee too low   →  lo = mid

``"net_cost"``: E[PV(insurer payments) - PV(fees)] / premium, the
self-financing measure. Fee income grows faster than the extra payments,
so the net cost falls as the fee rises; target 0 gives the break-even fee.

    cost(fee) > target  →  fee too low   →  lo = mid
    cost(fee) <= target →  fee too high  →  hi = mid
"""

import logging
from dataclasses import dataclass

from ..config.settings import SETTINGS
from ..errors import InvalidConfigurationError
from .path_sim import GLWBPricingResult, GLWBSimulator

logger = logging.getLogger(__name__)

OBJECTIVES = ("guarantee_cost", "net_cost")


@dataclass(frozen=True)
class FairFeeResult:
    """
    Result of the fair-fee search.

    Attributes
    ----------
    fee_rate : float
        Fair annual fee rate
    guarantee_cost : float
        Objective value (fraction of premium) at the last fee evaluated
    iterations : int
        Number of bisection iterations (full repricings)
    converged : bool
        Whether |cost - target| < tol was reached
    objective : str
        Cost measure that was solved for
    """

    fee_rate: float
    guarantee_cost: float
    iterations: int
    converged: bool
    objective: str = "guarantee_cost"


def _objective_cost(result: GLWBPricingResult, premium: float, objective: str) -> float:
    if objective == "net_cost":
        return result.net_cost / premium
    return result.guarantee_cost


def solve_fair_fee(
    simulator: GLWBSimulator,
    premium: float,
    issue_age: int,
    *,
    target_cost: float = 0.0,
    tol: float = SETTINGS.solver.tolerance,
    max_iter: int = SETTINGS.solver.max_iterations,
    fee_bounds: tuple[float, float] = (SETTINGS.solver.fee_lower, SETTINGS.solver.fee_upper),
    max_age: int = SETTINGS.simulation.max_age,
    deferral_years: float = 0,
    objective: str = "guarantee_cost",
) -> FairFeeResult:
    """
    Find the fee rate at which the chosen cost measure equals ``target_cost``.

    Each iteration reprices with ``simulator.with_config(config.with_fee(mid))``,
    so every trial uses the same seed and paths.

    Parameters
    ----------
    simulator : GLWBSimulator
        Base simulator; its benefit fee rate is ignored
    premium : float
        Initial premium
    issue_age : int
        Age at issue
    target_cost : float
        Target cost as a fraction of premium
    tol : float
        Convergence tolerance on |cost - target|
    max_iter : int
        Maximum bisection iterations
    fee_bounds : tuple of float
        (lower, upper) bracket for the annual fee rate
    max_age : int
        Terminal simulation age
    deferral_years : float
        Years before withdrawals begin
    objective : {"guarantee_cost", "net_cost"}
        ``"guarantee_cost"`` solves on the price (gross insurer payments);
        ``"net_cost"`` solves on payments less fees collected, so a zero
        target is the self-financing fee.

    Returns
    -------
    FairFeeResult
        Fee, cost at that fee, iterations used, convergence flag. On
        exhaustion the fee is the final bracket midpoint with
        ``converged=False``.
    """
    if objective not in OBJECTIVES:
        raise InvalidConfigurationError(
            f"CRITICAL: objective must be one of {OBJECTIVES}, got {objective!r}"
        )
    lo, hi = fee_bounds
    if lo < 0 or lo >= hi:
        raise InvalidConfigurationError(
            f"CRITICAL: fee_bounds must satisfy 0 <= lower < upper, got {fee_bounds}"
        )
    if max_iter < 1:
        raise InvalidConfigurationError(f"CRITICAL: max_iter must be >= 1, got {max_iter}")
    if tol <= 0:
        raise InvalidConfigurationError(f"CRITICAL: tol must be positive, got {tol}")

    base_config = simulator.config
    cost_falls_with_fee = objective == "net_cost"
    cost = float("nan")

    for iteration in range(1, max_iter + 1):
        mid = (lo + hi) / 2
        trial = simulator.with_config(base_config.with_fee(mid))
        result = trial.price(premium, issue_age, max_age=max_age, deferral_years=deferral_years)
        cost = _objective_cost(result, premium, objective)

        logger.debug(
            f"Fair fee iteration {iteration}: fee={mid:.6f}, {objective}={cost:.6f}, "
            f"bracket=[{lo:.6f}, {hi:.6f}]"
        )

        if abs(cost - target_cost) < tol:
            return FairFeeResult(
                fee_rate=mid,
                guarantee_cost=cost,
                iterations=iteration,
                converged=True,
                objective=objective,
            )

        if (cost > target_cost) == cost_falls_with_fee:
            lo = mid
        else:
            hi = mid

    fee = (lo + hi) / 2
    logger.warning(
        f"Fair fee did not converge in {max_iter} iterations; "
        f"returning bracket midpoint {fee:.6f} (last {objective} {cost:.6f})"
    )
    return FairFeeResult(
        fee_rate=fee,
        guarantee_cost=cost,
        iterations=max_iter,
        converged=False,
        objective=objective,
    )
