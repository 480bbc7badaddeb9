"""
GLWB Path-Dependent Monte Carlo.

Simulates GLWB payoffs path by path. Each path requires:
- AV evolution (risk-neutral GBM + fees)
- GWB tracking (rollup, ratchet, withdrawals)
- Mortality, and optionally lapse, withdrawal and expense behavior
- Payoff calculation (once AV is exhausted)

Theory
------
[T1] GLWB value = E[PV(insurer payments when AV exhausted)]

The insurer pays when:
1. Account value is exhausted (AV = 0)
2. Policyholder is still alive and has not lapsed
3. The deferral period is over

Paths that die, lapse or reach the terminal age before ruin contribute zero.

[T1] Net cost = E[PV(insurer payments) - PV(fees collected from AV)]
is reported alongside the price; the guarantee is self-financing when it
is zero.

[T1] Under the risk-neutral measure the per-step log return is
    (r - σ²/2) dt + σ √dt Z,  Z ~ N(0, 1)

Reproducibility
---------------
Every path draws from its own generator seeded with ``[seed, path_index]``,
so a path's draws do not depend on which worker runs it or in what order.
Sequential and parallel runs return identical results.

See: Bauer, Kling & Russ (2008), "Universal Pricing of Guaranteed Minimum Benefits"
"""

import logging
import math
from collections.abc import Callable, Sequence
from concurrent.futures import ProcessPoolExecutor
from dataclasses import asdict, dataclass, field, replace
from functools import partial

import numpy as np
import pandas as pd
from scipy import stats

from ..behavioral.dynamic_lapse import LapseModel
from ..behavioral.expenses import ExpenseModel
from ..behavioral.withdrawal import WithdrawalUtilizationModel
from ..config.settings import SETTINGS
from ..errors import InvalidConfigurationError
from .gwb_tracker import BenefitConfig, BenefitState, step
from .mortality import MortalityModel, as_mortality_model

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketParams:
    """
    Risk-neutral market parameters.

    Attributes
    ----------
    r : float
        Continuously compounded risk-free rate (negative rates allowed)
    sigma : float
        Annual volatility of the underlying fund (must be positive)
    """

    r: float = 0.04
    sigma: float = 0.20

    def __post_init__(self) -> None:
        if not math.isfinite(self.r):
            raise InvalidConfigurationError(f"CRITICAL: r must be finite, got {self.r}")
        if not (math.isfinite(self.sigma) and self.sigma > 0):
            raise InvalidConfigurationError(
                f"CRITICAL: sigma must be positive, got {self.sigma}"
            )


@dataclass(frozen=True)
class PathResult:
    """
    Result of a single path simulation.

    Event times are in years since issue and are -1.0 when the event did
    not occur.

    Attributes
    ----------
    pv_insurer_payments : float
        Present value of insurer payments after ruin
    pv_fees : float
        Present value of guarantee fees collected from AV
    ruin_time : float
        Time AV was first exhausted
    lapse_time : float
        Time of lapse
    death_time : float
        Time of death
    lapse_duration : int
        Policy year of lapse (-1 if no lapse)
    final_av : float
        Account value when the path ended
    final_gwb : float
        GWB when the path ended
    total_withdrawals : float
        Withdrawals actually taken from AV (undiscounted)
    pv_expenses : float
        Present value of tracked expenses
    utilization_sum : float
        Sum of behavioral utilizations over the path
    utilization_steps : int
        Number of steps with a behavioral utilization
    """

    pv_insurer_payments: float
    pv_fees: float
    ruin_time: float
    lapse_time: float
    death_time: float
    lapse_duration: int
    final_av: float
    final_gwb: float
    total_withdrawals: float
    pv_expenses: float
    utilization_sum: float
    utilization_steps: int


@dataclass(frozen=True)
class GLWBPricingResult:
    """
    Result of GLWB pricing.

    Attributes
    ----------
    price : float
        Risk-neutral value of the guarantee: mean PV of insurer payments
        after ruin
    guarantee_cost : float
        Price as a fraction of premium
    mean_payoff : float
        Average discounted insurer payment
    std_payoff : float
        Std dev of discounted payoff (population, ddof=0)
    standard_error : float
        Standard error of the mean
    prob_ruin : float
        Fraction of paths whose AV was exhausted
    mean_ruin_year : float
        Mean ruin time over ruined paths (0.0 if none)
    prob_lapse : float
        Fraction of paths that lapsed
    mean_lapse_year : float
        Mean lapse time over lapsed paths (0.0 if none)
    n_paths : int
        Number of paths simulated
    avg_utilization : float, optional
        Mean behavioral utilization (None without a withdrawal model)
    total_expenses_pv : float, optional
        Mean PV of expenses per path (None without an expense model)
    lapse_year_histogram : tuple of int, optional
        Lapse counts by policy year, index 0 = year 1 (None without a lapse model)
    pv_fees : float
        Mean PV of guarantee fees collected from AV
    net_cost : float
        price - pv_fees; zero when the fee is self-financing
    """

    price: float
    guarantee_cost: float
    mean_payoff: float
    std_payoff: float
    standard_error: float
    prob_ruin: float
    mean_ruin_year: float
    prob_lapse: float
    mean_lapse_year: float
    n_paths: int
    avg_utilization: float | None = None
    total_expenses_pv: float | None = None
    lapse_year_histogram: tuple[int, ...] | None = None
    pv_fees: float = 0.0
    net_cost: float = 0.0

    def confidence_interval(self, level: float = 0.95) -> tuple[float, float]:
        """
        Normal-approximation confidence interval for the price.

        [T1] price ± z_{(1+level)/2} × standard_error

        Examples
        --------
        >>> result = GLWBPricingResult(100.0, 0.001, 100.0, 50.0, 5.0,
        ...                            0.1, 20.0, 0.0, 0.0, 100)
        >>> lo, hi = result.confidence_interval(0.95)
        >>> round(lo, 2), round(hi, 2)
        (90.2, 109.8)
        """
        if not 0.0 < level < 1.0:
            raise ValueError(f"level must be in (0, 1), got {level}")
        z = stats.norm.ppf(0.5 + level / 2.0)
        half_width = z * self.standard_error
        return (self.price - half_width, self.price + half_width)


def _clamped_rate(rate: float, source: str, out_of_range: set[str]) -> float:
    """Clamp a collaborator rate to [0, 1], remembering which source misbehaved.

    NaN maps to 0.0, +inf to 1.0 and -inf to 0.0.
    """
    if 0.0 <= rate <= 1.0:
        return rate
    out_of_range.add(source)
    if math.isnan(rate):
        return 0.0
    return min(max(rate, 0.0), 1.0)


def _step_probability(annual_rate: float, dt: float) -> float:
    """[T1] Per-step decrement probability: 1 - (1 - q)^dt."""
    return 1.0 - (1.0 - annual_rate) ** dt


def _simulate_chunk(
    simulator: "GLWBSimulator",
    premium: float,
    issue_age: int,
    max_age: int,
    deferral_years: float,
    bounds: tuple[int, int],
) -> tuple[list[PathResult], set[str]]:
    """Worker entry point: simulate path indices ``bounds[0]`` to ``bounds[1] - 1``."""
    out_of_range: set[str] = set()
    paths = [
        simulator._simulate_path(i, premium, issue_age, max_age, deferral_years, out_of_range)
        for i in range(*bounds)
    ]
    return paths, out_of_range


@dataclass(frozen=True)
class GLWBSimulator:
    """
    Path-dependent Monte Carlo for GLWB pricing.

    [T1] GLWB guarantee value = E[PV(insurer payments when AV = 0)]

    The simulator is immutable; ``with_config`` and ``with_market`` return
    modified copies that keep the seed, so repricing reuses the same paths.

    Attributes
    ----------
    config : BenefitConfig
        Benefit mechanics
    market : MarketParams
        Risk-free rate and volatility
    n_paths : int
        Number of Monte Carlo paths
    steps_per_year : int
        Timesteps per year (1 = annual, 12 = monthly)
    mortality : MortalityModel or callable, optional
        ``qx(age)`` provider or bare ``age -> qx`` callable. Defaults to the
        Gompertz-Makeham male curve.
    seed : int, optional
        Run seed. Defaults to ``SETTINGS.simulation.default_seed``.
    lapse_model : LapseModel, optional
        Lapse collaborator; no lapses when None
    withdrawal_model : WithdrawalUtilizationModel, optional
        Utilization collaborator; ``utilization_rate`` is used when None
    expense_model : ExpenseModel, optional
        Expense collaborator; expenses are tracked, never deducted from AV
    surrender_charge_length : int
        Surrender charge period passed to the lapse collaborator
    utilization_rate : float
        Fixed fraction of the maximum withdrawal taken without a
        withdrawal collaborator
    n_workers : int
        Worker processes; collaborators must be picklable when > 1

    Examples
    --------
    >>> sim = GLWBSimulator(BenefitConfig(), MarketParams(0.04, 0.18), n_paths=1_000)
    >>> result = sim.price(premium=100_000, issue_age=65)
    """

    config: BenefitConfig = field(default_factory=BenefitConfig)
    market: MarketParams = field(default_factory=MarketParams)
    n_paths: int = SETTINGS.simulation.n_paths
    steps_per_year: int = SETTINGS.simulation.steps_per_year
    mortality: MortalityModel | Callable[[int], float] | None = None
    seed: int | None = None
    lapse_model: LapseModel | None = None
    withdrawal_model: WithdrawalUtilizationModel | None = None
    expense_model: ExpenseModel | None = None
    surrender_charge_length: int = SETTINGS.simulation.surrender_charge_length
    utilization_rate: float = 1.0
    n_workers: int = 1

    def __post_init__(self) -> None:
        """Validate everything up front so no invalid run ever starts."""
        if not isinstance(self.config, BenefitConfig):
            raise InvalidConfigurationError(
                f"CRITICAL: config must be a BenefitConfig, got {type(self.config).__name__}"
            )
        if not isinstance(self.market, MarketParams):
            raise InvalidConfigurationError(
                f"CRITICAL: market must be MarketParams, got {type(self.market).__name__}"
            )
        if self.n_paths <= 0:
            raise InvalidConfigurationError(
                f"CRITICAL: n_paths must be positive, got {self.n_paths}"
            )
        if self.steps_per_year <= 0:
            raise InvalidConfigurationError(
                f"CRITICAL: steps_per_year must be positive, got {self.steps_per_year}"
            )
        if self.surrender_charge_length < 0:
            raise InvalidConfigurationError(
                f"CRITICAL: surrender_charge_length must be >= 0, "
                f"got {self.surrender_charge_length}"
            )
        if not 0.0 <= self.utilization_rate <= 1.0:
            raise InvalidConfigurationError(
                f"CRITICAL: utilization_rate must be in [0, 1], got {self.utilization_rate}"
            )
        if self.n_workers < 1:
            raise InvalidConfigurationError(
                f"CRITICAL: n_workers must be >= 1, got {self.n_workers}"
            )

        # Frozen dataclass workaround: use object.__setattr__
        if self.seed is None:
            object.__setattr__(self, "seed", SETTINGS.simulation.default_seed)
        if self.seed < 0:
            raise InvalidConfigurationError(f"CRITICAL: seed must be >= 0, got {self.seed}")
        object.__setattr__(self, "mortality", as_mortality_model(self.mortality))

        for name, model, protocol in (
            ("lapse_model", self.lapse_model, LapseModel),
            ("withdrawal_model", self.withdrawal_model, WithdrawalUtilizationModel),
            ("expense_model", self.expense_model, ExpenseModel),
        ):
            if model is not None and not isinstance(model, protocol):
                raise InvalidConfigurationError(
                    f"CRITICAL: {name} must implement {protocol.__name__}, "
                    f"got {type(model).__name__}"
                )

    # -------------------------------------------------------------------------
    # Copies
    # -------------------------------------------------------------------------

    def with_config(self, config: BenefitConfig) -> "GLWBSimulator":
        """Return a copy with different benefit mechanics (same seed and paths)."""
        return replace(self, config=config)

    def with_market(
        self,
        r: float | None = None,
        sigma: float | None = None,
    ) -> "GLWBSimulator":
        """Return a copy with a bumped rate and/or volatility (same seed and paths)."""
        market = MarketParams(
            r=self.market.r if r is None else r,
            sigma=self.market.sigma if sigma is None else sigma,
        )
        return replace(self, market=market)

    # -------------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------------

    def price(
        self,
        premium: float,
        issue_age: int,
        max_age: int = SETTINGS.simulation.max_age,
        deferral_years: float = 0,
    ) -> GLWBPricingResult:
        """
        Price the GLWB guarantee.

        [T1] Price = E[PV(insurer payments when AV = 0)]

        The fee-adjusted figure is reported separately as ``net_cost``.

        Parameters
        ----------
        premium : float
            Initial premium
        issue_age : int
            Age at issue
        max_age : int
            Terminal simulation age
        deferral_years : float
            Years before withdrawals begin. Rollup applies only while no
            withdrawal has been taken.

        Returns
        -------
        GLWBPricingResult
            Pricing result with diagnostics
        """
        paths = self._run(premium, issue_age, max_age, deferral_years)
        result = self._aggregate(paths, premium, issue_age, max_age)
        logger.info(
            f"GLWB price {result.price:,.2f} ({result.guarantee_cost:.4%} of premium), "
            f"prob_ruin={result.prob_ruin:.3f}"
        )
        return result

    def simulate_paths(
        self,
        premium: float,
        issue_age: int,
        max_age: int = SETTINGS.simulation.max_age,
        deferral_years: float = 0,
    ) -> list[PathResult]:
        """Simulate all paths and return per-path results in path order."""
        return self._run(premium, issue_age, max_age, deferral_years)

    def _run(
        self,
        premium: float,
        issue_age: int,
        max_age: int,
        deferral_years: float,
    ) -> list[PathResult]:
        self._validate_run(premium, issue_age, max_age, deferral_years)

        n_steps = (max_age - issue_age) * self.steps_per_year
        n_workers = min(self.n_workers, self.n_paths)
        logger.info(
            f"Simulating {self.n_paths} paths x {n_steps} steps "
            f"(issue age {issue_age}, seed {self.seed}, workers {n_workers})"
        )

        edges = np.linspace(0, self.n_paths, n_workers + 1).astype(int)
        chunks = [(int(lo), int(hi)) for lo, hi in zip(edges[:-1], edges[1:])]
        worker = partial(
            _simulate_chunk, self, float(premium), issue_age, max_age, deferral_years
        )

        if n_workers == 1:
            chunk_results = [worker(chunks[0])]
        else:
            with ProcessPoolExecutor(max_workers=n_workers) as executor:
                # map preserves submission order, so paths come back in index order
                chunk_results = list(executor.map(worker, chunks))

        paths: list[PathResult] = []
        out_of_range: set[str] = set()
        for chunk_paths, chunk_flags in chunk_results:
            paths.extend(chunk_paths)
            out_of_range |= chunk_flags

        for source in sorted(out_of_range):
            logger.warning(f"{source} returned rates outside [0, 1] or non-finite; clamped")

        return paths

    def _validate_run(
        self,
        premium: float,
        issue_age: int,
        max_age: int,
        deferral_years: float,
    ) -> None:
        if not premium > 0:
            raise InvalidConfigurationError(
                f"CRITICAL: premium must be positive, got {premium}"
            )
        if not 0 <= issue_age < max_age:
            raise InvalidConfigurationError(
                f"CRITICAL: issue_age must be in [0, {max_age}), got {issue_age}"
            )
        if deferral_years < 0:
            raise InvalidConfigurationError(
                f"CRITICAL: deferral_years must be >= 0, got {deferral_years}"
            )

    def _simulate_path(
        self,
        path_index: int,
        premium: float,
        issue_age: int,
        max_age: int,
        deferral_years: float,
        out_of_range: set[str],
    ) -> PathResult:
        """
        Simulate one path.

        Random draws per step, in order: mortality uniform, lapse uniform
        (only with a lapse model), market normal.
        """
        rng = np.random.default_rng([self.seed, path_index])
        state = BenefitState.from_premium(premium)
        config = self.config

        spy = self.steps_per_year
        dt = 1.0 / spy
        n_steps = (max_age - issue_age) * spy
        deferral_steps = deferral_years * spy

        r = self.market.r
        drift = (r - 0.5 * self.market.sigma**2) * dt
        diffusion = self.market.sigma * np.sqrt(dt)

        pv_payments = 0.0
        pv_fees = 0.0
        pv_expenses = 0.0
        utilization_sum = 0.0
        utilization_steps = 0
        ruined = False
        ruin_time = -1.0
        lapse_time = -1.0
        death_time = -1.0
        lapse_duration = -1

        age = issue_age
        duration = 1
        q_step = 0.0

        for k in range(1, n_steps + 1):
            t = k * dt

            # Age and duration change on anniversaries only
            if (k - 1) % spy == 0:
                year_index = (k - 1) // spy
                age = issue_age + year_index
                duration = year_index + 1
                qx = _clamped_rate(self.mortality.qx(age), "mortality", out_of_range)
                q_step = _step_probability(qx, dt)

            if rng.random() < q_step:
                death_time = t
                break

            if self.lapse_model is not None:
                u_lapse = rng.random()
                if state.av > 0:
                    annual_lapse = _clamped_rate(
                        self.lapse_model.calculate_rate(
                            state.gwb, state.av, duration, self.surrender_charge_length, age
                        ),
                        "lapse_model",
                        out_of_range,
                    )
                    if u_lapse < _step_probability(annual_lapse, dt):
                        lapse_time = t
                        lapse_duration = duration
                        break

            z = rng.standard_normal()
            market_return = drift + diffusion * z
            df = np.exp(-r * t)

            in_withdrawal_phase = k > deferral_steps

            withdrawal = 0.0
            if in_withdrawal_phase and not ruined:
                max_wd = state.gwb * config.withdrawal_rate * dt
                if self.withdrawal_model is None:
                    withdrawal = self.utilization_rate * max_wd
                else:
                    moneyness = state.gwb / state.av if state.av > 0 else 1.0
                    utilization = _clamped_rate(
                        self.withdrawal_model.calculate_rate(
                            state.gwb, state.av, duration, age, moneyness
                        ),
                        "withdrawal_model",
                        out_of_range,
                    )
                    utilization_sum += utilization
                    utilization_steps += 1
                    withdrawal = utilization * max_wd

            # A withdrawal step never rolls up, including the first one
            if withdrawal > 0:
                state.withdrawal_phase_started = True

            if self.expense_model is not None and state.av > 0:
                expense = self.expense_model.calculate_expense(state.av, duration - 1, dt)
                pv_expenses += expense * df

            record = step(state, config, market_return, withdrawal, dt)
            pv_fees += record.fee_collected * df

            if not ruined and state.av <= 0:
                ruined = True
                ruin_time = t

            # Guaranteed payment funded by the insurer
            if ruined and in_withdrawal_phase:
                pv_payments += state.gwb * config.withdrawal_rate * dt * df

        return PathResult(
            pv_insurer_payments=float(pv_payments),
            pv_fees=float(pv_fees),
            ruin_time=ruin_time,
            lapse_time=lapse_time,
            death_time=death_time,
            lapse_duration=lapse_duration,
            final_av=state.av,
            final_gwb=state.gwb,
            total_withdrawals=state.total_withdrawals,
            pv_expenses=float(pv_expenses),
            utilization_sum=utilization_sum,
            utilization_steps=utilization_steps,
        )

    def _aggregate(
        self,
        paths: Sequence[PathResult],
        premium: float,
        issue_age: int,
        max_age: int,
    ) -> GLWBPricingResult:
        n = len(paths)
        gross = np.array([p.pv_insurer_payments for p in paths])
        fees = np.array([p.pv_fees for p in paths])
        mean_payoff = float(np.mean(gross))
        std_payoff = float(np.std(gross))

        ruin_times = [p.ruin_time for p in paths if p.ruin_time >= 0]
        lapse_times = [p.lapse_time for p in paths if p.lapse_time >= 0]

        avg_utilization = None
        if self.withdrawal_model is not None:
            steps_used = sum(p.utilization_steps for p in paths)
            total = sum(p.utilization_sum for p in paths)
            avg_utilization = total / steps_used if steps_used > 0 else 0.0

        total_expenses_pv = None
        if self.expense_model is not None:
            total_expenses_pv = float(np.mean([p.pv_expenses for p in paths]))

        lapse_year_histogram = None
        if self.lapse_model is not None:
            counts = np.zeros(max_age - issue_age, dtype=int)
            for p in paths:
                if p.lapse_duration > 0:
                    counts[p.lapse_duration - 1] += 1
            lapse_year_histogram = tuple(int(c) for c in counts)

        return GLWBPricingResult(
            price=mean_payoff,
            guarantee_cost=mean_payoff / premium,
            mean_payoff=mean_payoff,
            std_payoff=std_payoff,
            standard_error=std_payoff / np.sqrt(n),
            prob_ruin=len(ruin_times) / n,
            mean_ruin_year=float(np.mean(ruin_times)) if ruin_times else 0.0,
            prob_lapse=len(lapse_times) / n,
            mean_lapse_year=float(np.mean(lapse_times)) if lapse_times else 0.0,
            n_paths=n,
            avg_utilization=avg_utilization,
            total_expenses_pv=total_expenses_pv,
            lapse_year_histogram=lapse_year_histogram,
            pv_fees=float(np.mean(fees)),
            net_cost=float(np.mean(gross - fees)),
        )


def paths_to_frame(paths: Sequence[PathResult]) -> pd.DataFrame:
    """
    Per-path diagnostics as a DataFrame indexed by path number.

    Examples
    --------
    >>> sim = GLWBSimulator(n_paths=10)
    >>> df = paths_to_frame(sim.simulate_paths(100_000, 65))
    >>> len(df)
    10
    """
    df = pd.DataFrame([asdict(p) for p in paths])
    df.index.name = "path"
    return df


def simulate(
    config: BenefitConfig,
    market: MarketParams,
    mortality: MortalityModel | Callable[[int], float] | None,
    premium: float,
    issue_age: int,
    *,
    max_age: int = SETTINGS.simulation.max_age,
    deferral_years: float = 0,
    n_paths: int = SETTINGS.simulation.n_paths,
    steps_per_year: int = SETTINGS.simulation.steps_per_year,
    seed: int | None = None,
    lapse_model: LapseModel | None = None,
    withdrawal_model: WithdrawalUtilizationModel | None = None,
    expense_model: ExpenseModel | None = None,
    surrender_charge_length: int = SETTINGS.simulation.surrender_charge_length,
    utilization_rate: float = 1.0,
    n_workers: int = 1,
) -> GLWBPricingResult:
    """
    Price a GLWB guarantee in one call.

    Builds a ``GLWBSimulator`` and calls ``price``; see there for details.

    Examples
    --------
    >>> result = simulate(BenefitConfig(), MarketParams(0.04, 0.20), None,
    ...                   premium=100_000, issue_age=65, n_paths=500)
    >>> result.n_paths
    500
    """
    simulator = GLWBSimulator(
        config=config,
        market=market,
        n_paths=n_paths,
        steps_per_year=steps_per_year,
        mortality=mortality,
        seed=seed,
        lapse_model=lapse_model,
        withdrawal_model=withdrawal_model,
        expense_model=expense_model,
        surrender_charge_length=surrender_charge_length,
        utilization_rate=utilization_rate,
        n_workers=n_workers,
    )
    return simulator.price(premium, issue_age, max_age=max_age, deferral_years=deferral_years)
