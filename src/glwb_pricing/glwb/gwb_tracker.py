"""
GWB (Guaranteed Withdrawal Base) Tracker.

Holds the benefit configuration and per-path benefit state, and implements
the single-step state transition that the Monte Carlo driver calls.

Theory
------
[T1] GWB is the base for calculating maximum allowed withdrawal:
    Max Withdrawal = GWB × Withdrawal Rate × dt

Each step applies, in this order (reordering changes results):
1. Market return on AV
2. Fee (on GWB or AV)
3. Rollup (only before the withdrawal phase)
4. Ratchet (on anniversaries, when AV > GWB)
5. Withdrawal (excess over the maximum shrinks GWB proportionally)
6. Time advance

See: Bauer, Kling & Russ (2008), Section 3
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum

from ..errors import InvalidConfigurationError
from .rollup import RollupType, calculate_rollup, is_anniversary

MAX_WITHDRAWAL_RATE = 0.20


class FeeBasis(Enum):
    """What the guarantee fee is charged against."""
    GWB = "gwb"
    AV = "av"


@dataclass(frozen=True)
class BenefitConfig:
    """
    Configuration for GLWB benefit mechanics.

    Created once per pricing run and shared read-only across all paths.

    Attributes
    ----------
    rollup_type : RollupType
        Simple, compound, or none
    rollup_rate : float
        Annual rollup rate (e.g., 0.06 for 6%)
    rollup_cap_years : int
        Years after which rollup stops
    withdrawal_rate : float
        Guaranteed annual withdrawal as % of GWB, in (0, 0.20]
    fee_rate : float
        Annual fee rate (e.g., 0.01 for 1%)
    ratchet_enabled : bool
        Whether GWB steps up to AV on anniversaries
    fee_basis : FeeBasis
        GWB or AV; the strings "gwb" / "av" are accepted
    """

    rollup_type: RollupType = RollupType.COMPOUND
    rollup_rate: float = 0.06
    rollup_cap_years: int = 10
    withdrawal_rate: float = 0.05
    fee_rate: float = 0.01
    ratchet_enabled: bool = True
    fee_basis: FeeBasis = FeeBasis.GWB

    def __post_init__(self) -> None:
        """Validate configuration; never clamps silently."""
        if isinstance(self.fee_basis, str):
            try:
                object.__setattr__(self, "fee_basis", FeeBasis(self.fee_basis.lower()))
            except ValueError:
                raise InvalidConfigurationError(
                    f"CRITICAL: fee_basis must be 'gwb' or 'av', got {self.fee_basis!r}"
                ) from None
        if not isinstance(self.fee_basis, FeeBasis):
            raise InvalidConfigurationError(
                f"CRITICAL: fee_basis must be a FeeBasis, got {self.fee_basis!r}"
            )
        if not isinstance(self.rollup_type, RollupType):
            raise InvalidConfigurationError(
                f"CRITICAL: rollup_type must be a RollupType, got {self.rollup_type!r}"
            )
        if self.rollup_rate < 0:
            raise InvalidConfigurationError(
                f"CRITICAL: rollup_rate must be >= 0, got {self.rollup_rate}"
            )
        if self.rollup_cap_years < 0:
            raise InvalidConfigurationError(
                f"CRITICAL: rollup_cap_years must be >= 0, got {self.rollup_cap_years}"
            )
        if not 0 < self.withdrawal_rate <= MAX_WITHDRAWAL_RATE:
            raise InvalidConfigurationError(
                f"CRITICAL: withdrawal_rate must be in (0, {MAX_WITHDRAWAL_RATE}], "
                f"got {self.withdrawal_rate}"
            )
        if self.fee_rate < 0:
            raise InvalidConfigurationError(
                f"CRITICAL: fee_rate must be >= 0, got {self.fee_rate}"
            )

    def with_fee(self, fee_rate: float) -> "BenefitConfig":
        """Return a validated copy with a different fee rate."""
        return replace(self, fee_rate=fee_rate)


@dataclass
class BenefitState:
    """
    Mutable per-path state of the benefit.

    Each simulated path owns exactly one instance; it is advanced in place
    by ``step`` and never shared across paths.

    Attributes
    ----------
    gwb : float
        Guaranteed Withdrawal Base
    av : float
        Account value (market value), clamped at 0
    rollup_base : float
        Rollup growth anchor, fixed at issue
    high_water_mark : float
        AV level at the last ratchet
    years_since_issue : float
        Time elapsed since contract issue
    withdrawal_phase_started : bool
        Whether withdrawals have begun (stops rollup)
    total_withdrawals : float
        Cumulative withdrawals taken
    """

    gwb: float
    av: float
    rollup_base: float
    high_water_mark: float
    years_since_issue: float = 0.0
    withdrawal_phase_started: bool = False
    total_withdrawals: float = 0.0

    def __post_init__(self) -> None:
        if self.gwb < 0:
            raise InvalidConfigurationError(f"CRITICAL: gwb must be >= 0, got {self.gwb}")
        if self.av < 0:
            raise InvalidConfigurationError(f"CRITICAL: av must be >= 0, got {self.av}")
        if self.years_since_issue < 0:
            raise InvalidConfigurationError(
                f"CRITICAL: years_since_issue must be >= 0, got {self.years_since_issue}"
            )

    @classmethod
    def from_premium(cls, premium: float) -> "BenefitState":
        """
        Create the state at contract issue.

        [T1] At issue: GWB = AV = rollup base = high water mark = premium
        """
        if premium <= 0:
            raise InvalidConfigurationError(
                f"CRITICAL: premium must be positive, got {premium}"
            )
        premium = float(premium)
        return cls(
            gwb=premium,
            av=premium,
            rollup_base=premium,
            high_water_mark=premium,
        )

    @property
    def is_ruined(self) -> bool:
        """[T1] Ruin: account value exhausted, insurer funds withdrawals."""
        return self.av <= 0

    @property
    def benefit_moneyness(self) -> float:
        """(GWB - AV) / GWB; positive when the guarantee is in the money."""
        if self.gwb <= 0:
            return 0.0
        return (self.gwb - self.av) / self.gwb

    @property
    def gwb_to_av_ratio(self) -> float:
        """GWB / AV; > 1 means the guarantee exceeds the account value."""
        if self.av <= 0:
            return float("inf") if self.gwb > 0 else 1.0
        return self.gwb / self.av


@dataclass(frozen=True)
class TransitionRecord:
    """
    Read-only observation of one ``step`` call.

    Used for diagnostics and auditing only; never fed back into state.

    Attributes
    ----------
    fee_charged : float
        Fee assessed this period (rate × base × dt)
    rollup_amount : float
        GWB increase from rollup
    ratchet_applied : bool
        Whether the ratchet stepped GWB up to AV
    withdrawal_taken : float
        Actual withdrawal (capped at available AV)
    max_withdrawal : float
        Maximum guaranteed withdrawal for the period
    excess_withdrawal : float
        Part of the withdrawal above the period maximum
    fee_collected : float
        Part of the fee actually deducted (less than the fee when AV runs out)
    """

    fee_charged: float
    rollup_amount: float
    ratchet_applied: bool
    withdrawal_taken: float
    max_withdrawal: float
    excess_withdrawal: float = 0.0
    fee_collected: float = 0.0


def step(
    state: BenefitState,
    config: BenefitConfig,
    market_return: float,
    withdrawal_request: float,
    dt: float,
) -> TransitionRecord:
    """
    Advance ``state`` in place by ``dt`` years.

    Parameters
    ----------
    state : BenefitState
        Current state (modified in place)
    config : BenefitConfig
        Benefit configuration
    market_return : float
        Market return this period (decimal, e.g., -0.10 for -10%)
    withdrawal_request : float
        Withdrawal amount requested this period
    dt : float
        Timestep in years

    Returns
    -------
    TransitionRecord
        Fee, rollup, ratchet and withdrawal details of the step

    Examples
    --------
    >>> state = BenefitState.from_premium(100_000)
    >>> record = step(state, BenefitConfig(), 0.0, 0.0, 1.0)
    >>> record.fee_charged, round(state.gwb, 2)
    (1000.0, 106000.0)
    """
    # 1. Market return
    state.av = max(state.av * (1.0 + market_return), 0.0)

    # 2. Fee
    fee_base = state.gwb if config.fee_basis == FeeBasis.GWB else state.av
    fee = config.fee_rate * fee_base * dt
    fee_collected = min(fee, state.av)
    state.av -= fee_collected

    # 3. Rollup, evaluated at the end of the period; never lowers a ratcheted base
    rollup_amount = 0.0
    if not state.withdrawal_phase_started and config.rollup_type != RollupType.NONE:
        rolled_up = calculate_rollup(state, config, years=state.years_since_issue + dt)
        if rolled_up > state.gwb:
            rollup_amount = rolled_up - state.gwb
            state.gwb = rolled_up

    # 4. Ratchet
    ratchet_applied = False
    if config.ratchet_enabled and is_anniversary(state.years_since_issue, dt):
        if state.av > state.gwb:
            state.gwb = state.av
            state.high_water_mark = state.av
            ratchet_applied = True

    # 5. Withdrawal
    if withdrawal_request > 0:
        state.withdrawal_phase_started = True

    max_wd = state.gwb * config.withdrawal_rate * dt
    actual_withdrawal = min(max(withdrawal_request, 0.0), state.av)

    excess = 0.0
    if actual_withdrawal > max_wd and state.gwb > 0:
        excess = actual_withdrawal - max_wd
        state.gwb = max(state.gwb * (1.0 - excess / state.gwb), 0.0)

    state.av = max(state.av - actual_withdrawal, 0.0)
    state.total_withdrawals += actual_withdrawal

    # 6. Time
    state.years_since_issue += dt

    return TransitionRecord(
        fee_charged=fee,
        rollup_amount=rollup_amount,
        ratchet_applied=ratchet_applied,
        withdrawal_taken=actual_withdrawal,
        max_withdrawal=max_wd,
        excess_withdrawal=excess,
        fee_collected=fee_collected,
    )


def max_withdrawal(state: BenefitState, config: BenefitConfig, dt: float = 1.0) -> float:
    """[T1] Maximum guaranteed withdrawal for a period: GWB × rate × dt."""
    return state.gwb * config.withdrawal_rate * dt


def simulate_path(
    state: BenefitState,
    config: BenefitConfig,
    returns: Sequence[float],
    withdrawals: Sequence[float],
    dt: float = 1.0,
) -> list[TransitionRecord]:
    """
    Step a state through a deterministic scenario of returns and withdrawals.

    Parameters
    ----------
    state : BenefitState
        Initial state (modified in place)
    config : BenefitConfig
        Benefit configuration
    returns : sequence of float
        Market return per period
    withdrawals : sequence of float
        Requested withdrawal per period
    dt : float
        Timestep in years

    Returns
    -------
    list[TransitionRecord]
        One record per step
    """
    if len(returns) != len(withdrawals):
        raise ValueError(
            f"returns and withdrawals must have same length: "
            f"{len(returns)} != {len(withdrawals)}"
        )

    return [
        step(state, config, float(r), float(w), dt)
        for r, w in zip(returns, withdrawals)
    ]
