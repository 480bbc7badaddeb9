"""
Rollup and Ratchet Mechanics.

Implements GWB growth mechanisms:
- Simple rollup: GWB(t) = base × (1 + r × min(t, cap))
- Compound rollup: GWB(t) = base × (1 + r)^min(t, cap)
- Ratchet: GWB(t) = max(GWB(t), AV(t)) on policy anniversaries

Theory
------
[T1] Rollup grows the benefit base from a fixed anchor (the rollup base set
     at issue) during the deferral period, and stops growing at the cap.

[T1] Ratchet locks in gains and never decreases the benefit base.

[T1] An anniversary is crossed when a step of size dt moves the policy
     across an integer-year boundary, so sub-annual steps still ratchet
     exactly once per policy year.

See: Bauer, Kling & Russ (2008), "Universal Pricing of Guaranteed Minimum Benefits"
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .gwb_tracker import BenefitConfig, BenefitState


class RollupType(Enum):
    """Type of rollup applied to GWB during deferral."""
    SIMPLE = "simple"
    COMPOUND = "compound"
    NONE = "none"


# Absorbs float drift when years_since_issue is accumulated from sub-annual dt
_ANNIVERSARY_EPS = 1e-9


def linear_rollup(base: float, rate: float, years: float, cap_years: float) -> float:
    """
    Simple (linear) rollup, capped.

    [T1] GWB = base × (1 + rate × min(years, cap_years))

    Examples
    --------
    >>> linear_rollup(100_000, 0.06, 5.0, 10)
    130000.0
    >>> linear_rollup(100_000, 0.06, 15.0, 10)
    160000.0
    """
    effective_years = min(years, cap_years)
    return base * (1.0 + rate * effective_years)


def compound_rollup(base: float, rate: float, years: float, cap_years: float) -> float:
    """
    Compound (exponential) rollup, capped.

    [T1] GWB = base × (1 + rate)^min(years, cap_years)

    Examples
    --------
    >>> round(compound_rollup(100_000, 0.06, 5.0, 10), 2)
    133822.56
    """
    effective_years = min(years, cap_years)
    return base * (1.0 + rate) ** effective_years


class RollupMechanic(Protocol):
    """Protocol for rollup calculation."""

    def calculate(self, base: float, rate: float, years: float, cap_years: float) -> float:
        """Return the rolled-up value of ``base`` after ``years`` (capped)."""
        ...


class SimpleRollup:
    """
    Simple interest rollup.

    [T1] GWB(t) = base × (1 + rate × min(t, cap))
    """

    def calculate(self, base: float, rate: float, years: float, cap_years: float) -> float:
        return linear_rollup(base, rate, years, cap_years)


class CompoundRollup:
    """
    Compound interest rollup.

    [T1] GWB(t) = base × (1 + rate)^min(t, cap)
    """

    def calculate(self, base: float, rate: float, years: float, cap_years: float) -> float:
        return compound_rollup(base, rate, years, cap_years)


def get_rollup_mechanic(rollup_type: RollupType) -> RollupMechanic | None:
    """
    Map a RollupType to its mechanic (None for no rollup).

    Parameters
    ----------
    rollup_type : RollupType
        Rollup type from the benefit configuration

    Returns
    -------
    RollupMechanic or None
        Strategy implementing the rollup formula
    """
    if rollup_type == RollupType.SIMPLE:
        return SimpleRollup()
    if rollup_type == RollupType.COMPOUND:
        return CompoundRollup()
    return None


def calculate_rollup(
    state: BenefitState,
    config: BenefitConfig,
    years: float | None = None,
) -> float:
    """
    Calculate the rolled-up GWB for the current state.

    The rollup grows the fixed ``state.rollup_base`` anchor. With no rollup
    configured, the current GWB is returned unchanged.

    Parameters
    ----------
    state : BenefitState
        Current benefit state
    config : BenefitConfig
        Benefit configuration
    years : float, optional
        Policy time at which to evaluate the rollup. Defaults to
        ``state.years_since_issue``; the transition engine passes the end
        of the period being stepped.

    Returns
    -------
    float
        Rolled-up GWB value
    """
    mechanic = get_rollup_mechanic(config.rollup_type)
    if mechanic is None:
        return state.gwb
    return mechanic.calculate(
        state.rollup_base,
        config.rollup_rate,
        state.years_since_issue if years is None else years,
        config.rollup_cap_years,
    )


def apply_ratchet(gwb: float, av: float) -> float:
    """
    Apply ratchet step-up: GWB = max(GWB, AV).

    [T1] One-way adjustment; the ratchet never steps the base down.

    Examples
    --------
    >>> apply_ratchet(100_000, 120_000)
    120000
    >>> apply_ratchet(100_000, 80_000)
    100000
    """
    return max(gwb, av)


def is_anniversary(years_since_issue: float, dt: float) -> bool:
    """
    Check whether stepping ``dt`` from ``years_since_issue`` crosses a policy anniversary.

    Examples
    --------
    >>> is_anniversary(2.8, 0.1)
    False
    >>> is_anniversary(2.9, 0.1)  # lands exactly on year 3
    True
    >>> is_anniversary(2.95, 0.1)
    True
    """
    prev_year = math.floor(years_since_issue + _ANNIVERSARY_EPS)
    curr_year = math.floor(years_since_issue + dt + _ANNIVERSARY_EPS)
    return curr_year > prev_year


@dataclass(frozen=True)
class RollupResult:
    """
    Result of rollup calculation with breakdown.

    Attributes
    ----------
    rolled_up_value : float
        Final rolled-up value
    base_value : float
        Original base value
    rollup_amount : float
        Amount added by rollup
    years : float
        Years of rollup applied (after the cap)
    effective_rate : float
        Effective annual compound rate achieved
    """

    rolled_up_value: float
    base_value: float
    rollup_amount: float
    years: float
    effective_rate: float


def calculate_rollup_with_cap(
    base: float,
    years: float,
    rate: float,
    cap_years: float,
    rollup_type: str = "compound",
) -> RollupResult:
    """
    Calculate rollup with year cap and report a breakdown.

    Many GLWB products cap rollup at 10 years.

    Parameters
    ----------
    base : float
        Starting value
    years : float
        Years since issue
    rate : float
        Annual rollup rate
    cap_years : float
        Maximum years rollup applies
    rollup_type : str
        "simple" or "compound"

    Returns
    -------
    RollupResult
        Rollup result with breakdown

    Examples
    --------
    >>> result = calculate_rollup_with_cap(100_000, 15, 0.05, 10, "compound")
    >>> result.years
    10
    """
    if base <= 0:
        raise ValueError(f"Base must be positive, got {base}")
    if years < 0:
        raise ValueError(f"Years cannot be negative, got {years}")

    mechanic: RollupMechanic
    if rollup_type == "simple":
        mechanic = SimpleRollup()
    elif rollup_type == "compound":
        mechanic = CompoundRollup()
    else:
        raise ValueError(f"Unknown rollup type: {rollup_type}")

    effective_years = min(years, cap_years)
    rolled_up_value = mechanic.calculate(base, rate, years, cap_years)

    if effective_years > 0:
        effective_rate = (rolled_up_value / base) ** (1 / effective_years) - 1
    else:
        effective_rate = 0.0

    return RollupResult(
        rolled_up_value=rolled_up_value,
        base_value=base,
        rollup_amount=rolled_up_value - base,
        years=effective_years,
        effective_rate=effective_rate,
    )


def compare_rollup_methods(
    base: float,
    rate: float,
    years: float,
    cap_years: float,
) -> dict[str, float]:
    """
    Compare simple vs compound rollup for the same parameters.

    Returns
    -------
    dict
        ``simple``, ``compound``, ``difference`` (compound - simple) and
        ``ratio`` (compound / simple)
    """
    simple = linear_rollup(base, rate, years, cap_years)
    compound = compound_rollup(base, rate, years, cap_years)
    return {
        "simple": simple,
        "compound": compound,
        "difference": compound - simple,
        "ratio": compound / simple if simple > 0 else 1.0,
    }
