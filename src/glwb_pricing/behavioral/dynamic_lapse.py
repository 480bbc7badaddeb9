"""
Dynamic Lapse Collaborators.

Moneyness-based lapse rates for GLWB contracts. A deep in-the-money
guarantee (GWB well above AV) is worth keeping, so rational policyholders
lapse less.

Theory
------
[T1] lapse_rate = base_lapse × (AV / GWB)^sensitivity, clamped to [min, max]

- AV / GWB > 1: guarantee out of the money → higher lapse
- AV / GWB < 1: guarantee in the money → lower lapse

[T2] The SOA 2006 variant replaces the flat base with the duration curve
(1.4% in year 1, 11.2% in the first post-surrender-charge year) and
optionally scales by owner age.

See: Bauer, Kling & Russ (2008), Section 4
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np

from ..errors import InvalidConfigurationError
from .calibration import (
    get_sc_cliff_multiplier,
    interpolate_surrender_by_age,
    interpolate_surrender_by_duration,
)
from .soa_benchmarks import SOA_2006_AVERAGE_FULL_SURRENDER

# 80% reduction while surrender charges still apply
SURRENDER_PERIOD_FACTOR = 0.2

# Flat in-SC / post-SC rates when the SOA duration curve is disabled
_FLAT_IN_SC_RATE = 0.03
_FLAT_POST_SC_RATE = 0.08


@runtime_checkable
class LapseModel(Protocol):
    """Annual lapse probability for a policy in a given state."""

    def calculate_rate(
        self,
        gwb: float,
        av: float,
        duration: int,
        surrender_charge_length: int,
        age: int,
    ) -> float:
        ...


def _validate_bounds(min_lapse: float, max_lapse: float) -> None:
    if not 0.0 <= min_lapse <= max_lapse <= 1.0:
        raise InvalidConfigurationError(
            f"CRITICAL: lapse bounds must satisfy 0 <= min <= max <= 1, "
            f"got min={min_lapse}, max={max_lapse}"
        )


@dataclass(frozen=True)
class LapseAssumptions:
    """
    Lapse rate assumptions.

    Attributes
    ----------
    base_annual_lapse : float
        Base annual lapse rate (e.g., 0.05 for 5%)
    min_lapse : float
        Floor on dynamic lapse rate
    max_lapse : float
        Cap on dynamic lapse rate
    sensitivity : float
        Sensitivity of lapse to moneyness (higher = more responsive)
    """

    base_annual_lapse: float = 0.05
    min_lapse: float = 0.01
    max_lapse: float = 0.25
    sensitivity: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.base_annual_lapse <= 1.0:
            raise InvalidConfigurationError(
                f"CRITICAL: base_annual_lapse must be in [0, 1], got {self.base_annual_lapse}"
            )
        _validate_bounds(self.min_lapse, self.max_lapse)
        if self.sensitivity < 0:
            raise InvalidConfigurationError(
                f"CRITICAL: sensitivity must be >= 0, got {self.sensitivity}"
            )


@dataclass(frozen=True)
class LapseResult:
    """
    Lapse calculation with diagnostics.

    Attributes
    ----------
    lapse_rate : float
        Final annual lapse rate
    moneyness : float
        AV / GWB ratio used
    base_rate : float
        Rate before the adjustment factor
    adjustment_factor : float
        Multiplier applied to the base rate
    """

    lapse_rate: float
    moneyness: float
    base_rate: float
    adjustment_factor: float


class DynamicLapseModel:
    """
    Dynamic lapse model with moneyness adjustment.

    Examples
    --------
    >>> model = DynamicLapseModel(LapseAssumptions())
    >>> model.calculate_rate(110_000, 100_000, 9, 7, 70) < 0.05  # ITM
    True
    """

    def __init__(self, assumptions: LapseAssumptions | None = None):
        self.assumptions = assumptions or LapseAssumptions()

    def calculate_lapse(
        self,
        gwb: float,
        av: float,
        surrender_period_complete: bool = False,
    ) -> LapseResult:
        """
        Calculate the dynamic lapse rate.

        [T1] lapse_rate = base_lapse × (AV / GWB)^sensitivity

        Parameters
        ----------
        gwb : float
            Guaranteed Withdrawal Base
        av : float
            Current account value (must be positive)
        surrender_period_complete : bool
            Whether surrender charges have expired

        Returns
        -------
        LapseResult
            Calculated lapse rate with diagnostics
        """
        if av <= 0:
            raise ValueError(f"Account value must be positive, got {av}")
        if gwb < 0:
            raise ValueError(f"GWB cannot be negative, got {gwb}")

        a = self.assumptions
        moneyness = av / gwb if gwb > 0 else 1.0
        adjustment_factor = moneyness ** a.sensitivity

        base_rate = a.base_annual_lapse
        if not surrender_period_complete:
            base_rate *= SURRENDER_PERIOD_FACTOR

        lapse_rate = np.clip(base_rate * adjustment_factor, a.min_lapse, a.max_lapse)

        return LapseResult(
            lapse_rate=float(lapse_rate),
            moneyness=moneyness,
            base_rate=base_rate,
            adjustment_factor=adjustment_factor,
        )

    def calculate_rate(
        self,
        gwb: float,
        av: float,
        duration: int,
        surrender_charge_length: int,
        age: int,
    ) -> float:
        """Annual lapse rate; age is not used by this model."""
        result = self.calculate_lapse(
            gwb,
            av,
            surrender_period_complete=duration > surrender_charge_length,
        )
        return result.lapse_rate


# =============================================================================
# SOA-Calibrated Lapse Model
# =============================================================================


@dataclass(frozen=True)
class SOALapseAssumptions:
    """
    SOA-calibrated lapse rate assumptions.

    [T2] Based on SOA 2006 Deferred Annuity Persistency Study.

    Attributes
    ----------
    use_duration_curve : bool
        Use the SOA duration-based surrender curve; otherwise a flat
        in-SC / post-SC rate scaled by the SC cliff multiplier
    use_sc_cliff_effect : bool
        Apply the surrender charge cliff multiplier to the flat rate
        (the duration curve already contains the cliff)
    use_age_adjustment : bool
        Scale by the owner-age surrender rate relative to the SOA average
    moneyness_sensitivity : float
        Exponent on AV / GWB
    min_lapse : float
        Floor on lapse rate
    max_lapse : float
        Cap on lapse rate
    """

    use_duration_curve: bool = True
    use_sc_cliff_effect: bool = True
    use_age_adjustment: bool = False
    moneyness_sensitivity: float = 1.0
    min_lapse: float = 0.005
    max_lapse: float = 0.25

    def __post_init__(self) -> None:
        _validate_bounds(self.min_lapse, self.max_lapse)
        if self.moneyness_sensitivity < 0:
            raise InvalidConfigurationError(
                f"CRITICAL: moneyness_sensitivity must be >= 0, "
                f"got {self.moneyness_sensitivity}"
            )


class SOADynamicLapseModel:
    """
    SOA-calibrated dynamic lapse model.

    [T2] lapse_rate = base_rate × cliff × age_factor × (AV / GWB)^sensitivity

    Examples
    --------
    >>> model = SOADynamicLapseModel(SOALapseAssumptions())
    >>> model.calculate_lapse(100_000, 100_000, duration=8, years_to_sc_end=-1).base_rate
    0.112
    """

    def __init__(self, assumptions: SOALapseAssumptions | None = None):
        self.assumptions = assumptions or SOALapseAssumptions()

    def calculate_lapse(
        self,
        gwb: float,
        av: float,
        duration: int,
        years_to_sc_end: int,
        age: int | None = None,
        sc_length: int = 7,
    ) -> LapseResult:
        """
        Calculate the SOA-calibrated lapse rate.

        Parameters
        ----------
        gwb : float
            Guaranteed Withdrawal Base
        av : float
            Current account value (must be positive)
        duration : int
            Contract year (1 = first year)
        years_to_sc_end : int
            SC years remaining (0 = just expired, negative = post-SC)
        age : int, optional
            Owner age (for the age adjustment)
        sc_length : int
            Surrender charge period length used to map the duration curve

        Returns
        -------
        LapseResult
            Calculated lapse rate with diagnostics
        """
        if av <= 0:
            raise ValueError(f"Account value must be positive, got {av}")
        if gwb < 0:
            raise ValueError(f"GWB cannot be negative, got {gwb}")
        if duration <= 0:
            raise ValueError(f"Duration must be positive, got {duration}")

        a = self.assumptions
        moneyness = av / gwb if gwb > 0 else 1.0

        if a.use_duration_curve:
            base_rate = interpolate_surrender_by_duration(duration, sc_length=sc_length)
        else:
            base_rate = _FLAT_IN_SC_RATE if years_to_sc_end > 0 else _FLAT_POST_SC_RATE

        adjustment_factor = 1.0
        if a.use_sc_cliff_effect and not a.use_duration_curve:
            adjustment_factor *= get_sc_cliff_multiplier(years_to_sc_end)

        if a.use_age_adjustment and age is not None:
            adjustment_factor *= interpolate_surrender_by_age(age) / SOA_2006_AVERAGE_FULL_SURRENDER

        if a.moneyness_sensitivity > 0 and gwb > 0:
            adjustment_factor *= moneyness ** a.moneyness_sensitivity

        lapse_rate = np.clip(base_rate * adjustment_factor, a.min_lapse, a.max_lapse)

        return LapseResult(
            lapse_rate=float(lapse_rate),
            moneyness=moneyness,
            base_rate=base_rate,
            adjustment_factor=adjustment_factor,
        )

    def calculate_rate(
        self,
        gwb: float,
        av: float,
        duration: int,
        surrender_charge_length: int,
        age: int,
    ) -> float:
        result = self.calculate_lapse(
            gwb,
            av,
            duration=duration,
            years_to_sc_end=surrender_charge_length - duration,
            age=age,
            sc_length=surrender_charge_length,
        )
        return result.lapse_rate
