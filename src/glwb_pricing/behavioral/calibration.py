"""
Calibration Functions for SOA-Based Behavioral Collaborators.

[T2] Interpolation and lookup functions over the SOA benchmark tables.

Durations are 1-indexed contract years; ages are attained ages. Lookups
beyond the tabulated range return the nearest tabulated value.

See Also
--------
glwb_pricing.behavioral.soa_benchmarks : Source data tables
"""

from collections.abc import Mapping

import numpy as np

from .soa_benchmarks import (
    SOA_2006_FULL_SURRENDER_BY_AGE,
    SOA_2006_SC_CLIFF_EFFECT,
    SOA_2006_SC_CLIFF_MULTIPLIER,
    SOA_2006_SURRENDER_BY_DURATION_7YR_SC,
    SOA_2018_GLWB_UTILIZATION_BY_AGE,
    SOA_2018_GLWB_UTILIZATION_BY_DURATION,
    SOA_2018_ITM_BREAKPOINTS,
)

# Length of the surrender charge schedule behind the SOA 2006 duration table
_TABLE_SC_LENGTH = 7


def _interpolate(x: float, points: Mapping[int, float]) -> float:
    """Linear interpolation over {x: y} points, flat beyond both ends."""
    keys = sorted(points)
    return float(np.interp(x, keys, [points[k] for k in keys]))


# =============================================================================
# Surrender Rates (SOA 2006)
# =============================================================================


def interpolate_surrender_by_duration(duration: int, sc_length: int = 7) -> float:
    """
    Surrender rate by contract year from SOA 2006 Table 6.

    [T2] The table is for a 7-year surrender charge schedule. Other schedule
    lengths are mapped onto it: in-SC years are rescaled to the 7-year
    period, post-SC years are counted from the end of the schedule.

    Parameters
    ----------
    duration : int
        Contract year (1 = first year)
    sc_length : int
        Surrender charge period length in years

    Returns
    -------
    float
        Annual surrender rate (decimal)

    Examples
    --------
    >>> interpolate_surrender_by_duration(1)
    0.014
    >>> interpolate_surrender_by_duration(8)
    0.112
    """
    if duration <= 0:
        raise ValueError(f"Duration must be positive, got {duration}")

    if sc_length == _TABLE_SC_LENGTH or sc_length <= 0:
        equivalent = float(duration)
    elif duration <= sc_length:
        equivalent = duration / sc_length * _TABLE_SC_LENGTH
    else:
        equivalent = float(_TABLE_SC_LENGTH + duration - sc_length)

    return _interpolate(equivalent, SOA_2006_SURRENDER_BY_DURATION_7YR_SC)


def get_sc_cliff_multiplier(years_to_sc_end: int) -> float:
    """
    Surrender charge cliff multiplier from SOA 2006 Table 5.

    [T2] Relative to the rate with 3+ years of surrender charge remaining.

    Parameters
    ----------
    years_to_sc_end : int
        Positive: SC years remaining; zero: SC just expired; negative: years
        after expiry

    Examples
    --------
    >>> get_sc_cliff_multiplier(3)
    1.0
    >>> round(get_sc_cliff_multiplier(0), 2)
    2.48
    """
    base_rate = SOA_2006_SC_CLIFF_EFFECT["years_remaining_3plus"]

    if years_to_sc_end >= 3:
        return 1.0
    if years_to_sc_end == 2:
        return SOA_2006_SC_CLIFF_EFFECT["years_remaining_2"] / base_rate
    if years_to_sc_end == 1:
        return SOA_2006_SC_CLIFF_EFFECT["years_remaining_1"] / base_rate
    if years_to_sc_end == 0:
        return SOA_2006_SC_CLIFF_MULTIPLIER
    if years_to_sc_end == -1:
        return SOA_2006_SC_CLIFF_EFFECT["post_sc_year_1"] / base_rate
    if years_to_sc_end == -2:
        return SOA_2006_SC_CLIFF_EFFECT["post_sc_year_2"] / base_rate
    return SOA_2006_SC_CLIFF_EFFECT["post_sc_year_3plus"] / base_rate


def interpolate_surrender_by_age(age: int) -> float:
    """[T2] Full surrender rate by owner age (SOA 2006 Table 8)."""
    return _interpolate(age, SOA_2006_FULL_SURRENDER_BY_AGE)


# =============================================================================
# GLWB Utilization (SOA 2018)
# =============================================================================


def interpolate_utilization_by_duration(duration: int) -> float:
    """
    GLWB utilization by contract year from SOA 2018 Table 1-17.

    Examples
    --------
    >>> interpolate_utilization_by_duration(1)
    0.111
    >>> interpolate_utilization_by_duration(20)
    0.536
    """
    if duration <= 0:
        raise ValueError(f"Duration must be positive, got {duration}")
    return _interpolate(duration, SOA_2018_GLWB_UTILIZATION_BY_DURATION)


def interpolate_utilization_by_age(age: int) -> float:
    """[T2] GLWB utilization by attained age (SOA 2018 Table 1-18)."""
    return _interpolate(age, SOA_2018_GLWB_UTILIZATION_BY_AGE)


def get_itm_sensitivity_factor(moneyness: float) -> float:
    """
    Withdrawal multiplier for an in-the-money guarantee (SOA 2018 Figure 1-44).

    [T2] Piecewise linear between breakpoints; 1.0 at or out of the money,
    flat beyond the deepest breakpoint.

    Parameters
    ----------
    moneyness : float
        GWB / AV (> 1 means the guarantee is in the money)

    Examples
    --------
    >>> get_itm_sensitivity_factor(0.8)
    1.0
    >>> get_itm_sensitivity_factor(1.5)
    1.79
    """
    if moneyness <= 1.0:
        return 1.0
    xs = [x for x, _ in SOA_2018_ITM_BREAKPOINTS]
    ys = [y for _, y in SOA_2018_ITM_BREAKPOINTS]
    return float(np.interp(moneyness, xs, ys))
