"""
SOA Benchmark Data for Policyholder Behavior Collaborators.

[T2] Empirical tables from free SOA research studies, used by the reference
lapse and withdrawal-utilization collaborators.

Data Sources
------------
1. SOA 2006 Deferred Annuity Persistency Study
   - Tables 5, 6, 8: surrender rates by SC position, duration, age
2. SOA 2018 VA GLB Utilization Study
   - Tables 1-17, 1-18, Figure 1-44: GLWB utilization by duration, age, ITM

All rates are decimals (0.05 = 5%). Age keys are band midpoints.
"""

from typing import Final

# =============================================================================
# SOA 2006 Deferred Annuity Persistency Study
# =============================================================================

# Table 6: Surrender rates by contract year (7-year SC schedule)
SOA_2006_SURRENDER_BY_DURATION_7YR_SC: Final[dict[int, float]] = {
    1: 0.014,
    2: 0.023,
    3: 0.028,
    4: 0.032,
    5: 0.037,
    6: 0.043,
    7: 0.053,
    8: 0.112,   # first post-SC year: the cliff
    9: 0.082,
    10: 0.077,
    11: 0.067,  # steady state
}

# Table 5: Surrender rates by position in the SC period
SOA_2006_SC_CLIFF_EFFECT: Final[dict[str, float]] = {
    "years_remaining_3plus": 0.026,
    "years_remaining_2": 0.049,
    "years_remaining_1": 0.058,
    "at_expiration": 0.144,
    "post_sc_year_1": 0.111,
    "post_sc_year_2": 0.098,
    "post_sc_year_3plus": 0.086,
}

# 14.4% / 5.8%
SOA_2006_SC_CLIFF_MULTIPLIER: Final[float] = 0.144 / 0.058

# Table 8: Full surrender rates by owner age (flat, ~5%)
SOA_2006_FULL_SURRENDER_BY_AGE: Final[dict[int, float]] = {
    35: 0.053,
    45: 0.052,
    52: 0.052,
    57: 0.052,
    62: 0.060,
    67: 0.058,
    72: 0.054,
    80: 0.049,
    87: 0.052,
}

SOA_2006_AVERAGE_FULL_SURRENDER: Final[float] = 0.052


# =============================================================================
# SOA 2018 VA GLB Utilization Study
# =============================================================================

# Table 1-17: GLWB utilization by duration
SOA_2018_GLWB_UTILIZATION_BY_DURATION: Final[dict[int, float]] = {
    1: 0.111,
    2: 0.177,
    3: 0.199,
    4: 0.205,
    5: 0.215,
    6: 0.233,
    7: 0.256,
    8: 0.365,
    9: 0.459,
    10: 0.518,
    11: 0.536,
}

# Table 1-18: GLWB utilization by age (2008 cohort)
SOA_2018_GLWB_UTILIZATION_BY_AGE: Final[dict[int, float]] = {
    55: 0.05,
    62: 0.16,
    67: 0.32,
    72: 0.59,
    77: 0.65,
    82: 0.63,
}

# Figure 1-44: ITM multipliers at moneyness (GWB/AV) breakpoints
SOA_2018_ITM_BREAKPOINTS: Final[tuple[tuple[float, float], ...]] = (
    (1.00, 1.00),
    (1.25, 1.39),
    (1.50, 1.79),
    (2.00, 2.11),
)

# Utilization reference age for the multiplicative age adjustment
UTILIZATION_REFERENCE_AGE: Final[int] = 67
