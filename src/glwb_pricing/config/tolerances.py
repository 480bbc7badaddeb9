"""
Centralized tolerance framework for GLWB pricing tests and checks.

Tolerance Tiers:
    Tier 1 (Deterministic): state-machine arithmetic, exact to float64 noise
    Tier 3 (Stochastic): CLT-derived, path-dependent Monte Carlo estimates

References:
    [T1] Glasserman (2003) Ch. 3-4 - Monte Carlo error bounds
"""

from typing import Final

import numpy as np

# =============================================================================
# Tier 1: Deterministic Tolerances
# =============================================================================

#: Single-step state transitions (fee, rollup, ratchet, withdrawal)
#: Tolerance: float64 accumulation over a handful of operations
STATE_TOLERANCE: Final[float] = 1e-9

#: Rollup closed forms evaluated at and beyond the cap
ROLLUP_TOLERANCE: Final[float] = 1e-10


# =============================================================================
# Tier 3: Stochastic Tolerances (CLT-Derived)
# =============================================================================


def mc_tolerance(n_paths: int, sigma: float = 0.20, confidence: float = 3.0) -> float:
    """
    Calculate CLT-derived Monte Carlo tolerance.

    [T1] Standard error of MC estimate is σ/√N.
    3σ gives 99.7% confidence interval.

    Parameters
    ----------
    n_paths : int
        Number of Monte Carlo paths
    sigma : float
        Estimated standard deviation of the (normalized) payoff
    confidence : float
        Number of standard deviations (default 3 for 99.7% CI)

    Returns
    -------
    float
        Tolerance for MC estimate comparisons

    Examples
    --------
    >>> round(mc_tolerance(10_000), 6)
    0.006
    """
    if n_paths <= 0:
        raise ValueError(f"n_paths must be positive, got {n_paths}")
    return confidence * sigma / np.sqrt(n_paths)


#: MC tolerance for 10,000 paths: 3 * 0.20 / sqrt(10000) = 0.006
MC_10K_TOLERANCE: Final[float] = 0.006
