"""
Frozen configuration settings for GLWB pricing.

All configuration is immutable (frozen dataclasses) to ensure reproducibility.
The Monte Carlo seed is the only source of entropy in a pricing run; it
defaults to a fixed constant rather than true randomness so that repeated
runs (fair-fee bisection, bump-and-reprice sensitivities) stay comparable.
"""

import os
from dataclasses import dataclass

# =============================================================================
# Simulation Configuration
# =============================================================================

DEFAULT_SEED: int = 42


def _resolve_seed() -> int:
    """
    Resolve the default Monte Carlo seed with environment variable override.

    Priority:
    1. GLWB_PRICING_SEED environment variable (if set)
    2. Default: 42

    Returns
    -------
    int
        Seed used when a caller does not pin one explicitly
    """
    env_seed = os.environ.get("GLWB_PRICING_SEED")
    if env_seed:
        return int(env_seed)
    return DEFAULT_SEED


@dataclass(frozen=True)
class SimulationSettings:
    """
    Immutable Monte Carlo configuration. [T3: Assumptions]

    Attributes
    ----------
    default_seed : int
        Seed used when none is supplied. Override with GLWB_PRICING_SEED.
    n_paths : int
        Default number of Monte Carlo paths
    steps_per_year : int
        Default timesteps per year (1 = annual, 12 = monthly)
    max_age : int
        Default terminal simulation age
    surrender_charge_length : int
        Default surrender charge period passed to lapse collaborators
    """

    default_seed: int = None  # type: ignore[assignment]  # Set in __post_init__
    n_paths: int = 10_000
    steps_per_year: int = 1
    max_age: int = 100
    surrender_charge_length: int = 7

    def __post_init__(self) -> None:
        """Initialize default_seed using resolver function."""
        # Frozen dataclass workaround: use object.__setattr__
        if self.default_seed is None:
            object.__setattr__(self, "default_seed", _resolve_seed())


# =============================================================================
# Fair-Fee Solver Configuration
# =============================================================================

@dataclass(frozen=True)
class SolverSettings:
    """
    Immutable bisection configuration for the fair-fee solver.

    Attributes
    ----------
    fee_lower : float
        Lower bracket for the annual fee rate (0.1%)
    fee_upper : float
        Upper bracket for the annual fee rate (3.0%)
    tolerance : float
        Convergence tolerance on |guarantee_cost - target|
    max_iterations : int
        Bisection iteration budget
    """

    fee_lower: float = 0.001
    fee_upper: float = 0.03
    tolerance: float = 1e-4
    max_iterations: int = 50


# =============================================================================
# Sensitivity Configuration
# =============================================================================

@dataclass(frozen=True)
class SensitivitySettings:
    """
    Immutable bump sizes for bump-and-reprice sensitivities.

    Attributes
    ----------
    vol_bump : float
        Absolute volatility bump (0.01 = +1 vol point)
    rate_bump : float
        Absolute risk-free rate bump (0.01 = +100 bps)
    age_bump : int
        Issue age bump in years
    """

    vol_bump: float = 0.01
    rate_bump: float = 0.01
    age_bump: int = 1


# =============================================================================
# Master Configuration
# =============================================================================

@dataclass(frozen=True)
class Settings:
    """
    Master frozen configuration combining all sub-configs.

    Usage
    -----
    >>> from glwb_pricing.config.settings import SETTINGS
    >>> SETTINGS.simulation.default_seed
    42
    """

    simulation: SimulationSettings = SimulationSettings()
    solver: SolverSettings = SolverSettings()
    sensitivity: SensitivitySettings = SensitivitySettings()


# Singleton instance - import this
SETTINGS = Settings()
