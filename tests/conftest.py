"""
Centralized pytest fixtures for the glwb-pricing test suite.

Fixture Categories:
1. Benefit configuration and state at issue
2. Market parameters
3. Simulators sized for fast unit tests
4. Behavioral collaborators (module-level, so they pickle for n_workers > 1)
"""

import logging

import pytest

from glwb_pricing.behavioral import (
    DynamicLapseModel,
    PolicyExpenseModel,
    SOAWithdrawalModel,
)
from glwb_pricing.glwb.gwb_tracker import BenefitConfig, BenefitState
from glwb_pricing.glwb.mortality import GompertzMakehamMortality, ZERO_MORTALITY
from glwb_pricing.glwb.path_sim import GLWBSimulator, MarketParams
from glwb_pricing.glwb.rollup import RollupType

# =============================================================================
# CONSTANTS
# =============================================================================

PREMIUM = 100_000.0
ISSUE_AGE = 65

#: Path count for unit tests; large enough for stable signs, small enough to be fast
FAST_PATHS = 200


# =============================================================================
# BENEFIT FIXTURES
# =============================================================================

@pytest.fixture
def default_config() -> BenefitConfig:
    """Compound 6% rollup, 10-year cap, 5% withdrawal, 1% fee on GWB."""
    return BenefitConfig()


@pytest.fixture
def no_rollup_config() -> BenefitConfig:
    """Benefit with neither rollup nor ratchet (pure withdrawal guarantee)."""
    return BenefitConfig(rollup_type=RollupType.NONE, ratchet_enabled=False)


@pytest.fixture
def issue_state() -> BenefitState:
    """State at issue for a $100,000 premium."""
    return BenefitState.from_premium(PREMIUM)


# =============================================================================
# MARKET FIXTURES
# =============================================================================

@pytest.fixture
def market() -> MarketParams:
    """Standard market: r = 4%, sigma = 20%."""
    return MarketParams(r=0.04, sigma=0.20)


# =============================================================================
# SIMULATOR FIXTURES
# =============================================================================

@pytest.fixture
def fast_simulator(default_config: BenefitConfig, market: MarketParams) -> GLWBSimulator:
    """Small simulator with default mortality and no behavioral collaborators."""
    return GLWBSimulator(
        config=default_config,
        market=market,
        n_paths=FAST_PATHS,
        mortality=GompertzMakehamMortality("male"),
        seed=42,
    )


@pytest.fixture
def immortal_simulator(default_config: BenefitConfig, market: MarketParams) -> GLWBSimulator:
    """Small simulator without mortality, isolating market risk."""
    return GLWBSimulator(
        config=default_config,
        market=market,
        n_paths=FAST_PATHS,
        mortality=ZERO_MORTALITY,
        seed=42,
    )


@pytest.fixture
def behavioral_simulator(fast_simulator: GLWBSimulator) -> GLWBSimulator:
    """Fast simulator with lapse, withdrawal and expense collaborators."""
    return GLWBSimulator(
        config=fast_simulator.config,
        market=fast_simulator.market,
        n_paths=fast_simulator.n_paths,
        mortality=fast_simulator.mortality,
        seed=fast_simulator.seed,
        lapse_model=DynamicLapseModel(),
        withdrawal_model=SOAWithdrawalModel(),
        expense_model=PolicyExpenseModel(),
    )


# =============================================================================
# LOGGING
# =============================================================================

@pytest.fixture
def glwb_caplog(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """caplog capturing DEBUG and above from the glwb_pricing loggers."""
    caplog.set_level(logging.DEBUG, logger="glwb_pricing")
    return caplog
