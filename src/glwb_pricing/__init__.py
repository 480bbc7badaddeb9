"""
glwb-pricing: Monte Carlo pricing of GLWB guarantees on variable annuities.

Quick Start
-----------
>>> from glwb_pricing import BenefitConfig, GLWBSimulator, MarketParams, solve_fair_fee
>>> sim = GLWBSimulator(BenefitConfig(fee_rate=0.01), MarketParams(r=0.04, sigma=0.18),
...                     n_paths=1_000)
>>> result = sim.price(premium=100_000, issue_age=65)
>>> fee = solve_fair_fee(sim, premium=100_000, issue_age=65, objective="net_cost")

Version: 0.1.0
"""

__version__ = "0.1.0"

# =============================================================================
# Benefit State Machine
# =============================================================================
from glwb_pricing.glwb.gwb_tracker import (
    BenefitConfig,
    BenefitState,
    FeeBasis,
    TransitionRecord,
    step,
)
from glwb_pricing.glwb.rollup import RollupType

# =============================================================================
# Simulation, Solver, Sensitivities
# =============================================================================
from glwb_pricing.glwb.path_sim import (
    GLWBPricingResult,
    GLWBSimulator,
    MarketParams,
    simulate,
)
from glwb_pricing.glwb.fair_fee import FairFeeResult, solve_fair_fee
from glwb_pricing.glwb.sensitivity import GLWBSensitivity, sensitivity_analysis

# =============================================================================
# Configuration and Errors
# =============================================================================
from glwb_pricing.config.settings import SETTINGS
from glwb_pricing.errors import InvalidConfigurationError

__all__ = [
    "__version__",
    # Benefit state machine
    "BenefitConfig",
    "BenefitState",
    "FeeBasis",
    "RollupType",
    "TransitionRecord",
    "step",
    # Simulation
    "MarketParams",
    "GLWBSimulator",
    "GLWBPricingResult",
    "simulate",
    # Solver and sensitivities
    "FairFeeResult",
    "solve_fair_fee",
    "GLWBSensitivity",
    "sensitivity_analysis",
    # Configuration
    "SETTINGS",
    "InvalidConfigurationError",
]
