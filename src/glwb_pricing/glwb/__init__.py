"""
GLWB (Guaranteed Lifetime Withdrawal Benefit) Pricing.

Implements path-dependent pricing for GLWB riders:
- Benefit state machine (rollup, ratchet, fee, withdrawal)
- Path-dependent MC simulation
- Fair-fee bisection and bump-and-reprice sensitivities

See: Bauer, Kling & Russ (2008), "Universal Pricing of Guaranteed Minimum Benefits"
"""

from .fair_fee import FairFeeResult, solve_fair_fee
from .gwb_tracker import (
    BenefitConfig,
    BenefitState,
    FeeBasis,
    TransitionRecord,
    max_withdrawal,
    simulate_path,
    step,
)
from .mortality import (
    ZERO_MORTALITY,
    ConstantMortality,
    GompertzMakehamMortality,
    MortalityModel,
    TableMortality,
    as_mortality_model,
    convert_annual_to_step,
    life_expectancy,
    survival_probability,
)
from .path_sim import (
    GLWBPricingResult,
    GLWBSimulator,
    MarketParams,
    PathResult,
    paths_to_frame,
    simulate,
)
from .rollup import (
    CompoundRollup,
    RollupResult,
    RollupType,
    SimpleRollup,
    apply_ratchet,
    calculate_rollup,
    calculate_rollup_with_cap,
    compare_rollup_methods,
    compound_rollup,
    is_anniversary,
    linear_rollup,
)
from .sensitivity import GLWBSensitivity, sensitivity_analysis

__all__ = [
    # Benefit state machine
    "BenefitConfig",
    "BenefitState",
    "FeeBasis",
    "TransitionRecord",
    "step",
    "max_withdrawal",
    "simulate_path",
    # Rollup mechanics
    "RollupType",
    "SimpleRollup",
    "CompoundRollup",
    "RollupResult",
    "linear_rollup",
    "compound_rollup",
    "calculate_rollup",
    "apply_ratchet",
    "is_anniversary",
    "calculate_rollup_with_cap",
    "compare_rollup_methods",
    # Mortality
    "MortalityModel",
    "GompertzMakehamMortality",
    "ConstantMortality",
    "TableMortality",
    "ZERO_MORTALITY",
    "as_mortality_model",
    "convert_annual_to_step",
    "survival_probability",
    "life_expectancy",
    # Path simulation
    "MarketParams",
    "GLWBSimulator",
    "GLWBPricingResult",
    "PathResult",
    "paths_to_frame",
    "simulate",
    # Solver and sensitivities
    "FairFeeResult",
    "solve_fair_fee",
    "GLWBSensitivity",
    "sensitivity_analysis",
]
