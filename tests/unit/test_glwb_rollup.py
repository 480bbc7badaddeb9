"""
Tests for Rollup and Ratchet Mechanics.

[T1] Simple rollup: GWB = base × (1 + r × min(t, cap))
[T1] Compound rollup: GWB = base × (1 + r)^min(t, cap)
[T1] Ratchet: GWB = max(GWB, AV) on anniversaries
"""

import pytest

from glwb_pricing.config.tolerances import ROLLUP_TOLERANCE
from glwb_pricing.glwb.gwb_tracker import BenefitConfig, BenefitState
from glwb_pricing.glwb.rollup import (
    CompoundRollup,
    RollupType,
    SimpleRollup,
    apply_ratchet,
    calculate_rollup,
    calculate_rollup_with_cap,
    compare_rollup_methods,
    compound_rollup,
    get_rollup_mechanic,
    is_anniversary,
    linear_rollup,
)


class TestClosedForms:
    """Tests for the linear and compound rollup formulas."""

    def test_linear_five_years(self) -> None:
        """[T1] 100k × (1 + 0.06 × 5) = 130k"""
        assert linear_rollup(100_000, 0.06, 5.0, 10) == pytest.approx(130_000.0)

    def test_linear_capped(self) -> None:
        """Years beyond the cap add nothing."""
        assert linear_rollup(100_000, 0.06, 15.0, 10) == pytest.approx(160_000.0)

    def test_compound_five_years(self) -> None:
        """[T1] 100k × 1.06^5 = 133,822.56"""
        assert compound_rollup(100_000, 0.06, 5.0, 10) == pytest.approx(133_822.5578, rel=1e-9)

    def test_compound_at_and_beyond_cap_equal(self) -> None:
        at_cap = compound_rollup(100_000, 0.05, 10.0, 10)
        beyond = compound_rollup(100_000, 0.05, 25.0, 10)
        assert beyond == pytest.approx(at_cap, abs=ROLLUP_TOLERANCE)

    def test_zero_years_returns_base(self) -> None:
        assert linear_rollup(50_000, 0.07, 0.0, 10) == 50_000
        assert compound_rollup(50_000, 0.07, 0.0, 10) == 50_000

    def test_zero_cap_disables_growth(self) -> None:
        assert compound_rollup(100_000, 0.06, 5.0, 0) == 100_000

    def test_compound_exceeds_simple(self) -> None:
        """[T1] For t > 1, compounding beats simple interest."""
        assert compound_rollup(100_000, 0.06, 5, 10) > linear_rollup(100_000, 0.06, 5, 10)


class TestRollupMechanics:
    """Tests for the strategy classes and dispatcher."""

    def test_dispatch(self) -> None:
        assert isinstance(get_rollup_mechanic(RollupType.SIMPLE), SimpleRollup)
        assert isinstance(get_rollup_mechanic(RollupType.COMPOUND), CompoundRollup)
        assert get_rollup_mechanic(RollupType.NONE) is None

    def test_strategies_match_closed_forms(self) -> None:
        assert SimpleRollup().calculate(100_000, 0.05, 3, 10) == linear_rollup(100_000, 0.05, 3, 10)
        assert CompoundRollup().calculate(100_000, 0.05, 3, 10) == compound_rollup(100_000, 0.05, 3, 10)


class TestCalculateRollup:
    """Tests for state-based rollup dispatch."""

    def test_uses_rollup_base_not_current_gwb(self) -> None:
        """Rollup grows the anchor fixed at issue, not the ratcheted GWB."""
        state = BenefitState(
            gwb=120_000, av=120_000, rollup_base=100_000,
            high_water_mark=120_000, years_since_issue=2.0,
        )
        config = BenefitConfig(rollup_type=RollupType.SIMPLE, rollup_rate=0.05)
        assert calculate_rollup(state, config) == pytest.approx(110_000.0)

    def test_explicit_years_override(self) -> None:
        state = BenefitState.from_premium(100_000)
        config = BenefitConfig(rollup_type=RollupType.COMPOUND, rollup_rate=0.06)
        assert calculate_rollup(state, config, years=1.0) == pytest.approx(106_000.0)

    def test_none_returns_current_gwb(self) -> None:
        state = BenefitState(
            gwb=90_000, av=80_000, rollup_base=100_000,
            high_water_mark=100_000, years_since_issue=3.0,
        )
        config = BenefitConfig(rollup_type=RollupType.NONE)
        assert calculate_rollup(state, config) == 90_000


class TestRatchet:
    """Tests for the ratchet step-up."""

    def test_steps_up(self) -> None:
        assert apply_ratchet(100_000, 120_000) == 120_000

    def test_never_steps_down(self) -> None:
        assert apply_ratchet(100_000, 80_000) == 100_000


class TestIsAnniversary:
    """Tests for anniversary detection."""

    @pytest.mark.parametrize(
        "years, dt, expected",
        [
            (0.0, 1.0, True),
            (0.5, 1.0, True),
            (2.8, 0.1, False),
            (2.9, 0.1, True),   # lands exactly on year 3
            (2.95, 0.1, True),
            (3.0, 0.25, False),
            (0.75, 0.25, True),
            (0.5, 1 / 12, False),
            (0.91, 1 / 12, False),
            (0.92, 1 / 12, True),
        ],
    )
    def test_table(self, years: float, dt: float, expected: bool) -> None:
        assert is_anniversary(years, dt) is expected

    def test_monthly_steps_hit_each_anniversary_once(self) -> None:
        """Accumulated 1/12 steps must not drift past or short of a year boundary."""
        dt = 1.0 / 12
        years = 0.0
        hits = 0
        for _ in range(12 * 5):
            hits += is_anniversary(years, dt)
            years += dt
        assert hits == 5


class TestRollupWithCap:
    """Tests for the breakdown helper."""

    def test_years_capped(self) -> None:
        result = calculate_rollup_with_cap(100_000, 15, 0.05, 10, "compound")
        assert result.years == 10
        assert result.rolled_up_value == pytest.approx(100_000 * 1.05**10)
        assert result.rollup_amount == pytest.approx(result.rolled_up_value - 100_000)

    def test_effective_rate_compound_equals_rate(self) -> None:
        result = calculate_rollup_with_cap(100_000, 5, 0.06, 10, "compound")
        assert result.effective_rate == pytest.approx(0.06)

    def test_effective_rate_simple_below_rate(self) -> None:
        result = calculate_rollup_with_cap(100_000, 5, 0.06, 10, "simple")
        assert result.effective_rate < 0.06

    def test_zero_years(self) -> None:
        result = calculate_rollup_with_cap(100_000, 0, 0.06, 10)
        assert result.effective_rate == 0.0
        assert result.rollup_amount == 0.0

    @pytest.mark.parametrize(
        "base, years, rollup_type, match",
        [
            (0.0, 5, "compound", "Base"),
            (100_000, -1, "compound", "negative"),
            (100_000, 5, "stepped", "Unknown"),
        ],
    )
    def test_invalid_inputs(self, base: float, years: float, rollup_type: str, match: str) -> None:
        with pytest.raises(ValueError, match=match):
            calculate_rollup_with_cap(base, years, 0.05, 10, rollup_type)


class TestCompareRollupMethods:
    def test_breakdown(self) -> None:
        result = compare_rollup_methods(100_000, 0.06, 5, 10)
        assert result["simple"] == pytest.approx(130_000.0)
        assert result["difference"] == pytest.approx(result["compound"] - result["simple"])
        assert result["ratio"] > 1.0
