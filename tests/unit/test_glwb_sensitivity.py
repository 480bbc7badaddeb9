"""
Tests for bump-and-reprice GLWB sensitivities.

[T1] Forward differences on a fixed seed: V(bumped) - V(base).
"""

import logging

import pytest

from glwb_pricing.glwb.path_sim import GLWBSimulator
from glwb_pricing.glwb.sensitivity import GLWBSensitivity, sensitivity_analysis


class TestSensitivityAnalysis:
    def test_fields_and_dict(self, fast_simulator: GLWBSimulator) -> None:
        sens = sensitivity_analysis(fast_simulator, 100_000, 65, max_age=90)

        assert isinstance(sens, GLWBSensitivity)
        assert set(sens.as_dict()) == {
            "base_price", "vega", "rho", "age_sensitivity", "prob_ruin",
        }

    def test_base_matches_direct_price(self, fast_simulator: GLWBSimulator) -> None:
        base = fast_simulator.price(100_000, 65, max_age=90)
        sens = sensitivity_analysis(fast_simulator, 100_000, 65, max_age=90)

        assert sens.base_price == base.price
        assert sens.prob_ruin == base.prob_ruin

    def test_vega_matches_manual_bump(self, fast_simulator: GLWBSimulator) -> None:
        sens = sensitivity_analysis(fast_simulator, 100_000, 65, vol_bump=0.02, max_age=90)
        bumped = fast_simulator.with_market(sigma=0.22).price(100_000, 65, max_age=90)

        assert sens.vega == pytest.approx(bumped.price - sens.base_price)

    def test_guarantee_long_volatility(self, immortal_simulator: GLWBSimulator) -> None:
        """[T1] The guarantee is a put-like option on AV: vega > 0."""
        sens = sensitivity_analysis(immortal_simulator, 100_000, 65, vol_bump=0.05, max_age=95)
        assert sens.vega > 0

    def test_higher_rates_cheapen_guarantee(self, immortal_simulator: GLWBSimulator) -> None:
        """[T1] Higher risk-neutral drift delays ruin and discounts payments more."""
        sens = sensitivity_analysis(immortal_simulator, 100_000, 65, rate_bump=0.02, max_age=95)
        assert sens.rho < 0

    def test_age_bump_at_terminal_age(self, fast_simulator: GLWBSimulator) -> None:
        sens = sensitivity_analysis(fast_simulator, 100_000, 89, max_age=90)
        assert sens.age_sensitivity == 0.0

    def test_bumps_logged_at_debug(
        self,
        fast_simulator: GLWBSimulator,
        glwb_caplog: pytest.LogCaptureFixture,
    ) -> None:
        sensitivity_analysis(fast_simulator, 100_000, 65, max_age=80)

        debug = " ".join(r.getMessage() for r in glwb_caplog.records if r.levelno == logging.DEBUG)
        assert "Vega bump" in debug
        assert "Rho bump" in debug
        assert "Age bump" in debug
