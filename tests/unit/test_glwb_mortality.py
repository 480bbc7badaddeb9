"""
Tests for Mortality Models.

[T1] qx = probability of death between age x and x+1
[T1] Per-step probability: 1 - (1 - qx)^dt
"""

import pickle

import pytest

from glwb_pricing.errors import InvalidConfigurationError
from glwb_pricing.glwb.mortality import (
    ZERO_MORTALITY,
    CallableMortality,
    ConstantMortality,
    GompertzMakehamMortality,
    MortalityModel,
    TableMortality,
    as_mortality_model,
    convert_annual_to_step,
    life_expectancy,
    survival_probability,
)


class TestGompertzMakeham:
    """Tests for the default mortality curve."""

    def test_increasing_in_age(self) -> None:
        model = GompertzMakehamMortality("male")
        rates = [model.qx(age) for age in range(40, 100, 5)]
        assert rates == sorted(rates)

    def test_female_below_male(self) -> None:
        male = GompertzMakehamMortality("male")
        female = GompertzMakehamMortality("female")
        assert female.qx(70) < male.qx(70)

    def test_capped_at_one(self) -> None:
        assert GompertzMakehamMortality().qx(200) == 1.0

    def test_invalid_gender(self) -> None:
        with pytest.raises(InvalidConfigurationError, match="gender"):
            GompertzMakehamMortality("other")  # type: ignore[arg-type]

    def test_satisfies_protocol(self) -> None:
        assert isinstance(GompertzMakehamMortality(), MortalityModel)


class TestConstantAndTable:
    def test_constant(self) -> None:
        assert ConstantMortality(0.02).qx(30) == 0.02
        assert ZERO_MORTALITY.qx(99) == 0.0

    @pytest.mark.parametrize("qx", [-0.1, 1.5])
    def test_constant_out_of_range(self, qx: float) -> None:
        with pytest.raises(InvalidConfigurationError):
            ConstantMortality(qx)

    def test_table_lookup_and_clamping(self) -> None:
        table = TableMortality({60: 0.01, 61: 0.012, 62: 0.015}, name="tiny")
        assert table.qx(61) == 0.012
        assert table.qx(50) == 0.01   # below first age
        assert table.qx(90) == 0.015  # beyond last age
        assert "tiny" in repr(table)

    def test_table_rejects_empty_and_invalid(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            TableMortality({})
        with pytest.raises(InvalidConfigurationError):
            TableMortality({60: 1.2})

    def test_table_pickles(self) -> None:
        table = TableMortality({60: 0.01, 70: 0.02})
        assert pickle.loads(pickle.dumps(table)).qx(65) == 0.01


class TestAsMortalityModel:
    def test_none_selects_default(self) -> None:
        assert isinstance(as_mortality_model(None), GompertzMakehamMortality)

    def test_model_passed_through(self) -> None:
        model = ConstantMortality(0.01)
        assert as_mortality_model(model) is model

    def test_callable_wrapped(self) -> None:
        model = as_mortality_model(lambda age: 0.001 * age)
        assert isinstance(model, CallableMortality)
        assert model.qx(50) == pytest.approx(0.05)

    def test_invalid_object_rejected(self) -> None:
        with pytest.raises(InvalidConfigurationError, match="mortality"):
            as_mortality_model(0.01)  # type: ignore[arg-type]


class TestHelpers:
    def test_convert_annual_to_step(self) -> None:
        """[T1] Twelve monthly survivals compound back to the annual survival."""
        q_month = convert_annual_to_step(0.12, 1 / 12)
        assert (1 - q_month) ** 12 == pytest.approx(0.88)

    def test_convert_clips_invalid_rates(self) -> None:
        assert convert_annual_to_step(1.5, 0.5) == 1.0
        assert convert_annual_to_step(-0.2, 0.5) == 0.0

    def test_survival_probability(self) -> None:
        assert survival_probability(60, 2, ConstantMortality(0.1)) == pytest.approx(0.81)
        assert survival_probability(60, 0, ConstantMortality(0.1)) == 1.0

    def test_life_expectancy_constant_mortality(self) -> None:
        """[T1] With constant q, e = Σ (1-q)^k, a truncated geometric series."""
        q = 0.1
        expected = sum((1 - q) ** k for k in range(1, 21))
        assert life_expectancy(100, ConstantMortality(q), max_age=120) == pytest.approx(expected)

    def test_life_expectancy_decreases_with_age(self) -> None:
        model = GompertzMakehamMortality()
        assert life_expectancy(65, model) > life_expectancy(80, model)
