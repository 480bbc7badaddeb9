"""
Mortality Models for GLWB Simulation.

[T1] Death terminates the GLWB liability, so the simulator needs an annual
death probability qx for every age it visits. The simulator depends only on
the ``MortalityModel`` capability ``qx(age)``; tables, fitted curves and
test stubs are interchangeable.

Theory
------
[T1] qx = probability of death between age x and x+1
[T1] Per-step probability for a step of dt years: 1 - (1 - qx)^dt
[T1] npx = Π(k=0..n-1) (1 - q_{x+k})
[T1] e_x = Σ(k=1..∞) k_p_x  (curtate life expectancy)
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

import numpy as np

from ..errors import InvalidConfigurationError


@runtime_checkable
class MortalityModel(Protocol):
    """Strategy returning the annual death probability at an integer age."""

    def qx(self, age: int) -> float:
        ...


@dataclass(frozen=True)
class GompertzMakehamMortality:
    """
    Gompertz-Makeham mortality: qx = A + B × exp(C × (age - x0)), capped at 1.

    [T2] Parameters approximate SOA 2012 IAM Basic.

    Examples
    --------
    >>> model = GompertzMakehamMortality("male")
    >>> 0.0 < model.qx(65) < model.qx(80) < 1.0
    True
    """

    gender: Literal["male", "female"] = "male"

    def __post_init__(self) -> None:
        if self.gender not in ("male", "female"):
            raise InvalidConfigurationError(
                f"CRITICAL: gender must be 'male' or 'female', got {self.gender!r}"
            )

    def qx(self, age: int) -> float:
        if self.gender == "male":
            a, b, c = 0.00005, 0.00003, 0.095
        else:
            a, b, c = 0.00004, 0.000025, 0.090
        x0 = 25
        return float(min(a + b * np.exp(c * (age - x0)), 1.0))


@dataclass(frozen=True)
class ConstantMortality:
    """Constant annual death probability (for testing)."""

    annual_qx: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.annual_qx <= 1.0:
            raise InvalidConfigurationError(
                f"CRITICAL: annual_qx must be in [0, 1], got {self.annual_qx}"
            )

    def qx(self, age: int) -> float:
        return self.annual_qx


#: Immortal policyholder; isolates market risk from mortality risk.
ZERO_MORTALITY = ConstantMortality(0.0)


class TableMortality:
    """
    Mortality from an explicit {age: qx} table.

    Ages below the first tabulated age use the first rate; ages beyond the
    last use the last rate.
    """

    def __init__(self, qx_by_age: Mapping[int, float], name: str = "custom"):
        if not qx_by_age:
            raise InvalidConfigurationError("CRITICAL: mortality table is empty")
        ages = np.array(sorted(qx_by_age), dtype=int)
        rates = np.array([qx_by_age[a] for a in ages], dtype=float)
        if np.any(rates < 0) or np.any(rates > 1):
            raise InvalidConfigurationError(
                f"CRITICAL: qx values must be in [0, 1] for table {name!r}"
            )
        self.name = name
        self._ages = ages
        self._rates = rates

    def qx(self, age: int) -> float:
        idx = np.searchsorted(self._ages, age, side="right") - 1
        idx = int(np.clip(idx, 0, len(self._ages) - 1))
        return float(self._rates[idx])

    def __repr__(self) -> str:
        return (
            f"TableMortality(name={self.name!r}, "
            f"ages={self._ages[0]}-{self._ages[-1]})"
        )


@dataclass(frozen=True)
class CallableMortality:
    """Adapter exposing a bare ``age -> qx`` callable as a MortalityModel."""

    func: Callable[[int], float]

    def qx(self, age: int) -> float:
        return float(self.func(age))


def as_mortality_model(
    mortality: MortalityModel | Callable[[int], float] | None,
) -> MortalityModel:
    """
    Coerce a mortality argument to a MortalityModel.

    None selects the default Gompertz-Makeham male curve; a bare callable
    is wrapped.
    """
    if mortality is None:
        return GompertzMakehamMortality()
    if isinstance(mortality, MortalityModel):
        return mortality
    if callable(mortality):
        return CallableMortality(mortality)
    raise InvalidConfigurationError(
        f"CRITICAL: mortality must provide qx(age) or be callable, got {type(mortality).__name__}"
    )


def convert_annual_to_step(annual_rate: float, dt: float) -> float:
    """
    Convert an annual decrement probability to a per-step probability.

    [T1] q_step = 1 - (1 - q_annual)^dt

    The annual rate is clipped to [0, 1] first so the result is always a
    valid probability.
    """
    q = min(max(annual_rate, 0.0), 1.0)
    return 1.0 - (1.0 - q) ** dt


def survival_probability(
    age: int,
    years: int,
    mortality: MortalityModel | Callable[[int], float],
) -> float:
    """[T1] Probability of surviving ``years`` years from ``age``."""
    model = as_mortality_model(mortality)
    px = 1.0
    for k in range(years):
        px *= 1.0 - model.qx(age + k)
    return px


def life_expectancy(
    age: int,
    mortality: MortalityModel | Callable[[int], float],
    max_age: int = 120,
) -> float:
    """
    Curtate life expectancy.

    [T1] e_x = Σ k_p_x for k = 1 .. (max_age - age)
    """
    model = as_mortality_model(mortality)
    ex = 0.0
    px_cum = 1.0
    for k in range(max_age - age):
        px_cum *= 1.0 - model.qx(age + k)
        ex += px_cum
    return ex
