"""
Expense Collaborators.

Policy maintenance expenses tracked alongside the guarantee cost.

Theory
------
[T1] Period expense = per_policy × (1 + inflation)^contract_year × period
     + AV × pct_of_av × period

[T3] PV of expenses = Σ expense(t, dt) × exp(-r t), summed by the simulator
     over the steps a policy is in force with positive AV.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..errors import InvalidConfigurationError


@runtime_checkable
class ExpenseModel(Protocol):
    """Expense incurred over a period of ``period_years`` at account value ``av``."""

    def calculate_expense(
        self, av: float, contract_year: int, period_years: float = 1.0
    ) -> float:
        ...


@dataclass(frozen=True)
class ExpenseAssumptions:
    """
    Expense assumptions.

    Attributes
    ----------
    per_policy_annual : float
        Fixed annual per-policy expense (e.g., $100)
    pct_of_av_annual : float
        Annual percentage of AV (M&E), e.g. 0.015 for 1.50%
    inflation_rate : float
        Annual inflation rate for per-policy expenses
    """

    per_policy_annual: float = 100.0
    pct_of_av_annual: float = 0.0150
    inflation_rate: float = 0.025

    def __post_init__(self) -> None:
        if self.per_policy_annual < 0:
            raise InvalidConfigurationError(
                f"CRITICAL: per_policy_annual must be >= 0, got {self.per_policy_annual}"
            )
        if not 0.0 <= self.pct_of_av_annual <= 1.0:
            raise InvalidConfigurationError(
                f"CRITICAL: pct_of_av_annual must be in [0, 1], got {self.pct_of_av_annual}"
            )
        if self.inflation_rate <= -1.0:
            raise InvalidConfigurationError(
                f"CRITICAL: inflation_rate must be > -1, got {self.inflation_rate}"
            )


@dataclass(frozen=True)
class ExpenseResult:
    """
    Period expense with breakdown.

    Attributes
    ----------
    total_expense : float
        Per-policy plus AV component
    per_policy_component : float
        Fixed per-policy portion (inflated)
    av_component : float
        % of AV portion
    """

    total_expense: float
    per_policy_component: float
    av_component: float


class PolicyExpenseModel:
    """
    Per-policy plus percentage-of-AV expense model.

    Examples
    --------
    >>> model = PolicyExpenseModel(ExpenseAssumptions())
    >>> model.calculate_expense(av=100_000, contract_year=0)
    1600.0
    >>> model.calculate_expense(av=100_000, contract_year=0, period_years=0.5)
    800.0
    """

    def __init__(self, assumptions: ExpenseAssumptions | None = None):
        self.assumptions = assumptions or ExpenseAssumptions()

    def calculate_period_expense(
        self,
        av: float,
        period_years: float = 1.0,
        years_from_issue: int = 0,
    ) -> ExpenseResult:
        """
        Expense over a period starting in a given contract year.

        [T1] expense = per_policy × inflation × period + AV × pct × period

        Parameters
        ----------
        av : float
            Account value (for the % of AV component)
        period_years : float
            Length of period in years (1/12 for a monthly step)
        years_from_issue : int
            Completed years since issue (0 in the first year), drives inflation

        Returns
        -------
        ExpenseResult
            Expense with breakdown
        """
        if period_years <= 0:
            raise ValueError(f"Period must be positive, got {period_years}")
        if av < 0:
            raise ValueError(f"Account value cannot be negative, got {av}")

        a = self.assumptions
        inflation_factor = (1.0 + a.inflation_rate) ** years_from_issue
        per_policy = a.per_policy_annual * inflation_factor * period_years
        av_component = av * a.pct_of_av_annual * period_years

        return ExpenseResult(
            total_expense=per_policy + av_component,
            per_policy_component=per_policy,
            av_component=av_component,
        )

    def calculate_expense(
        self, av: float, contract_year: int, period_years: float = 1.0
    ) -> float:
        return self.calculate_period_expense(av, period_years, contract_year).total_expense
