"""
Policyholder behavior collaborators for GLWB simulation.

The simulator depends only on three capabilities:
- ``LapseModel.calculate_rate(gwb, av, duration, surrender_charge_length, age)``
- ``WithdrawalUtilizationModel.calculate_rate(gwb, av, duration, age, moneyness)``
- ``ExpenseModel.calculate_expense(av, contract_year, period_years)``

Reference implementations:
- Moneyness-based dynamic lapse and the SOA 2006 calibrated variant
- SOA 2018 calibrated GLWB utilization and a fixed-rate utilization
- Per-policy plus % of AV expenses
"""

from .dynamic_lapse import (
    DynamicLapseModel,
    LapseAssumptions,
    LapseModel,
    LapseResult,
    SOADynamicLapseModel,
    SOALapseAssumptions,
)
from .expenses import (
    ExpenseAssumptions,
    ExpenseModel,
    ExpenseResult,
    PolicyExpenseModel,
)
from .withdrawal import (
    FixedUtilizationModel,
    SOAWithdrawalAssumptions,
    SOAWithdrawalModel,
    SOAWithdrawalResult,
    WithdrawalUtilizationModel,
)

__all__ = [
    # Lapse
    "LapseModel",
    "DynamicLapseModel",
    "LapseAssumptions",
    "LapseResult",
    "SOADynamicLapseModel",
    "SOALapseAssumptions",
    # Withdrawal
    "WithdrawalUtilizationModel",
    "FixedUtilizationModel",
    "SOAWithdrawalModel",
    "SOAWithdrawalAssumptions",
    "SOAWithdrawalResult",
    # Expenses
    "ExpenseModel",
    "ExpenseAssumptions",
    "ExpenseResult",
    "PolicyExpenseModel",
]
