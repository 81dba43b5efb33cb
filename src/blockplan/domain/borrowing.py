# src/blockplan/domain/borrowing.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

RepaymentFrequency = Literal["weekly", "fortnightly", "monthly"]

FREQUENCY_PER_YEAR: dict[str, int] = {
    "weekly": 52,
    "fortnightly": 26,
    "monthly": 12,
}


@dataclass(frozen=True)
class BorrowingCapacityResult:
    borrowing_capacity: float
    total_repayments: float
    total_interest: float
    total_fees: float


def _fees_per_repayment(
    fees: float,
    fees_frequency: RepaymentFrequency,
    repayment_frequency: RepaymentFrequency,
) -> float:
    per_year = fees * FREQUENCY_PER_YEAR[fees_frequency]
    return per_year / FREQUENCY_PER_YEAR[repayment_frequency]


def calculate_borrowing_capacity(
    affordable_repayment: float,
    interest_rate: float,
    loan_term_years: int,
    repayment_frequency: RepaymentFrequency = "monthly",
    fees_per_period: float = 0.0,
    fees_frequency: RepaymentFrequency = "monthly",
) -> BorrowingCapacityResult:
    """
    Maximum loan an affordable repayment supports.

    Present value of an annuity:
        L = (R - F) * (1 - (1 + r)^-n) / r
    R repayment per period, F fees per period, r periodic rate
    (interest_rate is a percentage, e.g. 6.04), n number of repayments.
    """
    periods_per_year = FREQUENCY_PER_YEAR[repayment_frequency]
    n = loan_term_years * periods_per_year
    fees = _fees_per_repayment(fees_per_period, fees_frequency, repayment_frequency)
    net_repayment = affordable_repayment - fees

    if net_repayment <= 0:
        return BorrowingCapacityResult(
            borrowing_capacity=0.0,
            total_repayments=0.0,
            total_interest=0.0,
            total_fees=fees * n,
        )

    if interest_rate == 0:
        return BorrowingCapacityResult(
            borrowing_capacity=float(round(net_repayment * n)),
            total_repayments=affordable_repayment * n,
            total_interest=0.0,
            total_fees=fees * n,
        )

    r = (interest_rate / 100.0) / periods_per_year
    capacity = net_repayment * ((1 - (1 + r) ** -n) / r)

    total_repayments = affordable_repayment * n
    total_fees = fees * n
    total_interest = total_repayments - total_fees - capacity

    return BorrowingCapacityResult(
        borrowing_capacity=float(round(capacity)),
        total_repayments=float(round(total_repayments)),
        total_interest=float(round(max(0.0, total_interest))),
        total_fees=float(round(total_fees)),
    )
