"""Installment status resolution and loan status roll-up"""

from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import Iterable, Mapping
from microloan.domain.models import InstallmentStatus, LoanBalances, LoanStatus, ResolvedStatus
from microloan.utils.date_utils import civil_days_between, to_civil_date


def resolve_installment_status(
    status: str,
    due_date: date,
    paid_at: datetime | None,
    today: date,
    tz: tzinfo | None = None,
) -> ResolvedStatus:
    """
    Classify an installment at read time. Never mutates stored state.

    Rules (date-only comparisons in the business timezone):
    - paid_at set: PAID, days overdue = days paid after the due date (min 0)
    - unpaid and today is past the due date: OVERDUE, days since due date
    - otherwise: the persisted status, 0 days
    """
    due = to_civil_date(due_date, tz)

    if paid_at is not None:
        paid_on = to_civil_date(paid_at, tz)
        return ResolvedStatus(InstallmentStatus.PAID, max(0, civil_days_between(due, paid_on)))

    if status != InstallmentStatus.PAID and today > due:
        return ResolvedStatus(InstallmentStatus.OVERDUE, civil_days_between(due, today))

    return ResolvedStatus(InstallmentStatus(status), 0)


def aggregate_loan_status(counts: Mapping[str, int]) -> LoanStatus:
    """
    Roll persisted installment status counts up into a loan status.

    Precedence: all PAID -> PAID; any OVERDUE -> OVERDUE; else ACTIVE.
    """
    total = sum(counts.values())
    paid = counts.get(InstallmentStatus.PAID.value, 0)
    overdue = counts.get(InstallmentStatus.OVERDUE.value, 0)

    if paid == total:
        return LoanStatus.PAID
    if overdue > 0:
        return LoanStatus.OVERDUE
    return LoanStatus.ACTIVE


def summarize_balances(installments: Iterable) -> LoanBalances:
    """Repayment progress from a loan's installments (persisted status)"""
    zero = Decimal("0")
    total = paid = realized = expected = zero
    remaining = 0

    for inst in installments:
        total += inst.installment_amount
        expected += inst.interest_amount
        if inst.status == InstallmentStatus.PAID:
            paid += inst.installment_amount
            realized += inst.interest_amount
        else:
            remaining += 1

    return LoanBalances(
        total_amount=total,
        paid_amount=paid,
        realized_interest=realized,
        expected_interest=expected,
        outstanding=total - paid,
        remaining_count=remaining,
    )
