"""Level-payment amortization schedule generation"""

from datetime import date
from decimal import Decimal
from typing import List, Sequence
from microloan.domain.exceptions import InvalidInputError
from microloan.domain.models import ScheduleRow, ScheduleSummary
from microloan.utils.date_utils import add_months, to_civil_date
from microloan.utils.money import round_currency, to_decimal

ZERO = Decimal("0")


def monthly_rate(interest_rate: Decimal) -> Decimal:
    """Nominal annual rate -> periodic monthly rate"""
    return to_decimal(interest_rate) / 12


def level_payment(principal: Decimal, interest_rate: Decimal, term_count: int) -> Decimal:
    """
    Constant periodic payment that amortizes principal over term_count months.

    payment = P * i / (1 - (1 + i)^-n), or P / n when i == 0.
    Rounded half-up to cents.
    """
    i = monthly_rate(interest_rate)
    if i == 0:
        return round_currency(principal / term_count)
    return round_currency(principal * i / (1 - (1 + i) ** -term_count))


def _validate(principal: Decimal, interest_rate: Decimal, term_count: int) -> None:
    if principal <= 0:
        raise InvalidInputError(f"principal must be positive, got {principal}")
    if isinstance(term_count, bool) or not isinstance(term_count, int) or term_count <= 0:
        raise InvalidInputError(f"term_count must be a positive integer, got {term_count!r}")
    if interest_rate < 0:
        raise InvalidInputError(f"interest_rate must not be negative, got {interest_rate}")


def generate_schedule(
    principal: Decimal,
    interest_rate: Decimal,
    term_count: int,
    start_date: date,
) -> List[ScheduleRow]:
    """
    Generate a level-payment (French) amortization schedule.

    Requirements:
    - Monthly rate is the nominal annual rate / 12
    - Every figure rounded half-up to cents
    - Installment k falls due k calendar months after start_date
    - Last installment absorbs the rounding residue so the balance ends at exactly 0.00

    Args:
        principal: Amount lent
        interest_rate: Nominal annual rate (0.12 = 12%)
        term_count: Number of monthly installments
        start_date: Loan start date (civil date)

    Returns:
        List of ScheduleRow ordered by installment number

    Raises:
        InvalidInputError: On non-positive principal/term_count or negative rate

    Example:
        1000.00 at 12% over 12 months -> payment 88.85, balance 0.00 after row 12
    """
    principal = round_currency(to_decimal(principal))
    interest_rate = to_decimal(interest_rate)
    _validate(principal, interest_rate, term_count)

    start_date = to_civil_date(start_date)
    i = monthly_rate(interest_rate)
    payment = level_payment(principal, interest_rate, term_count)

    rows = []
    balance = principal
    for k in range(1, term_count + 1):
        interest = round_currency(balance * i)

        if k == term_count:
            # Last installment retires whatever principal is left
            principal_part = balance
            amount = principal_part + interest
        else:
            # Rounded-up payments can retire a tiny principal early; never overpay it
            principal_part = min(payment - interest, balance)
            amount = principal_part + interest

        balance = balance - principal_part
        rows.append(
            ScheduleRow(
                installment_number=k,
                due_date=add_months(start_date, k),
                installment_amount=amount,
                principal_amount=principal_part,
                interest_amount=interest,
                remaining_balance=balance,
            )
        )

    return rows


def summarize_schedule(
    principal: Decimal,
    interest_rate: Decimal,
    term_count: int,
    start_date: date,
    rows: Sequence[ScheduleRow],
) -> ScheduleSummary:
    """Headline figures shown alongside a schedule preview"""
    total_interest = sum((r.interest_amount for r in rows), ZERO)
    total_amount = sum((r.installment_amount for r in rows), ZERO)

    return ScheduleSummary(
        principal=to_decimal(principal),
        interest_rate=to_decimal(interest_rate),
        term_count=term_count,
        start_date=start_date,
        installment_amount=rows[0].installment_amount if rows else ZERO,
        total_interest=round_currency(total_interest),
        total_amount=round_currency(total_amount),
        last_due_date=rows[-1].due_date if rows else None,
    )
