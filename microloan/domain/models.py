"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class LoanStatus(str, Enum):
    """Rolled-up loan status"""

    ACTIVE = "ACTIVE"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class InstallmentStatus(str, Enum):
    """Installment status, persisted or computed at read time"""

    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


@dataclass(frozen=True)
class LoanTerms:
    """Terms requested for a new loan"""

    principal: Decimal
    interest_rate: Decimal  # Nominal annual rate, 0.10 = 10%
    term_count: int  # Monthly installments
    start_date: date


@dataclass(frozen=True)
class ScheduleRow:
    """Single installment of an amortization schedule"""

    installment_number: int
    due_date: date
    installment_amount: Decimal
    principal_amount: Decimal
    interest_amount: Decimal
    remaining_balance: Decimal  # Outstanding principal after this installment


@dataclass(frozen=True)
class ScheduleSummary:
    """Headline figures of a schedule"""

    principal: Decimal
    interest_rate: Decimal
    term_count: int
    start_date: date
    installment_amount: Decimal
    total_interest: Decimal
    total_amount: Decimal
    last_due_date: date | None


@dataclass(frozen=True)
class ResolvedStatus:
    """Read-time view of an installment"""

    computed_status: InstallmentStatus
    days_overdue: int


@dataclass(frozen=True)
class LoanBalances:
    """Repayment progress of a loan, derived from its installments"""

    total_amount: Decimal
    paid_amount: Decimal
    realized_interest: Decimal  # Interest collected through paid installments
    expected_interest: Decimal
    outstanding: Decimal
    remaining_count: int
