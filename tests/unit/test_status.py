"""Unit tests for installment status resolution and loan roll-up"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from zoneinfo import ZoneInfo
from microloan.domain.models import InstallmentStatus, LoanStatus
from microloan.domain.status import aggregate_loan_status, resolve_installment_status, summarize_balances

LIMA = ZoneInfo("America/Lima")
DUE = date(2024, 3, 15)


def test_unpaid_past_due_is_overdue():
    """Test unpaid installment past its due date resolves to OVERDUE"""
    resolved = resolve_installment_status("PENDING", DUE, None, date(2024, 3, 20), LIMA)

    assert resolved.computed_status == InstallmentStatus.OVERDUE
    assert resolved.days_overdue == 5


def test_unpaid_on_due_date_is_pending():
    """Test due today is not yet overdue"""
    resolved = resolve_installment_status("PENDING", DUE, None, DUE, LIMA)

    assert resolved.computed_status == InstallmentStatus.PENDING
    assert resolved.days_overdue == 0


def test_paid_on_time():
    """Test payment on or before the due date carries no overdue days"""
    paid_at = datetime(2024, 3, 15, 18, 30, tzinfo=LIMA)
    resolved = resolve_installment_status("PAID", DUE, paid_at, date(2024, 6, 1), LIMA)

    assert resolved.computed_status == InstallmentStatus.PAID
    assert resolved.days_overdue == 0


def test_paid_late_counts_days_until_payment():
    """Test late payment reports days between due date and payment"""
    paid_at = datetime(2024, 3, 18, 9, 0, tzinfo=LIMA)
    resolved = resolve_installment_status("PAID", DUE, paid_at, date(2024, 6, 1), LIMA)

    assert resolved.computed_status == InstallmentStatus.PAID
    assert resolved.days_overdue == 3


def test_paid_at_compared_in_business_timezone():
    """Test a UTC timestamp after midnight is still the due date in Lima"""
    paid_at = datetime(2024, 3, 16, 3, 0, tzinfo=timezone.utc)  # 22:00 on the 15th in Lima
    resolved = resolve_installment_status("PAID", DUE, paid_at, date(2024, 6, 1), LIMA)

    assert resolved.days_overdue == 0


def test_naive_paid_at_is_read_as_utc():
    """Test naive stored timestamps are taken as UTC"""
    resolved = resolve_installment_status("PAID", DUE, datetime(2024, 3, 17, 4, 0), date(2024, 6, 1), LIMA)

    assert resolved.days_overdue == 1


def test_persisted_status_kept_when_not_past_due():
    """Test a status marked by the sweep is shown as stored"""
    resolved = resolve_installment_status("OVERDUE", DUE, None, date(2024, 3, 1), LIMA)

    assert resolved.computed_status == InstallmentStatus.OVERDUE
    assert resolved.days_overdue == 0


@pytest.mark.parametrize(
    "counts, expected",
    [
        ({"PAID": 12}, LoanStatus.PAID),
        ({"PAID": 11, "OVERDUE": 1}, LoanStatus.OVERDUE),
        ({"PENDING": 10, "OVERDUE": 2}, LoanStatus.OVERDUE),
        ({"PAID": 3, "PENDING": 9}, LoanStatus.ACTIVE),
        ({"PENDING": 12}, LoanStatus.ACTIVE),
    ],
)
def test_aggregate_loan_status(counts, expected):
    """Test precedence: all PAID, then any OVERDUE, then ACTIVE"""
    assert aggregate_loan_status(counts) == expected


def test_aggregate_accepts_enum_keys():
    """Test counts keyed by InstallmentStatus members"""
    counts = {InstallmentStatus.PAID: 5, InstallmentStatus.PENDING: 1}
    assert aggregate_loan_status(counts) == LoanStatus.ACTIVE


def test_summarize_balances():
    """Test paid amount, realized interest and outstanding from installments"""
    installments = [
        SimpleNamespace(installment_amount=Decimal("88.85"), interest_amount=Decimal("10.00"), status="PAID"),
        SimpleNamespace(installment_amount=Decimal("88.85"), interest_amount=Decimal("9.21"), status="OVERDUE"),
        SimpleNamespace(installment_amount=Decimal("88.83"), interest_amount=Decimal("8.40"), status="PENDING"),
    ]

    balances = summarize_balances(installments)

    assert balances.total_amount == Decimal("266.53")
    assert balances.paid_amount == Decimal("88.85")
    assert balances.realized_interest == Decimal("10.00")
    assert balances.expected_interest == Decimal("27.61")
    assert balances.outstanding == Decimal("177.68")
    assert balances.remaining_count == 2
