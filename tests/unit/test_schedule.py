"""Unit tests for amortization schedule generation"""

import pytest
from datetime import date
from decimal import Decimal
from microloan.domain.schedule import generate_schedule, level_payment, monthly_rate, summarize_schedule
from microloan.domain.exceptions import InvalidInputError


def test_level_payment_standard_loan():
    """Test 1000 at 12% over 12 months -> 88.85"""
    assert monthly_rate(Decimal("0.12")) == Decimal("0.01")
    assert level_payment(Decimal("1000"), Decimal("0.12"), 12) == Decimal("88.85")


def test_generate_schedule_standard_loan():
    """Test the reference scenario row by row where it is hand-checkable"""
    rows = generate_schedule(Decimal("1000"), Decimal("0.12"), 12, date(2024, 1, 15))

    assert len(rows) == 12
    assert [r.installment_number for r in rows] == list(range(1, 13))

    first, second = rows[0], rows[1]
    assert first.installment_amount == Decimal("88.85")
    assert first.interest_amount == Decimal("10.00")
    assert first.principal_amount == Decimal("78.85")
    assert first.remaining_balance == Decimal("921.15")
    assert second.interest_amount == Decimal("9.21")
    assert second.principal_amount == Decimal("79.64")
    assert second.remaining_balance == Decimal("841.51")

    assert rows[-1].remaining_balance == Decimal("0.00")
    assert sum(r.principal_amount for r in rows) == Decimal("1000.00")


def test_generate_schedule_due_dates_monthly():
    """Test installment k falls due k calendar months after the start date"""
    rows = generate_schedule(Decimal("1000"), Decimal("0.12"), 12, date(2024, 1, 15))

    assert rows[0].due_date == date(2024, 2, 15)
    assert rows[1].due_date == date(2024, 3, 15)
    assert rows[-1].due_date == date(2025, 1, 15)


def test_generate_schedule_month_end_clamping():
    """Test a 31st start clamps to short months without drifting"""
    rows = generate_schedule(Decimal("600"), Decimal("0.10"), 6, date(2024, 1, 31))

    assert [r.due_date for r in rows] == [
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
        date(2024, 5, 31),
        date(2024, 6, 30),
        date(2024, 7, 31),
    ]


def test_generate_schedule_last_row_absorbs_residue():
    """Test last row retires the remaining principal exactly"""
    rows = generate_schedule(Decimal("1000"), Decimal("0.12"), 12, date(2024, 1, 15))
    last, before_last = rows[-1], rows[-2]

    assert last.principal_amount == before_last.remaining_balance
    assert last.installment_amount == last.principal_amount + last.interest_amount


def test_generate_schedule_zero_rate():
    """Test zero interest splits principal evenly, last row takes the remainder"""
    rows = generate_schedule(Decimal("1000"), Decimal("0"), 6, date(2024, 1, 15))

    assert all(r.interest_amount == Decimal("0") for r in rows)
    assert all(r.installment_amount == Decimal("166.67") for r in rows[:-1])
    assert rows[-1].principal_amount == Decimal("166.65")
    assert rows[-1].remaining_balance == Decimal("0.00")


@pytest.mark.parametrize("principal", ["300", "1234.56", "5350", "200000"])
@pytest.mark.parametrize("rate", ["0.10", "0.35", "1.20"])
@pytest.mark.parametrize("term_count", [6, 13, 60])
def test_generate_schedule_invariants(principal, rate, term_count):
    """Test row count, ordering, exact decomposition and zero final balance"""
    principal = Decimal(principal)
    rows = generate_schedule(principal, Decimal(rate), term_count, date(2024, 3, 31))

    assert len(rows) == term_count
    assert sum(r.principal_amount for r in rows) == principal
    assert rows[-1].remaining_balance == Decimal("0.00")

    for row in rows:
        assert row.installment_amount == row.principal_amount + row.interest_amount
        assert row.principal_amount > 0

    for prev, row in zip(rows, rows[1:]):
        assert row.installment_number == prev.installment_number + 1
        assert row.due_date > prev.due_date
        assert row.remaining_balance < prev.remaining_balance


def test_generate_schedule_is_deterministic():
    """Test identical input yields identical output"""
    args = (Decimal("2500"), Decimal("0.18"), 24, date(2024, 5, 20))
    assert generate_schedule(*args) == generate_schedule(*args)


def test_generate_schedule_accepts_floats_without_drift():
    """Test float inputs go through their decimal repr"""
    rows = generate_schedule(1000.0, 0.12, 12, date(2024, 1, 15))
    assert rows[0].installment_amount == Decimal("88.85")


@pytest.mark.parametrize(
    "principal, rate, term_count",
    [
        (Decimal("0"), Decimal("0.12"), 12),
        (Decimal("-100"), Decimal("0.12"), 12),
        (Decimal("1000"), Decimal("0.12"), 0),
        (Decimal("1000"), Decimal("0.12"), -3),
        (Decimal("1000"), Decimal("-0.01"), 12),
    ],
)
def test_generate_schedule_invalid_input(principal, rate, term_count):
    """Test structurally invalid input raises instead of returning a schedule"""
    with pytest.raises(InvalidInputError):
        generate_schedule(principal, rate, term_count, date(2024, 1, 15))


def test_summarize_schedule():
    """Test headline totals match the rows"""
    start = date(2024, 1, 15)
    rows = generate_schedule(Decimal("1000"), Decimal("0.12"), 12, start)
    summary = summarize_schedule(Decimal("1000"), Decimal("0.12"), 12, start, rows)

    assert summary.installment_amount == Decimal("88.85")
    assert summary.total_amount == sum(r.installment_amount for r in rows)
    assert summary.total_interest == summary.total_amount - Decimal("1000")
    assert summary.last_due_date == date(2025, 1, 15)


def test_generate_schedule_tiny_principal_never_overpays():
    """Test rounded-up payments stop at zero instead of driving the balance negative"""
    rows = generate_schedule(Decimal("0.05"), Decimal("0"), 7, date(2024, 1, 15))

    assert [r.remaining_balance for r in rows] == [
        Decimal("0.04"),
        Decimal("0.03"),
        Decimal("0.02"),
        Decimal("0.01"),
        Decimal("0.00"),
        Decimal("0.00"),
        Decimal("0.00"),
    ]
    assert rows[-1].principal_amount == Decimal("0.00")
    assert rows[-1].installment_amount == Decimal("0.00")


@pytest.mark.parametrize("principal", ["0.01", "0.05", "0.99", "1.00", "3.33"])
@pytest.mark.parametrize("rate", ["0", "0.10", "0.35"])
@pytest.mark.parametrize("term_count", [7, 60])
def test_generate_schedule_small_principal_invariants(principal, rate, term_count):
    """Test small amounts over long terms keep a non-negative, non-increasing balance"""
    principal = Decimal(principal)
    rows = generate_schedule(principal, Decimal(rate), term_count, date(2024, 1, 31))

    assert len(rows) == term_count
    assert sum(r.principal_amount for r in rows) == principal
    assert rows[-1].remaining_balance == Decimal("0.00")

    balances = [principal] + [r.remaining_balance for r in rows]
    for prev, current in zip(balances, balances[1:]):
        assert Decimal("0") <= current <= prev

    for row in rows:
        assert row.principal_amount >= 0
        assert row.installment_amount == row.principal_amount + row.interest_amount
