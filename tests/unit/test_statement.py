"""Unit tests for the schedule statement renderer"""

import pytest
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from microloan.domain.schedule import generate_schedule
from microloan.infrastructure.documents.statement import ScheduleTableRenderer, statement_filename

CLIENT = SimpleNamespace(first_name="Rosa", last_name="Quispe", dni="45678912")


def make_loan(term_count: int) -> SimpleNamespace:
    return SimpleNamespace(
        id=7,
        principal=Decimal("1000.00"),
        interest_rate=Decimal("0.12"),
        term_count=term_count,
        start_date=date(2024, 1, 15),
    )


def render(term_count: int, renderer: ScheduleTableRenderer | None = None):
    loan = make_loan(term_count)
    rows = generate_schedule(loan.principal, loan.interest_rate, term_count, loan.start_date)
    renderer = renderer or ScheduleTableRenderer(margin=40)
    return renderer.render(CLIENT, loan, rows)


def test_columns_span_content_width():
    """Test the balance column takes the remainder of the content width"""
    renderer = ScheduleTableRenderer(margin=40)

    assert len(renderer.columns) == 6
    assert sum(c.width for c in renderer.columns) == pytest.approx(renderer.content_width)
    assert renderer.columns[-1].width == pytest.approx(renderer.content_width - 415)
    assert [c.align for c in renderer.columns] == ["left", "left", "right", "right", "right", "right"]


def test_short_schedule_fits_one_page():
    """Test a 12 month schedule renders as a single PDF page"""
    statement = render(12)

    assert statement.content.startswith(b"%PDF")
    assert statement.pages == [list(range(1, 13))]


def test_long_schedule_paginates():
    """Test rows flow onto new pages in order, none lost or repeated"""
    statement = render(120)

    assert len(statement.pages) > 1
    assert [n for page in statement.pages for n in page] == list(range(1, 121))


def test_header_block_only_on_first_page():
    """Test the first page holds fewer rows than a continuation page"""
    statement = render(120)

    assert len(statement.pages[0]) < len(statement.pages[1])


def test_renderer_reusable_across_statements():
    """Test one renderer instance lays out each statement independently"""
    renderer = ScheduleTableRenderer(margin=40)

    long_statement = render(120, renderer)
    short_statement = render(12, renderer)

    assert short_statement.pages == [list(range(1, 13))]
    assert [n for page in long_statement.pages for n in page] == list(range(1, 121))


def test_statement_filename():
    assert statement_filename(7) == "schedule_loan_7.pdf"
