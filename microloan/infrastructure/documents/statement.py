"""PDF payment schedule statement"""

import io
from dataclasses import dataclass
from decimal import Decimal
from typing import List, NamedTuple, Sequence
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas
from microloan.config import settings
from microloan.utils.date_utils import format_date
from microloan.utils.money import format_currency, to_decimal

PDF_MEDIA_TYPE = "application/pdf"

TITLE_FONT = ("Helvetica-Bold", 16)
BODY_FONT = ("Helvetica", 10)
HEADER_FONT = ("Helvetica-Bold", 10)
LINE_HEIGHT = 14
ROW_HEIGHT = 18


@dataclass(frozen=True)
class Column:
    title: str
    width: float
    align: str  # left | right


class RenderedStatement(NamedTuple):
    content: bytes
    pages: List[List[int]]  # Installment numbers drawn on each page


def statement_filename(loan_id: int) -> str:
    return f"schedule_loan_{loan_id}.pdf"


class ScheduleTableRenderer:
    """
    Lays a loan schedule out as a paginated six-column table.

    The header block (title, client, loan summary) is drawn on the first
    page only; the column header row is repeated on every page. The
    balance column takes whatever width the fixed columns leave, so the
    table always spans the content width exactly.
    """

    def __init__(self, margin: float | None = None, pagesize=A4):
        self.page_width, self.page_height = pagesize
        self.margin = settings.statement_page_margin if margin is None else margin
        self.content_width = self.page_width - 2 * self.margin
        self.bottom = self.page_height - self.margin
        self.columns = self._build_columns()

    def _build_columns(self) -> List[Column]:
        prefix = settings.currency_prefix
        fixed = [
            Column("No.", 50, "left"),
            Column("Due date", 90, "left"),
            Column(f"Amount ({prefix})", 95, "right"),
            Column("Interest", 90, "right"),
            Column("Principal", 90, "right"),
        ]
        balance_width = self.content_width - sum(c.width for c in fixed)
        return fixed + [Column("Balance", balance_width, "right")]

    def render(self, client, loan, installments: Sequence) -> RenderedStatement:
        """
        Draw the statement and return the PDF bytes with the page layout.

        client needs first_name, last_name, dni; loan needs principal,
        interest_rate, term_count, start_date; installments are schedule
        rows ordered by installment number.
        """
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=(self.page_width, self.page_height), invariant=1)
        pdf.setTitle("Payment schedule")
        pages: List[List[int]] = [[]]

        y = self._draw_summary(pdf, client, loan, installments)
        y = self._draw_column_header(pdf, y + 6)

        for row in installments:
            if y + ROW_HEIGHT > self.bottom:
                pdf.showPage()
                pages.append([])
                y = self._draw_column_header(pdf, self.margin)
            y = self._draw_row(pdf, row, y)
            pages[-1].append(row.installment_number)

        pdf.showPage()
        pdf.save()
        return RenderedStatement(buffer.getvalue(), pages)

    def _baseline(self, y: float, font_size: float) -> float:
        """Top-down cursor -> reportlab's bottom-up text baseline"""
        return self.page_height - y - font_size

    def _draw_summary(self, pdf: canvas.Canvas, client, loan, installments: Sequence) -> float:
        y = self.margin
        pdf.setFont(*TITLE_FONT)
        pdf.drawCentredString(self.page_width / 2, self._baseline(y, TITLE_FONT[1]), "Payment Schedule")
        y += TITLE_FONT[1] + LINE_HEIGHT

        total = sum((to_decimal(r.installment_amount) for r in installments), Decimal("0"))
        rate_pct = to_decimal(loan.interest_rate) * 100
        lines = [
            f"Client: {client.first_name} {client.last_name} (DNI: {client.dni})",
            f"Loan: Amount {format_currency(loan.principal)} | Annual rate {rate_pct:.2f}% | Term {loan.term_count} months",
            f"Total to pay: {format_currency(total)}",
            f"Start date: {format_date(loan.start_date)}",
        ]

        pdf.setFont(*BODY_FONT)
        for line in lines:
            for chunk in simpleSplit(line, BODY_FONT[0], BODY_FONT[1], self.content_width):
                pdf.drawString(self.margin, self._baseline(y, BODY_FONT[1]), chunk)
                y += LINE_HEIGHT

        return y + LINE_HEIGHT / 2

    def _draw_cells(self, pdf: canvas.Canvas, values: Sequence[str], y: float, font) -> None:
        pdf.setFont(*font)
        baseline = self._baseline(y, font[1])
        x = self.margin
        for col, value in zip(self.columns, values):
            if col.align == "right":
                pdf.drawRightString(x + col.width, baseline, value)
            else:
                pdf.drawString(x, baseline, value)
            x += col.width

    def _draw_column_header(self, pdf: canvas.Canvas, y: float) -> float:
        self._draw_cells(pdf, [c.title for c in self.columns], y, HEADER_FONT)
        y += ROW_HEIGHT - 6
        rule_y = self.page_height - y
        pdf.line(self.margin, rule_y, self.margin + self.content_width, rule_y)
        return y + 6

    def _draw_row(self, pdf: canvas.Canvas, row, y: float) -> float:
        values = [
            str(row.installment_number),
            format_date(row.due_date),
            format_currency(row.installment_amount),
            format_currency(row.interest_amount),
            format_currency(row.principal_amount),
            format_currency(row.remaining_balance),
        ]
        self._draw_cells(pdf, values, y, BODY_FONT)
        return y + ROW_HEIGHT
