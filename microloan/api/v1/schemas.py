"""Pydantic schemas for API request/response validation

Money fields are Decimal and serialize as exact decimal strings.
"""

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from microloan.domain.models import LoanTerms


class LoanTermsRequest(BaseModel):
    """Request body for POST /v1/loans/preview"""

    principal: Decimal = Field(..., gt=0, decimal_places=2, description="Amount lent")
    interest_rate: Decimal = Field(..., ge=0, decimal_places=4, description="Nominal annual rate, 0.10 = 10%")
    term_count: int = Field(..., gt=0, description="Number of monthly installments")
    start_date: date

    def to_terms(self) -> LoanTerms:
        return LoanTerms(
            principal=self.principal,
            interest_rate=self.interest_rate,
            term_count=self.term_count,
            start_date=self.start_date,
        )


class LoanCreateRequest(LoanTermsRequest):
    """Request body for POST /v1/loans"""

    client_id: int
    declaration_accepted: StrictBool = False


class InstallmentToggleRequest(BaseModel):
    """Request body for PATCH /v1/loans/{loan_id}/installments/{installment_id}"""

    paid: StrictBool
    paid_at: Optional[datetime] = None


class ClientCreateRequest(BaseModel):
    """Request body for POST /v1/clients"""

    dni: str = Field(..., pattern=r"^[0-9]{8}$", description="National ID, 8 digits")
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)


class ScheduleRowSchema(BaseModel):
    """Single installment of a schedule"""

    model_config = ConfigDict(from_attributes=True)

    installment_number: int
    due_date: date
    installment_amount: Decimal
    principal_amount: Decimal
    interest_amount: Decimal
    remaining_balance: Decimal


class ScheduleSummarySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    principal: Decimal
    interest_rate: Decimal
    term_count: int
    start_date: date
    installment_amount: Decimal
    total_interest: Decimal
    total_amount: Decimal
    last_due_date: Optional[date] = None


class PreviewResponse(BaseModel):
    """Response for POST /v1/loans/preview"""

    summary: ScheduleSummarySchema
    schedule: List[ScheduleRowSchema]


class InstallmentSchema(ScheduleRowSchema):
    """Persisted installment"""

    id: int
    status: str
    paid_at: Optional[datetime] = None


class ResolvedInstallmentSchema(InstallmentSchema):
    """Persisted installment plus its read-time status"""

    computed_status: str
    days_overdue: int


class ClientSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    dni: str
    first_name: str
    last_name: str


class LoanSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    created_by: str
    principal: Decimal
    interest_rate: Decimal
    term_count: int
    start_date: date
    status: str
    created_at: Optional[datetime] = None


class LoanListItem(LoanSchema):
    client: ClientSchema


class LoanResponse(LoanSchema):
    """Response for POST /v1/loans"""

    client: ClientSchema
    installments: List[InstallmentSchema]


class LoanDetailResponse(LoanSchema):
    """Response for GET /v1/loans/{loan_id}"""

    client: ClientSchema
    installments: List[ResolvedInstallmentSchema]


class InstallmentToggleResponse(BaseModel):
    installment: InstallmentSchema
    loan_status: str


class OverdueSweepResponse(BaseModel):
    as_of: date
    installments_marked: int
    loans_updated: int


class ClientWithLoans(ClientSchema):
    """Client search result"""

    loans: List[LoanSchema]


class ClientLoanBalance(LoanSchema):
    """Loan with its repayment progress"""

    total_amount: Decimal
    paid_amount: Decimal
    realized_interest: Decimal
    expected_interest: Decimal
    outstanding: Decimal
    remaining_count: int


class ClientDetailResponse(ClientSchema):
    """Response for GET /v1/clients/{client_id}"""

    loans: List[ClientLoanBalance]
