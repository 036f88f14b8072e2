"""Client endpoints: registration, search and repayment overview"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from microloan.api.v1.schemas import (
    ClientCreateRequest,
    ClientDetailResponse,
    ClientLoanBalance,
    ClientSchema,
    ClientWithLoans,
    LoanSchema,
)
from microloan.infrastructure.database.session import get_db
from microloan.infrastructure.database.repositories import ClientRepository
from microloan.domain.status import summarize_balances

router = APIRouter()


@router.post("/clients", response_model=ClientSchema)
def register_client(request_body: ClientCreateRequest, db: Session = Depends(get_db)):
    """Register a client by national ID, or refresh the stored names"""
    db_client, _ = ClientRepository(db).upsert_client(
        request_body.dni, request_body.first_name, request_body.last_name
    )
    db.commit()
    return db_client


@router.get("/clients", response_model=List[ClientWithLoans])
def search_clients(
    q: Optional[str] = Query(None, description="Free text over names and national ID"),
    dni: Optional[str] = Query(None, description="National ID prefix"),
    db: Session = Depends(get_db),
):
    return ClientRepository(db).search_clients(q=q, dni=dni)


@router.get("/clients/{client_id}", response_model=ClientDetailResponse)
def get_client(client_id: int, db: Session = Depends(get_db)):
    """
    Client with every loan and its repayment progress.

    Returns:
        Per loan: amount paid, interest realized through paid installments,
        interest expected over the whole schedule, outstanding amount and
        unpaid installment count
    """
    db_client = ClientRepository(db).get_client(client_id)
    if not db_client:
        raise HTTPException(status_code=404, detail="Client not found")

    loans = []
    for db_loan in db_client.loans:
        balances = summarize_balances(db_loan.installments)
        loans.append(
            ClientLoanBalance(
                **LoanSchema.model_validate(db_loan).model_dump(),
                total_amount=balances.total_amount,
                paid_amount=balances.paid_amount,
                realized_interest=balances.realized_interest,
                expected_interest=balances.expected_interest,
                outstanding=balances.outstanding,
                remaining_count=balances.remaining_count,
            )
        )

    return ClientDetailResponse(
        **ClientSchema.model_validate(db_client).model_dump(),
        loans=loans,
    )
