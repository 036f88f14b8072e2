"""Loan endpoints: preview, origination, repayment toggles and statement export"""

import logging
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.responses import Response

from microloan.api.v1.schemas import (
    InstallmentSchema,
    InstallmentToggleRequest,
    InstallmentToggleResponse,
    LoanCreateRequest,
    LoanDetailResponse,
    LoanListItem,
    LoanResponse,
    LoanTermsRequest,
    OverdueSweepResponse,
    PreviewResponse,
    ResolvedInstallmentSchema,
    ScheduleRowSchema,
    ScheduleSummarySchema,
)
from microloan.api.dependencies import get_actor_id, get_loan_policy, get_now, get_request_id
from microloan.infrastructure.database.session import get_db
from microloan.infrastructure.database.repositories import ClientRepository, InstallmentRepository, LoanRepository
from microloan.infrastructure.documents.statement import PDF_MEDIA_TYPE, ScheduleTableRenderer, statement_filename
from microloan.domain.exceptions import BusinessRuleViolation, ConcurrencyConflictError, NotFoundError
from microloan.domain.policy import LoanCreationPolicy
from microloan.domain.schedule import generate_schedule, summarize_schedule
from microloan.domain.status import resolve_installment_status
from microloan.infrastructure.observability.metrics import (
    loan_conflicts_counter,
    loan_rejections_counter,
    loans_created_counter,
    overdue_marked_counter,
    record_toggle,
    statements_rendered_counter,
)
from microloan.infrastructure.observability.logging import (
    log_creation_rejected,
    log_installment_toggled,
    log_loan_created,
    log_overdue_sweep,
)
from microloan.utils.date_utils import business_timezone, civil_today

router = APIRouter()


def _rule_error(e: BusinessRuleViolation) -> HTTPException:
    return HTTPException(status_code=400, detail={"rule": e.rule, "message": e.message})


@router.post("/loans/preview", response_model=PreviewResponse)
def preview_loan(
    request_body: LoanTermsRequest,
    now: datetime = Depends(get_now),
    policy: LoanCreationPolicy = Depends(get_loan_policy),
):
    """
    Compute a schedule without persisting anything.

    Applies the amount, rate, term and start date rules; the declaration
    and client rules only apply on creation.
    """
    terms = request_body.to_terms()
    try:
        policy.check_terms(terms, civil_today(now))
    except BusinessRuleViolation as e:
        raise _rule_error(e)

    rows = generate_schedule(terms.principal, terms.interest_rate, terms.term_count, terms.start_date)
    summary = summarize_schedule(terms.principal, terms.interest_rate, terms.term_count, terms.start_date, rows)

    return PreviewResponse(
        summary=ScheduleSummarySchema.model_validate(summary),
        schedule=[ScheduleRowSchema.model_validate(r) for r in rows],
    )


@router.get("/loans", response_model=List[LoanListItem])
def list_loans(
    status: Optional[str] = Query(None, description="ACTIVE, PAID or OVERDUE"),
    client_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
):
    """List loans, newest first"""
    return LoanRepository(db).list_loans(status=status, client_id=client_id)


@router.post("/loans", response_model=LoanResponse, status_code=201)
def create_loan(
    request_body: LoanCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    actor_id: str = Depends(get_actor_id),
    policy: LoanCreationPolicy = Depends(get_loan_policy),
):
    """
    Create a loan and its full schedule.

    Flow:
    1. Run the creation rules (first failure wins)
    2. Generate the schedule
    3. Persist loan + installments in one transaction
    """
    request_id = get_request_id(request)
    terms = request_body.to_terms()
    client_repo = ClientRepository(db)
    loan_repo = LoanRepository(db)

    try:
        client = client_repo.get_client(request_body.client_id)
        policy.check(
            terms,
            civil_today(now),
            request_body.declaration_accepted,
            client,
            lambda c: loan_repo.has_open_loan(c.id),
        )

        schedule = generate_schedule(terms.principal, terms.interest_rate, terms.term_count, terms.start_date)
        db_loan = loan_repo.create_loan(client.id, actor_id, terms, schedule)
        db.commit()

    except BusinessRuleViolation as e:
        db.rollback()
        loan_rejections_counter.labels(rule=e.rule).inc()
        log_creation_rejected(request_id, request_body.client_id, e.rule)
        raise _rule_error(e)

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except (ConcurrencyConflictError, IntegrityError) as e:
        db.rollback()
        loan_conflicts_counter.inc()
        logging.warning(f"Loan creation conflict: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="The client already has an active loan; retry later")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    loans_created_counter.inc()
    log_loan_created(request_id, db_loan.id, db_loan.client_id, str(terms.principal), terms.term_count, actor_id)
    return db_loan


@router.get("/loans/{loan_id}", response_model=LoanDetailResponse)
def get_loan(loan_id: int, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    """Loan with its schedule, each installment annotated with its current status"""
    db_loan = LoanRepository(db).get_loan(loan_id)
    if not db_loan:
        raise HTTPException(status_code=404, detail="Loan not found")

    today = civil_today(now)
    installments = []
    for inst in db_loan.installments:
        resolved = resolve_installment_status(inst.status, inst.due_date, inst.paid_at, today)
        installments.append(
            ResolvedInstallmentSchema(
                **InstallmentSchema.model_validate(inst).model_dump(),
                computed_status=resolved.computed_status.value,
                days_overdue=resolved.days_overdue,
            )
        )

    return LoanDetailResponse(
        **LoanListItem.model_validate(db_loan).model_dump(),
        installments=installments,
    )


@router.patch(
    "/loans/{loan_id}/installments/{installment_id}",
    response_model=InstallmentToggleResponse,
)
def toggle_installment(
    loan_id: int,
    installment_id: int,
    request_body: InstallmentToggleRequest,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Mark an installment paid/unpaid; the loan status is recomputed in the same transaction"""
    request_id = get_request_id(request)

    paid_at = request_body.paid_at or now
    if paid_at.tzinfo is None:
        paid_at = paid_at.replace(tzinfo=business_timezone())

    try:
        db_installment, db_loan = InstallmentRepository(db).set_paid(
            loan_id, installment_id, request_body.paid, paid_at
        )
        db.commit()

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except (ConcurrencyConflictError, IntegrityError) as e:
        db.rollback()
        loan_conflicts_counter.inc()
        logging.warning(f"Installment toggle conflict: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="The client already has another active loan")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    record_toggle(request_body.paid)
    log_installment_toggled(request_id, loan_id, installment_id, request_body.paid, db_loan.status)

    return InstallmentToggleResponse(
        installment=InstallmentSchema.model_validate(db_installment),
        loan_status=db_loan.status,
    )


@router.get("/loans/{loan_id}/schedule.pdf")
def export_schedule(loan_id: int, db: Session = Depends(get_db)):
    """Printable payment schedule"""
    db_loan = LoanRepository(db).get_loan(loan_id)
    if not db_loan:
        raise HTTPException(status_code=404, detail="Loan not found")

    statement = ScheduleTableRenderer().render(db_loan.client, db_loan, db_loan.installments)
    statements_rendered_counter.inc()

    return Response(
        content=statement.content,
        media_type=PDF_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{statement_filename(db_loan.id)}"'},
    )


@router.post("/loans/overdue-sweep", response_model=OverdueSweepResponse)
def run_overdue_sweep(request: Request, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    """Persist OVERDUE on unpaid past-due installments and roll their loans up"""
    request_id = get_request_id(request)
    today = civil_today(now)

    try:
        result = InstallmentRepository(db).mark_overdue(today)
        db.commit()
    except Exception as e:
        db.rollback()
        logging.error(f"Overdue sweep failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    overdue_marked_counter.inc(result.installments_marked)
    log_overdue_sweep(request_id, result.installments_marked, result.loans_updated, today.isoformat())

    return OverdueSweepResponse(
        as_of=today,
        installments_marked=result.installments_marked,
        loans_updated=result.loans_updated,
    )
