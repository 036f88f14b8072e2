"""Data access layer for clients, loans and installments"""

from datetime import date, datetime, timezone
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple
from sqlalchemy import or_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from microloan.infrastructure.database.models import Client, Loan, Installment
from microloan.domain.exceptions import ConcurrencyConflictError, NotFoundError
from microloan.domain.models import InstallmentStatus, LoanStatus, LoanTerms, ScheduleRow
from microloan.domain.status import aggregate_loan_status


class SweepResult(NamedTuple):
    installments_marked: int
    loans_updated: int


class ClientRepository:
    """Repository for borrowers"""

    def __init__(self, db: Session):
        self.db = db

    def get_client(self, client_id: int) -> Optional[Client]:
        return self.db.get(Client, client_id)

    def upsert_client(self, dni: str, first_name: str, last_name: str) -> Tuple[Client, bool]:
        """Register a client by national ID, refreshing names if they changed"""
        db_client = self.db.query(Client).filter(Client.dni == dni).first()
        if db_client is None:
            db_client = Client(dni=dni, first_name=first_name, last_name=last_name)
            self.db.add(db_client)
            self.db.flush()
            return db_client, True

        if db_client.first_name != first_name or db_client.last_name != last_name:
            db_client.first_name = first_name
            db_client.last_name = last_name
            self.db.flush()
        return db_client, False

    def search_clients(self, q: Optional[str] = None, dni: Optional[str] = None) -> List[Client]:
        """Filter by national ID prefix and/or free text over names and ID"""
        query = self.db.query(Client)
        if dni:
            query = query.filter(Client.dni.startswith(dni))
        if q:
            pattern = f"%{q}%"
            query = query.filter(
                or_(
                    Client.first_name.ilike(pattern),
                    Client.last_name.ilike(pattern),
                    Client.dni.contains(q),
                )
            )
        return query.order_by(Client.id.desc()).all()


class LoanRepository:
    """Repository for loans and their schedules"""

    def __init__(self, db: Session):
        self.db = db

    def has_open_loan(self, client_id: int) -> bool:
        """True if the client owns a loan that is not fully paid"""
        return (
            self.db.query(Loan.id)
            .filter(Loan.client_id == client_id, Loan.status != LoanStatus.PAID.value)
            .first()
            is not None
        )

    def create_loan(
        self,
        client_id: int,
        created_by: str,
        terms: LoanTerms,
        schedule: Sequence[ScheduleRow],
    ) -> Loan:
        """
        Persist a loan together with its full schedule in one flush.

        Raises:
            ConcurrencyConflictError: Another open loan for the client was committed first
        """
        db_loan = Loan(
            client_id=client_id,
            created_by=created_by,
            principal=terms.principal,
            interest_rate=terms.interest_rate,
            term_count=terms.term_count,
            start_date=terms.start_date,
            status=LoanStatus.ACTIVE.value,
        )
        db_loan.installments = [
            Installment(
                installment_number=row.installment_number,
                due_date=row.due_date,
                installment_amount=row.installment_amount,
                principal_amount=row.principal_amount,
                interest_amount=row.interest_amount,
                remaining_balance=row.remaining_balance,
                status=InstallmentStatus.PENDING.value,
            )
            for row in schedule
        ]
        self.db.add(db_loan)

        try:
            self.db.flush()
        except IntegrityError as e:
            raise ConcurrencyConflictError("The client already has an active loan") from e

        return db_loan

    def get_loan(self, loan_id: int) -> Optional[Loan]:
        return self.db.get(Loan, loan_id)

    def list_loans(self, status: Optional[str] = None, client_id: Optional[int] = None) -> List[Loan]:
        query = self.db.query(Loan)
        if status:
            query = query.filter(Loan.status == status)
        if client_id is not None:
            query = query.filter(Loan.client_id == client_id)
        return query.order_by(Loan.id.desc()).all()

    def status_counts(self, loan_id: int) -> Dict[str, int]:
        """Persisted installment status -> count"""
        rows = (
            self.db.query(Installment.status, func.count(Installment.id))
            .filter(Installment.loan_id == loan_id)
            .group_by(Installment.status)
            .all()
        )
        return {status: count for status, count in rows}

    def recompute_status(self, db_loan: Loan) -> LoanStatus:
        """
        Roll the installments up into the loan status. Call after flushing the
        installment mutation, inside the same transaction.

        Raises:
            ConcurrencyConflictError: Reopening the loan would give the client a second open loan
        """
        new_status = aggregate_loan_status(self.status_counts(db_loan.id))
        db_loan.status = new_status.value
        try:
            self.db.flush()
        except IntegrityError as e:
            raise ConcurrencyConflictError("The client already has another active loan") from e
        return new_status


class InstallmentRepository:
    """Repository for installment state changes"""

    def __init__(self, db: Session):
        self.db = db
        self.loans = LoanRepository(db)

    def set_paid(
        self,
        loan_id: int,
        installment_id: int,
        paid: bool,
        paid_at: datetime,
    ) -> Tuple[Installment, Loan]:
        """
        Mark an installment paid/unpaid and recompute its loan's status.

        The loan row is locked first so concurrent toggles on the same loan
        serialize and the status never lags behind its installments.

        Raises:
            NotFoundError: Loan missing or installment not part of it
        """
        db_loan = self.db.query(Loan).filter(Loan.id == loan_id).with_for_update().first()
        if db_loan is None:
            raise NotFoundError("Loan not found")

        db_installment = (
            self.db.query(Installment)
            .filter(Installment.id == installment_id, Installment.loan_id == loan_id)
            .first()
        )
        if db_installment is None:
            raise NotFoundError("Installment not found")

        if paid:
            db_installment.status = InstallmentStatus.PAID.value
            db_installment.paid_at = paid_at.astimezone(timezone.utc)
        else:
            db_installment.status = InstallmentStatus.PENDING.value
            db_installment.paid_at = None
        self.db.flush()

        self.loans.recompute_status(db_loan)
        return db_installment, db_loan

    def mark_overdue(self, today: date) -> SweepResult:
        """
        Persist OVERDUE on every pending installment past its due date and
        recompute the affected loans.

        Loans are locked before their installments, in id order, matching
        the lock order of set_paid.
        """
        loan_ids = [
            loan_id
            for (loan_id,) in self.db.query(Installment.loan_id)
            .filter(
                Installment.status == InstallmentStatus.PENDING.value,
                Installment.due_date < today,
            )
            .distinct()
            .order_by(Installment.loan_id)
            .all()
        ]
        if not loan_ids:
            return SweepResult(0, 0)

        db_loans = (
            self.db.query(Loan).filter(Loan.id.in_(loan_ids)).order_by(Loan.id).with_for_update().all()
        )

        marked = (
            self.db.query(Installment)
            .filter(
                Installment.loan_id.in_(loan_ids),
                Installment.status == InstallmentStatus.PENDING.value,
                Installment.due_date < today,
            )
            .update({Installment.status: InstallmentStatus.OVERDUE.value}, synchronize_session="fetch")
        )
        self.db.flush()

        for db_loan in db_loans:
            self.loans.recompute_status(db_loan)

        return SweepResult(marked, len(db_loans))
