"""SQLAlchemy ORM models for clients, loans and their installment schedules"""

from sqlalchemy import (
    Column, String, Integer, Numeric, Date, DateTime, ForeignKey, Text, Index, UniqueConstraint, text,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

OPEN_LOAN_CONDITION = text("status <> 'PAID'")


class Client(Base):
    """Borrower"""

    __tablename__ = "client"

    id = Column(Integer, primary_key=True, autoincrement=True)
    dni = Column(String(8), nullable=False, unique=True)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    loans = relationship("Loan", back_populates="client", order_by="Loan.id.desc()")


class Loan(Base):
    """Loan header; status is recomputed from installments after every mutation"""

    __tablename__ = "loan"
    __table_args__ = (
        # At most one loan that is not PAID per client, enforced by the store
        Index(
            "uq_loan_open_per_client",
            "client_id",
            unique=True,
            postgresql_where=OPEN_LOAN_CONDITION,
            sqlite_where=OPEN_LOAN_CONDITION,
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("client.id"), nullable=False, index=True)
    created_by = Column(Text, nullable=False)
    principal = Column(Numeric(12, 2), nullable=False)
    interest_rate = Column(Numeric(8, 4), nullable=False)
    term_count = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    client = relationship("Client", back_populates="loans")
    installments = relationship(
        "Installment",
        back_populates="loan",
        cascade="all, delete-orphan",
        order_by="Installment.installment_number",
    )


class Installment(Base):
    """Single row of a loan's payment schedule"""

    __tablename__ = "installment"
    __table_args__ = (UniqueConstraint("loan_id", "installment_number", name="uq_installment_number"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    loan_id = Column(Integer, ForeignKey("loan.id", ondelete="CASCADE"), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    installment_amount = Column(Numeric(12, 2), nullable=False)
    principal_amount = Column(Numeric(12, 2), nullable=False)
    interest_amount = Column(Numeric(12, 2), nullable=False)
    remaining_balance = Column(Numeric(12, 2), nullable=False)
    status = Column(Text, nullable=False, default="PENDING")
    paid_at = Column(DateTime(timezone=True), nullable=True)  # Stored in UTC; set iff status is PAID

    loan = relationship("Loan", back_populates="installments")
