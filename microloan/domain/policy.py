"""Business rules gating loan creation"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional
from microloan.config import settings
from microloan.domain.exceptions import BusinessRuleViolation, NotFoundError
from microloan.domain.models import LoanTerms
from microloan.utils.date_utils import to_civil_date
from microloan.utils.money import format_currency


@dataclass(frozen=True)
class LoanCreationPolicy:
    """
    Ordered, fail-fast loan creation checks.

    The first violated rule is raised; nothing after it is evaluated.
    """

    min_principal: Decimal
    max_principal: Decimal
    min_interest_rate: Decimal
    min_term_count: int
    max_term_count: int
    declaration_threshold: Decimal

    @classmethod
    def from_settings(cls) -> "LoanCreationPolicy":
        return cls(
            min_principal=settings.min_principal,
            max_principal=settings.max_principal,
            min_interest_rate=settings.min_interest_rate,
            min_term_count=settings.min_term_count,
            max_term_count=settings.max_term_count,
            declaration_threshold=settings.declaration_threshold,
        )

    def check_terms(self, terms: LoanTerms, today: date) -> None:
        """Amount, rate, term and start date rules (shared with previews)"""
        if terms.principal < self.min_principal:
            raise BusinessRuleViolation(
                "principal_below_minimum",
                f"The minimum amount is {format_currency(self.min_principal)}.",
            )
        if terms.principal > self.max_principal:
            raise BusinessRuleViolation(
                "principal_above_maximum",
                f"The maximum amount is {format_currency(self.max_principal)}.",
            )
        if terms.interest_rate < self.min_interest_rate:
            raise BusinessRuleViolation(
                "interest_rate_below_minimum",
                f"The minimum annual rate is {self.min_interest_rate * 100:.0f}% ({self.min_interest_rate}).",
            )
        if not self.min_term_count <= terms.term_count <= self.max_term_count:
            raise BusinessRuleViolation(
                "term_out_of_range",
                f"The term must be between {self.min_term_count} and {self.max_term_count} months.",
            )
        if to_civil_date(terms.start_date) < today:
            raise BusinessRuleViolation("start_date_in_past", "The loan start date cannot be in the past.")

    def check(
        self,
        terms: LoanTerms,
        today: date,
        declaration_accepted: bool,
        client: Optional[Any],
        has_open_loan: Callable[[Any], bool],
    ) -> None:
        """
        Run every creation rule in order.

        Raises:
            BusinessRuleViolation: A term, declaration or single-open-loan rule failed
            NotFoundError: The client does not exist
        """
        self.check_terms(terms, today)

        if terms.principal >= self.declaration_threshold and declaration_accepted is not True:
            raise BusinessRuleViolation(
                "declaration_required",
                f"Amounts from {format_currency(self.declaration_threshold)} require accepting the sworn declaration.",
            )

        if client is None:
            raise NotFoundError("Client not found")

        if has_open_loan(client):
            raise BusinessRuleViolation("client_has_active_loan", "The client already has an active loan.")
