"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from fastapi import Header, Request
from microloan.domain.policy import LoanCreationPolicy
from microloan.utils.date_utils import business_timezone


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_now() -> datetime:
    """Current instant in the business timezone; overridden in tests"""
    return datetime.now(business_timezone())


def get_actor_id(x_actor_id: str = Header(default="system")) -> str:
    """Identity recorded as the loan's creator"""
    return x_actor_id


def get_loan_policy() -> LoanCreationPolicy:
    """Provide loan creation rules from configuration"""
    return LoanCreationPolicy.from_settings()
