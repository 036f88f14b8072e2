"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidInputError(DomainException):
    """Structurally invalid arguments passed to a pure engine function"""

    pass


class BusinessRuleViolation(DomainException):
    """A loan creation rule rejected the request"""

    def __init__(self, rule: str, message: str):
        super().__init__(message)
        self.rule = rule
        self.message = message


class NotFoundError(DomainException):
    """Referenced client, loan or installment does not exist"""

    pass


class ConcurrencyConflictError(DomainException):
    """A concurrent write won the race; the caller may retry"""

    pass
