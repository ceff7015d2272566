"""
Domain exceptions for expenses app.

Raised by the services layer and translated to HTTP errors in views.
"""


class ExpenseServiceError(Exception):
    """Base exception for expense service errors."""
    pass


class ExpenseNotFoundError(ExpenseServiceError):
    """Raised when an expense does not exist."""
    pass


class NoParticipantsError(ExpenseServiceError):
    """Raised when no participants found for an expense split."""
    pass


class InvalidSplitError(ExpenseServiceError):
    """Raised when split amounts or percentages are inconsistent."""
    pass


class NotGroupMemberError(ExpenseServiceError):
    """Raised when the payer or a split member does not belong to the group."""
    pass


class NothingToUpdateError(ExpenseServiceError):
    """Raised when an update carries no fields."""
    pass
