"""
Domain-specific exceptions for groups app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class GroupsServiceError(Exception):
    """Base exception for all groups service errors."""
    pass


class GroupNotFoundError(GroupsServiceError):
    """Raised when a group does not exist."""
    pass


class AlreadyMemberError(GroupsServiceError):
    """Raised when a member is added to a group they're already in."""
    pass


class NotMemberError(GroupsServiceError):
    """Raised when an operation requires membership the member doesn't have."""
    pass


class MemberHasExpensesError(GroupsServiceError):
    """Raised when removing a member who paid for or shares group expenses."""
    pass


class NothingToUpdateError(GroupsServiceError):
    """Raised when an update carries no fields."""
    pass


class TooManyMembersError(GroupsServiceError):
    """Raised when more members are added at once than allowed."""
    pass
