"""
Groups app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and concurrency protection.
"""

from .exceptions import (
    GroupsServiceError,
    GroupNotFoundError,
    AlreadyMemberError,
    NotMemberError,
    MemberHasExpensesError,
    NothingToUpdateError,
    TooManyMembersError,
)

from .group_management import (
    create_group,
    get_group_by_id,
    list_groups,
    search_groups,
    update_group,
    delete_group,
)

from .membership_management import (
    add_member,
    remove_member,
    get_group_members,
    get_group_expenses,
)

from .statistics import (
    get_group_stats,
)


__all__ = [
    # Exceptions
    'GroupsServiceError',
    'GroupNotFoundError',
    'AlreadyMemberError',
    'NotMemberError',
    'MemberHasExpensesError',
    'NothingToUpdateError',
    'TooManyMembersError',

    # Group Management
    'create_group',
    'get_group_by_id',
    'list_groups',
    'search_groups',
    'update_group',
    'delete_group',

    # Membership Management
    'add_member',
    'remove_member',
    'get_group_members',
    'get_group_expenses',

    # Statistics
    'get_group_stats',
]
