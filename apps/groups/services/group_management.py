"""
Group management service.

Handles group CRUD operations with proper transaction safety.
"""

import logging
from typing import Iterable, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Prefetch, Q, QuerySet

from apps.groups.models import Group, GroupMembership

from .exceptions import (
    GroupNotFoundError,
    NothingToUpdateError,
    TooManyMembersError,
)
from .membership_management import add_member

logger = logging.getLogger(__name__)

MAX_MEMBERS_PER_REQUEST = 50


def _group_queryset() -> QuerySet[Group]:
    """Groups with members and expenses (and their splits) prefetched."""
    from apps.expenses.models import Expense, ExpenseSplit

    return (
        Group.objects
        .prefetch_related(
            Prefetch(
                'memberships',
                queryset=GroupMembership.objects.select_related('member'),
            ),
            Prefetch(
                'expenses',
                queryset=Expense.objects.select_related('paid_by').prefetch_related(
                    Prefetch('splits', queryset=ExpenseSplit.objects.select_related('member'))
                ),
            ),
        )
    )


def create_group(
    *,
    name: str,
    description: str = '',
    members: Iterable[dict] = (),
    member_emails: Iterable[str] = (),
    created_by: str = 'unknown',
) -> Group:
    """
    Create a new group and add its initial members.

    Members are looked up by email and created when missing. The group and
    all memberships are written in one transaction.

    Args:
        name: Group name
        description: Optional group description
        members: Iterable of {'name': ..., 'email': ...} dicts
        member_emails: Iterable of emails; names default to the email local part
        created_by: Free-text creator label

    Returns:
        Created Group instance

    Raises:
        TooManyMembersError: If more than 50 members are given
    """
    initial = [dict(m) for m in members]
    initial.extend({'name': email.split('@')[0], 'email': email} for email in member_emails)

    if len(initial) > MAX_MEMBERS_PER_REQUEST:
        raise TooManyMembersError(
            f"Cannot add more than {MAX_MEMBERS_PER_REQUEST} members at once"
        )

    with transaction.atomic():
        group = Group.objects.create(
            name=name.strip(),
            description=description or '',
            created_by=created_by or 'unknown',
        )

        seen = set()
        for member_data in initial:
            email = member_data['email'].strip().lower()
            if email in seen:
                continue
            seen.add(email)
            add_member(group_id=group.id, name=member_data['name'], email=email)

    logger.info("Created group %s (%s) with %d members", group.id, group.name, len(seen))
    return get_group_by_id(group_id=group.id)


def get_group_by_id(*, group_id: UUID) -> Group:
    """
    Get a group by ID with members, expenses and totals.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    try:
        return _group_queryset().get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


def list_groups(*, search: Optional[str] = None) -> QuerySet[Group]:
    """All groups, newest first, optionally filtered by a search term."""
    queryset = _group_queryset()
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) | Q(description__icontains=search)
        )
    return queryset.order_by('-created_at')


def search_groups(*, query: str) -> QuerySet[Group]:
    """Case-insensitive search on group name and description."""
    return list_groups(search=query.strip())


@transaction.atomic
def update_group(
    *,
    group_id: UUID,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Group:
    """
    Update group details.

    Uses select_for_update to prevent concurrent modifications.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NothingToUpdateError: If no field was given
    """
    if name is None and description is None:
        raise NothingToUpdateError("No valid fields to update")

    try:
        group = Group.objects.select_for_update().get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    update_fields = ['updated_at']

    if name is not None:
        group.name = name.strip()
        update_fields.append('name')

    if description is not None:
        group.description = description
        update_fields.append('description')

    group.save(update_fields=update_fields)

    return get_group_by_id(group_id=group.id)


@transaction.atomic
def delete_group(*, group_id: UUID) -> Group:
    """
    Delete a group.

    Cascading deletes remove all memberships, expenses and expense splits.
    Members themselves are kept.

    Returns:
        The group as it was before deletion, with members and expenses loaded

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    group = get_group_by_id(group_id=group_id)
    # Materialise prefetched relations before the rows disappear
    list(group.memberships.all())
    list(group.expenses.all())

    Group.objects.filter(id=group_id).delete()
    logger.info("Deleted group %s", group_id)

    return group
