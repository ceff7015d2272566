"""
Membership management service.

Handles group membership operations with concurrency protection.
"""

import logging
from uuid import UUID

from django.db import transaction, IntegrityError
from django.db.models import Q, QuerySet

from apps.groups.models import Group, GroupMembership, Member

from .exceptions import (
    GroupNotFoundError,
    AlreadyMemberError,
    NotMemberError,
    MemberHasExpensesError,
)

logger = logging.getLogger(__name__)


def _get_or_create_member(*, name: str, email: str) -> Member:
    """Find a member by email, creating one with the given name when missing."""
    email = email.strip().lower()
    member = Member.objects.filter(email=email).first()
    if member is not None:
        return member

    try:
        with transaction.atomic():
            return Member.objects.create(name=name.strip(), email=email)
    except IntegrityError:
        # Created concurrently by another request
        return Member.objects.get(email=email)


@transaction.atomic
def add_member(*, group_id: UUID, name: str, email: str) -> GroupMembership:
    """
    Add a member to a group.

    The member is looked up by email and created when no member with that
    email exists yet. Uses row-level locking on the group to prevent
    concurrent duplicate adds.

    Args:
        group_id: UUID of the group
        name: Member display name (used only when creating the member)
        email: Member email

    Returns:
        Created GroupMembership instance

    Raises:
        GroupNotFoundError: If group doesn't exist
        AlreadyMemberError: If the member is already in the group
    """
    try:
        group = Group.objects.select_for_update().get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    member = _get_or_create_member(name=name, email=email)

    if group.has_member(member):
        raise AlreadyMemberError(f"User is already a member of {group.name}")

    try:
        with transaction.atomic():
            membership = GroupMembership.objects.create(group=group, member=member)
    except IntegrityError:
        raise AlreadyMemberError(f"User is already a member of {group.name}")

    logger.info("Added member %s to group %s", member.id, group.id)
    return membership


@transaction.atomic
def remove_member(*, group_id: UUID, member_id: UUID) -> None:
    """
    Remove a member from a group.

    Members who paid for, or hold a share of, any expense in the group
    cannot be removed until those expenses are changed or deleted.

    Args:
        group_id: UUID of the group
        member_id: UUID of the member to remove

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If the member is not in the group
        MemberHasExpensesError: If the member is referenced by group expenses
    """
    from apps.expenses.models import Expense

    try:
        group = Group.objects.get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    try:
        membership = (
            GroupMembership.objects
            .select_for_update()
            .get(group=group, member_id=member_id)
        )
    except GroupMembership.DoesNotExist:
        raise NotMemberError("User is not a member of this group")

    involved = (
        Expense.objects
        .filter(group=group)
        .filter(Q(paid_by_id=member_id) | Q(splits__member_id=member_id))
        .exists()
    )
    if involved:
        raise MemberHasExpensesError(
            "Cannot remove a member who paid for or shares expenses in this group"
        )

    membership.delete()
    logger.info("Removed member %s from group %s", member_id, group.id)


def get_group_members(*, group_id: UUID) -> QuerySet[GroupMembership]:
    """
    Get all members of a group in join order.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    if not Group.objects.filter(id=group_id).exists():
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    return (
        GroupMembership.objects
        .filter(group_id=group_id)
        .select_related('member')
        .order_by('joined_at', 'id')
    )


def get_group_expenses(*, group_id: UUID):
    """
    Get all expenses of a group, newest first, with splits loaded.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    from apps.expenses.services import get_expenses_by_group

    return get_expenses_by_group(group_id=group_id)
