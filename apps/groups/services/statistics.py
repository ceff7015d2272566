"""
Group statistics service.

Read-only aggregates over a group's members and expenses.
"""

from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from django.db.models import Count, Sum

from apps.groups.models import Group

from .exceptions import GroupNotFoundError


def get_group_stats(*, group_id: UUID) -> dict:
    """
    Member and expense totals for a group.

    Returns:
        Dict with member_count, expense_count, total_amount and
        average_amount (0.00 when the group has no expenses)

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    try:
        group = Group.objects.get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    # Aggregated separately; joining memberships and expenses would multiply sums
    expense_totals = group.expenses.aggregate(count=Count('id'), total=Sum('amount'))
    expense_count = expense_totals['count']
    total_amount = expense_totals['total'] or Decimal('0.00')

    if expense_count:
        average_amount = (total_amount / expense_count).quantize(
            Decimal('0.01'), rounding=ROUND_HALF_UP
        )
    else:
        average_amount = Decimal('0.00')

    return {
        'member_count': group.memberships.count(),
        'expense_count': expense_count,
        'total_amount': total_amount,
        'average_amount': average_amount,
    }
