"""
Expense Services Module
=======================

This module provides business logic services for expense management,
including cent-precise splitting of expenses between group members.

Classes:
    ExpenseSplitService: Split arithmetic for equal, exact and percentage splits.

Functions:
    create_expense, get_expense_by_id, update_expense, delete_expense:
        Expense CRUD with split bookkeeping.
    list_expenses, search_expenses, get_expenses_by_date_range,
    get_expenses_by_group, get_expenses_by_user:
        Read-side queries.
    get_group_expense_stats: Totals and per-member balances of a group.
    calculate_equal_split: Preview an equal split without saving anything.

Example:
    Creating an expense split equally among all group members::

        from apps.expenses.services import create_expense
        from decimal import Decimal

        expense = create_expense(
            group_id=group.id,
            title='Dinner',
            amount=Decimal('100.00'),
            paid_by=alice.id,
        )

        # With 3 members: shares are 33.34, 33.33, 33.33
        for split in expense.splits.all():
            print(f"{split.member.name}: {split.amount}")
"""

import logging
from dataclasses import dataclass
from datetime import date as date_type
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from django.db import transaction
from django.db.models import Prefetch, Q, QuerySet

from apps.groups.models import Group, GroupMembership, Member
from apps.groups.services.exceptions import GroupNotFoundError

from .exceptions import (
    ExpenseNotFoundError,
    InvalidSplitError,
    NoParticipantsError,
    NotGroupMemberError,
    NothingToUpdateError,
)
from .models import Expense, ExpenseSplit, SplitType

logger = logging.getLogger(__name__)

CENTS_PER_UNIT = 100
BASIS_POINTS = 10000
TWO_PLACES = Decimal('0.01')


@dataclass(frozen=True)
class SplitShare:
    """A computed share of an expense, not yet saved."""

    member: Member
    amount: Decimal
    percentage: Decimal


class ExpenseSplitService:
    """
    Service for splitting expenses with cent precision.

    All arithmetic is done on integers: amounts in cents and percentages in
    basis points (1% = 100 bp). Converting to the smallest unit, dividing
    with integers and handing out remainders one unit at a time guarantees
    that shares always sum exactly to the total.

    Methods:
        calculate_equal_splits: Same share for every participant.
        calculate_exact_splits: Caller-provided amounts, checked against the total.
        calculate_percentage_splits: Caller-provided percentages summing to 100.
        build_splits: Resolve split input against a group and dispatch by type.

    Example:
        100.00 split equally among 3 people::

            >>> shares = ExpenseSplitService.calculate_equal_splits(
            ...     Decimal('100.00'),
            ...     [alice, bob, carol]
            ... )
            >>> [(s.amount, s.percentage) for s in shares]
            [(Decimal('33.34'), Decimal('33.34')),
             (Decimal('33.33'), Decimal('33.33')),
             (Decimal('33.33'), Decimal('33.33'))]

    Note:
        The order of participants matters for remainder distribution.
        The first K participants (where K = remainder) receive 1 extra cent.
    """

    @staticmethod
    def to_cents(amount) -> int:
        """Convert a money amount to integer cents."""
        return int(
            (Decimal(str(amount)) * CENTS_PER_UNIT).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
        )

    @staticmethod
    def from_cents(cents: int) -> Decimal:
        """Convert integer cents back to a 2-place Decimal."""
        return (Decimal(cents) / CENTS_PER_UNIT).quantize(TWO_PLACES)

    @staticmethod
    def to_basis_points(percentage) -> int:
        return int(
            (Decimal(str(percentage)) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
        )

    @staticmethod
    def from_basis_points(basis_points: int) -> Decimal:
        return (Decimal(basis_points) / 100).quantize(TWO_PLACES)

    @classmethod
    def calculate_equal_splits(cls, total, participants: Sequence[Member]) -> List[SplitShare]:
        """
        Split an amount equally with cent precision.

        Algorithm:
            1. Convert to cents: ``total_cents = total * 100``
            2. Base share: ``base = total_cents // N``
            3. Remainder: ``remainder = total_cents % N``
            4. First 'remainder' participants get ``base + 1`` cents
            5. Percentages are split the same way over 10000 basis points

        Args:
            total (Decimal): The amount to split.
            participants (list[Member]): Members to split among, in order.

        Returns:
            list[SplitShare]: One share per participant.

        Raises:
            NoParticipantsError: If participants is empty.
            InvalidSplitError: If shares don't sum to total (safety check).
        """
        if not participants:
            raise NoParticipantsError("At least one participant required")

        total_cents = cls.to_cents(total)
        count = len(participants)

        base_cents, remainder_cents = divmod(total_cents, count)
        base_bp, remainder_bp = divmod(BASIS_POINTS, count)

        shares = []
        for i, member in enumerate(participants):
            cents = base_cents + (1 if i < remainder_cents else 0)
            basis_points = base_bp + (1 if i < remainder_bp else 0)
            shares.append(SplitShare(
                member=member,
                amount=cls.from_cents(cents),
                percentage=cls.from_basis_points(basis_points),
            ))

        # Verification (safety check)
        total_check = sum(cls.to_cents(share.amount) for share in shares)
        if total_check != total_cents:
            raise InvalidSplitError(
                f"Split calculation error: {cls.from_cents(total_check)} != {cls.from_cents(total_cents)}"
            )

        return shares

    @classmethod
    def calculate_exact_splits(
        cls,
        total,
        entries: Sequence[Tuple[Member, Optional[Decimal]]],
    ) -> List[SplitShare]:
        """
        Validate caller-provided amounts and derive percentages.

        Args:
            total (Decimal): The expense amount.
            entries (list[tuple]): (member, amount) pairs.

        Raises:
            NoParticipantsError: If entries is empty.
            InvalidSplitError: If an amount is missing or negative, or the
                amounts don't add up to the total.
        """
        if not entries:
            raise NoParticipantsError("At least one participant required")

        total_cents = cls.to_cents(total)

        cents_list = []
        for member, amount in entries:
            if amount is None:
                raise InvalidSplitError("Each split must have an amount for exact splits")
            cents = cls.to_cents(amount)
            if cents < 0:
                raise InvalidSplitError("Split amounts cannot be negative")
            cents_list.append(cents)

        if sum(cents_list) != total_cents:
            raise InvalidSplitError(
                f"Split amounts ({cls.from_cents(sum(cents_list))}) must add up to "
                f"the expense amount ({cls.from_cents(total_cents)})"
            )

        return [
            SplitShare(
                member=member,
                amount=cls.from_cents(cents),
                percentage=(Decimal(cents) * 100 / Decimal(total_cents)).quantize(
                    TWO_PLACES, rounding=ROUND_HALF_UP
                ),
            )
            for (member, _), cents in zip(entries, cents_list)
        ]

    @classmethod
    def calculate_percentage_splits(
        cls,
        total,
        entries: Sequence[Tuple[Member, Optional[Decimal]]],
    ) -> List[SplitShare]:
        """
        Split an amount by percentages with cent precision.

        Each share is ``floor(total_cents * bp / 10000)``. The cents lost to
        flooring go one each to the first participants with a non-zero
        percentage.

        Args:
            total (Decimal): The expense amount.
            entries (list[tuple]): (member, percentage) pairs.

        Raises:
            NoParticipantsError: If entries is empty.
            InvalidSplitError: If a percentage is missing or outside 0-100,
                or the percentages don't add up to 100.
        """
        if not entries:
            raise NoParticipantsError("At least one participant required")

        basis_points = []
        for member, percentage in entries:
            if percentage is None:
                raise InvalidSplitError("Each split must have a percentage for percentage splits")
            bp = cls.to_basis_points(percentage)
            if bp < 0 or bp > BASIS_POINTS:
                raise InvalidSplitError("Split percentages must be between 0 and 100")
            basis_points.append(bp)

        if sum(basis_points) != BASIS_POINTS:
            raise InvalidSplitError(
                f"Split percentages ({cls.from_basis_points(sum(basis_points))}) must add up to 100"
            )

        total_cents = cls.to_cents(total)
        cents_list = [total_cents * bp // BASIS_POINTS for bp in basis_points]

        leftover = total_cents - sum(cents_list)
        eligible = [i for i, bp in enumerate(basis_points) if bp > 0]
        for i in eligible[:leftover]:
            cents_list[i] += 1

        return [
            SplitShare(
                member=member,
                amount=cls.from_cents(cents),
                percentage=cls.from_basis_points(bp),
            )
            for (member, _), cents, bp in zip(entries, cents_list, basis_points)
        ]

    @staticmethod
    def resolve_members(group: Group, member_ids: Iterable) -> List[Member]:
        """
        Look up group members by ID, keeping the given order.

        Raises:
            InvalidSplitError: If a member ID appears twice.
            NotGroupMemberError: If an ID is not a member of the group.
        """
        ids = [str(UUID(str(member_id))) for member_id in member_ids]
        if len(set(ids)) != len(ids):
            raise InvalidSplitError("Each member can only appear once in splits")

        memberships = (
            GroupMembership.objects
            .filter(group=group, member_id__in=ids)
            .select_related('member')
        )
        members_by_id = {str(m.member_id): m.member for m in memberships}

        missing = [member_id for member_id in ids if member_id not in members_by_id]
        if missing:
            raise NotGroupMemberError(
                f"Users {', '.join(missing)} are not members of this group"
            )

        return [members_by_id[member_id] for member_id in ids]

    @staticmethod
    def group_members(group: Group) -> List[Member]:
        """All members of the group in join order."""
        return [m.member for m in group.memberships.select_related('member')]

    @classmethod
    def build_splits(
        cls,
        *,
        group: Group,
        amount,
        split_type: str,
        splits: Optional[Sequence[dict]] = None,
    ) -> List[SplitShare]:
        """
        Compute shares for an expense from raw split input.

        Args:
            group: Group the expense belongs to
            amount: Expense amount
            split_type: One of SplitType values
            splits: Optional list of {'member_id', 'amount', 'percentage'} dicts.
                For equal splits this narrows the participants; for exact and
                percentage splits it is required.

        Returns:
            list[SplitShare]
        """
        if split_type == SplitType.EQUAL:
            if splits:
                participants = cls.resolve_members(group, [s['member_id'] for s in splits])
            else:
                participants = cls.group_members(group)
            return cls.calculate_equal_splits(amount, participants)

        if not splits:
            raise InvalidSplitError(f"Splits are required for {split_type} split type")

        members = cls.resolve_members(group, [s['member_id'] for s in splits])

        if split_type == SplitType.EXACT:
            return cls.calculate_exact_splits(
                amount, [(m, s.get('amount')) for m, s in zip(members, splits)]
            )
        if split_type == SplitType.PERCENTAGE:
            return cls.calculate_percentage_splits(
                amount, [(m, s.get('percentage')) for m, s in zip(members, splits)]
            )

        raise InvalidSplitError(f"Unknown split type: {split_type}")

    @staticmethod
    def save_splits(expense: Expense, shares: Sequence[SplitShare]) -> None:
        """Replace the expense's splits with the given shares."""
        expense.splits.all().delete()
        ExpenseSplit.objects.bulk_create([
            ExpenseSplit(
                expense=expense,
                member=share.member,
                amount=share.amount,
                percentage=share.percentage,
                position=position,
            )
            for position, share in enumerate(shares)
        ])


# =============================================================================
# Helpers
# =============================================================================

def _expense_queryset() -> QuerySet[Expense]:
    """Expenses with payer, group and splits loaded."""
    return (
        Expense.objects
        .select_related('paid_by', 'group')
        .prefetch_related(
            Prefetch('splits', queryset=ExpenseSplit.objects.select_related('member'))
        )
    )


def _get_group(group_id) -> Group:
    try:
        return Group.objects.get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


def _get_payer(group: Group, member_id) -> Member:
    membership = (
        GroupMembership.objects
        .filter(group=group, member_id=member_id)
        .select_related('member')
        .first()
    )
    if membership is None:
        raise NotGroupMemberError("Payer must be a member of the group")
    return membership.member


# =============================================================================
# CRUD
# =============================================================================

@transaction.atomic
def create_expense(
    *,
    group_id: UUID,
    title: str,
    amount: Decimal,
    paid_by: UUID,
    split_type: str = SplitType.EQUAL,
    splits: Optional[Sequence[dict]] = None,
    date=None,
    description: str = '',
) -> Expense:
    """
    Create an expense and its splits.

    Args:
        group_id: Group the expense belongs to
        title: Short title
        amount: Total amount
        paid_by: ID of the paying member (must be in the group)
        split_type: equal, exact or percentage
        splits: Optional list of {'member_id', 'amount', 'percentage'} dicts
        date: When the expense happened (defaults to now)
        description: Optional free text

    Returns:
        Created Expense with splits loaded

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotGroupMemberError: If payer or a split member is not in the group
        InvalidSplitError / NoParticipantsError: If splits are inconsistent
    """
    group = _get_group(group_id)
    payer = _get_payer(group, paid_by)

    shares = ExpenseSplitService.build_splits(
        group=group,
        amount=amount,
        split_type=split_type,
        splits=splits,
    )

    fields = {}
    if date is not None:
        fields['date'] = date

    expense = Expense.objects.create(
        group=group,
        title=title.strip(),
        amount=amount,
        paid_by=payer,
        split_type=split_type,
        description=description or '',
        **fields
    )
    ExpenseSplitService.save_splits(expense, shares)

    logger.info(
        "Created expense %s in group %s: %s split %s ways",
        expense.id, group.id, amount, len(shares),
    )
    return get_expense_by_id(expense_id=expense.id)


def get_expense_by_id(*, expense_id: UUID) -> Expense:
    """
    Get an expense with its splits.

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
    """
    try:
        return _expense_queryset().get(id=expense_id)
    except Expense.DoesNotExist:
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")


def _recalculate_splits(
    expense: Expense,
    *,
    amount: Decimal,
    split_type: str,
    splits: Optional[Sequence[dict]],
    amount_changed: bool,
) -> Optional[List[SplitShare]]:
    """
    Work out new shares for an updated expense.

    Returns None when the stored splits stay valid as they are.
    """
    if splits is not None:
        return ExpenseSplitService.build_splits(
            group=expense.group,
            amount=amount,
            split_type=split_type,
            splits=splits,
        )

    existing = list(expense.splits.select_related('member').order_by('position', 'created_at'))

    if split_type == SplitType.EQUAL:
        participants = [split.member for split in existing]
        if not participants:
            participants = ExpenseSplitService.group_members(expense.group)
        return ExpenseSplitService.calculate_equal_splits(amount, participants)

    if split_type == SplitType.PERCENTAGE:
        if expense.split_type != SplitType.PERCENTAGE or not existing:
            raise InvalidSplitError("Splits are required when switching to percentage split type")
        return ExpenseSplitService.calculate_percentage_splits(
            amount, [(split.member, split.percentage) for split in existing]
        )

    # Exact amounts can only be kept while the total stays the same
    if expense.split_type != SplitType.EXACT or amount_changed:
        raise InvalidSplitError("New splits are required for exact split type")
    return None


@transaction.atomic
def update_expense(
    *,
    expense_id: UUID,
    title: Optional[str] = None,
    amount: Optional[Decimal] = None,
    paid_by: Optional[UUID] = None,
    split_type: Optional[str] = None,
    splits: Optional[Sequence[dict]] = None,
    date=None,
    description: Optional[str] = None,
) -> Expense:
    """
    Update an expense.

    Splits are recomputed whenever amount, split_type or splits change.
    Without new splits, an equal split is redone among the current split
    members, a percentage split reuses the stored percentages, and an exact
    split must be given new splits if the amount changed.

    Uses select_for_update to prevent concurrent modifications.

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        NothingToUpdateError: If no field was given
        NotGroupMemberError: If the new payer or a split member is not in the group
        InvalidSplitError / NoParticipantsError: If splits are inconsistent
    """
    given = [title, amount, paid_by, split_type, splits, date, description]
    if all(value is None for value in given):
        raise NothingToUpdateError("No valid fields to update")

    try:
        expense = (
            Expense.objects
            .select_for_update()
            .select_related('group')
            .get(id=expense_id)
        )
    except Expense.DoesNotExist:
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")

    update_fields = ['updated_at']

    if title is not None:
        expense.title = title.strip()
        update_fields.append('title')

    if description is not None:
        expense.description = description
        update_fields.append('description')

    if date is not None:
        expense.date = date
        update_fields.append('date')

    if paid_by is not None:
        expense.paid_by = _get_payer(expense.group, paid_by)
        update_fields.append('paid_by')

    shares = None
    if amount is not None or split_type is not None or splits is not None:
        new_amount = amount if amount is not None else expense.amount
        new_split_type = split_type or expense.split_type
        amount_changed = (
            ExpenseSplitService.to_cents(new_amount) != ExpenseSplitService.to_cents(expense.amount)
        )

        shares = _recalculate_splits(
            expense,
            amount=new_amount,
            split_type=new_split_type,
            splits=splits,
            amount_changed=amount_changed,
        )

        expense.amount = new_amount
        expense.split_type = new_split_type
        update_fields.extend(['amount', 'split_type'])

    expense.save(update_fields=update_fields)

    if shares is not None:
        ExpenseSplitService.save_splits(expense, shares)

    logger.info("Updated expense %s (%s)", expense.id, ', '.join(update_fields[1:]))
    return get_expense_by_id(expense_id=expense.id)


@transaction.atomic
def delete_expense(*, expense_id: UUID) -> Expense:
    """
    Delete an expense and its splits.

    Returns:
        The expense as it was before deletion, with splits loaded

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
    """
    expense = get_expense_by_id(expense_id=expense_id)
    # Materialise prefetched splits before the rows disappear
    list(expense.splits.all())

    Expense.objects.filter(id=expense_id).delete()
    logger.info("Deleted expense %s", expense_id)

    return expense


# =============================================================================
# Queries
# =============================================================================

def list_expenses(
    *,
    group_id: Optional[UUID] = None,
    user_id: Optional[UUID] = None,
    search: Optional[str] = None,
    start_date: Optional[date_type] = None,
    end_date: Optional[date_type] = None,
) -> QuerySet[Expense]:
    """
    Expenses newest first, with optional filters.

    Args:
        group_id: Only expenses of this group
        user_id: Only expenses the member paid for or has a share in
        search: Case-insensitive match on title or description
        start_date: Expenses dated on or after this day
        end_date: Expenses dated on or before this day
    """
    queryset = _expense_queryset()

    if group_id:
        queryset = queryset.filter(group_id=group_id)

    if user_id:
        queryset = queryset.filter(
            Q(paid_by_id=user_id) | Q(splits__member_id=user_id)
        ).distinct()

    if search:
        queryset = queryset.filter(
            Q(title__icontains=search) | Q(description__icontains=search)
        )

    if start_date:
        queryset = queryset.filter(date__date__gte=start_date)
    if end_date:
        queryset = queryset.filter(date__date__lte=end_date)

    return queryset.order_by('-created_at')


def search_expenses(*, query: str) -> QuerySet[Expense]:
    """Case-insensitive search on expense title and description."""
    return list_expenses(search=query.strip())


def get_expenses_by_date_range(*, start_date: date_type, end_date: date_type) -> QuerySet[Expense]:
    """Expenses dated within [start_date, end_date], newest first."""
    return list_expenses(start_date=start_date, end_date=end_date)


def get_expenses_by_group(*, group_id: UUID) -> QuerySet[Expense]:
    """
    All expenses of a group, newest first.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    group = _get_group(group_id)
    return list_expenses(group_id=group.id)


def get_expenses_by_user(*, user_id: UUID) -> QuerySet[Expense]:
    """Expenses the member paid for or holds a share in."""
    return list_expenses(user_id=user_id)


def get_group_expense_stats(*, group_id: UUID) -> dict:
    """
    Totals and balances for a group.

    A member's balance is what they paid minus the sum of their shares;
    positive means the group owes them money. Balances over all members
    sum to zero.

    Returns:
        dict: total_amount, expense_count, balances (member ID -> Decimal)
        and expenses

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    group = _get_group(group_id)
    expenses = list(list_expenses(group_id=group.id))

    balances = {
        str(membership.member_id): Decimal('0.00')
        for membership in group.memberships.all()
    }
    total_amount = Decimal('0.00')

    for expense in expenses:
        total_amount += expense.amount
        payer_id = str(expense.paid_by_id)
        balances[payer_id] = balances.get(payer_id, Decimal('0.00')) + expense.amount
        for split in expense.splits.all():
            member_id = str(split.member_id)
            balances[member_id] = balances.get(member_id, Decimal('0.00')) - split.amount

    return {
        'total_amount': total_amount,
        'expense_count': len(expenses),
        'balances': balances,
        'expenses': expenses,
    }


def calculate_equal_split(
    *,
    group_id: UUID,
    amount: Decimal,
    participant_ids: Optional[Sequence[UUID]] = None,
) -> List[SplitShare]:
    """
    Preview an equal split without saving anything.

    Args:
        group_id: Group whose members take part
        amount: Amount to split
        participant_ids: Optional member IDs; defaults to all group members

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotGroupMemberError: If a participant is not in the group
        NoParticipantsError: If the group has no members
    """
    group = _get_group(group_id)
    if participant_ids:
        participants = ExpenseSplitService.resolve_members(group, participant_ids)
    else:
        participants = ExpenseSplitService.group_members(group)

    return ExpenseSplitService.calculate_equal_splits(amount, participants)
