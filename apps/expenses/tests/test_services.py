"""
Service layer unit tests for expenses app.

Tests cover:
- Cent-precise split arithmetic (equal, exact, percentage)
- Expense CRUD and split recomputation on update
- Queries, balances and split previews
"""

import pytest
from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

from django.utils import timezone

from apps.groups.models import Member
from apps.groups.services.exceptions import GroupNotFoundError
from apps.expenses.models import Expense, ExpenseSplit, SplitType
from apps.expenses.exceptions import (
    ExpenseNotFoundError,
    InvalidSplitError,
    NoParticipantsError,
    NotGroupMemberError,
    NothingToUpdateError,
)
from apps.expenses.services import (
    ExpenseSplitService,
    create_expense,
    get_expense_by_id,
    update_expense,
    delete_expense,
    list_expenses,
    search_expenses,
    get_expenses_by_date_range,
    get_expenses_by_group,
    get_expenses_by_user,
    get_group_expense_stats,
    calculate_equal_split,
)
from .conftest import make_expense


def _members(count):
    return [Member(name=f'M{i}', email=f'm{i}@example.com') for i in range(count)]


def _amounts(shares):
    return [share.amount for share in shares]


def _percentages(shares):
    return [share.percentage for share in shares]


# =============================================================================
# Split Arithmetic
# =============================================================================

class TestEqualSplits:
    """Tests for ExpenseSplitService.calculate_equal_splits."""

    def test_even_split(self):
        shares = ExpenseSplitService.calculate_equal_splits(Decimal('90.00'), _members(3))

        assert _amounts(shares) == [Decimal('30.00')] * 3

    def test_remainder_goes_to_first_participants(self):
        shares = ExpenseSplitService.calculate_equal_splits(Decimal('100.00'), _members(3))

        assert _amounts(shares) == [Decimal('33.34'), Decimal('33.33'), Decimal('33.33')]
        assert _percentages(shares) == [Decimal('33.34'), Decimal('33.33'), Decimal('33.33')]

    def test_shares_sum_to_total(self):
        for total in ['0.01', '0.05', '10.00', '999999.99', '1234.57']:
            for count in range(1, 8):
                shares = ExpenseSplitService.calculate_equal_splits(Decimal(total), _members(count))
                assert sum(_amounts(shares)) == Decimal(total)
                assert sum(_percentages(shares)) == Decimal('100.00')

    def test_more_participants_than_cents(self):
        shares = ExpenseSplitService.calculate_equal_splits(Decimal('0.02'), _members(3))

        assert _amounts(shares) == [Decimal('0.01'), Decimal('0.01'), Decimal('0.00')]

    def test_no_participants(self):
        with pytest.raises(NoParticipantsError):
            ExpenseSplitService.calculate_equal_splits(Decimal('10.00'), [])


class TestExactSplits:
    """Tests for ExpenseSplitService.calculate_exact_splits."""

    def test_exact_split_derives_percentages(self):
        a, b = _members(2)
        shares = ExpenseSplitService.calculate_exact_splits(
            Decimal('50.00'), [(a, Decimal('20.00')), (b, Decimal('30.00'))]
        )

        assert _amounts(shares) == [Decimal('20.00'), Decimal('30.00')]
        assert _percentages(shares) == [Decimal('40.00'), Decimal('60.00')]

    def test_amounts_must_add_up(self):
        a, b = _members(2)
        with pytest.raises(InvalidSplitError):
            ExpenseSplitService.calculate_exact_splits(
                Decimal('50.00'), [(a, Decimal('20.00')), (b, Decimal('29.99'))]
            )

    def test_missing_amount(self):
        a, b = _members(2)
        with pytest.raises(InvalidSplitError):
            ExpenseSplitService.calculate_exact_splits(
                Decimal('50.00'), [(a, Decimal('50.00')), (b, None)]
            )

    def test_negative_amount(self):
        a, b = _members(2)
        with pytest.raises(InvalidSplitError):
            ExpenseSplitService.calculate_exact_splits(
                Decimal('50.00'), [(a, Decimal('60.00')), (b, Decimal('-10.00'))]
            )


class TestPercentageSplits:
    """Tests for ExpenseSplitService.calculate_percentage_splits."""

    def test_percentage_split(self):
        a, b = _members(2)
        shares = ExpenseSplitService.calculate_percentage_splits(
            Decimal('100.00'), [(a, Decimal('60')), (b, Decimal('40'))]
        )

        assert _amounts(shares) == [Decimal('60.00'), Decimal('40.00')]

    def test_leftover_cents_go_to_first_participants(self):
        a, b, c = _members(3)
        shares = ExpenseSplitService.calculate_percentage_splits(
            Decimal('10.00'),
            [(a, Decimal('33.33')), (b, Decimal('33.33')), (c, Decimal('33.34'))],
        )

        # floors are 3.33, 3.33, 3.33 with one cent left over
        assert _amounts(shares) == [Decimal('3.34'), Decimal('3.33'), Decimal('3.33')]
        assert sum(_amounts(shares)) == Decimal('10.00')

    def test_zero_percentage_gets_nothing(self):
        a, b, c = _members(3)
        shares = ExpenseSplitService.calculate_percentage_splits(
            Decimal('0.05'),
            [(a, Decimal('0')), (b, Decimal('50')), (c, Decimal('50'))],
        )

        assert _amounts(shares)[0] == Decimal('0.00')
        assert sum(_amounts(shares)) == Decimal('0.05')

    def test_percentages_must_add_up(self):
        a, b = _members(2)
        with pytest.raises(InvalidSplitError):
            ExpenseSplitService.calculate_percentage_splits(
                Decimal('100.00'), [(a, Decimal('60')), (b, Decimal('39.99'))]
            )

    def test_missing_percentage(self):
        a, b = _members(2)
        with pytest.raises(InvalidSplitError):
            ExpenseSplitService.calculate_percentage_splits(
                Decimal('100.00'), [(a, Decimal('100')), (b, None)]
            )


# =============================================================================
# Expense CRUD
# =============================================================================

@pytest.mark.django_db
class TestCreateExpense:
    """Tests for create_expense."""

    def test_equal_split_among_all_members(self, group, alice, bob, charlie):
        expense = create_expense(
            group_id=group.id,
            title='Dinner',
            amount=Decimal('100.00'),
            paid_by=alice.id,
        )

        splits = list(expense.splits.all())
        assert expense.split_type == SplitType.EQUAL
        assert [s.member for s in splits] == [alice, bob, charlie]
        assert [s.amount for s in splits] == [Decimal('33.34'), Decimal('33.33'), Decimal('33.33')]
        assert expense.get_split_total() == expense.amount

    def test_equal_split_among_listed_members(self, group, alice, charlie):
        expense = create_expense(
            group_id=group.id,
            title='Coffee',
            amount=Decimal('7.00'),
            paid_by=alice.id,
            splits=[{'member_id': charlie.id}, {'member_id': alice.id}],
        )

        splits = list(expense.splits.all())
        assert [s.member for s in splits] == [charlie, alice]
        assert [s.amount for s in splits] == [Decimal('3.50'), Decimal('3.50')]

    def test_exact_split(self, group, alice, bob):
        expense = create_expense(
            group_id=group.id,
            title='Taxi',
            amount=Decimal('25.00'),
            paid_by=bob.id,
            split_type=SplitType.EXACT,
            splits=[
                {'member_id': alice.id, 'amount': Decimal('10.00')},
                {'member_id': bob.id, 'amount': Decimal('15.00')},
            ],
        )

        assert [s.percentage for s in expense.splits.all()] == [Decimal('40.00'), Decimal('60.00')]

    def test_percentage_split(self, group, alice, bob):
        expense = create_expense(
            group_id=group.id,
            title='Hotel',
            amount=Decimal('200.00'),
            paid_by=alice.id,
            split_type=SplitType.PERCENTAGE,
            splits=[
                {'member_id': alice.id, 'percentage': Decimal('75')},
                {'member_id': bob.id, 'percentage': Decimal('25')},
            ],
        )

        assert [s.amount for s in expense.splits.all()] == [Decimal('150.00'), Decimal('50.00')]

    def test_date_defaults_to_now(self, group, alice):
        before = timezone.now()
        expense = create_expense(
            group_id=group.id, title='Snacks', amount=Decimal('5.00'), paid_by=alice.id,
        )

        assert expense.date >= before

    def test_exact_split_requires_splits(self, group, alice):
        with pytest.raises(InvalidSplitError):
            create_expense(
                group_id=group.id, title='Taxi', amount=Decimal('25.00'),
                paid_by=alice.id, split_type=SplitType.EXACT,
            )
        assert Expense.objects.count() == 0

    def test_payer_must_be_member(self, group, outsider):
        with pytest.raises(NotGroupMemberError):
            create_expense(
                group_id=group.id, title='Taxi', amount=Decimal('25.00'), paid_by=outsider.id,
            )

    def test_split_member_must_be_member(self, group, alice, outsider):
        with pytest.raises(NotGroupMemberError):
            create_expense(
                group_id=group.id, title='Taxi', amount=Decimal('25.00'), paid_by=alice.id,
                splits=[{'member_id': alice.id}, {'member_id': outsider.id}],
            )

    def test_duplicate_split_member(self, group, alice):
        with pytest.raises(InvalidSplitError):
            create_expense(
                group_id=group.id, title='Taxi', amount=Decimal('25.00'), paid_by=alice.id,
                splits=[{'member_id': alice.id}, {'member_id': alice.id}],
            )

    def test_group_not_found(self, alice):
        with pytest.raises(GroupNotFoundError):
            create_expense(
                group_id=uuid4(), title='Taxi', amount=Decimal('25.00'), paid_by=alice.id,
            )

    def test_group_without_members(self, db, alice):
        from apps.groups.models import Group

        empty = Group.objects.create(name='Empty')
        with pytest.raises(NotGroupMemberError):
            create_expense(
                group_id=empty.id, title='Taxi', amount=Decimal('25.00'), paid_by=alice.id,
            )


@pytest.mark.django_db
class TestUpdateExpense:
    """Tests for update_expense."""

    def test_update_title_keeps_splits(self, expense):
        split_ids = set(expense.splits.values_list('id', flat=True))

        updated = update_expense(expense_id=expense.id, title='Late dinner')

        assert updated.title == 'Late dinner'
        assert set(updated.splits.values_list('id', flat=True)) == split_ids

    def test_equal_amount_change_resplits_existing_members(self, group, alice, bob, charlie):
        expense = make_expense(
            group, alice, '20.00', [(alice, '10.00', '50.00'), (bob, '10.00', '50.00')]
        )

        updated = update_expense(expense_id=expense.id, amount=Decimal('25.01'))

        splits = list(updated.splits.all())
        assert [s.member for s in splits] == [alice, bob]
        assert [s.amount for s in splits] == [Decimal('12.51'), Decimal('12.50')]
        assert updated.get_split_total() == Decimal('25.01')

    def test_percentage_amount_change_reuses_percentages(self, percentage_expense):
        updated = update_expense(expense_id=percentage_expense.id, amount=Decimal('50.00'))

        assert [s.amount for s in updated.splits.all()] == [Decimal('30.00'), Decimal('20.00')]
        assert [s.percentage for s in updated.splits.all()] == [Decimal('60.00'), Decimal('40.00')]

    def test_exact_amount_change_requires_new_splits(self, exact_expense):
        with pytest.raises(InvalidSplitError):
            update_expense(expense_id=exact_expense.id, amount=Decimal('60.00'))

        exact_expense.refresh_from_db()
        assert exact_expense.amount == Decimal('50.00')

    def test_exact_amount_change_with_new_splits(self, exact_expense, alice, charlie):
        updated = update_expense(
            expense_id=exact_expense.id,
            amount=Decimal('60.00'),
            splits=[
                {'member_id': alice.id, 'amount': Decimal('30.00')},
                {'member_id': charlie.id, 'amount': Decimal('30.00')},
            ],
        )

        assert updated.amount == Decimal('60.00')
        assert [s.amount for s in updated.splits.all()] == [Decimal('30.00'), Decimal('30.00')]

    def test_switch_to_equal(self, exact_expense, alice, charlie):
        updated = update_expense(expense_id=exact_expense.id, split_type=SplitType.EQUAL)

        assert updated.split_type == SplitType.EQUAL
        assert [s.amount for s in updated.splits.all()] == [Decimal('25.00'), Decimal('25.00')]

    def test_switch_to_percentage_requires_splits(self, expense):
        with pytest.raises(InvalidSplitError):
            update_expense(expense_id=expense.id, split_type=SplitType.PERCENTAGE)

    def test_change_payer(self, expense, bob):
        updated = update_expense(expense_id=expense.id, paid_by=bob.id)
        assert updated.paid_by == bob

    def test_change_payer_to_outsider(self, expense, outsider):
        with pytest.raises(NotGroupMemberError):
            update_expense(expense_id=expense.id, paid_by=outsider.id)

    def test_nothing_to_update(self, expense):
        with pytest.raises(NothingToUpdateError):
            update_expense(expense_id=expense.id)

    def test_not_found(self, db):
        with pytest.raises(ExpenseNotFoundError):
            update_expense(expense_id=uuid4(), title='Nope')


@pytest.mark.django_db
class TestGetAndDeleteExpense:

    def test_get_expense(self, expense):
        assert get_expense_by_id(expense_id=expense.id) == expense

    def test_get_expense_not_found(self, db):
        with pytest.raises(ExpenseNotFoundError):
            get_expense_by_id(expense_id=uuid4())

    def test_delete_expense_returns_snapshot(self, expense):
        snapshot = delete_expense(expense_id=expense.id)

        assert snapshot.title == 'Dinner'
        assert len(snapshot.splits.all()) == 3
        assert not Expense.objects.filter(id=expense.id).exists()
        assert not ExpenseSplit.objects.filter(expense_id=expense.id).exists()

    def test_delete_expense_not_found(self, db):
        with pytest.raises(ExpenseNotFoundError):
            delete_expense(expense_id=uuid4())


# =============================================================================
# Queries
# =============================================================================

@pytest.mark.django_db
class TestQueries:

    def test_list_filters_by_group(self, expense, other_group, outsider):
        make_expense(other_group, outsider, '10.00', [(outsider, '10.00', '100.00')], title='Lunch')

        assert list(list_expenses(group_id=expense.group_id)) == [expense]

    def test_list_filters_by_user_as_payer_or_split_holder(self, expense, exact_expense, bob, charlie):
        # Bob only holds a split in the equal expense
        assert list(list_expenses(user_id=bob.id)) == [expense]
        # Charlie paid the exact expense and holds a split in the equal one
        assert set(list_expenses(user_id=charlie.id)) == {expense, exact_expense}

    def test_search(self, expense, exact_expense):
        assert list(search_expenses(query='taxi')) == [exact_expense]

    def test_date_range(self, group, alice):
        now = timezone.now()
        old = make_expense(group, alice, '5.00', [(alice, '5.00', '100.00')],
                           title='Old', date=now - timedelta(days=10))
        recent = make_expense(group, alice, '5.00', [(alice, '5.00', '100.00')],
                              title='Recent', date=now)

        found = list(get_expenses_by_date_range(
            start_date=(now - timedelta(days=1)).date(),
            end_date=now.date(),
        ))

        assert found == [recent]
        assert old not in found

    def test_by_group_not_found(self, db):
        with pytest.raises(GroupNotFoundError):
            get_expenses_by_group(group_id=uuid4())

    def test_by_user_unknown_member(self, db):
        assert list(get_expenses_by_user(user_id=uuid4())) == []


@pytest.mark.django_db
class TestGroupExpenseStats:

    def test_balances(self, expense, exact_expense, alice, bob, charlie):
        stats = get_group_expense_stats(group_id=expense.group_id)

        assert stats['expense_count'] == 2
        assert stats['total_amount'] == Decimal('140.00')
        # Alice paid 90, owes 30 + 20; Bob owes 30; Charlie paid 50, owes 30 + 30
        assert stats['balances'] == {
            str(alice.id): Decimal('40.00'),
            str(bob.id): Decimal('-30.00'),
            str(charlie.id): Decimal('-10.00'),
        }
        assert sum(stats['balances'].values()) == Decimal('0.00')

    def test_empty_group_has_zero_balances(self, group, alice):
        stats = get_group_expense_stats(group_id=group.id)

        assert stats['total_amount'] == Decimal('0.00')
        assert stats['balances'][str(alice.id)] == Decimal('0.00')

    def test_not_found(self, db):
        with pytest.raises(GroupNotFoundError):
            get_group_expense_stats(group_id=uuid4())


@pytest.mark.django_db
class TestCalculateEqualSplit:

    def test_defaults_to_all_members(self, group, alice, bob, charlie):
        shares = calculate_equal_split(group_id=group.id, amount=Decimal('10.00'))

        assert [s.member for s in shares] == [alice, bob, charlie]
        assert _amounts(shares) == [Decimal('3.34'), Decimal('3.33'), Decimal('3.33')]
        assert Expense.objects.count() == 0

    def test_selected_participants(self, group, bob, charlie):
        shares = calculate_equal_split(
            group_id=group.id, amount=Decimal('10.00'), participant_ids=[bob.id, charlie.id]
        )

        assert _amounts(shares) == [Decimal('5.00'), Decimal('5.00')]

    def test_outsider_participant(self, group, outsider):
        with pytest.raises(NotGroupMemberError):
            calculate_equal_split(
                group_id=group.id, amount=Decimal('10.00'), participant_ids=[outsider.id]
            )

    def test_empty_group(self, db):
        from apps.groups.models import Group

        empty = Group.objects.create(name='Empty')
        with pytest.raises(NoParticipantsError):
            calculate_equal_split(group_id=empty.id, amount=Decimal('10.00'))
