import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from apps.groups.models import Group, GroupMembership, Member
from apps.expenses.models import Expense, ExpenseSplit, SplitType


@pytest.fixture
def api_client():
    """Return an API client."""
    return APIClient()


@pytest.fixture
def alice(db):
    """Create and return a member."""
    return Member.objects.create(name='Alice', email='alice@example.com')


@pytest.fixture
def bob(db):
    """Create and return a member."""
    return Member.objects.create(name='Bob', email='bob@example.com')


@pytest.fixture
def carol(db):
    """Create and return a member who is not in any group."""
    return Member.objects.create(name='Carol', email='carol@example.com')


@pytest.fixture
def group(db):
    """Create and return an empty group."""
    return Group.objects.create(
        name='Weekend Trip',
        description='Friends going on a weekend getaway',
    )


@pytest.fixture
def group_with_members(group, alice, bob):
    """Group with Alice and Bob."""
    GroupMembership.objects.create(group=group, member=alice)
    GroupMembership.objects.create(group=group, member=bob)
    return group


@pytest.fixture
def expense(group_with_members, alice, bob):
    """60.00 paid by Alice, split equally with Bob."""
    expense = Expense.objects.create(
        group=group_with_members,
        title='Dinner',
        amount=Decimal('60.00'),
        paid_by=alice,
        split_type=SplitType.EQUAL,
    )
    ExpenseSplit.objects.create(
        expense=expense, member=alice, amount=Decimal('30.00'),
        percentage=Decimal('50.00'), position=0,
    )
    ExpenseSplit.objects.create(
        expense=expense, member=bob, amount=Decimal('30.00'),
        percentage=Decimal('50.00'), position=1,
    )
    return expense
