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
    return Member.objects.create(name='Alice', email='alice@example.com')


@pytest.fixture
def bob(db):
    return Member.objects.create(name='Bob', email='bob@example.com')


@pytest.fixture
def charlie(db):
    return Member.objects.create(name='Charlie', email='charlie@example.com')


@pytest.fixture
def outsider(db):
    """Member who is not in the test group."""
    return Member.objects.create(name='Olivia', email='olivia@example.com')


@pytest.fixture
def group(db, alice, bob, charlie):
    """Group with Alice, Bob and Charlie, joined in that order."""
    group = Group.objects.create(name='Weekend Trip', description='Getaway')
    for member in (alice, bob, charlie):
        GroupMembership.objects.create(group=group, member=member)
    return group


@pytest.fixture
def other_group(db, outsider):
    group = Group.objects.create(name='Office Lunch')
    GroupMembership.objects.create(group=group, member=outsider)
    return group


def make_expense(group, paid_by, amount, shares, title='Dinner', split_type=SplitType.EQUAL, **fields):
    """Create an expense with explicit (member, amount, percentage) shares."""
    expense = Expense.objects.create(
        group=group,
        title=title,
        amount=Decimal(amount),
        paid_by=paid_by,
        split_type=split_type,
        **fields
    )
    for position, (member, share_amount, percentage) in enumerate(shares):
        ExpenseSplit.objects.create(
            expense=expense,
            member=member,
            amount=Decimal(share_amount),
            percentage=Decimal(percentage),
            position=position,
        )
    return expense


@pytest.fixture
def expense(group, alice, bob, charlie):
    """90.00 paid by Alice, split equally three ways."""
    return make_expense(
        group, alice, '90.00',
        [(alice, '30.00', '33.34'), (bob, '30.00', '33.33'), (charlie, '30.00', '33.33')],
    )


@pytest.fixture
def percentage_expense(group, alice, bob):
    """100.00 paid by Bob, split 60/40 between Alice and Bob."""
    return make_expense(
        group, bob, '100.00',
        [(alice, '60.00', '60.00'), (bob, '40.00', '40.00')],
        title='Hotel',
        split_type=SplitType.PERCENTAGE,
    )


@pytest.fixture
def exact_expense(group, alice, charlie):
    """50.00 paid by Charlie, 20/30 exact split."""
    return make_expense(
        group, charlie, '50.00',
        [(alice, '20.00', '40.00'), (charlie, '30.00', '60.00')],
        title='Taxi',
        split_type=SplitType.EXACT,
    )
