"""
Management command to seed the database with sample data.

Usage:
    python manage.py seed_data [--clear]

This creates:
- 10 members
- 4 groups (Weekend Trip, Office Lunch, House Sharing, Gym Membership)
- 5 expenses split equally among group members
"""

from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.expenses.models import Expense, ExpenseSplit
from apps.expenses.services import create_expense
from apps.groups.models import Group, GroupMembership, Member
from apps.groups.services import create_group


MEMBERS = [
    ('Rishab', 'rishab@example.com'),
    ('Sarah', 'sarah@example.com'),
    ('Alex', 'alex@example.com'),
    ('Emma', 'emma@example.com'),
    ('John', 'john@example.com'),
    ('Lisa', 'lisa@example.com'),
    ('Mike', 'mike@example.com'),
    ('Anna', 'anna@example.com'),
    ('David', 'david@example.com'),
    ('Sophie', 'sophie@example.com'),
]

# (name, description, indexes into MEMBERS)
GROUPS = [
    ('Weekend Trip', 'Friends going on a weekend getaway', [0, 1, 2, 3]),
    ('Office Lunch', 'Team lunch expenses', [4, 5, 6]),
    ('House Sharing', 'Shared household expenses', [7, 8, 9]),
    ('Gym Membership', 'Shared gym membership costs', [0, 4, 7]),
]

# (title, amount, payer index, group index, days ago, description)
EXPENSES = [
    ('Dinner at Restaurant', '1200.00', 0, 0, 2, 'Group dinner at a nice restaurant'),
    ('Petrol for Road Trip', '800.00', 1, 0, 3, 'Fuel for the weekend road trip'),
    ('Office Lunch', '450.00', 4, 1, 1, 'Team lunch at office cafeteria'),
    ('Grocery Shopping', '1200.00', 7, 2, 4, 'Weekly grocery shopping for the house'),
    ('Gym Membership Fee', '1500.00', 0, 3, 5, 'Monthly gym membership split'),
]


class Command(BaseCommand):
    help = 'Seed the database with sample members, groups and expenses'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before creating new sample data',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Creating sample data...')

        groups = self.create_groups()
        self.create_expenses(groups)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write(f'  {Member.objects.count()} members')
        self.stdout.write(f'  {Group.objects.count()} groups')
        self.stdout.write(f'  {Expense.objects.count()} expenses')

    def clear_data(self):
        """Clear all data from the database."""
        ExpenseSplit.objects.all().delete()
        Expense.objects.all().delete()
        GroupMembership.objects.all().delete()
        Group.objects.all().delete()
        Member.objects.all().delete()

    def create_groups(self):
        """Create groups; members are created on first use by email."""
        self.stdout.write('  Creating groups...')

        groups = []
        for name, description, member_indexes in GROUPS:
            group = Group.objects.filter(name=name).first()
            if group is None:
                group = create_group(
                    name=name,
                    description=description,
                    members=[
                        {'name': MEMBERS[i][0], 'email': MEMBERS[i][1]}
                        for i in member_indexes
                    ],
                    created_by='seed',
                )
                self.stdout.write(f'    Created group: {name}')
            groups.append(group)

        return groups

    def create_expenses(self, groups):
        self.stdout.write('  Creating expenses...')

        now = timezone.now()
        for title, amount, payer_index, group_index, days_ago, description in EXPENSES:
            group = groups[group_index]
            if group.expenses.filter(title=title).exists():
                continue

            payer = Member.objects.get(email=MEMBERS[payer_index][1])
            create_expense(
                group_id=group.id,
                title=title,
                amount=Decimal(amount),
                paid_by=payer.id,
                date=now - timedelta(days=days_ago),
                description=description,
            )
            self.stdout.write(f'    Created expense: {title} ({amount})')
