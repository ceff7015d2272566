# ==========================================
# apps/expenses/models.py
# ==========================================

from decimal import Decimal
import uuid

from django.core.validators import MaxValueValidator, MinLengthValidator, MinValueValidator
from django.db import models
from django.utils import timezone


class SplitType(models.TextChoices):
    EQUAL = 'equal', 'Equal'
    EXACT = 'exact', 'Exact'
    PERCENTAGE = 'percentage', 'Percentage'


class Expense(models.Model):
    """Money paid by one member on behalf of a group."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200, validators=[MinLengthValidator(1)])
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[
            MinValueValidator(Decimal('0.01')),
            MaxValueValidator(Decimal('999999.99')),
        ]
    )

    # Payer cannot be deleted while their expenses exist
    paid_by = models.ForeignKey(
        'groups.Member',
        on_delete=models.PROTECT,
        related_name='expenses_paid'
    )
    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='expenses'
    )

    split_type = models.CharField(
        max_length=20,
        choices=SplitType.choices,
        default=SplitType.EQUAL
    )
    date = models.DateTimeField(default=timezone.now)
    description = models.TextField(max_length=1000, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'expenses'
        indexes = [
            models.Index(fields=['group', 'created_at'], name='expenses_group_created_idx'),
            models.Index(fields=['paid_by'], name='expenses_paid_by_idx'),
            models.Index(fields=['date'], name='expenses_date_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} - {self.amount} ({self.group.name})"

    def get_split_total(self):
        """Sum of all split amounts; equals amount for a consistent expense."""
        return sum((split.amount for split in self.splits.all()), Decimal('0.00'))


class ExpenseSplit(models.Model):
    """One member's share of an expense."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    expense = models.ForeignKey(
        Expense,
        on_delete=models.CASCADE,
        related_name='splits'
    )
    member = models.ForeignKey(
        'groups.Member',
        on_delete=models.CASCADE,
        related_name='expense_splits'
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[
            MinValueValidator(Decimal('0.00')),
            MaxValueValidator(Decimal('100.00')),
        ]
    )
    # Position in the split list; remainder cents go to the lowest positions
    position = models.PositiveSmallIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'expense_splits'
        constraints = [
            models.UniqueConstraint(fields=['expense', 'member'], name='unique_expense_member'),
        ]
        indexes = [
            models.Index(fields=['member'], name='expense_splits_member_idx'),
        ]
        ordering = ['position', 'created_at']

    def __str__(self):
        return f"{self.member.name} owes {self.amount} for {self.expense.title}"
