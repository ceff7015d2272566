from datetime import timedelta
from decimal import Decimal

from django.utils import timezone
from rest_framework import serializers
from rest_framework.settings import ISO_8601

from .models import Expense, SplitType


MAX_SPLITS = 50

# Full ISO 8601 timestamps, or a bare day
DATE_INPUT_FORMATS = [ISO_8601, '%Y-%m-%d']


# =============================================================================
# Input Serializers
# =============================================================================

class SplitInputSerializer(serializers.Serializer):
    """One split entry: a member and, depending on split type, an amount or percentage."""

    userId = serializers.UUIDField(source='member_id')
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0'),
        required=False,
        allow_null=True,
    )
    percentage = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal('0'),
        max_value=Decimal('100'),
        required=False,
        allow_null=True,
    )


class ExpenseDateMixin:
    """Expense dates cannot be in the future nor more than a year old."""

    def validate_date(self, value):
        now = timezone.now()
        if value > now:
            raise serializers.ValidationError('Expense date cannot be in the future')
        if value < now - timedelta(days=365):
            raise serializers.ValidationError('Expense date cannot be more than one year ago')
        return value


class ExpenseCreateSerializer(ExpenseDateMixin, serializers.Serializer):
    """
    Validate input for creating an expense.

    Fields:
        title (str): 1-200 chars
        amount (Decimal): 0.01 - 999999.99
        description (str): Optional, up to 1000 chars
        paidBy (UUID): Paying member
        groupId (UUID): Group the expense belongs to
        splitType (str): equal, exact or percentage (default equal)
        date (datetime): Optional ISO 8601, within the last year
        splits (list): Optional, up to 50 {userId, amount?, percentage?}
    """

    title = serializers.CharField(min_length=1, max_length=200)
    amount = serializers.DecimalField(
        max_digits=8,
        decimal_places=2,
        min_value=Decimal('0.01'),
        max_value=Decimal('999999.99'),
    )
    description = serializers.CharField(
        max_length=1000, required=False, allow_blank=True, default=''
    )
    paidBy = serializers.UUIDField(source='paid_by')
    groupId = serializers.UUIDField(source='group_id')
    splitType = serializers.ChoiceField(
        choices=SplitType.choices,
        default=SplitType.EQUAL,
        source='split_type',
    )
    date = serializers.DateTimeField(required=False, input_formats=DATE_INPUT_FORMATS)
    splits = SplitInputSerializer(many=True, required=False, max_length=MAX_SPLITS)


class ExpenseUpdateSerializer(ExpenseDateMixin, serializers.Serializer):
    """Validate input for updating an expense; at least one field is required."""

    title = serializers.CharField(min_length=1, max_length=200, required=False)
    amount = serializers.DecimalField(
        max_digits=8,
        decimal_places=2,
        min_value=Decimal('0.01'),
        max_value=Decimal('999999.99'),
        required=False,
    )
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    paidBy = serializers.UUIDField(source='paid_by', required=False)
    splitType = serializers.ChoiceField(
        choices=SplitType.choices,
        required=False,
        source='split_type',
    )
    date = serializers.DateTimeField(required=False, input_formats=DATE_INPUT_FORMATS)
    splits = SplitInputSerializer(many=True, required=False, max_length=MAX_SPLITS)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('No valid fields to update')
        return attrs


class ExpenseFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for expense filtering.

    Query Parameters:
        groupId (UUID): Filter by group
        userId (UUID): Filter by member (paid or has a share)
        search (str): Match on title or description
        startDate (date): Expenses from this day
        endDate (date): Expenses up to this day
    """

    groupId = serializers.UUIDField(required=False, source='group_id')
    userId = serializers.UUIDField(required=False, source='user_id')
    search = serializers.CharField(max_length=100, required=False, allow_blank=True)
    startDate = serializers.DateField(required=False, source='start_date')
    endDate = serializers.DateField(required=False, source='end_date')

    def validate(self, attrs):
        """Validate date range."""
        start_date = attrs.get('start_date')
        end_date = attrs.get('end_date')

        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError({
                'endDate': 'End date must be after start date'
            })

        return attrs


class DateRangeSerializer(serializers.Serializer):
    """Both ends of the range are required, start on or before end."""

    startDate = serializers.DateField(source='start_date')
    endDate = serializers.DateField(source='end_date')

    def validate(self, attrs):
        if attrs['start_date'] > attrs['end_date']:
            raise serializers.ValidationError({
                'endDate': 'End date must be after start date'
            })
        return attrs


class CalculateSplitSerializer(serializers.Serializer):
    """Input for previewing an equal split."""

    groupId = serializers.UUIDField(source='group_id')
    amount = serializers.DecimalField(
        max_digits=8,
        decimal_places=2,
        min_value=Decimal('0.01'),
        max_value=Decimal('999999.99'),
    )
    participants = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        max_length=MAX_SPLITS,
    )


# =============================================================================
# Output Serializers
# =============================================================================

class SplitDetailSerializer(serializers.Serializer):
    """A member's share, saved or previewed."""

    userId = serializers.UUIDField(source='member.id', read_only=True)
    userName = serializers.CharField(source='member.name', read_only=True)
    amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True
    )
    percentage = serializers.DecimalField(
        max_digits=5, decimal_places=2, coerce_to_string=False, read_only=True
    )


class ExpenseSerializer(serializers.ModelSerializer):
    """Main serializer for expenses."""

    amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True
    )
    paidBy = serializers.UUIDField(source='paid_by_id', read_only=True)
    paidByName = serializers.CharField(source='paid_by.name', read_only=True)
    groupId = serializers.UUIDField(source='group_id', read_only=True)
    splitType = serializers.CharField(source='split_type', read_only=True)
    splitDetails = SplitDetailSerializer(source='splits', many=True, read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Expense
        fields = [
            'id',
            'title',
            'amount',
            'paidBy',
            'paidByName',
            'groupId',
            'splitType',
            'splitDetails',
            'date',
            'description',
            'createdAt',
            'updatedAt',
        ]
        read_only_fields = fields


class ExpenseStatsSerializer(serializers.Serializer):
    """Totals and per-member balances of a group."""

    totalAmount = serializers.DecimalField(
        source='total_amount', max_digits=12, decimal_places=2, coerce_to_string=False
    )
    expenseCount = serializers.IntegerField(source='expense_count')
    balances = serializers.DictField(
        child=serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False)
    )
    expenses = ExpenseSerializer(many=True)
