from decimal import Decimal

from django.core.validators import RegexValidator
from rest_framework import serializers

from .models import Group, GroupMembership, group_name_validator


search_term_validator = RegexValidator(
    regex=r'^[a-zA-Z0-9\s\-_]+$',
    message='Search term can only contain letters, numbers, spaces, hyphens, and underscores',
)


# =============================================================================
# Input Serializers
# =============================================================================

class MemberInputSerializer(serializers.Serializer):
    """A member given by name and email."""

    name = serializers.CharField(min_length=1, max_length=100, trim_whitespace=True)
    email = serializers.EmailField(max_length=255)


class GroupCreateSerializer(serializers.Serializer):
    """
    Validate input for creating a group.

    Fields:
        name (str): 1-100 chars, letters, numbers, spaces, hyphens, underscores
        description (str): Optional, up to 500 chars
        members (list): Optional [{name, email}] to add right away
        memberEmails (list): Optional emails to add right away
    """

    name = serializers.CharField(
        min_length=1,
        max_length=100,
        validators=[group_name_validator],
    )
    description = serializers.CharField(
        max_length=500, required=False, allow_blank=True, default=''
    )
    members = MemberInputSerializer(many=True, required=False, max_length=50)
    memberEmails = serializers.ListField(
        child=serializers.EmailField(max_length=255),
        required=False,
        max_length=50,
        source='member_emails',
    )


class GroupUpdateSerializer(serializers.Serializer):
    """Validate input for updating a group; at least one field is required."""

    name = serializers.CharField(
        min_length=1,
        max_length=100,
        required=False,
        validators=[group_name_validator],
    )
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('No valid fields to update')
        return attrs


class AddMemberSerializer(MemberInputSerializer):
    """Validate input for adding a member to a group."""


class SearchQuerySerializer(serializers.Serializer):
    """Validate the `q` query parameter of search endpoints."""

    q = serializers.CharField(
        min_length=1,
        max_length=100,
        trim_whitespace=True,
        validators=[search_term_validator],
    )


class GroupFilterSerializer(serializers.Serializer):
    """Optional `search` filter for the group list."""

    search = serializers.CharField(max_length=100, required=False, allow_blank=True)


# =============================================================================
# Output Serializers
# =============================================================================

class GroupMemberSerializer(serializers.ModelSerializer):
    """Member as seen from within a group."""

    id = serializers.UUIDField(source='member.id', read_only=True)
    name = serializers.CharField(source='member.name', read_only=True)
    email = serializers.EmailField(source='member.email', read_only=True)
    joinedAt = serializers.DateTimeField(source='joined_at', read_only=True)

    class Meta:
        model = GroupMembership
        fields = ['id', 'name', 'email', 'joinedAt']
        read_only_fields = fields


class GroupListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    createdBy = serializers.CharField(source='created_by', read_only=True)
    memberCount = serializers.SerializerMethodField()
    totalExpenses = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'description',
            'createdBy',
            'memberCount',
            'totalExpenses',
            'createdAt',
            'updatedAt',
        ]
        read_only_fields = fields

    def get_memberCount(self, obj) -> int:
        # Uses the prefetched memberships when available
        return len(obj.memberships.all())

    def get_totalExpenses(self, obj) -> str:
        total = sum((expense.amount for expense in obj.expenses.all()), Decimal('0.00'))
        return f"{total:.2f}"


class GroupSerializer(GroupListSerializer):
    """Full group with members and expenses."""

    members = GroupMemberSerializer(source='memberships', many=True, read_only=True)
    expenses = serializers.SerializerMethodField()

    class Meta(GroupListSerializer.Meta):
        fields = GroupListSerializer.Meta.fields + ['members', 'expenses']
        read_only_fields = fields

    def get_expenses(self, obj) -> list:
        from apps.expenses.serializers import ExpenseSerializer

        return ExpenseSerializer(obj.expenses.all(), many=True).data


class GroupStatsSerializer(serializers.Serializer):
    """Aggregate figures for a group."""

    memberCount = serializers.IntegerField(source='member_count')
    expenseCount = serializers.IntegerField(source='expense_count')
    totalAmount = serializers.DecimalField(
        source='total_amount', max_digits=12, decimal_places=2, coerce_to_string=False
    )
    averageAmount = serializers.DecimalField(
        source='average_amount', max_digits=12, decimal_places=2, coerce_to_string=False
    )
