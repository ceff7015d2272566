# ==========================================
# apps/groups/models.py
# ==========================================

from decimal import Decimal
import uuid

from django.core.validators import RegexValidator, MinLengthValidator
from django.db import models
from django.db.models import Sum


group_name_validator = RegexValidator(
    regex=r'^[a-zA-Z0-9\s\-_]+$',
    message='Group name can only contain letters, numbers, spaces, hyphens, and underscores',
)


class Member(models.Model):
    """Person who can belong to groups and share expenses."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, validators=[MinLengthValidator(1)])
    email = models.EmailField(max_length=255, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'members'
        indexes = [
            models.Index(fields=['name'], name='members_name_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.name} <{self.email}>"

    def save(self, *args, **kwargs):
        self.email = self.email.strip().lower()
        super().save(*args, **kwargs)


class Group(models.Model):
    """Named collection of members who share expenses."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, validators=[group_name_validator])
    description = models.TextField(max_length=500, blank=True)
    created_by = models.CharField(max_length=255, default='unknown')
    members = models.ManyToManyField(
        Member,
        through='GroupMembership',
        related_name='groups',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'groups'
        indexes = [
            models.Index(fields=['name'], name='groups_name_idx'),
            models.Index(fields=['created_at'], name='groups_created_at_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    def has_member(self, member):
        member_id = getattr(member, 'id', member)
        return self.memberships.filter(member_id=member_id).exists()

    def get_total_expenses(self):
        """Sum of all expense amounts in the group."""
        total = self.expenses.aggregate(total=Sum('amount'))['total']
        return total or Decimal('0.00')


class GroupMembership(models.Model):
    """Member's participation in a group."""

    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='memberships')
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name='memberships')
    joined_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'group_members'
        constraints = [
            models.UniqueConstraint(fields=['group', 'member'], name='unique_group_member'),
        ]
        indexes = [
            models.Index(fields=['group', 'joined_at'], name='group_members_joined_idx'),
            models.Index(fields=['member'], name='group_members_member_idx'),
        ]
        ordering = ['joined_at', 'id']

    def __str__(self):
        return f"{self.member.name} in {self.group.name}"
