# ==========================================
# apps/expenses/admin.py
# ==========================================

from django.contrib import admin
from .models import Expense, ExpenseSplit


class ExpenseSplitInline(admin.TabularInline):
    """Inline admin for splits within an expense."""
    model = ExpenseSplit
    extra = 0
    fields = ['member', 'amount', 'percentage', 'position']
    readonly_fields = ['position']


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    """Admin interface for Expenses."""

    list_display = [
        'title',
        'group',
        'paid_by',
        'amount',
        'split_type',
        'date',
        'split_total',
    ]
    list_filter = ['split_type', 'date']
    search_fields = ['title', 'description', 'group__name', 'paid_by__name', 'paid_by__email']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [ExpenseSplitInline]
    date_hierarchy = 'date'
    ordering = ['-created_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('group', 'paid_by').prefetch_related('splits')

    def split_total(self, obj):
        return obj.get_split_total()

    split_total.short_description = 'Split total'


@admin.register(ExpenseSplit)
class ExpenseSplitAdmin(admin.ModelAdmin):
    """Admin interface for Expense Splits."""

    list_display = ['member', 'expense', 'amount', 'percentage']
    search_fields = ['member__name', 'member__email', 'expense__title']
    ordering = ['-created_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('member', 'expense')
