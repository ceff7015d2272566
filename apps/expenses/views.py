from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from drf_spectacular.utils import extend_schema, OpenApiParameter

from config.responses import api_response, single_page_response
from apps.groups.serializers import SearchQuerySerializer
from apps.groups.services.exceptions import GroupNotFoundError

from .exceptions import (
    ExpenseNotFoundError,
    InvalidSplitError,
    NoParticipantsError,
    NotGroupMemberError,
    NothingToUpdateError,
)
from .serializers import (
    ExpenseSerializer,
    ExpenseCreateSerializer,
    ExpenseUpdateSerializer,
    ExpenseFilterSerializer,
    ExpenseStatsSerializer,
    DateRangeSerializer,
    CalculateSplitSerializer,
    SplitDetailSerializer,
)
from . import services

UUID_PATTERN = r'[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}'

# Business rule violations that surface as 400s
SPLIT_ERRORS = (InvalidSplitError, NoParticipantsError, NotGroupMemberError)


@extend_schema(tags=['expenses'])
class ExpenseViewSet(viewsets.GenericViewSet):
    """
    ViewSet for Expense CRUD operations.

    list: Get expenses (paginated; filter by group, member, text, dates)
    create: Create an expense and split it
    retrieve: Get an expense with its splits
    update: Update an expense, recomputing splits when needed
    partial_update: Same as update
    destroy: Delete an expense
    """

    serializer_class = ExpenseSerializer
    lookup_value_regex = UUID_PATTERN

    def get_queryset(self):
        return services.list_expenses()

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'create':
            return ExpenseCreateSerializer
        elif self.action in ['update', 'partial_update']:
            return ExpenseUpdateSerializer
        return ExpenseSerializer

    @extend_schema(parameters=[ExpenseFilterSerializer])
    def list(self, request, *args, **kwargs):
        """List expenses, newest first."""
        filter_serializer = ExpenseFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)

        expenses = services.list_expenses(**filter_serializer.validated_data)
        page = self.paginate_queryset(expenses)
        serializer = ExpenseSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request, pk=None):
        """Get an expense with its splits."""
        try:
            expense = services.get_expense_by_id(expense_id=pk)
        except ExpenseNotFoundError as e:
            raise NotFound(str(e))

        return api_response(request, ExpenseSerializer(expense).data)

    @extend_schema(request=ExpenseCreateSerializer, responses={201: ExpenseSerializer})
    def create(self, request, *args, **kwargs):
        """Create an expense and split it among members."""
        serializer = ExpenseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            expense = services.create_expense(**serializer.validated_data)
        except GroupNotFoundError as e:
            raise NotFound(str(e))
        except SPLIT_ERRORS as e:
            raise ValidationError(str(e))

        return api_response(
            request,
            ExpenseSerializer(expense).data,
            message='Expense created successfully',
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=ExpenseUpdateSerializer, responses={200: ExpenseSerializer})
    def update(self, request, pk=None, partial=False):
        """Update an expense."""
        serializer = ExpenseUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            expense = services.update_expense(expense_id=pk, **serializer.validated_data)
        except ExpenseNotFoundError as e:
            raise NotFound(str(e))
        except SPLIT_ERRORS + (NothingToUpdateError,) as e:
            raise ValidationError(str(e))

        return api_response(
            request,
            ExpenseSerializer(expense).data,
            message='Expense updated successfully',
        )

    @extend_schema(request=ExpenseUpdateSerializer, responses={200: ExpenseSerializer})
    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        """Delete an expense and its splits."""
        try:
            expense = services.delete_expense(expense_id=pk)
        except ExpenseNotFoundError as e:
            raise NotFound(str(e))

        return api_response(
            request,
            ExpenseSerializer(expense).data,
            message='Expense deleted successfully',
        )

    @extend_schema(
        parameters=[OpenApiParameter('q', str, required=True)],
        responses={200: ExpenseSerializer(many=True)},
    )
    @action(detail=False, methods=['get'])
    def search(self, request):
        """Search expenses by title or description."""
        query_serializer = SearchQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        expenses = services.search_expenses(query=query_serializer.validated_data['q'])
        return single_page_response(request, ExpenseSerializer(expenses, many=True).data)

    @extend_schema(parameters=[DateRangeSerializer], responses={200: ExpenseSerializer(many=True)})
    @action(detail=False, methods=['get'], url_path='date-range', url_name='date-range')
    def date_range(self, request):
        """Expenses dated between startDate and endDate (inclusive)."""
        range_serializer = DateRangeSerializer(data=request.query_params)
        range_serializer.is_valid(raise_exception=True)

        expenses = services.get_expenses_by_date_range(**range_serializer.validated_data)
        return single_page_response(request, ExpenseSerializer(expenses, many=True).data)

    @extend_schema(
        parameters=[OpenApiParameter('group_id', str, OpenApiParameter.PATH)],
        responses={200: ExpenseSerializer(many=True)},
    )
    @action(
        detail=False,
        methods=['get'],
        url_path=rf'group/(?P<group_id>{UUID_PATTERN})',
        url_name='by-group',
    )
    def by_group(self, request, group_id=None):
        """All expenses of a group."""
        try:
            expenses = services.get_expenses_by_group(group_id=group_id)
        except GroupNotFoundError as e:
            raise NotFound(str(e))

        return single_page_response(request, ExpenseSerializer(expenses, many=True).data)

    @extend_schema(
        parameters=[OpenApiParameter('group_id', str, OpenApiParameter.PATH)],
        responses={200: ExpenseStatsSerializer},
    )
    @action(
        detail=False,
        methods=['get'],
        url_path=rf'group/(?P<group_id>{UUID_PATTERN})/stats',
        url_name='group-stats',
    )
    def group_stats(self, request, group_id=None):
        """Totals and per-member balances of a group."""
        try:
            stats = services.get_group_expense_stats(group_id=group_id)
        except GroupNotFoundError as e:
            raise NotFound(str(e))

        return api_response(request, ExpenseStatsSerializer(stats).data)

    @extend_schema(
        parameters=[OpenApiParameter('user_id', str, OpenApiParameter.PATH)],
        responses={200: ExpenseSerializer(many=True)},
    )
    @action(
        detail=False,
        methods=['get'],
        url_path=rf'user/(?P<user_id>{UUID_PATTERN})',
        url_name='by-user',
    )
    def by_user(self, request, user_id=None):
        """Expenses a member paid for or has a share in."""
        expenses = services.get_expenses_by_user(user_id=user_id)
        return single_page_response(request, ExpenseSerializer(expenses, many=True).data)

    @extend_schema(request=CalculateSplitSerializer, responses={200: SplitDetailSerializer(many=True)})
    @action(detail=False, methods=['post'], url_path='calculate-split', url_name='calculate-split')
    def calculate_split(self, request):
        """Preview an equal split without saving it."""
        serializer = CalculateSplitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            shares = services.calculate_equal_split(
                group_id=data['group_id'],
                amount=data['amount'],
                participant_ids=data.get('participants'),
            )
        except GroupNotFoundError as e:
            raise NotFound(str(e))
        except SPLIT_ERRORS as e:
            raise ValidationError(str(e))

        return api_response(request, SplitDetailSerializer(shares, many=True).data)
