from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from drf_spectacular.utils import extend_schema, OpenApiParameter

from config.exceptions import Conflict
from config.responses import api_response, single_page_response

from .serializers import (
    GroupSerializer,
    GroupListSerializer,
    GroupCreateSerializer,
    GroupUpdateSerializer,
    GroupFilterSerializer,
    GroupMemberSerializer,
    GroupStatsSerializer,
    AddMemberSerializer,
    SearchQuerySerializer,
)

from apps.groups.services import (
    create_group,
    get_group_by_id,
    list_groups,
    search_groups,
    update_group,
    delete_group,
    add_member,
    remove_member,
    get_group_members,
    get_group_expenses,
    get_group_stats,
    # Exceptions
    GroupNotFoundError,
    AlreadyMemberError,
    NotMemberError,
    MemberHasExpensesError,
    NothingToUpdateError,
    TooManyMembersError,
)

UUID_PATTERN = r'[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}'


@extend_schema(tags=['groups'])
class GroupViewSet(viewsets.GenericViewSet):
    """
    ViewSet for Group CRUD operations.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Get all groups (paginated, optional search)
    create: Create a new group with initial members
    retrieve: Get a group with members and expenses
    update: Update a group
    partial_update: Partially update a group
    destroy: Delete a group
    """

    serializer_class = GroupSerializer
    lookup_value_regex = UUID_PATTERN

    def get_queryset(self):
        return list_groups()

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return GroupListSerializer
        elif self.action == 'create':
            return GroupCreateSerializer
        elif self.action in ['update', 'partial_update']:
            return GroupUpdateSerializer
        return GroupSerializer

    @extend_schema(parameters=[GroupFilterSerializer])
    def list(self, request, *args, **kwargs):
        """List groups, newest first."""
        filter_serializer = GroupFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)

        groups = list_groups(search=filter_serializer.validated_data.get('search'))
        page = self.paginate_queryset(groups)
        serializer = GroupListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request, pk=None):
        """Get a group with its members and expenses."""
        try:
            group = get_group_by_id(group_id=pk)
        except GroupNotFoundError as e:
            raise NotFound(str(e))

        return api_response(request, GroupSerializer(group).data)

    @extend_schema(request=GroupCreateSerializer, responses={201: GroupSerializer})
    def create(self, request, *args, **kwargs):
        """Create a new group."""
        serializer = GroupCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            group = create_group(
                name=data['name'],
                description=data.get('description', ''),
                members=data.get('members', []),
                member_emails=data.get('member_emails', []),
            )
        except TooManyMembersError as e:
            raise ValidationError({'members': [str(e)]})

        return api_response(
            request,
            GroupSerializer(group).data,
            message='Group created successfully',
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=GroupUpdateSerializer, responses={200: GroupSerializer})
    def update(self, request, pk=None, partial=False):
        """Update group name and/or description."""
        serializer = GroupUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            group = update_group(group_id=pk, **serializer.validated_data)
        except GroupNotFoundError as e:
            raise NotFound(str(e))
        except NothingToUpdateError as e:
            raise ValidationError(str(e))

        return api_response(
            request,
            GroupSerializer(group).data,
            message='Group updated successfully',
        )

    @extend_schema(request=GroupUpdateSerializer, responses={200: GroupSerializer})
    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        """Delete a group along with its expenses."""
        try:
            group = delete_group(group_id=pk)
        except GroupNotFoundError as e:
            raise NotFound(str(e))

        return api_response(
            request,
            GroupSerializer(group).data,
            message='Group deleted successfully',
        )

    @extend_schema(parameters=[SearchQuerySerializer], responses={200: GroupListSerializer(many=True)})
    @action(detail=False, methods=['get'])
    def search(self, request):
        """Search groups by name or description."""
        query_serializer = SearchQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        groups = search_groups(query=query_serializer.validated_data['q'])
        serializer = GroupListSerializer(groups, many=True)
        return single_page_response(request, serializer.data)

    @extend_schema(methods=['post'], request=AddMemberSerializer, responses={201: GroupMemberSerializer})
    @action(detail=True, methods=['get', 'post'])
    def members(self, request, pk=None):
        """List the group's members, or add one."""
        if request.method == 'POST':
            return self._add_member(request, pk)

        try:
            memberships = get_group_members(group_id=pk)
        except GroupNotFoundError as e:
            raise NotFound(str(e))

        serializer = GroupMemberSerializer(memberships, many=True)
        return api_response(request, serializer.data)

    def _add_member(self, request, pk):
        serializer = AddMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            membership = add_member(
                group_id=pk,
                name=serializer.validated_data['name'],
                email=serializer.validated_data['email'],
            )
        except GroupNotFoundError as e:
            raise NotFound(str(e))
        except AlreadyMemberError as e:
            raise Conflict(str(e))

        return api_response(
            request,
            GroupMemberSerializer(membership).data,
            message='Member added successfully',
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        parameters=[OpenApiParameter('member_id', str, OpenApiParameter.PATH)],
        request=None,
    )
    @action(
        detail=True,
        methods=['delete'],
        url_path=rf'members/(?P<member_id>{UUID_PATTERN})',
        url_name='remove-member',
    )
    def remove_member(self, request, pk=None, member_id=None):
        """Remove a member who has no expenses in the group."""
        try:
            remove_member(group_id=pk, member_id=member_id)
        except (GroupNotFoundError, NotMemberError) as e:
            raise NotFound(str(e))
        except MemberHasExpensesError as e:
            raise Conflict(str(e))

        return api_response(request, message='Member removed successfully')

    @action(detail=True, methods=['get'])
    def expenses(self, request, pk=None):
        """All expenses of the group."""
        from apps.expenses.serializers import ExpenseSerializer

        try:
            expenses = get_group_expenses(group_id=pk)
        except GroupNotFoundError as e:
            raise NotFound(str(e))

        return api_response(request, ExpenseSerializer(expenses, many=True).data)

    @extend_schema(responses={200: GroupStatsSerializer})
    @action(detail=True, methods=['get'])
    def stats(self, request, pk=None):
        """Member count and expense totals."""
        try:
            stats = get_group_stats(group_id=pk)
        except GroupNotFoundError as e:
            raise NotFound(str(e))

        return api_response(request, GroupStatsSerializer(stats).data)
