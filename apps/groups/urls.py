from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'groups'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.GroupViewSet, basename='group')

urlpatterns = [
    # Group ViewSet routes
    # GET    /api/v1/groups/              - List groups (page, limit, search)
    # POST   /api/v1/groups/              - Create group
    # GET    /api/v1/groups/search/?q=    - Search groups
    # GET    /api/v1/groups/{id}/         - Get group details
    # PUT    /api/v1/groups/{id}/         - Update group
    # PATCH  /api/v1/groups/{id}/         - Partial update
    # DELETE /api/v1/groups/{id}/         - Delete group

    # Custom group actions
    # GET    /api/v1/groups/{id}/members/              - List members
    # POST   /api/v1/groups/{id}/members/              - Add member
    # DELETE /api/v1/groups/{id}/members/{memberId}/   - Remove member
    # GET    /api/v1/groups/{id}/expenses/             - Group expenses
    # GET    /api/v1/groups/{id}/stats/                - Group statistics

    # Include router URLs
    path('', include(router.urls)),
]
