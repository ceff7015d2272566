from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'expenses'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.ExpenseViewSet, basename='expense')

urlpatterns = [
    # Expense ViewSet routes
    # GET    /api/v1/expenses/                          - List expenses (page, limit, filters)
    # POST   /api/v1/expenses/                          - Create expense
    # GET    /api/v1/expenses/{id}/                     - Get expense
    # PUT    /api/v1/expenses/{id}/                     - Update expense
    # PATCH  /api/v1/expenses/{id}/                     - Partial update
    # DELETE /api/v1/expenses/{id}/                     - Delete expense

    # Custom expense actions
    # GET    /api/v1/expenses/search/?q=                - Search expenses
    # GET    /api/v1/expenses/date-range/               - Expenses between startDate and endDate
    # GET    /api/v1/expenses/group/{groupId}/          - Expenses of a group
    # GET    /api/v1/expenses/group/{groupId}/stats/    - Group totals and balances
    # GET    /api/v1/expenses/user/{userId}/            - Expenses of a member
    # POST   /api/v1/expenses/calculate-split/          - Preview an equal split

    # Include router URLs
    path('', include(router.urls)),
]
