"""
Local state holders for the Killshot client.

A store keeps the last known data plus ``is_loading`` and ``error`` flags for
a UI to render. Only one operation runs at a time per store: a call made
while another is in flight is refused and returns False.
"""

import logging
import threading

from .api import ApiClient
from .exceptions import ApiError

logger = logging.getLogger(__name__)


class BaseStore:
    """Serializes operations and tracks loading/error state."""

    def __init__(self, api: ApiClient):
        self.api = api
        self.is_loading = False
        self.error: ApiError | None = None
        self._lock = threading.Lock()

    def _begin(self) -> bool:
        with self._lock:
            if self.is_loading:
                return False
            self.is_loading = True
            self.error = None
            return True

    def _run(self, name: str, call, on_success) -> bool:
        """
        Run an API call unless another one is in flight.

        Returns:
            bool: True if the call succeeded, False if it was refused or failed
        """
        if not self._begin():
            logger.debug("%s refused: another operation is in flight", name)
            return False

        try:
            result = call()
            with self._lock:
                on_success(result)
        except ApiError as e:
            logger.warning("%s failed: %s", name, e)
            self.error = e
            return False
        finally:
            # Unexpected errors still propagate, but never leave the store locked
            self.is_loading = False
        return True

    def clear_error(self):
        self.error = None


class GroupStore(BaseStore):
    """Groups known to the client."""

    def __init__(self, api: ApiClient):
        super().__init__(api)
        self.groups: list[dict] = []

    def load_groups(self, search: str | None = None) -> bool:
        def replace(groups):
            self.groups = groups
            logger.info("Loaded %s groups", len(groups))

        return self._run("load_groups", lambda: self.api.list_groups(search=search), replace)

    def refresh_groups(self) -> bool:
        """Forget the cached groups and load them again."""
        if self.is_loading:
            return False
        self.groups = []
        return self.load_groups()

    def create_group(self, name: str, description: str | None = None, **members) -> bool:
        """Create a group; accepts create_group's members/member_emails keywords."""
        return self._run(
            "create_group",
            lambda: self.api.create_group(name, description, **members),
            self.groups.append,
        )

    def update_group(self, group_id: str, name: str | None = None, description: str | None = None) -> bool:
        def replace(updated):
            for index, group in enumerate(self.groups):
                if group['id'] == group_id:
                    self.groups[index] = updated

        return self._run(
            "update_group",
            lambda: self.api.update_group(group_id, name=name, description=description),
            replace,
        )

    def delete_group(self, group_id: str) -> bool:
        def remove(_):
            self.groups = [group for group in self.groups if group['id'] != group_id]

        return self._run("delete_group", lambda: self.api.delete_group(group_id), remove)

    def get_group(self, group_id: str) -> dict | None:
        """Cached group by ID, or None."""
        return next((group for group in self.groups if group['id'] == group_id), None)


class ExpenseStore(BaseStore):
    """Expenses known to the client, newest first."""

    def __init__(self, api: ApiClient):
        super().__init__(api)
        self.expenses: list[dict] = []

    def load_expenses(self, group_id: str | None = None) -> bool:
        def replace(expenses):
            self.expenses = expenses

        return self._run(
            "load_expenses", lambda: self.api.list_expenses(group_id=group_id), replace
        )

    def create_expense(self, title: str, amount, paid_by: str, group_id: str, **fields) -> bool:
        """Create an expense; accepts create_expense's optional keywords."""
        return self._run(
            "create_expense",
            lambda: self.api.create_expense(title, amount, paid_by, group_id, **fields),
            lambda expense: self.expenses.insert(0, expense),
        )

    def update_expense(self, expense_id: str, **fields) -> bool:
        def replace(updated):
            for index, expense in enumerate(self.expenses):
                if expense['id'] == expense_id:
                    self.expenses[index] = updated

        return self._run(
            "update_expense", lambda: self.api.update_expense(expense_id, **fields), replace
        )

    def delete_expense(self, expense_id: str) -> bool:
        def remove(_):
            self.expenses = [e for e in self.expenses if e['id'] != expense_id]

        return self._run("delete_expense", lambda: self.api.delete_expense(expense_id), remove)

    def get_expense(self, expense_id: str) -> dict | None:
        return next((e for e in self.expenses if e['id'] == expense_id), None)
