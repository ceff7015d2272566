"""HTTP client for the Killshot REST API."""

import logging
from decimal import Decimal

import httpx

from .config import AppEnvironment
from .exceptions import DecodingError, NetworkError, ServerError

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def _money(value) -> str:
    """Send amounts as strings so no precision is lost on the way."""
    return str(Decimal(str(value)))


def _compact(**fields) -> dict:
    """Drop fields left as None."""
    return {key: value for key, value in fields.items() if value is not None}


class ApiClient:
    """
    Client for the Killshot API v1.

    Every response is unwrapped from the ``{success, data, ...}`` envelope;
    methods return the ``data`` part as plain JSON values, with money
    amounts parsed as Decimal.
    """

    def __init__(
        self,
        environment: AppEnvironment | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client for an environment (default: AppEnvironment.current())."""
        self.environment = environment or AppEnvironment.current()
        logging.getLogger(__package__).setLevel(self.environment.log_level)
        self.client = httpx.Client(
            base_url=base_url or self.environment.base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout if timeout is not None else self.environment.timeout,
            transport=transport,
        )

    def close(self):
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _request(self, method: str, path: str, *, json=None, params=None):
        """
        Send a request and return the envelope's data.

        Raises:
            NetworkError: If no response was received
            ServerError: If the API returned an error status or envelope
            DecodingError: If the body is not a JSON envelope
        """
        logger.debug("%s %s", method, path)
        try:
            response = self.client.request(method, path, json=json, params=params)
        except httpx.RequestError as e:
            logger.warning("Network error on %s %s: %s", method, path, e)
            raise NetworkError(f"Network error: {e}") from e

        try:
            payload = response.json(parse_float=Decimal)
        except ValueError as e:
            if response.is_error:
                raise ServerError(response.status_code, response.reason_phrase) from e
            raise DecodingError("Failed to decode response") from e

        if not isinstance(payload, dict):
            raise DecodingError("Failed to decode response")

        if response.is_error or not payload.get("success", False):
            message = payload.get("error") or payload.get("message") or response.reason_phrase
            logger.warning(
                "API error on %s %s: %s %s", method, path, response.status_code, message
            )
            raise ServerError(response.status_code, message, payload.get("details"))

        if "data" not in payload:
            raise DecodingError("Response envelope has no data")

        return payload["data"]

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    def list_groups(self, page: int = 1, limit: int = MAX_PAGE_SIZE, search: str | None = None) -> list:
        params = _compact(page=page, limit=limit, search=search)
        return self._request("GET", "/groups/", params=params)

    def search_groups(self, query: str) -> list:
        return self._request("GET", "/groups/search/", params={"q": query})

    def get_group(self, group_id: str) -> dict:
        """Get a group with its members and expenses."""
        return self._request("GET", f"/groups/{group_id}/")

    def create_group(
        self,
        name: str,
        description: str | None = None,
        members: list[dict] | None = None,
        member_emails: list[str] | None = None,
    ) -> dict:
        """
        Create a group.

        Args:
            name: Group name
            description: Optional description
            members: Optional [{'name', 'email'}] to add right away
            member_emails: Optional emails to add right away
        """
        body = _compact(
            name=name,
            description=description,
            members=members,
            memberEmails=member_emails,
        )
        return self._request("POST", "/groups/", json=body)

    def update_group(self, group_id: str, name: str | None = None, description: str | None = None) -> dict:
        body = _compact(name=name, description=description)
        return self._request("PATCH", f"/groups/{group_id}/", json=body)

    def delete_group(self, group_id: str) -> dict:
        return self._request("DELETE", f"/groups/{group_id}/")

    def list_members(self, group_id: str) -> list:
        return self._request("GET", f"/groups/{group_id}/members/")

    def add_member(self, group_id: str, name: str, email: str) -> dict:
        return self._request(
            "POST", f"/groups/{group_id}/members/", json={"name": name, "email": email}
        )

    def remove_member(self, group_id: str, member_id: str) -> None:
        self._request("DELETE", f"/groups/{group_id}/members/{member_id}/")

    def get_group_expenses(self, group_id: str) -> list:
        return self._request("GET", f"/groups/{group_id}/expenses/")

    def get_group_stats(self, group_id: str) -> dict:
        """Member and expense counts, total and average amount."""
        return self._request("GET", f"/groups/{group_id}/stats/")

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def list_expenses(
        self,
        group_id: str | None = None,
        user_id: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = MAX_PAGE_SIZE,
    ) -> list:
        params = _compact(
            groupId=group_id,
            userId=user_id,
            search=search,
            page=page,
            limit=limit,
        )
        return self._request("GET", "/expenses/", params=params)

    def get_expense(self, expense_id: str) -> dict:
        return self._request("GET", f"/expenses/{expense_id}/")

    def create_expense(
        self,
        title: str,
        amount,
        paid_by: str,
        group_id: str,
        split_type: str = "equal",
        splits: list[dict] | None = None,
        date: str | None = None,
        description: str | None = None,
    ) -> dict:
        """
        Create an expense.

        Args:
            title: Short title
            amount: Total amount (Decimal, str or number)
            paid_by: ID of the paying member
            group_id: Group the expense belongs to
            split_type: equal, exact or percentage
            splits: Optional [{'userId', 'amount'?, 'percentage'?}]
            date: Optional ISO 8601 date or timestamp
            description: Optional free text
        """
        body = _compact(
            title=title,
            amount=_money(amount),
            paidBy=paid_by,
            groupId=group_id,
            splitType=split_type,
            splits=splits,
            date=date,
            description=description,
        )
        return self._request("POST", "/expenses/", json=body)

    def update_expense(self, expense_id: str, **fields) -> dict:
        """
        Update an expense.

        Keyword arguments use the snake_case names of create_expense
        (title, amount, paid_by, split_type, splits, date, description).
        """
        body = _compact(
            title=fields.get("title"),
            amount=_money(fields["amount"]) if fields.get("amount") is not None else None,
            paidBy=fields.get("paid_by"),
            splitType=fields.get("split_type"),
            splits=fields.get("splits"),
            date=fields.get("date"),
            description=fields.get("description"),
        )
        return self._request("PATCH", f"/expenses/{expense_id}/", json=body)

    def delete_expense(self, expense_id: str) -> dict:
        return self._request("DELETE", f"/expenses/{expense_id}/")

    def get_expense_stats(self, group_id: str) -> dict:
        """Totals and per-member balances of a group."""
        return self._request("GET", f"/expenses/group/{group_id}/stats/")

    def calculate_split(self, group_id: str, amount, participants: list[str] | None = None) -> list:
        """Preview an equal split without creating an expense."""
        body = _compact(groupId=group_id, amount=_money(amount), participants=participants)
        return self._request("POST", "/expenses/calculate-split/", json=body)
