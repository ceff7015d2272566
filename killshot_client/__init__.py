"""Python client for the Killshot expense-splitting API."""

from .api import ApiClient
from .config import AppEnvironment
from .exceptions import ApiError, DecodingError, NetworkError, ServerError
from .stores import ExpenseStore, GroupStore

__all__ = [
    'ApiClient',
    'AppEnvironment',
    'ApiError',
    'DecodingError',
    'NetworkError',
    'ServerError',
    'ExpenseStore',
    'GroupStore',
]
