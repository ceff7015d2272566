import httpx
import pytest

from killshot_client import ApiClient, AppEnvironment


def envelope(data, message=None):
    """Success envelope as the API renders it."""
    payload = {'success': True, 'data': data, 'timestamp': '2024-05-01T12:00:00+00:00', 'requestId': 'req-1'}
    if message:
        payload['message'] = message
    return payload


def error_envelope(error, details=None):
    payload = {'success': False, 'error': error, 'timestamp': '2024-05-01T12:00:00+00:00', 'requestId': 'req-1'}
    if details:
        payload['details'] = details
    return payload


@pytest.fixture
def make_client():
    """Build an ApiClient whose requests go to the given handler."""
    clients = []

    def factory(handler):
        client = ApiClient(
            environment=AppEnvironment.DEVELOPMENT,
            transport=httpx.MockTransport(handler),
        )
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()


@pytest.fixture
def group_payload():
    return {
        'id': 'b3f0c7d2-6a43-4c43-9a3e-0c8b8f1f4a01',
        'name': 'Weekend Trip',
        'description': 'Getaway',
        'createdBy': 'unknown',
        'memberCount': 2,
        'totalExpenses': '0.00',
        'createdAt': '2024-05-01T12:00:00Z',
        'updatedAt': '2024-05-01T12:00:00Z',
    }
