"""Tests for ApiClient request building and envelope handling."""

import json
import logging
from decimal import Decimal

import httpx
import pytest

from killshot_client import ApiClient, AppEnvironment, DecodingError, NetworkError, ServerError

from .conftest import envelope, error_envelope


class TestAppEnvironment:

    def test_base_urls(self):
        assert AppEnvironment.DEVELOPMENT.base_url == 'http://localhost:8000/api/v1'
        assert AppEnvironment.PRODUCTION.base_url == 'https://api.killshot.app/api/v1'

    def test_timeouts_shrink_towards_production(self):
        assert AppEnvironment.DEVELOPMENT.timeout == 30.0
        assert AppEnvironment.STAGING.timeout == 20.0
        assert AppEnvironment.PRODUCTION.timeout == 15.0

    def test_current_reads_environment(self, monkeypatch):
        monkeypatch.setenv('KILLSHOT_ENV', 'staging')
        assert AppEnvironment.current() is AppEnvironment.STAGING

    def test_client_applies_log_level(self):
        package_logger = logging.getLogger('killshot_client')
        level = package_logger.level
        try:
            with ApiClient(environment=AppEnvironment.PRODUCTION, transport=httpx.MockTransport(lambda request: None)):
                assert package_logger.level == logging.ERROR
        finally:
            package_logger.setLevel(level)


class TestEnvelopeHandling:

    def test_unwraps_data(self, make_client, group_payload):
        client = make_client(lambda request: httpx.Response(200, json=envelope([group_payload])))

        assert client.list_groups() == [group_payload]

    def test_money_parsed_as_decimal(self, make_client):
        body = envelope([{'userId': 'a', 'userName': 'Alice', 'amount': 33.34, 'percentage': 33.34}])
        client = make_client(lambda request: httpx.Response(200, json=body))

        shares = client.calculate_split('group-1', Decimal('100.00'))

        assert shares[0]['amount'] == Decimal('33.34')

    def test_error_envelope_raises_server_error(self, make_client):
        details = [{'field': 'name', 'message': 'This field is required.'}]
        client = make_client(
            lambda request: httpx.Response(400, json=error_envelope('Validation failed', details))
        )

        with pytest.raises(ServerError) as exc_info:
            client.create_group('')

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == 'Validation failed'
        assert exc_info.value.details == details

    def test_not_found(self, make_client):
        client = make_client(
            lambda request: httpx.Response(404, json=error_envelope('Group with ID x not found'))
        )

        with pytest.raises(ServerError) as exc_info:
            client.get_group('x')

        assert exc_info.value.status_code == 404

    def test_non_json_error_body(self, make_client):
        client = make_client(lambda request: httpx.Response(502, text='Bad Gateway'))

        with pytest.raises(ServerError) as exc_info:
            client.list_groups()

        assert exc_info.value.status_code == 502

    def test_non_json_success_body(self, make_client):
        client = make_client(lambda request: httpx.Response(200, text='<html></html>'))

        with pytest.raises(DecodingError):
            client.list_groups()

    def test_envelope_without_data(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json={'success': True}))

        with pytest.raises(DecodingError):
            client.list_groups()

    def test_network_error(self, make_client):
        def handler(request):
            raise httpx.ConnectError('Connection refused', request=request)

        client = make_client(handler)

        with pytest.raises(NetworkError):
            client.list_groups()


class TestRequests:

    def test_list_groups_params(self, make_client):
        seen = {}

        def handler(request):
            seen['url'] = request.url
            return httpx.Response(200, json=envelope([]))

        make_client(handler).list_groups(search='trip')

        assert seen['url'].path == '/api/v1/groups/'
        assert seen['url'].params['search'] == 'trip'
        assert seen['url'].params['limit'] == '100'

    def test_create_group_body(self, make_client, group_payload):
        seen = {}

        def handler(request):
            seen['method'] = request.method
            seen['body'] = json.loads(request.content)
            return httpx.Response(201, json=envelope(group_payload, 'Group created successfully'))

        client = make_client(handler)
        created = client.create_group('Weekend Trip', member_emails=['alice@example.com'])

        assert created == group_payload
        assert seen['method'] == 'POST'
        assert seen['body'] == {'name': 'Weekend Trip', 'memberEmails': ['alice@example.com']}

    def test_create_expense_body(self, make_client):
        seen = {}

        def handler(request):
            seen['path'] = request.url.path
            seen['body'] = json.loads(request.content)
            return httpx.Response(201, json=envelope({'id': 'e1'}))

        make_client(handler).create_expense(
            'Dinner', Decimal('90.00'), paid_by='m1', group_id='g1',
            splits=[{'userId': 'm1'}, {'userId': 'm2'}],
        )

        assert seen['path'] == '/api/v1/expenses/'
        assert seen['body'] == {
            'title': 'Dinner',
            'amount': '90.00',
            'paidBy': 'm1',
            'groupId': 'g1',
            'splitType': 'equal',
            'splits': [{'userId': 'm1'}, {'userId': 'm2'}],
        }

    def test_update_expense_uses_patch(self, make_client):
        seen = {}

        def handler(request):
            seen['method'] = request.method
            seen['path'] = request.url.path
            seen['body'] = json.loads(request.content)
            return httpx.Response(200, json=envelope({'id': 'e1'}))

        make_client(handler).update_expense('e1', amount=12.5, split_type='equal')

        assert seen['method'] == 'PATCH'
        assert seen['path'] == '/api/v1/expenses/e1/'
        assert seen['body'] == {'amount': '12.5', 'splitType': 'equal'}

    @pytest.mark.parametrize('call, method, path', [
        (lambda c: c.get_group_stats('g1'), 'GET', '/api/v1/groups/g1/stats/'),
        (lambda c: c.get_expense_stats('g1'), 'GET', '/api/v1/expenses/group/g1/stats/'),
        (lambda c: c.remove_member('g1', 'm1'), 'DELETE', '/api/v1/groups/g1/members/m1/'),
        (lambda c: c.add_member('g1', 'Dana', 'dana@example.com'), 'POST', '/api/v1/groups/g1/members/'),
        (lambda c: c.delete_expense('e1'), 'DELETE', '/api/v1/expenses/e1/'),
    ])
    def test_routes(self, make_client, call, method, path):
        seen = {}

        def handler(request):
            seen['method'] = request.method
            seen['path'] = request.url.path
            return httpx.Response(200, json=envelope({}))

        call(make_client(handler))

        assert (seen['method'], seen['path']) == (method, path)
