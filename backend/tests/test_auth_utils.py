"""
Tests for the request helpers: Session and body parsing.
"""
import json
import logging
from decimal import Decimal

import pytest

from conftest import make_event
from shared.auth import Session, get_user_groups
from shared.errors import NotAuthorized, WorkerNotFound
from shared.logging import audit, log_event
from shared.utils import error_response, format_response, is_truthy, parse_body


class TestSession:

    def test_from_event(self):
        session = Session.from_event(make_event('w-1', 'worker'))

        assert session.user_id == 'w-1'
        assert session.email == 'w-1@example.com'
        assert session.is_worker
        assert not session.is_admin

    def test_groups_as_list(self):
        assert get_user_groups(make_event('a', ['admin', 'worker'])) == ['admin', 'worker']

    def test_comma_separated_groups(self):
        assert Session.from_event(make_event('a', 'admin,worker')).is_admin

    def test_anonymous(self):
        session = Session.from_event({})

        assert not session.is_authenticated
        with pytest.raises(NotAuthorized):
            session.require_worker()

    def test_group_without_user(self):
        with pytest.raises(NotAuthorized):
            Session(None, ['admin']).require_admin()

    def test_require_returns_session(self):
        session = Session('admin-1', ['admin'])
        assert session.require_admin() is session


class TestParseBody:

    def test_numbers_become_decimal(self):
        body = parse_body({'body': '{"amount": 12.34, "hours": 3}'})

        assert body['amount'] == Decimal('12.34')
        assert isinstance(body['amount'], Decimal)
        assert body['hours'] == 3

    @pytest.mark.parametrize('raw', [None, '', 'not json', '[1, 2]', '"text"'])
    def test_unusable_body(self, raw):
        assert parse_body({'body': raw}) == {}

    def test_already_parsed(self):
        assert parse_body({'body': {'confirmed': True}}) == {'confirmed': True}


@pytest.mark.parametrize('value,expected', [
    (True, True),
    ('true', True),
    ('Yes', True),
    (False, False),
    ('false', False),
    (None, False),
    (1, False),
])
def test_is_truthy(value, expected):
    assert is_truthy(value) is expected


def test_error_response():
    response = error_response(WorkerNotFound())

    assert response['statusCode'] == 404
    assert json.loads(response['body']) == {'error': 'WorkerNotFound', 'message': 'Worker not found'}


def test_decimal_encoding():
    body = json.loads(format_response(200, {'a': Decimal('2'), 'b': Decimal('2.50')})['body'])

    assert body == {'a': 2, 'b': 2.5}


class TestLogging:

    def test_event_body_is_not_logged(self, caplog):
        event = make_event('w-1', 'worker', body={'amount': 99})
        event['headers'] = {'Authorization': 'Bearer secret-token'}

        with caplog.at_level(logging.INFO, logger='workforce'):
            log_event(event)

        assert 'w-1' in caplog.text
        assert 'secret-token' not in caplog.text
        assert '99' not in caplog.text

    def test_audit_line(self, caplog):
        with caplog.at_level(logging.INFO, logger='workforce'):
            audit('admin-1', 'suspend', 'w-dev', status='suspended')

        assert 'AUDIT actor=admin-1 action=suspend target=w-dev status=suspended' in caplog.text
