"""
Shared fixtures: an in-memory store seeded with workers, a fixed clock and
API Gateway events carrying Cognito claims.
"""
import json
import os
import sys
from datetime import datetime, timezone
from decimal import Decimal

import pytest

# Make shared/ and handlers/ importable when pytest runs without the pyproject config
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from shared.auth import Session
from shared.memory_storage import InMemoryStorage
from shared.models import AccountStatus, UserRole


FIXED_NOW = datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED_NOW


def make_worker(user_id='w-dev', status=AccountStatus.ACTIVE, balance='100.00', skills=None, name=None):
    return {
        'userId': user_id,
        'role': UserRole.WORKER,
        'fullName': name or f'Worker {user_id}',
        'email': f'{user_id}@example.com',
        'accountStatus': status,
        'balance': Decimal(balance),
        'skills': list(skills if skills is not None else ['Python']),
        'createdAt': '2024-01-01T00:00:00+00:00',
    }


def make_event(user_id, groups, body=None, path=None, query=None):
    return {
        'requestContext': {
            'authorizer': {
                'claims': {
                    'sub': user_id,
                    'email': f'{user_id}@example.com',
                    'cognito:groups': groups
                }
            }
        },
        'pathParameters': path,
        'queryStringParameters': query,
        'body': json.dumps(body) if body is not None else None
    }


@pytest.fixture
def storage():
    return InMemoryStorage(users=[
        make_worker('w-dev', skills=['React', 'Python']),
        make_worker('w-writer', skills=['Content Writing']),
        make_worker('w-new', status=AccountStatus.PENDING, balance='0'),
        make_worker('w-paused', status=AccountStatus.SUSPENDED, balance='25.00'),
        make_worker('w-gone', status=AccountStatus.TERMINATED, balance='0'),
        {
            'userId': 'admin-1',
            'role': UserRole.ADMIN,
            'fullName': 'Admin',
            'email': 'admin@example.com',
            'accountStatus': AccountStatus.ACTIVE,
            'balance': Decimal('0'),
            'skills': [],
        },
    ])


@pytest.fixture
def admin_session():
    return Session('admin-1', ['admin'])


@pytest.fixture
def worker_session():
    return Session('w-dev', ['worker'])
