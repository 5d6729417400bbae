"""
Tests for the worker account lifecycle.
"""
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from conftest import make_worker
from shared.errors import InvalidTransition, PersistenceError
from shared.lifecycle import TRANSITIONS, AccountLifecycle, allowed_actions, next_status
from shared.models import AccountStatus, LifecycleAction


class TestTransitionTable:
    """Tests for the pure status table."""

    @pytest.mark.parametrize('current, action, expected', [
        (AccountStatus.PENDING, LifecycleAction.APPROVE, AccountStatus.ACTIVE),
        (AccountStatus.ACTIVE, LifecycleAction.SUSPEND, AccountStatus.SUSPENDED),
        (AccountStatus.SUSPENDED, LifecycleAction.REACTIVATE, AccountStatus.ACTIVE),
        (AccountStatus.PENDING, LifecycleAction.TERMINATE, AccountStatus.TERMINATED),
        (AccountStatus.ACTIVE, LifecycleAction.TERMINATE, AccountStatus.TERMINATED),
        (AccountStatus.SUSPENDED, LifecycleAction.TERMINATE, AccountStatus.TERMINATED),
    ])
    def test_permitted(self, current, action, expected):
        assert next_status(current, action) == expected

    @pytest.mark.parametrize('current, action', [
        (AccountStatus.ACTIVE, LifecycleAction.APPROVE),
        (AccountStatus.SUSPENDED, LifecycleAction.APPROVE),
        (AccountStatus.PENDING, LifecycleAction.SUSPEND),
        (AccountStatus.SUSPENDED, LifecycleAction.SUSPEND),
        (AccountStatus.ACTIVE, LifecycleAction.REACTIVATE),
        (AccountStatus.PENDING, LifecycleAction.REACTIVATE),
        (AccountStatus.ACTIVE, 'promote'),
        ('unknown', LifecycleAction.APPROVE),
    ])
    def test_not_permitted(self, current, action):
        with pytest.raises(InvalidTransition):
            next_status(current, action)

    @pytest.mark.parametrize('action', LifecycleAction.ALL)
    def test_terminated_is_final(self, action):
        with pytest.raises(InvalidTransition):
            next_status(AccountStatus.TERMINATED, action)

    def test_every_status_has_an_entry(self):
        assert set(TRANSITIONS) == set(AccountStatus.ALL)

    def test_allowed_actions(self):
        assert allowed_actions(AccountStatus.PENDING) == [LifecycleAction.APPROVE, LifecycleAction.TERMINATE]
        assert allowed_actions(AccountStatus.ACTIVE) == [LifecycleAction.SUSPEND, LifecycleAction.TERMINATE]
        assert allowed_actions(AccountStatus.SUSPENDED) == [LifecycleAction.REACTIVATE, LifecycleAction.TERMINATE]
        assert allowed_actions(AccountStatus.TERMINATED) == []


class TestAccountLifecycle:
    """Tests for transition() against storage."""

    def test_approve_pending_worker(self, storage):
        lifecycle = AccountLifecycle(storage)
        worker = storage.get_user_by_id('w-new')

        updated = lifecycle.transition(worker, LifecycleAction.APPROVE)

        assert updated['accountStatus'] == AccountStatus.ACTIVE
        assert storage.get_user_by_id('w-new')['accountStatus'] == AccountStatus.ACTIVE

    def test_only_status_changes(self, storage):
        lifecycle = AccountLifecycle(storage)
        before = storage.get_user_by_id('w-dev')

        lifecycle.transition(before, LifecycleAction.SUSPEND)

        after = storage.get_user_by_id('w-dev')
        assert after['accountStatus'] == AccountStatus.SUSPENDED
        assert after['balance'] == before['balance'] == Decimal('100.00')
        assert {k: v for k, v in after.items() if k != 'accountStatus'} == \
            {k: v for k, v in before.items() if k != 'accountStatus'}

    def test_does_not_mutate_input(self, storage):
        lifecycle = AccountLifecycle(storage)
        worker = storage.get_user_by_id('w-dev')

        lifecycle.transition(worker, LifecycleAction.SUSPEND)

        assert worker['accountStatus'] == AccountStatus.ACTIVE

    @pytest.mark.parametrize('action', LifecycleAction.ALL)
    def test_terminated_worker_always_fails(self, storage, action):
        lifecycle = AccountLifecycle(storage)
        worker = storage.get_user_by_id('w-gone')

        with pytest.raises(InvalidTransition):
            lifecycle.transition(worker, action)

        assert storage.get_user_by_id('w-gone')['accountStatus'] == AccountStatus.TERMINATED

    def test_invalid_action_does_not_write(self):
        storage = MagicMock()
        lifecycle = AccountLifecycle(storage)

        with pytest.raises(InvalidTransition):
            lifecycle.transition(make_worker('w1', status=AccountStatus.ACTIVE), LifecycleAction.APPROVE)

        storage.set_account_status.assert_not_called()

    def test_stale_worker_record(self, storage):
        """Status changed by another admin after the worker was read."""
        lifecycle = AccountLifecycle(storage)
        stale = storage.get_user_by_id('w-dev')
        lifecycle.transition(storage.get_user_by_id('w-dev'), LifecycleAction.TERMINATE)

        with pytest.raises(InvalidTransition):
            lifecycle.transition(stale, LifecycleAction.SUSPEND)

        assert storage.get_user_by_id('w-dev')['accountStatus'] == AccountStatus.TERMINATED

    def test_persistence_error_propagates(self):
        storage = MagicMock()
        storage.set_account_status.side_effect = PersistenceError('set_account_status failed')
        lifecycle = AccountLifecycle(storage)

        with pytest.raises(PersistenceError):
            lifecycle.transition(make_worker('w1', status=AccountStatus.PENDING), LifecycleAction.APPROVE)

        storage.set_account_status.assert_called_once_with(
            'w1', expected=AccountStatus.PENDING, new=AccountStatus.ACTIVE
        )
