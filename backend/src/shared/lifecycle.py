"""
Worker account lifecycle.

    pending ──approve──▶ active ──suspend──▶ suspended
                           ▲                    │
                           └────reactivate──────┘
    pending / active / suspended ──terminate──▶ terminated (final)
"""
from typing import Any, Dict, List

from .errors import InvalidTransition, WriteConflict
from .logging import logger
from .models import AccountStatus, LifecycleAction

TRANSITIONS = {
    AccountStatus.PENDING: {
        LifecycleAction.APPROVE: AccountStatus.ACTIVE,
        LifecycleAction.TERMINATE: AccountStatus.TERMINATED,
    },
    AccountStatus.ACTIVE: {
        LifecycleAction.SUSPEND: AccountStatus.SUSPENDED,
        LifecycleAction.TERMINATE: AccountStatus.TERMINATED,
    },
    AccountStatus.SUSPENDED: {
        LifecycleAction.REACTIVATE: AccountStatus.ACTIVE,
        LifecycleAction.TERMINATE: AccountStatus.TERMINATED,
    },
    AccountStatus.TERMINATED: {},
}


def next_status(current: str, action: str) -> str:
    """Target status for an action, or InvalidTransition."""
    target = TRANSITIONS.get(current, {}).get(action)
    if target is None:
        raise InvalidTransition(f"Cannot {action} a worker whose account is {current}")
    return target


def allowed_actions(status: str) -> List[str]:
    """Actions an admin may take on an account in this status."""
    return [action for action in LifecycleAction.ALL if action in TRANSITIONS.get(status, {})]


class AccountLifecycle:
    """Applies admin actions to worker accounts."""

    def __init__(self, storage):
        self.storage = storage

    def transition(self, worker: Dict[str, Any], action: str) -> Dict[str, Any]:
        """
        Apply an action and persist the new accountStatus.

        The write is a compare-and-set on the status the worker was read
        with; if the account moved in the meantime the action fails with
        InvalidTransition.

        Returns:
            Copy of the worker with the new accountStatus
        """
        user_id = worker['userId']
        current = worker.get('accountStatus')
        target = next_status(current, action)

        try:
            self.storage.set_account_status(user_id, expected=current, new=target)
        except WriteConflict:
            logger.warning(f"Account {user_id} changed while applying {action}")
            raise InvalidTransition(f"Account status changed before {action} could be applied")

        logger.info(f"Worker {user_id} {action}: {current} -> {target}")
        return dict(worker, accountStatus=target)
