"""
Admin review of worker accounts and withdrawal requests.

Every operation takes the admin's Session explicitly and reports success
only after the storage write has returned.
"""
from collections import Counter
from typing import Any, Dict, List, Optional

from .errors import PaymentNotFound, WorkerNotFound
from .ledger import WithdrawalLedger
from .lifecycle import AccountLifecycle, allowed_actions
from .logging import audit
from .models import AccountStatus, LifecycleAction, PaymentStatus, PaymentType, UserRole


def count_by_status(workers: List[Dict[str, Any]]) -> Dict[str, int]:
    """Worker counts for the admin filter tabs, including 'all'."""
    counts = Counter(w.get('accountStatus') for w in workers)
    result = {'all': len(workers)}
    for status in AccountStatus.ALL:
        result[status] = counts.get(status, 0)
    return result


class ReviewCoordinator:
    """Entry point for admin decisions."""

    def __init__(
        self,
        storage,
        lifecycle: Optional[AccountLifecycle] = None,
        ledger: Optional[WithdrawalLedger] = None
    ):
        self.storage = storage
        self.lifecycle = lifecycle or AccountLifecycle(storage)
        self.ledger = ledger or WithdrawalLedger(storage)

    # Views

    def list_workers(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """Workers, optionally only those with the given accountStatus."""
        workers = [u for u in self.storage.get_users() if u.get('role') == UserRole.WORKER]
        if status and status != 'all':
            workers = [w for w in workers if w.get('accountStatus') == status]
        workers.sort(key=lambda w: (w.get('fullName') or '', w['userId']))
        for worker in workers:
            worker['allowedActions'] = allowed_actions(worker.get('accountStatus'))
        return workers

    def pending_withdrawals(self) -> List[Dict[str, Any]]:
        """Pending withdrawal requests, oldest first, with the requester's name."""
        payments = self.storage.get_payments(
            status=PaymentStatus.PENDING,
            payment_type=PaymentType.WITHDRAWAL
        )
        workers = {u['userId']: u for u in self.storage.get_users()}
        for payment in payments:
            worker = workers.get(payment.get('userId'), {})
            payment['workerName'] = worker.get('fullName')
            payment['workerEmail'] = worker.get('email')
        payments.sort(key=lambda p: p.get('createdAt') or '')
        return payments

    # Worker accounts

    def approve_worker(self, session, worker_id: str) -> Dict[str, Any]:
        return self._apply(session, worker_id, LifecycleAction.APPROVE)

    def suspend_worker(self, session, worker_id: str) -> Dict[str, Any]:
        return self._apply(session, worker_id, LifecycleAction.SUSPEND)

    def reactivate_worker(self, session, worker_id: str) -> Dict[str, Any]:
        return self._apply(session, worker_id, LifecycleAction.REACTIVATE)

    def terminate_worker(self, session, worker_id: str) -> Dict[str, Any]:
        return self._apply(session, worker_id, LifecycleAction.TERMINATE)

    def apply_action(self, session, worker_id: str, action: str) -> Dict[str, Any]:
        """Dispatch by action name, as received from the route."""
        return self._apply(session, worker_id, action)

    def _apply(self, session, worker_id: str, action: str) -> Dict[str, Any]:
        session.require_admin()
        worker = self.storage.get_user_by_id(worker_id)
        if not worker or worker.get('role') != UserRole.WORKER:
            raise WorkerNotFound()

        updated = self.lifecycle.transition(worker, action)
        audit(session.user_id, action, worker_id, status=updated['accountStatus'])
        return {
            'worker': updated,
            'workers': self.list_workers(),
        }

    # Withdrawals

    def approve_withdrawal(self, session, payment_id: str) -> Dict[str, Any]:
        session.require_admin()
        payment = self._get_payment(payment_id)
        updated = self.ledger.approve(payment)
        audit(session.user_id, 'approve_withdrawal', payment_id, amount=updated.get('amount'))
        return {
            'payment': updated,
            'pendingWithdrawals': self.pending_withdrawals(),
        }

    def reject_withdrawal(self, session, payment_id: str) -> Dict[str, Any]:
        session.require_admin()
        payment = self._get_payment(payment_id)
        updated = self.ledger.reject(payment)
        audit(session.user_id, 'reject_withdrawal', payment_id, amount=updated.get('amount'))
        return {
            'payment': updated,
            'pendingWithdrawals': self.pending_withdrawals(),
        }

    def _get_payment(self, payment_id: str) -> Dict[str, Any]:
        payment = self.storage.get_payment(payment_id)
        if not payment:
            raise PaymentNotFound()
        return payment
