"""
In-memory storage with the same interface and write atomicity as DynamoStorage.

Used by the test-suite and for running handlers locally. Writes to the same
entity are serialized with a lock per entity key. Stored records are never
mutated in place: every write swaps in a new dict, so readers copying a
record never see it change halfway.
"""
import copy
import threading
import weakref
from contextlib import ExitStack, contextmanager
from decimal import Decimal
from typing import List, Dict, Any, Optional

from .dynamo import PROTECTED_PAYMENT_FIELDS, PROTECTED_USER_FIELDS
from .errors import WriteConflict
from .models import AccountStatus, PaymentStatus


class InMemoryStorage:
    """Dict-backed storage collaborator."""

    def __init__(self, users: Optional[List[Dict[str, Any]]] = None):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.submissions: Dict[str, Dict[str, Any]] = {}
        self.payments: Dict[str, Dict[str, Any]] = {}
        # Entries disappear once no writer holds the lock
        self._locks = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()
        for user in users or []:
            self.put_user(user)

    @contextmanager
    def _locked(self, *keys):
        """Hold the locks of several entities, always acquired in the same order."""
        locks = []
        with self._locks_guard:
            for key in sorted(set(keys)):
                lock = self._locks.get(key)
                if lock is None:
                    lock = self._locks[key] = threading.Lock()
                locks.append(lock)
        with ExitStack() as stack:
            for lock in locks:
                stack.enter_context(lock)
            yield

    @staticmethod
    def _is_active(user: Optional[Dict[str, Any]]) -> bool:
        return bool(user) and user.get('accountStatus') == AccountStatus.ACTIVE

    # Users

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        user = self.users.get(user_id)
        return copy.deepcopy(user) if user else None

    def get_users(self) -> List[Dict[str, Any]]:
        return [copy.deepcopy(user) for user in list(self.users.values())]

    def put_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        with self._locked(('user', user['userId'])):
            self.users[user['userId']] = copy.deepcopy(user)
        return user

    def update_user(self, user_id: str, fields: Dict[str, Any]) -> None:
        protected = PROTECTED_USER_FIELDS.intersection(fields)
        if protected:
            raise ValueError(f"Fields {sorted(protected)} cannot be updated directly")
        with self._locked(('user', user_id)):
            user = self.users.get(user_id)
            if not user:
                raise WriteConflict('update_user')
            self.users[user_id] = dict(user, **copy.deepcopy(fields))

    def set_account_status(self, user_id: str, expected: str, new: str) -> None:
        with self._locked(('user', user_id)):
            user = self.users.get(user_id)
            if not user or user.get('accountStatus') != expected:
                raise WriteConflict('set_account_status')
            self.users[user_id] = dict(user, accountStatus=new)

    # Submissions

    def get_submissions_by_user(self, user_id: str) -> List[Dict[str, Any]]:
        return [
            copy.deepcopy(s) for s in list(self.submissions.values())
            if s.get('userId') == user_id
        ]

    def create_submission(self, submission: Dict[str, Any]) -> Dict[str, Any]:
        key = submission['submissionId']
        user_id = submission['userId']
        with self._locked(('user', user_id), ('submission', key)):
            if not self._is_active(self.users.get(user_id)) or key in self.submissions:
                raise WriteConflict('create_submission')
            self.submissions[key] = copy.deepcopy(submission)
        return submission

    # Payments

    def get_payments(
        self,
        status: Optional[str] = None,
        payment_type: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return [
            copy.deepcopy(p) for p in list(self.payments.values())
            if (status is None or p.get('status') == status)
            and (payment_type is None or p.get('type') == payment_type)
        ]

    def get_payment(self, payment_id: str) -> Optional[Dict[str, Any]]:
        payment = self.payments.get(payment_id)
        return copy.deepcopy(payment) if payment else None

    def update_payment(self, payment_id: str, fields: Dict[str, Any]) -> None:
        protected = PROTECTED_PAYMENT_FIELDS.intersection(fields)
        if protected:
            raise ValueError(f"Fields {sorted(protected)} cannot be updated directly")
        with self._locked(('payment', payment_id)):
            payment = self.payments.get(payment_id)
            if not payment:
                raise WriteConflict('update_payment')
            self.payments[payment_id] = dict(payment, **copy.deepcopy(fields))

    def reserve_withdrawal(self, user_id: str, payment: Dict[str, Any]) -> Dict[str, Any]:
        amount = Decimal(str(payment['amount']))
        with self._locked(('user', user_id), ('payment', payment['paymentId'])):
            user = self.users.get(user_id)
            if not self._is_active(user) or Decimal(str(user.get('balance', 0))) < amount:
                raise WriteConflict('reserve_withdrawal')
            if payment['paymentId'] in self.payments:
                raise WriteConflict('reserve_withdrawal')
            self.users[user_id] = dict(user, balance=Decimal(str(user['balance'])) - amount)
            self.payments[payment['paymentId']] = copy.deepcopy(payment)
        return payment

    def complete_payment(self, payment_id: str, completed_at: str) -> Dict[str, Any]:
        with self._locked(('payment', payment_id)):
            payment = self.payments.get(payment_id)
            if not payment or payment.get('status') != PaymentStatus.PENDING:
                raise WriteConflict('complete_payment')
            completed = dict(payment, status=PaymentStatus.COMPLETED, completedAt=completed_at)
            self.payments[payment_id] = completed
            return copy.deepcopy(completed)

    def refund_payment(self, payment_id: str, user_id: str, amount: Decimal) -> None:
        with self._locked(('user', user_id), ('payment', payment_id)):
            payment = self.payments.get(payment_id)
            user = self.users.get(user_id)
            if not payment or payment.get('status') != PaymentStatus.PENDING or not user:
                raise WriteConflict('refund_payment')
            self.payments[payment_id] = dict(payment, status=PaymentStatus.FAILED)
            balance = Decimal(str(user.get('balance', 0))) + Decimal(str(amount))
            self.users[user_id] = dict(user, balance=balance)
