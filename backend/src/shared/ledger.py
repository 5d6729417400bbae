"""
Withdrawal ledger.

A withdrawal request reserves the money immediately: the amount leaves the
worker's balance when the request is made, not when it is approved.
Approval only closes the payment; rejection closes it and credits the
amount back.
"""
import uuid
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Any, Callable, Dict

from .errors import (
    AccountNotActive,
    InsufficientBalance,
    InvalidAmount,
    NotAWithdrawal,
    NotPending,
    WorkerNotFound,
    WriteConflict,
)
from .logging import logger
from .models import AccountStatus, PaymentStatus, PaymentType
from .utils import utc_now

CENT = Decimal('0.01')


def parse_amount(value: Any) -> Decimal:
    """
    Parse a money amount, truncated to cents.

    Raises:
        InvalidAmount: value is missing, non-numeric or not finite
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmount('Missing amount')
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            raise InvalidAmount('Invalid amount format')
        return amount.quantize(CENT, rounding=ROUND_DOWN)
    except InvalidOperation:
        raise InvalidAmount('Invalid amount format')


class WithdrawalLedger:
    """Reserves, completes and refunds withdrawal requests."""

    def __init__(self, storage, clock: Callable = utc_now):
        self.storage = storage
        self.clock = clock

    def request_withdrawal(self, worker: Dict[str, Any], amount: Any) -> Dict[str, Any]:
        """
        Reserve `amount` from the worker's balance as a pending withdrawal.

        Args:
            worker: Worker record (userId, balance, accountStatus)
            amount: Requested amount

        Returns:
            The pending payment record
        """
        user_id = worker['userId']
        amount = parse_amount(amount)

        if amount <= 0:
            raise InvalidAmount()

        if worker.get('accountStatus') != AccountStatus.ACTIVE:
            raise AccountNotActive()

        balance = Decimal(str(worker.get('balance', 0)))
        if amount > balance:
            logger.warning(f"Withdrawal of {amount} refused for {user_id}: balance {balance}")
            raise InsufficientBalance()

        payment = {
            'paymentId': str(uuid.uuid4()),
            'userId': user_id,
            'type': PaymentType.WITHDRAWAL,
            'amount': amount,
            'status': PaymentStatus.PENDING,
            'createdAt': self.clock().isoformat(),
        }

        try:
            self.storage.reserve_withdrawal(user_id, payment)
        except WriteConflict:
            # Balance or account status changed after the worker was read
            logger.warning(f"Withdrawal of {amount} lost storage check for {user_id}")
            current = self.storage.get_user_by_id(user_id)
            if not current:
                raise WorkerNotFound()
            if current.get('accountStatus') != AccountStatus.ACTIVE:
                raise AccountNotActive()
            raise InsufficientBalance()

        logger.info(f"Withdrawal {payment['paymentId']} reserved {amount} from {user_id}")
        return payment

    def approve(self, payment: Dict[str, Any]) -> Dict[str, Any]:
        """Complete a pending withdrawal. The balance was already deducted."""
        self._check_pending(payment)
        payment_id = payment['paymentId']

        try:
            updated = self.storage.complete_payment(payment_id, self.clock().isoformat())
        except WriteConflict:
            raise NotPending()

        logger.info(f"Withdrawal {payment_id} completed")
        return updated or dict(payment, status=PaymentStatus.COMPLETED)

    def reject(self, payment: Dict[str, Any]) -> Dict[str, Any]:
        """Fail a pending withdrawal and credit the amount back."""
        self._check_pending(payment)
        payment_id = payment['paymentId']
        amount = Decimal(str(payment['amount']))

        try:
            self.storage.refund_payment(payment_id, payment['userId'], amount)
        except WriteConflict:
            stored = self.storage.get_payment(payment_id)
            if stored and stored.get('status') == PaymentStatus.PENDING:
                # Payment is untouched; the credit failed on a missing worker
                logger.error(f"Refund of {payment_id} failed: worker {payment['userId']} not found")
                raise WorkerNotFound()
            raise NotPending()

        logger.info(f"Withdrawal {payment_id} rejected, refunded {amount} to {payment['userId']}")
        return dict(payment, status=PaymentStatus.FAILED)

    @staticmethod
    def _check_pending(payment: Dict[str, Any]) -> None:
        if payment.get('type') != PaymentType.WITHDRAWAL:
            raise NotAWithdrawal()
        if payment.get('status') != PaymentStatus.PENDING:
            raise NotPending(f"Payment is already {payment.get('status')}")
