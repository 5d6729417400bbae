from decimal import Decimal

from shared.auth import Session
from shared.config import config
from shared.dynamo import DynamoStorage
from shared.errors import PersistenceError, WorkerNotFound, WorkforceError
from shared.logging import logger, log_event
from shared.models import PaymentStatus, PaymentType
from shared.utils import error_response, format_response

storage = DynamoStorage()


def handler(event, context):
    """
    Handler to get current worker's balance.
    GET /worker/wallet
    """
    log_event(event)
    try:
        session = Session.from_event(event).require_worker()

        worker = storage.get_user_by_id(session.user_id)
        if not worker:
            raise WorkerNotFound()

        # Pending withdrawals are already deducted from the balance
        pending = [
            p for p in storage.get_payments(status=PaymentStatus.PENDING, payment_type=PaymentType.WITHDRAWAL)
            if p.get('userId') == session.user_id
        ]
        pending_total = sum((Decimal(str(p['amount'])) for p in pending), Decimal('0'))

        return format_response(200, {
            'userId': session.user_id,
            'balance': worker.get('balance', Decimal('0')),
            'pendingWithdrawals': pending_total,
            'pendingCount': len(pending),
            'currency': config.CURRENCY
        })

    except PersistenceError as e:
        logger.exception(f"Storage failure while reading wallet: {e}")
        return error_response(e)
    except WorkforceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error getting wallet: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
