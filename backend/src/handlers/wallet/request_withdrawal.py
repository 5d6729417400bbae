"""
Request Withdrawal Handler.
POST /wallet/withdraw
"""
from shared.auth import Session
from shared.dynamo import DynamoStorage
from shared.errors import PersistenceError, WorkerNotFound, WorkforceError
from shared.ledger import WithdrawalLedger
from shared.logging import logger, log_event
from shared.utils import error_response, format_response, parse_body

storage = DynamoStorage()


def handler(event, context):
    """
    POST /wallet/withdraw
    Body: { "amount": 50.00 }

    The amount is deducted right away and held as a pending withdrawal
    until an admin approves or rejects it.
    """
    log_event(event)
    try:
        session = Session.from_event(event).require_worker()
        body = parse_body(event)

        worker = storage.get_user_by_id(session.user_id)
        if not worker:
            raise WorkerNotFound()

        payment = WithdrawalLedger(storage).request_withdrawal(worker, body.get('amount'))

        # Read back the balance after the transaction
        refreshed = storage.get_user_by_id(session.user_id) or {}

        return format_response(200, {
            'message': 'Withdrawal requested successfully',
            'payment': payment,
            'newBalance': refreshed.get('balance')
        })

    except PersistenceError as e:
        logger.exception(f"Storage failure while requesting withdrawal: {e}")
        return error_response(e)
    except WorkforceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error requesting withdrawal: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
