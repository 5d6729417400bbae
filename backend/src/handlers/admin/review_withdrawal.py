"""
Review Withdrawal Handler - admin payout decisions.
POST /admin/withdrawals/{paymentId}/{decision}
"""
from shared.auth import Session
from shared.dynamo import DynamoStorage
from shared.errors import PersistenceError, WorkforceError
from shared.logging import logger, log_event
from shared.review import ReviewCoordinator
from shared.utils import error_response, format_response, get_path_param, is_truthy, parse_body

storage = DynamoStorage()

DECISIONS = ('approve', 'reject')


def handler(event, context):
    """
    POST /admin/withdrawals/{paymentId}/{decision}
    decision: approve | reject
    Body: { "confirmed": true }

    Approve completes the payout; reject marks it failed and refunds
    the worker.
    """
    log_event(event)
    try:
        session = Session.from_event(event).require_admin()

        payment_id = get_path_param(event, 'paymentId')
        decision = (get_path_param(event, 'decision') or '').lower()
        body = parse_body(event)

        if not payment_id:
            return format_response(400, {'error': 'MissingPaymentId', 'message': 'Missing paymentId'})

        if decision not in DECISIONS:
            return format_response(400, {
                'error': 'InvalidDecision',
                'message': 'Invalid decision. Must be approve or reject'
            })

        if not is_truthy(body.get('confirmed')):
            return format_response(400, {
                'error': 'ConfirmationRequired',
                'message': f"Please confirm: {decision} this withdrawal request?"
            })

        coordinator = ReviewCoordinator(storage)
        if decision == 'approve':
            result = coordinator.approve_withdrawal(session, payment_id)
            message = 'Withdrawal approved'
        else:
            result = coordinator.reject_withdrawal(session, payment_id)
            message = 'Withdrawal rejected & refunded'

        return format_response(200, {'message': message, **result})

    except PersistenceError as e:
        logger.exception(f"Storage failure while reviewing withdrawal: {e}")
        return error_response(e)
    except WorkforceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error reviewing withdrawal: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
