"""
List Pending Withdrawals Handler.
GET /admin/withdrawals
"""
from shared.auth import Session
from shared.dynamo import DynamoStorage
from shared.errors import PersistenceError, WorkforceError
from shared.logging import logger, log_event
from shared.review import ReviewCoordinator
from shared.utils import error_response, format_response

storage = DynamoStorage()


def handler(event, context):
    log_event(event)
    try:
        Session.from_event(event).require_admin()

        pending = ReviewCoordinator(storage).pending_withdrawals()

        return format_response(200, {
            'pendingWithdrawals': pending,
            'count': len(pending)
        })

    except PersistenceError as e:
        logger.exception(f"Storage failure while listing withdrawals: {e}")
        return error_response(e)
    except WorkforceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error listing withdrawals: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
