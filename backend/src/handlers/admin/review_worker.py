"""
Review Worker Handler - admin account decisions.
POST /admin/workers/{workerId}/{action}
"""
from shared.auth import Session
from shared.dynamo import DynamoStorage
from shared.errors import PersistenceError, WorkforceError
from shared.logging import logger, log_event
from shared.models import LifecycleAction
from shared.review import ReviewCoordinator
from shared.utils import error_response, format_response, get_path_param, is_truthy, parse_body

storage = DynamoStorage()

# Actions the admin UI must confirm before sending
CONFIRMED_ACTIONS = {LifecycleAction.SUSPEND, LifecycleAction.TERMINATE}


def handler(event, context):
    """
    POST /admin/workers/{workerId}/{action}
    action: approve | suspend | reactivate | terminate
    Body: { "confirmed": true }  (required for suspend and terminate)
    """
    log_event(event)
    try:
        session = Session.from_event(event).require_admin()

        worker_id = get_path_param(event, 'workerId')
        action = (get_path_param(event, 'action') or '').lower()
        body = parse_body(event)

        if not worker_id:
            return format_response(400, {'error': 'MissingWorkerId', 'message': 'Missing workerId'})

        if action not in LifecycleAction.ALL:
            return format_response(400, {
                'error': 'InvalidAction',
                'message': f"Invalid action. Must be one of {', '.join(LifecycleAction.ALL)}"
            })

        if action in CONFIRMED_ACTIONS and not is_truthy(body.get('confirmed')):
            return format_response(400, {
                'error': 'ConfirmationRequired',
                'message': f"Please confirm: {action} this worker?"
            })

        result = ReviewCoordinator(storage).apply_action(session, worker_id, action)

        return format_response(200, {
            'message': f"Worker {result['worker']['accountStatus']}",
            **result
        })

    except PersistenceError as e:
        logger.exception(f"Storage failure while reviewing worker: {e}")
        return error_response(e)
    except WorkforceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error reviewing worker: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
