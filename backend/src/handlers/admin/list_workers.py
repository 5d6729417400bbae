"""
List Workers Handler.
GET /admin/workers?status=pending
"""
from shared.auth import Session
from shared.dynamo import DynamoStorage
from shared.errors import PersistenceError, WorkforceError
from shared.logging import logger, log_event
from shared.models import AccountStatus
from shared.review import ReviewCoordinator, count_by_status
from shared.utils import error_response, format_response, get_query_param

storage = DynamoStorage()


def handler(event, context):
    """Workers for the admin screen, with per-status counts for the filter tabs."""
    log_event(event)
    try:
        Session.from_event(event).require_admin()

        status = get_query_param(event, 'status', 'all')
        if status != 'all' and status not in AccountStatus.ALL:
            return format_response(400, {'error': 'InvalidStatus', 'message': f"Unknown status '{status}'"})

        coordinator = ReviewCoordinator(storage)
        workers = coordinator.list_workers(status)

        return format_response(200, {
            'workers': workers,
            'counts': count_by_status(coordinator.list_workers()),
            'filter': status
        })

    except PersistenceError as e:
        logger.exception(f"Storage failure while listing workers: {e}")
        return error_response(e)
    except WorkforceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error listing workers: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
