"""
List Submissions Handler.
GET /worker/submissions
"""
from shared.auth import Session
from shared.dynamo import DynamoStorage
from shared.errors import PersistenceError, WorkforceError
from shared.logging import logger, log_event
from shared.utils import error_response, format_response, get_query_param

storage = DynamoStorage()

DEFAULT_LIMIT = 30


def handler(event, context):
    """
    Worker's own submission history, newest first.
    Query: ?limit=30
    """
    log_event(event)
    try:
        session = Session.from_event(event).require_worker()

        try:
            limit = int(get_query_param(event, 'limit', DEFAULT_LIMIT))
        except (TypeError, ValueError):
            limit = DEFAULT_LIMIT
        limit = max(limit, 1)

        submissions = storage.get_submissions_by_user(session.user_id)
        submissions.sort(key=lambda s: s.get('date', ''), reverse=True)

        return format_response(200, {
            'submissions': submissions[:limit],
            'count': len(submissions)
        })

    except PersistenceError as e:
        logger.exception(f"Storage failure while listing submissions: {e}")
        return error_response(e)
    except WorkforceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error listing submissions: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
