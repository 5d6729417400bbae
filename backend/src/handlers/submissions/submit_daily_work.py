"""
Submit Daily Work Handler.
POST /worker/submissions
"""
from shared.auth import Session
from shared.dynamo import DynamoStorage
from shared.eligibility import SubmissionEligibility
from shared.errors import PersistenceError, WorkforceError
from shared.logging import logger, log_event
from shared.utils import error_response, format_response, parse_body

storage = DynamoStorage()


def handler(event, context):
    """
    Handler for a worker's daily proof-of-work record.
    POST /worker/submissions
    Body: {
        "workType": "development",
        "description": "...",
        "hoursWorked": 6.5,
        "githubCommitUrl": "https://github.com/...",
        "videoUrl": "https://..."
    }
    """
    log_event(event)
    try:
        session = Session.from_event(event).require_worker()
        draft = parse_body(event)

        submission = SubmissionEligibility(storage).submit(session.user_id, draft)

        return format_response(201, {
            'message': 'Daily work submitted successfully',
            'submission': submission
        })

    except PersistenceError as e:
        logger.exception(f"Storage failure while submitting daily work: {e}")
        return error_response(e)
    except WorkforceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error submitting daily work: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
