"""
Daily Submission Status Handler.
GET /worker/submissions/today
"""
from shared.auth import Session
from shared.dynamo import DynamoStorage
from shared.eligibility import SubmissionEligibility
from shared.errors import PersistenceError, WorkerNotFound, WorkforceError
from shared.logging import logger, log_event
from shared.utils import error_response, format_response

storage = DynamoStorage()


def handler(event, context):
    """
    Tells the worker whether today's record can still be filed and
    whether a commit link will be required.
    """
    log_event(event)
    try:
        session = Session.from_event(event).require_worker()

        worker = storage.get_user_by_id(session.user_id)
        if not worker:
            raise WorkerNotFound()

        eligibility = SubmissionEligibility(storage)
        today = eligibility.today()

        return format_response(200, {
            'date': today,
            'canSubmitToday': eligibility.can_submit_today(session.user_id, today),
            'commitLinkRequired': eligibility.is_development_worker(worker),
            'accountStatus': worker.get('accountStatus')
        })

    except PersistenceError as e:
        logger.exception(f"Storage failure while reading submission status: {e}")
        return error_response(e)
    except WorkforceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error reading submission status: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
