"""
Daily submission eligibility and validation.

A worker may file one proof-of-work record per calendar day (UTC).
Development workers must link the commit that backs the day's work.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, Optional

from .config import config
from .errors import (
    AccountNotActive,
    AlreadySubmitted,
    IncompleteWork,
    InvalidHours,
    InvalidWorkType,
    MissingCommitLink,
    ValidationError,
    WorkerNotFound,
    WriteConflict,
)
from .logging import logger
from .models import AccountStatus, WorkType, submission_key
from .utils import utc_now


class DevelopmentWorkerPolicy:
    """
    Classifies a worker as a development worker by skill name.

    The reference skill set is configuration (DEVELOPMENT_SKILLS), not code.
    """

    def __init__(self, skills: Optional[Iterable[str]] = None):
        self.skills = frozenset(config.DEVELOPMENT_SKILLS if skills is None else skills)

    def __call__(self, worker: Dict[str, Any]) -> bool:
        return any(skill in self.skills for skill in worker.get('skills') or [])


def parse_hours(value: Any) -> Decimal:
    """Hours as Decimal; anything non-numeric counts as no hours."""
    if value is None or isinstance(value, bool):
        return Decimal('0')
    try:
        hours = Decimal(str(value).strip())
    except InvalidOperation:
        return Decimal('0')
    return hours if hours.is_finite() else Decimal('0')


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ''


class SubmissionEligibility:
    """Decides whether a worker may submit today and builds the record."""

    def __init__(
        self,
        storage,
        clock: Callable = utc_now,
        is_development_worker: Optional[Callable[[Dict[str, Any]], bool]] = None
    ):
        self.storage = storage
        self.clock = clock
        self.is_development_worker = is_development_worker or DevelopmentWorkerPolicy()

    def today(self) -> str:
        """Calendar date of the current instant, e.g. '2024-05-01'."""
        return self.clock().date().isoformat()

    def can_submit_today(self, worker_id: str, today: Optional[str] = None) -> bool:
        today = today or self.today()
        submissions = self.storage.get_submissions_by_user(worker_id)
        return not any(s.get('date') == today for s in submissions)

    def validate(self, worker: Dict[str, Any], draft: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a draft against the worker's rules.

        Args:
            worker: Worker record (userId, skills, accountStatus)
            draft: Submitted fields (description, hoursWorked, workType,
                githubCommitUrl, videoUrl)

        Returns:
            The complete submission record, ready to persist

        Raises:
            ValidationError subclass describing the first failed rule
        """
        now = self.clock()
        today = now.date().isoformat()
        user_id = worker['userId']

        github_commit_url = _text(draft.get('githubCommitUrl'))
        description = _text(draft.get('description'))
        hours = parse_hours(draft.get('hoursWorked'))
        work_type = _text(draft.get('workType')) or WorkType.DEVELOPMENT

        if self.is_development_worker(worker) and not github_commit_url:
            raise MissingCommitLink()

        if not description or hours <= 0:
            raise IncompleteWork()

        if hours < config.MIN_HOURS_WORKED or hours > config.MAX_HOURS_WORKED:
            raise InvalidHours(
                f"Hours worked must be between {config.MIN_HOURS_WORKED} and {config.MAX_HOURS_WORKED}"
            )

        if work_type not in WorkType.ALL:
            raise InvalidWorkType(f"Unknown work type '{work_type}'")

        if worker.get('accountStatus') != AccountStatus.ACTIVE:
            raise AccountNotActive()

        if not self.can_submit_today(user_id, today):
            raise AlreadySubmitted()

        return {
            'submissionId': submission_key(user_id, today),
            'userId': user_id,
            'date': today,
            'workType': work_type,
            'description': description,
            'hoursWorked': hours,
            'githubCommitUrl': github_commit_url,
            'videoUrl': _text(draft.get('videoUrl')),
            'adminReviewed': False,
            'createdAt': now.isoformat(),
        }

    def submit(self, worker_id: str, draft: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and persist today's submission for a worker."""
        worker = self.storage.get_user_by_id(worker_id)
        if not worker:
            raise WorkerNotFound()

        try:
            submission = self.validate(worker, draft)
        except ValidationError as e:
            logger.warning(f"Submission refused for {worker_id}: {e.code}")
            raise

        try:
            self.storage.create_submission(submission)
        except WriteConflict:
            # Today's record was stored, or the account left active, after the checks
            logger.warning(f"Submission for {worker_id} on {submission['date']} lost storage check")
            current = self.storage.get_user_by_id(worker_id)
            if not current or current.get('accountStatus') != AccountStatus.ACTIVE:
                raise AccountNotActive()
            raise AlreadySubmitted()

        logger.info(f"Daily submission stored for {worker_id} on {submission['date']}")
        return submission
