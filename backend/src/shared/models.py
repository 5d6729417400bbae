"""
Data models and status constants for the worker platform.

Worker accounts: Pending → Active ⇄ Suspended → Terminated
Withdrawals:     Pending → Completed | Failed (refunded)
"""


class UserRole:
    """Platform roles."""
    WORKER = 'worker'
    ADMIN = 'admin'


class AccountStatus:
    """Worker account statuses."""
    PENDING = 'pending'
    ACTIVE = 'active'
    SUSPENDED = 'suspended'
    TERMINATED = 'terminated'

    ALL = (PENDING, ACTIVE, SUSPENDED, TERMINATED)


class LifecycleAction:
    """Admin actions on a worker account."""
    APPROVE = 'approve'
    SUSPEND = 'suspend'
    REACTIVATE = 'reactivate'
    TERMINATE = 'terminate'

    ALL = (APPROVE, SUSPEND, REACTIVATE, TERMINATE)


class PaymentType:
    """Ledger entry types. Only withdrawals are managed here."""
    WITHDRAWAL = 'withdrawal'
    EARNING = 'earning'
    BONUS = 'bonus'


class PaymentStatus:
    """Payment statuses."""
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'


class WorkType:
    """Kinds of daily work a worker can report."""
    DEVELOPMENT = 'development'
    DESIGN = 'design'
    VIDEO_EDITING = 'video-editing'
    CONTENT = 'content'
    OTHER = 'other'

    ALL = (DEVELOPMENT, DESIGN, VIDEO_EDITING, CONTENT, OTHER)


def submission_key(user_id: str, date: str) -> str:
    """Primary key of a daily submission; one per worker per calendar date."""
    return f"{user_id}#{date}"
