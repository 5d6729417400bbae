"""
Error taxonomy for worker and wallet operations.

Business-rule errors are raised by the core and caught by the handlers,
which turn them into JSON error responses using ``code`` and ``status_code``.
"""


class WorkforceError(Exception):
    """Base class for every error the core reports to its callers."""
    status_code = 400
    default_message = 'Request could not be processed'

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {'error': self.code, 'message': str(self)}


# Submission validation

class ValidationError(WorkforceError):
    default_message = 'Invalid submission'


class MissingCommitLink(ValidationError):
    default_message = 'GitHub commit link is mandatory for development workers'


class IncompleteWork(ValidationError):
    default_message = 'Please provide work description and hours worked'


class InvalidHours(ValidationError):
    default_message = 'Hours worked must be between 0.5 and 24'


class InvalidWorkType(ValidationError):
    default_message = 'Unknown work type'


class AlreadySubmitted(ValidationError):
    default_message = 'You have already submitted your daily work for today'


class AccountNotActive(ValidationError):
    default_message = 'Worker account is not active'


# Account lifecycle

class LifecycleError(WorkforceError):
    status_code = 409


class InvalidTransition(LifecycleError):
    default_message = 'Action not permitted from the current account status'


# Withdrawal ledger

class LedgerError(WorkforceError):
    pass


class InsufficientBalance(LedgerError):
    default_message = 'Insufficient balance'


class InvalidAmount(LedgerError):
    default_message = 'Amount must be a positive number'


class NotPending(LedgerError):
    status_code = 409
    default_message = 'Payment is no longer pending'


class NotAWithdrawal(LedgerError):
    default_message = 'Payment is not a withdrawal request'


# Lookup and access

class NotFound(WorkforceError):
    status_code = 404
    default_message = 'Not found'


class WorkerNotFound(NotFound):
    default_message = 'Worker not found'


class PaymentNotFound(NotFound):
    default_message = 'Payment not found'


class NotAuthorized(WorkforceError):
    status_code = 403
    default_message = 'Not authorized'


# Storage

class PersistenceError(WorkforceError):
    """Opaque storage failure. Never retried by the core."""
    status_code = 500
    default_message = 'Storage failure'


class WriteConflict(Exception):
    """A conditional write lost against the current stored state."""
