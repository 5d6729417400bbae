"""
DynamoDB storage for workers, daily submissions and payments.

Every check-then-act rule of the core is a single conditional write or a
single transaction here, so two Lambdas racing on the same worker, date or
payment cannot both win.
"""
from contextlib import contextmanager
from decimal import Decimal
from typing import List, Dict, Any, Optional

import boto3
from boto3.dynamodb.conditions import Key, Attr
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from .config import config
from .errors import PersistenceError, WriteConflict
from .logging import logger
from .models import AccountStatus, PaymentStatus

# Fields that only the core's conditional operations may change
PROTECTED_USER_FIELDS = frozenset({'userId', 'balance', 'accountStatus'})
PROTECTED_PAYMENT_FIELDS = frozenset({'paymentId', 'userId', 'amount', 'status', 'completedAt'})

_serializer = TypeSerializer()


def _serialize(values: Dict[str, Any]) -> Dict[str, Any]:
    """Convert Python values to low-level DynamoDB attribute values."""
    return {k: _serializer.serialize(v) for k, v in values.items()}


def _condition_failed(error: ClientError) -> bool:
    """True if a cancelled transaction was cancelled by a failed condition."""
    reasons = error.response.get('CancellationReasons') or []
    if any(reason.get('Code') == 'ConditionalCheckFailed' for reason in reasons):
        return True
    return 'ConditionalCheckFailed' in error.response.get('Error', {}).get('Message', '')


@contextmanager
def storage_errors(operation: str):
    """Translate botocore failures into WriteConflict / PersistenceError."""
    try:
        yield
    except ClientError as e:
        code = e.response.get('Error', {}).get('Code')
        if code == 'ConditionalCheckFailedException':
            raise WriteConflict(operation) from e
        if code == 'TransactionCanceledException' and _condition_failed(e):
            raise WriteConflict(operation) from e
        logger.error(f"DynamoDB error during {operation}: {e}")
        raise PersistenceError(f"{operation} failed ({code})") from e
    except BotoCoreError as e:
        logger.error(f"DynamoDB error during {operation}: {e}")
        raise PersistenceError(f"{operation} failed") from e


def build_set_expression(fields: Dict[str, Any]):
    """
    Build a SET update expression with placeholder names and values.

    Returns:
        (update_expression, expression_names, expression_values)
    """
    names = {}
    values = {}
    clauses = []
    for idx, (field, value) in enumerate(fields.items()):
        names[f'#f{idx}'] = field
        values[f':v{idx}'] = value
        clauses.append(f'#f{idx} = :v{idx}')
    return 'SET ' + ', '.join(clauses), names, values


class DynamoStorage:
    """Storage collaborator backed by three DynamoDB tables."""

    def __init__(
        self,
        resource=None,
        client=None,
        users_table: Optional[str] = None,
        submissions_table: Optional[str] = None,
        payments_table: Optional[str] = None,
        submissions_index: Optional[str] = None
    ):
        self.resource = resource or boto3.resource('dynamodb', region_name=config.AWS_REGION)
        self.client = client or boto3.client('dynamodb', region_name=config.AWS_REGION)
        self.users_table = users_table or config.USERS_TABLE
        self.submissions_table = submissions_table or config.SUBMISSIONS_TABLE
        self.payments_table = payments_table or config.PAYMENTS_TABLE
        self.submissions_index = submissions_index or config.SUBMISSIONS_BY_USER_INDEX

    def _collect(self, method, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Run a scan/query, following LastEvaluatedKey until exhausted."""
        items = []
        while True:
            response = method(**params)
            items.extend(response.get('Items', []))
            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                return items
            params = dict(params, ExclusiveStartKey=last_key)

    # Users

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        with storage_errors('get_user_by_id'):
            response = self.resource.Table(self.users_table).get_item(Key={'userId': user_id})
        return response.get('Item')

    def get_users(self) -> List[Dict[str, Any]]:
        table = self.resource.Table(self.users_table)
        with storage_errors('get_users'):
            return self._collect(table.scan, {})

    def put_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        with storage_errors('put_user'):
            self.resource.Table(self.users_table).put_item(Item=user)
        return user

    def update_user(self, user_id: str, fields: Dict[str, Any]) -> None:
        """Update profile fields. Balance and account status are refused."""
        protected = PROTECTED_USER_FIELDS.intersection(fields)
        if protected:
            raise ValueError(f"Fields {sorted(protected)} cannot be updated directly")
        if not fields:
            return

        update_expression, names, values = build_set_expression(fields)
        with storage_errors('update_user'):
            self.resource.Table(self.users_table).update_item(
                Key={'userId': user_id},
                UpdateExpression=update_expression,
                ConditionExpression='attribute_exists(userId)',
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values
            )

    def set_account_status(self, user_id: str, expected: str, new: str) -> None:
        """Compare-and-set accountStatus. Touches no other attribute."""
        with storage_errors('set_account_status'):
            self.resource.Table(self.users_table).update_item(
                Key={'userId': user_id},
                UpdateExpression='SET #status = :new',
                ConditionExpression='#status = :expected',
                ExpressionAttributeNames={'#status': 'accountStatus'},
                ExpressionAttributeValues={
                    ':new': new,
                    ':expected': expected
                }
            )

    # Submissions

    def get_submissions_by_user(self, user_id: str) -> List[Dict[str, Any]]:
        table = self.resource.Table(self.submissions_table)
        params = {
            'IndexName': self.submissions_index,
            'KeyConditionExpression': Key('userId').eq(user_id)
        }
        with storage_errors('get_submissions_by_user'):
            return self._collect(table.query, params)

    def create_submission(self, submission: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a submission for an active worker.

        Fails with WriteConflict if the key already exists or the worker's
        account is not active when the write lands.
        """
        with storage_errors('create_submission'):
            self.client.transact_write_items(
                TransactItems=[
                    {
                        'ConditionCheck': {
                            'TableName': self.users_table,
                            'Key': _serialize({'userId': submission['userId']}),
                            'ConditionExpression': '#status = :active',
                            'ExpressionAttributeNames': {'#status': 'accountStatus'},
                            'ExpressionAttributeValues': _serialize({':active': AccountStatus.ACTIVE})
                        }
                    },
                    {
                        'Put': {
                            'TableName': self.submissions_table,
                            'Item': _serialize(submission),
                            'ConditionExpression': 'attribute_not_exists(submissionId)'
                        }
                    }
                ]
            )
        return submission

    # Payments

    def get_payments(
        self,
        status: Optional[str] = None,
        payment_type: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        table = self.resource.Table(self.payments_table)
        params = {}
        filter_expression = None
        if status:
            filter_expression = Attr('status').eq(status)
        if payment_type:
            type_filter = Attr('type').eq(payment_type)
            filter_expression = type_filter if filter_expression is None else filter_expression & type_filter
        if filter_expression is not None:
            params['FilterExpression'] = filter_expression

        with storage_errors('get_payments'):
            return self._collect(table.scan, params)

    def get_payment(self, payment_id: str) -> Optional[Dict[str, Any]]:
        with storage_errors('get_payment'):
            response = self.resource.Table(self.payments_table).get_item(Key={'paymentId': payment_id})
        return response.get('Item')

    def update_payment(self, payment_id: str, fields: Dict[str, Any]) -> None:
        """Update descriptive payment fields. Status and amount are refused."""
        protected = PROTECTED_PAYMENT_FIELDS.intersection(fields)
        if protected:
            raise ValueError(f"Fields {sorted(protected)} cannot be updated directly")
        if not fields:
            return

        update_expression, names, values = build_set_expression(fields)
        with storage_errors('update_payment'):
            self.resource.Table(self.payments_table).update_item(
                Key={'paymentId': payment_id},
                UpdateExpression=update_expression,
                ConditionExpression='attribute_exists(paymentId)',
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values
            )

    def reserve_withdrawal(self, user_id: str, payment: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deduct the amount from the worker's balance and record the pending
        withdrawal in one transaction.

        The deduction is conditioned on balance >= amount and on an active
        account, so the balance never goes negative and a suspended or
        terminated worker cannot withdraw, however the requests race.
        """
        amount = Decimal(str(payment['amount']))
        with storage_errors('reserve_withdrawal'):
            self.client.transact_write_items(
                TransactItems=[
                    # Deduct from balance (with balance and status check)
                    {
                        'Update': {
                            'TableName': self.users_table,
                            'Key': _serialize({'userId': user_id}),
                            'UpdateExpression': 'SET balance = balance - :amount',
                            'ConditionExpression': 'balance >= :amount AND #status = :active',
                            'ExpressionAttributeNames': {'#status': 'accountStatus'},
                            'ExpressionAttributeValues': _serialize({
                                ':amount': amount,
                                ':active': AccountStatus.ACTIVE
                            })
                        }
                    },
                    # Record pending withdrawal
                    {
                        'Put': {
                            'TableName': self.payments_table,
                            'Item': _serialize(payment),
                            'ConditionExpression': 'attribute_not_exists(paymentId)'
                        }
                    }
                ]
            )
        return payment

    def complete_payment(self, payment_id: str, completed_at: str) -> Dict[str, Any]:
        """Move a pending payment to completed. Balance is not touched."""
        with storage_errors('complete_payment'):
            response = self.resource.Table(self.payments_table).update_item(
                Key={'paymentId': payment_id},
                UpdateExpression='SET #status = :completed, completedAt = :ts',
                ConditionExpression='#status = :pending',
                ExpressionAttributeNames={'#status': 'status'},
                ExpressionAttributeValues={
                    ':completed': PaymentStatus.COMPLETED,
                    ':pending': PaymentStatus.PENDING,
                    ':ts': completed_at
                },
                ReturnValues='ALL_NEW'
            )
        return response.get('Attributes', {})

    def refund_payment(self, payment_id: str, user_id: str, amount: Decimal) -> None:
        """
        Move a pending payment to failed and credit the amount back.

        The credit is an atomic ADD, so balance changes made by other writers
        in the meantime are preserved.
        """
        with storage_errors('refund_payment'):
            self.client.transact_write_items(
                TransactItems=[
                    {
                        'Update': {
                            'TableName': self.payments_table,
                            'Key': _serialize({'paymentId': payment_id}),
                            'UpdateExpression': 'SET #status = :failed',
                            'ConditionExpression': '#status = :pending',
                            'ExpressionAttributeNames': {'#status': 'status'},
                            'ExpressionAttributeValues': _serialize({
                                ':failed': PaymentStatus.FAILED,
                                ':pending': PaymentStatus.PENDING
                            })
                        }
                    },
                    {
                        'Update': {
                            'TableName': self.users_table,
                            'Key': _serialize({'userId': user_id}),
                            'UpdateExpression': 'ADD balance :amount',
                            'ConditionExpression': 'attribute_exists(userId)',
                            'ExpressionAttributeValues': _serialize({':amount': Decimal(str(amount))})
                        }
                    }
                ]
            )
