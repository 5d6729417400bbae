"""
Configuration module for Lambda handlers.
Loads all environment variables needed by the platform.
"""
import os
from decimal import Decimal


DEFAULT_DEVELOPMENT_SKILLS = 'React,Node.js,Python,Java,PHP,Angular,Vue.js'


def _split_csv(value: str) -> frozenset:
    return frozenset(item.strip() for item in value.split(',') if item.strip())


class Config:
    """Centralized configuration from environment variables."""

    # AWS Region
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')

    # DynamoDB Tables
    USERS_TABLE = os.environ.get('USERS_TABLE', '')
    SUBMISSIONS_TABLE = os.environ.get('SUBMISSIONS_TABLE', '')
    PAYMENTS_TABLE = os.environ.get('PAYMENTS_TABLE', '')

    # DynamoDB Indexes
    SUBMISSIONS_BY_USER_INDEX = os.environ.get('SUBMISSIONS_BY_USER_INDEX', 'byUser')

    # Daily submission rules
    DEVELOPMENT_SKILLS = _split_csv(os.environ.get('DEVELOPMENT_SKILLS', DEFAULT_DEVELOPMENT_SKILLS))
    MIN_HOURS_WORKED = Decimal(os.environ.get('MIN_HOURS_WORKED', '0.5'))
    MAX_HOURS_WORKED = Decimal(os.environ.get('MAX_HOURS_WORKED', '24'))

    # Wallet
    CURRENCY = os.environ.get('CURRENCY', 'USD')

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


config = Config()
