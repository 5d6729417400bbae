"""
Authentication utilities for extracting user info from Cognito tokens.
"""
from typing import Optional

from .errors import NotAuthorized
from .models import UserRole


def get_user_sub(event: dict) -> Optional[str]:
    """
    Extract user sub (unique ID) from Cognito authorizer claims.

    Args:
        event: API Gateway Lambda proxy event

    Returns:
        User sub string or None if not authenticated
    """
    try:
        return event['requestContext']['authorizer']['claims']['sub']
    except (KeyError, TypeError):
        return None


def get_user_email(event: dict) -> Optional[str]:
    """Extract user email from Cognito claims."""
    try:
        return event['requestContext']['authorizer']['claims']['email']
    except (KeyError, TypeError):
        return None


def get_user_groups(event: dict) -> list:
    """Extract user groups (worker, admin) from Cognito claims."""
    try:
        groups = event['requestContext']['authorizer']['claims'].get('cognito:groups', '')
        if isinstance(groups, str):
            return groups.split(',') if groups else []
        return groups or []
    except (KeyError, TypeError, AttributeError):
        return []


class Session:
    """
    The caller of a single request.

    Built from the authorizer claims and passed explicitly into every
    operation that needs to know who is acting.
    """

    def __init__(self, user_id: Optional[str], groups=None, email: Optional[str] = None):
        self.user_id = user_id
        self.groups = list(groups or [])
        self.email = email

    @classmethod
    def from_event(cls, event: dict) -> 'Session':
        return cls(
            user_id=get_user_sub(event),
            groups=get_user_groups(event),
            email=get_user_email(event),
        )

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and UserRole.ADMIN in self.groups

    @property
    def is_worker(self) -> bool:
        return self.is_authenticated and UserRole.WORKER in self.groups

    def require_admin(self) -> 'Session':
        if not self.is_admin:
            raise NotAuthorized('Admin access required')
        return self

    def require_worker(self) -> 'Session':
        if not self.is_worker:
            raise NotAuthorized('Worker access required')
        return self

    def __repr__(self):
        return f"Session(user_id={self.user_id!r}, groups={self.groups!r})"
