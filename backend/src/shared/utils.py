"""
Common utility functions for Lambda handlers.
"""
import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal types from DynamoDB."""

    def default(self, o):
        if isinstance(o, Decimal):
            # Convert to int if it's a whole number, otherwise float
            if o % 1 == 0:
                return int(o)
            return float(o)
        return super().default(o)


def format_response(
    status_code: int,
    body: Any,
    headers: Dict[str, str] = None
) -> Dict[str, Any]:
    """
    Format a standard API Gateway response with CORS headers.

    Args:
        status_code: HTTP status code
        body: Response body (will be JSON serialized)
        headers: Additional headers to include

    Returns:
        API Gateway response dict
    """
    default_headers = {
        'Access-Control-Allow-Origin': '*',
        'Access-Control-Allow-Credentials': True,
        'Content-Type': 'application/json'
    }

    if headers:
        default_headers.update(headers)

    return {
        'statusCode': status_code,
        'headers': default_headers,
        'body': json.dumps(body, cls=DecimalEncoder)
    }


def error_response(error) -> Dict[str, Any]:
    """Format a WorkforceError as an API Gateway response."""
    return format_response(error.status_code, error.to_dict())


def parse_body(event: dict) -> dict:
    """
    Safely parse JSON body from API Gateway event.

    Numbers are parsed as Decimal so amounts never pass through float.

    Args:
        event: API Gateway Lambda proxy event

    Returns:
        Parsed body dict or empty dict if invalid
    """
    try:
        body = event.get('body') or '{}'
        if isinstance(body, str):
            parsed = json.loads(body, parse_float=Decimal)
            return parsed if isinstance(parsed, dict) else {}
        return body or {}
    except (json.JSONDecodeError, TypeError):
        return {}


def get_path_param(event: dict, param_name: str) -> str:
    """Extract path parameter from event."""
    try:
        return event['pathParameters'][param_name]
    except (KeyError, TypeError):
        return None


def get_query_param(event: dict, param_name: str, default: str = None) -> str:
    """Extract query string parameter from event."""
    try:
        params = event.get('queryStringParameters') or {}
        return params.get(param_name, default)
    except (KeyError, TypeError, AttributeError):
        return default


def utc_now() -> datetime:
    """Current instant in UTC. Injected as the default clock everywhere."""
    return datetime.now(timezone.utc)


def is_truthy(value: Any) -> bool:
    """Interpret a JSON flag that may arrive as bool or string."""
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes')
    return value is True
