"""
Logging utilities for Lambda handlers.

One process-wide logger; level comes from LOG_LEVEL.
"""
import logging
import json

from .config import config

logger = logging.getLogger('workforce')
logger.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))

if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    logger.addHandler(handler)

# Never written to the log: request payloads, headers and raw tokens
_REDACTED_KEYS = ('body', 'headers', 'multiValueHeaders')


def _caller(event: dict) -> dict:
    try:
        claims = event['requestContext']['authorizer']['claims']
    except (KeyError, TypeError):
        return {}
    return {'sub': claims.get('sub'), 'groups': claims.get('cognito:groups')}


def log_event(event: dict) -> None:
    """Log the route and caller of an incoming API Gateway event."""
    try:
        summary = {
            'method': event.get('httpMethod'),
            'resource': event.get('resource') or event.get('path'),
            'pathParameters': event.get('pathParameters'),
            'queryStringParameters': event.get('queryStringParameters'),
            'caller': _caller(event),
        }
        extra = sorted(k for k in event if k not in _REDACTED_KEYS and k not in summary)
        logger.info(f"Lambda event: {json.dumps(summary, default=str)} keys={extra}")
    except (TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Could not log event: {e}")


def audit(actor: str, action: str, target: str, **details) -> None:
    """Single line record of an admin decision."""
    suffix = ' '.join(f"{k}={v}" for k, v in sorted(details.items()))
    logger.info(f"AUDIT actor={actor} action={action} target={target} {suffix}".rstrip())
