"""Toast messages for failed upstream calls."""
from __future__ import annotations

import logging

from django.contrib import messages

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = 'Validation failed: Please check all required fields and ensure data is valid'
NETWORK_MESSAGE = 'Network error: Please check your internet connection and try again'
ACCESS_MESSAGE = 'Access denied: Please login again and ensure you have the required permissions'
SERVER_MESSAGE = 'Server error: Please contact administrator if the problem persists'


def describe_error(exc: Exception | str | None, default: str = 'Something went wrong') -> str:
    """Turn an exception into a human-readable toast by matching its text."""
    text = str(exc or '').strip()
    if not text:
        return default
    lowered = text.lower()
    if 'validation' in lowered or '422' in lowered:
        return VALIDATION_MESSAGE
    if 'network' in lowered or 'fetch' in lowered:
        return NETWORK_MESSAGE
    if 'unauthorized' in lowered or '401' in lowered:
        return ACCESS_MESSAGE
    if '500' in lowered:
        return SERVER_MESSAGE
    return f'Error: {text}'


def report_failure(request, exc: Exception, default: str = 'Something went wrong') -> str:
    logger.warning('%s %s: %s', request.method, request.path, exc)
    text = describe_error(exc, default)
    messages.error(request, text)
    return text


def report_success(request, text: str) -> None:
    messages.success(request, text)
