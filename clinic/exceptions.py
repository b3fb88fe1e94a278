"""
DRF exception handler for the JSON widgets.

Every failure leaves as ``{"ok": false, "error": {"code", "message"}}``.
Upstream failures keep the upstream status (502 when there was none) and
carry the same human-readable text the HTML pages show as a toast.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from .services.api import ApiError
from .services.feedback import describe_error

logger = logging.getLogger(__name__)


def error_response(code, message, status_code):
    return Response({'ok': False, 'error': {'code': code, 'message': message}}, status=status_code)


def api_exception_handler(exc, context):
    if isinstance(exc, ApiError):
        code = exc.status if exc.status and exc.status >= 400 else status.HTTP_502_BAD_GATEWAY
        return error_response('upstream_error', describe_error(exc), code)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', context.get('view').__class__.__name__)
        return error_response('server_error', 'Internal server error', status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(resp.data, dict) and 'detail' in resp.data:
        message = resp.data['detail']
    else:
        message = resp.data
    code = exc.default_code if isinstance(exc, APIException) else 'api_error'
    return error_response(code, message, resp.status_code)
