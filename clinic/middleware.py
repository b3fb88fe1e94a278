import logging

from django.contrib import messages
from django.shortcuts import redirect
from django.utils.functional import SimpleLazyObject

from .authentication import clear_sign_in, sign_in_url, user_from_session
from .services.api import ApiError, api_for_request
from .services.feedback import ACCESS_MESSAGE
from .services.public_api import public_api_for_request

logger = logging.getLogger(__name__)


class UpstreamSessionMiddleware:
    """
    Attach ``request.portal_user``, ``request.api`` and ``request.public_api``.

    Dashboard paths need an upstream token; visitors without one are sent
    to the sign-in page.  An :class:`ApiError` with status 401 escaping a
    view means the token expired upstream, so the session is dropped.
    """
    PROTECTED_PREFIXES = ('/dashboard',)

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.portal_user = user_from_session(request.session)
        request.api = SimpleLazyObject(lambda: api_for_request(request))
        request.public_api = SimpleLazyObject(lambda: public_api_for_request(request))
        path = request.path or ''
        if path.startswith(self.PROTECTED_PREFIXES) and not request.portal_user.is_authenticated:
            return redirect(sign_in_url(path))
        return self.get_response(request)

    def process_exception(self, request, exception):
        if isinstance(exception, ApiError) and exception.status == 401:
            logger.info('upstream token rejected for %s', request.path)
            clear_sign_in(request.session)
            messages.error(request, ACCESS_MESSAGE)
            return redirect(sign_in_url(request.path))
        return None
