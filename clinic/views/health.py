import logging

from django.http import JsonResponse

from clinic.services.api import ApiError, ApiService

logger = logging.getLogger(__name__)


def healthz(request):
    """Reports whether the upstream API answers; any HTTP answer counts as reachable."""
    try:
        ApiService().get('/public/departments', {'per_page': 1})
        return JsonResponse({'ok': True, 'upstream': True})
    except ApiError as e:
        if e.status is not None:
            return JsonResponse({'ok': True, 'upstream': True, 'status': e.status})
        logger.warning('upstream unreachable: %s', e)
        return JsonResponse({'ok': False, 'upstream': False, 'error': str(e)}, status=503)
