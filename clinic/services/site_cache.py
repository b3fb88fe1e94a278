"""
Cache for the public site's list endpoints.

Responses are stored as returned by the API, keyed by endpoint and the
query that produced them, for ``PUBLIC_CACHE_SECONDS``.  Failed calls are
never cached.
"""
import logging

from django.conf import settings
from django.core.cache import cache

from .api import ApiError

logger = logging.getLogger(__name__)


def departments_key():
    return 'public:departments'


def doctors_key(page=1, department_id=None):
    return f'public:doctors:p={page}:dep={department_id or ""}'


def gallery_key(category_id=None):
    return f'public:gallery:cat={category_id or ""}'


def gallery_categories_key():
    return 'public:gallery-categories'


def plans_key():
    return 'public:plans'


def cached(key, loader):
    hit = cache.get(key)
    if hit is not None:
        return hit
    value = loader()
    cache.set(key, value, settings.PUBLIC_CACHE_SECONDS)
    return value


def warm(api):
    """Refresh the first page of every public list.

    Each list is loaded on its own so one upstream failure does not stop
    the rest.  Returns ``(written, failed)`` lists of cache keys.
    """
    jobs = [
        (departments_key(), api.get_departments),
        (doctors_key(), api.get_doctors),
        (gallery_key(), api.get_galleries),
        (gallery_categories_key(), api.get_gallery_categories),
        (plans_key(), api.get_plans),
    ]
    written, failed = [], []
    for key, loader in jobs:
        try:
            value = loader()
        except ApiError as exc:
            logger.warning('could not warm %s: %s', key, exc)
            failed.append(key)
            continue
        cache.set(key, value, settings.PUBLIC_CACHE_SECONDS)
        written.append(key)
        logger.debug('warmed %s', key)
    return written, failed
