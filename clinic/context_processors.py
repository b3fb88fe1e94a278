from .authentication import user_from_session
from .navigation import visible_pages


def portal(request):
    session = getattr(request, 'session', None)
    if session is None:
        return {}
    user = getattr(request, 'portal_user', None) or user_from_session(session)
    return {
        'portal_user': user,
        'nav_pages': visible_pages(user.permissions) if user.is_authenticated else [],
    }
