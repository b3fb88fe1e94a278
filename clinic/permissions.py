"""
Permission checks based on the slugs granted by the upstream API
(``view-appointments``, ``view-pharmacy`` ...).
"""
from functools import wraps

from django.contrib import messages
from django.shortcuts import redirect
from rest_framework.permissions import BasePermission

from .authentication import sign_in_url, user_from_session
from .navigation import first_accessible_url


def permission_required(slug):
    """Gate a dashboard view on one permission slug."""
    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            user = getattr(request, 'portal_user', None) or user_from_session(request.session)
            if not user.is_authenticated:
                return redirect(sign_in_url(request.path))
            if not user.has_permission(slug):
                messages.error(request, "You don't have permission to view that page")
                target = first_accessible_url(user.permissions)
                if target and target != request.path:
                    return redirect(target)
                return redirect('clinic:profile')
            return view(request, *args, **kwargs)
        wrapper.required_permission = slug
        return wrapper
    return decorator


class HasPortalPermission(BasePermission):
    """DRF permission: the view declares ``required_permission``."""

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, 'user', None)
        slug = getattr(view, 'required_permission', None)
        if not (user and getattr(user, 'is_authenticated', False)):
            return False
        return slug is None or user.has_permission(slug)
