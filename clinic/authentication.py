"""
Session-backed identity for the portal.

The portal keeps no user table.  After sign-in the upstream bearer
token, the user record and the permission slugs are stored in the
Django session; :class:`PortalUser` is rebuilt from them on every
request.  :class:`UpstreamSessionAuthentication` exposes the same
identity to DRF views so the JSON widgets and the HTML pages agree on
who is signed in.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import quote

from rest_framework import authentication

SESSION_TOKEN = 'api_token'
SESSION_USER = 'portal_user'
SESSION_PERMISSIONS = 'permissions'


@dataclass
class PortalUser:
    id: Optional[int] = None
    name: str = ''
    email: str = ''
    role: str = ''
    permissions: List[str] = field(default_factory=list)
    token: Optional[str] = None

    @property
    def pk(self):
        return self.id

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_anonymous(self) -> bool:
        return not self.is_authenticated

    def has_permission(self, slug: str) -> bool:
        return slug in self.permissions

    def has_any_permission(self, slugs) -> bool:
        return any(s in self.permissions for s in slugs)

    def has_all_permissions(self, slugs) -> bool:
        return all(s in self.permissions for s in slugs)


def user_from_session(session) -> PortalUser:
    token = session.get(SESSION_TOKEN)
    data = session.get(SESSION_USER) or {}
    return PortalUser(
        id=data.get('id'),
        name=data.get('name') or '',
        email=data.get('email') or '',
        role=data.get('role') or '',
        permissions=list(session.get(SESSION_PERMISSIONS) or []),
        token=token,
    )


def store_sign_in(session, token: str, user: dict, permissions: List[str]) -> None:
    session.cycle_key()
    session[SESSION_TOKEN] = token
    session[SESSION_USER] = {
        'id': user.get('id'),
        'name': user.get('name') or user.get('first_name') or '',
        'email': user.get('email') or '',
        'role': (user.get('role') or {}).get('name', '') if isinstance(user.get('role'), dict) else (user.get('role') or ''),
    }
    session[SESSION_PERMISSIONS] = permissions


def clear_sign_in(session) -> None:
    session.flush()


def sign_in_url(next_path: str) -> str:
    return f"/sign-in?next={quote(next_path, safe='/')}"


class UpstreamSessionAuthentication(authentication.BaseAuthentication):
    """Authenticate DRF requests from the portal session.

    Returns ``None`` for visitors without a token so that public widgets
    can still be served under ``AllowAny``.
    """

    def authenticate(self, request):
        session = getattr(request._request, 'session', None)
        if session is None:
            return None
        user = user_from_session(session)
        if not user.is_authenticated:
            return None
        return user, user.token
