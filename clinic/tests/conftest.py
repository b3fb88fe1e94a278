import json as _json

import pytest
from django.core.cache import cache

from clinic.authentication import SESSION_PERMISSIONS, SESSION_TOKEN, SESSION_USER

ALL_PERMISSIONS = [
    'view-dashboard',
    'view-appointments',
    'view-prescriptions',
    'view-doctors',
    'view-pharmacy',
    'view-medicines',
    'view-inventory',
    'view-rooms',
    'view-gallery',
]


class FakeResponse:
    """Just enough of ``requests.Response`` for ApiService."""

    def __init__(self, status_code=200, body=None, content_type='application/json', text=None):
        self.status_code = status_code
        self._body = body
        self.headers = {'content-type': content_type}
        self.text = text if text is not None else (_json.dumps(body) if body is not None else '')

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._body


class FakeSession:
    """Records every call and answers from a queue of responses (or raises)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append({'method': method, 'url': url, **kwargs})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


def _store(client, permissions, token):
    session = client.session
    session[SESSION_TOKEN] = token
    session[SESSION_USER] = {'id': 1, 'name': 'Ada Admin', 'email': 'admin@example.com', 'role': 'admin'}
    session[SESSION_PERMISSIONS] = list(permissions)
    session.save()
    return client


@pytest.fixture
def sign_in(client):
    def _sign_in(permissions=ALL_PERMISSIONS, token='tok-123'):
        return _store(client, permissions, token)
    return _sign_in

