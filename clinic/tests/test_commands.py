from io import StringIO

import pytest
from django.core.cache import cache
from django.core.management import CommandError, call_command

from clinic.services import site_cache
from clinic.services.api import ApiError
from clinic.services.public_api import PublicApi


def down(self, *a, **kw):
    raise ApiError('Network error: refused')


@pytest.fixture
def public_lists(monkeypatch):
    monkeypatch.setattr(PublicApi, 'get_departments', lambda self, *a, **kw: {'data': [{'id': 1}]})
    monkeypatch.setattr(PublicApi, 'get_doctors', lambda self, *a, **kw: {'data': [{'id': 2}]})
    monkeypatch.setattr(PublicApi, 'get_galleries', lambda self, *a, **kw: {'data': []})
    monkeypatch.setattr(PublicApi, 'get_gallery_categories', lambda self: {'data': []})
    monkeypatch.setattr(PublicApi, 'get_plans', lambda self: {'data': [{'id': 3}]})
    return monkeypatch


def test_warm_public_cache_fills_every_list(public_lists):
    out = StringIO()
    call_command('warm_public_cache', stdout=out)
    assert 'Refreshed 5 keys' in out.getvalue()
    assert cache.get(site_cache.doctors_key()) == {'data': [{'id': 2}]}
    assert cache.get(site_cache.plans_key()) == {'data': [{'id': 3}]}


def test_warm_public_cache_keeps_going_past_a_failure(public_lists):
    public_lists.setattr(PublicApi, 'get_departments', down)
    out, err = StringIO(), StringIO()
    call_command('warm_public_cache', stdout=out, stderr=err)
    assert 'Refreshed 4 keys' in out.getvalue()
    assert '(1 failed)' in out.getvalue()
    assert site_cache.departments_key() in err.getvalue()
    assert cache.get(site_cache.departments_key()) is None
    assert cache.get(site_cache.plans_key()) == {'data': [{'id': 3}]}


def test_warm_public_cache_fails_when_every_list_fails(public_lists):
    for name in ('get_departments', 'get_doctors', 'get_galleries', 'get_gallery_categories', 'get_plans'):
        public_lists.setattr(PublicApi, name, down)
    with pytest.raises(CommandError, match='Failed to warm public cache'):
        call_command('warm_public_cache', stdout=StringIO(), stderr=StringIO())


def test_warm_returns_written_and_failed_keys(public_lists):
    public_lists.setattr(PublicApi, 'get_plans', down)
    written, failed = site_cache.warm(PublicApi())
    assert failed == [site_cache.plans_key()]
    assert len(written) == 4
