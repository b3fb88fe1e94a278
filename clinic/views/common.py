"""
Glue shared by the dashboard views.

Upstream reads go through :func:`fetch`, writes through :func:`submit`.
Both turn an :class:`ApiError` into a toast, except for 401 which is
re-raised so the middleware can end the session.
"""
from __future__ import annotations

from typing import Any, Callable, List, Optional

from django.shortcuts import render

from clinic.serializers.listing import list_query
from clinic.services.api import ApiError, pagination, rows
from clinic.services.feedback import report_failure, report_success
from clinic.services.listing import Action, Column, clean_filters, lookup, page_numbers, table_rows


def fetch(request, call: Callable[..., Any], *args, default: Any = None,
          message: str = 'Failed to load data', **kwargs) -> Any:
    try:
        return call(*args, **kwargs)
    except ApiError as exc:
        if exc.status == 401:
            raise
        report_failure(request, exc, message)
        return default


def submit(request, call: Callable[..., Any], *args, success: Optional[str] = None,
           message: str = 'Operation failed', **kwargs) -> bool:
    try:
        result = call(*args, **kwargs)
    except ApiError as exc:
        if exc.status == 401:
            raise
        report_failure(request, exc, message)
        return False
    # a 2xx body can still carry {"success": false, "message": ...}
    if isinstance(result, dict) and (result.get('success') is False or result.get('status') is False):
        report_failure(request, ApiError(result.get('message') or message), message)
        return False
    if success:
        report_success(request, success)
    return True


def list_params(request, allowed=('search', 'status'), per_page=None) -> dict:
    page, per_page, search, status = list_query(request.GET, per_page=per_page)
    extra = {k: request.GET.get(k) for k in allowed if k not in ('search', 'status')}
    return {
        'page': page,
        'per_page': per_page,
        **clean_filters({'search': search, 'status': status, **extra}, allowed),
    }


def querystring_without_page(request) -> str:
    query = request.GET.copy()
    query.pop('page', None)
    return query.urlencode()


def render_table(request, *, title: str, columns: List[Column], response: Any, params: dict,
                 actions: Optional[Callable[[dict], List[Action]]] = None,
                 template: str = 'clinic/dashboard/list.html', **extra) -> Any:
    paging = pagination(response, params.get('page', 1), params.get('per_page', 10))
    context = {
        'title': title,
        'columns': columns,
        'rows': table_rows(columns, rows(response), actions),
        'pagination': paging,
        'page_numbers': page_numbers(paging['current_page'], paging['last_page']),
        'querystring': querystring_without_page(request),
        'filters': params,
        'has_actions': actions is not None,
        **extra,
    }
    return render(request, template, context)


def doctor_choices(doctors) -> list:
    return [
        (str(d['id']), d.get('name') or lookup(d, 'user.name') or f"Doctor #{d['id']}")
        for d in doctors if d.get('id') is not None
    ]
