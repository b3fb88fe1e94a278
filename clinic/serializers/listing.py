from django.conf import settings
from rest_framework import serializers


class ListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1)
    per_page = serializers.IntegerField(required=False, min_value=1, max_value=100)
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    status = serializers.CharField(required=False, allow_blank=True, max_length=32)


def list_query(query_params, *, per_page=None):
    """Return ``(page, per_page, search, status)`` from a query string.

    Bad values fall back to defaults instead of failing the page.
    """
    default_per_page = per_page or settings.DEFAULT_PER_PAGE
    q = ListQuerySerializer(data={k: query_params.get(k) for k in ('page', 'per_page', 'search', 'status') if query_params.get(k)})
    if not q.is_valid():
        valid = {k: v for k, v in q.initial_data.items() if k not in q.errors}
        q = ListQuerySerializer(data=valid)
        q.is_valid()
    data = q.validated_data
    return (
        data.get('page') or 1,
        data.get('per_page') or default_per_page,
        (data.get('search') or '').strip(),
        (data.get('status') or '').strip(),
    )
