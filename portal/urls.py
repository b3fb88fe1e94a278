"""
URL configuration for the portal project.

The dashboard, the public site and the JSON widgets all come from the
``clinic`` app.  OpenAPI documentation for the widgets is exposed at
``/swagger/`` and ``/redoc/``.
"""
from django.urls import path, include

from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

# API metadata for Swagger/OpenAPI documentation
api_info = openapi.Info(
    title="HMS Portal widgets",
    default_version='v1',
    description="JSON helpers used by the portal's calendar and dispense screens.",
)

schema_view = get_schema_view(
    api_info,
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('', include('clinic.routers')),
    # Prometheus exposes /metrics
    path('', include('django_prometheus.urls')),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]
