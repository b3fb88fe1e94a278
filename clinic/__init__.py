"""Hospital portal application.

This package contains the views, forms, serializers and services that
render the admin dashboard and the public site on top of the remote
hospital API.
"""
