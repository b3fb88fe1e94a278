"""Dashboard side navigation and the landing page after sign-in."""
from __future__ import annotations

from typing import List, Optional

from django.urls import reverse

# (label, url name, permission slug or None)
DASHBOARD_PAGES = [
    ('Dashboard', 'clinic:home', 'view-dashboard'),
    ('Appointments', 'clinic:appointments', 'view-appointments'),
    ('Prescriptions', 'clinic:prescriptions', 'view-prescriptions'),
    ('Doctors', 'clinic:doctors', 'view-doctors'),
    ('Pharmacy', 'clinic:pharmacy', 'view-pharmacy'),
    ('Medicines', 'clinic:medicines', 'view-medicines'),
    ('Inventory', 'clinic:inventory', 'view-inventory'),
    ('Rooms & Beds', 'clinic:rooms', 'view-rooms'),
    ('Gallery', 'clinic:gallery', 'view-gallery'),
    ('Profile', 'clinic:profile', None),
]


def visible_pages(permissions: List[str]) -> List[dict]:
    return [
        {'label': label, 'url': reverse(name), 'name': name}
        for label, name, slug in DASHBOARD_PAGES
        if slug is None or slug in permissions
    ]


def first_accessible_url(permissions: List[str]) -> Optional[str]:
    """First page in navigation order that ``permissions`` can open.

    Pages without a requirement count as accessible, but a user with no
    permissions at all has nowhere to land.
    """
    if not permissions:
        return None
    for _, name, slug in DASHBOARD_PAGES:
        if slug is None or slug in permissions:
            return reverse(name)
    return None
