from django.shortcuts import render

from clinic.permissions import permission_required
from clinic.services.api import record

from .common import fetch

STAT_CARDS = [
    ('total_patients', 'Patients'),
    ('total_doctors', 'Doctors'),
    ('total_appointments', 'Appointments'),
    ('today_appointments', 'Today'),
    ('pending_appointments', 'Pending'),
    ('total_revenue', 'Revenue'),
]


@permission_required('view-dashboard')
def home(request):
    data = record(fetch(request, request.api.get_dashboard_stats, default={}, message='Failed to load dashboard'))
    cards = [{'key': key, 'label': label, 'value': data.get(key) or 0} for key, label in STAT_CARDS]
    recent = data.get('recent_appointments') or []
    return render(request, 'clinic/dashboard/home.html', {'cards': cards, 'recent': recent})
