"""
Page-level tests for the dashboard and the public site.

Every upstream call is replaced with ``monkeypatch`` on the API client
classes, so no network access happens.
"""
from datetime import timedelta

from django.contrib.messages import get_messages
from django.core.cache import cache
from django.utils import timezone

from clinic.authentication import SESSION_TOKEN
from clinic.services.api import ApiError, ApiService
from clinic.services.feedback import ACCESS_MESSAGE, SERVER_MESSAGE
from clinic.services.public_api import PublicApi


def toasts(response):
    return [str(m) for m in get_messages(response.wsgi_request)]


APPOINTMENT = {
    'id': 7, 'user_id': 3, 'doctor_id': 2, 'status': 'pending',
    'appointment_date': '2026-10-20', 'appointment_time': '10:30:00',
    'patient': {'name': 'Jane Doe'}, 'doctor': {'name': 'Dr. House', 'department': {'name': 'Diagnostics'}},
}


def test_dashboard_requires_sign_in(client):
    resp = client.get('/dashboard/appointments')
    assert resp.status_code == 302
    assert resp['Location'] == '/sign-in?next=/dashboard/appointments'


def test_missing_permission_redirects_to_first_accessible_page(sign_in):
    client = sign_in(permissions=['view-pharmacy', 'view-gallery'])
    resp = client.get('/dashboard/appointments')
    assert resp.status_code == 302
    assert resp['Location'] == '/dashboard/pharmacy'
    assert "You don't have permission to view that page" in toasts(resp)


def test_user_without_permissions_lands_on_profile(sign_in):
    client = sign_in(permissions=[])
    resp = client.get('/dashboard')
    assert resp['Location'] == '/dashboard/profile'


def test_sign_in_stores_token_and_lands_on_first_page(client, monkeypatch):
    def fake_login(self, email, password):
        self.token = 'fresh'
        return {'status': True, 'token': 'fresh', 'user': {'id': 5, 'name': 'Nurse Joy', 'email': email}}

    monkeypatch.setattr(ApiService, 'login', fake_login)
    monkeypatch.setattr(ApiService, 'get_current_user_permissions', lambda self: ['view-rooms'])
    resp = client.post('/sign-in', {'email': 'joy@example.com', 'password': 'pw'})
    assert resp.status_code == 302
    assert resp['Location'] == '/dashboard/rooms'
    assert client.session[SESSION_TOKEN] == 'fresh'


def test_sign_in_failure_shows_message(client, monkeypatch):
    def fake_login(self, email, password):
        raise ApiError('Invalid credentials', status=None)

    monkeypatch.setattr(ApiService, 'login', fake_login)
    resp = client.post('/sign-in', {'email': 'joy@example.com', 'password': 'bad'})
    assert resp.status_code == 200
    assert b'Error: Invalid credentials' in resp.content
    assert SESSION_TOKEN not in client.session


def test_sign_out_flushes_session_even_if_upstream_fails(sign_in, monkeypatch):
    client = sign_in()

    def boom(self):
        raise ApiError('Network error: down')

    monkeypatch.setattr(ApiService, 'logout', boom)
    resp = client.post('/sign-out')
    assert resp['Location'] == '/sign-in'
    assert SESSION_TOKEN not in client.session


def test_expired_token_ends_session(sign_in, monkeypatch):
    client = sign_in()

    def expired(self, page=1, params=None):
        raise ApiError('401: Unauthenticated.', status=401)

    monkeypatch.setattr(ApiService, 'get_appointments', expired)
    resp = client.get('/dashboard/appointments')
    assert resp.status_code == 302
    assert resp['Location'].startswith('/sign-in')
    assert SESSION_TOKEN not in client.session
    assert ACCESS_MESSAGE in toasts(resp)


def test_home_falls_back_to_zeros(sign_in, monkeypatch):
    client = sign_in()

    def down(self):
        raise ApiError('500: Server Error', status=500)

    monkeypatch.setattr(ApiService, 'get_dashboard_stats', down)
    resp = client.get('/dashboard')
    assert resp.status_code == 200
    assert [c['value'] for c in resp.context['cards']] == [0] * 6
    assert SERVER_MESSAGE.encode() in resp.content


def test_appointment_list_renders_rows(sign_in, monkeypatch):
    client = sign_in()
    seen = {}

    def fake(self, page=1, params=None):
        seen.update(page=page, params=params)
        return {'data': {'data': [APPOINTMENT], 'current_page': 1, 'last_page': 1, 'total': 1, 'per_page': 10}}

    monkeypatch.setattr(ApiService, 'get_appointments', fake)
    resp = client.get('/dashboard/appointments?status=pending&search=&page=1')
    assert resp.status_code == 200
    assert seen['params'] == {'per_page': 10, 'status': 'pending'}
    assert b'Jane Doe' in resp.content
    assert b'Diagnostics' in resp.content
    assert b'/dashboard/appointments/7/prescription' in resp.content


def test_status_change_failure_toasts_and_refetches(sign_in, monkeypatch):
    client = sign_in()

    def fail(self, pk, payload):
        raise ApiError('500: Server Error', status=500)

    monkeypatch.setattr(ApiService, 'update_appointment', fail)
    resp = client.post('/dashboard/appointments/7/status', {'status': 'confirmed', 'next': '/dashboard/appointments?page=2'})
    assert resp.status_code == 302
    assert resp['Location'] == '/dashboard/appointments?page=2'
    assert SERVER_MESSAGE in toasts(resp)


def test_status_change_success(sign_in, monkeypatch):
    client = sign_in()
    sent = {}
    monkeypatch.setattr(ApiService, 'update_appointment', lambda self, pk, payload: sent.update(pk=pk, **payload))
    resp = client.post('/dashboard/appointments/7/status', {'status': 'completed'})
    assert sent == {'pk': 7, 'status': 'completed'}
    assert 'Appointment marked as completed' in toasts(resp)


def test_status_change_refused_in_body_is_a_failure(sign_in, monkeypatch):
    client = sign_in()
    monkeypatch.setattr(ApiService, 'update_appointment',
                        lambda self, pk, payload: {'success': False, 'message': 'Slot already taken'})
    resp = client.post('/dashboard/appointments/7/status', {'status': 'confirmed'})
    messages_ = toasts(resp)
    assert 'Error: Slot already taken' in messages_
    assert 'Appointment marked as confirmed' not in messages_


def test_status_change_ignores_offsite_next(sign_in, monkeypatch):
    client = sign_in()
    monkeypatch.setattr(ApiService, 'update_appointment', lambda self, pk, payload: {'success': True})
    for target in ('//evil.example/x', 'https://evil.example/x', '/\\evil.example'):
        resp = client.post('/dashboard/appointments/7/status', {'status': 'completed', 'next': target})
        assert resp.status_code == 302
        assert resp['Location'] == '/dashboard/appointments'


def test_sign_in_redirect_encodes_next(client):
    resp = client.get('/dashboard/a&b')
    assert resp.status_code == 302
    assert resp['Location'] == '/sign-in?next=/dashboard/a%26b'


def test_appointment_calendar_groups_by_day(sign_in, monkeypatch):
    client = sign_in()
    seen = {}

    def fake(self, start_date=None, end_date=None):
        seen.update(start=start_date, end=end_date)
        return [APPOINTMENT]

    monkeypatch.setattr(ApiService, 'get_appointments_by_date_range', fake)
    resp = client.get('/dashboard/appointments/calendar?year=2026&month=10')
    assert resp.status_code == 200
    assert seen == {'start': '2026-10-01', 'end': '2026-10-31'}
    assert [a['id'] for a in resp.context['by_date']['2026-10-20']] == [7]


def _prescription_post(**extra):
    data = {
        'diagnosis': 'Flu',
        'advice': 'Rest',
        'follow_up_date': '',
        'medicines-TOTAL_FORMS': '1', 'medicines-INITIAL_FORMS': '0',
        'medicines-MIN_NUM_FORMS': '0', 'medicines-MAX_NUM_FORMS': '1000',
        'medicines-0-medicine_name': 'Paracetamol',
        'medicines-0-dosage': '500mg',
        'medicines-0-frequency': 'tid',
        'medicines-0-duration': '3 days',
        'labs-TOTAL_FORMS': '1', 'labs-INITIAL_FORMS': '0',
        'labs-MIN_NUM_FORMS': '0', 'labs-MAX_NUM_FORMS': '1000',
        'labs-0-test_name': 'CBC',
        'labs-0-priority': 'urgent',
    }
    data.update(extra)
    return data


def test_prescription_blocked_when_invalid(sign_in, monkeypatch):
    client = sign_in()
    monkeypatch.setattr(ApiService, 'get_appointment', lambda self, pk: {'data': APPOINTMENT})
    created = []
    monkeypatch.setattr(ApiService, 'create_prescription', lambda self, payload: created.append(payload))
    resp = client.post('/dashboard/appointments/7/prescription',
                       _prescription_post(**{'diagnosis': ' ', 'medicines-0-dosage': ''}))
    assert resp.status_code == 200
    assert created == []
    assert b'Please fix 2 validation error(s) before saving the prescription' in resp.content
    assert b'Dosage is required when medicine name is provided' in resp.content


def test_prescription_created(sign_in, monkeypatch):
    client = sign_in()
    monkeypatch.setattr(ApiService, 'get_appointment', lambda self, pk: {'data': APPOINTMENT})
    created = []
    monkeypatch.setattr(ApiService, 'create_prescription', lambda self, payload: created.append(payload))
    resp = client.post('/dashboard/appointments/7/prescription', _prescription_post())
    assert resp.status_code == 302
    assert resp['Location'] == '/dashboard/appointments'
    (payload,) = created
    assert payload['patient_id'] == 3
    assert payload['medicine_items'][0]['medicine_name'] == 'Paracetamol'
    assert payload['lab_tests'] == [{'test_name': 'CBC', 'priority': 'urgent'}]
    assert ('Prescription created successfully for Jane Doe with 1 medicine and 1 lab test. '
            'Appointment marked as completed.') in toasts(resp)


def test_prescription_needs_patient(sign_in, monkeypatch):
    client = sign_in()
    appt = {k: v for k, v in APPOINTMENT.items() if k != 'user_id'}
    monkeypatch.setattr(ApiService, 'get_appointment', lambda self, pk: {'data': appt})
    monkeypatch.setattr(ApiService, 'create_prescription', lambda self, payload: None)
    resp = client.post('/dashboard/appointments/7/prescription', _prescription_post())
    assert resp.status_code == 200
    assert b'Patient information is missing' in resp.content


DETAILS = {'data': {
    'id': 9, 'patient': {'name': 'Jane Doe'},
    'items': [
        {'id': 1, 'medicine_name': 'Paracetamol', 'quantity': 10},
        {'id': 2, 'medicine_name': 'Rare tonic', 'quantity': 2},
    ],
}}
CATALOG = {'data': [{'id': 5, 'name': 'paracetamol', 'selling_price': '2.50', 'current_stock': 100}]}


def _patch_pharmacy(monkeypatch):
    monkeypatch.setattr(ApiService, 'get_pharmacy_prescription_details', lambda self, pk: DETAILS)
    monkeypatch.setattr(ApiService, 'get_medicines', lambda self, params=None: CATALOG)


def test_dispense_page_prefills_lines(sign_in, monkeypatch):
    client = sign_in()
    _patch_pharmacy(monkeypatch)
    resp = client.get('/dashboard/pharmacy/9/dispense')
    assert resp.status_code == 200
    first, second = [item['line'] for item in resp.context['lines']]
    assert (first.disposition, first.medicine_id, first.quantity_to_dispense) == ('from_stock', 5, 10)
    assert second.disposition == 'manual_entry'
    assert str(resp.context['total']) == '25.00'


def _dispense_post(**lines):
    data = {'lines-TOTAL_FORMS': '2', 'lines-INITIAL_FORMS': '2',
            'lines-MIN_NUM_FORMS': '0', 'lines-MAX_NUM_FORMS': '1000'}
    for key, value in lines.items():
        data[f'lines-{key}'] = value
    return data


def test_dispense_submits_items(sign_in, monkeypatch):
    client = sign_in()
    _patch_pharmacy(monkeypatch)
    sent = []
    monkeypatch.setattr(ApiService, 'dispense_prescription', lambda self, pk, payload: sent.append((pk, payload)))
    resp = client.post('/dashboard/pharmacy/9/dispense', _dispense_post(**{
        '0-prescription_item_id': '1', '0-disposition': 'from_stock', '0-quantity_to_dispense': '10',
        '0-medicine_id': '5',
        '1-prescription_item_id': '2', '1-disposition': 'external_purchase', '1-quantity_to_dispense': '2',
    }))
    assert resp.status_code == 302
    assert sent == [(9, {'items': [
        {'prescription_item_id': 1, 'dispense_type': 'from_stock', 'quantity_dispensed': 10,
         'medicine_id': 5, 'unit_price': '2.50'},
        {'prescription_item_id': 2, 'dispense_type': 'external_purchase', 'quantity_dispensed': 0},
    ]})]
    assert 'Medicines dispensed successfully. Total: 25.00' in toasts(resp)


def test_dispense_override_needs_reason(sign_in, monkeypatch):
    client = sign_in()
    _patch_pharmacy(monkeypatch)
    sent = []
    monkeypatch.setattr(ApiService, 'dispense_prescription', lambda self, pk, payload: sent.append(payload))
    resp = client.post('/dashboard/pharmacy/9/dispense', _dispense_post(**{
        '0-prescription_item_id': '1', '0-disposition': 'stock_override', '0-quantity_to_dispense': '200',
        '0-medicine_id': '5',
        '1-prescription_item_id': '2', '1-disposition': 'manual_entry', '1-quantity_to_dispense': '0',
    }))
    assert resp.status_code == 200
    assert sent == []
    assert b'A reason is required' in resp.content
    assert b'Please fix 1 medicine line(s) before dispensing' in resp.content


def test_dispense_nothing_selected(sign_in, monkeypatch):
    client = sign_in()
    _patch_pharmacy(monkeypatch)
    resp = client.post('/dashboard/pharmacy/9/dispense', _dispense_post(**{
        '0-prescription_item_id': '1', '0-disposition': 'from_stock', '0-quantity_to_dispense': '0',
        '1-prescription_item_id': '2', '1-disposition': 'manual_entry', '1-quantity_to_dispense': '0',
    }))
    assert resp.status_code == 200
    assert b'Enter a quantity or choose a dispense option' in resp.content


def test_inventory_request_actions_follow_status(sign_in, monkeypatch):
    client = sign_in()
    requests_ = {'data': [
        {'id': 1, 'status': 'pending', 'item': {'name': 'Gloves'}},
        {'id': 2, 'status': 'approved', 'item': {'name': 'Masks'}},
        {'id': 3, 'status': 'rejected', 'item': {'name': 'Gowns'}},
    ]}
    monkeypatch.setattr(ApiService, 'get_inventory_requests', lambda self, params=None: requests_)
    resp = client.get('/dashboard/inventory/requests')
    labels = [[a.label for a in row['actions']] for row in resp.context['rows']]
    assert labels == [['Approve', 'Reject'], ['Issue stock'], []]

    sent = {}
    monkeypatch.setattr(ApiService, 'update_inventory_request_status',
                        lambda self, pk, status: sent.update(pk=pk, status=status))
    resp = client.post('/dashboard/inventory/requests/1/approve')
    assert sent == {'pk': 1, 'status': 'approved'}
    assert resp['Location'] == '/dashboard/inventory/requests'


def test_discharge_before_admission_rejected(sign_in, monkeypatch):
    client = sign_in()
    monkeypatch.setattr(ApiService, 'get_admission',
                        lambda self, pk: {'data': {'id': 4, 'status': 'admitted', 'admission_date': '2026-10-10'}})
    called = []
    monkeypatch.setattr(ApiService, 'discharge_patient', lambda self, pk, payload: called.append(payload))
    resp = client.post('/dashboard/admissions/4/discharge', {'discharge_date': '2026-10-01'})
    assert resp.status_code == 200
    assert called == []
    resp = client.post('/dashboard/admissions/4/discharge', {'discharge_date': '2026-10-12'})
    assert called == [{'discharge_date': '2026-10-12'}]


def test_public_doctor_list_is_cached(client, monkeypatch):
    calls = []

    def doctors(self, page=1, per_page=12, filters=None):
        calls.append((page, filters))
        return {'data': [{'id': 1, 'name': 'Dr. Who', 'specialization': 'Time'}]}

    monkeypatch.setattr(PublicApi, 'get_doctors', doctors)
    monkeypatch.setattr(PublicApi, 'get_departments', lambda self, *a, **kw: {'data': [{'id': 2, 'name': 'ER'}]})
    for _ in range(2):
        resp = client.get('/doctors?department=2')
        assert resp.status_code == 200
        assert b'Dr. Who' in resp.content
    assert calls == [(1, {'department_id': 2})]


def test_public_failure_is_not_cached(client, monkeypatch):
    def down(self, page=1, per_page=12, filters=None):
        raise ApiError('Network error: timeout')

    monkeypatch.setattr(PublicApi, 'get_doctors', down)
    monkeypatch.setattr(PublicApi, 'get_departments', lambda self, *a, **kw: [])
    resp = client.get('/doctors')
    assert resp.status_code == 200
    assert cache.get('public:doctors:p=1:dep=') is None


def test_review_submission(client, monkeypatch):
    monkeypatch.setattr(PublicApi, 'get_doctor_profile', lambda self, pk: {'data': {'id': pk, 'name': 'Dr. Who'}})
    monkeypatch.setattr(PublicApi, 'get_doctor_reviews', lambda self, pk: {'data': []})
    sent = []
    monkeypatch.setattr(PublicApi, 'submit_review', lambda self, payload: sent.append(payload))
    resp = client.post('/doctors/4', {'rating': '6', 'comment': 'Great'})
    assert resp.status_code == 200 and sent == []
    resp = client.post('/doctors/4', {'rating': '5', 'comment': '<script>x</script>Great'})
    assert resp.status_code == 302
    assert sent == [{'doctor_id': 4, 'rating': 5, 'comment': 'xGreat'}]


def _booking(day, **extra):
    data = {'name': 'Jane', 'email': 'jane@example.com', 'phone': '555-0100',
            'appointment_date': day.isoformat(), 'hour': '02', 'minute': '30', 'meridiem': 'PM'}
    data.update(extra)
    return data


def _patch_booking(monkeypatch):
    monkeypatch.setattr(PublicApi, 'get_doctors', lambda self, *a, **kw: {'data': [{'id': 1, 'name': 'Dr. Who'}]})
    monkeypatch.setattr(PublicApi, 'get_departments', lambda self, *a, **kw: [])


def test_booking_rejects_past_dates(client, monkeypatch):
    _patch_booking(monkeypatch)
    booked = []
    monkeypatch.setattr(PublicApi, 'book_appointment', lambda self, payload: booked.append(payload))
    yesterday = timezone.localdate() - timedelta(days=1)
    resp = client.post('/appointment', _booking(yesterday))
    assert resp.status_code == 200
    assert booked == []
    assert b'Please choose today or a future date' in resp.content


def test_booking_converts_time(client, monkeypatch):
    _patch_booking(monkeypatch)
    booked = []
    monkeypatch.setattr(PublicApi, 'book_appointment', lambda self, payload: booked.append(payload))
    today = timezone.localdate()
    resp = client.post('/appointment', _booking(today, doctor_id='1'))
    assert resp.status_code == 302
    (payload,) = booked
    assert payload['appointment_time'] == '14:30'
    assert payload['doctor_id'] == 1
    assert payload['appointment_date'] == today.isoformat()


def test_booking_page_ignores_past_selection(client, monkeypatch):
    _patch_booking(monkeypatch)
    yesterday = timezone.localdate() - timedelta(days=1)
    resp = client.get(f'/appointment?date={yesterday.isoformat()}')
    assert resp.status_code == 200
    assert resp.context['selected'] == ''


def test_healthz_reports_unreachable_upstream(client, monkeypatch):
    def down(self, endpoint, params=None):
        raise ApiError('Network error: refused')

    monkeypatch.setattr(ApiService, 'get', down)
    resp = client.get('/healthz')
    assert resp.status_code == 503
    assert resp.json()['upstream'] is False


def test_healthz_counts_http_errors_as_reachable(client, monkeypatch):
    def not_found(self, endpoint, params=None):
        raise ApiError('404: Not found', status=404)

    monkeypatch.setattr(ApiService, 'get', not_found)
    resp = client.get('/healthz')
    assert resp.status_code == 200
    assert resp.json()['upstream'] is True


def test_completed_appointment_links_its_prescription(sign_in, monkeypatch):
    client = sign_in()
    done = dict(APPOINTMENT, status='completed')
    monkeypatch.setattr(ApiService, 'get_appointment', lambda self, pk: {'data': done})
    monkeypatch.setattr(ApiService, 'get_prescription_by_appointment', lambda self, pk: {'data': {'id': 31}})
    resp = client.get('/dashboard/appointments/7')
    assert resp.status_code == 200
    assert b'/dashboard/prescriptions/31' in resp.content

    def missing(self, pk):
        raise ApiError('404: Not found', status=404)

    monkeypatch.setattr(ApiService, 'get_prescription_by_appointment', missing)
    resp = client.get('/dashboard/appointments/7')
    assert resp.status_code == 200
    assert b'/dashboard/prescriptions/' not in resp.content


def test_invalid_dispense_form_keeps_catalog_prices(sign_in, monkeypatch):
    client = sign_in()
    _patch_pharmacy(monkeypatch)
    sent = []
    monkeypatch.setattr(ApiService, 'dispense_prescription', lambda self, pk, payload: sent.append(payload))
    resp = client.post('/dashboard/pharmacy/9/dispense', _dispense_post(**{
        '0-prescription_item_id': '1', '0-disposition': 'from_stock', '0-quantity_to_dispense': '4',
        '0-medicine_id': '5',
        '1-prescription_item_id': '2', '1-disposition': 'not_dispensed', '1-quantity_to_dispense': '0',
        '1-manual_unit_price': 'abc',
    }))
    assert resp.status_code == 200
    assert sent == []
    assert 'Please check the dispense form for errors' in toasts(resp)
    first = resp.context['lines'][0]['line']
    assert str(first.selling_price) == '2.50'
    assert str(resp.context['total']) == '10.00'
