"""
HTTP client for the remote hospital API.

Every screen of the portal reads and writes its records through
:class:`ApiService`.  The client owns the bearer token handling, the
query-string rules (empty filters are dropped) and the shaping of error
responses into :class:`ApiError`, whose message carries the status code
so callers can classify failures from the text alone.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A failed call to the remote API."""

    def __init__(self, message: str, status: Optional[int] = None, errors: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.errors = errors or {}

    def __str__(self) -> str:
        return self.message


def clean_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop ``None`` and empty-string values; booleans become ``'true'``/``'false'``."""
    out: Dict[str, Any] = {}
    for key, value in (params or {}).items():
        if value is None or value == '':
            continue
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        out[key] = value
    return out


def _validation_messages(errors: Any) -> List[str]:
    if not isinstance(errors, dict):
        return []
    messages: List[str] = []
    for value in errors.values():
        items = value if isinstance(value, (list, tuple)) else [value]
        messages.extend(m for m in items if isinstance(m, str))
    return messages


def rows(response: Any) -> List[dict]:
    """Return the record list from a raw list, ``{data: [...]}`` or a paginator."""
    if isinstance(response, list):
        return response
    if not isinstance(response, dict):
        return []
    data = response.get('data')
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get('data'), list):
        return data['data']
    return []


def record(response: Any) -> dict:
    """Return a single record from ``{data: {...}}`` or a bare dict."""
    if isinstance(response, dict):
        data = response.get('data')
        if isinstance(data, dict):
            return data
        return response
    return {}


def pagination(response: Any, page: int = 1, per_page: int = 10) -> dict:
    """Derive paging metadata from whatever the API returned."""
    meta: dict = {}
    if isinstance(response, dict):
        meta = response
        data = response.get('data')
        if isinstance(data, dict) and 'last_page' in data:
            meta = data
        elif isinstance(response.get('meta'), dict):
            meta = response['meta']
    items = rows(response)
    total = int(meta.get('total') or len(items))
    per_page = int(meta.get('per_page') or per_page)
    last_page = int(meta.get('last_page') or max(1, -(-total // per_page) if per_page else 1))
    current = int(meta.get('current_page') or page)
    return {
        'current_page': current,
        'last_page': last_page,
        'total': total,
        'per_page': per_page,
        'has_previous': current > 1,
        'has_next': current < last_page,
    }


def is_success(response: Any) -> bool:
    if isinstance(response, list):
        return True
    if not isinstance(response, dict):
        return False
    return bool(response.get('success') or response.get('status'))


class ApiService:
    """Admin-side client for the hospital API."""

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None,
                 timeout: Optional[int] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or settings.HMS_API_BASE_URL).rstrip('/')
        self.token = token
        self.timeout = timeout or settings.HMS_API_TIMEOUT
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _headers(self, *, json_body: bool) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        if json_body:
            headers['Content-Type'] = 'application/json'
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    def request(self, method: str, endpoint: str, *, params: Optional[dict] = None,
                json: Any = None, data: Optional[dict] = None, files: Optional[dict] = None) -> Any:
        url = f'{self.base_url}{endpoint}'
        try:
            resp = self.session.request(
                method, url,
                params=clean_params(params),
                json=json if files is None and data is None else None,
                data=data,
                files=files,
                headers=self._headers(json_body=files is None and data is None),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning('%s %s failed: %s', method, endpoint, exc)
            raise ApiError(f'Network error: {exc}') from exc

        if resp.status_code == 204:
            return {'success': True}
        content_type = resp.headers.get('content-type', '')
        if 'application/json' not in content_type:
            text = (resp.text or '').strip()
            logger.warning('%s %s returned non-JSON (%s)', method, endpoint, resp.status_code)
            raise ApiError(text or 'An error occurred', status=resp.status_code)

        try:
            body = resp.json()
        except ValueError as exc:
            logger.warning('%s %s returned malformed JSON (%s)', method, endpoint, resp.status_code)
            raise ApiError((resp.text or '').strip() or 'An error occurred', status=resp.status_code) from exc
        if not resp.ok:
            message = 'An error occurred'
            errors: dict = {}
            if isinstance(body, dict):
                message = body.get('message') or body.get('error') or message
                errors = body.get('errors') if isinstance(body.get('errors'), dict) else {}
                extra = ' '.join(_validation_messages(errors))
                if extra:
                    message = f'{message} {extra}'
            logger.info('%s %s -> %s: %s', method, endpoint, resp.status_code, message)
            raise ApiError(f'{resp.status_code}: {message}', status=resp.status_code, errors=errors)
        return body

    def get(self, endpoint: str, params: Optional[dict] = None) -> Any:
        return self.request('GET', endpoint, params=params)

    def post(self, endpoint: str, payload: Any = None) -> Any:
        return self.request('POST', endpoint, json=payload)

    def put(self, endpoint: str, payload: Any = None) -> Any:
        return self.request('PUT', endpoint, json=payload)

    def patch(self, endpoint: str, payload: Any = None) -> Any:
        return self.request('PATCH', endpoint, json=payload)

    def delete(self, endpoint: str) -> Any:
        return self.request('DELETE', endpoint)

    def upload(self, endpoint: str, fields: dict, files: Optional[dict] = None, *, method_override: Optional[str] = None) -> Any:
        """Multipart POST; ``method_override`` adds Laravel's ``_method`` field."""
        data = {k: v for k, v in fields.items() if v is not None}
        if method_override:
            data['_method'] = method_override
        return self.request('POST', endpoint, data=data, files=files or {})

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    def login(self, email: str, password: str) -> dict:
        resp = self.post('/login', {'email': email, 'password': password})
        if not (isinstance(resp, dict) and resp.get('status') and resp.get('token')):
            message = resp.get('message') if isinstance(resp, dict) else None
            raise ApiError(message or 'Login failed')
        self.token = resp['token']
        return resp

    def logout(self) -> Any:
        return self.post('/logout')

    def get_profile(self) -> Any:
        return self.get('/profile')

    def get_current_user_permissions(self) -> List[str]:
        resp = self.get('/user/permissions')
        if isinstance(resp, dict):
            perms = resp.get('permissions', resp.get('data'))
        else:
            perms = resp
        return [p for p in (perms or []) if isinstance(p, str)]

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------
    def get_dashboard_stats(self) -> Any:
        return self.get('/dashboard/stats')

    # ------------------------------------------------------------------
    # Doctors & departments
    # ------------------------------------------------------------------
    def get_doctors(self, page: int = 1, per_page: int = 10, filters: Optional[dict] = None) -> Any:
        return self.get('/doctors', {'page': page, 'per_page': per_page, **(filters or {})})

    def get_doctor(self, doctor_id: int) -> Any:
        return self.get(f'/doctors/{doctor_id}')

    def delete_doctor(self, doctor_id: int) -> Any:
        return self.delete(f'/doctors/{doctor_id}')

    def get_departments(self, page: int = 1, per_page: int = 100, filters: Optional[dict] = None) -> Any:
        return self.get('/departments', {'page': page, 'per_page': per_page, **(filters or {})})

    def get_patients(self, page: int = 1, per_page: int = 100, search: Optional[str] = None) -> Any:
        return self.get('/patients', {'page': page, 'per_page': per_page, 'search': search})

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------
    def get_appointments(self, page: int = 1, params: Optional[dict] = None) -> Any:
        return self.get('/appointments', {'page': page, **(params or {})})

    def get_appointments_by_date_range(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> Any:
        return self.get('/appointments', {'per_page': 1000, 'start_date': start_date, 'end_date': end_date})

    def get_appointment(self, appointment_id: int) -> Any:
        return self.get(f'/appointments/{appointment_id}')

    def create_appointment(self, payload: dict) -> Any:
        return self.post('/appointments', payload)

    def update_appointment(self, appointment_id: int, payload: dict) -> Any:
        return self.put(f'/appointments/{appointment_id}', payload)

    def delete_appointment(self, appointment_id: int) -> Any:
        return self.delete(f'/appointments/{appointment_id}')

    # ------------------------------------------------------------------
    # Prescriptions
    # ------------------------------------------------------------------
    def get_prescriptions(self, page: int = 1, per_page: int = 10, filters: Optional[dict] = None) -> Any:
        return self.get('/prescriptions', {'page': page, 'per_page': per_page, **(filters or {})})

    def get_prescription(self, prescription_id: int) -> Any:
        return self.get(f'/prescriptions/{prescription_id}')

    def get_prescription_by_appointment(self, appointment_id: int) -> Any:
        return self.get(f'/prescriptions/appointment/{appointment_id}')

    def create_prescription(self, payload: dict) -> Any:
        return self.post('/prescriptions', payload)

    # ------------------------------------------------------------------
    # Pharmacy
    # ------------------------------------------------------------------
    def get_pharmacy_prescriptions(self, params: Optional[dict] = None) -> Any:
        return self.get('/pharmacy/prescriptions', params)

    def get_pharmacy_prescription_details(self, prescription_id: int) -> Any:
        return self.get(f'/pharmacy/prescriptions/{prescription_id}')

    def dispense_prescription(self, prescription_id: int, payload: dict) -> Any:
        return self.post(f'/pharmacy/prescriptions/{prescription_id}/dispense', payload)

    def get_medicines(self, params: Optional[dict] = None) -> Any:
        return self.get('/pharmacy/medicines', params)

    def get_medicine(self, medicine_id: int) -> Any:
        return self.get(f'/pharmacy/medicines/{medicine_id}')

    def create_medicine(self, payload: dict) -> Any:
        return self.post('/pharmacy/medicines', payload)

    def update_medicine(self, medicine_id: int, payload: dict) -> Any:
        return self.put(f'/pharmacy/medicines/{medicine_id}', payload)

    def delete_medicine(self, medicine_id: int) -> Any:
        return self.delete(f'/pharmacy/medicines/{medicine_id}')

    def restock_medicine(self, medicine_id: int, payload: dict) -> Any:
        return self.post(f'/pharmacy/medicines/{medicine_id}/restock', payload)

    def get_low_stock_alerts(self, params: Optional[dict] = None) -> Any:
        return self.get('/pharmacy/low-stock-alerts', params)

    def get_dispensing_history(self, params: Optional[dict] = None) -> Any:
        return self.get('/pharmacy/dispensing-history', params)

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------
    def get_inventory_statistics(self) -> Any:
        return self.get('/inventory/statistics')

    def get_inventory_items(self, params: Optional[dict] = None) -> Any:
        return self.get('/inventory/items', params)

    def get_inventory_item(self, item_id: int) -> Any:
        return self.get(f'/inventory/items/{item_id}')

    def create_inventory_item(self, payload: dict) -> Any:
        return self.post('/inventory/items', payload)

    def update_inventory_item(self, item_id: int, payload: dict) -> Any:
        return self.put(f'/inventory/items/{item_id}', payload)

    def delete_inventory_item(self, item_id: int) -> Any:
        return self.delete(f'/inventory/items/{item_id}')

    def get_inventory_categories(self) -> Any:
        return self.get('/inventory/categories')

    def get_inventory_requests(self, params: Optional[dict] = None) -> Any:
        return self.get('/inventory/requests', params)

    def update_inventory_request_status(self, request_id: int, status: str) -> Any:
        return self.put(f'/inventory/requests/{request_id}/status', {'status': status})

    def create_inventory_issue(self, payload: dict) -> Any:
        return self.post('/inventory/issues', payload)

    # ------------------------------------------------------------------
    # Rooms, beds & admissions
    # ------------------------------------------------------------------
    def get_room_types(self) -> Any:
        return self.get('/room-types')

    def get_rooms(self, params: Optional[dict] = None) -> Any:
        return self.get('/rooms', params)

    def get_room(self, room_id: int) -> Any:
        return self.get(f'/rooms/{room_id}')

    def create_room(self, payload: dict) -> Any:
        return self.post('/rooms', payload)

    def update_room(self, room_id: int, payload: dict) -> Any:
        return self.put(f'/rooms/{room_id}', payload)

    def delete_room(self, room_id: int) -> Any:
        return self.delete(f'/rooms/{room_id}')

    def get_beds(self, params: Optional[dict] = None) -> Any:
        return self.get('/beds', params)

    def create_bed(self, payload: dict) -> Any:
        return self.post('/beds', payload)

    def update_bed(self, bed_id: int, payload: dict) -> Any:
        return self.put(f'/beds/{bed_id}', payload)

    def delete_bed(self, bed_id: int) -> Any:
        return self.delete(f'/beds/{bed_id}')

    def get_admissions(self, params: Optional[dict] = None) -> Any:
        return self.get('/admissions', params)

    def get_admission(self, admission_id: int) -> Any:
        return self.get(f'/admissions/{admission_id}')

    def admit_patient(self, payload: dict) -> Any:
        return self.post('/admissions', payload)

    def process_admission(self, admission_id: int, payload: dict) -> Any:
        return self.post(f'/admissions/{admission_id}/admit', payload)

    def discharge_patient(self, admission_id: int, payload: dict) -> Any:
        return self.post(f'/admissions/{admission_id}/discharge', payload)

    # ------------------------------------------------------------------
    # Gallery
    # ------------------------------------------------------------------
    def get_gallery_images(self, params: Optional[dict] = None) -> Any:
        return self.get('/galleries', params)

    def get_gallery_image(self, image_id: int) -> Any:
        return self.get(f'/galleries/{image_id}')

    def get_gallery_categories(self) -> Any:
        return self.get('/gallery-categories')

    def create_gallery_image(self, fields: dict, files: Optional[dict] = None) -> Any:
        return self.upload('/galleries', fields, files)

    def update_gallery_image(self, image_id: int, fields: dict, files: Optional[dict] = None) -> Any:
        return self.upload(f'/galleries/{image_id}', fields, files, method_override='PUT')

    def delete_gallery_image(self, image_id: int) -> Any:
        return self.delete(f'/galleries/{image_id}')


def api_for_request(request) -> ApiService:
    """Return a client bound to the token kept in the visitor's session."""
    token = None
    session = getattr(request, 'session', None)
    if session is not None:
        token = session.get('api_token')
    return ApiService(token=token)


__all__ = [
    'ApiError',
    'ApiService',
    'api_for_request',
    'clean_params',
    'is_success',
    'pagination',
    'record',
    'rows',
]
