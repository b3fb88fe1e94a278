"""Public (unauthenticated) endpoints used by the marketing and booking site."""
from __future__ import annotations

from typing import Any, Optional

from .api import ApiService


class PublicApi(ApiService):

    def get_departments(self, page: int = 1, per_page: int = 100, filters: Optional[dict] = None) -> Any:
        return self.get('/public/departments', {'page': page, 'per_page': per_page, **(filters or {})})

    def get_department(self, department_id: int) -> Any:
        return self.get(f'/public/departments/{department_id}')

    def get_doctors(self, page: int = 1, per_page: int = 12, filters: Optional[dict] = None) -> Any:
        return self.get('/public/doctors', {'page': page, 'per_page': per_page, **(filters or {})})

    def get_doctor_profile(self, doctor_id: int) -> Any:
        return self.get(f'/public/doctors/{doctor_id}/profile')

    def get_doctors_by_department(self, department_id: int) -> Any:
        return self.get(f'/public/doctors/department/{department_id}')

    def get_doctor_reviews(self, doctor_id: int) -> Any:
        return self.get(f'/public/doctors/{doctor_id}/reviews')

    def submit_review(self, payload: dict) -> Any:
        return self.post('/doctor-reviews', payload)

    def book_appointment(self, payload: dict) -> Any:
        return self.post('/public/appointments', payload)

    def get_available_time_slots(self, doctor_id: int, date: str) -> Any:
        return self.get(f'/public/doctors/{doctor_id}/available-slots', {'date': date})

    def get_galleries(self, params: Optional[dict] = None) -> Any:
        return self.get('/public/galleries', params)

    def get_gallery_categories(self) -> Any:
        return self.get('/public/gallery-categories')

    def get_plans(self) -> Any:
        return self.get('/public/subscription-packages')

    def get_plan(self, plan_id: int) -> Any:
        return self.get(f'/public/subscription-packages/{plan_id}')

    def subscribe(self, payload: dict) -> Any:
        return self.post('/subscriptions', payload)


def public_api_for_request(request) -> PublicApi:
    token = None
    session = getattr(request, 'session', None)
    if session is not None:
        token = session.get('api_token')
    return PublicApi(token=token)
