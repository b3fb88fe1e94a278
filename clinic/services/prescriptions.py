"""
Prescription form rules.

The doctor fills a diagnosis, optional advice and follow-up date, a list
of medicine rows and a list of lab tests.  Only presence is checked here;
everything else is left to the API.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

MEDICINE_FIELDS = ('medicine_name', 'dosage', 'frequency', 'duration', 'instructions')
REQUIRED_WITH_NAME = ('dosage', 'frequency', 'duration')
LAB_PRIORITIES = ('normal', 'urgent', 'stat')


def _text(value: Any) -> str:
    return str(value or '').strip()


def validate_prescription(diagnosis: str, medicines: List[dict]) -> Tuple[Dict[str, str], Dict[int, Dict[str, str]]]:
    """Return ``(errors, medicine_errors)``; both empty means the form may be sent.

    A medicine row without a name is ignored.  A named row needs a dosage,
    frequency and duration.
    """
    errors: Dict[str, str] = {}
    medicine_errors: Dict[int, Dict[str, str]] = {}

    if not _text(diagnosis):
        errors['diagnosis'] = 'Diagnosis is required'

    for index, row in enumerate(medicines):
        if not _text(row.get('medicine_name')):
            continue
        row_errors = {
            field: f'{field.capitalize()} is required when medicine name is provided'
            for field in REQUIRED_WITH_NAME
            if not _text(row.get(field))
        }
        if row_errors:
            medicine_errors[index] = row_errors

    return errors, medicine_errors


def blocking_message(errors: dict, medicine_errors: dict) -> str:
    count = len(errors) + len(medicine_errors)
    return f'Please fix {count} validation error(s) before saving the prescription'


def resolve_patient_id(appointment: dict) -> Optional[int]:
    return appointment.get('user_id') or appointment.get('patient_id') or None


def build_payload(appointment: dict, diagnosis: str, advice: str, follow_up_date: Optional[str],
                  medicines: List[dict], lab_tests: List[dict]) -> dict:
    return {
        'appointment_id': appointment.get('id'),
        'patient_id': resolve_patient_id(appointment),
        'doctor_id': appointment.get('doctor_id'),
        'diagnosis': _text(diagnosis),
        'advice': _text(advice),
        'follow_up_date': follow_up_date or None,
        'medicine_items': [
            {field: _text(row.get(field)) for field in MEDICINE_FIELDS}
            for row in medicines if _text(row.get('medicine_name'))
        ],
        'lab_tests': [
            {'test_name': _text(test.get('test_name')), 'priority': test.get('priority') or 'normal'}
            for test in lab_tests if _text(test.get('test_name'))
        ],
    }


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def success_message(payload: dict, appointment: dict) -> str:
    medicine_count = len(payload['medicine_items'])
    lab_count = len(payload['lab_tests'])
    patient = appointment.get('patientName') or appointment.get('patient_name') or 'Patient'

    message = f'Prescription created successfully for {patient}'
    if medicine_count:
        message += f" with {_plural(medicine_count, 'medicine')}"
    if lab_count:
        joiner = ' and' if medicine_count else ' with'
        message += f"{joiner} {_plural(lab_count, 'lab test')}"
    return message + '. Appointment marked as completed.'
