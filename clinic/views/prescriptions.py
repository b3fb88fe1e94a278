from django.contrib import messages
from django.shortcuts import redirect, render
from django.urls import reverse

from clinic.forms.prescriptions import LabTestFormSet, MedicineRowFormSet, PrescriptionForm, collect
from clinic.permissions import permission_required
from clinic.services.api import record
from clinic.services.listing import Action, Column
from clinic.services.prescriptions import blocking_message, build_payload, resolve_patient_id, success_message

from .appointments import doctor_name, patient_name
from .common import fetch, list_params, render_table, submit

COLUMNS = [
    Column('id', '#'),
    Column('patient', 'Patient', render=patient_name),
    Column('doctor', 'Doctor', render=doctor_name),
    Column('diagnosis', 'Diagnosis'),
    Column('follow_up_date', 'Follow-up', kind='date'),
    Column('status', 'Status', kind='status'),
    Column('created_at', 'Created', kind='date'),
]


def row_actions(rx):
    return [Action('View', reverse('clinic:prescription_detail', args=[rx.get('id')]), 'gray')]


@permission_required('view-prescriptions')
def prescription_list(request):
    params = list_params(request)
    page, per_page = params.pop('page'), params.pop('per_page')
    response = fetch(request, request.api.get_prescriptions, page, per_page, params, default=[],
                     message='Failed to load prescriptions')
    return render_table(request, title='Prescriptions', columns=COLUMNS, response=response,
                        params={'page': page, 'per_page': per_page, **params}, actions=row_actions)


@permission_required('view-prescriptions')
def prescription_detail(request, pk):
    rx = record(fetch(request, request.api.get_prescription, pk, default={}, message='Failed to load prescription'))
    if not rx:
        return redirect('clinic:prescriptions')
    return render(request, 'clinic/dashboard/prescription_detail.html', {
        'title': f'Prescription #{pk}',
        'prescription': rx,
        'patient': patient_name(rx),
        'doctor': doctor_name(rx),
        'medicines': rx.get('medicine_items') or rx.get('items') or [],
        'lab_tests': rx.get('lab_tests') or [],
    })


@permission_required('view-prescriptions')
def prescription_create(request, appointment_id):
    """Write a prescription for an appointment.

    Medicine and lab test rows are formsets; a row without a name is
    ignored, a named medicine needs dosage, frequency and duration.
    """
    appt = record(fetch(request, request.api.get_appointment, appointment_id, default={},
                        message='Failed to load appointment'))
    if not appt:
        return redirect('clinic:appointments')
    appt.setdefault('patientName', patient_name(appt))

    data = request.POST if request.method == 'POST' else None
    form = PrescriptionForm(data)
    medicines = MedicineRowFormSet(data, prefix='medicines')
    lab_tests = LabTestFormSet(data, prefix='labs')

    if request.method == 'POST':
        ok, errors, medicine_errors, medicine_rows, lab_rows = collect(form, medicines, lab_tests)
        if not ok:
            messages.error(request, blocking_message(errors, medicine_errors) if (errors or medicine_errors)
                           else 'Please check the form for errors')
        elif not resolve_patient_id(appt):
            messages.error(request, 'Patient information is missing from this appointment')
        else:
            cleaned = form.cleaned_data
            follow_up = cleaned.get('follow_up_date')
            payload = build_payload(appt, cleaned.get('diagnosis'), cleaned.get('advice'),
                                    follow_up.isoformat() if follow_up else None,
                                    medicine_rows, lab_rows)
            if submit(request, request.api.create_prescription, payload,
                      success=success_message(payload, appt), message='Failed to create prescription'):
                return redirect('clinic:appointments')

    return render(request, 'clinic/dashboard/prescription_form.html', {
        'title': 'Write prescription',
        'appointment': appt,
        'patient': appt['patientName'],
        'doctor': doctor_name(appt),
        'form': form,
        'medicines': medicines,
        'lab_tests': lab_tests,
        'cancel_url': reverse('clinic:appointments'),
    })
