"""Appointment screens: list and calendar modes, CRUD, inline status change."""
import logging

from django.contrib import messages
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from clinic.forms.appointments import APPOINTMENT_STATUSES, AppointmentForm, StatusChangeForm
from clinic.forms.fields import choices_from
from clinic.permissions import permission_required
from clinic.serializers.calendar import CalendarQuerySerializer
from clinic.services.api import ApiError, record, rows
from clinic.services.calendar import group_by_date, local_today, month_bounds, month_context
from clinic.services.listing import Action, Column, lookup

from .common import doctor_choices, fetch, list_params, render_table, submit

logger = logging.getLogger(__name__)


def patient_name(appt):
    return (lookup(appt, 'patient.name') or lookup(appt, 'user.name')
            or appt.get('patientName') or appt.get('patient_name') or '-')


def doctor_name(appt):
    return lookup(appt, 'doctor.name') or lookup(appt, 'doctor.user.name') or appt.get('doctor_name') or '-'


COLUMNS = [
    Column('id', '#'),
    Column('patient', 'Patient', render=patient_name),
    Column('doctor', 'Doctor', render=doctor_name),
    Column('department', 'Department',
           render=lambda a: lookup(a, 'doctor.department.name') or lookup(a, 'original.doctor.department.name') or '-'),
    Column('appointment_date', 'Date', kind='date'),
    Column('appointment_time', 'Time'),
    Column('status', 'Status', kind='status_select'),
]


def row_actions(appt):
    pk = appt.get('id')
    actions = [
        Action('View', reverse('clinic:appointment_detail', args=[pk]), 'gray'),
        Action('Edit', reverse('clinic:appointment_edit', args=[pk])),
    ]
    if appt.get('status') != 'cancelled':
        actions.append(Action('Write prescription', reverse('clinic:prescription_create', args=[pk]), 'green'))
    actions.append(Action('Delete', reverse('clinic:appointment_delete', args=[pk]), 'red'))
    return actions


@permission_required('view-appointments')
def appointment_list(request):
    params = list_params(request, allowed=('search', 'status', 'doctor_id', 'date'))
    page = params.pop('page')
    response = fetch(request, request.api.get_appointments, page, params, default=[],
                     message='Failed to load appointments')
    params['page'] = page
    return render_table(
        request, title='Appointments', columns=COLUMNS, response=response, params=params,
        actions=row_actions, create_url=reverse('clinic:appointment_create'),
        status_choices=APPOINTMENT_STATUSES,
        modes=[('List', reverse('clinic:appointments'), True),
               ('Calendar', reverse('clinic:appointments_calendar'), False)],
    )


@permission_required('view-appointments')
def appointment_calendar(request):
    today = local_today()
    query = CalendarQuerySerializer(data={'year': request.GET.get('year', today.year),
                                          'month': request.GET.get('month', today.month)})
    if query.is_valid():
        year, month = query.validated_data['year'], query.validated_data['month']
    else:
        year, month = today.year, today.month
    start, end = month_bounds(year, month)
    response = fetch(request, request.api.get_appointments_by_date_range, start, end, default=[],
                     message='Failed to load appointments')
    context = month_context(year, month, today)
    context.update({
        'title': 'Appointments',
        'by_date': group_by_date(rows(response)),
        'day_url': reverse('clinic:appointment_create') + '?date=',
        'modes': [('List', reverse('clinic:appointments'), False),
                  ('Calendar', reverse('clinic:appointments_calendar'), True)],
    })
    return render(request, 'clinic/dashboard/appointment_calendar.html', context)


def _form_choices(request):
    patients = rows(fetch(request, request.api.get_patients, default=[], message='Failed to load patients'))
    doctors = rows(fetch(request, request.api.get_doctors, 1, 100, default=[], message='Failed to load doctors'))
    return {
        'patients': choices_from(patients),
        'doctors': doctor_choices(doctors),
    }


def _payload(form):
    data = dict(form.cleaned_data)
    data['appointment_date'] = data['appointment_date'].isoformat()
    data['appointment_time'] = data['appointment_time'].strftime('%H:%M')
    return data


@permission_required('view-appointments')
def appointment_create(request):
    initial = {}
    day = request.GET.get('date')
    if day:
        initial['appointment_date'] = day
    form = AppointmentForm(request.POST or None, initial=initial, **_form_choices(request))
    if request.method == 'POST' and form.is_valid():
        if submit(request, request.api.create_appointment, _payload(form),
                  success='Appointment created successfully', message='Failed to create appointment'):
            return redirect('clinic:appointments')
    return render(request, 'clinic/dashboard/form.html', {
        'title': 'New appointment', 'form': form, 'cancel_url': reverse('clinic:appointments'),
    })


@permission_required('view-appointments')
def appointment_edit(request, pk):
    appt = record(fetch(request, request.api.get_appointment, pk, default={}, message='Failed to load appointment'))
    if not appt:
        return redirect('clinic:appointments')
    initial = {
        'patient_id': appt.get('patient_id') or appt.get('user_id'),
        'doctor_id': appt.get('doctor_id'),
        'appointment_date': str(appt.get('appointment_date') or '')[:10],
        'appointment_time': str(appt.get('appointment_time') or '')[:5],
        'reason': appt.get('reason') or '',
        'status': appt.get('status') or 'pending',
    }
    form = AppointmentForm(request.POST or None, initial=initial, **_form_choices(request))
    if request.method == 'POST' and form.is_valid():
        if submit(request, request.api.update_appointment, pk, _payload(form),
                  success='Appointment updated successfully', message='Failed to update appointment'):
            return redirect('clinic:appointments')
    return render(request, 'clinic/dashboard/form.html', {
        'title': f'Edit appointment #{pk}', 'form': form, 'cancel_url': reverse('clinic:appointments'),
    })


@permission_required('view-appointments')
def appointment_detail(request, pk):
    appt = record(fetch(request, request.api.get_appointment, pk, default={}, message='Failed to load appointment'))
    if not appt:
        return redirect('clinic:appointments')
    fields = [
        ('Patient', patient_name(appt)),
        ('Doctor', doctor_name(appt)),
        ('Department', lookup(appt, 'doctor.department.name') or '-'),
        ('Date', appt.get('appointment_date')),
        ('Time', appt.get('appointment_time')),
        ('Reason', appt.get('reason') or '-'),
    ]
    actions = row_actions(appt)[1:]
    if appt.get('status') == 'completed':
        rx = _existing_prescription(request, pk)
        if rx.get('id'):
            actions.insert(0, Action('View prescription', reverse('clinic:prescription_detail', args=[rx['id']]),
                                     'green'))
    return render(request, 'clinic/dashboard/detail.html', {
        'title': f'Appointment #{pk}', 'fields': fields, 'status': appt.get('status'),
        'back_url': reverse('clinic:appointments'),
        'actions': actions,
    })


def _existing_prescription(request, pk):
    # 404 just means none was written yet
    try:
        return record(request.api.get_prescription_by_appointment(pk))
    except ApiError as exc:
        if exc.status == 401:
            raise
        logger.info('no prescription for appointment %s: %s', pk, exc)
        return {}


@permission_required('view-appointments')
def appointment_delete(request, pk):
    if request.method == 'POST':
        submit(request, request.api.delete_appointment, pk,
               success='Appointment deleted successfully', message='Failed to delete appointment')
        return redirect('clinic:appointments')
    return render(request, 'clinic/dashboard/confirm_delete.html', {
        'title': 'Delete appointment', 'subject': f'appointment #{pk}',
        'cancel_url': reverse('clinic:appointments'),
    })


@require_POST
@permission_required('view-appointments')
def appointment_status(request, pk):
    """Inline status change; the list is re-fetched either way."""
    form = StatusChangeForm(request.POST)
    if form.is_valid():
        status = form.cleaned_data['status']
        submit(request, request.api.update_appointment, pk, {'status': status},
               success=f'Appointment marked as {status}', message='Failed to update appointment status')
    else:
        messages.error(request, 'Please choose a valid status')
    back = request.POST.get('next')
    if back and url_has_allowed_host_and_scheme(back, allowed_hosts={request.get_host()}):
        return redirect(back)
    return redirect('clinic:appointments')
