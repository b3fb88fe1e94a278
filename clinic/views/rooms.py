"""Rooms, beds and patient admissions."""
from django.contrib import messages
from django.shortcuts import redirect, render
from django.urls import reverse

from clinic.forms.fields import choices_from
from clinic.forms.rooms import AdmitPatientForm, BedForm, DischargeForm, ProcessAdmissionForm, RoomForm
from clinic.permissions import permission_required
from clinic.services.api import record, rows
from clinic.services.calendar import local_today, parse_date
from clinic.services.listing import Action, Column, lookup

from .common import doctor_choices, fetch, list_params, render_table, submit

ROOM_COLUMNS = [
    Column('room_number', 'Room'),
    Column('room_type', 'Type', render=lambda r: lookup(r, 'room_type.name') or '-'),
    Column('floor', 'Floor'),
    Column('beds', 'Beds', render=lambda r: r.get('beds_count') if r.get('beds_count') is not None else len(r.get('beds') or [])),
    Column('status', 'Status', kind='status'),
]

BED_COLUMNS = [
    Column('bed_number', 'Bed'),
    Column('room', 'Room', render=lambda b: lookup(b, 'room.room_number') or b.get('room_id')),
    Column('status', 'Status', kind='status'),
]

ADMISSION_COLUMNS = [
    Column('id', '#'),
    Column('patient', 'Patient', render=lambda a: lookup(a, 'patient.name') or lookup(a, 'user.name') or '-'),
    Column('room', 'Room', render=lambda a: lookup(a, 'room.room_number') or lookup(a, 'bed.room.room_number') or '-'),
    Column('bed', 'Bed', render=lambda a: lookup(a, 'bed.bed_number') or '-'),
    Column('admission_date', 'Admitted', kind='date'),
    Column('discharge_date', 'Discharged', kind='date'),
    Column('status', 'Status', kind='status'),
]


def _tabs(active):
    return [
        ('rooms', 'Rooms', active == 'rooms', reverse('clinic:rooms')),
        ('admissions', 'Admissions', active == 'admissions', reverse('clinic:admissions')),
    ]


def room_actions(room):
    pk = room.get('id')
    return [
        Action('Beds', reverse('clinic:beds', args=[pk]), 'gray'),
        Action('Edit', reverse('clinic:room_edit', args=[pk])),
        Action('Delete', reverse('clinic:room_delete', args=[pk]), 'red'),
    ]


def bed_actions(bed):
    pk = bed.get('id')
    return [
        Action('Edit', reverse('clinic:bed_edit', args=[pk])),
        Action('Delete', reverse('clinic:bed_delete', args=[pk]) + f"?room={bed.get('room_id') or ''}", 'red'),
    ]


def admission_actions(admission):
    pk = admission.get('id')
    status = str(admission.get('status') or '').lower()
    if status == 'pending':
        return [Action('Process', reverse('clinic:admission_process', args=[pk]), 'green')]
    if status == 'admitted':
        return [Action('Discharge', reverse('clinic:admission_discharge', args=[pk]), 'orange')]
    return []


@permission_required('view-rooms')
def room_list(request):
    params = list_params(request, allowed=('search', 'status', 'room_type_id'))
    response = fetch(request, request.api.get_rooms, params, default=[], message='Failed to load rooms')
    return render_table(request, title='Rooms & Beds', columns=ROOM_COLUMNS, response=response, params=params,
                        actions=room_actions, create_url=reverse('clinic:room_create'), link_tabs=_tabs('rooms'))


def _room_types(request):
    return choices_from(rows(fetch(request, request.api.get_room_types, default=[],
                                   message='Failed to load room types')))


def _room_form_page(request, title, form):
    return render(request, 'clinic/dashboard/form.html', {
        'title': title, 'form': form, 'cancel_url': reverse('clinic:rooms'),
    })


@permission_required('view-rooms')
def room_create(request):
    form = RoomForm(request.POST or None, room_types=_room_types(request))
    if request.method == 'POST' and form.is_valid():
        if submit(request, request.api.create_room, form.cleaned_data,
                  success='Room created successfully', message='Failed to create room'):
            return redirect('clinic:rooms')
    return _room_form_page(request, 'Add room', form)


@permission_required('view-rooms')
def room_edit(request, pk):
    room = record(fetch(request, request.api.get_room, pk, default={}, message='Failed to load room'))
    if not room:
        return redirect('clinic:rooms')
    initial = {name: room.get(name) for name in RoomForm.base_fields}
    initial['room_type_id'] = room.get('room_type_id') or lookup(room, 'room_type.id')
    form = RoomForm(request.POST or None, initial=initial, room_types=_room_types(request))
    if request.method == 'POST' and form.is_valid():
        if submit(request, request.api.update_room, pk, form.cleaned_data,
                  success='Room updated successfully', message='Failed to update room'):
            return redirect('clinic:rooms')
    return _room_form_page(request, f"Edit room {room.get('room_number') or pk}", form)


@permission_required('view-rooms')
def room_delete(request, pk):
    if request.method == 'POST':
        submit(request, request.api.delete_room, pk,
               success='Room deleted successfully', message='Failed to delete room')
        return redirect('clinic:rooms')
    return render(request, 'clinic/dashboard/confirm_delete.html', {
        'title': 'Delete room', 'subject': f'room #{pk}', 'cancel_url': reverse('clinic:rooms'),
    })


@permission_required('view-rooms')
def bed_list(request, room_id):
    room = record(fetch(request, request.api.get_room, room_id, default={}, message='Failed to load room'))
    params = list_params(request)
    response = fetch(request, request.api.get_beds, {**params, 'room_id': room_id}, default=[],
                     message='Failed to load beds')
    return render_table(request, title=f"Beds in room {room.get('room_number') or room_id}", columns=BED_COLUMNS,
                        response=response, params=params, actions=bed_actions,
                        create_url=reverse('clinic:bed_create') + f'?room={room_id}',
                        back_url=reverse('clinic:rooms'))


def _room_choices(request, **params):
    rooms = rows(fetch(request, request.api.get_rooms, {'per_page': 1000, **params}, default=[],
                       message='Failed to load rooms'))
    return choices_from(rooms, label_key='room_number')


@permission_required('view-rooms')
def bed_create(request):
    room_id = request.GET.get('room')
    form = BedForm(request.POST or None, initial={'room_id': room_id}, rooms=_room_choices(request))
    if request.method == 'POST' and form.is_valid():
        if submit(request, request.api.create_bed, form.cleaned_data,
                  success='Bed created successfully', message='Failed to create bed'):
            return redirect('clinic:beds', form.cleaned_data['room_id'])
    return render(request, 'clinic/dashboard/form.html', {
        'title': 'Add bed', 'form': form,
        'cancel_url': reverse('clinic:beds', args=[room_id]) if room_id else reverse('clinic:rooms'),
    })


@permission_required('view-rooms')
def bed_edit(request, pk):
    beds = rows(fetch(request, request.api.get_beds, {'id': pk}, default=[], message='Failed to load bed'))
    bed = next((b for b in beds if str(b.get('id')) == str(pk)), None)
    if bed is None:
        messages.error(request, 'Bed not found')
        return redirect('clinic:rooms')
    form = BedForm(request.POST or None, initial={
        'room_id': bed.get('room_id'), 'bed_number': bed.get('bed_number'), 'status': bed.get('status'),
    }, rooms=_room_choices(request))
    if request.method == 'POST' and form.is_valid():
        if submit(request, request.api.update_bed, pk, form.cleaned_data,
                  success='Bed updated successfully', message='Failed to update bed'):
            return redirect('clinic:beds', form.cleaned_data['room_id'])
    return render(request, 'clinic/dashboard/form.html', {
        'title': f"Edit bed {bed.get('bed_number') or pk}", 'form': form,
        'cancel_url': reverse('clinic:beds', args=[bed.get('room_id')]) if bed.get('room_id') else reverse('clinic:rooms'),
    })


@permission_required('view-rooms')
def bed_delete(request, pk):
    back = request.GET.get('room')
    target = reverse('clinic:beds', args=[back]) if back else reverse('clinic:rooms')
    if request.method == 'POST':
        submit(request, request.api.delete_bed, pk,
               success='Bed deleted successfully', message='Failed to delete bed')
        return redirect(target)
    return render(request, 'clinic/dashboard/confirm_delete.html', {
        'title': 'Delete bed', 'subject': f'bed #{pk}', 'cancel_url': target,
    })


@permission_required('view-rooms')
def admission_list(request):
    params = list_params(request)
    response = fetch(request, request.api.get_admissions, params, default=[], message='Failed to load admissions')
    return render_table(request, title='Admissions', columns=ADMISSION_COLUMNS, response=response, params=params,
                        actions=admission_actions, create_url=reverse('clinic:admit'),
                        link_tabs=_tabs('admissions'))


@permission_required('view-rooms')
def admit(request):
    patients = rows(fetch(request, request.api.get_patients, default=[], message='Failed to load patients'))
    doctors = rows(fetch(request, request.api.get_doctors, 1, 100, default=[], message='Failed to load doctors'))
    form = AdmitPatientForm(request.POST or None, initial={'admission_date': local_today()},
                            patients=choices_from(patients), doctors=doctor_choices(doctors))
    if request.method == 'POST' and form.is_valid():
        payload = dict(form.cleaned_data)
        payload['admission_date'] = payload['admission_date'].isoformat()
        if submit(request, request.api.admit_patient, payload,
                  success='Patient admitted successfully', message='Failed to admit patient'):
            return redirect('clinic:admissions')
    return render(request, 'clinic/dashboard/form.html', {
        'title': 'Admit patient', 'form': form, 'cancel_url': reverse('clinic:admissions'),
    })


@permission_required('view-rooms')
def process_admission(request, pk):
    """Assign a room, then one of the room's available beds.

    The bed list depends on the room, so the page is re-rendered with
    ``?room=<id>`` when the room changes.
    """
    admission = record(fetch(request, request.api.get_admission, pk, default={}, message='Failed to load admission'))
    if not admission:
        return redirect('clinic:admissions')
    room_id = request.POST.get('room_id') or request.GET.get('room')
    beds = []
    if room_id:
        beds = rows(fetch(request, request.api.get_beds, {'room_id': room_id, 'status': 'available'}, default=[],
                          message='Failed to load beds'))
        beds = [b for b in beds if str(b.get('status') or 'available').lower() == 'available']
    form = ProcessAdmissionForm(
        request.POST or None,
        initial={'room_id': room_id, 'admission_date': str(admission.get('admission_date') or '')[:10] or local_today()},
        rooms=_room_choices(request, status='active'),
        beds=choices_from(beds, label_key='bed_number'),
    )
    if request.method == 'POST' and form.is_valid():
        payload = dict(form.cleaned_data)
        payload['admission_date'] = payload['admission_date'].isoformat()
        if submit(request, request.api.process_admission, pk, payload,
                  success='Admission processed successfully', message='Failed to process admission'):
            return redirect('clinic:admissions')
    return render(request, 'clinic/dashboard/form.html', {
        'title': f'Process admission #{pk}', 'form': form, 'cancel_url': reverse('clinic:admissions'),
        'refresh_on': 'room_id',
    })


@permission_required('view-rooms')
def discharge(request, pk):
    admission = record(fetch(request, request.api.get_admission, pk, default={}, message='Failed to load admission'))
    if not admission:
        return redirect('clinic:admissions')
    form = DischargeForm(request.POST or None, initial={'discharge_date': local_today()},
                         admitted_on=parse_date(admission.get('admission_date')))
    if request.method == 'POST' and form.is_valid():
        if submit(request, request.api.discharge_patient, pk,
                  {'discharge_date': form.cleaned_data['discharge_date'].isoformat()},
                  success='Patient discharged successfully', message='Failed to discharge patient'):
            return redirect('clinic:admissions')
    return render(request, 'clinic/dashboard/form.html', {
        'title': f'Discharge admission #{pk}', 'form': form, 'cancel_url': reverse('clinic:admissions'),
    })
