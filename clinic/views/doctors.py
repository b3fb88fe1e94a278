from django.shortcuts import redirect, render
from django.urls import reverse

from clinic.forms.fields import choices_from
from clinic.permissions import permission_required
from clinic.services.api import record, rows
from clinic.services.listing import Action, Column, lookup

from .common import fetch, list_params, render_table, submit


def doctor_label(doc):
    return doc.get('name') or lookup(doc, 'user.name') or '-'


COLUMNS = [
    Column('name', 'Name', render=doctor_label),
    Column('department', 'Department', render=lambda d: lookup(d, 'department.name') or '-'),
    Column('specialization', 'Specialization'),
    Column('phone', 'Phone', render=lambda d: d.get('phone') or lookup(d, 'user.phone') or '-'),
    Column('status', 'Status', kind='status'),
]


def row_actions(doc):
    pk = doc.get('id')
    return [
        Action('View', reverse('clinic:doctor_detail', args=[pk]), 'gray'),
        Action('Delete', reverse('clinic:doctor_delete', args=[pk]), 'red'),
    ]


@permission_required('view-doctors')
def doctor_list(request):
    params = list_params(request, allowed=('search', 'status', 'department_id'))
    page, per_page = params.pop('page'), params.pop('per_page')
    response = fetch(request, request.api.get_doctors, page, per_page, params, default=[],
                     message='Failed to load doctors')
    departments = rows(fetch(request, request.api.get_departments, default=[], message='Failed to load departments'))
    return render_table(request, title='Doctors', columns=COLUMNS, response=response,
                        params={'page': page, 'per_page': per_page, **params}, actions=row_actions,
                        department_choices=choices_from(departments))


@permission_required('view-doctors')
def doctor_detail(request, pk):
    doc = record(fetch(request, request.api.get_doctor, pk, default={}, message='Failed to load doctor'))
    if not doc:
        return redirect('clinic:doctors')
    fields = [
        ('Name', doctor_label(doc)),
        ('Email', doc.get('email') or lookup(doc, 'user.email') or '-'),
        ('Department', lookup(doc, 'department.name') or '-'),
        ('Specialization', doc.get('specialization') or '-'),
        ('Qualification', doc.get('qualification') or '-'),
        ('Experience', doc.get('experience') or '-'),
        ('Consultation fee', doc.get('consultation_fee') or '-'),
    ]
    return render(request, 'clinic/dashboard/detail.html', {
        'title': doctor_label(doc), 'fields': fields, 'status': doc.get('status'),
        'back_url': reverse('clinic:doctors'), 'actions': row_actions(doc)[1:],
    })


@permission_required('view-doctors')
def doctor_delete(request, pk):
    if request.method == 'POST':
        submit(request, request.api.delete_doctor, pk,
               success='Doctor deleted successfully', message='Failed to delete doctor')
        return redirect('clinic:doctors')
    return render(request, 'clinic/dashboard/confirm_delete.html', {
        'title': 'Delete doctor', 'subject': f'doctor #{pk}', 'cancel_url': reverse('clinic:doctors'),
    })
