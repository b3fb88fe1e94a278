"""
Pharmacy screens.

The landing page is tabbed (pending prescriptions, medicines, low-stock
alerts, dispensing history).  Dispensing a prescription happens on its
own page, one formset row per prescribed medicine.
"""
import logging
from dataclasses import asdict

from django.contrib import messages
from django.shortcuts import redirect, render
from django.urls import reverse

from clinic.forms.fields import choices_from
from clinic.forms.pharmacy import DispenseFormSet, MedicineForm, RestockForm
from clinic.permissions import permission_required
from clinic.services.api import record, rows
from clinic.services.listing import Action, Column, lookup
from clinic.services.pharmacy import (
    DispenseError,
    DispenseLine,
    apply_catalog,
    dispense_total,
    initial_lines,
    prepare_dispense,
    stock_warning,
)

from .appointments import doctor_name, patient_name
from .common import fetch, list_params, render_table, submit

logger = logging.getLogger(__name__)

TABS = [
    ('pending', 'Pending prescriptions'),
    ('medicines', 'Medicines'),
    ('low_stock', 'Low stock'),
    ('history', 'Dispensing history'),
]

PENDING_COLUMNS = [
    Column('id', '#'),
    Column('patient', 'Patient', render=patient_name),
    Column('doctor', 'Doctor', render=doctor_name),
    Column('items', 'Medicines', render=lambda rx: len(rx.get('items') or rx.get('medicine_items') or [])),
    Column('created_at', 'Prescribed', kind='date'),
    Column('status', 'Status', kind='status'),
]

MEDICINE_COLUMNS = [
    Column('name', 'Name'),
    Column('generic_name', 'Generic'),
    Column('category', 'Category'),
    Column('current_stock', 'Stock'),
    Column('min_stock_level', 'Min'),
    Column('selling_price', 'Price', kind='money'),
    Column('expiry_date', 'Expiry', kind='date'),
    Column('status', 'Status', kind='status'),
]

LOW_STOCK_COLUMNS = [
    Column('name', 'Name', render=lambda m: m.get('name') or lookup(m, 'medicine.name')),
    Column('current_stock', 'Stock'),
    Column('min_stock_level', 'Min'),
    Column('stock_status', 'Level', kind='status',
           render=lambda m: m.get('stock_status') or ('out_of_stock' if not m.get('current_stock') else 'low_stock')),
]

HISTORY_COLUMNS = [
    Column('dispensed_at', 'Date', kind='date', render=lambda h: h.get('dispensed_at') or h.get('created_at')),
    Column('prescription_id', 'Prescription'),
    Column('medicine', 'Medicine',
           render=lambda h: lookup(h, 'medicine.name') or h.get('manual_medicine_name')
           or h.get('alternative_medicine_name') or '-'),
    Column('dispense_type', 'Disposition', kind='status'),
    Column('quantity_dispensed', 'Qty'),
    Column('total_price', 'Total', kind='money'),
    Column('dispensed_by', 'By', render=lambda h: lookup(h, 'dispensed_by.name') or '-'),
]


def pending_actions(rx):
    return [Action('Dispense', reverse('clinic:dispense', args=[rx.get('id')]), 'green')]


def medicine_actions(med):
    pk = med.get('id')
    return [
        Action('Restock', reverse('clinic:medicine_restock', args=[pk]), 'green'),
        Action('Edit', reverse('clinic:medicine_edit', args=[pk])),
        Action('Delete', reverse('clinic:medicine_delete', args=[pk]), 'red'),
    ]


@permission_required('view-pharmacy')
def pharmacy(request):
    tab = request.GET.get('tab') or 'pending'
    if tab not in dict(TABS):
        tab = 'pending'
    params = list_params(request)
    api = request.api
    if tab == 'medicines':
        response = fetch(request, api.get_medicines, params, default=[], message='Failed to load medicines')
        columns, actions = MEDICINE_COLUMNS, medicine_actions
    elif tab == 'low_stock':
        response = fetch(request, api.get_low_stock_alerts, params, default=[], message='Failed to load low stock alerts')
        columns, actions = LOW_STOCK_COLUMNS, medicine_actions
    elif tab == 'history':
        response = fetch(request, api.get_dispensing_history, params, default=[],
                         message='Failed to load dispensing history')
        columns, actions = HISTORY_COLUMNS, None
    else:
        response = fetch(request, api.get_pharmacy_prescriptions, {**params, 'status': params.get('status') or 'pending'},
                         default=[], message='Failed to load pending prescriptions')
        columns, actions = PENDING_COLUMNS, pending_actions
    return render_table(
        request, title='Pharmacy', columns=columns, response=response, params=params, actions=actions,
        tabs=[(key, label, key == tab) for key, label in TABS], tab=tab,
        create_url=reverse('clinic:medicine_create') if tab == 'medicines' else None,
    )


@permission_required('view-pharmacy')
def dispense(request, pk):
    details = record(fetch(request, request.api.get_pharmacy_prescription_details, pk, default={},
                           message='Failed to load prescription details'))
    if not details:
        return redirect(reverse('clinic:pharmacy'))
    catalog = rows(fetch(request, request.api.get_medicines, {'per_page': 1000, 'status': 'active'},
                         default=[], message='Failed to load medicines'))
    medicine_choices = choices_from(catalog)

    if request.method == 'POST':
        formset = DispenseFormSet(request.POST, prefix='lines', medicine_choices=medicine_choices)
        if formset.is_valid():
            lines = [apply_catalog(DispenseLine.from_dict(f.cleaned_data), catalog) for f in formset.forms]
            try:
                payload, total = prepare_dispense(lines)
            except DispenseError as exc:
                for index, line_errors in exc.errors.items():
                    for field, message in line_errors.items():
                        formset.forms[index].add_error(field if field in formset.forms[index].fields else None, message)
                messages.error(request, str(exc))
            else:
                if submit(request, request.api.dispense_prescription, pk, payload,
                          success=f'Medicines dispensed successfully. Total: {total:,.2f}',
                          message='Failed to dispense medicines'):
                    logger.info('prescription %s dispensed, %d line(s), total %s', pk, len(payload['items']), total)
                    return redirect(reverse('clinic:pharmacy'))
        else:
            messages.error(request, 'Please check the dispense form for errors')
            lines = [apply_catalog(DispenseLine.from_dict(getattr(f, 'cleaned_data', None) or f.initial or {}), catalog)
                     for f in formset.forms]
    else:
        lines = initial_lines(details, catalog)
        initial = [{k: v for k, v in asdict(line).items() if k != 'extra'} for line in lines]
        formset = DispenseFormSet(initial=initial, prefix='lines', medicine_choices=medicine_choices)

    rows_ = [
        {'form': form, 'line': line, 'warning': stock_warning(line)}
        for form, line in zip(formset.forms, lines)
    ]
    return render(request, 'clinic/dashboard/dispense.html', {
        'title': f'Dispense prescription #{pk}',
        'prescription': details,
        'patient': patient_name(details),
        'doctor': doctor_name(details),
        'formset': formset,
        'lines': rows_,
        'total': dispense_total(lines),
        'catalog_prices': {str(m.get('id')): str(m.get('selling_price') or '') for m in catalog if m.get('id') is not None},
        'cancel_url': reverse('clinic:pharmacy'),
    })


def _medicine_payload(form):
    data = dict(form.cleaned_data)
    for key in ('unit_price', 'selling_price'):
        data[key] = str(data[key])
    data['expiry_date'] = data['expiry_date'].isoformat() if data.get('expiry_date') else None
    return data


@permission_required('view-medicines')
def medicine_list(request):
    params = list_params(request)
    response = fetch(request, request.api.get_medicines, params, default=[], message='Failed to load medicines')
    return render_table(request, title='Medicines', columns=MEDICINE_COLUMNS, response=response, params=params,
                        actions=medicine_actions, create_url=reverse('clinic:medicine_create'))


@permission_required('view-medicines')
def medicine_create(request):
    form = MedicineForm(request.POST or None)
    if request.method == 'POST' and form.is_valid():
        if submit(request, request.api.create_medicine, _medicine_payload(form),
                  success='Medicine added successfully', message='Failed to add medicine'):
            return redirect('clinic:medicines')
    return render(request, 'clinic/dashboard/form.html', {
        'title': 'Add medicine', 'form': form, 'cancel_url': reverse('clinic:medicines'),
    })


@permission_required('view-medicines')
def medicine_edit(request, pk):
    med = record(fetch(request, request.api.get_medicine, pk, default={}, message='Failed to load medicine'))
    if not med:
        return redirect('clinic:medicines')
    initial = {name: med.get(name) for name in MedicineForm.base_fields}
    initial['expiry_date'] = str(med.get('expiry_date') or '')[:10] or None
    form = MedicineForm(request.POST or None, initial=initial)
    if request.method == 'POST' and form.is_valid():
        if submit(request, request.api.update_medicine, pk, _medicine_payload(form),
                  success='Medicine updated successfully', message='Failed to update medicine'):
            return redirect('clinic:medicines')
    return render(request, 'clinic/dashboard/form.html', {
        'title': f"Edit {med.get('name') or 'medicine'}", 'form': form, 'cancel_url': reverse('clinic:medicines'),
    })


@permission_required('view-medicines')
def medicine_delete(request, pk):
    if request.method == 'POST':
        submit(request, request.api.delete_medicine, pk,
               success='Medicine deleted successfully', message='Failed to delete medicine')
        return redirect('clinic:medicines')
    return render(request, 'clinic/dashboard/confirm_delete.html', {
        'title': 'Delete medicine', 'subject': f'medicine #{pk}', 'cancel_url': reverse('clinic:medicines'),
    })


@permission_required('view-pharmacy')
def medicine_restock(request, pk):
    med = record(fetch(request, request.api.get_medicine, pk, default={}, message='Failed to load medicine'))
    if not med:
        return redirect('clinic:pharmacy')
    form = RestockForm(request.POST or None)
    if request.method == 'POST' and form.is_valid():
        data = dict(form.cleaned_data)
        data['expiry_date'] = data['expiry_date'].isoformat() if data.get('expiry_date') else None
        data['unit_price'] = str(data['unit_price']) if data.get('unit_price') is not None else None
        if submit(request, request.api.restock_medicine, pk, {k: v for k, v in data.items() if v not in (None, '')},
                  success=f"{med.get('name') or 'Medicine'} restocked with {data['quantity']} unit(s)",
                  message='Failed to restock medicine'):
            return redirect(reverse('clinic:pharmacy') + '?tab=medicines')
    return render(request, 'clinic/dashboard/form.html', {
        'title': f"Restock {med.get('name') or 'medicine'}",
        'subtitle': f"Current stock: {med.get('current_stock', 0)} {med.get('unit') or ''}".strip(),
        'form': form, 'cancel_url': reverse('clinic:pharmacy') + '?tab=medicines',
    })
