"""Inventory items, stock requests and their status-driven actions."""
from datetime import timedelta

from django.shortcuts import redirect, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from clinic.forms.fields import choices_from
from clinic.forms.inventory import InventoryItemForm, IssueStockForm
from clinic.permissions import permission_required
from clinic.services.api import record, rows
from clinic.services.calendar import local_today, parse_date
from clinic.services.listing import Action, Column, lookup

from .common import fetch, list_params, render_table, submit

EXPIRY_WARNING_DAYS = 30

REQUEST_TRANSITIONS = {
    # current status -> actions offered
    'pending': ('approve', 'reject'),
    'approved': ('issue',),
}


def item_chips(item, today=None):
    """Short flags shown next to an item: low stock and (soon) expired."""
    chips = []
    stock = item.get('current_stock')
    low = item.get('min_stock_level')
    if stock is not None and low is not None and int(stock) <= int(low):
        chips.append(('Out of stock', 'red') if int(stock) == 0 else ('Low stock', 'yellow'))
    expiry = parse_date(item.get('expiry_date'))
    if expiry:
        today = today or local_today()
        if expiry < today:
            chips.append(('Expired', 'red'))
        elif expiry <= today + timedelta(days=EXPIRY_WARNING_DAYS):
            chips.append(('Expiring soon', 'orange'))
    return chips


ITEM_COLUMNS = [
    Column('name', 'Name'),
    Column('category', 'Category', render=lambda i: lookup(i, 'category.name') or i.get('category_name') or '-'),
    Column('current_stock', 'Stock'),
    Column('unit', 'Unit'),
    Column('expiry_date', 'Expiry', kind='date'),
    Column('flags', 'Flags', kind='chips', render=item_chips),
]

REQUEST_COLUMNS = [
    Column('id', '#'),
    Column('item', 'Item', render=lambda r: lookup(r, 'item.name') or lookup(r, 'inventory_item.name') or '-'),
    Column('quantity', 'Qty', render=lambda r: r.get('quantity') or r.get('quantity_requested')),
    Column('requested_by', 'Requested by', render=lambda r: lookup(r, 'requested_by.name') or lookup(r, 'user.name') or '-'),
    Column('department', 'Department', render=lambda r: lookup(r, 'department.name') or '-'),
    Column('created_at', 'Requested', kind='date'),
    Column('status', 'Status', kind='status'),
]


def item_actions(item):
    pk = item.get('id')
    return [
        Action('View', reverse('clinic:inventory_detail', args=[pk]), 'gray'),
        Action('Edit', reverse('clinic:inventory_edit', args=[pk])),
        Action('Delete', reverse('clinic:inventory_delete', args=[pk]), 'red'),
    ]


def request_actions(req):
    pk = req.get('id')
    offered = REQUEST_TRANSITIONS.get(str(req.get('status') or '').lower(), ())
    actions = []
    if 'approve' in offered:
        actions.append(Action('Approve', reverse('clinic:inventory_request_action', args=[pk, 'approve']), 'green', 'post'))
    if 'reject' in offered:
        actions.append(Action('Reject', reverse('clinic:inventory_request_action', args=[pk, 'reject']), 'red', 'post',
                              confirm='Reject this request?'))
    if 'issue' in offered:
        actions.append(Action('Issue stock', reverse('clinic:inventory_issue', args=[pk]), 'blue'))
    return actions


def _tabs(active):
    return [
        ('items', 'Items', active == 'items', reverse('clinic:inventory')),
        ('requests', 'Requests', active == 'requests', reverse('clinic:inventory_requests')),
    ]


@permission_required('view-inventory')
def item_list(request):
    params = list_params(request, allowed=('search', 'status', 'category_id'))
    response = fetch(request, request.api.get_inventory_items, params, default=[], message='Failed to load inventory')
    stats = record(fetch(request, request.api.get_inventory_statistics, default={},
                         message='Failed to load inventory statistics'))
    return render_table(request, title='Inventory', columns=ITEM_COLUMNS, response=response, params=params,
                        actions=item_actions, create_url=reverse('clinic:inventory_create'),
                        stats=stats, link_tabs=_tabs('items'))


@permission_required('view-inventory')
def request_list(request):
    params = list_params(request)
    response = fetch(request, request.api.get_inventory_requests, params, default=[],
                     message='Failed to load inventory requests')
    return render_table(request, title='Inventory requests', columns=REQUEST_COLUMNS, response=response,
                        params=params, actions=request_actions, link_tabs=_tabs('requests'))


@require_POST
@permission_required('view-inventory')
def request_action(request, pk, action):
    status = {'approve': 'approved', 'reject': 'rejected'}.get(action)
    if status:
        submit(request, request.api.update_inventory_request_status, pk, status,
               success=f'Request {status}', message=f'Failed to {action} request')
    return redirect('clinic:inventory_requests')


@permission_required('view-inventory')
def issue_stock(request, pk):
    form = IssueStockForm(request.POST or None, initial={'quantity': request.GET.get('quantity')})
    if request.method == 'POST' and form.is_valid():
        payload = {'inventory_request_id': pk, **form.cleaned_data}
        if submit(request, request.api.create_inventory_issue, payload,
                  success='Stock issued successfully', message='Failed to issue stock'):
            return redirect('clinic:inventory_requests')
    return render(request, 'clinic/dashboard/form.html', {
        'title': f'Issue stock for request #{pk}', 'form': form,
        'cancel_url': reverse('clinic:inventory_requests'),
    })


def _categories(request):
    return choices_from(rows(fetch(request, request.api.get_inventory_categories, default=[],
                                   message='Failed to load categories')))


def _item_payload(form):
    data = dict(form.cleaned_data)
    data['expiry_date'] = data['expiry_date'].isoformat() if data.get('expiry_date') else None
    return data


@permission_required('view-inventory')
def item_create(request):
    form = InventoryItemForm(request.POST or None, categories=_categories(request))
    if request.method == 'POST' and form.is_valid():
        if submit(request, request.api.create_inventory_item, _item_payload(form),
                  success='Item added successfully', message='Failed to add item'):
            return redirect('clinic:inventory')
    return render(request, 'clinic/dashboard/form.html', {
        'title': 'Add inventory item', 'form': form, 'cancel_url': reverse('clinic:inventory'),
    })


@permission_required('view-inventory')
def item_edit(request, pk):
    item = record(fetch(request, request.api.get_inventory_item, pk, default={}, message='Failed to load item'))
    if not item:
        return redirect('clinic:inventory')
    initial = {name: item.get(name) for name in InventoryItemForm.base_fields}
    initial['category_id'] = item.get('category_id') or lookup(item, 'category.id')
    initial['expiry_date'] = str(item.get('expiry_date') or '')[:10] or None
    form = InventoryItemForm(request.POST or None, initial=initial, categories=_categories(request))
    if request.method == 'POST' and form.is_valid():
        if submit(request, request.api.update_inventory_item, pk, _item_payload(form),
                  success='Item updated successfully', message='Failed to update item'):
            return redirect('clinic:inventory')
    return render(request, 'clinic/dashboard/form.html', {
        'title': f"Edit {item.get('name') or 'item'}", 'form': form, 'cancel_url': reverse('clinic:inventory'),
    })


@permission_required('view-inventory')
def item_detail(request, pk):
    item = record(fetch(request, request.api.get_inventory_item, pk, default={}, message='Failed to load item'))
    if not item:
        return redirect('clinic:inventory')
    fields = [
        ('Name', item.get('name')),
        ('Category', lookup(item, 'category.name') or '-'),
        ('Stock', f"{item.get('current_stock', 0)} {item.get('unit') or ''}".strip()),
        ('Minimum level', item.get('min_stock_level')),
        ('Expiry', item.get('expiry_date') or '-'),
        ('Description', item.get('description') or '-'),
    ]
    return render(request, 'clinic/dashboard/detail.html', {
        'title': item.get('name') or f'Item #{pk}', 'fields': fields, 'chips': item_chips(item),
        'back_url': reverse('clinic:inventory'), 'actions': item_actions(item)[1:],
    })


@permission_required('view-inventory')
def item_delete(request, pk):
    if request.method == 'POST':
        submit(request, request.api.delete_inventory_item, pk,
               success='Item deleted successfully', message='Failed to delete item')
        return redirect('clinic:inventory')
    return render(request, 'clinic/dashboard/confirm_delete.html', {
        'title': 'Delete inventory item', 'subject': f'item #{pk}', 'cancel_url': reverse('clinic:inventory'),
    })
