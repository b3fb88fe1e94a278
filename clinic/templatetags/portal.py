from decimal import Decimal

from django import template

from clinic.services.listing import lookup as _lookup
from clinic.services.listing import status_color, status_label

register = template.Library()


@register.filter
def lookup(record, path):
    return _lookup(record, str(path), '')


@register.filter
def badge_color(status):
    return status_color(status)


@register.filter
def badge_label(status):
    return status_label(status)


@register.filter
def money(value):
    if value in (None, ''):
        return '-'
    try:
        return f'{Decimal(str(value)):,.2f}'
    except ArithmeticError:
        return str(value)


@register.inclusion_tag('clinic/components/status_badge.html')
def status_badge(status):
    return {'color': status_color(status), 'label': status_label(status)}
