from decimal import Decimal

import pytest

from clinic.forms.pharmacy import DispenseLineForm
from clinic.services.pharmacy import (
    ALTERNATIVE,
    EXTERNAL_PURCHASE,
    FROM_STOCK,
    MANUAL_ENTRY,
    NOT_DISPENSED,
    STOCK_OVERRIDE,
    DispenseError,
    DispenseLine,
    apply_catalog,
    dispense_total,
    initial_lines,
    prepare_dispense,
    stock_warning,
    validate_line,
)

CATALOG = [
    {'id': 5, 'name': 'Paracetamol', 'selling_price': '2.50', 'current_stock': 100},
    {'id': 6, 'name': 'Amoxicillin', 'selling_price': '4.00', 'current_stock': 3},
]


def line(**kwargs):
    kwargs.setdefault('prescription_item_id', 1)
    return DispenseLine(**kwargs)


def test_from_stock_uses_catalog_price():
    ln = line(disposition=FROM_STOCK, medicine_id=5, selling_price=Decimal('2.50'), quantity_to_dispense=4)
    assert validate_line(ln) == {}
    assert ln.total == Decimal('10.00')


def test_manual_entry_uses_manual_price():
    ln = line(disposition=MANUAL_ENTRY, quantity_to_dispense=3, manual_medicine_name='Herbal mix',
              manual_unit='bottle', manual_unit_price=Decimal('1.335'), selling_price=Decimal('99'))
    assert validate_line(ln) == {}
    assert ln.unit_price == Decimal('1.335')
    assert ln.total == Decimal('4.01')


def test_alternative_uses_alternative_price():
    ln = line(disposition=ALTERNATIVE, quantity_to_dispense=2, alternative_name='Ibuprofen',
              alternative_unit_price=Decimal('3.00'))
    assert ln.total == Decimal('6.00')


@pytest.mark.parametrize('disposition, missing', [
    (FROM_STOCK, {'medicine_id'}),
    (MANUAL_ENTRY, {'manual_medicine_name', 'manual_unit', 'manual_unit_price'}),
    (STOCK_OVERRIDE, {'medicine_id', 'notes'}),
    (ALTERNATIVE, {'alternative_name', 'alternative_unit_price'}),
    (NOT_DISPENSED, {'notes'}),
    (EXTERNAL_PURCHASE, set()),
])
def test_required_fields_per_disposition(disposition, missing):
    qty = 0 if disposition in (NOT_DISPENSED, EXTERNAL_PURCHASE) else 1
    errors = validate_line(line(disposition=disposition, quantity_to_dispense=qty))
    assert set(errors) == missing


def test_zero_quantity_dispositions_force_zero():
    ln = line(disposition=EXTERNAL_PURCHASE, quantity_to_dispense=5, selling_price=Decimal('2'))
    assert ln.quantity == 0
    assert ln.unit_price is None
    assert ln.total == Decimal('0.00')
    assert ln.is_submittable


def test_quantity_rules():
    assert validate_line(line(disposition=FROM_STOCK, medicine_id=5, quantity_to_dispense=-1)) == {
        'quantity_to_dispense': 'Quantity cannot be negative'}
    assert 'quantity_to_dispense' in validate_line(line(disposition=FROM_STOCK, medicine_id=5))


def test_negative_price_rejected():
    errors = validate_line(line(disposition=MANUAL_ENTRY, quantity_to_dispense=1, manual_medicine_name='x',
                                manual_unit='box', manual_unit_price=Decimal('-1')))
    assert errors == {'manual_unit_price': 'Price cannot be negative'}


def test_total_only_counts_lines_with_quantity():
    lines = [
        line(disposition=FROM_STOCK, medicine_id=5, selling_price=Decimal('2.50'), quantity_to_dispense=2),
        line(disposition=MANUAL_ENTRY, manual_unit_price=Decimal('1.25'), quantity_to_dispense=4),
        line(disposition=FROM_STOCK, medicine_id=6, selling_price=Decimal('4.00'), quantity_to_dispense=0),
        line(disposition=NOT_DISPENSED, notes='allergy', selling_price=Decimal('9')),
    ]
    assert dispense_total(lines) == Decimal('10.00')


def test_prepare_dispense_filters_and_serialises():
    lines = [
        line(prescription_item_id=1, disposition=FROM_STOCK, medicine_id=5, selling_price=Decimal('2.50'),
             quantity_to_dispense=10),
        line(prescription_item_id=2, disposition=FROM_STOCK, quantity_to_dispense=0),
        line(prescription_item_id=3, disposition=NOT_DISPENSED, notes='Out of season'),
    ]
    payload, total = prepare_dispense(lines)
    assert total == Decimal('25.00')
    assert payload == {'items': [
        {'prescription_item_id': 1, 'dispense_type': 'from_stock', 'quantity_dispensed': 10,
         'medicine_id': 5, 'unit_price': '2.50'},
        {'prescription_item_id': 3, 'dispense_type': 'not_dispensed', 'quantity_dispensed': 0,
         'notes': 'Out of season'},
    ]}


def test_prepare_dispense_refuses_empty_batch():
    with pytest.raises(DispenseError) as excinfo:
        prepare_dispense([line(disposition=FROM_STOCK, quantity_to_dispense=0)])
    assert excinfo.value.errors == {}


def test_prepare_dispense_reports_errors_by_position():
    lines = [
        line(disposition=FROM_STOCK, quantity_to_dispense=0),
        line(disposition=STOCK_OVERRIDE, medicine_id=6, quantity_to_dispense=8),
    ]
    with pytest.raises(DispenseError) as excinfo:
        prepare_dispense(lines)
    assert excinfo.value.errors == {1: {'notes': 'A reason is required'}}
    assert 'Please fix 1 medicine line(s)' in str(excinfo.value)


def test_initial_lines_match_catalog_case_insensitively():
    details = {'items': [
        {'id': 11, 'medicine_name': 'PARACETAMOL', 'quantity': 10, 'quantity_dispensed': 4},
        {'id': 12, 'medicine_name': 'Rare tonic', 'quantity': 2},
    ]}
    first, second = initial_lines(details, CATALOG)
    assert first.disposition == FROM_STOCK
    assert first.medicine_id == 5
    assert first.selling_price == Decimal('2.50')
    assert first.quantity_to_dispense == 6
    assert second.disposition == MANUAL_ENTRY
    assert second.manual_medicine_name == 'Rare tonic'
    assert second.quantity_to_dispense == 2


def test_initial_quantity_defaults_to_one():
    (ln,) = initial_lines({'items': [{'id': 1, 'medicine': {'name': 'Amoxicillin'}}]}, CATALOG)
    assert ln.prescribed_quantity == 1
    assert ln.quantity_to_dispense == 1
    assert ln.medicine_id == 6


def test_stock_warning_is_only_for_from_stock():
    over = line(disposition=FROM_STOCK, medicine_id=6, current_stock=3, quantity_to_dispense=5)
    assert 'Only 3 in stock' in stock_warning(over)
    assert stock_warning(line(disposition=STOCK_OVERRIDE, current_stock=3, quantity_to_dispense=5)) is None
    assert stock_warning(line(disposition=FROM_STOCK, current_stock=3, quantity_to_dispense=3)) is None


def test_apply_catalog_fills_price_and_stock():
    ln = apply_catalog(line(disposition=FROM_STOCK, medicine_id=6), CATALOG)
    assert ln.selling_price == Decimal('4.00')
    assert ln.current_stock == 3


def test_from_dict_tolerates_blank_inputs():
    ln = DispenseLine.from_dict({'prescription_item_id': '4', 'disposition': 'manual_entry',
                                 'quantity_to_dispense': None, 'manual_unit_price': '', 'medicine_id': ''})
    assert ln.prescription_item_id == 4
    assert ln.quantity_to_dispense == 0
    assert ln.manual_unit_price is None
    assert ln.medicine_id is None


def test_negative_quantity_blocks_the_batch():
    lines = [
        line(disposition=FROM_STOCK, medicine_id=5, selling_price=Decimal('2.50'), quantity_to_dispense=2),
        line(prescription_item_id=2, disposition=FROM_STOCK, medicine_id=6, quantity_to_dispense=-3),
    ]
    assert lines[1].is_submittable
    with pytest.raises(DispenseError) as excinfo:
        prepare_dispense(lines)
    assert excinfo.value.errors == {1: {'quantity_to_dispense': 'Quantity cannot be negative'}}


def test_dispense_form_rejects_negative_quantity():
    form = DispenseLineForm({'prescription_item_id': '1', 'disposition': FROM_STOCK, 'quantity_to_dispense': '-3'})
    assert not form.is_valid()
    assert 'quantity_to_dispense' in form.errors
