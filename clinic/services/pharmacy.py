"""
Pharmacy dispense workflow.

For every line of a pending prescription the pharmacist picks one
disposition.  The disposition decides which extra fields must be filled
and where the unit price comes from:

===================  ==========================================  ====================
disposition          required fields                             unit price
===================  ==========================================  ====================
from_stock           catalog medicine                            catalog selling price
manual_entry         manual name, manual unit, manual unit price manual unit price
stock_override       catalog medicine, note (override reason)    catalog selling price
alternative          substitute name, substitute unit price      substitute unit price
external_purchase    nothing; quantity forced to 0               none
not_dispensed        note (reason); quantity forced to 0         none
===================  ==========================================  ====================

Only lines with a quantity above zero or with one of the two zero-quantity
dispositions are sent.  Stock deduction happens on the API side.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Tuple

FROM_STOCK = 'from_stock'
MANUAL_ENTRY = 'manual_entry'
STOCK_OVERRIDE = 'stock_override'
ALTERNATIVE = 'alternative'
EXTERNAL_PURCHASE = 'external_purchase'
NOT_DISPENSED = 'not_dispensed'

DISPOSITIONS = (FROM_STOCK, MANUAL_ENTRY, STOCK_OVERRIDE, ALTERNATIVE, EXTERNAL_PURCHASE, NOT_DISPENSED)

DISPOSITION_LABELS = {
    FROM_STOCK: 'Dispense from stock',
    MANUAL_ENTRY: 'Manual entry',
    STOCK_OVERRIDE: 'Override stock level',
    ALTERNATIVE: 'Substitute alternative',
    EXTERNAL_PURCHASE: 'Patient buys externally',
    NOT_DISPENSED: 'Not dispensed',
}

ZERO_QUANTITY_DISPOSITIONS = frozenset({EXTERNAL_PURCHASE, NOT_DISPENSED})

REQUIRED_FIELDS: Dict[str, Tuple[str, ...]] = {
    FROM_STOCK: ('medicine_id',),
    MANUAL_ENTRY: ('manual_medicine_name', 'manual_unit', 'manual_unit_price'),
    STOCK_OVERRIDE: ('medicine_id', 'notes'),
    ALTERNATIVE: ('alternative_name', 'alternative_unit_price'),
    EXTERNAL_PURCHASE: (),
    NOT_DISPENSED: ('notes',),
}

FIELD_LABELS = {
    'medicine_id': 'Select a medicine from stock',
    'manual_medicine_name': 'Medicine name is required for manual entry',
    'manual_unit': 'Unit is required for manual entry',
    'manual_unit_price': 'Unit price is required for manual entry',
    'alternative_name': 'Alternative medicine name is required',
    'alternative_unit_price': 'Alternative price is required',
    'notes': 'A reason is required',
}

CENTS = Decimal('0.01')


class DispenseError(ValueError):
    """Raised when a dispense batch cannot be submitted."""

    def __init__(self, message: str, errors: Optional[Dict[int, Dict[str, str]]] = None):
        super().__init__(message)
        self.errors = errors or {}


def to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class DispenseLine:
    prescription_item_id: int
    medicine_name: str = ''
    prescribed_quantity: int = 0
    disposition: str = FROM_STOCK
    quantity_to_dispense: int = 0
    medicine_id: Optional[int] = None
    selling_price: Optional[Decimal] = None
    current_stock: Optional[int] = None
    manual_medicine_name: str = ''
    manual_unit: str = ''
    manual_unit_price: Optional[Decimal] = None
    alternative_name: str = ''
    alternative_unit_price: Optional[Decimal] = None
    notes: str = ''
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> 'DispenseLine':
        stock = data.get('current_stock')
        return cls(
            prescription_item_id=to_int(data.get('prescription_item_id')),
            medicine_name=str(data.get('medicine_name') or ''),
            prescribed_quantity=to_int(data.get('prescribed_quantity')),
            disposition=str(data.get('disposition') or FROM_STOCK),
            quantity_to_dispense=to_int(data.get('quantity_to_dispense')),
            medicine_id=to_int(data.get('medicine_id')) or None,
            selling_price=to_decimal(data.get('selling_price')),
            current_stock=None if stock in (None, '') else to_int(stock),
            manual_medicine_name=str(data.get('manual_medicine_name') or '').strip(),
            manual_unit=str(data.get('manual_unit') or '').strip(),
            manual_unit_price=to_decimal(data.get('manual_unit_price')),
            alternative_name=str(data.get('alternative_name') or '').strip(),
            alternative_unit_price=to_decimal(data.get('alternative_unit_price')),
            notes=str(data.get('notes') or '').strip(),
        )

    @property
    def quantity(self) -> int:
        """Quantity that will actually be dispensed."""
        if self.disposition in ZERO_QUANTITY_DISPOSITIONS:
            return 0
        return max(0, self.quantity_to_dispense)

    @property
    def unit_price(self) -> Optional[Decimal]:
        if self.disposition in ZERO_QUANTITY_DISPOSITIONS:
            return None
        if self.disposition == MANUAL_ENTRY:
            return self.manual_unit_price
        if self.disposition == ALTERNATIVE:
            return self.alternative_unit_price
        return self.selling_price

    @property
    def total(self) -> Decimal:
        price = self.unit_price
        if not self.quantity or price is None:
            return Decimal('0.00')
        return (price * self.quantity).quantize(CENTS, rounding=ROUND_HALF_UP)

    @property
    def is_submittable(self) -> bool:
        # negative quantities are kept so validation can report them
        return self.quantity_to_dispense != 0 or self.disposition in ZERO_QUANTITY_DISPOSITIONS


def validate_line(line: DispenseLine) -> Dict[str, str]:
    """Return field errors for one line; empty when the line is complete."""
    if line.disposition not in DISPOSITIONS:
        return {'disposition': f'Unknown dispense option: {line.disposition}'}

    errors: Dict[str, str] = {}
    for name in REQUIRED_FIELDS[line.disposition]:
        value = getattr(line, name)
        if value is None or value == '':
            errors[name] = FIELD_LABELS[name]

    for name in ('manual_unit_price', 'alternative_unit_price'):
        value = getattr(line, name)
        if name not in errors and value is not None and value < 0:
            errors[name] = 'Price cannot be negative'

    if line.quantity_to_dispense < 0:
        errors['quantity_to_dispense'] = 'Quantity cannot be negative'
    elif line.disposition not in ZERO_QUANTITY_DISPOSITIONS and line.quantity_to_dispense == 0:
        errors['quantity_to_dispense'] = 'Quantity must be greater than zero'
    return errors


def stock_warning(line: DispenseLine) -> Optional[str]:
    """Non-blocking hint shown next to a ``from_stock`` line."""
    if line.disposition != FROM_STOCK or line.current_stock is None:
        return None
    if line.quantity_to_dispense > line.current_stock:
        return (f'Only {line.current_stock} in stock; choose "{DISPOSITION_LABELS[STOCK_OVERRIDE]}" '
                f'to dispense {line.quantity_to_dispense}')
    return None


def dispense_total(lines: Iterable[DispenseLine]) -> Decimal:
    total = Decimal('0.00')
    for line in lines:
        if line.quantity > 0:
            total += line.total
    return total.quantize(CENTS, rounding=ROUND_HALF_UP)


def line_payload(line: DispenseLine) -> dict:
    price = line.unit_price
    payload = {
        'prescription_item_id': line.prescription_item_id,
        'dispense_type': line.disposition,
        'quantity_dispensed': line.quantity,
        'medicine_id': line.medicine_id if line.disposition in (FROM_STOCK, STOCK_OVERRIDE) else None,
        'manual_medicine_name': line.manual_medicine_name if line.disposition == MANUAL_ENTRY else None,
        'manual_unit': line.manual_unit if line.disposition == MANUAL_ENTRY else None,
        'alternative_medicine_name': line.alternative_name if line.disposition == ALTERNATIVE else None,
        'unit_price': str(price) if price is not None else None,
        'notes': line.notes or None,
    }
    return {k: v for k, v in payload.items() if v is not None}


def prepare_dispense(lines: List[DispenseLine]) -> Tuple[dict, Decimal]:
    """Filter, validate and serialise a batch.

    Returns ``({'items': [...]}, total)``.  Raises :class:`DispenseError`
    carrying per-line errors keyed by the line's position in ``lines``.
    """
    chosen = [(index, line) for index, line in enumerate(lines) if line.is_submittable]
    if not chosen:
        raise DispenseError('Enter a quantity or choose a dispense option for at least one medicine')

    errors = {}
    for index, line in chosen:
        line_errors = validate_line(line)
        if line_errors:
            errors[index] = line_errors
    if errors:
        raise DispenseError(f'Please fix {len(errors)} medicine line(s) before dispensing', errors)

    submitted = [line for _, line in chosen]
    return {'items': [line_payload(line) for line in submitted]}, dispense_total(submitted)


def _catalog_index(medicines: Iterable[dict]) -> Dict[str, dict]:
    return {str(m.get('name') or '').strip().lower(): m for m in medicines if m.get('name')}


def initial_lines(details: dict, medicines: Iterable[dict]) -> List[DispenseLine]:
    """Shape a pending prescription into editable dispense lines.

    A prescribed name that matches a catalog medicine starts as
    ``from_stock``; anything else starts as ``manual_entry`` with the
    prescribed name prefilled.
    """
    catalog = _catalog_index(medicines)
    items = details.get('items') or details.get('medicine_items') or []
    lines: List[DispenseLine] = []
    for item in items:
        name = str(item.get('medicine_name') or (item.get('medicine') or {}).get('name') or '').strip()
        prescribed = to_int(item.get('quantity') or item.get('quantity_prescribed'), 1) or 1
        already = to_int(item.get('quantity_dispensed'))
        remaining = max(0, prescribed - already)
        match = catalog.get(name.lower())
        line = DispenseLine(
            prescription_item_id=to_int(item.get('id')),
            medicine_name=name,
            prescribed_quantity=prescribed,
            quantity_to_dispense=remaining,
        )
        if match:
            line.disposition = FROM_STOCK
            line.medicine_id = to_int(match.get('id')) or None
            line.selling_price = to_decimal(match.get('selling_price'))
            line.current_stock = to_int(match.get('current_stock'))
        else:
            line.disposition = MANUAL_ENTRY
            line.manual_medicine_name = name
        lines.append(line)
    return lines


def apply_catalog(line: DispenseLine, medicines: Iterable[dict]) -> DispenseLine:
    """Fill selling price and stock from the catalog entry chosen on the line."""
    if not line.medicine_id:
        return line
    for medicine in medicines:
        if to_int(medicine.get('id')) == line.medicine_id:
            line.selling_price = to_decimal(medicine.get('selling_price'))
            line.current_stock = to_int(medicine.get('current_stock'))
            break
    return line
