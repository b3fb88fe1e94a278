from django import forms

from clinic.services.pharmacy import DISPOSITION_LABELS, DISPOSITIONS, FROM_STOCK

from .fields import CleanCharField

MEDICINE_CATEGORIES = ['tablet', 'capsule', 'syrup', 'injection', 'other']
MEDICINE_STATUSES = ['active', 'inactive', 'discontinued']


class DispenseLineForm(forms.Form):
    prescription_item_id = forms.IntegerField(widget=forms.HiddenInput)
    medicine_name = forms.CharField(required=False, widget=forms.HiddenInput)
    prescribed_quantity = forms.IntegerField(required=False, widget=forms.HiddenInput)
    disposition = forms.ChoiceField(choices=[(d, DISPOSITION_LABELS[d]) for d in DISPOSITIONS], initial=FROM_STOCK)
    quantity_to_dispense = forms.IntegerField(required=False, min_value=0, initial=0)
    medicine_id = forms.TypedChoiceField(required=False, coerce=int, empty_value=None, choices=[])
    manual_medicine_name = CleanCharField(required=False, max_length=200)
    manual_unit = CleanCharField(required=False, max_length=50)
    manual_unit_price = forms.DecimalField(required=False, max_digits=12, decimal_places=2)
    alternative_name = CleanCharField(required=False, max_length=200)
    alternative_unit_price = forms.DecimalField(required=False, max_digits=12, decimal_places=2)
    notes = CleanCharField(required=False, max_length=500)

    def __init__(self, *args, medicine_choices=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['medicine_id'].choices = [('', 'Select medicine')] + list(medicine_choices)


class BaseDispenseFormSet(forms.BaseFormSet):
    def __init__(self, *args, medicine_choices=(), **kwargs):
        self.medicine_choices = medicine_choices
        super().__init__(*args, **kwargs)

    def get_form_kwargs(self, index):
        kwargs = super().get_form_kwargs(index)
        kwargs['medicine_choices'] = self.medicine_choices
        return kwargs


DispenseFormSet = forms.formset_factory(DispenseLineForm, formset=BaseDispenseFormSet, extra=0)


class MedicineForm(forms.Form):
    name = CleanCharField(max_length=200)
    generic_name = CleanCharField(required=False, max_length=200)
    manufacturer = CleanCharField(required=False, max_length=200)
    category = forms.ChoiceField(choices=[(c, c.title()) for c in MEDICINE_CATEGORIES])
    unit = CleanCharField(max_length=50)
    current_stock = forms.IntegerField(min_value=0, initial=0)
    min_stock_level = forms.IntegerField(min_value=0, initial=10)
    max_stock_level = forms.IntegerField(required=False, min_value=0)
    unit_price = forms.DecimalField(min_value=0, max_digits=12, decimal_places=2)
    selling_price = forms.DecimalField(min_value=0, max_digits=12, decimal_places=2)
    expiry_date = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    batch_number = CleanCharField(required=False, max_length=100)
    status = forms.ChoiceField(choices=[(s, s.title()) for s in MEDICINE_STATUSES], initial='active')

    def clean(self):
        data = super().clean()
        low, high = data.get('min_stock_level'), data.get('max_stock_level')
        if low is not None and high is not None and high < low:
            self.add_error('max_stock_level', 'Maximum stock level must not be below the minimum')
        return data


class RestockForm(forms.Form):
    quantity = forms.IntegerField(min_value=1)
    batch_number = CleanCharField(required=False, max_length=100)
    expiry_date = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    unit_price = forms.DecimalField(required=False, min_value=0, max_digits=12, decimal_places=2)
    notes = CleanCharField(required=False, max_length=500, widget=forms.Textarea(attrs={'rows': 2}))
