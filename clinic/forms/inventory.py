from django import forms

from .fields import CleanCharField


class InventoryItemForm(forms.Form):
    name = CleanCharField(max_length=200)
    category_id = forms.TypedChoiceField(coerce=int, choices=[])
    unit = CleanCharField(max_length=50)
    current_stock = forms.IntegerField(min_value=0, initial=0)
    min_stock_level = forms.IntegerField(min_value=0, initial=0)
    expiry_date = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    description = CleanCharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))

    def __init__(self, *args, categories=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['category_id'].choices = [('', 'Select category')] + list(categories)


class IssueStockForm(forms.Form):
    quantity = forms.IntegerField(min_value=1)
    notes = CleanCharField(required=False, max_length=500)
