from django import forms

from clinic.services.prescriptions import LAB_PRIORITIES, validate_prescription

from .fields import CleanCharField


class PrescriptionForm(forms.Form):
    diagnosis = CleanCharField(required=False, widget=forms.Textarea(attrs={'rows': 3}))
    advice = CleanCharField(required=False, widget=forms.Textarea(attrs={'rows': 3}))
    follow_up_date = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))


class MedicineRowForm(forms.Form):
    medicine_name = CleanCharField(required=False, max_length=200)
    dosage = CleanCharField(required=False, max_length=100)
    frequency = CleanCharField(required=False, max_length=100)
    duration = CleanCharField(required=False, max_length=100)
    instructions = CleanCharField(required=False, max_length=500)


class LabTestForm(forms.Form):
    test_name = CleanCharField(required=False, max_length=200)
    priority = forms.ChoiceField(choices=[(p, p.title()) for p in LAB_PRIORITIES], initial='normal', required=False)


MedicineRowFormSet = forms.formset_factory(MedicineRowForm, extra=1, can_delete=True)
LabTestFormSet = forms.formset_factory(LabTestForm, extra=0, can_delete=True)


def _live(formset):
    return [
        f for f in formset.forms
        if getattr(f, 'cleaned_data', None) and not f.cleaned_data.get('DELETE')
    ]


def collect(form, medicines, lab_tests):
    """Run the presence rules and attach errors to the bound forms.

    Returns ``(ok, errors, medicine_errors, medicine_rows, lab_rows)``.
    """
    ok = form.is_valid() & medicines.is_valid() & lab_tests.is_valid()
    live_forms = _live(medicines)
    medicine_rows = [f.cleaned_data for f in live_forms]
    lab_rows = [f.cleaned_data for f in _live(lab_tests)]
    diagnosis = getattr(form, 'cleaned_data', {}).get('diagnosis', '')
    errors, medicine_errors = validate_prescription(diagnosis, medicine_rows)
    for field, message in errors.items():
        form.add_error(field, message)
    for index, row_errors in medicine_errors.items():
        for field, message in row_errors.items():
            live_forms[index].add_error(field, message)
    return ok and not errors and not medicine_errors, errors, medicine_errors, medicine_rows, lab_rows
