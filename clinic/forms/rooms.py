from django import forms

from .fields import CleanCharField

ROOM_STATUSES = ['active', 'inactive', 'maintenance']
BED_STATUSES = ['available', 'occupied', 'maintenance', 'reserved']


class RoomForm(forms.Form):
    room_number = CleanCharField(max_length=50)
    room_type_id = forms.TypedChoiceField(coerce=int, choices=[])
    floor = CleanCharField(required=False, max_length=20)
    status = forms.ChoiceField(choices=[(s, s.title()) for s in ROOM_STATUSES], initial='active')
    description = CleanCharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))

    def __init__(self, *args, room_types=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['room_type_id'].choices = [('', 'Select room type')] + list(room_types)


class BedForm(forms.Form):
    room_id = forms.TypedChoiceField(coerce=int, choices=[])
    bed_number = CleanCharField(max_length=50)
    status = forms.ChoiceField(choices=[(s, s.title()) for s in BED_STATUSES], initial='available')

    def __init__(self, *args, rooms=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['room_id'].choices = [('', 'Select room')] + list(rooms)


class AdmitPatientForm(forms.Form):
    patient_id = forms.TypedChoiceField(coerce=int, choices=[])
    doctor_id = forms.TypedChoiceField(coerce=int, choices=[], required=False, empty_value=None)
    admission_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    reason = CleanCharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))

    def __init__(self, *args, patients=(), doctors=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['patient_id'].choices = [('', 'Select patient')] + list(patients)
        self.fields['doctor_id'].choices = [('', 'Attending doctor (optional)')] + list(doctors)


class ProcessAdmissionForm(forms.Form):
    """Room first, then one of that room's available beds."""

    room_id = forms.TypedChoiceField(coerce=int, choices=[])
    bed_id = forms.TypedChoiceField(coerce=int, choices=[])
    admission_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))

    def __init__(self, *args, rooms=(), beds=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['room_id'].choices = [('', 'Select room')] + list(rooms)
        self.fields['bed_id'].choices = [('', 'Select bed')] + list(beds)


class DischargeForm(forms.Form):
    discharge_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))

    def __init__(self, *args, admitted_on=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.admitted_on = admitted_on

    def clean_discharge_date(self):
        value = self.cleaned_data['discharge_date']
        if self.admitted_on and value < self.admitted_on:
            raise forms.ValidationError('Discharge date cannot be before the admission date')
        return value
