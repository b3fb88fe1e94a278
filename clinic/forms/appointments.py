from django import forms

from .fields import CleanCharField

APPOINTMENT_STATUSES = ['pending', 'confirmed', 'completed', 'cancelled']


class AppointmentForm(forms.Form):
    patient_id = forms.TypedChoiceField(coerce=int, choices=[])
    doctor_id = forms.TypedChoiceField(coerce=int, choices=[])
    appointment_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    appointment_time = forms.TimeField(widget=forms.TimeInput(attrs={'type': 'time'}))
    reason = CleanCharField(required=False, widget=forms.Textarea(attrs={'rows': 3}))
    status = forms.ChoiceField(choices=[(s, s.title()) for s in APPOINTMENT_STATUSES], initial='pending')

    def __init__(self, *args, patients=(), doctors=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['patient_id'].choices = [('', 'Select patient')] + list(patients)
        self.fields['doctor_id'].choices = [('', 'Select doctor')] + list(doctors)


class StatusChangeForm(forms.Form):
    status = forms.ChoiceField(choices=[(s, s.title()) for s in APPOINTMENT_STATUSES])
