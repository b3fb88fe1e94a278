from django import forms

from clinic.services.calendar import HOURS, MERIDIEMS, MINUTES, is_past, to_24h

from .fields import CleanCharField


class BookingForm(forms.Form):
    name = CleanCharField(max_length=100)
    email = forms.EmailField()
    phone = CleanCharField(max_length=32)
    doctor_id = forms.TypedChoiceField(coerce=int, choices=[], required=False, empty_value=None)
    department_id = forms.TypedChoiceField(coerce=int, choices=[], required=False, empty_value=None)
    appointment_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    hour = forms.ChoiceField(choices=[(h, h) for h in HOURS])
    minute = forms.ChoiceField(choices=[(m, m) for m in MINUTES])
    meridiem = forms.ChoiceField(choices=[(m, m) for m in MERIDIEMS])
    reason = CleanCharField(required=False, widget=forms.Textarea(attrs={'rows': 3}))

    def __init__(self, *args, doctors=(), departments=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['doctor_id'].choices = [('', 'Any doctor')] + list(doctors)
        self.fields['department_id'].choices = [('', 'Any department')] + list(departments)

    def clean_appointment_date(self):
        value = self.cleaned_data['appointment_date']
        if is_past(value):
            raise forms.ValidationError('Please choose today or a future date')
        return value

    def payload(self) -> dict:
        data = self.cleaned_data
        return {
            'name': data['name'],
            'email': data['email'],
            'phone': data['phone'],
            'doctor_id': data.get('doctor_id'),
            'department_id': data.get('department_id'),
            'appointment_date': data['appointment_date'].isoformat(),
            'appointment_time': to_24h(data['hour'], data['minute'], data['meridiem']),
            'reason': data.get('reason') or '',
        }


class ReviewForm(forms.Form):
    rating = forms.TypedChoiceField(coerce=int, choices=[(i, i) for i in range(1, 6)])
    comment = CleanCharField(max_length=1000, widget=forms.Textarea(attrs={'rows': 3}))


class SubscribeForm(forms.Form):
    name = CleanCharField(max_length=100)
    email = forms.EmailField()
    phone = CleanCharField(max_length=32)
    payment_method = forms.ChoiceField(choices=[('online', 'Pay online'), ('cash', 'Pay at hospital')], initial='online')
