from django import forms
from django.conf import settings

from .fields import CleanCharField


class GalleryImageForm(forms.Form):
    title = CleanCharField(max_length=200)
    category_id = forms.TypedChoiceField(coerce=int, choices=[], required=False, empty_value=None)
    description = CleanCharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))
    status = forms.ChoiceField(choices=[('active', 'Active'), ('inactive', 'Inactive')], initial='active')
    image = forms.FileField(required=False)

    def __init__(self, *args, categories=(), require_image=False, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['category_id'].choices = [('', 'No category')] + list(categories)
        self.fields['image'].required = require_image

    def clean_image(self):
        upload = self.cleaned_data.get('image')
        if not upload:
            return upload
        if upload.size > settings.UPLOAD_MAX_MB * 1024 * 1024:
            raise forms.ValidationError(f'Image must be smaller than {settings.UPLOAD_MAX_MB} MB')
        content_type = getattr(upload, 'content_type', '') or ''
        if not any(content_type.startswith(prefix) for prefix in settings.ALLOWED_UPLOAD_TYPES):
            raise forms.ValidationError('Unsupported file type')
        return upload
