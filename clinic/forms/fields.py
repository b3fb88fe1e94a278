import html

import bleach
from django import forms


class CleanCharField(forms.CharField):
    """CharField whose value is stripped of any markup before it leaves the portal.

    Only tags are removed; ``&``, ``<`` and ``>`` in plain text are kept as
    typed, and escaping is left to the templates.
    """

    def to_python(self, value):
        value = super().to_python(value)
        if not value:
            return value
        return html.unescape(bleach.clean(value, tags=[], strip=True)).strip()


def choices_from(records, label_key='name', value_key='id', blank=None):
    choices = [(str(r.get(value_key)), str(r.get(label_key) or r.get(value_key))) for r in records if r.get(value_key) is not None]
    if blank is not None:
        choices.insert(0, ('', blank))
    return choices
