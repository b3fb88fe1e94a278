import logging

from django.contrib import messages
from django.shortcuts import redirect, render
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from clinic.authentication import clear_sign_in, store_sign_in
from clinic.forms.auth import SignInForm
from clinic.navigation import first_accessible_url
from clinic.services.api import ApiError, ApiService, record
from clinic.services.feedback import describe_error

from .common import fetch

logger = logging.getLogger(__name__)


def sign_in(request):
    """Exchange credentials for an upstream token and remember it in the session."""
    if request.portal_user.is_authenticated:
        return redirect(first_accessible_url(request.portal_user.permissions) or 'clinic:profile')

    form = SignInForm(request.POST or None)
    if request.method == 'POST' and form.is_valid():
        api = ApiService()
        try:
            resp = api.login(form.cleaned_data['email'], form.cleaned_data['password'])
            permissions = api.get_current_user_permissions()
        except ApiError as exc:
            logger.info('sign-in failed for %s: %s', form.cleaned_data['email'], exc)
            form.add_error(None, describe_error(exc, 'Login failed'))
        else:
            store_sign_in(request.session, api.token, resp.get('user') or {}, permissions)
            messages.success(request, 'Signed in successfully')
            target = request.GET.get('next')
            if target and url_has_allowed_host_and_scheme(target, allowed_hosts={request.get_host()}):
                return redirect(target)
            return redirect(first_accessible_url(permissions) or 'clinic:profile')
    return render(request, 'clinic/sign_in.html', {'form': form})


@require_POST
def sign_out(request):
    if request.portal_user.is_authenticated:
        try:
            request.api.logout()
        except ApiError as exc:
            logger.info('upstream logout failed: %s', exc)
    clear_sign_in(request.session)
    messages.success(request, 'Signed out')
    return redirect('clinic:sign_in')


def profile(request):
    data = fetch(request, request.api.get_profile, default={}, message='Failed to load profile')
    return render(request, 'clinic/dashboard/profile.html', {
        'profile': record(data) if data else {},
        'permissions': request.portal_user.permissions,
    })
